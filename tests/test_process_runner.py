#!/usr/bin/env python3
"""Tests for the async external command runner."""

import os
import sys
import tempfile
import unittest

# Redirect HOME so logger writes inside workspace-friendly location before imports
TEST_HOME = tempfile.mkdtemp(prefix='adbwise_test_home_')
os.environ['HOME'] = TEST_HOME

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from utils import process_runner  # noqa: E402
from utils.adb_models import CommandResult  # noqa: E402


class RunCommandTests(unittest.IsolatedAsyncioTestCase):

    async def test_captures_stdout_stderr_and_exit_code(self):
        script = "import sys; sys.stdout.write('out'); sys.stderr.write('err'); sys.exit(3)"

        result = await process_runner.run_command(sys.executable, ['-c', script])

        self.assertEqual(result.stdout, 'out')
        self.assertEqual(result.stderr, 'err')
        self.assertEqual(result.code, 3)
        self.assertFalse(result.ok)

    async def test_successful_command(self):
        result = await process_runner.run_command(sys.executable, ['-c', 'print("hello")'])

        self.assertTrue(result.ok)
        self.assertEqual(result.stdout.strip(), 'hello')

    async def test_missing_command_reports_127(self):
        result = await process_runner.run_command('/nonexistent/adbwise-missing-tool', ['version'])

        self.assertEqual(result.code, 127)
        self.assertEqual(result.stdout, '')
        self.assertTrue(result.stderr)

    async def test_non_executable_file_reports_126(self):
        if os.name == 'nt' or os.geteuid() == 0:
            self.skipTest('permission bits are not enforced here')
        with tempfile.NamedTemporaryFile(suffix='.sh', delete=False) as handle:
            handle.write(b'#!/bin/sh\necho hi\n')
        self.addCleanup(os.unlink, handle.name)

        result = await process_runner.run_command(handle.name)

        self.assertEqual(result.code, 126)


class CommandExistsTests(unittest.IsolatedAsyncioTestCase):

    def _runner(self, versioned, bare):
        calls = []

        async def runner(command, args=(), cwd=None):
            calls.append(list(args))
            return versioned if args else bare

        runner.calls = calls
        return runner

    async def test_version_success_means_present(self):
        runner = self._runner(CommandResult(stdout='Android Debug Bridge'), CommandResult(code=1))

        self.assertTrue(await process_runner.command_exists('adb', runner))
        self.assertEqual(runner.calls, [['version']])

    async def test_bare_call_with_output_means_present(self):
        runner = self._runner(CommandResult(code=1), CommandResult(stdout='usage: adb ...', code=1))

        self.assertTrue(await process_runner.command_exists('adb', runner))
        self.assertEqual(runner.calls, [['version'], []])

    async def test_ordinary_failure_means_present(self):
        runner = self._runner(CommandResult(code=1), CommandResult(code=1))

        self.assertTrue(await process_runner.command_exists('adb', runner))

    async def test_not_found_means_absent(self):
        missing = CommandResult(stderr='[Errno 2] No such file or directory', code=127)
        runner = self._runner(missing, missing)

        self.assertFalse(await process_runner.command_exists('adb', runner))

    async def test_real_missing_binary_is_absent(self):
        self.assertFalse(await process_runner.command_exists('/nonexistent/adbwise-missing-tool'))


if __name__ == '__main__':
    unittest.main()
