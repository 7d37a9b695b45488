"""Asynchronous execution of external commands."""

from __future__ import annotations

import asyncio
import contextlib
from typing import Awaitable, Callable, Optional, Sequence

from config.constants import ADBConstants
from utils import common
from utils.adb_models import CommandResult


logger = common.get_logger('process_runner')

CommandRunner = Callable[..., Awaitable[CommandResult]]

_NOT_PRESENT_CODES = (ADBConstants.EXIT_NOT_FOUND, ADBConstants.EXIT_NOT_EXECUTABLE)


def _decode(data: Optional[bytes]) -> str:
    if not data:
        return ''
    return data.decode('utf-8', errors='replace')


async def run_command(command: str, args: Sequence[str] = (), cwd: Optional[str] = None) -> CommandResult:
    """Run ``command`` with ``args`` and capture stdout, stderr and exit code.

    A command that cannot be launched is reported through a synthetic exit
    code (127 when missing, 126 when not executable) instead of raising.
    There is no internal timeout: the call completes when the process does.
    """
    logger.debug('Run command %s %s', command, ' '.join(args))
    try:
        process = await asyncio.create_subprocess_exec(
            command,
            *args,
            cwd=cwd,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except FileNotFoundError as exc:
        logger.debug('Command not found: %s (%s)', command, exc)
        return CommandResult(stderr=str(exc), code=ADBConstants.EXIT_NOT_FOUND)
    except PermissionError as exc:
        logger.debug('Command not executable: %s (%s)', command, exc)
        return CommandResult(stderr=str(exc), code=ADBConstants.EXIT_NOT_EXECUTABLE)
    except OSError as exc:
        logger.warning('Failed to launch %s: %s', command, exc)
        return CommandResult(stderr=str(exc), code=exc.errno or 1)

    try:
        stdout_bytes, stderr_bytes = await process.communicate()
    except asyncio.CancelledError:
        logger.debug('Cancelled while waiting for %s %s', command, ' '.join(args))
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        raise
    result = CommandResult(
        stdout=_decode(stdout_bytes),
        stderr=_decode(stderr_bytes),
        code=int(process.returncode or 0),
    )
    if not result.ok:
        logger.debug('Command %s %s exited with %s', command, ' '.join(args), result.code)
    return result


async def command_exists(command: str, runner: CommandRunner = run_command) -> bool:
    """Return True when ``command`` looks installed.

    Some tools exit non-zero on a bare invocation yet are installed, so a
    failing ``version`` call falls back to a no-argument call that counts as
    present when it prints to stdout or does not report "command not found".
    Launch failures only ever populate stderr.
    """
    versioned = await runner(command, ADBConstants.CMD_VERSION)
    if versioned.ok:
        return True

    bare = await runner(command, [])
    return bool(bare.stdout.strip()) or bare.code not in _NOT_PRESENT_CODES


__all__ = ['CommandRunner', 'command_exists', 'run_command']
