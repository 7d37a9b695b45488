#!/usr/bin/env python3
"""Tests for adb device and mDNS service parsing."""

import os
import sys
import tempfile
import unittest

# Redirect HOME so logger writes inside workspace-friendly location before imports
TEST_HOME = tempfile.mkdtemp(prefix='adbwise_test_home_')
os.environ['HOME'] = TEST_HOME

# Add project root to path
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))
sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from adb_fakes import FakeAdb, connect_line, pairing_line, services  # noqa: E402
from utils import adb_tools  # noqa: E402
from utils.adb_models import CommandResult, MdnsService  # noqa: E402


class ParseAdbDevicesTests(unittest.TestCase):
    """Parsing of `adb devices -l` output."""

    def test_single_device_with_model(self):
        devices = adb_tools.parse_adb_devices('List of devices attached\nABC123 device model:Pixel6\n')

        self.assertEqual(len(devices), 1)
        device = devices[0]
        self.assertEqual(device.serial, 'ABC123')
        self.assertEqual(device.state, 'device')
        self.assertEqual(device.model, 'Pixel6')
        self.assertEqual(device.details, 'model:Pixel6')

    def test_every_valid_line_yields_one_record(self):
        stdout = (
            'List of devices attached\n'
            '35151FDJH000GQ         device usb:1-1 product:oriole model:Pixel_6 device:oriole transport_id:1\n'
            'emulator-5554          offline\n'
            '\n'
            '192.168.1.20:41000     unauthorized transport_id:4\n'
        )
        devices = adb_tools.parse_adb_devices(stdout)

        self.assertEqual([d.serial for d in devices], ['35151FDJH000GQ', 'emulator-5554', '192.168.1.20:41000'])
        self.assertEqual([d.state for d in devices], ['device', 'offline', 'unauthorized'])
        self.assertEqual(devices[0].model, 'Pixel_6')
        self.assertEqual(devices[0].properties['product'], 'oriole')
        self.assertIsNone(devices[1].model)
        self.assertIsNone(devices[1].details)
        self.assertIsNone(devices[2].model)

    def test_malformed_lines_are_skipped(self):
        stdout = 'List of devices attached\ngarbage\nABC123 device\n   \n'
        devices = adb_tools.parse_adb_devices(stdout)

        self.assertEqual(len(devices), 1)
        self.assertEqual(devices[0].serial, 'ABC123')

    def test_tokens_without_value_are_kept_in_details_only(self):
        devices = adb_tools.parse_adb_devices('List of devices attached\nXYZ device usb: model:Pixel8 weird\n')

        self.assertEqual(devices[0].properties, {'model': 'Pixel8'})
        self.assertEqual(devices[0].details, 'usb: model:Pixel8 weird')

    def test_crlf_output(self):
        devices = adb_tools.parse_adb_devices('List of devices attached\r\nABC123\tdevice\r\n\r\n')
        self.assertEqual([(d.serial, d.state) for d in devices], [('ABC123', 'device')])

    def test_empty_output(self):
        self.assertEqual(adb_tools.parse_adb_devices(''), [])
        self.assertEqual(adb_tools.parse_adb_devices('List of devices attached\n\n'), [])


class ParseMdnsServicesTests(unittest.TestCase):
    """Parsing of `adb mdns services` output."""

    def test_well_formed_lines_keep_all_fields(self):
        stdout = services(
            pairing_line('studio-abc12345', '192.168.1.20:37000'),
            connect_line('adb-35151FDJH000GQ-Xyz', '192.168.1.20:41000'),
        )
        parsed = adb_tools.parse_mdns_services(stdout)

        self.assertEqual(parsed, [
            MdnsService('studio-abc12345', '_adb-tls-pairing._tcp', '192.168.1.20:37000'),
            MdnsService('adb-35151FDJH000GQ-Xyz', '_adb-tls-connect._tcp', '192.168.1.20:41000'),
        ])
        self.assertTrue(parsed[0].is_pairing)
        self.assertFalse(parsed[0].is_connect)
        self.assertTrue(parsed[1].is_connect)

    def test_lines_with_fewer_than_three_tokens_are_excluded(self):
        stdout = 'only two\nsingle\n\nname _adb-tls-connect._tcp. 10.0.0.2:5555\n'
        parsed = adb_tools.parse_mdns_services(stdout)

        self.assertEqual(len(parsed), 1)
        self.assertEqual(parsed[0].endpoint, '10.0.0.2:5555')
        self.assertTrue(parsed[0].is_connect)

    def test_header_line_is_skipped(self):
        self.assertEqual(adb_tools.parse_mdns_services('List of discovered mdns services\n'), [])
        self.assertEqual(adb_tools.parse_mdns_services('\r\nList of discovered mdns services\r\n'), [])


class AdbToolsCallTests(unittest.IsolatedAsyncioTestCase):
    """Device listing, discovery and connect result handling."""

    async def test_list_devices_success(self):
        fake = FakeAdb()
        fake.responses['devices'] = CommandResult(stdout='List of devices attached\nABC123 device model:Pixel6\n')

        listing = await adb_tools.list_devices('adb', runner=fake)

        self.assertTrue(listing.adb_ok)
        self.assertEqual(listing.online_count, 1)
        self.assertEqual(fake.calls, [['start-server'], ['devices', '-l']])

    async def test_list_devices_reports_cleaned_reason(self):
        fake = FakeAdb()
        fake.responses['start-server'] = CommandResult(stderr='  daemon not running;\n  cannot bind  ', code=1)

        listing = await adb_tools.list_devices('adb', runner=fake)

        self.assertFalse(listing.adb_ok)
        self.assertEqual(listing.devices, [])
        self.assertEqual(listing.reason, 'daemon not running; cannot bind')

    async def test_list_devices_falls_back_to_stdout_reason(self):
        fake = FakeAdb()
        fake.responses['devices'] = CommandResult(stdout='error: protocol fault\n', code=1)

        listing = await adb_tools.list_devices('adb', runner=fake)

        self.assertFalse(listing.adb_ok)
        self.assertEqual(listing.reason, 'error: protocol fault')

    async def test_mdns_failure_reads_as_no_services(self):
        fake = FakeAdb()
        fake.mdns_outputs = [CommandResult(stderr='unknown command mdns', code=1)]

        self.assertEqual(await adb_tools.list_mdns_services('adb', runner=fake), [])

    async def test_mdns_unexpected_exception_reads_as_no_services(self):
        async def broken_runner(command, args=(), cwd=None):
            raise RuntimeError('boom')

        self.assertEqual(await adb_tools.list_mdns_services('adb', runner=broken_runner), [])

    async def test_pair_and_connect_arguments(self):
        fake = FakeAdb()
        await adb_tools.pair('adb', '192.168.1.20:37000', '123456', runner=fake)
        await adb_tools.connect('adb', '192.168.1.20:41000', runner=fake)

        self.assertEqual(fake.calls, [
            ['pair', '192.168.1.20:37000', '123456'],
            ['connect', '192.168.1.20:41000'],
        ])

    def test_connect_succeeded_detects_zero_exit_failures(self):
        self.assertTrue(adb_tools.connect_succeeded(CommandResult(stdout='connected to 10.0.0.2:5555')))
        self.assertTrue(adb_tools.connect_succeeded(CommandResult(stdout='already connected to 10.0.0.2:5555')))
        self.assertFalse(adb_tools.connect_succeeded(
            CommandResult(stdout='failed to connect to 10.0.0.2:5555: Connection refused')
        ))
        self.assertFalse(adb_tools.connect_succeeded(CommandResult(stderr='error', code=1)))


if __name__ == '__main__':
    unittest.main()
