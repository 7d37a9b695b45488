#!/usr/bin/env python3
"""Tests for the devices view model projection."""

import os
import sys
import tempfile
import unittest

# Redirect HOME so logger writes inside workspace-friendly location before imports
TEST_HOME = tempfile.mkdtemp(prefix='adbwise_test_home_')
os.environ['HOME'] = TEST_HOME

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from config.constants import ViewText  # noqa: E402
from modules.wireless_pairing.models import PairingSnapshot, PairingState  # noqa: E402
from modules.wireless_pairing.view_model import build_view_model  # noqa: E402
from utils.adb_models import AdbDevice, DeviceListing  # noqa: E402


class BuildViewModelTests(unittest.TestCase):

    def test_missing_adb_shows_only_status(self):
        model = build_view_model(False, None)

        self.assertEqual(len(model.sections), 1)
        item = model.sections[0].items[0]
        self.assertEqual(model.sections[0].title, 'ADB Status')
        self.assertEqual(item.label, 'adb not found in PATH')
        self.assertEqual(item.description, 'Install Android platform-tools')
        self.assertEqual(item.tone, 'error')

    def test_ready_with_devices(self):
        listing = DeviceListing(adb_ok=True, devices=[
            AdbDevice('ABC123', 'device', model='Pixel6', details='model:Pixel6'),
            AdbDevice('emulator-5554', 'offline'),
        ])

        model = build_view_model(True, listing)

        self.assertEqual([section.title for section in model.sections],
                         ['ADB Status', 'Connected Devices', 'Connection'])
        status = model.section(ViewText.SECTION_STATUS).items[0]
        self.assertEqual((status.label, status.description, status.tone), ('adb ready', 'Server reachable', 'ok'))

        devices = model.section(ViewText.SECTION_DEVICES).items
        self.assertEqual(devices[0].label, 'Pixel6')
        self.assertEqual(devices[0].description, 'device · model:Pixel6')
        self.assertEqual(devices[0].tone, 'ok')
        self.assertEqual(devices[1].label, 'emulator-5554')
        self.assertEqual(devices[1].description, 'offline')
        self.assertEqual(devices[1].tone, 'warning')

    def test_empty_listing_shows_placeholder(self):
        model = build_view_model(True, DeviceListing(adb_ok=True))

        placeholder = model.section(ViewText.SECTION_DEVICES).items[0]
        self.assertEqual(placeholder.label, 'No connected devices')
        self.assertEqual(placeholder.description, 'Enable USB debugging or wireless debugging')
        self.assertEqual(placeholder.tone, 'neutral')

    def test_verified_adb_before_first_listing_is_ready(self):
        status = build_view_model(True, None).section(ViewText.SECTION_STATUS).items[0]

        self.assertEqual((status.label, status.tone), ('adb ready', 'ok'))

    def test_failed_listing_shows_reason(self):
        model = build_view_model(True, DeviceListing(adb_ok=False, reason='cannot bind'))

        status = model.section(ViewText.SECTION_STATUS).items[0]
        self.assertEqual((status.label, status.description, status.tone), ('adb failed', 'cannot bind', 'error'))

    def test_failed_listing_without_reason_uses_hint(self):
        model = build_view_model(True, DeviceListing(adb_ok=False))

        self.assertEqual(model.section(ViewText.SECTION_STATUS).items[0].description, 'Check adb setup and retry')

    def test_connection_actions(self):
        model = build_view_model(True, DeviceListing(adb_ok=True))

        actions = model.section(ViewText.SECTION_CONNECTION).items
        self.assertEqual([item.action_id for item in actions],
                         ['connect', 'connectIp', 'connectQr', 'connectPair', 'refresh'])
        self.assertTrue(all(item.kind == 'action' for item in actions))

    def test_pairing_snapshot_is_carried(self):
        snapshot = PairingSnapshot(
            payload='WIFI:T:ADB;S:studio-abc12345;P:ABCDEFGHJKLM;;',
            pair_service_name='studio-abc12345',
            pair_code='ABCDEFGHJKLM',
            status_message='Waiting for phone scan... 90s',
            state=PairingState.AWAITING_SCAN,
        )

        model = build_view_model(None, None, snapshot)

        self.assertIs(model.pairing, snapshot)
        self.assertEqual(model.section(ViewText.SECTION_STATUS).items[0].label, 'Checking adb...')

    def test_unknown_section_lookup(self):
        self.assertIsNone(build_view_model(None, None).section('Nope'))


if __name__ == '__main__':
    unittest.main()
