"""Pure projection of orchestrator state into the devices view model."""

from __future__ import annotations

from typing import List, Optional

from config.constants import ViewText
from utils.adb_models import AdbDevice, DeviceListing

from .models import DevicesViewItem, DevicesViewModel, DevicesViewSection, PairingSnapshot


TONE_NEUTRAL = 'neutral'
TONE_OK = 'ok'
TONE_WARNING = 'warning'
TONE_ERROR = 'error'


def _status_item(adb_available: Optional[bool], listing: Optional[DeviceListing]) -> DevicesViewItem:
    if adb_available is None:
        return DevicesViewItem(kind='status', label=ViewText.STATUS_CHECKING, tone=TONE_NEUTRAL)
    if not adb_available:
        return DevicesViewItem(
            kind='status',
            label=ViewText.STATUS_MISSING,
            description=ViewText.STATUS_MISSING_HINT,
            tone=TONE_ERROR,
        )
    if listing is None or listing.adb_ok:
        return DevicesViewItem(
            kind='status',
            label=ViewText.STATUS_READY,
            description=ViewText.STATUS_READY_HINT,
            tone=TONE_OK,
        )
    reason = listing.reason if listing is not None else ''
    return DevicesViewItem(
        kind='status',
        label=ViewText.STATUS_FAILED,
        description=reason or ViewText.STATUS_FAILED_HINT,
        tone=TONE_ERROR,
    )


def device_item(device: AdbDevice) -> DevicesViewItem:
    description = f'{device.state} · {device.details}' if device.details else device.state
    return DevicesViewItem(
        kind='device',
        label=device.display_name,
        description=description,
        tone=TONE_OK if device.is_online else TONE_WARNING,
    )


def _device_items(listing: Optional[DeviceListing]) -> List[DevicesViewItem]:
    devices = listing.devices if listing is not None else []
    if devices:
        return [device_item(device) for device in devices]
    return [
        DevicesViewItem(
            kind='device',
            label=ViewText.NO_DEVICES,
            description=ViewText.NO_DEVICES_HINT,
            tone=TONE_NEUTRAL,
        )
    ]


def _action_items() -> List[DevicesViewItem]:
    return [
        DevicesViewItem(kind='action', label=label, description=description, tone=TONE_NEUTRAL, action_id=action_id)
        for label, description, action_id in ViewText.CONNECTION_ACTIONS
    ]


def build_view_model(
    adb_available: Optional[bool],
    listing: Optional[DeviceListing],
    pairing: Optional[PairingSnapshot] = None,
) -> DevicesViewModel:
    """Build the view model.

    ``adb_available`` is None until the first refresh has checked the tool.
    When adb is missing only the status section is shown.
    """
    status_section = DevicesViewSection(ViewText.SECTION_STATUS, (_status_item(adb_available, listing),))

    if adb_available is False:
        return DevicesViewModel(sections=(status_section,), adb_available=False, pairing=pairing)

    return DevicesViewModel(
        sections=(
            status_section,
            DevicesViewSection(ViewText.SECTION_DEVICES, tuple(_device_items(listing))),
            DevicesViewSection(ViewText.SECTION_CONNECTION, tuple(_action_items())),
        ),
        adb_available=adb_available,
        pairing=pairing,
    )
