"""Wireless debugging discovery, pairing and connect subsystem."""

from .discovery import DiscoveryPoller
from .models import (
    DevicesViewItem,
    DevicesViewModel,
    DevicesViewSection,
    NoticeLevel,
    PairingCredentials,
    PairingOutcome,
    PairingSession,
    PairingSnapshot,
    PairingState,
    UserNotice,
)
from .payload import (
    PayloadError,
    build_pairing_payload,
    generate_credentials,
    parse_pairing_payload,
    suggest_connect_endpoint,
)
from .view_model import build_view_model
from .orchestrator import WirelessPairingOrchestrator

__all__ = [
    'DevicesViewItem',
    'DevicesViewModel',
    'DevicesViewSection',
    'DiscoveryPoller',
    'NoticeLevel',
    'PairingCredentials',
    'PairingOutcome',
    'PairingSession',
    'PairingSnapshot',
    'PairingState',
    'PayloadError',
    'UserNotice',
    'WirelessPairingOrchestrator',
    'build_pairing_payload',
    'build_view_model',
    'generate_credentials',
    'parse_pairing_payload',
    'suggest_connect_endpoint',
]
