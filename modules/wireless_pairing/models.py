"""Data models for the wireless pairing subsystem."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import FrozenSet, Optional, Tuple

from utils import common


class PairingState(Enum):
    """Lifecycle of a QR pairing session."""

    IDLE = 'IDLE'
    AWAITING_SCAN = 'AWAITING_SCAN'
    PAIRING = 'PAIRING'
    AWAITING_CONNECT_ENDPOINT = 'AWAITING_CONNECT_ENDPOINT'
    CONNECTING = 'CONNECTING'
    CANCELLED = 'CANCELLED'
    TIMED_OUT = 'TIMED_OUT'


class PairingOutcome(Enum):
    """Terminal result of a connect flow."""

    CONNECTED = 'CONNECTED'
    CONNECT_FAILED = 'CONNECT_FAILED'
    PAIRED_NOT_CONNECTED = 'PAIRED_NOT_CONNECTED'
    PAIR_FAILED = 'PAIR_FAILED'
    TIMED_OUT = 'TIMED_OUT'
    CANCELLED = 'CANCELLED'
    ADB_UNAVAILABLE = 'ADB_UNAVAILABLE'
    INVALID_INPUT = 'INVALID_INPUT'

    @property
    def succeeded(self) -> bool:
        return self in (PairingOutcome.CONNECTED, PairingOutcome.PAIRED_NOT_CONNECTED)


class NoticeLevel(Enum):
    """Severity of a user-facing notice."""

    INFO = 'info'
    WARNING = 'warning'
    ERROR = 'error'


@dataclass(frozen=True)
class UserNotice:
    """Human-readable message surfaced to the user."""

    level: NoticeLevel
    message: str


@dataclass(frozen=True)
class PairingCredentials:
    """Ephemeral values advertised through the QR payload."""

    service_name: str
    pair_code: str
    payload: str


@dataclass(frozen=True)
class PairingSnapshot:
    """Read-only view of the active pairing session."""

    payload: str
    pair_service_name: str
    pair_code: str
    status_message: str
    state: PairingState


@dataclass
class PairingSession:
    """Mutable state of the one in-flight QR pairing attempt.

    Owned by the orchestrator. The cancellation flag is separate from the
    orchestrator's reference to the session so a replaced session can notice
    it was cancelled even after a new one became active.
    """

    credentials: PairingCredentials
    status_message: str
    state: PairingState = PairingState.AWAITING_SCAN
    cancelled: bool = False
    known_connect_endpoints: FrozenSet[str] = frozenset()
    trace_id: str = field(default_factory=common.generate_trace_id)

    @property
    def service_name(self) -> str:
        return self.credentials.service_name

    @property
    def pair_code(self) -> str:
        return self.credentials.pair_code

    @property
    def payload(self) -> str:
        return self.credentials.payload

    def cancel(self) -> None:
        self.cancelled = True

    def snapshot(self) -> PairingSnapshot:
        return PairingSnapshot(
            payload=self.payload,
            pair_service_name=self.service_name,
            pair_code=self.pair_code,
            status_message=self.status_message,
            state=self.state,
        )


@dataclass(frozen=True)
class DevicesViewItem:
    """One row of the devices view."""

    kind: str
    label: str
    tone: str
    description: Optional[str] = None
    action_id: Optional[str] = None


@dataclass(frozen=True)
class DevicesViewSection:
    title: str
    items: Tuple[DevicesViewItem, ...]


@dataclass(frozen=True)
class DevicesViewModel:
    """Snapshot published to the presentation layer on every change."""

    sections: Tuple[DevicesViewSection, ...]
    adb_available: Optional[bool] = None
    pairing: Optional[PairingSnapshot] = None

    def section(self, title: str) -> Optional[DevicesViewSection]:
        for section in self.sections:
            if section.title == title:
                return section
        return None
