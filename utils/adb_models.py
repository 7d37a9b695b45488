"""Adb objects models."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from config.constants import ADBConstants, PairingConstants


@dataclass(frozen=True)
class CommandResult:
  """Captured output of one external command."""

  stdout: str = ''
  stderr: str = ''
  code: int = 0

  @property
  def ok(self) -> bool:
    return self.code == 0


@dataclass(frozen=True)
class AdbDevice:
  """One line of `adb devices -l` output."""

  serial: str
  state: str
  model: Optional[str] = None
  details: Optional[str] = None
  properties: Dict[str, str] = field(default_factory=dict, compare=False)

  @property
  def is_online(self) -> bool:
    return self.state == ADBConstants.DEVICE_STATE_DEVICE

  @property
  def display_name(self) -> str:
    return self.model or self.serial


@dataclass(frozen=True)
class MdnsService:
  """One line of `adb mdns services` output."""

  instance: str
  service_type: str
  endpoint: str

  @property
  def is_pairing(self) -> bool:
    return PairingConstants.PAIRING_SERVICE_TYPE in self.service_type

  @property
  def is_connect(self) -> bool:
    return PairingConstants.CONNECT_SERVICE_TYPE in self.service_type


@dataclass(frozen=True)
class DeviceListing:
  """Result of enumerating devices through the adb server."""

  adb_ok: bool
  devices: List[AdbDevice] = field(default_factory=list)
  reason: str = ''

  @property
  def online_count(self) -> int:
    return sum(1 for device in self.devices if device.is_online)
