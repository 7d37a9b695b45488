"""Utility with commands functions for adb."""

from typing import List

from config.constants import ADBConstants


def cmd_start_server() -> List[str]:
  # adb start-server
  return list(ADBConstants.CMD_START_SERVER)


def cmd_get_adb_devices() -> List[str]:
  # adb devices -l
  return list(ADBConstants.CMD_DEVICES)


def cmd_mdns_services() -> List[str]:
  # adb mdns services
  return list(ADBConstants.CMD_MDNS_SERVICES)


def cmd_pair(endpoint: str, pair_code: str) -> List[str]:
  """Build the pairing arguments.

  Args:
    endpoint: Pairing endpoint as `host:port`
    pair_code: Code shown on (or generated for) the device

  Returns:
    Argument list for `adb pair`
  """
  return [ADBConstants.CMD_PAIR, endpoint, pair_code]


def cmd_connect(endpoint: str) -> List[str]:
  return [ADBConstants.CMD_CONNECT, endpoint]
