"""Enumerate devices and mDNS services and run pair/connect through adb."""

import traceback
from functools import wraps
from typing import Dict, List, Optional

from config.constants import ADBConstants
from utils import adb_commands
from utils import adb_models
from utils import common
from utils import process_runner

logger = common.get_logger('adb_tools')


def adb_operation(operation_name: str = None, default_return=None, log_errors: bool = True):
  """Decorator for async ADB operations with standardized error handling.

  Args:
    operation_name: Name of the operation for logging (defaults to function name)
    default_return: Value to return on error
    log_errors: Whether to log errors or suppress them

  Returns:
    Decorated coroutine function with error handling
  """
  def decorator(func):
    @wraps(func)
    async def wrapper(*args, **kwargs):
      op_name = operation_name or func.__name__
      try:
        return await func(*args, **kwargs)
      except Exception as e:
        if log_errors:
          logger.error(f'Error in {op_name}: {e}')
          logger.debug(f'Traceback for {op_name}: {traceback.format_exc()}')
        if callable(default_return):
          return default_return()
        return default_return
    return wrapper
  return decorator


def _runner(runner: Optional[process_runner.CommandRunner]) -> process_runner.CommandRunner:
  return runner or process_runner.run_command


def _parse_properties(tokens: List[str]) -> Dict[str, str]:
  properties: Dict[str, str] = {}
  for token in tokens:
    key, sep, value = token.partition(':')
    if sep and key and value:
      properties[key] = value
  return properties


def parse_adb_devices(stdout: str) -> List[adb_models.AdbDevice]:
  """Parse `adb devices -l` output.

  Args:
    stdout: raw output, header line included

  Returns:
    One record per line with at least a serial and a state. Shorter lines
    are skipped rather than aborting the parse.
  """
  devices: List[adb_models.AdbDevice] = []

  for raw_line in (stdout or '').splitlines():
    line = raw_line.strip()
    if not line or line.startswith(ADBConstants.DEVICES_HEADER):
      continue

    parts = line.split()
    if len(parts) < 2:
      logger.debug('Skipping malformed device line: %r', raw_line)
      continue

    serial, state = parts[0], parts[1]
    extra = parts[2:]
    properties = _parse_properties(extra)

    devices.append(adb_models.AdbDevice(
        serial=serial,
        state=state,
        model=properties.get('model'),
        details=' '.join(extra) or None,
        properties=properties,
    ))

  return devices


def parse_mdns_services(stdout: str) -> List[adb_models.MdnsService]:
  """Parse `adb mdns services` output into instance/type/endpoint records.

  The header line and lines with fewer than 3 tokens are skipped.
  """
  services: List[adb_models.MdnsService] = []

  for raw_line in (stdout or '').splitlines():
    if raw_line.strip().startswith(ADBConstants.MDNS_HEADER):
      continue
    parts = raw_line.split()
    if len(parts) < 3:
      continue

    instance, service_type, endpoint = parts[:3]
    services.append(adb_models.MdnsService(instance, service_type, endpoint))

  return services


async def start_server(adb: str, runner=None) -> adb_models.CommandResult:
  return await _runner(runner)(adb, adb_commands.cmd_start_server())


async def list_devices(adb: str, runner=None) -> adb_models.DeviceListing:
  """Start the adb server and list attached devices.

  Both `start-server` and `devices -l` must succeed; otherwise the listing
  is marked failed with the cleaned diagnostic output as the reason.
  """
  run = _runner(runner)
  server = await run(adb, adb_commands.cmd_start_server())
  result = await run(adb, adb_commands.cmd_get_adb_devices())

  if not (server.ok and result.ok):
    reason = common.first_clean_output(server.stderr, result.stderr, result.stdout)
    logger.warning('adb device listing failed (server=%s, devices=%s): %s', server.code, result.code, reason)
    return adb_models.DeviceListing(adb_ok=False, reason=reason)

  devices = parse_adb_devices(result.stdout)
  logger.info('Found %s device(s): %s', len(devices), [device.serial for device in devices])
  return adb_models.DeviceListing(adb_ok=True, devices=devices)


@adb_operation(default_return=list)
async def list_mdns_services(adb: str, runner=None) -> List[adb_models.MdnsService]:
  """Return discovered services; discovery failure reads as no services."""
  result = await _runner(runner)(adb, adb_commands.cmd_mdns_services())
  if not result.ok:
    logger.debug('mdns services exited with %s', result.code)
    return []
  return parse_mdns_services(result.stdout)


async def pair(adb: str, endpoint: str, pair_code: str, runner=None) -> adb_models.CommandResult:
  logger.info('Pairing with %s', endpoint)
  return await _runner(runner)(adb, adb_commands.cmd_pair(endpoint, pair_code))


async def connect(adb: str, endpoint: str, runner=None) -> adb_models.CommandResult:
  logger.info('Connecting to %s', endpoint)
  return await _runner(runner)(adb, adb_commands.cmd_connect(endpoint))


def connect_succeeded(result: adb_models.CommandResult) -> bool:
  """Return whether `adb connect` actually connected.

  Several adb versions report "failed to connect" with exit code 0.
  """
  if not result.ok:
    return False
  output = f'{result.stdout}\n{result.stderr}'.lower()
  return not any(marker in output for marker in ADBConstants.CONNECT_FAILURE_MARKERS)


__all__ = [
    'adb_operation',
    'connect',
    'connect_succeeded',
    'list_devices',
    'list_mdns_services',
    'pair',
    'parse_adb_devices',
    'parse_mdns_services',
    'start_server',
]
