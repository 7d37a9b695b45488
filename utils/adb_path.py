"""Locate the adb executable."""

import os
import platform
from typing import Iterable, List, Mapping, Optional

from config.constants import PathConstants
from utils import common

logger = common.get_logger('adb_path')


def adb_executable_name(system: Optional[str] = None) -> str:
  """Return the adb file name for the given (or current) OS."""
  system = (system or platform.system()).lower()
  if system == 'windows':
    return PathConstants.ADB_EXECUTABLE_WINDOWS
  return PathConstants.ADB_EXECUTABLE


def candidate_sdk_roots(
    config_manager=None,
    environ: Optional[Mapping[str, str]] = None,
    system: Optional[str] = None,
) -> List[str]:
  """Return SDK roots in lookup order.

  Order: SDK environment variables, configured SDK paths, then the macOS
  default SDK location (only on macOS).
  """
  environ = os.environ if environ is None else environ
  system = (system or platform.system()).lower()

  roots: List[Optional[str]] = [environ.get(name) for name in PathConstants.SDK_ENV_VARS]

  if config_manager is not None:
    roots.extend(config_manager.get_sdk_candidates())

  if system == 'darwin':
    roots.append(os.path.expanduser(PathConstants.MACOS_DEFAULT_SDK))

  return [root for root in roots if root and root.strip()]


def _first_existing(paths: Iterable[str]) -> Optional[str]:
  for path in paths:
    if os.path.isfile(path):
      return path
  return None


def resolve_adb_path(
    config_manager=None,
    environ: Optional[Mapping[str, str]] = None,
    system: Optional[str] = None,
) -> str:
  """Return a best-guess path to adb.

  The first existing `<sdk root>/platform-tools/adb` wins; otherwise the bare
  executable name is returned for PATH resolution. Callers must still check
  that the result actually runs.
  """
  name = adb_executable_name(system)
  roots = candidate_sdk_roots(config_manager, environ, system)
  candidates = [
      os.path.join(os.path.expanduser(root.strip()), PathConstants.PLATFORM_TOOLS_DIR, name)
      for root in roots
  ]

  found = _first_existing(candidates)
  if found:
    logger.debug('Resolved adb at %s', found)
    return found

  logger.debug('adb not found under %s, falling back to PATH', roots)
  return name


__all__ = ['adb_executable_name', 'candidate_sdk_roots', 'resolve_adb_path']
