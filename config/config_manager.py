"""Persistent JSON settings for SDK lookup, pairing timing and logging."""

import json
import os
import shutil
import tempfile
from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any, Dict, List, Optional

from config.constants import LoggingConstants, PairingConstants
from utils import common

logger = common.get_logger('config_manager')


@dataclass
class SdkSettings:
    """Android SDK locations configured by the user."""
    android_sdk_path: str = ''
    flutter_android_sdk_path: str = ''


@dataclass
class PairingSettings:
    """Wireless pairing timing settings."""
    scan_timeout_s: float = PairingConstants.QR_SCAN_TIMEOUT_S
    connect_discovery_timeout_s: float = PairingConstants.CONNECT_DISCOVERY_TIMEOUT_S
    poll_interval_s: float = PairingConstants.POLL_INTERVAL_S
    default_connect_port: int = PairingConstants.DEFAULT_CONNECT_PORT


@dataclass
class LoggingSettings:
    log_level: str = LoggingConstants.DEFAULT_LOG_LEVEL


@dataclass
class AppConfig:
    """Top-level settings document."""
    sdk: SdkSettings
    pairing: PairingSettings
    logging: LoggingSettings
    version: str = "1.0.0"


_VALID_LOG_LEVELS = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
_TIMEOUT_KEYS = ('scan_timeout_s', 'connect_discovery_timeout_s', 'poll_interval_s')


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _default_config() -> AppConfig:
    return AppConfig(sdk=SdkSettings(), pairing=PairingSettings(), logging=LoggingSettings())


def _overlay(defaults: Dict[str, Any], user: Any) -> Dict[str, Any]:
    """Copy user values over defaults, recursing into sections; unknown keys are dropped."""
    merged = dict(defaults)
    if not isinstance(user, dict):
        return merged
    for key, default in defaults.items():
        if key not in user:
            continue
        if isinstance(default, dict):
            merged[key] = _overlay(default, user[key])
        else:
            merged[key] = user[key]
    return merged


class ConfigManager:
    """Loads, validates and saves ``AppConfig``.

    Reads fall back to the backup file and then to defaults; every save first
    copies the previous file to the backup location.
    """

    DEFAULT_CONFIG_PATH = '~/.adbwise_config.json'
    BACKUP_CONFIG_PATH = '~/.adbwise_config.backup.json'

    def __init__(self, config_path: Optional[str] = None, backup_path: Optional[str] = None):
        self.config_path = Path(config_path or self.DEFAULT_CONFIG_PATH).expanduser()
        if backup_path:
            self.backup_path = Path(backup_path).expanduser()
        elif config_path:
            self.backup_path = self.config_path.with_name(f'{self.config_path.stem}.backup.json')
        else:
            self.backup_path = Path(self.BACKUP_CONFIG_PATH).expanduser()
        self._config: Optional[AppConfig] = None
        self.config_path.parent.mkdir(parents=True, exist_ok=True)

    # ------------------------------------------------------------------
    # Validation
    # ------------------------------------------------------------------
    def _validate_config(self, raw: Any) -> Dict[str, Any]:
        """Return a complete, sanitised settings dict built from ``raw``."""
        defaults = asdict(_default_config())
        data = _overlay(defaults, raw)

        sdk = data['sdk']
        for key in ('android_sdk_path', 'flutter_android_sdk_path'):
            if not isinstance(sdk[key], str):
                logger.warning('sdk.%s is not a path string, ignoring it', key)
                sdk[key] = ''

        pairing, pairing_defaults = data['pairing'], defaults['pairing']
        for key in _TIMEOUT_KEYS:
            value = pairing[key]
            if _is_number(value) and value > 0:
                pairing[key] = float(value)
            else:
                logger.warning('pairing.%s=%r invalid, using %s', key, value, pairing_defaults[key])
                pairing[key] = pairing_defaults[key]

        if pairing['connect_discovery_timeout_s'] > pairing['scan_timeout_s']:
            pairing['connect_discovery_timeout_s'] = min(
                pairing_defaults['connect_discovery_timeout_s'], pairing['scan_timeout_s']
            )
            logger.warning('pairing.connect_discovery_timeout_s capped at %s', pairing['connect_discovery_timeout_s'])
        if pairing['poll_interval_s'] > pairing['connect_discovery_timeout_s']:
            logger.warning('pairing.poll_interval_s longer than discovery window, using default')
            pairing['poll_interval_s'] = pairing_defaults['poll_interval_s']

        port = pairing['default_connect_port']
        if not (isinstance(port, int) and not isinstance(port, bool) and 0 < port < 65536):
            logger.warning('pairing.default_connect_port=%r invalid, using %s', port, pairing_defaults['default_connect_port'])
            pairing['default_connect_port'] = pairing_defaults['default_connect_port']

        level = str(data['logging']['log_level']).upper()
        if level not in _VALID_LOG_LEVELS:
            logger.warning('logging.log_level=%r invalid, using %s', level, LoggingConstants.DEFAULT_LOG_LEVEL)
            level = LoggingConstants.DEFAULT_LOG_LEVEL
        data['logging']['log_level'] = level

        if not isinstance(data['version'], str):
            data['version'] = defaults['version']
        return data

    def _from_file(self, path: Path) -> AppConfig:
        with open(path, 'r', encoding='utf-8') as f:
            data = self._validate_config(json.load(f))
        return AppConfig(
            sdk=SdkSettings(**data['sdk']),
            pairing=PairingSettings(**data['pairing']),
            logging=LoggingSettings(**data['logging']),
            version=data['version'],
        )

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def load_config(self) -> AppConfig:
        """Return the cached settings, reading them on first use."""
        if self._config is not None:
            return self._config

        if not self.config_path.exists():
            logger.info('No settings file at %s, using defaults', self.config_path)
            self._config = _default_config()
            return self._config

        for path in (self.config_path, self.backup_path):
            if not path.exists():
                continue
            try:
                self._config = self._from_file(path)
                logger.info('Settings loaded from %s', path)
                return self._config
            except (OSError, ValueError, TypeError) as e:
                logger.error('Unreadable settings file %s: %s', path, e)

        logger.warning('Falling back to default settings')
        self._config = _default_config()
        return self._config

    def save_config(self, config: Optional[AppConfig] = None):
        """Write settings atomically, keeping the previous file as backup."""
        config = config or self._config
        if config is None:
            logger.warning('Nothing to save yet')
            return

        if self.config_path.exists():
            try:
                shutil.copy2(self.config_path, self.backup_path)
            except OSError as e:
                logger.warning('Could not back up %s: %s', self.config_path, e)

        fd, tmp_name = tempfile.mkstemp(dir=str(self.config_path.parent), suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(asdict(config), f, indent=4, ensure_ascii=False)
            os.replace(tmp_name, self.config_path)
        except OSError as e:
            logger.error('Failed to save settings to %s: %s', self.config_path, e)
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

        self._config = config
        logger.info('Settings saved to %s', self.config_path)

    # ------------------------------------------------------------------
    # Section accessors
    # ------------------------------------------------------------------
    def get_sdk_settings(self) -> SdkSettings:
        return self.load_config().sdk

    def get_pairing_settings(self) -> PairingSettings:
        return self.load_config().pairing

    def get_logging_settings(self) -> LoggingSettings:
        return self.load_config().logging

    def get_sdk_candidates(self) -> List[str]:
        """Configured SDK roots in lookup order, unset entries skipped."""
        sdk = self.get_sdk_settings()
        return [path for path in (sdk.android_sdk_path, sdk.flutter_android_sdk_path) if path and path.strip()]

    def _update_section(self, section: Any, values: Dict[str, Any]):
        known = {item.name for item in fields(section)}
        for key, value in values.items():
            if key in known:
                setattr(section, key, value)
            else:
                logger.warning('Ignoring unknown setting %s', key)
        self.save_config()

    def update_sdk_settings(self, **kwargs):
        self._update_section(self.load_config().sdk, kwargs)

    def update_pairing_settings(self, **kwargs):
        self._update_section(self.load_config().pairing, kwargs)

    def reset_to_defaults(self):
        self._config = _default_config()
        self.save_config()
        logger.info('Settings reset to defaults')
