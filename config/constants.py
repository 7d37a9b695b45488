"""Application constants and configuration values."""


class PathConstants:
    """Filesystem locations used to find the adb executable."""

    # Environment variables holding an Android SDK root (in order of preference)
    SDK_ENV_VARS = ['ANDROID_SDK_ROOT', 'ANDROID_HOME']

    PLATFORM_TOOLS_DIR = 'platform-tools'
    ADB_EXECUTABLE = 'adb'
    ADB_EXECUTABLE_WINDOWS = 'adb.exe'

    # Only applies on macOS
    MACOS_DEFAULT_SDK = '~/Library/Android/sdk'


class ADBConstants:
    """ADB-related constants."""

    # Device states
    DEVICE_STATE_DEVICE = 'device'
    DEVICE_STATE_OFFLINE = 'offline'
    DEVICE_STATE_UNAUTHORIZED = 'unauthorized'

    DEVICES_HEADER = 'List of devices attached'
    MDNS_HEADER = 'List of discovered mdns services'

    # Subcommands
    CMD_START_SERVER = ['start-server']
    CMD_DEVICES = ['devices', '-l']
    CMD_MDNS_SERVICES = ['mdns', 'services']
    CMD_VERSION = ['version']
    CMD_PAIR = 'pair'
    CMD_CONNECT = 'connect'

    # Synthetic exit codes for commands that never started
    EXIT_NOT_FOUND = 127
    EXIT_NOT_EXECUTABLE = 126

    # `adb connect` exits 0 on several versions even when it fails
    CONNECT_FAILURE_MARKERS = ('failed to connect', 'cannot connect', 'unable to connect')


class PairingConstants:
    """Wireless debugging pairing constants."""

    PAIRING_SERVICE_TYPE = '_adb-tls-pairing._tcp'
    CONNECT_SERVICE_TYPE = '_adb-tls-connect._tcp'

    # Timeouts (seconds)
    QR_SCAN_TIMEOUT_S = 90.0
    CONNECT_DISCOVERY_TIMEOUT_S = 20.0
    POLL_INTERVAL_S = 1.0

    DEFAULT_CONNECT_PORT = 5555

    # Credential generation
    SERVICE_NAME_PREFIX = 'studio-'
    SERVICE_NAME_LENGTH = 8
    SERVICE_NAME_ALPHABET = 'abcdefghijklmnopqrstuvwxyz0123456789'
    PAIR_CODE_LENGTH = 12
    PAIR_CODE_ALPHABET = 'ABCDEFGHJKLMNPQRSTUVWXYZ23456789'

    PAYLOAD_TEMPLATE = 'WIFI:T:ADB;S:{service};P:{code};;'


class MessageConstants:
    """User-facing message constants."""

    # Status messages shown next to the QR code
    STATUS_SCAN_PROMPT = 'Open Android Wireless debugging and scan this QR code to start pairing.'
    STATUS_WAITING_FOR_SCAN = 'Waiting for phone scan... {seconds}s'
    STATUS_SCAN_DETECTED = 'QR scan detected. Pairing with device...'
    STATUS_WAITING_FOR_ENDPOINT = 'Pairing successful. Waiting for connection endpoint...'
    STATUS_CONNECTING = 'Connecting to {endpoint}...'

    # Success / info messages
    INFO_PAIRING_SUCCEEDED = 'Pairing succeeded.'
    INFO_CONNECTED = 'Connected to {endpoint}.'
    INFO_PAIRED_CONNECT_MANUALLY = 'Device paired. If it is not connected yet, tap Refresh or use Connect by IP.'

    # Warnings
    WARNING_QR_TIMEOUT = 'QR pairing timed out. Scan the QR code again and retry.'
    WARNING_ADB_MISSING = (
        'adb not found in PATH. Install Android platform-tools / Android SDK tools '
        'and ensure "adb" is available.'
    )

    # Errors
    ERROR_PAIR_FAILED = 'adb pair failed'
    ERROR_CONNECT_FAILED = 'adb connect failed'
    ERROR_START_SERVER_FAILED = 'Failed to start adb server'
    ERROR_ENDPOINT_REQUIRED = 'Endpoint is required'
    ERROR_PAIR_ENDPOINT_REQUIRED = 'Pairing endpoint is required'
    ERROR_PAIR_CODE_REQUIRED = 'Pairing code is required'
    ERROR_INVALID_PAYLOAD = 'Invalid pairing payload'
    ERROR_PAIRING_SERVICE_NOT_FOUND = 'No pairing service named {service} was discovered'


class ViewText:
    """Labels used by the devices view model."""

    SECTION_STATUS = 'ADB Status'
    SECTION_DEVICES = 'Connected Devices'
    SECTION_CONNECTION = 'Connection'

    STATUS_CHECKING = 'Checking adb...'
    STATUS_MISSING = 'adb not found in PATH'
    STATUS_MISSING_HINT = 'Install Android platform-tools'
    STATUS_READY = 'adb ready'
    STATUS_READY_HINT = 'Server reachable'
    STATUS_FAILED = 'adb failed'
    STATUS_FAILED_HINT = 'Check adb setup and retry'

    NO_DEVICES = 'No connected devices'
    NO_DEVICES_HINT = 'Enable USB debugging or wireless debugging'

    CONNECTION_ACTIONS = [
        ('Connect Device...', 'IP address, QR code, or pairing code', 'connect'),
        ('Connect by IP', None, 'connectIp'),
        ('Connect by QR', None, 'connectQr'),
        ('Connect by Pairing Code', None, 'connectPair'),
        ('Refresh', None, 'refresh'),
    ]


class LoggingConstants:
    """Logging configuration constants."""

    # Log levels
    DEFAULT_LOG_LEVEL = 'INFO'

    LOG_FILE_PREFIX = 'adbwise_'
    LOG_FILE_SUFFIX = '.log'

    FILE_LOG_FORMAT = '%(asctime)s %(trace_id)s %(name)-20s %(levelname)-8s %(message)s'
    CONSOLE_LOG_FORMAT = '%(levelname)s [%(trace_id)s] %(message)s'


class ApplicationConstants:
    """General application constants."""

    APP_NAME = 'ADB Wise'
    APP_VERSION = '1.0.0'
    APP_DESCRIPTION = 'Discover, pair and connect Android devices over Wi-Fi with adb'
