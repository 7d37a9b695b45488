"""Orchestrates device listing, QR pairing and wireless connect flows."""

from __future__ import annotations

import asyncio
import time
from typing import Callable, Optional

from PyQt6.QtCore import QObject, pyqtSignal

from config.config_manager import ConfigManager
from config.constants import MessageConstants
from utils import adb_path
from utils import adb_tools
from utils import common
from utils import process_runner
from utils.adb_models import CommandResult, DeviceListing

from .discovery import ClockFn, DiscoveryPoller, SleepFn
from .models import (
    DevicesViewModel,
    NoticeLevel,
    PairingCredentials,
    PairingOutcome,
    PairingSession,
    PairingState,
    UserNotice,
)
from .payload import (
    PayloadError,
    generate_credentials,
    is_endpoint,
    parse_pairing_payload,
    suggest_connect_endpoint,
)
from .view_model import build_view_model


logger = common.get_logger('pairing_orchestrator')

AdbPathResolver = Callable[[], str]
CredentialFactory = Callable[[], PairingCredentials]


class WirelessPairingOrchestrator(QObject):
    """Owns the single active QR pairing session and the cached device listing.

    Every mutation is followed by a ``view_model_changed`` emission carrying a
    frozen snapshot; user-facing messages go out through ``notice_posted``.
    All work runs as coroutines on one event loop, so state is only touched
    between awaits.
    """

    view_model_changed = pyqtSignal(DevicesViewModel)
    notice_posted = pyqtSignal(UserNotice)

    def __init__(
        self,
        runner: Optional[process_runner.CommandRunner] = None,
        adb_path_resolver: Optional[AdbPathResolver] = None,
        config_manager: Optional[ConfigManager] = None,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
        credential_factory: CredentialFactory = generate_credentials,
        scan_timeout_s: Optional[float] = None,
        connect_timeout_s: Optional[float] = None,
        poll_interval_s: Optional[float] = None,
        parent: Optional[QObject] = None,
    ) -> None:
        super().__init__(parent)
        self._config_manager = config_manager or ConfigManager()
        settings = self._config_manager.get_pairing_settings()

        self._runner = runner or process_runner.run_command
        self._resolve_adb_path = adb_path_resolver or (lambda: adb_path.resolve_adb_path(self._config_manager))
        self._sleep = sleep
        self._clock = clock
        self._credential_factory = credential_factory

        self._scan_timeout_s = scan_timeout_s if scan_timeout_s is not None else settings.scan_timeout_s
        self._connect_timeout_s = (
            connect_timeout_s if connect_timeout_s is not None else settings.connect_discovery_timeout_s
        )
        self._poll_interval_s = poll_interval_s if poll_interval_s is not None else settings.poll_interval_s
        self._default_connect_port = settings.default_connect_port

        self._session: Optional[PairingSession] = None
        self._state = PairingState.IDLE
        self._adb_available: Optional[bool] = None
        self._listing: Optional[DeviceListing] = None

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------
    @property
    def state(self) -> PairingState:
        if self._session is not None:
            return self._session.state
        return self._state

    @property
    def listing(self) -> Optional[DeviceListing]:
        return self._listing

    @property
    def has_active_session(self) -> bool:
        return self._session is not None

    def view_model(self) -> DevicesViewModel:
        pairing = self._session.snapshot() if self._session is not None else None
        return build_view_model(self._adb_available, self._listing, pairing)

    # ------------------------------------------------------------------
    # Device listing
    # ------------------------------------------------------------------
    async def refresh_devices(self) -> DevicesViewModel:
        """Check adb, enumerate devices and publish the new view model."""
        adb = self._resolve_adb_path()
        if not await process_runner.command_exists(adb, self._runner):
            logger.warning('adb not available at %s', adb)
            self._adb_available = False
            self._listing = None
            self._publish()
            return self.view_model()

        self._adb_available = True
        self._listing = await adb_tools.list_devices(adb, self._runner)
        self._publish()
        return self.view_model()

    async def ensure_adb_ready(self, show_errors: bool = True) -> Optional[str]:
        """Return the adb path once the tool exists and its server runs, else None."""
        adb = self._resolve_adb_path()
        if not await process_runner.command_exists(adb, self._runner):
            logger.warning('adb not available at %s', adb)
            if self._adb_available is not False:
                self._adb_available = False
                self._publish()
            if show_errors:
                self._notify(NoticeLevel.WARNING, MessageConstants.WARNING_ADB_MISSING)
            return None

        server = await adb_tools.start_server(adb, self._runner)
        if not server.ok:
            reason = common.first_clean_output(server.stderr, server.stdout)
            logger.error('adb start-server failed (%s): %s', server.code, reason)
            if show_errors:
                self._notify(NoticeLevel.ERROR, common.with_reason(MessageConstants.ERROR_START_SERVER_FAILED, reason))
            return None

        if self._adb_available is not True:
            self._adb_available = True
            self._publish()
        return adb

    # ------------------------------------------------------------------
    # QR pairing
    # ------------------------------------------------------------------
    async def connect_by_qr_code(self) -> PairingOutcome:
        """Run one QR pairing session from credential generation to connect."""
        adb = await self.ensure_adb_ready()
        if adb is None:
            return PairingOutcome.ADB_UNAVAILABLE

        if self._session is not None:
            self.cancel_qr_pairing()

        session = PairingSession(
            credentials=self._credential_factory(),
            status_message=MessageConstants.STATUS_SCAN_PROMPT,
        )
        self._session = session
        self._state = PairingState.AWAITING_SCAN
        self._publish()

        with common.trace_id_scope(session.trace_id):
            logger.info('QR pairing session started for service %s', session.service_name)
            try:
                outcome = await self._run_qr_session(adb, session)
            finally:
                if self._session is session:
                    self._session = None
                    self._publish()
            logger.info('QR pairing session ended: %s', outcome.value)
        return outcome

    def cancel_qr_pairing(self) -> bool:
        """Cancel the active session and clear it from the published state at once."""
        session = self._session
        if session is None:
            return False

        session.cancel()
        session.state = PairingState.CANCELLED
        self._session = None
        self._state = PairingState.CANCELLED
        logger.info('QR pairing session for %s cancelled', session.service_name)
        self._publish()
        return True

    async def _run_qr_session(self, adb: str, session: PairingSession) -> PairingOutcome:
        def is_cancelled() -> bool:
            return not self._is_session_active(session)

        poller = self._poller(adb)

        known_endpoints = await poller.connect_endpoints()
        if is_cancelled():
            return PairingOutcome.CANCELLED
        session.known_connect_endpoints = known_endpoints

        pairing_endpoint = await poller.wait_for_pairing_endpoint(
            session.service_name,
            self._scan_timeout_s,
            is_cancelled,
            lambda seconds: self._update_status(
                session, MessageConstants.STATUS_WAITING_FOR_SCAN.format(seconds=seconds)
            ),
        )
        if is_cancelled():
            return PairingOutcome.CANCELLED

        if pairing_endpoint is None:
            self._finish(session, PairingState.TIMED_OUT)
            self._notify(NoticeLevel.WARNING, MessageConstants.WARNING_QR_TIMEOUT)
            return PairingOutcome.TIMED_OUT

        self._transition(session, PairingState.PAIRING, MessageConstants.STATUS_SCAN_DETECTED)
        pair_result = await adb_tools.pair(adb, pairing_endpoint, session.pair_code, self._runner)
        if is_cancelled():
            return PairingOutcome.CANCELLED

        if not pair_result.ok:
            reason = common.first_clean_output(pair_result.stderr, pair_result.stdout)
            self._finish(session, PairingState.CANCELLED)
            self._notify(NoticeLevel.ERROR, common.with_reason(MessageConstants.ERROR_PAIR_FAILED, reason))
            return PairingOutcome.PAIR_FAILED

        self._notify(NoticeLevel.INFO, common.clean_output(pair_result.stdout) or MessageConstants.INFO_PAIRING_SUCCEEDED)

        self._transition(session, PairingState.AWAITING_CONNECT_ENDPOINT, MessageConstants.STATUS_WAITING_FOR_ENDPOINT)
        connect_endpoint = await poller.wait_for_connect_endpoint(
            session.known_connect_endpoints,
            self._connect_timeout_s,
            is_cancelled,
        )
        if is_cancelled():
            return PairingOutcome.CANCELLED

        if connect_endpoint is None:
            self._finish(session, PairingState.IDLE)
            self._notify(NoticeLevel.INFO, MessageConstants.INFO_PAIRED_CONNECT_MANUALLY)
            await self.refresh_devices()
            return PairingOutcome.PAIRED_NOT_CONNECTED

        self._transition(
            session, PairingState.CONNECTING, MessageConstants.STATUS_CONNECTING.format(endpoint=connect_endpoint)
        )
        connect_result = await adb_tools.connect(adb, connect_endpoint, self._runner)
        if is_cancelled():
            return PairingOutcome.CANCELLED

        connected = self._report_connect(connect_endpoint, connect_result)
        self._finish(session, PairingState.IDLE)
        await self.refresh_devices()
        return PairingOutcome.CONNECTED if connected else PairingOutcome.CONNECT_FAILED

    # ------------------------------------------------------------------
    # Direct connect flows
    # ------------------------------------------------------------------
    async def connect_by_ip(self, endpoint: str) -> PairingOutcome:
        endpoint = (endpoint or '').strip()
        if not endpoint:
            self._notify(NoticeLevel.ERROR, MessageConstants.ERROR_ENDPOINT_REQUIRED)
            return PairingOutcome.INVALID_INPUT

        adb = await self.ensure_adb_ready()
        if adb is None:
            return PairingOutcome.ADB_UNAVAILABLE

        result = await adb_tools.connect(adb, endpoint, self._runner)
        connected = self._report_connect(endpoint, result)
        await self.refresh_devices()
        return PairingOutcome.CONNECTED if connected else PairingOutcome.CONNECT_FAILED

    async def connect_by_pairing_code(
        self,
        pair_endpoint: str,
        pair_code: str,
        connect_endpoint: Optional[str] = None,
    ) -> PairingOutcome:
        """Pair with a code typed from the device, then connect.

        Without an explicit connect endpoint the pairing host on the default
        adb port is used.
        """
        pair_endpoint = (pair_endpoint or '').strip()
        pair_code = (pair_code or '').strip()
        if not pair_endpoint:
            self._notify(NoticeLevel.ERROR, MessageConstants.ERROR_PAIR_ENDPOINT_REQUIRED)
            return PairingOutcome.INVALID_INPUT
        if not pair_code:
            self._notify(NoticeLevel.ERROR, MessageConstants.ERROR_PAIR_CODE_REQUIRED)
            return PairingOutcome.INVALID_INPUT

        adb = await self.ensure_adb_ready()
        if adb is None:
            return PairingOutcome.ADB_UNAVAILABLE

        return await self._pair_and_connect(adb, pair_endpoint, pair_code, connect_endpoint)

    async def connect_by_payload(self, payload: str, connect_endpoint: Optional[str] = None) -> PairingOutcome:
        """Pair using a ``WIFI:T:ADB;S:...;P:...;;`` payload typed or pasted by the user.

        The ``S:`` field is used directly when it is a ``host:port`` endpoint;
        otherwise it names a pairing service that must currently be advertised.
        """
        try:
            target, pair_code = parse_pairing_payload(payload)
        except PayloadError as exc:
            self._notify(NoticeLevel.ERROR, common.with_reason(MessageConstants.ERROR_INVALID_PAYLOAD, str(exc)))
            return PairingOutcome.INVALID_INPUT

        adb = await self.ensure_adb_ready()
        if adb is None:
            return PairingOutcome.ADB_UNAVAILABLE

        pair_endpoint = target
        if not is_endpoint(target):
            pair_endpoint = await self._poller(adb).find_pairing_endpoint(target)
            if pair_endpoint is None:
                self._notify(
                    NoticeLevel.ERROR, MessageConstants.ERROR_PAIRING_SERVICE_NOT_FOUND.format(service=target)
                )
                return PairingOutcome.INVALID_INPUT

        return await self._pair_and_connect(adb, pair_endpoint, pair_code, connect_endpoint)

    async def _pair_and_connect(
        self,
        adb: str,
        pair_endpoint: str,
        pair_code: str,
        connect_endpoint: Optional[str],
    ) -> PairingOutcome:
        pair_result = await adb_tools.pair(adb, pair_endpoint, pair_code, self._runner)
        if not pair_result.ok:
            reason = common.first_clean_output(pair_result.stderr, pair_result.stdout)
            self._notify(NoticeLevel.ERROR, common.with_reason(MessageConstants.ERROR_PAIR_FAILED, reason))
            return PairingOutcome.PAIR_FAILED

        self._notify(NoticeLevel.INFO, common.clean_output(pair_result.stdout) or MessageConstants.INFO_PAIRING_SUCCEEDED)

        target = (connect_endpoint or '').strip() or suggest_connect_endpoint(pair_endpoint, self._default_connect_port)
        if not target:
            self._notify(NoticeLevel.INFO, MessageConstants.INFO_PAIRED_CONNECT_MANUALLY)
            await self.refresh_devices()
            return PairingOutcome.PAIRED_NOT_CONNECTED

        result = await adb_tools.connect(adb, target, self._runner)
        connected = self._report_connect(target, result)
        await self.refresh_devices()
        return PairingOutcome.CONNECTED if connected else PairingOutcome.CONNECT_FAILED

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------
    def _poller(self, adb: str) -> DiscoveryPoller:
        return DiscoveryPoller(
            lambda: adb_tools.list_mdns_services(adb, self._runner),
            sleep=self._sleep,
            clock=self._clock,
            poll_interval_s=self._poll_interval_s,
        )

    def _is_session_active(self, session: PairingSession) -> bool:
        return self._session is session and not session.cancelled

    def _transition(self, session: PairingSession, state: PairingState, status_message: str) -> None:
        if not self._is_session_active(session):
            return
        logger.info('Pairing state %s -> %s', session.state.value, state.value)
        session.state = state
        session.status_message = status_message
        self._state = state
        self._publish()

    def _update_status(self, session: PairingSession, status_message: str) -> None:
        if not self._is_session_active(session) or session.status_message == status_message:
            return
        session.status_message = status_message
        self._publish()

    def _finish(self, session: PairingSession, state: PairingState) -> None:
        session.state = state
        if self._session is session:
            self._session = None
            self._state = state
            self._publish()

    def _report_connect(self, endpoint: str, result: CommandResult) -> bool:
        output = common.first_clean_output(result.stdout, result.stderr)
        if not adb_tools.connect_succeeded(result):
            logger.warning('adb connect %s failed (%s): %s', endpoint, result.code, output)
            self._notify(NoticeLevel.ERROR, common.with_reason(MessageConstants.ERROR_CONNECT_FAILED, output))
            return False

        self._notify(NoticeLevel.INFO, output or MessageConstants.INFO_CONNECTED.format(endpoint=endpoint))
        return True

    def _notify(self, level: NoticeLevel, message: str) -> None:
        logger.debug('Notice (%s): %s', level.value, message)
        self.notice_posted.emit(UserNotice(level, message))

    def _publish(self) -> None:
        self.view_model_changed.emit(self.view_model())


__all__ = ['WirelessPairingOrchestrator']
