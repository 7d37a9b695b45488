#!/usr/bin/env python3
"""Command-line entry point for ADB Wise wireless pairing."""

import argparse
import asyncio
import signal
import sys
from typing import Callable, List, Optional, TextIO

import qrcode

from config.config_manager import ConfigManager
from config.constants import ApplicationConstants
from modules.wireless_pairing import (
    DevicesViewModel,
    NoticeLevel,
    PairingOutcome,
    UserNotice,
    WirelessPairingOrchestrator,
)
from utils import common

__all__ = ['ConsoleRenderer', 'build_parser', 'interrupt_handler', 'main', 'run']

EXIT_INTERRUPTED = 130

_NOTICE_PREFIX = {
    NoticeLevel.INFO: 'ℹ️ ',
    NoticeLevel.WARNING: '⚠️ ',
    NoticeLevel.ERROR: '❌',
}


def print_qr_terminal(data: str, stream: TextIO) -> None:
    qr = qrcode.QRCode(border=2)
    qr.add_data(data)
    qr.make(fit=True)
    qr.print_ascii(out=stream, invert=True)


class ConsoleRenderer:
    """Prints orchestrator snapshots and notices to a text stream."""

    def __init__(self, stream: Optional[TextIO] = None, show_qr: bool = True):
        self.stream = stream or sys.stdout
        self.show_qr = show_qr
        self._last_payload: Optional[str] = None
        self._last_status: Optional[str] = None

    def on_view_model(self, model: DevicesViewModel) -> None:
        pairing = model.pairing
        if pairing is None:
            self._last_payload = None
            self._last_status = None
            return

        if pairing.payload != self._last_payload:
            self._last_payload = pairing.payload
            self.write('')
            self.write('Phone → Settings → Developer options → Wireless debugging → Pair device with QR code')
            if self.show_qr:
                print_qr_terminal(pairing.payload, self.stream)
            self.write(f'Service Name: {pairing.pair_service_name}')
            self.write(f'Pairing Code: {pairing.pair_code}')
            self.write(f'QR Payload:   {pairing.payload}')

        if pairing.status_message != self._last_status:
            self._last_status = pairing.status_message
            self.write(pairing.status_message)

    def on_notice(self, notice: UserNotice) -> None:
        self.write(f'{_NOTICE_PREFIX[notice.level]} {notice.message}')

    def render_devices(self, model: DevicesViewModel) -> None:
        for section in model.sections:
            if all(item.kind == 'action' for item in section.items):
                continue
            self.write(f'== {section.title} ==')
            for item in section.items:
                line = f'  [{item.tone}] {item.label}'
                if item.description:
                    line += f' ({item.description})'
                self.write(line)

    def write(self, text: str) -> None:
        self.stream.write(f'{text}\n')
        self.stream.flush()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='adbwise',
        description=ApplicationConstants.APP_DESCRIPTION,
    )
    parser.add_argument('--config', help='Path to the configuration file')
    parser.add_argument(
        '--version',
        action='version',
        version=f'{ApplicationConstants.APP_NAME} {ApplicationConstants.APP_VERSION}',
    )
    subparsers = parser.add_subparsers(dest='command', required=True)

    subparsers.add_parser('devices', help='List connected devices')

    connect_ip = subparsers.add_parser('connect-ip', help='Run adb connect <host:port>')
    connect_ip.add_argument('endpoint')

    pair = subparsers.add_parser('pair', help='Run adb pair <host:port> <code>, then connect')
    pair.add_argument('endpoint')
    pair.add_argument('code')
    pair.add_argument('--connect', dest='connect_endpoint', help='Connect endpoint (default: <host>:5555)')

    qr = subparsers.add_parser('qr', help='Show a QR code for Android Wireless debugging and pair')
    qr.add_argument('--no-qr', action='store_true', help='Print the payload only')

    payload = subparsers.add_parser('payload', help='Pair using a WIFI:T:ADB;S:...;P:...;; payload')
    payload.add_argument('payload')
    payload.add_argument('--connect', dest='connect_endpoint', help='Connect endpoint (default: <host>:5555)')

    return parser


def interrupt_handler(orchestrator: WirelessPairingOrchestrator, task: asyncio.Task) -> Callable[[], None]:
    """Build the Ctrl+C callback for a running command.

    The first interrupt cancels the pairing session cooperatively. With no
    session to cancel (adb checks, a hung subprocess after an earlier
    interrupt) the command task itself is cancelled.
    """
    def on_interrupt() -> None:
        if not orchestrator.cancel_qr_pairing():
            task.cancel()
    return on_interrupt


def _install_cancel_handler(orchestrator: WirelessPairingOrchestrator) -> None:
    loop = asyncio.get_running_loop()
    try:
        loop.add_signal_handler(signal.SIGINT, interrupt_handler(orchestrator, asyncio.current_task()))
    except (NotImplementedError, RuntimeError):
        # Signal handlers are unavailable on Windows event loops
        pass


async def run(args: argparse.Namespace, orchestrator: WirelessPairingOrchestrator, renderer: ConsoleRenderer) -> int:
    """Dispatch one command to the orchestrator and return the exit code."""
    if args.command == 'devices':
        model = await orchestrator.refresh_devices()
        renderer.render_devices(model)
        listing = orchestrator.listing
        return 0 if listing is not None and listing.adb_ok else 1

    if args.command == 'connect-ip':
        outcome = await orchestrator.connect_by_ip(args.endpoint)
    elif args.command == 'pair':
        outcome = await orchestrator.connect_by_pairing_code(args.endpoint, args.code, args.connect_endpoint)
    elif args.command == 'payload':
        outcome = await orchestrator.connect_by_payload(args.payload, args.connect_endpoint)
    else:
        _install_cancel_handler(orchestrator)
        try:
            outcome = await orchestrator.connect_by_qr_code()
        except asyncio.CancelledError:
            renderer.write('Interrupted.')
            return EXIT_INTERRUPTED
        if outcome is PairingOutcome.CANCELLED:
            renderer.write('Cancelled.')

    if outcome.succeeded:
        renderer.render_devices(orchestrator.view_model())
    return 0 if outcome.succeeded else 1


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    config_manager = ConfigManager(args.config) if args.config else ConfigManager()
    common.set_log_level(config_manager.get_logging_settings().log_level)

    renderer = ConsoleRenderer(show_qr=not getattr(args, 'no_qr', False))
    orchestrator = WirelessPairingOrchestrator(config_manager=config_manager)
    orchestrator.view_model_changed.connect(renderer.on_view_model)
    orchestrator.notice_posted.connect(renderer.on_notice)

    return asyncio.run(run(args, orchestrator, renderer))


if __name__ == '__main__':  # pragma: no cover
    sys.exit(main())
