"""Scripted adb runner and fake clock shared by the pairing tests."""

import asyncio
import inspect
from typing import Callable, Dict, List, Sequence, Union

from utils.adb_models import CommandResult


Response = Union[CommandResult, Callable[..., object]]

PAIRING_TYPE = '_adb-tls-pairing._tcp'
CONNECT_TYPE = '_adb-tls-connect._tcp'


def pairing_line(instance: str, endpoint: str) -> str:
    return f'{instance}\t{PAIRING_TYPE}\t{endpoint}'


def connect_line(instance: str, endpoint: str) -> str:
    return f'{instance}\t{CONNECT_TYPE}\t{endpoint}'


def services(*lines: str) -> str:
    return 'List of discovered mdns services\n' + '\n'.join(lines) + '\n'


class FakeAdb:
    """Async stand-in for ``process_runner.run_command``.

    Responses are keyed by the first argument (``version``, ``start-server``,
    ``devices``, ``mdns``, ``pair``, ``connect``; ``''`` for a bare call).
    ``mdns_outputs`` is consumed one entry per listing, the last entry repeats.
    An entry may be a callable taking the 1-based call index; it may be async.
    """

    def __init__(self) -> None:
        self.calls: List[List[str]] = []
        self.responses: Dict[str, Response] = {
            'version': CommandResult(stdout='Android Debug Bridge version 1.0.41\n'),
            'start-server': CommandResult(),
            'devices': CommandResult(stdout='List of devices attached\n'),
            'pair': CommandResult(stdout='Successfully paired to 192.168.1.20:37000 [guid=adb-XYZ]\n'),
            'connect': CommandResult(stdout='connected to 192.168.1.20:41000\n'),
            '': CommandResult(stdout='Android Debug Bridge version 1.0.41\n', code=1),
        }
        self.mdns_outputs: List[object] = ['']
        self.mdns_count = 0

    async def __call__(self, command: str, args: Sequence[str] = (), cwd=None) -> CommandResult:
        args = list(args)
        self.calls.append(args)
        key = args[0] if args else ''

        if key == 'mdns':
            self.mdns_count += 1
            index = self.mdns_count
            entry = self.mdns_outputs[min(index - 1, len(self.mdns_outputs) - 1)]
            if callable(entry):
                entry = entry(index)
                if inspect.isawaitable(entry):
                    entry = await entry
            if isinstance(entry, CommandResult):
                return entry
            return CommandResult(stdout=entry)

        response = self.responses[key]
        if callable(response):
            response = response(args)
            if inspect.isawaitable(response):
                response = await response
        return response

    def calls_for(self, key: str) -> List[List[str]]:
        return [call for call in self.calls if (call[0] if call else '') == key]

    def make_missing(self) -> None:
        missing = CommandResult(stderr='[Errno 2] No such file or directory', code=127)
        self.responses['version'] = missing
        self.responses[''] = missing


class FakeClock:
    """Monotonic clock advanced only by ``sleep``."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: List[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds
        await asyncio.sleep(0)
