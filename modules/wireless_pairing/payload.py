"""Pairing credential generation and the Wi-Fi QR payload format."""

from __future__ import annotations

import re
import secrets
from typing import Optional, Tuple

from config.constants import PairingConstants

from .models import PairingCredentials


_FIELD_PATTERNS = {
    'S': re.compile(r'(?:^|;|:)S:([^;]*)'),
    'P': re.compile(r'(?:^|;|:)P:([^;]*)'),
}
_ENDPOINT_RE = re.compile(r'^(?P<host>\[[0-9A-Fa-f:.]+\]|[^\s:]+):(?P<port>\d{1,5})$')


class PayloadError(ValueError):
    """Raised when a pairing payload cannot be parsed."""


def random_from_alphabet(length: int, alphabet: str) -> str:
    return ''.join(secrets.choice(alphabet) for _ in range(length))


def generate_service_name() -> str:
    suffix = random_from_alphabet(PairingConstants.SERVICE_NAME_LENGTH, PairingConstants.SERVICE_NAME_ALPHABET)
    return f'{PairingConstants.SERVICE_NAME_PREFIX}{suffix}'


def generate_pair_code() -> str:
    """Return an uppercase code without the look-alike characters I, O, 0 and 1."""
    return random_from_alphabet(PairingConstants.PAIR_CODE_LENGTH, PairingConstants.PAIR_CODE_ALPHABET)


def build_pairing_payload(service_name: str, pair_code: str) -> str:
    return PairingConstants.PAYLOAD_TEMPLATE.format(service=service_name, code=pair_code)


def generate_credentials() -> PairingCredentials:
    service_name = generate_service_name()
    pair_code = generate_pair_code()
    return PairingCredentials(
        service_name=service_name,
        pair_code=pair_code,
        payload=build_pairing_payload(service_name, pair_code),
    )


def _extract(field_name: str, text: str) -> Optional[str]:
    match = _FIELD_PATTERNS[field_name].search(text)
    if not match:
        return None
    return match.group(1).strip() or None


def parse_pairing_payload(text: str) -> Tuple[str, str]:
    """Return ``(service name or pairing endpoint, pairing code)`` from a payload.

    Both fields are read up to the next ``;``.
    """
    if not text or not text.strip():
        raise PayloadError('Payload is empty')

    cleaned = text.strip()
    target = _extract('S', cleaned)
    code = _extract('P', cleaned)
    if not target:
        raise PayloadError('Payload has no S: field')
    if not code:
        raise PayloadError('Payload has no P: field')
    return target, code


def is_endpoint(value: str) -> bool:
    """Return whether ``value`` looks like ``host:port``."""
    match = _ENDPOINT_RE.match(value.strip())
    return bool(match) and 0 < int(match.group('port')) < 65536


def endpoint_host(endpoint: str) -> str:
    host, sep, _ = endpoint.strip().rpartition(':')
    return host if sep else endpoint.strip()


def suggest_connect_endpoint(pair_endpoint: str, port: int = PairingConstants.DEFAULT_CONNECT_PORT) -> str:
    """Return ``<pairing host>:<port>`` as the likely connect endpoint."""
    host = endpoint_host(pair_endpoint)
    return f'{host}:{port}' if host else ''


__all__ = [
    'PayloadError',
    'build_pairing_payload',
    'endpoint_host',
    'generate_credentials',
    'generate_pair_code',
    'generate_service_name',
    'is_endpoint',
    'parse_pairing_payload',
    'suggest_connect_endpoint',
]
