"""Deadline-bounded polling of adb mDNS discovery."""

from __future__ import annotations

import asyncio
import math
import time
from typing import AbstractSet, Awaitable, Callable, List, Optional

from config.constants import PairingConstants
from utils import common
from utils.adb_models import MdnsService


logger = common.get_logger('pairing_discovery')

ServiceLister = Callable[[], Awaitable[List[MdnsService]]]
SleepFn = Callable[[float], Awaitable[None]]
ClockFn = Callable[[], float]
CancelCheck = Callable[[], bool]
TickCallback = Callable[[int], None]


class DiscoveryPoller:
    """Polls the service listing once per interval until a match, deadline or cancellation.

    Cancellation is checked before each listing and again right after it
    resolves, so a listing that completes after cancellation is discarded.
    """

    def __init__(
        self,
        list_services: ServiceLister,
        sleep: SleepFn = asyncio.sleep,
        clock: ClockFn = time.monotonic,
        poll_interval_s: float = PairingConstants.POLL_INTERVAL_S,
    ) -> None:
        self._list_services = list_services
        self._sleep = sleep
        self._clock = clock
        self._poll_interval_s = poll_interval_s

    async def wait_for_pairing_endpoint(
        self,
        service_name: str,
        timeout_s: float,
        is_cancelled: CancelCheck,
        on_tick: Optional[TickCallback] = None,
    ) -> Optional[str]:
        """Return the endpoint of the pairing service advertised as ``service_name``."""
        started_at = self._clock()

        while self._clock() - started_at < timeout_s:
            if is_cancelled():
                return None

            elapsed = self._clock() - started_at
            if on_tick is not None:
                on_tick(max(0, math.ceil(timeout_s - elapsed)))

            services = await self._list_services()
            if is_cancelled():
                return None

            for service in services:
                if service.is_pairing and service.instance == service_name:
                    logger.info('Pairing service %s discovered at %s', service_name, service.endpoint)
                    return service.endpoint

            await self._sleep(self._poll_interval_s)

        logger.info('No pairing service %s within %.0fs', service_name, timeout_s)
        return None

    async def wait_for_connect_endpoint(
        self,
        known_endpoints: AbstractSet[str],
        timeout_s: float,
        is_cancelled: CancelCheck,
    ) -> Optional[str]:
        """Return a connect endpoint that was not advertised before pairing.

        After the deadline a single remaining connect service is used as a
        last resort; with none or several the endpoint stays unresolved.
        """
        started_at = self._clock()

        while self._clock() - started_at < timeout_s:
            if is_cancelled():
                return None

            services = await self._list_services()
            if is_cancelled():
                return None

            for service in services:
                if service.is_connect and service.endpoint not in known_endpoints:
                    logger.info('New connect endpoint discovered: %s', service.endpoint)
                    return service.endpoint

            await self._sleep(self._poll_interval_s)

        if is_cancelled():
            return None

        services = await self._list_services()
        if is_cancelled():
            return None

        connect_services = [service for service in services if service.is_connect]
        if len(connect_services) == 1:
            logger.info('Falling back to the only connect endpoint %s', connect_services[0].endpoint)
            return connect_services[0].endpoint

        logger.info('Connect endpoint unresolved (%s candidates)', len(connect_services))
        return None

    async def connect_endpoints(self) -> frozenset:
        """Return the currently advertised connect endpoints."""
        services = await self._list_services()
        return frozenset(service.endpoint for service in services if service.is_connect)

    async def find_pairing_endpoint(self, service_name: str) -> Optional[str]:
        """Single-shot lookup of a pairing service by instance name."""
        for service in await self._list_services():
            if service.is_pairing and service.instance == service_name:
                return service.endpoint
        return None
