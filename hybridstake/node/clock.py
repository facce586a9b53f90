"""
HybridStake Time Sources

A clock is any zero-argument callable returning Unix time in milliseconds.
Block timestamps feed the content hash, so tests inject FixedClock to get
reproducible digests.
"""

from __future__ import annotations
import logging
import time
from typing import Callable

import ntplib

from hybridstake.constants import DEFAULT_NTP_HOST, DEFAULT_NTP_TIMEOUT_SEC

logger = logging.getLogger(__name__)

Clock = Callable[[], int]


class SystemClock:
    """Local wall clock."""

    def __call__(self) -> int:
        return int(time.time() * 1000)


class FixedClock:
    """
    Deterministic clock for tests.

    Returns start, start + step, start + 2*step, ... on successive calls.
    """

    def __init__(self, start: int = 1_700_000_000_000, step: int = 0):
        self.start = start
        self.step = step
        self._calls = 0

    def __call__(self) -> int:
        value = self.start + self._calls * self.step
        self._calls += 1
        return value


class NtpClock:
    """
    Network time via NTP.

    The offset between NTP and local time is measured once per
    `resync_sec` seconds; in between, local time plus the offset is used.
    If the query fails the last known offset (initially 0) is kept.
    """

    def __init__(
        self,
        host: str = DEFAULT_NTP_HOST,
        timeout: float = DEFAULT_NTP_TIMEOUT_SEC,
        resync_sec: float = 60.0,
    ):
        self.host = host
        self.timeout = timeout
        self.resync_sec = resync_sec
        self._client = ntplib.NTPClient()
        self._offset_ms = 0
        self._last_sync = None

    @property
    def offset_ms(self) -> int:
        return self._offset_ms

    def sync(self) -> bool:
        """
        Query the NTP server and update the offset.

        Returns:
            True if the query succeeded
        """
        self._last_sync = time.monotonic()
        try:
            response = self._client.request(self.host, version=4, timeout=self.timeout)
        except (ntplib.NTPException, OSError) as e:
            logger.warning(f"NTP query to {self.host} failed, using local time: {e}")
            return False

        self._offset_ms = int(response.offset * 1000)
        logger.debug(f"NTP offset from {self.host}: {self._offset_ms}ms")
        return True

    def __call__(self) -> int:
        if self._last_sync is None or time.monotonic() - self._last_sync >= self.resync_sec:
            self.sync()
        return int(time.time() * 1000) + self._offset_ms
