#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Multicast scan requests.

ScanBroadcaster sends a single scan request to the multicast group. ScanScheduler drives the
broadcaster from a background task: one scan immediately on start, then one every scan interval
until stopped.
"""

from __future__ import annotations

import asyncio

from .internal_types import *
from .pkg_logging import logger
from .constants import LAN_MULTICAST_ADDRESS, SCAN_PORT, DEFAULT_SCAN_INTERVAL
from .lan_message import LanMessage
from .lan_socket import DatagramSender

class ScanBroadcaster:
    sender: DatagramSender
    multicast_address: str
    scan_port: int
    scan_count: int = 0
    """The number of scan requests that have been sent, successfully or not."""

    def __init__(
            self,
            sender: DatagramSender,
            multicast_address: str=LAN_MULTICAST_ADDRESS,
            scan_port: int=SCAN_PORT,
          ) -> None:
        self.sender = sender
        self.multicast_address = multicast_address
        self.scan_port = scan_port

    async def send_scan(self) -> bool:
        """Sends a request that asks every device in the multicast group to identify itself.

        A send failure is logged and reported as False; it is never raised.
        """
        self.scan_count += 1
        message = LanMessage.scan_request()
        try:
            await self.sender.sendto(message.raw_data, (self.multicast_address, self.scan_port))
        except OSError as e:
            logger.warning(f"[LAN] failed to send scan request to {self.multicast_address}:{self.scan_port}: {e}")
            return False
        return True

class ScanScheduler:
    broadcaster: ScanBroadcaster
    scan_interval: float

    scan_task: Optional[asyncio.Task[None]] = None
    """The task that sends periodic scan requests. None if the scheduler is not running."""

    _stop_event: Optional[asyncio.Event] = None

    def __init__(self, broadcaster: ScanBroadcaster, scan_interval: float=DEFAULT_SCAN_INTERVAL) -> None:
        if scan_interval <= 0.0:
            raise ValueError(f"scan_interval must be positive, got {scan_interval}")
        self.broadcaster = broadcaster
        self.scan_interval = scan_interval

    @property
    def running(self) -> bool:
        return self.scan_task is not None and not self.scan_task.done()

    def start(self) -> None:
        if self.running:
            return
        self._stop_event = asyncio.Event()
        self.scan_task = asyncio.create_task(self._run_scan_task(self._stop_event))

    async def stop(self) -> None:
        if self._stop_event is not None:
            self._stop_event.set()
        if self.scan_task is not None:
            self.scan_task.cancel()
            try:
                await self.scan_task
            except asyncio.CancelledError:
                pass
            except Exception as e:
                logger.warning(f"Exception while cancelling scan task: {e}")
            self.scan_task = None
        self._stop_event = None

    async def _run_scan_task(self, stop_event: asyncio.Event) -> None:
        logger.debug(f"Scan task starting, scanning every {self.scan_interval} seconds")
        loop = asyncio.get_running_loop()
        next_scan_time = loop.time()
        try:
            while not stop_event.is_set():
                await self.broadcaster.send_scan()
                # scan times are whole multiples of scan_interval after the first scan
                next_scan_time += self.scan_interval
                try:
                    await asyncio.wait_for(stop_event.wait(), timeout=max(0.0, next_scan_time - loop.time()))
                except asyncio.TimeoutError:
                    pass
        except asyncio.CancelledError:
            logger.debug("Scan task cancelled; exiting")
            raise
        logger.debug("Scan task exiting")
