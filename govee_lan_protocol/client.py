#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
GoveeLanClient -- A local-network client for Govee LAN devices that can:

  1. Listen on the receiver port (typically 4002) for replies, joined to the multicast group
     239.255.255.250
  2. Send a multicast scan request to 239.255.255.250:4001 on startup and every scan interval,
     and keep a registry of the devices that reply
  3. Send unicast control commands to a device on port 4003, followed shortly by a status
     request
  4. Deliver device status replies, correlated by source address, to device update handlers

Usage:

    async with GoveeLanClient() as client:
        client.add_device_update_handler(lambda device_id, payload: print(device_id, payload))
        ...
        await client.update_device(accessory, {"cmd": "turn", "data": {"value": 1}})
"""

from __future__ import annotations

import asyncio

from .internal_types import *
from .pkg_logging import logger
from .exceptions import GoveeLanError
from .config import LanConfig
from .lan_message import LanMessage
from .lan_socket import LanReceiverSocket, LanSenderSocket, DatagramSender
from .device_registry import DeviceRecord, DeviceRegistry
from .capabilities import LanCapabilityList
from .correlator import StatusCorrelator, DeviceUpdateHandler
from .listener import DiscoveryListener, DeviceDiscoveredHandler
from .scanner import ScanBroadcaster, ScanScheduler
from .sender import CommandSender

class Accessory(Protocol):
    """The owner's view of a controllable device, used by update_device()."""

    @property
    def display_name(self) -> str: ...

    @property
    def device_id(self) -> str: ...

    @property
    def enable_debug_logging(self) -> bool: ...

class AccessoryInfo:
    """A minimal Accessory implementation."""

    display_name: str
    device_id: str
    enable_debug_logging: bool

    def __init__(self, device_id: str, display_name: Optional[str]=None, enable_debug_logging: bool=False) -> None:
        self.device_id = device_id
        self.display_name = device_id if display_name is None else display_name
        self.enable_debug_logging = enable_debug_logging

class GoveeLanClient(AsyncContextManager['GoveeLanClient']):
    """
    The LAN transport. Owns the device registry, the receiver and sender sockets, and the scan
    scheduler. All state is confined to the event loop on which the client is started.
    """

    config: LanConfig
    registry: DeviceRegistry
    capabilities: LanCapabilityList
    correlator: StatusCorrelator
    listener: DiscoveryListener

    sender_socket: DatagramSender
    receiver: Optional[LanReceiverSocket] = None
    broadcaster: ScanBroadcaster
    scheduler: ScanScheduler
    command_sender: CommandSender

    status_request_tasks: Set[asyncio.Task[bool]]
    """Pending delayed status requests. Cancelled when the client is stopped."""

    started: bool = False

    def __init__(
            self,
            config: Optional[LanConfig]=None,
            sender: Optional[DatagramSender]=None,
            enable_receiver: bool=True,
          ) -> None:
        """Create a LAN client.

        Parameters:
            config:          Ports, addresses and intervals. Defaults to LanConfig().
            sender:          The datagram sender to use. Defaults to a LanSenderSocket bound to
                               an ephemeral port. Tests may pass a fake.
            enable_receiver: If False, no receiver socket is bound; datagrams may still be fed
                               to self.listener.datagram_received() directly.
        """
        self.config = LanConfig() if config is None else config
        self.registry = DeviceRegistry()
        self.capabilities = LanCapabilityList(extra_models=self.config.extra_lan_models)
        self.correlator = StatusCorrelator(self.registry)
        self.listener = DiscoveryListener(self.registry, self.correlator, self.capabilities)
        self._owns_sender = sender is None
        self.sender_socket = LanSenderSocket() if sender is None else sender
        self.enable_receiver = enable_receiver
        self.broadcaster = ScanBroadcaster(
            self.sender_socket,
            multicast_address=self.config.multicast_address,
            scan_port=self.config.scan_port,
          )
        self.scheduler = ScanScheduler(self.broadcaster, scan_interval=self.config.scan_interval)
        self.command_sender = CommandSender(self.sender_socket, self.registry, device_port=self.config.device_port)
        self.status_request_tasks = set()

    async def start(self) -> None:
        """Binds the sockets and starts scanning.

        A socket error while binding is logged as a warning and leaves discovery disabled; it is
        not raised and not retried.
        """
        if self.started:
            raise GoveeLanError("GoveeLanClient is already started")
        self.started = True
        try:
            if self._owns_sender:
                assert isinstance(self.sender_socket, LanSenderSocket)
                await self.sender_socket.start()
            if self.enable_receiver:
                self.receiver = LanReceiverSocket(
                    self.listener,
                    multicast_address=self.config.multicast_address,
                    port=self.config.receiver_port,
                    bind_addresses=self.config.bind_addresses,
                  )
                await self.receiver.start()
        except OSError as e:
            logger.warning(f"[LAN] server error: {e}")
            return
        except BaseException:
            await self.stop()
            raise
        # the first scan is sent as soon as the receiver can see the replies
        self.scheduler.start()

    @property
    def discovery_active(self) -> bool:
        """True if the scan scheduler is running."""
        return self.scheduler.running

    @property
    def receiver_error(self) -> Optional[Exception]:
        """The most recent error reported by the receiver socket, if any. The receiver is not
           restarted after an error."""
        return self.listener.last_error

    async def stop(self) -> None:
        """Stops scanning, cancels pending status requests, and closes both sockets."""
        await self.scheduler.stop()
        for task in list(self.status_request_tasks):
            task.cancel()
        if len(self.status_request_tasks) > 0:
            await asyncio.gather(*self.status_request_tasks, return_exceptions=True)
        self.status_request_tasks.clear()
        if self.receiver is not None:
            await self.receiver.stop()
            try:
                await self.receiver.wait_for_done()
            except Exception as e:
                logger.debug(f"Receiver exited with exception: {e}")
            self.receiver = None
        if self._owns_sender:
            assert isinstance(self.sender_socket, LanSenderSocket)
            await self.sender_socket.stop()
        self.started = False

    def add_device_update_handler(self, handler: DeviceUpdateHandler) -> int:
        """Adds a handler called with (device_id, payload) for each correlated status reply."""
        return self.correlator.add_device_update_handler(handler)

    def remove_device_update_handler(self, i: int) -> None:
        self.correlator.remove_device_update_handler(i)

    def add_device_discovered_handler(self, handler: DeviceDiscoveredHandler) -> int:
        """Adds a handler called with the DeviceRecord of each newly registered device."""
        return self.listener.add_device_discovered_handler(handler)

    def remove_device_discovered_handler(self, i: int) -> None:
        self.listener.remove_device_discovered_handler(i)

    @property
    def devices(self) -> List[DeviceRecord]:
        return list(self.registry)

    def get_device(self, device_id: str) -> Optional[DeviceRecord]:
        return self.registry.find_by_id(device_id)

    async def send_scan(self) -> bool:
        """Sends an extra scan request outside of the regular schedule."""
        return await self.broadcaster.send_scan()

    async def send_device_state_request(self, device: DeviceRecord) -> bool:
        """Asks a device for its current state. The reply is delivered to the device update handlers."""
        return await self.command_sender.send_status_request(device)

    async def request_device_status(self, device_id: str) -> bool:
        device = self.registry.find_by_id(device_id)
        if device is None:
            logger.info(f"[LAN] device not found with id [{device_id}].")
            return False
        return await self.send_device_state_request(device)

    async def update_device(self, accessory: Accessory, params: Mapping[str, Any]) -> bool:
        """Sends a control command to the device behind an accessory.

        params is the "msg" object of the command; e.g., {"cmd": "brightness", "data": {"value": 50}}.

        Returns False without sending anything if params is not a valid command or the device
        is not registered. Returns False and removes the device from the registry if the send
        fails. On success, a status request is sent after status_request_delay seconds without
        blocking the caller.
        """
        try:
            message = LanMessage.from_params(params)
            raw_data = message.raw_data
        except (GoveeLanError, TypeError, ValueError) as e:
            logger.info(f"[{accessory.display_name}] [LAN] invalid command params: {e}")
            return False
        if accessory.enable_debug_logging:
            logger.info(f"[{accessory.display_name}] [LAN] starting update with params [{raw_data.decode('utf-8')}].")

        device = self.registry.find_by_id(accessory.device_id)
        if device is None:
            logger.info(f"[{accessory.display_name}] [LAN] device not found with id [{accessory.device_id}].")
            return False

        if not await self.command_sender.send_message(device, message):
            logger.info(f"[{accessory.display_name}] [LAN] failed to send command to [{device.ip}].")
            return False

        logger.info(f"[{accessory.display_name}] [LAN] command sent to [{accessory.device_id}] [{device.ip}].")
        self.schedule_status_request(device)
        return True

    def schedule_status_request(self, device: DeviceRecord) -> asyncio.Task[bool]:
        """Sends a status request to a device after status_request_delay seconds."""
        task = asyncio.create_task(self._delayed_status_request(device, self.config.status_request_delay))
        self.status_request_tasks.add(task)
        task.add_done_callback(self.status_request_tasks.discard)
        return task

    async def _delayed_status_request(self, device: DeviceRecord, delay: float) -> bool:
        await asyncio.sleep(delay)
        return await self.command_sender.send_status_request(device)

    async def __aenter__(self) -> GoveeLanClient:
        await self.start()
        return self

    async def __aexit__(
            self,
            exc_type: Optional[type[BaseException]],
            exc: Optional[BaseException],
            tb: Optional[TracebackType]
      ) -> bool:
        await self.stop()
        return False
