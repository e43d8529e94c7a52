#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
CommandSender -- sends unicast commands to registered devices.

The outcome of each send is the outcome reported by the local UDP stack; it says nothing about
whether the device received or processed the command. A failed send is taken to mean that the
device has left the network or changed address, and the failure hook (by default
evict_on_failure) removes the device from the registry so that later commands fail fast with
"device not found".
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .exceptions import GoveeLanError
from .constants import DEVICE_PORT
from .lan_message import LanMessage
from .lan_socket import DatagramSender
from .device_registry import DeviceRecord, DeviceRegistry

SendFailureHook = Callable[[DeviceRecord, OSError], None]
"""Called after a failed unicast send with the target device and the send error."""

class CommandSender:
    sender: DatagramSender
    registry: DeviceRegistry
    device_port: int
    on_send_failure: SendFailureHook

    def __init__(
            self,
            sender: DatagramSender,
            registry: DeviceRegistry,
            device_port: int=DEVICE_PORT,
            on_send_failure: Optional[SendFailureHook]=None,
          ) -> None:
        self.sender = sender
        self.registry = registry
        self.device_port = device_port
        self.on_send_failure = self.evict_on_failure if on_send_failure is None else on_send_failure

    def evict_on_failure(self, device: DeviceRecord, exc: OSError) -> None:
        """Removes a device from the registry after a failed send.

        Nothing is removed if the registry now holds a different record for the device ID.
        """
        if self.registry.find_by_id(device.device_id) is not device:
            logger.debug(f"[{device.device_id}] [LAN] not removing replaced device record for {device.ip}")
            return
        removed = self.registry.remove(device.device_id)
        if removed is not None:
            logger.info(f"[LAN] removed device: [{removed.device_id}] [{removed.sku}].")

    async def send_message(self, device: DeviceRecord, message: LanMessage) -> bool:
        """Sends a message to a device's current IP address on the device port.

        Returns True if the local send succeeded. On failure the failure hook is called and
        False is returned; no exception is raised and the send is not retried. A message that
        cannot be encoded as JSON is not sent, and the failure hook is not called.
        """
        try:
            raw_data = message.raw_data
        except (TypeError, ValueError) as e:
            logger.info(f"[{device.device_id}] [LAN] could not encode {message.cmd}: {e}")
            return False
        try:
            await self.sender.sendto(raw_data, (device.ip, self.device_port))
        except OSError as e:
            logger.info(f"[{device.device_id}] [LAN] failed to send {message.cmd} to {device.ip}: {e}")
            self.on_send_failure(device, e)
            return False
        return True

    async def send_control(self, device: DeviceRecord, cmd: str, data: Optional[JsonableDict]=None) -> bool:
        """Sends a control command; e.g., send_control(device, "turn", {"value": 1})."""
        try:
            message = LanMessage(cmd, data)
        except GoveeLanError as e:
            logger.info(f"[{device.device_id}] [LAN] invalid command {cmd!r}: {e}")
            return False
        return await self.send_message(device, message)

    async def send_status_request(self, device: DeviceRecord) -> bool:
        """Asks a device to report its current state. The reply arrives on the receiver port."""
        return await self.send_message(device, LanMessage.status_request())
