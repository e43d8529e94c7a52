#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DiscoveryListener -- handles every datagram received on the receiver port.

  1. Parses the datagram as a LanMessage; malformed datagrams are logged and dropped.
  2. "scan" replies register previously unseen devices in the DeviceRegistry.
  3. "devStatus" replies are passed to the StatusCorrelator.
  4. Anything else is ignored.

A scan reply for a device ID that is already registered is ignored, even if the device now
reports a different IP address. The stale address is only replaced after the record is
evicted by a failed send and the device answers a later scan.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .constants import CMD_SCAN, CMD_DEVICE_STATUS
from .lan_message import LanMessage
from .device_registry import DeviceRecord, DeviceRegistry
from .capabilities import LanCapabilityList
from .correlator import StatusCorrelator

DeviceDiscoveredHandler = Callable[[DeviceRecord], None]
"""A callback for newly registered devices."""

class DiscoveryListener:
    registry: DeviceRegistry
    correlator: StatusCorrelator
    capabilities: LanCapabilityList

    discovered_handlers: Dict[int, DeviceDiscoveredHandler]
    i_next_discovered_handler: int = 0

    last_error: Optional[Exception] = None
    """The most recent error reported by the receiver socket, if any."""

    def __init__(
            self,
            registry: DeviceRegistry,
            correlator: StatusCorrelator,
            capabilities: Optional[LanCapabilityList]=None,
          ) -> None:
        self.registry = registry
        self.correlator = correlator
        self.capabilities = LanCapabilityList() if capabilities is None else capabilities
        self.discovered_handlers = {}

    def add_device_discovered_handler(self, handler: DeviceDiscoveredHandler) -> int:
        i = self.i_next_discovered_handler
        self.i_next_discovered_handler += 1
        self.discovered_handlers[i] = handler
        return i

    def remove_device_discovered_handler(self, i: int) -> None:
        del self.discovered_handlers[i]

    def datagram_received(self, addr: HostAndPort, data: bytes) -> None:
        try:
            message = LanMessage(raw_data=data)
        except Exception as e:
            logger.info(f"Could not parse message {data!r}: {e}")
            return

        if message.cmd == CMD_SCAN:
            self.handle_scan_reply(addr, message)
        elif message.cmd == CMD_DEVICE_STATUS:
            self.correlator.correlate(addr, message)

    def error_received(self, exc: Exception) -> None:
        self.last_error = exc

    def handle_scan_reply(self, addr: HostAndPort, message: LanMessage) -> Optional[DeviceRecord]:
        """Registers the device described by a scan reply.

        Returns the new record, or None if the device was already registered or the reply
        does not identify a device.
        """
        record = DeviceRecord.from_scan_data(message.data, src_ip=addr[0])
        if record is None:
            logger.info(f"[LAN] ignoring scan reply without device and sku from {addr[0]}: {message.data}")
            return None
        if not self.registry.add(record):
            return None
        logger.info(f"[LAN] added new device: {record.device_id} [{record.sku}] at {record.ip} (from {addr[0]})")

        if not self.capabilities.supports_lan(record.sku):
            logger.warning(
                f"[{record.device_id}] [LAN] model is not in the list of LAN-capable models, "
                f"it may not work [{record.sku}]."
              )

        for handler in list(self.discovered_handlers.values()):
            try:
                handler(record)
            except Exception as e:
                logger.warning(f"[{record.device_id}] [LAN] discovered handler raised exception: {e}")
        return record
