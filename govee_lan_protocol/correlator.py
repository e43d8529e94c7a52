#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
StatusCorrelator -- routes device status replies to the owner of the device.

Status replies carry no device ID, so they are matched to a registered device by the
source IP address of the datagram. If two registered devices share an address, the
earliest registered one wins.
"""

from __future__ import annotations

from .internal_types import *
from .pkg_logging import logger
from .constants import LAN_SOURCE
from .device_registry import DeviceRegistry
from .lan_message import LanMessage

DeviceUpdateHandler = Callable[[str, JsonableDict], None]
"""A callback for correlated status replies. Called with (device_id, payload), where payload is the
   "msg" object of the reply ({"cmd": "devStatus", "data": {...}}) with "source" set to "LAN"."""

class StatusCorrelator:
    registry: DeviceRegistry

    update_handlers: Dict[int, DeviceUpdateHandler]
    """Handlers called for each correlated status reply, indexed by ID number."""

    i_next_update_handler: int = 0

    def __init__(self, registry: DeviceRegistry) -> None:
        self.registry = registry
        self.update_handlers = {}

    def add_device_update_handler(self, handler: DeviceUpdateHandler) -> int:
        """Adds a handler to be called when a status reply is received from a registered device."""
        i = self.i_next_update_handler
        self.i_next_update_handler += 1
        self.update_handlers[i] = handler
        return i

    def remove_device_update_handler(self, i: int) -> None:
        """Removes a previously added update handler."""
        del self.update_handlers[i]

    def correlate(self, addr: HostAndPort, message: LanMessage) -> Optional[str]:
        """Delivers a status reply to the update handlers.

        Returns the device ID the reply was attributed to, or None if no registered device has
        the source address (stray packets are expected and dropped silently).
        """
        record = self.registry.find_by_address(addr[0])
        if record is None:
            return None
        payload: JsonableDict = dict(message.msg)
        payload['source'] = LAN_SOURCE
        for handler in list(self.update_handlers.values()):
            try:
                handler(record.device_id, payload)
            except Exception as e:
                logger.warning(f"[{record.device_id}] [LAN] update handler raised exception: {e}")
        return record.device_id
