# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package govee_lan_protocol implements local-network discovery and control of Govee devices.

Devices that have "LAN Control" turned on join the multicast group 239.255.255.250 and
listen for scan requests on port 4001. Each device answers a scan by sending its identity
(device ID, model and IP address) to port 4002 of the requesting host. Once a device's IP
address is known, control commands and status requests are sent to it by unicast on port
4003; status replies also arrive on port 4002.

All messages are UTF-8 JSON objects of the form {"msg": {"cmd": ..., "data": {...}}}.

The transport is connectionless and best effort: nothing is acknowledged, nothing is
retried, and a device that fails a send is simply forgotten until it answers a later scan.
"""

from .version import __version__

from .internal_types import Jsonable, JsonableDict, HostAndPort

from .exceptions import GoveeLanError

from .lan_message import LanMessage
from .device_registry import DeviceRecord, DeviceRegistry
from .capabilities import LanCapabilityList, LAN_MODELS
from .lan_socket import LanReceiverSocket, LanSenderSocket, DatagramSender, LanDatagramHandler
from .scanner import ScanBroadcaster, ScanScheduler
from .correlator import StatusCorrelator, DeviceUpdateHandler
from .listener import DiscoveryListener, DeviceDiscoveredHandler
from .sender import CommandSender, SendFailureHook
from .config import LanConfig
from .client import GoveeLanClient, Accessory, AccessoryInfo
from .constants import (
    LAN_MULTICAST_ADDRESS,
    SCAN_PORT,
    RECEIVER_PORT,
    DEVICE_PORT,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_STATUS_REQUEST_DELAY,
  )

__all__ = [
    '__version__',
    'Jsonable', 'JsonableDict', 'HostAndPort',
    'GoveeLanError',
    'LanMessage',
    'DeviceRecord', 'DeviceRegistry',
    'LanCapabilityList', 'LAN_MODELS',
    'LanReceiverSocket', 'LanSenderSocket', 'DatagramSender', 'LanDatagramHandler',
    'ScanBroadcaster', 'ScanScheduler',
    'StatusCorrelator', 'DeviceUpdateHandler',
    'DiscoveryListener', 'DeviceDiscoveredHandler',
    'CommandSender', 'SendFailureHook',
    'LanConfig',
    'GoveeLanClient', 'Accessory', 'AccessoryInfo',
    'LAN_MULTICAST_ADDRESS', 'SCAN_PORT', 'RECEIVER_PORT', 'DEVICE_PORT',
    'DEFAULT_SCAN_INTERVAL', 'DEFAULT_STATUS_REQUEST_DELAY',
]
