# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

LAN_MULTICAST_ADDRESS = "239.255.255.250"
"""The multicast group that LAN-enabled devices join to listen for scan requests."""

SCAN_PORT = 4001
"""The port on the multicast group that devices listen on for scan requests."""

RECEIVER_PORT = 4002
"""The local port on which devices send scan replies and status replies."""

DEVICE_PORT = 4003
"""The port on each device that accepts unicast control and status request commands."""

DEFAULT_SCAN_INTERVAL = 5.0
"""The interval (in seconds) between multicast scan requests."""

DEFAULT_STATUS_REQUEST_DELAY = 0.05
"""The delay (in seconds) after a successful control command before the device status is requested.
   Devices need some time to update their internal state after processing a command."""

CMD_SCAN = "scan"
CMD_DEVICE_STATUS = "devStatus"

SCAN_ACCOUNT_TOPIC = "reserve"

LAN_SOURCE = "LAN"
"""The value of the "source" field added to status payloads delivered to device update handlers."""
