#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
DeviceRegistry -- The in-memory collection of devices that have answered a LAN scan.

Records are keyed by device ID. A secondary lookup by current IP address is used to
correlate status replies, which carry no device ID of their own.

The registry is only touched from the event loop thread, so no locking is done.
"""

from __future__ import annotations

import datetime

from .internal_types import *

class DeviceRecord:
    device_id: str
    """The stable device identifier reported by the device (e.g., "AA:BB:CC:DD:EE:FF:00:11")"""

    sku: str
    """The model identifier (e.g., "H6159")"""

    ip: str
    """The IP address reported by the device in its scan reply"""

    data: JsonableDict
    """The complete data object of the scan reply. Fields other than device, sku and ip
       are passed through unchanged."""

    utc_time: datetime.datetime
    """The UTC time at which the device was registered."""

    def __init__(self, device_id: str, sku: str, ip: str, data: Optional[JsonableDict]=None) -> None:
        self.device_id = device_id
        self.sku = sku
        self.ip = ip
        self.data = dict(device=device_id, sku=sku, ip=ip) if data is None else data
        self.utc_time = datetime.datetime.now(datetime.timezone.utc)

    @classmethod
    def from_scan_data(cls, data: JsonableDict, src_ip: Optional[str]=None) -> Optional[DeviceRecord]:
        """Creates a record from the data object of a scan reply.

        Returns None if the reply does not include a device ID and sku. If the reply
        has no "ip" field, src_ip (the source address of the datagram) is used instead.
        """
        device_id = data.get('device')
        sku = data.get('sku')
        if not isinstance(device_id, str) or not isinstance(sku, str):
            return None
        ip = data.get('ip')
        if not isinstance(ip, str) or ip == '':
            if src_ip is None:
                return None
            ip = src_ip
        return cls(device_id, sku, ip, data)

    def to_jsonable(self) -> JsonableDict:
        return dict(
            device=self.device_id,
            sku=self.sku,
            ip=self.ip,
            data=self.data,
            utc_time=self.utc_time.isoformat(),
          )

    def __str__(self) -> str:
        return f"DeviceRecord({self.device_id}, sku={self.sku}, ip={self.ip})"

    def __repr__(self) -> str:
        return str(self)

class DeviceRegistry:
    """The set of currently known LAN devices.

    At most one record exists per device ID. IP addresses are not required to be unique;
    find_by_address() returns the earliest registered record with a matching address.
    """

    _devices: Dict[str, DeviceRecord]

    def __init__(self) -> None:
        self._devices = {}

    def add(self, record: DeviceRecord) -> bool:
        """Inserts a record if its device ID is not already registered.

        An existing record is never updated; returns True only if an insertion occurred.
        """
        if record.device_id in self._devices:
            return False
        self._devices[record.device_id] = record
        return True

    def find_by_id(self, device_id: str) -> Optional[DeviceRecord]:
        return self._devices.get(device_id)

    def find_by_address(self, ip: str) -> Optional[DeviceRecord]:
        for record in self._devices.values():
            if record.ip == ip:
                return record
        return None

    def remove(self, device_id: str) -> Optional[DeviceRecord]:
        """Removes a record. Returns the removed record, or None if it was not registered."""
        return self._devices.pop(device_id, None)

    def clear(self) -> None:
        self._devices.clear()

    def device_ids(self) -> List[str]:
        return list(self._devices.keys())

    def __contains__(self, device_id: object) -> bool:
        return device_id in self._devices

    def __len__(self) -> int:
        return len(self._devices)

    def __iter__(self) -> Iterator[DeviceRecord]:
        return iter(list(self._devices.values()))
