"""Fake transports and helpers shared by the tests."""

from __future__ import annotations

import json

from govee_lan_protocol.internal_types import *


class FakeSender:
    """A DatagramSender that records datagrams instead of sending them."""

    def __init__(self, fail_to: Optional[Iterable[str]] = None) -> None:
        self.sent: List[Tuple[bytes, HostAndPort]] = []
        self.attempts: List[HostAndPort] = []
        self.fail_to: Set[str] = set() if fail_to is None else set(fail_to)

    async def sendto(self, data: bytes, addr: HostAndPort) -> None:
        self.attempts.append(addr)
        if addr[0] in self.fail_to:
            raise OSError(101, "Network is unreachable")
        self.sent.append((data, addr))

    def sent_to_port(self, port: int) -> List[Tuple[JsonableDict, HostAndPort]]:
        return [ (json.loads(data), addr) for data, addr in self.sent if addr[1] == port ]


def scan_reply(device: str, sku: str, ip: str, **extra: Any) -> bytes:
    data: JsonableDict = dict(device=device, sku=sku, ip=ip)
    data.update(extra)
    return json.dumps(dict(msg=dict(cmd="scan", data=data))).encode("utf-8")


def status_reply(**data: Any) -> bytes:
    return json.dumps(dict(msg=dict(cmd="devStatus", data=data))).encode("utf-8")
