import asyncio
import logging
import socket

import pytest

from fakes import FakeSender

from govee_lan_protocol import GoveeLanClient, GoveeLanError, LanConfig, LanReceiverSocket, LanSenderSocket


def test_sender_delivers_datagram_over_loopback() -> None:
    async def _run() -> bytes:
        receiver = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        receiver.bind(("127.0.0.1", 0))
        receiver.settimeout(2.0)
        try:
            async with LanSenderSocket(bind_address="127.0.0.1") as sender:
                await sender.sendto(b'{"msg":{"cmd":"devStatus","data":{}}}', receiver.getsockname())
            data, _ = receiver.recvfrom(1024)
        finally:
            receiver.close()
        return data

    assert asyncio.run(_run()) == b'{"msg":{"cmd":"devStatus","data":{}}}'


def test_closed_sender_raises_oserror() -> None:
    async def _run() -> None:
        sender = LanSenderSocket()
        with pytest.raises(OSError):
            await sender.sendto(b"{}", ("127.0.0.1", 4003))

    asyncio.run(_run())


def test_sender_cannot_be_started_twice() -> None:
    async def _run() -> None:
        async with LanSenderSocket(bind_address="127.0.0.1") as sender:
            with pytest.raises(GoveeLanError):
                await sender.start()

    asyncio.run(_run())


class _RecordingHandler:
    def __init__(self) -> None:
        self.errors = []

    def datagram_received(self, addr, data) -> None:
        pass

    def error_received(self, exc) -> None:
        self.errors.append(exc)


def test_receiver_error_is_logged_and_forwarded_without_restart(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="govee_lan_protocol")

    async def _run() -> None:
        handler = _RecordingHandler()
        receiver = LanReceiverSocket(handler, port=0)
        error = OSError(111, "Connection refused")

        receiver.error_received(error)

        assert handler.errors == [error]
        assert receiver.sock is None
        assert not receiver.final_result.done()
        await receiver.stop()
        await receiver.wait_for_done()

    asyncio.run(_run())
    assert any("LAN server error" in r.getMessage() and r.levelno == logging.WARNING for r in caplog.records)


def test_receiver_error_is_reported_by_client(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="govee_lan_protocol")

    async def _run() -> None:
        client = GoveeLanClient(config=LanConfig(dict(scan_interval=60.0)), sender=FakeSender(), enable_receiver=False)
        async with client:
            receiver = LanReceiverSocket(client.listener, port=0)
            error = OSError(113, "No route to host")

            receiver.error_received(error)

            assert client.receiver_error is error
            assert client.discovery_active
            await receiver.stop()

    asyncio.run(_run())
    assert any("LAN server error" in r.getMessage() for r in caplog.records)


def test_membership_failure_leaves_client_started_without_discovery(caplog) -> None:
    caplog.set_level(logging.WARNING, logger="govee_lan_protocol")

    async def _run() -> None:
        sender = FakeSender()
        config = LanConfig(dict(scan_interval=60.0, receiver_port=0, bind_addresses=["192.0.2.1"]))
        async with GoveeLanClient(config=config, sender=sender) as client:
            await asyncio.sleep(0.01)
            assert client.started
            assert not client.discovery_active
            assert sender.sent == []

        assert not client.started

    asyncio.run(_run())
    assert any("[LAN] server error" in r.getMessage() and r.levelno == logging.WARNING for r in caplog.records)
