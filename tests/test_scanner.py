import asyncio

from fakes import FakeSender

from govee_lan_protocol import LAN_MULTICAST_ADDRESS, SCAN_PORT, ScanBroadcaster, ScanScheduler


def test_scan_is_sent_to_multicast_group() -> None:
    async def _run() -> None:
        sender = FakeSender()
        broadcaster = ScanBroadcaster(sender)

        assert await broadcaster.send_scan() is True

        assert sender.sent_to_port(SCAN_PORT) == [
            ({"msg": {"cmd": "scan", "data": {"account_topic": "reserve"}}}, (LAN_MULTICAST_ADDRESS, SCAN_PORT)),
        ]

    asyncio.run(_run())


def test_one_scan_at_startup_and_one_per_period() -> None:
    async def _run() -> None:
        sender = FakeSender()
        scheduler = ScanScheduler(ScanBroadcaster(sender), scan_interval=0.2)

        scheduler.start()
        # three full periods plus half a period of slack
        await asyncio.sleep(0.7)
        await scheduler.stop()

        assert scheduler.broadcaster.scan_count == 4
        assert all(addr == (LAN_MULTICAST_ADDRESS, SCAN_PORT) for _, addr in sender.sent)

    asyncio.run(_run())


def test_stop_ends_scanning() -> None:
    async def _run() -> None:
        sender = FakeSender()
        scheduler = ScanScheduler(ScanBroadcaster(sender), scan_interval=0.05)

        scheduler.start()
        await asyncio.sleep(0.01)
        await scheduler.stop()
        count = len(sender.sent)
        await asyncio.sleep(0.15)

        assert not scheduler.running
        assert len(sender.sent) == count

    asyncio.run(_run())


def test_scheduler_keeps_firing_after_send_failures() -> None:
    async def _run() -> None:
        sender = FakeSender(fail_to=[LAN_MULTICAST_ADDRESS])
        scheduler = ScanScheduler(ScanBroadcaster(sender), scan_interval=0.05)

        scheduler.start()
        await asyncio.sleep(0.12)
        await scheduler.stop()

        assert len(sender.attempts) >= 2
        assert sender.sent == []

    asyncio.run(_run())


def test_start_is_idempotent() -> None:
    async def _run() -> None:
        sender = FakeSender()
        scheduler = ScanScheduler(ScanBroadcaster(sender), scan_interval=10.0)

        scheduler.start()
        scheduler.start()
        await asyncio.sleep(0.01)
        await scheduler.stop()

        assert len(sender.sent) == 1

    asyncio.run(_run())
