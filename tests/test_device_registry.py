from govee_lan_protocol import DeviceRecord, DeviceRegistry


def _record(device_id: str, ip: str, sku: str = "H6159") -> DeviceRecord:
    return DeviceRecord(device_id, sku, ip)


def test_add_is_insert_only() -> None:
    registry = DeviceRegistry()

    assert registry.add(_record("dev-1", "10.0.0.5")) is True
    assert registry.add(_record("dev-1", "10.0.0.9")) is False

    assert len(registry) == 1
    assert registry.find_by_id("dev-1").ip == "10.0.0.5"


def test_find_by_address_returns_first_registered_match() -> None:
    registry = DeviceRegistry()
    registry.add(_record("dev-1", "10.0.0.5"))
    registry.add(_record("dev-2", "10.0.0.5"))

    assert registry.find_by_address("10.0.0.5").device_id == "dev-1"
    assert registry.find_by_address("10.0.0.6") is None


def test_remove_is_idempotent() -> None:
    registry = DeviceRegistry()
    registry.add(_record("dev-1", "10.0.0.5"))

    assert registry.remove("dev-1").device_id == "dev-1"
    assert registry.remove("dev-1") is None
    assert "dev-1" not in registry
    assert registry.find_by_id("dev-1") is None


def test_from_scan_data_keeps_extra_fields() -> None:
    data = {"device": "dev-1", "sku": "H6159", "ip": "10.0.0.5", "wifiVersionSoft": "1.02.03"}

    record = DeviceRecord.from_scan_data(data, src_ip="10.0.0.99")

    assert record is not None
    assert record.ip == "10.0.0.5"
    assert record.data["wifiVersionSoft"] == "1.02.03"


def test_from_scan_data_uses_source_address_without_ip() -> None:
    record = DeviceRecord.from_scan_data({"device": "dev-1", "sku": "H6159"}, src_ip="10.0.0.99")

    assert record is not None
    assert record.ip == "10.0.0.99"


def test_from_scan_data_requires_device_and_sku() -> None:
    assert DeviceRecord.from_scan_data({"sku": "H6159", "ip": "10.0.0.5"}) is None
    assert DeviceRecord.from_scan_data({"device": "dev-1", "ip": "10.0.0.5"}) is None


def test_iteration_is_a_snapshot() -> None:
    registry = DeviceRegistry()
    registry.add(_record("dev-1", "10.0.0.5"))
    registry.add(_record("dev-2", "10.0.0.6"))

    for record in registry:
        registry.remove(record.device_id)

    assert len(registry) == 0
    assert registry.device_ids() == []
