import json

import pytest

from govee_lan_protocol import GoveeLanError, LanMessage


def test_scan_request_envelope() -> None:
    message = LanMessage.scan_request()

    assert json.loads(message.raw_data) == {"msg": {"cmd": "scan", "data": {"account_topic": "reserve"}}}


def test_status_request_has_empty_data() -> None:
    message = LanMessage.status_request()

    assert json.loads(message.raw_data) == {"msg": {"cmd": "devStatus", "data": {}}}


def test_parse_status_reply() -> None:
    raw = b'{"msg":{"cmd":"devStatus","data":{"onOff":1,"brightness":42}}}'

    message = LanMessage(raw_data=raw)

    assert message.cmd == "devStatus"
    assert message.data == {"onOff": 1, "brightness": 42}


def test_parse_missing_data_defaults_to_empty_object() -> None:
    message = LanMessage(raw_data=b'{"msg":{"cmd":"devStatus"}}')

    assert message.data == {}


@pytest.mark.parametrize(
    "raw",
    [
        b"\xff\xfe not json",
        b"[1, 2, 3]",
        b'{"cmd": "scan"}',
        b'{"msg": {"data": {}}}',
        b'{"msg": {"cmd": "scan", "data": [1]}}',
    ],
)
def test_parse_rejects_malformed_envelopes(raw: bytes) -> None:
    with pytest.raises(Exception):
        LanMessage(raw_data=raw)


def test_from_params_wraps_owner_command() -> None:
    message = LanMessage.from_params({"cmd": "brightness", "data": {"value": 50}})

    assert json.loads(message.raw_data) == {"msg": {"cmd": "brightness", "data": {"value": 50}}}


def test_from_params_requires_cmd() -> None:
    with pytest.raises(GoveeLanError):
        LanMessage.from_params({"data": {"value": 1}})


def test_from_params_keeps_extra_fields() -> None:
    params = {"cmd": "ptReal", "data": {"command": ["x"]}, "extra": 7}

    message = LanMessage.from_params(params)

    assert json.loads(message.raw_data) == {"msg": {"cmd": "ptReal", "data": {"command": ["x"]}, "extra": 7}}
    assert message.cmd == "ptReal"
    assert message.data == {"command": ["x"]}


def test_from_params_does_not_alias_owner_mapping() -> None:
    params = {"cmd": "brightness", "data": {"value": 50}}

    message = LanMessage.from_params(params)
    params["data"]["value"] = 10

    assert message.data == {"value": 50}


@pytest.mark.parametrize(
    "params",
    [
        {"data": {"value": 1}},
        {"cmd": 3, "data": {}},
        {"cmd": "turn", "data": [1, 2]},
        ["cmd", "turn"],
    ],
)
def test_from_params_rejects_malformed_params(params) -> None:
    with pytest.raises(GoveeLanError):
        LanMessage.from_params(params)
