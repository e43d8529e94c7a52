#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Abstraction of a message envelope used in the Govee LAN protocol.

Every datagram exchanged with a device is a UTF-8 JSON object of the form:

    {"msg": {"cmd": "<command>", "data": { ... }}}
"""

from __future__ import annotations

import json

from .internal_types import *
from .exceptions import GoveeLanError
from .constants import CMD_SCAN, CMD_DEVICE_STATUS, SCAN_ACCOUNT_TOPIC

class LanMessage:
    """Wrapper for a single Govee LAN message envelope.

    This class provides parsing and formatting of the JSON envelope and convenient access
    to the command tag and the command data.
    """

    _cmd: str
    """The command tag; e.g., "scan", "devStatus", "turn", "brightness"."""

    _data: JsonableDict
    """The command data object."""

    _msg: JsonableDict
    """The complete "msg" object, including any fields other than cmd and data."""

    def __init__(
            self,
            cmd: Optional[str]=None,
            data: Optional[JsonableDict]=None,
            raw_data: Optional[bytes]=None,
          ):
        if raw_data is None:
            if cmd is None:
                raise ValueError("Either cmd or raw_data must be provided")
            if not isinstance(cmd, str):
                raise GoveeLanError(f"LanMessage: Expected cmd to be str, got {type(cmd)}")
            if data is None:
                data = {}
            if not isinstance(data, dict):
                raise GoveeLanError(f"LanMessage: Expected data to be dict, got {type(data)}")
            self._msg = dict(cmd=cmd, data=data)
            self._cmd = cmd
            self._data = data
        else:
            if not (cmd is None and data is None):
                raise ValueError("If raw_data is provided, cmd and data must be None")
            self._parse(raw_data)

    def _parse(self, raw_data: bytes) -> None:
        envelope = json.loads(raw_data)
        if not isinstance(envelope, dict):
            raise GoveeLanError(f"Expected JSON object envelope, got {type(envelope).__name__}")
        msg = envelope.get('msg')
        if not isinstance(msg, dict):
            raise GoveeLanError("Envelope has no 'msg' object")
        self._set_msg(msg)

    def _set_msg(self, msg: JsonableDict) -> None:
        cmd = msg.get('cmd')
        if not isinstance(cmd, str):
            raise GoveeLanError("Envelope has no 'cmd' string")
        data = msg.get('data', {})
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise GoveeLanError(f"Expected 'data' to be an object, got {type(data).__name__}")
        self._msg = msg
        self._cmd = cmd
        self._data = data

    @classmethod
    def from_params(cls, params: Mapping[str, Any]) -> LanMessage:
        """Creates a message whose "msg" object is a copy of a parameter mapping, as supplied by
           a device update caller; e.g., {"cmd": "turn", "data": {"value": 1}}. Fields other
           than cmd and data are sent as given.

        Raises GoveeLanError if params is not a mapping, has no "cmd" string, or has a "data"
        field that is not a mapping.
        """
        if not isinstance(params, Mapping):
            raise GoveeLanError(f"Command parameters must be a mapping, got {type(params).__name__}")
        msg: JsonableDict = dict(params)
        data = msg.get('data')
        if isinstance(data, Mapping):
            msg['data'] = dict(data)
        result = cls.__new__(cls)
        result._set_msg(msg)
        return result

    @classmethod
    def scan_request(cls) -> LanMessage:
        return cls(CMD_SCAN, dict(account_topic=SCAN_ACCOUNT_TOPIC))

    @classmethod
    def status_request(cls) -> LanMessage:
        return cls(CMD_DEVICE_STATUS, {})

    @property
    def cmd(self) -> str:
        return self._cmd

    @property
    def data(self) -> JsonableDict:
        return self._data

    @property
    def msg(self) -> JsonableDict:
        """The complete "msg" object of the envelope."""
        return self._msg

    @property
    def raw_data(self) -> bytes:
        """The encoded UDP datagram contents"""
        return json.dumps(self.to_jsonable(), separators=(',', ':')).encode('utf-8')

    def to_jsonable(self) -> JsonableDict:
        return dict(msg=self._msg)

    def __str__(self) -> str:
        return f"LanMessage(cmd='{self._cmd}', data={self._data})"

    def __repr__(self) -> str:
        return str(self)
