# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Configuration support.

A LanConfig is a JSON object; every property is optional and defaults to the value in constants.py:

  {
    "multicast_address": "239.255.255.250",
    "scan_port": 4001,
    "receiver_port": 4002,
    "device_port": 4003,
    "scan_interval": 5.0,
    "status_request_delay": 0.05,
    "bind_addresses": ["192.168.1.10"],   # or "auto" for every local non-loopback address
    "extra_lan_models": ["H6099"]
  }
"""

from __future__ import annotations

from typing import Optional, Dict, Any, List, TypeVar, Union, overload

import os
import json

from .internal_types import Jsonable, JsonableDict, JsonableTypes
from .exceptions import GoveeLanError
from .constants import (
    LAN_MULTICAST_ADDRESS,
    SCAN_PORT,
    RECEIVER_PORT,
    DEVICE_PORT,
    DEFAULT_SCAN_INTERVAL,
    DEFAULT_STATUS_REQUEST_DELAY,
  )
from .util import get_local_ip_addresses, is_ipv4_address

_T = TypeVar('_T')

class LanConfig:
  _json_data: JsonableDict
  _config_file: Optional[str] = None

  def __init__(self, json_data: Optional[JsonableDict]=None):
    self._json_data = {}
    if json_data is not None:
      self.load_json_data(json_data)

  @property
  def config_file(self) -> Optional[str]:
    """The fully qualified pathname of the configuration file from which this LanConfig
       originated, or None if not from a file"""
    return self._config_file

  def loads(self, config_text: str):
    json_data = json.loads(config_text)
    if not isinstance(json_data, dict):
      raise GoveeLanError(f"LanConfig: Expected config to be a JSON object, got {type(json_data)}")
    self.load_json_data(json_data)

  def load_json_data(self, json_data: JsonableDict):
    self._json_data = json.loads(json.dumps(json_data))
    self.validate()

  def load_file(self, pathname: str):
    config_file = os.path.abspath(os.path.expanduser(pathname))
    with open(config_file, encoding='utf-8') as f:
      config_text = f.read()
    self.loads(config_text)
    self._config_file = config_file

  @classmethod
  def from_file(cls, pathname: str) -> 'LanConfig':
    result = cls()
    result.load_file(pathname)
    return result

  def update(self, overrides: Dict[str, Any]):
    """Sets properties from a dict, ignoring values that are None."""
    json_data = dict(self._json_data)
    for k, v in overrides.items():
      if v is not None:
        json_data[k] = v
    self.load_json_data(json_data)

  def validate(self):
    for key in ('scan_port', 'receiver_port', 'device_port'):
      port = self.get_cfg_property_int(key, 0)
      if port < 0 or port > 65535:
        raise GoveeLanError(f"LanConfig: {key} out of range: {port}")
    if not is_ipv4_address(self.multicast_address):
      raise GoveeLanError(f"LanConfig: multicast_address is not an IPv4 address: {self.multicast_address}")
    if self.scan_interval <= 0.0:
      raise GoveeLanError(f"LanConfig: scan_interval must be positive, got {self.scan_interval}")
    if self.status_request_delay < 0.0:
      raise GoveeLanError(f"LanConfig: status_request_delay must not be negative, got {self.status_request_delay}")
    self.get_cfg_property_str_list('extra_lan_models', [])
    bind_addresses = self.get_cfg_property('bind_addresses', None)
    if isinstance(bind_addresses, list):
      for address in self.get_cfg_property_str_list('bind_addresses'):
        if not is_ipv4_address(address):
          raise GoveeLanError(f"LanConfig: bind address is not an IPv4 address: {address}")
    elif not bind_addresses is None and bind_addresses != 'auto':
      raise GoveeLanError(f"LanConfig: bind_addresses must be a list or \"auto\", got {bind_addresses!r}")

  _no_default = object()

  @overload
  def get_cfg_property(self, key: str, default: _T) -> Union[Jsonable, _T]: pass

  @overload
  def get_cfg_property(self, key: str) -> Jsonable: pass

  def get_cfg_property(self, key: str, default = _no_default):
    result = self._json_data.get(key, default)
    if result is self._no_default:
      raise KeyError(f"LanConfig: Property {key} does not exist and has no default")
    if not result is None and not isinstance(result, JsonableTypes):
      raise TypeError(f"LanConfig: Expected property {key} to be JSON-able, got {type(result)}")
    return result

  def get_cfg_property_str(self, key: str, default: Any=_no_default) -> str:
    result = self.get_cfg_property(key, default)
    if not isinstance(result, str):
      raise GoveeLanError(f"LanConfig: Expected property {key} to be str, got {type(result)}")
    return result

  def get_cfg_property_int(self, key: str, default: Any=_no_default) -> int:
    result = self.get_cfg_property(key, default)
    if not isinstance(result, int) or isinstance(result, bool):
      if isinstance(result, str):
        try:
          result = int(result)
        except ValueError:
          pass
    if not isinstance(result, int) or isinstance(result, bool):
      raise GoveeLanError(f"LanConfig: Expected property {key} to be int, got {type(result)}")
    return result

  def get_cfg_property_float(self, key: str, default: Any=_no_default) -> float:
    result = self.get_cfg_property(key, default)
    if isinstance(result, str):
      try:
        result = float(result)
      except ValueError:
        pass
    if not isinstance(result, (int, float)) or isinstance(result, bool):
      raise GoveeLanError(f"LanConfig: Expected property {key} to be a number, got {type(result)}")
    return float(result)

  def get_cfg_property_str_list(self, key: str, default: Any=_no_default) -> List[str]:
    result = self.get_cfg_property(key, default)
    if not isinstance(result, list) or not all(isinstance(x, str) for x in result):
      raise GoveeLanError(f"LanConfig: Expected property {key} to be a list of str, got {result!r}")
    return list(result)

  @property
  def multicast_address(self) -> str:
    return self.get_cfg_property_str('multicast_address', LAN_MULTICAST_ADDRESS)

  @property
  def scan_port(self) -> int:
    return self.get_cfg_property_int('scan_port', SCAN_PORT)

  @property
  def receiver_port(self) -> int:
    return self.get_cfg_property_int('receiver_port', RECEIVER_PORT)

  @property
  def device_port(self) -> int:
    return self.get_cfg_property_int('device_port', DEVICE_PORT)

  @property
  def scan_interval(self) -> float:
    return self.get_cfg_property_float('scan_interval', DEFAULT_SCAN_INTERVAL)

  @property
  def status_request_delay(self) -> float:
    return self.get_cfg_property_float('status_request_delay', DEFAULT_STATUS_REQUEST_DELAY)

  @property
  def extra_lan_models(self) -> List[str]:
    return self.get_cfg_property_str_list('extra_lan_models', [])

  @property
  def bind_addresses(self) -> List[str]:
    """The local addresses on which the multicast group is joined. Empty means the default interface.
       "auto" selects every local non-loopback IPv4 address."""
    value = self.get_cfg_property('bind_addresses', None)
    if value is None:
      return []
    if value == 'auto':
      return get_local_ip_addresses(include_loopback=False)
    return self.get_cfg_property_str_list('bind_addresses')

  def to_jsonable(self) -> JsonableDict:
    return dict(
        multicast_address=self.multicast_address,
        scan_port=self.scan_port,
        receiver_port=self.receiver_port,
        device_port=self.device_port,
        scan_interval=self.scan_interval,
        status_request_delay=self.status_request_delay,
        bind_addresses=self.get_cfg_property('bind_addresses', None),
        extra_lan_models=self.extra_lan_models,
      )
