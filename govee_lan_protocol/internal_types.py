#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints used internally by this package"""

from __future__ import annotations

from typing import (
    Dict, List, Optional, Union, Any, TypeVar, Tuple, overload,
    Callable, Awaitable, Iterable, Iterator, AsyncIterator, AsyncIterable,
    Mapping, MutableMapping, Sequence, Set, AsyncContextManager,
    Protocol, TYPE_CHECKING,
  )

from typing_extensions import Self
from types import TracebackType

Jsonable = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
"""A type hint for a simple JSON-serializable value; i.e., str, int, float, bool, None, Dict[str, Jsonable], List[Jsonable]"""

JsonableDict = Dict[str, Jsonable]
"""A type hint for a simple JSON-serializable dict; i.e., Dict[str, Jsonable]"""

JsonableTypes = (str, int, float, bool, dict, list)
"""A tuple of the non-None types that can appear in Jsonable values; useful with isinstance()"""

HostAndPort = Tuple[str, int]
"""A type hint for an (ip_address, port) socket address"""
