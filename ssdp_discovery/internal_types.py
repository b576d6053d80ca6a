# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Type hints used internally by this package"""

from __future__ import annotations

from typing import (
    Dict, List, Optional, Union, Any, TypeVar, Tuple, overload,
    Callable, Iterable, Iterator, Mapping, MutableMapping, Sequence, Set,
    TYPE_CHECKING,
  )

from types import TracebackType

from typing_extensions import Self, TypeAlias

HostAndPort: TypeAlias = Tuple[str, int]
"""A (host, port) socket address tuple."""

JsonableTypes = (str, int, float, bool, dict, list)

Jsonable = Union[str, int, float, bool, None, Dict[str, Any], List[Any]]
JsonableDict = Dict[str, Jsonable]
JsonableList = List[Jsonable]
