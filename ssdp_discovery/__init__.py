# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Package ssdp_discovery implements a client for the Simple Service Discovery Protocol (SSDP).

SSDP is the UDP multicast discovery mechanism underlying UPnP. A client multicasts an
HTTP-shaped M-SEARCH request; devices that match the requested search target reply with
a unicast HTTP-shaped response whose 'location' header points at an XML device description.

This package performs one bounded, blocking discovery round at a time: it sends the request,
collects responses until a deadline, and optionally fetches and decodes each unique device
description. It does not respond to searches or send NOTIFY advertisements.

"""

from .version import __version__

from .internal_types import Jsonable, JsonableDict, HostAndPort

from .exceptions import (
    SsdpError,
    ConfigError,
    AddressResolutionError,
    SerializationError,
    BindError,
    SendError,
    ReceiveError,
    ParseError,
    FetchError,
    DecodeError,
  )

from .config import DiscoveryConfig
from .search_target import SearchTarget, SearchTargetLike, search_target_token
from .ssdp_message import SsdpMessage
from .request import build_search_request, resolve_broadcast_address
from .response import SearchResponse, parse_search_response
from .description import (
    DeviceDescription,
    SpecVersion,
    Icon,
    parse_device_description,
    fetch_device_description,
  )
from .client import SsdpClient, unique_locations
from .util import CaseInsensitiveDict
from .constants import SSDP_BROADCAST_ADDRESS, SSDP_PORT

__all__ = [
    '__version__',
    'Jsonable', 'JsonableDict', 'HostAndPort',
    'SsdpError', 'ConfigError', 'AddressResolutionError', 'SerializationError', 'BindError',
    'SendError', 'ReceiveError', 'ParseError', 'FetchError', 'DecodeError',
    'DiscoveryConfig',
    'SearchTarget', 'SearchTargetLike', 'search_target_token',
    'SsdpMessage',
    'build_search_request', 'resolve_broadcast_address',
    'SearchResponse', 'parse_search_response',
    'DeviceDescription', 'SpecVersion', 'Icon', 'parse_device_description', 'fetch_device_description',
    'SsdpClient', 'unique_locations',
    'CaseInsensitiveDict',
    'SSDP_BROADCAST_ADDRESS', 'SSDP_PORT',
]
