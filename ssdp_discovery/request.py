#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Construction of SSDP M-SEARCH request datagrams.
"""

from __future__ import annotations

import socket

from ssdp_discovery.internal_types import *
from .pkg_logging import logger
from .exceptions import AddressResolutionError, SerializationError
from .constants import SSDP_SEARCH_METHOD, SSDP_DISCOVER_MAN
from .config import DiscoveryConfig
from .search_target import SearchTargetLike, search_target_token
from .ssdp_message import SsdpMessage

def resolve_broadcast_address(config: DiscoveryConfig) -> HostAndPort:
    """Resolves the configured broadcast address and port into an IPv4 socket address.

    Raises AddressResolutionError if the address cannot be resolved.
    """
    try:
        addrinfo = socket.getaddrinfo(
            config.broadcast_address, config.port, socket.AF_INET, socket.SOCK_DGRAM)[0]
    except (socket.gaierror, UnicodeError, IndexError) as e:
        raise AddressResolutionError(
            f"Unable to resolve broadcast address {config.broadcast_address}:{config.port}: {e}") from e
    host, port = addrinfo[4][:2]
    return (host, port)

def build_search_message(config: DiscoveryConfig, search_target: SearchTargetLike, broadcast_addr: HostAndPort) -> SsdpMessage:
    """Builds an M-SEARCH message addressed to broadcast_addr. Headers are kept in the order
       they appear on the wire."""
    message = SsdpMessage(f"{SSDP_SEARCH_METHOD} * HTTP/1.1")
    message['Host'] = f"{broadcast_addr[0]}:{broadcast_addr[1]}"
    message['User-Agent'] = ''
    message['st'] = search_target_token(search_target)
    message['man'] = SSDP_DISCOVER_MAN
    message['mx'] = str(config.mx)
    return message

def build_search_request(config: DiscoveryConfig, search_target: SearchTargetLike) -> Tuple[bytes, HostAndPort]:
    """Builds the raw bytes of an M-SEARCH request and the socket address it should be sent to.

    Raises AddressResolutionError if the broadcast address cannot be resolved, or
    SerializationError if the request cannot be encoded.

    Returns a Tuple[request_bytes: bytes, broadcast_addr: HostAndPort].
    """
    broadcast_addr = resolve_broadcast_address(config)
    message = build_search_message(config, search_target, broadcast_addr)
    try:
        request_bytes = message.raw_data
    except ValueError as e:
        raise SerializationError(f"Unable to encode search request {message}: {e}") from e
    # The request target must be a bare '*'; it must never be escaped or replaced by a path.
    if not request_bytes.startswith(f"{SSDP_SEARCH_METHOD} * HTTP/1.1\r\n".encode('ascii')):
        raise SerializationError(f"Search request line is malformed: {request_bytes!r}")
    logger.debug(f"Built search request for {broadcast_addr}: {request_bytes!r}")
    return (request_bytes, broadcast_addr)
