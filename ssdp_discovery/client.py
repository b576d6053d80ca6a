# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SsdpClient -- A blocking SSDP client that can:

  1. Send an M-SEARCH request to a multicast UDP address (by default 239.235.255.250:9000)
  2. Receive and decode search responses from remote nodes until a deadline expires
  3. Fetch and decode the device description at each unique response location
"""

from __future__ import annotations

import socket
import time
from concurrent.futures import ThreadPoolExecutor, Future, wait, FIRST_EXCEPTION

import requests

from ssdp_discovery.internal_types import *
from .pkg_logging import logger
from .exceptions import BindError, SendError, ReceiveError
from .config import DiscoveryConfig
from .search_target import SearchTarget, SearchTargetLike
from .request import build_search_request
from .response import SearchResponse, parse_search_response
from .description import DeviceDescription, fetch_device_description

SocketFactory = Callable[[], socket.socket]
"""Creates an unbound UDP socket (or an object with the same interface)."""

def create_udp_socket() -> socket.socket:
    return socket.socket(socket.AF_INET, socket.SOCK_DGRAM, socket.IPPROTO_UDP)

def unique_locations(responses: Iterable[SearchResponse]) -> List[str]:
    """Returns the distinct location URLs in a sequence of responses, in the order they
       were first seen. Responses without a location are skipped."""
    return list(dict.fromkeys(r.location for r in responses if not r.location is None))

class SsdpClient:
    """
    A blocking SSDP client. Each call to search() or search_devices() opens, uses, and
    closes its own socket, so an instance may be reused and shared; its configuration
    never changes.
    """

    config: DiscoveryConfig
    """The discovery parameters used by every search"""

    socket_factory: SocketFactory
    """Creates the UDP socket used for each search"""

    session: Optional[requests.Session] = None
    """The HTTP session used to fetch device descriptions. If None, a session is created
       for each batch of fetches."""

    def __init__(
            self,
            config: Optional[DiscoveryConfig]=None,
            socket_factory: Optional[SocketFactory]=None,
            session: Optional[requests.Session]=None,
            **options: Any
          ) -> None:
        """Create an SSDP client.

        Parameters:
            config:         The discovery configuration. Defaults to DiscoveryConfig().
            socket_factory: A callable returning a new unbound UDP socket. Defaults to
                              create_udp_socket.
            session:        The requests.Session used to fetch device descriptions.
            options:        Overrides applied to config; e.g., timeout_ms=2000.
        """
        if config is None:
            config = DiscoveryConfig()
        if len(options) > 0:
            config = config.with_options(**options)
        self.config = config
        self.socket_factory = create_udp_socket if socket_factory is None else socket_factory
        self.session = session

    def _open_socket(self) -> socket.socket:
        bind_addr = ('0.0.0.0', self.config.port)
        try:
            sock = self.socket_factory()
        except OSError as e:
            raise BindError(f"Unable to create UDP socket: {e}") from e
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind(bind_addr)
        except OSError as e:
            sock.close()
            raise BindError(f"Unable to bind UDP socket to {bind_addr[0]}:{bind_addr[1]}: {e}") from e
        logger.debug(f"Bound UDP socket to {bind_addr}")
        return sock

    def _receive_datagram(self, sock: socket.socket, end_time: float) -> Optional[Tuple[bytes, HostAndPort]]:
        """Waits for the next datagram until end_time (a time.monotonic() value).

        Returns a Tuple[data: bytes, addr: HostAndPort], or None if the deadline was reached.
        Raises ReceiveError on any other failure.
        """
        remaining_time = end_time - time.monotonic()
        if remaining_time <= 0.0:
            return None
        try:
            sock.settimeout(remaining_time)
            data, addr = sock.recvfrom(self.config.recv_buffer_size)
        except socket.timeout:
            return None
        except OSError as e:
            raise ReceiveError(f"Error receiving search response: {e}") from e
        return (data, (addr[0], addr[1]))

    def _collect_responses(self, sock: socket.socket, end_time: float) -> List[SearchResponse]:
        responses: List[SearchResponse] = []
        while True:
            received = self._receive_datagram(sock, end_time)
            if received is None:
                break
            data, addr = received
            logger.debug(f"Received {len(data)} byte datagram from {addr}")
            responses.append(parse_search_response(data, addr))
        logger.debug(f"Response deadline reached; {len(responses)} response(s) received")
        return responses

    def search(self, search_target: SearchTargetLike=SearchTarget.ALL) -> List[SearchResponse]:
        """Sends a search request and returns all responses received before the configured
           timeout elapses, in the order they arrived.

        Parameters:
            search_target:  A SearchTarget, or a raw search target token string such as
                              "upnp:rootdevice". Defaults to SearchTarget.ALL.

        Raises BindError, AddressResolutionError, SerializationError, SendError,
        ReceiveError, or ParseError. No partial results are returned.
        """
        sock = self._open_socket()
        try:
            request_bytes, broadcast_addr = build_search_request(self.config, search_target)
            try:
                sock.sendto(request_bytes, broadcast_addr)
            except OSError as e:
                raise SendError(f"Unable to send search request to {broadcast_addr[0]}:{broadcast_addr[1]}: {e}") from e
            logger.debug(f"Sent search request to {broadcast_addr}; waiting {self.config.timeout} seconds for responses")
            end_time = time.monotonic() + self.config.timeout
            return self._collect_responses(sock, end_time)
        finally:
            sock.close()

    def fetch_devices(self, locations: Sequence[str]) -> List[DeviceDescription]:
        """Fetches and decodes the device description at each location, returning them in
           the same order.

        Raises FetchError or DecodeError for the first location that fails; no partial results
        are returned.
        """
        if self.session is None:
            with requests.Session() as session:
                return self._fetch_devices(session, locations)
        return self._fetch_devices(self.session, locations)

    def _fetch_devices(self, session: requests.Session, locations: Sequence[str]) -> List[DeviceDescription]:
        fetch_timeout = self.config.fetch_timeout
        max_workers = min(self.config.max_fetch_workers, len(locations))
        if max_workers <= 1:
            return [ fetch_device_description(location, session=session, timeout=fetch_timeout) for location in locations ]

        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix='ssdp-fetch') as executor:
            futures: List[Future[DeviceDescription]] = [
                executor.submit(fetch_device_description, location, session, fetch_timeout) for location in locations
            ]
            done, not_done = wait(futures, return_when=FIRST_EXCEPTION)
            for future in not_done:
                future.cancel()
            for future in futures:
                if future in done and not future.exception() is None:
                    logger.debug(f"Device description fetch failed; cancelled {len(not_done)} pending fetch(es)")
                    raise future.exception()  # type: ignore[misc]
        return [ future.result() for future in futures ]

    def search_devices(self, search_target: SearchTargetLike=SearchTarget.ALL) -> List[DeviceDescription]:
        """Searches for devices, then fetches the device description at each unique location
           found in the responses. Each location is fetched exactly once.

        Raises any error that search() or fetch_devices() raises. No partial results are returned.
        """
        responses = self.search(search_target)
        locations = unique_locations(responses)
        logger.debug(f"Fetching {len(locations)} device description(s) from {len(responses)} response(s)")
        return self.fetch_devices(locations)
