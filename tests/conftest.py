#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""In-process stand-ins for UDP sockets and HTTP sessions."""

from __future__ import annotations

import socket
import threading
import time
from collections import deque

import pytest
import requests

from ssdp_discovery.internal_types import *

PEER_ADDR = ("10.0.0.5", 9000)

DESCRIPTION_XML = b"""<?xml version="1.0"?>
<root xmlns="urn:schemas-upnp-org:device-1-0">
  <specVersion>
    <major>1</major>
    <minor>0</minor>
  </specVersion>
  <URLBase>http://10.0.0.5:80/</URLBase>
  <device>
    <deviceType>urn:schemas-upnp-org:device:MediaRenderer:1</deviceType>
    <friendlyName>Living Room</friendlyName>
    <manufacturer>Acme</manufacturer>
    <manufacturerURL>http://www.acme.example/</manufacturerURL>
    <modelDescription>Acme Renderer</modelDescription>
    <modelName>R100</modelName>
    <modelNumber>100</modelNumber>
    <modelURL>http://www.acme.example/r100</modelURL>
    <serialNumber>SN-0001</serialNumber>
    <UDN>uuid:123</UDN>
    <UPC>012345678905</UPC>
    <iconList>
      <icon>
        <mimetype>image/png</mimetype>
        <width>48</width>
        <height>48</height>
        <depth>24</depth>
        <url>/icon48.png</url>
      </icon>
      <icon>
        <mimetype>image/jpeg</mimetype>
        <width> 120 </width>
        <height>120</height>
        <depth>24</depth>
        <url>/icon120.jpg</url>
      </icon>
    </iconList>
    <presentationURL>/index.html</presentationURL>
  </device>
</root>
"""

def make_response(location: Optional[str]=None, usn: str="uuid:123", st: str="ssdp:all") -> bytes:
    lines = [ "HTTP/1.1 200 OK", f"st: {st}", f"usn: {usn}" ]
    if not location is None:
        lines.append(f"location: {location}")
    return ("\r\n".join(lines) + "\r\n\r\n").encode('ascii')

class FakeUdpSocket:
    """Mimics the parts of socket.socket used by SsdpClient.

    Incoming items are either (data, addr) tuples or exceptions to raise from recvfrom().
    When no items remain, recvfrom() raises socket.timeout; if honor_timeout is True it
    first sleeps for the current timeout, as a real socket would.
    """

    def __init__(
            self,
            incoming: Iterable[Union[Tuple[bytes, HostAndPort], BaseException]]=(),
            honor_timeout: bool=False,
            bind_error: Optional[OSError]=None,
            send_error: Optional[OSError]=None,
          ):
        self.incoming = deque(incoming)
        self.honor_timeout = honor_timeout
        self.bind_error = bind_error
        self.send_error = send_error
        self.bound_addr: Optional[HostAndPort] = None
        self.sent: List[Tuple[bytes, HostAndPort]] = []
        self.sockopts: List[Tuple[int, int, int]] = []
        self.timeouts: List[Optional[float]] = []
        self.recv_calls = 0
        self.closed = False

    def setsockopt(self, level: int, optname: int, value: int) -> None:
        self.sockopts.append((level, optname, value))

    def bind(self, addr: HostAndPort) -> None:
        if not self.bind_error is None:
            raise self.bind_error
        self.bound_addr = addr

    def sendto(self, data: bytes, addr: HostAndPort) -> int:
        if not self.send_error is None:
            raise self.send_error
        self.sent.append((data, addr))
        return len(data)

    def settimeout(self, value: Optional[float]) -> None:
        self.timeouts.append(value)

    def recvfrom(self, bufsize: int) -> Tuple[bytes, HostAndPort]:
        self.recv_calls += 1
        if len(self.incoming) > 0:
            item = self.incoming.popleft()
            if isinstance(item, BaseException):
                raise item
            data, addr = item
            return (data[:bufsize], addr)
        if self.honor_timeout and len(self.timeouts) > 0 and not self.timeouts[-1] is None:
            time.sleep(self.timeouts[-1])
        raise socket.timeout("timed out")

    def close(self) -> None:
        self.closed = True

class FakeHttpResponse:
    def __init__(self, content: bytes, status_code: int=200):
        self.content = content
        self.status_code = status_code

class FakeSession:
    """Mimics requests.Session.get(). `documents` maps URLs to a response body, a
       FakeHttpResponse, or an exception to raise."""

    def __init__(self, documents: Mapping[str, Union[bytes, FakeHttpResponse, BaseException]]):
        self.documents = dict(documents)
        self.requested: List[str] = []
        self.timeouts: List[Optional[float]] = []
        self._lock = threading.Lock()

    def get(self, url: str, timeout: Optional[float]=None) -> FakeHttpResponse:
        with self._lock:
            self.requested.append(url)
            self.timeouts.append(timeout)
        if not url in self.documents:
            raise requests.ConnectionError(f"Connection refused: {url}")
        document = self.documents[url]
        if isinstance(document, BaseException):
            raise document
        if isinstance(document, FakeHttpResponse):
            return document
        return FakeHttpResponse(document)

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, *args: Any) -> None:
        pass

@pytest.fixture
def peer_addr() -> HostAndPort:
    return PEER_ADDR

@pytest.fixture
def description_xml() -> bytes:
    return DESCRIPTION_XML
