#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
SearchResponse -- a decoded reply to an SSDP M-SEARCH request.
"""

from __future__ import annotations

import re
import datetime
from urllib.parse import urlsplit, SplitResult

from ssdp_discovery.internal_types import *
from .pkg_logging import logger
from .exceptions import ParseError
from .ssdp_message import SsdpMessage
from .util import CaseInsensitiveDict

_response_statement_re = re.compile(r'^HTTP/(?P<version_major>[0-9]+)\.(?P<version_minor>[0-9]+) +(?P<status_code>[0-9]{3})(?: +(?P<status>.*?))? *$')

class SearchResponse:
    """The search response from a device implementing SSDP. Headers that were not present
       in the response are left as '' (or None for location and date)."""

    cache_control: str
    """The 'cache-control' header"""

    server: str
    """The 'server' header"""

    st: str
    """The 'st' (search target) header"""

    ext: str
    """The 'ext' header"""

    usn: str
    """The 'usn' (unique service name) header"""

    location: Optional[str]
    """The 'location' header, the absolute URL of the device description, or None if absent"""

    date: Optional[datetime.datetime]
    """The 'date' header as a timezone-aware datetime, or None if absent"""

    responder_address: HostAndPort
    """The source address of the datagram that carried this response"""

    status_code: int
    """The status code in the statement line (e.g. 200)"""

    status: str
    """The reason phrase in the statement line (e.g. "OK"). May be ''."""

    headers: CaseInsensitiveDict[str]
    """All headers in the response"""

    def __init__(
            self,
            responder_address: HostAndPort,
            cache_control: str='',
            server: str='',
            st: str='',
            ext: str='',
            usn: str='',
            location: Optional[str]=None,
            date: Optional[datetime.datetime]=None,
            status_code: int=200,
            status: str='OK',
            headers: Optional[Mapping[str, str]]=None,
          ) -> None:
        self.responder_address = responder_address
        self.cache_control = cache_control
        self.server = server
        self.st = st
        self.ext = ext
        self.usn = usn
        self.location = location
        self.date = date
        self.status_code = status_code
        self.status = status
        self.headers = CaseInsensitiveDict(headers or {})

    @property
    def location_url(self) -> Optional[SplitResult]:
        """The parsed location URL, or None if there is no location"""
        return None if self.location is None else urlsplit(self.location)

    def as_json_data(self) -> JsonableDict:
        return {
            "responder_address": f"{self.responder_address[0]}:{self.responder_address[1]}",
            "status_code": self.status_code,
            "status": self.status,
            "cache_control": self.cache_control,
            "server": self.server,
            "st": self.st,
            "ext": self.ext,
            "usn": self.usn,
            "location": self.location,
            "date": None if self.date is None else self.date.isoformat(),
        }

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SearchResponse):
            return False
        return (self.responder_address == other.responder_address and
                self.as_json_data() == other.as_json_data())

    def __str__(self) -> str:
        return f"SearchResponse(from={self.responder_address}, st={self.st!r}, usn={self.usn!r}, location={self.location!r})"

    def __repr__(self) -> str:
        return str(self)

def parse_location(value: str) -> str:
    """Validates that a location header value is an absolute URL.

    Raises ParseError if it is not.
    """
    try:
        url = urlsplit(value)
        # Accessing port validates it
        url.port
    except ValueError as e:
        raise ParseError(f"Invalid location URL {value!r}: {e}") from e
    if url.scheme == '' or url.netloc == '':
        raise ParseError(f"Location {value!r} is not an absolute URL")
    return value

_http_date_formats = (
    '%a, %d %b %Y %H:%M:%S GMT',    # RFC 1123
    '%A, %d-%b-%y %H:%M:%S GMT',    # RFC 850
    '%a %b %d %H:%M:%S %Y',         # asctime
  )

def parse_http_date(value: str) -> datetime.datetime:
    """Parses an HTTP date in RFC 1123, RFC 850, or asctime format. The result is in UTC.

    Raises ParseError if the value is not in one of those formats.
    """
    for date_format in _http_date_formats:
        try:
            result = datetime.datetime.strptime(value, date_format)
        except ValueError:
            continue
        return result.replace(tzinfo=datetime.timezone.utc)
    raise ParseError(f"Invalid date {value!r}")

def parse_search_response(data: bytes, responder_address: HostAndPort) -> SearchResponse:
    """Parses the raw contents of a UDP datagram as an HTTP-style search response.

    Any body is ignored. Missing headers are not an error.

    Raises ParseError if the datagram is not an HTTP response, if its header block is malformed,
    or if a location or date header is present but invalid.
    """
    try:
        message = SsdpMessage(raw_data=data)
    except ValueError as e:
        raise ParseError(f"Malformed response from {responder_address}: {e}") from e

    m = _response_statement_re.match(message.statement_line)
    if not m:
        raise ParseError(f"Malformed response status line from {responder_address}: {message.statement_line!r}")

    location: Optional[str] = None
    location_value = message.get_header('location')
    if location_value != '':
        location = parse_location(location_value)

    date: Optional[datetime.datetime] = None
    date_value = message.get_header('date')
    if date_value != '':
        date = parse_http_date(date_value)

    response = SearchResponse(
        responder_address,
        cache_control=message.get_header('cache-control'),
        server=message.get_header('server'),
        st=message.get_header('st'),
        ext=message.get_header('ext'),
        usn=message.get_header('usn'),
        location=location,
        date=date,
        status_code=int(m.group('status_code')),
        status=m.group('status') or '',
        headers=message.headers,
      )
    logger.debug(f"Parsed search response from {responder_address}: {response}")
    return response
