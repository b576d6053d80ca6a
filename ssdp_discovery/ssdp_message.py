#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Abstraction of an HTTP-shaped message carried in a single SSDP UDP datagram.
"""

from __future__ import annotations

from ssdp_discovery.internal_types import *

from .util import (
    CaseInsensitiveDict,
    split_bytes_at_lf_or_crlf,
    parse_http_headers,
    encode_http_header,
)

class SsdpMessage(MutableMapping[str, str]):
    """Wrapper for a raw SSDP datagram.

    This class provides parsing and formatting of the HTTP-like packets and a dict-like,
    case-insensitive interface to the headers. Headers are serialized in insertion order.

    Parsing raises ValueError if the datagram is not UTF-8 or its header block is malformed.
    Serializing raises ValueError (including UnicodeEncodeError) if the message cannot be
    encoded as ASCII.
    """

    _raw_data: Optional[bytes] = None
    """The raw UDP datagram contents, or None if it has not been built since the last change"""

    _statement_line: str
    """The first line of the datagram; e.g., "HTTP/1.1 200 OK",
       "M-SEARCH * HTTP/1.1", etc."""

    _headers: CaseInsensitiveDict[str]
    """The headers as a CaseInsensitiveDict[str]."""

    _body: bytes
    """The body of the datagram, if any. If there is no body, b'' is returned."""

    def __init__(
            self,
            statement: Optional[str]=None,
            headers: Optional[Union[Mapping[str, str], Iterable[Tuple[str, str]]]]=None,
            body: Optional[bytes]=None,
            raw_data: Optional[bytes]=None,
          ):
        self._headers = CaseInsensitiveDict()
        if raw_data is None:
            if statement is None:
                raise ValueError("Either statement or raw_data must be provided")
            assert isinstance(statement, str)
            self._statement_line = statement
            self._body = b'' if body is None else body
            if not headers is None:
                self._headers.update(headers)
        else:
            assert isinstance(raw_data, bytes)
            if not (statement is None and headers is None and body is None):
                raise ValueError("If raw_data is provided, statement, headers, and body must be None")
            self._parse_raw_data(raw_data)

    def __str__(self) -> str:
        return f"SsdpMessage('{self._statement_line}', headers={dict(self._headers)}, body={self._body!r})"

    def __repr__(self) -> str:
        return str(self)

    @property
    def raw_data(self) -> bytes:
        """The raw UDP datagram contents. For a message that was not parsed from raw data,
           this is built on demand from the statement line, headers, and body."""
        if self._raw_data is None:
            self._raw_data = self._build_raw_data()
        return self._raw_data

    @property
    def statement_line(self) -> str:
        """The first line of the datagram; e.g., "HTTP/1.1 200 OK",
           "M-SEARCH * HTTP/1.1", etc."""
        return self._statement_line

    @statement_line.setter
    def statement_line(self, value: str) -> None:
        assert isinstance(value, str)
        self._statement_line = value
        self._raw_data = None

    @property
    def body(self) -> bytes:
        """The body of the datagram, if any. If there is no body, b'' is returned."""
        return self._body

    @body.setter
    def body(self, value: Optional[bytes]) -> None:
        self._body = b'' if value is None else value
        self._raw_data = None

    @property
    def headers(self) -> CaseInsensitiveDict[str]:
        """The headers as a CaseInsensitiveDict[str]. Modify headers through the message's
           own mapping interface so that raw_data is rebuilt."""
        return self._headers

    def get_header(self, name: str) -> str:
        """Returns the value of header `name` (case-insensitive), or '' if it is absent."""
        return self._headers.get(name, '')

    def __setitem__(self, key: str, value: str) -> None:
        assert isinstance(value, str)
        self._headers[key] = value
        self._raw_data = None

    def __getitem__(self, key: str) -> str:
        return self._headers[key]

    def __delitem__(self, key: str) -> None:
        del self._headers[key]
        self._raw_data = None

    def __iter__(self) -> Iterator[str]:
        return iter(self._headers)

    def __len__(self) -> int:
        return len(self._headers)

    def lower_items(self):
        """Like items(), but with all lowercase keys."""
        return self._headers.lower_items()

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, SsdpMessage):
            return False
        return (self._statement_line == other._statement_line and
                self._headers == other._headers and
                self._body == other._body)

    def _parse_raw_data(self, raw_data: bytes) -> None:
        statement_and_remainder = split_bytes_at_lf_or_crlf(raw_data, 1)
        self._statement_line = statement_and_remainder[0].decode('utf-8')
        headers_and_body = b'' if len(statement_and_remainder) < 2 else statement_and_remainder[1]
        self._headers, self._body = parse_http_headers(headers_and_body)
        self._raw_data = raw_data

    def _build_raw_data(self) -> bytes:
        """Build the raw data from the statement line, headers, and body."""
        raw_data = self._statement_line.encode('ascii') + b'\r\n'
        for k, v in self._headers.items():
            raw_data += encode_http_header(k, v)
        raw_data += b'\r\n'
        raw_data += self._body
        return raw_data
