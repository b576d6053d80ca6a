#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Simple utility functions used by this package
"""

from __future__ import annotations

from typing_extensions import SupportsIndex

import re

from ssdp_discovery.internal_types import *

from email.parser import BytesHeaderParser
from email.message import Message as EmailParserMessage
from requests.structures import CaseInsensitiveDict

_folded_line_re = re.compile(r'\r?\n[ \t]+')

def split_bytes_at_lf_or_crlf(data: bytes, maxsplit: SupportsIndex = -1) -> List[bytes]:
    """Split a byte string at LF or CRLF.

    If maxsplit is given, at most maxsplit splits are done.

    Returns a List[bytes] representing the delimited lines with the delimiters removed.
    """
    parts = data.split(b'\n', maxsplit)
    if len(parts) > 1:
        for i, part in enumerate(parts[:-1]):
            if part.endswith(b'\r'):
                parts[i] = part[:-1]
    return parts

def split_headers_and_body(data: bytes) -> Tuple[bytes, bytes]:
    """Splits a byte string with HTTP headers and an optional body into the headers and the body.

    A relaxed interpretation of '\n' as a line delimiter is accepted even though '\r\n' is required
    by the standard.

    Returns a Tuple[headers: bytes, body: bytes]. If there is no body, b'' is returned for the body.
    """
    delims = [b'\n\r\n', b'\n\n']
    first_i = -1
    first_nb = 0

    for delim in delims:
        i = data.find(delim)
        if i != -1:
            if first_i == -1 or i < first_i:
                first_i = i
                first_nb = len(delim)
    if first_i == -1:
        headers, body = data, b''
    else:
        headers, body = data[:first_i], data[first_i + first_nb:]
        if headers.endswith(b'\r'):
            headers = headers[:-1]

    return (headers, body)

def parse_http_headers(data: bytes) -> Tuple[CaseInsensitiveDict[str], bytes]:
    """Parse HTTP-style headers out of a byte string. Also returns the body of the message, if any.

    A relaxed interpretation of '\n' as a line delimiter is accepted even though '\r\n' is required
    by the standard.  The final line of the headers does not need to be terminated by a newline. If
    there is a body, it is separated from the headers with '\r\n\r\n', '\n\n', '\r\n\n', or '\r\n\n'.

    It is assumed that any preceding statement line (e.g., "HTTP/1.1 200 OK\r\n") has already been removed.

    Folded header lines are unfolded and surrounding whitespace is stripped from values. If a header
    appears more than once, the first occurrence wins.

    Raises ValueError if the header block contains a line that is not a header, or if a header value
    is not valid UTF-8.

    Returns a tuple of (headers: CaseInsensitiveDict[str], body: bytes).
    """

    headers_data, body = split_headers_and_body(data)
    i = 0

    # Normalize the header line endings to '\r\n'
    while True:
        i = headers_data.find(b'\n', i)
        if i == -1:
            break
        if i == 0 or headers_data[i - 1] != ord('\r'):
            headers_data = headers_data[:i] + b'\r' + headers_data[i:]
            i += 2
        else:
            i += 1

    msg: EmailParserMessage = BytesHeaderParser().parsebytes(headers_data)
    if len(msg.defects) > 0:
        raise ValueError(f"Malformed header block: {', '.join(type(d).__name__ for d in msg.defects)}")
    if not msg.get_unixfrom() is None:
        # the email parser swallows a leading "From " line as an mbox envelope
        raise ValueError(f"Malformed header line: {msg.get_unixfrom()!r}")
    headers: CaseInsensitiveDict[str] = CaseInsensitiveDict()
    for name, raw_value in msg.raw_items():
        # The email parser decodes with surrogateescape; recover the original bytes.
        value = raw_value.encode('ascii', 'surrogateescape').decode('utf-8')
        value = _folded_line_re.sub(' ', value).strip()
        if not name in headers:
            headers[name] = value
    return (headers, body)

def encode_http_header(name: str, value: str) -> bytes:
    """Encodes a raw HTTP header name/value pair into an ASCII byte string.

    No line wrapping is performed. An empty value is encoded as "<name>:" with no trailing space.
    The result is terminated with '\r\n'.

    Raises ValueError if the name or value contains a line break, or UnicodeEncodeError if either
    is not ASCII.
    """
    if '\r' in name or '\n' in name or '\r' in value or '\n' in value:
        raise ValueError(f"Header {name!r} contains a line break")
    if value == '':
        return name.encode('ascii') + b':\r\n'
    return name.encode('ascii') + b': ' + value.encode('ascii') + b'\r\n'
