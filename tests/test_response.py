#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

import datetime

import pytest

from ssdp_discovery import ParseError, SearchResponse, parse_search_response

UTC = datetime.timezone.utc

def test_all_headers_round_trip(peer_addr):
    data = (
        b'HTTP/1.1 200 OK\r\n'
        b'cache-control: max-age=1800\r\n'
        b'server: Linux/5.10 UPnP/1.0 Acme/1.0\r\n'
        b'st: upnp:rootdevice\r\n'
        b'ext:\r\n'
        b'usn: uuid:123::upnp:rootdevice\r\n'
        b'location: http://10.0.0.5:80/desc.xml\r\n'
        b'date: Sun, 06 Nov 1994 08:49:37 GMT\r\n'
        b'\r\n'
    )
    response = parse_search_response(data, peer_addr)
    assert response.cache_control == "max-age=1800"
    assert response.server == "Linux/5.10 UPnP/1.0 Acme/1.0"
    assert response.st == "upnp:rootdevice"
    assert response.ext == ""
    assert response.usn == "uuid:123::upnp:rootdevice"
    assert response.location == "http://10.0.0.5:80/desc.xml"
    assert response.date == datetime.datetime(1994, 11, 6, 8, 49, 37, tzinfo=UTC)
    assert response.responder_address == peer_addr
    assert response.status_code == 200
    assert response.status == "OK"

def test_scenario_response(peer_addr):
    data = b'HTTP/1.1 200 OK\r\nst: ssdp:all\r\nusn: uuid:123\r\nlocation: http://10.0.0.5:80/desc.xml\r\n\r\n'
    response = parse_search_response(data, peer_addr)
    assert response.st == "ssdp:all"
    assert response.usn == "uuid:123"
    url = response.location_url
    assert url is not None
    assert (url.scheme, url.hostname, url.port, url.path) == ("http", "10.0.0.5", 80, "/desc.xml")
    assert response.responder_address == peer_addr

def test_missing_headers_are_empty(peer_addr):
    response = parse_search_response(b'HTTP/1.1 200 OK\r\n\r\n', peer_addr)
    assert response.cache_control == ""
    assert response.server == ""
    assert response.st == ""
    assert response.ext == ""
    assert response.usn == ""
    assert response.location is None
    assert response.location_url is None
    assert response.date is None
    assert response.responder_address == peer_addr

def test_header_names_are_case_insensitive(peer_addr):
    data = b'HTTP/1.1 200 OK\r\nST: ssdp:all\r\nUSN: uuid:abc\r\nLOCATION: http://h/d.xml\r\nCache-Control: max-age=60\r\n\r\n'
    response = parse_search_response(data, peer_addr)
    assert response.st == "ssdp:all"
    assert response.usn == "uuid:abc"
    assert response.location == "http://h/d.xml"
    assert response.cache_control == "max-age=60"
    assert response.headers['Cache-Control'] == "max-age=60"

def test_bare_lf_line_endings_and_no_terminating_blank_line(peer_addr):
    response = parse_search_response(b'HTTP/1.1 200 OK\nst: ssdp:all\nusn: uuid:1', peer_addr)
    assert response.st == "ssdp:all"
    assert response.usn == "uuid:1"

def test_body_is_ignored(peer_addr):
    response = parse_search_response(b'HTTP/1.1 200 OK\r\nst: ssdp:all\r\n\r\nnot: a header\r\n', peer_addr)
    assert response.st == "ssdp:all"
    assert not 'not' in response.headers

def test_first_repeated_header_wins(peer_addr):
    response = parse_search_response(b'HTTP/1.1 200 OK\r\nst: first\r\nST: second\r\n\r\n', peer_addr)
    assert response.st == "first"

def test_folded_header_is_unfolded(peer_addr):
    response = parse_search_response(b'HTTP/1.1 200 OK\r\nserver: Linux\r\n  UPnP/1.0\r\n\r\n', peer_addr)
    assert response.server == "Linux UPnP/1.0"

def test_status_without_reason_phrase(peer_addr):
    response = parse_search_response(b'HTTP/1.0 200\r\nst: ssdp:all\r\n\r\n', peer_addr)
    assert response.status_code == 200
    assert response.status == ""

@pytest.mark.parametrize("date_value", [
    "Sun, 06 Nov 1994 08:49:37 GMT",
    "Sunday, 06-Nov-94 08:49:37 GMT",
    "Sun Nov  6 08:49:37 1994",
])
def test_http_date_formats(peer_addr, date_value):
    data = f'HTTP/1.1 200 OK\r\ndate: {date_value}\r\n\r\n'.encode('ascii')
    response = parse_search_response(data, peer_addr)
    assert response.date == datetime.datetime(1994, 11, 6, 8, 49, 37, tzinfo=UTC)

@pytest.mark.parametrize("date_value", [
    "yesterday-ish",
    "6 Nov 1994 08:49 +0200",
    "Sun, 06 Nov 94 08:49:37 GMT",
    "Sun, 06 Nov 1994 08:49:37 +0500",
    "06 Nov 1994 08:49:37",
    "Sun, 06 Nov 1994 08:49 GMT",
])
def test_invalid_date_is_an_error(peer_addr, date_value):
    data = f'HTTP/1.1 200 OK\r\ndate: {date_value}\r\n\r\n'.encode('ascii')
    with pytest.raises(ParseError):
        parse_search_response(data, peer_addr)

@pytest.mark.parametrize("location", [
    "/desc.xml",
    "not a url",
    "http://10.0.0.5:99999/desc.xml",
    "http://[10.0.0.5/desc.xml",
])
def test_invalid_location_is_an_error(peer_addr, location):
    data = f'HTTP/1.1 200 OK\r\nlocation: {location}\r\n\r\n'.encode('ascii')
    with pytest.raises(ParseError):
        parse_search_response(data, peer_addr)

def test_empty_location_is_ignored(peer_addr):
    response = parse_search_response(b'HTTP/1.1 200 OK\r\nlocation:\r\n\r\n', peer_addr)
    assert response.location is None

@pytest.mark.parametrize("data", [
    b'',
    b'garbage',
    b'M-SEARCH * HTTP/1.1\r\nst: ssdp:all\r\n\r\n',
    b'HTTP/1.1 OK\r\n\r\n',
    b'HTTP/x.y 200 OK\r\n\r\n',
])
def test_malformed_status_line_is_an_error(peer_addr, data):
    with pytest.raises(ParseError):
        parse_search_response(data, peer_addr)

@pytest.mark.parametrize("data", [
    b'HTTP/1.1 200 OK\r\nthis is not a header\r\nst: ssdp:all\r\n\r\n',
    b'HTTP/1.1 200 OK\r\nFrom nowhere\r\nst: ssdp:all\r\n\r\n',
])
def test_malformed_header_block_is_an_error(peer_addr, data):
    with pytest.raises(ParseError):
        parse_search_response(data, peer_addr)

def test_non_utf8_header_is_an_error(peer_addr):
    with pytest.raises(ParseError):
        parse_search_response(b'HTTP/1.1 200 OK\r\nserver: \xff\xfe\r\n\r\n', peer_addr)

def test_as_json_data(peer_addr):
    response = SearchResponse(peer_addr, st="ssdp:all", usn="uuid:1", location="http://10.0.0.5/d.xml")
    data = response.as_json_data()
    assert data["responder_address"] == "10.0.0.5:9000"
    assert data["location"] == "http://10.0.0.5/d.xml"
    assert data["date"] is None
