# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Constants used by this package"""

SSDP_BROADCAST_ADDRESS = "239.235.255.250"
"""The default multicast address that search requests are sent to."""

SSDP_PORT = 9000
"""The default UDP port, used both to send search requests and to listen for responses."""

SSDP_SEARCH_METHOD = "M-SEARCH"
"""The request method of an SSDP search."""

SSDP_DISCOVER_MAN = '"ssdp:discover"'
"""The value of the 'man' header in a search request. The quotes are part of the value."""

MAX_DATAGRAM_SIZE = 65507
"""The largest UDP payload that can be received over IPv4."""
