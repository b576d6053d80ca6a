#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Well-known SSDP search targets (the value of the 'st' header)."""

from __future__ import annotations

from enum import Enum

from ssdp_discovery.internal_types import *

class SearchTarget(Enum):
    """A well-known SSDP search target. The value of each member is its protocol token."""
    ALL = "ssdp:all"
    ROOT_DEVICE = "upnp:rootdevice"

    @property
    def token(self) -> str:
        """The protocol-level string sent in the 'st' header"""
        return self.value

    def __str__(self) -> str:
        return self.token

SearchTargetLike = Union[SearchTarget, str]
"""Anywhere a search target is accepted, either a SearchTarget or a raw token string may be used."""

def search_target_token(search_target: SearchTargetLike) -> str:
    """Returns the protocol token for a SearchTarget or raw token string."""
    if isinstance(search_target, SearchTarget):
        return search_target.token
    if not isinstance(search_target, str):
        raise TypeError(f"Expected SearchTarget or str, got {type(search_target).__name__}")
    return search_target
