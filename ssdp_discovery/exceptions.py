#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Exceptions defined by this package"""

class SsdpError(Exception):
  """Base class for all error exceptions defined by this package."""
  pass

class ConfigError(SsdpError):
  """A discovery configuration value is missing or invalid."""
  pass

class AddressResolutionError(SsdpError):
  """The configured broadcast address could not be resolved to a socket address."""
  pass

class SerializationError(SsdpError):
  """A search request could not be encoded into a datagram."""
  pass

class BindError(SsdpError):
  """The local UDP listening socket could not be created or bound."""
  pass

class SendError(SsdpError):
  """The search request datagram could not be sent."""
  pass

class ReceiveError(SsdpError):
  """Receiving a response datagram failed for a reason other than the deadline expiring."""
  pass

class ParseError(SsdpError):
  """A response datagram could not be interpreted as an SSDP search response."""
  pass

class FetchError(SsdpError):
  """A device description document could not be retrieved."""
  pass

class DecodeError(SsdpError):
  """A device description document is not a well-formed, decodable XML document."""
  pass
