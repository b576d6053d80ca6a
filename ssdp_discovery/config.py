# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""Discovery configuration.

A DiscoveryConfig is created once per client and never modified; overrides
produce a new instance. Configurations can also be loaded from JSON, with string
values rendered as templates so that "${env:NAME}" expands to an environment
variable.
"""

from __future__ import annotations

import os
import json
from string import Template

from ssdp_discovery.internal_types import *
from .exceptions import ConfigError
from .constants import SSDP_BROADCAST_ADDRESS, SSDP_PORT, MAX_DATAGRAM_SIZE

class _ConfigTemplate(Template):
    # allow "${env:NAME}"
    braceidpattern = r'(?a:[_a-z][_a-z0-9]*(?::[_a-z][_a-z0-9]*)?)'

def render_template_json_data(template_json_data: Jsonable, environ: Optional[Mapping[str, str]]=None) -> Jsonable:
    """Renders every "${name}" or "${env:NAME}" reference in a JSON-able value.

    Rendering is done on the JSON text so that it applies to nested values as well.
    Raises ConfigError if a referenced variable is undefined.
    """
    if environ is None:
        environ = os.environ
    context: Dict[str, str] = { f"env:{k}": v for k, v in environ.items() }
    template_str = json.dumps(template_json_data)
    try:
        json_text = _ConfigTemplate(template_str).substitute(context)
    except (KeyError, ValueError) as e:
        raise ConfigError(f"DiscoveryConfig: Unable to render configuration template: {e}") from e
    try:
        result: Jsonable = json.loads(json_text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"DiscoveryConfig: Rendered configuration is not valid JSON: {e}") from e
    return result

def _get_cfg_property_int(data: JsonableDict, key: str, default: int) -> int:
    result: Any = data.get(key, default)
    if isinstance(result, str):
        try:
            result = int(result)
        except ValueError:
            pass
    if not isinstance(result, int) or isinstance(result, bool):
        raise ConfigError(f"DiscoveryConfig: Expected property {key} to be int, got {type(result).__name__}")
    return result

def _get_cfg_property_str(data: JsonableDict, key: str, default: str) -> str:
    result = data.get(key, default)
    if not isinstance(result, str):
        raise ConfigError(f"DiscoveryConfig: Expected property {key} to be str, got {type(result).__name__}")
    return result

def _get_cfg_property_optional_float(data: JsonableDict, key: str) -> Optional[float]:
    result: Any = data.get(key, None)
    if result is None or result == '':
        return None
    if isinstance(result, str):
        try:
            result = float(result)
        except ValueError:
            pass
    if not isinstance(result, (int, float)) or isinstance(result, bool):
        raise ConfigError(f"DiscoveryConfig: Expected property {key} to be a number, got {type(result).__name__}")
    return float(result)

class DiscoveryConfig:
    """Immutable parameters for a discovery round."""

    _option_names = ('port', 'broadcast_address', 'timeout_ms', 'fetch_timeout', 'max_fetch_workers', 'recv_buffer_size')

    _port: int
    _broadcast_address: str
    _timeout_ms: int
    _fetch_timeout: Optional[float]
    _max_fetch_workers: int
    _recv_buffer_size: int

    def __init__(
            self,
            port: int=SSDP_PORT,
            broadcast_address: str=SSDP_BROADCAST_ADDRESS,
            timeout_ms: int=0,
            fetch_timeout: Optional[float]=None,
            max_fetch_workers: int=1,
            recv_buffer_size: int=MAX_DATAGRAM_SIZE,
          ) -> None:
        """Create a discovery configuration.

        Parameters:
            port:               The UDP port that search requests are sent to, and that responses are
                                  received on. Defaults to 9000.
            broadcast_address:  The multicast (or broadcast/unicast) address that search requests are
                                  sent to. Defaults to 239.235.255.250.
            timeout_ms:         How long to collect responses, in milliseconds. Also sent, in whole
                                  seconds, as the 'mx' header. Defaults to 0.
            fetch_timeout:      Timeout in seconds for each device description fetch, or None to use the
                                  transport's default (no timeout). Defaults to None.
            max_fetch_workers:  The number of device descriptions fetched concurrently. Defaults to 1
                                  (sequential).
            recv_buffer_size:   The largest response datagram accepted, in bytes. Defaults to 65507.
        """
        if not isinstance(port, int) or isinstance(port, bool) or not 0 < port < 65536:
            raise ConfigError(f"DiscoveryConfig: Invalid port {port!r}")
        if not isinstance(broadcast_address, str) or broadcast_address == '':
            raise ConfigError(f"DiscoveryConfig: Invalid broadcast address {broadcast_address!r}")
        if not isinstance(timeout_ms, int) or isinstance(timeout_ms, bool) or timeout_ms < 0:
            raise ConfigError(f"DiscoveryConfig: Invalid timeout {timeout_ms!r}; must be a non-negative number of milliseconds")
        if not fetch_timeout is None and (not isinstance(fetch_timeout, (int, float)) or fetch_timeout <= 0):
            raise ConfigError(f"DiscoveryConfig: Invalid fetch timeout {fetch_timeout!r}")
        if not isinstance(max_fetch_workers, int) or max_fetch_workers < 1:
            raise ConfigError(f"DiscoveryConfig: Invalid max_fetch_workers {max_fetch_workers!r}")
        if not isinstance(recv_buffer_size, int) or recv_buffer_size < 1:
            raise ConfigError(f"DiscoveryConfig: Invalid recv_buffer_size {recv_buffer_size!r}")
        self._port = port
        self._broadcast_address = broadcast_address
        self._timeout_ms = timeout_ms
        self._fetch_timeout = None if fetch_timeout is None else float(fetch_timeout)
        self._max_fetch_workers = max_fetch_workers
        self._recv_buffer_size = recv_buffer_size

    @property
    def port(self) -> int:
        return self._port

    @property
    def broadcast_address(self) -> str:
        return self._broadcast_address

    @property
    def timeout_ms(self) -> int:
        """The response collection window, in milliseconds"""
        return self._timeout_ms

    @property
    def timeout(self) -> float:
        """The response collection window, in seconds"""
        return self._timeout_ms / 1000.0

    @property
    def mx(self) -> int:
        """The response collection window in whole seconds, rounded down, as sent in the 'mx' header"""
        return self._timeout_ms // 1000

    @property
    def fetch_timeout(self) -> Optional[float]:
        return self._fetch_timeout

    @property
    def max_fetch_workers(self) -> int:
        return self._max_fetch_workers

    @property
    def recv_buffer_size(self) -> int:
        return self._recv_buffer_size

    def as_dict(self) -> JsonableDict:
        return { name: getattr(self, name) for name in self._option_names }

    def with_options(self, **overrides: Any) -> DiscoveryConfig:
        """Returns a new DiscoveryConfig with the given options replaced and all others unchanged.
           Calls may be chained; each later call overrides earlier ones."""
        for name in overrides:
            if not name in self._option_names:
                raise ConfigError(f"DiscoveryConfig: Unknown option {name!r}")
        options = self.as_dict()
        options.update(overrides)
        return DiscoveryConfig(**options)  # type: ignore[arg-type]

    @classmethod
    def from_json_data(cls, json_data: Jsonable, environ: Optional[Mapping[str, str]]=None) -> DiscoveryConfig:
        """Creates a DiscoveryConfig from a JSON object, after rendering "${env:NAME}" templates.
           Missing properties take their default values."""
        data = render_template_json_data(json_data, environ=environ)
        if not isinstance(data, dict):
            raise ConfigError(f"DiscoveryConfig: expected json dict, got {type(data).__name__}")
        for name in data:
            if not name in cls._option_names:
                raise ConfigError(f"DiscoveryConfig: Unknown option {name!r}")
        return cls(
            port=_get_cfg_property_int(data, 'port', SSDP_PORT),
            broadcast_address=_get_cfg_property_str(data, 'broadcast_address', SSDP_BROADCAST_ADDRESS),
            timeout_ms=_get_cfg_property_int(data, 'timeout_ms', 0),
            fetch_timeout=_get_cfg_property_optional_float(data, 'fetch_timeout'),
            max_fetch_workers=_get_cfg_property_int(data, 'max_fetch_workers', 1),
            recv_buffer_size=_get_cfg_property_int(data, 'recv_buffer_size', MAX_DATAGRAM_SIZE),
          )

    @classmethod
    def loads(cls, config_text: str, environ: Optional[Mapping[str, str]]=None) -> DiscoveryConfig:
        try:
            json_data = json.loads(config_text)
        except json.JSONDecodeError as e:
            raise ConfigError(f"DiscoveryConfig: Configuration is not valid JSON: {e}") from e
        return cls.from_json_data(json_data, environ=environ)

    @classmethod
    def load_file(cls, config_file: str, environ: Optional[Mapping[str, str]]=None) -> DiscoveryConfig:
        config_file = os.path.abspath(os.path.expanduser(config_file))
        try:
            with open(config_file) as f:
                config_text = f.read()
        except OSError as e:
            raise ConfigError(f"DiscoveryConfig: Unable to read configuration file {config_file}: {e}") from e
        return cls.loads(config_text, environ=environ)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, DiscoveryConfig):
            return False
        return self.as_dict() == other.as_dict()

    def __str__(self) -> str:
        return f"DiscoveryConfig({', '.join(f'{k}={v!r}' for k, v in self.as_dict().items())})"

    def __repr__(self) -> str:
        return str(self)
