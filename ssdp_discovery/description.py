#
# Copyright (c) 2023 Samuel J. McKelvie
#
# MIT License - See LICENSE file accompanying this package.
#

"""
Retrieval and decoding of UPnP device description documents.

The document at a search response's location is an XML document of the form:

    <root xmlns="urn:schemas-upnp-org:device-1-0">
      <specVersion><major>1</major><minor>0</minor></specVersion>
      <URLBase>http://10.0.0.5:80/</URLBase>
      <device>
        <deviceType>urn:schemas-upnp-org:device:MediaRenderer:1</deviceType>
        <friendlyName>Living Room</friendlyName>
        ...
        <iconList>
          <icon><mimetype>image/png</mimetype><width>48</width>...</icon>
        </iconList>
      </device>
    </root>

Element namespaces are ignored; only local names are matched.
"""

from __future__ import annotations

from xml.etree.ElementTree import Element

import requests
from defusedxml import ElementTree as ET
from defusedxml import DefusedXmlException

from ssdp_discovery.internal_types import *
from .pkg_logging import logger
from .exceptions import FetchError, DecodeError

def _local_name(tag: str) -> str:
    """Strips any '{namespace}' prefix from an element tag."""
    return tag.rsplit('}', 1)[-1]

def _find_child(parent: Optional[Element], name: str) -> Optional[Element]:
    if parent is None:
        return None
    for child in parent:
        if isinstance(child.tag, str) and _local_name(child.tag) == name:
            return child
    return None

def _find_children(parent: Optional[Element], name: str) -> List[Element]:
    if parent is None:
        return []
    return [ child for child in parent if isinstance(child.tag, str) and _local_name(child.tag) == name ]

def _child_text(parent: Optional[Element], name: str) -> str:
    child = _find_child(parent, name)
    if child is None or child.text is None:
        return ''
    return child.text

def _child_int(parent: Optional[Element], name: str) -> int:
    text = _child_text(parent, name).strip()
    if text == '':
        return 0
    try:
        return int(text)
    except ValueError as e:
        raise DecodeError(f"Element <{name}> is not an integer: {text!r}") from e

class SpecVersion:
    major: int
    minor: int

    def __init__(self, major: int=0, minor: int=0) -> None:
        self.major = major
        self.minor = minor

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, SpecVersion) and (self.major, self.minor) == (other.major, other.minor)

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}"

    def __repr__(self) -> str:
        return f"SpecVersion({self.major}, {self.minor})"

class Icon:
    mimetype: str
    width: int
    height: int
    depth: int
    url: str

    def __init__(self, mimetype: str='', width: int=0, height: int=0, depth: int=0, url: str='') -> None:
        self.mimetype = mimetype
        self.width = width
        self.height = height
        self.depth = depth
        self.url = url

    @classmethod
    def from_element(cls, element: Element) -> Icon:
        return cls(
            mimetype=_child_text(element, 'mimetype'),
            width=_child_int(element, 'width'),
            height=_child_int(element, 'height'),
            depth=_child_int(element, 'depth'),
            url=_child_text(element, 'url'),
          )

    def as_json_data(self) -> JsonableDict:
        return dict(mimetype=self.mimetype, width=self.width, height=self.height, depth=self.depth, url=self.url)

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, Icon) and self.as_json_data() == other.as_json_data()

    def __repr__(self) -> str:
        return f"Icon({self.mimetype!r}, {self.width}x{self.height}x{self.depth}, {self.url!r})"

# (attribute name, element name under <device>)
_device_string_fields: List[Tuple[str, str]] = [
    ('device_type', 'deviceType'),
    ('friendly_name', 'friendlyName'),
    ('manufacturer', 'manufacturer'),
    ('manufacturer_url', 'manufacturerURL'),
    ('model_description', 'modelDescription'),
    ('model_name', 'modelName'),
    ('model_number', 'modelNumber'),
    ('model_url', 'modelURL'),
    ('serial_number', 'serialNumber'),
    ('udn', 'UDN'),
    ('upc', 'UPC'),
    ('presentation_url', 'presentationURL'),
]

class DeviceDescription:
    """A decoded UPnP device description. Elements that are absent from the document
       are left as '' (or 0 for integers)."""

    location: Optional[str] = None
    """The URL the description was fetched from, if known"""

    spec_version: SpecVersion
    url_base: str = ''
    device_type: str = ''
    friendly_name: str = ''
    manufacturer: str = ''
    manufacturer_url: str = ''
    model_description: str = ''
    model_name: str = ''
    model_number: str = ''
    model_url: str = ''
    serial_number: str = ''
    udn: str = ''
    """The unique device name (the <UDN> element)"""
    upc: str = ''
    presentation_url: str = ''
    icons: List[Icon]

    def __init__(
            self,
            spec_version: Optional[SpecVersion]=None,
            icons: Optional[Iterable[Icon]]=None,
            location: Optional[str]=None,
            **fields: str
          ) -> None:
        self.spec_version = SpecVersion() if spec_version is None else spec_version
        self.icons = [] if icons is None else list(icons)
        self.location = location
        for name, value in fields.items():
            if name != 'url_base' and not name in (attr for attr, _ in _device_string_fields):
                raise TypeError(f"DeviceDescription: Unknown field {name!r}")
            setattr(self, name, value)

    @classmethod
    def from_element(cls, root: Element, location: Optional[str]=None) -> DeviceDescription:
        """Decodes a device description from the document's root element, whatever its name."""
        spec_version_element = _find_child(root, 'specVersion')
        spec_version = SpecVersion(
            major=_child_int(spec_version_element, 'major'),
            minor=_child_int(spec_version_element, 'minor'),
          )
        device_element = _find_child(root, 'device')
        fields: Dict[str, str] = { attr: _child_text(device_element, element_name) for attr, element_name in _device_string_fields }
        icons: List[Icon] = []
        for icon_list_element in _find_children(device_element, 'iconList'):
            icons.extend(Icon.from_element(e) for e in _find_children(icon_list_element, 'icon'))
        return cls(
            spec_version=spec_version,
            icons=icons,
            location=location,
            url_base=_child_text(root, 'URLBase'),
            **fields
          )

    def as_json_data(self) -> JsonableDict:
        result: JsonableDict = {
            "location": self.location,
            "spec_version": str(self.spec_version),
            "url_base": self.url_base,
          }
        for attr, _ in _device_string_fields:
            result[attr] = getattr(self, attr)
        result["icons"] = [ icon.as_json_data() for icon in self.icons ]
        return result

    def __eq__(self, other: Any) -> bool:
        return isinstance(other, DeviceDescription) and self.as_json_data() == other.as_json_data()

    def __str__(self) -> str:
        return f"DeviceDescription(friendly_name={self.friendly_name!r}, device_type={self.device_type!r}, udn={self.udn!r})"

    def __repr__(self) -> str:
        return str(self)

def parse_device_description(xml_data: Union[bytes, str], location: Optional[str]=None) -> DeviceDescription:
    """Decodes a device description XML document.

    Raises DecodeError if the document is not well-formed XML, uses forbidden XML
    constructs (e.g., entity declarations), or has a non-integer where an integer is expected.
    """
    try:
        root = ET.fromstring(xml_data)
    except (ET.ParseError, DefusedXmlException) as e:
        raise DecodeError(f"Malformed device description{'' if location is None else ' at ' + location}: {e}") from e
    return DeviceDescription.from_element(root, location=location)

def fetch_device_description(
        location: str,
        session: Optional[requests.Session]=None,
        timeout: Optional[float]=None
      ) -> DeviceDescription:
    """Retrieves the device description document at `location` with an HTTP GET, and decodes it.

    The HTTP status code is not checked; whatever body is returned is decoded.

    Parameters:
        location:   The absolute URL of the device description (the 'location' header of a response).
        session:    The requests.Session to use. If None, a temporary session is created.
        timeout:    The request timeout in seconds, or None for no timeout.

    Raises FetchError if the document cannot be retrieved, or DecodeError if it cannot be decoded.
    """
    if session is None:
        with requests.Session() as temp_session:
            return fetch_device_description(location, session=temp_session, timeout=timeout)
    logger.debug(f"Fetching device description from {location}")
    try:
        response = session.get(location, timeout=timeout)
        xml_data = response.content
    except requests.RequestException as e:
        raise FetchError(f"Unable to fetch device description from {location}: {e}") from e
    logger.debug(f"Fetched {len(xml_data)} bytes from {location}, status_code={response.status_code}")
    return parse_device_description(xml_data, location=location)
