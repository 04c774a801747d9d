"""
SoundTouch WebServices XML codec.

Responses are parsed tolerantly: an optional element that is absent maps to
None, never to a parse error. Command bodies are built with ElementTree so
names and URLs are always escaped.
"""

from typing import List, Optional, Set, Tuple
from xml.etree import ElementTree

from .errors import DeviceUnreachableError
from .models import DeviceInfo, NowPlayingInfo, Preset, VolumeInfo

STANDBY_SOURCE = "STANDBY"
LOCAL_RADIO_SOURCE = "LOCAL_INTERNET_RADIO"


def parse_xml(text: str) -> ElementTree.Element:
    """Parse a response body, a body that is not XML means the peer does not speak the protocol"""
    try:
        return ElementTree.fromstring(text.strip().encode("utf-8"))
    except ElementTree.ParseError as e:
        raise DeviceUnreachableError(f"Malformed XML response: {e}") from e


def _xml_text(root: Optional[ElementTree.Element], tag: str) -> Optional[str]:
    """Text of a child element, None when the element is absent or empty"""
    if root is None:
        return None
    el = root.find(tag)
    if el is None or el.text is None:
        return None
    return el.text.strip()


def _xml_int(root: ElementTree.Element, tag: str, default: int = 0) -> int:
    value = _xml_text(root, tag)
    try:
        return int(value) if value is not None else default
    except ValueError:
        return default


def _xml_bool(value: Optional[str]) -> bool:
    return (value or "").strip().lower() == "true"


# === Responses ===

def parse_volume(text: str) -> VolumeInfo:
    root = parse_xml(text)
    return VolumeInfo(
        target_volume=_xml_int(root, "targetvolume"),
        actual_volume=_xml_int(root, "actualvolume"),
        is_muted=_xml_bool(_xml_text(root, "muteenabled")),
    )


def parse_now_playing(text: str) -> NowPlayingInfo:
    root = parse_xml(text)
    return NowPlayingInfo(
        source=root.get("source") or STANDBY_SOURCE,
        track=_xml_text(root, "track"),
        artist=_xml_text(root, "artist"),
        album=_xml_text(root, "album"),
        station_name=_xml_text(root, "stationName"),
        play_status=_xml_text(root, "playStatus"),
        art_url=_xml_text(root, "art"),
    )


def parse_device_info(text: str, device_id: str, known_address: Optional[str] = None) -> DeviceInfo:
    """Parse /info; the caller-known id and address fill in for missing fields"""
    root = parse_xml(text)
    network_info = root.find("networkInfo")

    software_version = None
    components = root.find("components")
    if components is not None:
        for component in components.findall("component"):
            if _xml_text(component, "componentCategory") == "SCM":
                software_version = _xml_text(component, "softwareVersion")
                break

    return DeviceInfo(
        device_id=root.get("deviceID") or device_id,
        name=_xml_text(root, "name") or "Unknown",
        type=_xml_text(root, "type") or "Unknown",
        mac_address=network_info.get("macAddress") if network_info is not None else None,
        ip_address=_xml_text(network_info, "ipAddress") or known_address,
        software_version=software_version,
    )


def parse_identity(text: str) -> Tuple[Optional[str], str]:
    """(deviceID, name) from an /info response, used by discovery probes"""
    root = parse_xml(text)
    if root.tag != "info":
        raise DeviceUnreachableError(f"Unexpected identity document <{root.tag}>")
    return root.get("deviceID"), _xml_text(root, "name") or "Unknown Device"


def parse_presets(text: str, device_id: str) -> List[Preset]:
    root = parse_xml(text)
    presets = []
    for element in root.findall("preset"):
        slot = element.get("id", "")
        if not slot.isdigit():
            continue

        content_item = element.find("ContentItem")
        attrs = content_item.attrib if content_item is not None else {}
        presets.append(Preset(
            id=int(slot),
            device_id=device_id,
            name=_xml_text(content_item, "itemName") or "Unknown",
            location=attrs.get("location", ""),
            icon_url=_xml_text(content_item, "containerArt"),
            type=attrs.get("type", "stationurl"),
            source=attrs.get("source", LOCAL_RADIO_SOURCE),
            is_presetable=_xml_bool(attrs.get("isPresetable")),
        ))
    return presets


def parse_supported_urls(text: str) -> Set[str]:
    root = parse_xml(text)
    return {el.text.strip() for el in root.findall("supportedURL") if el.text}


# === Commands ===

def _to_string(element: ElementTree.Element) -> str:
    return ElementTree.tostring(element, encoding="unicode")


def build_key(key: str, state: str, sender: str) -> str:
    """<key state="press|release" sender="...">KEY</key>"""
    element = ElementTree.Element("key", {"state": state, "sender": sender})
    element.text = key
    return _to_string(element)


def build_volume(level: int) -> str:
    element = ElementTree.Element("volume")
    element.text = str(int(level))
    return _to_string(element)


def build_store_preset(preset: Preset) -> str:
    root = ElementTree.Element("preset", {"id": str(preset.id)})
    content_item = ElementTree.SubElement(root, "ContentItem", {
        "source": preset.source,
        "type": preset.type,
        "location": preset.location,
        "isPresetable": "true",
    })
    ElementTree.SubElement(content_item, "itemName").text = preset.name
    if preset.icon_url:
        ElementTree.SubElement(content_item, "containerArt").text = preset.icon_url
    return _to_string(root)


def build_remove_preset(slot: int) -> str:
    root = ElementTree.Element("preset", {"id": str(slot)})
    return ElementTree.tostring(root, encoding="unicode", short_empty_elements=False)
