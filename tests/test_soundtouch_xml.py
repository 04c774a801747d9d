"""Tests for the SoundTouch XML codec."""

import pytest

from adapters.errors import DeviceUnreachableError
from adapters.models import Preset, VolumeInfo
from adapters.soundtouch_xml import (
    build_key, build_remove_preset, build_store_preset, build_volume,
    parse_device_info, parse_identity, parse_now_playing, parse_presets,
    parse_supported_urls, parse_volume,
)

INFO_XML = """<?xml version="1.0" encoding="UTF-8" ?>
<info deviceID="A81B6A536A98">
  <name>Kitchen</name>
  <type>SoundTouch 10</type>
  <components>
    <component>
      <componentCategory>Lightswitch</componentCategory>
      <softwareVersion>0.0.1</softwareVersion>
    </component>
    <component>
      <componentCategory>SCM</componentCategory>
      <softwareVersion>27.0.6.46330.5043500</softwareVersion>
    </component>
  </components>
  <networkInfo macAddress="A81B6A536A98" type="SCM">
    <ipAddress>192.168.1.42</ipAddress>
  </networkInfo>
</info>"""


def test_parse_volume():
    xml = ("<volume><targetvolume>45</targetvolume><actualvolume>45</actualvolume>"
           "<muteenabled>false</muteenabled></volume>")
    assert parse_volume(xml) == VolumeInfo(45, 45, False)


def test_parse_volume_muted_and_clamped():
    xml = ("<volume><targetvolume>140</targetvolume><actualvolume>-3</actualvolume>"
           "<muteenabled>true</muteenabled></volume>")
    volume = parse_volume(xml)
    assert volume.target_volume == 100
    assert volume.actual_volume == 0
    assert volume.is_muted is True


def test_parse_now_playing_missing_optional_elements_are_none():
    xml = """<nowPlaying deviceID="A81B6A536A98" source="INTERNET_RADIO">
      <track>Song</track>
      <artist>Band</artist>
      <playStatus>PLAY_STATE</playStatus>
    </nowPlaying>"""
    now_playing = parse_now_playing(xml)
    assert now_playing.source == "INTERNET_RADIO"
    assert now_playing.track == "Song"
    assert now_playing.artist == "Band"
    assert now_playing.album is None
    assert now_playing.station_name is None
    assert now_playing.art_url is None
    assert now_playing.play_status == "PLAY_STATE"


def test_parse_now_playing_without_source_is_standby():
    assert parse_now_playing("<nowPlaying/>").source == "STANDBY"


def test_parse_device_info():
    info = parse_device_info(INFO_XML, "fallback-id", "10.0.0.9")
    assert info.device_id == "A81B6A536A98"
    assert info.name == "Kitchen"
    assert info.type == "SoundTouch 10"
    assert info.mac_address == "A81B6A536A98"
    assert info.ip_address == "192.168.1.42"
    assert info.software_version == "27.0.6.46330.5043500"


def test_parse_device_info_falls_back_to_caller_values():
    info = parse_device_info("<info/>", "dev-7", "10.0.0.9")
    assert info.device_id == "dev-7"
    assert info.name == "Unknown"
    assert info.type == "Unknown"
    assert info.mac_address is None
    assert info.ip_address == "10.0.0.9"
    assert info.software_version is None


def test_parse_identity():
    assert parse_identity(INFO_XML) == ("A81B6A536A98", "Kitchen")
    assert parse_identity("<info/>") == (None, "Unknown Device")


def test_parse_identity_rejects_other_documents():
    with pytest.raises(DeviceUnreachableError):
        parse_identity("<html><body>router login</body></html>")


def test_malformed_xml_is_unreachable():
    with pytest.raises(DeviceUnreachableError):
        parse_volume("<volume><targetvolume>45")


def test_parse_presets_skips_non_numeric_ids():
    xml = """<presets>
      <preset id="1">
        <ContentItem source="LOCAL_INTERNET_RADIO" type="stationurl"
                     location="http://hub/presets/jazz.json" isPresetable="true">
          <itemName>Jazz FM</itemName>
          <containerArt>http://hub/jazz.png</containerArt>
        </ContentItem>
      </preset>
      <preset id="x"><ContentItem><itemName>Broken</itemName></ContentItem></preset>
      <preset id="3"><ContentItem><itemName>Bare</itemName></ContentItem></preset>
    </presets>"""
    presets = parse_presets(xml, "dev-1")

    assert [p.id for p in presets] == [1, 3]
    jazz, bare = presets
    assert jazz.name == "Jazz FM"
    assert jazz.location == "http://hub/presets/jazz.json"
    assert jazz.icon_url == "http://hub/jazz.png"
    assert jazz.is_presetable is True
    assert jazz.device_id == "dev-1"
    assert bare.source == "LOCAL_INTERNET_RADIO"
    assert bare.type == "stationurl"
    assert bare.location == ""
    assert bare.icon_url is None


def test_parse_supported_urls():
    xml = """<supportedURLs deviceID="A81B6A536A98">
      <supportedURL>/info</supportedURL>
      <supportedURL>/presets</supportedURL>
      <supportedURL> /playNotification </supportedURL>
    </supportedURLs>"""
    assert parse_supported_urls(xml) == {"/info", "/presets", "/playNotification"}


def test_build_key():
    assert build_key("PLAY", "press", "Gabbo") == '<key state="press" sender="Gabbo">PLAY</key>'


def test_build_volume():
    assert build_volume(37) == "<volume>37</volume>"


def test_build_store_preset_escapes_text():
    preset = Preset(id=2, name="Rock & Roll <Live>", location="http://hub/presets/rock.json?a=1&b=2")
    body = build_store_preset(preset)
    assert body.startswith('<preset id="2"><ContentItem ')
    assert 'location="http://hub/presets/rock.json?a=1&amp;b=2"' in body
    assert 'isPresetable="true"' in body
    assert "<itemName>Rock &amp; Roll &lt;Live&gt;</itemName>" in body
    assert "containerArt" not in body


def test_build_store_preset_with_icon():
    preset = Preset(id=4, name="News", location="http://x/news.json", icon_url="http://x/news.png")
    assert "<containerArt>http://x/news.png</containerArt>" in build_store_preset(preset)


def test_build_remove_preset():
    assert build_remove_preset(5) == '<preset id="5"></preset>'
