"""Tests for device orchestration: dispatch, add_device, pairing gate, presets and discovery."""

import asyncio
import json
import socket

import pytest

from adapters import AdapterRegistry
from adapters.errors import (
    DeviceNotFoundError, DeviceUnreachableError, DeviceValidationError,
    NotSupportedError, StationExistsError,
)
from adapters.models import Preset
from services.device_service import DeviceService
from services.station_files import StationFileService
from fakes import FakeAdapter, FakeDirectory, make_device


def _service(devices=(), adapters=None, network_mask=None, station_files=None, default_network_mask=None):
    directory = FakeDirectory(devices, network_mask=network_mask)
    adapters = adapters if adapters is not None else [FakeAdapter()]
    service = DeviceService(directory, AdapterRegistry(adapters), station_files=station_files,
                            default_network_mask=default_network_mask)
    return service, directory


# === Dispatch ===

def test_unknown_device_is_not_found():
    service, _ = _service()
    with pytest.raises(DeviceNotFoundError):
        asyncio.run(service.get_status("missing"))


def test_device_without_adapter_is_not_supported():
    service, _ = _service([make_device(vendor="sonos")])
    with pytest.raises(NotSupportedError):
        asyncio.run(service.get_status("dev-1"))


def test_dispatch_routes_to_vendor_adapter():
    adapter = FakeAdapter()
    service, _ = _service([make_device()], [adapter])

    status = asyncio.run(service.get_status("dev-1"))
    asyncio.run(service.set_volume("dev-1", 25))

    assert status.online is True
    assert adapter.calls == [("get_status", "dev-1"), ("set_volume", "dev-1", 25)]


def test_adapter_faults_propagate_unchanged():
    adapter = FakeAdapter()
    adapter.command_error = DeviceUnreachableError("timed out")
    service, _ = _service([make_device()], [adapter])

    with pytest.raises(DeviceUnreachableError):
        asyncio.run(service.set_volume("dev-1", 25))


def test_unimplemented_operation_is_not_supported():
    service, _ = _service([make_device()])
    with pytest.raises(NotSupportedError):
        asyncio.run(service.mute("dev-1"))


# === add_device ===

def test_add_device_probes_capabilities():
    adapter = FakeAdapter(capabilities={"power", "volume", "presets"})
    service, directory = _service(adapters=[adapter])

    device = asyncio.run(service.add_device("Kitchen", "192.168.1.30", "FAKE-VENDOR"))

    assert device.capabilities == {"power", "volume", "presets"}
    assert device.vendor == "fake-vendor"
    assert device.ip_address == "192.168.1.30"
    assert device.id
    assert directory.devices[device.id] is device
    assert adapter.calls == [("probe_capabilities", "192.168.1.30")]


def test_add_device_capability_probe_failure_uses_defaults():
    adapter = FakeAdapter(capabilities=RuntimeError("boom"))
    service, directory = _service(adapters=[adapter])

    device = asyncio.run(service.add_device("Kitchen", "192.168.1.30", "fake-vendor"))

    assert device.capabilities == {"power", "volume"}
    assert device.id in directory.devices


def test_add_device_unknown_vendor():
    service, directory = _service()
    with pytest.raises(NotSupportedError):
        asyncio.run(service.add_device("Kitchen", "192.168.1.30", "sonos"))
    assert directory.added == []


def test_add_device_resolves_hostname(monkeypatch):
    service, _ = _service()

    async def run():
        loop = asyncio.get_running_loop()

        async def fake_getaddrinfo(host, port, **kwargs):
            assert host == "kitchen.local"
            return [(socket.AF_INET, socket.SOCK_STREAM, 6, "", ("192.168.1.44", 0))]

        monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)
        return await service.add_device("Kitchen", "kitchen.local", "fake-vendor")

    assert asyncio.run(run()).ip_address == "192.168.1.44"


def test_add_device_unresolvable_hostname(monkeypatch):
    service, directory = _service()

    async def run():
        loop = asyncio.get_running_loop()

        async def fake_getaddrinfo(host, port, **kwargs):
            raise socket.gaierror("Name or service not known")

        monkeypatch.setattr(loop, "getaddrinfo", fake_getaddrinfo)
        await service.add_device("Kitchen", "nowhere.invalid", "fake-vendor")

    with pytest.raises(DeviceValidationError):
        asyncio.run(run())
    assert directory.added == []


def test_update_device():
    service, directory = _service([make_device()])
    device = asyncio.run(service.update_device("dev-1", "Den", "192.168.1.99", ["power"]))

    assert device.name == "Den"
    assert device.ip_address == "192.168.1.99"
    assert directory.devices["dev-1"].capabilities == {"power"}


# === Pairing gate ===

def test_pairing_requires_capability_before_adapter_call():
    adapter = FakeAdapter()
    service, _ = _service([make_device(capabilities={"power", "volume"})], [adapter])

    with pytest.raises(DeviceValidationError):
        asyncio.run(service.enter_pairing_mode("dev-1"))
    assert adapter.calls == []


def test_pairing_checked_before_adapter_resolution():
    service, _ = _service([make_device(vendor="sonos", capabilities={"power"})])
    with pytest.raises(DeviceValidationError):
        asyncio.run(service.enter_pairing_mode("dev-1"))


def test_pairing_with_capability():
    adapter = FakeAdapter()
    service, _ = _service([make_device(capabilities={"power", "volume", "bluetoothPairing"})], [adapter])

    asyncio.run(service.enter_pairing_mode("dev-1"))
    assert adapter.calls == [("enter_pairing_mode", "dev-1")]


# === Network mask ===

def test_set_network_mask_validates():
    service, directory = _service()
    with pytest.raises(DeviceValidationError):
        asyncio.run(service.set_network_mask("192.168.1.0/99"))

    asyncio.run(service.set_network_mask("192.168.1.0/24"))
    assert directory.network_mask == "192.168.1.0/24"


def test_network_mask_falls_back_to_configured_default():
    service, _ = _service(default_network_mask="10.0.0.0/24")
    assert asyncio.run(service.get_network_mask()) == "10.0.0.0/24"

    service, _ = _service(network_mask="192.168.5.0/24", default_network_mask="10.0.0.0/24")
    assert asyncio.run(service.get_network_mask()) == "192.168.5.0/24"


# === Discovery ===

def test_discovery_dedupes_by_address_not_identity():
    known = make_device("dev-1", ip_address="192.168.1.20")
    same_address = make_device("other-id", ip_address="192.168.1.20", name="Same speaker")
    fresh = make_device("new-id", ip_address="192.168.1.21", name="New speaker")
    adapter = FakeAdapter(discovered=[same_address, fresh])
    service, directory = _service([known], [adapter], network_mask="192.168.1.0/24")

    result = asyncio.run(service.discover_and_persist(timeout=5))

    assert result.discovered == 2
    assert result.new == 1
    assert result.devices == [fresh]
    assert directory.added == [fresh]
    assert adapter.calls == [("discover_devices", "192.168.1.0/24", 5)]


def test_discovery_vendor_failure_does_not_block_others():
    broken = FakeAdapter("broken")
    broken.discover_error = RuntimeError("scan exploded")
    working = FakeAdapter("working", discovered=[make_device("w-1", vendor="working", ip_address="10.0.0.5")])
    service, directory = _service(adapters=[broken, working])

    result = asyncio.run(service.discover_and_persist())

    assert result.new == 1
    assert [d.id for d in directory.added] == ["w-1"]


def test_discovery_failed_save_keeps_earlier_saves():
    candidates = [
        make_device("a", ip_address="10.0.0.1"),
        make_device("b", ip_address="10.0.0.2"),
        make_device("c", ip_address="10.0.0.3"),
    ]
    service, directory = _service(adapters=[FakeAdapter(discovered=candidates)])
    directory.fail_add_for = {"10.0.0.2"}

    result = asyncio.run(service.discover_and_persist())

    assert result.discovered == 3
    assert result.new == 2
    assert [d.id for d in directory.added] == ["a", "c"]


def test_discovery_skips_duplicate_addresses_across_vendors():
    first = FakeAdapter("first", discovered=[make_device("x", vendor="first", ip_address="10.0.0.9")])
    second = FakeAdapter("second", discovered=[make_device("y", vendor="second", ip_address="10.0.0.9")])
    service, directory = _service(adapters=[first, second])

    result = asyncio.run(service.discover_and_persist())

    assert result.discovered == 2
    assert result.new == 1
    assert [d.id for d in directory.added] == ["x"]


# === Presets & station files ===

def test_store_local_radio_preset_creates_station_file(tmp_path):
    adapter = FakeAdapter()
    stations = StationFileService(str(tmp_path), "http://hub:8000")
    service, _ = _service([make_device()], [adapter], station_files=stations)

    preset = Preset(id=1, name="Jazz FM")
    stored = asyncio.run(service.store_preset("dev-1", preset, stream_url="http://stream.example/jazz"))

    assert stored.location == "http://hub:8000/presets/jazz-fm.json"
    document = json.loads((tmp_path / "jazz-fm.json").read_text())
    assert document["audio"]["streamUrl"] == "http://stream.example/jazz"
    assert adapter.calls[0][0] == "store_preset"


def test_store_duplicate_station_conflicts(tmp_path):
    stations = StationFileService(str(tmp_path), "http://hub:8000")
    service, _ = _service([make_device()], station_files=stations)

    asyncio.run(service.store_preset("dev-1", Preset(id=1, name="Jazz FM"), stream_url="http://a"))
    with pytest.raises(StationExistsError):
        asyncio.run(service.store_preset("dev-1", Preset(id=2, name="Jazz FM"), stream_url="http://b"))


def test_store_preset_update_overwrites_station(tmp_path):
    stations = StationFileService(str(tmp_path), "http://hub:8000")
    service, _ = _service([make_device()], station_files=stations)

    asyncio.run(service.store_preset("dev-1", Preset(id=1, name="Jazz FM"), stream_url="http://a"))
    asyncio.run(service.store_preset("dev-1", Preset(id=1, name="Jazz FM"), stream_url="http://b",
                                     is_update=True))

    document = json.loads((tmp_path / "jazz-fm.json").read_text())
    assert document["audio"]["streamUrl"] == "http://b"


def test_store_preset_requires_location_without_stream_url():
    adapter = FakeAdapter()
    service, _ = _service([make_device()], [adapter])

    with pytest.raises(DeviceValidationError):
        asyncio.run(service.store_preset("dev-1", Preset(id=1, name="Jazz FM")))
    assert adapter.calls == []


def test_store_preset_rejects_slot_before_writing_station(tmp_path):
    stations = StationFileService(str(tmp_path), "http://hub:8000")
    service, _ = _service([make_device()], station_files=stations)

    with pytest.raises(DeviceValidationError):
        asyncio.run(service.store_preset("dev-1", Preset(id=9, name="Jazz FM"), stream_url="http://a"))
    assert list(tmp_path.iterdir()) == []


def test_get_vendors():
    service, _ = _service(adapters=[FakeAdapter("acme", "Acme Audio")])
    assert [v.to_dict() for v in service.get_vendors()] == [{"id": "acme", "name": "Acme Audio"}]
