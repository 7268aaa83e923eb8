import ipaddress
import sys
from pathlib import Path

import pytest

from lanmouse.ipc import (
    DEFAULT_PORT,
    ClientConfig,
    ClientState,
    ConnectionTimeoutError,
    InvalidMessageError,
    Position,
    PositionParseError,
    SocketPathError,
    Status,
    default_socket_path,
)

POSITION_NAMES = ["left", "right", "top", "bottom"]


@pytest.mark.parametrize("pos", list(Position))
def test_position_parse_round_trip(pos):
    assert Position.parse(str(pos)) == pos


def test_position_strings():
    parsed = [Position.parse(name) for name in POSITION_NAMES]
    assert parsed == list(Position)
    assert [str(p) for p in parsed] == POSITION_NAMES


def test_position_parse_invalid():
    with pytest.raises(PositionParseError) as info:
        Position.parse("middle")
    assert info.value.pos == "middle"
    assert "middle" in str(info.value)


def test_position_opposite():
    assert Position.LEFT.opposite() == Position.RIGHT
    assert Position.TOP.opposite() == Position.BOTTOM


@pytest.mark.parametrize("name", POSITION_NAMES)
def test_position_opposite_involution(name):
    pos = Position.parse(name)
    assert pos.opposite().opposite() == pos
    assert pos.opposite() != pos


def test_client_config_defaults():
    config = ClientConfig()
    assert config.port == DEFAULT_PORT
    assert config.pos == Position.LEFT
    assert config.hostname is None and config.cmd is None
    assert config.fix_ips == []


def test_client_config_to_json():
    config = ClientConfig(
        hostname="desk",
        fix_ips=[ipaddress.ip_address("192.168.1.2")],
        pos=Position.TOP,
    )
    assert config.to_json() == {
        "hostname": "desk",
        "fix_ips": ["192.168.1.2"],
        "port": 4242,
        "pos": "top",
        "cmd": None,
    }


def test_client_config_round_trip():
    config = ClientConfig(
        hostname="laptop",
        fix_ips=[ipaddress.ip_address("10.0.0.1"), ipaddress.ip_address("fe80::1")],
        port=5000,
        pos=Position.BOTTOM,
        cmd="echo entered",
    )
    assert ClientConfig.from_json(config.to_json()) == config


def test_client_config_missing_optionals():
    config = ClientConfig.from_json({"fix_ips": [], "port": 1234, "pos": "right"})
    assert config.hostname is None
    assert config.cmd is None
    assert config.pos == Position.RIGHT


@pytest.mark.parametrize(
    "data",
    [
        {"fix_ips": [], "pos": "left"},
        {"fix_ips": [], "port": 70000, "pos": "left"},
        {"fix_ips": [], "port": True, "pos": "left"},
        {"fix_ips": ["not-an-ip"], "port": 1, "pos": "left"},
        {"fix_ips": [], "port": 1, "pos": "center"},
        [],
    ],
)
def test_client_config_invalid(data):
    with pytest.raises(InvalidMessageError):
        ClientConfig.from_json(data)


def test_client_state_round_trip():
    state = ClientState(
        active=True,
        active_addr=(ipaddress.ip_address("192.168.0.5"), 4242),
        alive=True,
        dns_ips=[ipaddress.ip_address("192.168.0.5")],
        ips={ipaddress.ip_address("192.168.0.5"), ipaddress.ip_address("::1")},
        has_pressed_keys=False,
        resolving=True,
    )
    assert ClientState.from_json(state.to_json()) == state


def test_client_state_ipv6_addr_format():
    state = ClientState(active_addr=(ipaddress.ip_address("::1"), 4242))
    data = state.to_json()
    assert data["active_addr"] == "[::1]:4242"
    assert ClientState.from_json(data).active_addr == state.active_addr


def test_client_state_default_round_trip():
    assert ClientState.from_json(ClientState().to_json()) == ClientState()


@pytest.mark.parametrize("addr", ["10.0.0.1", "10.0.0.1:99999", "[::1]", "host:80"])
def test_client_state_invalid_addr(addr):
    data = ClientState().to_json()
    data["active_addr"] = addr
    with pytest.raises(InvalidMessageError):
        ClientState.from_json(data)


def test_status_truthiness():
    assert Status.ENABLED.__bool__() is True
    assert Status.DISABLED.__bool__() is False
    assert bool(Status.ENABLED) is True
    assert bool(Status.DISABLED) is False


def test_timeout_message():
    assert str(ConnectionTimeoutError()) == "connection timed out"


def test_socket_path_linux(monkeypatch, tmp_path):
    monkeypatch.setattr(sys, "platform", "linux")
    path = default_socket_path({"XDG_RUNTIME_DIR": str(tmp_path)})
    assert path == tmp_path / "lan-mouse-socket.sock"


def test_socket_path_linux_missing(monkeypatch):
    monkeypatch.setattr(sys, "platform", "linux")
    with pytest.raises(SocketPathError) as info:
        default_socket_path({"HOME": "/home/user"})
    assert info.value.variable == "XDG_RUNTIME_DIR"


def test_socket_path_macos(monkeypatch):
    monkeypatch.setattr(sys, "platform", "darwin")
    path = default_socket_path({"HOME": "/Users/user"})
    assert path == Path("/Users/user", "Library", "Caches", "lan-mouse-socket.sock")


def test_socket_path_macos_missing(monkeypatch):
    monkeypatch.setattr(sys, "platform", "darwin")
    with pytest.raises(SocketPathError) as info:
        default_socket_path({})
    assert info.value.variable == "HOME"