import base64
import logging
from unittest import mock

import pytest

from rosenpass.endpoints import HostPathDiscoveryEndpoint, SocketBoundAddress
from rosenpass.key_output import (
    AppPeer,
    KeyOutputReason,
    WireguardOut,
    output_key,
)

KEY = bytes(range(32))
PEER_ID = bytes(range(100, 132))


def _b64(data):
    return base64.b64encode(data).decode()


def test_endpoint_none_by_default():
    assert AppPeer().endpoint() is None


def test_endpoint_falls_back_to_initial():
    initial = HostPathDiscoveryEndpoint([("127.0.0.1", 9999)])
    peer = AppPeer(initial_endpoint=initial)
    assert peer.endpoint() is initial


def test_endpoint_prefers_current():
    initial = HostPathDiscoveryEndpoint([("127.0.0.1", 9999)])
    current = SocketBoundAddress(0, ("127.0.0.1", 1234))
    peer = AppPeer(initial_endpoint=initial, current_endpoint=current)
    assert peer.endpoint() is current


def test_reason_lookup_by_value():
    assert KeyOutputReason("exchanged") is KeyOutputReason.EXCHANGED
    assert KeyOutputReason("stale") is KeyOutputReason.STALE
    with pytest.raises(ValueError):
        KeyOutputReason("other")


def test_output_key_writes_file_and_announces(tmp_path, capsys):
    outfile = tmp_path / "shared-key"
    peer = AppPeer(outfile=outfile)
    result = output_key(peer, PEER_ID, KeyOutputReason.EXCHANGED, KEY)
    assert result is None
    assert base64.b64decode(outfile.read_text()) == KEY
    out = capsys.readouterr().out
    assert out.startswith(f"output-key peer {_b64(PEER_ID)} key-file ")
    assert str(outfile) in out
    assert out.rstrip("\n").endswith("exchanged")


def test_output_key_overwrites_existing_file(tmp_path, capsys):
    outfile = tmp_path / "shared-key"
    outfile.write_text("x" * 200)
    output_key(AppPeer(outfile=outfile), PEER_ID, KeyOutputReason.STALE, KEY)
    assert base64.b64decode(outfile.read_text()) == KEY
    assert capsys.readouterr().out.rstrip("\n").endswith("stale")


def test_output_key_without_outputs_prints_nothing(capsys):
    assert output_key(AppPeer(), PEER_ID, KeyOutputReason.EXCHANGED, KEY) is None
    assert capsys.readouterr().out == ""


def test_verbose_logs_peer(caplog):
    with caplog.at_level(logging.INFO, logger="rosenpass.key_output"):
        output_key(AppPeer(), PEER_ID, KeyOutputReason.STALE, KEY, verbose=True)
    assert "Erasing outdated key from peer" in caplog.text
    assert _b64(PEER_ID) in caplog.text


def test_quiet_does_not_log(caplog):
    with caplog.at_level(logging.INFO, logger="rosenpass.key_output"):
        output_key(AppPeer(), PEER_ID, KeyOutputReason.EXCHANGED, KEY)
    assert caplog.text == ""


def _fake_child(returncode):
    child = mock.MagicMock()
    child.wait.return_value = returncode
    return child


@mock.patch("rosenpass.key_output.subprocess.Popen")
def test_wireguard_receives_key(popen):
    child = _fake_child(0)
    popen.return_value = child
    peer = AppPeer(outwg=WireguardOut("wg0", "peerkey", ["allowed-ips", "10.0.0.2/32"]))
    waiter = output_key(peer, PEER_ID, KeyOutputReason.EXCHANGED, KEY)
    waiter.join(5)
    args = popen.call_args.args[0]
    assert args == [
        "wg", "set", "wg0", "peer", "peerkey", "preshared-key", "/dev/stdin",
        "allowed-ips", "10.0.0.2/32",
    ]
    written = child.stdin.write.call_args.args[0]
    assert base64.b64decode(written) == KEY
    assert child.stdin.close.called
    assert child.wait.called


@mock.patch("rosenpass.key_output.subprocess.Popen")
def test_wireguard_failure_is_logged(popen, caplog):
    popen.return_value = _fake_child(1)
    peer = AppPeer(outwg=WireguardOut("wg0", "peerkey"))
    with caplog.at_level(logging.ERROR, logger="rosenpass.key_output"):
        waiter = output_key(peer, PEER_ID, KeyOutputReason.EXCHANGED, KEY)
        waiter.join(5)
    assert "could not pass psk to wg" in caplog.text


@mock.patch("rosenpass.key_output.subprocess.Popen", side_effect=FileNotFoundError)
def test_wireguard_missing_binary_raises(popen):
    peer = AppPeer(outwg=WireguardOut("wg0", "peerkey"))
    with pytest.raises(FileNotFoundError):
        output_key(peer, PEER_ID, KeyOutputReason.EXCHANGED, KEY)