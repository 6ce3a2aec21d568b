"""Per-peer application state and delivery of exchanged keys.

A key is written base64 encoded to the peer's output file and/or handed to
WireGuard as a pre-shared key through ``wg set``.
"""

from __future__ import annotations

import base64
import enum
import logging
import subprocess
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from .endpoints import Endpoint

__all__ = [
    "WG_COMMAND",
    "WireguardOut",
    "KeyOutputReason",
    "AppPeer",
    "output_key",
]

log = logging.getLogger(__name__)

WG_COMMAND = "wg"


@dataclass
class WireguardOut:
    """Where to install an exchanged key as a WireGuard pre-shared key."""

    dev: str = ""
    pk: str = ""
    extra_params: list[str] = field(default_factory=list)


class KeyOutputReason(enum.Enum):
    """Why a key is being written out."""

    EXCHANGED = "exchanged"
    STALE = "stale"

    @property
    def message(self) -> str:
        if self is KeyOutputReason.EXCHANGED:
            return "Exchanged key with peer"
        return "Erasing outdated key from peer"


@dataclass
class AppPeer:
    """Application-level settings and endpoints of one peer."""

    outfile: Optional[Path] = None
    outwg: Optional[WireguardOut] = None
    initial_endpoint: Optional[Endpoint] = None
    current_endpoint: Optional[Endpoint] = None

    def endpoint(self) -> Optional[Endpoint]:
        """The current endpoint, or the initial one if none is current."""
        if self.current_endpoint is not None:
            return self.current_endpoint
        return self.initial_endpoint


def _b64(data) -> str:
    return base64.b64encode(bytes(data)).decode("ascii")


def _quote_path(path) -> str:
    text = str(path).replace("\\", "\\\\").replace('"', '\\"')
    return f'"{text}"'


def _await_wg(child: subprocess.Popen) -> None:
    try:
        status = child.wait()
    except OSError as e:
        log.error("wait failed: %s", e)
        return
    if status == 0:
        log.debug("successfully passed psk to wg")
    else:
        log.error("could not pass psk to wg (exit status %s)", status)


def output_key(
    peer: AppPeer,
    peer_id,
    why: KeyOutputReason,
    key,
    verbose: bool = False,
) -> Optional[threading.Thread]:
    """Deliver ``key`` for ``peer`` to its output file and to WireGuard.

    Returns the thread waiting for ``wg`` to finish, or ``None`` if no
    WireGuard output is configured.
    """
    peer_b64 = _b64(peer_id)
    key_b64 = _b64(key)

    if verbose:
        log.info("%s %s", why.message, peer_b64)

    if peer.outfile is not None:
        Path(peer.outfile).write_text(key_b64, encoding="ascii")
        # Goes to stdout on purpose: it lets other programs detect the exchange.
        print(
            f"output-key peer {peer_b64} key-file {_quote_path(peer.outfile)} {why.value}",
            flush=True,
        )

    if peer.outwg is None:
        return None

    wg = peer.outwg
    child = subprocess.Popen(
        [
            WG_COMMAND,
            "set",
            wg.dev,
            "peer",
            wg.pk,
            "preshared-key",
            "/dev/stdin",
            *wg.extra_params,
        ],
        stdin=subprocess.PIPE,
    )
    try:
        child.stdin.write(key_b64.encode("ascii"))
    finally:
        child.stdin.close()

    waiter = threading.Thread(target=_await_wg, args=(child,), daemon=True)
    waiter.start()
    return waiter