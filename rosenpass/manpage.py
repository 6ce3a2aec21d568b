"""Rendering of the manual page to plain text."""

from __future__ import annotations

import subprocess

__all__ = ["FALLBACK_TEXT", "COMPILERS", "render_man", "generate_man"]

FALLBACK_TEXT = "Cannot render manual page\n"
COMPILERS = ("mandoc", "groff")


def render_man(compiler: str, man) -> str:
    """Compile the troff page ``man`` with ``compiler`` to ASCII text.

    Raises ``OSError`` if the compiler cannot be started, ``RuntimeError``
    if it reports an error and ``UnicodeDecodeError`` on undecodable output.
    """
    completed = subprocess.run(
        [compiler, "-Tascii", str(man)],
        capture_output=True,
        check=False,
    )
    if completed.returncode != 0:
        raise RuntimeError(f"{compiler} returned an error")
    return completed.stdout.decode("utf-8")


def generate_man(man="./doc/rosenpass.1") -> str:
    """Render ``man`` with the first compiler that works, or a fallback notice."""
    for compiler in COMPILERS:
        try:
            return render_man(compiler, man)
        except (OSError, RuntimeError, UnicodeDecodeError):
            continue
    return FALLBACK_TEXT