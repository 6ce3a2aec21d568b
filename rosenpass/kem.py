"""Interface of Key Encapsulation Mechanisms (KEMs).

A KEM offers key generation, encapsulation of a fresh shared secret under a
public key, and decapsulation of that secret with the matching secret key.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import ClassVar

__all__ = ["Kem"]


class Kem(ABC):
    """Key Encapsulation Mechanism with fixed key, ciphertext and secret sizes.

    Subclasses set the length constants and implement ``_keygen``,
    ``_encaps`` and ``_decaps``; the public methods check every length.
    """

    SK_LEN: ClassVar[int]
    PK_LEN: ClassVar[int]
    CT_LEN: ClassVar[int]
    SHK_LEN: ClassVar[int]

    def keygen(self) -> tuple[bytes, bytes]:
        """Generate a keypair ``(sk, pk)``."""
        sk, pk = self._keygen()
        self.check_length("secret key", sk, self.SK_LEN)
        self.check_length("public key", pk, self.PK_LEN)
        return bytes(sk), bytes(pk)

    def encaps(self, pk) -> tuple[bytes, bytes]:
        """From a public key derive ``(shk, ct)``: a shared key and a ciphertext."""
        self.check_length("public key", pk, self.PK_LEN)
        shk, ct = self._encaps(bytes(pk))
        self.check_length("shared key", shk, self.SHK_LEN)
        self.check_length("ciphertext", ct, self.CT_LEN)
        return bytes(shk), bytes(ct)

    def decaps(self, sk, ct) -> bytes:
        """From a secret key and a ciphertext derive the shared key."""
        self.check_length("secret key", sk, self.SK_LEN)
        self.check_length("ciphertext", ct, self.CT_LEN)
        shk = self._decaps(bytes(sk), bytes(ct))
        self.check_length("shared key", shk, self.SHK_LEN)
        return bytes(shk)

    def check_length(self, name: str, value, expected: int) -> None:
        """Raise ``ValueError`` unless ``value`` is exactly ``expected`` bytes long."""
        actual = len(memoryview(value).cast("B"))
        if actual != expected:
            raise ValueError(
                f"{type(self).__name__}: {name} must be {expected} bytes, got {actual}"
            )

    @abstractmethod
    def _keygen(self) -> tuple[bytes, bytes]:
        """Produce ``(sk, pk)``."""

    @abstractmethod
    def _encaps(self, pk: bytes) -> tuple[bytes, bytes]:
        """Produce ``(shk, ct)`` for ``pk``."""

    @abstractmethod
    def _decaps(self, sk: bytes, ct: bytes) -> bytes:
        """Recover ``shk`` from ``sk`` and ``ct``."""