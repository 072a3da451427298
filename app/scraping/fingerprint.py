"""
Content fingerprints for cheap change detection between snapshots.

Not cryptographic: only determinism matters.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

_MASK_32 = 0xFFFFFFFF
_MASK_64 = 0xFFFFFFFFFFFFFFFF
_FNV64_OFFSET = 0xCBF29CE484222325
_FNV64_PRIME = 0x100000001B3


class ContentFingerprint(ABC):
    """
    Maps normalized text to a fixed-width digest string.
    """

    name: str

    @abstractmethod
    def hash(self, text: str) -> str:
        """
        Return the digest of ``text``. Equal text always yields equal digests.
        """


class RollingHashFingerprint(ContentFingerprint):
    """
    Multiplicative rolling hash ``h = h * 31 + ord(ch)`` kept to 32 bits,
    rendered as 8 hex digits.
    """

    name = "rolling31"

    def hash(self, text: str) -> str:
        value = 0
        for char in text:
            value = (value * 31 + ord(char)) & _MASK_32
        return f"{value:08x}"


class Fnv1a64Fingerprint(ContentFingerprint):
    """
    FNV-1a over UTF-8 bytes, 64 bits, rendered as 16 hex digits.
    """

    name = "fnv1a64"

    def hash(self, text: str) -> str:
        value = _FNV64_OFFSET
        for byte in text.encode("utf-8"):
            value ^= byte
            value = (value * _FNV64_PRIME) & _MASK_64
        return f"{value:016x}"


_FINGERPRINTS: dict[str, type[ContentFingerprint]] = {
    RollingHashFingerprint.name: RollingHashFingerprint,
    Fnv1a64Fingerprint.name: Fnv1a64Fingerprint,
}


def get_fingerprint(name: str) -> ContentFingerprint:
    """
    Return a fingerprint implementation by name.
    """

    try:
        return _FINGERPRINTS[name.strip().lower()]()
    except KeyError as exc:
        raise ValueError(
            f"Unknown fingerprint '{name}'. Allowed values: {sorted(_FINGERPRINTS)}."
        ) from exc
