"""Human-readable byte sizes in binary units."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Union

B = 1
KIB = B * 1024
MIB = KIB * 1024
GIB = MIB * 1024
TIB = GIB * 1024
PIB = TIB * 1024

_U64_MAX = (1 << 64) - 1

_UNITS = {
    "K": KIB,
    "KB": KIB,
    "KiB": KIB,
    "M": MIB,
    "MB": MIB,
    "MiB": MIB,
    "G": GIB,
    "GB": GIB,
    "GiB": GIB,
    "T": TIB,
    "TB": TIB,
    "TiB": TIB,
    "P": PIB,
    "PB": PIB,
    "PiB": PIB,
    "B": B,
    "": B,
}

_NUMBER_CHARS = frozenset("0123456789.eE-+")

# Largest unit first; used both for serializing and for display.
_SUFFIXES = ((PIB, "PiB"), (TIB, "TiB"), (GIB, "GiB"), (MIB, "MiB"), (KIB, "KiB"))


def _quoted(text: str) -> str:
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


def _float_to_u64(value: float) -> int:
    """Convert a float to an unsigned 64-bit integer, saturating at the bounds."""
    if value != value or value <= 0:
        return 0
    if value >= 2.0**64:
        return _U64_MAX
    return int(value)


@dataclass(frozen=True, order=True)
class ReadableSize:
    """A number of bytes that parses from and prints to binary-unit strings."""

    value: int = 0

    def __post_init__(self) -> None:
        if isinstance(self.value, bool) or not isinstance(self.value, int):
            raise TypeError(f"size must be an integer, got {self.value!r}")
        if not 0 <= self.value <= _U64_MAX:
            raise ValueError(f"size out of range: {self.value}")

    @classmethod
    def kb(cls, count: int) -> ReadableSize:
        return cls(count * KIB)

    @classmethod
    def mb(cls, count: int) -> ReadableSize:
        return cls(count * MIB)

    @classmethod
    def gb(cls, count: int) -> ReadableSize:
        return cls(count * GIB)

    def as_mb(self) -> int:
        return self.value // MIB

    def _divide(self, other: Union[int, ReadableSize]) -> Union[int, ReadableSize]:
        if isinstance(other, ReadableSize):
            return self.value // other.value
        if isinstance(other, int) and not isinstance(other, bool):
            return ReadableSize(self.value // other)
        return NotImplemented

    def __truediv__(self, other: Union[int, ReadableSize]) -> Union[int, ReadableSize]:
        """Divide by a count (giving a size) or by a size (giving a count)."""
        return self._divide(other)

    def __floordiv__(self, other: Union[int, ReadableSize]) -> Union[int, ReadableSize]:
        return self._divide(other)

    def __mul__(self, other: int) -> ReadableSize:
        if isinstance(other, int) and not isinstance(other, bool):
            return ReadableSize(self.value * other)
        return NotImplemented

    __rmul__ = __mul__

    @classmethod
    def parse(cls, text: str) -> ReadableSize:
        """Parse a string such as ``"4MiB"``, ``"0.5 GB"`` or ``"1e6B"``."""
        size_str = text.strip()
        if not size_str:
            raise ValueError(f"{_quoted(text)} is not a valid size.")
        if not size_str.isascii():
            raise ValueError(f"ASCII string is expected, but got {_quoted(text)}")

        split = len(size_str)
        for position, char in enumerate(size_str):
            if char not in _NUMBER_CHARS:
                split = position
                break
        number, unit_text = size_str[:split], size_str[split:].strip()

        unit = _UNITS.get(unit_text)
        if unit is None:
            raise ValueError(
                "only B, KB, KiB, MB, MiB, GB, GiB, TB, TiB, PB, and PiB are "
                f"supported: {_quoted(text)}"
            )
        try:
            amount = float(number)
        except ValueError:
            raise ValueError(f"invalid size string: {_quoted(text)}") from None
        return cls(_float_to_u64(amount * float(unit)))

    def serialize(self) -> Union[str, int]:
        """Return the exact unit string for whole units, else the raw byte count."""
        if self.value == 0:
            return "0KiB"
        for unit, suffix in _SUFFIXES:
            if self.value % unit == 0:
                return f"{self.value // unit}{suffix}"
        return self.value

    @classmethod
    def deserialize(cls, value: Union[str, int]) -> ReadableSize:
        """Build a size from a non-negative integer or a size string."""
        if isinstance(value, bool):
            raise TypeError(f"invalid type: boolean, expected valid size: {value!r}")
        if isinstance(value, int):
            if value < 0:
                raise ValueError(f"invalid value: integer `{value}`, expected valid size")
            return cls(value)
        if isinstance(value, str):
            return cls.parse(value)
        raise TypeError(f"invalid type, expected valid size: {value!r}")

    def __str__(self) -> str:
        for unit, suffix in _SUFFIXES:
            if self.value >= unit:
                return f"{self.value / unit:.1f}{suffix}"
        return f"{self.value}B"