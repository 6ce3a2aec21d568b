"""Named, fixed-size views into byte buffers.

A lense describes a binary layout as an ordered list of named fields with
fixed lengths. Instances wrap a buffer and expose each field as a
``memoryview`` slice, so writes through a field land in the wrapped buffer.
"""

from __future__ import annotations

from typing import ClassVar, Iterable, Mapping, Union

__all__ = [
    "LenseError",
    "ensure_exact_buffer_size",
    "ensure_sufficient_buffer_size",
    "Lense",
    "make_lense",
]


class LenseError(ValueError):
    """Raised when a buffer does not fit a lense."""

    def __init__(self, message: str = "buffer size mismatch") -> None:
        super().__init__(message)


def ensure_exact_buffer_size(length: int, required: int) -> None:
    """Raise :class:`LenseError` unless ``length == required``."""
    if length != required:
        raise LenseError()


def ensure_sufficient_buffer_size(length: int, required: int) -> None:
    """Raise :class:`LenseError` unless ``length >= required``."""
    if length < required:
        raise LenseError()


class Lense:
    """Base class of all lenses; subclasses set ``FIELDS``."""

    FIELDS: ClassVar[tuple[tuple[str, int], ...]] = ()
    LEN: ClassVar[int] = 0
    _OFFSETS: ClassVar[dict[str, tuple[int, int]]] = {}

    def __init_subclass__(cls, **kwargs) -> None:
        super().__init_subclass__(**kwargs)
        offsets: dict[str, tuple[int, int]] = {}
        position = 0
        for name, length in cls.FIELDS:
            if name in offsets:
                raise ValueError(f"duplicate field {name!r}")
            if not isinstance(length, int) or length < 0:
                raise ValueError(f"invalid length {length!r} for field {name!r}")
            offsets[name] = (position, length)
            position += length
        cls._OFFSETS = offsets
        cls.LEN = position

    def __init__(self, buffer) -> None:
        self._view = memoryview(buffer).cast("B")

    def __repr__(self) -> str:
        return f"{type(self).__name__}({bytes(self._view)!r})"

    @classmethod
    def check_size(cls, length: int) -> None:
        """Verify that ``length`` holds exactly one instance of this lense."""
        ensure_exact_buffer_size(length, cls.LEN)

    @classmethod
    def from_buffer(cls, buffer):
        """Create a lense over ``buffer``, which must have exactly ``LEN`` bytes."""
        view = memoryview(buffer).cast("B")
        cls.check_size(view.nbytes)
        return cls(view)

    @classmethod
    def truncating(cls, buffer):
        """Create a lense over the first ``LEN`` bytes of a large enough buffer."""
        view = memoryview(buffer).cast("B")
        ensure_sufficient_buffer_size(view.nbytes, cls.LEN)
        return cls.from_buffer(view[: cls.LEN])

    @classmethod
    def field_len(cls, name: str) -> int:
        """Size in bytes of the field ``name``."""
        return cls._locate(name)[1]

    @classmethod
    def _locate(cls, name: str) -> tuple[int, int]:
        try:
            return cls._OFFSETS[name]
        except KeyError:
            raise KeyError(f"{cls.__name__} has no field {name!r}") from None

    def _slice(self, start: int, stop: int) -> memoryview:
        if stop > self._view.nbytes:
            raise LenseError()
        return self._view[start:stop]

    def field(self, name: str) -> memoryview:
        """View of the bytes of field ``name``."""
        offset, length = self._locate(name)
        return self._slice(offset, offset + length)

    def until(self, name: str) -> memoryview:
        """View of the bytes preceding field ``name``."""
        offset, _ = self._locate(name)
        return self._slice(0, offset)

    def all_bytes(self) -> memoryview:
        """View of all bytes belonging to this lense."""
        return self._slice(0, self.LEN)


FieldSpec = Union[Mapping[str, int], Iterable[tuple[str, int]]]


def make_lense(name: str, fields: FieldSpec) -> type[Lense]:
    """Create a :class:`Lense` subclass called ``name`` with ordered ``fields``."""
    items = fields.items() if isinstance(fields, Mapping) else fields
    spec = tuple((str(field), length) for field, length in items)
    if not spec:
        raise ValueError("a lense needs at least one field")
    return type(name, (Lense,), {"FIELDS": spec})