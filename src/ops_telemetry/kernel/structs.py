"""Decoding of fixed-layout kernel structures.

A ``StructLayout`` is an ordered list of fields mirroring a C structure
byte for byte. Everything is little-endian and nothing is aligned
implicitly: padding the compiler would insert has to be declared with
``pad()``. Layouts decode a buffer into a record built by ``factory``
(a dataclass for the known kernel structures, ``dict`` otherwise).
"""

from __future__ import annotations

import struct
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Iterator, Mapping

from ops_telemetry.errors import DecodeError


@lru_cache(maxsize=None)
def _compiled(fmt: str) -> struct.Struct:
    return struct.Struct("<" + fmt)


@dataclass(frozen=True)
class Field:
    name: str | None
    code: str
    count: int = 1
    array: bool = False
    layout: StructLayout | None = None

    @property
    def size(self) -> int:
        if self.layout is not None:
            return self.layout.size * self.count
        return _compiled(f"{self.count}{self.code}").size

    def read(self, buf: memoryview, pos: int, out: dict[str, Any]) -> int:
        if self.layout is not None:
            items = []
            for _ in range(self.count):
                items.append(self.layout.decode(buf, pos))
                pos += self.layout.size
            out[str(self.name)] = tuple(items) if self.array else items[0]
            return pos

        s = _compiled(f"{self.count}{self.code}")
        if pos + s.size > len(buf):
            raise DecodeError(f"field {self.name or 'pad'}", pos + s.size, len(buf))
        values = s.unpack_from(buf, pos)
        if self.name is not None:
            out[self.name] = tuple(values) if self.array else values[0]
        return pos + s.size

    def write(self, buf: bytearray, pos: int, value: Any) -> int:
        if self.layout is not None:
            items = value if self.array else (value,)
            for item in items:
                buf[pos : pos + self.layout.size] = self.layout.encode(item)
                pos += self.layout.size
            return pos

        s = _compiled(f"{self.count}{self.code}")
        if self.name is None:
            return pos + s.size
        args = tuple(value) if self.array else (value,)
        s.pack_into(buf, pos, *args)
        return pos + s.size


def u32(name: str) -> Field:
    return Field(name, "I")


def i32(name: str) -> Field:
    return Field(name, "i")


def u64(name: str) -> Field:
    return Field(name, "Q")


def i64(name: str) -> Field:
    return Field(name, "q")


def word(name: str, width: int, signed: bool = False) -> Field:
    """A native ``long``/pointer sized integer of ``width`` bytes."""
    if width == 8:
        return Field(name, "q" if signed else "Q")
    if width == 4:
        return Field(name, "i" if signed else "I")
    raise ValueError(f"unsupported word width: {width}")


def chars(name: str, length: int) -> Field:
    return Field(name, "s", length)


def pad(length: int) -> Field:
    return Field(None, "x", length)


def array(name: str, code: str, count: int) -> Field:
    return Field(name, code, count, array=True)


def nested(name: str, layout: StructLayout, count: int = 1) -> Field:
    return Field(name, "", count, array=count != 1, layout=layout)


class StructLayout:
    def __init__(
        self,
        name: str,
        fields: list[Field],
        factory: Callable[..., Any] = dict,
    ) -> None:
        self.name = name
        self.fields = list(fields)
        self.factory = factory
        self.size = sum(f.size for f in self.fields)

    def __repr__(self) -> str:
        return f"StructLayout({self.name!r}, size={self.size})"

    def decode(self, buf: bytes | bytearray | memoryview, offset: int = 0) -> Any:
        view = memoryview(buf)
        available = len(view) - offset
        if offset < 0 or available < self.size:
            raise DecodeError(self.name, self.size, max(available, 0))

        values: dict[str, Any] = {}
        pos = offset
        for f in self.fields:
            pos = f.read(view, pos, values)
        return self.factory(**values)

    def iter_decode(
        self,
        buf: bytes | bytearray | memoryview,
        offset: int = 0,
        count: int | None = None,
    ) -> Iterator[tuple[int, Any]]:
        """Yield ``(index, record)`` for consecutive records.

        A slot that fails to decode yields its ``DecodeError`` instead of a
        record, so batch callers can skip it and keep going.
        """
        if count is None:
            count = max(0, (len(buf) - offset) // self.size)
        for i in range(count):
            try:
                yield i, self.decode(buf, offset + i * self.size)
            except DecodeError as e:
                yield i, e

    def encode(self, record: Any) -> bytes:
        out = bytearray(self.size)
        pos = 0
        for f in self.fields:
            value = None if f.name is None else _get(record, f.name)
            pos = f.write(out, pos, value)
        return bytes(out)


def _get(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record[name]
    return getattr(record, name)


def c_string(raw: bytes) -> str:
    """Text of a fixed-length char array, up to the first NUL."""
    return bytes(raw).split(b"\x00", 1)[0].decode("utf-8", errors="replace")
