from __future__ import annotations

from typing import Any


class TelemetryError(Exception):
    """Base class for every failure raised by ops_telemetry."""


class SyscallError(TelemetryError):
    def __init__(self, call: str, errno: int = 0, message: str = "") -> None:
        self.call = call
        self.errno = int(errno)
        detail = message or (f"errno {self.errno}" if self.errno else "failed")
        super().__init__(f"{call}: {detail}")


class EnumerationError(SyscallError):
    """Mount table could not be read."""


class CommandError(TelemetryError):
    def __init__(self, argv: list[str], message: str) -> None:
        self.argv = list(argv)
        super().__init__(f"{' '.join(argv)}: {message}")


class DecodeError(TelemetryError, ValueError):
    def __init__(self, layout: str, needed: int, available: int) -> None:
        self.layout = layout
        self.needed = int(needed)
        self.available = int(available)
        super().__init__(f"{layout}: need {self.needed} bytes, have {self.available}")


class ParseError(TelemetryError, ValueError):
    def __init__(self, key: str, value: str, partial: Any = None) -> None:
        self.key = key
        self.value = value
        self.partial = partial
        super().__init__(f"{key}: cannot parse {value!r} as an unsigned integer")


class UnsupportedPlatformError(TelemetryError):
    pass
