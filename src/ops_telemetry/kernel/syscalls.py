from __future__ import annotations

import ctypes
import ctypes.util
import mmap
import os

from ops_telemetry.errors import EnumerationError, SyscallError


class KernelInterface:
    """Thin libc binding for sysctlbyname(3) and getfsstat(2).

    Buffers come back as plain ``bytes``; decoding them is up to the
    caller and its layouts.
    """

    def __init__(self, libc_path: str | None = None) -> None:
        path = libc_path or ctypes.util.find_library("c")
        if not path:
            raise SyscallError("dlopen", message="libc not found")
        try:
            self._libc = ctypes.CDLL(path, use_errno=True)
        except OSError as e:
            raise SyscallError("dlopen", message=str(e)) from e

    def sysctl(self, name: str) -> bytes:
        fn = self._symbol("sysctlbyname")
        fn.argtypes = [
            ctypes.c_char_p,
            ctypes.c_void_p,
            ctypes.POINTER(ctypes.c_size_t),
            ctypes.c_void_p,
            ctypes.c_size_t,
        ]
        fn.restype = ctypes.c_int

        key = name.encode("ascii")
        size = ctypes.c_size_t(0)
        if fn(key, None, ctypes.byref(size), None, 0) != 0:
            raise self._error(SyscallError, f"sysctl({name})")

        buf = ctypes.create_string_buffer(size.value)
        if fn(key, buf, ctypes.byref(size), None, 0) != 0:
            raise self._error(SyscallError, f"sysctl({name})")
        return buf.raw[: size.value]

    def mount_count(self, flags: int) -> int:
        n = self._getfsstat(None, 0, flags)
        if n < 0:
            raise self._error(EnumerationError, "getfsstat")
        return n

    def mount_table(self, count: int, record_size: int, flags: int) -> bytes:
        """Bytes of the mount records the kernel actually filled in."""
        if count <= 0:
            return b""
        buf = ctypes.create_string_buffer(count * record_size)
        n = self._getfsstat(buf, len(buf), flags)
        if n < 0:
            raise self._error(EnumerationError, "getfsstat")
        return buf.raw[: min(n, count) * record_size]

    def _getfsstat(self, buf: ctypes.Array | None, size: int, flags: int) -> int:
        fn = self._symbol("getfsstat")
        fn.argtypes = [ctypes.c_void_p, ctypes.c_long, ctypes.c_int]
        fn.restype = ctypes.c_int
        return int(fn(buf, size, flags))

    def _symbol(self, name: str):
        try:
            return getattr(self._libc, name)
        except AttributeError:
            raise SyscallError(name, message="not available in this libc") from None

    def _error(self, cls: type[SyscallError], call: str) -> SyscallError:
        errno = ctypes.get_errno()
        return cls(call, errno, os.strerror(errno) if errno else "")


def page_size() -> int:
    return mmap.PAGESIZE
