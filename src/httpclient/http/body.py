"""
=============================================================================
BODY DESCRIPTORS
=============================================================================

A length-aware description of the outbound payload.

    ┌──────────────┬──────────────────────────┬────────────────────────────┐
    │ Variant      │ Built from               │ Length                     │
    ├──────────────┼──────────────────────────┼────────────────────────────┤
    │ Absent       │ None                     │ none                       │
    │ InlineBytes  │ str / bytes / json / form│ len(encoded bytes)         │
    │ Stream       │ file object / iterable   │ file size, else unknown    │
    │ Multipart    │ FormData                 │ exact, computed up front   │
    └──────────────┴──────────────────────────┴────────────────────────────┘

Strings are measured after UTF-8 encoding: "ü" is one character but two
bytes on the wire, and Content-Length counts bytes.

=============================================================================
STREAM PROBING
=============================================================================

A stream only has a known length when the resource behind it can be
asked for its size: a BytesIO, or a binary file object opened directly
on a regular file. Wrapped readers (zip members, gzip streams, text
wrappers) always have an unknown length. The probe is the one place
where normalization suspends:

    describe_body(f)            Stream(handle=f, known_length=None)
         │
         ▼
    await probe_length(...)     os.stat(f.name) in the default executor
         │
         ├── regular file ───►  Stream(handle=f, known_length=<size>)
         ├── pipe / iterator ─►  Stream(handle=f, known_length=None)
         ├── wrapped reader ─►  Stream(handle=f, known_length=None)
         └── OSError ─────────►  handle closed, BodyInspectionError

If the caller cancels while the probe is pending, the handle is closed
and the cancellation propagates.

=============================================================================
"""

from contextlib import suppress
from dataclasses import dataclass
from typing import Any, AsyncIterator, Iterator, Optional
import asyncio
import io
import logging
import os
import stat

from .errors import BodyInspectionError, InvalidOption
from .multipart import FormData


logger = logging.getLogger(__name__)

DEFAULT_CHUNK_SIZE = 64 * 1024


class BodyDescriptor:
    """Base class for the body variants."""

    @property
    def length(self) -> Optional[int]:
        """Byte length when determinable, else None."""
        return None

    @property
    def content_type(self) -> Optional[str]:
        """Content-Type to use when the caller did not set one."""
        return None

    @property
    def needs_probe(self) -> bool:
        return False


@dataclass(frozen=True)
class Absent(BodyDescriptor):
    """No payload at all."""


ABSENT = Absent()


@dataclass(frozen=True)
class InlineBytes(BodyDescriptor):
    """A payload already held in memory."""

    data: bytes
    default_type: Optional[str] = None

    @property
    def length(self) -> int:
        return len(self.data)

    @property
    def content_type(self) -> Optional[str]:
        return self.default_type


@dataclass(frozen=True)
class Stream(BodyDescriptor):
    """A payload read lazily from a file object or an iterable of bytes."""

    handle: Any
    known_length: Optional[int] = None
    probed: bool = False

    @property
    def length(self) -> Optional[int]:
        return self.known_length

    @property
    def needs_probe(self) -> bool:
        return not self.probed

    def iter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> Iterator[bytes]:
        """Read the stream synchronously. Async iterables need aiter_chunks()."""
        handle = self.handle
        if hasattr(handle, "read"):
            while True:
                chunk = handle.read(chunk_size)
                if not chunk:
                    return
                yield chunk
        elif hasattr(handle, "__aiter__"):
            raise TypeError("Async iterable bodies must be read with aiter_chunks()")
        else:
            yield from handle

    async def aiter_chunks(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> AsyncIterator[bytes]:
        if hasattr(self.handle, "__aiter__"):
            async for chunk in self.handle:
                yield chunk
        else:
            for chunk in self.iter_chunks(chunk_size):
                yield chunk


@dataclass(frozen=True)
class Multipart(BodyDescriptor):
    """A multipart/form-data payload; length is always known."""

    form: FormData

    @property
    def boundary(self) -> str:
        return self.form.get_boundary()

    @property
    def length(self) -> int:
        return self.form.get_length()

    @property
    def content_type(self) -> str:
        return self.form.get_content_type()


# =============================================================================
# CONSTRUCTION
# =============================================================================

def describe_body(body: Any) -> BodyDescriptor:
    """
    Wrap a user-supplied body in its descriptor.

    Raises:
        InvalidOption: For values that are not a recognized body kind,
            e.g. a dict (use the json= or form= option instead).
    """
    if body is None:
        return ABSENT
    if isinstance(body, BodyDescriptor):
        return body
    if isinstance(body, str):
        return InlineBytes(body.encode("utf-8"))
    if isinstance(body, (bytes, bytearray, memoryview)):
        return InlineBytes(bytes(body))
    if isinstance(body, FormData):
        return Multipart(body)
    if isinstance(body, (dict, list, tuple, set)):
        raise InvalidOption(
            f"Unsupported body type {type(body).__name__}; "
            "pass json= or form= for structured data",
            option="body",
        )
    if hasattr(body, "read") or hasattr(body, "__iter__") or hasattr(body, "__aiter__"):
        return Stream(body)
    raise InvalidOption(f"Unsupported body type {type(body).__name__}", option="body")


# =============================================================================
# STREAM LENGTH PROBE
# =============================================================================

def _backing_file(handle: Any) -> Optional[io.FileIO]:
    """
    The raw OS file a binary handle reads from, if it reads one directly.

    Wrapped readers (zip members, gzip and other codecs, text wrappers)
    carry a name or fileno that says nothing about the bytes they yield.
    """
    if isinstance(handle, io.FileIO):
        return handle
    if isinstance(handle, (io.BufferedReader, io.BufferedRandom)):
        raw = handle.raw
        if isinstance(raw, io.FileIO):
            return raw
    return None


def _has_size(handle: Any) -> bool:
    return isinstance(handle, io.BytesIO) or _backing_file(handle) is not None


def _measure(handle: Any) -> Optional[int]:
    """
    Remaining byte count of a file-like handle, or None if unknowable.

    Runs in an executor thread; may raise OSError or ValueError.
    """
    if isinstance(handle, io.BytesIO):
        return len(handle.getbuffer()) - handle.tell()

    raw = _backing_file(handle)
    if raw is None:
        return None
    if isinstance(raw.name, str):
        info = os.stat(raw.name)
    else:
        info = os.fstat(raw.fileno())

    # Pipes, sockets and character devices report no meaningful size
    if not stat.S_ISREG(info.st_mode):
        return None

    position = handle.tell() if handle.seekable() else 0
    return max(info.st_size - position, 0)


def close_handle(handle: Any) -> None:
    """Release a stream handle; errors while closing are not interesting here."""
    close = getattr(handle, "close", None)
    if callable(close):
        with suppress(OSError):
            close()


async def probe_length(body: Stream) -> Stream:
    """
    Determine the known length of a stream body.

    Iterables and other size-less handles resolve without suspending.

    Raises:
        BodyInspectionError: If the underlying resource cannot be
            inspected (vanished file, closed handle, ...).
    """
    if body.probed:
        return body

    handle = body.handle
    if not _has_size(handle):
        logger.debug(f"Stream body {type(handle).__name__} has no queryable size")
        return Stream(handle, None, probed=True)

    loop = asyncio.get_running_loop()
    try:
        length = await loop.run_in_executor(None, _measure, handle)
    except asyncio.CancelledError:
        close_handle(handle)
        raise
    except (OSError, ValueError) as e:
        logger.warning(f"Could not determine stream body length: {e}")
        close_handle(handle)
        raise BodyInspectionError(
            f"Could not determine stream body length: {e}", stream=handle
        ) from e

    logger.debug(f"Probed stream body length: {length}")
    return Stream(handle, length, probed=True)
