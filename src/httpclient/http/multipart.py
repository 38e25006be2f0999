"""
=============================================================================
MULTIPART FORM DATA
=============================================================================

Encodes form fields as a multipart/form-data body (RFC 7578).

=============================================================================
WIRE LAYOUT
=============================================================================

One field "a" with value "b" encodes to exactly 157 bytes:

    ┌─────────────────────────────────────────────────────────────────────┐
    │ --<boundary>\r\n                                       54 bytes    │
    │ Content-Disposition: form-data; name="a"\r\n           42 bytes    │
    │ \r\n                                                    2 bytes    │
    │ b                                                       1 byte     │
    │ \r\n                                                    2 bytes    │
    │ --<boundary>--\r\n                                     56 bytes    │
    └─────────────────────────────────────────────────────────────────────┘

The boundary is 26 dashes followed by 24 random digits (50 characters).

Every field value is buffered in memory when it is appended, so the
total length is known before a single byte is written. That is what lets
the normalizer send an exact Content-Length for form bodies instead of
falling back to chunked transfer.

=============================================================================
"""

from typing import Iterator, List, Optional, Tuple, Union
import re
import secrets
import string

from .mime_types import get_mime_type


BOUNDARY_PREFIX = "-" * 26
BOUNDARY_DIGITS = 24

# RFC 2046 §5.1.1 bchars, 1 to 70 characters
BOUNDARY_PATTERN = re.compile(r"^[0-9A-Za-z'()+_,\-./:=?]{1,70}$")

FieldValue = Union[str, bytes, bytearray, int, float]


def generate_boundary() -> str:
    """Create a boundary in the form "--------------------------<24 digits>"."""
    digits = "".join(secrets.choice(string.digits) for _ in range(BOUNDARY_DIGITS))
    return BOUNDARY_PREFIX + digits


def _quote(value: str) -> str:
    # Percent-encode characters that would break the quoted-string
    return value.replace("\r", "%0D").replace("\n", "%0A").replace('"', "%22")


class FormData:
    """
    A multipart/form-data body built from in-memory fields.

    Example:
        form = FormData()
        form.append("name", "Ada")
        form.append("avatar", png_bytes, filename="ada.png")

        form.get_content_type()   # "multipart/form-data; boundary=..."
        form.get_length()         # exact byte count of to_bytes()
    """

    LINE_BREAK = b"\r\n"
    DEFAULT_CONTENT_TYPE = "application/octet-stream"

    def __init__(self, boundary: Optional[str] = None):
        if boundary is not None and not BOUNDARY_PATTERN.match(boundary):
            raise ValueError(f"Invalid multipart boundary: {boundary!r}")
        self._boundary = boundary or generate_boundary()
        self._parts: List[Tuple[bytes, bytes]] = []  # (part header, payload)

    def append(
        self,
        name: str,
        value: FieldValue,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> "FormData":
        """
        Add a field.

        Args:
            name: Field name.
            value: str, bytes or number. Numbers are sent as their decimal text.
            filename: Marks the part as a file upload; also used to guess
                      the part's Content-Type.
            content_type: Explicit part Content-Type, overrides the guess.

        Returns:
            Self for method chaining.
        """
        if isinstance(value, bool) or not isinstance(value, (str, bytes, bytearray, int, float)):
            raise TypeError(
                f"Form field {name!r} must be str, bytes or a number, "
                f"got {type(value).__name__}"
            )

        if isinstance(value, str):
            payload = value.encode("utf-8")
        elif isinstance(value, (bytes, bytearray)):
            payload = bytes(value)
        else:
            payload = str(value).encode("ascii")

        # Binary values and files always describe themselves
        if content_type is None:
            if filename is not None:
                content_type = get_mime_type(filename)
            elif isinstance(value, (bytes, bytearray)):
                content_type = self.DEFAULT_CONTENT_TYPE

        self._parts.append((self._part_header(name, filename, content_type), payload))
        return self

    def _part_header(
        self, name: str, filename: Optional[str], content_type: Optional[str]
    ) -> bytes:
        disposition = f'form-data; name="{_quote(name)}"'
        if filename is not None:
            disposition += f'; filename="{_quote(filename)}"'

        lines = [f"--{self._boundary}", f"Content-Disposition: {disposition}"]
        if content_type is not None:
            lines.append(f"Content-Type: {content_type}")
        return ("\r\n".join(lines) + "\r\n\r\n").encode("utf-8")

    def _last_boundary(self) -> bytes:
        return f"--{self._boundary}--\r\n".encode("ascii")

    # =========================================================================
    # INSPECTION
    # =========================================================================

    def get_boundary(self) -> str:
        return self._boundary

    def get_content_type(self) -> str:
        return f"multipart/form-data; boundary={self._boundary}"

    def get_length(self) -> int:
        """Exact number of bytes iter_chunks() will produce."""
        total = sum(
            len(header) + len(payload) + len(self.LINE_BREAK)
            for header, payload in self._parts
        )
        return total + len(self._last_boundary())

    def __len__(self) -> int:
        return len(self._parts)

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def iter_chunks(self) -> Iterator[bytes]:
        for header, payload in self._parts:
            yield header
            yield payload
            yield self.LINE_BREAK
        yield self._last_boundary()

    def to_bytes(self) -> bytes:
        return b"".join(self.iter_chunks())
