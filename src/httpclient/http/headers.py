"""
=============================================================================
HEADER TABLE
=============================================================================

A case-insensitive, insertion-ordered mapping of request headers.

=============================================================================
WHY NOT A PLAIN DICT?
=============================================================================

HTTP header names are case-insensitive (RFC 7230 §3.2), but the name a
caller typed is what goes on the wire. The table therefore keeps two
things per entry:

    canonical name  ──►  (raw name as last set, value)
    "content-type"       ("Content-Type", "text/plain")

Lookups, overwrites and deletions all go through the canonical name, so
"ACCEPT-ENCODING" and "accept-encoding" can never coexist.

=============================================================================
TAGGED HEADER VALUES
=============================================================================

Callers express three different intents when passing a header:

    ┌───────────────────┬───────────────────────────────────────────────┐
    │ Caller passes     │ Effect                                        │
    ├───────────────────┼───────────────────────────────────────────────┤
    │ "value"           │ Present  - insert or overwrite                │
    │ ["a", "b"]        │ Present  - multi-value, one wire line each    │
    │ None              │ Deleted  - remove, and block re-insertion     │
    │ UNCHANGED         │ Unchanged - keep existing, never materialize  │
    └───────────────────┴───────────────────────────────────────────────┘

Anything else (numbers, dicts, bytes, ...) raises InvalidHeaderValue.

A deleted name leaves a tombstone. Derived headers (content-length,
host, ...) are inserted with derive(), which respects both explicit
values and tombstones: a user who deletes a header keeps it deleted.

=============================================================================
MERGE ORDER
=============================================================================

    1. library defaults       (user-agent, accept-encoding, accept)
    2. user headers           merge() - later wins, None deletes
    3. derived headers        derive() - only where absent

=============================================================================
"""

from dataclasses import dataclass
from typing import Any, Dict, Iterable, Iterator, List, Mapping, Optional, Set, Tuple, Union
import re

from .errors import InvalidHeaderValue, InvalidOption


# RFC 7230 token characters. Names outside this set would corrupt the
# header block on the wire.
TOKEN_PATTERN = re.compile(r"^[!#$%&'*+\-.^_`|~0-9A-Za-z]+$")


@dataclass(frozen=True)
class Present:
    """A header value to insert or overwrite."""

    value: Union[str, Tuple[str, ...]]


@dataclass(frozen=True)
class Deleted:
    """Remove the header and keep it from being derived later."""


@dataclass(frozen=True)
class Unchanged:
    """Leave an existing header alone; omit it if it does not exist."""


DELETED = Deleted()
UNCHANGED = Unchanged()

HeaderValue = Union[Present, Deleted, Unchanged]
HeaderSource = Union["HeaderTable", Mapping[str, Any], Iterable[Tuple[str, Any]]]


def canonical_name(name: str) -> str:
    """Lowercase-fold a header name for lookups."""
    return name.lower()


def to_header_value(name: str, value: Any) -> HeaderValue:
    """
    Convert a caller-supplied value to its tagged form.

    Raises:
        InvalidHeaderValue: For any value that is not str, a non-empty
            list/tuple of str, None, or one of the tagged values.
    """
    if value is None:
        return DELETED
    if isinstance(value, (Present, Deleted, Unchanged)):
        return value
    if isinstance(value, str):
        _check_line(name, value)
        return Present(value)
    if isinstance(value, (list, tuple)) and value and all(isinstance(v, str) for v in value):
        for item in value:
            _check_line(name, item)
        return Present(tuple(value))
    raise InvalidHeaderValue(name, value)


def _check_line(name: str, value: str) -> None:
    # CR/LF would terminate the header line early (header injection)
    if "\r" in value or "\n" in value:
        raise InvalidHeaderValue(name, value, "line breaks are not allowed")


def _check_name(name: Any) -> str:
    if not isinstance(name, str) or not TOKEN_PATTERN.match(name):
        raise InvalidOption(f"Invalid header name: {name!r}", option="headers")
    return name


class HeaderTable:
    """
    Case-insensitive ordered header mapping with tombstoned deletes.

    Example:
        table = HeaderTable({"User-Agent": "demo"})
        table.set("user-agent", None)        # deleted
        table.derive("user-agent", "other")  # ignored, tombstoned
        table.get("USER-AGENT")              # None
    """

    def __init__(self, headers: Optional[HeaderSource] = None):
        # canonical name -> (raw name, value); dicts keep insertion order
        self._entries: Dict[str, Tuple[str, Union[str, Tuple[str, ...]]]] = {}
        self._deleted: Set[str] = set()
        self._frozen = False
        if headers is not None:
            self.merge(headers)

    # =========================================================================
    # MUTATION
    # =========================================================================

    def set(self, name: str, value: Any) -> "HeaderTable":
        """
        Insert, overwrite or delete a header (case-insensitive).

        Returns self for chaining.
        """
        self._check_mutable()
        _check_name(name)
        header = to_header_value(name, value)
        key = canonical_name(name)

        if isinstance(header, Deleted):
            self._entries.pop(key, None)
            self._deleted.add(key)
        elif isinstance(header, Present):
            self._deleted.discard(key)
            self._entries[key] = (name, header.value)
        # Unchanged: existing value stays, missing header stays missing
        return self

    def merge(self, other: HeaderSource) -> "HeaderTable":
        """Apply set() for every entry of other, in other's order."""
        for name, value in _iter_source(other):
            self.set(name, value)
        return self

    def derive(self, name: str, value: str) -> bool:
        """
        Insert a computed header unless it is already set or was deleted.

        Returns:
            True if the value was inserted.
        """
        self._check_mutable()
        key = canonical_name(name)
        if key in self._entries or key in self._deleted:
            return False
        self._entries[key] = (name, to_header_value(name, value).value)
        return True

    def freeze(self) -> "HeaderTable":
        """Make the table read-only. Used once a request is finalized."""
        self._frozen = True
        return self

    def _check_mutable(self) -> None:
        if self._frozen:
            raise TypeError("HeaderTable is frozen")

    # =========================================================================
    # ACCESS
    # =========================================================================

    def get(self, name: str, default: Any = None) -> Any:
        """Case-insensitive lookup of the stored value."""
        entry = self._entries.get(canonical_name(name))
        return entry[1] if entry is not None else default

    def is_deleted(self, name: str) -> bool:
        return canonical_name(name) in self._deleted

    @property
    def frozen(self) -> bool:
        return self._frozen

    def items(self) -> List[Tuple[str, Union[str, Tuple[str, ...]]]]:
        """(raw name, value) pairs in insertion order."""
        return list(self._entries.values())

    def wire_items(self) -> List[Tuple[str, str]]:
        """Ordered (name, value) lines; multi-value headers expand to one line each."""
        lines = []
        for raw, value in self._entries.values():
            if isinstance(value, tuple):
                lines.extend((raw, item) for item in value)
            else:
                lines.append((raw, value))
        return lines

    def to_dict(self) -> Dict[str, Union[str, Tuple[str, ...]]]:
        """Canonical (lowercase) name to value, the view a server would see."""
        return {key: value for key, (_, value) in self._entries.items()}

    def copy(self) -> "HeaderTable":
        clone = HeaderTable()
        clone._entries = dict(self._entries)
        clone._deleted = set(self._deleted)
        return clone

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and canonical_name(name) in self._entries

    def __getitem__(self, name: str) -> Union[str, Tuple[str, ...]]:
        entry = self._entries.get(canonical_name(name))
        if entry is None:
            raise KeyError(name)
        return entry[1]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, HeaderTable):
            return NotImplemented
        return self.items() == other.items()

    def __repr__(self) -> str:
        return f"HeaderTable({self.items()!r})"


def _iter_source(source: HeaderSource) -> Iterator[Tuple[str, Any]]:
    if isinstance(source, HeaderTable):
        return iter(source.items())
    if isinstance(source, Mapping):
        return iter(source.items())
    return iter(source)
