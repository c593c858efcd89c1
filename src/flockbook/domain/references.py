"""Cash mirror back-reference tokens.

Mirrors embed ``[ref:<kind>:<id>]`` (or ``[ref:due:<id>:<entry>]`` for a
single due log entry) in their note. The token text is matched verbatim.
"""

import re
from typing import NamedTuple, Optional

from flockbook.domain.entities import SourceKind

_TOKEN_RE = re.compile(r"\[ref:(?P<kind>[a-z]+):(?P<id>\d+)(?::(?P<entry>\d+))?\]")


class Reference(NamedTuple):
    kind: SourceKind
    source_id: int
    entry: Optional[int] = None


def reference_token(kind: SourceKind, source_id: int, entry: Optional[int] = None) -> str:
    """Build the token embedded in a mirror's note."""
    if entry is None:
        return f"[ref:{kind.value}:{source_id}]"
    return f"[ref:{kind.value}:{source_id}:{entry}]"


def reference_prefixes(kind: SourceKind, source_id: int, entry: Optional[int] = None) -> list[str]:
    """Substrings that identify mirrors of a source in a note.

    Without ``entry`` this also matches every per-entry token of the source.
    """
    if entry is not None:
        return [reference_token(kind, source_id, entry)]
    return [reference_token(kind, source_id), f"[ref:{kind.value}:{source_id}:"]


def parse_reference(note: Optional[str]) -> Optional[Reference]:
    """Extract the first back-reference from a note, if any."""
    if not note:
        return None
    match = _TOKEN_RE.search(note)
    if match is None:
        return None
    try:
        kind = SourceKind(match.group("kind"))
    except ValueError:
        return None
    entry = match.group("entry")
    return Reference(kind, int(match.group("id")), int(entry) if entry is not None else None)


def strip_reference(note: Optional[str]) -> str:
    """Note text for display, without any back-reference token."""
    if not note:
        return ""
    return _TOKEN_RE.sub("", note).strip()


def with_reference(text: str, kind: SourceKind, source_id: int, entry: Optional[int] = None) -> str:
    """Append the back-reference token to a free-text note."""
    return f"{text} {reference_token(kind, source_id, entry)}".strip()
