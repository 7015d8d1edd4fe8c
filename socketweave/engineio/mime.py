"""Content-type checks and addresses of polling connections."""

from __future__ import annotations

import re
from dataclasses import dataclass

_ATOM = r"[!#$%&'*+\-.0-9A-Z^_`a-z{|}~]+"
_ATOM_RE = re.compile(_ATOM)
_PARAM_RE = re.compile(
    r";[ \t]*(" + _ATOM + r")[ \t]*=[ \t]*(" + _ATOM + r'|"(?:[^"\\]|\\.)*")\s*'
)
_ESCAPE_RE = re.compile(r"\\(.)")


@dataclass(frozen=True)
class Addr:
    """Network address of a polling connection."""

    host: str

    def network(self) -> str:
        """Return the network name, always ``tcp``."""
        return "tcp"

    def __str__(self) -> str:
        return self.host


def _parse_media_type(value: str) -> tuple[str, dict[str, str]]:
    base, sep, rest = value.partition(";")
    base = base.strip().lower()
    kind, slash, sub = base.partition("/")
    if not _ATOM_RE.fullmatch(kind) or (slash and not _ATOM_RE.fullmatch(sub)):
        raise ValueError(f"invalid media type: {value!r}")

    params: dict[str, str] = {}
    rest = sep + rest
    while rest:
        rest = rest.lstrip(" \t")
        if not rest:
            break
        match = _PARAM_RE.match(rest)
        if match is None:
            if rest.strip() == ";":
                break
            raise ValueError("invalid media parameter")
        key = match.group(1).lower()
        raw = match.group(2)
        if raw.startswith('"'):
            raw = _ESCAPE_RE.sub(r"\1", raw[1:-1])
        if key in params:
            raise ValueError("duplicate parameter name")
        params[key] = raw
        rest = rest[match.end():]
    return base, params


def mime_is_support_binary(mime: str) -> bool:
    """Tell whether a polling content type carries binary frames.

    ``application/octet-stream`` means binary and UTF-8 ``text/plain``
    means text; anything else raises ``ValueError``.
    """
    media_type, params = _parse_media_type(mime)
    if media_type == "application/octet-stream":
        return True
    if media_type == "text/plain":
        if params.get("charset", "").lower() != "utf-8":
            raise ValueError("invalid charset")
        return False
    raise ValueError("invalid content-type")