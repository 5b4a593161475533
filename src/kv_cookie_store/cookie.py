"""Cookie — the serializable cookie record persisted by the store."""

from __future__ import annotations

import itertools
from datetime import UTC, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

# Process-wide creation order, shared by every Cookie instance.
_creation_counter = itertools.count(1)


def _next_creation_index() -> int:
    return next(_creation_counter)


def _utcnow() -> datetime:
    return datetime.now(UTC)


SameSite = Literal["strict", "lax", "none"]


class Cookie(BaseModel):
    """A single HTTP cookie as stored in, and read back from, the key-value store.

    The store treats cookies as opaque beyond ``key``, ``domain``, ``path``
    and ``creation_index``.  Everything else is carried through unchanged.

    Attributes:
        key:             Cookie name; the field name inside its lookup hash.
        value:           Cookie value.
        domain:          Domain the cookie was set for (``None`` until the jar
                         resolves it).
        path:            Path the cookie was set for.
        expires:         Absolute expiry; ``None`` for a session cookie.
        max_age:         Max-Age in seconds, if one was given.
        secure:          ``Secure`` attribute.
        http_only:       ``HttpOnly`` attribute.
        host_only:       ``True`` when no Domain attribute was sent.
        path_is_default: ``True`` when the path was derived from the request URL.
        same_site:       SameSite policy.
        extensions:      Unrecognised attributes, preserved verbatim.
        creation:        When the cookie was first created.
        last_accessed:   When the jar last handed the cookie out.
        creation_index:  Monotonic creation order; persisted so ordering
                         survives a round trip through the store.
    """

    model_config = ConfigDict(validate_assignment=True)

    key: str = ""
    value: str = ""
    domain: str | None = None
    path: str | None = None
    expires: datetime | None = None
    max_age: int | None = None
    secure: bool = False
    http_only: bool = False
    host_only: bool | None = None
    path_is_default: bool | None = None
    same_site: SameSite = "none"
    extensions: list[str] = Field(default_factory=list)
    creation: datetime = Field(default_factory=_utcnow)
    last_accessed: datetime | None = None
    creation_index: int = Field(default_factory=_next_creation_index)

    # ── serialization ────────────────────────────────────────

    def to_json(self) -> str:
        """Serialize to the string form written into the store."""
        return self.model_dump_json()

    @classmethod
    def from_json(cls, data: str | bytes) -> Cookie | None:
        """Parse a stored record.  Returns ``None`` if *data* is not a valid cookie."""
        try:
            return cls.model_validate_json(data)
        except ValidationError:
            return None

    # ── rendering ────────────────────────────────────────────

    def cookie_string(self) -> str:
        """Return the ``name=value`` pair sent in a ``Cookie`` request header."""
        if not self.key:
            return self.value
        return f"{self.key}={self.value}"

    def __str__(self) -> str:
        parts = [self.cookie_string()]
        if self.expires is not None:
            expires = self.expires.astimezone(UTC)
            parts.append("Expires=" + expires.strftime("%a, %d %b %Y %H:%M:%S GMT"))
        if self.max_age is not None:
            parts.append(f"Max-Age={self.max_age}")
        if self.domain and not self.host_only:
            parts.append(f"Domain={self.domain}")
        if self.path:
            parts.append(f"Path={self.path}")
        if self.secure:
            parts.append("Secure")
        if self.http_only:
            parts.append("HttpOnly")
        if self.same_site != "none":
            parts.append(f"SameSite={self.same_site.capitalize()}")
        parts.extend(self.extensions)
        return "; ".join(parts)
