"""Release trigger and context models — the pipeline's sole external input."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict


class ReleaseEventError(ValueError):
    """Raised when a trigger payload does not describe a usable release."""


class ReleaseEvent(BaseModel):
    """A published-release trigger carrying tag, identifier and notes."""

    model_config = ConfigDict(frozen=True)

    tag: str
    release_id: str
    body: str = ""
    published_at: datetime | None = None
    html_url: str | None = None

    @classmethod
    def from_github_payload(cls, payload: dict[str, Any]) -> ReleaseEvent:
        """Parse a GitHub ``release`` webhook payload.

        Only ``release.tag_name`` and ``release.id`` are mandatory; the body
        may be null on GitHub when no notes were written.
        """
        release = payload.get("release")
        if not isinstance(release, dict):
            raise ReleaseEventError("Event payload has no 'release' object")

        tag = release.get("tag_name")
        release_id = release.get("id")
        if not tag:
            raise ReleaseEventError("Release event is missing 'tag_name'")
        if release_id in (None, ""):
            raise ReleaseEventError("Release event is missing 'id'")

        return cls(
            tag=str(tag),
            release_id=str(release_id),
            body=release.get("body") or "",
            published_at=release.get("published_at"),
            html_url=release.get("html_url"),
        )


class ReleaseContext(BaseModel):
    """Immutable release state passed explicitly into every component.

    Created once at pipeline start from a ``ReleaseEvent``; read-only
    thereafter.
    """

    model_config = ConfigDict(frozen=True)

    release_id: str
    tag: str
    body: str = ""
    published_at: datetime | None = None
    html_url: str | None = None

    @classmethod
    def from_event(cls, event: ReleaseEvent) -> ReleaseContext:
        return cls(
            release_id=event.release_id,
            tag=event.tag,
            body=event.body,
            published_at=event.published_at,
            html_url=event.html_url,
        )

    @property
    def version(self) -> str:
        """The semantic version advertised to the update client (no ``v``)."""
        return self.tag[1:] if self.tag.startswith("v") else self.tag
