"""Update manifest consumed by the application's self-update client.

Schema contract: ``version`` and ``platforms`` (key -> url/signature/size)
are stable; any new field must be additive so older clients keep parsing.
"""

from __future__ import annotations

import json
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class PlatformEntry(BaseModel):
    """Download location and signature for one platform key."""

    model_config = ConfigDict(frozen=True)

    url: str
    signature: str
    size: int


class UpdateManifest(BaseModel):
    """Per-version description of every downloadable update bundle."""

    model_config = ConfigDict(frozen=True)

    version: str
    notes: str = ""
    pub_date: datetime | None = None
    platforms: dict[str, PlatformEntry]

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", exclude_none=True)

    def to_bytes(self) -> bytes:
        """Deterministic JSON: sorted keys, 2-space indent, trailing newline."""
        text = json.dumps(self.to_dict(), sort_keys=True, indent=2, ensure_ascii=False)
        return (text + "\n").encode("utf-8")
