"""Core enums and request-scoped data types for the audio resolver.

Enums:
    SourceKind     -- Resolution strategy (saavn metadata search, instance pools A/B).
                      Values double as the wire names in responses.
    AttemptStatus  -- Outcome recorded for a strategy that did not succeed.

Everything here is created for one resolution request and discarded after it.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Any


class SourceKind(StrEnum):
    SAAVN = "saavn"
    INSTANCE_A = "instanceA"
    INSTANCE_B = "instanceB"


class AttemptStatus(StrEnum):
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class ResolutionRequest:
    """One lookup: an identifier plus optional hints for metadata search."""

    identifier: str
    title_hint: str = ""
    author_hint: str = ""
    duration_hint: int | None = None

    @property
    def has_strict_hints(self) -> bool:
        """Author and a non-zero duration together enable the full scoring pass."""
        return bool(self.author_hint) and bool(self.duration_hint)


@dataclass(frozen=True)
class MediaVariant:
    """A quality/size tagged URL (download link or thumbnail)."""

    label: str
    url: str


@dataclass(frozen=True)
class Candidate:
    """One search hit from the metadata search service.

    Variant tuples are ordered worst to best, as the service returns them.
    """

    name: str
    primary_artists: tuple[str, ...] = ()
    featured_artists: tuple[str, ...] = ()
    duration_seconds: int | None = None
    download_variants: tuple[MediaVariant, ...] = ()
    thumbnail_variants: tuple[MediaVariant, ...] = ()
    canonical_url: str = ""

    @property
    def all_artists(self) -> tuple[str, ...]:
        return self.primary_artists + self.featured_artists

    @property
    def artist_str(self) -> str:
        return ", ".join(self.all_artists) or "Unknown"

    @property
    def best_download_url(self) -> str | None:
        return self.download_variants[-1].url if self.download_variants else None

    @property
    def best_thumbnail_url(self) -> str | None:
        return self.thumbnail_variants[-1].url if self.thumbnail_variants else None


@dataclass(frozen=True)
class MatchScore:
    """Scoring breakdown for a single candidate."""

    candidate: Candidate
    artist_match_ratio: float
    duration_diff: int
    duration_score: float
    title_score: float
    composite: float


@dataclass(frozen=True)
class ResolvedResult:
    """Terminal success: which source answered and what it returned."""

    source_kind: SourceKind
    payload: Any
    source_instance: str | None = None

    def to_response(self) -> dict[str, Any]:
        """Build the JSON body returned to the caller."""
        body: dict[str, Any] = {"success": True, "source": str(self.source_kind)}
        if self.source_kind is SourceKind.SAAVN:
            body.update(self.payload)
            return body
        if self.source_instance:
            body["instance"] = self.source_instance
        body["data"] = self.payload
        return body


@dataclass
class ResolutionFailure:
    """Accumulated per-strategy outcomes when every strategy fell through."""

    attempts: dict[SourceKind, AttemptStatus] = field(default_factory=dict)

    def record(self, kind: SourceKind, status: AttemptStatus) -> None:
        self.attempts[kind] = status

    def to_response(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": "Could not fetch audio from any source",
            "attempts": {str(k): str(v) for k, v in self.attempts.items()},
        }
