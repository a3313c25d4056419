"""JioSaavn-style metadata search adapter.

Searches songs by title (and author when given), turns the hits into
Candidates and hands them to a selection policy. The winning candidate is
normalized into the response payload.
"""

from collections.abc import Sequence
from typing import Any

from loguru import logger

from ..errors import MalformedResponseFailure, NoConfidentMatch
from ..fetch import fetch_json
from ..models import (
    Candidate,
    MediaVariant,
    ResolutionRequest,
    ResolvedResult,
    SourceKind,
)
from .instances import first_success
from .scoring import Selector, make_selector

log = logger.bind(stage="saavn")

DEFAULT_SEARCH_TIMEOUT = 10.0
SEARCH_PATH = "/api/search/songs"


def build_query(title: str, author: str = "") -> str:
    """Search query: title alone, or 'title author'."""
    return f"{title} {author}" if author else title


def search(
    query: str,
    base_urls: Sequence[str],
    timeout: float = DEFAULT_SEARCH_TIMEOUT,
) -> list[Candidate]:
    """Run the song search against the first responsive instance.

    Returns the parsed candidates in upstream relevance order (possibly empty).
    Raises ExhaustedFailure if no instance produced a usable response.
    """
    log.debug(f"Saavn search: query={query!r}")

    def _attempt(base_url: str) -> list[Candidate]:
        url = f"{base_url}{SEARCH_PATH}"
        return parse_results(fetch_json(url, params={"query": query}, timeout=timeout), url)

    _, candidates = first_success(base_urls, _attempt, pool=str(SourceKind.SAAVN))
    log.debug(f"Saavn results: {len(candidates)} songs")
    return candidates


def parse_results(data: Any, url: str = "") -> list[Candidate]:
    """Extract candidates from a `{success, data: {results: [...]}}` body."""
    if not isinstance(data, dict) or not data.get("success"):
        raise MalformedResponseFailure(f"{url}: search was not successful", url)

    payload = data.get("data")
    results = payload.get("results") if isinstance(payload, dict) else None
    if not isinstance(results, list):
        raise MalformedResponseFailure(f"{url}: missing results list", url)

    candidates = []
    for r in results:
        if not isinstance(r, dict):
            log.debug(f"Skipping non-object result: {r!r}")
            continue
        if not isinstance(r.get("name"), str):
            log.debug(f"Skipping result without a usable name: {r!r}")
            continue
        candidates.append(parse_candidate(r))
    return candidates


def parse_candidate(r: dict) -> Candidate:
    """Build a Candidate from one raw search hit."""
    artists = r.get("artists")
    if not isinstance(artists, dict):
        artists = {}
    primary = _names(artists.get("primary"))
    featured = _names(artists.get("featured"))
    # Some hits only carry the combined list
    if not primary and not featured:
        primary = _names(artists.get("all"))

    return Candidate(
        name=_text(r.get("name")),
        primary_artists=primary,
        featured_artists=featured,
        duration_seconds=_to_seconds(r.get("duration")),
        download_variants=_variants(r.get("downloadUrl")),
        thumbnail_variants=_variants(r.get("image")),
        canonical_url=_text(r.get("url")),
    )


def to_payload(candidate: Candidate) -> dict[str, Any]:
    """Normalized response fields for a selected candidate."""
    return {
        "title": candidate.name,
        "artists": candidate.artist_str,
        "duration": candidate.duration_seconds,
        "thumbnailUrl": candidate.best_thumbnail_url,
        "downloadUrl": candidate.best_download_url,
        "canonicalUrl": candidate.canonical_url,
    }


def resolve(
    request: ResolutionRequest,
    base_urls: Sequence[str],
    selector: Selector | None = None,
    timeout: float = DEFAULT_SEARCH_TIMEOUT,
) -> ResolvedResult:
    """Search for the request's title and select a confident match.

    Raises NoConfidentMatch or ExhaustedFailure when nothing usable comes back.
    """
    if selector is None:
        selector = make_selector()

    query = build_query(request.title_hint, request.author_hint)
    candidates = search(query, base_urls, timeout=timeout)
    if not candidates:
        raise NoConfidentMatch(f"No results found for {query!r}")

    best = selector(candidates, request)
    log.info(f"Saavn match: {best.name!r} by {best.artist_str}")
    return ResolvedResult(source_kind=SourceKind.SAAVN, payload=to_payload(best))


def _names(entries: Any) -> tuple[str, ...]:
    if not isinstance(entries, list):
        return ()
    return tuple(
        e["name"] for e in entries if isinstance(e, dict) and _text(e.get("name"))
    )


def _variants(entries: Any) -> tuple[MediaVariant, ...]:
    """Quality/size tagged URLs, kept in upstream (worst to best) order."""
    if not isinstance(entries, list):
        return ()
    return tuple(
        MediaVariant(label=str(e.get("quality", "")), url=e["url"])
        for e in entries
        if isinstance(e, dict) and _text(e.get("url"))
    )


def _to_seconds(value: Any) -> int | None:
    """Duration arrives as int, numeric string, or null."""
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return None


def _text(value: Any) -> str:
    return value if isinstance(value, str) else ""
