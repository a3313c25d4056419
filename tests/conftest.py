"""Shared fixtures: clean config env and fake upstream HTTP responses."""

import json
from contextlib import contextmanager

import httpx
import pytest

from audio_resolver.config import ResolverConfig
from audio_resolver.models import Candidate, MediaVariant

# Env vars that pydantic-settings reads -- must be cleaned so tests see defaults
CONFIG_ENV_VARS = [
    "SAAVN_BASE_URLS", "INSTANCE_A_URLS", "INSTANCE_A_PATH_TEMPLATE",
    "INSTANCE_B_URLS", "INSTANCE_B_PATH_TEMPLATE", "SEARCH_TIMEOUT",
    "INSTANCE_TIMEOUT", "SCORING_STRATEGY", "MIN_ARTIST_RATIO",
    "CLOSE_DURATION_WINDOW", "DURATION_WINDOW", "CONFIDENCE_FLOOR",
    "FUZZY_THRESHOLD", "ROUTE_PATH", "HOST", "PORT", "LOG_LEVEL", "LOG_FILE",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in CONFIG_ENV_VARS:
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def config() -> ResolverConfig:
    """Config pointing at fake hosts: one search base, two A and two B instances."""
    return ResolverConfig(
        _env_file=None,
        saavn_base_urls=["https://search.test"],
        instance_a_urls=["https://a1.test", "https://a2.test"],
        instance_b_urls=["https://b1.test", "https://b2.test"],
    )


class _Body(httpx.SyncByteStream):
    """Unread body, so fetch() can stream it like a live connection."""

    def __init__(self, data: bytes) -> None:
        self._data = data

    def __iter__(self):
        yield self._data


def raw_response(url: str, content: bytes, status: int = 200, headers=None) -> httpx.Response:
    return httpx.Response(
        status,
        headers=headers or {},
        stream=_Body(content),
        request=httpx.Request("GET", url),
    )


def json_response(url: str, body, status: int = 200) -> httpx.Response:
    return raw_response(
        url,
        json.dumps(body).encode(),
        status,
        headers={"content-type": "application/json"},
    )


def fake_stream(*outcomes):
    """Side effect for a patched httpx.stream, one outcome per call.

    The last outcome repeats. An outcome is an exception to raise, a
    (body, status) tuple, raw bytes, or any other JSON body served as 200.
    """
    remaining = list(outcomes)

    @contextmanager
    def _stream(method, url, **kwargs):
        outcome = remaining.pop(0) if len(remaining) > 1 else remaining[0]
        if isinstance(outcome, Exception):
            raise outcome
        if isinstance(outcome, tuple):
            yield json_response(url, *outcome)
        elif isinstance(outcome, bytes):
            yield raw_response(url, outcome)
        else:
            yield json_response(url, outcome)

    return _stream


def search_body(*results: dict) -> dict:
    return {"success": True, "data": {"results": list(results)}}


def raw_song(
    name: str = "Imagine",
    artists: tuple[str, ...] = ("John Lennon",),
    duration=181,
    url: str = "https://search.test/song/imagine",
) -> dict:
    """One search hit shaped like the metadata service returns it."""
    return {
        "name": name,
        "duration": duration,
        "url": url,
        "artists": {
            "primary": [{"name": a} for a in artists],
            "featured": [],
        },
        "downloadUrl": [
            {"quality": "96kbps", "url": f"{url}/96.mp4"},
            {"quality": "320kbps", "url": f"{url}/320.mp4"},
        ],
        "image": [
            {"quality": "50x50", "url": f"{url}/50.jpg"},
            {"quality": "500x500", "url": f"{url}/500.jpg"},
        ],
    }


def make_candidate(
    name: str = "Imagine",
    primary: tuple[str, ...] = ("John Lennon",),
    featured: tuple[str, ...] = (),
    duration: int | None = 181,
    url: str = "https://search.test/song/imagine",
) -> Candidate:
    return Candidate(
        name=name,
        primary_artists=primary,
        featured_artists=featured,
        duration_seconds=duration,
        download_variants=(
            MediaVariant("96kbps", f"{url}/96.mp4"),
            MediaVariant("320kbps", f"{url}/320.mp4"),
        ),
        thumbnail_variants=(
            MediaVariant("50x50", f"{url}/50.jpg"),
            MediaVariant("500x500", f"{url}/500.jpg"),
        ),
        canonical_url=url,
    )
