"""Request handling: parse query parameters, run the resolver, map the outcome.

Framework-neutral so the same logic serves the FastAPI app and the CLI.
"""

from collections.abc import Mapping
from typing import Any

from loguru import logger

from .errors import InvalidRequestFailure
from .models import ResolutionFailure, ResolutionRequest
from .resolver import Resolver

log = logger.bind(stage="handler")

CORS_HEADERS: dict[str, str] = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def parse_request(params: Mapping[str, str]) -> ResolutionRequest:
    """Build a ResolutionRequest from query parameters.

    Raises InvalidRequestFailure when `id` is missing or blank. A
    non-integer `duration` is dropped with a warning.
    """
    identifier = (params.get("id") or "").strip()
    if not identifier:
        raise InvalidRequestFailure("Missing required parameter: id")

    duration: int | None = None
    raw_duration = (params.get("duration") or "").strip()
    if raw_duration:
        try:
            duration = int(float(raw_duration))
        except (ValueError, OverflowError):
            log.warning(f"Ignoring non-numeric duration={raw_duration!r}")

    return ResolutionRequest(
        identifier=identifier,
        title_hint=(params.get("title") or "").strip(),
        author_hint=(params.get("author") or "").strip(),
        duration_hint=duration,
    )


def handle(
    method: str,
    params: Mapping[str, str],
    resolver: Resolver,
) -> tuple[int, dict[str, Any] | None]:
    """Return (status_code, json_body). A None body means an empty response."""
    method = method.upper()
    if method == "OPTIONS":
        return 200, None
    if method != "GET":
        return 405, {"error": "Method not allowed"}

    try:
        request = parse_request(params)
    except InvalidRequestFailure as e:
        return 400, {"success": False, "error": str(e)}

    try:
        outcome = resolver.resolve(request)
    except Exception as e:
        log.exception(f"Unexpected error resolving id={request.identifier!r}")
        return 500, {
            "success": False,
            "error": "Internal server error",
            "message": str(e),
        }

    if isinstance(outcome, ResolutionFailure):
        return 404, outcome.to_response()
    return 200, outcome.to_response()
