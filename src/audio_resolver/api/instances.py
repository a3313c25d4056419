"""Instance pool walking and the mirrored-instance lookup adapters.

A pool is an ordered list of base URLs serving the same API. Each
instance gets one attempt per request; the first usable answer wins.
"""

from collections.abc import Callable, Sequence
from typing import Any, TypeVar
from urllib.parse import quote

from loguru import logger

from ..errors import ExhaustedFailure, FetchError
from ..fetch import fetch_json
from ..models import ResolvedResult, SourceKind

log = logger.bind(stage="instances")

T = TypeVar("T")

DEFAULT_INSTANCE_TIMEOUT = 8.0


def first_success(
    instances: Sequence[str],
    attempt: Callable[[str], T],
    pool: str,
) -> tuple[str, T]:
    """Call attempt(instance) in order until one returns without a FetchError.

    Returns (instance, value). Raises ExhaustedFailure when every instance
    failed. Anything other than a FetchError propagates unchanged.
    """
    for instance in instances:
        try:
            value = attempt(instance)
        except FetchError as e:
            log.warning(f"{pool} instance {instance} failed: {e}")
            continue
        log.debug(f"{pool} instance {instance} answered")
        return instance, value

    raise ExhaustedFailure(pool, len(instances))


def lookup(
    identifier: str,
    instances: Sequence[str],
    path_template: str,
    kind: SourceKind,
    timeout: float = DEFAULT_INSTANCE_TIMEOUT,
) -> ResolvedResult:
    """Fetch the detail endpoint for identifier from the first live instance.

    The upstream JSON is passed through untouched as the payload.
    """
    path = path_template.format(id=quote(identifier, safe=""))

    def _attempt(instance: str) -> Any:
        return fetch_json(f"{instance}{path}", timeout=timeout)

    instance, data = first_success(instances, _attempt, pool=str(kind))
    return ResolvedResult(source_kind=kind, payload=data, source_instance=instance)
