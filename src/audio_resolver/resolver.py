"""Resolution orchestrator -- walks the strategies in fallback order."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

from loguru import logger

from .api import instances, saavn
from .api.scoring import Selector, make_selector
from .errors import ResolverError
from .models import (
    AttemptStatus,
    ResolutionFailure,
    ResolutionRequest,
    ResolvedResult,
    SourceKind,
)

if TYPE_CHECKING:
    from .config import ResolverConfig

log = logger.bind(stage="resolver")


@dataclass(frozen=True)
class Strategy:
    """One fallback step: a source kind, when it applies, and how to run it."""

    kind: SourceKind
    run: Callable[[ResolutionRequest], ResolvedResult]
    applies: Callable[[ResolutionRequest], bool] = lambda request: True


def build_strategies(
    config: ResolverConfig,
    selector: Selector | None = None,
) -> list[Strategy]:
    """Default strategy chain: metadata search, then instance pools A and B."""
    if selector is None:
        selector = make_selector(
            config.scoring_strategy, config.thresholds, config.fuzzy_threshold,
        )

    def _search(request: ResolutionRequest) -> ResolvedResult:
        return saavn.resolve(
            request,
            config.saavn_base_urls,
            selector=selector,
            timeout=config.search_timeout,
        )

    def _pool(
        kind: SourceKind, urls: Sequence[str], template: str,
    ) -> Callable[[ResolutionRequest], ResolvedResult]:
        def _run(request: ResolutionRequest) -> ResolvedResult:
            return instances.lookup(
                request.identifier,
                urls,
                template,
                kind,
                timeout=config.instance_timeout,
            )
        return _run

    return [
        Strategy(
            kind=SourceKind.SAAVN,
            run=_search,
            applies=lambda request: bool(request.title_hint),
        ),
        Strategy(
            kind=SourceKind.INSTANCE_A,
            run=_pool(
                SourceKind.INSTANCE_A,
                config.instance_a_urls,
                config.instance_a_path_template,
            ),
        ),
        Strategy(
            kind=SourceKind.INSTANCE_B,
            run=_pool(
                SourceKind.INSTANCE_B,
                config.instance_b_urls,
                config.instance_b_path_template,
            ),
        ),
    ]


class Resolver:
    """Resolves a request by trying each strategy once, in order.

    Holds no per-request state, so one instance can serve concurrent requests.
    """

    def __init__(self, strategies: Sequence[Strategy]) -> None:
        self.strategies = tuple(strategies)

    @classmethod
    def from_config(
        cls,
        config: ResolverConfig,
        selector: Selector | None = None,
    ) -> Resolver:
        return cls(build_strategies(config, selector))

    def resolve(self, request: ResolutionRequest) -> ResolvedResult | ResolutionFailure:
        """Return the first strategy's success, or the attempts summary."""
        failure = ResolutionFailure()

        for strategy in self.strategies:
            if not strategy.applies(request):
                log.debug(f"Skipping {strategy.kind}")
                failure.record(strategy.kind, AttemptStatus.SKIPPED)
                continue

            log.info(f"Trying {strategy.kind} for id={request.identifier!r}")
            try:
                result = strategy.run(request)
            except ResolverError as e:
                log.info(f"{strategy.kind} failed: {e}")
                failure.record(strategy.kind, AttemptStatus.FAILED)
                continue

            log.info(f"Resolved id={request.identifier!r} via {strategy.kind}")
            return result

        log.warning(f"All sources failed for id={request.identifier!r}")
        return failure
