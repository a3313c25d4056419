"""Candidate selection for metadata search results.

Two independent policies compose the default ("strict") selection:

    first_candidate         -- trust upstream relevance when hints are thin
    rank_candidates         -- artist/duration/title composite over eligible hits
    apply_confidence_floor  -- reject a winner that is still a weak match

A "fuzzy" strategy built on rapidfuzz similarity is available as an
alternative and can be picked via ResolverConfig.scoring_strategy.
"""

import re
from collections.abc import Callable, Sequence
from dataclasses import dataclass

from loguru import logger
from rapidfuzz import fuzz

from ..errors import NoConfidentMatch
from ..models import Candidate, MatchScore, ResolutionRequest

log = logger.bind(stage="scoring")

Selector = Callable[[Sequence[Candidate], ResolutionRequest], Candidate]

_ARTIST_SPLIT = re.compile(r"[,&]")
_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True)
class ScoringThresholds:
    """Tuning constants for the strict policy.

    close_duration_window lets a near-exact duration make a candidate
    eligible even when artist names don't line up.
    """

    min_artist_ratio: float = 0.5
    close_duration_window: int = 10
    duration_window: int = 60
    confidence_floor: float = 5.0
    artist_weight: float = 10.0
    duration_weight: float = 3.0
    title_weight: float = 1.0
    title_partial_score: float = 0.5
    missing_duration: int = 999


DEFAULT_THRESHOLDS = ScoringThresholds()


def artist_tokens(author_hint: str) -> list[str]:
    """Split an author hint on ',' or '&' into unique lower-cased names."""
    tokens = (t.strip().lower() for t in _ARTIST_SPLIT.split(author_hint))
    return list(dict.fromkeys(t for t in tokens if t))


def _squash(s: str) -> str:
    return _WHITESPACE.sub("", s)


def _names_match(a: str, b: str) -> bool:
    """Whitespace-insensitive containment in either direction."""
    a, b = _squash(a), _squash(b)
    return a in b or b in a


def artist_match_ratio(tokens: Sequence[str], candidate: Candidate) -> float:
    """Fraction of hint tokens that match one of the candidate's artists."""
    if not tokens:
        return 0.0
    names = [n.lower() for n in candidate.all_artists if n.strip()]
    matched = sum(1 for t in tokens if any(_names_match(t, n) for n in names))
    return matched / len(tokens)


def title_score(
    candidate_name: str,
    title_hint: str,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> float:
    name, hint = candidate_name.lower(), title_hint.lower()
    if name in hint or hint in name:
        return 1.0
    return thresholds.title_partial_score


def score_candidate(
    candidate: Candidate,
    tokens: Sequence[str],
    title_hint: str,
    duration_hint: int,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> MatchScore:
    """Compute the full scoring breakdown for one candidate."""
    ratio = artist_match_ratio(tokens, candidate)

    duration = candidate.duration_seconds
    if duration is None:
        duration = thresholds.missing_duration
    diff = abs(duration - duration_hint)
    dur_score = max(0.0, 1 - diff / thresholds.duration_window)

    t_score = title_score(candidate.name, title_hint, thresholds)

    composite = (
        thresholds.artist_weight * ratio
        + thresholds.duration_weight * dur_score
        + thresholds.title_weight * t_score
    )
    return MatchScore(
        candidate=candidate,
        artist_match_ratio=ratio,
        duration_diff=diff,
        duration_score=dur_score,
        title_score=t_score,
        composite=composite,
    )


def is_eligible(
    score: MatchScore,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> bool:
    return (
        score.artist_match_ratio >= thresholds.min_artist_ratio
        or score.duration_diff < thresholds.close_duration_window
    )


def first_candidate(candidates: Sequence[Candidate]) -> Candidate:
    """Trust the upstream ranking and take the top hit."""
    if not candidates:
        raise NoConfidentMatch("No candidates to select from")
    return candidates[0]


def rank_candidates(
    candidates: Sequence[Candidate],
    title_hint: str,
    author_hint: str,
    duration_hint: int,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> MatchScore | None:
    """Return the highest-composite eligible candidate, or None.

    Ties keep the earliest candidate.
    """
    tokens = artist_tokens(author_hint)
    best: MatchScore | None = None

    for candidate in candidates:
        score = score_candidate(
            candidate, tokens, title_hint, duration_hint, thresholds,
        )
        log.debug(
            f"{candidate.name!r}: ratio={score.artist_match_ratio:.2f} "
            f"diff={score.duration_diff}s composite={score.composite:.2f}"
        )
        if not is_eligible(score, thresholds):
            continue
        if best is None or score.composite > best.composite:
            best = score

    return best


def apply_confidence_floor(
    best: MatchScore | None,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> Candidate:
    """Accept the ranked winner only if it clears the confidence floor."""
    if best is None:
        raise NoConfidentMatch("No eligible candidate")
    if best.composite < thresholds.confidence_floor:
        raise NoConfidentMatch(
            f"Best candidate {best.candidate.name!r} scored "
            f"{best.composite:.2f} < {thresholds.confidence_floor:g}"
        )
    log.debug(f"Best match: {best.candidate.name!r} composite={best.composite:.2f}")
    return best.candidate


def select_best(
    candidates: Sequence[Candidate],
    title_hint: str,
    author_hint: str | None = None,
    duration_hint: int | None = None,
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
) -> Candidate:
    """Pick the best candidate or raise NoConfidentMatch.

    Without an author and a non-zero duration the first candidate wins
    unconditionally; otherwise the full scoring pass runs.
    """
    if not author_hint or not duration_hint:
        return first_candidate(candidates)

    best = rank_candidates(
        candidates, title_hint, author_hint, duration_hint, thresholds,
    )
    return apply_confidence_floor(best, thresholds)


def fuzzy_select(
    candidates: Sequence[Candidate],
    title_hint: str,
    author_hint: str = "",
    threshold: float = 65.0,
) -> Candidate:
    """Rank by rapidfuzz similarity. Weights: title 60%, author 30%, position 10%."""
    if not candidates:
        raise NoConfidentMatch("No candidates to select from")

    best: Candidate | None = None
    best_score = -1.0
    for idx, c in enumerate(candidates):
        t_score = fuzz.token_sort_ratio(title_hint.lower(), c.name.lower()) * 0.6

        if author_hint:
            a_scores = [
                fuzz.partial_ratio(author_hint.lower(), a.lower())
                for a in c.all_artists
            ]
            a_score = max(a_scores, default=0) * 0.3
        else:
            a_score = 0.0

        position_score = max(10 - (idx * 2), 0)
        total = t_score + a_score + position_score
        if total > best_score:
            best, best_score = c, total

    log.debug(f"Fuzzy best: {best.name!r} score={best_score:.1f}")
    if best_score < threshold:
        raise NoConfidentMatch(
            f"Fuzzy best {best.name!r} scored {best_score:.1f} < {threshold:g}"
        )
    return best


def make_selector(
    strategy: str = "strict",
    thresholds: ScoringThresholds = DEFAULT_THRESHOLDS,
    fuzzy_threshold: float = 65.0,
) -> Selector:
    """Build a request-level selector for the named strategy."""
    if strategy == "strict":
        return lambda cands, req: select_best(
            cands, req.title_hint, req.author_hint, req.duration_hint, thresholds,
        )
    if strategy == "fuzzy":
        return lambda cands, req: fuzzy_select(
            cands, req.title_hint, req.author_hint, fuzzy_threshold,
        )
    raise ValueError(f"Unknown scoring strategy: {strategy!r}")
