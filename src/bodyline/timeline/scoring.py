"""
Score adapter.

The body score is an external, versioned black box.  This module only
decides how complete its inputs were, calls it, and records which version
produced each number so historical buckets stay reproducible.
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace

from loguru import logger

from bodyline.core.exceptions import ScoreFunctionError

from .models import BodyScoreCompleteness, Metric, MetricsSnapshot, TimelineBucket

# fn(snapshot, version) -> (score, core fields actually used)
ScoreCallable = Callable[[MetricsSnapshot, str], tuple[float | None, Iterable[str]]]


@dataclass(frozen=True)
class ScoreFunction:
    """Tagged reference to an external scoring function.

    ``core_metrics`` is part of the function's contract: completeness is
    judged against it, not against a list hardcoded here.
    """

    name: str
    version: str
    core_metrics: frozenset[Metric]
    fn: ScoreCallable

    def __post_init__(self) -> None:
        object.__setattr__(self, "version", str(self.version))
        object.__setattr__(self, "core_metrics", frozenset(Metric(m) for m in self.core_metrics))
        if not self.core_metrics:
            raise ValueError(f"score function {self.name!r} declares no core metrics")

    @property
    def tag(self) -> str:
        return f"{self.name}@{self.version}"

    def __call__(self, snapshot: MetricsSnapshot) -> tuple[float | None, list[str]]:
        """Run the wrapped function; any failure surfaces as ``ScoreFunctionError``."""
        try:
            score, used = self.fn(snapshot, self.version)
            return (None if score is None else float(score)), sorted(str(u) for u in used or ())
        except Exception as e:
            raise ScoreFunctionError(f"{self.tag} failed: {e}") from e


def completeness_for(snapshot: MetricsSnapshot, core_metrics: Iterable[Metric]) -> BodyScoreCompleteness:
    """full: every core metric usable; partial: some; none: no core metric usable."""
    core = list(core_metrics)
    usable = sum(1 for m in core if snapshot[m].is_usable)
    if core and usable == len(core):
        return BodyScoreCompleteness.FULL
    if usable:
        return BodyScoreCompleteness.PARTIAL
    return BodyScoreCompleteness.NONE


def score_snapshot(snapshot: MetricsSnapshot, score_function: ScoreFunction | None) -> MetricsSnapshot:
    """Attach score, completeness and version.  Never raises for a failing scorer."""
    if score_function is None:
        return snapshot.with_score(None, BodyScoreCompleteness.NONE, None)

    version = score_function.version
    completeness = completeness_for(snapshot, score_function.core_metrics)
    if completeness == BodyScoreCompleteness.NONE:
        return snapshot.with_score(None, completeness, version)

    try:
        score, used = score_function(snapshot)
    except ScoreFunctionError as e:
        logger.warning(str(e))
        return snapshot.with_score(None, BodyScoreCompleteness.NONE, version)

    if score is None:
        return snapshot.with_score(None, BodyScoreCompleteness.NONE, version)

    logger.debug(f"{score_function.tag} scored {score} using {used}")
    return snapshot.with_score(score, completeness, version)


def score_bucket(bucket: TimelineBucket, score_function: ScoreFunction | None) -> TimelineBucket:
    return replace(bucket, metrics=score_snapshot(bucket.metrics, score_function))
