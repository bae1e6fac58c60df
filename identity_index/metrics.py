"""
Edit distance metrics used to index identity strings.

Every metric compares strings as sequences of extended grapheme clusters, so a
precomposed ``"é"`` and a decomposed ``"e\\u0301"`` both count as one edit
unit. The two metrics differ only in whether swapping two adjacent clusters
costs one edit (OSA) or two (Levenshtein).
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Tuple, Union

import Levenshtein
from rapidfuzz.distance import Levenshtein as RFLevenshtein
from rapidfuzz.distance import OSA as RFOSA

from .config import LEVENSHTEIN_BACKENDS, METRIC_ALIASES
from .utils import get_backend, get_metric_name, graphemes

logger = logging.getLogger(__name__)


class MetricConfigurationError(ValueError):
    """Raised when a metric name or backend cannot be resolved."""


class EditDistanceMetric(ABC):
    """Strategy interface for integer edit distances.

    Implementations must return ``0`` for identical strings, be symmetric and
    deterministic, and accept empty strings.
    """

    algorithm_name: str = ""

    @abstractmethod
    def _raw_distance(self, a, b) -> int:
        """Distance between two grapheme sequences."""

    def distance(self, a: str, b: str) -> int:
        if a == b:
            return 0
        result = self._raw_distance(graphemes(a), graphemes(b))
        assert isinstance(result, int) and result >= 0, (
            f"{self.algorithm_name} returned invalid distance {result!r} "
            f"for {a!r} / {b!r}"
        )
        return result

    def __call__(self, a: str, b: str) -> int:
        return self.distance(a, b)

    def search_bounds(self, distance: int, threshold: int) -> Tuple[int, int]:
        """Range of child keys that may lead to a match.

        ``distance`` is the distance from a node to the query. For a true
        metric the triangle inequality limits matches to children keyed
        within ``threshold`` of it; the lower bound is clamped at zero.
        """
        return max(0, distance - threshold), distance + threshold

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class LevenshteinMetric(EditDistanceMetric):
    """Insertions, deletions and substitutions, each costing 1."""

    algorithm_name = "Levenshtein"

    def __init__(self, backend: Optional[str] = None) -> None:
        self.backend = backend if backend is not None else get_backend()
        if self.backend == "rapidfuzz":
            self._func = RFLevenshtein.distance
        elif self.backend in {"python-Levenshtein", "levenshtein"}:
            self.backend = "python-Levenshtein"
            self._func = Levenshtein.distance
        else:
            raise MetricConfigurationError(
                f"Unknown Levenshtein backend {self.backend!r}, "
                f"expected one of {', '.join(LEVENSHTEIN_BACKENDS)}"
            )

    def _raw_distance(self, a, b) -> int:
        return int(self._func(a, b))

    def __repr__(self) -> str:
        return f"LevenshteinMetric(backend={self.backend!r})"


class OsaMetric(EditDistanceMetric):
    """Optimal String Alignment (restricted Damerau-Levenshtein).

    Adjacent transpositions cost 1, but a transposed pair is never edited
    again, so ``osa("ca", "abc") == 3`` while true Damerau-Levenshtein gives 2.

    OSA breaks the triangle inequality (``osa("ca", "ac") + osa("ac", "abc")``
    is 2), so the BK-tree cannot prune with the plain metric window.
    """

    algorithm_name = "Optimal String Alignment"

    def _raw_distance(self, a, b) -> int:
        return int(RFOSA.distance(a, b))

    def search_bounds(self, distance: int, threshold: int) -> Tuple[int, int]:
        # DL <= OSA <= Levenshtein <= 2 * DL, and DL is a metric, so a child at
        # key k can only match when ceil(d / 2) - t <= k <= 2 * (d + t).
        return max(0, -(-distance // 2) - threshold), 2 * (distance + threshold)


LEVENSHTEIN = LevenshteinMetric(backend="rapidfuzz")
OSA = OsaMetric()

_METRIC_FACTORIES = {
    "levenshtein": LevenshteinMetric,
    "osa": OsaMetric,
}


def available_metrics() -> Dict[str, str]:
    """Map canonical metric identifiers to their algorithm names."""
    return {key: factory.algorithm_name for key, factory in _METRIC_FACTORIES.items()}


def get_metric(name: Union[str, EditDistanceMetric, None] = None) -> EditDistanceMetric:
    """Resolve ``name`` to a metric instance.

    ``None`` uses ``IDENTITY_INDEX_METRIC`` or the configured default. Metric
    instances are returned unchanged. Names are matched case-insensitively
    against :data:`identity_index.config.METRIC_ALIASES`.
    """
    if isinstance(name, EditDistanceMetric):
        return name
    if name is None:
        name = get_metric_name()
    if not isinstance(name, str):
        raise MetricConfigurationError(f"Metric must be a name or EditDistanceMetric, got {name!r}")

    key = METRIC_ALIASES.get(name.strip().lower())
    if key is None:
        raise MetricConfigurationError(
            f"Unknown metric {name!r}, expected one of {', '.join(sorted(METRIC_ALIASES))}"
        )
    if key == "osa":
        return OSA
    backend = get_backend()
    if backend == "rapidfuzz":
        return LEVENSHTEIN
    logger.debug("Using Levenshtein backend %s", backend)
    return LevenshteinMetric(backend=backend)
