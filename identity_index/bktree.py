from __future__ import annotations

import logging
from typing import (
    Dict,
    FrozenSet,
    Generic,
    Hashable,
    Iterable,
    Iterator,
    List,
    Optional,
    Set,
    Tuple,
    TypeVar,
    Union,
)

from .metrics import EditDistanceMetric, MetricConfigurationError, get_metric
from .utils import get_default_threshold

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Hashable)
Match = Tuple[str, FrozenSet]


class BKTreeConfigurationError(ValueError):
    """Raised when a tree is built with an invalid metric or threshold."""


def _validate_threshold(threshold, what: str = "threshold") -> int:
    if isinstance(threshold, bool) or not isinstance(threshold, int):
        raise BKTreeConfigurationError(f"{what} must be an integer, got {threshold!r}")
    if threshold < 0:
        raise BKTreeConfigurationError(f"{what} must be non-negative, got {threshold}")
    return threshold


class BKTreeNode(Generic[RecordT]):
    """One canonical value, the records it was seen in, and its children keyed by distance."""

    __slots__ = ("value", "records", "children")

    def __init__(self, value: str, record: RecordT) -> None:
        self.value = value
        self.records: Set[RecordT] = {record}
        self.children: Dict[int, BKTreeNode[RecordT]] = {}

    def insert(self, value: str, record: RecordT, metric: EditDistanceMetric) -> bool:
        """Store ``record`` under ``value`` somewhere below this node.

        Returns ``False`` only when ``value`` already holds ``record``.
        Distinct values at the same distance from a node are pushed down into
        the existing child rather than replacing it.
        """
        node = self
        while True:
            dist = metric(node.value, value)
            if dist == 0:
                assert node.value == value, (
                    f"{metric.algorithm_name} reported distance 0 for "
                    f"distinct values {node.value!r} and {value!r}"
                )
                if record in node.records:
                    return False
                node.records.add(record)
                return True
            child = node.children.get(dist)
            if child is None:
                node.children[dist] = BKTreeNode(value, record)
                logger.debug("New node %r at distance %d from %r", value, dist, node.value)
                return True
            node = child

    def snapshot(self) -> Match:
        return self.value, frozenset(self.records)

    def __eq__(self, other) -> bool:
        if not isinstance(other, BKTreeNode):
            return NotImplemented
        return self.value == other.value and self.records == other.records

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"BKTreeNode(value={self.value!r}, records={len(self.records)}, "
            f"children={sorted(self.children)})"
        )


class BKTree(Generic[RecordT]):
    """BK-tree for approximate matching of identity strings.

    The tree is seeded with a first ``(value, record)`` pair and is never
    empty. ``search`` returns every stored value within ``threshold`` edits
    of the query, pruning subtrees with the triangle inequality.

    Parameters
    ----------
    value, record:
        Seed pair, stored in the root node.
    metric:
        An :class:`EditDistanceMetric` or a metric name (``"levenshtein"``,
        ``"osa"``). Required; use :meth:`from_config` to pick the configured
        metric.
    default_threshold:
        Non-negative integer used by ``search`` when no threshold is passed.
        ``None`` uses the configured default.
    """

    def __init__(
        self,
        value: str,
        record: RecordT,
        metric: Union[EditDistanceMetric, str],
        default_threshold: Optional[int] = None,
    ) -> None:
        if metric is None:
            raise BKTreeConfigurationError("A distance metric is required")
        try:
            self.metric = get_metric(metric)
        except MetricConfigurationError as e:
            raise BKTreeConfigurationError(str(e)) from e

        if default_threshold is None:
            default_threshold = get_default_threshold()
        self.default_threshold = _validate_threshold(default_threshold, "default_threshold")

        self.root: BKTreeNode[RecordT] = BKTreeNode(value, record)
        logger.info(
            "BKTree created with metric %s, default threshold %d",
            self.metric.algorithm_name,
            self.default_threshold,
        )

    @classmethod
    def from_config(cls, value: str, record: RecordT) -> "BKTree[RecordT]":
        """Build a tree using only environment and ``config.FUZZY_INDEX`` settings."""
        try:
            metric = get_metric(None)
        except MetricConfigurationError as e:
            raise BKTreeConfigurationError(str(e)) from e
        return cls(value, record, metric)

    def insert(self, value: str, record: RecordT) -> bool:
        """Insert ``record`` for ``value``.

        Returns ``True`` if the record was stored, ``False`` if ``value``
        already carried it.
        """
        return self.root.insert(value, record, self.metric)

    def extend(self, pairs: Iterable[Tuple[str, RecordT]]) -> int:
        """Insert many ``(value, record)`` pairs, returning how many were new."""
        added = 0
        for value, record in pairs:
            if self.insert(value, record):
                added += 1
        return added

    def _resolve_threshold(self, threshold: Optional[int]) -> int:
        if threshold is None:
            return self.default_threshold
        if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
            raise ValueError(f"threshold must be a non-negative integer, got {threshold!r}")
        return threshold

    def search_with_distance(
        self, query: str, threshold: Optional[int] = None
    ) -> List[Tuple[str, FrozenSet, int]]:
        """Like :meth:`search`, also returning each match's distance to ``query``."""
        max_dist = self._resolve_threshold(threshold)
        results: List[Tuple[str, FrozenSet, int]] = []
        visited = 0
        nodes = [self.root]
        while nodes:
            node = nodes.pop()
            visited += 1
            dist = self.metric(node.value, query)
            if dist <= max_dist:
                results.append((node.value, frozenset(node.records), dist))
            low, high = self.metric.search_bounds(dist, max_dist)
            for d, child in node.children.items():
                if low <= d <= high:
                    nodes.append(child)
        logger.debug(
            "Search %r (threshold %d): %d matches, %d nodes visited",
            query,
            max_dist,
            len(results),
            visited,
        )
        return results

    def search(self, query: str, threshold: Optional[int] = None) -> List[Match]:
        """Return ``(value, records)`` for every stored value within ``threshold``.

        Result order is unspecified; sort by distance afterwards if needed
        (see :meth:`search_with_distance`).
        """
        return [(value, records) for value, records, _ in self.search_with_distance(query, threshold)]

    def __iter__(self) -> Iterator[Match]:
        nodes = [self.root]
        while nodes:
            node = nodes.pop()
            yield node.snapshot()
            nodes.extend(node.children.values())

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __contains__(self, value: object) -> bool:
        if not isinstance(value, str):
            return False
        return any(found == value for found, _ in self.search(value, 0))

    def height(self) -> int:
        """Number of edges on the longest root-to-leaf path."""
        best = 0
        stack = [(self.root, 0)]
        while stack:
            node, depth = stack.pop()
            best = max(best, depth)
            for child in node.children.values():
                stack.append((child, depth + 1))
        return best

    def __repr__(self) -> str:
        return (
            f"BKTree(metric={self.metric.algorithm_name!r}, "
            f"default_threshold={self.default_threshold}, root={self.root.value!r})"
        )
