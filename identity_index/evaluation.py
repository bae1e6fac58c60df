"""Check BK-tree search results against a linear scan over a CSV corpus."""

from __future__ import annotations

import io
import logging
from pathlib import Path
from typing import Dict, FrozenSet, List, Optional, Union

import pandas as pd

from .bktree import BKTree
from .config import EVALUATION
from .metrics import EditDistanceMetric, get_metric
from .utils import ensure_unicode, get_default_threshold

logger = logging.getLogger(__name__)


def load_values(dataset_path: Union[str, Path], column: Optional[str] = None) -> List[str]:
    """Read the ``column`` of a CSV file as a list of strings.

    The file encoding is detected with :func:`~identity_index.utils.ensure_unicode`.
    Values are kept verbatim: no stripping, no case-folding.
    """
    path = Path(dataset_path)
    if not path.exists():
        raise FileNotFoundError(f"Dataset not found: {dataset_path}")

    column = column or EVALUATION["value_column"]
    text = ensure_unicode(path.read_bytes())
    frame = pd.read_csv(
        io.StringIO(text),
        dtype=str,
        keep_default_na=False,
        skipinitialspace=False,
    )
    if column not in frame.columns:
        raise KeyError(f"Column {column!r} not found in {path.name}")
    return frame[column].tolist()


def linear_scan(
    stored: Dict[str, FrozenSet], query: str, threshold: int, metric: EditDistanceMetric
) -> Dict[str, FrozenSet]:
    return {
        value: records
        for value, records in stored.items()
        if metric(value, query) <= threshold
    }


def evaluate(
    dataset_path: Union[str, Path],
    threshold: Optional[int] = None,
    metric: Union[str, EditDistanceMetric, None] = None,
    column: Optional[str] = None,
) -> pd.DataFrame:
    """Compare tree search with a brute-force scan for every distinct value.

    Each CSV row becomes one record (its row number) under its value. For each
    distinct value used as a query, the report lists how many values the tree
    and the linear scan returned and whether both result sets are identical.

    Returns
    -------
    pandas.DataFrame
        One row per query with the columns listed in
        ``config.EVALUATION["report_columns"]``.
    """
    values = load_values(dataset_path, column)
    if not values:
        raise ValueError(f"Dataset {dataset_path} contains no values")

    metric = get_metric(metric)
    threshold = get_default_threshold() if threshold is None else threshold

    tree = BKTree(values[0], 0, metric, default_threshold=threshold)
    tree.extend((value, row) for row, value in enumerate(values[1:], start=1))
    stored = dict(tree)
    logger.info(
        "Evaluating %d distinct values (%d rows), tree height %d",
        len(stored),
        len(values),
        tree.height(),
    )

    rows = []
    for query in sorted(stored):
        found = dict(tree.search(query))
        expected = linear_scan(stored, query, threshold, metric)
        rows.append(
            {
                "query": query,
                "threshold": threshold,
                "tree_matches": len(found),
                "linear_matches": len(expected),
                "complete": found == expected,
            }
        )

    report = pd.DataFrame(rows, columns=EVALUATION["report_columns"])
    incomplete = int((~report["complete"]).sum())
    if incomplete:
        logger.error("%d queries differ from the linear scan", incomplete)
    return report
