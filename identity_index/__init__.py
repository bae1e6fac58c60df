"""
Identity Index - approximate matching of identity strings
=========================================================

BK-tree index reconciling noisy person names, organization names, address
lines and masked identifiers that denote the same real-world entity.

Modules principaux:
- metrics: Levenshtein and Optimal String Alignment distances over graphemes
- bktree: the BK-tree index (insert / search)
- demographics: name, TIN, address and date value types
- config / utils: configuration and environment overrides

Usage:
    from identity_index import BKTree

    tree = BKTree("Jean Dupont", "person-1", "osa", default_threshold=2)
    tree.insert("Jean Dupond", "person-2")
    tree.search("Jean Dupont", 1)
"""

__version__ = "0.1.0"
__license__ = "MIT"

from .metrics import (
    EditDistanceMetric,
    LevenshteinMetric,
    OsaMetric,
    LEVENSHTEIN,
    OSA,
    MetricConfigurationError,
    available_metrics,
    get_metric,
)

from .bktree import BKTree, BKTreeNode, BKTreeConfigurationError

from .demographics import (
    Address,
    DemographicParseError,
    Human,
    HumanName,
    OptionDate,
    Organization,
    SSN,
    TIN,
)

from .config import FUZZY_INDEX

__all__ = [
    # Index
    "BKTree",
    "BKTreeNode",
    "BKTreeConfigurationError",

    # Metrics
    "EditDistanceMetric",
    "LevenshteinMetric",
    "OsaMetric",
    "LEVENSHTEIN",
    "OSA",
    "MetricConfigurationError",
    "available_metrics",
    "get_metric",

    # Demographic values
    "Address",
    "DemographicParseError",
    "Human",
    "HumanName",
    "OptionDate",
    "Organization",
    "SSN",
    "TIN",

    # Configuration
    "FUZZY_INDEX",
]
