# identity_index/config.py - CONFIGURATION DE L'INDEX APPROXIMATIF
"""
Configuration for the identity-string similarity index.
Metric registry, default search threshold and environment variable names.
"""

# === INFORMATIONS APPLICATION ===
APP_NAME = "Identity Index"
APP_VERSION = "0.1.0"
APP_DESCRIPTION = "BK-tree index for noisy person, organization and address strings"
APP_LICENSE = "MIT"

# === INDEX APPROXIMATIF ===
FUZZY_INDEX = {
    "metric": "levenshtein",
    "default_threshold": 2,
    # Backend used by the Levenshtein metric ("rapidfuzz" or "python-Levenshtein")
    "backend": "rapidfuzz",
}

# === VARIABLES D'ENVIRONNEMENT ===
ENV_METRIC = "IDENTITY_INDEX_METRIC"
ENV_THRESHOLD = "IDENTITY_INDEX_THRESHOLD"
ENV_BACKEND = "IDENTITY_INDEX_BACKEND"

# === ALGORITHMES DE DISTANCE ===
# Accepted spellings for each metric, all lowercase
METRIC_ALIASES = {
    "levenshtein": "levenshtein",
    "lev": "levenshtein",
    "osa": "osa",
    "optimal string alignment": "osa",
    "optimal_string_alignment": "osa",
    "restricted damerau-levenshtein": "osa",
}

LEVENSHTEIN_BACKENDS = ("rapidfuzz", "python-Levenshtein")

# === EVALUATION ===
EVALUATION = {
    "value_column": "value",
    "report_columns": [
        "query",
        "threshold",
        "tree_matches",
        "linear_matches",
        "complete",
    ],
}

# === MASQUAGE DES IDENTIFIANTS ===
TIN_MASK_PREFIX = "XXX-XX-"
TIN_VISIBLE_GRAPHEMES = 4
