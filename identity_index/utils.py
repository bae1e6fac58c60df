import os
import logging
from functools import lru_cache
from typing import Optional, Tuple

import chardet
import regex

from .config import (
    FUZZY_INDEX,
    ENV_METRIC,
    ENV_THRESHOLD,
    ENV_BACKEND,
)

logger = logging.getLogger(__name__)

_GRAPHEME_RE = regex.compile(r"\X")


def configure_logging(level: int = logging.WARNING) -> None:
    """Configure root logging once for command line use."""
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def get_metric_name() -> str:
    """Return the configured metric name.

    Environment variable ``IDENTITY_INDEX_METRIC`` takes precedence over the
    configuration. The value is returned lowercased and stripped; resolving it
    to an actual metric is left to :func:`identity_index.metrics.get_metric`.
    """

    env_value = os.getenv(ENV_METRIC)
    if env_value and env_value.strip():
        return env_value.strip().lower()
    return str(FUZZY_INDEX.get("metric", "levenshtein")).lower()


def get_default_threshold() -> int:
    """Return the default search threshold from env or configuration.

    An override that cannot be parsed as an integer is ignored with a warning.
    A parseable negative value is returned as-is so that tree construction can
    reject it instead of silently defaulting.
    """

    env_value = os.getenv(ENV_THRESHOLD)
    if env_value:
        try:
            return int(env_value.strip())
        except ValueError:
            logger.warning(
                "Ignoring invalid %s=%r, using configured threshold",
                ENV_THRESHOLD,
                env_value,
            )
    return int(FUZZY_INDEX.get("default_threshold", 2))


def get_backend() -> str:
    """Return the Levenshtein backend name from env or configuration."""

    env_value = os.getenv(ENV_BACKEND)
    if env_value and env_value.strip():
        return env_value.strip()
    return str(FUZZY_INDEX.get("backend", "rapidfuzz"))


@lru_cache(maxsize=65536)
def graphemes(text: str) -> Tuple[str, ...]:
    """Split ``text`` into extended grapheme clusters.

    ``"e\\u0301"`` (e + combining acute) is a single cluster, as is a flag
    emoji made of two regional indicators.
    """
    return tuple(_GRAPHEME_RE.findall(text))


def grapheme_length(text: str) -> int:
    return len(graphemes(text))


def ensure_unicode(text, min_confidence: float = 0.5) -> str:
    """Decode ``text`` to ``str`` when given bytes.

    UTF-8 is tried first, then the encoding guessed by ``chardet`` when its
    confidence exceeds ``min_confidence``.

    Raises
    ------
    UnicodeDecodeError
        When no encoding decodes the bytes.
    """
    if isinstance(text, bytes):
        try:
            return text.decode("utf-8")
        except UnicodeDecodeError:
            pass

        detection = chardet.detect(text)
        encoding: Optional[str] = detection.get("encoding")
        confidence = detection.get("confidence", 0) or 0
        if encoding and confidence > min_confidence:
            try:
                return text.decode(encoding)
            except (UnicodeDecodeError, LookupError):
                pass

        logger.error(
            "Could not decode text (detected encoding: %s, confidence: %.2f)",
            encoding,
            confidence,
        )
        raise UnicodeDecodeError(encoding or "unknown", text, 0, len(text), "decoding failed")

    return str(text)
