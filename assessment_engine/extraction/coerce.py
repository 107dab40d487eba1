"""
Value coercion and key matching for loosely structured stage documents.
"""

from __future__ import annotations

import math
import numbers
import re
from typing import Any, Iterable, Optional

from assessment_engine.schemas.metrics import RATINGS

# {"value": {"value": ...}} chains deeper than this are treated as unparseable
MAX_VALUE_NESTING = 5

_NUMERIC_NOISE = re.compile(r"[\s,$€£%]")
_SEPARATORS = re.compile(r"[\s_\-]")


def to_number(value: Any, _depth: int = 0) -> Optional[float]:
    """
    Coerce a document value to a finite float.

    Native numbers are accepted (booleans are not). Strings lose currency
    symbols, percent signs, commas and whitespace before parsing. A dict with a
    `value` field is coerced through that field.

    Returns:
        The number, or None when the value is absent or malformed
    """
    if isinstance(value, bool):
        return None
    if isinstance(value, numbers.Real):
        number = float(value)
        return number if math.isfinite(number) else None
    if isinstance(value, str):
        cleaned = _NUMERIC_NOISE.sub("", value)
        if not cleaned:
            return None
        try:
            number = float(cleaned)
        except ValueError:
            return None
        return number if math.isfinite(number) else None
    if isinstance(value, dict) and "value" in value and _depth < MAX_VALUE_NESTING:
        return to_number(value["value"], _depth + 1)
    return None


def to_rating_score(value: Any, _depth: int = 0) -> Optional[float]:
    """Ordinal score (1 = NOT_RECOMMENDED .. 4 = BREAKTHROUGH) for a rating value."""
    if isinstance(value, str):
        label = re.sub(r"[\s\-]+", "_", value.strip()).upper()
        if label in RATINGS:
            return float(RATINGS.index(label) + 1)
        return None
    if isinstance(value, dict) and "value" in value and _depth < MAX_VALUE_NESTING:
        return to_rating_score(value["value"], _depth + 1)
    number = to_number(value)
    if number is not None and number == int(number) and 1 <= number <= len(RATINGS):
        return number
    return None


def rating_from_score(score: float) -> Optional[str]:
    if score != int(score) or not 1 <= score <= len(RATINGS):
        return None
    return RATINGS[int(score) - 1]


def normalize_key(text: str) -> str:
    """Lower-case and strip whitespace, underscores and hyphens."""
    return _SEPARATORS.sub("", text).lower()


def _ends_word(text: str, end: int) -> bool:
    # 'irr_pct', 'irrValue' and 'IRR' end a word after 'irr'; 'irrigation' and 'EFFORT' do not
    if end >= len(text) or not text[end].isalpha():
        return True
    return text[end].isupper() and text[end - 1].islower()


def fuzzy_match(key: str, aliases: Iterable[str]) -> bool:
    """
    Whether a document key or label refers to one of the aliases.

    Aliases of four or more characters match as substrings of the key, and
    keys of six or more characters match as substrings of an alias. Short
    aliases such as 'trl' or 'irr' only match at the start of the key and must
    end at a word boundary ('irrValue', 'irr_pct', not 'irrigation' or 'EFFORT').
    """
    normalized = normalize_key(key)
    if not normalized:
        return False
    stripped = key.strip(" _-")
    for alias in aliases:
        target = normalize_key(alias)
        if not target:
            continue
        if len(target) < 4:
            if stripped.lower().startswith(target) and _ends_word(stripped, len(target)):
                return True
            continue
        if target in normalized:
            return True
        if len(normalized) >= 6 and normalized in target:
            return True
    return False
