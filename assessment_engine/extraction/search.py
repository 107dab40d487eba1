"""
Document traversal: fixed paths and bounded deep search.
"""

from __future__ import annotations

from typing import Any, Callable, List, Optional, Sequence, Tuple

from assessment_engine.config import Config
from assessment_engine.extraction.coerce import fuzzy_match, to_number
from assessment_engine.extraction.paths import Select, Step
from assessment_engine.utils.logging_utils import get_logger

logger = get_logger(__name__)

# Fields that name the metric a node describes, e.g. {"name": "CAPEX", "value": 1200}
LABEL_KEYS = ("name", "id", "metric", "label")

_MISSING = object()


def traverse_path(document: Any, steps: Sequence[Step]) -> Any:
    """
    Follow path steps through a document.

    Returns:
        The value at the end of the path, or None if any step does not resolve
    """
    node = document
    for step in steps:
        match step:
            case Select(key=key, value=wanted):
                if not isinstance(node, list):
                    return None
                node = next(
                    (
                        item for item in node
                        if isinstance(item, dict)
                        and isinstance(item.get(key), str)
                        and item[key].lower() == wanted.lower()
                    ),
                    None,
                )
            case int(index):
                if not isinstance(node, list) or not -len(node) <= index < len(node):
                    return None
                node = node[index]
            case str(name):
                if not isinstance(node, dict):
                    return None
                node = node.get(name)
        if node is None:
            return None
    return node


def deep_search(
    document: Any,
    aliases: Sequence[str],
    coerce: Callable[[Any], Optional[float]] = to_number,
    max_depth: Optional[int] = None,
) -> Optional[Tuple[float, List[str]]]:
    """
    Depth-first search for the first value whose key or label matches an alias.

    A dict whose name/id/metric/label field matches yields its `value` field;
    otherwise every key of the dict is matched against the aliases before the
    search descends into its children. The walk stops at `max_depth` levels
    (Config.DEEP_SEARCH_MAX_DEPTH by default) and never revisits a container,
    so self-referencing documents terminate.

    Args:
        document: Arbitrary nested dict/list structure
        aliases: Names the metric may appear under
        coerce: Converts a candidate value to a number, None to reject it
        max_depth: Depth limit override

    Returns:
        (value, key path) of the first match, or None
    """
    limit = Config.DEEP_SEARCH_MAX_DEPTH if max_depth is None else max_depth
    visited = set()

    def walk(node: Any, depth: int, trail: List[str]) -> Optional[Tuple[float, List[str]]]:
        if depth > limit:
            logger.debug(f"Deep search depth limit {limit} reached at {'.'.join(trail) or '<root>'}")
            return None
        if isinstance(node, (dict, list)):
            if id(node) in visited:
                return None
            visited.add(id(node))

        match node:
            case dict():
                for label_key in LABEL_KEYS:
                    label = node.get(label_key)
                    if isinstance(label, str) and fuzzy_match(label, aliases):
                        value = coerce(node.get("value", _MISSING))
                        if value is not None:
                            return value, trail + [label_key]
                for key, child in node.items():
                    if isinstance(key, str) and key not in LABEL_KEYS and fuzzy_match(key, aliases):
                        value = coerce(child)
                        if value is not None:
                            return value, trail + [key]
                for key, child in node.items():
                    found = walk(child, depth + 1, trail + [str(key)])
                    if found is not None:
                        return found
            case list():
                for index, child in enumerate(node):
                    found = walk(child, depth + 1, trail + [str(index)])
                    if found is not None:
                        return found
        return None

    return walk(document, 0, [])
