"""Recursive merging of configuration trees."""

from __future__ import annotations

from typing import Any, Mapping

ConfigTree = Mapping[str, Any]


def _copy_tree(value: Any) -> Any:
    if isinstance(value, Mapping):
        return {key: _copy_tree(item) for key, item in value.items()}
    return value


def merge_config(base: ConfigTree, *overrides: ConfigTree) -> dict[str, Any]:
    """Merge ``overrides`` into ``base``, left to right.

    When both the merged value and the override value at a key are mappings
    the two are merged recursively; any other override value replaces the
    existing one outright. Neither input is mutated and every mapping in the
    result is a fresh ``dict``.

    Args:
        base: Lowest precedence tree (e.g. library defaults).
        overrides: Higher precedence trees, the last one wins.

    Returns:
        A new merged tree.
    """
    merged: dict[str, Any] = _copy_tree(base)
    for override in overrides:
        for key, value in override.items():
            current = merged.get(key)
            if isinstance(value, Mapping) and isinstance(current, Mapping):
                merged[key] = merge_config(current, value)
            else:
                merged[key] = _copy_tree(value)
    return merged
