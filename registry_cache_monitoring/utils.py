"""Utility functions for object metadata and merge-patch computation."""

import json
from typing import Any, Dict


def indent(text: str, spaces: int) -> str:
    """
    Indent every line after the first by the given number of spaces.

    Examples:
        indent("a\\nb", 2) -> "a\\n  b"
    """
    return text.replace("\n", "\n" + " " * spaces)


def set_metadata_label(obj: Dict[str, Any], key: str, value: str) -> None:
    """Set a single label on an object dict, creating metadata.labels if needed."""
    metadata = obj.setdefault("metadata", {})
    labels = metadata.get("labels")
    if labels is None:
        labels = {}
        metadata["labels"] = labels
    labels[key] = value


def create_merge_patch(original: Dict[str, Any], modified: Dict[str, Any]) -> Dict[str, Any]:
    """
    Compute the RFC 7386 JSON merge patch that turns original into modified.

    Nested dicts are diffed recursively, keys missing from modified map to
    None (deletion) and any other changed value, lists included, is
    replaced whole.

    Returns:
        The patch dict; empty when the two objects are equal
    """
    patch: Dict[str, Any] = {}

    for key, value in modified.items():
        if key not in original:
            patch[key] = value
            continue
        current = original[key]
        if isinstance(current, dict) and isinstance(value, dict):
            nested = create_merge_patch(current, value)
            if nested:
                patch[key] = nested
        elif current != value:
            patch[key] = value

    for key in original:
        if key not in modified:
            patch[key] = None

    return patch


def apply_merge_patch(target: Any, patch: Any) -> Any:
    """Apply an RFC 7386 JSON merge patch, returning the merged value."""
    if not isinstance(patch, dict):
        return patch

    result = dict(target) if isinstance(target, dict) else {}
    for key, value in patch.items():
        if value is None:
            result.pop(key, None)
        else:
            result[key] = apply_merge_patch(result.get(key), value)
    return result


def serialize_patch(patch: Dict[str, Any]) -> str:
    """Serialize a patch dict to a compact, stable JSON string for logging."""
    return json.dumps(patch, sort_keys=True, separators=(",", ":"))
