"""Evaluation of Prometheus relabel rules against a label set."""

import logging
import re
from typing import Any, Dict, Iterable, List, Optional

logger = logging.getLogger(__name__)

DEFAULT_SEPARATOR = ";"
DEFAULT_REGEX = "(.*)"
DEFAULT_REPLACEMENT = "$1"

_GROUP_REF = re.compile(r"\$(?:\{(\w+)\}|(\w+))")


def _compile(regex: str) -> "re.Pattern":
    # Prometheus anchors relabel regexes on both ends
    return re.compile(f"(?:{regex})\\Z")


def expand(replacement: str, match: "re.Match") -> str:
    """
    Expand $1, ${1}, $name and ${name} references the way Go's
    Regexp.Expand does. Unknown groups expand to an empty string.
    """
    def substitute(ref: "re.Match") -> str:
        name = ref.group(1) or ref.group(2)
        try:
            value = match.group(int(name)) if name.isdigit() else match.group(name)
        except IndexError:
            return ""
        return value or ""

    return _GROUP_REF.sub(substitute, replacement)


def apply_rule(labels: Dict[str, str], rule: Dict[str, Any]) -> Optional[Dict[str, str]]:
    """
    Apply one relabel rule.

    Returns:
        The new label set, or None if the target is dropped
    """
    action = rule.get("action", "replace").lower()
    pattern = _compile(rule.get("regex", DEFAULT_REGEX))
    separator = rule.get("separator", DEFAULT_SEPARATOR)
    replacement = rule.get("replacement", DEFAULT_REPLACEMENT)
    value = separator.join(labels.get(name, "") for name in rule.get("sourceLabels", []))

    if action == "keep":
        return labels if pattern.match(value) else None

    if action == "drop":
        return None if pattern.match(value) else labels

    if action == "replace":
        match = pattern.match(value)
        if not match:
            return labels
        target = expand(rule.get("targetLabel", ""), match)
        if not target:
            return labels
        result = dict(labels)
        new_value = expand(replacement, match)
        if new_value:
            result[target] = new_value
        else:
            result.pop(target, None)
        return result

    if action == "labelmap":
        result = dict(labels)
        for name, label_value in labels.items():
            match = pattern.match(name)
            if match:
                new_name = expand(replacement, match)
                if new_name:
                    result[new_name] = label_value
        return result

    if action == "labeldrop":
        return {k: v for k, v in labels.items() if not pattern.match(k)}

    if action == "labelkeep":
        return {k: v for k, v in labels.items() if pattern.match(k)}

    raise ValueError(f"Unsupported relabel action: {action}")


def relabel(labels: Dict[str, str], rules: Iterable[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """
    Run a target's labels through a list of relabel rules in order.

    Labels with empty values count as absent, as in Prometheus.

    Returns:
        The resulting label set, or None if a rule dropped the target
    """
    result: Optional[Dict[str, str]] = {k: v for k, v in labels.items() if v != ""}
    for rule in rules:
        result = apply_rule(result, rule)
        if result is None:
            logger.debug(f"Target dropped by relabel rule {rule}")
            return None
    return result


def parse_label_args(pairs: List[str]) -> Dict[str, str]:
    """Parse ["name=value", ...] into a label dict."""
    labels = {}
    for pair in pairs:
        if "=" not in pair:
            raise ValueError(f"Expected LABEL=VALUE, got {pair!r}")
        name, value = pair.split("=", 1)
        labels[name.strip()] = value
    return labels
