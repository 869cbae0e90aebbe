"""Helper utilities"""
import re
from typing import Dict, Any, Iterable, List

PLACEHOLDER_PATTERN = re.compile(r'<([^<>]+)>')

_MISSING = object()


def deep_get(dictionary: Dict, keys: str, default: Any = None) -> Any:
    """Get nested dictionary value using dot notation"""
    value = dictionary

    for key in keys.split('.'):
        if not isinstance(value, dict):
            return default
        value = value.get(key, _MISSING)
        if value is _MISSING:
            return default

    return value


def substitute_placeholders(template: str, values: Dict[str, str]) -> str:
    """Replace <name> placeholders in a single pass; unknown names are left as-is"""
    if '<' not in template:
        return template

    def replace(match: re.Match) -> str:
        name = match.group(1)
        return values[name] if name in values else match.group(0)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def find_placeholders(template: str) -> List[str]:
    """List the <name> placeholders used in a template"""
    return PLACEHOLDER_PATTERN.findall(template)


def normalize_tag(tag: str) -> str:
    """Make sure a tag carries its @ sigil"""
    tag = tag.strip()
    return tag if tag.startswith('@') else f"@{tag}"


def unique(items: Iterable[Any]) -> List[Any]:
    """Drop duplicates, keeping first-seen order"""
    seen = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result
