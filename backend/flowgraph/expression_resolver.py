# Copyright (c) 2025 adcl.io
# All Rights Reserved.
#
# This software is proprietary and confidential. Unauthorized copying,
# distribution, or use of this software is strictly prohibited.

"""
Expression Resolver

Path lookup into nested dict/list data and {{ ... }} placeholder
substitution for string fields (URLs, bodies, messages).

Supported paths:
    a.b.c           dotted keys
    items[0].name   bracketed array indices (items.0.name also works)
    $.a.b / .a.b    leading JSONPath-style root is ignored
    response.x      "response." is dropped when the data has no "response" key

Unresolvable placeholders are left in place verbatim.
"""

import json
import re
from typing import Any, Dict, List, Optional


class _Missing:
    """Sentinel for a path that does not resolve (distinct from a JSON null)"""

    def __repr__(self) -> str:
        return "MISSING"

    def __bool__(self) -> bool:
        return False


MISSING = _Missing()

PLACEHOLDER_PATTERN = re.compile(r"\{\{\s*(.*?)\s*\}\}")
_TOKEN_PATTERN = re.compile(r"""\[\s*(\d+)\s*\]|\[\s*["']([^"']*)["']\s*\]|([^.\[\]]+)""")


def split_path(path: str) -> List[str]:
    """Tokenize 'a.b[0]["c d"]' into ['a', 'b', '0', 'c d']."""
    path = path.strip()
    if path.startswith("$."):
        path = path[2:]
    elif path.startswith("."):
        path = path[1:]

    tokens = []
    for index, quoted, key in _TOKEN_PATTERN.findall(path):
        tokens.append(index or quoted or key.strip())
    return [token for token in tokens if token != ""]


def _path_parts(data: Any, path: str) -> List[str]:
    parts = split_path(path)
    # "response.status" reads the same whether or not the output is wrapped
    if len(parts) > 1 and parts[0] == "response" and not (
        isinstance(data, dict) and "response" in data
    ):
        parts = parts[1:]
    return parts


def _step(current: Any, part: str) -> Any:
    if isinstance(current, dict):
        return current.get(part, MISSING)
    if isinstance(current, (list, tuple)) and part.isdigit():
        index = int(part)
        return current[index] if index < len(current) else MISSING
    return MISSING


def resolve_path(data: Any, path: str) -> Any:
    """
    Resolve a path against data.

    Returns:
        The value found, or MISSING when any segment does not exist
    """
    parts = _path_parts(data, path)
    if not parts:
        return data if path.strip() in ("", "$", ".") else MISSING

    current = data
    for part in parts:
        current = _step(current, part)
        if current is MISSING:
            return MISSING
    return current


def get_value_by_path(data: Any, path: str, default: Any = None) -> Any:
    """Resolve a path, returning default instead of MISSING."""
    value = resolve_path(data, path)
    return default if value is MISSING else value


def to_template_string(value: Any) -> str:
    """String form used when substituting a resolved value into a template."""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, default=str)
    return str(value)


def resolve_template(template: Optional[str], scope: Dict[str, Any]) -> Optional[str]:
    """
    Replace every {{ path }} placeholder with its resolved value.

    A placeholder whose path is missing or resolves to null is kept
    literally so the failure stays visible in the output.
    """
    if not template or "{{" not in template:
        return template

    def replace(match):
        value = resolve_path(scope, match.group(1))
        if value is MISSING or value is None:
            return match.group(0)
        return to_template_string(value)

    return PLACEHOLDER_PATTERN.sub(replace, template)


def find_unresolved(template: Optional[str], scope: Dict[str, Any]) -> List[str]:
    """Placeholder paths in template that would not resolve against scope."""
    if not template:
        return []
    return [
        match.group(1)
        for match in PLACEHOLDER_PATTERN.finditer(template)
        if resolve_path(scope, match.group(1)) in (MISSING, None)
    ]


def describe_source(data: Any) -> str:
    """Short description of source data for mapping error messages."""
    if data is MISSING:
        return "Source data is undefined (upstream node may not have executed successfully)."
    if data is None:
        return "Source data is null."
    if isinstance(data, dict):
        if not data:
            return "Source data is an empty object."
        return f"Available keys in source data: {', '.join(str(key) for key in data.keys())}."
    return f"Source data type: {type(data).__name__}."


def deepest_match(data: Any, path: str):
    """
    Longest prefix of path that resolves, with the value found there.

    Returns:
        (prefix, value) where prefix is "" when not even the first segment exists
    """
    parts = _path_parts(data, path)

    prefix: List[str] = []
    current = data
    for part in parts:
        candidate = _step(current, part)
        if candidate is MISSING:
            break
        prefix.append(part)
        current = candidate
    return ".".join(prefix), current
