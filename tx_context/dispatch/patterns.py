"""Action patterns: flat key/value selectors such as "role:worker,cmd:*"."""

from typing import Any, Dict, Mapping, Union

WILDCARD = "*"

Pattern = Dict[str, str]


def parse_pattern(pattern: Union[str, Mapping[str, Any]]) -> Pattern:
    """Parses a pattern given as "key:value,key:value" or as a mapping.

    Raises:
        ValueError: If the pattern is empty or a term is not of the form key:value.
    """
    if isinstance(pattern, Mapping):
        parsed = {str(k): str(v) for k, v in pattern.items()}
    else:
        parsed = {}
        for term in pattern.split(","):
            term = term.strip()
            if not term:
                continue
            key, sep, value = term.partition(":")
            if not sep or not key.strip() or not value.strip():
                raise ValueError(f"Invalid pattern term '{term}' in '{pattern}'; expected key:value")
            parsed[key.strip()] = value.strip()
    if not parsed:
        raise ValueError("Pattern must contain at least one key:value term")
    return parsed


def format_pattern(pattern: Mapping[str, str]) -> str:
    return ",".join(f"{k}:{v}" for k, v in sorted(pattern.items()))


def pattern_matches(pattern: Mapping[str, str], message: Mapping[str, Any]) -> bool:
    """True if every term of the pattern is satisfied by the message."""
    for key, value in pattern.items():
        if key not in message:
            return False
        if value != WILDCARD and str(message[key]) != value:
            return False
    return True


def pin_covers(pin: Mapping[str, str], pattern: Mapping[str, str]) -> bool:
    """True if every message selected by `pattern` is also selected by `pin`."""
    for key, value in pin.items():
        if key not in pattern:
            return False
        if value != WILDCARD and pattern[key] != value:
            return False
    return True
