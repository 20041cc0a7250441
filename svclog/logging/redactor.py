"""
Redactor - Credential scrubbing for log metadata

Replaces the values of sensitive keys with a fixed sentinel before a record
leaves the process. Keys are matched exactly (case-sensitive) against a
deny-list. Input mappings are never mutated; a new dict is always returned.

By default only top-level keys are scrubbed. With deep=True nested mappings
and sequences are walked as well, with cycle and depth guards.

Usage:
    from svclog.logging.redactor import redact

    redact({"user": "admin", "password": "abc123"})
    # {"user": "admin", "password": "[REDACTED]"}
"""

from beartype.typing import Any, Dict, FrozenSet, Iterable, Mapping, Optional

REDACTED = "[REDACTED]"
CIRCULAR = "[Circular]"
TRUNCATED = "[Truncated]"
MAX_DEPTH = 10

SENSITIVE_FIELDS = frozenset({"password", "token", "secret", "key", "credential"})
SENSITIVE_HEADERS = frozenset({"authorization", "cookie", "x-api-key"})
SENSITIVE_KEYS = SENSITIVE_FIELDS | SENSITIVE_HEADERS


def redact(
    metadata: Optional[Mapping[str, Any]], keys: Iterable[str] = SENSITIVE_KEYS, deep: bool = False
) -> Dict[str, Any]:
    """
    Return a copy of metadata with sensitive values replaced.

    Args:
        metadata: Mapping to scrub (None is treated as empty)
        keys: Deny-list of exact key names
        deep: Also scrub nested mappings and sequences

    Returns:
        New dict with every deny-listed key mapped to REDACTED

    Example:
        redact({"token": 42, "nested": {"token": 1}})
        # {"token": "[REDACTED]", "nested": {"token": 1}}
        redact({"nested": {"token": 1}}, deep=True)
        # {"nested": {"token": "[REDACTED]"}}
    """
    if not metadata:
        return {}

    deny = keys if isinstance(keys, frozenset) else frozenset(keys)
    if deep:
        return _redact_mapping(metadata, deny, depth=0, seen=set())
    return {key: (REDACTED if key in deny else value) for key, value in metadata.items()}


def _redact_mapping(mapping: Mapping, deny: FrozenSet[str], depth: int, seen: set) -> Dict[str, Any]:
    seen.add(id(mapping))
    result = {}
    for key, value in mapping.items():
        if key in deny:
            result[key] = REDACTED
        else:
            result[key] = _redact_value(value, deny, depth + 1, seen)
    seen.discard(id(mapping))
    return result


def _redact_value(value: Any, deny: FrozenSet[str], depth: int, seen: set) -> Any:
    if not isinstance(value, (Mapping, list, tuple)):
        return value
    if id(value) in seen:
        return CIRCULAR
    if depth >= MAX_DEPTH:
        return TRUNCATED
    if isinstance(value, Mapping):
        return _redact_mapping(value, deny, depth, seen)

    seen.add(id(value))
    items = [_redact_value(item, deny, depth + 1, seen) for item in value]
    seen.discard(id(value))
    return items if isinstance(value, list) else tuple(items)


def sanitize_headers(headers: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Redact credential-bearing HTTP headers"""
    return redact(headers, SENSITIVE_HEADERS)


def sanitize_body(body: Optional[Any], deep: bool = True) -> Optional[Any]:
    """
    Redact sensitive fields of a request or response body.

    Non-mapping bodies (strings, bytes, lists) are returned unchanged, and an
    absent body stays None.
    """
    if body is None:
        return None
    if not isinstance(body, Mapping):
        return body
    return redact(body, SENSITIVE_FIELDS, deep=deep)
