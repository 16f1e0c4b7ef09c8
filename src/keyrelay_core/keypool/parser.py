"""Key parser - decodes raw keys into ParsedKey values.

Supported methods:
- none: the raw key is the actual key
- urlencode: the raw key carries the actual key plus extra parameters,
  either as a query string ("key=sk-abc&region=us") or as ordered
  segments where the first one is the key ("sk-abc&region=us")

Parsing is pure: no shared state, safe to call from any task.
"""

import logging
import re
from collections.abc import Callable
from urllib.parse import unquote_plus

from keyrelay_core.errors import KeyRelayError, create_error
from keyrelay_core.telemetry import record_parse_fallback
from keyrelay_core.types import KeyParsingMethod, ParsedKey

logger = logging.getLogger(__name__)

# Query parameter carrying the actual key
ACTUAL_KEY_PARAM = "key"
ACTUAL_KEY_TOKEN = f"{ACTUAL_KEY_PARAM}="

# A '%' not followed by two hex digits
_BAD_ESCAPE = re.compile(r"%(?![0-9A-Fa-f]{2})")


def _parse_error(method: KeyParsingMethod, reason: str) -> KeyRelayError:
    return create_error("KEY_PARSE_FAILED", method=method.value, reason=reason)


def _unescape(component: str) -> str:
    if _BAD_ESCAPE.search(component):
        raise _parse_error(KeyParsingMethod.URLENCODE, "invalid URL escape")
    return unquote_plus(component)


def _parse_query(raw_key: str) -> dict[str, list[str]]:
    """Decode a query string into name -> values, in order of appearance."""
    values: dict[str, list[str]] = {}
    for pair in raw_key.split("&"):
        if not pair:
            continue
        if ";" in pair:
            raise _parse_error(KeyParsingMethod.URLENCODE, "invalid semicolon separator in query")
        name, _, value = pair.partition("=")
        values.setdefault(_unescape(name), []).append(_unescape(value))
    return values


def _parse_identity(raw_key: str) -> ParsedKey:
    return ParsedKey.identity(raw_key)


def _parse_query_key(raw_key: str) -> ParsedKey:
    values = _parse_query(raw_key)

    # First binding wins, even when it is empty
    actual_key = values.get(ACTUAL_KEY_PARAM, [""])[0]
    if not actual_key:
        raise _parse_error(
            KeyParsingMethod.URLENCODE, "no 'key' parameter found in URL encoded string"
        )

    params = {
        name: bound[0] for name, bound in values.items() if name != ACTUAL_KEY_PARAM and bound
    }
    return ParsedKey(raw_key=raw_key, actual_key=actual_key, params=params)


def _parse_segments(raw_key: str) -> ParsedKey:
    segments = raw_key.split("&")

    # A bare first segment with nothing encoded after it is a plain key
    # that happens to contain '&'
    if "=" not in segments[0] and not any("=" in s for s in segments[1:]):
        return ParsedKey.identity(raw_key)

    actual_key = ""
    params: dict[str, str] = {}
    for index, segment in enumerate(segments):
        if "=" not in segment:
            if index == 0:
                actual_key = segment.strip()
            continue

        name, _, value = segment.partition("=")
        name, value = name.strip(), value.strip()

        if index == 0:
            # First segment is the key, whatever it is called
            actual_key = value
        elif name:
            params[name] = value

    if not actual_key:
        raise _parse_error(
            KeyParsingMethod.URLENCODE, "failed to extract actual key from URL encoded string"
        )

    return ParsedKey(raw_key=raw_key, actual_key=actual_key, params=params)


def _parse_urlencoded(raw_key: str) -> ParsedKey:
    if "=" not in raw_key and "&" not in raw_key:
        return ParsedKey.identity(raw_key)

    if ACTUAL_KEY_TOKEN in raw_key:
        return _parse_query_key(raw_key)

    return _parse_segments(raw_key)


_STRATEGIES: dict[KeyParsingMethod, Callable[[str], ParsedKey]] = {
    KeyParsingMethod.NONE: _parse_identity,
    KeyParsingMethod.URLENCODE: _parse_urlencoded,
}


def parse_key(
    raw_key: str,
    method: KeyParsingMethod | str | None = KeyParsingMethod.NONE,
) -> ParsedKey:
    """Parse a raw key with the given method.

    Args:
        raw_key: Key as stored
        method: Parsing method; empty or unrecognized values mean "none"

    Returns:
        A new ParsedKey

    Raises:
        KeyRelayError(KEY_PARSE_FAILED) if an encoded key is malformed
    """
    strategy = _STRATEGIES[KeyParsingMethod.from_value(method)]
    return strategy(raw_key)


def parse_key_or_identity(
    raw_key: str,
    method: KeyParsingMethod | str | None = KeyParsingMethod.NONE,
) -> ParsedKey:
    """Parse a raw key, falling back to the raw key on parse failure.

    A malformed key or a wrong parsing method must never block a key from
    being used, so parse failures are logged and the key is used as-is.
    """
    try:
        return parse_key(raw_key, method)
    except KeyRelayError as e:
        if e.code != "KEY_PARSE_FAILED":
            raise
        resolved = KeyParsingMethod.from_value(method)
        logger.warning(f"{e}; using raw key")
        record_parse_fallback(resolved.value)
        return ParsedKey.identity(raw_key)


class KeyParser:
    """Parser bound to one parsing method."""

    def __init__(self, method: KeyParsingMethod | str | None = KeyParsingMethod.NONE):
        self._method = KeyParsingMethod.from_value(method)

    @property
    def method(self) -> KeyParsingMethod:
        return self._method

    def parse(self, raw_key: str) -> ParsedKey:
        """Parse a raw key, raising KEY_PARSE_FAILED on malformed input."""
        return parse_key(raw_key, self._method)
