"""Header template resolution and header rule application.

Templates support:
- ${CLIENT_IP}          client address of the request
- ${TIMESTAMP_MS}       current Unix time in milliseconds
- ${TIMESTAMP_S}        current Unix time in seconds
- ${GROUP_NAME}         name of the group serving the request
- ${API_KEY}            raw value of the key in use
- ${API_KEY}{name}      parameter "name" encoded in the key in use
"""

import re
import time
from collections.abc import Sequence
from typing import Any

from keyrelay_core.types import HeaderAction, HeaderRule

from .context import HeaderVariableContext

CLIENT_IP = "${CLIENT_IP}"
TIMESTAMP_MS = "${TIMESTAMP_MS}"
TIMESTAMP_S = "${TIMESTAMP_S}"
GROUP_NAME = "${GROUP_NAME}"
API_KEY = "${API_KEY}"

# ${API_KEY}{name}; listed first so it wins over the plain ${API_KEY}
API_KEY_PARAM_PATTERN = re.compile(r"\$\{API_KEY\}\{([^}]+)\}")

# One left-to-right scan: substituted values are never scanned again
_FIXED_VARIABLES = (CLIENT_IP, TIMESTAMP_MS, TIMESTAMP_S, GROUP_NAME, API_KEY)
_VARIABLE_PATTERN = re.compile(
    "|".join([API_KEY_PARAM_PATTERN.pattern, *(re.escape(v) for v in _FIXED_VARIABLES)])
)

# RFC 7230 token characters besides letters and digits
_TOKEN_PUNCTUATION = frozenset("!#$%&'*+-.^_`|~")


def resolve_header_variables(template: str, context: HeaderVariableContext | None) -> str:
    """Substitute header variables in a template.

    Values taken from the request or the key (client IP, key params) are
    inserted verbatim; template syntax inside them is not expanded.

    Args:
        template: Header value template
        context: Request context; None leaves the template untouched

    Returns:
        Resolved header value
    """
    if context is None:
        return template

    api_key = context.api_key
    parsed = api_key.parsed_key if api_key else None

    now = time.time()
    values = {
        CLIENT_IP: context.client_ip,
        TIMESTAMP_MS: str(int(now * 1000)),
        TIMESTAMP_S: str(int(now)),
    }
    if context.group is not None:
        values[GROUP_NAME] = context.group.name
    if api_key is not None:
        values[API_KEY] = api_key.key_value

    def _substitute(match: re.Match[str]) -> str:
        param = match.group(1)
        if param is not None:
            return parsed.get_param(param) if parsed else ""
        token = match.group(0)
        return values.get(token, token)

    return _VARIABLE_PATTERN.sub(_substitute, template)


def _is_token_char(c: str) -> bool:
    return (c.isascii() and c.isalnum()) or c in _TOKEN_PUNCTUATION


def canonical_header_key(name: str) -> str:
    """Canonical form of a header name, e.g. "x-api-key" -> "X-Api-Key".

    Names containing characters outside the HTTP token set are returned
    unchanged.
    """
    if not name or not all(_is_token_char(c) for c in name):
        return name

    chars = []
    upper = True
    for c in name:
        chars.append(c.upper() if upper else c.lower())
        upper = c == "-"
    return "".join(chars)


def apply_header_rules(
    request: Any,
    rules: Sequence[HeaderRule] | None,
    context: HeaderVariableContext | None,
) -> None:
    """Apply header rules to an outgoing request, in order.

    Args:
        request: Object with a mutable `headers` mapping (e.g. httpx.Request);
            None is a no-op
        rules: Rules to apply; later rules see the effect of earlier ones
        context: Context for resolving "set" templates
    """
    if request is None or not rules:
        return

    headers = request.headers
    for rule in rules:
        name = canonical_header_key(rule.key)
        action = rule.action.value if isinstance(rule.action, HeaderAction) else rule.action

        if action == HeaderAction.REMOVE.value:
            headers.pop(name, None)
        elif action == HeaderAction.SET.value:
            headers[name] = resolve_header_variables(rule.value, context)
