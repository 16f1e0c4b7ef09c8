"""Header variable context - request-scoped values for header templates."""

import ipaddress
from dataclasses import dataclass

from starlette.requests import Request

from keyrelay_core.types import APIKey, Group

# Client IP used for requests the relay issues itself
INTERNAL_CLIENT_IP = "127.0.0.1"


@dataclass(frozen=True)
class HeaderVariableContext:
    """Values available to header templates for one outgoing request."""

    client_ip: str = ""
    group: Group | None = None
    api_key: APIKey | None = None

    @classmethod
    def from_request(
        cls,
        request: Request,
        group: Group | None = None,
        api_key: APIKey | None = None,
    ) -> "HeaderVariableContext":
        """Build a context for a request proxied on behalf of a client."""
        return cls(client_ip=client_ip(request), group=group, api_key=api_key)

    @classmethod
    def internal(
        cls,
        group: Group | None = None,
        api_key: APIKey | None = None,
    ) -> "HeaderVariableContext":
        """Build a context for a request the relay issues itself (e.g. validation)."""
        return cls(client_ip=INTERNAL_CLIENT_IP, group=group, api_key=api_key)


def _valid_ip(value: str) -> str | None:
    try:
        return str(ipaddress.ip_address(value))
    except ValueError:
        return None


def client_ip(request: Request) -> str:
    """Best-effort client address: X-Forwarded-For, X-Real-IP, then the peer.

    Header values are client-controlled, so a forwarded address is only
    used when it parses as an IP address.
    """
    forwarded = request.headers.get("x-forwarded-for", "")
    first_hop = _valid_ip(forwarded.split(",")[0].strip())
    if first_hop:
        return first_hop

    real_ip = _valid_ip(request.headers.get("x-real-ip", "").strip())
    if real_ip:
        return real_ip

    return request.client.host if request.client else ""
