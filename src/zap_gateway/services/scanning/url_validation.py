"""Scan target URL safety validation.

Every scan target is checked here before ZAP is asked to touch it, so that
a remote caller cannot use the proxy to reach the host network (SSRF).

Checks, in order:
1. The URL must parse and use http or https.
2. With a non-empty allow-list, the host must match it. A match accepts the
   URL immediately; no match rejects it. The allow-list is exclusive.
3. Localhost aliases are rejected unless localhost scanning is enabled.
4. Hosts matching the deny-list are rejected.
5. The host is resolved (bounded by a timeout). Loopback, link-local, and,
   unless private networks are enabled, private addresses are rejected.
"""

from __future__ import annotations

import asyncio
import ipaddress
import re
import socket
from functools import lru_cache
from typing import TYPE_CHECKING, Final

from pydantic import AnyUrl, TypeAdapter, ValidationError

from zap_gateway.observability.logging import get_logger
from zap_gateway.services.scanning.exceptions import (
    ForbiddenTargetError,
    InvalidUrlError,
    UnresolvableHostError,
)


if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable, Iterable

    from zap_gateway.core.config.settings import UrlPolicySettings

    Resolver = Callable[[str], Awaitable[list[str]]]


logger = get_logger(__name__)

ALLOWED_SCHEMES: Final[frozenset[str]] = frozenset({"http", "https"})

PRIVATE_NETWORKS: Final[tuple[ipaddress.IPv4Network | ipaddress.IPv6Network, ...]] = (
    ipaddress.ip_network("10.0.0.0/8"),
    ipaddress.ip_network("172.16.0.0/12"),
    ipaddress.ip_network("192.168.0.0/16"),
    ipaddress.ip_network("169.254.0.0/16"),
    ipaddress.ip_network("fc00::/7"),
)

_url_adapter: TypeAdapter[AnyUrl] = TypeAdapter(AnyUrl)


@lru_cache(maxsize=256)
def _compile_pattern(pattern: str) -> re.Pattern[str]:
    parts = (re.escape(part) for part in pattern.split("*"))
    return re.compile(".*".join(parts))


def matches_pattern(host: str, pattern: str) -> bool:
    """Match a hostname against an exact or ``*``-wildcard pattern.

    ``*`` matches any run of characters, so ``*.test.com`` matches
    ``api.test.com`` and ``a.b.test.com`` but not ``test.com``.
    """
    pattern = pattern.strip().lower()
    if not pattern:
        return False
    if "*" not in pattern:
        return host == pattern
    return _compile_pattern(pattern).fullmatch(host) is not None


def is_localhost_alias(host: str) -> bool:
    """Return True for ``localhost``, ``*.localhost``, ``127.*``, and ``::1``."""
    return (
        host == "localhost"
        or host.endswith(".localhost")
        or host.startswith("127.")
        or host == "::1"
    )


async def resolve_host(host: str) -> list[str]:
    """Resolve ``host`` to its distinct IP addresses via the event loop."""
    loop = asyncio.get_running_loop()
    infos = await loop.getaddrinfo(host, None, type=socket.SOCK_STREAM)
    return list(dict.fromkeys(str(info[4][0]) for info in infos))


class UrlValidator:
    """Classifies scan targets as allowed or forbidden.

    Args:
        allow_localhost: Permit localhost aliases and loopback addresses.
        allow_private_networks: Permit RFC 1918, 169.254/16 and fc00::/7.
        allowlist: Host patterns that are the only permitted targets.
        denylist: Host patterns that are never permitted.
        dns_timeout: Seconds to wait for name resolution.
        resolver: Async callable mapping a hostname to addresses.
    """

    def __init__(
        self,
        *,
        allow_localhost: bool = False,
        allow_private_networks: bool = False,
        allowlist: Iterable[str] = (),
        denylist: Iterable[str] = (),
        dns_timeout: float = 5.0,
        resolver: Resolver | None = None,
    ) -> None:
        self.allow_localhost = allow_localhost
        self.allow_private_networks = allow_private_networks
        self.allowlist = tuple(p.strip().lower() for p in allowlist if p.strip())
        self.denylist = tuple(p.strip().lower() for p in denylist if p.strip())
        self.dns_timeout = dns_timeout
        self._resolver: Resolver = resolver or resolve_host

    @classmethod
    def from_settings(
        cls,
        policy: UrlPolicySettings,
        resolver: Resolver | None = None,
    ) -> UrlValidator:
        """Build a validator from the ``scan.url`` settings section."""
        return cls(
            allow_localhost=policy.allow_localhost,
            allow_private_networks=policy.allow_private_networks,
            allowlist=policy.allowlist,
            denylist=policy.denylist,
            dns_timeout=policy.dns_timeout,
            resolver=resolver,
        )

    async def validate(self, url: str | None) -> str:
        """Validate a scan target.

        Args:
            url: The target URL as supplied by the caller.

        Returns:
            The normalized URL, which is what should be sent to ZAP.

        Raises:
            InvalidUrlError: If the URL is empty, malformed, or not http(s).
            ForbiddenTargetError: If the target is not allowed.
            UnresolvableHostError: If the host cannot be resolved in time.
        """
        parsed = self._parse(url)
        host = self._hostname(parsed)

        if self.allowlist:
            if any(matches_pattern(host, p) for p in self.allowlist):
                logger.debug("Target matched allow-list", host=host)
                return str(parsed)
            msg = f"Host '{host}' is not in the allowed targets list"
            raise ForbiddenTargetError(msg)

        localhost = is_localhost_alias(host)
        if localhost and not self.allow_localhost:
            msg = f"Scanning localhost is not allowed: {host}"
            raise ForbiddenTargetError(msg)

        if not (localhost and self.allow_localhost) and any(
            matches_pattern(host, p) for p in self.denylist
        ):
            msg = f"Host '{host}' is in the blocked targets list"
            raise ForbiddenTargetError(msg)

        for address in await self._resolve(host):
            self._check_address(host, address)

        return str(parsed)

    def _parse(self, url: str | None) -> AnyUrl:
        if url is None or not url.strip():
            msg = "URL must not be empty"
            raise InvalidUrlError(msg)

        try:
            parsed = _url_adapter.validate_python(url.strip())
        except ValidationError as e:
            msg = f"Malformed URL: {url}"
            raise InvalidUrlError(msg) from e

        if parsed.scheme not in ALLOWED_SCHEMES:
            msg = f"Only http and https URLs can be scanned, got '{parsed.scheme}'"
            raise InvalidUrlError(msg)
        return parsed

    @staticmethod
    def _hostname(parsed: AnyUrl) -> str:
        host = (parsed.host or "").strip("[]").rstrip(".").lower()
        if not host:
            msg = f"URL has no host: {parsed}"
            raise InvalidUrlError(msg)
        return host

    async def _resolve(self, host: str) -> list[str]:
        try:
            return [str(ipaddress.ip_address(host))]
        except ValueError:
            pass

        try:
            addresses = await asyncio.wait_for(
                self._resolver(host), timeout=self.dns_timeout
            )
        except TimeoutError as e:
            msg = f"Timed out resolving host '{host}' after {self.dns_timeout}s"
            raise UnresolvableHostError(msg) from e
        except (OSError, UnicodeError) as e:
            msg = f"Unable to resolve host '{host}'"
            raise UnresolvableHostError(msg) from e

        if not addresses:
            msg = f"Unable to resolve host '{host}'"
            raise UnresolvableHostError(msg)
        return addresses

    def _check_address(self, host: str, address: str) -> None:
        try:
            ip = ipaddress.ip_address(address.split("%", 1)[0])
        except ValueError as e:
            msg = f"Host '{host}' resolved to an invalid address"
            raise UnresolvableHostError(msg) from e

        if isinstance(ip, ipaddress.IPv6Address) and ip.ipv4_mapped is not None:
            ip = ip.ipv4_mapped

        if ip.is_unspecified:
            msg = f"Host '{host}' resolves to an unspecified address"
            raise ForbiddenTargetError(msg)

        if ip.is_loopback:
            if not self.allow_localhost:
                msg = f"Host '{host}' resolves to a loopback address"
                raise ForbiddenTargetError(msg)
            return

        if ip.is_link_local:
            msg = f"Host '{host}' resolves to a link-local address"
            raise ForbiddenTargetError(msg)

        if not self.allow_private_networks and any(
            ip in network for network in PRIVATE_NETWORKS
        ):
            msg = f"Host '{host}' resolves to a private network address"
            raise ForbiddenTargetError(msg)
