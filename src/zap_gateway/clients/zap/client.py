"""ZAP JSON API client.

Talks to a running ZAP daemon over its JSON API and implements the
``ScanEngine`` protocol used by the scan service. Every call is a GET to
``/JSON/{component}/{view|action}/{name}/`` authenticated with the
``X-ZAP-API-Key`` header.
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any, Final

import httpx
import orjson

from zap_gateway.clients.zap.exceptions import (
    TargetUnreachableError,
    ZapApiError,
    ZapUnavailableError,
)
from zap_gateway.observability.logging import get_logger
from zap_gateway.services.scanning.models import ScanKind, ScanOptions


if TYPE_CHECKING:
    from zap_gateway.core.config.settings import (
        ScanLimitSettings,
        Settings,
        ZapInitializationSettings,
    )


logger = get_logger(__name__)

API_KEY_HEADER: Final[str] = "X-ZAP-API-Key"

# ZAP component name for each scan kind
COMPONENTS: Final[dict[ScanKind, str]] = {
    ScanKind.SPIDER: "spider",
    ScanKind.ACTIVE: "ascan",
}

RUNNING_STATES: Final[frozenset[str]] = frozenset({"RUNNING", "PAUSED"})


def _flag(value: bool) -> str:  # noqa: FBT001
    return "true" if value else "false"


class ZapClient:
    """Async client for the ZAP JSON API.

    Scan limits from configuration are pushed to ZAP before every scan
    start, so a caller can never raise thread counts or durations.

    Example:
        ```python
        client = ZapClient.from_settings(get_settings())
        await client.initialize()
        scan_id = await client.start_operation(
            ScanKind.SPIDER, "https://example.com", ScanOptions()
        )
        ```
    """

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        *,
        timeout: float = 30.0,
        limits: ScanLimitSettings,
        initialization: ZapInitializationSettings | None = None,
        access_url_retries: int = 3,
        access_url_retry_delay: float = 2.0,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            base_url: ZAP API root, including the port.
            api_key: ZAP API key. Sent only when non-empty.
            timeout: Per-request timeout in seconds.
            limits: Scan limits applied before each scan start.
            initialization: Options pushed to ZAP by ``apply_initialization``.
            access_url_retries: Attempts to fetch a target before spidering.
            access_url_retry_delay: Pause between those attempts in seconds.
            http_client: HTTP client for API requests.
        """
        self.base_url = base_url.rstrip("/")
        self._api_key = api_key
        self.timeout = timeout
        self.limits = limits
        self.initialization = initialization
        self.access_url_retries = max(1, access_url_retries)
        self.access_url_retry_delay = access_url_retry_delay
        self._http = http_client
        self._owns_http_client = http_client is None

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        http_client: httpx.AsyncClient | None = None,
    ) -> ZapClient:
        """Build a client from application settings."""
        return cls(
            settings.zap_base_url,
            settings.ZAP_API_KEY,
            timeout=settings.zap.timeout,
            limits=settings.scan.limits,
            initialization=settings.zap.initialization,
            access_url_retries=settings.zap.access_url_retries,
            access_url_retry_delay=settings.zap.access_url_retry_delay,
            http_client=http_client,
        )

    async def initialize(self) -> None:
        """Initialize the HTTP client if not provided."""
        if self._http is None:
            self._http = httpx.AsyncClient(timeout=self.timeout)
        logger.info("ZapClient initialized", base_url=self.base_url)

    async def shutdown(self) -> None:
        """Close the HTTP client if we own it."""
        if self._owns_http_client and self._http is not None:
            await self._http.aclose()
            self._http = None
        logger.info("ZapClient shutdown")

    # =========================================================================
    # Transport
    # =========================================================================

    async def _call(
        self,
        component: str,
        call_type: str,
        name: str,
        params: dict[str, str] | None = None,
    ) -> dict[str, Any]:
        """Perform one JSON API call and return the decoded payload.

        Raises:
            ZapUnavailableError: ZAP could not be reached or timed out.
            ZapApiError: ZAP answered with an error or a malformed body.
        """
        if self._http is None:
            await self.initialize()
        assert self._http is not None  # noqa: S101

        headers = {API_KEY_HEADER: self._api_key} if self._api_key else {}
        path = f"/JSON/{component}/{call_type}/{name}/"

        try:
            response = await self._http.get(
                f"{self.base_url}{path}",
                params=params or {},
                headers=headers,
                timeout=self.timeout,
            )
        except httpx.TimeoutException as e:
            msg = f"ZAP request timed out: {path}"
            raise ZapUnavailableError(msg) from e
        except httpx.RequestError as e:
            msg = f"ZAP request failed: {path}: {e}"
            raise ZapUnavailableError(msg) from e

        try:
            payload = orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            msg = f"ZAP returned invalid JSON for {path}"
            raise ZapApiError(msg, status_code=response.status_code) from e

        if response.status_code != httpx.codes.OK:
            detail = payload.get("message") if isinstance(payload, dict) else None
            msg = f"ZAP call {path} failed: {detail or response.reason_phrase}"
            raise ZapApiError(msg, status_code=response.status_code)

        if not isinstance(payload, dict):
            msg = f"Unexpected ZAP payload for {path}"
            raise ZapApiError(msg, status_code=response.status_code)

        return payload

    async def _action(self, component: str, name: str, **params: str) -> dict[str, Any]:
        return await self._call(component, "action", name, params)

    async def _view(self, component: str, name: str, **params: str) -> dict[str, Any]:
        return await self._call(component, "view", name, params)

    @staticmethod
    def _field(payload: dict[str, Any], key: str) -> str:
        value = payload.get(key)
        if value is None:
            msg = f"ZAP response is missing '{key}'"
            raise ZapApiError(msg)
        return str(value)

    # =========================================================================
    # Core
    # =========================================================================

    async def version(self) -> str:
        """Return the ZAP version string."""
        payload = await self._view("core", "version")
        return self._field(payload, "version")

    async def is_available(self) -> bool:
        """Check whether ZAP answers API calls."""
        try:
            await self.version()
        except (ZapUnavailableError, ZapApiError) as e:
            logger.warning("ZAP availability check failed", error=str(e))
            return False
        return True

    async def access_url(self, url: str) -> None:
        """Fetch ``url`` through ZAP so the site tree has a root node.

        Raises:
            TargetUnreachableError: ZAP could not fetch the target after
                every retry.
        """
        for attempt in range(1, self.access_url_retries + 1):
            try:
                await self._action("core", "accessUrl", url=url, followRedirects="true")
            except ZapApiError as e:
                if attempt == self.access_url_retries:
                    logger.error(
                        "Target unreachable through ZAP",
                        target_url=url,
                        attempts=attempt,
                        error=str(e),
                    )
                    msg = (
                        "Target is blocking ZAP requests or is unreachable "
                        f"after {attempt} attempts: {e}"
                    )
                    raise TargetUnreachableError(msg, status_code=e.status_code) from e
                logger.warning(
                    "Retrying target access",
                    target_url=url,
                    attempt=attempt,
                    max_attempts=self.access_url_retries,
                    error=str(e),
                )
                await asyncio.sleep(self.access_url_retry_delay)
            else:
                return

    async def apply_initialization(self) -> None:
        """Push browser-like network options to ZAP.

        Each option is applied independently. Failures are logged and
        never raised so the gateway can start against a partly
        configured daemon.
        """
        init = self.initialization
        if init is None or not init.enabled:
            logger.debug("ZAP initialization disabled")
            return

        options = (
            ("setDefaultUserAgent", {"userAgent": init.user_agent}),
            ("setConnectionTimeout", {"timeout": str(init.connection_timeout)}),
            ("setDnsTtlSuccessfulQueries", {"ttl": str(init.dns_ttl)}),
        )
        for name, params in options:
            try:
                await self._call("network", "action", name, params)
            except (ZapUnavailableError, ZapApiError) as e:
                logger.warning("Could not apply ZAP option", option=name, error=str(e))
            else:
                logger.info("Applied ZAP option", option=name, **params)

        logger.info("ZAP initialization completed")

    # =========================================================================
    # ScanEngine
    # =========================================================================

    async def start_operation(
        self,
        kind: ScanKind,
        url: str,
        options: ScanOptions,
    ) -> str:
        """Start a scan and return ZAP's scan id."""
        if kind is ScanKind.SPIDER:
            return await self._start_spider(url, options)
        return await self._start_active(url, options)

    async def _start_spider(self, url: str, options: ScanOptions) -> str:
        await self.access_url(url)

        max_depth = (
            options.max_depth
            if options.max_depth is not None
            else self.limits.spider_max_depth
        )
        await self._action(
            "spider",
            "setOptionThreadCount",
            Integer=str(self.limits.spider_thread_count),
        )
        await self._action(
            "spider",
            "setOptionMaxDuration",
            Integer=str(self.limits.max_spider_scan_duration_mins),
        )
        await self._action("spider", "setOptionMaxDepth", Integer=str(max_depth))

        payload = await self._action(
            "spider",
            "scan",
            url=url,
            maxChildren="",
            recurse=_flag(options.recurse),
            contextName="",
            subtreeOnly="false",
        )
        return self._field(payload, "scan")

    async def _start_active(self, url: str, options: ScanOptions) -> str:
        await self._action("ascan", "enableAllScanners")
        await self._action(
            "ascan",
            "setOptionMaxScanDurationInMins",
            Integer=str(self.limits.max_active_scan_duration_mins),
        )
        await self._action(
            "ascan",
            "setOptionHostPerScan",
            Integer=str(self.limits.host_per_scan),
        )
        await self._action(
            "ascan",
            "setOptionThreadPerHost",
            Integer=str(self.limits.thread_per_host),
        )

        payload = await self._action(
            "ascan",
            "scan",
            url=url,
            recurse=_flag(options.recurse),
            inScopeOnly="false",
            scanPolicyName=options.policy or "",
            method="",
            postData="",
        )
        return self._field(payload, "scan")

    async def get_progress(self, kind: ScanKind, scan_id: str) -> int:
        """Return completion of a scan as a percentage."""
        payload = await self._view(COMPONENTS[kind], "status", scanId=scan_id)
        status = self._field(payload, "status")
        try:
            return int(status)
        except ValueError as e:
            msg = f"Non-numeric scan status from ZAP: {status!r}"
            raise ZapApiError(msg) from e

    async def stop(self, kind: ScanKind, scan_id: str) -> None:
        """Stop a running scan."""
        await self._action(COMPONENTS[kind], "stop", scanId=scan_id)

    async def stop_all(self, kind: ScanKind) -> None:
        """Stop every running scan of ``kind``."""
        await self._action(COMPONENTS[kind], "stopAllScans")

    async def count_running(self, kind: ScanKind) -> int:
        """Count scans of ``kind`` that have not finished."""
        payload = await self._view(COMPONENTS[kind], "scans")
        scans = payload.get("scans", [])
        if not isinstance(scans, list):
            msg = "Unexpected scans list from ZAP"
            raise ZapApiError(msg)
        return sum(
            1
            for scan in scans
            if isinstance(scan, dict) and str(scan.get("state", "")).upper() in RUNNING_STATES
        )
