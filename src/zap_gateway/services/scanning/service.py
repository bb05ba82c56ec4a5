"""Scan orchestration.

Validates targets against the URL safety policy and only then hands them
to the scanning engine. A rejected URL never reaches the engine.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from zap_gateway.observability.logging import get_logger
from zap_gateway.services.scanning.exceptions import ScanLimitExceededError
from zap_gateway.services.scanning.models import ScanJob, ScanKind, ScanOptions


if TYPE_CHECKING:
    from collections.abc import Mapping

    from zap_gateway.core.config.settings import ScanLimitSettings
    from zap_gateway.services.scanning.protocol import ScanEngine
    from zap_gateway.services.scanning.url_validation import UrlValidator


logger = get_logger(__name__)


class ScanService:
    """Starts, inspects, and stops scans on behalf of authenticated clients.

    Example:
        ```python
        service = ScanService(engine=zap_client, validator=UrlValidator())
        job = await service.start(ScanKind.SPIDER, "https://example.com")
        progress = await service.progress(job.kind, job.scan_id)
        ```
    """

    def __init__(
        self,
        engine: ScanEngine,
        validator: UrlValidator,
        max_concurrent: Mapping[ScanKind, int] | None = None,
    ) -> None:
        self.engine = engine
        self.validator = validator
        self.max_concurrent = dict(max_concurrent or {})

    @classmethod
    def from_settings(
        cls,
        engine: ScanEngine,
        validator: UrlValidator,
        limits: ScanLimitSettings,
    ) -> ScanService:
        """Build a service capped by the configured concurrency limits."""
        return cls(
            engine,
            validator,
            max_concurrent={
                ScanKind.SPIDER: limits.max_concurrent_spider_scans,
                ScanKind.ACTIVE: limits.max_concurrent_active_scans,
            },
        )

    async def start(
        self,
        kind: ScanKind,
        target_url: str,
        options: ScanOptions | None = None,
        *,
        client_id: str | None = None,
    ) -> ScanJob:
        """Validate ``target_url`` and start a scan of ``kind`` against it.

        Raises:
            UrlPolicyError: If the target fails validation.
            ScanLimitExceededError: If too many scans of ``kind`` are running.
            ZapError: If the engine cannot start the scan.
        """
        url = await self.validator.validate(target_url)
        options = options or ScanOptions()

        await self._check_capacity(kind)

        scan_id = await self.engine.start_operation(kind, url, options)
        logger.info(
            "Scan started",
            kind=kind.value,
            scan_id=scan_id,
            target_url=url,
            client_id=client_id,
        )
        return ScanJob(scan_id=scan_id, kind=kind, target_url=url)

    async def _check_capacity(self, kind: ScanKind) -> None:
        limit = self.max_concurrent.get(kind)
        # A limit of zero or less disables the check
        if limit is None or limit <= 0:
            return

        running = await self.engine.count_running(kind)
        if running >= limit:
            logger.warning(
                "Scan limit reached",
                kind=kind.value,
                running=running,
                limit=limit,
            )
            raise ScanLimitExceededError(kind.value, limit)

    async def progress(self, kind: ScanKind, scan_id: str) -> int:
        """Return completion of a scan as a percentage."""
        return await self.engine.get_progress(kind, scan_id)

    async def stop(self, kind: ScanKind, scan_id: str) -> None:
        """Stop one scan."""
        await self.engine.stop(kind, scan_id)
        logger.info("Scan stopped", kind=kind.value, scan_id=scan_id)

    async def stop_all(self, kind: ScanKind = ScanKind.ACTIVE) -> None:
        """Stop every running scan of ``kind``."""
        await self.engine.stop_all(kind)
        logger.info("All scans stopped", kind=kind.value)
