"""Application factory for creating FastAPI instances.

``create_app`` builds every stateful component once and stores it on
``app.state``; nothing is held in module globals. Misconfiguration raises
``ConfigurationError`` here, so the process refuses to start.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import ORJSONResponse

from zap_gateway.api.v1.router import router as v1_router
from zap_gateway.auth.credentials import CredentialStore
from zap_gateway.auth.exceptions import ConfigurationError
from zap_gateway.auth.gateway import AuthenticationGateway
from zap_gateway.auth.jwt import TokenService
from zap_gateway.auth.providers.factory import create_auth_provider
from zap_gateway.auth.revocation import RevocationStore
from zap_gateway.clients.zap.client import ZapClient
from zap_gateway.core.config import SecurityMode, Settings, get_settings
from zap_gateway.core.events import lifespan
from zap_gateway.core.exceptions import setup_exception_handlers
from zap_gateway.core.middleware import (
    LoggingMiddleware,
    RequestIDMiddleware,
    SecurityHeadersMiddleware,
)
from zap_gateway.services.scanning.service import ScanService
from zap_gateway.services.scanning.url_validation import UrlValidator


if TYPE_CHECKING:
    from zap_gateway.auth.providers.protocol import AuthProvider
    from zap_gateway.services.scanning.protocol import ScanEngine
    from zap_gateway.services.scanning.url_validation import Resolver


DOCS_PATHS = frozenset({"/docs", "/docs/oauth2-redirect", "/redoc", "/openapi.json"})


def create_app(
    settings: Settings | None = None,
    *,
    scan_engine: ScanEngine | None = None,
    resolver: Resolver | None = None,
) -> FastAPI:
    """Create and configure a FastAPI application instance.

    Args:
        settings: Optional settings override. If not provided, uses get_settings().
        scan_engine: Engine to use instead of a ZAP client built from settings.
        resolver: DNS resolver override for the URL validator.

    Returns:
        Configured FastAPI application instance.

    Raises:
        ConfigurationError: If the security configuration is unusable.
    """
    if settings is None:
        settings = get_settings()

    try:
        mode = settings.security_mode
    except ValueError as e:
        raise ConfigurationError(str(e)) from e

    docs_enabled = settings.is_non_production

    app = FastAPI(
        title=settings.app.name,
        version=settings.app.version,
        description="Access-controlled gateway to the OWASP ZAP scanning engine",
        lifespan=lifespan,
        default_response_class=ORJSONResponse,
        docs_url="/docs" if docs_enabled else None,
        redoc_url="/redoc" if docs_enabled else None,
        openapi_url="/openapi.json" if docs_enabled else None,
        debug=settings.app.debug,
    )

    app.state.settings = settings
    provider = _setup_components(app, settings, mode, scan_engine, resolver)

    setup_exception_handlers(app)

    public_paths = set(settings.public_paths)
    if docs_enabled:
        public_paths |= DOCS_PATHS
    _setup_middleware(app, settings, provider, frozenset(public_paths))

    app.include_router(v1_router, prefix=settings.api.prefix.rstrip("/"))

    return app


def _setup_components(
    app: FastAPI,
    settings: Settings,
    mode: SecurityMode,
    scan_engine: ScanEngine | None,
    resolver: Resolver | None,
) -> AuthProvider:
    """Build the stores, services, and auth provider onto ``app.state``."""
    credential_store = CredentialStore.from_settings(settings)
    revocation_store = RevocationStore()

    # Token mode cannot work without a signing key; other modes only need
    # one to serve /auth/token
    token_service: TokenService | None = None
    if settings.JWT_SECRET_KEY or mode is SecurityMode.TOKEN:
        token_service = TokenService.from_settings(settings)

    provider = create_auth_provider(
        mode,
        credential_store=credential_store,
        revocation_store=revocation_store,
        token_service=token_service,
        api_key_header=settings.security.api_key_header,
    )

    zap_client: ZapClient | None = None
    if scan_engine is None:
        zap_client = ZapClient.from_settings(settings)
        scan_engine = zap_client

    validator = UrlValidator.from_settings(settings.scan.url, resolver=resolver)

    app.state.credential_store = credential_store
    app.state.revocation_store = revocation_store
    app.state.token_service = token_service
    app.state.auth_provider = provider
    app.state.zap_client = zap_client
    app.state.scan_service = ScanService.from_settings(
        scan_engine, validator, settings.scan.limits
    )
    return provider


def _setup_middleware(
    app: FastAPI,
    settings: Settings,
    provider: AuthProvider,
    public_paths: frozenset[str],
) -> None:
    """Configure middleware stack.

    Middleware is executed in reverse order of addition.

    Order from request perspective:
    1. SecurityHeadersMiddleware (adds security headers)
    2. RequestIDMiddleware (adds request ID for tracing)
    3. LoggingMiddleware (logs requests/responses)
    4. CORSMiddleware (answers preflight before authentication)
    5. AuthenticationGateway (authenticates non-public paths)
    """
    app.add_middleware(
        AuthenticationGateway,
        provider=provider,
        public_paths=public_paths,
    )

    if settings.api.cors_origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=settings.api.cors_origins,
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=["X-Request-ID"],
        )

    app.add_middleware(
        LoggingMiddleware,
        exclude_paths={"/health", "/ready", "/favicon.ico"},
    )

    app.add_middleware(RequestIDMiddleware)

    app.add_middleware(
        SecurityHeadersMiddleware,
        docs_paths=DOCS_PATHS,
        hsts=settings.is_production,
    )
