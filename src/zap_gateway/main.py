"""Application entry point.

Usage:
    # Development with auto-reload
    uvicorn zap_gateway.main:app --reload

    # Production
    uvicorn zap_gateway.main:app --host 0.0.0.0 --port 7456
"""

from zap_gateway.factory import create_app


app = create_app()

if __name__ == "__main__":
    import uvicorn

    from zap_gateway.core.config import get_settings

    settings = get_settings()

    uvicorn.run(
        "zap_gateway.main:app",
        host=settings.server.host,
        port=settings.server.port,
        reload=settings.is_development,
        log_level=settings.logging.level.lower(),
    )
