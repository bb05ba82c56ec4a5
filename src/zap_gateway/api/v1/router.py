"""API v1 router aggregating all endpoint routers.

All routes are mounted under ``api.prefix``, which is empty by default.
"""

from __future__ import annotations

from fastapi import APIRouter

from zap_gateway.api.v1.endpoints import auth, health, scans


router = APIRouter()

router.include_router(health.router)
router.include_router(auth.router)
router.include_router(scans.router)
