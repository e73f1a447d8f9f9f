"""V1 API router -- aggregates all v1 endpoint routers under /api/v1."""

from __future__ import annotations

from fastapi import APIRouter

from src.app.api.v1 import admin, auth, deals, firms, interest, invitations, syndicate

router = APIRouter(prefix="/api/v1")

router.include_router(auth.router)
router.include_router(firms.router)
router.include_router(deals.router)
router.include_router(syndicate.router)
router.include_router(invitations.router)
router.include_router(admin.router)
router.include_router(interest.router)
