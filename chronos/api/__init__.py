"""
API routers for the scheduling service.
"""
from fastapi import APIRouter

from chronos.api import auth, availability, meetings, system

router = APIRouter()
router.include_router(system.router)
router.include_router(auth.router)
router.include_router(meetings.router)
router.include_router(availability.router)

__all__ = ['router']
