"""
Shared dependencies for API endpoints.

Includes:
- Client network address resolution
- Service construction over the request's database session
"""

from typing import Annotated, Optional

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from core.security import get_client_address
from db.session import get_db
from services.admin_service import AdminService
from services.admission_service import AdmissionController
from services.lock_service import KeyedLockService, get_lock_service
from services.stats_service import StatsCache, StatsService, get_stats_cache


def client_address(request: Request) -> str:
    """Source address of the request (proxy headers first)."""
    return get_client_address(request)


def get_admission_controller(
    db: AsyncSession = Depends(get_db),
    lock_service: KeyedLockService = Depends(get_lock_service),
    stats_cache: Optional[StatsCache] = Depends(get_stats_cache),
) -> AdmissionController:
    return AdmissionController(db, lock_service=lock_service, stats_cache=stats_cache)


def get_stats_service(
    db: AsyncSession = Depends(get_db),
    stats_cache: Optional[StatsCache] = Depends(get_stats_cache),
) -> StatsService:
    return StatsService(db, cache=stats_cache)


def get_admin_service(
    db: AsyncSession = Depends(get_db),
    stats_cache: Optional[StatsCache] = Depends(get_stats_cache),
) -> AdminService:
    return AdminService(db, stats_cache=stats_cache)


AdminSecret = Annotated[Optional[str], Header(alias="X-Admin-Secret")]
