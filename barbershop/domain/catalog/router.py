"""Catalog routers - FastAPI endpoints for services and business hours"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import (
    BusinessHoursCreate,
    BusinessHoursResponse,
    BusinessHoursUpdate,
    OpenCheckResponse,
    ServiceCreate,
    ServiceResponse,
    ServiceUpdate,
)
from .service import CatalogService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/services", tags=["Services"])
hours_router = APIRouter(prefix="/business-hours", tags=["Business Hours"])


def get_catalog_service(db: Session = Depends(get_db)) -> CatalogService:
    """Dependency injection for CatalogService"""
    return CatalogService(db)


# ============================================================================
# SERVICES
# ============================================================================


@router.get("", response_model=list[ServiceResponse])
async def get_services(service: CatalogService = Depends(get_catalog_service)):
    """All services, active and inactive"""
    return service.get_services()


@router.get("/active", response_model=list[ServiceResponse])
async def get_active_services(service: CatalogService = Depends(get_catalog_service)):
    return service.get_services(active_only=True)


@router.get("/{service_id}", response_model=ServiceResponse)
async def get_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.get_service(service_id)


@router.post("", response_model=ServiceResponse, status_code=status.HTTP_201_CREATED)
async def create_service(data: ServiceCreate, service: CatalogService = Depends(get_catalog_service)):
    return service.create_service(data)


@router.put("/{service_id}", response_model=ServiceResponse)
async def update_service(
    service_id: int,
    data: ServiceUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    """Edit a service; bookings already made keep their original duration"""
    return service.update_service(service_id, data)


@router.delete("/{service_id}", response_model=ServiceResponse)
async def delete_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    """Soft delete - the service is deactivated, never removed"""
    return service.deactivate_service(service_id)


@router.patch("/{service_id}/toggle", response_model=ServiceResponse)
async def toggle_service(service_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.toggle_service(service_id)


# ============================================================================
# BUSINESS HOURS
# ============================================================================


@hours_router.get("", response_model=list[BusinessHoursResponse])
async def get_business_hours(service: CatalogService = Depends(get_catalog_service)):
    """Weekly rules, Monday first"""
    return service.get_business_hours()


@hours_router.get("/day/{day}", response_model=BusinessHoursResponse)
async def get_business_hours_for_day(day: str, service: CatalogService = Depends(get_catalog_service)):
    return service.get_rule_for_day(day)


@hours_router.get("/check/{date}/{time}", response_model=OpenCheckResponse)
async def check_open(date: str, time: str, service: CatalogService = Depends(get_catalog_service)):
    """Whether the shop is open at a given instant (ignores bookings)"""
    return service.check_open(date, time)


@hours_router.post("", response_model=BusinessHoursResponse, status_code=status.HTTP_201_CREATED)
async def create_business_hours(
    data: BusinessHoursCreate,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.create_rule(data)


@hours_router.put("/{rule_id}", response_model=BusinessHoursResponse)
async def update_business_hours(
    rule_id: int,
    data: BusinessHoursUpdate,
    service: CatalogService = Depends(get_catalog_service),
):
    return service.update_rule(rule_id, data)


@hours_router.patch("/{rule_id}/toggle", response_model=BusinessHoursResponse)
async def toggle_business_hours(rule_id: int, service: CatalogService = Depends(get_catalog_service)):
    return service.toggle_rule(rule_id)
