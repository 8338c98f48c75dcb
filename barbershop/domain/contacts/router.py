"""Contact router - FastAPI endpoints for the contact form"""

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from ...database import get_db
from .schemas import ContactCreate, ContactResponse, ContactStats, ContactUpdate
from .service import ContactService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/contacts", tags=["Contacts"])


def get_contact_service(db: Session = Depends(get_db)) -> ContactService:
    """Dependency injection for ContactService"""
    return ContactService(db)


@router.get("", response_model=list[ContactResponse])
async def get_contacts(service: ContactService = Depends(get_contact_service)):
    """All contact messages, newest first"""
    return service.get_contacts()


@router.get("/stats/overview", response_model=ContactStats)
async def get_contact_stats(service: ContactService = Depends(get_contact_service)):
    return service.get_stats()


@router.get("/{contact_id}", response_model=ContactResponse)
async def get_contact(contact_id: int, service: ContactService = Depends(get_contact_service)):
    return service.get_contact(contact_id)


@router.post("", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def create_contact(
    data: ContactCreate,
    service: ContactService = Depends(get_contact_service),
):
    """Public contact-form submission"""
    return service.create_contact(data)


@router.put("/{contact_id}", response_model=ContactResponse)
async def update_contact(
    contact_id: int,
    data: ContactUpdate,
    service: ContactService = Depends(get_contact_service),
):
    return service.update_contact(contact_id, data)


@router.delete("/{contact_id}")
async def delete_contact(contact_id: int, service: ContactService = Depends(get_contact_service)):
    return service.delete_contact(contact_id)
