"""Contact service - Business logic for contact-form messages"""

import logging

from sqlalchemy.orm import Session

from ...models import Contact
from ..scheduling.exceptions import BookingError, ErrorKind
from .repository import ContactRepository
from .schemas import ContactCreate, ContactUpdate

logger = logging.getLogger(__name__)


class ContactService:
    """Service layer for contact business logic"""

    def __init__(self, db: Session):
        self.db = db
        self.repo = ContactRepository()

    def get_contacts(self) -> list[Contact]:
        return self.repo.get_contacts(self.db)

    def get_contact(self, contact_id: int) -> Contact:
        contact = self.repo.get_contact_by_id(self.db, contact_id)
        if not contact:
            raise BookingError(ErrorKind.NOT_FOUND, "Contact not found")
        return contact

    def create_contact(self, data: ContactCreate) -> Contact:
        contact = self.repo.create_contact(self.db, **data.model_dump())
        logger.info(f"📨 Contact message {contact.id} received (prefers {contact.contact_preference})")
        return contact

    def update_contact(self, contact_id: int, data: ContactUpdate) -> Contact:
        contact = self.get_contact(contact_id)
        return self.repo.update_contact(self.db, contact, **data.model_dump(exclude_unset=True))

    def delete_contact(self, contact_id: int) -> dict:
        contact = self.get_contact(contact_id)
        self.repo.delete_contact(self.db, contact)
        logger.info(f"🗑️ Contact {contact_id} deleted")
        return {"message": "Contact deleted"}

    def get_stats(self) -> dict:
        return self.repo.get_stats(self.db)
