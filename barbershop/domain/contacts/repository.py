"""Contact repository - Database operations for contact-form messages"""

from typing import Optional

from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ...models import Contact


class ContactRepository:
    """Repository for contact database operations"""

    @staticmethod
    def get_contacts(db: Session) -> list[Contact]:
        return db.query(Contact).order_by(Contact.created_at.desc(), Contact.id.desc()).all()

    @staticmethod
    def get_contact_by_id(db: Session, contact_id: int) -> Optional[Contact]:
        return db.query(Contact).filter(Contact.id == contact_id).first()

    @staticmethod
    def create_contact(db: Session, **contact_data) -> Contact:
        contact = Contact(**contact_data)
        db.add(contact)
        db.commit()
        db.refresh(contact)
        return contact

    @staticmethod
    def update_contact(db: Session, contact: Contact, **updates) -> Contact:
        """Update a contact with the provided fields; None clears a nullable column"""
        for key, value in updates.items():
            if hasattr(contact, key):
                setattr(contact, key, value)

        db.commit()
        db.refresh(contact)
        return contact

    @staticmethod
    def delete_contact(db: Session, contact: Contact) -> None:
        db.delete(contact)
        db.commit()

    @staticmethod
    def get_stats(db: Session) -> dict:
        """Counts by contact preference, preferred time and newsletter opt-in"""

        def count_where(condition):
            return func.coalesce(func.sum(case((condition, 1), else_=0)), 0)

        row = db.query(
            func.count(Contact.id).label("total"),
            count_where(Contact.newsletter_opt_in.is_(True)).label("newsletter_opt_in"),
            count_where(Contact.contact_preference == "whatsapp").label("prefer_whatsapp"),
            count_where(Contact.contact_preference == "email").label("prefer_email"),
            count_where(Contact.contact_preference == "phone").label("prefer_phone"),
            count_where(Contact.preferred_time == "morning").label("prefer_morning"),
            count_where(Contact.preferred_time == "afternoon").label("prefer_afternoon"),
            count_where(Contact.preferred_time == "evening").label("prefer_evening"),
        ).one()
        return {key: int(value) for key, value in row._mapping.items()}
