import logging
from typing import Dict, Optional, Set

from contacts_sync.app.adapters import avatar_url
from contacts_sync.app.errors import ContactNotFound
from contacts_sync.app.schemas import Contact, ContactId, OperationResult
from contacts_sync.app.store import ContactStore
from contacts_sync.app.validators import FORM_FIELDS, validate_form

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("full_name", "email")


def empty_values() -> Dict[str, str]:
    return {name: "" for name in FORM_FIELDS}


class ContactFormSession:
    """
    State behind the create/edit contact form.

    Errors are never stored: they are recomputed from the current values and
    the store's contacts each time they are read. `touched` only decides which
    of them the form shows.
    """

    def __init__(self, store: ContactStore, contact_id: Optional[ContactId] = None):
        self.store = store
        self.contact_id = contact_id
        self.values: Dict[str, str] = empty_values()
        self.touched: Set[str] = set()

        if contact_id is not None:
            contact = store.get(contact_id)
            if contact is None:
                raise ContactNotFound(contact_id)
            self.contact_id = contact.id
            self.values.update(contact.model_dump(include=set(FORM_FIELDS)))

    @property
    def is_editing(self) -> bool:
        return self.contact_id is not None

    @property
    def errors(self) -> Dict[str, str]:
        return validate_form(self.values, self.store.contacts, excluded_id=self.contact_id)

    @property
    def visible_errors(self) -> Dict[str, str]:
        return {k: v for k, v in self.errors.items() if k in self.touched}

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def field_state(self, name: str) -> Optional[str]:
        """Return "invalid", "valid" or None for untouched and empty optional fields."""
        if name not in self.touched:
            return None
        if name in self.errors:
            return "invalid"
        if name in REQUIRED_FIELDS or self.values.get(name):
            return "valid"
        return None

    def change(self, name: str, value: Optional[str]) -> None:
        if name not in self.values:
            raise KeyError(name)
        self.values[name] = value or ""
        self.touched.add(name)

    def reset(self) -> None:
        self.values = empty_values()
        self.touched = set()

    def to_contact(self) -> Contact:
        data = dict(self.values)
        data["avatar"] = data["avatar"] or avatar_url(data["full_name"])
        return Contact(id=self.contact_id, **data)

    async def submit(self) -> OperationResult:
        self.touched.update(FORM_FIELDS)
        errors = self.errors
        if errors:
            logger.debug(f"Form blocked, invalid fields: {sorted(errors)}")
            return OperationResult.invalid(errors)

        contact = self.to_contact()
        if self.is_editing:
            result = await self.store.update(contact)
        else:
            result = await self.store.add(contact)

        if result.ok and not self.is_editing:
            self.reset()
        return result
