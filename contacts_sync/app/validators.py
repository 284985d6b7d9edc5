import re
from typing import Dict, Iterable, Mapping, Optional

from pydantic import BaseModel

from contacts_sync.app.schemas import Contact, ContactId

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PHONE_LENGTH = 10

FULL_NAME_REQUIRED = "Please enter a full name."
EMAIL_REQUIRED = "Please enter an email address."
EMAIL_INVALID = "Please enter a valid email address."
EMAIL_DUPLICATE = "A contact with this email already exists."
PHONE_INVALID = "Please enter a valid phone number."

FORM_FIELDS = ("full_name", "email", "phone", "address", "avatar")


class ValidationResult(BaseModel):
    valid: bool = True
    message: Optional[str] = None

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls()

    @classmethod
    def fail(cls, message: str) -> "ValidationResult":
        return cls(valid=False, message=message)


def same_id(a: Optional[ContactId], b: Optional[ContactId]) -> bool:
    """Ids are opaque: "5" from a path parameter matches the remote 5."""
    if a is None or b is None:
        return False
    return str(a) == str(b)


def is_valid_email(value: str) -> bool:
    return EMAIL_RE.fullmatch(value or "") is not None


def find_duplicate_email(
    email: str,
    existing_contacts: Iterable[Contact],
    excluded_id: Optional[ContactId] = None,
) -> Optional[Contact]:
    wanted = email.lower()
    for contact in existing_contacts:
        if contact.email.lower() == wanted and not same_id(contact.id, excluded_id):
            return contact
    return None


def validate_field(
    name: str,
    value: Optional[str],
    existing_contacts: Iterable[Contact] = (),
    excluded_id: Optional[ContactId] = None,
) -> ValidationResult:
    value = value or ""

    if name == "full_name":
        if not value.strip():
            return ValidationResult.fail(FULL_NAME_REQUIRED)
        return ValidationResult.ok()

    if name == "email":
        if not value.strip():
            return ValidationResult.fail(EMAIL_REQUIRED)
        if not is_valid_email(value):
            return ValidationResult.fail(EMAIL_INVALID)
        if find_duplicate_email(value, existing_contacts, excluded_id) is not None:
            return ValidationResult.fail(EMAIL_DUPLICATE)
        return ValidationResult.ok()

    if name == "phone":
        if value and len(value) < MIN_PHONE_LENGTH:
            return ValidationResult.fail(PHONE_INVALID)
        return ValidationResult.ok()

    # address, avatar and anything else are unconstrained
    return ValidationResult.ok()


def validate_form(
    values: Mapping[str, Optional[str]],
    existing_contacts: Iterable[Contact] = (),
    excluded_id: Optional[ContactId] = None,
) -> Dict[str, str]:
    """
    Validate every form field and return {field: message} for the invalid ones.

    An empty dict means the form may be submitted.
    """
    existing = list(existing_contacts)
    errors: Dict[str, str] = {}
    for name in FORM_FIELDS:
        result = validate_field(name, values.get(name), existing, excluded_id)
        if not result.valid:
            errors[name] = result.message
    return errors


def validate_contact(
    contact: Contact,
    existing_contacts: Iterable[Contact] = (),
) -> Dict[str, str]:
    return validate_form(contact.model_dump(), existing_contacts, excluded_id=contact.id)
