from typing import Dict, Optional


class ContactsError(Exception):
    """Base class for every error raised by the contacts core."""


class FormValidationError(ContactsError):
    def __init__(self, field_errors: Dict[str, str]):
        self.field_errors = dict(field_errors)
        super().__init__("; ".join(f"{k}: {v}" for k, v in self.field_errors.items()))


class NetworkError(ContactsError):
    """The request never completed (connection refused, DNS, timeout...)."""


class RemoteRejection(ContactsError):
    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class UserCancelled(ContactsError):
    """The user declined a destructive action. Not a failure."""


class ContactNotFound(ContactsError, LookupError):
    def __init__(self, contact_id):
        self.contact_id = contact_id
        super().__init__(f"Contact {contact_id!r} not found")
