from typing import Any, Mapping, Optional, Union
from urllib.parse import quote, urlencode

from contacts_sync.app.schemas import Contact, ContactPayload, RemoteRecord

AVATAR_ENDPOINT = "https://ui-avatars.com/api/"
AVATAR_PARAMS = {"background": "6c757d", "color": "fff", "size": "150"}

# characters encodeURIComponent leaves alone besides the RFC 3986 unreserved set
_URI_COMPONENT_SAFE = "!~*'()"


def avatar_url(name: Optional[str]) -> str:
    encoded = quote(name or "", safe=_URI_COMPONENT_SAFE)
    return f"{AVATAR_ENDPOINT}?name={encoded}&{urlencode(AVATAR_PARAMS)}"


def _text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


def _identifier(value: Any):
    if value is None or isinstance(value, (int, str)):
        return value
    return str(value)


def to_remote(contact: Contact) -> ContactPayload:
    return ContactPayload(
        name=contact.full_name,
        email=contact.email,
        phone=contact.phone or "",
        address=contact.address or "",
    )


def from_remote(
    record: Union[RemoteRecord, Mapping[str, Any]],
    avatar: Optional[str] = None,
) -> Contact:
    """
    Build a display Contact out of a remote record.

    Missing optional fields become empty strings. A truthy `avatar` (for
    example a URL typed into the form) wins over the synthesized one.
    """
    if isinstance(record, RemoteRecord):
        record = record.model_dump()
    elif not isinstance(record, Mapping):
        record = {}

    name = _text(record.get("name"))
    return Contact(
        id=_identifier(record.get("id")),
        full_name=name,
        email=_text(record.get("email")),
        phone=_text(record.get("phone")),
        address=_text(record.get("address")),
        avatar=avatar or avatar_url(name),
    )
