"""
Contact store.

Owns the authoritative in-memory contact list and sequences RemoteClient
calls. The loading flag and last error come from the client; the store only
adds the list, the subscriber fan-out and the one-operation-at-a-time guard.
"""

import inspect
import logging
from typing import Awaitable, Callable, List, Optional, Union

from contacts_sync.app.client import Confirm, RemoteClient
from contacts_sync.app.errors import FormValidationError
from contacts_sync.app.schemas import Contact, ContactId, OperationResult, StoreSnapshot
from contacts_sync.app.validators import same_id, validate_contact

logger = logging.getLogger(__name__)

Subscriber = Callable[[StoreSnapshot], Union[None, Awaitable[None]]]


def decline(message: str) -> bool:
    return False


class ContactStore:
    def __init__(self, client: RemoteClient, confirm: Optional[Confirm] = None):
        self.client = client
        self.confirm = confirm or decline
        self._contacts: List[Contact] = []
        self._subscribers: List[Subscriber] = []
        client.on_start = self._publish

    @property
    def contacts(self) -> List[Contact]:
        return list(self._contacts)

    @property
    def loading(self) -> bool:
        return self.client.in_flight

    @property
    def error(self) -> Optional[str]:
        return self.client.last_error

    @property
    def snapshot(self) -> StoreSnapshot:
        return StoreSnapshot(contacts=self.contacts, loading=self.loading, error=self.error)

    def get(self, contact_id: ContactId) -> Optional[Contact]:
        for contact in self._contacts:
            if same_id(contact.id, contact_id):
                return contact
        return None

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def _publish(self) -> None:
        snapshot = self.snapshot
        for callback in list(self._subscribers):
            try:
                result = callback(snapshot)
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed")

    def _busy(self, action: str) -> Optional[OperationResult]:
        # in_flight is set before the client's first await, so this check cannot interleave
        if self.client.in_flight:
            logger.warning(f"Rejected {action}: another operation is in progress")
            return OperationResult.busy()
        return None

    def _ensure_valid(self, contact: Contact) -> None:
        field_errors = validate_contact(contact, self._contacts)
        if field_errors:
            raise FormValidationError(field_errors)

    async def start(self) -> OperationResult:
        """Initial load, run once when the application starts."""
        return await self.fetch_all()

    async def fetch_all(self) -> OperationResult:
        busy = self._busy("fetch")
        if busy:
            return busy

        result = await self.client.list_contacts()
        if result.ok:
            self._contacts = list(result.payload)
        await self._publish()
        return result

    async def retry(self) -> OperationResult:
        return await self.fetch_all()

    async def add(self, contact: Contact) -> OperationResult:
        busy = self._busy("add")
        if busy:
            return busy

        try:
            self._ensure_valid(contact)
        except FormValidationError as e:
            logger.info(f"Contact not created: {e}")
            return OperationResult.invalid(e.field_errors)

        result = await self.client.create_contact(contact)
        if result.ok:
            self._contacts = self._contacts + [result.payload]
        await self._publish()
        return result

    async def update(self, contact: Contact) -> OperationResult:
        if contact.id is None:
            raise ValueError("Cannot update a contact that was never saved")

        busy = self._busy("update")
        if busy:
            return busy

        try:
            self._ensure_valid(contact)
        except FormValidationError as e:
            logger.info(f"Contact {contact.id} not updated: {e}")
            return OperationResult.invalid(e.field_errors)

        result = await self.client.update_contact(contact.id, contact)
        if result.ok:
            self._contacts = [
                result.payload if same_id(c.id, contact.id) else c
                for c in self._contacts
            ]
        await self._publish()
        return result

    async def remove(self, contact_id: ContactId) -> OperationResult:
        busy = self._busy("remove")
        if busy:
            return busy

        result = await self.client.delete_contact(contact_id, self.confirm)
        if result.ok:
            self._contacts = [c for c in self._contacts if not same_id(c.id, contact_id)]
        await self._publish()
        return result
