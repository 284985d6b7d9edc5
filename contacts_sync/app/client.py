"""
Agenda API client.

Thin wrapper around an httpx.AsyncClient performing create/read/update/delete
against the remote agenda. Every public operation returns an OperationResult;
transport errors and non-success responses are converted to a message at this
boundary and never propagate.
"""

import logging
from contextlib import asynccontextmanager
from typing import Any, AsyncIterator, Awaitable, Callable, List, Optional

import httpx

from contacts_sync.app.adapters import from_remote, to_remote
from contacts_sync.app.config import AGENDA_SLUG, CONTACTS_API_URL
from contacts_sync.app.errors import NetworkError, RemoteRejection, UserCancelled
from contacts_sync.app.schemas import Contact, ContactId, OperationResult

logger = logging.getLogger(__name__)

# the playground answers 400 when the agenda is already there
AGENDA_EXISTS_STATUSES = (400, 409)

DELETE_PROMPT = "Are you sure you want to delete this contact?"

Confirm = Callable[[str], bool]
OnStart = Callable[[], Awaitable[None]]


class RemoteClient:
    def __init__(
        self,
        http: httpx.AsyncClient,
        base_url: str = CONTACTS_API_URL,
        slug: str = AGENDA_SLUG,
    ):
        self.http = http
        self.base_url = base_url.rstrip("/")
        self.slug = slug
        self.in_flight = False
        self.last_error: Optional[str] = None
        # awaited once in_flight is set and last_error cleared, before the request goes out
        self.on_start: Optional[OnStart] = None

    @property
    def agenda_url(self) -> str:
        return f"{self.base_url}/agendas/{self.slug}"

    @property
    def contacts_url(self) -> str:
        return f"{self.agenda_url}/contacts"

    def contact_url(self, contact_id: ContactId) -> str:
        return f"{self.contacts_url}/{contact_id}"

    @asynccontextmanager
    async def _operation(self, name: str) -> AsyncIterator[None]:
        logger.debug(f"Starting: {name}")
        self.in_flight = True
        self.last_error = None
        try:
            if self.on_start is not None:
                await self.on_start()
            yield
        finally:
            self.in_flight = False

    async def _send(self, method: str, url: str, action: str, **kwargs) -> httpx.Response:
        try:
            response = await self.http.request(method, url, **kwargs)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise NetworkError(f"Network error while trying to {action}: {e}") from e

        if response.is_success:
            return response
        raise RemoteRejection(_error_message(response, action), status_code=response.status_code)

    def _fail(self, action: str, exc: Exception) -> OperationResult:
        message = str(exc)
        self.last_error = message
        logger.error(f"Error trying to {action}: {message}")
        return OperationResult.failure(message)

    async def ensure_agenda(self) -> bool:
        """
        Create the agenda if it does not exist yet.

        An "already exists" answer counts as success. Returns False on any
        other failure; the caller decides what to do with it.
        """
        try:
            response = await self.http.post(self.agenda_url)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Could not create agenda {self.slug!r}: {e}")
            return False

        if response.is_success or response.status_code in AGENDA_EXISTS_STATUSES:
            return True
        logger.warning(f"Could not create agenda {self.slug!r}: HTTP {response.status_code}")
        return False

    async def list_contacts(self) -> OperationResult:
        action = "load contacts"
        async with self._operation(action):
            # a failed ensure step is not fatal: the list request reports real problems
            await self.ensure_agenda()
            try:
                response = await self._send("GET", self.contacts_url, action)
                records = _parse_contacts(response, action)
            except (NetworkError, RemoteRejection) as e:
                return self._fail(action, e)

            contacts = [from_remote(record) for record in records]
            logger.info(f"Loaded {len(contacts)} contacts from agenda {self.slug!r}")
            return OperationResult.success(contacts)

    async def create_contact(self, contact: Contact) -> OperationResult:
        action = "create contact"
        async with self._operation(action):
            try:
                response = await self._send(
                    "POST", self.contacts_url, action, json=to_remote(contact).model_dump()
                )
                record = _parse_record(response, action)
            except (NetworkError, RemoteRejection) as e:
                return self._fail(action, e)

            created = from_remote(record, avatar=contact.avatar or None)
            logger.info(f"Created contact id={created.id}")
            return OperationResult.success(created)

    async def update_contact(self, contact_id: ContactId, contact: Contact) -> OperationResult:
        action = "update contact"
        async with self._operation(action):
            try:
                response = await self._send(
                    "PUT", self.contact_url(contact_id), action, json=to_remote(contact).model_dump()
                )
                record = _parse_record(response, action)
            except (NetworkError, RemoteRejection) as e:
                return self._fail(action, e)

            updated = from_remote(record, avatar=contact.avatar or None)
            logger.info(f"Updated contact id={contact_id}")
            return OperationResult.success(updated)

    async def delete_contact(self, contact_id: ContactId, confirm: Confirm) -> OperationResult:
        try:
            _confirm_or_cancel(confirm, DELETE_PROMPT)
        except UserCancelled:
            logger.debug(f"Deletion of contact id={contact_id} declined")
            return OperationResult.cancelled()

        action = "delete contact"
        async with self._operation(action):
            try:
                await self._send("DELETE", self.contact_url(contact_id), action)
            except (NetworkError, RemoteRejection) as e:
                return self._fail(action, e)

            logger.info(f"Deleted contact id={contact_id}")
            return OperationResult.success(contact_id)


def _confirm_or_cancel(confirm: Confirm, message: str) -> None:
    if not confirm(message):
        raise UserCancelled(message)


def _error_message(response: httpx.Response, action: str) -> str:
    try:
        payload = response.json()
    except ValueError:
        payload = None

    if isinstance(payload, dict):
        detail = payload.get("detail")
        if isinstance(detail, str) and detail:
            return detail
    return f"Failed to {action}."


def _json(response: httpx.Response, action: str) -> Any:
    try:
        return response.json()
    except ValueError as e:
        raise RemoteRejection(
            f"Failed to {action}: invalid response body.", status_code=response.status_code
        ) from e


def _parse_record(response: httpx.Response, action: str) -> dict:
    data = _json(response, action)
    if not isinstance(data, dict):
        raise RemoteRejection(f"Failed to {action}: unexpected response.", status_code=response.status_code)
    return data


def _parse_contacts(response: httpx.Response, action: str) -> List[dict]:
    data = _json(response, action)
    if not isinstance(data, dict):
        raise RemoteRejection(f"Failed to {action}: unexpected response.", status_code=response.status_code)
    return [record for record in data.get("contacts") or [] if isinstance(record, dict)]
