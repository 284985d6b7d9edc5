from contextlib import asynccontextmanager
from typing import AsyncGenerator, AsyncIterator, Optional

import httpx

from contacts_sync.app.client import Confirm, RemoteClient
from contacts_sync.app.config import AGENDA_SLUG, CONTACTS_API_URL
from contacts_sync.app.logging_config import setup_logging
from contacts_sync.app.store import ContactStore


def build_store(
    http: httpx.AsyncClient,
    base_url: str = CONTACTS_API_URL,
    slug: str = AGENDA_SLUG,
    confirm: Optional[Confirm] = None,
) -> ContactStore:
    return ContactStore(RemoteClient(http, base_url=base_url, slug=slug), confirm=confirm)


@asynccontextmanager
async def lifespan(
    base_url: str = CONTACTS_API_URL,
    slug: str = AGENDA_SLUG,
    confirm: Optional[Confirm] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[ContactStore]:
    """
    Create the store once at application start and tear it down on shutdown.

    The initial load runs before the store is handed out; its failure is
    reported through `store.error`, not raised.
    """
    setup_logging()
    async with httpx.AsyncClient(transport=transport) as http:
        store = build_store(http, base_url=base_url, slug=slug, confirm=confirm)
        await store.start()
        yield store


async def get_store(
    base_url: str = CONTACTS_API_URL,
    slug: str = AGENDA_SLUG,
    confirm: Optional[Confirm] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncGenerator[ContactStore, None]:
    async with lifespan(base_url, slug, confirm, transport) as store:
        yield store
