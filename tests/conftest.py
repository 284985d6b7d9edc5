# tests/conftest.py
import logging
from typing import Dict, List, Optional, Tuple

import pytest
from fastapi import FastAPI, HTTPException, Request, Response, status
from fastapi.responses import JSONResponse
from httpx import ASGITransport, AsyncClient

from contacts_sync.app.client import RemoteClient
from contacts_sync.app.schemas import ContactPayload, RemoteRecord
from contacts_sync.app.store import ContactStore

BASE_URL = "http://agenda.test"
SLUG = "test-agenda"


class FakeAgenda:
    """In-memory stand-in for the remote agenda service."""

    def __init__(self):
        self.agendas: Dict[str, Dict[int, RemoteRecord]] = {}
        self.requests: List[Tuple[str, str]] = []
        self.failures: List[tuple] = []
        self._next_id = 1

    def fail_next(self, method: str, status_code: int, payload=None, path: Optional[str] = None):
        self.failures.append((method, path, status_code, payload))

    def pop_failure(self, method: str, path: str):
        for i, (m, p, code, payload) in enumerate(self.failures):
            if m == method and (p is None or path.endswith(p)):
                del self.failures[i]
                return code, payload
        return None

    def seed(self, name: str, email: str, phone: str = "", address: str = "", slug: str = SLUG) -> RemoteRecord:
        contacts = self.agendas.setdefault(slug, {})
        record = RemoteRecord(id=self._next_id, name=name, email=email, phone=phone, address=address)
        contacts[record.id] = record
        self._next_id += 1
        return record

    def create(self, slug: str, body: ContactPayload) -> RemoteRecord:
        return self.seed(body.name, body.email, body.phone, body.address, slug=slug)

    def contacts(self, slug: str = SLUG) -> Dict[int, RemoteRecord]:
        if slug not in self.agendas:
            raise HTTPException(status_code=404, detail=f'Agenda "{slug}" doesn\'t exist.')
        return self.agendas[slug]


def create_fake_app(agenda: FakeAgenda) -> FastAPI:
    app = FastAPI()

    @app.middleware("http")
    async def record_and_fail(request: Request, call_next):
        agenda.requests.append((request.method, request.url.path))
        failure = agenda.pop_failure(request.method, request.url.path)
        if failure:
            code, payload = failure
            if isinstance(payload, str):
                return Response(content=payload, status_code=code, media_type="text/plain")
            return JSONResponse(status_code=code, content=payload if payload is not None else {})
        return await call_next(request)

    @app.post("/agendas/{slug}", status_code=status.HTTP_201_CREATED)
    async def create_agenda(slug: str):
        if slug in agenda.agendas:
            raise HTTPException(status_code=400, detail=f'Agenda "{slug}" already exists.')
        agenda.agendas[slug] = {}
        return {"slug": slug, "id": len(agenda.agendas)}

    @app.get("/agendas/{slug}/contacts")
    async def list_contacts(slug: str):
        contacts = agenda.contacts(slug)
        return {"slug": slug, "contacts": [r.model_dump() for r in contacts.values()]}

    @app.post("/agendas/{slug}/contacts", status_code=status.HTTP_201_CREATED, response_model=RemoteRecord)
    async def create_contact(slug: str, body: ContactPayload):
        agenda.contacts(slug)
        return agenda.create(slug, body)

    @app.put("/agendas/{slug}/contacts/{contact_id}", response_model=RemoteRecord)
    async def update_contact(slug: str, contact_id: int, body: ContactPayload):
        contacts = agenda.contacts(slug)
        if contact_id not in contacts:
            raise HTTPException(status_code=404, detail="Contact not found")
        contacts[contact_id] = RemoteRecord(id=contact_id, **body.model_dump())
        return contacts[contact_id]

    @app.delete("/agendas/{slug}/contacts/{contact_id}", status_code=status.HTTP_204_NO_CONTENT)
    async def delete_contact(slug: str, contact_id: int):
        contacts = agenda.contacts(slug)
        if contact_id not in contacts:
            raise HTTPException(status_code=404, detail="Contact not found")
        del contacts[contact_id]
        return Response(status_code=status.HTTP_204_NO_CONTENT)

    return app


class Confirmer:
    """Injected confirmation prompt that answers with a fixed value."""

    def __init__(self, answer: bool = True):
        self.answer = answer
        self.prompts: List[str] = []

    def __call__(self, message: str) -> bool:
        self.prompts.append(message)
        return self.answer


@pytest.fixture
def base_url():
    return BASE_URL


@pytest.fixture
def slug():
    return SLUG


@pytest.fixture
def agenda_path(slug):
    return f"/agendas/{slug}"


@pytest.fixture
def contacts_path(agenda_path):
    return f"{agenda_path}/contacts"


@pytest.fixture
def agenda():
    return FakeAgenda()


@pytest.fixture
def fake_app(agenda):
    return create_fake_app(agenda)


@pytest.fixture
async def http(fake_app):
    transport = ASGITransport(app=fake_app)
    async with AsyncClient(transport=transport) as ac:
        yield ac


@pytest.fixture
def remote_client(http, base_url, slug):
    return RemoteClient(http, base_url=base_url, slug=slug)


@pytest.fixture
def confirmer():
    return Confirmer(answer=True)


@pytest.fixture
def store(remote_client, confirmer):
    return ContactStore(remote_client, confirm=confirmer)


@pytest.fixture
def restore_root_logger():
    root = logging.getLogger()
    level, handlers = root.level, list(root.handlers)
    yield root
    root.handlers[:] = handlers
    root.setLevel(level)
