import os
import sys
from datetime import date
from typing import Any, Dict, List, Optional

import pytest

ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
for path in (os.path.join(ROOT, "backend"), ROOT):
    if path not in sys.path:
        sys.path.insert(0, path)

os.environ.setdefault("BACKEND_POSTGRES_DSN", "sqlite://")
os.environ.setdefault("BACKEND_JWT_SECRET_KEY", "test-secret")

from sqlalchemy import create_engine, insert  # noqa: E402
from sqlalchemy.orm import Session  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app import tables  # noqa: E402
from app.tables import metadata, new_id  # noqa: E402

DOCGEN = "https://papeleo.co/docgen"

GENERAL_TABLE = (
    "<table>"
    "<tr><td><b>VALOR TOTAL DEL CONTRATO</b></td><td><span style='color:red;'>$</span></td></tr>"
    "<tr><td><b>NOMBRE DEL CONTRATISTA</b></td><td><span style='color:red;'>NOMBRE DEL CONTRATISTA</span></td></tr>"
    "<tr><td><b>IDENTIFICACIÓN CONTRATISTA</b></td><td><span style='color:red;'>IDENTIFICACIÓN</span></td></tr>"
    "<tr> <td><b>DIRECCIÓN DEL CONTRATISTA</b></td> <td><span style='color:red;'>DIRECCIÓN DEL CONTRATISTA</span></td> </tr>"
    "<tr> <td><b>TELÉFONO CONTRATISTA</b></td> <td><span style='color:red;'>TELÉFONO CONTRATISTA</span></td> </tr>"
    "<tr><td><b>PLAZO</b></td><td><span style='color:red;'>PLAZO</span></td></tr>"
    "</table>"
)
SIGNATURES = (
    "<p>EL CONTRATISTA</p><hr style='width: 150px;'>"
    "<p>EL CONTRATANTE</p><hr style='width: 150px;'>"
)


def template_sections() -> Dict[str, Any]:
    return {
        "0. GENERALIDADES": {"content": GENERAL_TABLE, "type": "text"},
        "1. CLAUSULAS": {"content": "<p>Valor ${value} hasta ${endDate}. Aviso a ${userEmail}.</p>"},
        "2. FIRMAS": {"content": SIGNATURES},
    }


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine):
    session = Session(engine)
    try:
        yield session
    finally:
        session.close()


class Seed:
    """Inserts the minimal rows a scenario needs and returns their ids."""

    def __init__(self, session: Session) -> None:
        self.session = session

    def _insert(self, table, **values) -> str:
        values.setdefault("id", new_id())
        self.session.execute(insert(table).values(**values))
        return values["id"]

    def user(self, email: str = "ana@example.com", **values) -> str:
        return self._insert(tables.users_table, email=email, username=email.split("@")[0], **values)

    def organization(self, owner_id: str, name: str = "Acme") -> str:
        return self._insert(tables.organizations_table, name=name, user_id=owner_id)

    def project(self, organization_id: str, name: str = "Obra norte", **values) -> str:
        return self._insert(
            tables.contractual_projects_table, name=name, organization_id=organization_id, **values
        )

    def contract(self, project_id: str, name: str = "Prestación", **values) -> str:
        return self._insert(tables.contracts_table, name=name, project_id=project_id, **values)

    def member(self, user_id: str, contract_id: str, **values) -> str:
        return self._insert(
            tables.contract_members_table, user_id=user_id, contract_id=contract_id, **values
        )

    def required(self, contract_id: str, name: str, type: str = "contractual", **values) -> str:
        return self._insert(
            tables.required_documents_table, contract_id=contract_id, name=name, type=type, **values
        )

    def upload(self, member_id: str, required_id: str, url: Optional[str] = None, month: Optional[str] = None) -> str:
        return self._insert(
            tables.contractual_documents_table,
            contract_member_id=member_id,
            required_document_id=required_id,
            url=url,
            month=month,
        )

    def document(self, sections: Optional[Dict[str, Any]] = None) -> str:
        return self._insert(tables.documents_table, title="Contrato", sections=sections or template_sections())

    def permission(self, user_id: str, module_id: int = 1, project_id: Optional[str] = None) -> None:
        self.session.execute(
            insert(tables.user_module_projects_table).values(
                user_id=user_id, module_id=module_id, contractual_project_id=project_id
            )
        )

    def contractual_setup(self, contract_values: Optional[Dict[str, Any]] = None, **member_values) -> Dict[str, str]:
        owner = self.user("owner@example.com")
        contractor = self.user("ana@example.com")
        organization = self.organization(owner)
        project = self.project(organization)
        contract = self.contract(project, **(contract_values or {}))
        member = self.member(contractor, contract, **member_values)
        return {
            "owner": owner,
            "contractor": contractor,
            "organization": organization,
            "project": project,
            "contract": contract,
            "member": member,
        }


@pytest.fixture
def seed(session) -> Seed:
    return Seed(session)


class FakeStorage:
    bucket = "contractual"

    def __init__(self) -> None:
        self.uploads: List[tuple] = []
        self.removed: List[str] = []

    def upload(self, path, content, content_type=None, *, upsert=True, bucket=None) -> str:
        self.uploads.append((bucket or self.bucket, path, content, content_type))
        return f"https://storage.test/object/public/{bucket or self.bucket}/{path}"

    def remove(self, paths, bucket=None) -> None:
        self.removed.extend(paths)

    def signed_url_for(self, url, expires_in=None) -> str:
        if url.startswith(DOCGEN):
            return url
        return f"{url}?token=signed"

    def preview_url(self, url, expires_in=None) -> str:
        return f"{url}?token=preview"


class FakeMailer:
    enabled = True

    def __init__(self) -> None:
        self.invitations: List[tuple] = []
        self.contacts: List[dict] = []

    def send_invitation(self, to: str, project_name: str) -> str:
        self.invitations.append((to, project_name))
        return "email-id"

    def send_contact(self, company, email, name=None, phone=None, message=None) -> str:
        self.contacts.append({"company": company, "email": email, "message": message})
        return "email-id"


class CurrentUser:
    def __init__(self) -> None:
        self.id: Optional[str] = None


@pytest.fixture
def storage() -> FakeStorage:
    return FakeStorage()


@pytest.fixture
def mailer() -> FakeMailer:
    return FakeMailer()


@pytest.fixture
def current_user() -> CurrentUser:
    return CurrentUser()


@pytest.fixture
def client(session, storage, mailer, current_user):
    from fastapi.testclient import TestClient

    from app.main import app
    from app.routes.deps import db_session_dependency, get_current_user
    from app.services.ai import get_ai_client
    from app.services.google_docs import get_docs_client
    from app.services.mailer import get_mailer
    from app.services.storage import get_storage

    def _session():
        yield session

    app.dependency_overrides[db_session_dependency] = _session
    app.dependency_overrides[get_current_user] = lambda: current_user.id
    app.dependency_overrides[get_storage] = lambda: storage
    app.dependency_overrides[get_mailer] = lambda: mailer
    app.dependency_overrides[get_ai_client] = lambda: None
    app.dependency_overrides[get_docs_client] = lambda: None
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def end_date() -> date:
    return date(2025, 6, 30)
