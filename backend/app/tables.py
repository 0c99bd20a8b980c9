import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

metadata = MetaData()


def new_id() -> str:
    return str(uuid.uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _id_column() -> Column:
    return Column("id", String(36), primary_key=True, default=new_id)


def _created_at() -> Column:
    return Column("created_at", DateTime(timezone=True), nullable=False, default=utcnow)


def _updated_at() -> Column:
    return Column("updated_at", DateTime(timezone=True), default=utcnow, onupdate=utcnow)


def _deleted_at() -> Column:
    # Soft delete: rows with a timestamp here are hidden from every listing.
    return Column("deleted_at", DateTime(timezone=True))


users_table = Table(
    "users",
    metadata,
    # Same id as the hosted auth subject.
    _id_column(),
    Column("username", Text),
    Column("email", Text, nullable=False, unique=True),
    # Identity card data; older rows keep it as a JSON string.
    Column("document_id", JSON),
    Column("signature", Text),
    _created_at(),
)
organizations_table = Table(
    "organizations",
    metadata,
    _id_column(),
    Column("name", Text, nullable=False),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("logo_url", Text),
    Column("pseudoname", Text),
    Column("contracts_limit", Integer),
    _created_at(),
    _updated_at(),
    _deleted_at(),
)
organization_modules_table = Table(
    "organization_modules",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("organization_id", String(36), ForeignKey("organizations.id"), nullable=False),
    Column("module_id", Integer, nullable=False),
    Column("limits", Integer),
)
user_module_projects_table = Table(
    "user_module_projects",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("module_id", Integer, nullable=False),
    # NULL project id means every project of that kind.
    Column("conceptos_project_id", String(36)),
    Column("contractual_project_id", String(36)),
    Column("repo_project_id", String(36)),
)
contractual_projects_table = Table(
    "contractual_projects",
    metadata,
    _id_column(),
    Column("name", Text, nullable=False),
    Column("organization_id", String(36), ForeignKey("organizations.id"), nullable=False),
    Column("signature", Text),
    Column("contratante_data", JSON),
    _created_at(),
    _updated_at(),
    _deleted_at(),
)
templates_table = Table(
    "templates",
    metadata,
    _id_column(),
    Column("name", Text, nullable=False),
    Column("category", String(64)),
    Column("sections", JSON),
    _created_at(),
)
documents_table = Table(
    "documents",
    metadata,
    _id_column(),
    Column("template_id", String(36)),
    Column("user_id", String(36)),
    Column("title", Text),
    Column("sections", JSON),
    _created_at(),
    _updated_at(),
)
contracts_table = Table(
    "contracts",
    metadata,
    _id_column(),
    Column("name", Text, nullable=False),
    Column("project_id", String(36), ForeignKey("contractual_projects.id"), nullable=False),
    Column("contract_draft_url", Text),
    Column("status", String(32), nullable=False, default="draft"),
    _created_at(),
    _updated_at(),
    _deleted_at(),
)
contract_members_table = Table(
    "contract_members",
    metadata,
    _id_column(),
    Column("user_id", String(36), ForeignKey("users.id"), nullable=False),
    Column("contract_id", String(36), ForeignKey("contracts.id"), nullable=False),
    Column("status", String(32), nullable=False, default="pending"),
    Column("invited_at", DateTime(timezone=True), default=utcnow),
    Column("accepted_at", DateTime(timezone=True)),
    Column("value", Text),
    Column("start_date", Date),
    Column("end_date", Date),
    # Member's merged copy of the docgen sections.
    Column("contract", JSON),
    Column("contract_url", Text),
    Column("status_juridico", Text),
    Column("ending", JSON),
    Column("signed", Boolean, nullable=False, default=False),
    Column("signed_at", DateTime(timezone=True)),
    Column("contratante_signed_at", DateTime(timezone=True)),
    _created_at(),
)
required_documents_table = Table(
    "required_documents",
    metadata,
    _id_column(),
    Column("contract_id", String(36), ForeignKey("contracts.id"), nullable=False),
    Column("name", Text, nullable=False),
    # precontractual | contractual
    Column("type", String(32), nullable=False),
    Column("due_date", Date),
    Column("template_id", String(36)),
    _created_at(),
    _updated_at(),
    _deleted_at(),
)
contractual_documents_table = Table(
    "contractual_documents",
    metadata,
    _id_column(),
    Column("contract_member_id", String(36), ForeignKey("contract_members.id"), nullable=False),
    Column("required_document_id", String(36), ForeignKey("required_documents.id"), nullable=False),
    Column("url", Text),
    # "enero 2025"; NULL for precontractual uploads.
    Column("month", String(64)),
    _created_at(),
    _updated_at(),
    _deleted_at(),
)
contractual_extra_documents_table = Table(
    "contractual_extra_documents",
    metadata,
    _id_column(),
    Column("contract_member_id", String(36), ForeignKey("contract_members.id"), nullable=False),
    Column("name", Text, nullable=False),
    Column("url", Text),
    Column("month", String(64)),
    _created_at(),
    _updated_at(),
    _deleted_at(),
)
contract_members_extension_table = Table(
    "contract_members_extension",
    metadata,
    _id_column(),
    Column("contract_member_id", String(36), ForeignKey("contract_members.id"), nullable=False),
    Column("extension_start_date", Date, nullable=False),
    Column("extension_end_date", Date, nullable=False),
    Column("extension_url", Text),
    _created_at(),
)
telegram_links_table = Table(
    "telegram_links",
    metadata,
    Column("chat_id", String(64), primary_key=True),
    Column("contract_member_id", String(36), ForeignKey("contract_members.id"), nullable=False),
    _created_at(),
)
# At most one pending upload per chat.
telegram_upload_sessions_table = Table(
    "telegram_upload_sessions",
    metadata,
    Column("chat_id", String(64), primary_key=True),
    Column("contract_member_id", String(36), nullable=False),
    Column("contractual_document_id", String(36), nullable=False),
    _created_at(),
)
