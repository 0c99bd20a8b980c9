"""Contractual workflow schema

Revision ID: 4c7e1b2a9d03
Revises:
Create Date: 2026-10-19 10:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "4c7e1b2a9d03"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _id() -> sa.Column:
    return sa.Column("id", sa.String(36), primary_key=True)


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at",
        sa.DateTime(timezone=True),
        nullable=False,
        server_default=sa.func.now(),
    )


def _timestamps() -> list:
    return [
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("deleted_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        _id(),
        sa.Column("username", sa.Text(), nullable=True),
        sa.Column("email", sa.Text(), nullable=False, unique=True),
        sa.Column("document_id", sa.JSON(), nullable=True),
        sa.Column("signature", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_table(
        "organizations",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("logo_url", sa.Text(), nullable=True),
        sa.Column("pseudoname", sa.Text(), nullable=True),
        sa.Column("contracts_limit", sa.Integer(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "organization_modules",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column(
            "organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("limits", sa.Integer(), nullable=True),
    )
    op.create_table(
        "user_module_projects",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("module_id", sa.Integer(), nullable=False),
        sa.Column("conceptos_project_id", sa.String(36), nullable=True),
        sa.Column("contractual_project_id", sa.String(36), nullable=True),
        sa.Column("repo_project_id", sa.String(36), nullable=True),
    )
    op.create_index(
        "ix_user_module_projects_user_module",
        "user_module_projects",
        ["user_id", "module_id"],
    )
    op.create_table(
        "contractual_projects",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "organization_id", sa.String(36), sa.ForeignKey("organizations.id"), nullable=False
        ),
        sa.Column("signature", sa.Text(), nullable=True),
        sa.Column("contratante_data", sa.JSON(), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "templates",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("category", sa.String(64), nullable=True),
        sa.Column("sections", sa.JSON(), nullable=True),
        _created_at(),
    )
    op.create_table(
        "documents",
        _id(),
        sa.Column("template_id", sa.String(36), nullable=True),
        sa.Column("user_id", sa.String(36), nullable=True),
        sa.Column("title", sa.Text(), nullable=True),
        sa.Column("sections", sa.JSON(), nullable=True),
        _created_at(),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_table(
        "contracts",
        _id(),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column(
            "project_id", sa.String(36), sa.ForeignKey("contractual_projects.id"), nullable=False
        ),
        sa.Column("contract_draft_url", sa.Text(), nullable=True),
        sa.Column("status", sa.String(32), nullable=False, server_default="draft"),
        *_timestamps(),
    )
    op.create_table(
        "contract_members",
        _id(),
        sa.Column("user_id", sa.String(36), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("contract_id", sa.String(36), sa.ForeignKey("contracts.id"), nullable=False),
        sa.Column("status", sa.String(32), nullable=False, server_default="pending"),
        sa.Column("invited_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("accepted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("value", sa.Text(), nullable=True),
        sa.Column("start_date", sa.Date(), nullable=True),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("contract", sa.JSON(), nullable=True),
        sa.Column("contract_url", sa.Text(), nullable=True),
        sa.Column("status_juridico", sa.Text(), nullable=True),
        sa.Column("ending", sa.JSON(), nullable=True),
        sa.Column("signed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("signed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("contratante_signed_at", sa.DateTime(timezone=True), nullable=True),
        _created_at(),
    )
    op.create_index(
        "ix_contract_members_user_contract",
        "contract_members",
        ["user_id", "contract_id"],
    )
    op.create_table(
        "required_documents",
        _id(),
        sa.Column("contract_id", sa.String(36), sa.ForeignKey("contracts.id"), nullable=False),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("type", sa.String(32), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("template_id", sa.String(36), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "contractual_documents",
        _id(),
        sa.Column(
            "contract_member_id", sa.String(36), sa.ForeignKey("contract_members.id"), nullable=False
        ),
        sa.Column(
            "required_document_id",
            sa.String(36),
            sa.ForeignKey("required_documents.id"),
            nullable=False,
        ),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("month", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_contractual_documents_member_required",
        "contractual_documents",
        ["contract_member_id", "required_document_id"],
    )
    op.create_table(
        "contractual_extra_documents",
        _id(),
        sa.Column(
            "contract_member_id", sa.String(36), sa.ForeignKey("contract_members.id"), nullable=False
        ),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("url", sa.Text(), nullable=True),
        sa.Column("month", sa.String(64), nullable=True),
        *_timestamps(),
    )
    op.create_table(
        "contract_members_extension",
        _id(),
        sa.Column(
            "contract_member_id", sa.String(36), sa.ForeignKey("contract_members.id"), nullable=False
        ),
        sa.Column("extension_start_date", sa.Date(), nullable=False),
        sa.Column("extension_end_date", sa.Date(), nullable=False),
        sa.Column("extension_url", sa.Text(), nullable=True),
        _created_at(),
    )
    op.create_table(
        "telegram_links",
        sa.Column("chat_id", sa.String(64), primary_key=True),
        sa.Column(
            "contract_member_id", sa.String(36), sa.ForeignKey("contract_members.id"), nullable=False
        ),
        _created_at(),
    )
    op.create_table(
        "telegram_upload_sessions",
        sa.Column("chat_id", sa.String(64), primary_key=True),
        sa.Column("contract_member_id", sa.String(36), nullable=False),
        sa.Column("contractual_document_id", sa.String(36), nullable=False),
        _created_at(),
    )


def downgrade() -> None:
    op.drop_table("telegram_upload_sessions")
    op.drop_table("telegram_links")
    op.drop_table("contract_members_extension")
    op.drop_table("contractual_extra_documents")
    op.drop_index("ix_contractual_documents_member_required", table_name="contractual_documents")
    op.drop_table("contractual_documents")
    op.drop_table("required_documents")
    op.drop_index("ix_contract_members_user_contract", table_name="contract_members")
    op.drop_table("contract_members")
    op.drop_table("contracts")
    op.drop_table("documents")
    op.drop_table("templates")
    op.drop_table("contractual_projects")
    op.drop_index("ix_user_module_projects_user_module", table_name="user_module_projects")
    op.drop_table("user_module_projects")
    op.drop_table("organization_modules")
    op.drop_table("organizations")
    op.drop_table("users")
