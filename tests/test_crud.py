from datetime import date

from sqlalchemy import insert, select

from app.crud import contractor, contractual, extensions, invitations, organizations, permissions
from app.crud import projects, required_documents, telegram, users
from app.tables import (
    contract_members_table,
    contractual_documents_table,
    contractual_extra_documents_table,
    new_id,
    telegram_links_table,
)


def test_owner_has_full_access(session, seed) -> None:
    ids = seed.contractual_setup()
    access = permissions.get_user_project_permissions_by_module(
        session, ids["owner"], ids["organization"], 1, "contractual"
    )
    assert access == {"is_owner": True, "has_full_access": True, "allowed_project_ids": []}
    assert permissions.can_access_project(session, ids["owner"], ids["project"], 1)


def test_project_scoped_permission(session, seed) -> None:
    ids = seed.contractual_setup()
    other_project = seed.project(ids["organization"], name="Obra sur")
    staff = seed.user("staff@example.com")
    seed.permission(staff, project_id=ids["project"])
    assert permissions.can_access_project(session, staff, ids["project"], 1)
    assert not permissions.can_access_project(session, staff, other_project, 1)
    assert not permissions.can_access_project(session, staff, ids["project"], 2)
    assert permissions.can_access_organization(session, staff, ids["organization"], 1)


def test_module_wide_permission_and_stranger(session, seed) -> None:
    ids = seed.contractual_setup()
    manager = seed.user("manager@example.com")
    seed.permission(manager)
    assert permissions.can_access_project(session, manager, ids["project"], 1)
    assert not permissions.can_access_project(session, ids["contractor"], ids["project"], 1)
    assert not permissions.can_access_project(session, manager, "missing", 1)


def test_projects_lifecycle(session, seed) -> None:
    owner = seed.user("owner@example.com")
    org = seed.organization(owner)
    created = projects.create_project(session, "  Obra  ", org)
    assert created["name"] == "Obra"
    assert projects.rename_project(session, created["id"], "Obra 2")["name"] == "Obra 2"
    assert [p["id"] for p in projects.list_projects(session, org)] == [created["id"]]
    assert projects.list_projects(session, org, allowed_ids=[]) == []
    assert projects.soft_delete_project(session, created["id"])
    assert not projects.soft_delete_project(session, created["id"])
    assert projects.get_project(session, created["id"]) is None
    assert projects.get_project(session, created["id"], include_deleted=True) is not None


def test_project_signature_and_contratante_data(session, seed) -> None:
    ids = seed.contractual_setup()
    assert projects.get_project_signature(session, ids["project"]) is None
    projects.set_project_signature(session, ids["project"], "https://img/p.png")
    assert projects.get_project_signature(session, ids["project"]) == "https://img/p.png"
    projects.remove_project_signature(session, ids["project"])
    assert projects.get_project_signature(session, ids["project"]) is None
    assert projects.get_contratante_data(session, ids["project"]) == {}
    projects.save_contratante_data(session, ids["project"], {"NIT": "900"})
    assert projects.get_contratante_data(session, ids["project"]) == {"NIT": "900"}


def test_stage_bar_counts_members(session, seed) -> None:
    ids = seed.contractual_setup()
    seed.member(seed.user("luis@example.com"), ids["contract"])
    seed.project(ids["organization"], name="Vacío")
    bar = organizations.get_stage_bar(session, ids["organization"], 1)
    assert bar["used"] == 2
    assert {item["project_name"]: item["members"] for item in bar["projects"]} == {
        "Obra norte": 2,
        "Vacío": 0,
    }
    assert bar["limit"] is None


def test_suggestions_rank_by_frequency(session, seed) -> None:
    ids = seed.contractual_setup()
    other = seed.contract(ids["project"], name="Otro")
    seed.required(ids["contract"], "Planilla seguridad social")
    seed.required(other, "Planilla seguridad social")
    seed.required(other, "Planilla de pago", type="contract")
    seed.required(other, "Planilla anexo", type="Contract_Annex")
    seed.required(ids["contract"], "Planilla precontractual", type="precontractual")
    result = required_documents.suggest_document_names(session, "plan", "contractual")
    assert result == [
        {"name": "Planilla seguridad social", "count": 2},
        {"name": "Planilla anexo", "count": 1},
        {"name": "Planilla de pago", "count": 1},
        {"name": "Planilla precontractual", "count": 1},
    ]
    assert required_documents.suggest_document_names(session, "p", "contractual") == []
    pre = required_documents.suggest_document_names(session, "plan", "precontractual")
    assert [item["name"] for item in pre] == ["Planilla precontractual"]
    untyped = required_documents.suggest_document_names(session, "plan")
    assert [item["name"] for item in untyped] == ["Planilla precontractual"]


def test_contractual_documents_grouped_by_month(session, seed) -> None:
    ids = seed.contractual_setup()
    planilla = seed.required(ids["contract"], "Planilla")
    informe = seed.required(ids["contract"], "Informe")
    seed.upload(ids["member"], planilla, "https://f/1", "febrero 2025")
    seed.upload(ids["member"], informe, None, "enero 2025")
    seed.upload(ids["member"], planilla, None, None)
    groups = contractual.contractual_documents_by_month(session, ids["member"])
    assert [group["month"] for group in groups] == ["enero 2025", "febrero 2025", "Sin mes asignado"]
    assert groups[1]["docs"][0]["url"] == "https://f/1"

    extra = contractual.create_extra_document(session, ids["member"], " Acta ", "enero 2025")
    merged = contractual.all_documents_by_month(session, ids["member"])
    january = merged[0]
    assert january["month"] == "enero 2025"
    assert {doc["type"] for doc in january["docs"]} == {"contractual", "contractual-extra"}
    assert contractual.soft_delete_extra_document(session, extra["id"])
    assert contractual.extra_documents_by_month(session, ids["member"]) == []


def test_precontractual_documents_latest_upload_wins(session, seed) -> None:
    ids = seed.contractual_setup()
    rut = seed.required(ids["contract"], "RUT", type="precontractual")
    seed.required(ids["contract"], "Cédula", type="precontractual")
    contractual.upsert_document(session, ids["member"], rut, "https://f/rut-1")
    contractual.upsert_document(session, ids["member"], rut, "https://f/rut-2")
    docs = {doc["name"]: doc for doc in contractual.precontractual_documents(session, ids["member"])}
    assert docs["RUT"]["url"] == "https://f/rut-2"
    assert docs["Cédula"]["url"] is None
    rows = session.execute(
        select(contractual_documents_table).where(
            contractual_documents_table.c.required_document_id == rut
        )
    ).all()
    assert len(rows) == 1


def test_upsert_by_explicit_id(session, seed) -> None:
    ids = seed.contractual_setup()
    planilla = seed.required(ids["contract"], "Planilla")
    doc_id = seed.upload(ids["member"], planilla, None, "enero 2025")
    assert contractual.upsert_document(
        session, ids["member"], planilla, "https://f/x", contractual_document_id=doc_id
    ) == doc_id
    assert contractual.get_member_document(session, doc_id)["url"] == "https://f/x"


def test_member_ending_status(session, seed) -> None:
    ids = seed.contractual_setup()
    assert contractual.set_member_ending(session, ids["member"], "https://f/r", "comun") == {
        "url": "https://f/r",
        "status": "comun",
    }
    assert contractual.set_member_ending(session, ids["member"], "https://f/r", None)["status"] == "solicitud"


def test_extension_opens_missing_monthly_documents(session, seed) -> None:
    ids = seed.contractual_setup(start_date=date(2025, 1, 1), end_date=date(2025, 3, 31))
    planilla = seed.required(ids["contract"], "Planilla")
    seed.required(ids["contract"], "RUT", type="precontractual")
    seed.upload(ids["member"], planilla, "https://f/abr", "abril 2025")
    extension, created = extensions.create_extension(
        session, ids["member"], date(2025, 4, 1), date(2025, 6, 30), "https://f/ext"
    )
    assert created == 2
    assert extension["extension_url"] == "https://f/ext"
    months = [group["month"] for group in contractual.contractual_documents_by_month(session, ids["member"])]
    assert months == ["abril 2025", "mayo 2025", "junio 2025"]
    assert [item["id"] for item in extensions.list_extensions(session, ids["member"])] == [extension["id"]]


def test_contract_status_flags(session, seed) -> None:
    ids = seed.contractual_setup()
    assert contractor.contract_status(session, ids["member"]) == {
        "precontractual": True,
        "signed": False,
        "contractual": False,
    }
    rut = seed.required(ids["contract"], "RUT", type="precontractual")
    assert contractor.contract_status(session, ids["member"])["precontractual"] is False
    contractual.upsert_document(session, ids["member"], rut, "https://f/rut")
    session.execute(
        contract_members_table.update()
        .where(contract_members_table.c.id == ids["member"])
        .values(signed=True)
    )
    status = contractor.contract_status(session, ids["member"])
    assert status == {"precontractual": True, "signed": True, "contractual": False}
    assert contractor.contract_status(session, "missing") is None


def test_pending_contracts_include_signature(session, seed) -> None:
    ids = seed.contractual_setup()
    users.set_user_signature(session, ids["contractor"], "https://img/u.png")
    dashboard = contractor.pending_contracts(session, ids["contractor"])
    assert dashboard["signature"] == "https://img/u.png"
    assert [item["id"] for item in dashboard["contracts"]] == [ids["member"]]
    assert dashboard["contracts"][0]["contract_name"] == "Prestación"


def test_user_data_round_trip(session, seed) -> None:
    user_id = seed.user("ana@example.com", document_id='{"NOMBRE": "Ana"}')
    data = users.get_user_data(session, user_id)
    assert data["user_data"] == {"NOMBRE": "Ana"}
    assert data["is_data_complete"] is False
    complete = {"NOMBRE": "Ana", "TELEFONO": "1", "DIRECCIÓN": "x", "IDENTIFICACIÓN": "2"}
    assert users.update_user_data(session, user_id, complete) is True
    assert users.get_user_data(session, user_id)["is_data_complete"] is True
    assert users.get_user_by_email(session, " ANA@example.com ")["id"] == user_id


def test_telegram_link_and_upload_session(session, seed) -> None:
    ids = seed.contractual_setup()
    assert not telegram.link_chat(session, "42", "missing")
    assert telegram.link_chat(session, "42", ids["member"])
    assert telegram.resolve_member(session, "42") == ids["member"]
    assert telegram.resolve_member(session, "7", "fallback") == "fallback"

    telegram.start_upload(session, "42", ids["member"], "doc-1")
    telegram.start_upload(session, "42", ids["member"], "doc-2")
    assert telegram.get_upload_session(session, "42")["contractual_document_id"] == "doc-2"
    assert telegram.finish_upload(session, "42")
    assert not telegram.finish_upload(session, "42")


def test_delete_invitation_removes_dependents(session, seed) -> None:
    ids = seed.contractual_setup()
    planilla = seed.required(ids["contract"], "Planilla")
    seed.upload(ids["member"], planilla, "https://f/1", "enero 2025")
    telegram.link_chat(session, "42", ids["member"])
    assert invitations.delete_invitation(session, ids["member"])
    assert invitations.get_member(session, ids["member"]) is None
    assert session.execute(select(telegram_links_table)).first() is None
    assert session.execute(select(contractual_documents_table)).first() is None


def test_upsert_by_id_stays_within_the_member(session, seed) -> None:
    ids = seed.contractual_setup()
    planilla = seed.required(ids["contract"], "Planilla")
    rut = seed.required(ids["contract"], "RUT")
    other = seed.member(seed.user("eve@example.com"), ids["contract"])
    doc_id = seed.upload(ids["member"], planilla, "https://f/ana", "enero 2025")

    assert contractual.upsert_document(
        session, other, planilla, "https://f/eve", contractual_document_id=doc_id
    ) is None
    assert contractual.upsert_document(
        session, ids["member"], rut, "https://f/eve", contractual_document_id=doc_id
    ) is None
    assert contractual.get_member_document(session, doc_id)["url"] == "https://f/ana"


def test_extra_documents_without_month_are_unassigned(session, seed) -> None:
    ids = seed.contractual_setup()
    session.execute(
        insert(contractual_extra_documents_table).values(
            id=new_id(), contract_member_id=ids["member"], name="Acta", url="https://f/acta"
        )
    )
    contractual.create_extra_document(session, ids["member"], "Informe", "marzo 2025")
    groups = contractual.extra_documents_by_month(session, ids["member"])
    assert [group["month"] for group in groups] == ["marzo 2025", "Sin mes asignado"]
    assert groups[1]["docs"][0]["name"] == "Acta"
