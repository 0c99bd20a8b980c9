from datetime import date

from conftest import GENERAL_TABLE, template_sections
from shared.contract_document import (
    SIGNATURE_SLOT,
    docgen_document_id,
    docgen_view_url,
    fill_contractor_data,
    format_long_date,
    format_short_date,
    insert_signature,
    is_docgen_url,
    is_exact_docgen_url,
    is_user_data_complete,
    merge_invitation_values,
    parse_identity_document,
    replace_placeholders,
    sign_sections,
)

IDENTITY = {"nombres": "Ana", "apellidos": "Pérez", "numero de identificación": "1020"}


def test_docgen_url_helpers() -> None:
    url = "https://papeleo.co/docgen/abc-123"
    assert is_docgen_url(url)
    assert is_exact_docgen_url(url)
    assert not is_exact_docgen_url(url + "?contractMemberId=1")
    assert is_docgen_url(url + "?contractMemberId=1")
    assert not is_docgen_url("https://storage.test/drafts/x.pdf")
    assert not is_docgen_url(None)
    assert docgen_document_id(url) == "abc-123"
    assert docgen_document_id(url + "/") == "abc-123"
    assert docgen_view_url(url, "m1") == url + "?contractMemberId=m1"
    assert docgen_view_url(url, "m1", sidebar=True).endswith("&sidebar=true")


def test_date_formats() -> None:
    assert format_short_date(date(2025, 3, 7)) == "07/03/25"
    assert format_long_date(date(2025, 3, 7)) == "7/3/2025"
    assert format_short_date(None) == ""


def test_parse_identity_document_accepts_text_and_mappings() -> None:
    assert parse_identity_document('{"nombres": "Ana"}') == {"nombres": "Ana"}
    assert parse_identity_document({"nombres": "Ana"}) == {"nombres": "Ana"}
    assert parse_identity_document("not json") == {}
    assert parse_identity_document("[1, 2]") == {}
    assert parse_identity_document(None) == {}


def test_merge_invitation_values_fills_red_rows() -> None:
    sections = template_sections()
    merged = merge_invitation_values(sections, "1.000.000", IDENTITY, date(2025, 6, 30))
    content = merged["0. GENERALIDADES"]["content"]
    assert "<span style='color:red;'>$1.000.000</span>" in content
    assert "<span style='color:red;'>Ana Pérez</span>" in content
    assert "<span style='color:red;'>1020</span>" in content
    assert "<span style='color:red;'>30/06/25</span>" in content
    # The input is left untouched.
    assert sections["0. GENERALIDADES"]["content"] == GENERAL_TABLE


def test_merge_invitation_values_replaces_only_first_match() -> None:
    doubled = {"0. GENERALIDADES": {"content": GENERAL_TABLE + GENERAL_TABLE}}
    merged = merge_invitation_values(doubled, "5", IDENTITY)
    content = merged["0. GENERALIDADES"]["content"]
    assert content.count("$5</span>") == 1
    assert content.count("<span style='color:red;'>$</span>") == 1


def test_merge_without_general_section_is_a_copy() -> None:
    sections = {"1. CLAUSULAS": {"content": "x"}}
    merged = merge_invitation_values(sections, "5", IDENTITY)
    assert merged == sections
    assert merged is not sections


def test_replace_placeholders_in_every_section() -> None:
    merged = replace_placeholders(template_sections(), "700", date(2025, 1, 5), "ana@example.com")
    assert merged["1. CLAUSULAS"]["content"] == "<p>Valor 700 hasta 5/1/2025. Aviso a ana@example.com.</p>"


def test_replace_placeholders_keeps_tokens_without_values() -> None:
    merged = replace_placeholders(template_sections(), "", None, "ana@example.com")
    assert merged["1. CLAUSULAS"]["content"] == "<p>Valor ${value} hasta ${endDate}. Aviso a ana@example.com.</p>"


def test_insert_signature_first_and_last_slot() -> None:
    content = f"a{SIGNATURE_SLOT}b{SIGNATURE_SLOT}c"
    last = insert_signature(content, "https://img/s.png")
    first = insert_signature(content, "https://img/s.png", last=False)
    assert last == f"a{SIGNATURE_SLOT}b<img src='https://img/s.png' style='max-width:150px'><br>c"
    assert first == f"a<img src='https://img/s.png' style='max-width:150px'><br>b{SIGNATURE_SLOT}c"
    assert insert_signature("no slot", "https://img/s.png") == "no slot"


def test_sign_sections_touches_only_signatures() -> None:
    sections = template_sections()
    signed = sign_sections(sections, "https://img/s.png", last=True)
    assert signed["2. FIRMAS"]["content"].count(SIGNATURE_SLOT) == 1
    assert signed["0. GENERALIDADES"] == sections["0. GENERALIDADES"]
    assert sections["2. FIRMAS"]["content"].count(SIGNATURE_SLOT) == 2


def test_fill_contractor_data_after_merge() -> None:
    merged = merge_invitation_values(template_sections(), "5", IDENTITY)
    user_data = {
        "NOMBRE": "Ana Pérez",
        "IDENTIFICACIÓN": "1020",
        "DIRECCIÓN": "Calle 1",
        "TELEFONO": "300",
    }
    filled = fill_contractor_data(merged, user_data)
    content = filled["0. GENERALIDADES"]["content"]
    assert "<td><b>DIRECCIÓN DEL CONTRATISTA</b></td> <td>Calle 1</td>" in content
    assert "<td><b>TELÉFONO CONTRATISTA</b></td> <td>300</td>" in content
    assert "<span style='color:red;'>Ana Pérez</span>" not in content
    # Value row keeps its red marker.
    assert "<span style='color:red;'>$5</span>" in content


def test_user_data_completeness() -> None:
    assert not is_user_data_complete(None)
    assert not is_user_data_complete({"NOMBRE": "Ana"})
    assert is_user_data_complete(
        {"NOMBRE": "Ana", "TELEFONO": "1", "DIRECCIÓN": "x", "IDENTIFICACIÓN": "2"}
    )
