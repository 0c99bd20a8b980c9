from app.services.storage import (
    candidate_paths,
    draft_path,
    extra_document_path,
    member_document_path,
    path_from_url,
    signature_path,
)


def test_path_from_public_and_signed_urls() -> None:
    base = "https://x.supabase.co/storage/v1/object"
    assert path_from_url(f"{base}/public/contractual/drafts/a%20b.pdf", "contractual") == "drafts/a b.pdf"
    assert path_from_url(f"{base}/sign/contractual/extra/m/1.pdf?token=t", "contractual") == "extra/m/1.pdf"
    assert path_from_url("/contractualdocuments/m/rut.pdf", "contractual") == "contractualdocuments/m/rut.pdf"


def test_storage_paths() -> None:
    assert draft_path("p1", "Prestación Servicios", "Mi Borrador.PDF") == "drafts/p1/prestación-servicios/mi-borrador.pdf"
    assert member_document_path("renuncia", "m1", "Carta Renuncia") == "renuncia/m1/carta_renuncia"
    assert extra_document_path("m1", "d1", "acta.DOCX", 1700000000000) == "extra/m1/d1_1700000000000.docx"
    assert signature_path("projects", "p1", "firma") == "signatures/projects/p1.png"


def test_candidate_paths_cover_legacy_spellings() -> None:
    assert candidate_paths("contractualdocuments/m1/rut") == [
        "contractualdocuments/m1/rut",
        "contractualdocuments/m1",
        "contractualdocuments/m1/rut.pdf",
        "contractualdocuments/m1.pdf",
    ]
    legacy = candidate_paths("contractualdocuments/m1/extra/m1/rut.pdf")
    assert legacy[0] == "contractualdocuments/m1/extra/m1/rut.pdf"
    assert "contractualdocuments/m1/extra/rut.pdf" in legacy
    assert len(legacy) == len(set(legacy))
