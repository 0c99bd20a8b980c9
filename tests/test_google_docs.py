from typing import Any, Dict, List

import google.auth.exceptions
import httpx
import pytest

from app.services.google_docs import (
    CONTRACT_TABLE,
    OBJECT_TITLE,
    GoogleDocsClient,
    GoogleDocsError,
    body_end_index,
    build_contract_summary,
    find_first_table,
    object_section_text,
    table_style_requests,
    table_text_requests,
)


def _table(rows: int, columns: int, start: int = 5) -> Dict[str, Any]:
    index = start
    table_rows = []
    for _ in range(rows):
        cells = []
        for _ in range(columns):
            cells.append({"content": [{"paragraph": {}, "startIndex": index, "endIndex": index + 1}]})
            index += 2
        table_rows.append({"tableCells": cells})
    return {"tableRows": table_rows}


def test_body_end_index() -> None:
    assert body_end_index({}) == 1
    assert body_end_index({"body": {"content": [{"endIndex": 3}, {"endIndex": 42}]}}) == 42


def test_table_text_requests_run_backwards() -> None:
    requests_ = table_text_requests(_table(2, 2), [("A", "a"), ("B", "b")])
    assert [item["insertText"]["text"] for item in requests_] == ["b", "B", "a", "A"]
    assert [item["insertText"]["location"]["index"] for item in requests_] == [11, 9, 7, 5]


def test_table_style_bolds_the_label_column() -> None:
    requests_ = table_style_requests(_table(1, 2), 1, 2)
    styles = [item["updateTextStyle"] for item in requests_]
    assert [style["textStyle"]["bold"] for style in styles] == [True, False]
    assert styles[0]["range"] == {"startIndex": 5, "endIndex": 5}
    assert styles[0]["textStyle"]["weightedFontFamily"] == {"fontFamily": "Times New Roman"}


def test_object_section_text() -> None:
    assert object_section_text("Prestar servicios") == f"\n\n{OBJECT_TITLE}\n\nPrestar servicios"


def test_permission_errors() -> None:
    assert GoogleDocsError("x", status=403).is_permission_error
    assert GoogleDocsError("Request had insufficient authentication scopes").is_permission_error
    assert not GoogleDocsError("Internal", status=500).is_permission_error


class _FakeDocs:
    service_account_email = "bot@project.iam.gserviceaccount.com"

    def __init__(self) -> None:
        self.batches: List[List[dict]] = []
        self.created: List[tuple] = []

    async def create_document(self, name, folder_id):
        self.created.append((name, folder_id))
        return "doc-1"

    async def get_document(self, document_id):
        content = [{"endIndex": 2}]
        if self.batches:
            content.append({"table": _table(len(CONTRACT_TABLE), 2), "endIndex": 120})
        return {"body": {"content": content}}

    async def batch_update(self, document_id, requests_):
        self.batches.append(requests_)
        return {}


@pytest.mark.asyncio
async def test_build_contract_summary() -> None:
    docs = _FakeDocs()
    drafted = []

    async def draft(text: str) -> str:
        drafted.append(text)
        return "Prestar servicios de obra"

    summary = await build_contract_summary(docs, draft, "obra", name="Contrato X", folder_id="folder")

    assert summary == {
        "document_id": "doc-1",
        "rows_created": len(CONTRACT_TABLE),
        "contract_object": "Prestar servicios de obra",
    }
    assert docs.created == [("Contrato X", "folder")]
    assert drafted == ["obra"]
    assert docs.batches[0][0]["insertTable"]["location"] == {"index": 1}
    assert docs.batches[1][-1]["insertText"]["text"] == CONTRACT_TABLE[0][0]
    assert docs.batches[3][0]["insertText"]["text"].endswith("Prestar servicios de obra")


@pytest.mark.asyncio
async def test_build_contract_summary_without_table() -> None:
    class _NoTable(_FakeDocs):
        async def get_document(self, document_id):
            return {"body": {"content": [{"endIndex": 2}]}}

    async def draft(text: str) -> str:
        return "x"

    with pytest.raises(GoogleDocsError):
        await build_contract_summary(_NoTable(), draft, "obra")
    assert find_first_table({}) is None


class _FakeCredentials:
    service_account_email = "bot@project.iam.gserviceaccount.com"

    def __init__(self, error: Exception | None = None) -> None:
        self.valid = False
        self.token = None
        self.refreshes = 0
        self._error = error

    def refresh(self, request) -> None:
        self.refreshes += 1
        if self._error is not None:
            raise self._error
        self.token = "tok"
        self.valid = True


@pytest.mark.asyncio
async def test_client_refreshes_credentials_once() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request.headers["Authorization"])
        return httpx.Response(200, json={"documentId": "doc-1"})

    credentials = _FakeCredentials()
    client = GoogleDocsClient(credentials=credentials, transport=httpx.MockTransport(handler))
    try:
        await client.get_document("doc-1")
        await client.get_document("doc-1")
    finally:
        await client.aclose()

    assert seen == ["Bearer tok", "Bearer tok"]
    assert credentials.refreshes == 1
    assert client.service_account_email == "bot@project.iam.gserviceaccount.com"


@pytest.mark.asyncio
async def test_client_reports_refresh_failures() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError(f"unexpected request to {request.url}")

    credentials = _FakeCredentials(google.auth.exceptions.RefreshError("invalid_grant"))
    client = GoogleDocsClient(credentials=credentials, transport=httpx.MockTransport(handler))
    try:
        with pytest.raises(GoogleDocsError) as excinfo:
            await client.get_document("doc-1")
    finally:
        await client.aclose()

    assert excinfo.value.is_permission_error
    assert "invalid_grant" in excinfo.value.details
