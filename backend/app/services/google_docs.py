"""Google Drive/Docs REST client used to generate contract summaries.

Service-account credentials from google-auth mint and refresh the OAuth
access token; the Drive and Docs calls themselves go through httpx.
"""

import asyncio
import logging
from functools import lru_cache
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

import google.auth.exceptions
import httpx
from google.auth.transport.requests import Request
from google.oauth2 import service_account

from app.config import settings

logger = logging.getLogger(__name__)

TOKEN_URL = "https://oauth2.googleapis.com/token"
DRIVE_FILES_URL = "https://www.googleapis.com/drive/v3/files"
DOCS_URL = "https://docs.googleapis.com/v1/documents"
SCOPES = (
    "https://www.googleapis.com/auth/documents",
    "https://www.googleapis.com/auth/drive",
)
DOCUMENT_MIME_TYPE = "application/vnd.google-apps.document"
DEFAULT_DOCUMENT_NAME = "Contrato generado"
FONT_FAMILY = "Times New Roman"
FONT_SIZE_PT = 12
OBJECT_TITLE = "OBJETO CONTRACTUAL:"

CONTRACT_TABLE: Tuple[Tuple[str, str], ...] = (
    ("NOMBRE DEL CONTRATANTE", "NOMBRE ORGANIZACIÓN"),
    ("NIT DEL CONTRATANTE", "NIT"),
    ("DIRECCIÓN DEL CONTRATANTE", "DIRECCIÓN CONTRATANTE"),
    ("NOMBRE REPRESENTANTE LEGAL", "REPRESENTANTE LEGAL"),
    ("IDENTIFICACIÓN REPRESENTANTE LEGAL", "IDENTIFICACIÓN"),
    ("NOMBRE DEL CONTRATISTA", "NOMBRE DEL CONTRATISTA"),
    ("IDENTIFICACIÓN CONTRATISTA", "IDENTIFICACIÓN"),
    ("DIRECCIÓN DEL CONTRATISTA", "DIRECCIÓN DEL CONTRATISTA"),
    ("TELÉFONO CONTRATISTA", "TELÉFONO CONTRATISTA"),
    ("VALOR TOTAL DEL CONTRATO", "$"),
    ("VALOR MENSUAL DEL CONTRATO", "VALOR MENSUAL DEL CONTRATO"),
    ("FORMA DE PAGO", "AL FINALIZAR EL CONTRATO"),
    ("PLAZO", "PLAZO"),
)
_STYLE_FIELDS = "weightedFontFamily,fontSize,bold"


class GoogleDocsError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None, details: Optional[str] = None) -> None:
        super().__init__(message)
        self.status = status
        self.details = details

    @property
    def is_permission_error(self) -> bool:
        text = f"{self} {self.details or ''}".lower()
        return self.status in {401, 403} or any(
            word in text for word in ("authentication", "permission", "access")
        )


def service_account_credentials(email: str, private_key: str) -> service_account.Credentials:
    return service_account.Credentials.from_service_account_info(
        {"client_email": email, "private_key": private_key, "token_uri": TOKEN_URL},
        scopes=list(SCOPES),
    )


def body_end_index(document: Dict[str, Any]) -> int:
    content = ((document or {}).get("body") or {}).get("content") or []
    if not content:
        return 1
    return int(content[-1].get("endIndex") or 1)


def find_first_table(document: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    for element in ((document or {}).get("body") or {}).get("content") or []:
        if element.get("table"):
            return element["table"]
    return None


def _cell_ranges(table: Dict[str, Any], rows: int, columns: int):
    table_rows = table.get("tableRows") or []
    for row in range(rows):
        cells = (table_rows[row].get("tableCells") or []) if row < len(table_rows) else []
        for col in range(columns):
            if col >= len(cells):
                continue
            content = cells[col].get("content") or []
            if not content or not content[0].get("paragraph"):
                continue
            start = content[0].get("startIndex")
            end = content[0].get("endIndex")
            if start is None:
                continue
            yield row, col, int(start), None if end is None else int(end)


def table_text_requests(table: Dict[str, Any], data: Sequence[Sequence[str]]) -> List[dict]:
    """Cell inserts in reverse document order so earlier indices stay valid."""
    inserts = [
        {"insertText": {"location": {"index": start}, "text": data[row][col]}}
        for row, col, start, _end in _cell_ranges(table, len(data), len(data[0]))
    ]
    inserts.reverse()
    return inserts


def table_style_requests(table: Dict[str, Any], rows: int, columns: int) -> List[dict]:
    requests_: List[dict] = []
    for _row, col, start, end in _cell_ranges(table, rows, columns):
        if end is None:
            continue
        requests_.append(
            {
                "updateTextStyle": {
                    # Leave the paragraph terminator out of the range.
                    "range": {"startIndex": start, "endIndex": end - 1},
                    "textStyle": {
                        "weightedFontFamily": {"fontFamily": FONT_FAMILY},
                        "fontSize": {"magnitude": FONT_SIZE_PT, "unit": "PT"},
                        "bold": col == 0,
                    },
                    "fields": _STYLE_FIELDS,
                }
            }
        )
    return requests_


def object_section_text(contract_object: str) -> str:
    return f"\n\n{OBJECT_TITLE}\n\n{contract_object}"


def object_style_requests(final_end_index: int, text: str) -> List[dict]:
    start = final_end_index - len(text) - 1
    return [
        {
            "updateTextStyle": {
                "range": {"startIndex": start, "endIndex": final_end_index - 1},
                "textStyle": {
                    "weightedFontFamily": {"fontFamily": FONT_FAMILY},
                    "fontSize": {"magnitude": FONT_SIZE_PT, "unit": "PT"},
                    "bold": False,
                },
                "fields": _STYLE_FIELDS,
            }
        },
        {
            "updateTextStyle": {
                "range": {"startIndex": start + 2, "endIndex": start + 2 + len(OBJECT_TITLE)},
                "textStyle": {"bold": True},
                "fields": "bold",
            }
        },
    ]


class GoogleDocsClient:
    def __init__(
        self,
        *,
        credentials: service_account.Credentials,
        request_timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._credentials = credentials
        self._client = httpx.AsyncClient(timeout=request_timeout, transport=transport)

    @property
    def service_account_email(self) -> str:
        return self._credentials.service_account_email

    async def aclose(self) -> None:
        await self._client.aclose()

    async def _ensure_token(self) -> str:
        # google-auth refreshes synchronously over requests.
        if not self._credentials.valid:
            try:
                await asyncio.to_thread(self._credentials.refresh, Request())
            except google.auth.exceptions.RefreshError as exc:
                raise GoogleDocsError("Google authentication failed", status=401, details=str(exc)) from exc
            except google.auth.exceptions.TransportError as exc:
                raise GoogleDocsError("Google authentication unreachable", status=502, details=str(exc)) from exc
        return self._credentials.token

    async def _request(self, method: str, url: str, **kwargs: Any) -> Dict[str, Any]:
        token = await self._ensure_token()
        response = await self._client.request(
            method, url, headers={"Authorization": f"Bearer {token}"}, **kwargs
        )
        if response.status_code >= 400:
            raise GoogleDocsError(
                f"Google API {method} {url} failed with {response.status_code}",
                status=response.status_code,
                details=response.text,
            )
        return response.json() if response.content else {}

    async def create_document(self, name: str, folder_id: Optional[str]) -> str:
        body: Dict[str, Any] = {"name": name, "mimeType": DOCUMENT_MIME_TYPE}
        if folder_id:
            body["parents"] = [folder_id]
        payload = await self._request(
            "POST",
            DRIVE_FILES_URL,
            params={"fields": "id", "supportsAllDrives": "true"},
            json=body,
        )
        document_id = payload.get("id")
        if not document_id:
            raise GoogleDocsError("No se pudo crear el documento en Google Drive")
        return str(document_id)

    async def get_document(self, document_id: str) -> Dict[str, Any]:
        return await self._request("GET", f"{DOCS_URL}/{document_id}")

    async def batch_update(self, document_id: str, requests_: List[dict]) -> Dict[str, Any]:
        if not requests_:
            return {}
        return await self._request(
            "POST", f"{DOCS_URL}/{document_id}:batchUpdate", json={"requests": requests_}
        )


async def build_contract_summary(
    docs: GoogleDocsClient,
    draft_object: Callable[[str], Any],
    paraphrase: str,
    name: Optional[str] = None,
    folder_id: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a Google Doc with the general-data table and an AI-drafted object clause.

    ``draft_object`` is awaited with the paraphrased object and returns the
    clause text.
    """
    document_id = await docs.create_document(name or DEFAULT_DOCUMENT_NAME, folder_id)
    document = await docs.get_document(document_id)
    rows, columns = len(CONTRACT_TABLE), 2
    await docs.batch_update(
        document_id,
        [
            {
                "insertTable": {
                    "rows": rows,
                    "columns": columns,
                    "location": {"index": body_end_index(document) - 1},
                }
            }
        ],
    )

    table = find_first_table(await docs.get_document(document_id))
    if table is None:
        raise GoogleDocsError("No se pudo encontrar la tabla creada")
    await docs.batch_update(document_id, table_text_requests(table, CONTRACT_TABLE))

    table = find_first_table(await docs.get_document(document_id))
    if table is not None:
        await docs.batch_update(document_id, table_style_requests(table, rows, columns))

    contract_object = await draft_object(paraphrase)
    text = object_section_text(contract_object)
    end_index = body_end_index(await docs.get_document(document_id))
    await docs.batch_update(
        document_id,
        [{"insertText": {"location": {"index": end_index - 1}, "text": text}}],
    )
    final_end = body_end_index(await docs.get_document(document_id))
    await docs.batch_update(document_id, object_style_requests(final_end, text))
    logger.info("Generated contract summary document %s", document_id)
    return {"document_id": document_id, "rows_created": rows, "contract_object": contract_object}


@lru_cache(maxsize=1)
def get_docs_client() -> Optional[GoogleDocsClient]:
    if not (settings.google_service_account_email and settings.google_service_account_private_key):
        logger.warning("Google service account is not configured. Contract generation is disabled.")
        return None
    try:
        credentials = service_account_credentials(
            settings.google_service_account_email,
            settings.google_service_account_private_key,
        )
    except ValueError:
        logger.exception("Google service account private key could not be loaded.")
        return None
    return GoogleDocsClient(credentials=credentials)
