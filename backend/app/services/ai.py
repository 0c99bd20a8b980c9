import asyncio
import base64
import logging
from functools import lru_cache
from typing import Any, List, Optional, Tuple

import httpx

from app.config import settings

logger = logging.getLogger(__name__)
_RETRYABLE_STATUSES = {429, 500, 502, 503, 504}

CONTRACT_OBJECT_PROMPT = (
    "Eres un agente de inteligencia artificial especializado en la redacción del Objeto "
    "Contractual para contratos en Colombia. Tu redacción debe ser clara, precisa y legalmente "
    "estructurada, evitando ambigüedades. El objeto contractual debe definir con exactitud la "
    "acción, el alcance y la finalidad del contrato.\n\n"
    "Objeto parafraseado: {paraphrase}\n\n"
    "Redacta un objeto contractual profesional y completo basado en la información proporcionada."
)
VERIFY_DOCUMENT_PROMPT = (
    'Analyze this document and determine if it corresponds to: "{name}".\n\n'
    "Look at the content, title, headers, and overall structure of the document.\n\n"
    'If this document appears to be related to "{name}" or contains information that would be '
    'expected in such a document, respond with "true".\n'
    'If this document is clearly something else or unrelated to "{name}", respond with "false".\n\n'
    'Only respond with the word "true" or "false", nothing else.'
)


class AIServiceError(RuntimeError):
    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


def _parse_retry_after(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        seconds = float(text)
    except ValueError:
        return None
    if seconds <= 0:
        return None
    return seconds


def _extract_text(payload: Any) -> str:
    candidates = (payload or {}).get("candidates") or []
    if not candidates:
        return ""
    parts = ((candidates[0] or {}).get("content") or {}).get("parts") or []
    return "".join(str(part.get("text") or "") for part in parts if isinstance(part, dict)).strip()


class GeminiClient:
    """generateContent client with bounded retry on transient statuses."""

    def __init__(
        self,
        *,
        api_key: str,
        model: str,
        base_url: str,
        request_timeout: float = 60.0,
        max_retries: int = 3,
        retry_base_delay: float = 2.0,
        max_concurrency: int = 4,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.model = model
        self._max_retries = max(1, max_retries)
        self._retry_base_delay = max(0.0, retry_base_delay)
        self._semaphore = asyncio.Semaphore(max(1, max_concurrency))
        self._client = httpx.AsyncClient(
            base_url=base_url.rstrip("/"),
            headers={"x-goog-api-key": api_key},
            timeout=request_timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def generate(self, parts: List[dict]) -> str:
        body = {"contents": [{"role": "user", "parts": parts}]}
        path = f"/models/{self.model}:generateContent"
        async with self._semaphore:
            for attempt in range(1, self._max_retries + 1):
                try:
                    response = await self._client.post(path, json=body)
                    response.raise_for_status()
                    return _extract_text(response.json())
                except httpx.HTTPStatusError as exc:
                    status_code = exc.response.status_code
                    if status_code not in _RETRYABLE_STATUSES or attempt >= self._max_retries:
                        raise AIServiceError(
                            f"AI provider returned {status_code}: {exc.response.text[:500]}",
                            status=status_code,
                        ) from exc
                    retry_after = _parse_retry_after(exc.response.headers.get("Retry-After"))
                    delay = retry_after if retry_after is not None else self._retry_base_delay * attempt
                    logger.warning(
                        "AI provider returned %s (attempt %s/%s), retrying in %.1fs",
                        status_code,
                        attempt,
                        self._max_retries,
                        delay,
                    )
                    await asyncio.sleep(delay)
                except httpx.TransportError as exc:
                    if attempt >= self._max_retries:
                        raise AIServiceError(f"AI provider unreachable: {exc!r}") from exc
                    delay = self._retry_base_delay * attempt
                    logger.warning(
                        "AI request failed on attempt %s/%s, retrying in %.1fs: %r",
                        attempt,
                        self._max_retries,
                        delay,
                        exc,
                    )
                    await asyncio.sleep(delay)
        raise AIServiceError("AI request exhausted its retries")

    async def generate_text(self, prompt: str) -> str:
        return await self.generate([{"text": prompt}])

    async def generate_with_file(self, prompt: str, data: bytes, mime_type: str) -> str:
        return await self.generate(
            [
                {"text": prompt},
                {
                    "inline_data": {
                        "mime_type": mime_type or "application/octet-stream",
                        "data": base64.b64encode(data).decode("ascii"),
                    }
                },
            ]
        )


async def verify_document(
    client: GeminiClient, content: bytes, mime_type: str, document_name: str
) -> Tuple[bool, str]:
    """Ask the model whether a file looks like ``document_name``.

    Returns the verdict and the normalized raw answer.
    """
    answer = await client.generate_with_file(
        VERIFY_DOCUMENT_PROMPT.format(name=document_name), content, mime_type
    )
    normalized = (answer or "").strip().lower()
    return normalized == "true", normalized


async def draft_contract_object(client: GeminiClient, paraphrase: str) -> str:
    return await client.generate_text(CONTRACT_OBJECT_PROMPT.format(paraphrase=paraphrase))


@lru_cache(maxsize=1)
def get_ai_client() -> Optional[GeminiClient]:
    if not settings.gemini_api_key:
        logger.warning("GEMINI_API_KEY is not configured. AI features are disabled.")
        return None
    return GeminiClient(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        request_timeout=settings.ai_request_timeout_sec,
        max_retries=settings.ai_max_retries,
        retry_base_delay=settings.ai_retry_base_delay_seconds,
        max_concurrency=settings.ai_max_concurrency,
    )
