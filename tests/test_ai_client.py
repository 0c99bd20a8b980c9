import json

import httpx
import pytest

from app.services.ai import AIServiceError, GeminiClient, draft_contract_object, verify_document


def _answer(text: str) -> dict:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


def _client(handler, max_retries: int = 3) -> GeminiClient:
    return GeminiClient(
        api_key="key",
        model="gemini-test",
        base_url="https://ai.test/v1beta",
        max_retries=max_retries,
        retry_base_delay=0,
        transport=httpx.MockTransport(handler),
    )


@pytest.mark.asyncio
async def test_verify_document_reads_the_verdict() -> None:
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json=_answer(" True \n"))

    client = _client(handler)
    is_valid, answer = await verify_document(client, b"%PDF", "application/pdf", "RUT")
    await client.aclose()

    assert is_valid is True
    assert answer == "true"
    assert seen[0].url.path == "/v1beta/models/gemini-test:generateContent"
    assert seen[0].headers["x-goog-api-key"] == "key"
    parts = json.loads(seen[0].content)["contents"][0]["parts"]
    assert '"RUT"' in parts[0]["text"]
    assert parts[1]["inline_data"] == {"mime_type": "application/pdf", "data": "JVBERg=="}


@pytest.mark.asyncio
async def test_verify_document_rejects_other_answers() -> None:
    client = _client(lambda request: httpx.Response(200, json=_answer("false")))
    is_valid, answer = await verify_document(client, b"x", "image/png", "Cédula")
    await client.aclose()
    assert (is_valid, answer) == (False, "false")


@pytest.mark.asyncio
async def test_transient_status_is_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        if len(calls) == 1:
            return httpx.Response(503, headers={"Retry-After": "0.01"}, text="busy")
        return httpx.Response(200, json=_answer("Objeto redactado"))

    client = _client(handler)
    text = await draft_contract_object(client, "obra civil")
    await client.aclose()

    assert text == "Objeto redactado"
    assert len(calls) == 2
    assert "obra civil" in json.loads(calls[0].content)["contents"][0]["parts"][0]["text"]


@pytest.mark.asyncio
async def test_client_error_is_not_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(400, text="bad request")

    client = _client(handler)
    with pytest.raises(AIServiceError) as exc:
        await client.generate_text("hola")
    await client.aclose()

    assert exc.value.status == 400
    assert len(calls) == 1


@pytest.mark.asyncio
async def test_retries_are_bounded() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        return httpx.Response(429, text="slow down")

    client = _client(handler, max_retries=2)
    with pytest.raises(AIServiceError) as exc:
        await client.generate_text("hola")
    await client.aclose()

    assert exc.value.status == 429
    assert len(calls) == 2
