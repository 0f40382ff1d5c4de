"""Tests for GeminiProvider."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from pagepilot.config import Settings
from pagepilot.llm.gemini import GeminiProvider, to_gemini_contents


def _settings() -> Settings:
    return Settings(GEMINI_API_KEY="secret-key", GEMINI_MODEL="gemini-test", _env_file=None)


def _mock_response(data: dict, status_code: int = 200) -> MagicMock:
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = data
    resp.raise_for_status = MagicMock()
    return resp


def _mock_client(*responses: MagicMock) -> AsyncMock:
    client = AsyncMock()
    client.__aenter__ = AsyncMock(return_value=client)
    client.__aexit__ = AsyncMock(return_value=False)
    client.post = AsyncMock(side_effect=list(responses))
    return client


def _candidate(text: str) -> dict:
    return {"candidates": [{"content": {"role": "model", "parts": [{"text": text}]}}]}


def test_to_gemini_contents_maps_roles():
    contents = to_gemini_contents(
        [{"role": "user", "content": "hi"}, {"role": "assistant", "content": "hello"}]
    )
    assert contents == [
        {"role": "user", "parts": [{"text": "hi"}]},
        {"role": "model", "parts": [{"text": "hello"}]},
    ]


@pytest.mark.asyncio
async def test_generate_returns_first_candidate_text():
    client = _mock_client(_mock_response(_candidate("true")))

    with patch("pagepilot.llm.gemini.httpx.AsyncClient", return_value=client):
        response = await GeminiProvider(_settings()).generate([{"role": "user", "content": "question"}])

    assert response.content == "true"
    path = client.post.call_args[0][0]
    assert path == "/models/gemini-test:generateContent"
    assert client.post.call_args.kwargs["headers"]["x-goog-api-key"] == "secret-key"
    assert client.post.call_args.kwargs["json"] == {
        "contents": [{"role": "user", "parts": [{"text": "question"}]}]
    }


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "payload",
    [{}, {"candidates": []}, {"candidates": [{}]}, {"candidates": [{"content": {"parts": []}}]}],
)
async def test_generate_missing_pieces_give_empty_text(payload):
    client = _mock_client(_mock_response(payload))

    with patch("pagepilot.llm.gemini.httpx.AsyncClient", return_value=client):
        response = await GeminiProvider(_settings()).generate([{"role": "user", "content": "q"}])

    assert response.content == ""


@pytest.mark.asyncio
async def test_generate_retries_on_rate_limit():
    client = _mock_client(_mock_response({}, status_code=429), _mock_response(_candidate("ok")))

    with (
        patch("pagepilot.llm.gemini.httpx.AsyncClient", return_value=client),
        patch("pagepilot.llm.gemini.asyncio.sleep", new=AsyncMock()) as sleep,
    ):
        response = await GeminiProvider(_settings()).generate([{"role": "user", "content": "q"}])

    assert response.content == "ok"
    assert client.post.call_count == 2
    sleep.assert_awaited_once_with(5)


@pytest.mark.asyncio
async def test_generate_raises_on_http_error():
    resp = _mock_response({}, status_code=500)
    resp.raise_for_status.side_effect = httpx.HTTPStatusError("boom", request=MagicMock(), response=MagicMock())
    client = _mock_client(resp)

    with patch("pagepilot.llm.gemini.httpx.AsyncClient", return_value=client):
        with pytest.raises(httpx.HTTPStatusError):
            await GeminiProvider(_settings()).generate([{"role": "user", "content": "q"}])
