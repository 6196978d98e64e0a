from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest
from google.genai import errors

from ai_commit_generator.exceptions import ProviderError
from ai_commit_generator.llm.base import GenerateRequest
from ai_commit_generator.llm.gemini import GeminiProvider

DIFF = "diff --git a/x b/x\n+hello\n"


def _model(name, *actions):
    return SimpleNamespace(name=name, supported_actions=list(actions) or None)


async def _pager(models, consumed=None):
    """Stand-in for the SDK's async pager."""
    for model in models:
        if consumed is not None:
            consumed.append(model.name)
        yield model


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.aio.models.list = AsyncMock(side_effect=lambda *a, **kw: _pager([
        _model("models/embedding-001", "embedContent"),
        _model("models/gemini-2.0-flash", "generateContent", "countTokens"),
    ]))
    client.aio.models.generate_content = AsyncMock(
        return_value=SimpleNamespace(text="  Add hello line  ")
    )
    return client


@pytest.fixture
def provider():
    return GeminiProvider(api_key="gm-test")


class TestGeminiGenerateCommitMessage:
    @pytest.mark.asyncio
    async def test_returns_trimmed_text(self, provider, mock_client):
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            result = await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert result == "Add hello line"

    @pytest.mark.asyncio
    async def test_uses_first_generation_capable_model(self, provider, mock_client):
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        kwargs = mock_client.aio.models.generate_content.call_args.kwargs
        assert kwargs["model"] == "models/gemini-2.0-flash"

    @pytest.mark.asyncio
    async def test_prompt_is_single_user_part(self, provider, mock_client):
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        contents = mock_client.aio.models.generate_content.call_args.kwargs["contents"]
        assert len(contents) == 1
        assert contents[0].role == "user"
        assert len(contents[0].parts) == 1
        assert contents[0].parts[0].text.endswith("+hello")

    @pytest.mark.asyncio
    async def test_client_created_with_api_key(self, provider, mock_client):
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client) as mock_cls:
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert mock_cls.call_args.kwargs["api_key"] == "gm-test"

    @pytest.mark.asyncio
    async def test_pinned_model_skips_discovery(self, mock_client):
        provider = GeminiProvider(api_key="gm-test", model="gemini-2.5-flash")
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        mock_client.aio.models.list.assert_not_called()
        assert mock_client.aio.models.generate_content.call_args.kwargs["model"] == "gemini-2.5-flash"


class TestGeminiClientMemoization:
    @pytest.mark.asyncio
    async def test_client_created_once(self, provider, mock_client):
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client) as mock_cls:
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert mock_cls.call_count == 1

    @pytest.mark.asyncio
    async def test_model_discovered_on_every_call(self, provider, mock_client):
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert mock_client.aio.models.list.await_count == 2


class TestGeminiModelDiscovery:
    @pytest.mark.asyncio
    async def test_drains_full_sequence(self, provider, mock_client):
        consumed = []
        models = [
            _model("models/gemini-a", "generateContent"),
            _model("models/gemini-b", "generateContent"),
            _model("models/gemini-c", "embedContent"),
        ]
        mock_client.aio.models.list = AsyncMock(side_effect=lambda *a, **kw: _pager(models, consumed))
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert consumed == ["models/gemini-a", "models/gemini-b", "models/gemini-c"]
        assert mock_client.aio.models.generate_content.call_args.kwargs["model"] == "models/gemini-a"

    @pytest.mark.asyncio
    async def test_no_qualifying_model(self, provider, mock_client):
        mock_client.aio.models.list = AsyncMock(side_effect=lambda *a, **kw: _pager([
            _model("models/embedding-001", "embedContent"),
            _model("models/aqa"),
        ]))
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            with pytest.raises(ProviderError, match="No Gemini models available for this API key."):
                await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        mock_client.aio.models.generate_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_empty_model_list(self, provider, mock_client):
        mock_client.aio.models.list = AsyncMock(side_effect=lambda *a, **kw: _pager([]))
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            with pytest.raises(ProviderError, match="No Gemini models available"):
                await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        mock_client.aio.models.generate_content.assert_not_called()

    @pytest.mark.asyncio
    async def test_skips_models_without_name(self, provider, mock_client):
        mock_client.aio.models.list = AsyncMock(side_effect=lambda *a, **kw: _pager([
            _model(None, "generateContent"),
            _model("models/gemini-named", "generateContent"),
        ]))
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert mock_client.aio.models.generate_content.call_args.kwargs["model"] == "models/gemini-named"


class TestGeminiErrors:
    @pytest.mark.asyncio
    async def test_wraps_unparsable_response(self, provider, mock_client):
        mock_client.aio.models.generate_content = AsyncMock(
            side_effect=errors.UnknownApiResponseError("Failed to parse response as JSON")
        )
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            with pytest.raises(ProviderError, match="Gemini returned an unexpected response.") as exc_info:
                await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert isinstance(exc_info.value.__cause__, errors.UnknownApiResponseError)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("text", [None, ""])
    async def test_empty_response(self, provider, mock_client, text):
        mock_client.aio.models.generate_content = AsyncMock(return_value=SimpleNamespace(text=text))
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            with pytest.raises(ProviderError, match="Gemini returned empty response."):
                await provider.generate_commit_message(GenerateRequest(diff=DIFF))

    @pytest.mark.asyncio
    async def test_wraps_api_error(self, provider, mock_client):
        mock_client.aio.models.generate_content = AsyncMock(
            side_effect=errors.ClientError(403, {"error": {"message": "denied", "status": "PERMISSION_DENIED"}})
        )
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            with pytest.raises(ProviderError, match="Gemini API error: 403") as exc_info:
                await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        assert exc_info.value.__cause__ is not None

    @pytest.mark.asyncio
    async def test_wraps_listing_error(self, provider, mock_client):
        mock_client.aio.models.list = AsyncMock(
            side_effect=errors.ClientError(400, {"error": {"message": "API key not valid", "status": "INVALID_ARGUMENT"}})
        )
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            with pytest.raises(ProviderError, match="Gemini API error: 400"):
                await provider.generate_commit_message(GenerateRequest(diff=DIFF))

    @pytest.mark.asyncio
    async def test_wraps_transport_error(self, provider, mock_client):
        mock_client.aio.models.generate_content = AsyncMock(side_effect=httpx.ConnectError("refused"))
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            with pytest.raises(ProviderError, match="Gemini API request failed"):
                await provider.generate_commit_message(GenerateRequest(diff=DIFF))


class TestGeminiClose:
    @pytest.mark.asyncio
    async def test_aclose_releases_client(self, provider, mock_client):
        mock_client.aio.aclose = AsyncMock()
        with patch("ai_commit_generator.llm.gemini.genai.Client", return_value=mock_client):
            await provider.generate_commit_message(GenerateRequest(diff=DIFF))
        await provider.aclose()
        mock_client.aio.aclose.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_aclose_without_client_is_noop(self, provider):
        with patch("ai_commit_generator.llm.gemini.genai.Client") as mock_cls:
            await provider.aclose()
        mock_cls.assert_not_called()
