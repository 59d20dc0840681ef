"""Unit tests for the Gemini client wrapper."""

from unittest.mock import MagicMock, patch

import pytest

from pantry_chef.clients.gemini import GeminiModel, GenerativeModel
from pantry_chef.models.models import InlineImage
from pantry_chef.utils.config import GenerationSettings


class TestGeminiModelInit:
    """Test client construction."""

    def test_empty_api_key_raises(self):
        with pytest.raises(ValueError, match="GEMINI_API_KEY"):
            GeminiModel(api_key="")

    def test_client_created_with_key(self):
        with patch("pantry_chef.clients.gemini.genai.Client") as client:
            model = GeminiModel(api_key="test-key", model="gemini-test")

        client.assert_called_once_with(api_key="test-key")
        assert model.model == "gemini-test"
        assert isinstance(model, GenerativeModel)

    def test_from_settings_selects_model(self, monkeypatch):
        monkeypatch.setattr("pantry_chef.clients.gemini.config.GEMINI_API_KEY", "test-key")
        settings = GenerationSettings(model="text-model", image_model="vision-model", temperature=0.2)

        with patch("pantry_chef.clients.gemini.genai.Client"):
            text = GeminiModel.from_settings(settings)
            vision = GeminiModel.from_settings(settings, vision=True)

        assert text.model == "text-model"
        assert vision.model == "vision-model"
        assert text.temperature == 0.2


class TestGeminiGenerate:
    """Test a single generate call."""

    @pytest.fixture
    def client(self):
        with patch("pantry_chef.clients.gemini.genai.Client") as client_class:
            yield client_class.return_value

    @pytest.mark.asyncio
    async def test_returns_response_text(self, client):
        client.models.generate_content.return_value = MagicMock(text='{"success": true}')

        result = await GeminiModel(api_key="test-key").generate("Make dinner")

        assert result == '{"success": true}'
        kwargs = client.models.generate_content.call_args.kwargs
        assert kwargs["contents"] == ["Make dinner"]
        assert kwargs["model"] == "gemini-2.5-flash"

    @pytest.mark.asyncio
    async def test_image_is_appended_as_part(self, client):
        client.models.generate_content.return_value = MagicMock(text="[]")
        image = InlineImage(data=b"\xff\xd8\xff", mime_type="image/jpeg")

        with patch("pantry_chef.clients.gemini.types.Part.from_bytes", return_value="image-part") as from_bytes:
            await GeminiModel(api_key="test-key").generate("What is this?", image)

        from_bytes.assert_called_once_with(data=b"\xff\xd8\xff", mime_type="image/jpeg")
        assert client.models.generate_content.call_args.kwargs["contents"] == ["What is this?", "image-part"]

    @pytest.mark.asyncio
    async def test_empty_response_raises(self, client):
        client.models.generate_content.return_value = MagicMock(text=None)

        with pytest.raises(ValueError, match="Empty response"):
            await GeminiModel(api_key="test-key").generate("Make dinner")

    @pytest.mark.asyncio
    async def test_sdk_errors_propagate(self, client):
        client.models.generate_content.side_effect = RuntimeError("429 quota exceeded")

        with pytest.raises(RuntimeError, match="quota"):
            await GeminiModel(api_key="test-key").generate("Make dinner")
