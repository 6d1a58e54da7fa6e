"""Unit tests for the LLM-backed generation service."""

from datetime import datetime, timezone
from unittest.mock import AsyncMock, Mock

import httpx
import pytest

from sitesmith.models.config import LLMConfig
from sitesmith.models.page import BusinessInfo
from sitesmith.services.exceptions import GenerationError
from sitesmith.services.file_operations import FilePersistence
from sitesmith.services.generation import (
    LLMGenerationService,
    build_page_prompt,
    extract_html_document,
    page_folder,
)


DOCUMENT = "<!DOCTYPE html><html><body><h1>Acme</h1></body></html>"


@pytest.fixture
def info():
    return BusinessInfo(
        business_name="Acme Bakery",
        business_type="Artisan Bakery",
        description="Family bakery since 1920",
        services=["Bread", "Cakes"],
    )


@pytest.fixture
def llm_config():
    return LLMConfig(endpoint="https://api.test.com/v1", api_key="test-key", model="test-model")


class TestPrompt:
    def test_prompt_mentions_business(self, info):
        prompt = build_page_prompt(info)

        assert "Acme Bakery" in prompt
        assert "Artisan Bakery" in prompt
        assert "Family bakery since 1920" in prompt
        assert "Bread, Cakes" in prompt
        assert 'id="services"' in prompt

    def test_minimal_prompt(self):
        prompt = build_page_prompt(BusinessInfo(business_name="Acme", business_type="plumber"))
        assert "services" not in prompt
        assert "About the business" not in prompt

    def test_blank_name_rejected(self):
        with pytest.raises(ValueError):
            BusinessInfo(business_name=" ", business_type="plumber")


class TestExtractHtmlDocument:
    """Test pulling the document out of LLM replies."""

    def test_document_with_chatter(self):
        reply = f"Sure! Here is your site:\n\n{DOCUMENT}\n\nLet me know if you need changes."
        assert extract_html_document(reply) == DOCUMENT

    def test_lowercase_doctype(self):
        reply = "<!doctype html><html></html>"
        assert extract_html_document(reply) == reply

    def test_fenced_fragment(self):
        reply = "```html\n<html><body>Hi</body></html>\n```"
        assert extract_html_document(reply) == "<html><body>Hi</body></html>"

    def test_no_markup(self):
        with pytest.raises(GenerationError):
            extract_html_document("I cannot help with that.")


def test_page_folder(info):
    now = datetime(2026, 3, 4, 5, 6, 7, tzinfo=timezone.utc)
    assert page_folder(info, now) == "artisan-bakery-20260304T050607"


class TestLLMGenerationService:
    """Test generation end to end with a mocked LLM client."""

    @pytest.mark.asyncio
    async def test_generate_stores_page(self, tmp_path, info, llm_config):
        client = Mock()
        client.complete = AsyncMock(return_value=f"```html\n{DOCUMENT}\n```")
        persistence = FilePersistence(tmp_path)

        service = LLMGenerationService(llm_config, persistence, llm_client=client)
        page = await service.generate(info)

        assert page.html_content == DOCUMENT
        assert page.file_path.startswith("artisan-bakery-")
        assert page.file_path.endswith("/index.html")
        assert (tmp_path / page.file_path).read_text() == DOCUMENT

        prompt, system_prompt = client.complete.call_args.args
        assert "Acme Bakery" in prompt
        assert "web developer" in system_prompt

    @pytest.mark.asyncio
    async def test_http_error_becomes_generation_error(self, tmp_path, info, llm_config):
        client = Mock()
        client.complete = AsyncMock(side_effect=httpx.ConnectError("Connection refused"))

        service = LLMGenerationService(llm_config, FilePersistence(tmp_path), llm_client=client)

        with pytest.raises(GenerationError, match="LLM request failed"):
            await service.generate(info)
        assert list(tmp_path.iterdir()) == []

    @pytest.mark.asyncio
    async def test_reply_without_html(self, tmp_path, info, llm_config):
        client = Mock()
        client.complete = AsyncMock(return_value="Sorry, no.")

        service = LLMGenerationService(llm_config, FilePersistence(tmp_path), llm_client=client)

        with pytest.raises(GenerationError):
            await service.generate(info)

    def test_default_client(self, tmp_path, llm_config):
        service = LLMGenerationService(llm_config, FilePersistence(tmp_path))
        assert service.llm_client.config == llm_config
