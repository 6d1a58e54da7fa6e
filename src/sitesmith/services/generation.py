"""Generation collaborator: turn business details into a stored HTML page."""

import re
from datetime import datetime, timezone
from typing import Optional, Protocol

import httpx

from sitesmith.models.config import LLMConfig
from sitesmith.models.page import BusinessInfo, GeneratedPage
from sitesmith.services.exceptions import GenerationError
from sitesmith.services.file_operations import FilePersistence
from sitesmith.services.llm_client import LLMClient
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

SYSTEM_PROMPT = (
    "You are an expert web developer and designer specializing in creating "
    "beautiful, responsive websites."
)

_DOCUMENT_RE = re.compile(r"<!DOCTYPE html>.*</html>", re.IGNORECASE | re.DOTALL)
_FENCE_RE = re.compile(r"^```(?:html)?\s*|\s*```$", re.IGNORECASE)
_SLUG_RE = re.compile(r"[^a-z0-9]+")


class GenerationService(Protocol):
    """Upstream collaborator producing the initial document."""

    async def generate(self, info: BusinessInfo) -> GeneratedPage: ...


def build_page_prompt(info: BusinessInfo) -> str:
    """Assemble the user prompt for one business."""
    lines = [
        f"Create a complete single-page website for {info.business_name}, "
        f"a {info.business_type} business.",
    ]
    if info.description:
        lines.append(f"About the business: {info.description}")
    if info.services:
        lines.append("Services to feature in a section with id=\"services\": " + ", ".join(info.services))
    lines.append("Return only the full HTML document, starting with <!DOCTYPE html>.")
    return "\n".join(lines)


def extract_html_document(reply: str) -> str:
    """
    Pull the HTML document out of an LLM reply.

    Prefers the `<!DOCTYPE html> ... </html>` span; otherwise strips Markdown
    code fences and returns the rest.

    Raises:
        GenerationError: If the reply holds no markup at all
    """
    match = _DOCUMENT_RE.search(reply)
    if match:
        return match.group(0)

    stripped = _FENCE_RE.sub("", reply.strip())
    if "<" not in stripped:
        raise GenerationError("LLM reply did not contain an HTML document")
    return stripped


def page_folder(info: BusinessInfo, now: datetime) -> str:
    """Folder name for a new page: `<type slug>-<UTC timestamp>`."""
    slug = _SLUG_RE.sub("-", info.business_type.lower()).strip("-") or "website"
    return f"{slug}-{now.strftime('%Y%m%dT%H%M%S')}"


class LLMGenerationService:
    """Generates a page with the LLM and stores it through file persistence."""

    def __init__(
        self,
        llm_config: LLMConfig,
        persistence: FilePersistence,
        llm_client: Optional[LLMClient] = None,
    ) -> None:
        self.llm_client = llm_client or LLMClient(llm_config)
        self.persistence = persistence

    async def generate(self, info: BusinessInfo) -> GeneratedPage:
        """
        Generate and store a page for a business.

        Raises:
            GenerationError: On HTTP failures or replies without HTML
        """
        logger.info("generation_started", business_type=info.business_type)

        try:
            reply = await self.llm_client.complete(build_page_prompt(info), SYSTEM_PROMPT)
        except httpx.HTTPError as e:
            logger.error("generation_failed", error=str(e))
            raise GenerationError(f"LLM request failed: {e}") from e

        html_content = extract_html_document(reply)
        file_path = self.persistence.store_new(html_content, page_folder(info, datetime.now(timezone.utc)))

        logger.info("generation_completed", file_path=file_path, size=len(html_content))
        return GeneratedPage(html_content=html_content, file_path=file_path)
