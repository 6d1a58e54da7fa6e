"""Streaming client for OpenAI-compatible chat completion APIs."""

import asyncio
import json
from typing import Any, AsyncIterator, Dict, Optional

import httpx

from sitesmith.models.config import LLMConfig
from sitesmith.utils.logging import get_logger


logger = get_logger(__name__)

# Errors worth another attempt; HTTP status errors are not among them
RETRYABLE_ERRORS = (httpx.ConnectError, httpx.ConnectTimeout, httpx.ReadTimeout)

SSE_PREFIX = "data: "
SSE_DONE = "[DONE]"


def _extract_content_from_openai_chunk(data: Dict[str, Any]) -> Optional[str]:
    """
    Pull the text out of one reply chunk.

    Streaming chunks carry `choices[0].delta.content`; servers that ignore
    `"stream": true` send one object with `choices[0].message.content`.
    """
    try:
        choice = data["choices"][0]
    except (KeyError, IndexError, TypeError):
        return None
    if not isinstance(choice, dict):
        return None
    for part in ("delta", "message"):
        content = (choice.get(part) or {}).get("content")
        if content is not None:
            return content
    return None


def _decode_line(line: str) -> Optional[Dict[str, Any]]:
    """Decode one line of the response body, SSE-framed or plain JSON.

    Returns None for blank lines and the end-of-stream marker.

    Raises:
        json.JSONDecodeError: If the payload is not JSON
    """
    payload = line.strip()
    if payload.startswith(SSE_PREFIX.strip()):
        payload = payload[len(SSE_PREFIX.strip()):].lstrip()
    if not payload or payload == SSE_DONE:
        return None
    return json.loads(payload)


class LLMClient:
    """
    Chat completion client that streams the reply.

    Transient connection failures are retried as long as nothing has been
    yielded yet; once fragments reached the caller a retry would repeat them.
    """

    def __init__(self, config: LLMConfig):
        self.config = config
        # Whole pages can pause for a long time between chunks
        self.timeout = httpx.Timeout(10.0, read=120.0)

    @property
    def url(self) -> str:
        return str(self.config.endpoint).rstrip("/") + "/chat/completions"

    def _payload(self, prompt: str, system_prompt: str) -> Dict[str, Any]:
        return {
            "model": self.config.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": prompt},
            ],
            "stream": True,
            "temperature": self.config.temperature,
            "max_tokens": self.config.max_tokens,
        }

    async def stream_text(
        self,
        prompt: str,
        system_prompt: str,
        max_retries: int = 1,
        retry_delay: float = 2.0,
        request_id: Optional[str] = None,
    ) -> AsyncIterator[str]:
        """
        Stream reply text fragments in arrival order.

        Args:
            prompt: User prompt for the LLM
            system_prompt: System prompt for the LLM
            max_retries: Extra attempts after a transient error (default: 1)
            retry_delay: Seconds to wait between attempts (default: 2.0)
            request_id: Identifier used in log events

        Raises:
            httpx.HTTPError: On HTTP errors, or network errors once retries are used up

        Example:
            >>> async for fragment in client.stream_text(prompt, system_prompt):
            ...     html += fragment
        """
        request_id = request_id or "generate"
        payload = self._payload(prompt, system_prompt)
        headers = {"Authorization": f"Bearer {self.config.api_key}"}

        logger.info(
            "llm_request_started",
            request_id=request_id,
            model=self.config.model,
            endpoint=self.url,
            prompt_length=len(prompt),
        )

        fragment_count = 0
        for attempt in range(max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout) as client:
                    async with client.stream("POST", self.url, json=payload, headers=headers) as response:
                        response.raise_for_status()
                        async for line in response.aiter_lines():
                            try:
                                data = _decode_line(line)
                            except json.JSONDecodeError as e:
                                logger.error("llm_malformed_json", request_id=request_id, line=line, error=str(e))
                                continue
                            fragment = _extract_content_from_openai_chunk(data) if data else None
                            if fragment:
                                fragment_count += 1
                                yield fragment

                logger.info("llm_request_completed", request_id=request_id, fragment_count=fragment_count)
                return

            except RETRYABLE_ERRORS as e:
                if fragment_count or attempt == max_retries:
                    logger.error(
                        "llm_request_failed",
                        request_id=request_id,
                        attempts=attempt + 1,
                        fragment_count=fragment_count,
                        error=str(e),
                    )
                    raise
                logger.warning(
                    "llm_request_retry",
                    request_id=request_id,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    error=str(e),
                )
                await asyncio.sleep(retry_delay)

            except httpx.HTTPStatusError as e:
                logger.error("llm_http_error", request_id=request_id, status_code=e.response.status_code)
                raise

    async def complete(self, prompt: str, system_prompt: str, **kwargs) -> str:
        """Collect a whole streamed reply into one string."""
        return "".join([fragment async for fragment in self.stream_text(prompt, system_prompt, **kwargs)])
