"""
Completion provider base class.

Each backend shapes the provider-neutral PromptPayload into its own request
body and pulls the reply text back out. Transport, timeouts and error
mapping live here so every backend fails the same way.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, TYPE_CHECKING

from mortgage_chat.errors import CompletionError, CompletionTimeoutError
from mortgage_chat.orchestration.conversation_window import PromptPayload

if TYPE_CHECKING:
    import aiohttp

logger = logging.getLogger(__name__)


class CompletionProvider(ABC):
    """
    Calls an external text-completion API over a persistent HTTP session.

    Subclasses provide the endpoint, headers, request body and reply
    extraction. complete() never retries.
    """

    name: str = "provider"

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        max_tokens: int = 1000,
        timeout_s: float = 30.0,
    ):
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.rstrip("/")
        self.max_tokens = max_tokens
        self.timeout_s = timeout_s

        self._session: Optional['aiohttp.ClientSession'] = None

    async def _get_session(self):
        """Get or create persistent aiohttp session with connection pooling."""
        if self._session is None or self._session.closed:
            import aiohttp

            connector = aiohttp.TCPConnector(
                limit=10,
                ttl_dns_cache=300,
                keepalive_timeout=120,
            )
            timeout = aiohttp.ClientTimeout(total=self.timeout_s, connect=5)

            self._session = aiohttp.ClientSession(connector=connector, timeout=timeout)
            logger.info(f"Created persistent {self.name} session")

        return self._session

    async def close(self):
        """Close persistent session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.info(f"Closed {self.name} persistent session")

    @property
    @abstractmethod
    def endpoint(self) -> str:
        """Path appended to base_url."""

    @abstractmethod
    def build_headers(self) -> Dict[str, str]:
        """Auth and content headers."""

    @abstractmethod
    def build_request_body(self, payload: PromptPayload) -> Dict[str, Any]:
        """Shape the prompt payload for this backend."""

    @abstractmethod
    def extract_reply(self, data: Dict[str, Any]) -> str:
        """
        Pull the generated text out of a decoded response body.

        Raises:
            KeyError, IndexError, TypeError: body does not have the expected shape
        """

    async def complete(self, payload: PromptPayload) -> str:
        """
        Generate a reply for the windowed conversation.

        Args:
            payload: System preamble plus windowed turns

        Returns:
            Generated reply, stripped of surrounding whitespace

        Raises:
            CompletionTimeoutError: request exceeded timeout_s
            CompletionError: transport failure, non-2xx status or malformed body
        """
        import aiohttp

        url = f"{self.base_url}{self.endpoint}"
        body = self.build_request_body(payload)
        logger.info(
            f"Requesting completion: provider={self.name}, model={self.model}, "
            f"turns={len(payload.turns)}"
        )

        try:
            session = await self._get_session()
            async with session.post(url, headers=self.build_headers(), json=body) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    logger.error(f"{self.name} API error {response.status}: {error_text[:500]}")
                    raise CompletionError(f"{self.name} returned HTTP {response.status}")
                data = await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            logger.error(f"{self.name} request timed out after {self.timeout_s}s")
            raise CompletionTimeoutError(f"{self.name} request timed out") from e
        except aiohttp.ClientError as e:
            logger.error(f"{self.name} network error: {e}")
            raise CompletionError(f"{self.name} request failed: {e}") from e
        except ValueError as e:
            logger.error(f"{self.name} returned a non-JSON body: {e}")
            raise CompletionError(f"{self.name} returned a malformed response") from e

        try:
            reply = self.extract_reply(data)
        except (KeyError, IndexError, TypeError) as e:
            logger.error(f"{self.name} response missing reply text: {e}")
            raise CompletionError(f"{self.name} returned a malformed response") from e

        if not isinstance(reply, str):
            raise CompletionError(f"{self.name} returned a malformed response")

        reply = reply.strip()
        logger.info(f"Completion received: {len(reply)} chars")
        return reply
