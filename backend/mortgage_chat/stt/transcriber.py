"""
Pre-recorded audio transcription client.

Three-step job flow against the transcription REST API:
1. Upload the audio blob (multipart) → audio_url
2. Submit a transcription job for that audio_url → job id + result_url
3. Poll result_url at a fixed interval until the job is done

Only a "queued"/"processing" status is retried. Anything else aborts.
"""

import asyncio
import logging
import mimetypes
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from mortgage_chat.errors import (
    TranscriptionEmptyError,
    TranscriptionError,
    TranscriptionTimeoutError,
)

if TYPE_CHECKING:
    import aiohttp

logger = logging.getLogger(__name__)

IN_PROGRESS_STATUSES = frozenset({"queued", "processing"})
DONE_STATUS = "done"


class Transcriber:
    """
    Transcribes uploaded audio with bounded polling.

    Features:
    - Persistent HTTP session
    - Fixed poll interval, fixed attempt cap, no cancellation
    - Segment texts joined with single spaces in arrival order
    """

    def __init__(
        self,
        api_key: Optional[str],
        base_url: str,
        poll_interval: float = 2.0,
        max_attempts: int = 10,
        timeout_s: float = 30.0,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self.timeout_s = timeout_s

        self._session: Optional['aiohttp.ClientSession'] = None

    async def _get_session(self):
        """Get or create persistent aiohttp session."""
        if self._session is None or self._session.closed:
            import aiohttp

            timeout = aiohttp.ClientTimeout(total=self.timeout_s, connect=5)
            self._session = aiohttp.ClientSession(timeout=timeout)
            logger.info("Created persistent transcription session")

        return self._session

    async def close(self):
        """Close persistent session."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.info("Closed transcription persistent session")

    def _headers(self) -> Dict[str, str]:
        return {"x-gladia-key": self.api_key or ""}

    async def transcribe(self, audio_bytes: bytes, mime_type: str) -> str:
        """
        Transcribe an audio blob.

        Args:
            audio_bytes: Raw audio file content
            mime_type: Content type of the audio (e.g. audio/webm)

        Returns:
            Transcribed text

        Raises:
            TranscriptionTimeoutError: job still running after max_attempts polls
            TranscriptionEmptyError: job finished with no segments
            TranscriptionError: any other upload, submit or poll failure
        """
        logger.info(f"Transcribing {len(audio_bytes)} bytes ({mime_type})")

        audio_url = await self._upload(audio_bytes, mime_type)
        job = await self._submit(audio_url)
        result_url = job.get("result_url") or f"{self.base_url}/v2/pre-recorded/{job['id']}"

        segments = await self._poll(result_url)
        if not segments:
            logger.warning(f"Transcription job {job.get('id')} returned no segments")
            raise TranscriptionEmptyError("No speech detected in audio")

        text = " ".join(segments)
        logger.info(f"Transcription complete: {len(segments)} segments, {len(text)} chars")
        return text

    async def _upload(self, audio_bytes: bytes, mime_type: str) -> str:
        import aiohttp

        extension = mimetypes.guess_extension(mime_type.split(";")[0].strip()) or ".webm"
        form = aiohttp.FormData()
        form.add_field(
            "audio",
            audio_bytes,
            filename=f"recording{extension}",
            content_type=mime_type,
        )
        data = await self._request("POST", f"{self.base_url}/v2/upload", data=form)
        try:
            return data["audio_url"]
        except (KeyError, TypeError) as e:
            raise TranscriptionError("Upload response missing audio_url") from e

    async def _submit(self, audio_url: str) -> Dict[str, Any]:
        data = await self._request(
            "POST",
            f"{self.base_url}/v2/pre-recorded",
            json={"audio_url": audio_url},
        )
        if not isinstance(data, dict) or "id" not in data:
            raise TranscriptionError("Job submission response missing id")
        logger.info(f"Transcription job submitted: id={data['id']}")
        return data

    async def _poll(self, result_url: str) -> List[str]:
        for attempt in range(1, self.max_attempts + 1):
            data = await self._request("GET", result_url)
            status = data.get("status") if isinstance(data, dict) else None

            if status == DONE_STATUS:
                return self._extract_segments(data)

            if status not in IN_PROGRESS_STATUSES:
                error_code = data.get("error_code") if isinstance(data, dict) else None
                logger.error(f"Transcription job failed: status={status}, error_code={error_code}")
                raise TranscriptionError(f"Transcription job failed with status {status}")

            logger.debug(f"Transcription in progress (attempt {attempt}/{self.max_attempts})")
            if attempt < self.max_attempts:
                await asyncio.sleep(self.poll_interval)

        logger.error(f"Transcription still in progress after {self.max_attempts} attempts")
        raise TranscriptionTimeoutError("Transcription timed out")

    def _extract_segments(self, data: Dict[str, Any]) -> List[str]:
        try:
            utterances = (data.get("result") or {}).get("transcription", {}).get("utterances") or []
            texts = [u.get("text", "").strip() for u in utterances]
        except AttributeError as e:
            raise TranscriptionError("Transcription result is malformed") from e
        return [text for text in texts if text]

    async def _request(self, method: str, url: str, **kwargs) -> Any:
        import aiohttp

        try:
            session = await self._get_session()
            async with session.request(method, url, headers=self._headers(), **kwargs) as response:
                if response.status >= 400:
                    error_text = await response.text()
                    logger.error(f"Transcription API error {response.status}: {error_text[:500]}")
                    raise TranscriptionError(f"Transcription service returned HTTP {response.status}")
                return await response.json(content_type=None)
        except asyncio.TimeoutError as e:
            raise TranscriptionError("Transcription service request timed out") from e
        except aiohttp.ClientError as e:
            logger.error(f"Transcription network error: {e}")
            raise TranscriptionError(f"Transcription request failed: {e}") from e
        except ValueError as e:
            raise TranscriptionError("Transcription service returned a malformed response") from e
