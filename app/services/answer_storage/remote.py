"""
Remote answer storage with local fallback

- Server is the source of truth when reachable, the local store is a mirror
- Reads fall back to the local mirror on any failure (status, timeout, network)
- Writes always land locally; a failed remote write is still reported
- Each request, body included, is bounded by one overall timeout
- No reconciliation of local-only writes once the server is reachable again
"""
import asyncio
import logging
from typing import Any, Optional
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from app.core.config import ANSWER_STORAGE_URL, REMOTE_STORAGE_TIMEOUT_SECONDS
from app.models.schemas import AnswerRecord
from app.services.answer_storage.base import AnswerStorageError
from app.services.answer_storage.local import LocalStorageProvider

logger = logging.getLogger(__name__)

# Transport failures and the overall request deadline
REQUEST_ERRORS = (httpx.HTTPError, asyncio.TimeoutError)


class RemoteStorageProvider:
    def __init__(
        self,
        local: LocalStorageProvider,
        base_url: str = ANSWER_STORAGE_URL,
        timeout: float = REMOTE_STORAGE_TIMEOUT_SECONDS,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.local = local
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._client = client

    def _url(self, user: str, subject_id: str) -> str:
        return f"{self.base_url}/api/ovm-storage/{quote(user, safe='')}/{quote(subject_id, safe='')}"

    async def _request(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """
        Send a request and read the full response within self.timeout seconds

        httpx timeouts only bound each connect/read/write step, so a server
        trickling its body would never trip them.

        Raises:
            asyncio.TimeoutError: Deadline passed before the response was read
            httpx.HTTPError: Transport failure
        """
        if self._client is not None:
            return await asyncio.wait_for(
                self._client.request(method, url, timeout=self.timeout, **kwargs), self.timeout
            )

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await asyncio.wait_for(client.request(method, url, **kwargs), self.timeout)

    async def load(self, user: str, subject_id: str) -> Optional[AnswerRecord]:
        url = self._url(user, subject_id)
        try:
            response = await self._request("GET", url)
            if response.status_code == 404:
                logger.info(f"[Answer Storage] No remote record for {user}/{subject_id}, checking local mirror")
                return await self.local.load(user, subject_id)
            response.raise_for_status()
            record = AnswerRecord.model_validate(response.json())
        except REQUEST_ERRORS + (ValueError, ValidationError) as e:
            logger.warning(f"[Answer Storage] Remote load failed for {user}/{subject_id}, using local mirror: {e!r}")
            return await self.local.load(user, subject_id)

        if record.subject_id != subject_id:
            logger.warning(
                f"[Answer Storage] Remote record for {user}/{subject_id} belongs to subject "
                f"{record.subject_id}, using local mirror"
            )
            return await self.local.load(user, subject_id)

        return record

    async def save(self, user: str, subject_id: str, record: AnswerRecord) -> None:
        url = self._url(user, subject_id)
        try:
            response = await self._request("PUT", url, json=record.to_wire())
            response.raise_for_status()
        except REQUEST_ERRORS as e:
            logger.warning(f"[Answer Storage] Remote save failed for {user}/{subject_id}, saving locally: {e!r}")
            await self.local.save(user, subject_id, record)
            raise AnswerStorageError("Remote save failed (saved locally)") from e

        try:
            await self.local.save(user, subject_id, record)
        except AnswerStorageError as e:
            # Remote write succeeded; the server copy is authoritative
            logger.warning(f"[Answer Storage] Local mirror write failed for {user}/{subject_id}: {e}")

    async def clear(self, user: str, subject_id: str) -> None:
        url = self._url(user, subject_id)
        try:
            response = await self._request("DELETE", url)
            if response.status_code not in (200, 204, 404):
                logger.warning(f"[Answer Storage] Remote clear for {user}/{subject_id} returned HTTP {response.status_code}")
        except REQUEST_ERRORS as e:
            logger.warning(f"[Answer Storage] Remote clear failed for {user}/{subject_id}: {e!r}")

        await self.local.clear(user, subject_id)
