"""Proof Object Stores — write-once storage for proof-of-need images.

Invariants:
    - Object keys are `{epoch_ms}-{sanitized name}`; sanitizing keeps only [A-Za-z0-9.]
    - An existing key is never overwritten; the upload fails instead
    - Every failure raises StorageError; the returned reference is a stable public URL

Design Decisions:
    - LocalProofStore writes under a directory served at proof_public_base_url
    - HttpProofStore speaks the Supabase-style storage REST API through httpx
"""

import asyncio
import logging
import re
import time
from pathlib import Path

import httpx

from pulse.core.errors import StorageError

logger = logging.getLogger(__name__)


def proof_object_key(filename: str, now_ms: int | None = None) -> str:
    stamp = now_ms if now_ms is not None else int(time.time() * 1000)
    safe = re.sub(r"[^a-zA-Z0-9.]", "", filename or "") or "proof"
    return f"{stamp}-{safe}"


class LocalProofStore:
    """Stores proofs on the local filesystem."""

    def __init__(self, root: str | Path, public_base_url: str):
        self.root = Path(root)
        self.public_base_url = public_base_url.rstrip("/")

    async def upload(self, filename: str, content: bytes, content_type: str) -> str:
        key = proof_object_key(filename)
        await asyncio.to_thread(self._write_once, key, content)
        logger.info(f"Proof stored as {key} ({len(content)} bytes)")
        return f"{self.public_base_url}/{key}"

    def _write_once(self, key: str, content: bytes) -> None:
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            with open(self.root / key, "xb") as fh:
                fh.write(content)
        except FileExistsError as e:
            raise StorageError(f"object '{key}' already exists", "upload") from e
        except OSError as e:
            raise StorageError(str(e), "upload") from e


class HttpProofStore:
    """Stores proofs in an HTTP object-storage bucket."""

    def __init__(
        self,
        base_url: str,
        api_key: str,
        bucket: str = "request-proofs",
        timeout_seconds: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.bucket = bucket
        self._headers = {
            "Authorization": f"Bearer {api_key}",
            "apikey": api_key,
            "x-upsert": "false",
        }
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)

    def public_url(self, key: str) -> str:
        return f"{self.base_url}/storage/v1/object/public/{self.bucket}/{key}"

    async def upload(self, filename: str, content: bytes, content_type: str) -> str:
        key = proof_object_key(filename)
        try:
            response = await self._client.post(
                f"{self.base_url}/storage/v1/object/{self.bucket}/{key}",
                content=content,
                headers={**self._headers, "Content-Type": content_type},
            )
        except httpx.HTTPError as e:
            logger.error(f"Proof upload transport error: {e}")
            raise StorageError(str(e), "upload") from e

        if response.status_code >= 400:
            logger.error(
                f"Proof upload rejected: HTTP {response.status_code} {response.text[:200]}",
            )
            raise StorageError(f"HTTP {response.status_code}", "upload")
        return self.public_url(key)

    async def aclose(self) -> None:
        await self._client.aclose()
