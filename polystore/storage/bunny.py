"""BunnyCDN edge storage backend over its HTTP API."""

from __future__ import annotations

import io
import logging
from collections.abc import AsyncIterator
from typing import IO, TYPE_CHECKING, Any
from urllib.parse import quote

import httpx

from .base import same_identity
from .cancellation import CancellationToken, check_cancelled
from .classifier import raise_for_status, raise_storage_error
from .exceptions import StorageValidationError
from .progress import ProgressObserver, ProgressTranslator, compute_stream_length
from .schemas import StoreIdentity
from .streams import DEFAULT_CHUNK_SIZE, close_quietly

if TYPE_CHECKING:
    from .base import ObjectStorage

logger = logging.getLogger(__name__)


class BunnyStorageSettings:
    """BunnyCDN storage zone configuration."""

    def __init__(
        self,
        *,
        api_key: str,
        storage_zone: str,
        region: str = "",
        timeout: float = 60.0,
        connect_timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.storage_zone = storage_zone
        self.region = region
        self.timeout = timeout
        self.connect_timeout = connect_timeout

    @property
    def endpoint_url(self) -> str:
        """Storage API base URL. The main (Falkenstein) region has no prefix."""
        host = f"{self.region}.storage.bunnycdn.com" if self.region else "storage.bunnycdn.com"
        return f"https://{host}"


class BunnyStorage:
    """Object storage in a BunnyCDN storage zone.

    Objects map to files at the root of the zone.
    """

    def __init__(
        self,
        settings: BunnyStorageSettings,
        *,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._settings = settings
        self._chunk_size = chunk_size
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        logger.info(f"BunnyCDN storage backend initialized to storage zone {settings.storage_zone}")

    async def __aenter__(self) -> BunnyStorage:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    @property
    def identity(self) -> StoreIdentity:
        zone = self._settings.storage_zone
        return StoreIdentity(principal=zone, bucket=zone)

    def is_same_store(self, other: ObjectStorage) -> bool:
        return same_identity(self, other)

    def __repr__(self) -> str:
        return f"BunnyCDN {self._settings.storage_zone}"

    @property
    def client(self) -> httpx.AsyncClient:
        """HTTP client, created on first use."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self._settings.endpoint_url,
                headers={"AccessKey": self._settings.api_key},
                timeout=httpx.Timeout(self._settings.timeout, connect=self._settings.connect_timeout),
                transport=self._transport,
            )
        return self._client

    def _object_path(self, name: str) -> str:
        if not name or name.endswith("/"):
            raise StorageValidationError(f"Invalid object name for BunnyCDN storage: {name!r}")
        return f"/{quote(self._settings.storage_zone)}/{quote(name, safe='')}"

    async def list_objects(self, cancel: CancellationToken | None = None) -> list[str]:
        check_cancelled(cancel, "list")
        try:
            response = await self.client.get(f"/{quote(self._settings.storage_zone)}/")
            raise_for_status(response.status_code, f"Failed to list {self}")
            names = [
                entry["ObjectName"]
                for entry in response.json()
                if not entry.get("IsDirectory", False)
            ]
        except Exception as e:
            raise_storage_error(e, f"Failed to list {self}")

        logger.debug(f"Listed {len(names)} objects in {self}")
        return names

    async def download(self, name: str, cancel: CancellationToken | None = None) -> IO[bytes]:
        check_cancelled(cancel, "download")
        path = self._object_path(name)
        try:
            response = await self.client.get(path)
            raise_for_status(response.status_code, f"Failed to download {name}")
        except Exception as e:
            raise_storage_error(e, f"Failed to download {name}")

        logger.debug(f"Downloaded {len(response.content)} bytes from {self}: {name}")
        return io.BytesIO(response.content)

    async def download_to(
        self,
        name: str,
        output: IO[bytes],
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
    ) -> int:
        check_cancelled(cancel, "download")
        path = self._object_path(name)
        written = 0
        try:
            async with self.client.stream("GET", path) as response:
                raise_for_status(response.status_code, f"Failed to download {name}")
                translator = ProgressTranslator.wrap(
                    progress, int(response.headers.get("Content-Length", 0))
                )
                async for chunk in response.aiter_bytes(self._chunk_size):
                    check_cancelled(cancel, "download")
                    output.write(chunk)
                    written += len(chunk)
                    if translator is not None:
                        translator.update(written)
        except Exception as e:
            raise_storage_error(e, f"Failed to download {name}")

        logger.debug(f"Downloaded {written} bytes from {self}: {name}")
        return written

    async def _iter_source(
        self,
        source: IO[bytes],
        translator: ProgressTranslator | None,
        cancel: CancellationToken | None,
    ) -> AsyncIterator[bytes]:
        sent = 0
        while chunk := source.read(self._chunk_size):
            check_cancelled(cancel, "upload")
            yield chunk
            sent += len(chunk)
            if translator is not None:
                translator.update(sent)

    async def upload(
        self,
        name: str,
        source: IO[bytes],
        *,
        dispose_source: bool = False,
        progress: ProgressObserver | None = None,
        cancel: CancellationToken | None = None,
        expected_length: int = 0,
    ) -> None:
        try:
            check_cancelled(cancel, "upload")
            path = self._object_path(name)
            translator = ProgressTranslator.wrap(
                progress, compute_stream_length(source, expected_length)
            )
            try:
                response = await self.client.put(
                    path,
                    content=self._iter_source(source, translator, cancel),
                    headers={"Content-Type": "application/octet-stream"},
                )
                raise_for_status(response.status_code, f"Failed to upload {name}")
            except Exception as e:
                raise_storage_error(e, f"Failed to upload {name}")

            logger.info(f"Uploaded {name} to {self}")
        finally:
            if dispose_source:
                close_quietly(source)

    async def delete(self, name: str, cancel: CancellationToken | None = None) -> None:
        check_cancelled(cancel, "delete")
        path = self._object_path(name)
        try:
            response = await self.client.delete(path)
            raise_for_status(response.status_code, f"Failed to delete {name}")
        except Exception as e:
            raise_storage_error(e, f"Failed to delete {name}")

        logger.info(f"Deleted {name} from {self}")

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
