"""Pinata (IPFS pinning service) content store adapter."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone

import httpx

from app.adapters.storage.base import AbstractContentStore, ContentMetadata, StoredContent
from app.core.errors import StorageAppError
from app.utils.content_refs import gateway_url

logger = logging.getLogger(__name__)


class PinataContentStore(AbstractContentStore):
    """Pins uploaded files on IPFS through Pinata's REST API.

    Authenticates with a JWT when one is configured, otherwise with the
    API key/secret header pair.
    """

    def __init__(
        self,
        *,
        pin_file_url: str,
        gateway: str,
        jwt: str | None = None,
        api_key: str | None = None,
        secret_key: str | None = None,
        app_tag: str = "creator-ledger",
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            pin_file_url: ``pinFileToIPFS`` endpoint.
            gateway: Base URL used to build public content URLs.
            jwt: Pinata JWT (takes precedence over the key pair).
            api_key: Pinata API key.
            secret_key: Pinata API secret.
            app_tag: Value recorded in pin metadata.
            timeout_seconds: Upload timeout in seconds.
            transport: Optional httpx transport (tests use ``httpx.MockTransport``).
        """
        self.pin_file_url = pin_file_url
        self.gateway = gateway
        self._jwt = jwt
        self._api_key = api_key
        self._secret_key = secret_key
        self.app_tag = app_tag
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self._jwt or (self._api_key and self._secret_key))

    def _auth_headers(self) -> dict[str, str]:
        if self._jwt:
            return {"Authorization": f"Bearer {self._jwt}"}
        return {
            "pinata_api_key": self._api_key or "",
            "pinata_secret_api_key": self._secret_key or "",
        }

    async def store(self, blob: bytes, metadata: ContentMetadata) -> StoredContent:
        """Upload ``blob`` and return its CID.

        Raises:
            StorageAppError: If credentials are missing, the upload is
                rejected, or the service cannot be reached.
        """
        if not self.configured:
            raise StorageAppError(
                code="storage_not_configured",
                message="Pinata credentials not configured",
                details={"hint": "Set STORAGE_PINATA_JWT or STORAGE_PINATA_API_KEY/STORAGE_PINATA_SECRET_KEY"},
            )

        pinata_metadata = {
            "name": metadata.name,
            "keyvalues": {
                "uploadedBy": metadata.uploaded_by,
                "app": self.app_tag,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                **metadata.keyvalues,
            },
        }
        files = {"file": (metadata.name, blob, metadata.content_type)}
        data = {
            "pinataMetadata": json.dumps(pinata_metadata),
            "pinataOptions": json.dumps({"cidVersion": 1}),
        }

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_seconds, transport=self._transport
            ) as client:
                response = await client.post(
                    self.pin_file_url,
                    headers=self._auth_headers(),
                    files=files,
                    data=data,
                )
        except httpx.HTTPError as exc:
            logger.error("storage.unreachable", extra={"error_type": type(exc).__name__})
            raise StorageAppError(
                code="storage_unreachable",
                message="Cannot connect to the pinning service. Please try again later.",
            ) from exc

        if response.status_code in (401, 403):
            raise StorageAppError(
                code="storage_unauthorized",
                message="Pinning service credentials are invalid or missing.",
                details={"http_status": response.status_code},
            )
        if response.is_error:
            raise StorageAppError(
                code="storage_upload_failed",
                message=_error_message(response) or "Failed to upload to IPFS",
                details={"http_status": response.status_code},
            )

        content_id = response.json().get("IpfsHash")
        if not content_id:
            raise StorageAppError(
                code="storage_bad_response",
                message="Pinning service response did not include a content identifier",
            )

        logger.info(
            "storage.pinned",
            extra={"content_id": content_id, "size": len(blob), "content_type": metadata.content_type},
        )
        return StoredContent(
            content_id=content_id,
            url=gateway_url(content_id, self.gateway),
            size=len(blob),
            content_type=metadata.content_type,
        )


def _error_message(response: httpx.Response) -> str | None:
    try:
        body = response.json()
    except ValueError:
        return None
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        return error.get("details") or error.get("reason")
    return error
