"""Factory for the configured content store."""

from app.adapters.storage.base import AbstractContentStore
from app.adapters.storage.pinata import PinataContentStore
from app.core.config import StorageSettings, settings


def create_content_store(storage_settings: StorageSettings | None = None) -> AbstractContentStore:
    """Build the Pinata-backed content store from settings.

    Missing credentials are reported per upload (``StorageAppError``) rather
    than at startup, so read-only deployments need no pinning account.
    """
    cfg = storage_settings or settings.storage
    return PinataContentStore(
        pin_file_url=cfg.pin_file_url,
        gateway=cfg.gateway_url,
        jwt=cfg.pinata_jwt,
        api_key=cfg.pinata_api_key,
        secret_key=cfg.pinata_secret_key,
        app_tag=cfg.app_tag,
        timeout_seconds=cfg.timeout_seconds,
    )
