"""Property application workflow: submission, edits and listing sync."""
from __future__ import annotations

import logging
from typing import Any, Mapping, Optional

from listing_sync.config.settings import Settings
from listing_sync.forms.decoder import FieldValue, PathKeyDecoder
from listing_sync.forms.intake import StoredDocuments, build_property_from_form
from listing_sync.listings.models import PROPERTY_STATUSES, Property
from listing_sync.listings.sync import ListingSynchronizer
from listing_sync.storage.sqlite_store import SqliteStore

logger = logging.getLogger(__name__)


class PropertyNotFoundError(LookupError):
    """Raised when an operation targets an unknown listing id."""


class PropertyService:
    """Coordinates application persistence with hotel listing maintenance.

    Collaborators not passed in are built from ``settings``, which is read
    from the environment when omitted.
    """

    def __init__(
        self,
        store: SqliteStore,
        *,
        settings: Optional[Settings] = None,
        decoder: Optional[PathKeyDecoder] = None,
        synchronizer: Optional[ListingSynchronizer] = None,
    ) -> None:
        settings = settings or Settings()
        self._store = store
        self._decoder = decoder or PathKeyDecoder(settings.field_coercion())
        self._synchronizer = synchronizer or ListingSynchronizer(store, settings=settings)
        self._listing_id_prefix = settings.listing_id_prefix

    async def submit_application(
        self,
        fields: Mapping[str, FieldValue],
        documents: Optional[StoredDocuments] = None,
    ) -> Property:
        """Decode and store a new application. New applications start pending."""
        property = build_property_from_form(
            fields,
            decoder=self._decoder,
            documents=documents,
            listing_id_prefix=self._listing_id_prefix,
        )
        await self._store.insert_property(property)
        logger.info("Stored application %s (%s)", property.listing_id, property.property_name)
        return property

    async def get_property(self, listing_id: str) -> Property:
        property = await self._store.find_property(listing_id)
        if property is None:
            raise PropertyNotFoundError(f"Property {listing_id} not found")
        return property

    async def list_properties(self) -> list[Property]:
        return await self._store.list_properties()

    async def update_property(self, listing_id: str, changes: Mapping[str, Any]) -> Property:
        """Persist ``changes`` and then bring the hotel listing in line.

        The listing sync never fails the update.
        """
        property = await self._store.update_property(listing_id, changes)
        if property is None:
            raise PropertyNotFoundError(f"Property {listing_id} not found")
        logger.debug("Updated property %s fields: %s", listing_id, sorted(changes))
        await self._synchronizer.sync(property)
        return property

    async def set_status(self, listing_id: str, status: str) -> Property:
        if status not in PROPERTY_STATUSES:
            raise ValueError(f"Unsupported status '{status}'. Expected one of: {list(PROPERTY_STATUSES)}")
        return await self.update_property(listing_id, {"status": status})

    async def resync(self, listing_id: str) -> Property:
        property = await self.get_property(listing_id)
        await self._synchronizer.sync(property)
        return property

    async def resync_all(self) -> list[Property]:
        properties = await self._store.list_properties()
        for property in properties:
            await self._synchronizer.sync(property)
        logger.info("Re-synced %d properties", len(properties))
        return properties
