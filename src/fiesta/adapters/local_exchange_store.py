"""Exchange store backed by local JSON documents."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass

from fiesta.adapters.local_document_store import JsonDocumentStore
from fiesta.adapters.rows import encode_value, from_row, to_row
from fiesta.domain.entities import Entity, EntityKind, kind_of
from fiesta.domain.errors import StoreUnavailableError

_logger = logging.getLogger(__name__)


@dataclass
class LocalCacheExchangeStore:
    """Local cache implementation of the exchange store."""

    documents: JsonDocumentStore
    mode: str = "local"

    async def fetch_all(
        self, kind: EntityKind, filters: Mapping[str, object] | None = None
    ) -> list[Entity]:
        """Return cached entities whose columns equal the filters."""
        wanted = {key: encode_value(value) for key, value in (filters or {}).items()}
        entities: list[Entity] = []
        for row in self.documents.read(kind.collection):
            if not all(row.get(key) == value for key, value in wanted.items()):
                continue
            try:
                entities.append(from_row(kind, row))
            except (KeyError, TypeError, ValueError):
                _logger.warning(
                    "Skipping undecodable local %s row %s",
                    kind.collection,
                    row.get("id"),
                )
        return entities

    async def upsert(self, entity: Entity) -> None:
        """Replace the cached row with the same id, or append it."""
        kind = kind_of(entity)
        row = to_row(entity)
        rows = [
            existing
            for existing in self.documents.read(kind.collection)
            if existing.get("id") != row["id"]
        ]
        rows.append(row)
        try:
            self.documents.write(kind.collection, rows)
        except OSError as exc:
            raise StoreUnavailableError(
                f"Could not write local {kind.collection}"
            ) from exc
