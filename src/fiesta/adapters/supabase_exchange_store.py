"""Supabase-backed exchange store."""

import asyncio
import logging
from collections.abc import Mapping
from dataclasses import dataclass

import httpx
from postgrest import APIError
from supabase import Client

from fiesta.adapters.rows import Row, encode_value, from_row, to_row
from fiesta.domain.entities import Entity, EntityKind, kind_of
from fiesta.domain.errors import StoreUnavailableError

_logger = logging.getLogger(__name__)


@dataclass
class SupabaseExchangeStore:
    """Supabase implementation of the exchange store."""

    client: Client
    mode: str = "remote"

    async def fetch_all(
        self, kind: EntityKind, filters: Mapping[str, object] | None = None
    ) -> list[Entity]:
        """Return entities whose columns equal the filters."""
        try:
            rows = await asyncio.to_thread(self._select, kind, filters or {})
        except (APIError, httpx.HTTPError) as exc:
            raise StoreUnavailableError(f"Could not read {kind.collection}") from exc
        entities: list[Entity] = []
        for row in rows:
            try:
                entities.append(from_row(kind, row))
            except (KeyError, TypeError, ValueError):
                _logger.warning(
                    "Skipping malformed %s row %s", kind.collection, row.get("id")
                )
        return entities

    async def upsert(self, entity: Entity) -> None:
        """Insert or replace a row by id."""
        kind = kind_of(entity)
        try:
            await asyncio.to_thread(self._upsert, kind, to_row(entity))
        except (APIError, httpx.HTTPError) as exc:
            raise StoreUnavailableError(f"Could not write {kind.collection}") from exc

    def _select(self, kind: EntityKind, filters: Mapping[str, object]) -> list[Row]:
        query = self.client.table(kind.collection).select("*")
        for column, value in filters.items():
            query = query.eq(column, encode_value(value))
        if kind is EntityKind.USER:
            query = query.order("created_at")
        response = query.execute()
        return list(response.data or [])

    def _upsert(self, kind: EntityKind, row: Row) -> None:
        self.client.table(kind.collection).upsert(row, on_conflict="id").execute()
