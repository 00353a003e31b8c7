"""Dependency container wiring for the application."""

import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from fiesta.adapters.file_session_pointer import FileSessionPointer
from fiesta.adapters.local_document_store import JsonDocumentStore
from fiesta.adapters.local_exchange_store import LocalCacheExchangeStore
from fiesta.adapters.supabase_exchange_store import SupabaseExchangeStore
from fiesta.config import Settings
from fiesta.services.lifecycle import LifecycleEngine
from fiesta.services.locks import KeyedLocks
from fiesta.services.predictions import PredictionService
from fiesta.services.seed import seed_sample_data
from fiesta.services.sessions import SessionPointerStore, SessionService
from fiesta.services.sync import ExchangeStore, SyncCoordinator
from fiesta.services.users import UserService

_logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    coordinator: SyncCoordinator
    lifecycle_engine: LifecycleEngine
    user_service: UserService
    session_service: SessionService
    prediction_service: PredictionService
    startup: Callable[[], Awaitable[None]]
    close_resources: Callable[[], Awaitable[None]]


def build_store(settings: Settings) -> ExchangeStore:
    """Select the remote or local store strategy from settings."""
    if not settings.remote_store_enabled:
        return LocalCacheExchangeStore(JsonDocumentStore(settings.local_store_dir))
    if not settings.supabase_url or not settings.supabase_service_key:
        raise ValueError(
            "SUPABASE_URL and SUPABASE_SERVICE_KEY are required "
            "when REMOTE_STORE_ENABLED is set"
        )
    client = create_client(settings.supabase_url, settings.supabase_service_key)
    return SupabaseExchangeStore(client)


def build_container(
    settings: Settings | None = None,
    store: ExchangeStore | None = None,
    pointer: SessionPointerStore | None = None,
) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    resolved_store = store or build_store(resolved_settings)
    coordinator = SyncCoordinator(
        resolved_store, timeout_seconds=resolved_settings.store_timeout_seconds
    )
    locks = KeyedLocks()
    user_service = UserService(coordinator, locks=locks)
    session_service = SessionService(
        pointer=pointer or FileSessionPointer(resolved_settings.session_pointer_path),
        coordinator=coordinator,
        user_service=user_service,
        locks=locks,
    )
    lifecycle_engine = LifecycleEngine(coordinator, locks=locks)
    prediction_service = PredictionService(coordinator)
    _logger.info("Using %s exchange store", coordinator.mode)

    async def startup() -> None:
        if resolved_settings.seed_sample_data:
            await seed_sample_data(coordinator)
        if await session_service.restore() is None:
            await coordinator.refresh(None)

    async def close_resources() -> None:
        coordinator.clear_user_context()

    return AppContainer(
        settings=resolved_settings,
        coordinator=coordinator,
        lifecycle_engine=lifecycle_engine,
        user_service=user_service,
        session_service=session_service,
        prediction_service=prediction_service,
        startup=startup,
        close_resources=close_resources,
    )
