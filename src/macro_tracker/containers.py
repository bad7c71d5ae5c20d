"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from macro_tracker.adapters.apps_script_store import AppsScriptRemoteStore
from macro_tracker.adapters.supabase_store import SupabaseRemoteStore
from macro_tracker.config import (
    BACKEND_SUPABASE,
    Settings,
    validate_backend_settings,
)
from macro_tracker.services.catalog import CatalogService
from macro_tracker.services.dates import today_in
from macro_tracker.services.goals import GoalsService
from macro_tracker.services.log_store import LocalLogStore
from macro_tracker.services.notifications import NotificationCenter
from macro_tracker.services.reconciliation import ReconciliationLoader
from macro_tracker.services.remote_store import RemoteStore
from macro_tracker.services.stats import StatsService
from macro_tracker.services.sync import SyncDispatcher
from macro_tracker.services.tracker import DailyTrackerService


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    remote_store: RemoteStore
    notifications: NotificationCenter
    dispatcher: SyncDispatcher
    catalog_service: CatalogService
    goals_service: GoalsService
    tracker_service: DailyTrackerService
    stats_service: StatsService
    close_resources: Callable[[], Awaitable[None]]


def build_remote_store(
    settings: Settings,
) -> tuple[RemoteStore, Callable[[], Awaitable[None]]]:
    """Create the configured backend and a coroutine that releases it."""
    validate_backend_settings(settings)
    if settings.remote_backend.strip().lower() == BACKEND_SUPABASE:
        client = create_client(settings.supabase_url, settings.supabase_service_key)

        async def close_supabase() -> None:
            return None

        return SupabaseRemoteStore(client), close_supabase

    store = AppsScriptRemoteStore.create(
        url=settings.apps_script_url,
        token=settings.sheet_auth_token,
        timezone=settings.timezone,
        timeout=settings.request_timeout_seconds,
    )
    return store, store.close


def build_services(
    settings: Settings,
    remote_store: RemoteStore,
    close_resources: Callable[[], Awaitable[None]],
) -> AppContainer:
    """Wire services around an already constructed remote store."""
    notifications = NotificationCenter()
    dispatcher = SyncDispatcher(
        remote_store=remote_store,
        notifications=notifications,
        debounce_seconds=settings.sync_debounce_seconds,
    )
    store = LocalLogStore(day=today_in(settings.timezone))
    loader = ReconciliationLoader(
        remote_store=remote_store,
        store=store,
        dispatcher=dispatcher,
        notifications=notifications,
    )
    catalog_service = CatalogService(remote_store, notifications)
    goals_service = GoalsService(remote_store, notifications)
    tracker_service = DailyTrackerService(
        store=store,
        dispatcher=dispatcher,
        loader=loader,
        catalog=catalog_service,
        timezone=settings.timezone,
        goals=goals_service.goals,
    )

    async def close_all() -> None:
        await dispatcher.drain()
        await close_resources()

    return AppContainer(
        settings=settings,
        remote_store=remote_store,
        notifications=notifications,
        dispatcher=dispatcher,
        catalog_service=catalog_service,
        goals_service=goals_service,
        tracker_service=tracker_service,
        stats_service=StatsService(remote_store),
        close_resources=close_all,
    )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    remote_store, close_remote = build_remote_store(resolved_settings)
    return build_services(resolved_settings, remote_store, close_remote)
