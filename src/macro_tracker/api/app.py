"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import date

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from macro_tracker.api.models import EntryCreate, FoodCreate, FoodUpdate, GoalsUpdate
from macro_tracker.app_logging import configure_logging
from macro_tracker.containers import AppContainer
from macro_tracker.domain.foods import FoodItem
from macro_tracker.domain.goals import MacroGoals
from macro_tracker.domain.logs import LogEntry
from macro_tracker.domain.stats import DailyAggregate, TrendSummary
from macro_tracker.services.notifications import Notification
from macro_tracker.services.tracker import DaySnapshot

UNPROCESSABLE = 422


def create_app(container: AppContainer) -> FastAPI:  # noqa: PLR0915
    """Create a FastAPI app configured with dependencies."""
    configure_logging()
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        state_container: AppContainer = app.state.container
        await state_container.catalog_service.load()
        goals = await state_container.goals_service.load()
        state_container.tracker_service.set_goals(goals, sync=False)
        tracker = state_container.tracker_service
        await tracker.select_day(tracker.today())
        yield
        await state_container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    @app.exception_handler(Exception)
    async def recovery_boundary(request: Request, exc: Exception) -> JSONResponse:
        """Last-resort handler: the client should reset and reload."""
        logger.exception(
            "Unhandled error",
            extra={"path": request.url.path, "method": request.method},
        )
        body: dict[str, object] = {"error": "internal_error", "recovery": "reload"}
        if container.settings.environment == "local":
            body["debug"] = f"{type(exc).__name__}: {exc}"
        return JSONResponse(status_code=500, content=body)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/today")
    async def show_today(request: Request) -> dict[str, object]:
        """Select today's date in the canonical timezone."""
        tracker = _container(request).tracker_service
        result = await tracker.select_day(tracker.today())
        return {**_serialize_snapshot(tracker.snapshot()), "source": result.source}

    @app.get("/days/{day}")
    async def show_day(day: date, request: Request) -> dict[str, object]:
        """Navigate to ``day``; the remote record replaces local entries."""
        tracker = _container(request).tracker_service
        result = await tracker.select_day(day)
        return {**_serialize_snapshot(tracker.snapshot()), "source": result.source}

    @app.post("/days/{day}/entries", status_code=status.HTTP_201_CREATED)
    async def add_entry(
        day: date, payload: EntryCreate, request: Request
    ) -> dict[str, object]:
        """Log a food against ``day``."""
        tracker = _container(request).tracker_service
        if tracker.day != day:
            await tracker.select_day(day)
        try:
            entry = tracker.add_entry(payload.food_id, payload.quantity)
        except LookupError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(UNPROCESSABLE, str(exc)) from exc
        return {
            "entry": _serialize_entry(entry),
            "totals": _serialize_totals(tracker.totals),
        }

    @app.delete("/days/{day}/entries/{entry_id}")
    async def delete_entry(
        day: date, entry_id: str, request: Request
    ) -> dict[str, object]:
        """Delete an entry; the day is written immediately."""
        tracker = _container(request).tracker_service
        if tracker.day != day:
            await tracker.select_day(day)
        removed = tracker.delete_entry(entry_id)
        return {
            "removed": removed,
            **_serialize_snapshot(tracker.snapshot()),
        }

    @app.get("/foods")
    async def list_foods(request: Request, q: str | None = None) -> dict[str, object]:
        """List the catalog, or search it when ``q`` is given."""
        catalog = _container(request).catalog_service
        foods = catalog.search(q) if q else catalog.list_foods()
        return {"foods": [_serialize_food(food) for food in foods]}

    @app.post("/foods", status_code=status.HTTP_201_CREATED)
    async def create_food(payload: FoodCreate, request: Request) -> dict[str, object]:
        catalog = _container(request).catalog_service
        try:
            food = await catalog.add(payload.model_dump())
        except ValueError as exc:
            raise HTTPException(UNPROCESSABLE, str(exc)) from exc
        return {"food": _serialize_food(food)}

    @app.put("/foods/{food_id}")
    async def update_food(
        food_id: str, payload: FoodUpdate, request: Request
    ) -> dict[str, object]:
        catalog = _container(request).catalog_service
        try:
            food = await catalog.edit(food_id, payload.model_dump(exclude_none=True))
        except LookupError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, str(exc)) from exc
        except ValueError as exc:
            raise HTTPException(UNPROCESSABLE, str(exc)) from exc
        return {"food": _serialize_food(food)}

    @app.delete("/foods/{food_id}")
    async def delete_food(food_id: str, request: Request) -> dict[str, str]:
        catalog = _container(request).catalog_service
        try:
            await catalog.delete(food_id)
        except LookupError as exc:
            raise HTTPException(status.HTTP_404_NOT_FOUND, str(exc)) from exc
        return {"status": "deleted"}

    @app.get("/goals")
    async def show_goals(request: Request) -> dict[str, object]:
        return {"goals": _serialize_goals(_container(request).goals_service.goals)}

    @app.put("/goals")
    async def replace_goals(
        payload: GoalsUpdate, request: Request
    ) -> dict[str, object]:
        """Replace goals; each changed value is pushed at once."""
        state_container = _container(request)
        goals = await state_container.goals_service.update(
            MacroGoals(**payload.model_dump())
        )
        totals = state_container.tracker_service.set_goals(goals)
        return {"goals": _serialize_goals(goals), "totals": _serialize_totals(totals)}

    @app.get("/stats")
    async def show_stats(request: Request, days: int = 7) -> dict[str, object]:
        """Trends for the window ending on the selected date."""
        state_container = _container(request)
        tracker = state_container.tracker_service
        try:
            summary = await state_container.stats_service.trend(
                tracker.day,
                days=days,
                overrides={tracker.day: tracker.snapshot().entries},
            )
        except ValueError as exc:
            raise HTTPException(UNPROCESSABLE, str(exc)) from exc
        return _serialize_trend(summary)

    @app.get("/notifications")
    async def list_notifications(request: Request) -> dict[str, object]:
        notifications = _container(request).notifications.list_active()
        return {"notifications": [_serialize_notification(n) for n in notifications]}

    @app.delete("/notifications/{notification_id}")
    async def dismiss_notification(
        notification_id: int, request: Request
    ) -> dict[str, bool]:
        dismissed = _container(request).notifications.dismiss(notification_id)
        return {"dismissed": dismissed}

    return app


def _container(request: Request) -> AppContainer:
    return request.app.state.container


def _serialize_entry(entry: LogEntry) -> dict[str, object]:
    return {
        "id": entry.id,
        "food_id": entry.food_id,
        "food_name": entry.food_name,
        "quantity": entry.quantity,
        "calories": entry.calories,
        "protein": entry.protein,
        "carbs": entry.carbs,
        "fat": entry.fat,
        "timestamp": entry.timestamp.isoformat(),
    }


def _serialize_totals(totals: DailyAggregate) -> dict[str, object]:
    return {
        "calories": totals.calories,
        "protein": totals.protein,
        "carbs": totals.carbs,
        "fat": totals.fat,
        "calorie_goal": totals.calorie_goal,
        "calorie_goal_percent": totals.calorie_goal_percent,
        "over_goal": totals.over_goal,
        "entry_count": totals.entry_count,
    }


def _serialize_goals(goals: MacroGoals) -> dict[str, float]:
    return {
        "calories": goals.calories,
        "protein": goals.protein,
        "carbs": goals.carbs,
        "fat": goals.fat,
    }


def _serialize_snapshot(snapshot: DaySnapshot) -> dict[str, object]:
    return {
        "date": snapshot.day.isoformat(),
        "entries": [_serialize_entry(entry) for entry in snapshot.entries],
        "totals": _serialize_totals(snapshot.totals),
        "goals": _serialize_goals(snapshot.goals),
    }


def _serialize_food(food: FoodItem) -> dict[str, object]:
    return {
        "id": food.id,
        "name": food.name,
        "calories": food.calories,
        "protein": food.protein,
        "carbs": food.carbs,
        "fat": food.fat,
    }


def _serialize_trend(summary: TrendSummary) -> dict[str, object]:
    return {
        "start": summary.start.isoformat(),
        "end": summary.end.isoformat(),
        "days_logged": summary.days_logged,
        "averages": {
            "calories": summary.avg_calories,
            "protein": summary.avg_protein,
            "carbs": summary.avg_carbs,
            "fat": summary.avg_fat,
        },
        "daily": [
            {
                "date": day.day.isoformat(),
                "calories": day.calories,
                "protein": day.protein,
                "carbs": day.carbs,
                "fat": day.fat,
                "entry_count": day.entry_count,
            }
            for day in summary.daily
        ],
        "top_foods": [
            {"name": food.name, "count": food.count, "calories": food.calories}
            for food in summary.top_foods
        ],
        "macro_calorie_split": summary.macro_calorie_split,
    }


def _serialize_notification(notification: Notification) -> dict[str, object]:
    return {
        "id": notification.id,
        "level": notification.level,
        "message": notification.message,
        "created_at": notification.created_at.isoformat(),
    }
