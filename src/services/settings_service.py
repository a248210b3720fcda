"""Pomodoro settings service: per-user focus and break defaults."""

import logging
from datetime import datetime

from src.core import db_client
from src.core.config import constants
from src.core.envelope import service_operation
from src.core.logging import span
from src.domain.pomodoro_settings import PomodoroSettings
from src.domain.update_models import SettingsUpdate


logger = logging.getLogger(__name__)

COLLECTION = "pomodoro_settings"


async def load_settings(*, user_id: str, now: datetime | None = None) -> PomodoroSettings:
    """Return the user's settings row, creating it with defaults on first access."""
    with span("settings_service.load_settings"):
        sanitized_user_id = db_client.sanitize_param(user_id)
        record = await db_client.get_first_record(
            collection=COLLECTION,
            filter_query=f'user_id = "{sanitized_user_id}"',
        )
        if record is not None:
            return PomodoroSettings(**record)

        timestamp = now or datetime.now()
        try:
            record = await db_client.create_record(
                collection=COLLECTION,
                data={
                    "user_id": user_id,
                    "focus_duration": constants.DEFAULT_FOCUS_MINUTES,
                    "short_break_duration": constants.DEFAULT_SHORT_BREAK_MINUTES,
                    "long_break_duration": constants.DEFAULT_LONG_BREAK_MINUTES,
                    "created_at": timestamp,
                    "updated_at": timestamp,
                },
            )
        except db_client.DatabaseError:
            # Lost the race against a concurrent first access
            record = await db_client.get_first_record(
                collection=COLLECTION,
                filter_query=f'user_id = "{sanitized_user_id}"',
            )
            if record is None:
                raise

        logger.info("Created default pomodoro settings", extra={"user_id": user_id})
        return PomodoroSettings(**record)


@service_operation("settings_service.get_settings")
async def get_settings(*, user_id: str, now: datetime | None = None) -> PomodoroSettings:
    """Get the user's pomodoro settings."""
    return await load_settings(user_id=user_id, now=now)


@service_operation("settings_service.update_settings")
async def update_settings(*, user_id: str, update: SettingsUpdate, now: datetime | None = None) -> PomodoroSettings:
    """Apply a partial update to the user's pomodoro settings."""
    current = await load_settings(user_id=user_id, now=now)

    changes = update.model_dump(exclude_none=True)
    if not changes:
        return current

    record = await db_client.update_record(
        collection=COLLECTION,
        record_id=current.id,
        data={**changes, "updated_at": now or datetime.now()},
    )

    logger.info("Updated pomodoro settings", extra={"user_id": user_id, "fields": sorted(changes)})
    return PomodoroSettings(**record)
