"""State transition functions for the pomodoro session lifecycle.

IN_PROGRESS <-> PAUSED -> COMPLETED. COMPLETED is terminal. Each transition loads
the session, checks ownership and the source state, then writes the new state
only while the stored session is still in that source state. A session that does
not exist or belongs to someone else fails the same guard as one in the wrong
state, and so does a session another request moved first.
"""

import logging
from datetime import datetime
from typing import Any

from src.core import db_client
from src.core.errors import ErrorCode, InvalidStateError
from src.core.logging import span
from src.domain.pomodoro import ACTIVE_STATUSES, PomodoroStatus


logger = logging.getLogger(__name__)

COLLECTION = "pomodoros"


async def _load_owned(*, pomodoro_id: str, user_id: str) -> dict[str, Any] | None:
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=pomodoro_id)
    except db_client.RecordNotFoundError:
        return None
    if record["user_id"] != user_id:
        return None
    return record


def _status_guard(user_id: str, sources: tuple[PomodoroStatus, ...]) -> str:
    statuses = " || ".join(f'status = "{status}"' for status in sources)
    return f'user_id = "{db_client.sanitize_param(user_id)}" && ({statuses})'


async def _transition(
    *,
    pomodoro_id: str,
    user_id: str,
    sources: tuple[PomodoroStatus, ...],
    data: dict[str, Any],
    error: InvalidStateError,
) -> dict[str, Any]:
    record = await _load_owned(pomodoro_id=pomodoro_id, user_id=user_id)
    if record is None or PomodoroStatus(record["status"]) not in sources:
        raise error

    try:
        return await db_client.update_record(
            collection=COLLECTION,
            record_id=pomodoro_id,
            data=data,
            filter_query=_status_guard(user_id, sources),
        )
    except db_client.RecordNotFoundError:
        logger.warning(
            "Pomodoro changed state before transition was written",
            extra={"pomodoro_id": pomodoro_id, "user_id": user_id, "target": data["status"]},
        )
        raise error from None


async def transition_to_paused(*, pomodoro_id: str, user_id: str, now: datetime) -> dict[str, Any]:
    """Transition an IN_PROGRESS session to PAUSED."""
    with span("pomodoro_state_machine.transition_to_paused"):
        updated = await _transition(
            pomodoro_id=pomodoro_id,
            user_id=user_id,
            sources=(PomodoroStatus.IN_PROGRESS,),
            data={"status": PomodoroStatus.PAUSED, "paused_at": now},
            error=InvalidStateError(
                f"Pomodoro {pomodoro_id} is not in progress", code=ErrorCode.ERR_SESSION_NOT_ACTIVE
            ),
        )

        logger.info("Transitioned pomodoro to PAUSED", extra={"pomodoro_id": pomodoro_id, "user_id": user_id})
        return updated


async def transition_to_in_progress(*, pomodoro_id: str, user_id: str) -> dict[str, Any]:
    """Transition a PAUSED session back to IN_PROGRESS and clear its pause time."""
    with span("pomodoro_state_machine.transition_to_in_progress"):
        updated = await _transition(
            pomodoro_id=pomodoro_id,
            user_id=user_id,
            sources=(PomodoroStatus.PAUSED,),
            data={"status": PomodoroStatus.IN_PROGRESS, "paused_at": None},
            error=InvalidStateError(f"Pomodoro {pomodoro_id} is not paused", code=ErrorCode.ERR_SESSION_NOT_PAUSED),
        )

        logger.info("Transitioned pomodoro to IN_PROGRESS", extra={"pomodoro_id": pomodoro_id, "user_id": user_id})
        return updated


async def transition_to_completed(*, pomodoro_id: str, user_id: str, now: datetime) -> dict[str, Any]:
    """Transition an IN_PROGRESS or PAUSED session to COMPLETED."""
    with span("pomodoro_state_machine.transition_to_completed"):
        updated = await _transition(
            pomodoro_id=pomodoro_id,
            user_id=user_id,
            sources=tuple(ACTIVE_STATUSES),
            data={"status": PomodoroStatus.COMPLETED, "completed_at": now},
            error=InvalidStateError(f"Pomodoro {pomodoro_id} is not active", code=ErrorCode.ERR_SESSION_NOT_ACTIVE),
        )

        logger.info("Transitioned pomodoro to COMPLETED", extra={"pomodoro_id": pomodoro_id, "user_id": user_id})
        return updated
