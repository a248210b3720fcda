"""Pomodoro service: session lifecycle, active-session lookups and the completion hand-off."""

import asyncio
import logging
import weakref
from collections.abc import Callable
from datetime import datetime

from src.core import db_client
from src.core.cache_client import ActiveSessionCache
from src.core.envelope import service_operation
from src.core.errors import ErrorCode, InvalidStateError, NotFoundError
from src.core.logging import log_with_user_context, span
from src.domain.create_models import PomodoroStart
from src.domain.pomodoro import Pomodoro, PomodoroStatus
from src.models.service_models import FinishResult, ServiceResult
from src.services import pomodoro_state_machine, settings_service, task_completion_service, task_service


logger = logging.getLogger(__name__)

COLLECTION = "pomodoros"


class PomodoroService:
    """Runs pomodoro sessions for every user.

    Holds the active-session cache and a lock per user. Every lifecycle call
    for a user runs under that lock, so two starts cannot both pass the "no
    active session" check and two finishes cannot both reach the completion
    check. Locks live only while a call holds or awaits them. Every write
    invalidates the user's cache entry once the store has accepted it.
    """

    def __init__(self, *, cache: ActiveSessionCache, clock: Callable[[], datetime] = datetime.now) -> None:
        self.cache = cache
        self._clock = clock
        self._user_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()

    def _lock_for(self, user_id: str) -> asyncio.Lock:
        lock = self._user_locks.get(user_id)
        if lock is None:
            lock = self._user_locks[user_id] = asyncio.Lock()
        return lock

    async def _find_active(self, user_id: str) -> Pomodoro | None:
        sanitized_user_id = db_client.sanitize_param(user_id)
        record = await db_client.get_first_record(
            collection=COLLECTION,
            filter_query=(
                f'user_id = "{sanitized_user_id}" && '
                f'(status = "{PomodoroStatus.IN_PROGRESS}" || status = "{PomodoroStatus.PAUSED}")'
            ),
            sort="-started_at",
        )
        return Pomodoro(**record) if record else None

    @service_operation("pomodoro_service.start")
    async def start(self, *, user_id: str, request: PomodoroStart) -> Pomodoro:
        """Start a session on one of the user's tasks.

        A duration or break of zero or None falls back to the user's settings.
        """
        async with self._lock_for(user_id):
            task = await task_service.load_owned_task(task_id=request.task_id, user_id=user_id)

            if await self._find_active(user_id) is not None:
                raise InvalidStateError("An active pomodoro already exists", code=ErrorCode.ERR_ACTIVE_SESSION_EXISTS)

            now = self._clock()
            user_settings = await settings_service.load_settings(user_id=user_id, now=now)
            duration = request.duration or user_settings.focus_duration
            break_time = request.break_time or user_settings.short_break_duration

            try:
                record = await db_client.create_record(
                    collection=COLLECTION,
                    data={
                        "user_id": user_id,
                        "task_id": task["id"],
                        "duration": duration,
                        "break_time": break_time,
                        "status": PomodoroStatus.IN_PROGRESS,
                        "started_at": now,
                        "created_at": now,
                    },
                )
            except db_client.DatabaseError:
                # The unique active-session index rejected a start from another worker
                if await self._find_active(user_id) is not None:
                    raise InvalidStateError(
                        "An active pomodoro already exists", code=ErrorCode.ERR_ACTIVE_SESSION_EXISTS
                    ) from None
                raise
            finally:
                await self.cache.invalidate(user_id)

        log_with_user_context(
            logger, "info", "Pomodoro started", user_id=user_id, task_id=task["id"], pomodoro_id=record["id"]
        )
        return Pomodoro(**record)

    @service_operation("pomodoro_service.pause")
    async def pause(self, *, user_id: str, pomodoro_id: str) -> Pomodoro:
        """Pause an IN_PROGRESS session."""
        async with self._lock_for(user_id):
            try:
                record = await pomodoro_state_machine.transition_to_paused(
                    pomodoro_id=pomodoro_id, user_id=user_id, now=self._clock()
                )
            finally:
                await self.cache.invalidate(user_id)
        return Pomodoro(**record)

    @service_operation("pomodoro_service.resume")
    async def resume(self, *, user_id: str, pomodoro_id: str) -> Pomodoro:
        """Resume a PAUSED session."""
        async with self._lock_for(user_id):
            try:
                record = await pomodoro_state_machine.transition_to_in_progress(
                    pomodoro_id=pomodoro_id, user_id=user_id
                )
            finally:
                await self.cache.invalidate(user_id)
        return Pomodoro(**record)

    @service_operation("pomodoro_service.finish")
    async def finish(self, *, user_id: str, pomodoro_id: str) -> FinishResult:
        """Complete a session and run the task completion check.

        The session stays COMPLETED even if the completion check fails; in that
        case ``completion`` is None and the failure is logged.
        """
        async with self._lock_for(user_id):
            now = self._clock()
            try:
                record = await pomodoro_state_machine.transition_to_completed(
                    pomodoro_id=pomodoro_id, user_id=user_id, now=now
                )
            finally:
                await self.cache.invalidate(user_id)
            pomodoro = Pomodoro(**record)

            check = await task_completion_service.check_after_session(
                task_id=pomodoro.task_id, user_id=user_id, now=now
            )

        if not check.success:
            log_with_user_context(
                logger,
                "error",
                "Task completion check failed after finishing pomodoro",
                user_id=user_id,
                pomodoro_id=pomodoro.id,
                task_id=pomodoro.task_id,
                code=check.error.code if check.error else None,
            )
            return FinishResult(pomodoro=pomodoro, completion=None)

        return FinishResult(pomodoro=pomodoro, completion=check.data)

    @service_operation("pomodoro_service.get_active")
    async def get_active(self, *, user_id: str) -> ServiceResult:
        """Return the user's IN_PROGRESS or PAUSED session, or None.

        Answers from the cache while its entry is fresh; ``cached`` on the result
        says which path served the call.
        """
        entry = await self.cache.get(user_id)
        if entry is not None:
            return ServiceResult.ok(entry.value, cached=True)

        with span("pomodoro_service.get_active.query"):
            active = await self._find_active(user_id)
        await self.cache.set(user_id, active)
        return ServiceResult.ok(active, cached=False)

    @service_operation("pomodoro_service.get_by_id")
    async def get_by_id(self, *, user_id: str, pomodoro_id: str) -> Pomodoro:
        """Get one of the user's sessions."""
        try:
            record = await db_client.get_record(collection=COLLECTION, record_id=pomodoro_id)
        except db_client.RecordNotFoundError:
            record = None

        if record is None or record["user_id"] != user_id:
            raise NotFoundError(f"Pomodoro {pomodoro_id} not found", code=ErrorCode.ERR_POMODORO_NOT_FOUND)
        return Pomodoro(**record)

    @service_operation("pomodoro_service.list_for_user")
    async def list_for_user(self, *, user_id: str) -> list[Pomodoro]:
        """List every session of the user, newest first."""
        records = await db_client.list_all_records(
            collection=COLLECTION,
            filter_query=f'user_id = "{db_client.sanitize_param(user_id)}"',
            sort="-created_at",
        )
        return [Pomodoro(**r) for r in records]
