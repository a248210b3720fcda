"""Garden service: reward flowers grown from completed tasks."""

import logging
from datetime import datetime

from src.core import db_client
from src.core.config import constants
from src.core.envelope import service_operation
from src.core.errors import ErrorCode, InvalidStateError, NotFoundError
from src.core.logging import span
from src.domain.flower import Flower, FlowerType
from src.domain.task import Priority
from src.domain.update_models import FlowerFilters, FlowerUpdate
from src.models.service_models import GardenStats, PriorityCounts


logger = logging.getLogger(__name__)

COLLECTION = "flowers"


def _owner_filter(user_id: str) -> str:
    return f'user_id = "{db_client.sanitize_param(user_id)}"'


def next_legendary_milestone(high_priority_count: int) -> int | None:
    """Smallest milestone still ahead of the given count, or None once all are reached."""
    return next((m for m in sorted(constants.LEGENDARY_MILESTONES) if m > high_priority_count), None)


async def count_high_priority_flowers(*, user_id: str) -> int:
    """Count NORMAL flowers grown from HIGH priority tasks, one per HIGH completion."""
    return await db_client.count_records(
        collection=COLLECTION,
        filter_query=f'{_owner_filter(user_id)} && flower_type = "{FlowerType.NORMAL}" && priority = "{Priority.HIGH}"',
    )


async def _load_owned_flower(*, flower_id: str, user_id: str) -> Flower:
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=flower_id)
    except db_client.RecordNotFoundError:
        record = None

    if record is None or record["user_id"] != user_id:
        raise NotFoundError(f"Flower {flower_id} not found", code=ErrorCode.ERR_FLOWER_NOT_FOUND)
    return Flower(**record)


@service_operation("garden_service.create_flower_from_task")
async def create_flower_from_task(
    *,
    user_id: str,
    task_id: str,
    priority: Priority,
    now: datetime | None = None,
) -> list[Flower]:
    """Grow the flowers earned by completing a task.

    Every completion yields one NORMAL flower colored by priority. A HIGH
    completion also yields a LEGENDARY flower when the user's HIGH count,
    including the flower just grown, lands exactly on a milestone.

    Returns:
        The flowers created, NORMAL first
    """
    timestamp = now or datetime.now()
    normal = await db_client.create_record(
        collection=COLLECTION,
        data={
            "user_id": user_id,
            "task_id": task_id,
            "flower_type": FlowerType.NORMAL,
            "priority": priority,
            "color": constants.PRIORITY_COLORS[priority],
            "tags": [],
            "created_at": timestamp,
            "updated_at": timestamp,
        },
    )
    flowers = [Flower(**normal)]

    if priority == Priority.HIGH:
        high_count = await count_high_priority_flowers(user_id=user_id)
        legendary_name = constants.LEGENDARY_MILESTONES.get(high_count)
        if legendary_name is not None:
            legendary = await db_client.create_record(
                collection=COLLECTION,
                data={
                    "user_id": user_id,
                    "task_id": task_id,
                    "flower_type": FlowerType.LEGENDARY,
                    "priority": priority,
                    "legendary_name": legendary_name,
                    "tags": [],
                    "created_at": timestamp,
                    "updated_at": timestamp,
                },
            )
            flowers.append(Flower(**legendary))
            logger.info(
                "Legendary flower unlocked",
                extra={"user_id": user_id, "task_id": task_id, "milestone": high_count, "name": legendary_name},
            )

    logger.info("Flowers created", extra={"user_id": user_id, "task_id": task_id, "count": len(flowers)})
    return flowers


@service_operation("garden_service.get_garden")
async def get_garden(*, user_id: str, filters: FlowerFilters | None = None) -> list[Flower]:
    """Browse the user's flowers, newest first."""
    filters = filters or FlowerFilters()

    conditions = [_owner_filter(user_id)]
    if filters.flower_type is not None:
        conditions.append(f'flower_type = "{filters.flower_type}"')
    if filters.priority is not None:
        conditions.append(f'priority = "{filters.priority}"')
    if filters.start_date is not None:
        conditions.append(f'created_at >= "{db_client.to_db_timestamp(filters.start_date)}"')
    if filters.end_date is not None:
        conditions.append(f'created_at <= "{db_client.to_db_timestamp(filters.end_date)}"')

    with span("garden_service.get_garden.query"):
        records = await db_client.list_all_records(
            collection=COLLECTION,
            filter_query=" && ".join(conditions),
            sort="-created_at",
        )

    flowers = [Flower(**r) for r in records]
    if filters.tags:
        wanted = set(filters.tags)
        flowers = [f for f in flowers if wanted.intersection(f.tags)]

    return flowers[filters.offset : filters.offset + filters.limit]


@service_operation("garden_service.get_flower")
async def get_flower(*, user_id: str, flower_id: str) -> Flower:
    """Get one of the user's flowers."""
    return await _load_owned_flower(flower_id=flower_id, user_id=user_id)


@service_operation("garden_service.update_flower")
async def update_flower(
    *,
    user_id: str,
    flower_id: str,
    update: FlowerUpdate,
    now: datetime | None = None,
) -> Flower:
    """Rename or retag a flower. Legendary flowers keep their name."""
    flower = await _load_owned_flower(flower_id=flower_id, user_id=user_id)

    if flower.flower_type == FlowerType.LEGENDARY and update.custom_name is not None:
        raise InvalidStateError("Legendary flowers cannot be renamed", code=ErrorCode.ERR_LEGENDARY_RENAME)

    changes = update.model_dump(exclude_none=True)
    if not changes:
        return flower

    record = await db_client.update_record(
        collection=COLLECTION,
        record_id=flower.id,
        data={**changes, "updated_at": now or datetime.now()},
    )

    logger.info("Updated flower", extra={"user_id": user_id, "flower_id": flower_id, "fields": sorted(changes)})
    return Flower(**record)


@service_operation("garden_service.delete_flower")
async def delete_flower(*, user_id: str, flower_id: str) -> dict[str, str]:
    """Remove a flower from the user's garden."""
    flower = await _load_owned_flower(flower_id=flower_id, user_id=user_id)
    await db_client.delete_record(collection=COLLECTION, record_id=flower.id)
    logger.info("Deleted flower", extra={"user_id": user_id, "flower_id": flower_id})
    return {"id": flower.id}


@service_operation("garden_service.get_garden_stats")
async def get_garden_stats(*, user_id: str) -> GardenStats:
    """Totals by type and priority plus the next legendary milestone."""
    owner = _owner_filter(user_id)

    total = await db_client.count_records(collection=COLLECTION, filter_query=owner)
    normal = await db_client.count_records(
        collection=COLLECTION, filter_query=f'{owner} && flower_type = "{FlowerType.NORMAL}"'
    )
    by_priority = {
        p: await db_client.count_records(collection=COLLECTION, filter_query=f'{owner} && priority = "{p}"')
        for p in Priority
    }
    high_completed = await count_high_priority_flowers(user_id=user_id)

    return GardenStats(
        total_flowers=total,
        normal_flowers=normal,
        legendary_flowers=total - normal,
        flowers_by_priority=PriorityCounts(
            low=by_priority[Priority.LOW],
            medium=by_priority[Priority.MEDIUM],
            high=by_priority[Priority.HIGH],
        ),
        high_priority_tasks_completed=high_completed,
        next_legendary_at=next_legendary_milestone(high_completed),
    )
