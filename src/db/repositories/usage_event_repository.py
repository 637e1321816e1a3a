"""Usage event repository - append-only audit rows for forwarded calls."""

import logging
from typing import Any, Dict, List, Optional

from sqlalchemy import select, desc

from src.core.usage.schemas import ActionType

from ..connection import db
from ..models import UsageEventModel

from ..utils import with_db_retry

logger = logging.getLogger(__name__)


async def append_usage_event(
    user_id: str,
    action_type: ActionType,
    target_id: str,
    payload: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """
    Append one usage event.

    Args:
        user_id: Account the call was made for
        action_type: chat or workflow
        target_id: Model id or workflow id
        payload: Request/response snapshot

    Returns:
        Created event as dictionary, or None if the database is disabled
    """
    async with db.session() as session:
        if session is None:
            return None

        event = UsageEventModel(
            user_id=user_id,
            action_type=action_type.value,
            target_id=target_id,
            payload=payload,
        )
        session.add(event)
        await session.flush()

        logger.debug(f"Usage event {event.id} recorded: user={user_id}, {action_type.value}={target_id}")
        return event.to_dict()


@with_db_retry
async def list_recent_usage_events(user_id: str, limit: int = 5) -> List[Dict[str, Any]]:
    """
    List an account's most recent usage events, newest first.

    Args:
        user_id: Account to list events for
        limit: Maximum number of events

    Returns:
        List of event dictionaries
    """
    async with db.session() as session:
        if session is None:
            return []

        stmt = (
            select(UsageEventModel)
            .where(UsageEventModel.user_id == user_id)
            .order_by(desc(UsageEventModel.created_at))
            .limit(limit)
        )
        result = await session.execute(stmt)
        return [event.to_dict() for event in result.scalars().all()]
