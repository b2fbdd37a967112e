"""Automation repository. Returns domain entities."""

from __future__ import annotations

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from travel_crm.domain.entities import AutomationActionEntity, AutomationEntity
from travel_crm.domain.enums import ActionType, TriggerType
from travel_crm.domain.exceptions import ResourceNotFoundException
from travel_crm.infrastructure.persistence.models.automation import (
    Automation,
    AutomationAction,
)
from travel_crm.infrastructure.persistence.repositories.base import BaseRepository
from travel_crm.shared.utils.datetime import ensure_utc, utc_now


def _automation_to_entity(a: Automation) -> AutomationEntity:
    """Map Automation ORM (with loaded actions) to AutomationEntity."""
    return AutomationEntity(
        id=a.id,
        name=a.name,
        description=a.description,
        trigger_type=TriggerType(a.trigger_type),
        trigger_conditions=dict(a.trigger_conditions or {}),
        actions=[
            AutomationActionEntity(
                id=act.id,
                action_type=ActionType(act.action_type),
                parameters=dict(act.parameters or {}),
                order=act.order,
                delay_minutes=act.delay_minutes,
            )
            for act in a.actions
        ],
        is_active=a.is_active,
        created_at=ensure_utc(a.created_at),
        updated_at=ensure_utc(a.updated_at),
    )


def _actions_to_orm(actions: list[AutomationActionEntity]) -> list[AutomationAction]:
    return [
        AutomationAction(
            id=act.id,
            action_type=act.action_type.value,
            parameters=act.parameters,
            delay_minutes=act.delay_minutes,
            order=act.order,
            position=position,
        )
        for position, act in enumerate(actions)
    ]


class AutomationRepository(BaseRepository[Automation]):
    """Automation repository. Actions are loaded with their automation and replaced as a whole."""

    def __init__(self, db: AsyncSession) -> None:
        super().__init__(db, Automation)

    async def create_automation(self, automation: AutomationEntity) -> AutomationEntity:
        orm = Automation(
            id=automation.id,
            name=automation.name,
            description=automation.description,
            trigger_type=automation.trigger_type.value,
            trigger_conditions=automation.trigger_conditions,
            is_active=automation.is_active,
            created_at=automation.created_at or utc_now(),
            updated_at=automation.updated_at or utc_now(),
            actions=_actions_to_orm(automation.actions),
        )
        created = await self.create(orm)
        return _automation_to_entity(created)

    async def get_by_id(self, automation_id: str) -> AutomationEntity | None:
        row = await self._get_orm(automation_id)
        return _automation_to_entity(row) if row else None

    async def list_automations(
        self,
        *,
        is_active: bool | None = None,
        trigger_type: TriggerType | None = None,
        skip: int = 0,
        limit: int = 20,
    ) -> tuple[list[AutomationEntity], int]:
        """Return one page (newest first) and the total count for the same filters."""
        filters = []
        if is_active is not None:
            filters.append(Automation.is_active.is_(is_active))
        if trigger_type is not None:
            filters.append(Automation.trigger_type == trigger_type.value)
        q = (
            select(Automation)
            .where(*filters)
            .order_by(Automation.created_at.desc())
            .offset(skip)
            .limit(limit)
        )
        result = await self.db.execute(q)
        items = [_automation_to_entity(a) for a in result.scalars().all()]
        total = await self.db.scalar(select(func.count(Automation.id)).where(*filters))
        return items, total or 0

    async def update_automation(self, automation: AutomationEntity) -> AutomationEntity:
        """Persist scalar fields and replace the action list.

        Raises:
            ResourceNotFoundException: If the automation no longer exists.
        """
        orm = await self._get_orm(automation.id)
        if not orm:
            raise ResourceNotFoundException("automation", automation.id)
        orm.name = automation.name
        orm.description = automation.description
        orm.trigger_type = automation.trigger_type.value
        orm.trigger_conditions = automation.trigger_conditions
        orm.is_active = automation.is_active
        orm.updated_at = automation.updated_at or utc_now()
        current_ids = [a.id for a in orm.actions]
        if [a.id for a in automation.actions] != current_ids:
            orm.actions = _actions_to_orm(automation.actions)
        await self.db.flush()
        return _automation_to_entity(orm)

    async def set_active(self, automation_id: str, is_active: bool) -> AutomationEntity | None:
        orm = await self._get_orm(automation_id)
        if not orm:
            return None
        orm.is_active = is_active
        orm.updated_at = utc_now()
        await self.db.flush()
        return _automation_to_entity(orm)

    async def delete_automation(self, automation_id: str) -> bool:
        """Delete automation; actions and executions go with it (FK cascade)."""
        orm = await self._get_orm(automation_id)
        if not orm:
            return False
        await self.delete(orm)
        return True

    async def get_active_by_trigger(self, trigger_type: TriggerType) -> list[AutomationEntity]:
        result = await self.db.execute(
            select(Automation)
            .where(
                Automation.trigger_type == trigger_type.value,
                Automation.is_active.is_(True),
            )
            .order_by(Automation.created_at.asc())
        )
        return [_automation_to_entity(a) for a in result.scalars().all()]

    async def count_automations(self, is_active: bool | None = None) -> int:
        q = select(func.count(Automation.id))
        if is_active is not None:
            q = q.where(Automation.is_active.is_(is_active))
        return await self.db.scalar(q) or 0
