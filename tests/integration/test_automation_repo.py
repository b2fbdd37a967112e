"""Automation and execution repository integration tests.

Require Postgres with migrations applied; the session is rolled back after each test.
"""

from datetime import UTC, datetime, timedelta

import pytest

from travel_crm.domain.entities import (
    AutomationActionEntity,
    AutomationEntity,
    ExecutionEntity,
    ExecutionStepEntity,
)
from travel_crm.domain.enums import ActionType, ExecutionStatus, StepStatus, TriggerType
from travel_crm.infrastructure.persistence.repositories import (
    AutomationRepository,
    ExecutionRepository,
)
from travel_crm.shared.utils.generators import generate_uuid

NOW = datetime(2026, 3, 1, 10, 0, tzinfo=UTC)


def _automation(name: str = "Repo test", is_active: bool = True) -> AutomationEntity:
    return AutomationEntity(
        id=generate_uuid(),
        name=name,
        trigger_type=TriggerType.BIRTHDAY,
        trigger_conditions={"daysBefore": 2},
        is_active=is_active,
        actions=[
            AutomationActionEntity(
                id=generate_uuid(),
                action_type=ActionType.ADD_TAG,
                parameters={"tags": ["b"]},
                order=2,
            ),
            AutomationActionEntity(
                id=generate_uuid(),
                action_type=ActionType.ADD_TAG,
                parameters={"tags": ["a"]},
                order=1,
                delay_minutes=5,
            ),
        ],
    )


@pytest.mark.requires_db
async def test_create_and_get_keeps_actions_ordered(db_session) -> None:
    repo = AutomationRepository(db_session)
    created = await repo.create_automation(_automation())
    found = await repo.get_by_id(created.id)
    assert found is not None
    assert [a.order for a in found.actions] == [1, 2]
    assert found.actions[0].delay_minutes == 5
    assert found.trigger_conditions == {"daysBefore": 2}


@pytest.mark.requires_db
async def test_list_filters_and_counts(db_session) -> None:
    repo = AutomationRepository(db_session)
    active = await repo.create_automation(_automation("Active"))
    await repo.create_automation(_automation("Inactive", is_active=False))

    items, total = await repo.list_automations(is_active=True, trigger_type=TriggerType.BIRTHDAY)
    assert active.id in [a.id for a in items]
    assert total >= 1
    assert all(a.is_active for a in items)
    assert await repo.count_automations(is_active=False) >= 1


@pytest.mark.requires_db
async def test_update_replaces_actions_and_delete(db_session) -> None:
    repo = AutomationRepository(db_session)
    created = await repo.create_automation(_automation())
    created.name = "Renamed"
    created.actions = [
        AutomationActionEntity(
            id=generate_uuid(),
            action_type=ActionType.UPDATE_STATUS,
            parameters={"status": "CLIENTE"},
            order=1,
        )
    ]
    updated = await repo.update_automation(created)
    assert updated.name == "Renamed"
    assert [a.action_type for a in updated.actions] == [ActionType.UPDATE_STATUS]

    assert await repo.delete_automation(created.id) is True
    assert await repo.get_by_id(created.id) is None
    assert await repo.delete_automation(created.id) is False


@pytest.mark.requires_db
async def test_execution_round_trip_and_claim(db_session) -> None:
    automation = await AutomationRepository(db_session).create_automation(_automation())
    repo = ExecutionRepository(db_session)
    execution = ExecutionEntity(
        automation_id=automation.id,
        triggered_by={"contactId": "c-1"},
        status=ExecutionStatus.RUNNING,
        started_at=NOW,
        idempotency_key=f"key-{automation.id}",
    )
    execution.steps = [
        ExecutionStepEntity(
            execution_id=execution.id,
            order=1,
            action_type=ActionType.ADD_TAG,
            parameters={"tags": ["a"]},
            delay_minutes=5,
            due_at=NOW + timedelta(minutes=5),
        )
    ]
    await repo.create_execution(execution)

    by_key = await repo.get_by_idempotency_key(automation.id, f"key-{automation.id}")
    assert by_key is not None and by_key.id == execution.id

    assert await repo.claim_due("w1", NOW, NOW + timedelta(minutes=5), 10) == []
    later = NOW + timedelta(minutes=6)
    claimed = await repo.claim_due("w1", later, later + timedelta(minutes=5), 10)
    assert execution.id in [e.id for e in claimed]

    done = next(e for e in claimed if e.id == execution.id)
    step = done.steps[0]
    step.status = StepStatus.SUCCESS
    step.attempts = 1
    step.completed_at = later
    done.status = ExecutionStatus.COMPLETED
    done.completed_at = later
    done.claimed_by = None
    done.claimed_until = None
    saved = await repo.save_execution(done)
    assert saved.status == ExecutionStatus.COMPLETED
    assert saved.steps[0].status == StepStatus.SUCCESS

    latest = await repo.get_latest_for_automations([automation.id], 5)
    assert [e.id for e in latest[automation.id]] == [execution.id]
    recent = await repo.list_recent_with_names(NOW - timedelta(days=1))
    assert (execution.id, automation.name) in [(e.id, name) for e, name in recent]


@pytest.mark.requires_db
async def test_duplicate_idempotency_key_returns_stored_execution(db_session) -> None:
    automation = await AutomationRepository(db_session).create_automation(_automation())
    repo = ExecutionRepository(db_session)

    def _execution() -> ExecutionEntity:
        return ExecutionEntity(
            automation_id=automation.id,
            triggered_by={"contactId": "c-1"},
            status=ExecutionStatus.RUNNING,
            started_at=NOW,
            idempotency_key="evt-dup",
        )

    first = await repo.create_execution(_execution())
    second = await repo.create_execution(_execution())

    assert second.id == first.id
    assert [e.id for e in await repo.list_by_automation(automation.id)] == [first.id]


@pytest.mark.requires_db
async def test_get_for_update_sees_latest_state(db_session) -> None:
    automation = await AutomationRepository(db_session).create_automation(_automation())
    repo = ExecutionRepository(db_session)
    execution = await repo.create_execution(
        ExecutionEntity(
            automation_id=automation.id,
            triggered_by={},
            status=ExecutionStatus.RUNNING,
            started_at=NOW,
        )
    )
    execution.status = ExecutionStatus.PAUSED
    await repo.save_execution(execution)

    locked = await repo.get_for_update(execution.id)
    assert locked is not None
    assert locked.status == ExecutionStatus.PAUSED
    assert await repo.get_for_update(generate_uuid()) is None
