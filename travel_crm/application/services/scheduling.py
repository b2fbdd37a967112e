"""Action execution ordering and delay arithmetic.

Actions run in ascending order. Each action waits its delay_minutes after
the previous action completes (after trigger fire for the first one). The
delay postpones the action; it never skips it.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from travel_crm.domain.enums import ActionType
from travel_crm.shared.utils.datetime import add_minutes


class _ActionLike(Protocol):
    action_type: ActionType
    parameters: dict[str, Any]
    order: int
    delay_minutes: int


@dataclass(frozen=True)
class PlannedStep:
    """An action placed in the execution sequence.

    offset_minutes is the cumulative delay from trigger fire, i.e. the
    earliest moment the step can run if every earlier step finishes instantly.
    """

    position: int
    order: int
    action_type: ActionType
    parameters: dict[str, Any]
    delay_minutes: int
    offset_minutes: int

    def earliest_fire_at(self, fired_at: datetime) -> datetime:
        return add_minutes(fired_at, self.offset_minutes)


def plan_action_schedule(actions: Iterable[_ActionLike]) -> list[PlannedStep]:
    """Order actions for execution and compute their cumulative offsets.

    Sorting is stable: actions sharing an order value keep their list position.
    """
    planned: list[PlannedStep] = []
    offset = 0
    for position, action in enumerate(sorted(actions, key=lambda a: a.order)):
        offset += action.delay_minutes
        planned.append(
            PlannedStep(
                position=position,
                order=action.order,
                action_type=action.action_type,
                parameters=dict(action.parameters),
                delay_minutes=action.delay_minutes,
                offset_minutes=offset,
            )
        )
    return planned


def next_due_at(previous_finished_at: datetime, delay_minutes: int) -> datetime:
    """Due time of a step whose predecessor finished (or trigger fired) at previous_finished_at."""
    return add_minutes(previous_finished_at, delay_minutes)
