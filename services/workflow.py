"""Appointment status lifecycle.

``pending -> confirmed -> completed``, and ``pending``/``confirmed`` may be
cancelled. ``completed`` and ``cancelled`` are terminal. Only administrators
change status; owners can only track it.
"""
from __future__ import annotations

from enum import Enum
from typing import Dict, FrozenSet, List

from core import messages
from core.errors import PetShopError
from models.appointment import AppointmentStatus


TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    AppointmentStatus.pending: frozenset({AppointmentStatus.confirmed, AppointmentStatus.cancelled}),
    AppointmentStatus.confirmed: frozenset({AppointmentStatus.completed, AppointmentStatus.cancelled}),
    AppointmentStatus.completed: frozenset(),
    AppointmentStatus.cancelled: frozenset(),
}

TERMINAL_STATUSES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)
INITIAL_STATUS = AppointmentStatus.pending


class WorkflowAction(str, Enum):
    confirm = "confirm"
    complete = "complete"
    cancel = "cancel"


_ACTION_TARGETS: Dict[WorkflowAction, AppointmentStatus] = {
    WorkflowAction.confirm: AppointmentStatus.confirmed,
    WorkflowAction.complete: AppointmentStatus.completed,
    WorkflowAction.cancel: AppointmentStatus.cancelled,
}


class TransitionNotAllowed(PetShopError):
    def __init__(self, current: AppointmentStatus, target: AppointmentStatus) -> None:
        super().__init__(f"{messages.TRANSITION_NOT_ALLOWED}: {current.value} -> {target.value}")
        self.current = current
        self.target = target


class ActorNotAuthorized(PetShopError):
    def __init__(self) -> None:
        super().__init__(messages.ACCESS_DENIED)


def target_status(action: WorkflowAction) -> AppointmentStatus:
    return _ACTION_TARGETS[action]


def can_transition(current: AppointmentStatus, target: AppointmentStatus, actor_is_admin: bool) -> bool:
    if not actor_is_admin:
        return False
    return target in TRANSITIONS.get(AppointmentStatus(current), frozenset())


def available_actions(current: AppointmentStatus) -> List[WorkflowAction]:
    allowed = TRANSITIONS.get(AppointmentStatus(current), frozenset())
    return [action for action, target in _ACTION_TARGETS.items() if target in allowed]


def apply_action(current: AppointmentStatus, action: WorkflowAction, actor_is_admin: bool) -> AppointmentStatus:
    if not actor_is_admin:
        raise ActorNotAuthorized()
    current = AppointmentStatus(current)
    target = target_status(action)
    if not can_transition(current, target, actor_is_admin):
        raise TransitionNotAllowed(current, target)
    return target
