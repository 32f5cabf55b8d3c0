"""
Жизненный цикл статуса записи

SCHEDULED -> CONFIRMED -> IN_PROGRESS -> COMPLETED,
CANCELLED и NO_SHOW - досрочные конечные состояния из SCHEDULED/CONFIRMED.
"""
from typing import Dict, FrozenSet, Union

from ..errors import InvalidStatusTransition
from ..models import AppointmentStatus

S = AppointmentStatus

ALLOWED_TRANSITIONS: Dict[AppointmentStatus, FrozenSet[AppointmentStatus]] = {
    S.SCHEDULED: frozenset({S.CONFIRMED, S.IN_PROGRESS, S.CANCELLED, S.NO_SHOW}),
    S.CONFIRMED: frozenset({S.IN_PROGRESS, S.CANCELLED, S.NO_SHOW}),
    S.IN_PROGRESS: frozenset({S.COMPLETED}),
    S.COMPLETED: frozenset(),
    S.CANCELLED: frozenset(),
    S.NO_SHOW: frozenset(),
}

TERMINAL_STATUSES = frozenset(status for status, targets in ALLOWED_TRANSITIONS.items() if not targets)


def can_transition(current: Union[str, AppointmentStatus], new: Union[str, AppointmentStatus]) -> bool:
    """Повторная установка того же статуса всегда разрешена"""
    current, new = AppointmentStatus(current), AppointmentStatus(new)
    return current == new or new in ALLOWED_TRANSITIONS[current]


def ensure_transition(current: Union[str, AppointmentStatus], new: Union[str, AppointmentStatus]):
    if not can_transition(current, new):
        raise InvalidStatusTransition(AppointmentStatus(current).value, AppointmentStatus(new).value)


def is_terminal(status: Union[str, AppointmentStatus]) -> bool:
    return AppointmentStatus(status) in TERMINAL_STATUSES
