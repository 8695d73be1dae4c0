from __future__ import annotations
"""Simple finite state machine utility for enforcing allowed status transitions.

Usage:
    from mint.utils.fsm import TransitionValidator
    ACCOUNT_FSM = TransitionValidator({
        'PENDING_VERIFICATION': {'ACTIVE'},
        'ACTIVE': {'SUSPENDED'},
        'SUSPENDED': set(),
    })
    ACCOUNT_FSM.assert_can_transition(current_status, target_status)

Raises InvalidArgumentError if invalid.
"""
from typing import Dict, Hashable, Set
from mint.errors import InvalidArgumentError


class TransitionValidator:
    def __init__(self, graph: Dict[Hashable, Set[Hashable]], field_name: str = 'status'):
        self.graph = graph
        self.field_name = field_name

    def can_transition(self, current, target) -> bool:
        return target in self.graph.get(current, set())

    def assert_can_transition(self, current, target):
        if not self.can_transition(current, target):
            raise InvalidArgumentError(
                f"Invalid {self.field_name} transition {_label(current)} -> {_label(target)}"
            )
        return True


def _label(value) -> str:
    return getattr(value, 'value', value)


__all__ = ['TransitionValidator']
