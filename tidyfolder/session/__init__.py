"""Session lifecycle: selection and step tracking."""

from .selection import SelectionSet
from .state_machine import Step, StepStateMachine, TRANSITIONS

__all__ = [
    "SelectionSet",
    "Step",
    "StepStateMachine",
    "TRANSITIONS",
]
