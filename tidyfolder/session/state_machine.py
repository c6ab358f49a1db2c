"""
Step State Machine
==================

The externally visible lifecycle of a tidy session::

    IDLE -> SCANNING -> DUPLICATES -> REVIEW -> [VERIFYING] -> EXPORTING -> COMPLETED

Every step can go back to IDLE through ``reset``. Each step only allows the
transitions listed in ``TRANSITIONS``, so two operations can never run
against the same root at once.
"""

from enum import Enum
from typing import Callable, Dict, FrozenSet, List, Optional

from tidyfolder.utils.exceptions import InvalidTransitionError
from tidyfolder.utils.logging_config import get_logger

logger = get_logger(__name__)


class Step(Enum):
    """Lifecycle steps."""
    IDLE = "IDLE"
    SCANNING = "SCANNING"
    DUPLICATES = "DUPLICATES"
    REVIEW = "REVIEW"
    VERIFYING = "VERIFYING"
    EXPORTING = "EXPORTING"
    COMPLETED = "COMPLETED"


TRANSITIONS: Dict[Step, FrozenSet[Step]] = {
    Step.IDLE: frozenset({Step.SCANNING}),
    Step.SCANNING: frozenset({Step.DUPLICATES, Step.REVIEW, Step.IDLE}),
    Step.DUPLICATES: frozenset({Step.REVIEW}),
    Step.REVIEW: frozenset({Step.VERIFYING, Step.EXPORTING}),
    Step.VERIFYING: frozenset({Step.EXPORTING, Step.REVIEW}),
    Step.EXPORTING: frozenset({Step.COMPLETED, Step.REVIEW, Step.IDLE}),
    Step.COMPLETED: frozenset({Step.EXPORTING, Step.IDLE}),
}


class StepStateMachine:
    """Holds the current step and enforces the allowed transitions."""

    def __init__(self, on_change: Optional[Callable[[Step, Step], None]] = None):
        """Initialize at IDLE.

        Args:
            on_change: Called with (old, new) after every change.
        """
        self._step = Step.IDLE
        self._on_change = on_change
        self.history: List[Step] = [Step.IDLE]

    @property
    def step(self) -> Step:
        return self._step

    def can_transition(self, target: Step) -> bool:
        return target in TRANSITIONS[self._step]

    def transition(self, target: Step) -> None:
        """Move to ``target``.

        Raises:
            InvalidTransitionError: If the current step does not allow it.
        """
        if not self.can_transition(target):
            raise InvalidTransitionError(self._step.value, target.value)
        self._set(target)

    def require(self, *steps: Step) -> None:
        """Raise unless the machine is in one of ``steps``."""
        if self._step not in steps:
            wanted = "|".join(s.value for s in steps)
            raise InvalidTransitionError(self._step.value, wanted)

    def restore(self, step: Step) -> None:
        """Return to a step held before an operation that did not go ahead."""
        if step != self._step:
            logger.debug(f"Restoring step {step.value}")
            self._set(step)

    def reset(self) -> None:
        self._set(Step.IDLE)

    def _set(self, target: Step) -> None:
        old = self._step
        self._step = target
        self.history.append(target)
        logger.debug(f"Step {old.value} -> {target.value}")
        if self._on_change:
            self._on_change(old, target)
