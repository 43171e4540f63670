"""
Node Definition for the State Machine.

Nodes are the steps of a state machine. Each node pairs a State with a
handler that mutates the shared data in place and raises on failure.
"""

from typing import Any, Callable, Dict, List, Optional
from dataclasses import dataclass, field
import logging
import time

from stepmachine.engine.errors import StateMachineError
from stepmachine.engine.state import State, StateType


logger = logging.getLogger(__name__)

# Signature of a step handler: mutate the shared data, raise on failure
StepFunction = Callable[[Any], None]

# Error description returned by fail_step
STATE_FAILED = "STATE.FAILED"


@dataclass
class Catcher:
    """
    An entry of a node's catch table.

    When the pending error description equals one of ``error_equals``,
    ``next`` is invoked with the shared data to recover from it.
    """
    error_equals: List[str]
    next: StepFunction

    def __post_init__(self):
        if isinstance(self.error_equals, str):
            self.error_equals = [self.error_equals]
        if not callable(self.next):
            raise ValueError("Catcher next step must be callable")

    def matches(self, error: str) -> bool:
        return error in self.error_equals

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error_equals": list(self.error_equals),
            "next": _callable_name(self.next),
        }


@dataclass
class Node:
    """
    A step in the state machine.

    Attributes:
        id: Unique identifier for the node within its graph
        state: How the handler is run (task, choice, sleep, ...)
        handler: Function receiving the shared data
        next: Optional function invoked before the node's own state logic
        catch: Optional catch table applied to a pending error
        retry: Error descriptions that trigger retry with backoff
        end: When true, no later node is run
        invocation_count: Number of times the engine ran this node
    """

    id: str
    state: State
    handler: StepFunction
    next: Optional[StepFunction] = None
    catch: Optional[List[Catcher]] = None
    retry: Optional[List[str]] = None
    end: Optional[bool] = None
    invocation_count: int = field(default=0, compare=False)

    def __post_init__(self):
        """Validate the node after initialization."""
        if not self.id:
            raise ValueError("Node id cannot be empty")
        if not callable(self.handler):
            raise ValueError(f"Handler for node '{self.id}' must be callable")
        if self.next is not None and not callable(self.next):
            raise ValueError(f"Next step for node '{self.id}' must be callable")
        if isinstance(self.retry, str):
            self.retry = [self.retry]
        self.state = State.coerce(self.state)

    @property
    def is_terminal(self) -> bool:
        return bool(self.end)

    def should_retry(self, error: str) -> bool:
        """Check whether an error description is one of the retry triggers."""
        return bool(self.retry) and error in self.retry

    def execute(self, data: Any) -> None:
        """
        Run the node's state logic against the shared data.

        TASK always runs the handler, CHOICE only when its condition is
        true, SLEEP blocks for its duration. Every other state is a no-op.
        Errors raised by the handler propagate unchanged.
        """
        self.invocation_count += 1
        state = self.state

        if state.type == StateType.TASK:
            self.handler(data)
        elif state.type == StateType.CHOICE:
            if state.condition():
                self.handler(data)
            else:
                logger.debug(f"Condition for node '{self.id}' is false, skipping")
        elif state.type == StateType.SLEEP:
            time.sleep(state.seconds)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the node to a dictionary."""
        return {
            "id": self.id,
            "state": self.state.to_dict(),
            "handler": _callable_name(self.handler),
            "next": _callable_name(self.next) if self.next else None,
            "catch": [c.to_dict() for c in self.catch] if self.catch else None,
            "retry": list(self.retry) if self.retry else None,
            "end": self.end,
            "invocation_count": self.invocation_count,
        }


def _callable_name(func: Callable) -> str:
    return func.__name__ if hasattr(func, '__name__') else str(func)


# ============================================================
# Built-in step functions
# ============================================================

def okay(data: Any) -> None:
    """Step that always succeeds."""


def pass_step(data: Any) -> None:
    """Step that does nothing, for PASS states."""


def choice_step(data: Any) -> None:
    """Step that does nothing, for CHOICE states used only as markers."""


def fail_step(data: Any) -> None:
    """Step that always fails with STATE.FAILED."""
    raise StateMachineError(STATE_FAILED)
