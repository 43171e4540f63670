"""
State kinds and shared data for the state machine.

Every node carries a State describing how (and whether) its handler runs.
The shared data is the single mutable object handed to every handler.
"""

from typing import Any, Callable, Dict, Optional, Union
from dataclasses import dataclass
from enum import Enum
from pydantic import BaseModel


class StateType(str, Enum):
    """The kinds of state a step can be in."""
    TASK = "task"            # Runs its handler
    CHOICE = "choice"        # Runs its handler if the condition holds
    SLEEP = "sleep"          # Blocks the thread, runs nothing
    PASS = "pass"
    PARALLEL = "parallel"    # Accepted, inert
    SUCCEED = "succeed"
    FAIL = "fail"
    MAP = "map"              # Accepted, inert
    CUSTOM = "custom"


@dataclass(frozen=True)
class State:
    """
    The state of a step.

    Only CHOICE and SLEEP carry a payload: the zero-argument condition
    and the number of seconds to sleep respectively. Use the class
    constructors rather than building instances by hand:

        State.task()
        State.choice(lambda: True)
        State.sleep(1)
    """

    type: StateType
    condition: Optional[Callable[[], bool]] = None
    seconds: Optional[float] = None

    def __post_init__(self):
        """Validate the payload for the state type."""
        if self.type == StateType.CHOICE and not callable(self.condition):
            raise ValueError("Choice state requires a callable condition")
        if self.type == StateType.SLEEP:
            if self.seconds is None or self.seconds < 0:
                raise ValueError("Sleep state requires a non-negative duration")

    @classmethod
    def task(cls) -> "State":
        return cls(StateType.TASK)

    @classmethod
    def choice(cls, condition: Callable[[], bool]) -> "State":
        return cls(StateType.CHOICE, condition=condition)

    @classmethod
    def sleep(cls, seconds: float) -> "State":
        return cls(StateType.SLEEP, seconds=seconds)

    @classmethod
    def pass_(cls) -> "State":
        return cls(StateType.PASS)

    @classmethod
    def parallel(cls) -> "State":
        return cls(StateType.PARALLEL)

    @classmethod
    def succeed(cls) -> "State":
        return cls(StateType.SUCCEED)

    @classmethod
    def fail(cls) -> "State":
        return cls(StateType.FAIL)

    @classmethod
    def map(cls) -> "State":
        return cls(StateType.MAP)

    @classmethod
    def custom(cls) -> "State":
        return cls(StateType.CUSTOM)

    @classmethod
    def coerce(cls, value: Union["State", StateType, str]) -> "State":
        """
        Build a State from a State, a StateType or its string value.

        Bare types are only accepted for states without a payload.
        """
        if isinstance(value, State):
            return value
        state_type = StateType(value)
        if state_type in (StateType.CHOICE, StateType.SLEEP):
            raise ValueError(
                f"State '{state_type.value}' needs a payload, "
                f"use State.{state_type.value}(...)"
            )
        return cls(state_type)

    def to_dict(self) -> Dict[str, Any]:
        result: Dict[str, Any] = {"type": self.type.value}
        if self.condition is not None:
            result["condition"] = getattr(self.condition, "__name__", str(self.condition))
        if self.seconds is not None:
            result["seconds"] = self.seconds
        return result


class StateData(BaseModel):
    """
    Base class for shared data passed between steps.

    The engine accepts any mutable object as shared data; subclassing
    this model adds validation and JSON loading:

        class Counter(StateData):
            counter: int
            id: str

        data = Counter.from_json('{"counter": 5, "id": "some-id"}')
    """

    class Config:
        arbitrary_types_allowed = True
        validate_assignment = True

    @classmethod
    def from_json(cls, json_data: Union[str, bytes]) -> "StateData":
        """Create an instance from a JSON document."""
        return cls.model_validate_json(json_data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert the data to a plain dictionary."""
        return self.model_dump()
