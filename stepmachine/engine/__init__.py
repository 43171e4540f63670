"""
Engine package - Core state machine components.
"""

from stepmachine.engine.errors import StateMachineError, DuplicateNodeError
from stepmachine.engine.state import State, StateType, StateData
from stepmachine.engine.node import (
    Catcher,
    Node,
    okay,
    pass_step,
    choice_step,
    fail_step,
    STATE_FAILED,
)
from stepmachine.engine.graph import Graph
from stepmachine.engine.backoff import exponential_backoff
from stepmachine.engine.executor import (
    Executor,
    ExecutionResult,
    ExecutionStatus,
    StateMachine,
    execute_graph,
)

__all__ = [
    "StateMachineError",
    "DuplicateNodeError",
    "State",
    "StateType",
    "StateData",
    "Catcher",
    "Node",
    "okay",
    "pass_step",
    "choice_step",
    "fail_step",
    "STATE_FAILED",
    "Graph",
    "exponential_backoff",
    "Executor",
    "ExecutionResult",
    "ExecutionStatus",
    "StateMachine",
    "execute_graph",
]
