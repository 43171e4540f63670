"""
State Machine Executor.

The executor walks a graph's nodes in order against one shared data
object, applying catch tables, retry with backoff and terminal flags,
and reports the run as an ExecutionResult.
"""

from typing import Any, Callable, Dict, List, Optional, Union
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
import uuid
import time
import logging

from stepmachine.config import settings
from stepmachine.engine.backoff import exponential_backoff
from stepmachine.engine.errors import StateMachineError
from stepmachine.engine.graph import Graph
from stepmachine.engine.node import Catcher, Node, StepFunction
from stepmachine.engine.state import State, StateType


logger = logging.getLogger(__name__)

# A node already run this many times is not run again
MAX_INVOCATIONS = 2


class ExecutionStatus(str, Enum):
    """Status of a state machine run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class ExecutionStep:
    """A single node processed during a run."""
    step: int
    node: str
    started_at: datetime
    completed_at: Optional[datetime] = None
    duration_ms: Optional[float] = None
    result: str = "success"
    error: Optional[str] = None
    retried: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": self.step,
            "node": self.node,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_ms": self.duration_ms,
            "result": self.result,
            "error": self.error,
            "retried": self.retried,
        }


@dataclass
class ExecutionResult:
    """Result of a state machine run."""
    run_id: str
    graph_id: str
    status: ExecutionStatus
    data: Any = None
    execution_log: List[ExecutionStep] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    total_duration_ms: Optional[float] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status == ExecutionStatus.COMPLETED

    @property
    def executed_nodes(self) -> List[str]:
        """Ids of the nodes processed, in order."""
        return [step.node for step in self.execution_log]

    def raise_for_error(self) -> None:
        """Raise a StateMachineError if the run failed."""
        if not self.ok:
            raise StateMachineError(self.error or "Unknown error")

    def to_dict(self) -> Dict[str, Any]:
        return {
            "run_id": self.run_id,
            "graph_id": self.graph_id,
            "status": self.status.value,
            "execution_log": [step.to_dict() for step in self.execution_log],
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "total_duration_ms": self.total_duration_ms,
            "error": self.error,
        }


class Executor:
    """
    Synchronous state machine executor.

    Runs the nodes of a graph in order against the shared data. For each
    node it:
    - refuses to run a node already invoked MAX_INVOCATIONS times
    - resolves the error pending from an earlier failure through the
      node's catch table, or fails with it
    - runs the node's ``next`` function, then its own state logic
    - retries with exponential backoff when the error is a retry trigger
    - stops after a node flagged ``end``

    The pending error is kept between runs, so a failed run can be
    recovered by a catch table on the next one.

    Usage:
        executor = Executor(graph, data)
        result = executor.run()
    """

    def __init__(
        self,
        graph: Graph,
        data: Any,
        run_id: Optional[str] = None,
        on_step: Optional[Callable[[ExecutionStep, Any], None]] = None
    ):
        """
        Initialize the executor.

        Args:
            graph: The graph to execute
            data: The shared data, mutated in place by the nodes
            run_id: Optional run ID (generated if not provided)
            on_step: Optional callback invoked after each node
        """
        self.graph = graph
        self.data = data
        self.run_id = run_id or str(uuid.uuid4())
        self.on_step = on_step

        # Execution state
        self.pending_error: Optional[str] = None
        self._execution_log: List[ExecutionStep] = []
        self._step_counter = 0
        self._status = ExecutionStatus.PENDING

    @property
    def status(self) -> ExecutionStatus:
        """Get the current execution status."""
        return self._status

    def run(self) -> ExecutionResult:
        """
        Execute every node of the graph in order.

        Returns:
            ExecutionResult, failed with the triggering error's description
            if any node could not be run or recovered
        """
        start_time = time.time()
        started_at = datetime.now()
        self._status = ExecutionStatus.RUNNING
        self._execution_log = []
        self._step_counter = 0

        logger.info(f"Executing state machine: {self.graph.graph_id} (run {self.run_id})")

        for node in self.graph.nodes:
            if node.invocation_count >= MAX_INVOCATIONS:
                return self._create_result(
                    ExecutionStatus.FAILED,
                    start_time,
                    started_at,
                    error=(
                        f"state machine {self.graph.graph_id} failed for step {node.id}. "
                        f"Step has been invoked up to three times"
                    ),
                )

            if self.pending_error is not None:
                error = self._resolve_pending_error(node)
                if error is not None:
                    return self._create_result(
                        ExecutionStatus.FAILED, start_time, started_at, error=error
                    )

            step = self._execute_node(node)
            if step.result == "error":
                return self._create_result(
                    ExecutionStatus.FAILED,
                    start_time,
                    started_at,
                    error=step.error or "Unknown error",
                )

            if node.is_terminal:
                logger.info(f"Node '{node.id}' is terminal, stopping")
                break

        return self._create_result(ExecutionStatus.COMPLETED, start_time, started_at)

    def execute_by_id(self, node_id: str) -> ExecutionResult:
        """
        Run the state logic of a single node, outside of a full run.

        Catch tables, retry triggers and terminal flags are ignored. An
        unknown id is a no-op and returns a completed result.

        Args:
            node_id: Id of the node to run

        Returns:
            ExecutionResult for that node alone
        """
        start_time = time.time()
        started_at = datetime.now()
        self._execution_log = []
        self._step_counter = 0

        node = self.graph.get_node(node_id)
        if node is None:
            logger.debug(f"No node '{node_id}' in state machine {self.graph.graph_id}")
            return self._create_result(ExecutionStatus.COMPLETED, start_time, started_at)

        step = self._start_step(node)
        node_start_time = time.time()
        try:
            node.execute(self.data)
        except Exception as e:
            logger.info(f"Error: {e}")
            step.error = str(e)
        self._finish_step(step, node_start_time)

        if step.error is not None:
            return self._create_result(
                ExecutionStatus.FAILED, start_time, started_at, error=step.error
            )
        return self._create_result(ExecutionStatus.COMPLETED, start_time, started_at)

    def _resolve_pending_error(self, node: Node) -> Optional[str]:
        """
        Apply the node's catch table to the pending error.

        Every matching entry runs, in table order. Returns the error the
        run must fail with, or None once the pending error is recovered.
        """
        pending = self.pending_error
        if not node.catch:
            logger.info(f"Node '{node.id}' has no catch table for pending error '{pending}'")
            return pending

        matched = False
        for catcher in node.catch:
            if not catcher.matches(pending):
                continue
            matched = True
            logger.info(f"Node '{node.id}' catching '{pending}'")
            try:
                catcher.next(self.data)
            except Exception as e:
                self.pending_error = str(e)
                logger.info(f"Recovery of '{pending}' at node '{node.id}' failed: {e}")
                return self.pending_error

        if not matched:
            logger.info(f"Node '{node.id}' does not catch pending error '{pending}'")
            return pending

        self.pending_error = None
        return None

    def _execute_node(self, node: Node) -> ExecutionStep:
        """Run the node's next function and state logic, recording a step."""
        step = self._start_step(node)
        node_start_time = time.time()

        logger.info(f"Executing node: {node.id} (step {step.step})")

        if node.next is not None:
            try:
                node.next(self.data)
            except Exception as e:
                self.pending_error = step.error = str(e)
                logger.info(f"Next step of node {node.id} failed: {e}")
                return self._finish_step(step, node_start_time)

        try:
            node.execute(self.data)
        except Exception as e:
            self.pending_error = step.error = str(e)
            logger.info(f"Node {node.id} failed: {e}")
            if node.should_retry(step.error):
                step.retried = True
                self._retry(node)

        return self._finish_step(step, node_start_time)

    def _retry(self, node: Node) -> None:
        """
        Re-run a failed node with exponential backoff.

        The outcome is only logged: the run fails with the node's original
        error either way.
        """
        logger.info(f"Retrying node '{node.id}' with a budget of {self.graph.retries}")
        try:
            exponential_backoff(node.execute, self.data, self.graph.retries)
        except Exception as e:
            logger.error(f"Operation failed for step {node.id} after multiple retries: {e}")
        else:
            logger.info(f"Operation for step {node.id} completed successfully on retry")

    def _start_step(self, node: Node) -> ExecutionStep:
        self._step_counter += 1
        return ExecutionStep(
            step=self._step_counter,
            node=node.id,
            started_at=datetime.now(),
        )

    def _finish_step(self, step: ExecutionStep, node_start_time: float) -> ExecutionStep:
        step.completed_at = datetime.now()
        step.duration_ms = (time.time() - node_start_time) * 1000
        step.result = "error" if step.error is not None else "success"
        self._execution_log.append(step)

        # Notify callback
        if self.on_step:
            try:
                self.on_step(step, self.data)
            except Exception as e:
                logger.warning(f"Step callback failed: {e}")

        return step

    def _create_result(
        self,
        status: ExecutionStatus,
        start_time: float,
        started_at: datetime,
        error: Optional[str] = None
    ) -> ExecutionResult:
        self._status = status
        if error is not None:
            logger.error(f"State machine {self.graph.graph_id} failed: {error}")
        return ExecutionResult(
            run_id=self.run_id,
            graph_id=self.graph.graph_id,
            status=status,
            data=self.data,
            execution_log=list(self._execution_log),
            started_at=started_at,
            completed_at=datetime.now(),
            total_duration_ms=(time.time() - start_time) * 1000,
            error=error,
        )


class StateMachine:
    """
    A graph and its executor bound to one shared data object.

    Usage:
        machine = StateMachine("MachineA011", data, retries=3)
        machine.step("NodeA", State.task(), add_one)
        machine.step("NodeB", State.task(), times_five, end=True)
        machine.validate_node_ids()
        result = machine.execute()
    """

    def __init__(self, machine_id: str, data: Any, retries: Optional[int] = None):
        if retries is None:
            retries = settings.DEFAULT_RETRIES
        self.graph = Graph(graph_id=machine_id, retries=retries)
        self.executor = Executor(self.graph, data)

    @property
    def id(self) -> str:
        return self.graph.graph_id

    @property
    def data(self) -> Any:
        return self.executor.data

    @property
    def pending_error(self) -> Optional[str]:
        return self.executor.pending_error

    def step(
        self,
        id: str,
        state: Union[State, StateType, str],
        handler: StepFunction,
        next: Optional[StepFunction] = None,
        catch: Optional[List[Catcher]] = None,
        retry: Optional[List[str]] = None,
        end: Optional[bool] = None,
    ) -> "StateMachine":
        """Add a node to the machine. See Graph.add_node."""
        self.graph.add_node(id, state, handler, next, catch, retry, end)
        return self

    def validate_node_ids(self) -> None:
        self.graph.validate_node_ids()

    def get_node_ids(self) -> List[str]:
        return self.graph.get_node_ids()

    def execute(self) -> ExecutionResult:
        return self.executor.run()

    def execute_by_id(self, node_id: str) -> ExecutionResult:
        return self.executor.execute_by_id(node_id)


def execute_graph(
    graph: Graph,
    data: Any,
    run_id: Optional[str] = None,
    on_step: Optional[Callable] = None
) -> ExecutionResult:
    """
    Convenience function to execute a graph once.

    Args:
        graph: The graph to execute
        data: The shared data
        run_id: Optional run ID
        on_step: Optional step callback

    Returns:
        ExecutionResult
    """
    executor = Executor(graph, data, run_id, on_step)
    return executor.run()
