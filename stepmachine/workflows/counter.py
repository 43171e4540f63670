"""
Counter Workflow Implementation.

The sample state machine demonstrating the engine:
1. Load the shared counter from JSON
2. Add 1, then 100
3. Multiply by 1, then by 5 in a terminal step

Starting from 5 the final counter is ((5 + 1 + 100) * 1) * 5 = 530.
"""

from typing import Optional
import logging

from stepmachine.config import configure_logging
from stepmachine.engine.executor import ExecutionResult, StateMachine
from stepmachine.engine.state import State, StateData


logger = logging.getLogger(__name__)

SAMPLE_DATA = '{"counter": 5, "id": "some-id"}'


class Counter(StateData):
    """Shared data of the counter machine."""
    counter: int
    id: str


# ============================================================
# Step Handlers
# ============================================================

def add_one(data: Counter) -> None:
    data.counter += 1


def add_hundred(data: Counter) -> None:
    data.counter += 100


def times_one(data: Counter) -> None:
    data.counter *= 1


def times_five(data: Counter) -> None:
    data.counter *= 5
    logger.info(f"Counter is now {data.counter}")


def create_counter_machine(
    data: Counter,
    machine_id: str = "MachineA011",
    retries: Optional[int] = 3,
) -> StateMachine:
    """
    Create the counter state machine.

    Args:
        data: Shared counter data
        machine_id: Id of the machine
        retries: Retry budget

    Returns:
        A StateMachine with NodeA..NodeD, NodeD being terminal
    """
    machine = StateMachine(machine_id, data, retries)
    machine.step("NodeA", State.task(), add_one)
    machine.step("NodeB", State.task(), add_hundred)
    machine.step("NodeC", State.task(), times_one)
    machine.step("NodeD", State.task(), times_five, end=True)
    return machine


def run_counter_machine(json_data: str = SAMPLE_DATA) -> ExecutionResult:
    """Load the counter from JSON and run the machine once."""
    data = Counter.from_json(json_data)
    machine = create_counter_machine(data)
    machine.validate_node_ids()
    return machine.execute()


if __name__ == "__main__":
    configure_logging()
    result = run_counter_machine()
    print(f"Execution Status: {result.status.value}")
    print(f"Total Duration: {result.total_duration_ms:.2f}ms")
    print(f"Final Shared Data: {result.data!r}")
