"""
Workflows package - Sample state machines.
"""

from stepmachine.workflows.counter import Counter, create_counter_machine, run_counter_machine

__all__ = [
    "Counter",
    "create_counter_machine",
    "run_counter_machine",
]
