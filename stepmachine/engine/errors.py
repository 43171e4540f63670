"""
Errors raised by the state machine engine.
"""


class StateMachineError(Exception):
    """
    Error that can be raised at any point of a state machine run.

    Step handlers may raise it too; its message is the description used
    to match retry triggers and catch tables.
    """

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


class DuplicateNodeError(StateMachineError, ValueError):
    """Raised when a node id is registered twice in the same graph."""
