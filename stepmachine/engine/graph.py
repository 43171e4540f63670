"""
Graph Definition for the State Machine.

A Graph is the ordered list of nodes of one state machine. Nodes run in
the order they were added; ids must be unique.
"""

from typing import Any, Dict, List, Optional, Set, Union
from dataclasses import dataclass, field
import uuid

from stepmachine.config import settings
from stepmachine.engine.errors import DuplicateNodeError
from stepmachine.engine.node import Catcher, Node, StepFunction
from stepmachine.engine.state import State, StateType


@dataclass
class Graph:
    """
    An ordered sequence of nodes.

    Attributes:
        graph_id: Identifier of the state machine, used in error messages
        retries: Retry budget shared by every node declaring retry triggers
        nodes: Nodes in execution order
        node_ids: Ids of all nodes, used for uniqueness checks
        description: Human-readable description
        metadata: Additional graph metadata
    """

    graph_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    retries: int = field(default_factory=lambda: settings.DEFAULT_RETRIES)
    nodes: List[Node] = field(default_factory=list)
    node_ids: Set[str] = field(default_factory=set)
    description: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)

    def add_node(
        self,
        id: str,
        state: Union[State, StateType, str],
        handler: StepFunction,
        next: Optional[StepFunction] = None,
        catch: Optional[List[Catcher]] = None,
        retry: Optional[List[str]] = None,
        end: Optional[bool] = None,
    ) -> "Graph":
        """
        Append a node to the graph.

        Args:
            id: Unique id for the node
            state: State of the node
            handler: Function receiving the shared data
            next: Function run before the node's own state logic
            catch: Catch table applied when an error is pending
            retry: Error descriptions that trigger retry with backoff
            end: Stop the run after this node

        Returns:
            Self for chaining

        Raises:
            DuplicateNodeError: If a node with this id already exists
        """
        if id in self.node_ids:
            raise DuplicateNodeError(f"Duplicate node ID found: {id}")

        node = Node(
            id=id,
            state=state,
            handler=handler,
            next=next,
            catch=catch,
            retry=retry,
            end=end,
        )
        self.node_ids.add(id)
        self.nodes.append(node)
        return self

    # Name used by the step-function vocabulary
    step = add_node

    def validate_node_ids(self) -> None:
        """
        Check that every node id is unique.

        Raises:
            DuplicateNodeError: If the graph holds duplicate ids
        """
        if len(self.nodes) != len(self.node_ids):
            raise DuplicateNodeError("Duplicate node IDs found in the state machine")

    def get_node_ids(self) -> List[str]:
        """Get the ids of all nodes, in no particular order."""
        return list(self.node_ids)

    def get_node(self, node_id: str) -> Optional[Node]:
        """Get the first node with the given id."""
        for node in self.nodes:
            if node.id == node_id:
                return node
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Serialize the graph to a dictionary."""
        return {
            "graph_id": self.graph_id,
            "description": self.description,
            "retries": self.retries,
            "nodes": [node.to_dict() for node in self.nodes],
            "metadata": self.metadata,
        }

    def __repr__(self) -> str:
        return (
            f"Graph(id='{self.graph_id}', nodes={[n.id for n in self.nodes]}, "
            f"retries={self.retries})"
        )
