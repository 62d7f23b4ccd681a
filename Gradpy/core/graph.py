import logging
from contextlib import ExitStack
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import ShapeMismatchError, StaleHandleError
from .function import OpKind, function_for
from .node import GraphNode
from .variable import Variable

logger = logging.getLogger(__name__)


class Graph:
    """
    Arena holding the nodes of a computation graph.

    Nodes are addressed by integer index and handed out as
    :class:`~Gradpy.core.variable.Variable` handles. Indices grow
    monotonically, so an operand always has a smaller index than the node it
    feeds; a node can therefore never be its own ancestor.

    The arena owns every node it creates. Graphs built for one training step
    are released with :meth:`prune` (keeping e.g. the parameters) or
    :meth:`clear`.
    """

    def __init__(self) -> None:
        self._nodes: Dict[int, GraphNode] = {}
        self._next_index = 0
        self._currently_computing_gradients = False

    def __len__(self) -> int:
        return len(self._nodes)

    def __contains__(self, handle: Variable) -> bool:
        return handle.graph is self and handle.index in self._nodes

    def node(self, index: int) -> GraphNode:
        """
        Returns the node stored at the given index.

        Raises:
            StaleHandleError: If the node was pruned or cleared
        """
        try:
            return self._nodes[index]
        except KeyError:
            raise StaleHandleError(index) from None

    def add_node(
        self,
        value: Any,
        left: Optional[int] = None,
        right: Optional[int] = None,
        op: Optional[OpKind] = None,
        retain_grad: bool = False,
    ) -> int:
        """
        Stores a new node in the arena and returns its index.

        Args:
            value: Forward value of the node
            left: Index of the left operand, if any
            right: Index of the right operand, if any
            op: Kind of the operator that produced the value
            retain_grad: Whether to allocate a gradient buffer
        """
        for operand in (left, right):
            if operand is not None:
                self.node(operand)

        index = self._next_index
        self._next_index += 1
        self._nodes[index] = GraphNode(
            index, value, left=left, right=right, op=op, retain_grad=retain_grad
        )
        return index

    def leaf(self, value: Any, retain_grad: bool = True) -> Variable:
        """Creates a leaf node holding a copy of ``value``."""
        return Variable(self, self.add_node(value, retain_grad=retain_grad))

    def backward(self, root: Variable, gradient: Optional[NDArray[Any]] = None) -> None:
        """
        Executes the backward pass starting from the given node.

        Gradients are propagated in a single reverse topological order, so
        every node has received the contributions of all its consumers before
        its own operator runs. Contributions are collected first and only
        added into the retained buffers once the whole pass has succeeded: a
        failure leaves every buffer as it was.

        Args:
            root: Node to differentiate
            gradient: Seed gradient; defaults to ones shaped like the root
        """
        if root.graph is not self:
            raise ValueError("Root belongs to a different graph")
        if self._currently_computing_gradients:
            raise RuntimeError("Nested gradient computation detected")

        self._currently_computing_gradients = True
        try:
            root_node = self.node(root.index)
            if gradient is None:
                seed = np.ones_like(root_node.value)
            else:
                seed = np.array(gradient, dtype=np.float64, ndmin=1)
                if seed.shape != root_node.shape:
                    raise ShapeMismatchError(
                        "backward", seed.shape, root_node.shape, detail="seed gradient"
                    )

            sorted_nodes = self._topological_sort(root.index)
            upstream: Dict[int, NDArray[Any]] = {root.index: seed}
            pending: List[Tuple[GraphNode, NDArray[Any]]] = []

            for node in sorted_nodes:
                current_grad = upstream.pop(node.index, None)
                if current_grad is None:
                    continue

                if node.retains_grad:
                    pending.append((node, current_grad))

                if node.op is None:
                    continue

                left = self.node(node.left)
                right = self.node(node.right)
                function = function_for(node.op)
                with left.reading(), right.reading():
                    grad_left, grad_right = function.backward(current_grad, left, right)

                for operand, contribution in ((left, grad_left), (right, grad_right)):
                    if contribution is None:
                        continue
                    if contribution.shape != operand.shape:
                        raise ShapeMismatchError(
                            f"{node.op.name} backward",
                            contribution.shape,
                            operand.shape,
                            detail=f"contribution to node {operand.index}",
                        )
                    if operand.index in upstream:
                        upstream[operand.index] = upstream[operand.index] + contribution
                    else:
                        upstream[operand.index] = contribution

            for node, grad in pending:
                if grad.shape != node.grad.shape:
                    raise ShapeMismatchError(
                        "accumulate", grad.shape, node.grad.shape, detail=f"node {node.index}"
                    )

            # Borrow every buffer before touching any of them
            with ExitStack() as stack:
                for node, _ in pending:
                    stack.enter_context(node.mutating())
                for node, grad in pending:
                    node.accumulate(grad)

            logger.debug(
                "backward from node %d visited %d nodes, updated %d buffers",
                root.index,
                len(sorted_nodes),
                len(pending),
            )
        finally:
            self._currently_computing_gradients = False

    def _topological_sort(self, root_index: int) -> List[GraphNode]:
        """
        Orders the ancestors of a node, consumers before operands.

        Uses an explicit stack for the post-order depth-first traversal so
        that deep graphs do not hit the interpreter's recursion limit.

        Args:
            root_index: Index to start the sort from

        Returns:
            Reachable nodes in reverse finish order (root first)
        """
        result: List[GraphNode] = []
        visited: Set[int] = set()
        stack: List[Tuple[int, bool]] = [(root_index, False)]

        while stack:
            index, finished = stack.pop()
            if finished:
                result.append(self._nodes[index])
                continue
            if index in visited:
                continue

            visited.add(index)
            stack.append((index, True))
            node = self.node(index)
            for operand in (node.right, node.left):
                if operand is not None and operand not in visited:
                    stack.append((operand, False))

        result.reverse()
        return result

    def ancestors(self, roots: Iterable[Variable]) -> Set[int]:
        """Indices of the given nodes and everything they were computed from."""
        seen: Set[int] = set()
        stack = [handle.index for handle in roots if handle.graph is self]
        while stack:
            index = stack.pop()
            if index in seen:
                continue
            seen.add(index)
            node = self.node(index)
            for operand in (node.left, node.right):
                if operand is not None and operand not in seen:
                    stack.append(operand)
        return seen

    def prune(self, keep: Iterable[Variable]) -> int:
        """
        Drops every node that is not one of ``keep`` or one of their ancestors.

        Args:
            keep: Handles that must stay valid

        Returns:
            Number of nodes removed
        """
        live = self.ancestors(keep)
        dead = [index for index in self._nodes if index not in live]
        for index in dead:
            del self._nodes[index]
        logger.debug("pruned %d nodes, %d remain", len(dead), len(self._nodes))
        return len(dead)

    def clear(self) -> None:
        """Clears the computational graph."""
        self._nodes.clear()

    def validate_graph(self) -> List[str]:
        """
        Validates the computational graph structure.

        Returns:
            Human readable descriptions of every problem found
        """
        warnings: List[str] = []
        for node in self._nodes.values():
            if (node.left is None) != (node.right is None):
                warnings.append(f"Node {node.index} has a single operand")
            if (node.op is None) != node.is_leaf:
                warnings.append(f"Node {node.index} operator does not match its operands")
            for operand in (node.left, node.right):
                if operand is None:
                    continue
                if operand not in self._nodes:
                    warnings.append(f"Node {node.index} refers to dropped node {operand}")
                elif operand >= node.index:
                    warnings.append(f"Node {node.index} refers to later node {operand}")
            if node.grad is not None and node.grad.shape != node.shape:
                warnings.append(
                    f"Gradient shape mismatch: "
                    f"grad shape {node.grad.shape} "
                    f"vs value shape {node.shape}"
                )
        return warnings


# Global graph instance
_graph = Graph()


def get_graph() -> Graph:
    """Returns the global default graph."""
    return _graph
