from contextlib import contextmanager
from typing import Any, Iterator, Optional, Tuple

import numpy as np
from numpy.typing import NDArray

from .errors import BorrowError, ShapeMismatchError


def as_value(data: Any) -> NDArray[np.float64]:
    """
    Converts user data into a node value.

    Values are float64 arrays of rank >= 1 (scalars become shape ``(1,)``),
    always copied and flagged read-only so that no alias can change a node
    behind the graph's back.
    """
    if isinstance(data, np.ndarray):
        array = data.astype(np.float64, copy=True)
    else:
        array = np.array(data, dtype=np.float64)
    if array.ndim == 0:
        array = array.reshape(1)
    array.flags.writeable = False
    return array


class GraphNode:
    """
    Represents one point in the computation graph.

    A node owns its forward value, an optional gradient buffer and the arena
    indices of the (at most two) operands it was computed from. Nodes are
    never handed out directly: a :class:`~Gradpy.core.variable.Variable`
    handle gives scoped access through :meth:`reading` and :meth:`mutating`,
    which enforce that an exclusive access never overlaps any other access.

    Attributes:
        index: Position of the node in its graph's arena
        grad: Gradient buffer, or None when the node does not retain one
        left: Arena index of the left operand (None for leaves)
        right: Arena index of the right operand (None for leaves)
        op: Kind of the operator that produced this node (None for leaves)
    """

    __slots__ = ("index", "_value", "grad", "left", "right", "op", "_readers", "_writing")

    def __init__(
        self,
        index: int,
        value: Any,
        left: Optional[int] = None,
        right: Optional[int] = None,
        op: Optional[Any] = None,
        retain_grad: bool = False,
    ) -> None:
        self.index = index
        self._value = as_value(value)
        self.grad: Optional[NDArray[np.float64]] = None
        self.left = left
        self.right = right
        self.op = op
        self._readers = 0
        self._writing = False

        if retain_grad:
            self.zero_grad()

    @property
    def value(self) -> NDArray[np.float64]:
        return self._value

    @value.setter
    def value(self, new_value: Any) -> None:
        """Replaces the value; used by optimizers between training steps."""
        new_value = as_value(new_value)
        if new_value.shape != self._value.shape:
            raise ShapeMismatchError("set value", new_value.shape, self._value.shape)
        self._value = new_value

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(int(d) for d in self._value.shape)

    @property
    def is_leaf(self) -> bool:
        return self.left is None and self.right is None

    @property
    def retains_grad(self) -> bool:
        return self.grad is not None

    def zero_grad(self) -> None:
        """Allocates the gradient buffer, or resets it to zeros."""
        if self.grad is None:
            self.grad = np.zeros_like(self._value, dtype=np.float64)
        else:
            self.grad.fill(0.0)

    def accumulate(self, contribution: NDArray[Any]) -> None:
        """Adds a gradient contribution into the retained buffer."""
        if self.grad is None:
            return
        if contribution.shape != self.grad.shape:
            raise ShapeMismatchError(
                "accumulate", contribution.shape, self.grad.shape, detail=f"node {self.index}"
            )
        self.grad += contribution

    @contextmanager
    def reading(self) -> Iterator["GraphNode"]:
        """Shared access; any number of reads may overlap."""
        if self._writing:
            raise BorrowError(self.index, "read")
        self._readers += 1
        try:
            yield self
        finally:
            self._readers -= 1

    @contextmanager
    def mutating(self) -> Iterator["GraphNode"]:
        """Exclusive access; fails if the node is read or mutated elsewhere."""
        if self._writing or self._readers:
            raise BorrowError(self.index, "mutate")
        self._writing = True
        try:
            yield self
        finally:
            self._writing = False

    def __repr__(self) -> str:
        return (
            f"GraphNode(index={self.index}, op={getattr(self.op, 'name', None)}, "
            f"shape={self.shape}, retains_grad={self.retains_grad})"
        )
