import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional, Tuple, Union

import numpy as np
from numpy.typing import NDArray

from .errors import NoGradientError
from .node import GraphNode

if TYPE_CHECKING:
    from .graph import Graph

logger = logging.getLogger(__name__)

Operand = Union["Variable", NDArray[Any], float, int]


class Variable:
    """
    A shared handle to a node of a computation graph.

    Handles are cheap: they hold the owning graph and the node's arena index,
    so any number of them may alias the same node. Arithmetic on handles
    builds new nodes eagerly through the operators in :mod:`Gradpy.ops`;
    calling :meth:`backward` fills the gradient buffers of every ancestor
    that retains a gradient.

    Attributes:
        graph: The graph whose arena holds the node
        index: Arena index of the node
    """

    __slots__ = ("graph", "index")

    def __init__(self, graph: "Graph", index: int) -> None:
        self.graph = graph
        self.index = index

    def clone(self) -> "Variable":
        """Returns a second handle to the same node (no value copy)."""
        return Variable(self.graph, self.index)

    @contextmanager
    def read(self) -> Iterator[GraphNode]:
        """Scoped read access to the node."""
        with self.graph.node(self.index).reading() as node:
            yield node

    @contextmanager
    def mutate(self) -> Iterator[GraphNode]:
        """Scoped exclusive access to the node."""
        with self.graph.node(self.index).mutating() as node:
            yield node

    @property
    def data(self) -> NDArray[np.float64]:
        """The node's (read-only) value."""
        return self.graph.node(self.index).value

    @property
    def grad(self) -> Optional[NDArray[np.float64]]:
        """The retained gradient buffer, or None."""
        return self.graph.node(self.index).grad

    @property
    def shape(self) -> Tuple[int, ...]:
        return self.graph.node(self.index).shape

    @property
    def is_leaf(self) -> bool:
        return self.graph.node(self.index).is_leaf

    @property
    def retains_grad(self) -> bool:
        return self.graph.node(self.index).retains_grad

    def numpy(self) -> NDArray[np.float64]:
        """Returns a writable copy of the value."""
        return self.data.copy()

    def gradient(self) -> NDArray[np.float64]:
        """
        Returns a copy of the retained gradient.

        Raises:
            NoGradientError: If the node does not retain its gradient
        """
        with self.read() as node:
            if node.grad is None:
                raise NoGradientError(self.index)
            return node.grad.copy()

    def retain_grad(self) -> "Variable":
        """Allocates a zeroed gradient buffer if the node has none; returns self."""
        with self.mutate() as node:
            if node.grad is None:
                node.zero_grad()
        return self

    def zero_grad(self) -> None:
        """Resets the retained gradient to zeros; a no-op for non-retaining nodes."""
        with self.mutate() as node:
            if node.grad is None:
                logger.warning(
                    "zero_grad on node %d ignored: it does not retain a gradient", self.index
                )
                return
            node.zero_grad()

    def backward(self, gradient: Optional[NDArray[Any]] = None) -> None:
        """Computes gradients of this node with respect to all its ancestors."""
        self.graph.backward(self, gradient)

    def _wrap(self, other: Operand) -> "Variable":
        if isinstance(other, Variable):
            return other
        return self.graph.leaf(other, retain_grad=False)

    def __add__(self, other: Operand) -> "Variable":
        from ..ops.basic import Add

        return Add.subscribe(self, self._wrap(other))

    def __radd__(self, other: Operand) -> "Variable":
        from ..ops.basic import Add

        return Add.subscribe(self._wrap(other), self)

    def __sub__(self, other: Operand) -> "Variable":
        from ..ops.basic import Sub

        return Sub.subscribe(self, self._wrap(other))

    def __rsub__(self, other: Operand) -> "Variable":
        from ..ops.basic import Sub

        return Sub.subscribe(self._wrap(other), self)

    def __mul__(self, other: Operand) -> "Variable":
        from ..ops.basic import Mul

        return Mul.subscribe(self, self._wrap(other))

    def __rmul__(self, other: Operand) -> "Variable":
        from ..ops.basic import Mul

        return Mul.subscribe(self._wrap(other), self)

    def __truediv__(self, other: Operand) -> "Variable":
        from ..ops.basic import Div

        return Div.subscribe(self, self._wrap(other))

    def __rtruediv__(self, other: Operand) -> "Variable":
        from ..ops.basic import Div

        return Div.subscribe(self._wrap(other), self)

    def __neg__(self) -> "Variable":
        from ..ops.basic import Mul

        return Mul.subscribe(self, self._wrap(-1.0))

    def __matmul__(self, other: Operand) -> "Variable":
        return self.dot(other)

    def dot(self, other: Operand) -> "Variable":
        """Matrix product with another rank-2 variable."""
        from ..ops.basic import Dot

        return Dot.subscribe(self, self._wrap(other))

    def exp(self) -> "Variable":
        from ..ops.elementwise import Exp

        return Exp.subscribe(self)

    def identity(self) -> "Variable":
        from ..ops.elementwise import Identity

        return Identity.subscribe(self)

    def relu(self) -> "Variable":
        from ..ops.elementwise import ReLU

        return ReLU.subscribe(self)

    def sum(self) -> "Variable":
        """Sum of all elements, as a shape ``(1,)`` variable."""
        from ..ops.reduction import Sum

        return Sum.subscribe(self)

    def softmax(self) -> "Variable":
        from ..ops.basic import softmax

        return softmax(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Variable):
            return NotImplemented
        return self.graph is other.graph and self.index == other.index

    def __hash__(self) -> int:
        return hash((id(self.graph), self.index))

    def __repr__(self) -> str:
        node = self.graph.node(self.index)
        return f"Variable({node.value}, grad={node.grad})"
