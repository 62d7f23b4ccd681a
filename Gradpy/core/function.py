import inspect
from abc import ABC, abstractmethod
from enum import Enum
from typing import Any, ClassVar, Dict, Optional, Sequence, Tuple, Type

import numpy as np
from numpy.typing import NDArray

from .errors import ShapeMismatchError
from .node import GraphNode
from .variable import Variable

Gradients = Tuple[Optional[NDArray[Any]], Optional[NDArray[Any]]]


class OpKind(Enum):
    """The closed set of differentiable operators a node can be produced by."""

    ADD = "add"
    SUB = "sub"
    MUL = "mul"
    DIV = "div"
    DOT = "dot"
    EXP = "exp"
    IDENTITY = "identity"
    SUM = "sum"
    RELU = "relu"


_FUNCTIONS: Dict[OpKind, Type["Function"]] = {}


def function_for(kind: OpKind) -> Type["Function"]:
    """Returns the function implementing the given operator kind."""
    try:
        return _FUNCTIONS[kind]
    except KeyError:
        raise LookupError(f"No function registered for operator {kind.name}") from None


class Function(ABC):
    """
    Base class for all autograd operations.

    Each operation implements a forward pass producing the node's value from
    its operand values, and a backward pass returning the gradient
    contribution for each operand. Subclasses bind exactly one
    :class:`OpKind`; nodes store only that tag and the engine looks the
    function up with :func:`function_for` when propagating.

    Unary operations set ``unary = True``: they are subscribed with the same
    node in both operand slots, ignore ``y`` in forward and return ``None``
    as the second contribution.
    """

    kind: ClassVar[Optional[OpKind]] = None
    unary: ClassVar[bool] = False

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if inspect.isabstract(cls):
            return
        kind = cls.__dict__.get("kind")
        if not isinstance(kind, OpKind):
            raise TypeError(f"{cls.__name__} must bind an OpKind")
        if kind in _FUNCTIONS:
            raise TypeError(
                f"{cls.__name__}: operator {kind.name} is already implemented by "
                f"{_FUNCTIONS[kind].__name__}"
            )
        _FUNCTIONS[kind] = cls

    @staticmethod
    @abstractmethod
    def forward(x: NDArray[Any], y: NDArray[Any]) -> NDArray[Any]:
        """
        Performs the forward computation.

        Args:
            x: Value of the left operand
            y: Value of the right operand (ignored by unary operations)

        Returns:
            The value of the new node
        """
        raise NotImplementedError

    @staticmethod
    @abstractmethod
    def backward(grad_output: NDArray[Any], left: GraphNode, right: GraphNode) -> Gradients:
        """
        Computes the gradient contributions for both operands.

        Args:
            grad_output: Gradient flowing into this node from its consumers
            left: Left operand node (read access only)
            right: Right operand node (read access only)

        Returns:
            Contributions for the left and right operand, shaped like them
        """
        raise NotImplementedError

    @classmethod
    def subscribe(cls, lhs: Variable, rhs: Optional[Variable] = None) -> Variable:
        """
        Applies the function to the given operands.

        This is the only way derived nodes enter a graph: the forward value
        is computed eagerly and stored in a new node that records both
        operands and this function's kind.
        """
        if cls.unary:
            rhs = lhs
        elif rhs is None:
            raise TypeError(f"{cls.__name__} takes two operands")

        graph = lhs.graph
        if rhs.graph is not graph:
            raise ValueError("Operands belong to different graphs")

        left = graph.node(lhs.index)
        right = graph.node(rhs.index)
        with left.reading(), right.reading():
            value = cls.forward(left.value, right.value)

        index = graph.add_node(value, left=left.index, right=right.index, op=cls.kind)
        return Variable(graph, index)

    @staticmethod
    def broadcast_shape(op: str, x: NDArray[Any], y: NDArray[Any]) -> Tuple[int, ...]:
        """Checks that two operand values can be combined elementwise."""
        try:
            return tuple(np.broadcast_shapes(x.shape, y.shape))
        except ValueError:
            raise ShapeMismatchError(op, x.shape, y.shape) from None

    @staticmethod
    def reduce_grad(grad: NDArray[Any], target_shape: Sequence[int]) -> NDArray[Any]:
        """
        Reduces the gradient to match the target shape by summing over
        broadcasted dimensions.
        """
        target_shape = tuple(target_shape)
        if grad.shape == target_shape:
            return grad

        # Sum away leading dimensions the operand did not have
        extra = grad.ndim - len(target_shape)
        if extra > 0:
            grad = grad.sum(axis=tuple(range(extra)))

        for axis, (grad_dim, target_dim) in enumerate(zip(grad.shape, target_shape)):
            if target_dim == 1 and grad_dim != 1:
                grad = grad.sum(axis=axis, keepdims=True)
        return grad.reshape(target_shape)

    @classmethod
    def verify_backward(
        cls, *inputs: Any, epsilon: float = 1e-6, tolerance: float = 1e-5
    ) -> bool:
        """
        Verifies the backward pass against central-difference gradients.

        The scalar being differentiated is the sum of the forward output, so
        the analytical gradients are those produced for an upstream gradient
        of ones.

        Args:
            *inputs: Operand values (one for unary operations, two otherwise)
            epsilon: Step used for the numerical derivative
            tolerance: Largest accepted relative error

        Returns:
            True if gradients match within tolerance, False otherwise
        """
        arrays = [np.array(x, dtype=np.float64, ndmin=1) for x in inputs]
        arrays = arrays[:1] if cls.unary else arrays[:2]

        def evaluate(operands: Sequence[NDArray[Any]]) -> NDArray[Any]:
            x = operands[0]
            y = x if cls.unary else operands[1]
            return cls.forward(x, y)

        def compute_numerical_gradient(idx: int) -> NDArray[Any]:
            inp = arrays[idx].copy()
            grad = np.zeros_like(inp)
            it = np.nditer(inp, flags=["multi_index"])

            while not it.finished:
                ix = it.multi_index
                old_value = inp[ix]

                inp[ix] = old_value + epsilon
                pos_inputs = list(arrays)
                pos_inputs[idx] = inp.copy()
                pos_output = evaluate(pos_inputs)

                inp[ix] = old_value - epsilon
                neg_inputs = list(arrays)
                neg_inputs[idx] = inp.copy()
                neg_output = evaluate(neg_inputs)

                inp[ix] = old_value
                grad[ix] = np.sum(pos_output - neg_output) / (2 * epsilon)
                it.iternext()

            return grad

        output = evaluate(arrays)
        left = GraphNode(0, arrays[0])
        right = left if cls.unary else GraphNode(1, arrays[1])
        analytical_grads = cls.backward(np.ones_like(output), left, right)

        for idx in range(len(arrays)):
            analytical = analytical_grads[idx]
            if analytical is None:
                continue
            numerical = compute_numerical_gradient(idx)
            rel_error = np.max(
                np.abs(analytical - numerical)
                / (np.maximum(np.abs(analytical), np.abs(numerical)) + epsilon)
            )
            if rel_error > tolerance:
                return False

        return True
