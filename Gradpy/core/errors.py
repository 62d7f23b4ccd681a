"""
Exceptions raised by the Gradpy autograd engine.

Every error derives from :class:`GradpyError` and from the builtin exception
closest in meaning, so callers may catch either the library-specific type or
the standard one (``except ZeroDivisionError`` keeps working for Div).
"""

from typing import Optional, Sequence


class GradpyError(Exception):
    """Base class for all errors raised by Gradpy."""


class NoGradientError(GradpyError, LookupError):
    """
    Raised when reading the gradient of a node that does not retain one.

    This is the one expected condition of the library: querying the gradient
    of a constant or frozen node is normal, so it is reported as a typed
    failure the caller may choose to ignore.

    Attributes:
        index: Arena index of the node that was queried
    """

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(
            f"Node {index} does not retain its gradient; "
            f"call retain_grad() before backward to keep it"
        )


class DivisionByZeroError(GradpyError, ZeroDivisionError):
    """
    Raised by Div when any element of the denominator is zero.

    Attributes:
        phase: "forward" or "backward"
    """

    def __init__(self, phase: str) -> None:
        self.phase = phase
        super().__init__(f"Division by zero during {phase} of Div")


class ShapeMismatchError(GradpyError, ValueError):
    """
    Raised when operand shapes are incompatible with an operator, or when a
    gradient contribution does not match the buffer it is accumulated into.

    Attributes:
        op: Name of the operation that detected the mismatch
        shapes: The offending shapes
    """

    def __init__(self, op: str, *shapes: Sequence[int], detail: Optional[str] = None) -> None:
        self.op = op
        self.shapes = tuple(tuple(s) for s in shapes)
        message = f"{op}: incompatible shapes " + " vs ".join(str(s) for s in self.shapes)
        if detail:
            message += f" ({detail})"
        super().__init__(message)


class BorrowError(GradpyError, RuntimeError):
    """
    Raised when a node is accessed in a way that overlaps an exclusive
    (mutable) access of the same node.

    Attributes:
        index: Arena index of the node
        requested: "read" or "mutate"
    """

    def __init__(self, index: int, requested: str) -> None:
        self.index = index
        self.requested = requested
        super().__init__(
            f"Cannot {requested} node {index}: it is already borrowed "
            f"{'mutably' if requested == 'read' else 'elsewhere'}"
        )


class NumericalOverflowError(GradpyError, OverflowError):
    """Raised when an operator turns finite inputs into infinite values."""

    def __init__(self, op: str) -> None:
        self.op = op
        super().__init__(f"{op} overflowed: finite input produced an infinite result")


class StaleHandleError(GradpyError, LookupError):
    """Raised when a handle refers to a node that was dropped from its graph."""

    def __init__(self, index: int) -> None:
        self.index = index
        super().__init__(f"Node {index} is no longer part of the graph (it was pruned or cleared)")
