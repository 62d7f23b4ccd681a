import numpy as np
import pytest

from Gradpy import Function, OpKind, get_graph, make_leaf
from Gradpy.core import function_for
from Gradpy.ops import Add, Div, Dot, Exp, Identity, Mul, ReLU, Sub, Sum


class TestFunctionTable:
    """Tests for the closed operator set."""

    def test_every_kind_is_implemented(self):
        expected = {
            OpKind.ADD: Add,
            OpKind.SUB: Sub,
            OpKind.MUL: Mul,
            OpKind.DIV: Div,
            OpKind.DOT: Dot,
            OpKind.EXP: Exp,
            OpKind.IDENTITY: Identity,
            OpKind.SUM: Sum,
            OpKind.RELU: ReLU,
        }
        assert set(expected) == set(OpKind)
        for kind, function in expected.items():
            assert function_for(kind) is function

    def test_unary_flags(self):
        assert {f for f in (Add, Sub, Mul, Div, Dot, Exp, Identity, Sum, ReLU) if f.unary} == {
            Exp,
            Identity,
            Sum,
            ReLU,
        }

    def test_duplicate_kind_is_rejected(self):
        with pytest.raises(TypeError):

            class AnotherAdd(Function):
                kind = OpKind.ADD

                @staticmethod
                def forward(x, y):
                    return x + y

                @staticmethod
                def backward(grad_output, left, right):
                    return grad_output, grad_output

        assert function_for(OpKind.ADD) is Add

    def test_missing_kind_is_rejected(self):
        with pytest.raises(TypeError):

            class Untagged(Function):
                @staticmethod
                def forward(x, y):
                    return x

                @staticmethod
                def backward(grad_output, left, right):
                    return grad_output, None

    def test_abstract_subclass_is_allowed(self):
        class Intermediate(Function):
            pass

        with pytest.raises(TypeError):
            Intermediate()


class TestSubscribe:
    """Tests for graph construction through subscribe."""

    def setup_method(self):
        get_graph().clear()

    def test_records_operands_and_kind(self):
        x = make_leaf([1.0, 2.0])
        y = make_leaf([3.0, 4.0])
        z = Mul.subscribe(x, y)

        node = get_graph().node(z.index)
        assert node.op is OpKind.MUL
        assert (node.left, node.right) == (x.index, y.index)
        assert not z.retains_grad
        assert np.array_equal(z.data, [3.0, 8.0])

    def test_binary_needs_two_operands(self):
        x = make_leaf(1.0)
        with pytest.raises(TypeError):
            Add.subscribe(x)

    def test_forward_is_eager(self):
        x = make_leaf(2.0)
        z = Exp.subscribe(x)
        assert np.allclose(z.data, [np.exp(2.0)])


class TestReduceGrad:
    """Tests for summing gradients back to an operand's shape."""

    def test_same_shape(self):
        grad = np.ones((2, 3))
        assert Function.reduce_grad(grad, (2, 3)) is grad

    def test_row(self):
        grad = np.arange(6.0).reshape(2, 3)
        assert np.array_equal(Function.reduce_grad(grad, (1, 3)), [[3.0, 5.0, 7.0]])

    def test_single_element(self):
        grad = np.arange(6.0).reshape(2, 3)
        assert np.array_equal(Function.reduce_grad(grad, (1,)), [15.0])

    def test_leading_dimension(self):
        grad = np.ones((4, 3))
        assert np.array_equal(Function.reduce_grad(grad, (3,)), [4.0, 4.0, 4.0])
