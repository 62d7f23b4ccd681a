import logging

import numpy as np
import pytest

from Gradpy import (
    BorrowError,
    NoGradientError,
    Variable,
    backward,
    get_graph,
    gradient_of,
    make_leaf,
    retain_gradient,
    value_of,
    zero_gradient,
)


class TestVariableCreation:
    """Tests for leaf creation and value access."""

    def setup_method(self):
        get_graph().clear()

    @pytest.mark.parametrize(
        "value",
        [
            np.array([1.0, -2.5, 3.0]),
            np.arange(6.0).reshape(2, 3),
            np.zeros((1, 1)),
            [[1, 2], [3, 4]],
        ],
    )
    def test_value_round_trip(self, value):
        x = make_leaf(value, True)
        assert np.array_equal(value_of(x), np.asarray(value, dtype=np.float64))

    def test_scalar_becomes_vector(self):
        x = make_leaf(4.0)
        assert x.shape == (1,)
        assert np.array_equal(value_of(x), [4.0])

    def test_leaf_copies_input(self):
        source = np.array([1.0, 2.0])
        x = make_leaf(source)
        source[0] = 100.0
        assert np.array_equal(x.data, [1.0, 2.0])

    def test_value_is_read_only(self):
        x = make_leaf([1.0, 2.0])
        with pytest.raises(ValueError):
            x.data[0] = 5.0

    def test_value_of_returns_copy(self):
        x = make_leaf([1.0, 2.0])
        value = value_of(x)
        value[0] = 7.0
        assert np.array_equal(x.data, [1.0, 2.0])

    def test_retained_buffer_starts_at_zero(self):
        x = make_leaf([[1.0, 2.0], [3.0, 4.0]])
        assert x.retains_grad
        assert np.array_equal(x.grad, np.zeros((2, 2)))

    def test_repr(self):
        x = make_leaf(2.0)
        assert repr(x).startswith("Variable([2.], grad=[0.]")


class TestHandles:
    """Tests for shared handles and scoped access."""

    def setup_method(self):
        get_graph().clear()

    def test_clone_aliases_node(self):
        x = make_leaf(3.0)
        alias = x.clone()
        assert alias == x
        assert alias is not x
        assert hash(alias) == hash(x)

        (alias * 2.0).backward()
        assert np.allclose(x.grad, [2.0])

    def test_overlapping_reads(self):
        x = make_leaf(1.0)
        with x.read() as outer:
            with x.clone().read() as inner:
                assert outer is inner

    def test_mutate_during_read_fails(self):
        x = make_leaf(1.0)
        with x.read():
            with pytest.raises(BorrowError):
                with x.clone().mutate():
                    pass

    def test_read_during_mutate_fails(self):
        x = make_leaf(1.0)
        with x.mutate():
            with pytest.raises(BorrowError):
                with x.read():
                    pass

    def test_double_mutate_fails(self):
        x = make_leaf(1.0)
        with x.mutate():
            with pytest.raises(BorrowError):
                with x.mutate():
                    pass

    def test_borrow_released_after_error(self):
        x = make_leaf(1.0)
        with pytest.raises(KeyError):
            with x.mutate():
                raise KeyError("boom")
        with x.mutate() as node:
            node.value = 5.0
        assert np.array_equal(x.data, [5.0])

    def test_gradient_update_while_reading_fails(self):
        x = make_leaf(2.0)
        z = x * 3.0
        with x.read():
            with pytest.raises(BorrowError):
                z.backward()

    def test_same_handle_as_both_operands(self):
        x = make_leaf(3.0)
        z = x * x
        z.backward()
        assert np.allclose(z.data, [9.0])
        assert np.allclose(x.grad, [6.0])


class TestGradientAccess:
    """Tests for the gradient accessors."""

    def setup_method(self):
        get_graph().clear()

    def test_gradient_of(self):
        x = make_leaf([2.0, 1.0])
        backward(x * 4.0)
        assert np.array_equal(gradient_of(x), [4.0, 4.0])

    def test_gradient_of_returns_copy(self):
        x = make_leaf([2.0, 1.0])
        backward(x * 4.0)
        grad = gradient_of(x)
        grad[0] = 0.0
        assert np.array_equal(x.grad, [4.0, 4.0])

    def test_no_gradient(self):
        x = make_leaf(2.0, retain_gradient=False)
        with pytest.raises(NoGradientError):
            gradient_of(x)
        with pytest.raises(LookupError):
            x.gradient()

    def test_retain_gradient_later(self):
        x = make_leaf(2.0, retain_gradient=False)
        retain_gradient(x)
        assert np.array_equal(gradient_of(x), [0.0])

    def test_zero_gradient(self):
        x = make_leaf([[1.0, 2.0], [3.0, 4.0]])
        backward(x * x)
        zero_gradient(x)
        assert np.array_equal(x.grad, np.zeros((2, 2)))

    def test_zero_gradient_without_buffer_is_noop(self, caplog):
        x = make_leaf(2.0, retain_gradient=False)
        with caplog.at_level(logging.WARNING, logger="Gradpy.core.variable"):
            zero_gradient(x)
        assert x.grad is None
        assert "does not retain a gradient" in caplog.text


class TestOperatorSugar:
    """Tests for arithmetic on handles."""

    def setup_method(self):
        get_graph().clear()

    def test_scalars_on_either_side(self):
        x = make_leaf(4.0)
        assert np.allclose((x + 1).data, [5.0])
        assert np.allclose((1 + x).data, [5.0])
        assert np.allclose((x - 1).data, [3.0])
        assert np.allclose((10 - x).data, [6.0])
        assert np.allclose((x * 2).data, [8.0])
        assert np.allclose((2 * x).data, [8.0])
        assert np.allclose((x / 2).data, [2.0])
        assert np.allclose((2 / x).data, [0.5])
        assert np.allclose((-x).data, [-4.0])

    def test_constants_do_not_retain(self):
        x = make_leaf(4.0)
        z = x * 2.0
        node = get_graph().node(z.index)
        constant = Variable(get_graph(), node.right)
        assert constant.is_leaf
        assert not constant.retains_grad

    def test_matmul_operator(self):
        x = make_leaf([[1.0, 2.0]])
        w = make_leaf([[3.0], [4.0]])
        assert np.allclose((x @ w).data, [[11.0]])
