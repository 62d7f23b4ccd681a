import logging

import numpy as np
import pytest

import Gradpy as gp
from Gradpy import Graph, NoGradientError, StaleHandleError, get_graph


class TestFunctionalInterface:
    """Tests for the free-function interface."""

    def setup_method(self):
        get_graph().clear()

    def test_expression(self):
        x = gp.make_leaf([[1.0, 2.0], [3.0, 4.0]])
        w = gp.make_leaf([[1.0], [2.0]], retain_gradient=False)
        y = gp.sum(gp.relu(gp.sub(gp.dot(x, w), gp.make_leaf(6.0, retain_gradient=False))))
        gp.backward(y)

        # dot = [[5], [11]]; only the second row is active after ReLU
        assert np.allclose(gp.value_of(y), [5.0])
        assert np.allclose(gp.gradient_of(x), [[0.0, 0.0], [1.0, 2.0]])

    def test_value_of_returns_copy(self):
        x = gp.make_leaf([1.0, 2.0])
        value = gp.value_of(x)
        value[0] = 100.0
        assert np.array_equal(x.data, [1.0, 2.0])

    def test_gradient_of_missing_buffer(self):
        x = gp.make_leaf(1.0, retain_gradient=False)
        with pytest.raises(NoGradientError):
            gp.gradient_of(x)

    def test_retain_gradient(self):
        x = gp.make_leaf(2.0)
        y = gp.exp(gp.identity(x))
        z = gp.mul(y, y)
        assert gp.retain_gradient(y) is y
        gp.backward(z)
        assert np.allclose(gp.gradient_of(y), [2.0 * np.exp(2.0)])

    def test_zero_gradient_without_buffer_logs(self, caplog):
        x = gp.make_leaf(1.0, retain_gradient=False)
        with caplog.at_level(logging.WARNING, logger="Gradpy.core.variable"):
            gp.zero_gradient(x)
        assert "does not retain a gradient" in caplog.text

    def test_division(self):
        a = gp.make_leaf(6.0)
        b = gp.make_leaf(3.0)
        gp.backward(gp.div(a, b))
        assert np.allclose(gp.gradient_of(a), [1.0 / 3.0])
        assert np.allclose(gp.gradient_of(b), [-6.0 / 9.0])


class TestSeparateGraphs:
    """Tests for graphs other than the global one."""

    def setup_method(self):
        get_graph().clear()

    def test_empty_graph_is_used(self):
        graph = Graph()
        x = gp.make_leaf(1.0, graph=graph)
        assert x.graph is graph
        assert len(graph) == 1
        assert len(get_graph()) == 0

    def test_mixing_graphs_is_rejected(self):
        x = gp.make_leaf(1.0, graph=Graph())
        y = gp.make_leaf(1.0)
        with pytest.raises(ValueError):
            gp.add(x, y)

    def test_pruned_handle_is_stale(self):
        graph = Graph()
        x = gp.make_leaf(1.0, graph=graph)
        y = gp.exp(x)
        assert graph.prune([x]) == 1
        with pytest.raises(StaleHandleError):
            gp.value_of(y)
