import numpy as np
import pytest

from Gradpy import get_graph
from Gradpy.data import Dataset, MoonDataset, make_moons


class TestMakeMoons:
    """Tests for the two-moons generator."""

    def test_shapes(self):
        points, labels = make_moons(200)
        assert points.shape == (200, 2)
        assert labels.shape == (200,)

    def test_labels(self):
        points, labels = make_moons(11)
        assert np.array_equal(labels[:5], np.ones(5))
        assert np.array_equal(labels[5:], np.zeros(6))

    def test_points_lie_on_circles(self):
        points, labels = make_moons(50)
        outer = points[labels == 0]
        inner = points[labels == 1]
        assert np.allclose(np.hypot(outer[:, 0], outer[:, 1]), 1.0)
        assert np.allclose(np.hypot(inner[:, 0] - 1.0, inner[:, 1] - 0.5), 1.0)

    def test_noise_is_reproducible(self):
        first, _ = make_moons(40, noise=0.1, seed=3)
        second, _ = make_moons(40, noise=0.1, seed=3)
        clean, _ = make_moons(40)
        assert np.array_equal(first, second)
        assert not np.allclose(first, clean)

    @pytest.mark.parametrize("kwargs", [dict(n_samples=1), dict(n_samples=10, noise=-0.1)])
    def test_invalid_arguments(self, kwargs):
        with pytest.raises(ValueError):
            make_moons(**kwargs)


class TestMoonDataset:
    """Tests for the dataset wrapper."""

    def setup_method(self):
        get_graph().clear()

    def test_dataset_interface(self):
        dataset = Dataset()
        with pytest.raises(NotImplementedError):
            len(dataset)
        with pytest.raises(NotImplementedError):
            dataset[0]

    def test_get(self):
        dataset = MoonDataset(100)
        point, label = dataset[0]
        assert len(dataset) == 100
        assert point.shape == (1, 2)
        assert not point.retains_grad
        assert label == 1.0

    def test_one_hot(self):
        dataset = MoonDataset(4)
        assert np.array_equal(dataset.one_hot(), [[1.0, 0.0], [1.0, 0.0], [0.0, 1.0], [0.0, 1.0]])

    def test_batch(self):
        dataset = MoonDataset(6)
        points, targets = dataset.batch()
        assert points.shape == (6, 2)
        assert targets.shape == (6, 2)
        assert not points.retains_grad and not targets.retains_grad
