from typing import Any, Optional, Sized, Tuple

import numpy as np
from numpy.typing import NDArray

from ..core.graph import Graph, get_graph
from ..core.variable import Variable


def make_moons(
    n_samples: int = 100, noise: float = 0.0, seed: Optional[int] = None
) -> Tuple[NDArray[np.float64], NDArray[np.float64]]:
    """
    Generates two interleaving half circles.

    The first half of the samples lies on the lower ("inner") moon with label
    1, the rest on the upper ("outer") moon with label 0.

    Args:
        n_samples: Total number of points
        noise: Standard deviation of Gaussian noise added to the points
        seed: Seed for the noise generator

    Returns:
        Points of shape (n_samples, 2) and labels of shape (n_samples,)
    """
    if n_samples < 2:
        raise ValueError(f"n_samples must be at least 2, got {n_samples}")
    if noise < 0.0:
        raise ValueError(f"Invalid noise value: {noise}")

    n_samples_in = n_samples // 2
    n_samples_out = n_samples - n_samples_in

    angles_out = np.linspace(0.0, np.pi, n_samples_out)
    angles_in = np.linspace(0.0, np.pi, n_samples_in)

    outer = np.stack([np.cos(angles_out), np.sin(angles_out)], axis=1)
    inner = np.stack([1.0 - np.cos(angles_in), 1.0 - np.sin(angles_in) - 0.5], axis=1)

    points = np.concatenate([inner, outer], axis=0)
    labels = np.concatenate([np.ones(n_samples_in), np.zeros(n_samples_out)])

    if noise > 0.0:
        rng = np.random.default_rng(seed)
        points = points + rng.normal(scale=noise, size=points.shape)

    return points, labels


class Dataset(Sized):
    """
    Abstract base class for all datasets.

    All subclasses must implement __getitem__() and __len__().
    """

    def __getitem__(self, index: int) -> Any:
        raise NotImplementedError

    def __len__(self) -> int:
        raise NotImplementedError


class MoonDataset(Dataset):
    """
    The two-moons dataset, served as constant graph leaves.

    Each sample is a (1, 2) non-retaining leaf with its 0/1 label.

    Args:
        n_samples: Total number of points
        noise: Standard deviation of Gaussian noise added to the points
        seed: Seed for the noise generator
        graph: Graph the samples are created in (default: the global graph)
    """

    def __init__(
        self,
        n_samples: int = 100,
        noise: float = 0.0,
        seed: Optional[int] = None,
        graph: Optional[Graph] = None,
    ) -> None:
        self.data, self.labels = make_moons(n_samples, noise=noise, seed=seed)
        self.graph = get_graph() if graph is None else graph

    def __getitem__(self, index: int) -> Tuple[Variable, float]:
        point = self.graph.leaf(self.data[index].reshape(1, 2), retain_grad=False)
        return point, float(self.labels[index])

    def __len__(self) -> int:
        return self.data.shape[0]

    def one_hot(self) -> NDArray[np.float64]:
        """Labels as (n, 2) one-hot rows: label 1 -> [1, 0], label 0 -> [0, 1]."""
        return np.stack([self.labels, 1.0 - self.labels], axis=1)

    def batch(self) -> Tuple[Variable, Variable]:
        """The whole dataset as (points, one-hot targets) leaves."""
        return (
            self.graph.leaf(self.data, retain_grad=False),
            self.graph.leaf(self.one_hot(), retain_grad=False),
        )
