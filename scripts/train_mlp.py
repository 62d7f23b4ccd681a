"""
Train a small MLP on the two-moons dataset.

Each epoch builds one graph over the whole dataset (softmax of the network's
output per sample, mean-squared error against the one-hot label), runs a
single backward pass and an SGD step, then prunes everything but the
parameters from the graph.

Example:
    python scripts/train_mlp.py --samples 30 --hidden 16 --epochs 200 --lr 0.3
"""

import argparse
import logging
from typing import List, Optional

import numpy as np

from Gradpy import get_graph, mse_loss, softmax
from Gradpy.data import MoonDataset
from Gradpy.nn import MLP
from Gradpy.optim import SGD

logger = logging.getLogger("train_mlp")


def train(
    samples: int,
    hidden: int,
    epochs: int,
    lr: float,
    momentum: float = 0.0,
    noise: float = 0.0,
    seed: Optional[int] = None,
    log_every: int = 10,
) -> List[float]:
    """Runs the training loop and returns the loss of every epoch."""
    if seed is not None:
        np.random.seed(seed)

    graph = get_graph()
    dataset = MoonDataset(samples, noise=noise, seed=seed, graph=graph)
    targets = dataset.one_hot()
    model = MLP([2, hidden, 2], graph=graph)
    optimizer = SGD(model.parameters(), lr=lr, momentum=momentum)

    history: List[float] = []
    for epoch in range(epochs):
        optimizer.zero_grad()

        loss = None
        for idx in range(len(dataset)):
            point, _ = dataset[idx]
            output = softmax(model(point))
            sample_loss = mse_loss(output, targets[idx : idx + 1])
            loss = sample_loss if loss is None else loss + sample_loss

        loss = loss / float(len(dataset))
        loss.backward()
        optimizer.step()

        value = float(loss.data[0])
        history.append(value)
        if epoch % log_every == 0 or epoch == epochs - 1:
            logger.info("epoch %d : loss : %.6f", epoch, value)

        graph.prune(model.parameters())

    return history


def main() -> None:
    ap = argparse.ArgumentParser(description=__doc__.splitlines()[1])
    ap.add_argument("--samples", type=int, default=30)
    ap.add_argument("--hidden", type=int, default=16)
    ap.add_argument("--epochs", type=int, default=200)
    ap.add_argument("--lr", type=float, default=0.3)
    ap.add_argument("--momentum", type=float, default=0.0)
    ap.add_argument("--noise", type=float, default=0.0)
    ap.add_argument("--seed", type=int, default=None)
    ap.add_argument("--log-every", type=int, default=10)
    ap.add_argument(
        "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], default="INFO"
    )
    args = ap.parse_args()

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    history = train(
        samples=args.samples,
        hidden=args.hidden,
        epochs=args.epochs,
        lr=args.lr,
        momentum=args.momentum,
        noise=args.noise,
        seed=args.seed,
        log_every=args.log_every,
    )
    logger.info("final loss %.6f (initial %.6f)", history[-1], history[0])


if __name__ == "__main__":
    main()
