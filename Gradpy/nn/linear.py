from typing import List, Optional, Sequence

import numpy as np

from ..core.graph import Graph, get_graph
from ..core.variable import Variable
from ..ops.basic import Add, Dot
from ..ops.elementwise import ReLU
from .module import Module


class Linear(Module):
    """
    Applies a linear transformation to the incoming data: y = xW + b

    Inputs are row-major batches of shape (batch, in_features); the weight is
    stored as (in_features, out_features) and the bias as a (1, out_features)
    row that broadcasts over the batch.

    Args:
        in_features: size of each input sample
        out_features: size of each output sample
        bias: If set to False, the layer will not learn an additive bias
        graph: Graph holding the parameters (default: the global graph)
    """

    def __init__(
        self,
        in_features: int,
        out_features: int,
        bias: bool = True,
        graph: Optional[Graph] = None,
    ) -> None:
        super().__init__()
        if in_features <= 0 or out_features <= 0:
            raise ValueError(
                f"Invalid layer size: in_features={in_features}, out_features={out_features}"
            )

        self.in_features = in_features
        self.out_features = out_features
        if graph is None:
            graph = get_graph()

        # Initialize weights using He initialization
        bound = np.sqrt(2.0 / in_features)
        self.register_parameter(
            "weight",
            graph.leaf(np.random.uniform(-bound, bound, (in_features, out_features))),
        )

        if bias:
            self.register_parameter("bias", graph.leaf(np.zeros((1, out_features))))
        else:
            self.register_parameter("bias", None)

    def forward(self, input: Variable) -> Variable:
        """Forward pass of the linear layer."""
        output = Dot.subscribe(input, self.weight)
        if self.bias is not None:
            output = Add.subscribe(output, self.bias)
        return output

    def extra_repr(self) -> str:
        return (
            f"in_features={self.in_features}, out_features={self.out_features}, "
            f"bias={self.bias is not None}"
        )


class MLP(Module):
    """
    Multilayer perceptron: Linear layers with ReLU between them.

    The last layer has no activation, so the output can feed a softmax or a
    loss directly.

    Args:
        sizes: Layer widths, input first; ``[2, 16, 2]`` builds two layers
        graph: Graph holding the parameters (default: the global graph)
    """

    def __init__(self, sizes: Sequence[int], graph: Optional[Graph] = None) -> None:
        super().__init__()
        if len(sizes) < 2:
            raise ValueError(f"MLP needs at least an input and an output size, got {list(sizes)}")

        self.sizes = list(sizes)
        for idx, (n_in, n_out) in enumerate(zip(sizes[:-1], sizes[1:])):
            self.add_module(str(idx), Linear(n_in, n_out, graph=graph))

    @property
    def layers(self) -> List[Linear]:
        return list(self._modules.values())

    def forward(self, input: Variable) -> Variable:
        output = input
        layers = self.layers
        for layer in layers[:-1]:
            output = ReLU.subscribe(layer(output))
        return layers[-1](output)
