from collections import OrderedDict
from typing import Any, Iterator, List, Optional, Tuple

from ..core.variable import Variable


class Module:
    """
    Base class for all neural network modules.

    Your models should also subclass this class.
    Modules can also contain other Modules, allowing to nest them in
    a tree structure.
    """

    def __init__(self) -> None:
        """Initialize the module."""
        # First set these directly to avoid triggering __setattr__
        object.__setattr__(self, "_parameters", OrderedDict())
        object.__setattr__(self, "_modules", OrderedDict())

    def register_parameter(self, name: str, param: Optional[Variable]) -> None:
        """Add a parameter to the module.

        Args:
            name: Name of the parameter
            param: The parameter variable to register
        """
        if "_parameters" not in self.__dict__:
            raise TypeError("cannot assign parameter before Module.__init__() call")

        if param is not None and not isinstance(param, Variable):
            raise TypeError(f"Parameter {name} must be a Variable, not {type(param)}")

        self._parameters[name] = param

    def add_module(self, name: str, module: Optional["Module"]) -> None:
        """Add a child module to the current module."""
        if not isinstance(module, (Module, type(None))):
            raise TypeError(f"{name} is not a Module subclass")

        if "_modules" not in self.__dict__:
            raise TypeError("cannot assign module before Module.__init__() call")

        self._modules[name] = module

    def __getattr__(self, name: str) -> Any:
        """Custom getattr that looks through parameters and modules."""
        if "_parameters" in self.__dict__:
            _parameters = self.__dict__["_parameters"]
            if name in _parameters:
                return _parameters[name]

        if "_modules" in self.__dict__:
            modules = self.__dict__["_modules"]
            if name in modules:
                return modules[name]

        raise AttributeError(f"'{type(self).__name__}' object has no attribute '{name}'")

    def __setattr__(self, name: str, value: Any) -> None:
        """Custom setattr that handles parameter registration."""
        if isinstance(value, Variable):
            self.register_parameter(name, value)
        elif isinstance(value, Module):
            self.add_module(name, value)
        else:
            object.__setattr__(self, name, value)

    def parameters(self) -> List[Variable]:
        """Returns the module's parameters, children included, in registration order."""
        return [param for _, param in self.named_parameters()]

    def named_parameters(self) -> Iterator[Tuple[str, Variable]]:
        """Returns an iterator over module parameters, yielding both the
        name of the parameter as well as the parameter itself."""
        for name, param in self._parameters.items():
            if param is not None:
                yield name, param
        for mname, module in self._modules.items():
            if module is not None:
                for name, param in module.named_parameters():
                    yield f"{mname}.{name}", param

    def zero_grad(self) -> None:
        """Zeros the gradient buffer of every parameter."""
        for param in self.parameters():
            param.zero_grad()

    def __call__(self, *args: Any, **kwargs: Any) -> Variable:
        return self.forward(*args, **kwargs)

    def forward(self, *args: Any, **kwargs: Any) -> Variable:
        """Define the computation performed at every call."""
        raise NotImplementedError

    def __repr__(self) -> str:
        """Returns a string representation of the module."""
        extra_lines = []
        extra_repr = self.extra_repr()
        if extra_repr:
            extra_lines = extra_repr.split("\n")

        child_lines = []
        for key, module in self._modules.items():
            mod_str = _addindent(repr(module), 2)
            child_lines.append("(" + key + "): " + mod_str)

        lines = extra_lines + child_lines

        main_str = self.__class__.__name__ + "("
        if lines:
            main_str += "\n  " + "\n  ".join(lines) + "\n"
        main_str += ")"
        return main_str

    def extra_repr(self) -> str:
        """Set the extra representation of the module."""
        return ""


def _addindent(s_: str, numSpaces: int) -> str:
    """Helper for indenting multiline strings."""
    s = s_.split("\n")
    if len(s) == 1:
        return s_
    first = s.pop(0)
    s = [(numSpaces * " ") + line for line in s]
    return "\n".join([first] + s)
