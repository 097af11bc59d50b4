"""An interactive Git playground backed by a pure-Python repository engine."""

__version__ = "0.1.0"
__all__ = ["__version__"]