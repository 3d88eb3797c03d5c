"""Resource namespaces for the client."""

from .runs import Runs

__all__ = ["Runs"]
