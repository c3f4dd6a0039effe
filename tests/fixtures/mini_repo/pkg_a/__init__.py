"""Mini fixture package."""

from pkg_a.core import Greeter

__all__ = ["Greeter"]
