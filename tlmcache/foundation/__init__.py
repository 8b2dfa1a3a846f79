"""Foundation layer for shared infrastructure modules."""

from . import common

__all__ = ["common"]
