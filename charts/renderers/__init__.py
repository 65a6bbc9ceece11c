# Rendering implementations for tools

from . import population_pyramid

__all__ = [
    "population_pyramid",
]
