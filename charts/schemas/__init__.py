# Pydantic schemas for tools validation

from . import population_pyramid

__all__ = [
    "population_pyramid",
]
