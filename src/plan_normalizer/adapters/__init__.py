"""Adapter layer package for reading plan input."""

from .plan_loader import PlanLoader, PlanLoaderError, PlanSource

__all__ = [
    "PlanLoader",
    "PlanLoaderError",
    "PlanSource",
]
