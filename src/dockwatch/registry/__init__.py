"""
Container registry.

- ContainerRegistry: single-flight refresh and poll loop
- reconcile: pure id-keyed reconciliation producing snapshot and diff
"""

from dockwatch.registry.reconcile import reconcile
from dockwatch.registry.registry import ContainerRegistry

__all__ = ["ContainerRegistry", "reconcile"]
