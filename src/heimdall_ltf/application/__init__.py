"""
Application layer - Registry, guard and dispatch orchestration.

This layer contains the runtime that routes lifecycle events and resolves ports.
It depends only on the Domain layer.
"""

from .context import (
    DEFAULT_COMPOSITION_ROOT,
    ExecutionContext,
    current_context,
    execution_context,
    register,
    resolve,
)
from .recursion_guard import RecursionGuard
from .registry import CompositionRoot, ServiceRegistry, load_composition_root
from .router import HANDLER_METHODS, LifecycleEventRouter, dispatch

__all__ = [
    "ServiceRegistry",
    "CompositionRoot",
    "load_composition_root",
    "RecursionGuard",
    "ExecutionContext",
    "DEFAULT_COMPOSITION_ROOT",
    "execution_context",
    "current_context",
    "resolve",
    "register",
    "LifecycleEventRouter",
    "HANDLER_METHODS",
    "dispatch",
]
