"""
Infrastructure layer - Production adapters, host platform and tooling.

This layer contains the concrete port implementations, configuration and test support.
It depends on both Application and Domain layers.
"""

from . import adapters, config, guardrails, platform, testing

__all__ = [
    "adapters",
    "config",
    "guardrails",
    "platform",
    "testing",
]
