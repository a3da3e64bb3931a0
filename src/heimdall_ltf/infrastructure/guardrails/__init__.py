"""
Guardrails module.

Provides the static wiring check and its command line entry point.
"""

from .scanner import GuardrailScanner, Violation

__all__ = [
    "GuardrailScanner",
    "Violation",
]
