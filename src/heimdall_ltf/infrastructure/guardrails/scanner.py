"""Static check that production adapters are only built by the composition root."""

import ast
import logging
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Class names of the production port implementations.
PRODUCTION_ADAPTERS = (
    "HttpxClient",
    "LoggingEventBus",
    "StoreMutator",
    "StoreSelector",
    "SystemClock",
    "ThreadPoolEnqueuer",
)
FORBIDDEN_SUFFIXES = ("Selector", "Mutator", "Service")
HTTPX_CALLS = frozenset({"Client", "request", "get", "post", "put", "patch", "delete", "head", "options", "stream"})


class Violation(BaseModel):
    """A guardrail finding.

    Attributes:
        path: File the finding is in.
        line: 1-based line number.
        message: Human readable description.
        is_error: Errors fail the scan, warnings are only reported.
    """

    path: str = Field(..., description="File the finding is in.")
    line: int = Field(..., description="1-based line number.")
    message: str = Field(..., description="Human readable description.")
    is_error: bool = Field(default=True, description="Whether the finding fails the scan.")

    def __str__(self) -> str:
        level = "ERROR" if self.is_error else "WARNING"
        return f"{level}: {self.path}:{self.line}: {self.message}"


class _CallVisitor(ast.NodeVisitor):
    def __init__(self, scanner: "GuardrailScanner", path: str) -> None:
        self.scanner = scanner
        self.path = path
        self.violations: List[Violation] = []

    def visit_Call(self, node: ast.Call) -> None:
        func = node.func
        if isinstance(func, ast.Name):
            self._check_instantiation(func.id, node.lineno)
        elif isinstance(func, ast.Attribute):
            self._check_instantiation(func.attr, node.lineno)
            if isinstance(func.value, ast.Name) and func.value.id == "httpx" and func.attr in HTTPX_CALLS:
                self._check_http(func.attr, node.lineno)
        self.generic_visit(node)

    def _check_instantiation(self, name: str, line: int) -> None:
        if self.scanner.is_forbidden_class(name) and not self.scanner.is_composition_root(self.path):
            self.violations.append(
                Violation(
                    path=self.path,
                    line=line,
                    message=f"{name} instantiated outside the composition root",
                )
            )

    def _check_http(self, name: str, line: int) -> None:
        if not self.scanner.is_http_adapter(self.path):
            self.violations.append(
                Violation(
                    path=self.path,
                    line=line,
                    message=f"Direct httpx.{name} call, prefer the IHttpClient port",
                    is_error=False,
                )
            )


class GuardrailScanner:
    """Scans Python sources for dependency wiring violations.

    Rules:
    - Production adapters, and classes named ``*Selector``, ``*Mutator`` or
      ``*Service``, may only be instantiated in the composition root.
    - Direct ``httpx`` calls outside the HTTP adapter produce a warning.

    Attributes:
        forbidden_names: Class names that may only be built by the composition root.
        forbidden_suffixes: Class name suffixes treated the same way.
        composition_root_files: File names allowed to build production adapters.
        http_adapter_files: File names allowed to call ``httpx`` directly.
    """

    def __init__(
        self,
        forbidden_names: Sequence[str] = PRODUCTION_ADAPTERS,
        forbidden_suffixes: Sequence[str] = FORBIDDEN_SUFFIXES,
        composition_root_files: Sequence[str] = ("composition_root.py",),
        http_adapter_files: Sequence[str] = ("httpx_client.py",),
    ) -> None:
        self.forbidden_names = frozenset(forbidden_names)
        self.forbidden_suffixes = tuple(forbidden_suffixes)
        self.composition_root_files = frozenset(composition_root_files)
        self.http_adapter_files = frozenset(http_adapter_files)

    def is_forbidden_class(self, name: str) -> bool:
        if name in self.forbidden_names:
            return True
        # Only CamelCase names look like classes; skips calls like ``get_selector()``.
        return name[:1].isupper() and name.endswith(self.forbidden_suffixes)

    def is_composition_root(self, path: str) -> bool:
        return Path(path).name in self.composition_root_files

    def is_http_adapter(self, path: str) -> bool:
        return Path(path).name in self.http_adapter_files

    def scan_source(self, source: str, path: str = "<string>") -> List[Violation]:
        """Scan one module's source text.

        Raises:
            SyntaxError: If the source does not parse.
        """
        visitor = _CallVisitor(self, path)
        visitor.visit(ast.parse(source, filename=path))
        return visitor.violations

    def scan_paths(self, paths: Iterable[Path], exclude: Optional[Iterable[str]] = None) -> List[Violation]:
        """Scan files and directories (recursively, ``*.py`` only).

        Args:
            paths: Files or directories to scan.
            exclude: Directory names to skip, e.g. ``tests``.
        """
        excluded = set(exclude or ())
        violations: List[Violation] = []
        for file_path in self._iter_files(paths, excluded):
            logger.debug("Scanning %s", file_path)
            source = file_path.read_text(encoding="utf-8")
            violations.extend(self.scan_source(source, str(file_path)))
        return violations

    @staticmethod
    def _iter_files(paths: Iterable[Path], excluded: set) -> Iterable[Path]:
        for path in paths:
            if path.is_dir():
                for file_path in sorted(path.rglob("*.py")):
                    if not excluded.intersection(file_path.relative_to(path).parts[:-1]):
                        yield file_path
            elif path.suffix == ".py":
                yield path
