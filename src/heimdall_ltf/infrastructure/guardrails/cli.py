"""CLI interface for the dependency wiring guardrails."""

import argparse
import sys
from pathlib import Path
from typing import List, Optional

from heimdall_ltf.infrastructure.config import configure_logging, get_settings

from .scanner import GuardrailScanner


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point for the guardrail scan."""
    parser = argparse.ArgumentParser(
        description="Check that production adapters are only instantiated in the composition root"
    )

    parser.add_argument(
        "paths",
        nargs="*",
        type=Path,
        default=[Path("src")],
        help="Files or directories to scan (default: src)",
    )

    parser.add_argument(
        "--exclude",
        action="append",
        default=[],
        help="Directory name to skip, may be repeated (e.g. --exclude tests)",
    )

    parser.add_argument(
        "--composition-root",
        action="append",
        default=None,
        help="File name allowed to instantiate production adapters (default: composition_root.py)",
    )

    parser.add_argument(
        "--log-level",
        default=None,
        help="Log level (default: LTF_LOG_LEVEL or INFO)",
    )

    args = parser.parse_args(argv)
    configure_logging(args.log_level or get_settings().log_level)

    scanner = GuardrailScanner(composition_root_files=args.composition_root or ("composition_root.py",))

    print("Running DI/architecture guardrails...")
    try:
        violations = scanner.scan_paths(args.paths, exclude=args.exclude)
    except (OSError, SyntaxError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 2

    for violation in violations:
        print(violation, file=sys.stderr if violation.is_error else sys.stdout)

    if any(violation.is_error for violation in violations):
        return 1

    print("Guardrails OK")
    return 0


if __name__ == "__main__":
    sys.exit(main())
