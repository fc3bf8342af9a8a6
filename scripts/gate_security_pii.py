#!/usr/bin/env python3
"""Security gate: no secrets or personal data in runtime logging.

Fails if:
- print( found in runtime code (src/**)
- a logger call mentions a credential or request body without redaction

Usage:
    python scripts/gate_security_pii.py
"""

import re
import sys
from pathlib import Path

# Must not appear in logger calls unless passed through redaction
SENSITIVE_KEYWORDS = (
    "password",
    "secret",
    "device_id",
    "authorization",
    "request.json",
    "request.body",
    "body.",
)

PRINT_PATTERN = re.compile(r"\bprint\s*\(")

LOGGER_CALL_PATTERN = re.compile(
    r"logger\.(debug|info|warning|error|critical|exception)\s*\("
)

REDACTION_PATTERNS = (
    "safe_log_context",
    "redact_value",
    "redact_string",
)


def check_source(text: str, label: str) -> list[str]:
    """Return one message per violation found in text."""
    errors = []
    for lineno, line in enumerate(text.splitlines(), start=1):
        code = line.split("#", 1)[0]
        if not code.strip():
            continue

        if PRINT_PATTERN.search(code):
            errors.append(f"{label}:{lineno}: print() not allowed in runtime code")

        if LOGGER_CALL_PATTERN.search(code):
            lowered = code.lower()
            redacted = any(pattern in code for pattern in REDACTION_PATTERNS)
            for keyword in SENSITIVE_KEYWORDS:
                if keyword in lowered and not redacted:
                    errors.append(
                        f"{label}:{lineno}: logger call with '{keyword}' "
                        "must use redaction (safe_log_context/redact_value)"
                    )
    return errors


def check_file(filepath: Path) -> list[str]:
    try:
        content = filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return []
    return check_source(content, str(filepath))


def main() -> int:
    src_dir = Path(__file__).resolve().parent.parent / "src"
    if not src_dir.exists():
        sys.stderr.write("Error: src directory not found\n")
        return 1

    all_errors: list[str] = []
    for pyfile in sorted(src_dir.rglob("*.py")):
        all_errors.extend(check_file(pyfile))

    if all_errors:
        sys.stderr.write("Security gate FAILED:\n")
        for err in all_errors:
            sys.stderr.write(f"  {err}\n")
        return 1

    sys.stdout.write("Security gate PASSED\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
