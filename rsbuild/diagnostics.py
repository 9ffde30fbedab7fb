"""Parsing of compiler diagnostic output into attributed diagnostics."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List

from .models import Diagnostic, Severity
from .paths import relativize

# "<path>:<line>:<col>: <message>". The line field is matched loosely so that a
# garbled line number is detected and rejected instead of silently skipped.
_DIAGNOSTIC_PATTERN = re.compile(r"(.+?):([^:]+):(\d+):\s(.+)")


@dataclass
class DiagnosticParse:
    """Outcome of parsing one compiler invocation's output."""

    diagnostics: List[Diagnostic] = field(default_factory=list)
    fully_parsed: bool = True


def parse_diagnostics(lines: Iterable[str], root: Path | str) -> DiagnosticParse:
    """Parse compiler output lines into diagnostics attributed to project files.

    Lines that do not match the diagnostic grammar, and diagnostics reported
    against files outside ``root``, mark the result as not fully parsed while
    the remaining lines are still processed. A matching line whose line number
    is not an unsigned integer aborts the parse and discards everything
    collected so far.
    """
    result = DiagnosticParse()
    for raw in lines:
        line = raw.rstrip("\r\n")
        match = _DIAGNOSTIC_PATTERN.fullmatch(line)
        if match is None:
            result.fully_parsed = False
            continue

        file_path, line_field, _column, message = match.groups()
        relative = relativize(file_path, root)
        if relative is None:
            result.fully_parsed = False
            continue

        if not (line_field.isascii() and line_field.isdigit()):
            return DiagnosticParse(diagnostics=[], fully_parsed=False)

        result.diagnostics.append(
            Diagnostic(
                file=relative,
                line=int(line_field),
                message=message,
                severity=Severity.ERROR,
            )
        )
    return result


__all__ = ["DiagnosticParse", "parse_diagnostics"]
