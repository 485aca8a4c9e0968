"""Turns raw compiler output into structured :class:`CompilerError` records."""

from __future__ import annotations

import os
import re
from collections.abc import Iterable

from tactls.models.contracts import RawCompileResult
from tactls.models.errors import CompilerError

# "Line 7, col 3:" as printed by the Tact parser on the first trace line.
_LINE_COL_RE = re.compile(r"Line ([0-9]+), col ([0-9]+):")
# "contracts/lib.tact:7:3" style locations from command-line compilers.
_PATH_POSITION_RE = re.compile(
    r"((?:[A-Za-z]:)?[^\s:\"']+\.(?:tact|fc|func)):([0-9]+):([0-9]+)"
)


def parse_raw_result(raw: str, file: str | None = None) -> CompilerError | None:
    """Parse one ``"<file>\\n<trace>"`` result.

    * empty output → ``None`` (success)
    * ``file`` + one message line → error at (1, 1)
    * longer traces → position from ``Line N, col M:`` on the second line,
      message built from the last line followed by the line before it

    A trace without the ``Line N, col M:`` marker falls back to the first
    ``<path>:N:M`` location in the text; the error is then attributed to that
    path, which may be a file other than the one compiled.  Without either,
    the error sits at (1, 1).  Parsing never raises.
    """
    lines = raw.rstrip("\n").split("\n")
    if len(lines) == 1:
        if not lines[0]:
            return None
        return CompilerError(file=file or "", message=lines[0])

    origin = lines[0] or (file or "")
    if len(lines) == 2:
        return CompilerError(file=origin, message=lines[1])

    located, line, column = _extract_position(lines, origin)
    return CompilerError(
        file=located,
        message=f"{lines[-1]}\n{lines[-2]}",
        line=line,
        column=column,
    )


def parse_errors(results: Iterable[RawCompileResult]) -> list[CompilerError]:
    """Structured errors from *results*, preferring backend-provided positions."""
    errors: list[CompilerError] = []
    for result in results:
        if result.ok:
            continue
        if result.error is not None:
            errors.append(result.error)
            continue
        parsed = parse_raw_result(result.output, result.file)
        if parsed is not None:
            errors.append(parsed)
    return errors


def _extract_position(lines: list[str], origin: str) -> tuple[str, int, int]:
    match = _LINE_COL_RE.search(lines[1])
    if match is not None:
        return origin, _positive(match.group(1)), _positive(match.group(2))

    match = _PATH_POSITION_RE.search("\n".join(lines[1:]))
    if match is None:
        return origin, 1, 1
    located = match.group(1)
    if not os.path.isabs(located) and origin:
        located = os.path.join(os.path.dirname(origin), located)
    return located, _positive(match.group(2)), _positive(match.group(3))


def _positive(value: str) -> int:
    return max(int(value), 1)
