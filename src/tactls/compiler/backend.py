"""Compiler backends: the black box that checks one Tact source file."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
import tempfile
from collections.abc import Mapping
from typing import NoReturn, Protocol

from tactls.models.errors import TactCompilationError
from tactls.parser.scanner import ScanError, TokenKind, tokenize

logger = logging.getLogger(__name__)

_PAIRS = {"(": ")", "[": "]", "{": "}"}
_CLOSING = frozenset(_PAIRS.values())


class CompilerBackend(Protocol):
    """Checks *file* using *sources* (path → text) to resolve its imports.

    Implementations keep no state between calls and signal failure by
    raising :class:`TactCompilationError`.
    """

    async def check(self, file: str, sources: Mapping[str, str]) -> None: ...


def format_trace(source: str, line: int, column: int, summary: str) -> str:
    """Render a failure the way the Tact parser reports it.

    The first line carries the ``Line N, col M:`` marker, followed by the
    offending source line and the summary.
    """
    lines = source.split("\n")
    snippet = lines[line - 1].rstrip("\r") if 0 < line <= len(lines) else ""
    return f"Line {line}, col {column}:\n> {line} | {snippet}\n{summary}"


# ---------------------------------------------------------------------------
# Built-in lexical check
# ---------------------------------------------------------------------------


class SyntaxCheckBackend:
    """In-process precompile: string/comment termination and bracket balance.

    Runs without a Node toolchain, so diagnostics work out of the box.
    The scan runs in a worker thread to keep the event loop responsive.
    """

    async def check(self, file: str, sources: Mapping[str, str]) -> None:
        text = sources.get(file)
        if text is None:
            raise TactCompilationError(f"Source for {file} is not available", file=file)
        await asyncio.to_thread(self._check_text, file, text)

    def _check_text(self, file: str, text: str) -> None:
        stack: list[tuple[str, int, int]] = []
        try:
            for token in tokenize(text):
                if token.kind is not TokenKind.PUNCT:
                    continue
                if token.value in _PAIRS:
                    stack.append((token.value, token.line, token.column))
                elif token.value in _CLOSING:
                    if not stack:
                        self._fail(
                            file, text, token.line, token.column, f'Unexpected "{token.value}"'
                        )
                    opener, _, _ = stack.pop()
                    if _PAIRS[opener] != token.value:
                        self._fail(
                            file,
                            text,
                            token.line,
                            token.column,
                            f'Expected "{_PAIRS[opener]}", found "{token.value}"',
                        )
        except ScanError as exc:
            self._fail(file, text, exc.line, exc.column, exc.message)
        if stack:
            opener, line, column = stack[-1]
            self._fail(file, text, line, column, f'Unclosed "{opener}"')

    @staticmethod
    def _fail(file: str, text: str, line: int, column: int, summary: str) -> NoReturn:
        raise TactCompilationError(
            format_trace(text, line, column, summary),
            file=file,
            line=line,
            column=column,
            summary=summary,
        )


# ---------------------------------------------------------------------------
# External compiler command
# ---------------------------------------------------------------------------


class CommandBackend:
    """Runs an external compiler command against a temporary copy of the sources.

    *command* is split with :func:`shlex.split`; a ``{file}`` placeholder is
    replaced by the file to check, otherwise the file is appended.  Sources
    are written to a scratch directory so unsaved editor buffers are what
    gets compiled; scratch paths in the output are mapped back.
    """

    def __init__(self, command: str, timeout: float = 30.0) -> None:
        self._argv = shlex.split(command)
        if not self._argv:
            raise ValueError("Compiler command must not be empty")
        self._timeout = timeout

    async def check(self, file: str, sources: Mapping[str, str]) -> None:
        with tempfile.TemporaryDirectory(prefix="tactls-") as scratch:
            placed = await asyncio.to_thread(_materialize, sources, scratch)
            argv = self._build_argv(placed[file])
            logger.debug("Running compiler: %s", " ".join(argv))
            try:
                proc = await asyncio.create_subprocess_exec(
                    *argv,
                    stdout=asyncio.subprocess.PIPE,
                    stderr=asyncio.subprocess.STDOUT,
                    cwd=scratch,
                )
            except FileNotFoundError as exc:
                raise TactCompilationError(
                    f"Compiler command not found: {argv[0]}", file=file
                ) from exc
            try:
                output, _ = await asyncio.wait_for(proc.communicate(), self._timeout)
            except TimeoutError:
                proc.kill()
                await proc.wait()
                raise TactCompilationError(
                    f"Compiler timed out after {self._timeout:g}s", file=file
                ) from None

        if proc.returncode == 0:
            return
        text = output.decode("utf-8", errors="replace").strip()
        for real, scratch_path in placed.items():
            text = text.replace(scratch_path, real)
        raise TactCompilationError(
            text or f"Compiler exited with status {proc.returncode}", file=file
        )

    def _build_argv(self, file: str) -> list[str]:
        if any("{file}" in arg for arg in self._argv):
            return [arg.replace("{file}", file) for arg in self._argv]
        return [*self._argv, file]


def _materialize(sources: Mapping[str, str], scratch: str) -> dict[str, str]:
    """Write *sources* under *scratch* keeping their relative layout."""
    try:
        base = os.path.commonpath([os.path.dirname(p) for p in sources])
    except ValueError:
        base = ""
    placed: dict[str, str] = {}
    for path, text in sources.items():
        relative = os.path.relpath(path, base) if base else os.path.splitdrive(path)[1].lstrip("\\/")
        target = os.path.join(scratch, relative)
        os.makedirs(os.path.dirname(target), exist_ok=True)
        with open(target, "w", encoding="utf-8") as handle:
            handle.write(text)
        placed[path] = target
    return placed
