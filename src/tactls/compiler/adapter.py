"""Compiler invocation adapter: one isolated compile per requested source file."""

from __future__ import annotations

import logging

from tactls.compiler.backend import CompilerBackend, SyntaxCheckBackend
from tactls.models.contracts import CompileRequest, RawCompileResult
from tactls.models.errors import CompilerError, ErrorCode, TactCompilationError
from tactls.parser.paths import has_source_extension

EXTENSION_MISMATCH_MESSAGE = "Choose Tact source file (.tact)."

logger = logging.getLogger(__name__)


class TactCompiler:
    """Runs a :class:`CompilerBackend` once per target of a compile request.

    Every file gets a fresh backend call; a failure is captured as
    ``"<file>\\n<message>"`` and never stops the remaining files.
    """

    def __init__(self, root_path: str | None = None, backend: CompilerBackend | None = None) -> None:
        self.root_path = root_path or ""
        self._backend = backend or SyntaxCheckBackend()

    def is_root_path_set(self) -> bool:
        return self.root_path != ""

    async def run_compilation(self, file: str, request: CompileRequest) -> RawCompileResult:
        """Compile a single file.  Non-``.tact`` files are rejected up front."""
        if not has_source_extension(file):
            return RawCompileResult(
                file=file,
                output=f"{file}\n{EXTENSION_MISMATCH_MESSAGE}",
                error=CompilerError(
                    file=file,
                    message=EXTENSION_MISMATCH_MESSAGE,
                    code=ErrorCode.EXTENSION_MISMATCH,
                ),
            )

        try:
            await self._backend.check(file, request.sources)
        except TactCompilationError as exc:
            logger.debug("Compilation of %s failed: %s", file, exc)
            return RawCompileResult(
                file=file, output=f"{file}\n{_describe(exc)}", error=_structured(file, exc)
            )
        except Exception as exc:
            logger.exception("Compiler backend crashed on %s", file)
            return RawCompileResult(file=file, output=f"{file}\n{_describe(exc)}")
        return RawCompileResult(file=file)

    async def compile(self, request: CompileRequest) -> list[RawCompileResult]:
        """Compile every target of *request* in order, collecting all outcomes."""
        results: list[RawCompileResult] = []
        for file in request.targets:
            results.append(await self.run_compilation(file, request))
        return results


def _structured(file: str, exc: TactCompilationError) -> CompilerError | None:
    if not exc.has_position:
        return None
    return CompilerError(
        file=exc.file or file,
        message=exc.summary or _describe(exc),
        line=max(exc.line or 1, 1),
        column=max(exc.column or 1, 1),
    )


def _describe(exc: Exception) -> str:
    # Never empty: the raw result needs a message line after the file name.
    return str(exc) or type(exc).__name__
