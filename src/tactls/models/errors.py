"""Structured compiler error models with source position tracking."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, Field


class Severity(StrEnum):
    ERROR = "Error"
    WARNING = "Warning"
    INFORMATION = "Information"
    HINT = "Hint"


class ErrorCode(StrEnum):
    COMPILE_ERROR = "COMPILE_ERROR"
    EXTENSION_MISMATCH = "EXTENSION_MISMATCH"
    UNRESOLVED_IMPORT = "UNRESOLVED_IMPORT"
    IMPORT_CYCLE = "IMPORT_CYCLE"
    VALIDATION_FAILED = "VALIDATION_FAILED"


class SourceSpan(BaseModel):
    """A 1-based, single-line range in a source file; ``end_column`` is exclusive."""

    file: str
    line: int = Field(ge=1)
    column: int = Field(ge=1)
    end_column: int = Field(ge=1)

    @classmethod
    def at(cls, file: str, line: int, column: int, length: int) -> SourceSpan:
        return cls(file=file, line=line, column=column, end_column=column + length)

    @property
    def length(self) -> int:
        return self.end_column - self.column


class CompilerError(BaseModel):
    """A single error attributed to a source file.

    ``line`` and ``column`` are 1-based and default to the start of the file
    when the compiler output carries no usable position.
    """

    file: str
    message: str
    severity: Severity = Severity.ERROR
    line: int = Field(default=1, ge=1)
    column: int = Field(default=1, ge=1)
    length: int = Field(default=2, ge=1)
    code: ErrorCode = ErrorCode.COMPILE_ERROR

    @property
    def span(self) -> SourceSpan:
        return SourceSpan.at(self.file, self.line, self.column, self.length)


class TactCompilationError(Exception):
    """Raised by a compiler backend when a file fails to compile.

    ``str(exc)`` is the compiler's full textual trace.  Backends that know the
    failing position pass it along so callers need not parse the text.
    """

    def __init__(
        self,
        message: str,
        *,
        file: str | None = None,
        line: int | None = None,
        column: int | None = None,
        summary: str | None = None,
    ) -> None:
        super().__init__(message)
        self.file = file
        self.line = line
        self.column = column
        self.summary = summary

    @property
    def has_position(self) -> bool:
        return self.line is not None and self.column is not None
