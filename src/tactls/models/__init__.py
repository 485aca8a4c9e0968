"""Pydantic and dataclass domain models for the Tact language server."""

from tactls.models.contracts import CompileRequest, ContractSource, Document, RawCompileResult
from tactls.models.errors import (
    CompilerError,
    ErrorCode,
    Severity,
    SourceSpan,
    TactCompilationError,
)

__all__ = [
    "CompileRequest",
    "CompilerError",
    "ContractSource",
    "Document",
    "ErrorCode",
    "RawCompileResult",
    "Severity",
    "SourceSpan",
    "TactCompilationError",
]
