"""Compiler invocation, error parsing, and diagnostic mapping."""

from tactls.compiler.adapter import EXTENSION_MISMATCH_MESSAGE, TactCompiler
from tactls.compiler.backend import CommandBackend, CompilerBackend, SyntaxCheckBackend
from tactls.compiler.diagnostics import DiagnosticMapper, error_to_diagnostic
from tactls.compiler.error_parser import parse_errors, parse_raw_result
from tactls.compiler.pipeline import ValidationOutcome, ValidationPipeline

__all__ = [
    "EXTENSION_MISMATCH_MESSAGE",
    "CommandBackend",
    "CompilerBackend",
    "DiagnosticMapper",
    "SyntaxCheckBackend",
    "TactCompiler",
    "ValidationOutcome",
    "ValidationPipeline",
    "error_to_diagnostic",
    "parse_errors",
    "parse_raw_result",
]
