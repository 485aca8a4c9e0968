"""Maps structured compiler errors onto LSP diagnostics for one document."""

from __future__ import annotations

import os
from collections.abc import Iterable

from lsprotocol import types as lsp
from pygls.uris import from_fs_path

from tactls.models.errors import CompilerError, ErrorCode, Severity, SourceSpan
from tactls.parser.collection import ContractCollection
from tactls.parser.paths import normalize_path

DIAGNOSTIC_SOURCE = "tact"

_SEVERITY = {
    Severity.ERROR: lsp.DiagnosticSeverity.Error,
    Severity.WARNING: lsp.DiagnosticSeverity.Warning,
    Severity.INFORMATION: lsp.DiagnosticSeverity.Information,
    Severity.HINT: lsp.DiagnosticSeverity.Hint,
}


def _range(span: SourceSpan) -> lsp.Range:
    # Spans are 1-based, LSP positions 0-based.
    start = lsp.Position(line=span.line - 1, character=span.column - 1)
    end = lsp.Position(line=span.line - 1, character=span.end_column - 1)
    return lsp.Range(start=start, end=end)


def error_to_diagnostic(error: CompilerError) -> lsp.Diagnostic:
    return lsp.Diagnostic(
        range=_range(error.span),
        message=error.message,
        severity=_SEVERITY[error.severity],
        code=error.code.value,
        source=DIAGNOSTIC_SOURCE,
    )


def failure_diagnostic(message: str) -> lsp.Diagnostic:
    """A generic error pinned to the top of the document."""
    return lsp.Diagnostic(
        range=_range(SourceSpan.at("", 1, 1, 1)),
        message=message,
        severity=lsp.DiagnosticSeverity.Error,
        code=ErrorCode.VALIDATION_FAILED.value,
        source=DIAGNOSTIC_SOURCE,
    )


class DiagnosticMapper:
    """Filters errors down to one file and converts them to diagnostics.

    By default errors that belong to imported files are dropped.  With
    *surface_imported_errors* they are reported on the root document at the
    import that pulls the failing file in, with a related location pointing
    at the original position.
    """

    def __init__(self, surface_imported_errors: bool = False) -> None:
        self.surface_imported_errors = surface_imported_errors

    def map(
        self,
        errors: Iterable[CompilerError],
        target_path: str,
        collection: ContractCollection | None = None,
    ) -> list[lsp.Diagnostic]:
        target = normalize_path(target_path)
        diagnostics: list[lsp.Diagnostic] = []
        for error in errors:
            if normalize_path(error.file) == target:
                diagnostics.append(error_to_diagnostic(error))
            elif self.surface_imported_errors:
                diagnostics.append(self._imported(error, target, collection))
        return diagnostics

    @staticmethod
    def _imported(
        error: CompilerError, target: str, collection: ContractCollection | None
    ) -> lsp.Diagnostic:
        statement = collection.import_location(error.file) if collection is not None else None
        if statement is not None:
            where = statement.span_in(target)
        else:
            where = SourceSpan.at(target, 1, 1, 1)
        origin = os.path.basename(error.file) or error.file
        return lsp.Diagnostic(
            range=_range(where),
            message=f"{origin}:{error.line}:{error.column}: {error.message}",
            severity=_SEVERITY[error.severity],
            code=error.code.value,
            source=DIAGNOSTIC_SOURCE,
            related_information=[
                lsp.DiagnosticRelatedInformation(
                    location=lsp.Location(
                        uri=from_fs_path(error.file) or error.file,
                        range=_range(error.span),
                    ),
                    message=error.message,
                )
            ],
        )
