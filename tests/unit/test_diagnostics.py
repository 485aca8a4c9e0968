"""Tests for mapping compiler errors onto LSP diagnostics."""

from __future__ import annotations

from pathlib import Path

import pytest
from lsprotocol import types as lsp
from pygls.uris import from_fs_path

from tactls.compiler.diagnostics import (
    DIAGNOSTIC_SOURCE,
    DiagnosticMapper,
    error_to_diagnostic,
    failure_diagnostic,
)
from tactls.models.errors import CompilerError, ErrorCode, Severity
from tactls.parser.collection import ContractCollection
from tests.conftest import MAIN_CONTRACT


class TestErrorToDiagnostic:
    def test_positions_become_zero_based(self) -> None:
        diagnostic = error_to_diagnostic(
            CompilerError(file="a.tact", message="bad", line=7, column=3)
        )
        assert diagnostic.range.start == lsp.Position(line=6, character=2)
        assert diagnostic.range.end == lsp.Position(line=6, character=4)

    def test_default_position_is_document_start(self) -> None:
        diagnostic = error_to_diagnostic(CompilerError(file="a.tact", message="bad"))
        assert diagnostic.range.start == lsp.Position(line=0, character=0)

    def test_metadata(self) -> None:
        diagnostic = error_to_diagnostic(
            CompilerError(
                file="a.tact", message="cycle", severity=Severity.WARNING, code=ErrorCode.IMPORT_CYCLE
            )
        )
        assert diagnostic.severity == lsp.DiagnosticSeverity.Warning
        assert diagnostic.code == "IMPORT_CYCLE"
        assert diagnostic.source == DIAGNOSTIC_SOURCE
        assert diagnostic.message == "cycle"

    def test_failure_diagnostic(self) -> None:
        diagnostic = failure_diagnostic("Validation failed: boom")
        assert diagnostic.code == ErrorCode.VALIDATION_FAILED.value
        assert diagnostic.severity == lsp.DiagnosticSeverity.Error
        assert diagnostic.range.start == lsp.Position(line=0, character=0)


class TestDiagnosticMapper:
    def test_only_target_file_errors_kept(self) -> None:
        errors = [
            CompilerError(file="/ws/main.tact", message="mine", line=2, column=1),
            CompilerError(file="/ws/lib.tact", message="theirs"),
        ]
        diagnostics = DiagnosticMapper().map(errors, "/ws/main.tact")
        assert [d.message for d in diagnostics] == ["mine"]

    def test_paths_compared_normalized(self) -> None:
        errors = [CompilerError(file="/ws/./sub/../main.tact", message="mine")]
        assert len(DiagnosticMapper().map(errors, "/ws/main.tact")) == 1

    def test_order_preserved(self) -> None:
        errors = [
            CompilerError(file="/ws/a.tact", message=str(i), line=10 - i) for i in range(3)
        ]
        assert [d.message for d in DiagnosticMapper().map(errors, "/ws/a.tact")] == ["0", "1", "2"]

    def test_no_errors(self) -> None:
        assert DiagnosticMapper().map([], "/ws/a.tact") == []

    @pytest.mark.asyncio
    async def test_imported_error_surfaced_at_import(self, contract_tree: Path) -> None:
        collection = ContractCollection()
        main = str(contract_tree / "main.tact")
        messages = str(contract_tree / "messages.tact")
        await collection.add_contract_and_resolve_imports(main, MAIN_CONTRACT)
        error = CompilerError(file=messages, message="Unclosed", line=3, column=5)

        (diagnostic,) = DiagnosticMapper(surface_imported_errors=True).map(
            [error], main, collection
        )

        # import "./messages" sits on the second line at column 8
        assert diagnostic.range.start == lsp.Position(line=1, character=7)
        assert diagnostic.message == "messages.tact:3:5: Unclosed"
        (related,) = diagnostic.related_information
        assert related.location.uri == from_fs_path(messages)
        assert related.location.range.start == lsp.Position(line=2, character=4)

    def test_imported_error_without_collection_pinned_to_start(self) -> None:
        error = CompilerError(file="/ws/lib.tact", message="bad")
        (diagnostic,) = DiagnosticMapper(surface_imported_errors=True).map([error], "/ws/main.tact")
        assert diagnostic.range.start == lsp.Position(line=0, character=0)
