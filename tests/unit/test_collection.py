"""Tests for ContractCollection import resolution."""

from __future__ import annotations

from pathlib import Path

import pytest

from tactls.models.errors import ErrorCode, Severity
from tactls.parser.collection import ContractCollection
from tactls.parser.paths import normalize_path
from tests.conftest import MAIN_CONTRACT


def _p(path: Path) -> str:
    return normalize_path(str(path))


class TestResolveImports:
    @pytest.mark.asyncio
    async def test_collects_transitive_imports(self, tmp_path: Path) -> None:
        (tmp_path / "lib").mkdir()
        (tmp_path / "main.tact").write_text('import "./lib/a";\n', encoding="utf-8")
        (tmp_path / "lib" / "a.tact").write_text('import "./b";\n', encoding="utf-8")
        (tmp_path / "lib" / "b.tact").write_text("message B {}\n", encoding="utf-8")

        collection = ContractCollection()
        root = tmp_path / "main.tact"
        await collection.add_contract_and_resolve_imports(str(root), root.read_text())

        paths = [c.path for c in collection.contracts]
        assert paths == [_p(root), _p(tmp_path / "lib" / "a.tact"), _p(tmp_path / "lib" / "b.tact")]
        assert collection.root == _p(root)
        assert collection.errors == []

    @pytest.mark.asyncio
    async def test_stdlib_imports_skipped(self, contract_tree: Path) -> None:
        collection = ContractCollection()
        await collection.add_contract_and_resolve_imports(
            str(contract_tree / "main.tact"), MAIN_CONTRACT
        )
        assert len(collection.contracts) == 2
        assert collection.contains(str(contract_tree / "messages.tact"))

    @pytest.mark.asyncio
    async def test_root_text_comes_from_argument(self, contract_tree: Path) -> None:
        collection = ContractCollection()
        root = str(contract_tree / "main.tact")
        await collection.add_contract_and_resolve_imports(root, "contract Edited {}\n")
        assert collection.contracts[0].text == "contract Edited {}\n"
        assert len(collection.contracts) == 1

    @pytest.mark.asyncio
    async def test_overlay_wins_over_disk(self, contract_tree: Path) -> None:
        messages = str(contract_tree / "messages.tact")
        collection = ContractCollection(overlay={messages: "message Unsaved {}\n"})
        await collection.add_contract_and_resolve_imports(
            str(contract_tree / "main.tact"), MAIN_CONTRACT
        )
        request = collection.get_default_contracts_for_compilation_diagnostics()
        assert request.sources[normalize_path(messages)] == "message Unsaved {}\n"

    @pytest.mark.asyncio
    async def test_shared_import_visited_once(self, tmp_path: Path) -> None:
        (tmp_path / "main.tact").write_text('import "./a";\nimport "./b";\n', encoding="utf-8")
        (tmp_path / "a.tact").write_text('import "./common";\n', encoding="utf-8")
        (tmp_path / "b.tact").write_text('import "./common";\n', encoding="utf-8")
        (tmp_path / "common.tact").write_text("message C {}\n", encoding="utf-8")

        collection = ContractCollection()
        root = tmp_path / "main.tact"
        await collection.add_contract_and_resolve_imports(str(root), root.read_text())
        paths = [c.path for c in collection.contracts]
        assert len(paths) == len(set(paths)) == 4
        assert collection.import_cycles() == []

    @pytest.mark.asyncio
    async def test_func_imports_collected_not_followed(self, tmp_path: Path) -> None:
        (tmp_path / "main.tact").write_text('import "./native.fc";\n', encoding="utf-8")
        (tmp_path / "native.fc").write_text('#include "missing.fc";\n', encoding="utf-8")

        collection = ContractCollection()
        root = tmp_path / "main.tact"
        await collection.add_contract_and_resolve_imports(str(root), root.read_text())
        request = collection.get_default_contracts_for_compilation_diagnostics()
        assert _p(tmp_path / "native.fc") in request.sources
        assert request.targets == (_p(root),)
        assert collection.errors == []


class TestResolutionFailures:
    @pytest.mark.asyncio
    async def test_missing_import_reported_and_siblings_resolved(self, tmp_path: Path) -> None:
        source = 'import "./missing";\nimport "./present";\n'
        (tmp_path / "main.tact").write_text(source, encoding="utf-8")
        (tmp_path / "present.tact").write_text("message P {}\n", encoding="utf-8")

        collection = ContractCollection()
        root = tmp_path / "main.tact"
        await collection.add_contract_and_resolve_imports(str(root), source)

        assert collection.contains(str(tmp_path / "present.tact"))
        (error,) = collection.errors
        assert error.code == ErrorCode.UNRESOLVED_IMPORT
        assert error.file == _p(root)
        assert (error.line, error.column) == (1, 8)
        assert "./missing" in error.message

    @pytest.mark.asyncio
    async def test_missing_import_in_nested_file(self, tmp_path: Path) -> None:
        (tmp_path / "main.tact").write_text('import "./a";\n', encoding="utf-8")
        (tmp_path / "a.tact").write_text('\n\nimport "./gone";\n', encoding="utf-8")

        collection = ContractCollection()
        root = tmp_path / "main.tact"
        await collection.add_contract_and_resolve_imports(str(root), root.read_text())
        (error,) = collection.errors
        assert error.file == _p(tmp_path / "a.tact")
        assert error.line == 3

    @pytest.mark.asyncio
    async def test_directory_import_is_unresolved(self, tmp_path: Path) -> None:
        (tmp_path / "pkg.tact").mkdir()
        collection = ContractCollection()
        await collection.add_contract_and_resolve_imports(
            str(tmp_path / "main.tact"), 'import "./pkg";\n'
        )
        (error,) = collection.errors
        assert error.code == ErrorCode.UNRESOLVED_IMPORT


class TestCycles:
    @pytest.mark.asyncio
    async def test_cycle_terminates_and_warns(self, tmp_path: Path) -> None:
        (tmp_path / "a.tact").write_text('import "./b";\n', encoding="utf-8")
        (tmp_path / "b.tact").write_text('\nimport "./a";\n', encoding="utf-8")

        collection = ContractCollection()
        root = tmp_path / "a.tact"
        await collection.add_contract_and_resolve_imports(str(root), root.read_text())

        assert len(collection.contracts) == 2
        assert collection.import_cycles() == [[_p(root), _p(tmp_path / "b.tact")]]
        (warning,) = collection.errors
        assert warning.code == ErrorCode.IMPORT_CYCLE
        assert warning.severity == Severity.WARNING
        assert warning.file == _p(tmp_path / "b.tact")
        assert warning.line == 2
        assert "a.tact -> b.tact -> a.tact" in warning.message

    @pytest.mark.asyncio
    async def test_self_import(self, tmp_path: Path) -> None:
        collection = ContractCollection()
        root = str(tmp_path / "self.tact")
        await collection.add_contract_and_resolve_imports(root, 'import "./self";\n')
        assert collection.import_cycles() == [[normalize_path(root)]]


class TestDefaultContracts:
    @pytest.mark.asyncio
    async def test_every_tact_source_is_a_target(self, contract_tree: Path) -> None:
        collection = ContractCollection()
        root = str(contract_tree / "main.tact")
        await collection.add_contract_and_resolve_imports(root, MAIN_CONTRACT)
        request = collection.get_default_contracts_for_compilation_diagnostics()
        messages = str(contract_tree / "messages.tact")
        assert request.targets == (normalize_path(root), normalize_path(messages))
        assert len(request.sources) == 2

    @pytest.mark.asyncio
    async def test_non_tact_root_stays_a_target(self, tmp_path: Path) -> None:
        collection = ContractCollection()
        root = str(tmp_path / "notes.txt")
        await collection.add_contract_and_resolve_imports(root, "")
        request = collection.get_default_contracts_for_compilation_diagnostics()
        assert request.targets == (normalize_path(root),)

    @pytest.mark.asyncio
    async def test_request_is_read_only(self, contract_tree: Path) -> None:
        collection = ContractCollection()
        await collection.add_contract_and_resolve_imports(
            str(contract_tree / "main.tact"), MAIN_CONTRACT
        )
        request = collection.get_default_contracts_for_compilation_diagnostics()
        with pytest.raises(TypeError):
            request.sources["other.tact"] = ""  # type: ignore[index]

    @pytest.mark.asyncio
    async def test_import_location_points_at_root_import(self, contract_tree: Path) -> None:
        collection = ContractCollection()
        await collection.add_contract_and_resolve_imports(
            str(contract_tree / "main.tact"), MAIN_CONTRACT
        )
        statement = collection.import_location(str(contract_tree / "messages.tact"))
        assert statement is not None
        assert (statement.path, statement.line) == ("./messages", 2)
        assert collection.import_location(str(contract_tree / "main.tact")) is None
