"""Shared test fixtures for the Tact language server."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path

import pytest
from lsprotocol import types as lsp

from tactls.compiler.adapter import TactCompiler
from tactls.compiler.pipeline import ValidationPipeline
from tactls.models.errors import TactCompilationError

MAIN_CONTRACT = """\
import "@stdlib/deploy";
import "./messages";

contract Counter with Deployable {
    value: Int as uint32 = 0;

    receive(msg: Add) {
        self.value += msg.amount;
    }

    get fun value(): Int {
        return self.value;
    }
}
"""

MESSAGES_CONTRACT = """\
// Shared message definitions
message Add {
    amount: Int as uint32;
}
"""

BROKEN_CONTRACT = """\
import "./messages";

contract Broken {
    receive(msg: Add) {
        let s = "unterminated;
    }
}
"""


@pytest.fixture
def contract_tree(tmp_path: Path) -> Path:
    """A small workspace: main.tact imports messages.tact and the stdlib."""
    (tmp_path / "main.tact").write_text(MAIN_CONTRACT, encoding="utf-8")
    (tmp_path / "messages.tact").write_text(MESSAGES_CONTRACT, encoding="utf-8")
    return tmp_path


@dataclass
class FakeBackend:
    """Backend double: records every call and fails on configured files."""

    failures: dict[str, TactCompilationError] = field(default_factory=dict)
    calls: list[tuple[str, dict[str, str]]] = field(default_factory=list)

    async def check(self, file: str, sources: Mapping[str, str]) -> None:
        self.calls.append((file, dict(sources)))
        if file in self.failures:
            raise self.failures[file]

    @property
    def checked_files(self) -> list[str]:
        return [file for file, _ in self.calls]


@dataclass
class RecordingPublisher:
    """Collects ``(uri, diagnostics)`` pairs in publish order."""

    published: list[tuple[str, list[lsp.Diagnostic]]] = field(default_factory=list)

    def __call__(self, uri: str, diagnostics: list[lsp.Diagnostic]) -> None:
        self.published.append((uri, list(diagnostics)))

    def for_uri(self, uri: str) -> list[list[lsp.Diagnostic]]:
        return [diags for published_uri, diags in self.published if published_uri == uri]


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def publisher() -> RecordingPublisher:
    return RecordingPublisher()


@pytest.fixture
def workspace_pipeline(contract_tree: Path) -> ValidationPipeline:
    """Pipeline rooted at the contract tree, using the built-in syntax check."""
    return ValidationPipeline(TactCompiler(str(contract_tree)))
