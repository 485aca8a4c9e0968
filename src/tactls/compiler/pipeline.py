"""Orchestrates one validation pass: Collection → Compile → Parse → Diagnostics."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field

from lsprotocol import types as lsp

from tactls.compiler.adapter import TactCompiler
from tactls.compiler.diagnostics import DiagnosticMapper
from tactls.compiler.error_parser import parse_errors
from tactls.models.contracts import CompileRequest, RawCompileResult
from tactls.models.errors import CompilerError
from tactls.parser.collection import ContractCollection

logger = logging.getLogger(__name__)


@dataclass
class ValidationOutcome:
    """Everything one pass produced, before filtering to a single document."""

    request: CompileRequest
    results: list[RawCompileResult]
    errors: list[CompilerError] = field(default_factory=list)
    collection: ContractCollection | None = None


class ValidationPipeline:
    """Runs: import resolution → per-file compilation → error parsing → mapping.

    Holds no per-pass state; every call builds and discards its own source
    mapping.
    """

    def __init__(
        self,
        compiler: TactCompiler,
        mapper: DiagnosticMapper | None = None,
    ) -> None:
        self.compiler = compiler
        self.mapper = mapper or DiagnosticMapper()

    async def compile_document(
        self,
        file_path: str,
        text: str,
        overlay: Mapping[str, str] | None = None,
    ) -> ValidationOutcome:
        """Resolve, compile, and parse; errors are not yet filtered.

        Imports are followed only inside a workspace; a file opened on its
        own is compiled alone.
        """
        collection: ContractCollection | None = None
        if self.compiler.is_root_path_set():
            collection = ContractCollection(overlay=overlay)
            await collection.add_contract_and_resolve_imports(file_path, text)
            request = collection.get_default_contracts_for_compilation_diagnostics()
        else:
            request = CompileRequest.single(file_path, text)

        results = await self.compiler.compile(request)
        errors = list(collection.errors) if collection is not None else []
        errors.extend(parse_errors(results))
        logger.debug(
            "Compiled %d of %d sources for %s: %d errors",
            len(request.targets), len(request.sources), file_path, len(errors),
        )
        return ValidationOutcome(
            request=request, results=results, errors=errors, collection=collection
        )

    async def validate(
        self,
        file_path: str,
        text: str,
        overlay: Mapping[str, str] | None = None,
    ) -> list[lsp.Diagnostic]:
        """Diagnostics for *file_path* only."""
        outcome = await self.compile_document(file_path, text, overlay)
        return self.mapper.map(outcome.errors, file_path, outcome.collection)
