"""Contract collection: the transitive import closure of a root source file."""

from __future__ import annotations

import asyncio
import logging
import os
from collections.abc import Mapping
from pathlib import Path

import networkx as nx

from tactls.models.contracts import CompileRequest, ContractSource
from tactls.models.errors import CompilerError, ErrorCode, Severity
from tactls.parser.imports import ImportStatement, parse_imports
from tactls.parser.paths import (
    has_source_extension,
    is_func_source,
    normalize_path,
    resolve_import_path,
)

logger = logging.getLogger(__name__)


class ContractCollection:
    """Resolves a root file and everything it imports into one source mapping.

    Import edges are kept in a ``networkx`` digraph so cycles can be reported
    and the import chain leading to a file can be recovered.  Each file is
    read at most once; unsaved editor buffers passed as *overlay* win over the
    on-disk content.
    """

    def __init__(self, overlay: Mapping[str, str] | None = None) -> None:
        self._overlay = {normalize_path(p): text for p, text in (overlay or {}).items()}
        self._contracts: dict[str, ContractSource] = {}
        self._graph: nx.DiGraph[str] = nx.DiGraph()
        self._root: str | None = None
        self._unresolved: list[CompilerError] = []

    # -- public API ----------------------------------------------------------

    @property
    def root(self) -> str | None:
        return self._root

    @property
    def errors(self) -> list[CompilerError]:
        """Unresolved imports followed by import-cycle warnings."""
        return self._unresolved + self._cycle_warnings()

    @property
    def contracts(self) -> list[ContractSource]:
        return list(self._contracts.values())

    def contains(self, path: str) -> bool:
        return normalize_path(path) in self._contracts

    async def add_contract_and_resolve_imports(self, path: str, text: str) -> ContractSource:
        """Add *path* with *text* and pull in its imports recursively.

        The first contract added becomes the root.  Resolution failures are
        recorded in :attr:`errors` and never stop sibling imports.
        """
        path = normalize_path(path)
        if self._root is None:
            self._root = path
        await self._visit(path, text)
        return self._contracts[path]

    def get_default_contracts_for_compilation_diagnostics(self) -> CompileRequest:
        """Build the compile request: the root and every imported Tact source.

        Imported FunC sources travel in the mapping for the compiler to link
        against but are never compiled on their own.
        """
        targets = tuple(
            p for p in self._contracts if p == self._root or has_source_extension(p)
        )
        return CompileRequest(
            sources={p: c.text for p, c in self._contracts.items()},
            targets=targets,
        )

    def import_cycles(self) -> list[list[str]]:
        """Import cycles, each rotated to start at its earliest-visited file."""
        order = {p: i for i, p in enumerate(self._contracts)}
        cycles: list[list[str]] = []
        for cycle in nx.simple_cycles(self._graph):
            start = min(range(len(cycle)), key=lambda i: order[cycle[i]])
            cycles.append(cycle[start:] + cycle[:start])
        cycles.sort(key=lambda c: [order[p] for p in c])
        return cycles

    def import_location(self, path: str) -> ImportStatement | None:
        """The import in the root file through which *path* is reached."""
        path = normalize_path(path)
        if self._root is None or path == self._root or path not in self._graph:
            return None
        try:
            chain = nx.shortest_path(self._graph, self._root, path)
        except nx.NetworkXNoPath:
            return None
        return self._graph.edges[chain[0], chain[1]]["statement"]

    # -- internal ------------------------------------------------------------

    async def _visit(self, path: str, text: str) -> None:
        self._contracts[path] = ContractSource(path=path, text=text)
        self._graph.add_node(path)
        if is_func_source(path):
            return

        for statement in parse_imports(text):
            target = resolve_import_path(path, statement.path)
            if target is None:
                continue
            if target in self._contracts:
                self._graph.add_edge(path, target, statement=statement)
                continue
            try:
                imported = await self._read(target)
            except FileNotFoundError:
                self._unresolved.append(
                    _unresolved(path, statement, f'Cannot find imported file "{statement.path}"')
                )
                continue
            except UnicodeDecodeError:
                self._unresolved.append(
                    _unresolved(path, statement, f'Imported file "{statement.path}" is not UTF-8')
                )
                continue
            except OSError as exc:
                self._unresolved.append(
                    _unresolved(
                        path,
                        statement,
                        f'Cannot read imported file "{statement.path}": {exc.strerror or exc}',
                    )
                )
                continue
            self._graph.add_edge(path, target, statement=statement)
            await self._visit(target, imported)

    async def _read(self, path: str) -> str:
        if path in self._overlay:
            return self._overlay[path]
        logger.debug("Reading import %s", path)
        return await asyncio.to_thread(Path(path).read_text, encoding="utf-8")

    def _cycle_warnings(self) -> list[CompilerError]:
        warnings: list[CompilerError] = []
        for cycle in self.import_cycles():
            closer = cycle[-1]
            statement: ImportStatement = self._graph.edges[closer, cycle[0]]["statement"]
            chain = " -> ".join(os.path.basename(p) for p in cycle + [cycle[0]])
            warnings.append(
                CompilerError(
                    file=closer,
                    message=f"Import cycle detected: {chain}",
                    severity=Severity.WARNING,
                    line=statement.line,
                    column=statement.column,
                    length=statement.length,
                    code=ErrorCode.IMPORT_CYCLE,
                )
            )
        return warnings


def _unresolved(path: str, statement: ImportStatement, message: str) -> CompilerError:
    return CompilerError(
        file=path,
        message=message,
        line=statement.line,
        column=statement.column,
        length=statement.length,
        code=ErrorCode.UNRESOLVED_IMPORT,
    )
