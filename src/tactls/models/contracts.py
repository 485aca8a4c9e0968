"""Per-pass data carried through the validation pipeline."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from types import MappingProxyType

from tactls.models.errors import CompilerError


@dataclass(frozen=True)
class Document:
    """Immutable snapshot of an open editor document."""

    uri: str
    text: str
    version: int | None = None


@dataclass(frozen=True)
class ContractSource:
    """One source file needed to compile a contract."""

    path: str
    text: str


@dataclass(frozen=True)
class CompileRequest:
    """Sources handed to the compiler for one validation pass.

    The mapping is copied and exposed read-only, so later edits to the
    collection (or to open documents) cannot leak into a running compile.
    """

    sources: Mapping[str, str]
    targets: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "sources", MappingProxyType(dict(self.sources)))
        if not self.targets:
            object.__setattr__(self, "targets", tuple(self.sources))

    @classmethod
    def single(cls, path: str, text: str) -> CompileRequest:
        return cls(sources={path: text}, targets=(path,))

    @property
    def contracts(self) -> list[ContractSource]:
        return [ContractSource(path=p, text=t) for p, t in self.sources.items()]


@dataclass(frozen=True)
class RawCompileResult:
    """Outcome of compiling one file.

    ``output`` is empty on success, otherwise ``"<file>\\n<message>"``.
    ``error`` is set when the compiler reported a structured position.
    """

    file: str
    output: str = ""
    error: CompilerError | None = field(default=None, compare=False)

    @property
    def ok(self) -> bool:
        return self.output == ""
