"""Extraction of ``import "...";`` statements from Tact source text."""

from __future__ import annotations

from dataclasses import dataclass

from tactls.models.errors import SourceSpan
from tactls.parser.paths import STDLIB_PREFIX, is_func_source
from tactls.parser.scanner import ScanError, TokenKind, tokenize


@dataclass(frozen=True)
class ImportStatement:
    """An import with the 1-based position of its quoted path."""

    path: str
    line: int
    column: int
    length: int

    @property
    def is_stdlib(self) -> bool:
        return self.path.startswith(STDLIB_PREFIX)

    @property
    def is_func(self) -> bool:
        return is_func_source(self.path)

    def span_in(self, file: str) -> SourceSpan:
        """The quoted path's range within the importing *file*."""
        return SourceSpan.at(file, self.line, self.column, self.length)


def parse_imports(text: str) -> list[ImportStatement]:
    """Return the imports declared in *text*, in source order.

    Scanning stops at the first lexical error; imports before it are kept.
    """
    imports: list[ImportStatement] = []
    pending = False
    try:
        for token in tokenize(text):
            if pending and token.kind is TokenKind.STRING:
                imports.append(
                    ImportStatement(
                        path=token.value,
                        line=token.line,
                        column=token.column,
                        length=len(token.text),
                    )
                )
            pending = token.kind is TokenKind.IDENT and token.value == "import"
    except ScanError:
        # Left for the compiler to report.
        return imports
    return imports
