"""Import discovery and contract collection for Tact sources."""

from tactls.parser.collection import ContractCollection
from tactls.parser.imports import ImportStatement, parse_imports
from tactls.parser.scanner import ScanError, Token, TokenKind, tokenize

__all__ = [
    "ContractCollection",
    "ImportStatement",
    "ScanError",
    "Token",
    "TokenKind",
    "parse_imports",
    "tokenize",
]
