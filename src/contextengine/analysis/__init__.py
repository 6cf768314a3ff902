"""Analysis module for Context Engine - symbol extraction over tree-sitter grammars."""
from .grammars import (
    GrammarRegistry,
    FILE_EXTENSIONS,
    default_registry,
    language_from_extension,
)
from .symbols import (
    Symbol,
    SymbolExtractor,
    NODE_KINDS,
    compute_hash,
    normalize_node,
    find_all_symbols,
    find_symbol,
)

__all__ = [
    "GrammarRegistry",
    "FILE_EXTENSIONS",
    "default_registry",
    "language_from_extension",
    "Symbol",
    "SymbolExtractor",
    "NODE_KINDS",
    "compute_hash",
    "normalize_node",
    "find_all_symbols",
    "find_symbol",
]
