"""Tree-sitter grammar registry, one compiled grammar per language tag."""
import threading
from pathlib import PurePath
from typing import Callable, Optional

from tree_sitter import Language as TSLanguage, Parser

from ..errors import ExternalFetchFailure, UnsupportedLanguage
from ..models import Language


FILE_EXTENSIONS: dict[str, Language] = {
    ".ts": Language.TS,
    ".tsx": Language.TSX,
    ".js": Language.JS,
    ".mjs": Language.JS,
    ".cjs": Language.JS,
    ".jsx": Language.JSX,
    ".py": Language.PY,
}


def _typescript() -> object:
    import tree_sitter_typescript
    return tree_sitter_typescript.language_typescript()


def _tsx() -> object:
    import tree_sitter_typescript
    return tree_sitter_typescript.language_tsx()


def _javascript() -> object:
    import tree_sitter_javascript
    return tree_sitter_javascript.language()


def _python() -> object:
    import tree_sitter_python
    return tree_sitter_python.language()


# The JavaScript grammar parses JSX natively
GRAMMAR_LOADERS: dict[Language, Callable[[], object]] = {
    Language.TS: _typescript,
    Language.TSX: _tsx,
    Language.JS: _javascript,
    Language.JSX: _javascript,
    Language.PY: _python,
}


def language_from_extension(file_path: str | PurePath) -> Optional[Language]:
    """Map a file path to its language tag, or None for unknown extensions."""
    return FILE_EXTENSIONS.get(PurePath(file_path).suffix.lower())


def coerce_language(language: Language | str) -> Language:
    """Accept a Language or its string tag.

    Raises:
        UnsupportedLanguage: If the tag is not one of the known languages.
    """
    if isinstance(language, Language):
        return language
    try:
        return Language(language)
    except ValueError:
        raise UnsupportedLanguage(str(language)) from None


class GrammarRegistry:
    """Lazily compiled tree-sitter grammars keyed by language tag.

    Each grammar is loaded at most once behind its own lock and is read-only
    afterwards. Parsers are cheap and created per call, so concurrent parses
    never share parser state.
    """

    def __init__(self, loaders: Optional[dict[Language, Callable[[], object]]] = None):
        self._loaders = dict(GRAMMAR_LOADERS if loaders is None else loaders)
        self._languages: dict[Language, TSLanguage] = {}
        self._locks = {tag: threading.Lock() for tag in self._loaders}

    def supports(self, language: Language | str) -> bool:
        try:
            return coerce_language(language) in self._loaders
        except UnsupportedLanguage:
            return False

    def get_language(self, language: Language | str) -> TSLanguage:
        """Return the compiled grammar for a tag, loading it on first use.

        Raises:
            UnsupportedLanguage: No loader is registered for the tag.
            ExternalFetchFailure: The grammar package could not be loaded.
        """
        tag = coerce_language(language)
        if tag not in self._loaders:
            raise UnsupportedLanguage(tag.value)

        compiled = self._languages.get(tag)
        if compiled is not None:
            return compiled

        with self._locks[tag]:
            compiled = self._languages.get(tag)
            if compiled is None:
                try:
                    compiled = TSLanguage(self._loaders[tag]())
                except (ImportError, OSError, ValueError) as e:
                    raise ExternalFetchFailure(
                        f"Failed to load grammar for {tag.value}: {e}"
                    ) from e
                self._languages[tag] = compiled
        return compiled

    def parser_for(self, language: Language | str) -> Parser:
        """Build a parser bound to the grammar for a tag."""
        return Parser(self.get_language(language))


_default_registry: Optional[GrammarRegistry] = None
_default_lock = threading.Lock()


def default_registry() -> GrammarRegistry:
    """Process-wide registry used when callers do not pass their own."""
    global _default_registry
    if _default_registry is None:
        with _default_lock:
            if _default_registry is None:
                _default_registry = GrammarRegistry()
    return _default_registry
