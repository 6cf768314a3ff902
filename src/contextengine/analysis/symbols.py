"""Symbol extraction and structural hashing over tree-sitter syntax trees."""
import hashlib
from dataclasses import dataclass, field
from typing import Optional

from tree_sitter import Node, Tree

from ..models import Language, SymbolKind
from .grammars import GrammarRegistry, coerce_language, default_registry


# Declaration node types and the symbol kind they produce
NODE_KINDS: dict[str, SymbolKind] = {
    "function_declaration": SymbolKind.FUNCTION,
    "generator_function_declaration": SymbolKind.FUNCTION,
    "function_expression": SymbolKind.FUNCTION,
    "arrow_function": SymbolKind.FUNCTION,
    "function_definition": SymbolKind.FUNCTION,
    "class_declaration": SymbolKind.CLASS,
    "abstract_class_declaration": SymbolKind.CLASS,
    "class_definition": SymbolKind.CLASS,
    "method_definition": SymbolKind.METHOD,
    "method_signature": SymbolKind.METHOD,
    "interface_declaration": SymbolKind.INTERFACE,
    "type_alias_declaration": SymbolKind.TYPE,
    "enum_declaration": SymbolKind.ENUM,
    "variable_declarator": SymbolKind.VARIABLE,
    "lexical_declaration": SymbolKind.VARIABLE,
}

# Initializers that turn a variable declarator into a function symbol
FUNCTION_VALUE_TYPES = {"arrow_function", "function_expression", "function", "generator_function"}

# Function values that are only symbols when they carry their own name
ANONYMOUS_FUNCTION_TYPES = {"arrow_function", "function_expression"}

# Python assignments whose right side makes the target a function symbol
LAMBDA_TYPES = {"lambda"}

# Wrappers that are unwrapped to their declaration, never reported themselves
EXPORT_WRAPPERS = {"export_statement", "export_named_declaration"}

COMMENT_TYPES = {"comment", "line_comment", "block_comment", "html_comment"}

NAME_NODE_TYPES = {"identifier", "property_identifier", "type_identifier"}

SIGNATURE_MAX_LENGTH = 100


@dataclass(frozen=True)
class Symbol:
    """A named declaration found in a source file."""
    name: str
    kind: SymbolKind
    language: Language
    content_hash: str  # "sha256:<64 hex>"
    signature: str
    start_line: int  # 1-based, inclusive
    end_line: int
    normalized: str = field(default="", repr=False, compare=False)


def node_text(node: Node) -> str:
    """Decode the source text covered by a node."""
    if node.text is None:
        return ""
    return node.text.decode("utf-8", errors="replace")


def is_comment(node: Node) -> bool:
    return node.type in COMMENT_TYPES


def normalize_tokens(node: Node) -> list[str]:
    """Flatten a subtree into its canonical token stream.

    Comments are dropped. Leaves become ``[type:text]`` and internal nodes
    wrap their children in ``[type`` ... ``/type]``, so layout and comments
    never reach the stream.
    """
    if is_comment(node):
        return []

    if node.child_count == 0:
        text = node_text(node).strip()
        return [f"[{node.type}:{text}]"] if text else []

    tokens = [f"[{node.type}"]
    for child in node.children:
        tokens.extend(normalize_tokens(child))
    tokens.append(f"/{node.type}]")
    return tokens


def normalize_node(node: Node) -> str:
    """Canonical, whitespace- and comment-insensitive form of a subtree."""
    return "".join(normalize_tokens(node))


def compute_hash(normalized: str) -> str:
    """SHA-256 of a normalized subtree, rendered as ``sha256:<hex>``."""
    digest = hashlib.sha256(normalized.encode("utf-8")).hexdigest()
    return f"sha256:{digest}"


def extract_signature(node: Node, lines: list[str]) -> str:
    """Trimmed first source line of a declaration, capped at 100 characters."""
    row = node.start_point[0]
    first_line = lines[row] if row < len(lines) else ""
    signature = first_line.strip()
    if len(signature) > SIGNATURE_MAX_LENGTH:
        return signature[:SIGNATURE_MAX_LENGTH] + "..."
    return signature


def find_name(node: Node) -> Optional[str]:
    """Resolve a declaration's name from its name field or first identifier child.

    Function expressions only count when explicitly named; a bare arrow
    parameter such as ``x => x * 2`` is not a name.
    """
    name_node = node.child_by_field_name("name")
    if name_node is not None:
        return node_text(name_node)
    if node.type in ANONYMOUS_FUNCTION_TYPES:
        return None

    for child in node.children:
        if child.type in NAME_NODE_TYPES:
            return node_text(child)
    return None


def _function_value(declarator: Node) -> Optional[Node]:
    value = declarator.child_by_field_name("value")
    if value is None and declarator.named_child_count > 1:
        value = declarator.named_children[1]
    if value is not None and value.type in FUNCTION_VALUE_TYPES:
        return value
    return None


def _lambda_target(assignment: Node) -> Optional[str]:
    """Name bound by ``name = lambda ...``; attribute or tuple targets don't count."""
    left = assignment.child_by_field_name("left")
    right = assignment.child_by_field_name("right")
    if left is None or right is None:
        return None
    if left.type != "identifier" or right.type not in LAMBDA_TYPES:
        return None
    return node_text(left)


class SymbolExtractor:
    """Parse source text and enumerate named declarations.

    The grammar registry is passed in so callers (and tests) control which
    grammars are available; by default the process-wide registry is used.
    """

    def __init__(self, registry: Optional[GrammarRegistry] = None):
        self.registry = registry or default_registry()

    def parse(self, source: str, language: Language | str) -> Tree:
        """Parse source text. Malformed input yields a best-effort tree.

        Raises:
            UnsupportedLanguage: No grammar is registered for the language.
        """
        parser = self.registry.parser_for(language)
        return parser.parse(source.encode("utf-8"))

    def find_all_symbols(self, source: str, language: Language | str) -> list[Symbol]:
        """All named declarations in document (pre-order) order."""
        tag = coerce_language(language)
        tree = self.parse(source, tag)
        lines = source.split("\n")
        symbols: list[Symbol] = []

        def make_symbol(node: Node, name: str, kind: SymbolKind) -> Symbol:
            normalized = normalize_node(node)
            return Symbol(
                name=name,
                kind=kind,
                language=tag,
                content_hash=compute_hash(normalized),
                signature=extract_signature(node, lines),
                start_line=node.start_point[0] + 1,
                end_line=node.end_point[0] + 1,
                normalized=normalized,
            )

        def walk(node: Node) -> None:
            if tag is Language.PY and node.type == "assignment":
                target = _lambda_target(node)
                if target:
                    symbols.append(make_symbol(node, target, SymbolKind.FUNCTION))
                    return

            kind = NODE_KINDS.get(node.type)

            if kind is not None:
                name = find_name(node)

                if node.type == "variable_declarator":
                    if name and _function_value(node) is not None:
                        symbols.append(make_symbol(node, name, SymbolKind.FUNCTION))
                        return
                elif name and kind is not SymbolKind.VARIABLE:
                    symbols.append(make_symbol(node, name, kind))

            if node.type in EXPORT_WRAPPERS:
                declaration = node.child_by_field_name("declaration")
                if declaration is None and node.named_child_count > 0:
                    declaration = node.named_children[0]
                if declaration is not None:
                    walk(declaration)
                    return

            for child in node.children:
                walk(child)

        walk(tree.root_node)
        return symbols

    def find_symbol(self, source: str, name: str, language: Language | str) -> Optional[Symbol]:
        """First declaration named ``name`` in traversal order, or None.

        Duplicate names (overloads, shadowing, nested scopes) are not
        disambiguated: the first match wins.
        """
        for symbol in self.find_all_symbols(source, language):
            if symbol.name == name:
                return symbol
        return None


def find_all_symbols(source: str, language: Language | str) -> list[Symbol]:
    """Module-level shortcut using the default registry."""
    return SymbolExtractor().find_all_symbols(source, language)


def find_symbol(source: str, name: str, language: Language | str) -> Optional[Symbol]:
    """Module-level shortcut using the default registry."""
    return SymbolExtractor().find_symbol(source, name, language)
