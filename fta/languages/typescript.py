from __future__ import annotations

from pathlib import Path

from .javascript import JS_KEYWORDS, JS_LITERAL_KEYWORDS, JavaScriptGrammar

TS_KEYWORDS = {
    "abstract",
    "as",
    "declare",
    "enum",
    "implements",
    "infer",
    "interface",
    "keyof",
    "namespace",
    "override",
    "readonly",
    "satisfies",
    "type",
}


class TypeScriptGrammar(JavaScriptGrammar):
    """Grammar for TypeScript sources.

    TypeScript shares the lexical structure of JavaScript. Type annotations
    only add a handful of keywords, and the optional marker ``x?: T`` which
    the base class already tells apart from a ternary. Plain ``.ts`` files
    never contain JSX, so ``<T>`` is always read as a type argument; a file
    that fails to lex is retried as TSX.
    """

    language = "typescript"
    extensions = {".ts", ".cts", ".mts", ".d.ts"}
    fallback = "tsx"
    jsx = False

    operator_keywords = frozenset((JS_KEYWORDS | TS_KEYWORDS) - JS_LITERAL_KEYWORDS)

    def supports(self, path: Path) -> bool:
        # Handle multi-part extensions such as ".d.ts" in addition to the simple
        # suffix handling provided by the base implementation.
        name = path.name.lower()
        return any(name.endswith(ext) for ext in self.extensions)


class TsxGrammar(TypeScriptGrammar):
    language = "tsx"
    extensions = {".tsx"}
    fallback = "typescript"
    jsx = True
