from __future__ import annotations

from typing import Tuple

from ..errors import ParseError
from .base import Grammar, Lexed, is_identifier_start


JAVA_KEYWORDS = {
    "abstract",
    "assert",
    "boolean",
    "break",
    "byte",
    "case",
    "catch",
    "char",
    "class",
    "const",
    "continue",
    "default",
    "do",
    "double",
    "else",
    "enum",
    "extends",
    "final",
    "finally",
    "float",
    "for",
    "goto",
    "if",
    "implements",
    "import",
    "instanceof",
    "int",
    "interface",
    "long",
    "native",
    "new",
    "package",
    "private",
    "protected",
    "public",
    "return",
    "short",
    "static",
    "strictfp",
    "switch",
    "synchronized",
    "throw",
    "throws",
    "transient",
    "try",
    "void",
    "volatile",
    "while",
    "record",
    "sealed",
    "permits",
    "var",
    "yield",
}

JAVA_LITERAL_KEYWORDS = {"true", "false", "null", "this", "super"}

JAVA_OPERATORS = {
    "+",
    "-",
    "*",
    "/",
    "%",
    "++",
    "--",
    "==",
    "!=",
    ">",
    "<",
    ">=",
    "<=",
    "&&",
    "||",
    "!",
    "~",
    "&",
    "|",
    "^",
    "<<",
    ">>",
    ">>>",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "&=",
    "|=",
    "^=",
    "<<=",
    ">>=",
    ">>>=",
    "=",
    "?",
    ":",
    "->",
    "::",
    ".",
    ",",
    ";",
    "(",
    ")",
    "{",
    "}",
    "[",
    "]",
    "@",
    "...",
}

MULTI_CHAR_OPERATORS = sorted(
    [
        ">>>=",
        "<<=",
        ">>=",
        ">>>",
        "...",
        "&&",
        "||",
        "==",
        "!=",
        ">=",
        "<=",
        "+=",
        "-=",
        "*=",
        "/=",
        "%=",
        "&=",
        "|=",
        "^=",
        "<<",
        ">>",
        "++",
        "--",
        "->",
        "::",
    ],
    key=len,
    reverse=True,
)

_NUMBER_CHARS = set("_.xXbBlLfFdD")


def _consume_java_number(text: str, start: int) -> int:
    i = start + 1
    n = len(text)
    is_hex = text.startswith(("0x", "0X"), start)
    while i < n:
        ch = text[i]
        if ch.isalnum() or ch in _NUMBER_CHARS:
            i += 1
        elif ch in ("+", "-") and text[i - 1] in ("e", "E", "p", "P") and (not is_hex or text[i - 1] in "pP"):
            i += 1
        else:
            break
    return i


def _consume_quoted(text: str, start: int, line: int) -> int:
    """Return the index past the string or char literal opened at ``start``."""
    quote = text[start]
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            i += 2
            continue
        if ch == quote:
            return i + 1
        if ch == "\n":
            break
        i += 1
    kind = "string" if quote == '"' else "character"
    raise ParseError(f"unterminated {kind} literal", line=line)


def _consume_text_block(text: str, start: int, line: int) -> Tuple[int, int]:
    """Return the index past the ``\"\"\"`` text block opened at ``start`` and its last line."""
    i = start + 3
    n = len(text)
    while i < n:
        if text[i] == "\\":
            i += 2
            continue
        if text.startswith('"""', i):
            return i + 3, line + text.count("\n", start, i)
        i += 1
    raise ParseError("unterminated text block", line=line)


def _lex_java(text: str) -> Lexed:
    lexed = Lexed()
    i = 0
    n = len(text)
    line = 1

    while i < n:
        ch = text[i]
        nxt = text[i + 1] if i + 1 < n else ""

        if ch.isspace():
            if ch == "\n":
                line += 1
            i += 1
            continue

        if ch == "/" and nxt == "*":
            end = text.find("*/", i + 2)
            if end == -1:
                raise ParseError("unterminated block comment", line=line)
            last = line + text.count("\n", i, end)
            lexed.comment(line, last)
            line = last
            i = end + 2
            continue

        if ch == "/" and nxt == "/":
            lexed.comment(line)
            end = text.find("\n", i)
            i = n if end == -1 else end
            continue

        if text.startswith('"""', i):
            end, last = _consume_text_block(text, i, line)
            lexed.emit(text[i:end], line, last)
            line = last
            i = end
            continue

        if ch in ('"', "'"):
            end = _consume_quoted(text, i, line)
            lexed.emit(text[i:end], line)
            i = end
            continue

        matched = False
        for op in MULTI_CHAR_OPERATORS:
            if text.startswith(op, i):
                lexed.emit(op, line)
                i += len(op)
                matched = True
                break
        if matched:
            continue

        if is_identifier_start(ch):
            start = i
            i += 1
            while i < n and (text[i].isalnum() or text[i] in ("_", "$")):
                i += 1
            lexed.emit(text[start:i], line)
            continue

        if ch.isdigit() or (ch == "." and nxt.isdigit()):
            end = _consume_java_number(text, i)
            lexed.emit(text[i:end], line)
            i = end
            continue

        lexed.emit(ch, line)
        i += 1
    return lexed


class JavaGrammar(Grammar):
    language = "java"
    extensions = {".java"}

    operator_keywords = frozenset(JAVA_KEYWORDS - JAVA_LITERAL_KEYWORDS)
    literal_keywords = frozenset(JAVA_LITERAL_KEYWORDS)
    operator_symbols = frozenset(JAVA_OPERATORS)
    # ``List<?>``, ``Map<K, ? super V>``: wildcards, not ternaries. A bound
    # always follows ``<`` or ``,``, so ``flag ? super.x : y`` stays a ternary.
    non_ternary_followers = frozenset({">", ">>", ">>>", ",", ")"})
    non_ternary_leaders = frozenset({"<", ","})

    def lex(self, text: str) -> Lexed:
        return _lex_java(text)
