from __future__ import annotations

from typing import List, Optional, Tuple

from ..errors import ParseError
from .base import Grammar, Lexed, is_identifier_start


JS_KEYWORDS = {
    "break",
    "case",
    "catch",
    "class",
    "const",
    "continue",
    "debugger",
    "default",
    "delete",
    "do",
    "else",
    "export",
    "extends",
    "finally",
    "for",
    "function",
    "if",
    "import",
    "in",
    "instanceof",
    "let",
    "new",
    "return",
    "switch",
    "throw",
    "try",
    "typeof",
    "var",
    "void",
    "while",
    "with",
    "yield",
    "await",
    "enum",
    "implements",
    "interface",
    "package",
    "private",
    "protected",
    "public",
    "static",
    "async",
    "of",
}

JS_LITERAL_KEYWORDS = {"true", "false", "null", "undefined", "NaN", "Infinity", "this", "super"}

_REGEX_PREFIX_KEYWORDS = {
    "return",
    "case",
    "throw",
    "default",
    "do",
    "else",
    "typeof",
    "delete",
    "void",
    "instanceof",
    "in",
    "of",
    "new",
    "await",
    "yield",
}

_CONTROL_FLOW_KEYWORDS = {"if", "while", "for", "with", "switch", "catch"}

_REGEX_FLAG_CHARS = set("abcdefghijklmnopqrstuvwxyzABCDEFGHIJKLMNOPQRSTUVWXYZ")

_JSX_NAME_CHARS = set("_$.:-")

JS_OPERATORS = {
    "+",
    "-",
    "*",
    "/",
    "%",
    "**",
    "++",
    "--",
    "=",
    "+=",
    "-=",
    "*=",
    "/=",
    "%=",
    "**=",
    "<<",
    ">>",
    ">>>",
    "<<=",
    ">>=",
    ">>>=",
    "&",
    "|",
    "^",
    "~",
    "&=",
    "|=",
    "^=",
    "&&",
    "||",
    "??",
    "&&=",
    "||=",
    "??=",
    "!",
    "==",
    "!=",
    "===",
    "!==",
    ">",
    "<",
    ">=",
    "<=",
    "=>",
    "?",
    "?.",
    ":",
    ",",
    ".",
    "...",
    "(",
    ")",
    "{",
    "}",
    "[",
    "]",
    ";",
    "@",
}

MULTI_CHAR_OPERATORS = sorted(
    [
        "??=",
        "&&=",
        "||=",
        "**=",
        ">>>=",
        "<<=",
        ">>=",
        "===",
        "!==",
        "**",
        "&&",
        "||",
        "??",
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
        ">>>",
        "++",
        "--",
        "=>",
        "...",
    ],
    key=len,
    reverse=True,
)


def _consume_js_identifier(text: str, start: int) -> int:
    i = start + 1
    n = len(text)
    while i < n and (text[i].isalnum() or text[i] in ("_", "$")):
        i += 1
    return i


def _consume_js_number(text: str, start: int) -> int:
    i = start + 1
    n = len(text)
    is_hex = text.startswith(("0x", "0X"), start)
    seen_dot = text[start] == "."
    while i < n:
        ch = text[i]
        if ch == ".":
            # one fraction point; ``1..toString()`` is ``1.`` then member access
            after = text[i + 1 : i + 2]
            if seen_dot or is_hex or (is_identifier_start(after) and after not in ("e", "E")):
                break
            seen_dot = True
            i += 1
        elif ch.isalnum() or ch == "_":
            i += 1
        elif ch in ("+", "-") and text[i - 1] in ("e", "E") and not is_hex:
            i += 1
        else:
            break
    return i


def _consume_regex_literal(text: str, start: int) -> int | None:
    i = start + 1
    n = len(text)
    escaped = False
    in_class = False

    while i < n:
        ch = text[i]
        if ch == "\n":
            return None
        if escaped:
            escaped = False
        elif ch == "\\":
            escaped = True
        elif ch == "[":
            in_class = True
        elif ch == "]" and in_class:
            in_class = False
        elif ch == "/" and not in_class:
            if i == start + 1:
                return None
            i += 1
            while i < n and text[i] in _REGEX_FLAG_CHARS:
                i += 1
            return i
        i += 1

    return None


def _consume_string(text: str, start: int, line: int) -> Tuple[int, int]:
    """Return the index past the string opened at ``start`` and the line it ends on."""
    quote = text[start]
    i = start + 1
    n = len(text)
    first = line
    while i < n:
        ch = text[i]
        if ch == "\\":
            if text[i + 1 : i + 2] == "\n":
                line += 1
            i += 2
            continue
        if ch == quote:
            return i + 1, line
        if ch == "\n":
            break
        i += 1
    raise ParseError("unterminated string literal", line=first)


class _ExpressionState:
    """Whether the next ``/`` or ``<`` may open a regex literal or a JSX element.

    A value is expected at the start of input, after an operator, and after
    the closing paren of an ``if (...)`` style header.
    """

    def __init__(self) -> None:
        self.expects_value = True
        self.pending_control: Optional[str] = None
        # one entry per open paren: True when it opened a control header
        self.parens: List[bool] = []

    def operator(self) -> None:
        self.expects_value = True

    def operand(self) -> None:
        self.expects_value = False
        self.pending_control = None

    def identifier(self, name: str) -> None:
        if name in _CONTROL_FLOW_KEYWORDS:
            self.pending_control = name
            self.expects_value = True
        elif name in _REGEX_PREFIX_KEYWORDS:
            self.pending_control = None
            self.expects_value = True
        else:
            self.operand()

    def open_paren(self) -> None:
        self.parens.append(self.pending_control is not None)
        self.pending_control = None
        self.expects_value = True

    def close_paren(self) -> None:
        header = self.parens.pop() if self.parens else False
        self.pending_control = None
        self.expects_value = header


def _lex_js(
    text: str,
    start: int = 0,
    line: int = 1,
    jsx: bool = False,
    nested: bool = False,
) -> Tuple[Lexed, int, int]:
    """Lex ``text`` from ``start``; return the lexemes, the end index and the end line.

    With ``nested`` set, lexing stops right after the ``}`` that closes an
    embedded expression (template ``${...}`` or JSX ``{...}``).
    """
    lexed = Lexed()
    state = _ExpressionState()
    depth = 0
    first = line
    i = start
    n = len(text)

    if start == 0 and text.startswith("#!"):
        end = text.find("\n")
        i = n if end == -1 else end

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

        if ch == "/" and state.expects_value:
            regex_end = _consume_regex_literal(text, i)
            if regex_end is not None:
                lexed.emit(text[i:regex_end], line)
                state.operand()
                i = regex_end
                continue

        if ch in ('"', "'"):
            end, last = _consume_string(text, i, line)
            lexed.emit(text[i:end], line, last)
            state.operand()
            line = last
            i = end
            continue

        if ch == "`":
            end, last, inner = _consume_template(text, i, line, jsx)
            lexed.emit(text[i:end], line, last)
            lexed.merge(inner)
            state.operand()
            line = last
            i = end
            continue

        if ch == "<" and jsx and state.expects_value and (nxt == ">" or is_identifier_start(nxt)):
            end, last, inner = _consume_jsx_element(text, i, line)
            lexed.merge(inner)
            lexed.code_lines.update(range(line, last + 1))
            state.operand()
            line = last
            i = end
            continue

        if ch == "#" and is_identifier_start(nxt):
            # private class member
            end = _consume_js_identifier(text, i + 1)
            lexed.emit(text[i:end], line)
            state.operand()
            i = end
            continue

        if is_identifier_start(ch):
            end = _consume_js_identifier(text, i)
            identifier = text[i:end]
            lexed.emit(identifier, line)
            state.identifier(identifier)
            i = end
            continue

        if ch.isdigit() or (ch == "." and nxt.isdigit()):
            end = _consume_js_number(text, i)
            lexed.emit(text[i:end], line)
            state.operand()
            i = end
            continue

        if ch == "?" and nxt == "." and not text[i + 2 : i + 3].isdigit():
            lexed.emit("?.", line)
            state.operator()
            i += 2
            continue

        matched = False
        for op in MULTI_CHAR_OPERATORS:
            if text.startswith(op, i):
                lexed.emit(op, line)
                i += len(op)
                if op in {"++", "--"} and not state.expects_value:
                    state.operand()
                else:
                    state.operator()
                matched = True
                break
        if matched:
            continue

        if ch == "}" and nested and depth == 0:
            return lexed, i + 1, line

        lexed.emit(ch, line)
        if ch == "(":
            state.open_paren()
        elif ch == ")":
            state.close_paren()
        elif ch == "{":
            depth += 1
            state.operator()
        elif ch == "}":
            depth -= 1
            state.operand()
        elif ch == "[":
            state.operator()
        elif ch == "]":
            state.operand()
        elif ch in ";,?:":
            state.operator()
        elif ch == ".":
            state.operand()
        else:
            state.operator()
        i += 1

    if nested:
        raise ParseError("unterminated embedded expression", line=first)
    return lexed, n, line


def _consume_template(text: str, start: int, line: int, jsx: bool) -> Tuple[int, int, Lexed]:
    """Consume the template literal opened at ``start``.

    Returns the index past the closing backtick, the line it ends on and the
    lexemes of every ``${...}`` expression inside it.
    """
    inner = Lexed()
    first = line
    i = start + 1
    n = len(text)
    while i < n:
        ch = text[i]
        if ch == "\\":
            if text[i + 1 : i + 2] == "\n":
                line += 1
            i += 2
            continue
        if ch == "\n":
            line += 1
        elif ch == "`":
            return i + 1, line, inner
        elif ch == "$" and text[i + 1 : i + 2] == "{":
            expr, i, line = _lex_js(text, i + 2, line, jsx=jsx, nested=True)
            inner.merge(expr)
            continue
        i += 1
    raise ParseError("unterminated template literal", line=first)


def _consume_jsx_name(text: str, start: int) -> int:
    i = start
    n = len(text)
    while i < n and (text[i].isalnum() or text[i] in _JSX_NAME_CHARS):
        i += 1
    return i


def _consume_jsx_element(text: str, start: int, line: int) -> Tuple[int, int, Lexed]:
    """Consume the JSX element opened at ``start``.

    Markup text is skipped; tag names, string attribute values and the
    embedded ``{...}`` expressions produce lexemes.
    """
    inner = Lexed()
    first = line
    n = len(text)

    i = _consume_jsx_name(text, start + 1)
    if i > start + 1:
        inner.emit(text[start + 1 : i], line)

    while True:
        if i >= n:
            raise ParseError("unterminated JSX element", line=first)
        ch = text[i]
        if ch.isspace():
            if ch == "\n":
                line += 1
            i += 1
        elif text.startswith("/>", i):
            return i + 2, line, inner
        elif ch == ">":
            i += 1
            break
        elif ch == "{":
            expr, i, line = _lex_js(text, i + 1, line, jsx=True, nested=True)
            inner.merge(expr)
        elif ch in ('"', "'"):
            end = text.find(ch, i + 1)
            if end == -1:
                raise ParseError("unterminated JSX attribute", line=line)
            last = line + text.count("\n", i, end)
            inner.emit(text[i : end + 1], line, last)
            line = last
            i = end + 1
        elif ch == "<":
            i, line, child = _consume_jsx_element(text, i, line)
            inner.merge(child)
        else:
            # attribute names and "=" carry no operators or operands
            end = _consume_jsx_name(text, i)
            i = end if end > i else i + 1

    while i < n:
        ch = text[i]
        if ch == "\n":
            line += 1
            i += 1
        elif ch == "{":
            expr, i, line = _lex_js(text, i + 1, line, jsx=True, nested=True)
            inner.merge(expr)
        elif text.startswith("</", i):
            end = text.find(">", i + 2)
            if end == -1:
                raise ParseError("unterminated JSX closing tag", line=line)
            line += text.count("\n", i, end)
            return end + 1, line, inner
        elif ch == "<":
            i, line, child = _consume_jsx_element(text, i, line)
            inner.merge(child)
        else:
            i += 1
    raise ParseError("unterminated JSX element", line=first)


class JavaScriptGrammar(Grammar):
    language = "javascript"
    extensions = {".js", ".jsx", ".mjs", ".cjs"}
    #: Whether ``<tag>`` in expression position starts a JSX element.
    jsx = True

    operator_keywords = frozenset(JS_KEYWORDS - JS_LITERAL_KEYWORDS)
    literal_keywords = frozenset(JS_LITERAL_KEYWORDS)
    operator_symbols = frozenset(JS_OPERATORS)
    member_access_operators = frozenset({".", "?."})

    def lex(self, text: str) -> Lexed:
        lexed, _, _ = _lex_js(text, jsx=self.jsx)
        return lexed

    def is_literal(self, lexeme: str) -> bool:
        # template, regex (``/`` and ``/=`` are classified as operators first)
        # and ``#private`` lexemes
        if lexeme[0] in "`/#" and len(lexeme) > 1:
            return True
        return super().is_literal(lexeme)
