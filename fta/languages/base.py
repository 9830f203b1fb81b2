from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from ..tokens import Token, TokenKind, TokenStream


@dataclass
class Lexed:
    """Raw lexemes of one source buffer and the lines they occupy."""

    lexemes: List[str] = field(default_factory=list)
    code_lines: Set[int] = field(default_factory=set)
    comment_lines: Set[int] = field(default_factory=set)

    def emit(self, lexeme: str, first_line: int, last_line: Optional[int] = None) -> None:
        self.lexemes.append(lexeme)
        self.code_lines.update(range(first_line, (last_line or first_line) + 1))

    def comment(self, first_line: int, last_line: Optional[int] = None) -> None:
        self.comment_lines.update(range(first_line, (last_line or first_line) + 1))

    def merge(self, other: "Lexed") -> None:
        self.lexemes.extend(other.lexemes)
        self.code_lines.update(other.code_lines)
        self.comment_lines.update(other.comment_lines)


def is_identifier_start(ch: str) -> bool:
    return ch.isalpha() or ch in ("_", "$")


def is_identifier(lexeme: str) -> bool:
    return bool(lexeme) and is_identifier_start(lexeme[0])


class Grammar(ABC):
    """Abstract interface for language-specific token classification.

    Subclasses provide the keyword and operator tables of a language and a
    ``lex`` method splitting source text into lexemes. Everything downstream
    of lexing (operator/operand tagging, decision points) is shared here so the
    counters never depend on a concrete language.
    """

    #: Lowercased file extensions supported by this grammar (including leading dot).
    extensions: Iterable[str] = ()
    #: Identifier for the language (e.g., "typescript", "java").
    language: str = "unknown"
    #: Language to retry with when this grammar cannot tokenize a file.
    fallback: Optional[str] = None

    operator_keywords: FrozenSet[str] = frozenset()
    literal_keywords: FrozenSet[str] = frozenset()
    operator_symbols: FrozenSet[str] = frozenset()
    decision_keywords: FrozenSet[str] = frozenset({"if", "for", "while", "do", "case", "catch"})
    short_circuit_operators: FrozenSet[str] = frozenset({"&&", "||"})
    #: An identifier right after one of these is a property name, never a keyword.
    member_access_operators: FrozenSet[str] = frozenset({"."})
    #: A ``?`` followed by one of these is an optional marker, not a ternary.
    non_ternary_followers: FrozenSet[str] = frozenset({":", ")", ",", "=", ";"})
    #: A ``?`` preceded by one of these is not a ternary either.
    non_ternary_leaders: FrozenSet[str] = frozenset()
    #: A ``{`` right after one of these opens an object literal rather than a block.
    object_openers: FrozenSet[str] = frozenset(
        {"=", "(", "[", ",", ":", "?", "??", "||", "&&", "...", "return", "yield", "await"}
    )
    #: The next ``{`` opens a class body.
    class_keywords: FrozenSet[str] = frozenset({"class", "interface", "enum"})
    #: Lexemes that can precede a key or member name inside an object or class body.
    member_prefixes: FrozenSet[str] = frozenset(
        {"{", ",", ";", "}", "*", "static", "async", "get", "set", "public", "private", "protected", "readonly"}
    )

    def supports(self, path: Path) -> bool:
        return path.suffix.lower() in set(ext.lower() for ext in self.extensions)

    @abstractmethod
    def lex(self, text: str) -> Lexed:
        """Split ``text`` into lexemes with comments removed.

        Raises ``ParseError`` when a string, comment or similar construct is
        left unterminated.
        """
        raise NotImplementedError

    def tokenize(self, text: str) -> TokenStream:
        lexed = self.lex(text.replace("\r\n", "\n").replace("\r", "\n"))
        comment_only = lexed.comment_lines - lexed.code_lines
        return TokenStream(
            tokens=tuple(self.tag(lexed.lexemes)),
            code_lines=len(lexed.code_lines),
            comment_lines=len(comment_only),
        )

    def is_literal(self, lexeme: str) -> bool:
        first = lexeme[0]
        if first in ('"', "'") or first.isdigit():
            return True
        return first == "." and len(lexeme) > 1 and lexeme[1].isdigit()

    def classify(self, lexeme: str, previous: Optional[str] = None) -> TokenKind:
        if previous in self.member_access_operators and is_identifier(lexeme):
            return TokenKind.OPERAND
        if lexeme in self.literal_keywords:
            return TokenKind.OPERAND
        if lexeme in self.operator_keywords or lexeme in self.operator_symbols:
            return TokenKind.OPERATOR
        if self.is_literal(lexeme) or is_identifier(lexeme):
            return TokenKind.OPERAND
        return TokenKind.OPERATOR

    def tag(self, lexemes: Sequence[str]) -> List[Token]:
        tokens: List[Token] = []
        # (body kind, brace depth, paren depth) of each ``do`` whose trailing ``while`` is pending
        open_do: List[Tuple[str, int, int]] = []
        # "block", "object" or "class" for every open brace
        braces: List[str] = []
        parens = 0
        after_do_body = False
        class_header = False
        case_label = False
        label_colon = -1
        previous: Optional[str] = None

        for index, lexeme in enumerate(lexemes):
            following = lexemes[index + 1] if index + 1 < len(lexemes) else None
            if braces and braces[-1] != "block" and self._is_member_name(lexemes, index):
                kind = TokenKind.OPERAND
            else:
                kind = self.classify(lexeme, previous)
            decision = kind is TokenKind.OPERATOR and self._is_decision_point(lexemes, index, after_do_body)
            after_do_body = False

            if kind is TokenKind.OPERATOR:
                if lexeme == "do":
                    body = "block" if following == "{" else "statement"
                    open_do.append((body, len(braces), parens))
                elif lexeme in self.class_keywords:
                    class_header = True
                elif lexeme in ("case", "default") and (not braces or braces[-1] == "block"):
                    case_label = True
                elif lexeme == ":" and case_label:
                    case_label = False
                    label_colon = index
                elif lexeme == "(":
                    parens += 1
                elif lexeme == ")":
                    parens -= 1
                elif lexeme == "{":
                    braces.append(self._brace_kind(previous, class_header, label_colon == index - 1))
                    class_header = False
                    case_label = False
                elif lexeme == "}":
                    if braces:
                        braces.pop()
                    if open_do and open_do[-1] == ("block", len(braces), parens):
                        open_do.pop()
                        after_do_body = True
                    elif open_do and open_do[-1] == ("statement", len(braces), parens) and following == "while":
                        open_do.pop()
                        after_do_body = True
                elif lexeme == ";" and open_do and open_do[-1] == ("statement", len(braces), parens):
                    # ``do if (a) b(); else c(); while (x);`` ends at the last ``;``
                    if following != "else":
                        open_do.pop()
                        after_do_body = True

            tokens.append(Token(kind, lexeme, decision))
            previous = lexeme
        return tokens

    def _brace_kind(self, previous: Optional[str], class_header: bool, after_label: bool) -> str:
        if class_header:
            return "class"
        if previous in self.object_openers and not after_label:
            return "object"
        return "block"

    def _is_member_name(self, lexemes: Sequence[str], index: int) -> bool:
        """Whether a keyword names an object key or a class member (``{ if: 1 }``, ``catch() {}``)."""
        lexeme = lexemes[index]
        if not is_identifier(lexeme) or index == 0 or lexemes[index - 1] not in self.member_prefixes:
            return False
        following = lexemes[index + 1 : index + 3]
        return bool(following) and (following[0] in (":", "(") or following == ["?", ":"])

    def _is_decision_point(self, lexemes: Sequence[str], index: int, after_do_body: bool) -> bool:
        lexeme = lexemes[index]
        if lexeme in self.decision_keywords:
            # the ``while`` closing a do-while was already counted at ``do``
            return not (lexeme == "while" and after_do_body)
        if lexeme in self.short_circuit_operators:
            return True
        if lexeme == "?":
            return self._is_ternary(lexemes, index)
        return False

    def _is_ternary(self, lexemes: Sequence[str], index: int) -> bool:
        following = lexemes[index + 1] if index + 1 < len(lexemes) else None
        preceding = lexemes[index - 1] if index > 0 else None
        if following is None or following in self.non_ternary_followers:
            return False
        return preceding not in self.non_ternary_leaders
