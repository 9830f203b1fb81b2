from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Iterator, Tuple


class TokenKind(str, Enum):
    OPERATOR = "operator"
    OPERAND = "operand"


@dataclass(frozen=True)
class Token:
    kind: TokenKind
    lexeme: str
    is_decision_point: bool = False


@dataclass(frozen=True)
class TokenStream:
    """Tagged tokens of one source file plus the line statistics seen while lexing."""

    tokens: Tuple[Token, ...] = ()
    code_lines: int = 0
    comment_lines: int = 0

    def __iter__(self) -> Iterator[Token]:
        return iter(self.tokens)

    def __len__(self) -> int:
        return len(self.tokens)

    def line_count(self, include_comments: bool = False) -> int:
        """Lines holding code, plus comment-only lines when ``include_comments`` is set."""
        if include_comments:
            return self.code_lines + self.comment_lines
        return self.code_lines
