"""
Line-oriented tokenizer for Given/When/Then documents.
Each physical line becomes one token; block strings fold their lines into a single token.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)


class TokenKind(Enum):
    FEATURE = "feature"
    RULE = "rule"
    BACKGROUND = "background"
    SCENARIO = "scenario"
    SCENARIO_OUTLINE = "scenario_outline"
    EXAMPLES = "examples"
    STEP = "step"
    TAG_LINE = "tag_line"
    TABLE_ROW = "table_row"
    DOC_STRING = "doc_string"
    TEXT = "text"
    COMMENT = "comment"
    BLANK = "blank"
    EOF = "eof"


@dataclass
class Token:
    kind: TokenKind
    value: str
    line: int
    column: int = 1
    indent: int = 0
    keyword: Optional[str] = None
    media_type: Optional[str] = None
    delimiter: Optional[str] = None
    terminated: bool = True


# Longest first, so "Scenario Outline" is tried before "Scenario"
# and "Examples" before "Example".
STRUCTURAL_KEYWORDS: Tuple[Tuple[str, TokenKind], ...] = (
    ("Scenario Outline", TokenKind.SCENARIO_OUTLINE),
    ("Scenario Template", TokenKind.SCENARIO_OUTLINE),
    ("Background", TokenKind.BACKGROUND),
    ("Scenarios", TokenKind.EXAMPLES),
    ("Examples", TokenKind.EXAMPLES),
    ("Scenario", TokenKind.SCENARIO),
    ("Example", TokenKind.SCENARIO),
    ("Feature", TokenKind.FEATURE),
    ("Rule", TokenKind.RULE),
)

STEP_KEYWORDS: Tuple[str, ...] = ("Given", "When", "Then", "And", "But", "*")

DOC_STRING_DELIMITERS: Tuple[str, ...] = ('"""', '```')


class Tokenizer:
    """Convert document text into a flat token stream"""

    def __init__(self, tab_width: int = 4):
        self.tab_width = tab_width

    def tokenize(self, text: str) -> List[Token]:
        """Tokenize a whole document; the result always ends with an EOF token"""
        lines = text.splitlines()
        tokens: List[Token] = []
        index = 0

        while index < len(lines):
            raw = lines[index]
            line_number = index + 1
            stripped = raw.strip()
            indent = self._indent_of(raw)
            column = indent + 1

            delimiter = self._doc_string_delimiter(stripped)
            if delimiter:
                token, index = self._read_doc_string(lines, index, indent, delimiter)
                tokens.append(token)
                continue

            tokens.append(self._classify(stripped, line_number, column, indent))
            index += 1

        tokens.append(Token(TokenKind.EOF, "", len(lines) + 1))
        return tokens

    def _indent_of(self, raw: str) -> int:
        width = 0
        for char in raw:
            if char == ' ':
                width += 1
            elif char == '\t':
                width += self.tab_width
            else:
                break
        return width

    @staticmethod
    def _doc_string_delimiter(stripped: str) -> Optional[str]:
        for delimiter in DOC_STRING_DELIMITERS:
            if stripped.startswith(delimiter):
                return delimiter
        return None

    def _classify(self, stripped: str, line: int, column: int, indent: int) -> Token:
        if not stripped:
            return Token(TokenKind.BLANK, "", line, column, indent)
        if stripped.startswith('#'):
            return Token(TokenKind.COMMENT, stripped[1:].strip(), line, column, indent)
        if stripped.startswith('@'):
            return Token(TokenKind.TAG_LINE, stripped, line, column, indent)
        if stripped.startswith('|'):
            return Token(TokenKind.TABLE_ROW, stripped, line, column, indent)

        for keyword, kind in STRUCTURAL_KEYWORDS:
            if stripped.startswith(keyword + ':'):
                value = stripped[len(keyword) + 1:].strip()
                return Token(kind, value, line, column, indent, keyword=keyword)

        for keyword in STEP_KEYWORDS:
            if stripped == keyword:
                return Token(TokenKind.STEP, "", line, column, indent, keyword=keyword)
            if stripped.startswith(keyword + ' ') or stripped.startswith(keyword + '\t'):
                value = stripped[len(keyword):].strip()
                return Token(TokenKind.STEP, value, line, column, indent, keyword=keyword)

        return Token(TokenKind.TEXT, stripped, line, column, indent)

    def _read_doc_string(self, lines: List[str], start: int, indent: int,
                         delimiter: str) -> Tuple[Token, int]:
        """Consume a block string; returns the token and the index of the next line"""
        opening = lines[start].strip()
        media_type = opening[len(delimiter):].strip() or None
        escaped_delimiter = '\\' + '\\'.join(delimiter)
        content: List[str] = []
        index = start + 1

        while index < len(lines):
            raw = lines[index]
            if raw.strip() == delimiter:
                break
            content.append(self._dedent(raw, indent).replace(escaped_delimiter, delimiter))
            index += 1

        terminated = index < len(lines)
        if not terminated:
            logger.debug(f"Doc string opened at line {start + 1} runs to end of input")

        token = Token(
            TokenKind.DOC_STRING,
            '\n'.join(content),
            start + 1,
            indent + 1,
            indent,
            keyword=delimiter,
            media_type=media_type,
            delimiter=delimiter,
            terminated=terminated,
        )
        return token, index + 1 if terminated else index

    def _dedent(self, raw: str, indent: int) -> str:
        """Strip up to `indent` columns of leading whitespace"""
        removed = 0
        position = 0
        while position < len(raw) and removed < indent:
            char = raw[position]
            if char == ' ':
                removed += 1
            elif char == '\t':
                removed += self.tab_width
            else:
                break
            position += 1
        return raw[position:]


def tokenize(text: str, tab_width: int = 4) -> List[Token]:
    """Quick utility to tokenize document text"""
    return Tokenizer(tab_width).tokenize(text)
