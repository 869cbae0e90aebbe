"""
Feature parser
Builds the document tree from the tokenizer's output with best-effort error recovery
"""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

from wisebdd.core.exceptions import DocumentParseError
from wisebdd.parser.document import (
    Background, DataTable, DocString, Examples, Feature, Location, Rule,
    Scenario, ScenarioDefinition, ScenarioOutline, Step, StepKeyword, Tag,
)
from wisebdd.parser.tokenizer import Token, TokenKind, Tokenizer
from wisebdd.utils.helpers import deep_get
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)

SCENARIO_KINDS = (TokenKind.SCENARIO, TokenKind.SCENARIO_OUTLINE)


@dataclass
class ParseResult:
    feature: Optional[Feature]
    errors: List[DocumentParseError] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors


class FeatureParser:
    """Parse feature documents into Feature trees"""

    def __init__(self, tokenizer: Optional[Tokenizer] = None):
        self.tokenizer = tokenizer or Tokenizer()
        self._tokens: List[Token] = []
        self._position = 0
        self._source = "<string>"
        self._errors: List[DocumentParseError] = []

    @classmethod
    def from_config(cls, config: Dict[str, Any]) -> 'FeatureParser':
        return cls(Tokenizer(tab_width=int(deep_get(config, 'parser.tab_width', 4))))

    def parse(self, text: str, source: str = "<string>") -> ParseResult:
        """Parse document text; errors are collected, never raised"""
        self._tokens = self.tokenizer.tokenize(text)
        self._position = 0
        self._source = source
        self._errors = []

        feature = self._parse_feature()
        for error in self._errors:
            logger.warning(f"Parse error: {error}")

        return ParseResult(feature=feature, errors=list(self._errors))

    def parse_file(self, file_path: Union[str, Path]) -> ParseResult:
        """Parse a single feature file"""
        path = Path(file_path)
        with open(path, 'r', encoding='utf-8') as f:
            content = f.read()
        return self.parse(content, source=str(path))

    # Token stream

    def _peek(self) -> Token:
        """Next significant token; blanks and comments are skipped"""
        while self._tokens[self._position].kind in (TokenKind.BLANK, TokenKind.COMMENT):
            self._position += 1
        return self._tokens[self._position]

    def _advance(self) -> Token:
        token = self._peek()
        if token.kind is not TokenKind.EOF:
            self._position += 1
        return token

    def _peek_past_tags(self) -> Token:
        """First significant token after any run of tag lines, without consuming"""
        saved = self._position
        while self._peek().kind is TokenKind.TAG_LINE:
            self._position += 1
        token = self._peek()
        self._position = saved
        return token

    def _error(self, message: str, token: Optional[Token] = None) -> None:
        line = token.line if token else None
        column = token.column if token else None
        self._errors.append(DocumentParseError(message, self._source, line, column))

    @staticmethod
    def _location(token: Token) -> Location:
        return Location(token.line, token.column)

    # Grammar

    def _parse_feature(self) -> Optional[Feature]:
        tags = self._parse_tags()
        token = self._peek()

        if token.kind is TokenKind.EOF:
            self._error("Expected 'Feature:' but the document is empty", token)
            return None

        if token.kind is TokenKind.FEATURE:
            self._advance()
            name, keyword, location = token.value, token.keyword, self._location(token)
        else:
            self._error(f"Expected 'Feature:' but found {token.kind.value} {token.value!r}", token)
            if self._skip_to(TokenKind.FEATURE):
                tags = self._parse_tags()
                feature_token = self._advance()
                name, keyword, location = feature_token.value, feature_token.keyword, self._location(feature_token)
            else:
                # No Feature keyword anywhere: keep what follows under an unnamed feature
                name, keyword, location = "", "Feature", self._location(token)

        description = self._parse_description()
        background = self._parse_background()
        scenarios: List[ScenarioDefinition] = []
        rules: List[Rule] = []

        while True:
            next_token = self._peek_past_tags()
            if next_token.kind is TokenKind.EOF:
                dangling = self._parse_tags()
                if dangling:
                    self._error("Tags are not followed by a Scenario, Rule or Examples", self._token_of(dangling[0]))
                break
            if next_token.kind is TokenKind.RULE:
                rules.append(self._parse_rule())
                continue
            if next_token.kind in SCENARIO_KINDS:
                scenarios.append(self._parse_scenario_definition(self._parse_tags()))
                continue
            self._recover("Feature")

        return Feature(
            name=name,
            location=location,
            scenarios=tuple(scenarios),
            rules=tuple(rules),
            tags=tuple(tags),
            background=background,
            description=description,
            keyword=keyword or "Feature",
            source=self._source,
        )

    def _skip_to(self, kind: TokenKind) -> bool:
        """Move to the next token of `kind`, keeping a preceding tag run; False if absent"""
        for index in range(self._position, len(self._tokens)):
            if self._tokens[index].kind is kind:
                start = index
                while start > self._position and self._tokens[start - 1].kind in (
                        TokenKind.TAG_LINE, TokenKind.BLANK, TokenKind.COMMENT):
                    start -= 1
                self._position = start
                return True
        return False

    def _recover(self, section: str) -> None:
        """Report and consume one out-of-place element"""
        stray_tags = self._parse_tags()
        if stray_tags:
            self._error("Tags are not followed by a Scenario, Rule or Examples", self._token_of(stray_tags[0]))
            return

        stray = self._advance()
        if stray.kind is TokenKind.BACKGROUND:
            self._error(f"Only one Background is allowed, before the first Scenario of a {section}", stray)
            self._parse_description()
            self._parse_steps()
        elif stray.kind is TokenKind.FEATURE:
            self._error("Only one Feature is allowed per document", stray)
        else:
            self._error(f"Unexpected {stray.kind.value} {stray.value!r} in {section}", stray)

    def _token_of(self, tag: Tag) -> Token:
        return Token(TokenKind.TAG_LINE, tag.name, tag.location.line, tag.location.column)

    def _parse_rule(self) -> Rule:
        tags = self._parse_tags()
        token = self._advance()
        description = self._parse_description()
        background = self._parse_background()
        scenarios: List[ScenarioDefinition] = []

        while True:
            next_token = self._peek_past_tags()
            if next_token.kind in (TokenKind.RULE, TokenKind.FEATURE, TokenKind.EOF):
                break
            if next_token.kind in SCENARIO_KINDS:
                scenarios.append(self._parse_scenario_definition(self._parse_tags()))
                continue
            self._recover("Rule")

        return Rule(
            name=token.value,
            location=self._location(token),
            scenarios=tuple(scenarios),
            tags=tuple(tags),
            background=background,
            description=description,
            keyword=token.keyword or "Rule",
        )

    def _parse_background(self) -> Optional[Background]:
        if self._peek().kind is not TokenKind.BACKGROUND:
            return None
        token = self._advance()
        description = self._parse_description()
        return Background(
            name=token.value,
            steps=tuple(self._parse_steps()),
            location=self._location(token),
            description=description,
            keyword=token.keyword or "Background",
        )

    def _parse_scenario_definition(self, tags: List[Tag]) -> ScenarioDefinition:
        token = self._advance()
        description = self._parse_description()
        steps = tuple(self._parse_steps())
        examples = self._parse_examples_sections()

        if token.kind is TokenKind.SCENARIO_OUTLINE or examples:
            if token.kind is TokenKind.SCENARIO_OUTLINE and not examples:
                logger.debug(f"Scenario Outline '{token.value}' at line {token.line} has no Examples")
            return ScenarioOutline(
                name=token.value,
                steps=steps,
                location=self._location(token),
                examples=tuple(examples),
                tags=tuple(tags),
                description=description,
                keyword=token.keyword or "Scenario Outline",
            )

        return Scenario(
            name=token.value,
            steps=steps,
            location=self._location(token),
            tags=tuple(tags),
            description=description,
            keyword=token.keyword or "Scenario",
        )

    def _parse_examples_sections(self) -> List[Examples]:
        sections: List[Examples] = []
        while self._peek_past_tags().kind is TokenKind.EXAMPLES:
            tags = self._parse_tags()
            token = self._advance()
            description = self._parse_description()
            table = self._parse_table() if self._peek().kind is TokenKind.TABLE_ROW else None
            sections.append(Examples(
                name=token.value,
                location=self._location(token),
                table=table,
                tags=tuple(tags),
                description=description,
                keyword=token.keyword or "Examples",
            ))
        return sections

    def _parse_steps(self) -> List[Step]:
        steps: List[Step] = []
        while self._peek().kind is TokenKind.STEP:
            token = self._advance()
            argument: Optional[Union[DataTable, DocString]] = None

            next_kind = self._peek().kind
            if next_kind is TokenKind.DOC_STRING:
                argument = self._parse_doc_string()
            elif next_kind is TokenKind.TABLE_ROW:
                argument = self._parse_table()

            steps.append(Step(
                keyword=StepKeyword(token.keyword),
                text=token.value,
                location=self._location(token),
                argument=argument,
            ))
        return steps

    def _parse_doc_string(self) -> DocString:
        token = self._advance()
        if not token.terminated:
            self._error(f"Doc string opened with {token.delimiter} is never closed", token)
        return DocString(
            content=token.value,
            location=self._location(token),
            media_type=token.media_type,
            delimiter=token.delimiter or '"""',
        )

    def _parse_table(self) -> DataTable:
        first = self._peek()
        rows: List[Tuple[str, ...]] = []
        while self._peek().kind is TokenKind.TABLE_ROW:
            token = self._advance()
            cells = tuple(split_table_row(token.value))
            if rows and len(cells) != len(rows[0]):
                self._error(
                    f"Inconsistent cell count: expected {len(rows[0])}, found {len(cells)}", token)
            rows.append(cells)
        return DataTable(rows=tuple(rows), location=self._location(first))

    def _parse_tags(self) -> List[Tag]:
        tags: List[Tag] = []
        while self._peek().kind is TokenKind.TAG_LINE:
            tags.extend(split_tag_line(self._advance()))
        return tags

    def _parse_description(self) -> str:
        lines: List[str] = []
        while True:
            token = self._tokens[self._position]
            if token.kind is TokenKind.TEXT:
                lines.append(token.value)
            elif token.kind is TokenKind.BLANK:
                if lines:
                    lines.append("")
            elif token.kind is not TokenKind.COMMENT:
                break
            self._position += 1
        return '\n'.join(lines).strip()


def split_tag_line(token: Token) -> List[Tag]:
    """Split a tag line into Tag nodes; a trailing `#` comment ends the line"""
    tags: List[Tag] = []
    for match in re.finditer(r'\S+', token.value):
        part = match.group(0)
        if part.startswith('#'):
            break
        tags.append(Tag(part, Location(token.line, token.column + match.start())))
    return tags


def split_table_row(row: str) -> List[str]:
    """Split `| a | b |` into trimmed cells, honoring \\|, \\\\ and \\n escapes"""
    row = row.strip()
    if row.startswith('|'):
        row = row[1:]

    cells: List[str] = []
    current: List[str] = []
    index = 0
    closed = False
    while index < len(row):
        char = row[index]
        if char == '\\' and index + 1 < len(row):
            following = row[index + 1]
            if following == '|':
                current.append('|')
            elif following == 'n':
                current.append('\n')
            elif following == '\\':
                current.append('\\')
            else:
                current.append(char + following)
            index += 2
            continue
        if char == '|':
            cells.append(''.join(current).strip())
            current = []
            closed = True
        else:
            current.append(char)
            closed = False
        index += 1

    if not closed and ''.join(current).strip():
        cells.append(''.join(current).strip())
    return cells


def parse_feature(text: str, source: str = "<string>") -> ParseResult:
    """Quick utility to parse document text"""
    return FeatureParser().parse(text, source)
