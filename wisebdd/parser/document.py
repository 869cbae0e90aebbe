"""
Document tree produced by the feature parser.
Nodes are frozen once built; outline expansion creates new Scenario nodes.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple, Union


class StepKeyword(Enum):
    GIVEN = "Given"
    WHEN = "When"
    THEN = "Then"
    AND = "And"
    BUT = "But"
    BULLET = "*"

    @property
    def is_continuation(self) -> bool:
        return self in (StepKeyword.AND, StepKeyword.BUT, StepKeyword.BULLET)


@dataclass(frozen=True)
class Location:
    line: int
    column: int = 1


@dataclass(frozen=True)
class Tag:
    name: str
    location: Location

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class DataTable:
    """Ordered rows of cells; row 0 is the header"""
    rows: Tuple[Tuple[str, ...], ...]
    location: Location

    @property
    def header(self) -> Tuple[str, ...]:
        return self.rows[0] if self.rows else ()

    @property
    def data_rows(self) -> Tuple[Tuple[str, ...], ...]:
        return self.rows[1:]

    def as_rows(self) -> List[List[str]]:
        """Generic list-of-lists form handed to step handlers"""
        return [list(row) for row in self.rows]

    def as_dicts(self) -> List[Dict[str, str]]:
        """Data rows keyed by header cell"""
        return [dict(zip(self.header, row)) for row in self.data_rows]


@dataclass(frozen=True)
class DocString:
    content: str
    location: Location
    media_type: Optional[str] = None
    delimiter: str = '"""'


StepArgument = Union[DataTable, DocString]


@dataclass(frozen=True)
class Step:
    keyword: StepKeyword
    text: str
    location: Location
    argument: Optional[StepArgument] = None

    @property
    def data_table(self) -> Optional[DataTable]:
        return self.argument if isinstance(self.argument, DataTable) else None

    @property
    def doc_string(self) -> Optional[DocString]:
        return self.argument if isinstance(self.argument, DocString) else None

    def __str__(self) -> str:
        return f"{self.keyword.value} {self.text}".rstrip()


@dataclass(frozen=True)
class Background:
    name: str
    steps: Tuple[Step, ...]
    location: Location
    description: str = ""
    keyword: str = "Background"


@dataclass(frozen=True)
class Scenario:
    name: str
    steps: Tuple[Step, ...]
    location: Location
    tags: Tuple[Tag, ...] = ()
    description: str = ""
    keyword: str = "Scenario"
    example_index: Optional[int] = None
    example_values: Optional[Dict[str, str]] = field(default=None, compare=False)

    @property
    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]


@dataclass(frozen=True)
class Examples:
    name: str
    location: Location
    table: Optional[DataTable] = None
    tags: Tuple[Tag, ...] = ()
    description: str = ""
    keyword: str = "Examples"


@dataclass(frozen=True)
class ScenarioOutline:
    name: str
    steps: Tuple[Step, ...]
    location: Location
    examples: Tuple[Examples, ...] = ()
    tags: Tuple[Tag, ...] = ()
    description: str = ""
    keyword: str = "Scenario Outline"

    @property
    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]


ScenarioDefinition = Union[Scenario, ScenarioOutline]


@dataclass(frozen=True)
class Rule:
    name: str
    location: Location
    scenarios: Tuple[ScenarioDefinition, ...] = ()
    tags: Tuple[Tag, ...] = ()
    background: Optional[Background] = None
    description: str = ""
    keyword: str = "Rule"

    @property
    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]


@dataclass(frozen=True)
class Feature:
    name: str
    location: Location
    scenarios: Tuple[ScenarioDefinition, ...] = ()
    rules: Tuple[Rule, ...] = ()
    tags: Tuple[Tag, ...] = ()
    background: Optional[Background] = None
    description: str = ""
    keyword: str = "Feature"
    source: str = "<string>"

    @property
    def tag_names(self) -> List[str]:
        return [tag.name for tag in self.tags]

    def all_scenarios(self) -> List[ScenarioDefinition]:
        """Feature-level scenarios followed by the scenarios of each rule"""
        result = list(self.scenarios)
        for rule in self.rules:
            result.extend(rule.scenarios)
        return result
