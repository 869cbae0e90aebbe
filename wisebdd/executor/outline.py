"""Scenario Outline expansion into concrete scenarios"""
from dataclasses import replace
from typing import Dict, List, Optional, Tuple

from wisebdd.parser.document import DataTable, DocString, Examples, Scenario, ScenarioOutline, Step
from wisebdd.utils.helpers import find_placeholders, substitute_placeholders
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)


def expand_outline(outline: ScenarioOutline) -> List[Scenario]:
    """One Scenario per data row of every Examples table; the outline itself is untouched"""
    scenarios: List[Scenario] = []
    index = 0

    for examples in outline.examples:
        table = examples.table
        if table is None or len(table.rows) < 2:
            logger.debug(f"Examples '{examples.name}' of '{outline.name}' has no data rows")
            continue

        header = table.header
        for row in table.data_rows:
            index += 1
            values = _row_values(header, row)
            if len(row) < len(header):
                missing = list(header[len(row):])
                logger.warning(
                    f"Example row {index} of '{outline.name}' (line {examples.location.line}) has no value "
                    f"for {missing}; those placeholders stay unsubstituted")
            scenarios.append(_make_scenario(outline, examples, index, values))

    return scenarios


def _row_values(header: Tuple[str, ...], row: Tuple[str, ...]) -> Dict[str, str]:
    return {name: row[position] for position, name in enumerate(header) if position < len(row)}


def _make_scenario(outline: ScenarioOutline, examples: Examples, index: int,
                   values: Dict[str, str]) -> Scenario:
    name = substitute_placeholders(outline.name, values)
    return Scenario(
        name=f"{name} (Example {index})",
        steps=tuple(_substitute_step(step, values) for step in outline.steps),
        location=outline.location,
        tags=outline.tags + examples.tags,
        description=outline.description,
        keyword=outline.keyword,
        example_index=index,
        example_values=dict(values),
    )


def _substitute_step(step: Step, values: Dict[str, str]) -> Step:
    return replace(
        step,
        text=substitute_placeholders(step.text, values),
        argument=_substitute_argument(step.argument, values),
    )


def _substitute_argument(argument: Optional[object], values: Dict[str, str]):
    if isinstance(argument, DataTable):
        rows = tuple(
            tuple(substitute_placeholders(cell, values) for cell in row)
            for row in argument.rows
        )
        return replace(argument, rows=rows)
    if isinstance(argument, DocString):
        return replace(argument, content=substitute_placeholders(argument.content, values))
    return argument


def unresolved_placeholders(scenario: Scenario) -> List[str]:
    """Placeholders still present in an expanded scenario's step text"""
    names: List[str] = []
    for step in scenario.steps:
        names.extend(find_placeholders(step.text))
    return names
