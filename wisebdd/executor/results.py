"""Outcome records produced by scenario execution and consumed by reporters"""
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from wisebdd.parser.document import Location


class StepStatus(Enum):
    PASSED = "passed"
    FAILED = "failed"
    SKIPPED = "skipped"
    PENDING = "pending"
    UNDEFINED = "undefined"

    @property
    def halts(self) -> bool:
        """Statuses that stop the remaining steps of a scenario"""
        return self in (StepStatus.FAILED, StepStatus.UNDEFINED, StepStatus.PENDING)


class SkipReason(Enum):
    PREVIOUS_STEP_FAILED = "previous step failure"
    BACKGROUND_FAILED = "background failure"
    HOOK_FAILED = "hook failure"


@dataclass
class StepOutcome:
    keyword: str
    resolved_keyword: str
    text: str
    status: StepStatus
    location: Optional[Location] = None
    duration: float = 0.0
    error: Optional[str] = None
    skip_reason: Optional[SkipReason] = None
    from_background: bool = False
    pattern: Optional[str] = None

    @property
    def line(self) -> str:
        return f"{self.keyword} {self.text}".rstrip()


@dataclass
class ScenarioOutcome:
    name: str
    status: StepStatus = StepStatus.PASSED
    steps: List[StepOutcome] = field(default_factory=list)
    tags: List[str] = field(default_factory=list)
    location: Optional[Location] = None
    duration: float = 0.0
    error: Optional[str] = None
    # "background", "step" or "hook" once something went wrong
    failure_origin: Optional[str] = None
    feature: Optional[str] = None

    @property
    def passed(self) -> bool:
        return self.status is StepStatus.PASSED

    @property
    def background_steps(self) -> List[StepOutcome]:
        return [step for step in self.steps if step.from_background]

    @property
    def scenario_steps(self) -> List[StepOutcome]:
        return [step for step in self.steps if not step.from_background]

    def undefined_steps(self) -> List[StepOutcome]:
        return [step for step in self.steps if step.status is StepStatus.UNDEFINED]


@dataclass
class FeatureOutcome:
    name: str
    scenarios: List[ScenarioOutcome] = field(default_factory=list)
    source: str = "<string>"

    @property
    def status(self) -> StepStatus:
        for status in (StepStatus.FAILED, StepStatus.UNDEFINED, StepStatus.PENDING):
            if any(scenario.status is status for scenario in self.scenarios):
                return status
        return StepStatus.PASSED


@dataclass
class RunResult:
    features: List[FeatureOutcome] = field(default_factory=list)
    stopped_early: bool = False

    @property
    def scenarios(self) -> List[ScenarioOutcome]:
        return [scenario for feature in self.features for scenario in feature.scenarios]

    @property
    def passed(self) -> bool:
        return all(scenario.passed for scenario in self.scenarios) and not self.stopped_early

    def summary(self) -> Dict[str, Dict[str, int]]:
        """Counts of scenario and step statuses"""
        scenario_counts = {status.value: 0 for status in StepStatus}
        step_counts = {status.value: 0 for status in StepStatus}
        for scenario in self.scenarios:
            scenario_counts[scenario.status.value] += 1
            for step in scenario.steps:
                step_counts[step.status.value] += 1
        return {'scenarios': scenario_counts, 'steps': step_counts}

    def undefined_steps(self) -> List[Tuple[str, str]]:
        """Deduplicated (keyword, text) pairs of undefined steps, in first-seen order"""
        seen = set()
        result = []
        for scenario in self.scenarios:
            for step in scenario.undefined_steps():
                key = (step.resolved_keyword, step.text)
                if key not in seen:
                    seen.add(key)
                    result.append(key)
        return result

    def snippets(self) -> List[str]:
        """Stub step definitions for every undefined step"""
        return [make_step_snippet(keyword, text) for keyword, text in self.undefined_steps()]


_SNIPPET_TOKENS = re.compile(r'"[^"]*"|(?<![\w.])-?\d+(?![\w.])|[\\{}()/]')
_PATTERN_SPECIALS = set('\\{}()/')


def make_step_snippet(keyword: str, text: str) -> str:
    """Registration stub for an undefined step, with quoted strings and integers as placeholders"""
    parameters: List[str] = []

    def replace(match: re.Match) -> str:
        token = match.group(0)
        if token in _PATTERN_SPECIALS:
            return '\\' + token
        kind = 'string' if token.startswith('"') else 'int'
        parameters.append(f"{kind}{len(parameters) + 1}")
        return '{' + kind + '}'

    pattern = _SNIPPET_TOKENS.sub(replace, text)
    method = keyword.lower() if keyword.lower() in ('given', 'when', 'then') else 'step'
    arguments = ', '.join(['context'] + parameters)
    return (
        f"@catalog.{method}({pattern!r})\n"
        f"def step_impl({arguments}):\n"
        f"    raise PendingStepError({text!r})\n"
    )
