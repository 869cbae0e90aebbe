"""
Scenario orchestrator
Runs one scenario (and its background) against a step catalog
"""
import time
from typing import Iterable, List, Optional, Union

from wisebdd.executor.context import ScenarioContext
from wisebdd.executor.hooks import HookRegistry
from wisebdd.executor.outline import expand_outline
from wisebdd.executor.results import ScenarioOutcome, SkipReason, StepOutcome, StepStatus
from wisebdd.executor.step_executor import StepExecutor
from wisebdd.parser.document import Background, Scenario, ScenarioOutline, Step, StepKeyword
from wisebdd.parser.step_catalog import StepBinding, StepCatalog
from wisebdd.utils.helpers import unique
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)


class ScenarioOrchestrator:
    """Executes scenarios step by step, resolving continuation keywords and tag scope"""

    def __init__(self, catalog: StepCatalog, context: Optional[ScenarioContext] = None,
                 step_executor: Optional[StepExecutor] = None, hooks: Optional[HookRegistry] = None,
                 default_keyword: Union[StepKeyword, str] = StepKeyword.GIVEN):
        self.catalog = catalog
        self.context = context if context is not None else ScenarioContext()
        self.step_executor = step_executor or StepExecutor()
        self.hooks = hooks or HookRegistry()
        self.default_keyword = self._as_keyword(default_keyword)
        self._last_keyword = self.default_keyword

    @staticmethod
    def _as_keyword(keyword: Union[StepKeyword, str]) -> StepKeyword:
        if isinstance(keyword, StepKeyword):
            resolved = keyword
        else:
            resolved = next((k for k in StepKeyword if k.value.lower() == keyword.strip().lower()), None)
            if resolved is None:
                raise ValueError(f"Unknown step keyword: {keyword!r}")
        if resolved.is_continuation:
            raise ValueError(f"Default keyword must be Given, When or Then, not {resolved.value}")
        return resolved

    def find_step(self, keyword: Union[StepKeyword, str], text: str,
                  active_tags: Iterable[str] = ()) -> Optional[StepBinding]:
        return self.catalog.find(keyword, text, active_tags)

    def expand_outline(self, outline: ScenarioOutline) -> List[Scenario]:
        return expand_outline(outline)

    def resolve_keyword(self, keyword: StepKeyword) -> StepKeyword:
        """Continuation keywords take the last Given/When/Then seen"""
        if keyword.is_continuation:
            return self._last_keyword
        self._last_keyword = keyword
        return keyword

    def execute_scenario(self, scenario: Scenario, background: Optional[Background] = None,
                         inherited_tags: Iterable[str] = (), feature_name: Optional[str] = None) -> ScenarioOutcome:
        """Run background then scenario steps, halting on the first failure"""
        active_tags = unique(list(scenario.tag_names) + list(inherited_tags))
        outcome = ScenarioOutcome(
            name=scenario.name,
            tags=active_tags,
            location=scenario.location,
            feature=feature_name,
        )
        active = frozenset(active_tags)

        self.context.reset(scenario, active)
        self._last_keyword = self.default_keyword
        background_steps = list(background.steps) if background else []

        logger.info(f"Executing scenario: {scenario.name}")
        start_time = time.perf_counter()

        hook_error = self.hooks.run('before_scenario', self.context, scenario)
        if hook_error:
            self._mark_halted(outcome, StepStatus.FAILED, 'hook', hook_error)
            for step in background_steps:
                outcome.steps.append(self._skipped(step, SkipReason.HOOK_FAILED, from_background=True))
            for step in scenario.steps:
                outcome.steps.append(self._skipped(step, SkipReason.HOOK_FAILED))
        else:
            self._run_steps(outcome, background_steps, scenario.steps, active)

        hook_error = self.hooks.run('after_scenario', self.context, outcome)
        if hook_error and outcome.status is StepStatus.PASSED:
            self._mark_halted(outcome, StepStatus.FAILED, 'hook', hook_error)

        outcome.duration = time.perf_counter() - start_time
        logger.info(f"Scenario {outcome.status.value}: {scenario.name}")
        return outcome

    def _run_steps(self, outcome: ScenarioOutcome, background_steps: List[Step],
                   scenario_steps: Iterable[Step], active: frozenset) -> None:
        for step in background_steps:
            if outcome.failure_origin:
                outcome.steps.append(self._skipped(step, SkipReason.PREVIOUS_STEP_FAILED, from_background=True))
                continue
            step_outcome = self._run_step(step, active, from_background=True)
            outcome.steps.append(step_outcome)
            if step_outcome.status.halts:
                self._mark_halted(outcome, step_outcome.status, 'background', step_outcome.error)

        for step in scenario_steps:
            if outcome.failure_origin == 'background':
                outcome.steps.append(self._skipped(step, SkipReason.BACKGROUND_FAILED))
                continue
            if outcome.failure_origin:
                outcome.steps.append(self._skipped(step, SkipReason.PREVIOUS_STEP_FAILED))
                continue
            step_outcome = self._run_step(step, active)
            outcome.steps.append(step_outcome)
            if step_outcome.status.halts:
                self._mark_halted(outcome, step_outcome.status, 'step', step_outcome.error)

    def _run_step(self, step: Step, active: frozenset, from_background: bool = False) -> StepOutcome:
        resolved = self.resolve_keyword(step.keyword)

        hook_error = self.hooks.run('before_step', self.context, step)
        if hook_error:
            step_outcome = StepOutcome(
                keyword=step.keyword.value,
                resolved_keyword=resolved.value,
                text=step.text,
                status=StepStatus.FAILED,
                location=step.location,
                error=hook_error,
                from_background=from_background,
            )
        else:
            binding = self.catalog.find(resolved, step.text, active)
            if binding is None:
                logger.warning(f"Undefined step: {resolved.value} {step.text}")
                step_outcome = StepOutcome(
                    keyword=step.keyword.value,
                    resolved_keyword=resolved.value,
                    text=step.text,
                    status=StepStatus.UNDEFINED,
                    location=step.location,
                    error=f"No step definition matches '{step.text}'",
                    from_background=from_background,
                )
            else:
                step_outcome = self.step_executor.execute_step(
                    binding, step, self.context, resolved.value, from_background)

        hook_error = self.hooks.run('after_step', self.context, step, step_outcome)
        if hook_error and step_outcome.status is StepStatus.PASSED:
            step_outcome.status = StepStatus.FAILED
            step_outcome.error = hook_error
        return step_outcome

    def _skipped(self, step: Step, reason: SkipReason, from_background: bool = False) -> StepOutcome:
        resolved = self.resolve_keyword(step.keyword)
        return StepOutcome(
            keyword=step.keyword.value,
            resolved_keyword=resolved.value,
            text=step.text,
            status=StepStatus.SKIPPED,
            location=step.location,
            skip_reason=reason,
            from_background=from_background,
        )

    @staticmethod
    def _mark_halted(outcome: ScenarioOutcome, status: StepStatus, origin: str, error: Optional[str]) -> None:
        outcome.status = status
        outcome.failure_origin = origin
        outcome.error = error
