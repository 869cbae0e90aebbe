"""Main test execution orchestrator"""
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from wisebdd.executor.context import ScenarioContext
from wisebdd.executor.hooks import HookRegistry
from wisebdd.executor.outline import expand_outline
from wisebdd.executor.results import FeatureOutcome, RunResult, ScenarioOutcome, StepStatus
from wisebdd.executor.scenario_executor import ScenarioOrchestrator
from wisebdd.executor.step_executor import Resume, StepExecutor
from wisebdd.parser.document import Background, Feature, Rule, Scenario, ScenarioOutline, StepKeyword
from wisebdd.parser.step_catalog import StepCatalog
from wisebdd.utils.helpers import deep_get, normalize_tag
from wisebdd.utils.logger import set_level, setup_logger

logger = setup_logger(__name__)

# (scenario, background to run first, inherited tags)
ScenarioPlan = Tuple[Scenario, Optional[Background], List[str]]


class TestExecutor:
    """Orchestrates test execution across features"""

    __test__ = False  # not a pytest test class

    def __init__(self, catalog: StepCatalog, fail_fast: bool = False, tags: Optional[Iterable[str]] = None,
                 hooks: Optional[HookRegistry] = None, context: Optional[ScenarioContext] = None,
                 default_keyword: Union[StepKeyword, str] = StepKeyword.GIVEN,
                 resume: Optional[Resume] = None):
        self.catalog = catalog
        self.fail_fast = fail_fast
        self.tags = [normalize_tag(tag) for tag in tags] if tags else []
        self.hooks = hooks or HookRegistry()
        self.orchestrator = ScenarioOrchestrator(
            catalog,
            context=context,
            step_executor=StepExecutor(resume),
            hooks=self.hooks,
            default_keyword=default_keyword,
        )
        self.results = RunResult()

    @classmethod
    def from_config(cls, catalog: StepCatalog, config: Dict[str, Any], **kwargs: Any) -> 'TestExecutor':
        """Build an executor from a loaded configuration mapping"""
        level = deep_get(config, 'logging.level')
        if level:
            set_level(level)
        catalog.register_parameter_types_from_config(config.get('parameter_types') or [])
        return cls(
            catalog,
            fail_fast=bool(deep_get(config, 'execution.fail_fast', False)),
            tags=deep_get(config, 'execution.tags') or None,
            default_keyword=deep_get(config, 'execution.default_keyword', 'Given'),
            **kwargs,
        )

    def execute_features(self, features: Iterable[Feature]) -> RunResult:
        """Execute all features; stops between scenarios when fail_fast is set"""
        self.results = RunResult()

        for feature in features:
            if self.results.stopped_early:
                break
            feature_outcome = FeatureOutcome(name=feature.name, source=feature.source)
            self.results.features.append(feature_outcome)

            for scenario, background, inherited in self.plan_feature(feature):
                outcome = self._execute_scenario(feature, scenario, background, inherited)
                feature_outcome.scenarios.append(outcome)

                if self.fail_fast and outcome.status is not StepStatus.PASSED:
                    logger.warning(f"Stopping after failed scenario '{scenario.name}' (fail fast)")
                    self.results.stopped_early = True
                    break

        self._log_summary()
        return self.results

    def execute_feature(self, feature: Feature) -> FeatureOutcome:
        result = self.execute_features([feature])
        return result.features[0]

    def plan_feature(self, feature: Feature) -> List[ScenarioPlan]:
        """Concrete scenarios of a feature in run order, after outline expansion and tag filtering"""
        plan: List[ScenarioPlan] = []

        for definition in feature.scenarios:
            plan.extend(self._plan_definition(definition, feature.background, feature.tag_names))

        for rule in feature.rules:
            background = self._merge_backgrounds(feature.background, rule)
            inherited = feature.tag_names + rule.tag_names
            for definition in rule.scenarios:
                plan.extend(self._plan_definition(definition, background, inherited))

        return plan

    def _plan_definition(self, definition: Union[Scenario, ScenarioOutline], background: Optional[Background],
                         inherited: List[str]) -> List[ScenarioPlan]:
        scenarios = expand_outline(definition) if isinstance(definition, ScenarioOutline) else [definition]
        return [
            (scenario, background, inherited)
            for scenario in scenarios
            if self._selected(scenario.tag_names + inherited)
        ]

    def _selected(self, tags: List[str]) -> bool:
        if not self.tags:
            return True
        return any(tag in tags for tag in self.tags)

    @staticmethod
    def _merge_backgrounds(feature_background: Optional[Background], rule: Rule) -> Optional[Background]:
        """Feature background steps followed by the rule's own background steps"""
        if rule.background is None:
            return feature_background
        if feature_background is None:
            return rule.background
        return Background(
            name=rule.background.name or feature_background.name,
            steps=feature_background.steps + rule.background.steps,
            location=feature_background.location,
            description=rule.background.description,
            keyword=rule.background.keyword,
        )

    def _execute_scenario(self, feature: Feature, scenario: Scenario, background: Optional[Background],
                          inherited: List[str]) -> ScenarioOutcome:
        return self.orchestrator.execute_scenario(
            scenario,
            background=background,
            inherited_tags=inherited,
            feature_name=feature.name,
        )

    def _log_summary(self) -> None:
        counts = self.results.summary()['scenarios']
        total = sum(counts.values())
        failed = total - counts[StepStatus.PASSED.value]
        if failed:
            logger.error(f"Tests completed with {failed} of {total} scenarios not passing: {counts}")
        else:
            logger.info(f"All {total} scenarios passed")
        for keyword, text in self.results.undefined_steps():
            logger.warning(f"Undefined step: {keyword} {text}")
