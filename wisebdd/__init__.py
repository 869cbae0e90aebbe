"""
wisebdd - execution core for Given/When/Then specification documents
Parses feature text, matches steps against registered handlers and runs scenarios
"""

from wisebdd.core.config_manager import ConfigManager
from wisebdd.core.exceptions import (
    ConfigError, DocumentParseError, ParameterTypeError, PatternCompileError,
    PendingStepError, StepDefinitionError, StepFailure, WiseBDDError,
)
from wisebdd.executor.context import ScenarioContext
from wisebdd.executor.hooks import HookRegistry
from wisebdd.executor.outline import expand_outline
from wisebdd.executor.results import (
    FeatureOutcome, RunResult, ScenarioOutcome, SkipReason, StepOutcome, StepStatus,
)
from wisebdd.executor.scenario_executor import ScenarioOrchestrator
from wisebdd.executor.step_executor import StepExecutor
from wisebdd.executor.test_executor import TestExecutor
from wisebdd.parser.document import (
    Background, DataTable, DocString, Examples, Feature, Location, Rule,
    Scenario, ScenarioOutline, Step, StepKeyword, Tag,
)
from wisebdd.parser.feature_parser import FeatureParser, ParseResult, parse_feature
from wisebdd.parser.parameter_types import ParameterType, ParameterTypeRegistry
from wisebdd.parser.pattern_compiler import CompiledPattern, PatternCompiler, compile_pattern
from wisebdd.parser.step_catalog import StepBinding, StepCatalog, StepCategory
from wisebdd.parser.tokenizer import Token, TokenKind, Tokenizer, tokenize

__version__ = "1.0.0"
