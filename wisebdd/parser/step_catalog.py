"""
Step catalog for step definitions.
Maps step text to registered handlers, partitioned by keyword and scoped by tags.
"""

import inspect
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, FrozenSet, Iterable, List, Optional, Tuple, Union

from wisebdd.core.exceptions import PatternCompileError, StepDefinitionError
from wisebdd.parser.document import StepKeyword
from wisebdd.parser.parameter_types import ParameterType, ParameterTypeRegistry, Transform
from wisebdd.parser.pattern_compiler import CompiledPattern, PatternCompiler
from wisebdd.utils.helpers import normalize_tag
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)

Handler = Callable[..., Any]


class StepCategory(Enum):
    GIVEN = "given"
    WHEN = "when"
    THEN = "then"
    ANY = "any"


KEYWORD_CATEGORIES = {
    StepKeyword.GIVEN: StepCategory.GIVEN,
    StepKeyword.WHEN: StepCategory.WHEN,
    StepKeyword.THEN: StepCategory.THEN,
}


@dataclass
class StepBinding:
    """A compiled step pattern paired with its handler"""
    pattern: str
    compiled: CompiledPattern
    handler: Handler
    category: StepCategory
    scope_tags: FrozenSet[str] = field(default_factory=frozenset)
    accepts_argument: bool = False
    requires_argument: bool = False

    def for_tags(self, *tags: Union[str, Iterable[str]]) -> 'StepBinding':
        """Restrict this binding to scenarios carrying any of the given tags"""
        names: List[str] = []
        for tag in tags:
            if isinstance(tag, str):
                names.append(tag)
            else:
                names.extend(tag)
        self.scope_tags = frozenset(normalize_tag(name) for name in names if name.strip())
        logger.debug(f"Scoped step '{self.pattern}' to {sorted(self.scope_tags)}")
        return self

    @property
    def is_scoped(self) -> bool:
        return bool(self.scope_tags)

    def in_scope(self, active_tags: Iterable[str]) -> bool:
        return not self.scope_tags.isdisjoint(active_tags)

    def match(self, text: str) -> Optional[List[Any]]:
        return self.compiled.match(text)

    @property
    def location(self) -> str:
        handler = inspect.unwrap(self.handler)
        code = getattr(handler, '__code__', None)
        if code is None:
            return repr(handler)
        return f"{code.co_filename}:{code.co_firstlineno}"

    def describe(self) -> str:
        scope = f" for {', '.join(sorted(self.scope_tags))}" if self.scope_tags else ""
        return f"{self.category.value}('{self.pattern}'){scope}"


def _inspect_arity(handler: Handler) -> Tuple[int, Optional[int]]:
    """(required positional parameters, maximum positional parameters or None if unbounded)"""
    try:
        signature = inspect.signature(handler)
    except (TypeError, ValueError):
        return 0, None

    required = 0
    maximum: Optional[int] = 0
    for parameter in signature.parameters.values():
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            maximum = None
        elif parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            if maximum is not None:
                maximum += 1
            if parameter.default is inspect.Parameter.empty:
                required += 1
        elif parameter.kind is inspect.Parameter.KEYWORD_ONLY and parameter.default is inspect.Parameter.empty:
            required = -1
    return required, maximum


class StepCatalog:
    """Registry of step bindings with tag-scoped lookup"""

    def __init__(self, parameter_types: Optional[ParameterTypeRegistry] = None):
        self.parameter_types = parameter_types or ParameterTypeRegistry()
        self.compiler = PatternCompiler(self.parameter_types)
        self._bindings: Dict[StepCategory, List[StepBinding]] = {category: [] for category in StepCategory}
        self.registration_errors: List[Exception] = []

    # Registration

    def given(self, pattern: str, handler: Optional[Handler] = None, tags: Optional[Iterable[str]] = None):
        return self._register_or_decorate(StepCategory.GIVEN, pattern, handler, tags)

    def when(self, pattern: str, handler: Optional[Handler] = None, tags: Optional[Iterable[str]] = None):
        return self._register_or_decorate(StepCategory.WHEN, pattern, handler, tags)

    def then(self, pattern: str, handler: Optional[Handler] = None, tags: Optional[Iterable[str]] = None):
        return self._register_or_decorate(StepCategory.THEN, pattern, handler, tags)

    def any(self, pattern: str, handler: Optional[Handler] = None, tags: Optional[Iterable[str]] = None):
        """Universal step: matches whatever keyword the step line uses"""
        return self._register_or_decorate(StepCategory.ANY, pattern, handler, tags)

    step = any

    def _register_or_decorate(self, category: StepCategory, pattern: str,
                              handler: Optional[Handler], tags: Optional[Iterable[str]]):
        if handler is not None:
            return self.register(category, pattern, handler, tags)

        def decorator(func: Handler) -> Handler:
            self.register(category, pattern, func, tags)
            return func
        return decorator

    def register(self, category: StepCategory, pattern: str, handler: Handler,
                 tags: Optional[Iterable[str]] = None) -> StepBinding:
        """Compile a pattern and add its binding; compile and arity errors are logged and raised"""
        try:
            compiled = self.compiler.compile(pattern)
            accepts_argument, requires_argument = self._check_arity(pattern, compiled, handler)
        except (PatternCompileError, StepDefinitionError) as e:
            logger.error(f"Could not register {category.value} step '{pattern}': {e}")
            self.registration_errors.append(e)
            raise

        binding = StepBinding(
            pattern=pattern,
            compiled=compiled,
            handler=handler,
            category=category,
            accepts_argument=accepts_argument,
            requires_argument=requires_argument,
        )
        if tags:
            binding.for_tags(tags)

        self._bindings[category].append(binding)
        logger.debug(f"Registered step: {binding.describe()}")
        return binding

    @staticmethod
    def _check_arity(pattern: str, compiled: CompiledPattern, handler: Handler) -> Tuple[bool, bool]:
        """Validate the handler takes (context, *params[, argument]); returns (accepts, requires) argument"""
        if not callable(handler):
            raise StepDefinitionError(f"Handler for '{pattern}' is not callable")

        expected = 1 + compiled.parameter_count
        required, maximum = _inspect_arity(handler)
        name = getattr(handler, '__name__', repr(handler))

        if required < 0:
            raise StepDefinitionError(f"Handler '{name}' for '{pattern}' has required keyword-only parameters")
        if maximum is not None and maximum < expected:
            raise StepDefinitionError(
                f"Handler '{name}' for '{pattern}' takes {maximum} positional parameters, "
                f"expected context plus {compiled.parameter_count} step parameters")
        if required > expected + 1:
            raise StepDefinitionError(
                f"Handler '{name}' for '{pattern}' requires {required} parameters, "
                f"at most {expected + 1} can be supplied")

        accepts_argument = maximum is None or maximum > expected
        requires_argument = required > expected
        return accepts_argument, requires_argument

    def register_steps_from_config(self, steps: List[Dict[str, Any]], handlers: Dict[str, Handler]) -> List[StepBinding]:
        """Register bindings declared as {keyword, pattern, handler, tags} mappings; bad entries are skipped"""
        registered = []
        for step_config in steps:
            keyword = str(step_config.get('keyword', 'any')).strip().lower()
            pattern = step_config.get('pattern')
            handler_name = step_config.get('handler')

            try:
                category = StepCategory(keyword)
            except ValueError:
                error = StepDefinitionError(
                    f"Unknown step keyword '{keyword}' for '{pattern}', "
                    f"expected one of {[c.value for c in StepCategory]}")
                logger.error(f"Skipping step mapping: {error}")
                self.registration_errors.append(error)
                continue

            if not pattern or handler_name not in handlers:
                logger.warning(f"Skipping step mapping without pattern or known handler: {step_config}")
                continue

            try:
                registered.append(self.register(category, pattern, handlers[handler_name], step_config.get('tags')))
            except (PatternCompileError, StepDefinitionError):
                # already logged and recorded by register()
                continue
        return registered

    # Parameter types

    def define_type(self, name: str, sub_pattern: str, transform: Optional[Transform] = None) -> ParameterType:
        return self.parameter_types.define_type(name, sub_pattern, transform)

    def register_parameter_types_from_config(self, entries: List[Dict[str, Any]]) -> List[ParameterType]:
        return self.parameter_types.define_from_config(entries)

    # Lookup

    def _candidate_pool(self, keyword: Union[StepKeyword, StepCategory, str]) -> List[StepBinding]:
        category = self._category_for(keyword)
        if category is None or category is StepCategory.ANY:
            categories = [StepCategory.GIVEN, StepCategory.WHEN, StepCategory.THEN, StepCategory.ANY]
        else:
            categories = [category, StepCategory.ANY]

        pool: List[StepBinding] = []
        for item in categories:
            pool.extend(self._bindings[item])
        return pool

    @staticmethod
    def _category_for(keyword: Union[StepKeyword, StepCategory, str]) -> Optional[StepCategory]:
        if isinstance(keyword, StepCategory):
            return keyword
        if isinstance(keyword, str):
            text = keyword.strip()
            keyword = next((k for k in StepKeyword if k.value.lower() == text.lower()), None)
            if keyword is None:
                return None
        return KEYWORD_CATEGORIES.get(keyword)

    def find(self, keyword: Union[StepKeyword, StepCategory, str], text: str,
             active_tags: Iterable[str] = ()) -> Optional[StepBinding]:
        """Resolve a step line to one binding; scoped matches win over unscoped ones"""
        active = frozenset(active_tags)
        fallback: Optional[StepBinding] = None

        for binding in self._candidate_pool(keyword):
            if not binding.compiled.matches(text):
                continue
            if binding.is_scoped:
                if binding.in_scope(active):
                    return binding
            elif fallback is None:
                fallback = binding

        return fallback

    def find_all(self, keyword: Union[StepKeyword, StepCategory, str], text: str,
                 active_tags: Optional[Iterable[str]] = None) -> List[StepBinding]:
        """Every binding matching the text; with active_tags, only those eligible in that context"""
        active = frozenset(active_tags) if active_tags is not None else None
        matches = []
        for binding in self._candidate_pool(keyword):
            if not binding.compiled.matches(text):
                continue
            if active is not None and binding.is_scoped and not binding.in_scope(active):
                continue
            matches.append(binding)
        return matches

    # Introspection

    @property
    def bindings(self) -> List[StepBinding]:
        return [binding for category in StepCategory for binding in self._bindings[category]]

    def __len__(self) -> int:
        return sum(len(bindings) for bindings in self._bindings.values())

    def get_available_patterns(self) -> List[str]:
        """Sorted list of every registered pattern"""
        return sorted({binding.pattern for binding in self.bindings})

    def describe_mapping(self, pattern: str) -> List[Dict[str, Any]]:
        """Describe the bindings registered for a pattern"""
        return [
            {
                'pattern': binding.pattern,
                'keyword': binding.category.value,
                'parameters': [parameter_type.name for parameter_type in binding.compiled.parameter_types],
                'tags': sorted(binding.scope_tags),
                'location': binding.location,
            }
            for binding in self.bindings
            if binding.pattern == pattern
        ]
