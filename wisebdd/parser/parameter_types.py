"""Named parameter types available to step patterns as {name} placeholders"""
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional

from wisebdd.core.exceptions import ParameterTypeError
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)

Transform = Callable[[str], Any]


@dataclass(frozen=True)
class ParameterType:
    """A placeholder kind: regex fragment plus a string-to-value transform"""
    name: str
    regexp: str
    transform: Transform = str

    def convert(self, raw: str) -> Any:
        return self.transform(raw)


def _unquote(raw: str) -> str:
    quote = raw[0]
    return raw[1:-1].replace('\\' + quote, quote)


BUILTIN_TYPES = (
    ParameterType('int', r'-?\d+', int),
    ParameterType('float', r'-?(?:\d+\.\d*|\.\d+|\d+)(?:[eE][-+]?\d+)?', float),
    ParameterType('word', r'[^\s]+', str),
    ParameterType('string', r'"(?:[^"\\]|\\.)*"|\'(?:[^\'\\]|\\.)*\'', _unquote),
    ParameterType('', r'.*', str),
)

# Transform names usable from configuration files
TRANSFORMS: Dict[str, Transform] = {
    'str': str,
    'int': int,
    'float': float,
    'bool': lambda raw: raw.strip().lower() in ('true', 'yes', 'on', '1'),
}


class ParameterTypeRegistry:
    """Catalog of parameter types, seeded with the built-in kinds"""

    def __init__(self):
        self._types: Dict[str, ParameterType] = {}
        for parameter_type in BUILTIN_TYPES:
            self._types[parameter_type.name] = parameter_type

    def define_type(self, name: str, sub_pattern: str, transform: Optional[Transform] = None) -> ParameterType:
        """Register a new parameter type"""
        if name in self._types:
            raise ParameterTypeError(f"Parameter type '{name}' is already defined")
        if not re.fullmatch(r'[A-Za-z_][\w-]*', name):
            raise ParameterTypeError(f"Invalid parameter type name: {name!r}")
        try:
            compiled = re.compile(sub_pattern)
        except re.error as e:
            raise ParameterTypeError(f"Invalid regexp for parameter type '{name}': {e}") from e
        if compiled.groupindex:
            raise ParameterTypeError(f"Parameter type '{name}' must not use named groups")

        parameter_type = ParameterType(name, sub_pattern, transform or str)
        self._types[name] = parameter_type
        logger.debug(f"Defined parameter type {{{name}}} -> {sub_pattern}")
        return parameter_type

    def define_from_config(self, entries: List[Dict[str, Any]]) -> List[ParameterType]:
        """Register parameter types declared as {name, regexp, transform} mappings"""
        defined = []
        for entry in entries or []:
            name = entry.get('name')
            regexp = entry.get('regexp')
            transform_name = entry.get('transform', 'str')
            if not name or not regexp:
                raise ParameterTypeError(f"Parameter type entry needs 'name' and 'regexp': {entry}")
            if transform_name not in TRANSFORMS:
                raise ParameterTypeError(
                    f"Unknown transform '{transform_name}' for parameter type '{name}', "
                    f"expected one of {sorted(TRANSFORMS)}")
            defined.append(self.define_type(name, regexp, TRANSFORMS[transform_name]))
        return defined

    def lookup(self, name: str) -> Optional[ParameterType]:
        return self._types.get(name)

    def names(self) -> List[str]:
        return sorted(self._types)

    def __contains__(self, name: str) -> bool:
        return name in self._types
