"""
Step pattern compiler.

Turns human-readable patterns such as ``I have {int} cucumber(s) in my belly/stomach``
into full-line regular expressions plus the ordered list of parameter types.

Supported syntax, read in a single left-to-right scan:

- ``{name}``   capture using the named parameter type (``{}`` is free text)
- ``(text)``   optional literal text
- ``a/b``      alternation between the word before and the word after the slash
- ``\\x``       the character ``x`` taken literally

Each placeholder gets its own named group (``p0``, ``p1``, ...), so groups inside a
parameter type's fragment never shift the mapping from captures to placeholders.
"""

import re
from dataclasses import dataclass
from typing import Any, List, Optional, Tuple

from wisebdd.core.exceptions import PatternCompileError
from wisebdd.parser.parameter_types import ParameterType, ParameterTypeRegistry
from wisebdd.utils.logger import setup_logger

logger = setup_logger(__name__)

# Characters that end an alternative word
_WORD_BREAK = set(' \t{}()/\\')


@dataclass(frozen=True)
class CompiledPattern:
    source: str
    regex: re.Pattern
    parameter_types: Tuple[ParameterType, ...]
    warnings: Tuple[str, ...] = ()

    @property
    def parameter_count(self) -> int:
        return len(self.parameter_types)

    def match(self, text: str) -> Optional[List[Any]]:
        """Match the whole step text; returns typed arguments or None"""
        found = self.regex.fullmatch(text)
        if found is None:
            return None
        return [
            parameter_type.convert(found.group(f"p{index}"))
            for index, parameter_type in enumerate(self.parameter_types)
        ]

    def matches(self, text: str) -> bool:
        return self.regex.fullmatch(text) is not None


class PatternCompiler:
    """Compile step patterns against a parameter type registry"""

    def __init__(self, registry: Optional[ParameterTypeRegistry] = None):
        self.registry = registry or ParameterTypeRegistry()

    def compile(self, pattern: str) -> CompiledPattern:
        scan = _Scan(pattern, self.registry)
        body = scan.run()
        try:
            regex = re.compile(body)
        except re.error as e:
            raise PatternCompileError(f"Generated expression is invalid ({e})", pattern) from e

        for warning in scan.warnings:
            logger.warning(f"Ambiguous step pattern {pattern!r}: {warning}")

        return CompiledPattern(
            source=pattern,
            regex=regex,
            parameter_types=tuple(scan.parameter_types),
            warnings=tuple(scan.warnings),
        )


class _Scan:
    """State of one left-to-right pass over a pattern"""

    def __init__(self, pattern: str, registry: ParameterTypeRegistry):
        self.pattern = pattern
        self.registry = registry
        self.pieces: List[str] = []
        self.literal: List[str] = []
        self.parameter_types: List[ParameterType] = []
        self.warnings: List[str] = []
        self.position = 0
        # What was emitted last: 'literal', 'optional', 'parameter', 'alternation' or None
        self.last_emitted: Optional[str] = None

    def run(self) -> str:
        pattern = self.pattern
        while self.position < len(pattern):
            char = pattern[self.position]
            if char == '\\' and self.position + 1 < len(pattern):
                self._add_literal(pattern[self.position + 1])
                self.position += 2
            elif char == '{':
                self._placeholder()
            elif char == '(':
                self._optional()
            elif char == '/':
                self._alternation()
            else:
                self._add_literal(char)
                self.position += 1
        self._flush()
        return ''.join(self.pieces)

    def _add_literal(self, char: str) -> None:
        self.literal.append(char)
        self.last_emitted = 'literal'

    def _flush(self) -> None:
        if self.literal:
            self.pieces.append(re.escape(''.join(self.literal)))
            self.literal = []

    def _emit(self, piece: str, kind: str) -> None:
        self._flush()
        self.pieces.append(piece)
        self.last_emitted = kind

    def _placeholder(self) -> None:
        start = self.position
        end = self.pattern.find('}', start + 1)
        if end == -1:
            raise PatternCompileError("Unclosed placeholder", self.pattern, start)

        name = self.pattern[start + 1:end].strip()
        parameter_type = self.registry.lookup(name)
        if parameter_type is None:
            raise PatternCompileError(f"Unknown parameter type '{name}'", self.pattern, start)

        group = f"p{len(self.parameter_types)}"
        self.parameter_types.append(parameter_type)
        self._emit(f"(?P<{group}>{parameter_type.regexp})", 'parameter')
        self.position = end + 1

    def _optional(self) -> None:
        start = self.position
        end = self.pattern.find(')', start + 1)
        if end == -1:
            raise PatternCompileError("Unclosed optional group", self.pattern, start)

        if self.last_emitted == 'alternation' or (start > 0 and self.pattern[start - 1] == '/'):
            self.warnings.append(f"optional group at offset {start} directly follows an alternation")

        text = self.pattern[start + 1:end]
        self._emit(f"(?:{re.escape(text)})?", 'optional')
        self.position = end + 1

    def _alternation(self) -> None:
        start = self.position
        following = self.pattern[start + 1] if start + 1 < len(self.pattern) else ''
        word = self._trailing_word()

        if self.last_emitted == 'optional':
            self.warnings.append(f"alternation at offset {start} directly follows an optional group")

        if not word or not following or following in _WORD_BREAK:
            # No word on one side of the slash: keep it as plain text
            self._add_literal('/')
            self.position += 1
            return

        alternatives = [word]
        position = start
        while position < len(self.pattern) and self.pattern[position] == '/':
            position += 1
            alternative = []
            while position < len(self.pattern) and self.pattern[position] not in _WORD_BREAK:
                alternative.append(self.pattern[position])
                position += 1
            if not alternative:
                self.warnings.append(f"empty alternative at offset {position - 1}")
            alternatives.append(''.join(alternative))

        del self.literal[len(self.literal) - len(word):]
        self._emit('(?:' + '|'.join(re.escape(a) for a in alternatives) + ')', 'alternation')
        self.position = position

    def _trailing_word(self) -> str:
        """Characters of the pending literal run since the last whitespace or slash"""
        if self.last_emitted != 'literal':
            return ''
        word: List[str] = []
        for char in reversed(self.literal):
            if char in (' ', '\t', '/'):
                break
            word.append(char)
        return ''.join(reversed(word))


def compile_pattern(pattern: str, registry: Optional[ParameterTypeRegistry] = None) -> CompiledPattern:
    """Quick utility to compile a single pattern"""
    return PatternCompiler(registry).compile(pattern)
