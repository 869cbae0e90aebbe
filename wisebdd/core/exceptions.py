"""Exception types shared across the parser, catalog and executor"""
from typing import Optional


class WiseBDDError(Exception):
    """Base class for all wisebdd errors"""


class DocumentParseError(WiseBDDError):
    """Malformed document structure, collected by the parser instead of raised"""

    def __init__(self, message: str, source: str = "<string>",
                 line: Optional[int] = None, column: Optional[int] = None):
        self.message = message
        self.source = source
        self.line = line
        self.column = column
        super().__init__(str(self))

    def __str__(self) -> str:
        position = self.source
        if self.line is not None:
            position += f":{self.line}"
            if self.column is not None:
                position += f":{self.column}"
        return f"{position}: {self.message}"


class PatternCompileError(WiseBDDError):
    """A step pattern could not be compiled"""

    def __init__(self, message: str, pattern: str, position: Optional[int] = None):
        self.message = message
        self.pattern = pattern
        self.position = position
        detail = f"{message} in pattern {pattern!r}"
        if position is not None:
            detail += f" at offset {position}"
        super().__init__(detail)


class ParameterTypeError(WiseBDDError):
    """Invalid or duplicate parameter type definition"""


class StepDefinitionError(WiseBDDError):
    """Handler signature does not fit its compiled pattern"""


class StepFailure(AssertionError):
    """Raised by step handlers to report an assertion failure"""


class PendingStepError(WiseBDDError):
    """Raised by step handlers that are not implemented yet"""


class ConfigError(WiseBDDError):
    """Configuration could not be loaded"""
