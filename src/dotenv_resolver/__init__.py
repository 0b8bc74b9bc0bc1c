"""
Dotenv loading with nested variable interpolation.
"""

from .errors import CircularReferenceError, DotenvError, DotenvSyntaxError, UndefinedVariableError
from .parser import DotenvParser, ParseResult, dotenv_values, load_dotenv

__all__ = [
    "CircularReferenceError",
    "DotenvError",
    "DotenvParser",
    "DotenvSyntaxError",
    "ParseResult",
    "UndefinedVariableError",
    "dotenv_values",
    "load_dotenv",
]
