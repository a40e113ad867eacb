"""Matsu backend client: transport, schema adapters, condition parsing."""

from src.backend.adapters import (
    BackendAdapter,
    FallbackAdapter,
    FormulaAdapter,
    LegacyAdapter,
    create_adapter,
)
from src.backend.conditions import ParsedCondition, format_condition, parse_condition
from src.backend.exceptions import (
    BackendAuthError,
    BackendConnectionError,
    BackendError,
    BackendParseError,
    BackendResponseError,
    ConditionSyntaxError,
)
from src.backend.transport import BackendTransport, Session

__all__ = [
    "BackendAdapter",
    "BackendAuthError",
    "BackendConnectionError",
    "BackendError",
    "BackendParseError",
    "BackendResponseError",
    "BackendTransport",
    "ConditionSyntaxError",
    "FallbackAdapter",
    "FormulaAdapter",
    "LegacyAdapter",
    "ParsedCondition",
    "Session",
    "create_adapter",
    "format_condition",
    "parse_condition",
]
