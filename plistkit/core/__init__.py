from .types import (
    DiffMode,
    DiffOptions,
    DiffRecord,
    ForcedStep,
    Kind,
    ResultKind,
    TypeToken,
    Value,
)
from .errors import PlistError

__all__ = [
    "Value",
    "Kind",
    "TypeToken",
    "ForcedStep",
    "DiffMode",
    "DiffOptions",
    "DiffRecord",
    "ResultKind",
    "PlistError",
]
