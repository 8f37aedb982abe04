"""
Data Models
"""
from .schemas import (
    LANGUAGE_EXTENSIONS,
    extension_for,
    OutputFormat,
    SubResourceKind,
    ItemStatus,
    Credential,
    Item,
    Document,
    ItemDetail,
    Answer,
    SubResourceOutcome,
    Evaluation,
    FailureDetail,
    ItemResult,
    FetchConfig,
    RunSummary,
)

__all__ = [
    "LANGUAGE_EXTENSIONS",
    "extension_for",
    "OutputFormat",
    "SubResourceKind",
    "ItemStatus",
    "Credential",
    "Item",
    "Document",
    "ItemDetail",
    "Answer",
    "SubResourceOutcome",
    "Evaluation",
    "FailureDetail",
    "ItemResult",
    "FetchConfig",
    "RunSummary",
]
