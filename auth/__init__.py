"""
Auth Module
"""
from .credentials import (
    CredentialProvider,
    StaticCredentialProvider,
    SessionFileCredentialProvider,
)

__all__ = [
    "CredentialProvider",
    "StaticCredentialProvider",
    "SessionFileCredentialProvider",
]
