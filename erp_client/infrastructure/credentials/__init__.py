"""Credential store adapters."""

from erp_client.infrastructure.credentials.file_store import FileCredentialStore
from erp_client.infrastructure.credentials.layered_store import LayeredCredentialStore
from erp_client.infrastructure.credentials.memory_store import InMemoryCredentialStore

__all__ = [
    "FileCredentialStore",
    "InMemoryCredentialStore",
    "LayeredCredentialStore",
]
