"""
Domain Ports - Hexagonal architecture interfaces.

Ports define contracts that infrastructure adapters implement.
"""

from erp_client.domain.ports.credential_store_port import CredentialStorePort
from erp_client.domain.ports.transport_port import DuplexTransportPort

__all__ = [
    "CredentialStorePort",
    "DuplexTransportPort",
]
