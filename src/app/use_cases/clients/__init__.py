"""Client use cases"""
from .create_client import CreateClient, GetClient
from .list_clients import ListClients
from .update_client import UpdateClient, DeleteClient
from .client_stats import GetClientStats
from .dtos import (
    CreateClientCommandDTO,
    UpdateClientCommandDTO,
    ClientResponseDTO,
    ClientSummaryDTO,
    ListClientsResponseDTO,
    ClientStatsDTO,
)

__all__ = [
    "CreateClient",
    "GetClient",
    "ListClients",
    "UpdateClient",
    "DeleteClient",
    "GetClientStats",
    "CreateClientCommandDTO",
    "UpdateClientCommandDTO",
    "ClientResponseDTO",
    "ClientSummaryDTO",
    "ListClientsResponseDTO",
    "ClientStatsDTO",
]
