"""
Clientes para comunicación con el backend de gestión
"""
from .manager_api_client import ManagerApiClient, manager_api

__all__ = [
    "ManagerApiClient",
    "manager_api"
]
