"""
Servicios del dashboard y sus dependencias de FastAPI
"""
from fastapi import Depends

from ..cache import report_cache
from ..cache.report_cache import ReportCache
from ..clients import manager_api
from ..clients.manager_api_client import ManagerApiClient
from .dispatch import DispatchService
from .exception_review import ExceptionReviewService, ReviewQueue
from .reports import ReportService


def get_manager_api() -> ManagerApiClient:
    return manager_api


def get_report_cache() -> ReportCache:
    return report_cache


def get_review_service(
    client: ManagerApiClient = Depends(get_manager_api),
    cache: ReportCache = Depends(get_report_cache)
) -> ExceptionReviewService:
    return ExceptionReviewService(client, cache)


def get_report_service(
    client: ManagerApiClient = Depends(get_manager_api),
    cache: ReportCache = Depends(get_report_cache)
) -> ReportService:
    return ReportService(client, cache)


def get_dispatch_service(
    client: ManagerApiClient = Depends(get_manager_api),
    cache: ReportCache = Depends(get_report_cache)
) -> DispatchService:
    return DispatchService(client, cache)


__all__ = [
    "DispatchService",
    "ExceptionReviewService",
    "ReportService",
    "ReviewQueue",
    "get_manager_api",
    "get_report_cache",
    "get_review_service",
    "get_report_service",
    "get_dispatch_service"
]
