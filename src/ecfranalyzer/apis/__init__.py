"""
API Clients Module for the eCFR.

This module provides the network layer of ECFR Analyzer: a cached, retrying
HTTP client, an abstract interface for regulatory sources, and the concrete
eCFR client the sync pass uses.

Available Components:
    - RemoteDataClient: HTTP fetch with caching, retry/backoff and streaming
    - ResponseCache: TTL cache with per-key request deduplication
    - RegulatoryAPIClient: Abstract interface the orchestrator depends on
    - ECFRClient: Agency/title catalogs and full title text from ecfr.gov

Usage Example:
    from ecfranalyzer.apis import ECFRClient

    async with ECFRClient() as client:
        agencies = await client.get_agencies()
        titles = await client.get_titles()
"""

from .base import RegulatoryAPIClient
from .cache import ResponseCache
from .ecfr import ECFRClient
from .remote import ContentStream, RemoteDataClient
from .schema import AgencyRecord, CfrReferencePayload, TitleRecord

__all__ = [
    "RegulatoryAPIClient",
    "ResponseCache",
    "ECFRClient",
    "ContentStream",
    "RemoteDataClient",
    "AgencyRecord",
    "CfrReferencePayload",
    "TitleRecord",
]
