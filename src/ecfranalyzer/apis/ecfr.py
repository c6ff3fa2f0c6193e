"""
eCFR API client for agency catalogs, title catalogs and full title text.

This module provides the concrete RegulatoryAPIClient for the Electronic Code
of Federal Regulations (https://www.ecfr.gov). The eCFR is the continuously
updated online edition of the Code of Federal Regulations, organized into 50
numbered titles, each published as a versioned XML document per issue date.

Key Features:
    - No authentication required (public API)
    - Catalog responses cached for one hour through the shared ResponseCache
    - Retry with increasing backoff on network errors and non-2xx responses
    - Streaming download of full title XML (tens of megabytes for large titles)
    - Placeholder content for unreachable title bodies, flagged as degraded

Endpoints Used:
    - /api/admin/v1/agencies.json: agency catalog with CFR references
    - /api/versioner/v1/titles.json: title catalog with latest issue dates
    - /api/versioner/v1/full/{date}/title-{n}.xml: full text of one title
    - /api/versioner/v1/structure/{date}/title-{n}.json: table of contents
    - /api/versioner/v1/versions/title-{n}.json: content version history
    - /api/admin/v1/corrections.json: corrections (errata) feed

API Documentation:
    https://www.ecfr.gov/developers/documentation/api/v1

Python Learning Notes:
    - Class inheritance: Extends RegulatoryAPIClient functionality
    - Composition: HTTP concerns are delegated to RemoteDataClient
    - Memoization: the latest available date is looked up once per client
"""

import logging
from typing import Any, Dict, List, Optional

from ..errors import MalformedContent, TransientFetchError
from ..utils.config import SyncConfig, get_config
from .base import RegulatoryAPIClient
from .cache import ResponseCache
from .remote import ContentStream, RemoteDataClient
from .schema import (
    AgencyRecord,
    TitleRecord,
    parse_agency_catalog,
    parse_title_catalog,
)

logger = logging.getLogger(__name__)


class ECFRClient(RegulatoryAPIClient):
    """
    Client for the eCFR admin and versioner APIs.

    All JSON endpoints go through RemoteDataClient.fetch (cached, retried,
    raising TransientFetchError when exhausted). Title bodies go through
    RemoteDataClient.fetch_stream and are never cached.

    Attributes:
        config (SyncConfig): Settings for URLs, retries and cache TTL.
        remote (RemoteDataClient): HTTP layer shared by all requests.

    Example Usage:
        >>> async with ECFRClient() as client:
        ...     titles = await client.get_titles()
        ...     date = await client.get_latest_available_date()
        ...     stream = client.stream_title_content(titles[0].number, date)
        ...     async for chunk in stream:
        ...         ...
    """

    AGENCIES_PATH = "/api/admin/v1/agencies.json"
    TITLES_PATH = "/api/versioner/v1/titles.json"
    CORRECTIONS_PATH = "/api/admin/v1/corrections.json"

    def __init__(
        self,
        config: Optional[SyncConfig] = None,
        remote: Optional[RemoteDataClient] = None,
    ):
        """
        Initialize the eCFR client.

        Args:
            config (Optional[SyncConfig]): Settings; defaults to get_config().
            remote (Optional[RemoteDataClient]): Pre-built HTTP layer, e.g. one
                sharing a cache with another client. Built from config when
                omitted.
        """
        self.config = config or get_config()
        super().__init__()
        self.remote = remote or RemoteDataClient(
            base_url=self.base_url,
            cache=ResponseCache(ttl_seconds=self.config.cache_ttl),
            max_attempts=self.config.max_attempts,
            backoff_base=self.config.retry_backoff,
            timeout=self.config.request_timeout,
            headers={"User-Agent": self.config.user_agent},
        )
        self._latest_available_date: Optional[str] = None

    def _get_base_url(self) -> str:
        return self.config.base_url

    async def __aenter__(self) -> "ECFRClient":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.remote.aclose()

    async def get_agencies(self) -> List[AgencyRecord]:
        """
        Fetch the agency catalog.

        Raises:
            TransientFetchError: When the endpoint stays unreachable.
            MalformedContent: When the response has no agencies list.
        """
        logger.info("Fetching agencies from eCFR API...")
        payload = await self.remote.fetch(self.AGENCIES_PATH)
        agencies = parse_agency_catalog(payload)
        logger.info(f"Successfully fetched {len(agencies)} agencies")
        return agencies

    async def get_titles(self) -> List[TitleRecord]:
        """
        Fetch the title catalog.

        Raises:
            TransientFetchError: When the endpoint stays unreachable.
            MalformedContent: When the response has no titles list.
        """
        logger.info("Fetching titles from eCFR API...")
        payload = await self.remote.fetch(self.TITLES_PATH)
        titles = parse_title_catalog(payload)
        logger.info(f"Successfully fetched {len(titles)} titles")
        return titles

    async def get_latest_available_date(self) -> str:
        """
        Return the newest latest_issue_date across all titles.

        The title catalog is already cached, so this normally costs no extra
        request. If the catalog cannot be read, the configured fallback date
        is returned (and not memoized, so a later call can try again).
        """
        if self._latest_available_date:
            return self._latest_available_date

        try:
            titles = await self.get_titles()
        except (TransientFetchError, MalformedContent) as e:
            logger.error(
                f"Error getting latest available date, using {self.config.fallback_date}: {e}"
            )
            return self.config.fallback_date

        latest = max(
            (t.latest_issue_date for t in titles if t.latest_issue_date),
            default=self.config.fallback_date,
        )
        logger.info(f"Found latest available date: {latest}")
        self._latest_available_date = latest
        return latest

    def stream_title_content(self, title_number: int, date: str) -> ContentStream:
        """
        Stream the full XML of one title as of a given date.

        Args:
            title_number (int): CFR title number.
            date (str): Issue date in YYYY-MM-DD format.

        Returns:
            ContentStream: Byte chunks of the XML. If the body is unreachable
                the stream yields a minimal placeholder document naming the
                title and sets degraded to True.

        Raises:
            ValueError: If date is not a valid YYYY-MM-DD string.
        """
        self.validate_date_format(date)
        placeholder = (
            f"<TITLE>{title_number}</TITLE><CONTENT>Content temporarily unavailable "
            f"for title {title_number}</CONTENT>"
        ).encode("utf-8")
        return self.remote.fetch_stream(
            f"/api/versioner/v1/full/{date}/title-{title_number}.xml",
            placeholder=placeholder,
        )

    async def get_title_content(self, title_number: int, date: Optional[str] = None) -> str:
        """
        Fetch the full XML of one title as a single string.

        Prefer stream_title_content() for counting; this whole-buffer variant
        exists for callers that need the document itself (it is cached).

        Raises:
            TransientFetchError: When the body stays unreachable.
        """
        date = date or await self.get_latest_available_date()
        self.validate_date_format(date)
        logger.info(f"Fetching content for title {title_number} on date {date}...")
        return await self.remote.fetch(
            f"/api/versioner/v1/full/{date}/title-{title_number}.xml",
            response_format="text",
        )

    async def get_title_structure(
        self, title_number: int, date: Optional[str] = None
    ) -> Dict[str, Any]:
        """Fetch the table-of-contents structure of one title."""
        date = date or await self.get_latest_available_date()
        self.validate_date_format(date)
        return await self.remote.fetch(
            f"/api/versioner/v1/structure/{date}/title-{title_number}.json"
        )

    async def get_title_versions(self, title_number: int) -> List[Dict[str, Any]]:
        """
        Fetch the content version history of one title.

        Returns:
            List[Dict[str, Any]]: Entries of content_versions, each with a date,
                the amended section identifier and its part.
        """
        payload = await self.remote.fetch(
            f"/api/versioner/v1/versions/title-{title_number}.json"
        )
        if not isinstance(payload, dict):
            raise MalformedContent(f"Versions payload for title {title_number} is not an object")
        return payload.get("content_versions", [])

    async def get_corrections(
        self,
        title_number: Optional[int] = None,
        date: Optional[str] = None,
        error_corrected_date: Optional[str] = None,
    ) -> List[Dict[str, Any]]:
        """
        Fetch eCFR corrections, optionally for one title or date.

        Args:
            title_number (Optional[int]): Restrict to one title.
            date (Optional[str]): Corrections in effect on this date.
            error_corrected_date (Optional[str]): Corrections made on this date.

        Returns:
            List[Dict[str, Any]]: The ecfr_corrections entries.
        """
        params: Dict[str, Any] = {}
        for name, value in (("date", date), ("error_corrected_date", error_corrected_date)):
            if value:
                self.validate_date_format(value)
                params[name] = value

        if title_number is not None:
            resource = f"/api/admin/v1/corrections/title/{title_number}.json"
        else:
            resource = self.CORRECTIONS_PATH

        payload = await self.remote.fetch(resource, params=params or None)
        if not isinstance(payload, dict):
            raise MalformedContent("Corrections payload is not an object")
        return payload.get("ecfr_corrections", [])
