"""
Abstract Base Class for regulatory document API clients.

This module defines the contract the sync orchestrator relies on when it talks
to a versioned regulatory source. The orchestrator needs exactly four things:
the agency catalog, the title catalog, the latest date for which content is
published, and a streamed full-text body for one title on one date. Anything
that provides those (the live eCFR client, or a stub in tests) can drive a
sync pass.

Key Components:
    - RegulatoryAPIClient: Abstract base class defining the client interface

Design Patterns:
    - Abstract Base Class (ABC): Enforces implementation of required methods
    - Template Method: Common initialization logic with customization points

Python Learning Notes:
    - ABC (Abstract Base Class): Forces subclasses to implement abstract methods
    - @abstractmethod works on async def methods too; subclasses must
      override them with coroutines
    - Type hints: Improves code clarity and enables static type checking
"""

import re
from abc import ABC, abstractmethod
from datetime import datetime
from typing import AsyncIterable, List

from .schema import AgencyRecord, TitleRecord

DATE_PATTERN = re.compile(r"^\d{4}-\d{2}-\d{2}$")


class RegulatoryAPIClient(ABC):
    """
    Abstract base class for versioned regulatory document clients.

    Subclasses must implement:
        - _get_base_url(): Return the API's base URL
        - get_agencies(): Agency catalog, top-level entries with children
        - get_titles(): Title catalog
        - get_latest_available_date(): Most recent content date (YYYY-MM-DD)
        - stream_title_content(): Full-text body of one title as byte chunks

    Common functionality provided:
        - Base URL setup in __init__
        - Date format validation

    Failure contract:
        Catalog methods raise on failure (TransientFetchError or
        MalformedContent) so the caller can switch to a fallback.
        stream_title_content never raises for an unreachable body; it serves
        a placeholder and marks the stream degraded instead.

    Python Learning Notes:
        - Abstract methods: Must be overridden in subclasses
        - Template Method pattern: Common algorithm with customization points
    """

    def __init__(self):
        self.base_url = self._get_base_url()

    @abstractmethod
    def _get_base_url(self) -> str:
        """
        Return the base URL for the API, including protocol and domain,
        without a trailing slash (e.g. "https://www.ecfr.gov").
        """
        pass

    @abstractmethod
    async def get_agencies(self) -> List[AgencyRecord]:
        """
        Return the agency catalog.

        Returns:
            List[AgencyRecord]: Top-level agencies in catalog order, with
                child agencies nested under children.
        """
        pass

    @abstractmethod
    async def get_titles(self) -> List[TitleRecord]:
        """
        Return the title catalog.

        Returns:
            List[TitleRecord]: Every title, including reserved ones.
        """
        pass

    @abstractmethod
    async def get_latest_available_date(self) -> str:
        """
        Return the most recent date (YYYY-MM-DD) for which content exists.
        """
        pass

    @abstractmethod
    def stream_title_content(self, title_number: int, date: str) -> AsyncIterable[bytes]:
        """
        Return the full-text body of a title as an async iterable of bytes.

        Args:
            title_number (int): CFR title number.
            date (str): Content date in YYYY-MM-DD format.

        Returns:
            AsyncIterable[bytes]: Chunks of the body. Implementations expose
                a `degraded` attribute that is True when placeholder content
                was served instead of the real body.
        """
        pass

    def validate_date_format(self, date_str: str) -> None:
        r"""
        Validate that a date string follows the YYYY-MM-DD format and is a valid date.

        Args:
            date_str (str): Date string to validate, e.g. "2024-01-15".

        Raises:
            ValueError: If the date string doesn't match YYYY-MM-DD format or
                       represents an invalid date.

        Examples:
            >>> client.validate_date_format("2024-01-15")  # Valid, no exception
            >>> client.validate_date_format("01/15/2024")  # Raises ValueError
            >>> client.validate_date_format("2024-13-45")  # Raises ValueError

        Python Learning Notes:
            - re.match(): Checks if pattern matches from start of string
            - datetime.strptime(): Parses string to datetime, validates date
        """
        if not DATE_PATTERN.match(date_str):
            raise ValueError(
                f"Date '{date_str}' does not match required format YYYY-MM-DD"
            )

        # Validate the date is actually valid (not 2024-13-45, etc.)
        try:
            datetime.strptime(date_str, "%Y-%m-%d")
        except ValueError as e:
            raise ValueError(f"Invalid date '{date_str}': {str(e)}") from e
