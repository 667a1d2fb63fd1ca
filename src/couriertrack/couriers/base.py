from __future__ import annotations

import os
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Sequence, Union

import httpx

from ..config import missing_env_vars
from ..models import TrackingInfo
from ..utils import get_with_retries, async_get_with_retries


class CourierError(RuntimeError):
    """Base class for courier lookup and normalization failures."""


class MissingCredentialsError(CourierError):
    """Raised when required courier credentials are not configured."""


class UnknownCourierError(CourierError):
    """Raised when no registered courier matches a code or tracking number."""


class CourierParseError(CourierError):
    """Raised when a courier response cannot be parsed or normalized."""

    def __init__(self, message: str, *, body: Optional[str] = None) -> None:
        super().__init__(message)
        self.body = body


class TrackingNotFoundError(CourierParseError):
    """Raised when the response holds no shipment for the tracking number."""

    def __init__(self, message: str, *, shipment: Any = None, body: Optional[str] = None) -> None:
        super().__init__(message, body=body)
        self.shipment = shipment


class CourierBase(ABC):
    """
    Capability record shared by all couriers.

    Subclasses provide the request issuer and the response parser; track()
    and track_async() simply chain the two.
    """

    # Display name and machine-readable code (e.g., "UPS", "ups"). Override in subclass.
    name: str = "Unknown"
    code: str = "unknown"

    # Environment variables the request issuer needs
    required_env_vars: Sequence[str] = ()

    # Courier codes reported by tracking_numbers.get_tracking_number() that
    # this courier handles
    tracking_number_couriers: Sequence[str] = ()

    # Shared defaults
    timeout: float = 20.0
    user_agent: str = "couriertrack/0.1"

    # --- Core contract ---
    @abstractmethod
    def request(
        self, tracking_number: str, *, client: Optional[httpx.Client] = None
    ) -> httpx.Response:
        """Fetch the raw tracking response (synchronous)."""
        raise NotImplementedError

    @abstractmethod
    async def request_async(
        self, tracking_number: str, *, client: Optional[httpx.AsyncClient] = None
    ) -> httpx.Response:
        """Fetch the raw tracking response (asynchronous)."""
        raise NotImplementedError

    @abstractmethod
    def parse(self, response: Union[httpx.Response, str], **kwargs: Any) -> TrackingInfo:
        """Normalize a raw response into TrackingInfo. Never performs I/O."""
        raise NotImplementedError

    def track(
        self, tracking_number: str, *, client: Optional[httpx.Client] = None
    ) -> TrackingInfo:
        return self.parse(self.request(tracking_number, client=client))

    async def track_async(
        self, tracking_number: str, *, client: Optional[httpx.AsyncClient] = None
    ) -> TrackingInfo:
        response = await self.request_async(tracking_number, client=client)
        return self.parse(response)

    # --- Helpers ---
    def build_headers(
        self,
        *,
        accept: str = "application/json",
        extra: Optional[Dict[str, str]] = None,
    ) -> Dict[str, str]:
        """Construct default headers with optional extra fields."""
        headers = {"User-Agent": self.user_agent, "Accept": accept}
        if extra:
            headers.update(extra)
        return headers

    def get(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.Client] = None,
    ) -> httpx.Response:
        """HTTP GET with retries/timeouts via shared utility."""
        return get_with_retries(url, headers=headers, timeout=self.timeout, client=client)

    async def aget(
        self,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> httpx.Response:
        """Async HTTP GET with retries/timeouts via shared utility."""
        return await async_get_with_retries(
            url, headers=headers, timeout=self.timeout, client=client
        )

    def missing_env_vars(self) -> List[str]:
        return missing_env_vars(self.required_env_vars)

    def ensure_configured(self) -> None:
        """Raise MissingCredentialsError listing every unset required variable."""
        missing = self.missing_env_vars()
        if missing:
            raise MissingCredentialsError(
                f"Missing required environment variable(s) for {self.name}: "
                f"{', '.join(missing)}. Add them to your environment or .env file."
            )

    def ensure_credential(self, env_var: str) -> str:
        """Fetch a required credential from environment or raise a helpful error."""
        val = os.getenv(env_var)
        if not val:
            raise MissingCredentialsError(
                f"{env_var} is not set. Add it to your environment or .env file."
            )
        return val

    def __repr__(self) -> str:
        return f"<{type(self).__name__} code={self.code!r}>"
