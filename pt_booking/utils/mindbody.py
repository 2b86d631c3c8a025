"""
pt_booking/utils/mindbody.py

HTTP client for the MINDBODY cache proxy.

Service → proxy → MINDBODY SOAP API

The proxy takes {service}/{method} with JSON params and answers with the
SOAP result converted to JSON (GetBookableItemsResult → ScheduleItems → ...).
No retries: transport failures surface as UpstreamUnavailable.
"""

import logging
from datetime import date
from typing import Any, Optional

import httpx

from ..exceptions import UpstreamUnavailable

logger = logging.getLogger(__name__)


class MindbodyClient:
    """Sync client for the MINDBODY cache proxy."""

    def __init__(
        self,
        base_url: str,
        site_id: str,
        username: str,
        password: str,
        timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.site_id = site_id
        self.username = username
        self.password = password
        self.timeout = timeout
        self._transport = transport

    def _credentials(self) -> dict:
        return {
            "Username": self.username,
            "Password": self.password,
            "SiteIDs": [self.site_id],
        }

    def call(self, service: str, method: str, params: Optional[dict] = None) -> dict:
        """
        POST /{service}/{method}

        Raises:
            UpstreamUnavailable: network error, HTTP status >= 400, non-JSON body.
        """
        url = f"{self.base_url}/{service}/{method}"
        body = {"UserCredentials": self._credentials(), **(params or {})}

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            try:
                resp = client.post(url, json=body)
            except httpx.HTTPError as e:
                logger.error(f"MINDBODY request failed: {service}.{method} -> {e}")
                raise UpstreamUnavailable(f"{service}.{method} unreachable") from e

            if resp.status_code >= 400:
                logger.error(f"MINDBODY error: {service}.{method} -> {resp.status_code}")
                raise UpstreamUnavailable(f"{service}.{method} returned {resp.status_code}")

            try:
                return resp.json()
            except ValueError as e:
                logger.error(f"MINDBODY invalid JSON: {service}.{method}")
                raise UpstreamUnavailable(f"{service}.{method} returned invalid JSON") from e

    # ------------------------------------------------------------------
    # AppointmentService
    # ------------------------------------------------------------------

    def get_bookable_items(
        self,
        session_type_id: int,
        location_id: int,
        start_date: date,
        end_date: date,
        staff_id: Optional[str] = None,
    ) -> Any:
        """AppointmentService.GetBookableItems → ScheduleItems payload (may be empty)."""
        params: dict[str, Any] = {
            "SessionTypeIDs": [session_type_id],
            "LocationIDs": [location_id],
            "StartDate": start_date.isoformat(),
            "EndDate": end_date.isoformat(),
        }
        if staff_id:
            params["StaffIDs"] = [staff_id]

        result = self.call("AppointmentService", "GetBookableItems", params)
        return _unwrap(result, "GetBookableItemsResult", "ScheduleItems")

    # ------------------------------------------------------------------
    # SiteService
    # ------------------------------------------------------------------

    def get_locations(self) -> list[dict]:
        """SiteService.GetLocations → Location mappings."""
        result = self.call("SiteService", "GetLocations")
        return _collection(result, "GetLocationsResult", "Locations", "Location")

    def get_programs(self, schedule_type: str = "Appointment") -> list[dict]:
        """SiteService.GetPrograms → Program mappings of a schedule type."""
        result = self.call("SiteService", "GetPrograms", {
            "OnlineOnly": False,
            "ScheduleType": schedule_type,
        })
        return _collection(result, "GetProgramsResult", "Programs", "Program")

    def get_session_types(self, program_id: Optional[int] = None) -> list[dict]:
        """SiteService.GetSessionTypes → SessionType mappings, all programs when None."""
        params: dict[str, Any] = {"OnlineOnly": False}
        if program_id is not None:
            params["ProgramIDs"] = [program_id]

        result = self.call("SiteService", "GetSessionTypes", params)
        return _collection(result, "GetSessionTypesResult", "SessionTypes", "SessionType")


# ------------------------------------------------------------------
# Payload helpers
# ------------------------------------------------------------------


def _unwrap(result: Any, *path: str) -> Any:
    """
    Walk nested result mappings along path.

    Returns None when a level is missing or empty.

    Raises:
        UpstreamUnavailable: a level is not a mapping.
    """
    node = result
    for key in path:
        if not node:
            return None
        if not isinstance(node, dict):
            logger.error(f"MINDBODY unexpected payload: {type(node).__name__} before {key}")
            raise UpstreamUnavailable(f"Unexpected MINDBODY payload before {key}")
        node = node.get(key)
    return node


def _collection(result: Any, *path: str) -> list[dict]:
    """Unwrap a SOAP collection; a single element comes back as a bare object."""
    items = _unwrap(result, *path)
    if not items:
        return []
    if isinstance(items, dict):
        return [items]
    if not isinstance(items, list):
        logger.error(f"MINDBODY unexpected collection: {type(items).__name__} at {path[-1]}")
        raise UpstreamUnavailable(f"Unexpected MINDBODY collection at {path[-1]}")
    return [item for item in items if isinstance(item, dict)]


def get_mindbody_client() -> MindbodyClient:
    """Client configured from settings (FastAPI dependency)."""
    from ..config import settings

    return MindbodyClient(
        base_url=settings.mindbody_proxy_url,
        site_id=settings.mindbody_site_id,
        username=settings.mindbody_username,
        password=settings.mindbody_password,
        timeout=settings.mindbody_timeout,
    )
