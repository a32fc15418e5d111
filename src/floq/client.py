"""Thin synchronous client for the Floq REST/RPC API.

:class:`FloqClient` wraps :class:`httpx.Client` and adds:

- **Bearer auth** -- every request carries ``Authorization: Bearer <token>``
  built from the :class:`~floq.models.User` session. The client never sees
  the refresh token.
- **Error mapping** -- 401/403, 404, 5xx and network failures become the
  matching :class:`~floq.exceptions.FloqError` subclass.
- **Request shaping** -- one method per endpoint the CLI uses.

Example::

    with FloqClient.from_user(user, settings) as client:
        projects = client.get_projects()
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

import httpx
from pydantic import BaseModel, TypeAdapter, ValidationError

from floq.config import Settings
from floq.exceptions import AuthError, ConnectionError_, FloqError, NotFoundError, ServerError
from floq.models import (
    Customer,
    Employee,
    EmployeeResponse,
    Project,
    ProjectTimestamp,
    User,
)
from floq.output import debug
from floq.timestamps import week_end


class _PeriodProjectRow(BaseModel):
    id: str
    name: str
    active: bool = True
    customer_id: str
    customer_name: str

    def to_project(self) -> Project:
        return Project(
            id=self.id,
            name=self.name,
            active=self.active,
            customer=Customer(id=self.customer_id, name=self.customer_name),
        )


class _DayProjectRow(BaseModel):
    id: str
    project: str
    customer: str
    minutes: int

    def to_project_timestamp(self, day: dt.date) -> ProjectTimestamp:
        return ProjectTimestamp(
            project_id=self.id,
            project_name=self.project,
            customer_name=self.customer,
            date=day,
            minutes=self.minutes,
        )


class _TimeEntryRow(BaseModel):
    minutes: int


class FloqClient:
    """Synchronous Floq API client. Must be used as a context manager.

    Args:
        settings: Supplies ``api_url`` and the request timeout.
        access_token: Bearer token for every request.
        employee_id: The logged-in employee. Only ``who_am_i`` works
            without it.
        transport: Optional httpx transport (tests use
            :class:`httpx.MockTransport`).
    """

    def __init__(
        self,
        settings: Settings,
        access_token: str,
        employee_id: Optional[int] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._access_token = access_token
        self._employee_id = employee_id
        self._transport = transport
        self._client: Optional[httpx.Client] = None

    @classmethod
    def from_user(
        cls,
        user: User,
        settings: Settings,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> FloqClient:
        return cls(settings, user.access_token, user.employee_id, transport=transport)

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> FloqClient:
        self._client = httpx.Client(
            base_url=self._settings.api_url,
            timeout=self._settings.request_timeout,
            headers={
                "Accept": "application/json",
                "Authorization": f"Bearer {self._access_token}",
            },
            transport=self._transport,
        )
        return self

    def __exit__(self, *args: object) -> None:
        if self._client:
            self._client.close()
            self._client = None

    # ------------------------------------------------------------------ #
    # Endpoints
    # ------------------------------------------------------------------ #

    def who_am_i(self) -> Employee:
        """Fetch the employee the access token belongs to.

        Raises:
            FloqError: If the request fails or the answer is not exactly
                one employee.
        """
        response = self.request("POST", "/rpc/who_am_i")
        rows = self._parse(response, list[EmployeeResponse], "/rpc/who_am_i")
        if len(rows) != 1:
            raise FloqError(f"Expected exactly one employee from /rpc/who_am_i, got {len(rows)}")
        return rows[0].to_employee()

    def get_projects(self) -> list[Project]:
        """All projects, active or not."""
        response = self.request(
            "GET",
            "/projects",
            params={"select": "id,name,active,customer{id,name}"},
        )
        return self._parse(response, list[Project], "/projects")

    def get_timestamped_projects_for_employee(self, day: dt.date) -> list[Project]:
        """Projects the employee has recorded hours on recently.

        The period starts two weeks before *day* and ends on the Sunday of
        *day*'s week.
        """
        lower = day - dt.timedelta(weeks=2)
        upper = week_end(day)
        response = self.request(
            "POST",
            "/rpc/projects_info_for_employee_in_period",
            json_body={
                "employee_id": self._require_employee(),
                "date_range": f"({lower.isoformat()}, {upper.isoformat()})",
            },
        )
        rows = self._parse(response, list[_PeriodProjectRow], "/rpc/projects_info_for_employee_in_period")
        return [row.to_project() for row in rows]

    def get_timestamps_for_date(self, day: dt.date) -> list[ProjectTimestamp]:
        """Minutes per project on *day*. Projects with zero minutes are left out."""
        response = self.request(
            "POST",
            "/rpc/projects_for_employee_for_date",
            json_body={"employee_id": self._require_employee(), "date": day.isoformat()},
        )
        rows = self._parse(response, list[_DayProjectRow], "/rpc/projects_for_employee_for_date")
        return [row.to_project_timestamp(day) for row in rows if row.minutes != 0]

    def get_timestamps_for_period(self, start: dt.date, end: dt.date) -> list[ProjectTimestamp]:
        """Minutes per project per day from *start* to *end*, both inclusive."""
        if end < start:
            return []
        results: list[ProjectTimestamp] = []
        for offset in range((end - start).days + 1):
            results.extend(self.get_timestamps_for_date(start + dt.timedelta(days=offset)))
        return results

    def get_minutes_on_project(self, project_id: str, day: dt.date) -> int:
        """Total minutes already recorded on *project_id* on *day*."""
        response = self.request(
            "GET",
            "/time_entry",
            params={
                "select": "minutes",
                "employee": f"eq.{self._require_employee()}",
                "project": f"eq.{project_id}",
                "date": f"eq.{day.isoformat()}",
            },
        )
        rows = self._parse(response, list[_TimeEntryRow], "/time_entry")
        return sum(row.minutes for row in rows)

    def add_timestamp(self, project_id: str, day: dt.date, minutes: int) -> None:
        """Record *minutes* (may be negative to correct) on *project_id* for *day*.

        Raises:
            FloqError: If the API answers anything but ``201 Created``.
        """
        employee_id = self._require_employee()
        response = self.request(
            "POST",
            "/time_entry",
            json_body={
                "creator": employee_id,
                "employee": employee_id,
                "project": project_id,
                "date": day.isoformat(),
                "minutes": minutes,
            },
        )
        if response.status_code != httpx.codes.CREATED:
            raise FloqError(
                f"Expected 201 Created from POST /time_entry, got {response.status_code}"
            )

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def request(
        self,
        method: str,
        path: str,
        params: Optional[dict[str, Any]] = None,
        json_body: Optional[Any] = None,
    ) -> httpx.Response:
        """Send one request and map error statuses to exceptions.

        Raises:
            AuthError: On 401 / 403.
            NotFoundError: On 404.
            ServerError: On 5xx.
            FloqError: On any other 4xx.
            ConnectionError_: On network / timeout errors.
        """
        assert self._client is not None, "Client not initialised -- use as context manager"
        try:
            response = self._client.request(method, path, params=params, json=json_body)
        except httpx.HTTPError as exc:
            raise ConnectionError_(f"Could not reach the Floq API: {exc}") from exc

        debug(f"{method} {path} -> {response.status_code}")
        self._map_response_error(method, path, response)
        return response

    def _map_response_error(self, method: str, path: str, response: httpx.Response) -> None:
        status = response.status_code
        if status < 400:
            return

        msg = ""
        try:
            detail = response.json()
            if isinstance(detail, dict):
                msg = detail.get("message") or detail.get("error") or ""
        except ValueError:
            msg = response.text[:200] if response.text else ""

        full_msg = f"{method} {path} answered HTTP {status}" + (f": {msg}" if msg else "")
        if status in (401, 403):
            raise AuthError(f"The Floq API rejected your login ({full_msg}). Please log in again.")
        if status == 404:
            raise NotFoundError(full_msg)
        if status >= 500:
            raise ServerError(full_msg)
        raise FloqError(full_msg)

    def _parse(self, response: httpx.Response, shape: Any, path: str) -> Any:
        try:
            return TypeAdapter(shape).validate_python(response.json())
        except (ValueError, ValidationError) as exc:
            raise FloqError(f"Could not read the response from {path}") from exc

    def _require_employee(self) -> int:
        if self._employee_id is None:
            raise FloqError("No employee id available; please log in first")
        return self._employee_id
