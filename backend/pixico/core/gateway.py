"""
Data gateway for the hosted backend.

The backend exposes a PostgREST-style REST surface under ``/rest/v1`` and an
auth service under ``/auth/v1``. ``Gateway`` wraps both behind a small async
query builder so loaders and handlers never assemble URLs themselves.

Lifecycle:
    A gateway is constructed per request through the ``get_gateway`` /
    ``get_admin_gateway`` dependencies and closed when the request ends.
    Nothing is cached at module level.

Credential scopes:
    * ``anon``    - public anonymous key, row-level security applies.
    * ``user``    - anonymous key acting for a signed-in identity.
    * ``service`` - elevated key for administrative paths.

When the backend URL or key is missing the factories return a placeholder
handle. Every call on it raises ``GatewayConfigError`` without touching the
network, so builds and page renders degrade instead of crashing.
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, AsyncIterator, Dict, List, Optional, Tuple, Type, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pixico.core.config import Settings, settings

logger = logging.getLogger(__name__)

PLACEHOLDER_URL = "https://placeholder.supabase.co"
PLACEHOLDER_KEY = "placeholder-key"

REST_PREFIX = "/rest/v1"
AUTH_PREFIX = "/auth/v1"

ModelT = TypeVar("ModelT", bound=BaseModel)


class GatewayError(Exception):
    """The backend rejected a call or could not be reached."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        code: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code


class GatewayConfigError(GatewayError):
    """Backend credentials are not configured (placeholder handle)."""


class GatewayValidationError(GatewayError):
    """A returned row did not match its typed record."""


class AuthError(GatewayError):
    """The auth service rejected the supplied credentials or token."""


class AuthUser(BaseModel):
    id: str
    email: Optional[str] = None


class AuthSession(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[datetime] = None
    user: AuthUser

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "AuthSession":
        expires_at = None
        if payload.get("expires_at"):
            expires_at = datetime.fromtimestamp(payload["expires_at"], tz=timezone.utc)
        elif payload.get("expires_in"):
            expires_at = datetime.now(timezone.utc) + timedelta(
                seconds=int(payload["expires_in"])
            )
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=expires_at,
            user=AuthUser.model_validate(payload["user"]),
        )


def _encode_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class TableQuery:
    """
    Builder for a single table call.

    Filters and modifiers return the builder so calls chain the way the
    REST surface reads::

        rows = await (
            gateway.table("prompts")
            .select("id, title, slug")
            .eq("status", "published")
            .order("view_count", desc=True)
            .limit(6)
            .execute(model=Prompt)
        )
    """

    def __init__(self, gateway: "Gateway", table: str):
        self._gateway = gateway
        self._table = table
        self._method = "GET"
        self._columns = "*"
        self._filters: List[Tuple[str, str]] = []
        self._orders: List[str] = []
        self._limit: Optional[int] = None
        self._offset: Optional[int] = None
        self._body: Optional[Any] = None

    @property
    def table(self) -> str:
        return self._table

    # Column selection ---------------------------------------------------

    def select(self, columns: str = "*") -> "TableQuery":
        # Whitespace is insignificant in column lists, strip it for clean URLs
        self._columns = "".join(columns.split())
        return self

    # Filters ------------------------------------------------------------

    def eq(self, column: str, value: Any) -> "TableQuery":
        if value is None:
            self._filters.append((column, "is.null"))
        else:
            self._filters.append((column, f"eq.{_encode_value(value)}"))
        return self

    def neq(self, column: str, value: Any) -> "TableQuery":
        self._filters.append((column, f"neq.{_encode_value(value)}"))
        return self

    def ilike(self, column: str, pattern: str) -> "TableQuery":
        self._filters.append((column, f"ilike.{pattern}"))
        return self

    def in_(self, column: str, values: List[Any]) -> "TableQuery":
        joined = ",".join(_encode_value(v) for v in values)
        self._filters.append((column, f"in.({joined})"))
        return self

    def or_(self, expression: str) -> "TableQuery":
        self._filters.append(("or", f"({expression})"))
        return self

    # Modifiers ----------------------------------------------------------

    def order(self, column: str, desc: bool = False) -> "TableQuery":
        self._orders.append(f"{column}.{'desc' if desc else 'asc'}")
        return self

    def limit(self, count: int) -> "TableQuery":
        self._limit = count
        return self

    def range(self, start: int, end: int) -> "TableQuery":
        """Inclusive row window, matching the REST surface's Range semantics."""
        self._offset = start
        self._limit = end - start + 1
        return self

    # Mutations ----------------------------------------------------------

    def insert(self, values: Any) -> "TableQuery":
        self._method = "POST"
        self._body = values
        return self

    def update(self, values: Dict[str, Any]) -> "TableQuery":
        self._method = "PATCH"
        self._body = values
        return self

    def delete(self) -> "TableQuery":
        self._method = "DELETE"
        return self

    # Execution ----------------------------------------------------------

    def build_params(self) -> List[Tuple[str, str]]:
        params: List[Tuple[str, str]] = []
        if self._method == "GET" or self._body is not None:
            params.append(("select", self._columns))
        params.extend(self._filters)
        if self._orders:
            params.append(("order", ",".join(self._orders)))
        if self._limit is not None:
            params.append(("limit", str(self._limit)))
        if self._offset is not None:
            params.append(("offset", str(self._offset)))
        return params

    async def execute(self, model: Optional[Type[ModelT]] = None) -> List[Any]:
        """Run the call and return its rows, validated into ``model`` if given."""
        if self._method in ("PATCH", "DELETE") and not self._filters:
            raise GatewayError(
                f"Refusing unfiltered {self._method} on table '{self._table}'"
            )

        headers = {}
        if self._method != "GET":
            headers["Prefer"] = "return=representation"

        response = await self._gateway.request(
            self._method,
            f"{REST_PREFIX}/{self._table}",
            params=self.build_params(),
            json=self._body,
            headers=headers,
        )
        rows = response.json() if response.content else []
        if isinstance(rows, dict):
            rows = [rows]

        if model is None:
            return rows
        return [self._validate(model, row) for row in rows]

    async def single(self, model: Optional[Type[ModelT]] = None) -> Optional[Any]:
        """
        Look up at most one row.

        Returns ``None`` when nothing matches. More than one match is an
        error because single lookups are keyed by unique columns.
        """
        self._limit = 2
        rows = await self.execute(model=model)
        if not rows:
            return None
        if len(rows) > 1:
            raise GatewayError(
                f"Expected at most one row from '{self._table}', got several",
                code="multiple_rows",
            )
        return rows[0]

    async def count(self) -> int:
        """Exact number of rows matching the filters."""
        response = await self._gateway.request(
            "HEAD",
            f"{REST_PREFIX}/{self._table}",
            params=[("select", self._columns)] + self._filters,
            headers={"Prefer": "count=exact"},
        )
        content_range = response.headers.get("Content-Range", "")
        total = content_range.rsplit("/", 1)[-1]
        if not total.isdigit():
            raise GatewayError(
                f"Backend did not return a row count for '{self._table}'"
            )
        return int(total)

    def _validate(self, model: Type[ModelT], row: Dict[str, Any]) -> ModelT:
        try:
            return model.model_validate(row)
        except ValidationError as e:
            logger.error(
                f"Row from '{self._table}' does not match {model.__name__}: {e}"
            )
            raise GatewayValidationError(
                f"Unexpected row shape from '{self._table}'"
            ) from e


class AuthClient:
    """Email/password auth against the hosted auth service."""

    def __init__(self, gateway: "Gateway"):
        self._gateway = gateway

    async def sign_in_with_password(self, email: str, password: str) -> AuthSession:
        try:
            response = await self._gateway.request(
                "POST",
                f"{AUTH_PREFIX}/token",
                params=[("grant_type", "password")],
                json={"email": email, "password": password},
            )
        except GatewayConfigError:
            raise
        except GatewayError as e:
            if e.status_code in (400, 401, 403, 422):
                raise AuthError(e.message, status_code=e.status_code) from e
            raise
        return AuthSession.from_payload(response.json())

    async def get_user(self, access_token: str) -> AuthUser:
        try:
            response = await self._gateway.request(
                "GET",
                f"{AUTH_PREFIX}/user",
                headers={"Authorization": f"Bearer {access_token}"},
            )
        except GatewayConfigError:
            raise
        except GatewayError as e:
            if e.status_code in (401, 403):
                raise AuthError(e.message, status_code=e.status_code) from e
            raise
        return AuthUser.model_validate(response.json())

    async def sign_out(self, access_token: str) -> None:
        await self._gateway.request(
            "POST",
            f"{AUTH_PREFIX}/logout",
            headers={"Authorization": f"Bearer {access_token}"},
        )


class Gateway:
    """Client handle to the hosted backend for one credential scope."""

    def __init__(
        self,
        url: str,
        key: str,
        access_token: Optional[str] = None,
        scope: str = "anon",
        transport: Optional[httpx.AsyncBaseTransport] = None,
        placeholder: bool = False,
    ):
        self.url = url.rstrip("/")
        self.scope = scope
        self.placeholder = placeholder
        self._key = key
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None
        if not placeholder:
            self._client = httpx.AsyncClient(
                base_url=self.url,
                headers={
                    "apikey": key,
                    "Authorization": f"Bearer {access_token or key}",
                },
                transport=transport,
            )
        self.auth = AuthClient(self)

    async def __aenter__(self) -> "Gateway":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()

    def table(self, name: str) -> TableQuery:
        return TableQuery(self, name)

    async def rpc(self, function: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = await self.request(
            "POST", f"{REST_PREFIX}/rpc/{function}", json=params or {}
        )
        return response.json() if response.content else None

    def for_user(self, access_token: str) -> "Gateway":
        """Sibling handle acting for a signed-in identity; caller closes it."""
        if self.placeholder:
            return Gateway(self.url, self._key, scope="user", placeholder=True)
        return Gateway(
            self.url,
            self._key,
            access_token=access_token,
            scope="user",
            transport=self._transport,
        )

    async def request(
        self,
        method: str,
        path: str,
        params: Optional[List[Tuple[str, str]]] = None,
        json: Optional[Any] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> httpx.Response:
        if self.placeholder or self._client is None:
            raise GatewayConfigError("Backend credentials are not configured")

        try:
            response = await self._client.request(
                method, path, params=params, json=json, headers=headers
            )
        except httpx.HTTPError as e:
            logger.error(f"Backend request {method} {path} failed: {e}")
            raise GatewayError("Backend is unreachable") from e

        if response.is_error:
            message, code = _error_details(response)
            logger.warning(
                f"Backend returned {response.status_code} for {method} {path}: {message}"
            )
            raise GatewayError(message, status_code=response.status_code, code=code)

        return response


def _error_details(response: httpx.Response) -> Tuple[str, Optional[str]]:
    try:
        payload = response.json()
    except ValueError:
        return response.text or response.reason_phrase, None
    if not isinstance(payload, dict):
        return str(payload), None
    message = (
        payload.get("message")
        or payload.get("error_description")
        or payload.get("msg")
        or payload.get("error")
        or response.reason_phrase
    )
    code = payload.get("code") or payload.get("error_code")
    return str(message), str(code) if code is not None else None


def create_client(
    config: Settings = settings,
    access_token: Optional[str] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Gateway:
    """Anonymous-scope handle, optionally acting for a signed-in identity."""
    if not config.has_backend_credentials:
        logger.warning("Backend credentials missing, using placeholder gateway")
        return Gateway(PLACEHOLDER_URL, PLACEHOLDER_KEY, placeholder=True)
    return Gateway(
        config.SUPABASE_URL,
        config.SUPABASE_ANON_KEY,
        access_token=access_token,
        scope="user" if access_token else "anon",
        transport=transport,
    )


def create_admin_client(
    config: Settings = settings,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> Gateway:
    """Elevated handle for administrative paths."""
    if not config.has_backend_credentials:
        logger.warning("Backend credentials missing, using placeholder gateway")
        return Gateway(PLACEHOLDER_URL, PLACEHOLDER_KEY, placeholder=True)
    if not config.SUPABASE_SERVICE_ROLE_KEY:
        logger.warning(
            "SUPABASE_SERVICE_ROLE_KEY not set, admin paths fall back to the anon key"
        )
        return Gateway(
            config.SUPABASE_URL, config.SUPABASE_ANON_KEY, transport=transport
        )
    return Gateway(
        config.SUPABASE_URL,
        config.elevated_key,
        scope="service",
        transport=transport,
    )


async def get_gateway() -> AsyncIterator[Gateway]:
    """Per-request anonymous gateway dependency."""
    async with create_client(settings) as gateway:
        yield gateway


async def get_admin_gateway() -> AsyncIterator[Gateway]:
    """Per-request elevated gateway dependency."""
    async with create_admin_client(settings) as gateway:
        yield gateway
