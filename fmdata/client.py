"""FileMaker Data API HTTP client."""

import json
from typing import Any, Callable, TypeVar
from urllib.parse import quote

import httpx

from .config import ClientConfig
from .exceptions import ConnectionError, InvalidRequestError, RemoteError
from .logging_config import get_logger
from .mapping import container_fields
from .requests import FindRequest
from .serializer import serialize_find_request
from .types import FindResponse, Message, Record

logger = get_logger(__name__)

T = TypeVar("T")

API_PATH = "/fmi/data/v1"
# Data API message code for a find that matched nothing.
NO_RECORDS_MATCH = "401"

RecordIdSetter = Callable[[Any, int], None]


def _require_layout(request: FindRequest) -> str:
    if not request.layout:
        raise InvalidRequestError("A layout is required to send a find request")
    return request.layout


def _find_call(base_url: str, request: FindRequest) -> tuple[str, str, dict[str, Any]]:
    """Return method, url and httpx keyword arguments for ``request``.

    A request without clauses becomes a ranged read of the layout.
    """
    layout_url = f"{base_url}/layouts/{quote(_require_layout(request), safe='')}"
    if request.query:
        return (
            "POST",
            f"{layout_url}/_find",
            {
                "content": serialize_find_request(request),
                "headers": {"Content-Type": "application/json"},
            },
        )

    params: dict[str, Any] = {"_limit": request.limit, "_offset": request.offset}
    if request.sort:
        params["_sort"] = json.dumps(
            [s.to_wire() for s in request.sort], separators=(",", ":")
        )
    return "GET", f"{layout_url}/records", {"params": params}


def _json_body(response: httpx.Response) -> dict[str, Any]:
    """Decode a success body, which must be a JSON object."""
    try:
        body = response.json()
    except ValueError as e:
        raise RemoteError(f"Data API returned a non-JSON body (HTTP {response.status_code})") from e
    if not isinstance(body, dict):
        raise RemoteError(f"Data API returned a non-object body (HTTP {response.status_code})")
    return body


def _error_details(response: httpx.Response) -> tuple[str, str | None]:
    """Extract the first Data API message from an error response."""
    fallback = f"HTTP {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return fallback, None
    messages = body.get("messages") if isinstance(body, dict) else None
    if not messages or not isinstance(messages, list) or not isinstance(messages[0], dict):
        return fallback, None
    first = messages[0]
    code = first.get("code")
    return first.get("message", fallback), None if code is None else str(code)


def _to_find_response(response: httpx.Response) -> FindResponse:
    if response.is_success:
        return FindResponse.from_response(_json_body(response))
    message, code = _error_details(response)
    if code == NO_RECORDS_MATCH:
        return FindResponse(messages=[Message(code, message)])
    raise RemoteError(message, code)


def _session_token(response: httpx.Response) -> str:
    if not response.is_success:
        raise RemoteError(*_error_details(response))
    body = _json_body(response).get("response")
    token = body.get("token") if isinstance(body, dict) else None
    if not token:
        raise RemoteError("Session response did not contain a token")
    return token


def _hydrate(
    record: Record,
    record_type: type[T],
    set_record_id: RecordIdSetter | None,
    set_mod_id: RecordIdSetter | None,
) -> T:
    obj = record.to_record(record_type)
    if set_record_id is not None:
        set_record_id(obj, record.record_id)
    if set_mod_id is not None:
        set_mod_id(obj, record.mod_id)
    return obj


def _container_urls(obj: Any, record: Record) -> list[tuple[str, str]]:
    """Pairs of (attribute, url) for container fields that hold a URL."""
    lowered = {str(k).casefold(): v for k, v in record.field_data.items()}
    urls = []
    for spec in container_fields(type(obj)):
        url = lowered.get(spec.container_data_for.casefold())
        if isinstance(url, str) and url:
            urls.append((spec.attr, url))
    return urls


class FileMakerClient:
    """HTTP client for the FileMaker Data API.

    Args:
        server: Base URL of the FileMaker server (e.g., "https://fms.example.com").
        database: Hosted database name.
        username: Account name.
        password: Account password.
        timeout: Request timeout in seconds.
        http_client: Preconfigured ``httpx.Client``; one is created if omitted.

    Example:
        >>> with FileMakerClient("https://fms.example.com", "Contacts", "admin", "secret") as fm:
        ...     request = FindRequest.for_record(User).add_query(User(name="Buzz"))
        ...     users = fm.find(request, User)
    """

    def __init__(
        self,
        server: str,
        database: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        http_client: httpx.Client | None = None,
    ):
        self.server = server.rstrip("/")
        self.database = database
        self._auth = (username, password)
        self._client = http_client or httpx.Client(timeout=timeout)
        self._token: str | None = None

    @classmethod
    def from_config(
        cls, config: ClientConfig, http_client: httpx.Client | None = None
    ) -> "FileMakerClient":
        return cls(
            config.server,
            config.database,
            config.username,
            config.password,
            timeout=config.timeout,
            http_client=http_client,
        )

    @property
    def base_url(self) -> str:
        return f"{self.server}{API_PATH}/databases/{quote(self.database, safe='')}"

    def close(self) -> None:
        """End the session, if any, and close the HTTP client."""
        try:
            self.logout()
        finally:
            self._client.close()

    def __enter__(self) -> "FileMakerClient":
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def authenticate(self) -> str:
        """Open a Data API session and return its token."""
        url = f"{self.base_url}/sessions"
        logger.debug("POST %s", url)
        try:
            response = self._client.post(url, auth=self._auth, json={})
        except httpx.HTTPError as e:
            raise ConnectionError(f"Failed to open session: {e}")
        self._token = _session_token(response)
        return self._token

    def logout(self) -> None:
        """Close the current session."""
        if self._token is None:
            return
        url = f"{self.base_url}/sessions/{self._token}"
        self._token = None
        logger.debug("DELETE %s", url)
        try:
            response = self._client.delete(url)
        except httpx.HTTPError as e:
            raise ConnectionError(f"Failed to close session: {e}")
        if not response.is_success:
            raise RemoteError(*_error_details(response))

    def _auth_headers(self) -> dict[str, str]:
        token = self._token or self.authenticate()
        return {"Authorization": f"Bearer {token}"}

    def send(self, request: FindRequest) -> FindResponse:
        """Execute a find and return the raw response envelope.

        Raises:
            InvalidRequestError: If the request has no layout. Raised before
                anything is serialized or sent.
            RemoteError: If the Data API reports an error other than
                "no records match".
            ConnectionError: If the server cannot be reached.
        """
        method, url, kwargs = _find_call(self.base_url, request)
        headers = {**kwargs.pop("headers", {}), **self._auth_headers()}
        logger.debug("%s %s", method, url)
        try:
            response = self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ConnectionError(f"Find failed: {e}")
        return _to_find_response(response)

    def find(
        self,
        request: FindRequest,
        record_type: type[T],
        set_record_id: RecordIdSetter | None = None,
        set_mod_id: RecordIdSetter | None = None,
    ) -> list[T]:
        """Execute a find and hydrate the results into ``record_type``.

        Args:
            request: The find to execute.
            record_type: Dataclass to build from each record's field data.
            set_record_id: Called with each record and its record id.
            set_mod_id: Called with each record and its modification id.

        Returns:
            Hydrated records, empty when nothing matched.
        """
        response = self.send(request)
        results = []
        for record in response.records:
            obj = _hydrate(record, record_type, set_record_id, set_mod_id)
            if request.load_container_data:
                self._load_container_data(obj, record)
            results.append(obj)
        return results

    def _load_container_data(self, obj: Any, record: Record) -> None:
        for attr, url in _container_urls(obj, record):
            logger.debug("GET %s", url)
            try:
                response = self._client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise RemoteError(
                    f"Failed to load container data: {e}", str(e.response.status_code)
                )
            except httpx.HTTPError as e:
                raise ConnectionError(f"Failed to load container data: {e}")
            object.__setattr__(obj, attr, response.content)


class AsyncFileMakerClient:
    """Async HTTP client for the FileMaker Data API.

    Same interface as FileMakerClient but uses async/await.
    """

    def __init__(
        self,
        server: str,
        database: str,
        username: str,
        password: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
    ):
        self.server = server.rstrip("/")
        self.database = database
        self._auth = (username, password)
        self._client = http_client or httpx.AsyncClient(timeout=timeout)
        self._token: str | None = None

    @classmethod
    def from_config(
        cls, config: ClientConfig, http_client: httpx.AsyncClient | None = None
    ) -> "AsyncFileMakerClient":
        return cls(
            config.server,
            config.database,
            config.username,
            config.password,
            timeout=config.timeout,
            http_client=http_client,
        )

    @property
    def base_url(self) -> str:
        return f"{self.server}{API_PATH}/databases/{quote(self.database, safe='')}"

    async def close(self) -> None:
        """End the session, if any, and close the HTTP client."""
        try:
            await self.logout()
        finally:
            await self._client.aclose()

    async def __aenter__(self) -> "AsyncFileMakerClient":
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()

    async def authenticate(self) -> str:
        """Open a Data API session and return its token."""
        url = f"{self.base_url}/sessions"
        logger.debug("POST %s", url)
        try:
            response = await self._client.post(url, auth=self._auth, json={})
        except httpx.HTTPError as e:
            raise ConnectionError(f"Failed to open session: {e}")
        self._token = _session_token(response)
        return self._token

    async def logout(self) -> None:
        """Close the current session."""
        if self._token is None:
            return
        url = f"{self.base_url}/sessions/{self._token}"
        self._token = None
        logger.debug("DELETE %s", url)
        try:
            response = await self._client.delete(url)
        except httpx.HTTPError as e:
            raise ConnectionError(f"Failed to close session: {e}")
        if not response.is_success:
            raise RemoteError(*_error_details(response))

    async def _auth_headers(self) -> dict[str, str]:
        token = self._token or await self.authenticate()
        return {"Authorization": f"Bearer {token}"}

    async def send(self, request: FindRequest) -> FindResponse:
        """Execute a find asynchronously and return the response envelope."""
        method, url, kwargs = _find_call(self.base_url, request)
        headers = {**kwargs.pop("headers", {}), **(await self._auth_headers())}
        logger.debug("%s %s", method, url)
        try:
            response = await self._client.request(method, url, headers=headers, **kwargs)
        except httpx.HTTPError as e:
            raise ConnectionError(f"Find failed: {e}")
        return _to_find_response(response)

    async def find(
        self,
        request: FindRequest,
        record_type: type[T],
        set_record_id: RecordIdSetter | None = None,
        set_mod_id: RecordIdSetter | None = None,
    ) -> list[T]:
        """Execute a find asynchronously and hydrate the results."""
        response = await self.send(request)
        results = []
        for record in response.records:
            obj = _hydrate(record, record_type, set_record_id, set_mod_id)
            if request.load_container_data:
                await self._load_container_data(obj, record)
            results.append(obj)
        return results

    async def _load_container_data(self, obj: Any, record: Record) -> None:
        for attr, url in _container_urls(obj, record):
            logger.debug("GET %s", url)
            try:
                response = await self._client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                raise RemoteError(
                    f"Failed to load container data: {e}", str(e.response.status_code)
                )
            except httpx.HTTPError as e:
                raise ConnectionError(f"Failed to load container data: {e}")
            object.__setattr__(obj, attr, response.content)
