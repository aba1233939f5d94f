"""Base StudyHub API Client.

Issues authenticated requests against the StudyHub backend, enforces
timeouts, recovers from expired access tokens and returns every outcome as an
``ApiResult`` instead of raising.
"""

import asyncio
import json
import logging
import mimetypes
from dataclasses import replace
from pathlib import Path
from typing import Any, BinaryIO, Dict, Optional, Union

import httpx

from .credential_store import CredentialStore
from .error_normalizer import (
    network_failure,
    normalize_error,
    parse_failure,
    timeout_failure,
)
from .models import ApiResult, RequestDescriptor, SearchFilters, UploadFile
from .query_builder import SEARCH_ENDPOINT, build_search_params
from .refresh_coordinator import AuthRefreshCoordinator, extract_access_token

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8080"
DEFAULT_REQUEST_TIMEOUT = 30.0
DEFAULT_UPLOAD_TIMEOUT = 120.0
AUTH_REFRESH_ENDPOINT = "/api/v1/auth/refresh"

UploadSource = Union[str, Path, bytes, bytearray, BinaryIO]


def _read_upload(
    source: UploadSource,
    filename: Optional[str] = None,
    content_type: Optional[str] = None,
) -> UploadFile:
    """Load an upload fully into memory so it can be re-sent on retry."""
    if isinstance(source, (str, Path)):
        path = Path(source)
        content = path.read_bytes()
        name = filename or path.name
    elif isinstance(source, (bytes, bytearray)):
        content = bytes(source)
        name = filename or "upload"
    elif hasattr(source, "read"):
        content = source.read()
        if not isinstance(content, bytes):
            raise TypeError("Upload file objects must be opened in binary mode")
        name = filename or Path(getattr(source, "name", "upload")).name
    else:
        raise TypeError(f"Unsupported upload source: {type(source).__name__}")

    mime = content_type or mimetypes.guess_type(name)[0] or "application/octet-stream"
    return name, content, mime


class StudyHubAPIClient:
    """API client with bearer authentication and transparent token refresh.

    Args:
        base_url: Origin of the StudyHub backend
        credentials: Store holding the access token (in-memory only if omitted)
        request_timeout: Seconds before an ordinary request is cancelled
        upload_timeout: Seconds before a file upload is cancelled
        transport: Optional httpx transport, mainly for tests
    """

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        credentials: Optional[CredentialStore] = None,
        request_timeout: float = DEFAULT_REQUEST_TIMEOUT,
        upload_timeout: float = DEFAULT_UPLOAD_TIMEOUT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.credentials = credentials if credentials is not None else CredentialStore()
        self.request_timeout = request_timeout
        self.upload_timeout = upload_timeout
        self._transport = transport
        self._session: Optional[httpx.AsyncClient] = None
        self.refresh_coordinator = AuthRefreshCoordinator(
            self._request_token_refresh, self.credentials
        )

    @property
    def session(self) -> httpx.AsyncClient:
        """Get or create the shared HTTP session (its cookie jar is the auth session)."""
        if self._session is None or self._session.is_closed:
            self._session = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self.request_timeout),
                headers={"Accept": "application/json"},
                follow_redirects=True,
                transport=self._transport,
            )
        return self._session

    def get_token(self) -> Optional[str]:
        return self.credentials.get()

    def set_token(self, token: Optional[str]) -> None:
        self.credentials.set(token)

    def _build_headers(
        self, descriptor: RequestDescriptor, token: Optional[str]
    ) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        if token and descriptor.authenticated:
            headers["Authorization"] = f"Bearer {token}"
        return headers

    async def _send(
        self, descriptor: RequestDescriptor, token: Optional[str], timeout: float
    ) -> httpx.Response:
        """Issue one HTTP call, cancelling it if it outlives ``timeout``."""
        kwargs: Dict[str, Any] = {
            "headers": self._build_headers(descriptor, token),
            "timeout": timeout,
        }
        if descriptor.params:
            kwargs["params"] = descriptor.params

        # Multipart: httpx sets Content-Type with the boundary itself
        if descriptor.is_multipart:
            kwargs["files"] = {"file": descriptor.upload}
            if descriptor.form_fields:
                kwargs["data"] = descriptor.form_fields
        elif descriptor.json_body is not None:
            kwargs["json"] = descriptor.json_body

        return await asyncio.wait_for(
            self.session.request(descriptor.method, descriptor.endpoint, **kwargs),
            timeout=timeout,
        )

    async def _execute(self, descriptor: RequestDescriptor) -> ApiResult[Any]:
        """Run a request through timeout, refresh-and-retry and normalization."""
        token = self.credentials.get() if descriptor.authenticated else None
        timeout = descriptor.timeout or self.request_timeout
        logger.debug(
            f"{descriptor.method} {descriptor.endpoint}"
            + (" (retry)" if descriptor.is_retry else "")
        )

        try:
            response = await self._send(descriptor, token, timeout)
        except (asyncio.TimeoutError, httpx.TimeoutException):
            logger.debug(f"{descriptor.method} {descriptor.endpoint} timed out")
            return ApiResult.failure(timeout_failure(timeout))
        except httpx.HTTPError as e:
            return ApiResult.failure(network_failure(e))
        except Exception as e:
            logger.warning(f"Unexpected error during {descriptor.method} request: {e}")
            return ApiResult.failure(network_failure(e))

        if response.status_code == 401 and token and not descriptor.is_retry:
            retried = await self._recover_from_unauthorized(descriptor, token)
            if retried is not None:
                return retried

        return self._interpret(response)

    def _interpret(self, response: httpx.Response) -> ApiResult[Any]:
        """Decode the body text and map the status onto an ApiResult."""
        text = response.text
        status = response.status_code

        try:
            body = json.loads(text) if text else {}
        except ValueError:
            return ApiResult.failure(parse_failure(text, status))

        if response.is_success:
            return ApiResult.success(body)

        return ApiResult.failure(normalize_error(body, status))

    async def _recover_from_unauthorized(
        self, descriptor: RequestDescriptor, sent_token: str
    ) -> Optional[ApiResult[Any]]:
        """Refresh (or reuse a fresher) token and retry the request once.

        Returns:
            The retried result, or None when the original 401 should stand
        """
        current = self.credentials.get()
        if current is None:
            logger.debug("Token cleared while request was in flight")
            return None

        if current != sent_token:
            logger.debug("Token rotated while request was in flight, retrying")
        elif not await self.refresh_coordinator.refresh():
            return None

        return await self._execute(replace(descriptor, is_retry=True))

    async def _request_token_refresh(self) -> Optional[str]:
        """Call the refresh endpoint using the cookie session only."""
        result = await self._execute(
            RequestDescriptor(
                AUTH_REFRESH_ENDPOINT, "POST", is_retry=True, authenticated=False
            )
        )
        if result.error is not None:
            logger.info(f"Token refresh rejected: {result.error}")
            return None

        token = extract_access_token(result.data)
        if token is None:
            logger.warning("Token refresh response did not contain an access token")
        return token

    async def request(
        self,
        method: str,
        endpoint: str,
        body: Any = None,
        params: Optional[Dict[str, str]] = None,
    ) -> ApiResult[Any]:
        """Make a request with a JSON body.

        Args:
            method: HTTP method (GET, POST, etc.)
            endpoint: API endpoint path
            body: JSON-serializable request body
            params: Query string parameters

        Returns:
            ApiResult with the decoded body or an ApiError
        """
        return await self._execute(
            RequestDescriptor(
                endpoint,
                method.upper(),
                json_body=body,
                params=list(params.items()) if params else None,
            )
        )

    async def get(
        self, endpoint: str, params: Optional[Dict[str, str]] = None
    ) -> ApiResult[Any]:
        return await self.request("GET", endpoint, params=params)

    async def post(self, endpoint: str, body: Any = None) -> ApiResult[Any]:
        return await self.request("POST", endpoint, body=body)

    async def put(self, endpoint: str, body: Any = None) -> ApiResult[Any]:
        return await self.request("PUT", endpoint, body=body)

    async def delete(self, endpoint: str) -> ApiResult[Any]:
        return await self.request("DELETE", endpoint)

    async def upload(
        self,
        endpoint: str,
        file: UploadSource,
        fields: Optional[Dict[str, str]] = None,
        filename: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> ApiResult[Any]:
        """Upload a single file as multipart form data.

        Args:
            endpoint: API endpoint path
            file: Path, raw bytes or binary file object
            fields: Extra string form fields sent with the file
            filename: Override for the uploaded file name
            content_type: Override for the file's MIME type

        Returns:
            ApiResult with the decoded body or an ApiError

        Raises:
            FileNotFoundError: If ``file`` is a path that does not exist
            TypeError: If ``file`` is not a supported source
        """
        upload = _read_upload(file, filename, content_type)
        return await self._execute(
            RequestDescriptor(
                endpoint,
                "POST",
                upload=upload,
                form_fields=dict(fields or {}),
                timeout=self.upload_timeout,
            )
        )

    async def search(
        self,
        query: str = "",
        filters: Union[SearchFilters, Dict[str, Any], None] = None,
    ) -> ApiResult[Any]:
        """Search documents and subjects; an empty query browses."""
        if isinstance(filters, dict):
            filters = SearchFilters.model_validate(filters)
        params = build_search_params(query, filters)
        return await self._execute(
            RequestDescriptor(SEARCH_ENDPOINT, "GET", params=params or None)
        )

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session is not None and not self._session.is_closed:
            await self._session.aclose()
        self._session = None

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
