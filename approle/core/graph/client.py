"""Low-level HTTP client for the Microsoft Graph API.

Handles authentication, token management, and HTTP operations.
"""
from __future__ import annotations
import logging
import time
from typing import TYPE_CHECKING, Optional, Dict, Any

import requests
from authlib.integrations.base_client import OAuthError
from authlib.integrations.requests_client import OAuth2Session

from .exceptions import ApiContractError, GraphAPIError, GraphAuthError, GraphRequestError

if TYPE_CHECKING:
    from approle.core.deadline import Deadline

logger = logging.getLogger(__name__)

REQUEST_TIMEOUT = 30
DEFAULT_GRAPH_URL = "https://graph.microsoft.com"
DEFAULT_API_VERSION = "v1.0"
DEFAULT_AUTHORITY_URL = "https://login.microsoftonline.com"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"


class GraphClient:
    """HTTP client for Microsoft Graph with automatic token management.

    Features:
    - Client-credentials token acquisition through authlib
    - Automatic token refresh when expired
    - Centralized error handling

    Usage:
        client = GraphClient()
        client.authenticate_client_credentials(tenant_id, client_id, client_secret)
        response = client.get("/servicePrincipals/00000000-0000-0000-0000-000000000000")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_version: str = DEFAULT_API_VERSION,
        authority_url: str = DEFAULT_AUTHORITY_URL,
        request_timeout: float = REQUEST_TIMEOUT,
    ):
        """Initialize Graph client.

        Args:
            base_url: Graph base URL (defaults to https://graph.microsoft.com)
            api_version: API version segment prepended to every path
            authority_url: Identity platform authority used for tokens
            request_timeout: Per-request timeout in seconds
        """
        self.base_url = (base_url or DEFAULT_GRAPH_URL).rstrip("/")
        self.api_version = api_version.strip("/")
        self.authority_url = authority_url.rstrip("/")
        self.request_timeout = request_timeout
        self._token: Optional[str] = None
        self._token_expires_at: Optional[float] = None
        self._auth_params: Dict[str, Any] = {}

    def authenticate_client_credentials(self, tenant_id: str, client_id: str, client_secret: str) -> str:
        """Authenticate as an application and store credentials for auto-refresh.

        Args:
            tenant_id: Directory (tenant) ID
            client_id: Application (client) ID
            client_secret: Client secret

        Returns:
            Access token
        """
        self._auth_params = {
            "tenant_id": tenant_id,
            "client_id": client_id,
            "client_secret": client_secret,
        }
        self._refresh_token(self.request_timeout)
        return self._token

    def token_url(self, tenant_id: str) -> str:
        return f"{self.authority_url}/{tenant_id}/oauth2/v2.0/token"

    def _refresh_token(self, timeout: Optional[float] = None) -> None:
        tenant_id = self._auth_params["tenant_id"]
        url = self.token_url(tenant_id)
        session = OAuth2Session(
            self._auth_params["client_id"],
            self._auth_params["client_secret"],
            scope=GRAPH_SCOPE,
        )
        try:
            token = session.fetch_token(url, grant_type="client_credentials", timeout=timeout)
        except (OAuthError, requests.RequestException, ValueError) as e:
            raise GraphAuthError(f"Could not obtain access token from {url}: {e}") from e
        finally:
            session.close()

        access_token = token.get("access_token")
        if not access_token:
            raise GraphAuthError(f"Token response from {url} did not contain an access_token")

        self._token = access_token
        expires_at = token.get("expires_at")
        if expires_at is None:
            expires_at = time.time() + int(token.get("expires_in", 3600))
        self._token_expires_at = float(expires_at)
        logger.debug("Obtained Graph access token for tenant %s", tenant_id)

    def _ensure_authenticated(self, timeout: Optional[float] = None) -> None:
        """Ensure we have a valid token, refreshing if necessary.

        Args:
            timeout: Timeout for the token request when a refresh is needed
        """
        if not self._token or not self._token_expires_at:
            raise GraphAuthError("Not authenticated - call authenticate_client_credentials first")

        # Refresh if token expired or expiring soon (within 60 seconds)
        if time.time() >= self._token_expires_at - 60:
            if not self._auth_params:
                raise GraphAuthError("Access token expired and no credentials are available to refresh it")
            self._refresh_token(timeout)

    def get(self, path: str, params: Optional[Dict] = None, deadline: Optional[Deadline] = None) -> requests.Response:
        """Execute GET request with automatic authentication.

        Args:
            path: API path relative to the version segment (e.g. "/servicePrincipals/{id}")
            params: Query parameters
            deadline: Operation deadline bounding the request timeout

        Returns:
            Response object

        Raises:
            GraphAPIError: On HTTP error
        """
        return self._request("GET", path, params=params, deadline=deadline)

    def post(self, path: str, json: Optional[Dict] = None, deadline: Optional[Deadline] = None) -> requests.Response:
        """Execute POST request with automatic authentication.

        Args:
            path: API path relative to the version segment
            json: JSON payload
            deadline: Operation deadline bounding the request timeout

        Returns:
            Response object

        Raises:
            GraphAPIError: On HTTP error
        """
        return self._request("POST", path, json=json, deadline=deadline)

    def delete(self, path: str, deadline: Optional[Deadline] = None) -> requests.Response:
        """Execute DELETE request with automatic authentication.

        Args:
            path: API path relative to the version segment
            deadline: Operation deadline bounding the request timeout

        Returns:
            Response object

        Raises:
            GraphAPIError: On HTTP error
        """
        return self._request("DELETE", path, deadline=deadline)

    def url_for(self, path: str) -> str:
        return f"{self.base_url}/{self.api_version}/{path.lstrip('/')}"

    def _request(self, method: str, path: str, deadline: Optional[Deadline] = None, **kwargs) -> requests.Response:
        timeout = deadline.request_timeout(self.request_timeout) if deadline else self.request_timeout
        self._ensure_authenticated(timeout)
        if deadline:
            # a token refresh may have used part of the remaining time
            timeout = deadline.request_timeout(self.request_timeout)
        url = self.url_for(path)
        headers = {"Authorization": f"Bearer {self._token}", "Accept": "application/json"}

        sender = {"GET": requests.get, "POST": requests.post, "DELETE": requests.delete}[method]
        logger.debug("%s %s", method, url)
        try:
            resp = sender(url, headers=headers, timeout=timeout, **kwargs)
        except requests.RequestException as e:
            raise GraphRequestError(f"{method} {url} failed: {e}") from e

        self._handle_error(resp)
        return resp

    def _handle_error(self, resp: requests.Response) -> None:
        """Centralized error handling for HTTP responses.

        Graph errors carry ``{"error": {"code": ..., "message": ...}}``; fall
        back to the raw body when the payload is not JSON.

        Raises:
            GraphAPIError: If response status indicates error
        """
        if resp.status_code < 400:
            return

        message = resp.text
        error_code = None
        try:
            body = resp.json()
        except ValueError:
            body = None
        if isinstance(body, dict) and isinstance(body.get("error"), dict):
            error_code = body["error"].get("code")
            message = body["error"].get("message") or message
        raise GraphAPIError(resp.status_code, message, resp.url, error_code)


def create_client_with_token(
    graph_url: Optional[str],
    token: str,
    expires_in: int = 3600,
    api_version: str = DEFAULT_API_VERSION,
    request_timeout: float = REQUEST_TIMEOUT,
) -> GraphClient:
    """Create a pre-authenticated GraphClient from an existing access token.

    The client cannot refresh the token; once it expires every call raises
    GraphAuthError.

    Args:
        graph_url: Graph base URL
        token: Pre-obtained access token
        expires_in: Token validity in seconds (default: 1 hour)
        api_version: API version segment
        request_timeout: Per-request timeout in seconds

    Returns:
        GraphClient instance with token pre-set
    """
    client = GraphClient(graph_url, api_version=api_version, request_timeout=request_timeout)
    client._token = token
    client._token_expires_at = time.time() + expires_in
    return client


def response_json(resp: requests.Response) -> Optional[Dict[str, Any]]:
    """Decode a successful response body.

    Returns:
        The JSON object, or None when the body is empty

    Raises:
        ApiContractError: If the body is not a JSON object
    """
    if not resp.content:
        return None
    try:
        payload = resp.json()
    except ValueError as e:
        raise ApiContractError(f"{resp.url} returned a body that is not JSON: {e}") from e
    if not isinstance(payload, dict):
        raise ApiContractError(f"{resp.url} returned {type(payload).__name__} instead of an object")
    return payload
