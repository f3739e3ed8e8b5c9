"""Cloudflare Images upload logic.

Manages the authenticated HTTP session, multipart request assembly,
response parsing and token verification.
"""

import json
import logging
from urllib.parse import urljoin

import requests

from .config import DEFAULT_API_BASE, DEFAULT_TIMEOUT
from .models import Credentials, UploadRequest, UploadResult

logger = logging.getLogger(__name__)


class TransportError(Exception):
    """Raised when the API cannot be reached or its response cannot be read.

    Attributes:
        kind: 'network' for connection failures, 'decode' for bad response bodies
    """
    NETWORK = "network"
    DECODE = "decode"

    def __init__(self, message: str, kind: str = NETWORK):
        super().__init__(message)
        self.kind = kind


class AuthError(Exception):
    """Raised when the API rejects the account ID / token pair.

    Attributes:
        response_text: Raw body returned by the API
    """

    def __init__(self, response_text: str):
        super().__init__(f"Unable to verify the auth pair: {response_text}")
        self.response_text = response_text


def images_url(account_id: str, api_base: str = DEFAULT_API_BASE) -> str:
    """Build the Images v1 endpoint for an account.

    Args:
        account_id: Cloudflare account ID
        api_base: API root, with or without a trailing slash

    Returns:
        e.g. https://api.cloudflare.com/client/v4/accounts/<id>/images/v1
    """
    return urljoin(api_base.rstrip("/") + "/", f"accounts/{account_id}/images/v1")


def init_session(credentials: Credentials) -> requests.Session:
    """Create a requests session that sends the bearer token.

    Args:
        credentials: Account ID and API token

    Returns:
        Configured requests.Session
    """
    session = requests.Session()
    session.headers["Authorization"] = f"Bearer {credentials.token}"
    return session


def build_form(request: UploadRequest) -> dict[str, tuple]:
    """Build the multipart parts for an upload.

    Args:
        request: Upload request

    Returns:
        Mapping suitable for the ``files`` argument of requests
    """
    return {
        "file": (request.filename, request.data, "image/png"),
        "requireSignedURLs": (None, "true" if request.require_signed_urls else "false"),
        "metadata": (None, json.dumps(request.metadata)),
    }


def upload_image(
    session: requests.Session,
    credentials: Credentials,
    request: UploadRequest,
    api_base: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_TIMEOUT,
) -> UploadResult:
    """Upload one image and parse the API response.

    A response with ``success`` set to False is returned, not raised;
    the caller reports its errors.

    Args:
        session: Session from init_session()
        credentials: Account ID and API token
        request: Upload request
        api_base: API root
        timeout: Request timeout in seconds

    Returns:
        Parsed UploadResult

    Raises:
        TransportError: If the request fails or the body is not a valid response
    """
    url = images_url(credentials.account_id, api_base)
    logger.debug("API Url: %s", url)

    try:
        response = session.post(url, files=build_form(request), timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Failed to request API: {e}") from e

    try:
        body = response.json()
    except ValueError as e:
        raise TransportError(
            f"Failed to parse response json (HTTP {response.status_code})",
            kind=TransportError.DECODE,
        ) from e

    try:
        result = UploadResult.from_dict(body)
    except (KeyError, TypeError, ValueError) as e:
        raise TransportError(
            f"Unexpected response shape: {e}", kind=TransportError.DECODE
        ) from e

    logger.debug("Res: %r", result)
    return result


def verify_token(
    session: requests.Session,
    credentials: Credentials,
    api_base: str = DEFAULT_API_BASE,
    timeout: float = DEFAULT_TIMEOUT,
) -> bool:
    """Verify the credentials with a GET against the Images endpoint.

    Only the HTTP status class is checked, never the body.

    Returns:
        True if the API answered with a 2xx status

    Raises:
        AuthError: If the API answered with any other status
        TransportError: If the request fails
    """
    url = images_url(credentials.account_id, api_base)

    try:
        response = session.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise TransportError(f"Failed to request API: {e}") from e

    logger.debug("%s", response.text)
    if 200 <= response.status_code < 300:
        return True
    raise AuthError(response.text)
