"""
Authenticated REST client for the Onshape API.

Credentials are read per stack from a JSON file:

    {
      "cad": {"url": "https://cad.onshape.com/", "accessKey": "...", "secretKey": "..."}
    }

``ONSHAPE_ACCESS_KEY``, ``ONSHAPE_SECRET_KEY`` and ``ONSHAPE_BASE_URL`` override
the file. Requests use HTTP basic auth with the API key pair.
"""

import json
import logging
import os
import re
from pathlib import Path
from typing import Any, Dict, Optional, Tuple, Union
from urllib.parse import urlparse

import requests

from onshape_drafter.api.types import DocumentRef
from onshape_drafter.errors import ConfigurationError, DrafterError

logger = logging.getLogger(__name__)

ENV_ACCESS_KEY = "ONSHAPE_ACCESS_KEY"
ENV_SECRET_KEY = "ONSHAPE_SECRET_KEY"
ENV_BASE_URL = "ONSHAPE_BASE_URL"

_DOCUMENT_URL_RE = re.compile(
    r"^/documents/(?P<did>[0-9a-fA-F]+)/w/(?P<wid>[0-9a-fA-F]+)/e/(?P<eid>[0-9a-fA-F]+)/?$"
)


class ApiError(DrafterError):
    """Network failure or unsuccessful HTTP response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


def _origin(url: str) -> str:
    parsed = urlparse(url)
    return f"{parsed.scheme}://{parsed.netloc}".lower()


def parse_document_url(url: str) -> Tuple[str, DocumentRef]:
    """Split a document URL into its base URL and document reference.

    Example:
        >>> parse_document_url("https://cad.onshape.com/documents/a1/w/b2/e/c3")
        ('https://cad.onshape.com/', DocumentRef(document_id='a1', workspace_id='b2', element_id='c3'))

    Raises:
        ConfigurationError: if the URL does not address a workspace element
    """
    parsed = urlparse(url)
    match = _DOCUMENT_URL_RE.match(parsed.path)
    if not parsed.scheme or not parsed.netloc or not match:
        raise ConfigurationError(
            f"Not a drawing URL of the form https://<host>/documents/<did>/w/<wid>/e/<eid>: {url!r}")
    ref = DocumentRef(document_id=match.group('did'),
                      workspace_id=match.group('wid'),
                      element_id=match.group('eid'))
    return _origin(url) + "/", ref


def validate_base_urls(api_base_url: str, document_base_url: str) -> None:
    """Ensure the credentials' stack serves the document being edited.

    Raises:
        ConfigurationError: if the two origins differ
    """
    if _origin(api_base_url) != _origin(document_base_url):
        raise ConfigurationError(
            f"Document URL {document_base_url} does not match API stack {api_base_url}")


def load_credentials(stack: str, credentials_file: Union[str, Path]) -> Dict[str, str]:
    """Read ``{url, accessKey, secretKey}`` for a stack.

    Environment variables take precedence over the file; the file is only
    required when the environment does not provide all three values.

    Raises:
        ConfigurationError: if the stack or any value is missing
    """
    creds: Dict[str, str] = {}
    path = Path(credentials_file)
    if path.exists():
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as exc:
            raise ConfigurationError(f"Cannot read credentials file {path}: {exc}") from exc
        if stack in data:
            creds.update(data[stack])
        else:
            logger.debug("Stack %r not found in %s", stack, path)

    env_values = {
        'url': os.environ.get(ENV_BASE_URL),
        'accessKey': os.environ.get(ENV_ACCESS_KEY),
        'secretKey': os.environ.get(ENV_SECRET_KEY),
    }
    creds.update({k: v for k, v in env_values.items() if v})

    missing = [k for k in ('url', 'accessKey', 'secretKey') if not creds.get(k)]
    if missing:
        raise ConfigurationError(
            f"Missing credentials for stack {stack!r}: {', '.join(missing)} "
            f"(checked {path} and {ENV_ACCESS_KEY}/{ENV_SECRET_KEY}/{ENV_BASE_URL})")
    return creds


class OnshapeClient:
    """Thin JSON-over-HTTP client.

    Paths are relative to the base URL, e.g. ``api/drawings/modify/status/<id>``.
    Every non-2xx response raises :class:`ApiError`; there are no retries.
    """

    def __init__(
        self,
        base_url: str,
        access_key: str,
        secret_key: str,
        timeout: float = 30.0,
        session: Optional[requests.Session] = None,
    ):
        self._base_url = base_url if base_url.endswith('/') else base_url + '/'
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.auth = (access_key, secret_key)
        self.session.headers.update({
            'Accept': 'application/json;charset=UTF-8; qs=0.09',
            'Content-Type': 'application/json',
        })

    @classmethod
    def from_stack(
        cls,
        stack: str,
        credentials_file: Union[str, Path] = "credentials.json",
        timeout: float = 30.0,
    ) -> 'OnshapeClient':
        """Build a client from the credentials of a named stack."""
        creds = load_credentials(stack, credentials_file)
        logger.debug("Using stack %s at %s", stack, creds['url'])
        return cls(creds['url'], creds['accessKey'], creds['secretKey'], timeout=timeout)

    @property
    def base_url(self) -> str:
        return self._base_url

    def url(self, path: str) -> str:
        return self._base_url + path.lstrip('/')

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        return self._request('GET', path, params=params)

    def post(self, path: str, body: Any) -> Any:
        return self._request('POST', path, json=body)

    def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = self.url(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as exc:
            raise ApiError(f"{method} {url} failed: {exc}") from exc

        if response.status_code >= 400:
            raise ApiError(
                f"{method} {url} returned {response.status_code}: {response.text[:500]}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(f"{method} {url} returned invalid JSON: {exc}",
                           status_code=response.status_code) from exc

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> 'OnshapeClient':
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
