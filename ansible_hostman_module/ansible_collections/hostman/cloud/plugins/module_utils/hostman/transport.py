import json

from ansible.module_utils.basic import AnsibleModule
from ansible.module_utils.urls import fetch_url

from ansible_collections.hostman.cloud.plugins.module_utils.hostman.errors import (
    DecodeError,
    TransportError,
)

DEFAULT_API_URL = "https://hostman.com/api/v1"


class Transport:
    """
    Performs single authenticated request/response exchanges against the
    Hostman API.

    The transport is the only place in the collection that touches the network.
    It owns the bearer token for its whole lifetime and hands it unchanged to
    every request; nothing else in the engine ever sees the token.
    """

    def __init__(
        self,
        module: AnsibleModule,
        api_url: str,
        token: str,
        request_timeout: int = 30,
    ):
        self.module = module
        self.api_url = (api_url or DEFAULT_API_URL).rstrip("/")
        self._token = token
        self.request_timeout = request_timeout

    def url_for(self, path: str) -> str:
        """Builds the full request URL, passing absolute URLs through."""
        if path.startswith("http://") or path.startswith("https://"):
            return path
        return f"{self.api_url}/{path.lstrip('/')}"

    def execute(self, method: str, path: str, body=None) -> bytes:
        """
        Sends one request and returns the raw response body.

        Args:
            method (str): The HTTP method (e.g., 'GET', 'POST', 'PATCH').
            path (str): The endpoint path relative to the API base URL.
            body (dict, optional): The payload, serialized as JSON when present.

        Returns:
            The response body as bytes (empty for '204 No Content').

        Raises:
            TransportError: For any status >= 400 and for connection failures,
                which `fetch_url` reports with a negative status.
        """
        url = self.url_for(path)

        data = None
        if body is not None:
            data = self.module.jsonify(body)

        headers = {
            "Authorization": f"Bearer {self._token}",
            "Content-Type": "application/json",
        }

        response, info = fetch_url(
            self.module,
            url,
            data=data,
            headers=headers,
            method=method,
            timeout=self.request_timeout,
        )

        status_code = info.get("status", -1)
        self.module.debug(f"{method} {url} -> {status_code}")

        if status_code >= 400 or status_code < 0:
            # As per the `fetch_url` contract, the error body lives in `info['body']`.
            error_body = info.get("body") or b""
            if not error_body and status_code < 0:
                error_body = str(info.get("msg", "")).encode()
            raise TransportError(status_code, error_body, method=method, url=url)

        if not response:
            return b""
        return response.read() or b""

    def request_json(self, method: str, path: str, body=None):
        """Sends a request and decodes the JSON answer (None for an empty body)."""
        content = self.execute(method, path, body)
        if not content:
            return None
        try:
            return json.loads(content)
        except ValueError as e:
            raise DecodeError(
                f"API returned a success status for {method} {self.url_for(path)} "
                f"but the response was not valid JSON: {e}"
            ) from e
