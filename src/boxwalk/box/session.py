"""Authenticated Box Content API session over urllib."""

from __future__ import annotations

import json
import logging
import time
from typing import TYPE_CHECKING, Any
from urllib import request as urllib_request
from urllib.error import HTTPError

from oauthlib.oauth2 import BackendApplicationClient, OAuth2Error
from urllib3 import encode_multipart_formdata

if TYPE_CHECKING:
    from boxwalk.config import AppConfig

logger = logging.getLogger(__name__)

BOX_API_URL = "https://api.box.com/2.0"
BOX_UPLOAD_URL = "https://upload.box.com/api/2.0"
BOX_TOKEN_URL = "https://api.box.com/oauth2/token"
BOX_SUBJECT_TYPE_ENTERPRISE = "enterprise"

ERROR_ITEM_NAME_IN_USE = "item_name_in_use"

# Refresh the token this many seconds before Box says it expires.
TOKEN_EXPIRY_MARGIN = 60.0


class BoxAuthError(Exception):
    """Raised when the client credentials grant fails."""


class BoxApiError(Exception):
    """Raised when the Box API returns a non-2xx response."""

    def __init__(
        self,
        status_code: int,
        message: str,
        code: str = "",
        context_info: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Box API error {status_code}: {message}")
        self.status_code = status_code
        self.message = message
        self.code = code
        self.context_info = context_info or {}


class BoxItemNameInUse(BoxApiError):
    """Raised when a create or upload collides with a same-named sibling."""


def _error_from_http(exc: HTTPError) -> BoxApiError:
    """Map an HTTPError carrying a Box error body to a BoxApiError."""
    raw = exc.read()
    try:
        body = json.loads(raw)
    except Exception:
        body = {}
    if not isinstance(body, dict):
        body = {}
    message = body.get("message") or str(exc.reason)
    code = body.get("code", "")
    context_info = body.get("context_info")
    if exc.code == 409 and code == ERROR_ITEM_NAME_IN_USE:
        return BoxItemNameInUse(exc.code, message, code, context_info)
    return BoxApiError(exc.code, message, code, context_info)


class BoxSession:
    """Authenticated session for the Box Content API.

    Tokens come from the client credentials grant against the enterprise
    service account, or from a fixed ``access_token`` (e.g. a developer token).
    """

    def __init__(
        self,
        client_id: str = "",
        client_secret: str = "",
        enterprise_id: str = "",
        access_token: str | None = None,
        timeout: float = 30.0,
    ) -> None:
        """Initialise the session.

        Args:
            client_id: Box application client ID.
            client_secret: Box application client secret.
            enterprise_id: Enterprise whose service account the token is issued for.
            access_token: Pre-issued token; disables the client credentials grant.
            timeout: Socket timeout in seconds for every request.
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._enterprise_id = enterprise_id
        self._timeout = timeout
        self._static_token = access_token
        self._token: str | None = None
        self._token_expires_at = 0.0

    def _acquire_token(self) -> str:
        """Return a Bearer token, requesting a new one when the cached one expired.

        Raises:
            BoxAuthError: If the token endpoint rejects the credentials.
        """
        if self._static_token is not None:
            return self._static_token
        if self._token is not None and time.monotonic() < self._token_expires_at:
            return self._token

        oauth = BackendApplicationClient(client_id=self._client_id)
        form = oauth.prepare_request_body(
            include_client_id=True,
            client_secret=self._client_secret,
            box_subject_type=BOX_SUBJECT_TYPE_ENTERPRISE,
            box_subject_id=self._enterprise_id,
        )
        req = urllib_request.Request(
            BOX_TOKEN_URL,
            data=form.encode("utf-8"),
            headers={"Content-Type": "application/x-www-form-urlencoded"},
            method="POST",
        )
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as resp:
                raw = resp.read()
        except HTTPError as exc:
            # Box sends the OAuth error body with the 4xx status.
            raw = exc.read()
        try:
            token = oauth.parse_request_body_response(raw.decode("utf-8", errors="replace"))
        except OAuth2Error as exc:
            logger.error("[_acquire_token] client credentials grant failed; error:%s", exc.error)
            raise BoxAuthError(f"Token acquisition failed: {exc}") from exc

        self._token = str(token["access_token"])
        expires_in = float(token.get("expires_in") or 0)
        self._token_expires_at = time.monotonic() + max(expires_in - TOKEN_EXPIRY_MARGIN, 0.0)
        logger.info("[_acquire_token] acquired token; expires_in:%s", expires_in)
        return self._token

    @staticmethod
    def _url(path: str, base_url: str = BOX_API_URL) -> str:
        """Join a relative API path onto the base URL; absolute URLs pass through."""
        if path.startswith(("https://", "http://")):
            return path
        return f"{base_url}{path}"

    def _send(
        self,
        url: str,
        method: str,
        data: bytes | None = None,
        content_type: str | None = None,
    ) -> bytes:
        token = self._acquire_token()
        headers = {"Authorization": f"Bearer {token}", "Accept": "application/json"}
        if content_type is not None:
            headers["Content-Type"] = content_type
        req = urllib_request.Request(url, data=data, headers=headers, method=method)
        logger.debug("[_send] request; method:%s;url:%s", method, url)
        try:
            with urllib_request.urlopen(req, timeout=self._timeout) as resp:
                return resp.read()  # type: ignore[no-any-return]
        except HTTPError as exc:
            raise _error_from_http(exc) from exc

    def get(self, path: str) -> dict[str, Any]:
        """Perform an authenticated GET request and decode the JSON body.

        Args:
            path: URL path relative to BOX_API_URL (must start with '/'), or an absolute URL.

        Returns:
            Parsed JSON response body as a dict.

        Raises:
            BoxAuthError: If token acquisition fails.
            BoxApiError: If the API returns a non-2xx status code.
        """
        body = self._send(self._url(path), "GET")
        return json.loads(body)  # type: ignore[no-any-return]

    def post(self, path: str, body: dict[str, Any]) -> dict[str, Any]:
        """Perform an authenticated POST with a JSON body.

        Raises:
            BoxItemNameInUse: If the server reports a naming collision.
            BoxApiError: For any other non-2xx status code.
        """
        raw = self._send(
            self._url(path),
            "POST",
            data=json.dumps(body).encode("utf-8"),
            content_type="application/json",
        )
        return json.loads(raw) if raw else {}

    def get_content(self, path: str) -> bytes:
        """Download raw bytes, e.g. from ``/files/{id}/content``.

        urllib follows the redirect Box issues to its download host.
        """
        return self._send(self._url(path), "GET")

    def upload(
        self,
        folder_id: str,
        name: str,
        data: bytes,
        file_id: str | None = None,
    ) -> dict[str, Any]:
        """Upload file content as a multipart POST.

        Args:
            folder_id: Parent folder ID for a new file.
            name: File name.
            data: File content.
            file_id: When given, upload a new version of this existing file instead.

        Returns:
            Parsed JSON response (a collection whose ``entries`` holds the file).

        Raises:
            BoxItemNameInUse: If a new file collides with an existing name.
        """
        if file_id is None:
            path = "/files/content"
            attributes: dict[str, Any] = {"name": name, "parent": {"id": folder_id}}
        else:
            path = f"/files/{file_id}/content"
            attributes = {"name": name}
        body, content_type = encode_multipart_formdata(
            [
                ("attributes", json.dumps(attributes)),
                ("file", (name, data, "application/octet-stream")),
            ]
        )
        raw = self._send(
            self._url(path, BOX_UPLOAD_URL), "POST", data=body, content_type=content_type
        )
        logger.info(
            "[upload] uploaded content; name:%s;folder_id:%s;bytes:%d",
            name,
            folder_id,
            len(data),
        )
        return json.loads(raw)  # type: ignore[no-any-return]


def box_session_from_config(config: AppConfig) -> BoxSession:
    """Construct a BoxSession from application configuration.

    Args:
        config: Application configuration instance.

    Returns:
        Configured BoxSession instance.
    """
    return BoxSession(
        client_id=config.client_id,
        client_secret=config.client_secret,
        enterprise_id=config.enterprise_id,
        timeout=config.http_timeout,
    )
