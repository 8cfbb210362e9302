"""HTTP operations against the pixeldrain filesystem API.

:class:`FilesystemAPI` performs exactly one request per operation and never
retries. Every response body is drained and closed before the operation
returns, except the stream handed out by :meth:`FilesystemAPI.read`.
Failed responses are translated by :func:`raise_api_error`.
"""

from __future__ import annotations

import io
import logging
from typing import TYPE_CHECKING, Any, BinaryIO, Callable, NoReturn, Optional, TypeVar

import httpx

from pixelfs._errors import (
    AlreadyExists,
    ApiError,
    AuthenticationFailed,
    BackendUnavailable,
    DecodeError,
    DirectoryNotEmpty,
    NotFound,
    PermissionDenied,
    PixelFSError,
)
from pixelfs._models import FilesystemNode, FilesystemPath, UserInfo, format_timestamp, node_from_json
from pixelfs._path import escape_path

if TYPE_CHECKING:
    from collections.abc import Iterator
    from datetime import datetime
    from types import TracebackType

    from pixelfs._types import Headers, WritableContent

T = TypeVar("T")

log = logging.getLogger(__name__)

DEFAULT_API_URL = "https://pixeldrain.com/api"
USER_ENDPOINT = "/user"

_CHUNK_SIZE = 65536

_ERROR_CLASSES: dict[str, type[PixelFSError]] = {
    "path_not_found": NotFound,
    "directory_not_empty": DirectoryNotEmpty,
    "node_already_exists": AlreadyExists,
    "authentication_failed": AuthenticationFailed,
    "permission_denied": PermissionDenied,
}


# region: error mapping


def map_api_error(
    payload: object,
    *,
    status_code: Optional[int] = None,
    path: Optional[str] = None,
    backend: Optional[str] = None,
) -> PixelFSError:
    """Translate a decoded ``{"value": ..., "message": ...}`` error payload.

    Known codes become their dedicated error class; any other code becomes an
    :class:`ApiError` keeping the code and message verbatim.

    :raises DecodeError: If the payload is not a JSON object.
    """
    if not isinstance(payload, dict):
        raise DecodeError(
            f"failed to parse error json: expected an object, got {type(payload).__name__}",
            path=path,
            backend=backend,
        )
    code = str(payload.get("value") or "")
    message = str(payload.get("message") or "")
    cls = _ERROR_CLASSES.get(code)
    if cls is None:
        return ApiError(message, code=code, status_code=status_code, path=path, backend=backend)
    return cls(message or code, path=path, backend=backend)


def raise_api_error(response: httpx.Response, *, path: Optional[str] = None, backend: Optional[str] = None) -> NoReturn:
    """Raise the error described by a failed, already-read response."""
    try:
        payload = response.json()
    except ValueError as exc:
        raise DecodeError(f"failed to parse error json: {exc}", path=path, backend=backend) from exc
    raise map_api_error(payload, status_code=response.status_code, path=path, backend=backend)


# endregion

# region: streaming


class ResponseStream(io.RawIOBase):
    """Raw binary stream over the body of an open streaming response.

    Closing the stream closes the response and returns its connection to the
    pool. Transport failures while reading raise :class:`BackendUnavailable`.
    """

    def __init__(
        self, response: httpx.Response, *, path: Optional[str] = None, backend: Optional[str] = None
    ) -> None:
        self._response = response
        self._path = path
        self._backend = backend
        self._chunks = response.iter_bytes(_CHUNK_SIZE)
        self._pending = b""

    @property
    def response(self) -> httpx.Response:
        return self._response

    def readable(self) -> bool:
        return True

    def readinto(self, buffer: Any) -> int:
        while not self._pending:
            try:
                self._pending = next(self._chunks)
            except StopIteration:
                return 0
            except httpx.RequestError as exc:
                raise BackendUnavailable(
                    str(exc) or type(exc).__name__, path=self._path, backend=self._backend
                ) from exc
        n = min(len(buffer), len(self._pending))
        buffer[:n] = self._pending[:n]
        self._pending = self._pending[n:]
        return n

    def close(self) -> None:
        if not self.closed:
            self._response.close()
        super().close()


def _iter_content(content: WritableContent) -> bytes | Iterator[bytes]:
    if isinstance(content, (bytes, bytearray)):
        return bytes(content)
    return iter(lambda: content.read(_CHUNK_SIZE), b"")


# endregion


class FilesystemAPI:
    """Client for the filesystem and account endpoints of the API.

    Paths passed to the operations are full API paths (including the scope
    prefix), except the ``to`` argument of :meth:`rename`, which is prefixed
    here.

    :param api_url: Base URL of the API.
    :param api_key: API key, sent as the password of HTTP basic auth.
    :param path_prefix: Scope prefix prepended to rename targets.
    :param user_endpoint: Account endpoint, relative to ``api_url``.
    :param timeout: Request timeout in seconds.
    :param transport: Custom httpx transport (e.g. ``httpx.MockTransport``).
    :param client_options: Extra keyword arguments for ``httpx.Client``.
    :param backend: Backend name attached to raised errors.
    """

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        *,
        api_key: Optional[str] = None,
        path_prefix: str = "",
        user_endpoint: str = USER_ENDPOINT,
        timeout: float = 30.0,
        transport: Optional[httpx.BaseTransport] = None,
        client_options: Optional[dict[str, Any]] = None,
        backend: str = "pixeldrain",
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.path_prefix = path_prefix
        self.user_endpoint = user_endpoint
        self.backend = backend
        self._api_key = api_key
        self._timeout = timeout
        self._transport = transport
        self._client_options = client_options or {}
        self._client_instance: Optional[httpx.Client] = None

    def __repr__(self) -> str:
        return f"FilesystemAPI(api_url={self.api_url!r}, path_prefix={self.path_prefix!r})"

    # region: lazy client

    @property
    def client(self) -> httpx.Client:
        """The underlying ``httpx.Client``, created on first use."""
        if self._client_instance is None:
            opts: dict[str, Any] = dict(self._client_options)
            if self._api_key:
                opts["auth"] = httpx.BasicAuth("", self._api_key)
                if self.api_url.startswith("http://"):
                    log.warning("Sending API key over plain HTTP to %s", self.api_url)
            if self._transport is not None:
                opts["transport"] = self._transport
            opts.setdefault("timeout", self._timeout)
            log.info("Creating HTTP client for %s", self.api_url)
            self._client_instance = httpx.Client(**opts)
        return self._client_instance

    def close(self) -> None:
        if self._client_instance is not None:
            self._client_instance.close()
            self._client_instance = None

    def __enter__(self) -> FilesystemAPI:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    # endregion

    # region: request helpers

    def _url(self, path: str) -> str:
        if not path.startswith("/"):
            path = f"/{path}"
        return f"{self.api_url}/filesystem{escape_path(path)}"

    def _call(self, method: str, url: str, *, path: Optional[str] = None, **kwargs: Any) -> httpx.Response:
        """Send one request, drain and close its body, raise on failure."""
        log.debug("%s %s", method, url)
        with self.client.stream(method, url, **kwargs) as response:
            response.read()
        if not response.is_success:
            raise_api_error(response, path=path, backend=self.backend)
        return response

    def _decode(self, response: httpx.Response, decoder: Callable[[object], T], *, path: Optional[str] = None) -> T:
        try:
            payload = response.json()
        except ValueError as exc:
            raise DecodeError(f"failed to parse response json: {exc}", path=path, backend=self.backend) from exc
        return decoder(payload)

    # endregion

    # region: operations

    def put(self, path: str, content: WritableContent, *, headers: Optional[Headers] = None) -> FilesystemNode:
        """Upload ``content`` to ``path``, creating missing parent directories."""
        response = self._call(
            "PUT",
            self._url(path),
            path=path,
            params={"make_parents": "true"},
            content=_iter_content(content),
            headers=headers,
        )
        return self._decode(response, node_from_json, path=path)

    def read(
        self, path: str, *, headers: Optional[Headers] = None, stream_path: Optional[str] = None
    ) -> BinaryIO:
        """Open the content of the file at ``path``.

        ``headers`` (e.g. ``Range``) are sent unmodified. The caller must
        close the returned stream. Errors raised while reading it name
        ``stream_path``, or ``path`` when unset.
        """
        url = self._url(path)
        log.debug("GET %s (stream)", url)
        request = self.client.build_request("GET", url, headers=headers)
        response = self.client.send(request, stream=True)
        if not response.is_success:
            try:
                response.read()
            finally:
                response.close()
            raise_api_error(response, path=path, backend=self.backend)
        stream = ResponseStream(response, path=path if stream_path is None else stream_path, backend=self.backend)
        return io.BufferedReader(stream, buffer_size=_CHUNK_SIZE)  # type: ignore[return-value]

    def stat(self, path: str) -> FilesystemPath:
        """Fetch the node at ``path`` with its ancestors and children."""
        # Without the stat flag the server answers with the file content.
        response = self._call("GET", self._url(path), path=path, params={"stat": ""})
        return self._decode(response, FilesystemPath.from_json, path=path)

    def update(
        self,
        path: str,
        *,
        created: Optional[datetime] = None,
        modified: Optional[datetime] = None,
    ) -> FilesystemNode:
        """Update timestamps of the node at ``path``. Unset fields are not sent."""
        data = {"action": "update"}
        if created is not None:
            data["created"] = format_timestamp(created)
        if modified is not None:
            data["modified"] = format_timestamp(modified)
        response = self._call("POST", self._url(path), path=path, data=data)
        return self._decode(response, node_from_json, path=path)

    def mkdir(self, path: str) -> None:
        """Create the directory at ``path`` and any missing ancestors."""
        self._call("POST", self._url(path), path=path, data={"action": "mkdirall"})

    def rename(self, from_path: str, to: str) -> None:
        """Move the node at ``from_path`` to ``to`` within the same scope."""
        self._call(
            "POST",
            self._url(from_path),
            path=from_path,
            data={"action": "rename", "target": self.path_prefix + to},
        )

    def delete(self, path: str, *, recursive: bool = False) -> None:
        """Delete the node at ``path``; directories need ``recursive`` unless empty."""
        params = {"recursive": "true"} if recursive else None
        self._call("DELETE", self._url(path), path=path, params=params)

    def user_info(self) -> UserInfo:
        """Fetch the account the API key belongs to."""
        response = self._call("GET", f"{self.api_url}{self.user_endpoint}")
        return self._decode(response, UserInfo.from_json)

    # endregion
