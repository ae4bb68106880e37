"""
Docker Engine API client.

A thin synchronous client over httpx covering the read-only endpoints that
project scripts can reach: container/image list and inspect, and volume,
network, service and secret listing. Results are the Engine's decoded JSON;
projection into script-facing records happens in dproj.core.script.records.

The endpoint follows DOCKER_HOST conventions:
    unix:///var/run/docker.sock   (default)
    tcp://127.0.0.1:2375
    http(s)://host:port
"""

import json
import logging
from typing import Any
from urllib.parse import quote

import httpx

from dproj.core.errors import EngineError

logger = logging.getLogger(__name__)

DEFAULT_HOST = "unix:///var/run/docker.sock"

# Requests over a unix socket still need an http URL; the host part is ignored.
_UNIX_BASE_URL = "http://docker"


def _transport_for(host: str) -> tuple[str, httpx.BaseTransport | None]:
    """Return (base_url, transport) for a DOCKER_HOST style endpoint."""
    if host.startswith("unix://"):
        return _UNIX_BASE_URL, httpx.HTTPTransport(uds=host[len("unix://"):])
    if host.startswith("tcp://"):
        return "http://" + host[len("tcp://"):], None
    if host.startswith(("http://", "https://")):
        return host, None
    raise EngineError(f"unsupported Docker host: {host}")


class EngineClient:
    """
    Read-only Docker Engine API client.

    Example:
        >>> with EngineClient() as engine:
        ...     running = engine.list_containers()
    """

    def __init__(
        self,
        host: str | None = None,
        timeout: float = 60.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        """
        Args:
            host: Engine endpoint, defaults to the local unix socket
            timeout: Request timeout in seconds
            transport: Explicit transport (tests pass an httpx.MockTransport)
        """
        self.host = host or DEFAULT_HOST
        base_url, default_transport = _transport_for(self.host)
        self._client = httpx.Client(
            base_url=base_url,
            transport=transport or default_transport,
            timeout=timeout,
        )

    def close(self) -> None:
        self._client.close()

    def __enter__(self) -> "EngineClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        query = {k: v for k, v in (params or {}).items() if v is not None}
        logger.debug("GET %s %s", path, query)
        try:
            response = self._client.get(path, params=query)
        except httpx.TimeoutException as e:
            raise EngineError(f"request to the Docker daemon timed out: {e}") from e
        except httpx.RequestError as e:
            raise EngineError(
                f"Cannot connect to the Docker daemon at {self.host}. "
                f"Is the docker daemon running? ({e})"
            ) from e

        if response.status_code >= 400:
            raise EngineError(_error_message(response), status_code=response.status_code)
        try:
            return response.json()
        except ValueError as e:
            raise EngineError(
                f"unexpected response from the Docker daemon for {path}: {e}",
                status_code=response.status_code,
            ) from e

    # Containers

    def list_containers(
        self,
        all: bool = False,
        size: bool = False,
        limit: int | None = None,
        filters: dict[str, list[str]] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "all": _flag(all),
            "size": _flag(size),
            "limit": limit if limit is not None and limit > 0 else None,
            "filters": _encode_filters(filters),
        }
        return self._get("/containers/json", params) or []

    def inspect_container(self, reference: str) -> dict[str, Any]:
        return self._get(f"/containers/{quote(reference, safe='')}/json")

    # Images

    def list_images(
        self,
        all: bool = False,
        digests: bool = False,
        filters: dict[str, list[str]] | None = None,
    ) -> list[dict[str, Any]]:
        params: dict[str, Any] = {
            "all": _flag(all),
            "digests": _flag(digests),
            "filters": _encode_filters(filters),
        }
        return self._get("/images/json", params) or []

    def inspect_image(self, reference: str) -> dict[str, Any]:
        # Image references may contain "/" (repository paths), which the
        # Engine routes correctly when left unescaped.
        return self._get(f"/images/{quote(reference, safe='/:@')}/json")

    # Other resources

    def list_volumes(self, filters: dict[str, list[str]] | None = None) -> list[dict[str, Any]]:
        data = self._get("/volumes", {"filters": _encode_filters(filters)}) or {}
        return data.get("Volumes") or []

    def list_networks(self, filters: dict[str, list[str]] | None = None) -> list[dict[str, Any]]:
        return self._get("/networks", {"filters": _encode_filters(filters)}) or []

    def list_services(self, filters: dict[str, list[str]] | None = None) -> list[dict[str, Any]]:
        return self._get("/services", {"filters": _encode_filters(filters)}) or []

    def list_secrets(self, filters: dict[str, list[str]] | None = None) -> list[dict[str, Any]]:
        return self._get("/secrets", {"filters": _encode_filters(filters)}) or []


def _flag(value: bool) -> str | None:
    return "1" if value else None


def _encode_filters(filters: dict[str, list[str]] | None) -> str | None:
    """Encode filters the way the Engine expects: a JSON map of name to values."""
    if not filters:
        return None
    return json.dumps({name: sorted(set(values)) for name, values in filters.items()})


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        body = None
    if isinstance(body, dict) and body.get("message"):
        return str(body["message"])
    text = response.text.strip()
    return text or f"Docker daemon returned HTTP {response.status_code}"
