"""
Script-facing projections of Docker Engine resources.

Each function takes one record as returned by the Engine API (a JSON
object decoded into a dict) and returns the fixed subset of fields
exposed to project scripts, under stable camelCase names. Fields outside
these subsets are never exposed.
"""

import re
from datetime import datetime, timezone
from typing import Any

_RFC3339 = re.compile(
    r"^(?P<base>\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2})"
    r"(?:\.(?P<frac>\d+))?"
    r"(?P<offset>Z|[+-]\d{2}:\d{2})?$"
)


def strip_digest_prefix(identifier: str | None) -> str:
    """
    Strip a hash-algorithm prefix from an identifier.

    Example:
        >>> strip_digest_prefix("sha256:abcd1234")
        'abcd1234'
        >>> strip_digest_prefix("abcd1234")
        'abcd1234'
    """
    if not identifier:
        return ""
    parts = identifier.split(":", 1)
    if len(parts) > 1:
        return parts[1]
    return identifier


def rfc3339_to_unix(timestamp: str | None) -> int:
    """
    Convert an Engine RFC3339 timestamp to Unix seconds.

    Docker uses RFC3339Nano format with variable precision.
    Missing or unparsable timestamps map to 0.
    """
    if not timestamp:
        return 0

    match = _RFC3339.match(timestamp.strip())
    if not match:
        return 0
    base, frac, offset = match.group("base", "frac", "offset")
    # Truncate nanoseconds to 6 digits for microseconds
    ts = base
    if frac:
        ts = f"{ts}.{frac[:6].ljust(6, '0')}"
    if offset and offset != "Z":
        ts += offset
    try:
        parsed = datetime.fromisoformat(ts)
    except ValueError:
        return 0
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp())


def _labels(raw: dict[str, Any] | None) -> dict[str, str]:
    return {str(k): str(v) for k, v in (raw or {}).items()}


def _strings(raw: list[Any] | None) -> list[str]:
    return [str(item) for item in (raw or [])]


def _number(raw: Any) -> int | float:
    if raw is None:
        return 0
    return raw


def port_string(port: dict[str, Any]) -> str:
    """
    Render a port binding the way `docker ps` does.

    Example:
        >>> port_string({"IP": "0.0.0.0", "PublicPort": 8080, "PrivatePort": 80, "Type": "tcp"})
        '0.0.0.0:8080->80/tcp'
    """
    private = port.get("PrivatePort", 0)
    proto = port.get("Type", "tcp")
    public = port.get("PublicPort")
    if not public:
        return f"{private}/{proto}"
    ip = port.get("IP") or ""
    prefix = f"{ip}:" if ip else ""
    return f"{prefix}{public}->{private}/{proto}"


def container_summary(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of a /containers/json entry."""
    names = [name.lstrip("/") for name in _strings(raw.get("Names"))]
    ports = [
        {
            "ip": port.get("IP") or "",
            "public": _number(port.get("PublicPort")),
            "private": _number(port.get("PrivatePort")),
            "type": port.get("Type") or "",
            "string": port_string(port),
        }
        for port in raw.get("Ports") or []
    ]
    return {
        "id": raw.get("Id", ""),
        "name": names[0] if names else "",
        "names": names,
        "image": raw.get("Image", ""),
        "imageId": strip_digest_prefix(raw.get("ImageID")),
        "created": _number(raw.get("Created")),
        "sizeRw": _number(raw.get("SizeRw")),
        "sizeRootFs": _number(raw.get("SizeRootFs")),
        "state": raw.get("State", ""),
        "status": raw.get("Status", ""),
        "ports": ports,
        "labels": _labels(raw.get("Labels")),
    }


def container_details(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of a /containers/{id}/json document."""
    state = raw.get("State") or {}
    state_record: dict[str, Any] = {
        "status": state.get("Status", ""),
        "running": bool(state.get("Running")),
        "paused": bool(state.get("Paused")),
        "restarting": bool(state.get("Restarting")),
        "OOMKilled": bool(state.get("OOMKilled")),
        "dead": bool(state.get("Dead")),
        "pid": _number(state.get("Pid")),
        "exitCode": _number(state.get("ExitCode")),
        "error": state.get("Error", ""),
        "startedAt": state.get("StartedAt", ""),
        "finishedAt": state.get("FinishedAt", ""),
    }
    if health := state.get("Health"):
        state_record["health"] = {
            "status": health.get("Status", ""),
            "failingStreak": _number(health.get("FailingStreak")),
        }

    config = raw.get("Config") or {}
    return {
        "id": raw.get("Id", ""),
        "created": raw.get("Created", ""),
        "path": raw.get("Path", ""),
        "image": strip_digest_prefix(raw.get("Image")),
        "args": _strings(raw.get("Args")),
        "state": state_record,
        "resolvConfPath": raw.get("ResolvConfPath", ""),
        "hostnamePath": raw.get("HostnamePath", ""),
        "hostsPath": raw.get("HostsPath", ""),
        "logPath": raw.get("LogPath", ""),
        "name": (raw.get("Name") or "").lstrip("/"),
        "restartCount": _number(raw.get("RestartCount")),
        "driver": raw.get("Driver", ""),
        "mountLabel": raw.get("MountLabel", ""),
        "processLabel": raw.get("ProcessLabel", ""),
        "appArmorProfile": raw.get("AppArmorProfile", ""),
        "labels": _labels(config.get("Labels")),
    }


def image_summary(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of an /images/json entry."""
    return {
        "id": strip_digest_prefix(raw.get("Id")),
        "parentId": strip_digest_prefix(raw.get("ParentId")),
        "created": _number(raw.get("Created")),
        "size": _number(raw.get("Size")),
        "repoTags": _strings(raw.get("RepoTags")),
        "labels": _labels(raw.get("Labels")),
    }


def image_details(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of an /images/{name}/json document."""
    graph_driver = raw.get("GraphDriver") or {}
    root_fs = raw.get("RootFS") or {}
    config = raw.get("Config") or {}
    return {
        "id": strip_digest_prefix(raw.get("Id")),
        "repoTags": _strings(raw.get("RepoTags")),
        "repoDigests": _strings(raw.get("RepoDigests")),
        "parent": strip_digest_prefix(raw.get("Parent")),
        "comment": raw.get("Comment", ""),
        "created": raw.get("Created", ""),
        "container": raw.get("Container", ""),
        "dockerVersion": raw.get("DockerVersion", ""),
        "author": raw.get("Author", ""),
        "architecture": raw.get("Architecture", ""),
        "os": raw.get("Os", ""),
        "osVersion": raw.get("OsVersion", ""),
        "size": _number(raw.get("Size")),
        "graphDriver": {
            "name": graph_driver.get("Name", ""),
            "data": _labels(graph_driver.get("Data")),
        },
        "rootFS": {
            "type": root_fs.get("Type", ""),
            "layers": _strings(root_fs.get("Layers")),
            "baseLayer": root_fs.get("BaseLayer", ""),
        },
        "labels": _labels(config.get("Labels")),
    }


def volume_summary(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of a /volumes entry."""
    return {
        "name": raw.get("Name", ""),
        "driver": raw.get("Driver", ""),
        "mountPoint": raw.get("Mountpoint", ""),
        "scope": raw.get("Scope", ""),
        "labels": _labels(raw.get("Labels")),
        "options": _labels(raw.get("Options")),
    }


def network_summary(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of a /networks entry."""
    return {
        "id": raw.get("Id", ""),
        "name": raw.get("Name", ""),
        "created": rfc3339_to_unix(raw.get("Created")),
        "scope": raw.get("Scope", ""),
        "driver": raw.get("Driver", ""),
        "enableIPv6": bool(raw.get("EnableIPv6")),
        "internal": bool(raw.get("Internal")),
        "attachable": bool(raw.get("Attachable")),
        "options": _labels(raw.get("Options")),
        "labels": _labels(raw.get("Labels")),
    }


def service_summary(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of a /services entry."""
    spec = raw.get("Spec") or {}
    container_spec = (spec.get("TaskTemplate") or {}).get("ContainerSpec") or {}
    return {
        "id": raw.get("ID", ""),
        "version": _number((raw.get("Version") or {}).get("Index")),
        "created": rfc3339_to_unix(raw.get("CreatedAt")),
        "updated": rfc3339_to_unix(raw.get("UpdatedAt")),
        "name": spec.get("Name", ""),
        "labels": _labels(spec.get("Labels")),
        "image": container_spec.get("Image", ""),
    }


def secret_summary(raw: dict[str, Any]) -> dict[str, Any]:
    """Projection of a /secrets entry. Secret payloads are never exposed."""
    spec = raw.get("Spec") or {}
    return {
        "id": raw.get("ID", ""),
        "version": _number((raw.get("Version") or {}).get("Index")),
        "created": rfc3339_to_unix(raw.get("CreatedAt")),
        "updated": rfc3339_to_unix(raw.get("UpdatedAt")),
        "name": spec.get("Name", ""),
        "labels": _labels(spec.get("Labels")),
    }
