"""
The `docker` table available to project scripts.

    docker.cmd(args)                 run a docker command, interactive
    docker.silentCmd(args)           run a docker command, returns stdout, stderr
    docker.container.list([flags])   docker.container.inspect(ref, ...)
    docker.image.list([flags])       docker.image.inspect(ref, ...)
    docker.volume.list([flags])      docker.network.list([flags])
    docker.service.list([flags])     docker.secret.list([flags])

List/inspect calls go to the Engine API and return arrays of records with
the field sets defined in dproj.core.script.records. cmd/silentCmd go
through the docker CLI with project scoping applied.
"""

import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from dproj.core.docker.commands import DockerCommandRunner
from dproj.core.docker.engine import EngineClient
from dproj.core.docker.options import (
    CONTAINER_LIST,
    IMAGE_LIST,
    NETWORK_LIST,
    SECRET_LIST,
    SERVICE_LIST,
    VOLUME_LIST,
    parse_list_options,
    split_args,
)
from dproj.core.errors import ScriptError
from dproj.core.script import records
from dproj.core.script.values import pop_string_param, to_lua

if TYPE_CHECKING:
    from dproj.core.script.runtime import Sandbox

logger = logging.getLogger(__name__)

HostFunction = Callable[[list[Any]], Any]


class DockerApi:
    """
    Host implementation of the `docker` script table.

    One DockerApi can be installed into several sandboxes (a project
    sandbox and the sandboxes created by `require`); results are always
    delivered into the calling sandbox's runtime.

    Args:
        runner: Docker CLI runner used by cmd/silentCmd
        engine_factory: Creates an EngineClient for each list/inspect call
    """

    def __init__(
        self,
        runner: DockerCommandRunner,
        engine_factory: Callable[[], EngineClient],
    ) -> None:
        self.runner = runner
        self.engine_factory = engine_factory

    def install(self, sandbox: "Sandbox") -> None:
        """Bind the `docker` global in `sandbox`."""

        def bind(func: HostFunction) -> Callable[..., Any]:
            def host_function(*args: Any) -> Any:
                result = func(list(args))
                if isinstance(result, tuple):
                    return tuple(to_lua(sandbox.runtime, item) for item in result)
                return to_lua(sandbox.runtime, result)

            return host_function

        sandbox.set_global(
            "docker",
            {
                "cmd": bind(self.cmd),
                "silentCmd": bind(self.silent_cmd),
                "container": {
                    "list": bind(self.container_list),
                    "inspect": bind(self.container_inspect),
                },
                "image": {
                    "list": bind(self.image_list),
                    "inspect": bind(self.image_inspect),
                },
                "volume": {"list": bind(self.volume_list)},
                "network": {"list": bind(self.network_list)},
                "service": {"list": bind(self.service_list)},
                "secret": {"list": bind(self.secret_list)},
            },
        )

    # CLI

    def _command_args(self, args: list[Any], function: str) -> list[str]:
        args_string, found = pop_string_param(args)
        if not found:
            raise ScriptError(f"docker.{function} requires 1 argument")
        return split_args(args_string)

    def cmd(self, args: list[Any]) -> None:
        """docker.cmd(args): run with inherited stdio, error on failure."""
        self.runner.check(self._command_args(args, "cmd"))

    def silent_cmd(self, args: list[Any]) -> tuple[str, str | None]:
        """docker.silentCmd(args): returns stdout and stderr (nil when empty)."""
        out, err = self.runner.capture(self._command_args(args, "silentCmd"))
        return out, err or None

    # Engine

    def _list_flags(self, args: list[Any]) -> str | None:
        # A single optional flag string
        args_string, _found = pop_string_param(args)
        return args_string

    def _references(self, args: list[Any], function: str) -> list[str]:
        references: list[str] = []
        while args:
            reference, _found = pop_string_param(args)
            references.append(reference or "")
        if not references:
            raise ScriptError(f"docker.{function} requires at least 1 argument")
        return references

    def container_list(self, args: list[Any]) -> list[dict[str, Any]]:
        options = parse_list_options(CONTAINER_LIST, self._list_flags(args))
        with self.engine_factory() as engine:
            containers = engine.list_containers(
                # --last and --latest include stopped containers, like docker ps
                all=options.all or options.limit is not None,
                size=options.size,
                limit=options.limit,
                filters=options.filters,
            )
        return [records.container_summary(c) for c in containers]

    def container_inspect(self, args: list[Any]) -> list[dict[str, Any]]:
        references = self._references(args, "container.inspect")
        with self.engine_factory() as engine:
            return [records.container_details(engine.inspect_container(r)) for r in references]

    def image_list(self, args: list[Any]) -> list[dict[str, Any]]:
        options = parse_list_options(IMAGE_LIST, self._list_flags(args))
        with self.engine_factory() as engine:
            images = engine.list_images(
                all=options.all, digests=options.digests, filters=options.filters
            )
        return [records.image_summary(i) for i in images]

    def image_inspect(self, args: list[Any]) -> list[dict[str, Any]]:
        references = self._references(args, "image.inspect")
        with self.engine_factory() as engine:
            return [records.image_details(engine.inspect_image(r)) for r in references]

    def volume_list(self, args: list[Any]) -> list[dict[str, Any]]:
        options = parse_list_options(VOLUME_LIST, self._list_flags(args))
        with self.engine_factory() as engine:
            volumes = engine.list_volumes(filters=options.filters)
        return [records.volume_summary(v) for v in volumes]

    def network_list(self, args: list[Any]) -> list[dict[str, Any]]:
        options = parse_list_options(NETWORK_LIST, self._list_flags(args))
        with self.engine_factory() as engine:
            networks = engine.list_networks(filters=options.filters)
        return [records.network_summary(n) for n in networks]

    def service_list(self, args: list[Any]) -> list[dict[str, Any]]:
        options = parse_list_options(SERVICE_LIST, self._list_flags(args))
        with self.engine_factory() as engine:
            services = engine.list_services(filters=options.filters)
        return [records.service_summary(s) for s in services]

    def secret_list(self, args: list[Any]) -> list[dict[str, Any]]:
        options = parse_list_options(SECRET_LIST, self._list_flags(args))
        with self.engine_factory() as engine:
            secrets = engine.list_secrets(filters=options.filters)
        return [records.secret_summary(s) for s in secrets]
