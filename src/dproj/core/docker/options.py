"""
Parsing of the flag strings accepted by the script-facing list functions.

Scripts pass the same flags they would give to `docker container ls` and
friends, as one string: docker.container.list("-a -f label=web"). The
string is split with shell-word semantics and parsed with click, so bad
flags are reported the way a CLI would report them.
"""

import shlex
from dataclasses import dataclass, field

import click

from dproj.core.errors import ScriptError


@dataclass
class ListOptions:
    """Parsed flags of a list call."""

    quiet: bool = False
    size: bool = False
    all: bool = False
    no_trunc: bool = False
    latest: bool = False
    last: int = -1
    digests: bool = False
    format: str = ""
    filters: dict[str, list[str]] = field(default_factory=dict)
    reference: str | None = None

    @property
    def limit(self) -> int | None:
        """Engine `limit` parameter implied by --latest / --last."""
        if self.latest:
            return 1
        if self.last > 0:
            return self.last
        return None


def _quiet() -> click.Option:
    return click.Option(["-q", "--quiet"], is_flag=True, help="Only display IDs")


def _format() -> click.Option:
    return click.Option(["--format"], default="", help="Pretty-print using a Go template")


def _filter() -> click.Option:
    return click.Option(
        ["-f", "--filter", "filters"],
        multiple=True,
        help="Filter output based on conditions provided",
    )


def _no_trunc() -> click.Option:
    return click.Option(["--no-trunc"], is_flag=True, help="Don't truncate output")


CONTAINER_LIST = click.Command(
    "container.list",
    add_help_option=False,
    params=[
        _quiet(),
        click.Option(["-s", "--size"], is_flag=True, help="Display total file sizes"),
        click.Option(["-a", "--all"], is_flag=True, help="Show all containers"),
        _no_trunc(),
        click.Option(["-l", "--latest"], is_flag=True, help="Show the latest created container"),
        click.Option(["-n", "--last"], type=int, default=-1, help="Show n last created containers"),
        _format(),
        _filter(),
    ],
)

IMAGE_LIST = click.Command(
    "image.list",
    add_help_option=False,
    params=[
        _quiet(),
        click.Option(["-a", "--all"], is_flag=True, help="Show all images"),
        _no_trunc(),
        click.Option(["--digests"], is_flag=True, help="Show digests"),
        _format(),
        _filter(),
        click.Argument(["reference"], required=False),
    ],
)

VOLUME_LIST = click.Command(
    "volume.list", add_help_option=False, params=[_quiet(), _format(), _filter()]
)

NETWORK_LIST = click.Command(
    "network.list", add_help_option=False, params=[_quiet(), _no_trunc(), _format(), _filter()]
)

SERVICE_LIST = click.Command(
    "service.list", add_help_option=False, params=[_quiet(), _format(), _filter()]
)

SECRET_LIST = click.Command(
    "secret.list", add_help_option=False, params=[_quiet(), _format(), _filter()]
)


def split_args(args_string: str | None) -> list[str]:
    """
    Split a flag string with shell-word semantics.

    Raises:
        ScriptError: If quoting is unbalanced
    """
    if not args_string:
        return []
    try:
        return shlex.split(args_string)
    except ValueError as e:
        raise ScriptError(f"invalid arguments '{args_string}': {e}") from e


def parse_filters(values: tuple[str, ...] | list[str]) -> dict[str, list[str]]:
    """
    Parse `name=value` filter expressions into Engine filters.

    Example:
        >>> parse_filters(["label=web", "Status=running", "label=db"])
        {'label': ['web', 'db'], 'status': ['running']}
    """
    filters: dict[str, list[str]] = {}
    for value in values:
        name, sep, arg = value.partition("=")
        name = name.strip().lower()
        if not sep or not name:
            raise ScriptError(f"bad format of filter (expected name=value): {value}")
        filters.setdefault(name, []).append(arg.strip())
    return filters


def parse_list_options(command: click.Command, args_string: str | None) -> ListOptions:
    """
    Parse a list function's flag string.

    Raises:
        ScriptError: On unknown flags, missing flag values or bad filters
    """
    args = split_args(args_string)
    try:
        ctx = command.make_context(command.name, args)
    except click.ClickException as e:
        raise ScriptError(f"{command.name}: {e.format_message()}") from e

    params = dict(ctx.params)
    options = ListOptions(
        quiet=params.get("quiet", False),
        size=params.get("size", False),
        all=params.get("all", False),
        no_trunc=params.get("no_trunc", False),
        latest=params.get("latest", False),
        last=params.get("last", -1),
        digests=params.get("digests", False),
        format=params.get("format", "") or "",
        filters=parse_filters(params.get("filters", ())),
        reference=params.get("reference"),
    )
    if options.reference:
        options.filters.setdefault("reference", []).append(options.reference)
    return options
