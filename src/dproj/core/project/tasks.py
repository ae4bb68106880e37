"""
Parsing of `project.tasks` declarations.

A task may be declared in one of five forms:

    build = buildFunc                                      -- bare function
    build = {buildFunc}                                    -- 1-element array
    build = {buildFunc, "Build images"}                    -- 2-element array
    build = {buildFunc, "Build images", "Builds all..."}   -- 3-element array
    build = {func = buildFunc, short = "...", desc = "..."} -- keyed table

The form is detected once here and turned into a Task; nothing else in
dproj looks at the raw declaration. Any other shape aborts the whole load:
no partial catalog is ever returned.
"""

import logging
from typing import Any

from dproj.core.errors import MalformedProjectError
from dproj.core.project.models import Task, TaskCatalog, TaskShape
from dproj.core.script.values import ValueKind, is_array_keys, kind_of, type_name

logger = logging.getLogger(__name__)

EXPECTED_SHAPES = (
    "a function, {func}, {func, 'description'}, {func, 'short', 'long'} "
    "or {func = f, short = 'short', desc = 'long'}"
)

KEYED_FIELDS = frozenset({"func", "short", "desc"})

_SEQUENCE_SHAPES = {1: TaskShape.SEQ1, 2: TaskShape.SEQ2, 3: TaskShape.SEQ3}


def _malformed(name: str, detail: str) -> MalformedProjectError:
    return MalformedProjectError(
        f"task '{name}' is malformed: {detail}. Expected {EXPECTED_SHAPES}",
        task=name,
    )


def _optional_string(name: str, field: str, value: Any) -> str:
    kind = kind_of(value)
    if kind == ValueKind.NIL:
        return ""
    if kind != ValueKind.STRING:
        raise _malformed(name, f"{field} should be a string (got {type_name(value)})")
    return value


def _require_function(name: str, field: str, value: Any) -> Any:
    if kind_of(value) != ValueKind.FUNCTION:
        raise _malformed(name, f"{field} should be a function (got {type_name(value)})")
    return value


def _make_task(name: str, shape: TaskShape, function: Any, short: str, desc: str) -> Task:
    # An empty description inherits the other one
    if not short:
        short = desc
    if not desc:
        desc = short
    return Task(name=name, short_description=short, description=desc, function=function, shape=shape)


def parse_task(name: str, declaration: Any) -> Task:
    """
    Convert one task declaration into a Task.

    Raises:
        MalformedProjectError: If the declaration has none of the accepted shapes
    """
    kind = kind_of(declaration)

    if kind == ValueKind.FUNCTION:
        return _make_task(name, TaskShape.BARE, declaration, "", "")

    if kind != ValueKind.TABLE:
        raise _malformed(name, f"got a {type_name(declaration)}")

    items = list(declaration.items())
    keys = [key for key, _ in items]

    if keys and all(kind_of(key) == ValueKind.STRING for key in keys):
        unknown = sorted(set(keys) - KEYED_FIELDS)
        if unknown:
            raise _malformed(name, f"unknown field(s) {', '.join(unknown)}")
        fields = dict(items)
        function = _require_function(name, "func", fields.get("func"))
        short = _optional_string(name, "short", fields.get("short"))
        desc = _optional_string(name, "desc", fields.get("desc"))
        return _make_task(name, TaskShape.KEYED, function, short, desc)

    if not is_array_keys(keys):
        if not keys:
            raise _malformed(name, "empty table")
        raise _malformed(name, "mixes array and keyed entries")

    if len(keys) not in _SEQUENCE_SHAPES:
        raise _malformed(name, f"array has {len(keys)} elements")

    values = [value for _, value in sorted(items, key=lambda kv: int(kv[0]))]
    function = _require_function(name, "first element", values[0])
    short = _optional_string(name, "second element", values[1]) if len(values) > 1 else ""
    desc = _optional_string(name, "third element", values[2]) if len(values) == 3 else short
    return _make_task(name, _SEQUENCE_SHAPES[len(values)], function, short, desc)


def parse_tasks(declarations: Any) -> TaskCatalog:
    """
    Parse the `project.tasks` value into a TaskCatalog.

    nil means no tasks. Otherwise the value must be a table keyed by
    task name; an array of tasks is rejected.

    Raises:
        MalformedProjectError: On any shape violation
    """
    kind = kind_of(declarations)
    if kind == ValueKind.NIL:
        return TaskCatalog()
    if kind != ValueKind.TABLE:
        raise MalformedProjectError(
            f"project.tasks should be a table (got {type_name(declarations)})"
        )

    items = list(declarations.items())
    keys = [key for key, _ in items]
    if is_array_keys(keys):
        raise MalformedProjectError(
            "project.tasks should be a table of named tasks, not an array"
        )

    tasks: list[Task] = []
    for key, value in items:
        if kind_of(key) != ValueKind.STRING:
            raise MalformedProjectError(
                f"task names should be strings (got {type_name(key)} {key!r})"
            )
        tasks.append(parse_task(key, value))

    logger.debug("Parsed %d task(s)", len(tasks))
    return TaskCatalog(tasks)
