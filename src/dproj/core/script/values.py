"""
Value marshalling between Python and sandboxed Lua runtimes.

Every value crossing the host/sandbox boundary is classified into a
ValueKind before it is used, so host builtins never coerce implicitly:
a wrong-typed argument becomes an ArgumentTypeError naming the expected type.

Tables are converted structurally. Functions coming out of one runtime are
wrapped in LuaFunctionProxy so they can be called from another runtime,
which keeps every sandbox an isolated interpreter.
"""

from enum import Enum
from typing import Any

import lupa

from dproj.core.errors import ArgumentTypeError, ScriptError

# Nesting cap for tables whose runtime is unknown, where cycles can't be tracked.
MAX_TABLE_DEPTH = 64

# Maps each distinct table to a small integer. Table keys compare by
# identity, so metamethods on the converted tables are never consulted.
_TABLE_IDENTITY = """
local ids, count = {}, 0
return function(t)
    local id = ids[t]
    if id == nil then
        count = count + 1
        id = count
        ids[t] = id
    end
    return id
end
"""


class ValueKind(str, Enum):
    """Script-level type of a value crossing the sandbox boundary."""

    NIL = "nil"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    TABLE = "table"
    FUNCTION = "function"
    OTHER = "other"


def kind_of(value: Any) -> ValueKind:
    """
    Classify a value received from (or destined to) a Lua runtime.

    Example:
        >>> kind_of("abc")
        <ValueKind.STRING: 'string'>
        >>> kind_of(None)
        <ValueKind.NIL: 'nil'>
    """
    lua_type = lupa.lua_type(value)
    if lua_type == "table":
        return ValueKind.TABLE
    if lua_type == "function":
        return ValueKind.FUNCTION
    if lua_type is not None:
        return ValueKind.OTHER

    if value is None:
        return ValueKind.NIL
    # bool before int: bool is an int subclass
    if isinstance(value, bool):
        return ValueKind.BOOLEAN
    if isinstance(value, (int, float)):
        return ValueKind.NUMBER
    if isinstance(value, (str, bytes)):
        return ValueKind.STRING
    if isinstance(value, (dict, list, tuple)):
        return ValueKind.TABLE
    if callable(value):
        return ValueKind.FUNCTION
    return ValueKind.OTHER


def type_name(value: Any) -> str:
    """Script-facing type name of a value, used in error messages."""
    return kind_of(value).value


def is_array_keys(keys: list[Any]) -> bool:
    """True when keys are exactly the integers 1..n with n >= 1."""
    if not keys:
        return False
    for key in keys:
        if isinstance(key, bool) or not isinstance(key, (int, float)):
            return False
        if key != int(key):
            return False
    return sorted(int(k) for k in keys) == list(range(1, len(keys) + 1))


class ConversionState:
    """
    Tables already converted during one conversion pass.

    A table reached twice converts to the same Python object, so reference
    cycles (``Point.__index = Point``) survive instead of recursing forever.
    Lua tables are only tracked when their runtime is known.
    """

    def __init__(self, owner: "lupa.LuaRuntime | None" = None) -> None:
        self.owner = owner
        self._identity: Any = None
        self._converted: dict[Any, Any] = {}

    def key_for(self, table: Any) -> Any:
        if lupa.lua_type(table) is None:
            return ("py", id(table))
        if self.owner is None:
            return None
        if self._identity is None:
            self._identity = self.owner.execute(_TABLE_IDENTITY)
        return ("lua", self._identity(table))

    def lookup(self, key: Any) -> Any:
        return self._converted.get(key)

    def remember(self, key: Any, converted: Any) -> None:
        if key is not None:
            self._converted[key] = converted


def _table_key(key: Any) -> Any:
    if isinstance(key, (dict, list)):
        raise ScriptError("tables can't be used as keys outside the sandbox")
    return key


def to_python(
    value: Any,
    owner: "lupa.LuaRuntime | None" = None,
    _state: ConversionState | None = None,
    _depth: int = 0,
) -> Any:
    """
    Convert a Lua value into plain Python data.

    Tables whose keys are exactly 1..n become lists, every other table
    (including the empty table) becomes a dict. A table referenced twice
    becomes one shared object. Lua functions become LuaFunctionProxy
    objects bound to `owner`, the runtime they live in.

    Raises:
        ScriptError: If a table is used as a key, or if a table from an
            unknown runtime nests deeper than MAX_TABLE_DEPTH
    """
    state = _state or ConversionState(owner)

    kind = kind_of(value)
    if kind == ValueKind.STRING and isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    if kind == ValueKind.FUNCTION:
        if lupa.lua_type(value) == "function":
            return LuaFunctionProxy(value, state.owner)
        return value
    if kind != ValueKind.TABLE:
        return value

    key = state.key_for(value)
    if key is None and _depth > MAX_TABLE_DEPTH:
        raise ScriptError("table nesting too deep (recursive table?)")
    converted = state.lookup(key)
    if converted is not None:
        return converted

    def convert(item: Any) -> Any:
        return to_python(item, _state=state, _depth=_depth + 1)

    if isinstance(value, dict):
        result: Any = {}
        state.remember(key, result)
        result.update((k, convert(v)) for k, v in value.items())
        return result
    if isinstance(value, (list, tuple)):
        result = []
        state.remember(key, result)
        result.extend(convert(v) for v in value)
        return result

    items = list(value.items())
    if is_array_keys([k for k, _ in items]):
        result = []
        state.remember(key, result)
        result.extend(convert(v) for _, v in sorted(items, key=lambda kv: int(kv[0])))
        return result
    result = {}
    state.remember(key, result)
    for k, v in items:
        result[_table_key(convert(k))] = convert(v)
    return result


def to_lua(
    runtime: "lupa.LuaRuntime",
    value: Any,
    _seen: dict[int, Any] | None = None,
    _depth: int = 0,
) -> Any:
    """
    Convert Python data into values owned by `runtime`.

    dicts become keyed tables and lists/tuples 1-based array tables; a
    container reached twice becomes one shared table. Lua objects are
    first converted to Python, since objects of one runtime cannot be
    handed to another.
    """
    if lupa.lua_type(value) is not None:
        value = to_python(value, _depth=_depth)
    if isinstance(value, LuaFunctionProxy):
        return value.bind(runtime)
    if not isinstance(value, (dict, list, tuple)):
        return value

    seen = {} if _seen is None else _seen
    if id(value) in seen:
        return seen[id(value)]
    table = runtime.table()
    seen[id(value)] = table
    entries = value.items() if isinstance(value, dict) else enumerate(value, start=1)
    for key, item in entries:
        table[key] = to_lua(runtime, item, seen, _depth + 1)
    return table


class LuaFunctionProxy:
    """
    Callable wrapper around a Lua function owned by another runtime.

    Arguments are rebuilt inside the owning runtime before the call.
    Results are delivered into `caller` when the proxy is bound to a
    runtime, and as plain Python otherwise.
    """

    def __init__(
        self,
        func: Any,
        owner: "lupa.LuaRuntime | None",
        caller: "lupa.LuaRuntime | None" = None,
    ) -> None:
        self._func = func
        self._owner = owner
        self._caller = caller

    def bind(self, runtime: "lupa.LuaRuntime") -> "LuaFunctionProxy":
        """Return a proxy whose results are delivered into `runtime`."""
        return LuaFunctionProxy(self._func, self._owner, caller=runtime)

    def _convert_arg(self, value: Any) -> Any:
        value = to_python(value, self._caller)
        if self._owner is None:
            return value
        return to_lua(self._owner, value)

    def _convert_result(self, value: Any) -> Any:
        value = to_python(value, self._owner)
        if self._caller is None:
            return value
        return to_lua(self._caller, value)

    def __call__(self, *args: Any) -> Any:
        result = self._func(*(self._convert_arg(arg) for arg in args))
        if isinstance(result, tuple):
            return tuple(self._convert_result(item) for item in result)
        return self._convert_result(result)

    def __repr__(self) -> str:
        return "<lua function>"


def pop_string_param(args: list[Any]) -> tuple[str | None, bool]:
    """
    Pop the first argument, requiring a string.

    Returns:
        (value, True) when an argument was present, (None, False) when
        the argument list is exhausted.

    Raises:
        ArgumentTypeError: If an argument is present but is not a string
    """
    if not args:
        return None, False
    value = args.pop(0)
    if kind_of(value) != ValueKind.STRING:
        raise ArgumentTypeError("string", type_name(value))
    if isinstance(value, bytes):
        value = value.decode("utf-8", errors="replace")
    return value, True


def pop_bool_param(args: list[Any]) -> tuple[bool | None, bool]:
    """Pop the first argument, requiring a boolean. Same contract as pop_string_param."""
    if not args:
        return None, False
    value = args.pop(0)
    if kind_of(value) != ValueKind.BOOLEAN:
        raise ArgumentTypeError("boolean", type_name(value))
    return value, True
