"""
Lua sandbox runtime.

Each Sandbox owns one Lua interpreter (a lupa.LuaRuntime). Right after
creation its global environment is wiped and replaced by a fixed allow-list:
basic functions, string/table/math subsets, and the host builtins installed
here (print, os.username/home/getEnv/setEnv, json.encode/decode, require).
Nothing that reads or writes files or spawns processes is reachable from
scripts, except the docker.* functions installed by DockerApi.

Python objects handed to Lua are opaque: attribute access on them is
denied, so scripts cannot walk from a host function into Python internals.

Example:
    >>> sandbox = Sandbox()
    >>> sandbox.execute_string("answer = 6 * 7")
    >>> sandbox.get_global("answer")
    42
"""

import getpass
import json
import logging
import os
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any, TextIO

import lupa

from dproj.core.errors import DprojError, ScriptError
from dproj.core.script.values import (
    ConversionState,
    kind_of,
    pop_string_param,
    to_lua,
    to_python,
)

if TYPE_CHECKING:
    from dproj.core.script.api import DockerApi

logger = logging.getLogger(__name__)

SCRIPT_EXTENSION = ".lua"

# Replaces the interpreter's default globals. Absent functions (Lua version
# differences) simply leave their slot empty.
_RESET_ENVIRONMENT = """
local pairs = pairs
local G = _G
local env = {
    tostring = tostring,
    tonumber = tonumber,
    pairs = pairs,
    ipairs = ipairs,
    next = next,
    select = select,
    type = type,
    unpack = table.unpack or unpack,
    error = error,
    assert = assert,
    pcall = pcall,
    xpcall = xpcall,
    setmetatable = setmetatable,
    getmetatable = getmetatable,
    rawget = rawget,
    rawset = rawset,
    rawequal = rawequal,
    rawlen = rawlen,
    _VERSION = _VERSION,
    os = {},
    string = {
        byte = string.byte,
        char = string.char,
        find = string.find,
        format = string.format,
        gmatch = string.gmatch,
        gsub = string.gsub,
        len = string.len,
        lower = string.lower,
        match = string.match,
        rep = string.rep,
        reverse = string.reverse,
        sub = string.sub,
        upper = string.upper,
    },
    table = {
        insert = table.insert,
        remove = table.remove,
        sort = table.sort,
        concat = table.concat,
        unpack = table.unpack,
    },
    math = {
        abs = math.abs,
        acos = math.acos,
        asin = math.asin,
        atan = math.atan,
        ceil = math.ceil,
        cos = math.cos,
        deg = math.deg,
        exp = math.exp,
        floor = math.floor,
        fmod = math.fmod,
        huge = math.huge,
        log = math.log,
        max = math.max,
        maxinteger = math.maxinteger,
        min = math.min,
        mininteger = math.mininteger,
        modf = math.modf,
        pi = math.pi,
        rad = math.rad,
        random = math.random,
        sin = math.sin,
        sqrt = math.sqrt,
        tan = math.tan,
        tointeger = math.tointeger,
        type = math.type,
        ult = math.ult,
    },
}
for k in pairs(G) do
    G[k] = nil
end
for k, v in pairs(env) do
    G[k] = v
end
G._G = G
"""


def _deny_attribute_access(obj: Any, attr_name: Any, is_setting: bool) -> Any:
    raise AttributeError(f"access to attribute '{attr_name}' is not allowed")


class Sandbox:
    """
    One isolated Lua interpreter with a curated global environment.

    Args:
        api: docker.* function provider; the `docker` table is omitted when None
        base_dir: Directory `require` resolves relative names against
        output: Stream used by `print` (defaults to sys.stdout at call time)
    """

    def __init__(
        self,
        api: "DockerApi | None" = None,
        base_dir: Path | None = None,
        output: TextIO | None = None,
        _import_chain: tuple[Path, ...] = (),
    ) -> None:
        self.api = api
        self.base_dir = base_dir or Path.cwd()
        self.output = output
        self._import_chain = _import_chain

        self.runtime = lupa.LuaRuntime(
            unpack_returned_tuples=True,
            register_eval=False,
            register_builtins=False,
            attribute_filter=_deny_attribute_access,
        )
        # Captured before the reset: scripts never see these directly.
        self._load = self.runtime.eval("load")
        self._tostring = self.runtime.eval("tostring")

        self.runtime.execute(_RESET_ENVIRONMENT)
        self._populate()
        self._builtin_names = frozenset(self.globals_table().keys())

    # Environment

    def globals_table(self) -> Any:
        return self.runtime.globals()

    def set_global(self, name: str, value: Any) -> None:
        """Bind `name` in the sandbox's global environment, converting Python data."""
        self.runtime.globals()[name] = to_lua(self.runtime, value)

    def get_global(self, name: str) -> Any:
        """Raw Lua value bound to `name` (None when unset)."""
        return self.runtime.globals()[name]

    def exported_globals(self) -> dict[str, Any]:
        """
        Top-level names defined by executed scripts, as Python data.

        Builtins installed by the sandbox itself are left out.
        """
        exported: dict[str, Any] = {}
        state = ConversionState(self.runtime)
        for name, value in self.globals_table().items():
            if name in self._builtin_names:
                continue
            exported[str(name)] = to_python(value, _state=state)
        return exported

    def _populate(self) -> None:
        g = self.runtime.globals()
        g["print"] = self._print
        g["require"] = self.require

        os_table = g["os"]
        os_table["username"] = self._username
        os_table["home"] = self._home
        os_table["getEnv"] = self._get_env
        os_table["setEnv"] = self._set_env

        self.set_global("json", {"encode": self._json_encode, "decode": self._json_decode})

        if self.api is not None:
            self.api.install(self)

    # Execution

    def _compile(self, source: str, chunk_name: str) -> Any:
        result = self._invoke(self._load, source, chunk_name, "t")
        if isinstance(result, tuple):
            chunk = result[0] if result else None
            error = result[1] if len(result) > 1 else None
        else:
            chunk, error = result, None
        if chunk is None:
            raise ScriptError(str(error or f"cannot load {chunk_name}"))
        return chunk

    def execute_string(self, source: str, chunk_name: str = "=(string)") -> None:
        """
        Compile and run a Lua chunk.

        Raises:
            ScriptError: On syntax or runtime errors
        """
        chunk = self._compile(source, chunk_name)
        self._invoke(chunk)

    def execute_file(self, path: Path) -> None:
        """
        Compile and run a Lua file.

        Raises:
            ScriptError: If the file cannot be read, or fails to parse or run
        """
        try:
            source = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise ScriptError(f"cannot read {path}: {e}") from e
        logger.debug("Executing %s", path)
        chunk = self._compile(source, f"@{path}")
        self._invoke(chunk)

    def call(self, func: Any, args: list[str]) -> Any:
        """
        Call a function bound to this sandbox with one array argument.

        Raises:
            ScriptError: If the function raises a Lua error, or a host
                builtin fails with anything but a DprojError
            DprojError: Raised by a host builtin the function called
        """
        return self._invoke(func, to_lua(self.runtime, list(args)))

    def _invoke(self, func: Any, *args: Any) -> Any:
        # lupa re-raises whatever a host callback raised, unwrapped
        try:
            return func(*args)
        except DprojError:
            raise
        except lupa.LuaError as e:
            raise ScriptError(str(e).strip()) from e
        except Exception as e:
            logger.debug("Host error inside sandbox", exc_info=True)
            raise ScriptError(str(e) or type(e).__name__) from e

    # Builtins

    def _print(self, *args: Any) -> None:
        text = " ".join(str(self._tostring(arg)) for arg in args)
        stream = self.output or sys.stdout
        stream.write(text + "\n")
        stream.flush()

    def _username(self, *args: Any) -> str:
        try:
            return getpass.getuser()
        except (KeyError, OSError) as e:
            raise ScriptError(f"can't get username: {e}") from e

    def _home(self, *args: Any) -> str:
        try:
            return str(Path.home())
        except RuntimeError as e:
            raise ScriptError(f"can't get home directory: {e}") from e

    def _get_env(self, *args: Any) -> str:
        key, found = pop_string_param(list(args))
        if not found or not key:
            raise ScriptError("can't get env value for empty key")
        return os.environ.get(key, "")

    def _set_env(self, *args: Any) -> None:
        params = list(args)
        key, found_key = pop_string_param(params)
        value, found_value = pop_string_param(params)
        if not found_key or not found_value:
            raise ScriptError("setEnv requires 2 arguments (key, value)")
        if not key:
            raise ScriptError("can't set env value for empty key")
        os.environ[key] = value or ""

    def _json_encode(self, *args: Any) -> str:
        if not args:
            raise ScriptError("json.encode requires 1 argument")
        data = to_python(args[0], self.runtime)

        def unsupported(value: Any) -> Any:
            raise ScriptError(f"json.encode: cannot encode {kind_of(value).value} value")

        try:
            return json.dumps(data, separators=(",", ":"), default=unsupported)
        except (TypeError, ValueError) as e:
            raise ScriptError(f"json.encode: {e}") from e

    def _json_decode(self, *args: Any) -> Any:
        text, found = pop_string_param(list(args))
        if not found:
            raise ScriptError("json.decode requires 1 argument")
        try:
            data = json.loads(text or "")
        except json.JSONDecodeError as e:
            raise ScriptError(f"json.decode: {e}") from e
        return to_lua(self.runtime, data)

    def require(self, *args: Any) -> Any:
        """
        Load another script in a fresh sandbox and return its top-level names.

        The imported file shares nothing with the importer but the returned
        table. Relative names resolve against this sandbox's base directory
        and get the .lua extension when they have none.
        """
        filename, found = pop_string_param(list(args))
        if not found or not filename:
            raise ScriptError("require needs a file name")

        path = Path(filename)
        if not path.suffix:
            path = path.with_suffix(SCRIPT_EXTENSION)
        if not path.is_absolute():
            path = self.base_dir / path
        path = path.resolve()

        if not path.is_file():
            raise ScriptError(f"require: can't find script '{filename}' ({path})")
        if path in self._import_chain:
            raise ScriptError(f"require: circular import of '{filename}'")

        logger.debug("Requiring %s", path)
        imported = Sandbox(
            api=self.api,
            base_dir=path.parent,
            output=self.output,
            _import_chain=self._import_chain + (path,),
        )
        imported.execute_file(path)
        return to_lua(self.runtime, imported.exported_globals())

