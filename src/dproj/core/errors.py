"""
Exceptions for dproj.

Exception Hierarchy:
    DprojError (base)
    ├── ProjectError
    │   ├── ProjectLoadError (marker script failed to parse or run)
    │   ├── MalformedProjectError (bad id/name or task catalog)
    │   └── ProjectInitError (project could not be initialized)
    ├── ScriptError (error raised inside a sandbox)
    │   └── ArgumentTypeError (wrong-typed argument given to a host builtin)
    ├── DispatchError
    │   ├── OverrideRejectedError (task shadows a protected built-in)
    │   └── CommandNotFoundError
    └── DockerError
        ├── EngineError (Docker Engine API failure)
        └── CommandError (docker CLI failure)

Not being inside a project is not an error: lookups return None instead.

Example:
    >>> from dproj.core.errors import MalformedProjectError
    >>> try:
    ...     raise MalformedProjectError("bad task", task="build")
    ... except MalformedProjectError as e:
    ...     print(e.task)
    build
"""


class DprojError(Exception):
    """
    Base exception for all dproj errors.

    Attributes:
        message: Human-readable error message
        context: Optional dictionary of additional context
    """

    def __init__(self, message: str, **context: object) -> None:
        super().__init__(message)
        self.message = message
        self.context = context

    def __str__(self) -> str:
        return self.message


class ProjectError(DprojError):
    """Base exception for project declaration problems."""


class ProjectLoadError(ProjectError):
    """
    Raised when the project marker script fails to parse or execute.

    Attributes:
        path: Path of the marker script
    """

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(f"failed to load project file {path}: {reason}", path=path)
        self.path = path
        self.reason = reason


class MalformedProjectError(ProjectError):
    """
    Raised when the project table or its task catalog has the wrong shape.

    Attributes:
        task: Name of the offending task, when the problem is task specific
    """

    def __init__(self, message: str, task: str | None = None) -> None:
        super().__init__(message, task=task)
        self.task = task


class ProjectInitError(ProjectError):
    """Raised when a project cannot be initialized in a directory."""


class ScriptError(DprojError):
    """Raised when code running inside a sandbox fails."""


class ArgumentTypeError(ScriptError):
    """
    Raised when a host builtin receives an argument of the wrong type.

    Attributes:
        expected: Name of the expected script type (e.g. "string")
        actual: Name of the type actually received
    """

    def __init__(self, expected: str, actual: str) -> None:
        super().__init__(
            f"parameter is not a {expected} (got {actual})",
            expected=expected,
            actual=actual,
        )
        self.expected = expected
        self.actual = actual


class DispatchError(DprojError):
    """Base exception for command resolution failures."""


class OverrideRejectedError(DispatchError):
    """
    Raised when a project task shadows a built-in command that is protected.

    Attributes:
        command: The rejected command name
        allowed: Built-in command names a project task may override
    """

    def __init__(self, command: str, allowed: tuple[str, ...]) -> None:
        super().__init__(
            f"{command} can't be overridden. "
            f"These commands can be overridden: {', '.join(allowed)}",
            command=command,
        )
        self.command = command
        self.allowed = allowed


class CommandNotFoundError(DispatchError):
    """Raised when a command is neither a built-in nor a project task."""

    def __init__(self, command: str) -> None:
        super().__init__(f"'{command}' is not a dproj command", command=command)
        self.command = command


class DockerError(DprojError):
    """Base exception for failures talking to Docker."""


class EngineError(DockerError):
    """
    Raised when a Docker Engine API request fails.

    Attributes:
        status_code: HTTP status code, if a response was received
    """

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message, status_code=status_code)
        self.status_code = status_code


class CommandError(DockerError):
    """
    Raised when a docker CLI invocation fails.

    Attributes:
        args_list: Arguments passed to the docker binary
        returncode: Exit status of the process (None if it never started)
        stderr: Captured standard error, when output was captured
    """

    def __init__(
        self,
        args_list: list[str],
        returncode: int | None,
        stderr: str | None = None,
        message: str | None = None,
    ) -> None:
        if message is None:
            if stderr and stderr.strip():
                message = stderr.strip()
            else:
                message = f"docker {' '.join(args_list)} exited with status {returncode}"
        super().__init__(message, returncode=returncode)
        self.args_list = args_list
        self.returncode = returncode
        self.stderr = stderr
