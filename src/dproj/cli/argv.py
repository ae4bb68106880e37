"""
Argv normalization for the dproj entry point.

Everything after the command name belongs to docker or to a project task
and is never rewritten. Only the head of the command line is normalized:

    dproj --version / -V       ->  dproj version
    dproj help [CMD [SUB]]     ->  dproj [CMD [SUB]] --help

Root options (``--debug``) may precede the command and are kept in place.
"""

ROOT_FLAGS = frozenset({"--debug"})

VERSION_FLAGS = ("--version", "-V")

HELP_COMMAND = "help"


def split_command(argv: list[str]) -> tuple[list[str], list[str]]:
    """
    Split argv into root options and the command with its arguments.

    Example:
        >>> split_command(["--debug", "build", "-t", "web"])
        (['--debug'], ['build', '-t', 'web'])
    """
    index = 0
    while index < len(argv) and argv[index] in ROOT_FLAGS:
        index += 1
    return argv[:index], argv[index:]


def preprocess_argv(argv: list[str]) -> list[str]:
    """
    Normalize the head of the command line.

    ``help`` takes at most two command words; flags and repeated
    ``help`` words after it are dropped.
    """
    root_options, command = split_command(argv)
    if not command:
        return list(argv)

    head = command[0]
    if head in VERSION_FLAGS:
        return [*root_options, "version"]
    if head == HELP_COMMAND:
        words = [t for t in command[1:] if not t.startswith("-") and t != HELP_COMMAND]
        return [*root_options, *words[:2], "--help"]
    return list(argv)
