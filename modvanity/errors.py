"""Errors raised while discovering modules and generating pages."""


class ModvanityError(Exception):
    """Base class for every fatal modvanity error."""


class RetrievalError(ModvanityError):
    """The source tree could not be obtained."""


class ReadError(ModvanityError):
    def __init__(self, path: str, cause: object) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"reading {path}: {cause}")


class DeclarationError(ModvanityError):
    """A go.mod file could not be parsed.

    Formatted like the Go toolchain reports it: ``path:line: message``.
    Line is 0 when the problem is not tied to a line (e.g. no module
    directive at all).
    """

    def __init__(self, path: str, line: int, message: str) -> None:
        self.path = path
        self.line = line
        self.message = message
        location = f"{path}:{line}" if line else path
        super().__init__(f"{location}: {message}")


class DuplicateModuleError(ModvanityError):
    def __init__(self, module_path: str, first: str, second: str) -> None:
        self.module_path = module_path
        self.first = first
        self.second = second
        super().__init__(
            f"module {module_path!r} declared twice: {first} and {second}"
        )


class WriteError(ModvanityError):
    def __init__(self, path: str, cause: object) -> None:
        self.path = path
        self.cause = cause
        super().__init__(f"writing {path}: {cause}")
