from pathlib import PurePosixPath

from .declarations import DECLARATION_FILENAME

# Modules below these directories are not importable from outside the repo.
SKIP_DIRS = {"internal", "testdata"}

_HIDDEN_PREFIXES = (".", "_")


def should_exclude(path: str) -> bool:
    """Return True if the file at ``path`` cannot declare a public module.

    ``path`` is relative to the tree root and uses ``/`` separators.
    A file qualifies only when it is named go.mod, is not hidden
    (leading ``.`` or ``_`` on the file or on the path as a whole), and no
    directory above it is in SKIP_DIRS.
    """
    parts = PurePosixPath(path).parts
    if not parts:
        return True

    name = parts[-1]
    if name != DECLARATION_FILENAME:
        return True
    if name.startswith(_HIDDEN_PREFIXES) or path.startswith(_HIDDEN_PREFIXES):
        return True

    return any(part in SKIP_DIRS for part in parts[:-1])
