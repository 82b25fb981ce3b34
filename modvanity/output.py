"""Writing rendered pages below an output directory."""

import logging
from pathlib import Path, PurePosixPath
from typing import Protocol

from .errors import WriteError

log = logging.getLogger(__name__)

INDEX_FILENAME = "index.html"
DIR_MODE = 0o755


class PageWriter(Protocol):
    def write(self, location: PurePosixPath, document: str) -> object:
        ...


def output_location(module_path: str) -> PurePosixPath:
    """Relative path of the page for a module: ``<module path>/index.html``."""
    return PurePosixPath(module_path) / INDEX_FILENAME


class DirectoryWriter:
    """Writes pages to disk, creating directories as needed."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)

    def write(self, location: PurePosixPath, document: str) -> Path:
        target = self.root.joinpath(*location.parts)
        if not target.resolve().is_relative_to(self.root.resolve()):
            raise WriteError(str(target), "location escapes the output directory")

        log.debug("writing file %s", target)
        try:
            target.parent.mkdir(mode=DIR_MODE, parents=True, exist_ok=True)
            target.write_text(document, encoding="utf-8")
        except OSError as e:
            raise WriteError(str(target), e) from e
        return target
