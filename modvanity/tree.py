"""Read-only snapshots of a source tree.

Discovery only needs two things from a tree: the list of file paths and
the contents of a file. Anything that provides both can be scanned,
whether it is a fresh git clone, a local checkout or a dict in a test.
"""

import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Callable, Iterable, Iterator, Mapping, Optional, Protocol

from .errors import ReadError, RetrievalError

log = logging.getLogger(__name__)

Runner = Callable[..., bytes]


class TreeSnapshot(Protocol):
    def files(self) -> Iterator[str]:
        """Yield every file path, relative to the root, with ``/`` separators."""
        ...

    def read(self, path: str) -> bytes:
        ...


class MemoryTree:
    """Tree backed by a ``{path: contents}`` mapping, in insertion order."""

    def __init__(self, files: Mapping[str, bytes | str]) -> None:
        self._files = {
            path: data.encode("utf-8") if isinstance(data, str) else data
            for path, data in files.items()
        }

    def files(self) -> Iterator[str]:
        return iter(list(self._files))

    def read(self, path: str) -> bytes:
        try:
            return self._files[path]
        except KeyError:
            raise ReadError(path, "file not in tree") from None


class DirectoryTree:
    """Tree backed by a directory on disk, e.g. an existing checkout."""

    def __init__(self, root: str | Path) -> None:
        self.root = Path(root)
        if not self.root.is_dir():
            raise RetrievalError(f"source directory not found: {self.root}")

    def files(self) -> Iterator[str]:
        # An unlistable directory could hide a module, so it is fatal.
        for dirpath, dirnames, filenames in os.walk(self.root, onerror=self._walk_error):
            dirnames[:] = sorted(name for name in dirnames if name != ".git")
            current = Path(dirpath)
            for filename in sorted(filenames):
                yield (current / filename).relative_to(self.root).as_posix()

    def read(self, path: str) -> bytes:
        return (self.root / path).read_bytes()

    def _walk_error(self, err: OSError) -> None:
        path = Path(err.filename) if err.filename else self.root
        try:
            rel_path = path.relative_to(self.root).as_posix()
        except ValueError:
            rel_path = str(path)
        raise ReadError(rel_path, err) from err


class GitTree:
    """Files at HEAD of a shallow clone.

    Use :meth:`clone` as a context manager; the clone lives in a temporary
    directory that is removed on exit. The work tree is never checked out,
    contents come straight from the object store.
    """

    def __init__(self, repo_dir: Path, runner: Optional[Runner] = None) -> None:
        self.repo_dir = repo_dir
        self._runner = runner or _default_runner
        self._tmpdir: Optional[str] = None

    @classmethod
    def clone(
        cls,
        url: str,
        branch: str = "",
        runner: Optional[Runner] = None,
    ) -> "GitTree":
        tmpdir = tempfile.mkdtemp(prefix="modvanity-")
        tree = cls(Path(tmpdir) / "repo", runner=runner)
        tree._tmpdir = tmpdir

        args = ["git", "clone", "--quiet", "--depth", "1", "--no-checkout"]
        if branch:
            args += ["--branch", branch, "--single-branch"]
        args += ["--", url, str(tree.repo_dir)]

        log.info("Cloning %s%s", url, f" (branch {branch})" if branch else "")
        try:
            tree._run(args, cwd=Path(tmpdir))
        except (OSError, subprocess.CalledProcessError) as e:
            tree.close()
            raise RetrievalError(f"cloning {url}: {_describe(e)}") from e
        return tree

    def __enter__(self) -> "GitTree":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        if self._tmpdir is not None:
            shutil.rmtree(self._tmpdir, ignore_errors=True)
            self._tmpdir = None

    def files(self) -> Iterator[str]:
        try:
            output = self._run(["git", "ls-tree", "-r", "-z", "HEAD"], cwd=self.repo_dir)
        except (OSError, subprocess.CalledProcessError) as e:
            raise RetrievalError(f"listing HEAD tree: {_describe(e)}") from e

        for entry in output.split(b"\0"):
            if not entry:
                continue
            # <mode> SP <type> SP <object> TAB <path>
            meta, _, raw_path = entry.partition(b"\t")
            if meta.split(b" ")[1:2] != [b"blob"]:
                continue
            yield raw_path.decode("utf-8", errors="surrogateescape")

    def read(self, path: str) -> bytes:
        try:
            return self._run(["git", "cat-file", "blob", f"HEAD:{path}"], cwd=self.repo_dir)
        except (OSError, subprocess.CalledProcessError) as e:
            raise ReadError(path, _describe(e)) from e

    def _run(self, args: Iterable[str], *, cwd: Path) -> bytes:
        return self._runner(args, cwd=cwd)


def _default_runner(args: Iterable[str], *, cwd: Path) -> bytes:
    completed = subprocess.run(
        list(args),
        cwd=str(cwd),
        check=True,
        capture_output=True,
    )
    return completed.stdout


def _describe(exc: Exception) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        stderr = exc.stderr
        if isinstance(stderr, bytes):
            stderr = stderr.decode("utf-8", errors="replace")
        if stderr and stderr.strip():
            return stderr.strip()
    return str(exc)
