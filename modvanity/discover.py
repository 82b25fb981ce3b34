import logging

from .declarations import parse_declaration
from .errors import DuplicateModuleError, ReadError
from .models import DuplicatePolicy
from .scanner import should_exclude
from .tree import TreeSnapshot

log = logging.getLogger(__name__)


def discover_modules(
    tree: TreeSnapshot,
    duplicates: DuplicatePolicy = DuplicatePolicy.ALLOW,
) -> list[str]:
    """
    Find every public Go module declared in a tree.

    1. Walk all files in the tree's own order
    2. Skip anything that is not an eligible go.mod (see should_exclude)
    3. Read and parse each remaining go.mod
    4. Collect the declared module paths

    Nothing is returned on failure: the first unreadable or malformed
    go.mod aborts the whole pass.

    Args:
        tree: Snapshot to scan.
        duplicates: What to do when two go.mod files declare the same path.

    Returns:
        Module paths in file order. With DuplicatePolicy.ALLOW a path
        declared twice appears twice.

    Raises:
        ReadError: an eligible file could not be read.
        DeclarationError: an eligible file is not a valid go.mod.
        DuplicateModuleError: a path repeats under DuplicatePolicy.REJECT.
    """
    modules: list[str] = []
    declared_in: dict[str, str] = {}

    for path in tree.files():
        if should_exclude(path):
            continue

        log.debug("parsing %r", path)
        try:
            content = tree.read(path)
        except ReadError:
            raise
        except OSError as e:
            raise ReadError(path, e) from e

        module_path = parse_declaration(path, content).module_path

        if module_path in declared_in:
            first = declared_in[module_path]
            if duplicates is DuplicatePolicy.REJECT:
                raise DuplicateModuleError(module_path, first, path)
            log.warning("module %r declared in both %s and %s", module_path, first, path)
        else:
            declared_in[module_path] = path

        modules.append(module_path)

    return modules
