"""End-to-end pipeline: get the tree → discover modules → write one page per module.

Discovery finishes before the first page is written, so a broken go.mod
leaves the output directory untouched.
"""

import logging
import time
from contextlib import ExitStack
from dataclasses import dataclass, field

from .config import VanityConfig
from .discover import discover_modules
from .models import GeneratedPage
from .output import DirectoryWriter, PageWriter, output_location
from .pages import build_page, render_page
from .tree import DirectoryTree, GitTree, TreeSnapshot

log = logging.getLogger(__name__)


@dataclass
class PipelineResult:
    """Result of one generation run."""
    modules: list[str]                                        # every discovered module path
    pages: list[GeneratedPage] = field(default_factory=list)  # one per written page
    skipped: list[str] = field(default_factory=list)          # modules outside the prefix


def generate(
    tree: TreeSnapshot,
    repo_url: str,
    config: VanityConfig,
    writer: PageWriter,
) -> PipelineResult:
    """Discover modules in ``tree`` and hand a rendered page for each to ``writer``.

    Args:
        tree: Snapshot to scan for go.mod files.
        repo_url: Repository root advertised in the go-import tag.
        config: Prefix, redirect and policy settings.
        writer: Destination for the pages.

    Returns a PipelineResult. Any error aborts the run; pages written
    before the error stay in place.
    """
    modules = discover_modules(tree, duplicates=config.duplicate_policy)
    log.info("Discovered %d modules", len(modules))

    result = PipelineResult(modules=modules)
    for module in modules:
        page = build_page(
            module,
            config.import_prefix,
            repo_url,
            redirect=config.redirect,
            policy=config.prefix_policy,
        )
        if page is None:
            log.debug("ignoring module %r, does not match prefix %r", module, config.import_prefix)
            result.skipped.append(module)
            continue

        location = output_location(module)
        writer.write(location, render_page(page))
        result.pages.append(GeneratedPage(module_path=module, location=location.as_posix()))

    return result


def run(config: VanityConfig) -> PipelineResult:
    """Fetch the configured repository and write its pages to config.output_dir."""
    t0 = time.monotonic()

    with ExitStack() as stack:
        if config.source_dir:
            log.info("Reading modules from %s", config.source_dir)
            tree: TreeSnapshot = DirectoryTree(config.source_dir)
        else:
            tree = stack.enter_context(GitTree.clone(config.repo_url, branch=config.branch))

        result = generate(tree, config.repo_url, config, DirectoryWriter(config.output_dir))

    elapsed = time.monotonic() - t0
    log.info(
        "Wrote %d pages to %s (%d skipped, %.1fs)",
        len(result.pages), config.output_dir, len(result.skipped), elapsed,
    )
    return result
