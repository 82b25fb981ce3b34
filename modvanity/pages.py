"""Build and render vanity import pages.

A page tells ``go get`` where the repository behind an import path lives
(the go-import meta tag) and sends human visitors to pkg.go.dev.
"""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from jinja2 import Environment, FileSystemLoader

from .models import GoImport, PageModel, PrefixPolicy

DOC_BASE_URL = "https://pkg.go.dev/"
VCS_GIT = "git"

_TEMPLATE_NAME = "index.html.j2"


def build_page(
    module_path: str,
    import_prefix: str,
    repo_root: str,
    redirect: bool = True,
    policy: PrefixPolicy = PrefixPolicy.LITERAL,
) -> Optional[PageModel]:
    """Return the page for ``module_path``, or None if it is outside ``import_prefix``."""
    if not policy.matches(module_path, import_prefix):
        return None
    return PageModel(
        module_path=module_path,
        go_import=GoImport(import_prefix=import_prefix, vcs=VCS_GIT, repo_root=repo_root),
        doc_url=doc_url(module_path),
        redirect=redirect,
    )


def doc_url(module_path: str) -> str:
    # Module paths are already URL-safe.
    return DOC_BASE_URL + module_path


def render_page(page: PageModel) -> str:
    return _environment().get_template(_TEMPLATE_NAME).render(page=page)


@lru_cache(maxsize=1)
def _environment() -> Environment:
    loader = FileSystemLoader(str(Path(__file__).with_name("templates")))
    return Environment(
        loader=loader,
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
        keep_trailing_newline=True,
    )
