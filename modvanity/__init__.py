from .config import VanityConfig
from .discover import discover_modules
from .models import DuplicatePolicy, GeneratedPage, PageModel, PrefixPolicy
from .pages import build_page, render_page
from .pipeline import generate, run
from .scanner import should_exclude

__all__ = [
    "discover_modules",
    "should_exclude",
    "build_page",
    "render_page",
    "generate",
    "run",
    "VanityConfig",
    "DuplicatePolicy",
    "GeneratedPage",
    "PageModel",
    "PrefixPolicy",
]
