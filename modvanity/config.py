"""Run configuration, from explicit arguments and MODVANITY_* environment variables."""

import os
from dataclasses import dataclass
from typing import Optional

from .models import DuplicatePolicy, PrefixPolicy

DEFAULT_OUTPUT_DIR = "html"

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off"}


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ValueError(f"{name} must be true or false, got: {raw!r}")


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "")
    if not raw:
        return default
    return _parse_bool(name, raw)


@dataclass(frozen=True)
class VanityConfig:
    """Everything a generation run needs.

    import_prefix is the import path that corresponds to the repository
    root; repo_url is what ends up in the go-import tag and what gets
    cloned (unless source_dir points at a local checkout).
    """

    import_prefix: str
    repo_url: str
    branch: str = ""
    output_dir: str = DEFAULT_OUTPUT_DIR
    redirect: bool = True
    verbose: bool = False
    prefix_policy: PrefixPolicy = PrefixPolicy.LITERAL
    duplicate_policy: DuplicatePolicy = DuplicatePolicy.ALLOW
    source_dir: str = ""

    def __post_init__(self) -> None:
        missing = []
        if not self.import_prefix:
            missing.append("import_prefix")
        if not self.repo_url:
            missing.append("repo_url")
        if missing:
            raise ValueError(f"Missing required settings: {', '.join(missing)}")
        if not self.output_dir:
            raise ValueError("output_dir must not be empty")

    @classmethod
    def from_env(
        cls,
        import_prefix: str,
        repo_url: str,
        *,
        branch: Optional[str] = None,
        output_dir: Optional[str] = None,
        redirect: Optional[bool] = None,
        verbose: Optional[bool] = None,
        strict_prefix: Optional[bool] = None,
        fail_on_duplicate: Optional[bool] = None,
        source_dir: Optional[str] = None,
    ) -> "VanityConfig":
        """Combine explicit values with the environment.

        Any argument left as None falls back to its environment variable:
          MODVANITY_BRANCH, MODVANITY_OUTPUT_DIR, MODVANITY_REDIRECT,
          MODVANITY_VERBOSE, MODVANITY_STRICT_PREFIX,
          MODVANITY_FAIL_ON_DUPLICATE, MODVANITY_SOURCE_DIR
        and then to the built-in default. Raises ValueError on a
        malformed boolean or a missing prefix/repository.
        """
        if branch is None:
            branch = os.getenv("MODVANITY_BRANCH", "")
        if output_dir is None:
            output_dir = os.getenv("MODVANITY_OUTPUT_DIR", "") or DEFAULT_OUTPUT_DIR
        if redirect is None:
            redirect = _env_bool("MODVANITY_REDIRECT", True)
        if verbose is None:
            verbose = _env_bool("MODVANITY_VERBOSE", False)
        if strict_prefix is None:
            strict_prefix = _env_bool("MODVANITY_STRICT_PREFIX", False)
        if fail_on_duplicate is None:
            fail_on_duplicate = _env_bool("MODVANITY_FAIL_ON_DUPLICATE", False)
        if source_dir is None:
            source_dir = os.getenv("MODVANITY_SOURCE_DIR", "")

        return cls(
            import_prefix=import_prefix,
            repo_url=repo_url,
            branch=branch,
            output_dir=output_dir,
            redirect=redirect,
            verbose=verbose,
            prefix_policy=PrefixPolicy.SEGMENT_AWARE if strict_prefix else PrefixPolicy.LITERAL,
            duplicate_policy=DuplicatePolicy.REJECT if fail_on_duplicate else DuplicatePolicy.ALLOW,
            source_dir=source_dir,
        )
