from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PrefixPolicy(str, Enum):
    # "example.com/f" matches "example.com/foo"
    LITERAL = "literal"
    # "example.com/foo" matches "example.com/foo" and "example.com/foo/bar" only
    SEGMENT_AWARE = "segment-aware"

    def matches(self, module_path: str, import_prefix: str) -> bool:
        if self is PrefixPolicy.LITERAL:
            return module_path.startswith(import_prefix)
        prefix = import_prefix.rstrip("/")
        if not prefix:
            return True
        return module_path == prefix or module_path.startswith(prefix + "/")


class DuplicatePolicy(str, Enum):
    ALLOW = "allow"
    REJECT = "reject"


class Declaration(BaseModel):
    module_path: str = Field(description="Module path from the module directive")
    go_version: Optional[str] = Field(
        default=None,
        description="Language version from the go directive, if present",
    )


class GoImport(BaseModel):
    model_config = ConfigDict(frozen=True)

    import_prefix: str = Field(description="Import path corresponding to the repository root")
    vcs: str = Field(default="git", description="Version control system of the repository")
    repo_root: str = Field(description="URL the go command clones from")

    @property
    def content(self) -> str:
        """Value of the go-import meta tag."""
        return f"{self.import_prefix} {self.vcs} {self.repo_root}"


class PageModel(BaseModel):
    model_config = ConfigDict(frozen=True)

    module_path: str = Field(description="Module the page is generated for")
    go_import: GoImport
    doc_url: str = Field(description="Documentation page for the module")
    redirect: bool = Field(
        default=True,
        description="Send browsers to doc_url instead of showing links",
    )


class GeneratedPage(BaseModel):
    module_path: str = Field(description="Module the page was generated for")
    location: str = Field(description="Path of the page relative to the output root")
