"""End-to-end tests for the modvanity pipeline.

Each scenario is a small in-memory repository layout run through
generate(); run() is exercised against a directory on disk.
"""

from pathlib import PurePosixPath
from unittest.mock import patch

import pytest

from modvanity.config import VanityConfig
from modvanity.errors import DeclarationError, DuplicateModuleError, RetrievalError, WriteError
from modvanity.models import DuplicatePolicy, PrefixPolicy
from modvanity.output import DirectoryWriter
from modvanity.pipeline import generate, run
from modvanity.tree import MemoryTree

REPO = "https://github.com/acme/x"


class _RecordingWriter:
    def __init__(self):
        self.pages: dict[str, str] = {}

    def write(self, location: PurePosixPath, document: str):
        self.pages[location.as_posix()] = document


def _config(prefix="x", **kwargs):
    return VanityConfig(import_prefix=prefix, repo_url=REPO, **kwargs)


class TestGenerate:
    def test_two_modules(self):
        tree = MemoryTree({
            "a/go.mod": "module x/a\n",
            "b/go.mod": "module x/b\n",
        })
        writer = _RecordingWriter()
        result = generate(tree, REPO, _config(), writer)

        assert result.modules == ["x/a", "x/b"]
        assert [p.location for p in result.pages] == ["x/a/index.html", "x/b/index.html"]
        assert set(writer.pages) == {"x/a/index.html", "x/b/index.html"}
        for module in ("x/a", "x/b"):
            html = writer.pages[f"{module}/index.html"]
            assert f"https://pkg.go.dev/{module}" in html
            assert f'content="x git {REPO}"' in html

    def test_prefix_filter(self):
        tree = MemoryTree({
            "go.mod": "module go.acme.dev/x\n",
            "tools/go.mod": "module github.com/acme/x/tools\n",
        })
        writer = _RecordingWriter()
        result = generate(tree, REPO, _config(prefix="go.acme.dev/x"), writer)

        assert list(writer.pages) == ["go.acme.dev/x/index.html"]
        assert result.skipped == ["github.com/acme/x/tools"]

    def test_literal_prefix(self):
        tree = MemoryTree({"go.mod": "module example.com/foo\n"})
        for prefix in ("example.com/foo", "example.com/f"):
            writer = _RecordingWriter()
            generate(tree, REPO, _config(prefix=prefix), writer)
            assert list(writer.pages) == ["example.com/foo/index.html"]

    def test_segment_aware_prefix(self):
        tree = MemoryTree({"go.mod": "module example.com/foo\n"})
        writer = _RecordingWriter()
        config = _config(prefix="example.com/f", prefix_policy=PrefixPolicy.SEGMENT_AWARE)
        result = generate(tree, REPO, config, writer)
        assert writer.pages == {}
        assert result.skipped == ["example.com/foo"]

    def test_redirect_toggle(self):
        tree = MemoryTree({"go.mod": "module x/a\n"})
        on, off = _RecordingWriter(), _RecordingWriter()
        generate(tree, REPO, _config(redirect=True), on)
        generate(tree, REPO, _config(redirect=False), off)

        assert 'http-equiv="refresh"' in on.pages["x/a/index.html"]
        assert "Repository:" not in on.pages["x/a/index.html"]
        assert 'http-equiv="refresh"' not in off.pages["x/a/index.html"]
        assert f'Repository: <a href="{REPO}">' in off.pages["x/a/index.html"]
        assert 'Godoc: <a href="https://pkg.go.dev/x/a">' in off.pages["x/a/index.html"]

    def test_idempotent(self):
        tree = MemoryTree({"go.mod": "module x\n", "a/go.mod": "module x/a\n"})
        first, second = _RecordingWriter(), _RecordingWriter()
        generate(tree, REPO, _config(), first)
        generate(tree, REPO, _config(), second)
        assert first.pages == second.pages

    def test_empty_tree(self):
        writer = _RecordingWriter()
        result = generate(MemoryTree({}), REPO, _config(), writer)
        assert result.modules == []
        assert result.pages == []
        assert writer.pages == {}

    def test_parse_failure_writes_nothing(self):
        tree = MemoryTree({
            "a/go.mod": "module x/a\n",
            "b/go.mod": "module x/b\nmodule x/c\n",
            "c/go.mod": "module x/c\n",
        })
        writer = _RecordingWriter()
        with pytest.raises(DeclarationError):
            generate(tree, REPO, _config(), writer)
        assert writer.pages == {}

    def test_duplicates_reject(self):
        tree = MemoryTree({"a/go.mod": "module x/a\n", "b/go.mod": "module x/a\n"})
        writer = _RecordingWriter()
        with pytest.raises(DuplicateModuleError):
            generate(tree, REPO, _config(duplicate_policy=DuplicatePolicy.REJECT), writer)
        assert writer.pages == {}

    def test_duplicates_allowed_same_location(self):
        tree = MemoryTree({"a/go.mod": "module x/a\n", "b/go.mod": "module x/a\n"})
        writer = _RecordingWriter()
        result = generate(tree, REPO, _config(), writer)
        assert len(result.pages) == 2
        assert list(writer.pages) == ["x/a/index.html"]

    def test_write_failure_stops(self):
        class FailingWriter(_RecordingWriter):
            def write(self, location, document):
                if location.as_posix().startswith("x/b"):
                    raise WriteError(location.as_posix(), "disk full")
                super().write(location, document)

        tree = MemoryTree({
            "a/go.mod": "module x/a\n",
            "b/go.mod": "module x/b\n",
            "c/go.mod": "module x/c\n",
        })
        writer = FailingWriter()
        with pytest.raises(WriteError, match="disk full"):
            generate(tree, REPO, _config(), writer)
        assert list(writer.pages) == ["x/a/index.html"]


class TestRun:
    def _checkout(self, root):
        (root / "svc" / "internal" / "tool").mkdir(parents=True)
        (root / "go.mod").write_text("module go.acme.dev/x\n\ngo 1.21\n")
        (root / "svc" / "go.mod").write_text("module go.acme.dev/x/svc\n")
        (root / "svc" / "internal" / "tool" / "go.mod").write_text("module go.acme.dev/x/svc/internal/tool\n")
        return root

    def test_source_dir(self, tmp_path):
        src = self._checkout(tmp_path / "src")
        out = tmp_path / "html"
        config = VanityConfig(
            import_prefix="go.acme.dev/x", repo_url=REPO,
            output_dir=str(out), source_dir=str(src),
        )

        result = run(config)

        assert result.modules == ["go.acme.dev/x", "go.acme.dev/x/svc"]
        assert (out / "go.acme.dev" / "x" / "index.html").is_file()
        assert (out / "go.acme.dev" / "x" / "svc" / "index.html").is_file()
        assert not (out / "go.acme.dev" / "x" / "svc" / "internal").exists()

    def test_rerun_byte_identical(self, tmp_path):
        src = self._checkout(tmp_path / "src")
        out = tmp_path / "html"
        config = VanityConfig(
            import_prefix="go.acme.dev/x", repo_url=REPO,
            output_dir=str(out), source_dir=str(src),
        )
        page = out / "go.acme.dev" / "x" / "svc" / "index.html"

        run(config)
        first = page.read_bytes()
        run(config)
        assert page.read_bytes() == first

    def test_clones_when_no_source_dir(self, tmp_path):
        src = self._checkout(tmp_path / "src")
        out = tmp_path / "html"
        config = VanityConfig(
            import_prefix="go.acme.dev/x", repo_url=REPO,
            branch="main", output_dir=str(out),
        )

        from modvanity.tree import DirectoryTree

        class _Clone(DirectoryTree):
            def __enter__(self):
                return self

            def __exit__(self, *exc_info):
                pass

        with patch("modvanity.pipeline.GitTree.clone", return_value=_Clone(src)) as clone:
            result = run(config)

        clone.assert_called_once_with(REPO, branch="main")
        assert len(result.pages) == 2
        html = (out / "go.acme.dev" / "x" / "index.html").read_text(encoding="utf-8")
        assert f'content="go.acme.dev/x git {REPO}"' in html

    def test_missing_source_dir(self, tmp_path):
        config = VanityConfig(
            import_prefix="go.acme.dev/x", repo_url=REPO,
            output_dir=str(tmp_path / "html"), source_dir=str(tmp_path / "nope"),
        )
        with pytest.raises(RetrievalError):
            run(config)

    def test_writes_with_directory_writer(self, tmp_path):
        writer = DirectoryWriter(tmp_path)
        tree = MemoryTree({"go.mod": "module x/a\n"})
        generate(tree, REPO, _config(), writer)
        assert (tmp_path / "x" / "a" / "index.html").is_file()
