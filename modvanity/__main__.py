"""CLI entry point: python -m modvanity <import-prefix> <repo>"""

import argparse
import logging
import sys

from dotenv import load_dotenv

from .config import VanityConfig
from .errors import (
    DeclarationError, DuplicateModuleError, ReadError,
    RetrievalError, WriteError,
)
from .pipeline import run

log = logging.getLogger(__name__)

_EPILOG = """\
'repo' is the git repository containing Go modules. 'import_prefix' is the
import path corresponding to the repository root.

Example:
  modvanity go.elastic.co/apm https://github.com/elastic/apm-agent-go
"""


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="modvanity",
        description=(
            "Generate HTML files with <meta name=\"go-import\"> tags, "
            "as expected by go get, for every Go module in a repository."
        ),
        epilog=_EPILOG,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("import_prefix", help="Import path of the repository root")
    parser.add_argument("repo", help="URL of the git repository")
    parser.add_argument(
        "--branch",
        default=None,
        help="Branch to use (default: the remote's default branch)",
    )
    parser.add_argument(
        "-o", "--output",
        default=None,
        help="Output directory for generated HTML files (default: html)",
    )
    parser.add_argument(
        "--redirect",
        dest="redirect",
        action="store_const",
        const=True,
        default=None,
        help="Redirect browsers to pkg.go.dev documentation (default)",
    )
    parser.add_argument(
        "--no-redirect",
        dest="redirect",
        action="store_const",
        const=False,
        help="Show repository and documentation links instead of redirecting",
    )
    parser.add_argument(
        "--strict-prefix",
        action="store_true",
        default=None,
        help="Only match modules at or below import_prefix as a path, not as a string",
    )
    parser.add_argument(
        "--fail-on-duplicate",
        action="store_true",
        default=None,
        help="Fail when two go.mod files declare the same module path",
    )
    parser.add_argument(
        "--source-dir",
        default=None,
        help="Scan this local checkout instead of cloning the repository",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        default=None,
        help="Log verbosely",
    )
    return parser


def _fail(message: str) -> None:
    print(f"modvanity: {message}", file=sys.stderr)
    log.debug("Failure detail", exc_info=True)
    sys.exit(1)


def main():
    load_dotenv()

    args = _build_parser().parse_args()

    try:
        config = VanityConfig.from_env(
            import_prefix=args.import_prefix,
            repo_url=args.repo,
            branch=args.branch,
            output_dir=args.output,
            redirect=args.redirect,
            verbose=args.verbose,
            strict_prefix=args.strict_prefix,
            fail_on_duplicate=args.fail_on_duplicate,
            source_dir=args.source_dir,
        )
    except ValueError as e:
        print(f"modvanity: config error: {e}", file=sys.stderr)
        sys.exit(1)

    level = logging.DEBUG if config.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(name)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        run(config)
    except RetrievalError as e:
        _fail(f"making repository: {e}")
    except (ReadError, DeclarationError, DuplicateModuleError) as e:
        _fail(f"finding go modules: {e}")
    except WriteError as e:
        _fail(str(e))
    except Exception as e:
        _fail(f"unexpected error: {type(e).__name__}: {e}")


if __name__ == "__main__":
    main()
