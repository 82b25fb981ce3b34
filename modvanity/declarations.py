"""Lax parser for go.mod module declarations.

Follows the Go toolchain's lax mode, the mode used for go.mod files of
dependencies. ``module``, ``go`` and ``require`` are validated, ``retract``
is accepted as long as the file tokenizes, and every other verb
(replace, exclude, toolchain, unknown ones) is ignored. Lexing and
statement structure are checked for the whole file regardless of verb.
"""

import json
import re
from typing import Optional

from .errors import DeclarationError
from .models import Declaration

DECLARATION_FILENAME = "go.mod"

_PUNCTUATION = "()[]{},"
_BLOCK_VERBS = ("module", "require", "retract")
_BLOCK_COMMENT = "mod files must use // comments (not /* */ comments)"

GO_VERSION_RE = re.compile(r"([1-9][0-9]*)\.(0|[1-9][0-9]*)(\.(0|[1-9][0-9]*))?([a-z]+[0-9]+)?")
_LAX_GO_VERSION_RE = re.compile(r"v?(([1-9][0-9]*)\.(0|[1-9][0-9]*))([^0-9].*)")

_NUM = r"(?:0|[1-9][0-9]*)"
_PRERELEASE_ID = r"(?:0|[1-9][0-9]*|[0-9]*[A-Za-z-][0-9A-Za-z-]*)"
_BUILD_ID = r"[0-9A-Za-z-]+"
_SEMVER_RE = re.compile(
    rf"v({_NUM})"
    rf"(?:\.({_NUM})"
    rf"(?:\.({_NUM})(-{_PRERELEASE_ID}(?:\.{_PRERELEASE_ID})*)?(\+{_BUILD_ID}(?:\.{_BUILD_ID})*)?)?)?"
)

_STRING_PART_RE = re.compile(
    r'\\(?:([abfnrtv\\"])|x([0-9A-Fa-f]{2})|([0-3][0-7]{2})|u([0-9A-Fa-f]{4})|U([0-9A-Fa-f]{8}))'
    r'|([^\\"]+)'
)
_SIMPLE_ESCAPES = {
    "a": "\a", "b": "\b", "f": "\f", "n": "\n", "r": "\r",
    "t": "\t", "v": "\v", "\\": "\\", '"': '"',
}


def parse_declaration(path: str, data: bytes | str) -> Declaration:
    """Parse go.mod contents and return the declared module.

    Args:
        path: Path of the file, used in error messages only.
        data: Raw file contents.

    Raises:
        DeclarationError: the file is not a usable module declaration.
    """
    if isinstance(data, bytes):
        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError:
            raise DeclarationError(path, 0, "invalid UTF-8 encoding") from None
    else:
        text = data
    text = text.removeprefix("\ufeff")

    decl = _LaxDeclaration(path)
    block: Optional[list[str]] = None
    block_line = 0

    # Only \n ends a line; a stray \r is plain whitespace.
    for lineno, raw in enumerate(text.split("\n"), start=1):
        tokens = _tokenize(path, lineno, raw)
        if not tokens:
            continue

        if block is not None:
            if tokens[0] == ")":
                if len(tokens) > 1:
                    raise DeclarationError(
                        path, lineno, "syntax error (expected newline after closing paren)"
                    )
                block = None
                continue
            # Blocks with more than a bare verb in front of "(" are skipped.
            if len(block) == 1 and block[0] in _BLOCK_VERBS:
                decl.add(lineno, block[0], tokens)
            continue

        if len(tokens) > 1 and tokens[-1] == "(":
            block, block_line = tokens[:-1], lineno
            continue
        if len(tokens) > 2 and tokens[-2:] == ["(", ")"]:
            continue
        decl.add(lineno, tokens[0], tokens[1:])

    if block is not None:
        raise DeclarationError(path, block_line, f"unterminated {' '.join(block)} block")
    if decl.module_path is None:
        raise DeclarationError(path, 0, "no module declaration")

    return Declaration(module_path=decl.module_path, go_version=decl.go_version)


class _LaxDeclaration:
    """Directives collected so far from one go.mod file."""

    def __init__(self, path: str) -> None:
        self.path = path
        self.module_path: Optional[str] = None
        self.go_version: Optional[str] = None

    def add(self, lineno: int, verb: str, args: list[str]) -> None:
        if verb == "module":
            self._module(lineno, args)
        elif verb == "go":
            self._go(lineno, args)
        elif verb == "require":
            self._require(lineno, args)
        # retract intervals are only checked for the main module.

    def _error(self, lineno: int, message: str) -> DeclarationError:
        return DeclarationError(self.path, lineno, message)

    def _module(self, lineno: int, args: list[str]) -> None:
        if self.module_path is not None:
            raise self._error(lineno, "repeated module statement")
        if len(args) != 1:
            raise self._error(lineno, "usage: module module/path")
        try:
            module_path = parse_string(args[0])
        except ValueError as e:
            raise self._error(lineno, f"invalid quoted string: {e}") from None
        if not module_path:
            raise self._error(lineno, "empty module path")
        self.module_path = module_path

    def _go(self, lineno: int, args: list[str]) -> None:
        if self.go_version is not None:
            raise self._error(lineno, "repeated go statement")
        if len(args) != 1:
            raise self._error(lineno, "go directive expects exactly one argument")
        version = args[0]
        if not GO_VERSION_RE.fullmatch(version):
            m = _LAX_GO_VERSION_RE.fullmatch(version)
            if m is None:
                raise self._error(lineno, f"invalid go version '{version}': must match format 1.23")
            version = m.group(1)
        self.go_version = version

    def _require(self, lineno: int, args: list[str]) -> None:
        if len(args) != 2:
            raise self._error(lineno, "usage: require module/path v1.2.3")
        try:
            module_path = parse_string(args[0])
        except ValueError as e:
            raise self._error(lineno, f"invalid quoted string: {e}") from None

        prefix = f"require {module_path}: "
        try:
            version = parse_string(args[1])
        except ValueError as e:
            raise self._error(lineno, f"{prefix}version {_quote(args[1])} invalid: {e}") from None
        canonical = canonical_version(version)
        if not canonical:
            raise self._error(
                lineno, f"{prefix}version {_quote(version)} invalid: must be of the form v1.2.3"
            )

        path_major = split_path_major(module_path)
        if path_major is None:
            raise self._error(lineno, "invalid module path")
        mismatch = check_path_major(canonical, path_major)
        if mismatch:
            raise self._error(lineno, f"{prefix}version {_quote(canonical)} invalid: {mismatch}")


def parse_string(token: str) -> str:
    """Return the value of a directive argument.

    Double-quoted tokens are unquoted with Go string-literal escapes. Any
    other token containing a quote character is rejected.
    """
    if token.startswith('"'):
        return _unquote(token[1:-1])
    if any(quote in token for quote in "\"'`"):
        raise ValueError("unquoted string cannot contain quote")
    return token


def _unquote(body: str) -> str:
    out = bytearray()
    pos = 0
    while pos < len(body):
        m = _STRING_PART_RE.match(body, pos)
        if m is None:
            raise ValueError("invalid syntax")
        simple, hex_byte, octal, short_rune, long_rune, plain = m.groups()
        if plain is not None:
            out += plain.encode("utf-8", errors="surrogateescape")
        elif simple is not None:
            out += _SIMPLE_ESCAPES[simple].encode("utf-8")
        elif hex_byte is not None:
            out.append(int(hex_byte, 16))
        elif octal is not None:
            out.append(int(octal, 8))
        else:
            code = int(short_rune or long_rune, 16)
            if code > 0x10FFFF or 0xD800 <= code <= 0xDFFF:
                raise ValueError("invalid syntax")
            out += chr(code).encode("utf-8")
        pos = m.end()
    return out.decode("utf-8", errors="surrogateescape")


def _quote(value: str) -> str:
    return json.dumps(value, ensure_ascii=False)


def canonical_version(version: str) -> str:
    """Return the canonical ``vX.Y.Z[-pre]`` form, or "" if not semver.

    Shorthands ``v1`` and ``v1.2`` are completed with zeros. Build metadata
    is dropped except ``+incompatible``.
    """
    m = _SEMVER_RE.fullmatch(version)
    if m is None:
        return ""
    major, minor, patch, prerelease, build = m.groups()
    canonical = f"v{major}.{minor or '0'}.{patch or '0'}{prerelease or ''}"
    if build == "+incompatible":
        canonical += build
    return canonical


def split_path_major(module_path: str) -> Optional[str]:
    """Return the major version suffix of a module path.

    ``example.com/x/v2`` gives ``/v2``, ``gopkg.in/yaml.v3`` gives ``.v3``
    and a path without a suffix gives "". None means the suffix is
    malformed (``/v1``, ``/v02``, ``/v2.1``).
    """
    if module_path.startswith("gopkg.in/"):
        scanned = module_path.removesuffix("-unstable")
        digits = re.search(r"[0-9]*\Z", scanned).group()
        head = scanned[:len(scanned) - len(digits)]
        if not head.endswith(".v"):
            return None
        path_major = module_path[len(head) - 2:]
        if not digits or (digits.startswith("0") and path_major != ".v0"):
            return None
        return path_major

    run = re.search(r"[0-9.]*\Z", module_path).group()
    head = module_path[:len(module_path) - len(run)]
    if not run or not head.endswith("/v"):
        return ""
    if "." in run or run.startswith("0") or run == "1":
        return None
    return "/v" + run


def check_path_major(version: str, path_major: str) -> str:
    """Return why a canonical version does not fit the path's major suffix, or ""."""
    if path_major.startswith(".v") and path_major.endswith("-unstable"):
        path_major = path_major.removesuffix("-unstable")
    if version.startswith("v0.0.0-") and path_major == ".v1":
        return ""

    major = "v" + _SEMVER_RE.fullmatch(version).group(1)
    if path_major == "":
        if major in ("v0", "v1") or version.endswith("+incompatible"):
            return ""
        expected = "v0 or v1"
    else:
        if major == path_major[1:]:
            return ""
        expected = path_major[1:]
    return f"should be {expected}, not {major}"


def _is_ident(ch: str) -> bool:
    return ch not in " ()[]{}," and not ch.isspace() and ch.isprintable()


def _tokenize(path: str, lineno: int, line: str) -> list[str]:
    """Split one line into raw tokens, dropping // comments.

    Quoted strings keep their quotes; ``parse_string`` removes them.
    """
    tokens: list[str] = []
    i, n = 0, len(line)
    while i < n:
        ch = line[i]
        if ch in " \t\r":
            i += 1
            continue
        if line.startswith("//", i):
            break
        if line.startswith("/*", i):
            raise DeclarationError(path, lineno, _BLOCK_COMMENT)
        if ch in _PUNCTUATION:
            tokens.append(ch)
            i += 1
            continue
        if ch in "\"`":
            end = i + 1
            while end < n and line[end] != ch:
                if ch == '"' and line[end] == "\\":
                    end += 1
                end += 1
            if end >= n:
                raise DeclarationError(path, lineno, "unterminated quoted string")
            tokens.append(line[i:end + 1])
            i = end + 1
            continue
        if not _is_ident(ch):
            raise DeclarationError(path, lineno, f"unexpected input character {ch!r}")

        start = i
        while i < n and _is_ident(line[i]):
            if line.startswith("//", i):
                break
            if line.startswith("/*", i):
                raise DeclarationError(path, lineno, _BLOCK_COMMENT)
            i += 1
        tokens.append(line[start:i])
    return tokens
