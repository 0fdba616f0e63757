"""Small helpers: wildcard matching, string splitting and running shell commands."""

from __future__ import annotations

import re
import string
import subprocess
import sys

_ESCAPED = set("^$[](){}+|")


def is_number(text):
    """True when text is non-empty and made of ASCII digits only."""
    return bool(text) and all(ch in string.digits for ch in text)


def _translate(pattern):
    pieces = ["^"]
    for ch in pattern:
        if ch == "*":
            pieces.append(".*")
        elif ch == "?":
            pieces.append(".")
        elif ch == ".":
            pieces.append("\\.")
        elif ch == "\\":
            pieces.append("\\\\")
        elif ch in _ESCAPED:
            pieces.append("\\" + ch)
        else:
            pieces.append(ch)
    pieces.append("$")
    return "".join(pieces)


def wild_to_regex(wildcard, case_sensitive=False):
    """Turn a shell-style wildcard (alternatives split by '|') into a regex."""
    if not wildcard:
        return "^$"

    if "|" in wildcard:
        patterns = wildcard.split("|")
        if wildcard.endswith("|"):
            patterns.pop()
        body = "(?:" + "|".join(_translate(p) for p in patterns) + ")"
    else:
        body = _translate(wildcard)

    return body if case_sensitive else "(?i)" + body


def match_wild(filename, pattern):
    """Match a whole file name against a wildcard, ignoring case."""
    regex = wild_to_regex(pattern, True)
    try:
        return re.fullmatch(regex, filename, re.IGNORECASE) is not None
    except re.error as exc:
        print(f"Regex error: {exc} - pattern: {regex}", file=sys.stderr)
        return False


def proc_exec(cmd):
    """Run a shell command and return what it wrote to standard output."""
    completed = subprocess.run(
        cmd,
        shell=True,
        stdout=subprocess.PIPE,
        text=True,
        errors="replace",
        check=False,
    )
    return completed.stdout or ""


def split_str(text, delim):
    """Split text on a delimiter, dropping empty tokens."""
    return [token for token in text.split(delim) if token]