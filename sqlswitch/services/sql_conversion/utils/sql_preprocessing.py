"""
SQL text utilities shared by the converters.

This module provides functions to:
- Normalise raw SQL input (BOM, line endings).
- Remove comments when only the statement structure matters.
- Walk balanced parentheses, split argument lists at top-level commas and
  rewrite function calls by their arguments,
  skipping over quoted text.
"""
import re
from typing import Callable, List, Optional

LINE_COMMENT = re.compile(r"--[^\n]*")
BLOCK_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)


def normalize_sql_text(sql: str) -> str:
    """Drop a leading BOM and normalise line endings to ``\\n``."""
    if sql.startswith('\ufeff'):
        sql = sql[1:]
    return sql.replace('\r\n', '\n').replace('\r', '\n')


def strip_comments(sql: str) -> str:
    """Remove ``/* */`` and ``--`` comments. Quoted text is not protected."""
    return LINE_COMMENT.sub("", BLOCK_COMMENT.sub(" ", sql))


def find_matching_paren(text: str, open_index: int) -> int:
    """
    Find the ``)`` matching the ``(`` at *open_index*.

    Args:
        text: SQL text.
        open_index: Index of an opening parenthesis.

    Returns:
        Index of the matching closing parenthesis, or -1 when unbalanced.
    """
    depth = 0
    in_quote = False
    i = open_index
    while i < len(text):
        ch = text[i]
        if in_quote:
            if ch == "'":
                # '' is an escaped quote inside a literal
                if i + 1 < len(text) and text[i + 1] == "'":
                    i += 1
                else:
                    in_quote = False
        elif ch == "'":
            in_quote = True
        elif ch == "(":
            depth += 1
        elif ch == ")":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def split_top_level(text: str, separator: str = ",") -> List[str]:
    """Split *text* on *separator* outside parentheses and string literals."""
    parts: List[str] = []
    depth = 0
    in_quote = False
    current = []
    i = 0
    while i < len(text):
        ch = text[i]
        if in_quote:
            current.append(ch)
            if ch == "'":
                if i + 1 < len(text) and text[i + 1] == "'":
                    current.append(text[i + 1])
                    i += 1
                else:
                    in_quote = False
        elif ch == "'":
            in_quote = True
            current.append(ch)
        elif ch == "(":
            depth += 1
            current.append(ch)
        elif ch == ")":
            depth -= 1
            current.append(ch)
        elif ch == separator and depth == 0:
            parts.append("".join(current).strip())
            current = []
        else:
            current.append(ch)
        i += 1
    tail = "".join(current).strip()
    if tail or parts:
        parts.append(tail)
    return parts


def rewrite_calls(sql: str, pattern: re.Pattern, build: Callable[[List[str]], Optional[str]]) -> str:
    """
    Rewrite every call matched by *pattern* (which must end at the opening
    parenthesis) using *build*.

    Args:
        sql: SQL text.
        pattern: Compiled pattern such as ``\\bNVL2\\s*\\(``.
        build: Receives the top-level arguments (already rewritten) and
            returns the replacement text, or None to leave the call alone.

    Returns:
        The rewritten SQL.
    """
    out: List[str] = []
    pos = 0
    while True:
        match = pattern.search(sql, pos)
        if not match:
            break
        open_index = match.end() - 1
        close_index = find_matching_paren(sql, open_index)
        if close_index == -1:
            break
        args = [rewrite_calls(arg, pattern, build) for arg in split_top_level(sql[open_index + 1:close_index])]
        replacement = build(args)
        if replacement is None:
            # Keep the call, but keep scanning inside it for nested matches
            out.append(sql[pos:match.end()])
            pos = match.end()
            continue
        out.append(sql[pos:match.start()])
        out.append(replacement)
        pos = close_index + 1
    out.append(sql[pos:])
    return "".join(out)
