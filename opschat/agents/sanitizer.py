"""
SQL Sanitizer

Turns raw model output into a single executable statement by peeling off
markdown fences, wrapping double quotes and conversational lead-in lines.

Usage:
    sanitize_sql('```sql\\nSELECT 1\\n```')          # -> 'SELECT 1'
    extract_statement("Sure, here it is:\\nSELECT 1")  # -> 'SELECT 1'
"""

import re

_LEADING_FENCE = re.compile(
    r"^\s*```(?:(?:sql|postgresql|postgres)\b[ \t]*\n?|[\w+-]*[ \t]*(?:\n|$)|[ \t]*)",
    re.IGNORECASE,
)
_TRAILING_FENCE = re.compile(r"\n?[ \t]*```\s*$")

PROSE_PREFIXES = ("now", "run", "please", "execute")
STATEMENT_KEYWORDS = ("SELECT", "INSERT", "UPDATE", "DELETE", "WITH")


def sanitize_sql(raw) -> str:
    """
    Clean model output into a bare SQL statement.

    Applies fence stripping, quote unwrapping, lead-in line removal and quote
    unwrapping again, repeating until the text no longer changes. Never raises;
    returns "" for empty or non-string input.
    """
    if not isinstance(raw, str):
        return ""

    text = raw.strip()
    while True:
        cleaned = _strip_wrapping_quotes(_strip_fences(text))
        cleaned = _strip_wrapping_quotes(_drop_prose_lines(cleaned))
        if cleaned == text:
            return cleaned
        text = cleaned


def extract_statement(text: str) -> str:
    """Drop any lines before the first one that starts a SQL statement."""
    lines = text.split("\n")
    for index, line in enumerate(lines):
        if line.strip().upper().startswith(STATEMENT_KEYWORDS):
            if index > 0:
                return "\n".join(lines[index:]).strip()
            return text
    return text


def _strip_fences(text: str) -> str:
    text = _LEADING_FENCE.sub("", text, count=1)
    text = _TRAILING_FENCE.sub("", text, count=1)
    return text.strip()


def _strip_wrapping_quotes(text: str) -> str:
    text = text.strip()
    if len(text) >= 2 and text.startswith('"') and text.endswith('"'):
        return text[1:-1].strip()
    return text


def _drop_prose_lines(text: str) -> str:
    kept = [
        line
        for line in text.split("\n")
        if line.strip() and not line.strip().lower().startswith(PROSE_PREFIXES)
    ]
    return "\n".join(kept).strip()
