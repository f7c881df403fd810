"""ANSI highlighting of search terms in rendered terminal output."""

import re

HIGHLIGHT_START = "\033[31m"
HIGHLIGHT_END = "\033[0m"


def highlight_matches(text: str, query: str, case_sensitive: bool = False) -> str:
    """Wrap every occurrence of the query in ANSI red."""
    query = query.strip()
    if not query:
        return text
    pattern = re.compile(re.escape(query), 0 if case_sensitive else re.IGNORECASE)
    return pattern.sub(lambda m: f"{HIGHLIGHT_START}{m.group(0)}{HIGHLIGHT_END}", text)
