"""Utility for generating Markdown code blocks."""

import textwrap


def md_codeblock(lang: str, lines: list[str]) -> str:
    """Fence source lines as a Markdown code block, removing common indentation."""
    code = textwrap.dedent("\n".join(lines)).strip("\n")
    return f"```{lang}\n{code}\n```"
