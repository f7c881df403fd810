"""Conversion of a raw Rust skeleton into Markdown.

Doc comments are lifted out of the code into prose, and each run of code
between them becomes its own fenced `rust` block.
"""

import re

from ripdoc.md_codeblock import md_codeblock

DOC_MARKERS = ("///", "//!")
LIST_ITEM_RE = re.compile(r"^(?:[-*+] |\d+[.)][ \t])")
# doc-test fence attributes that still hold Rust code
FENCE_LANGS = {
    "": "rust",
    "rust": "rust",
    "no_run": "rust",
    "compile_fail": "rust",
    "should_panic": "rust",
    "ignore": "rust",
    "edition2018": "rust",
    "edition2021": "rust",
    "edition2024": "rust",
    "text": "",
}


def strip_outer_module(source: str) -> str:
    """Remove the `pub mod <crate> { ... }` wrapper around a rendered crate."""
    lines = source.strip().splitlines()
    if len(lines) >= 2:
        first, last = lines[0].strip(), lines[-1].strip()
        if first.startswith("pub mod ") and first.endswith("{") and last == "}":
            return "\n".join(lines[1:-1]) + "\n"
    return source.strip()


def _is_doc(line: str) -> bool:
    return line.lstrip().startswith(DOC_MARKERS)


def _doc_text(line: str) -> str:
    text = line.lstrip()[3:]
    return (text[1:] if text.startswith(" ") else text).rstrip()


def normalize_fence_lang(info: str) -> str | None:
    """Map a doc-test fence info string to a Markdown language, None if unknown."""
    primary = info.split(",")[0].strip()
    return FENCE_LANGS.get(primary)


def _render_doc_block(texts: list[str]) -> list[str]:
    """Turn the text of consecutive doc comment lines into Markdown blocks."""
    blocks: list[str] = []
    paragraph: list[str] = []
    listing: list[str] = []
    fence: list[str] | None = None
    fence_lang = ""

    def flush() -> None:
        if paragraph:
            blocks.append(" ".join(paragraph))
            paragraph.clear()
        if listing:
            blocks.append("\n".join(listing))
            listing.clear()

    for text in texts:
        stripped = text.strip()
        if stripped.startswith("```"):
            if fence is None:
                flush()
                info = stripped[3:].strip()
                lang = normalize_fence_lang(info)
                fence_lang = info if lang is None else lang
                fence = []
            else:
                blocks.append(md_codeblock(fence_lang, fence))
                fence = None
        elif fence is not None:
            # hidden doc-test setup lines
            if fence_lang == "rust" and stripped.startswith("#"):
                continue
            fence.append(text)
        elif not stripped:
            flush()
        elif LIST_ITEM_RE.match(stripped):
            if paragraph:
                blocks.append(" ".join(paragraph))
                paragraph.clear()
            listing.append(text)
        else:
            if listing:
                blocks.append("\n".join(listing))
                listing.clear()
            paragraph.append(stripped)

    flush()
    if fence is not None:
        blocks.append(md_codeblock(fence_lang, fence))
    return blocks


def _collapse_blank_lines(lines: list[str]) -> list[str]:
    out: list[str] = []
    for line in lines:
        if not line.strip() and (not out or not out[-1].strip()):
            continue
        out.append(line.rstrip())
    while out and not out[-1]:
        out.pop()
    return out


def rust_to_markdown(source: str) -> str:
    """Lift doc comments out of Rust source and fence the remaining code."""
    blocks: list[str] = []
    code: list[str] = []

    def flush_code() -> None:
        lines = _collapse_blank_lines(code)
        if lines:
            blocks.append(md_codeblock("rust", lines))
        code.clear()

    lines = source.splitlines()
    n = 0
    while n < len(lines):
        line = lines[n]
        if _is_doc(line):
            start = n
            while n < len(lines) and _is_doc(lines[n]):
                n += 1
            doc_lines = lines[start:n]
            texts = [_doc_text(d) for d in doc_lines]
            outer = doc_lines[0].lstrip().startswith("///")
            if code and outer and len(texts) == 1 and texts[0].strip():
                indent = line[: len(line) - len(line.lstrip())]
                code.append(f"{indent}// {texts[0].strip()}")
            else:
                flush_code()
                blocks.extend(_render_doc_block(texts))
            continue
        if line.strip() or code:
            code.append(line)
        n += 1
    flush_code()
    return "\n\n".join(blocks).strip()


def render_markdown(source: str) -> str:
    """Render a raw crate skeleton as Markdown."""
    return rust_to_markdown(strip_outer_module(source))
