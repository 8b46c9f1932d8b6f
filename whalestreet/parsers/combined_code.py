"""Combined Code Parser - Splits a single HTML document into HTML/CSS/JS fragments.

The model returns improved games as one self-contained HTML file. The editor
works on three separate fragments, so every improvement round goes:

    format_code_for_iteration(...)  ->  LLM  ->  parse_combined_code(...)

Matching is done with regular expressions over the raw text. Model output is
usually simple, and the parser must never raise on whatever comes back:
malformed input degrades to partial or empty fragments.
"""

import re
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


# <script> types that carry data rather than code
DATA_SCRIPT_TYPES = ("application/json", "application/ld+json", "text/template")

_STYLE_BLOCK = re.compile(r"<style\b[^>]*>([\s\S]*?)</style\s*>", re.IGNORECASE)

# A <script> is executable unless its type attribute names a data type.
# The lookahead accepts single, double or no quotes around the value.
_EXECUTABLE_SCRIPT_BLOCK = re.compile(
    r"<script\b"
    r"(?![^>]*?(?<![\w-])type\s*=\s*(['\"]?)(?:"
    + "|".join(re.escape(t) for t in DATA_SCRIPT_TYPES)
    + r")\1(?=[\s/>]))"
    r"[^>]*>([\s\S]*?)</script\s*>",
    re.IGNORECASE,
)

_BODY_BLOCK = re.compile(r"<body\b[^>]*>([\s\S]*?)</body\s*>", re.IGNORECASE)
_HEAD_BLOCK = re.compile(r"<head\b[^>]*>[\s\S]*?</head\s*>", re.IGNORECASE)
_HTML_OPEN_TAG = re.compile(r"<html\b[^>]*>", re.IGNORECASE)
_HTML_CLOSE_TAG = re.compile(r"</html\s*>", re.IGNORECASE)
_DOCTYPE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)


class FragmentSet(BaseModel):
    """The three independently editable parts of a game."""

    model_config = ConfigDict(frozen=True)

    markup: str = Field(default="", description="HTML body content without <style>/<script> blocks")
    styles: str = Field(default="", description="CSS rule text")
    script: str = Field(default="", description="Executable JavaScript source")

    @property
    def is_empty(self) -> bool:
        return not (self.markup or self.styles or self.script)

    def replace(self, **changes) -> "FragmentSet":
        """Return a copy with some fragments swapped out."""
        return self.model_copy(update=changes)

    def to_document(self) -> str:
        return format_code_for_iteration(self.markup, self.styles, self.script)


def parse_combined_code(document: Optional[str]) -> FragmentSet:
    """
    Split a combined HTML document into markup, styles and script.

    Args:
        document: Full HTML document or bare fragment. None or a non-string
            value is treated as empty input.

    Returns:
        A fresh FragmentSet. Fields with no matching content are "".
    """
    if not document or not isinstance(document, str):
        return FragmentSet()

    styles = _extract_styles(document)
    script = _extract_script(document)
    markup = _extract_markup(document)

    return FragmentSet(markup=markup, styles=styles, script=script)


def _extract_styles(document: str) -> str:
    # Only the first <style> block is used; later blocks are not merged.
    match = _STYLE_BLOCK.search(document)
    if match:
        return match.group(1).strip()
    return ""


def _extract_script(document: str) -> str:
    parts = []
    for match in _EXECUTABLE_SCRIPT_BLOCK.finditer(document):
        body = match.group(2).strip()
        if body:
            parts.append(body)
    return "\n\n".join(parts)


def _extract_markup(document: str) -> str:
    body_match = _BODY_BLOCK.search(document)
    if body_match:
        html = body_match.group(1)
        html = _EXECUTABLE_SCRIPT_BLOCK.sub("", html)
        html = _STYLE_BLOCK.sub("", html)
        return html.strip()

    # No <body>: best effort over the whole input
    html = _STYLE_BLOCK.sub("", document, count=1)
    html = _EXECUTABLE_SCRIPT_BLOCK.sub("", html)
    html = _HEAD_BLOCK.sub("", html, count=1)
    html = _DOCTYPE.sub("", html, count=1)
    html = _HTML_OPEN_TAG.sub("", html, count=1)
    html = _HTML_CLOSE_TAG.sub("", html, count=1)
    return html.strip()


def format_code_for_iteration(markup: str, styles: str, script: str) -> str:
    """Assemble three fragments into one HTML5 document for the improve step.

    Fragments are inserted verbatim. Nothing is escaped.
    """
    return f"""
<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Game</title>
    <style>
{styles}
    </style>
</head>
<body>
{markup}
    <script>
{script}
    </script>
</body>
</html>
""".strip()


def build_preview_document(fragments: FragmentSet) -> str:
    """Minimal document rendered inside the sandboxed preview iframe."""
    return f"""
<html>
  <head>
    <style>{fragments.styles}</style>
  </head>
  <body>
    {fragments.markup}
    <script>{fragments.script}</script>
  </body>
</html>
""".strip()
