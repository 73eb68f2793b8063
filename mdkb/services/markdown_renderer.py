from __future__ import annotations

import re
from dataclasses import dataclass

import markdown as md

from mdkb.core.tasks import TASK_INDEX_MARK, mark_tasks
from mdkb.services.sanitize import sanitize_rendered_html

MD_EXTENSIONS = ["fenced_code", "tables", "toc", "sane_lists", "def_list", "abbr", "footnotes"]

# Scheme used by task checkboxes: task://<index>?checked=1
TASK_SCHEME = "task"

# "[ ]" / "[x]" plus its source index at the start of a rendered list item
# (tight or loose list)
_TASK_ITEM_RE = re.compile(
    r"(<li>\s*(?:<p>)?)\s*\[([ xX])\]" + TASK_INDEX_MARK + r"(\d+)" + TASK_INDEX_MARK + " ?"
)
_TASK_MARK_RE = re.compile(TASK_INDEX_MARK + r"\d+" + TASK_INDEX_MARK)


@dataclass(frozen=True)
class PreviewPalette:
    background: str
    text: str
    heading: str
    accent: str
    border: str
    code_background: str
    muted_text: str


PALETTES = {
    "light": PreviewPalette("#FFFFFF", "#1F2937", "#111827", "#2563EB", "#E5E7EB", "#F3F4F6", "#6B7280"),
    "dark": PreviewPalette("#0B1220", "#E5E7EB", "#F8FAFC", "#60A5FA", "#1F2937", "#111827", "#CBD5F5"),
}

_CSS = """
    body {{ font-family: 'Segoe UI', sans-serif; padding: 18px; line-height: 1.5;
           background: {p.background}; color: {p.text}; }}
    h1, h2, h3 {{ color: {p.heading}; }}
    a {{ color: {p.accent}; text-decoration: none; }}
    a:hover {{ text-decoration: underline; }}
    pre {{ background: {p.code_background}; padding: 12px; border-radius: 8px;
          border: 1px solid {p.border}; overflow-x: auto; }}
    code {{ background: {p.code_background}; padding: 2px 6px; border-radius: 6px; }}
    pre code {{ padding: 0; }}
    blockquote {{ border-left: 4px solid {p.border}; padding-left: 12px; color: {p.muted_text}; }}
    img {{ max-width: 100%; }}
    table {{ border-collapse: collapse; }}
    th, td {{ border: 1px solid {p.border}; padding: 6px 10px; }}
"""

_TASK_JS = """
    document.querySelectorAll('input.task').forEach(function (box) {
        box.addEventListener('click', function () {
            window.location.href = 'task://' + box.dataset.task + '?checked=' + (box.checked ? 1 : 0);
        });
    });
"""


def add_task_checkboxes(rendered_html: str) -> str:
    """
    Turn marked "[ ]"/"[x]" at the start of list items into checkboxes
    numbered like the note text (see mark_tasks). Marks that did not end up
    in a list item (code blocks, paragraph text) are dropped.
    """

    def repl(m: re.Match) -> str:
        checked = " checked" if m.group(2) in "xX" else ""
        return f'{m.group(1)}<input type="checkbox" class="task" data-task="{m.group(3)}"{checked}> '

    return _TASK_MARK_RE.sub("", _TASK_ITEM_RE.sub(repl, rendered_html))


class MarkdownRenderer:
    def __init__(self, *, theme: str = "light"):
        self.theme = theme

    @property
    def palette(self) -> PreviewPalette:
        return PALETTES.get(self.theme, PALETTES["light"])

    def render_body(self, text: str) -> str:
        """note text -> markdown HTML -> sanitized HTML -> task checkboxes."""
        rendered = md.markdown(mark_tasks(text), extensions=MD_EXTENSIONS)
        return add_task_checkboxes(sanitize_rendered_html(rendered))

    def render_page(self, text: str) -> str:
        css = _CSS.format(p=self.palette)
        return f"""\
<html>
<head>
  <meta charset="utf-8"/>
  <style>{css}</style>
</head>
<body>{self.render_body(text)}
<script>{_TASK_JS}</script>
</body>
</html>
"""
