# --- HTML sanitization (Markdown preview is shown in QWebEngine) ---
from __future__ import annotations

import bleach

ALLOWED_TAGS = [
    "a", "p", "br", "hr", "img", "span", "div",
    "strong", "em", "del", "code", "pre", "blockquote",
    "ul", "ol", "li", "dl", "dt", "dd",
    "h1", "h2", "h3", "h4", "h5", "h6",
    "table", "thead", "tbody", "tr", "th", "td",
    "sup", "sub", "abbr",
]

ALLOWED_ATTRS = {
    "a": ["href", "title", "id"],
    "img": ["src", "alt", "title"],
    "th": ["align"], "td": ["align"],
    "code": ["class"],
    "abbr": ["title"],
    # anchors from the markdown 'toc' extension
    "h1": ["id"], "h2": ["id"], "h3": ["id"],
    "h4": ["id"], "h5": ["id"], "h6": ["id"],
}

ALLOWED_PROTOCOLS = ["http", "https", "mailto", "file"]


def sanitize_rendered_html(rendered_html: str) -> str:
    """
    Strip anything executable from rendered Markdown.
    Without this, raw HTML inside notes would run in the embedded browser.
    """
    return bleach.clean(
        rendered_html,
        tags=ALLOWED_TAGS,
        attributes=ALLOWED_ATTRS,
        protocols=ALLOWED_PROTOCOLS,
        strip=True,
    )
