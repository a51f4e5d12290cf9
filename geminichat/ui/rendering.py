"""Markdown rendering for chat messages.

Model output is untrusted: raw HTML is escaped instead of passed through,
and links or images with script-capable URL schemes lose their target.
Fenced code blocks are highlighted with Pygments and get a copy button.
"""

import html
from urllib.parse import urlparse
from xml.etree.ElementTree import Element

import markdown
from markdown.extensions import Extension
from markdown.treeprocessors import Treeprocessor
from pygments.formatters import HtmlFormatter

SAFE_URL_SCHEMES = {"", "http", "https", "mailto"}
COPY_BUTTON_HTML = '<button class="copy-code-btn" type="button">Copy</button>'
CODEHILITE_CLASS = "codehilite"


def is_safe_url(url: str) -> bool:
    """Return True for relative, anchor, http(s) and mailto URLs."""
    # Browsers decode entities and ignore whitespace/control characters in the scheme
    decoded = html.unescape(url)
    candidate = "".join(ch for ch in decoded if ch.isprintable() and not ch.isspace()).lower()
    try:
        scheme = urlparse(candidate).scheme
    except ValueError:
        return False
    return scheme in SAFE_URL_SCHEMES


class SafeLinkTreeprocessor(Treeprocessor):
    """Strip unsafe link and image targets, open links in a new tab."""

    def run(self, root: Element) -> None:
        for element in root.iter("a"):
            href = element.get("href", "")
            if not is_safe_url(href):
                del element.attrib["href"]
                continue
            element.set("target", "_blank")
            element.set("rel", "noopener noreferrer")
        for element in root.iter("img"):
            if not is_safe_url(element.get("src", "")):
                del element.attrib["src"]


class EscapeHtmlExtension(Extension):
    """Treat raw HTML in the source as text and sanitize URLs."""

    def extendMarkdown(self, md: markdown.Markdown) -> None:
        md.preprocessors.deregister("html_block")
        md.inlinePatterns.deregister("html")
        md.treeprocessors.register(SafeLinkTreeprocessor(md), "safe_links", 0)


def _create_markdown() -> markdown.Markdown:
    return markdown.Markdown(
        extensions=[
            "fenced_code",
            "codehilite",
            "tables",
            EscapeHtmlExtension(),
        ],
        extension_configs={
            "codehilite": {"guess_lang": False, "css_class": CODEHILITE_CLASS},
        },
        output_format="html",
    )


def render_markdown(text: str) -> str:
    """Convert bot markdown to sanitized HTML with highlighted code blocks.

    Args:
        text: Raw markdown produced by the model.

    Returns:
        HTML safe to inject into the page. Each ``<pre>`` block ends with a
        copy-to-clipboard button.
    """
    # Markdown instances keep state between conversions
    rendered = _create_markdown().convert(text)
    # Raw HTML is escaped above, so every literal </pre> closes a real code block
    return rendered.replace("</pre>", f"{COPY_BUTTON_HTML}</pre>")


def render_plain(text: str) -> str:
    """Escape text for display while the stream is still arriving."""
    return f'<div style="white-space: pre-wrap">{html.escape(text)}</div>'


def highlight_css() -> str:
    """Pygments stylesheet for highlighted code blocks."""
    return HtmlFormatter(style="default").get_style_defs(f".{CODEHILITE_CLASS}")


def attachment_icon(mime_type: str | None) -> str:
    """Icon for non-image attachments: music note for audio, page otherwise."""
    if mime_type and mime_type.startswith("audio/"):
        return "\N{MUSICAL NOTE}"
    return "\N{PAGE FACING UP}"
