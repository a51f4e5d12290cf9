"""Unit tests for bot message rendering."""

import pytest
import pytest_check as check

from geminichat.ui.rendering import (
    COPY_BUTTON_HTML,
    attachment_icon,
    highlight_css,
    is_safe_url,
    render_markdown,
    render_plain,
)


class TestMarkdownSanitizing:
    def test_raw_html_is_escaped(self) -> None:
        rendered = render_markdown("Hi <script>alert(1)</script> there")

        check.is_not_in("<script>", rendered)
        check.is_in("&lt;script&gt;", rendered)

    def test_html_block_is_escaped(self) -> None:
        rendered = render_markdown('<div onclick="steal()">\nboom\n</div>')

        check.is_not_in("<div onclick", rendered)
        check.is_in("&lt;div", rendered)

    @pytest.mark.parametrize(
        "url",
        [
            "javascript:alert(1)",
            "JavaScript:alert(1)",
            "&#106;avascript:alert(1)",
            "data:text/html;base64,PHNjcmlwdD4=",
        ],
    )
    def test_unsafe_link_loses_href(self, url: str) -> None:
        rendered = render_markdown(f"[click]({url})")

        check.is_in("click", rendered)
        check.is_not_in("href", rendered)

    def test_safe_link_opens_in_new_tab(self) -> None:
        rendered = render_markdown("[docs](https://example.com/docs)")

        check.is_in('href="https://example.com/docs"', rendered)
        check.is_in('target="_blank"', rendered)
        check.is_in('rel="noopener noreferrer"', rendered)

    def test_unsafe_image_loses_src(self) -> None:
        rendered = render_markdown("![x](javascript:alert(1))")

        assert "javascript" not in rendered


class TestIsSafeUrl:
    @pytest.mark.parametrize(
        "url", ["https://example.com", "http://a.b", "mailto:me@example.com", "/relative", "#anchor"]
    )
    def test_safe(self, url: str) -> None:
        assert is_safe_url(url)

    @pytest.mark.parametrize(
        "url", ["javascript:alert(1)", " java\tscript:alert(1)", "vbscript:x", "&#x6A;avascript:x"]
    )
    def test_unsafe(self, url: str) -> None:
        assert not is_safe_url(url)


class TestCodeBlocks:
    def test_fenced_code_is_highlighted_with_one_copy_button(self) -> None:
        rendered = render_markdown("Example:\n\n```python\nprint('hi')\n```\n")

        check.is_in('class="codehilite"', rendered)
        check.equal(rendered.count(COPY_BUTTON_HTML), 1)
        check.is_in(f"{COPY_BUTTON_HTML}</pre>", rendered)

    def test_each_block_gets_its_own_button(self) -> None:
        rendered = render_markdown("```\na\n```\n\ntext\n\n```\nb\n```\n")

        assert rendered.count(COPY_BUTTON_HTML) == 2

    def test_literal_pre_tag_in_text_gets_no_button(self) -> None:
        rendered = render_markdown("Close it with `</pre>` or just </pre>")

        assert COPY_BUTTON_HTML not in rendered

    def test_code_content_is_escaped(self) -> None:
        rendered = render_markdown("```\n<b>bold</b>\n```\n")

        assert "<b>bold</b>" not in rendered

    def test_tables_render(self) -> None:
        rendered = render_markdown("| a | b |\n|---|---|\n| 1 | 2 |\n")

        check.is_in("<table>", rendered)
        check.is_in("<td>1</td>", rendered)


class TestHelpers:
    def test_render_plain_escapes_and_keeps_newlines(self) -> None:
        rendered = render_plain("<b>x</b>\nline two")

        check.is_in("&lt;b&gt;x&lt;/b&gt;", rendered)
        check.is_in("\nline two", rendered)
        check.is_in("pre-wrap", rendered)

    def test_highlight_css_targets_codehilite(self) -> None:
        assert ".codehilite" in highlight_css()

    @pytest.mark.parametrize(
        ("mime_type", "icon"),
        [
            ("audio/mpeg", "\N{MUSICAL NOTE}"),
            ("application/pdf", "\N{PAGE FACING UP}"),
            (None, "\N{PAGE FACING UP}"),
        ],
    )
    def test_attachment_icon(self, mime_type: str | None, icon: str) -> None:
        assert attachment_icon(mime_type) == icon
