"""
Portcullis Backend - Sanitization Tests
=======================================
"""

from app.security.sanitize import (
    escape_html,
    sanitize_email,
    sanitize_object,
    sanitize_url,
    strip_html,
)


def test_escape_html_covers_all_specials():
    assert escape_html("<a href=\"x\">'&'</a>") == (
        "&lt;a href=&quot;x&quot;&gt;&#x27;&amp;&#x27;&lt;&#x2F;a&gt;"
    )


def test_escape_html_leaves_plain_text():
    assert escape_html("Ada Lovelace") == "Ada Lovelace"


def test_strip_html_removes_tags_keeps_text():
    assert strip_html("<b>Ada</b> <script>x</script>") == "Ada x"


def test_sanitize_object_recurses():
    cleaned = sanitize_object(
        {"name": "<i>", "nested": {"bio": "a&b"}, "tags": ["<t>", 3], "age": 30}
    )
    assert cleaned == {
        "name": "&lt;i&gt;",
        "nested": {"bio": "a&amp;b"},
        "tags": ["&lt;t&gt;", 3],
        "age": 30,
    }


def test_sanitize_email_trims_and_lowercases():
    assert sanitize_email("  Ada@Example.COM ") == "ada@example.com"


def test_sanitize_email_rejects_garbage():
    assert sanitize_email("not-an-email") is None
    assert sanitize_email("a b@c.d") is None


def test_sanitize_url_blocks_script_schemes():
    assert sanitize_url("javascript:alert(1)") is None
    assert sanitize_url("  JavaScript:alert(1)") is None
    assert sanitize_url("data:text/html;base64,xx") is None
    assert sanitize_url("vbscript:msgbox") is None


def test_sanitize_url_keeps_http():
    assert sanitize_url(" https://example.com/a.png ") == "https://example.com/a.png"
