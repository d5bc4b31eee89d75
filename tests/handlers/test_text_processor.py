from __future__ import annotations

import pytest

from handlers.text_processor import MAX_TEXT_LENGTH, PlainTextFormatter, SsmlTextFormatter


@pytest.mark.parametrize("text", ["", "   ", "\n\t "])
def test_validate_text_rejects_blank_text(text: str) -> None:
    assert PlainTextFormatter().validate_text(text) is False


def test_validate_text_limits_length_after_normalization() -> None:
    formatter = PlainTextFormatter(max_length=10)

    assert formatter.validate_text("a" * 10) is True
    assert formatter.validate_text("a" * 11) is False
    # Collapsed whitespace does not count against the limit
    assert formatter.validate_text("  abc     def  ") is True


def test_default_limit() -> None:
    formatter = SsmlTextFormatter()

    assert formatter.max_length == MAX_TEXT_LENGTH
    assert formatter.validate_text("x" * MAX_TEXT_LENGTH) is True
    assert formatter.validate_text("x" * (MAX_TEXT_LENGTH + 1)) is False


def test_plain_formatter_ignores_element_type() -> None:
    formatter = PlainTextFormatter()

    assert formatter.format_text("  Chapter\n  One ", "h1") == "Chapter One"


def test_ssml_heading_is_emphasized_with_breaks() -> None:
    formatted: str = SsmlTextFormatter().format_text("Chapter One", "H2")

    assert formatted == (
        '<break time="0.5s"/>'
        '<emphasis level="strong"><prosody rate="slow">Chapter One</prosody></emphasis>'
        '<break time="1s"/>'
    )


def test_ssml_paragraph_ends_with_short_break() -> None:
    assert SsmlTextFormatter().format_text("Some text.", "p") == 'Some text.<break time="0.3s"/>'


@pytest.mark.parametrize(
    ("element_type", "level"),
    [("em", "moderate"), ("i", "moderate"), ("strong", "strong"), ("b", "strong")],
)
def test_ssml_inline_emphasis(element_type: str, level: str) -> None:
    assert SsmlTextFormatter().format_text("word", element_type) == f'<emphasis level="{level}">word</emphasis>'


def test_ssml_other_elements_are_plain_escaped_text() -> None:
    formatter = SsmlTextFormatter()

    assert formatter.format_text("Tom & \"Jerry\" <3 'cats'", None) == (
        "Tom &amp; &quot;Jerry&quot; &lt;3 &apos;cats&apos;"
    )
    assert formatter.format_text("item", "li") == "item"
