"""Unit tests for the tts_reader entry script."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

import tts_reader
from handlers.text_source import DocumentTextSource, StaticTextSource
from utils.file_utils import FileMissingError, UnsupportedFileFormatError

if TYPE_CHECKING:
    import argparse
    from pathlib import Path


def test_parse_arguments_defaults() -> None:
    args: argparse.Namespace = tts_reader.parse_arguments([])

    assert args.adapter is None
    assert args.mock is False
    assert args.whole_page is False
    assert args.debug is False
    assert args.documents == []


def test_parse_arguments_options() -> None:
    args: argparse.Namespace = tts_reader.parse_arguments(
        ["--adapter", "azure", "--mock", "--whole-page", "--debug", "a.html", "b.txt"]
    )

    assert args.adapter == "azure"
    assert args.mock is True
    assert args.whole_page is True
    assert args.debug is True
    assert args.documents == ["a.html", "b.txt"]


def test_parse_arguments_rejects_unknown_adapter(capsys: pytest.CaptureFixture[str]) -> None:
    with pytest.raises(SystemExit) as exc_info:
        tts_reader.parse_arguments(["--adapter", "polly"])

    assert exc_info.value.code == 2
    assert "invalid choice" in capsys.readouterr().err


def test_text_source_factory_without_documents() -> None:
    source = tts_reader.text_source_factory([])()

    assert isinstance(source, StaticTextSource)
    assert source.text == tts_reader.SAMPLE_TEXT


def test_text_source_factory_builds_fresh_document_sources(tmp_path: Path) -> None:
    first_page: Path = tmp_path / "chapter1.html"
    second_page: Path = tmp_path / "chapter2.txt"
    first_page.write_text("<p>One</p>", encoding="utf-8")
    second_page.write_text("Two", encoding="utf-8")

    factory = tts_reader.text_source_factory([str(first_page), str(second_page)])
    source = factory()

    assert isinstance(source, DocumentTextSource)
    assert source.page_count == 2
    assert factory() is not source


def test_text_source_factory_validates_documents(tmp_path: Path) -> None:
    image: Path = tmp_path / "cover.png"
    image.write_bytes(b"\x89PNG")

    with pytest.raises(FileMissingError):
        tts_reader.text_source_factory([str(tmp_path / "missing.html")])
    with pytest.raises(UnsupportedFileFormatError):
        tts_reader.text_source_factory([str(image)])


def test_check_python_version(monkeypatch: pytest.MonkeyPatch) -> None:
    tts_reader.check_python_version()

    monkeypatch.setattr(tts_reader.sys, "version_info", (3, 12, 0))
    with pytest.raises(RuntimeError, match=r"3\.13"):
        tts_reader.check_python_version()
