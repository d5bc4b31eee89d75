"""TTS Reader.

Reads documents aloud through ElevenLabs or Azure Speech. The documents given on the command line
are read page by page (one file per page); without documents a short sample text is shown.

Keyboard shortcuts work anywhere in the window except in input fields:
    Shift+P  start, pause or resume
    Shift+S  stop
    Escape   emergency stop
    Shift+T  switch adapter
    Shift+Q  enable or disable reading
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Final, NoReturn

from config.loader import ConfigLoader, ConfigLoaderError
from core.reader.controller import ReaderController
from core.reader.services import ServiceBundleFactory
from core.version import VERSION
from handlers.key_source import TkKeyEventSource
from handlers.text_source import DocumentTextSource, StaticTextSource
from models.playback_models import AVAILABLE_ADAPTERS, AdapterType
from utils.file_utils import FileUtils, FileUtilsError
from utils.gui_app import ReaderApp
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable

    from handlers.text_source import TextSource
    from models.config_models import Config

CFG_FILE: Final[str] = "tts_reader.ini"
LOG_FILE: Final[str] = "tts_reader.log"

SAMPLE_TEXT: Final[str] = """\
Welcome to TTS Reader.

Open a document by passing its path on the command line. HTML documents keep their headings and \
paragraphs, which are read with matching pauses and emphasis.

Press Shift and P to start reading, and Shift and S to stop."""


def check_python_version() -> None:
    """Check if Python version is 3.13 or later.

    Raises:
        RuntimeError: If Python version is below 3.13.
    """
    if sys.version_info < (3, 13):
        msg = "Python 3.13 or later is required"
        raise RuntimeError(msg)


class _ArgumentParser(argparse.ArgumentParser):
    def error(self, message: str) -> NoReturn:
        print(f"\n{message}\n", file=sys.stderr)
        self.print_help(sys.stderr)
        raise SystemExit(2)


def parse_arguments(argv: list[str] | None = None) -> argparse.Namespace:
    parser = _ArgumentParser(
        description="Read documents aloud with a text-to-speech service",
        epilog="Example: python tts_reader.py --adapter azure chapter1.html chapter2.html",
    )
    parser.add_argument(
        "--adapter",
        dest="adapter",
        choices=[descriptor.key.value for descriptor in AVAILABLE_ADAPTERS],
        help="Override the adapter selected at startup",
    )
    parser.add_argument("--mock", dest="mock", action="store_true", help="Play test tones instead of speech")
    parser.add_argument("--whole-page", dest="whole_page", action="store_true", help="Read whole pages")
    parser.add_argument("--debug", dest="debug", action="store_true", help="Enable debug logging")
    parser.add_argument("documents", nargs="*", metavar="DOCUMENT", help="HTML or text files, one page each")
    return parser.parse_args(argv)


def load_config(args: argparse.Namespace) -> Config:
    """Load the configuration file and apply the command line overrides.

    Raises:
        ConfigLoaderError: If the configuration file cannot be loaded.
    """
    script_name: str = Path(sys.argv[0]).stem
    overrides: dict[str, object] = {key: value for key, value in vars(args).items() if key != "documents"}
    config: Config = ConfigLoader(config_filename=CFG_FILE, script_name=script_name, **overrides).config
    config.GENERAL.VERSION = VERSION
    return config


def text_source_factory(documents: list[str]) -> Callable[[], TextSource]:
    """Create the factory used for the text source of every service bundle.

    Raises:
        FileUtilsError: If a document does not exist or has an unsupported format.
    """
    paths: list[Path] = [FileUtils.resolve_path(document) for document in documents]
    if paths:
        # Validate once up front so a bad path is reported before the window opens
        DocumentTextSource(paths)
        return lambda: DocumentTextSource(paths)
    return lambda: StaticTextSource(SAMPLE_TEXT)


async def main() -> None:
    check_python_version()
    args: argparse.Namespace = parse_arguments()
    try:
        config: Config = load_config(args)
    except ConfigLoaderError as err:
        print(f"Error: {err}", file=sys.stderr)
        return

    log_file: Path = FileUtils.resolve_path(config.GENERAL.LOG_FILE or LOG_FILE)
    logger_utils: LoggerUtils = LoggerUtils(log_file)
    logger_utils.set_level("DEBUG" if config.GENERAL.DEBUG else "INFO")
    logger: logging.Logger = LoggerUtils.get_logger(__name__)
    logger.info("%s ver. %s started", config.GENERAL.SCRIPT_NAME, VERSION)

    try:
        source_factory: Callable[[], TextSource] = text_source_factory(args.documents)
    except FileUtilsError as err:
        logger.error("%s", err)
        return

    app = ReaderApp(window_title=f"{config.GENERAL.SCRIPT_NAME} - ver. {VERSION}")
    factory = ServiceBundleFactory(
        config,
        text_source_factory=source_factory,
        key_source=TkKeyEventSource(app.root),
    )
    controller = ReaderController(factory, default_adapter=AdapterType(config.READER.DEFAULT_ADAPTER))
    await app.run_with_controller(controller)
    logger.info("%s finished", config.GENERAL.SCRIPT_NAME)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
