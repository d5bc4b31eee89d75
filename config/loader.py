"""Configuration file loader and validator.

Handles reading, formatting, and validating settings from the INI configuration file.
Raises exceptions for any issues encountered during loading.
"""

from __future__ import annotations

import ast
import configparser
import os
import tempfile
from configparser import ConfigParser
from dataclasses import fields
from pathlib import Path
from typing import TYPE_CHECKING, Any, Final

from models.config_models import Config
from models.playback_models import AdapterType
from utils.file_utils import FileUtils
from utils.logger_utils import LoggerUtils

if TYPE_CHECKING:
    import logging
    from collections.abc import Callable
    from dataclasses import Field as DataclassField
else:
    from dataclasses import Field as DataclassField

__all__: list[str] = [
    "Config",
    "ConfigFileNotFoundError",
    "ConfigFormatError",
    "ConfigLoader",
    "ConfigLoaderError",
    "ConfigTypeError",
    "ConfigValueError",
]

logger: logging.Logger = LoggerUtils.get_logger(__name__)

# Environment variables consulted when the INI file leaves an API key empty
API_KEY_ENVIRONMENT: Final[dict[str, str]] = {
    "ELEVENLABS": "ELEVENLABS_API_KEY",
    "AZURE": "AZURE_SPEECH_KEY",
}
DEFAULT_TIMEOUT: Final[float] = 30.0
TMP_DIR_NAME: Final[str] = "tts_reader"


class ConfigLoaderError(Exception):
    """An error occurred while processing the configuration file."""


class ConfigFileNotFoundError(ConfigLoaderError):
    """The specified configuration file does not exist."""


class ConfigFormatError(ConfigLoaderError):
    """The configuration file is not formatted correctly."""


class ConfigValueError(ConfigFormatError):
    """The configuration file contains an invalid value."""


class ConfigTypeError(ConfigFormatError):
    """The configuration file contains an invalid type."""


class ConfigLoader:
    """Handles loading and validation of configuration settings.

    Args:
        config_filename (str): INI file name to load.
        script_name (str): Executing script name, used in error messaging.
        **args: Command-line overrides ("adapter", "mock", "whole_page", "debug").

    Raises:
        ConfigFileNotFoundError: If the configuration file does not exist.
        ConfigFormatError: If the file cannot be parsed or contains invalid values/types.
    """

    def __init__(
        self,
        *,
        config_filename: str,
        script_name: str,
        **args,
    ) -> None:
        config_path = Path(config_filename)
        msg: str
        if not config_path.exists():
            msg = (
                f"Configuration file '{config_filename}' not found. "
                f"Please create '{config_filename}' in the same directory as '{script_name}'."
            )
            raise ConfigFileNotFoundError(msg)

        parser: ConfigParser = ConfigParser()

        try:
            parser.read(config_filename, encoding="utf-8")
        except configparser.Error as err:
            msg = f"Failed to parse configuration file '{config_filename}': {err}"
            raise ConfigFormatError(msg) from None

        self.config = Config()
        self.config.GENERAL.SCRIPT_NAME = script_name
        self._convert_settings(parser)
        self._apply_overrides(args)
        self._apply_environment()
        self._validate_settings()

    def _convert_settings(self, parser: ConfigParser) -> None:
        formatter = _ConfigFormatter(self.config, parser)
        for section in fields(self.config):
            if not parser.has_section(section.name):
                logger.debug("Section '%s' not defined, using defaults", section.name)
                continue
            self._convert_section_field(parser, formatter, section)

    def _convert_section_field(
        self, parser: ConfigParser, formatter: _ConfigFormatter, section: DataclassField[Any]
    ) -> None:
        """Convert all fields in a configuration section.

        Keys missing from the INI file keep their dataclass defaults.

        Raises:
            ConfigFormatError: If a value fails to format correctly.
        """
        for key in fields(getattr(self.config, section.name)):
            try:
                parser[section.name][key.name]
            except KeyError:
                logger.debug("Skipping undefined setting: '%s.%s'", section.name, key.name)
                continue

            formatted_value = formatter.apply_format(section, key)
            setattr(getattr(self.config, section.name), key.name, formatted_value)

    def _apply_overrides(self, args: dict[str, Any]) -> None:
        if args.get("adapter") is not None:
            self.config.READER.DEFAULT_ADAPTER = str(args["adapter"])
        if args.get("mock", False):
            self.config.READER.MOCK_TTS = True
        if args.get("whole_page", False):
            self.config.READER.WHOLE_PAGE_READING = True
        if args.get("debug", False):
            self.config.GENERAL.DEBUG = True

    def _apply_environment(self) -> None:
        for section_name, variable in API_KEY_ENVIRONMENT.items():
            section = getattr(self.config, section_name)
            if not section.API_KEY:
                section.API_KEY = os.getenv(variable, "")
                if section.API_KEY:
                    logger.debug("'%s.API_KEY' taken from environment variable '%s'", section_name, variable)

    def _validate_settings(self) -> None:
        """Validate adapter selection, numeric limits and directories.

        Raises:
            ConfigFormatError: If validation fails for any setting.
        """
        try:
            self._validate_adapter("READER", "DEFAULT_ADAPTER")
            self._validate_positive("READER", "MAX_TEXT_LENGTH")
            self._validate_not_negative("READER", "MAX_CHUNKS")
            self._validate_not_negative("KEYBOARD", "START_THROTTLE_MS")
            self._validate_not_negative("KEYBOARD", "TOGGLE_THROTTLE_MS")
            self._validate_timeout("ELEVENLABS", "TIMEOUT")
            self._validate_timeout("AZURE", "TIMEOUT")
            self._resolve_tmp_dir()
        except (AttributeError, TypeError) as err:
            msg: str = f"Invalid configuration value: {err}"
            raise ConfigFormatError(msg) from None

    def _validate_adapter(self, section_name: str, key_name: str) -> None:
        value: str = str(getattr(getattr(self.config, section_name), key_name)).lower()
        try:
            adapter_type: AdapterType = AdapterType(value)
        except ValueError:
            allowed: str = ", ".join(member.value for member in AdapterType)
            msg: str = f"Unsupported adapter used for '{section_name}.{key_name}': '{value}' (allowed: {allowed})"
            raise ConfigValueError(msg) from None
        setattr(getattr(self.config, section_name), key_name, adapter_type.value)

    def _validate_positive(self, section_name: str, key_name: str) -> None:
        value: int = getattr(getattr(self.config, section_name), key_name)
        if value <= 0:
            msg: str = f"'{section_name}.{key_name}' must be a positive number: {value}"
            raise ConfigValueError(msg)

    def _validate_not_negative(self, section_name: str, key_name: str) -> None:
        value: int = getattr(getattr(self.config, section_name), key_name)
        if value < 0:
            msg: str = f"'{section_name}.{key_name}' must not be negative: {value}"
            raise ConfigValueError(msg)

    def _validate_timeout(self, section_name: str, key_name: str) -> None:
        """Replace a non-positive timeout by the default and log a warning."""
        value: float = getattr(getattr(self.config, section_name), key_name)
        if value <= 0:
            logger.warning(
                "Invalid timeout '%s' for '%s.%s'; using default value %s",
                value,
                section_name,
                key_name,
                DEFAULT_TIMEOUT,
            )
            setattr(getattr(self.config, section_name), key_name, DEFAULT_TIMEOUT)

    def _resolve_tmp_dir(self) -> None:
        """Resolve the audio directory, defaulting to a folder in the system temp directory."""
        tmp_dir: str | Path | None = self.config.GENERAL.TMP_DIR
        path: Path = FileUtils.resolve_path(tmp_dir) if tmp_dir else Path(tempfile.gettempdir()) / TMP_DIR_NAME
        self.config.GENERAL.TMP_DIR = path


class _ConfigFormatter:
    """Converts INI string values to typed Python objects (bool, int, float, list, dict, str)."""

    def __init__(self, config: Config, parser: ConfigParser) -> None:
        self.config: Config = config
        self.parser: ConfigParser = parser

    def apply_format(self, section: DataclassField[Any], key: DataclassField[Any]) -> Any:
        """Convert INI value to the expected Python type based on the Config field type.

        Raises:
            ConfigValueError: If a value cannot be coerced to the expected type.
            ConfigFormatError: If literal evaluation fails due to invalid syntax.
            ConfigTypeError: If an unexpected type is encountered during coercion.
        """
        formatters: dict[
            type[bool | int | float], Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float]
        ] = {
            bool: self.parse_as_boolean,
            int: self.parse_as_integer,
            float: self.parse_as_float,
        }

        formatter: Callable[[DataclassField[Any], DataclassField[Any]], bool | int | float] | None = formatters.get(
            type(getattr(getattr(self.config, section.name), key.name))
        )
        if formatter:
            try:
                return formatter(section, key)
            except ValueError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigValueError(msg) from err
            except TypeError as err:
                msg = f"Invalid value for {section.name}.{key.name}: {err}"
                raise ConfigTypeError(msg) from err

        value_str: str = self.parser[section.name][key.name]
        try:
            return ast.literal_eval(value_str)
        except ValueError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigValueError(msg) from err
        except SyntaxError as err:
            msg = f"Invalid literal for {section.name}.{key.name}: {value_str}"
            raise ConfigFormatError(msg) from err

    def parse_as_float(self, section: DataclassField[Any], key: DataclassField[Any]) -> float:
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return float(value)

    def parse_as_integer(self, section: DataclassField[Any], key: DataclassField[Any]) -> int:
        value: str = self.parser.get(section.name, key.name)
        for char in ("'", '"'):
            value = value.removeprefix(char).removesuffix(char)
        return int(float(value))

    def parse_as_boolean(self, section: DataclassField[Any], key: DataclassField[Any]) -> bool:
        return self.parser.getboolean(section.name, key.name)
