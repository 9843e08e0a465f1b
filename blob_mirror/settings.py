"""Configuration sources for the mirror tool.

Values come either from interactive prompts or, for unattended runs, from
command-line overrides and environment variables. Both paths funnel through
the same normalization helpers so the mirror logic never sees raw input.
"""

import abc
import logging
import os
from typing import Callable, Mapping, Optional, Sequence

logger = logging.getLogger(__name__)

DEFAULT_CONTAINER_NAME = "mysitemedia"
DEFAULT_BASE_PATH = (
    r"c:\temp\mysitemedia" if os.name == "nt" else "/tmp/mysitemedia"
)

CONNECTION_STRING_ENV_VARS = ("AZURE_STORAGE_CONNECTION_STRING", "AzureWebJobsStorage")
CONTAINER_ENV_VAR = "BLOB_MIRROR_CONTAINER"
BASE_PATH_ENV_VAR = "BLOB_MIRROR_BASE_PATH"
AUTH_MODE_ENV_VAR = "STORAGE_AUTH_MODE"

AUTH_MODES = {"connection_string", "managed_identity", "aad"}


class ConfigurationError(ValueError):
    """Raised when required configuration is missing or invalid."""


def normalize_connection_string(raw: Optional[str]) -> str:
    """Trim the credential and drop a single trailing ``;``.

    Raises:
        ConfigurationError: If the value is empty or only whitespace.
    """
    if raw is None or not raw.strip():
        raise ConfigurationError("connection string cannot be empty")

    value = raw.strip()
    if value.endswith(";"):
        value = value[:-1]
    value = value.strip()
    if not value:
        raise ConfigurationError("connection string cannot be empty")
    return value


def resolve_container_name(value: Optional[str]) -> str:
    cleaned = (value or "").strip()
    return cleaned or DEFAULT_CONTAINER_NAME


def resolve_base_path(value: Optional[str]) -> str:
    cleaned = (value or "").strip()
    return cleaned or DEFAULT_BASE_PATH


def resolve_auth_mode(value: Optional[str]) -> str:
    normalized = (value or "").strip().lower() or "connection_string"
    if normalized not in AUTH_MODES:
        raise ConfigurationError(
            f"Unknown storage auth mode '{value}'. "
            f"Use one of: {', '.join(sorted(AUTH_MODES))}."
        )
    return normalized


class SettingsProvider(abc.ABC):
    """Supplies the three values a mirror run needs."""

    @abc.abstractmethod
    def get_connection_string(self) -> str:
        """Return the normalized storage credential."""

    @abc.abstractmethod
    def choose_container(self, available: Sequence[str]) -> str:
        """Pick a container, given the names listed by the storage account."""

    @abc.abstractmethod
    def get_base_path(self) -> str:
        """Return the local directory the container is mirrored into."""


class PromptSettingsProvider(SettingsProvider):
    """Reads settings from interactive console prompts.

    Values passed to the constructor are used as-is and their prompt is
    skipped. End of input on stdin counts as a blank answer.
    """

    def __init__(
        self,
        input_func: Optional[Callable[[str], str]] = None,
        print_func: Optional[Callable[..., None]] = None,
        *,
        connection_string: Optional[str] = None,
        container_name: Optional[str] = None,
        base_path: Optional[str] = None,
    ) -> None:
        self._input = input_func or input
        self._print = print_func or print
        self._connection_string = connection_string
        self._container_name = container_name
        self._base_path = base_path

    def _ask(self, prompt: str) -> str:
        try:
            answer = self._input(prompt)
        except EOFError:
            answer = ""
        self._print()
        return answer

    def get_connection_string(self) -> str:
        if self._connection_string:
            return normalize_connection_string(self._connection_string)
        return normalize_connection_string(
            self._ask("Azure blob storage connection string: ")
        )

    def choose_container(self, available: Sequence[str]) -> str:
        if self._container_name:
            return resolve_container_name(self._container_name)
        self._print("Available containers:")
        self._print()
        for name in available:
            self._print(name)
        self._print()
        raw = self._ask(
            "Set azure blob container, "
            f"(will default to {DEFAULT_CONTAINER_NAME} if field is left empty): "
        )
        return resolve_container_name(raw)

    def get_base_path(self) -> str:
        if self._base_path:
            return resolve_base_path(self._base_path)
        raw = self._ask(
            "Set base path to local folder, "
            f"(will default to {DEFAULT_BASE_PATH} if field is left empty): "
        )
        return resolve_base_path(raw)


class EnvironmentSettingsProvider(SettingsProvider):
    """Non-interactive settings from explicit overrides, then the environment."""

    def __init__(
        self,
        environ: Optional[Mapping[str, str]] = None,
        *,
        connection_string: Optional[str] = None,
        container_name: Optional[str] = None,
        base_path: Optional[str] = None,
    ) -> None:
        self._environ = os.environ if environ is None else environ
        self._connection_string = connection_string
        self._container_name = container_name
        self._base_path = base_path

    def get_connection_string(self) -> str:
        raw = self._connection_string
        if not raw:
            for name in CONNECTION_STRING_ENV_VARS:
                raw = self._environ.get(name)
                if raw:
                    logger.debug("Using connection string from %s", name)
                    break
        return normalize_connection_string(raw)

    def choose_container(self, available: Sequence[str]) -> str:
        name = resolve_container_name(
            self._container_name or self._environ.get(CONTAINER_ENV_VAR)
        )
        if available and name not in available:
            logger.warning(
                "Container %s is not among the %d listed containers",
                name,
                len(available),
            )
        return name

    def get_base_path(self) -> str:
        return resolve_base_path(self._base_path or self._environ.get(BASE_PATH_ENV_VAR))
