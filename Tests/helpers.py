"""Test helpers: Azure Storage stubs and dev store connection resolution."""

import json
import os
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Sequence

import pytest
from azure.core.exceptions import ResourceNotFoundError

from blob_mirror.storage import expand_development_storage


ROOT = Path(__file__).resolve().parents[1]
LOCAL_SETTINGS = ROOT / "local.settings.json"


class StubBlob:
    def __init__(self, name: str) -> None:
        self.name = name


class StubContainerItem:
    def __init__(self, name: str) -> None:
        self.name = name


class StubDownload:
    def __init__(self, data: bytes, fail_after: Optional[int] = None) -> None:
        self._data = data
        self._fail_after = fail_after

    def readinto(self, stream) -> int:
        if self._fail_after is not None:
            stream.write(self._data[: self._fail_after])
            raise ConnectionError("connection reset while streaming")
        stream.write(self._data)
        return len(self._data)


class StubBlobClient:
    def __init__(self, container: "StubContainerClient", name: str) -> None:
        self._container = container
        self.blob_name = name

    def download_blob(self) -> StubDownload:
        self._container.downloads.append(self.blob_name)
        if self.blob_name in self._container.download_errors:
            raise self._container.download_errors[self.blob_name]
        if self.blob_name not in self._container.data_map:
            raise ResourceNotFoundError(message="Blob not found")
        return StubDownload(
            self._container.data_map[self.blob_name],
            fail_after=self._container.stream_failures.get(self.blob_name),
        )


class StubContainerClient:
    """Mimics the parts of ``ContainerClient`` the mirror touches."""

    def __init__(
        self,
        data_map: Optional[Dict[str, bytes]] = None,
        *,
        container_name: str = "mysitemedia",
        exists: bool = True,
        list_error: Optional[Exception] = None,
        download_errors: Optional[Dict[str, Exception]] = None,
        stream_failures: Optional[Dict[str, int]] = None,
    ) -> None:
        self.data_map = dict(data_map or {})
        self.container_name = container_name
        self.exists = exists
        self.list_error = list_error
        self.download_errors = download_errors or {}
        self.stream_failures = stream_failures or {}
        self.downloads: List[str] = []
        self.blob_clients: List[str] = []
        self.last_prefix: Optional[str] = None

    def list_blobs(self, name_starts_with: Optional[str] = None, **kwargs: object):
        self.last_prefix = name_starts_with
        if self.list_error is not None:
            raise self.list_error
        return [
            StubBlob(name)
            for name in self.data_map
            if not name_starts_with or name.startswith(name_starts_with)
        ]

    def get_blob_client(self, blob: str) -> StubBlobClient:
        self.blob_clients.append(blob)
        return StubBlobClient(self, blob)

    def get_container_properties(self) -> Dict[str, str]:
        if not self.exists:
            raise ResourceNotFoundError(message="The specified container does not exist.")
        return {"name": self.container_name}


class StubServiceClient:
    """Mimics ``BlobServiceClient`` listing and container lookup."""

    def __init__(self, containers: Optional[Dict[str, StubContainerClient]] = None) -> None:
        self.containers = containers or {}
        self.account_name = "acct"
        self.requested: List[str] = []

    def list_containers(self) -> Iterable[StubContainerItem]:
        return [StubContainerItem(name) for name in self.containers]

    def get_container_client(self, container: str) -> StubContainerClient:
        self.requested.append(container)
        if container in self.containers:
            return self.containers[container]
        return StubContainerClient(container_name=container, exists=False)


def scripted_input(answers: Sequence[str]):
    """Return an ``input`` replacement that replays ``answers`` and records prompts."""
    remaining = list(answers)
    prompts: List[str] = []

    def _input(prompt: str = "") -> str:
        prompts.append(prompt)
        if not remaining:
            raise AssertionError(f"Unexpected prompt: {prompt}")
        return remaining.pop(0)

    _input.prompts = prompts  # type: ignore[attr-defined]
    return _input


def load_settings() -> dict:
    """Load values from local.settings.json."""
    if not LOCAL_SETTINGS.exists():
        return {}
    try:
        data = json.loads(LOCAL_SETTINGS.read_text(encoding="utf-8-sig"))
    except ValueError:
        return {}
    return data.get("Values", {})


def get_storage_connection() -> str:
    """Resolve a dev store connection string from env first, then local.settings.json."""
    connection = os.environ.get("AZURE_STORAGE_CONNECTION_STRING") or load_settings().get(
        "AZURE_STORAGE_CONNECTION_STRING", ""
    )
    if not connection:
        pytest.skip(
            "AZURE_STORAGE_CONNECTION_STRING not configured in env or local.settings.json"
        )
    connection = expand_development_storage(connection)
    if "devstoreaccount1" not in connection:
        pytest.skip("Integration tests only run against the Azurite dev store.")
    return connection
