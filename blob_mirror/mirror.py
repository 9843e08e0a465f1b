"""Mirror the blobs of one container into a local directory tree."""

import logging
from pathlib import Path
from typing import List, Optional, Union

from azure.storage.blob import ContainerClient

from .mirror_types import MirrorRun

logger = logging.getLogger(__name__)

BLOB_NAME_SEPARATOR = "/"


class UnsafeBlobPathError(ValueError):
    """Raised when a blob name would be written outside the base path."""


def local_path_for(base_path: Union[Path, str], blob_name: str) -> Path:
    """Return the local path a blob is mirrored to.

    The blob name is split on ``/`` and joined under ``base_path`` so virtual
    folders become real directories. ``.`` and ``..`` segments are folded
    lexically, without consulting the filesystem, and names that climb out of
    the base path or name the base path itself are rejected.
    """
    parts: List[str] = []
    for segment in blob_name.split(BLOB_NAME_SEPARATOR):
        if segment in ("", "."):
            continue
        if segment == "..":
            if not parts:
                raise UnsafeBlobPathError(
                    f"Blob '{blob_name}' resolves outside of {base_path}"
                )
            parts.pop()
            continue
        parts.append(segment)

    if not parts:
        raise UnsafeBlobPathError(f"Blob '{blob_name}' does not name a file")
    return Path(base_path).joinpath(*parts)


def is_folder_marker(blob_name: str) -> bool:
    """True for zero-length ``name/`` blobs some tools create for empty folders."""
    return blob_name.endswith(BLOB_NAME_SEPARATOR)


def _download_blob_to_file(
    container_client: ContainerClient, blob_name: str, destination: Path
) -> None:
    downloader = container_client.get_blob_client(blob_name).download_blob()
    with destination.open("xb") as handle:
        try:
            downloader.readinto(handle)
        except Exception:
            # partial files must not survive; they would be skipped next run
            handle.close()
            destination.unlink()
            raise


def mirror_blob(
    container_client: ContainerClient,
    blob_name: str,
    base_path: Union[Path, str],
    run: MirrorRun,
) -> bool:
    """Mirror a single blob. Returns True when it was downloaded.

    Folder-marker blobs (names ending in ``/``) become directories and count
    as downloaded when the directory had to be created.
    """
    destination = local_path_for(base_path, blob_name)

    if is_folder_marker(blob_name):
        if destination.is_dir():
            run.record_skipped(blob_name)
            logger.info("Skipped %s", blob_name)
            return False
        destination.mkdir(parents=True, exist_ok=True)
        run.record_downloaded(blob_name)
        logger.info("Created folder %s", blob_name)
        return True

    if destination.is_file():
        run.record_skipped(blob_name)
        logger.info("Skipped %s", blob_name)
        return False

    destination.parent.mkdir(parents=True, exist_ok=True)
    _download_blob_to_file(container_client, blob_name, destination)
    run.record_downloaded(blob_name)
    logger.info("Downloaded %s", blob_name)
    return True


def mirror_container(
    container_client: ContainerClient,
    base_path: Union[Path, str],
    run: Optional[MirrorRun] = None,
    *,
    prefix: Optional[str] = None,
) -> MirrorRun:
    """Download every blob of ``container_client`` missing under ``base_path``.

    Blobs are processed in listing order. Any listing, download or filesystem
    error propagates immediately and ends the run; ``run`` keeps the counts
    reached so far so callers can still report them.

    Args:
        container_client: Container to mirror.
        base_path: Local root directory for the mirrored tree.
        run: Run context to update. A fresh one is created when omitted.
        prefix: Only mirror blobs whose names start with this value.

    Returns:
        The updated run context.
    """
    if run is None:
        run = MirrorRun()

    blob_names = [
        blob.name for blob in container_client.list_blobs(name_starts_with=prefix)
    ]
    run.total = len(blob_names)
    logger.debug(
        "Listed %d blobs in %s", run.total, container_client.container_name
    )

    for blob_name in blob_names:
        mirror_blob(container_client, blob_name, base_path, run)

    return run
