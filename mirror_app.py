"""Command line tool that mirrors an Azure Blob Storage container locally.

The tool prompts for a storage connection string, lists the containers in the
account, asks which one to mirror and where to put it, then downloads every
blob that is not already present on disk. Run it with::

    python mirror_app.py

Values given as flags skip their prompt. Pass ``--non-interactive`` to take the
remaining values from environment variables instead of prompts (see ``--help``).
"""

import argparse
import logging
import os
import sys
import time
from datetime import timedelta
from pathlib import Path
from typing import Callable, List, Optional

from azure.storage.blob import BlobServiceClient

from blob_mirror.mirror import mirror_container
from blob_mirror.mirror_types import MirrorRun, MirrorSettings
from blob_mirror.settings import (
    AUTH_MODE_ENV_VAR,
    ConfigurationError,
    EnvironmentSettingsProvider,
    PromptSettingsProvider,
    SettingsProvider,
    resolve_auth_mode,
)
from blob_mirror.storage import (
    create_service_client,
    get_container_client,
    list_container_names,
)

SUCCESS_MESSAGE = "All blobs were processed"
MISMATCH_MESSAGE = "Not all blobs seem to have been processed, try running the tool again"


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Download every missing blob of an Azure Storage container"
    )
    parser.add_argument("--connection-string", help="Storage connection string")
    parser.add_argument("--container", help="Container to mirror")
    parser.add_argument("--base-path", help="Local folder to mirror into")
    parser.add_argument("--prefix", help="Only mirror blobs whose names start with this")
    parser.add_argument(
        "--auth-mode",
        help="connection_string (default) or managed_identity; "
        "managed identity expects the account URL as the credential",
    )
    parser.add_argument(
        "--non-interactive",
        action="store_true",
        help="Read unset values from the environment instead of prompting",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    return parser.parse_args(argv)


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        stream=sys.stdout,
    )
    # The SDK logs every request and response at INFO.
    logging.getLogger("azure.core.pipeline.policies.http_logging_policy").setLevel(
        logging.WARNING
    )
    logging.getLogger("azure.identity").setLevel(logging.WARNING)


def build_provider(args: argparse.Namespace) -> SettingsProvider:
    if args.non_interactive:
        return EnvironmentSettingsProvider(
            connection_string=args.connection_string,
            container_name=args.container,
            base_path=args.base_path,
        )
    return PromptSettingsProvider(
        connection_string=args.connection_string,
        container_name=args.container,
        base_path=args.base_path,
    )


def run_mirror(
    provider: SettingsProvider,
    run: MirrorRun,
    *,
    auth_mode: Optional[str] = None,
    prefix: Optional[str] = None,
    client_factory: Optional[Callable[[str, str], BlobServiceClient]] = None,
) -> MirrorRun:
    """Collect settings from ``provider`` and mirror the chosen container.

    Configuration problems raise ``ConfigurationError`` before the storage
    account is contacted. Everything after that propagates unchanged.
    """
    connection_string = provider.get_connection_string()
    mode = resolve_auth_mode(auth_mode or os.environ.get(AUTH_MODE_ENV_VAR))
    factory = client_factory or create_service_client
    service_client = factory(connection_string, mode)

    available = list_container_names(service_client)
    settings = MirrorSettings(
        container_name=provider.choose_container(available),
        base_path=provider.get_base_path(),
        prefix=prefix,
    )

    container_client = get_container_client(service_client, settings.container_name)
    logging.info(
        "Mirroring container %s into %s",
        settings.container_name,
        Path(settings.base_path),
    )
    return mirror_container(
        container_client, settings.base_path, run, prefix=settings.prefix
    )


def report_run(run: MirrorRun, elapsed: timedelta) -> None:
    print(SUCCESS_MESSAGE if run.succeeded else MISMATCH_MESSAGE)
    print(f"Tool took {elapsed} to finish")


def main(argv: Optional[List[str]] = None) -> int:
    args = parse_args(argv)
    configure_logging(args.verbose)

    started = time.perf_counter()
    run = MirrorRun()
    try:
        provider = build_provider(args)
        run_mirror(provider, run, auth_mode=args.auth_mode, prefix=args.prefix)
    except ConfigurationError as exc:
        run.error = str(exc)
        logging.error("Configuration error: %s", exc)
        report_run(run, timedelta(seconds=time.perf_counter() - started))
        return 2
    except Exception as exc:
        run.error = str(exc)
        logging.error("Mirror run aborted: %s", exc)
        logging.debug("Traceback for aborted run", exc_info=True)

    logging.debug(
        "total=%d skipped=%d downloaded=%d", run.total, run.skipped, run.downloaded
    )
    report_run(run, timedelta(seconds=time.perf_counter() - started))
    return 0 if run.succeeded else 1


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
