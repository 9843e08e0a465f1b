"""Azure Blob Storage client construction and container lookup."""

import logging
from typing import List

from azure.core.exceptions import ResourceNotFoundError
from azure.identity import DefaultAzureCredential
from azure.storage.blob import BlobServiceClient, ContainerClient

from .settings import ConfigurationError, resolve_auth_mode

logger = logging.getLogger(__name__)

DEVSTORE_CONNECTION = (
    "DefaultEndpointsProtocol=http;"
    "AccountName=devstoreaccount1;"
    "AccountKey=Eby8vdM02xNOcqFlqUwJPLlmEtlCDXJ1OUzFT50uSRZ6IFsuFq2UVErCz4I6tq/K1SZFPTOtr/KBHBeksoGMGw==;"
    "BlobEndpoint=http://127.0.0.1:10000/devstoreaccount1;"
    "QueueEndpoint=http://127.0.0.1:10001/devstoreaccount1;"
    "TableEndpoint=http://127.0.0.1:10002/devstoreaccount1;"
)


class ContainerNotFoundError(LookupError):
    """Raised when the selected container does not exist in the account."""


def expand_development_storage(connection: str) -> str:
    """Expand shorthand dev storage connection strings for Azurite."""
    if not connection:
        return connection
    if "usedevelopmentstorage=true" in connection.lower():
        return DEVSTORE_CONNECTION
    return connection


def create_service_client(credential: str, auth_mode: str = "connection_string") -> BlobServiceClient:
    """Build a service client from the operator-supplied credential.

    In ``connection_string`` mode the credential is a storage connection
    string. In ``managed_identity``/``aad`` mode it is the account URL and
    authentication goes through ``DefaultAzureCredential``.
    """
    mode = resolve_auth_mode(auth_mode)
    if mode in {"managed_identity", "aad"}:
        if not credential.lower().startswith(("https://", "http://")):
            raise ConfigurationError(
                "An account URL (https://<account>.blob.core.windows.net) is "
                "required for managed identity storage access"
            )
        logger.debug("Connecting to %s with DefaultAzureCredential", credential)
        return BlobServiceClient(account_url=credential, credential=DefaultAzureCredential())

    return BlobServiceClient.from_connection_string(expand_development_storage(credential))


def list_container_names(service_client: BlobServiceClient) -> List[str]:
    return [container.name for container in service_client.list_containers()]


def get_container_client(service_client: BlobServiceClient, container_name: str) -> ContainerClient:
    """Return a client for ``container_name``, failing early if it is missing."""
    container_client = service_client.get_container_client(container_name)
    try:
        container_client.get_container_properties()
    except ResourceNotFoundError as exc:
        raise ContainerNotFoundError(
            f"Container '{container_name}' was not found in account "
            f"{service_client.account_name}"
        ) from exc
    return container_client
