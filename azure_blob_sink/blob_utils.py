import logging

from azure.core.exceptions import ResourceExistsError
from azure.storage.blob import BlobServiceClient, ContainerClient

logger = logging.getLogger(__name__)


def get_blob_service_client(conn_str: str) -> BlobServiceClient:
    """
    Returns a connected BlobServiceClient for the given connection string.
    """
    if not conn_str:
        raise RuntimeError("Azure Blob Storage connection string not set.")
    return BlobServiceClient.from_connection_string(conn_str)


def get_container_client(conn_str: str, container_name: str, create: bool = True) -> ContainerClient:
    """
    Resolve a container by name, creating it when it does not exist yet.
    """
    container = get_blob_service_client(conn_str).get_container_client(container_name)
    if create:
        try:
            container.create_container()
            logger.debug("Created container '%s'.", container_name)
        except ResourceExistsError:
            pass
    return container
