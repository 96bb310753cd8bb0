"""Kubernetes API client construction."""

from kubernetes import client, config
from kubernetes.config.config_exception import ConfigException

from whocan.core.config import Settings
from whocan.core.exceptions import SourceFetchError
from whocan.core.logging import get_logger

logger = get_logger(__name__)


def get_api_client(settings: Settings) -> client.ApiClient:
    """Build an API client from the in-cluster config or a kubeconfig file."""
    try:
        if settings.in_cluster:
            config.load_incluster_config()
            logger.debug("Loaded in-cluster configuration")
            return client.ApiClient()

        api_client = config.new_client_from_config(
            config_file=settings.kubeconfig, context=settings.context
        )
        logger.debug(
            f"Loaded kubeconfig context {settings.context or '(current)'} "
            f"for {api_client.configuration.host}"
        )
        return api_client
    except ConfigException as e:
        raise SourceFetchError(f"Unable to load Kubernetes configuration: {e}") from e
