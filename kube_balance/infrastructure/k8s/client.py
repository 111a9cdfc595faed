# kube_balance/infrastructure/k8s/client.py

import logging
from typing import Optional

from kubernetes import client, config

logger = logging.getLogger(__name__)


def load_api_client(
    kubeconfig: Optional[str] = None,
    context: Optional[str] = None,
) -> client.ApiClient:
    """
    Build an ApiClient.

    An explicit kubeconfig/context wins; otherwise in-cluster config is
    tried first, then the default kubeconfig.
    """
    if kubeconfig or context:
        logger.info(f"[k8s] Loading kubeconfig (file={kubeconfig}, context={context})")
        return config.new_client_from_config(config_file=kubeconfig, context=context)

    try:
        config.load_incluster_config()
        logger.info("[k8s] Using in-cluster configuration")
    except config.config_exception.ConfigException:
        config.load_kube_config()
        logger.info("[k8s] Using default kubeconfig")

    return client.ApiClient()
