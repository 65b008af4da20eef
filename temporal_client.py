"""Temporal client factory.

Connects to Temporal Cloud when an API key is configured, or to a local
Temporal server otherwise. Credentials come from the environment (see
core.config, which also loads the repo's .env file).
"""

from typing import Optional

from temporalio.client import Client

from core.config import Settings, get_settings


LOCAL_TEMPORAL_ENDPOINT = "localhost:7233"


async def get_temporal_client(settings: Optional[Settings] = None) -> Client:
    """Create and return a Temporal client.

    Reads configuration from settings:
    - temporal_endpoint: e.g. "my-ns.a1b2c.tmprl.cloud:7233" (default localhost:7233)
    - temporal_namespace: Namespace (e.g., "default")
    - temporal_api_key: API key for Temporal Cloud; when unset, connect without TLS

    Returns:
        Connected Temporal client

    Raises:
        ValueError: If an API key is set without a Cloud endpoint
    """
    settings = settings or get_settings()
    endpoint = settings.temporal_endpoint
    namespace = settings.temporal_namespace
    api_key = settings.temporal_api_key

    if not api_key:
        # Local development server (`temporal server start-dev`)
        return await Client.connect(endpoint or LOCAL_TEMPORAL_ENDPOINT, namespace=namespace)

    if not endpoint:
        raise ValueError(
            "TEMPORAL_ENDPOINT environment variable not set. "
            "Set to your Temporal Cloud endpoint (e.g., 'my-ns.a1b2c.tmprl.cloud:7233')"
        )

    client = await Client.connect(
        target_host=endpoint,
        namespace=namespace,
        tls=True,  # system root certificates
        api_key=api_key,
    )

    return client
