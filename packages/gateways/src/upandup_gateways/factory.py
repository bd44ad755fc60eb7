"""Factory functions for creating identity network gateways."""

import httpx

from upandup_core.config import LedgerSettings
from upandup_gateways.base import CredentialGateway, DIDGateway, GatewayConfig
from upandup_gateways.cord import CordClient
from upandup_gateways.dhiway import DhiwayClient
from upandup_gateways.memory import InMemoryIdentityNetwork

SUPPORTED_PROVIDERS = ("dhiway", "cord", "memory")


def create_gateways(
    settings: LedgerSettings,
    provider: str | None = None,
    http_client: httpx.AsyncClient | None = None,
) -> tuple[DIDGateway, CredentialGateway]:
    """
    Create the DID and credential gateways for the configured provider.

    Every provider implements both interfaces, so the same client is
    returned twice.

    Args:
        settings: Ledger settings with endpoints and credentials
        provider: Overrides ``settings.provider`` ("dhiway", "cord", "memory")
        http_client: Optional shared HTTP client (ignored for "memory")

    Returns:
        (did_gateway, credential_gateway)

    Raises:
        ValueError: If the provider is unsupported

    Examples:
        >>> did_gateway, credential_gateway = create_gateways(get_settings())
        >>> create_gateways(settings, provider="memory")
    """
    provider = (provider or settings.provider).strip().lower()

    if provider == "memory":
        network = InMemoryIdentityNetwork()
        return network, network

    client_classes = {
        "dhiway": DhiwayClient,
        "cord": CordClient,
    }

    client_class = client_classes.get(provider)
    if client_class is None:
        raise ValueError(
            f"Unsupported identity provider: {provider}. "
            f"Supported providers: {', '.join(SUPPORTED_PROVIDERS)}"
        )

    client = client_class(GatewayConfig.from_settings(settings, provider), http_client)
    return client, client
