"""Identity network gateways: DID creation and Verifiable Credential issuance."""

from upandup_gateways.base import (
    VC_TYPES,
    CredentialGateway,
    CredentialIssuanceResult,
    CredentialMetadata,
    DIDCreationResult,
    DIDGateway,
    GatewayConfig,
    IssuanceStatus,
    WorkerDetails,
    vc_type_for,
)
from upandup_gateways.client import HTTPGatewayClient
from upandup_gateways.cord import CordClient, OperationStatus
from upandup_gateways.dhiway import DhiwayClient
from upandup_gateways.factory import SUPPORTED_PROVIDERS, create_gateways
from upandup_gateways.memory import InMemoryIdentityNetwork

__all__ = [
    "CordClient",
    "CredentialGateway",
    "CredentialIssuanceResult",
    "CredentialMetadata",
    "DIDCreationResult",
    "DIDGateway",
    "DhiwayClient",
    "GatewayConfig",
    "HTTPGatewayClient",
    "InMemoryIdentityNetwork",
    "IssuanceStatus",
    "OperationStatus",
    "SUPPORTED_PROVIDERS",
    "VC_TYPES",
    "WorkerDetails",
    "create_gateways",
    "vc_type_for",
]
