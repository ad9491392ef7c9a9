import asyncio
from typing import Optional

import aiohttp
from web3.exceptions import (
    ABIFunctionNotFound,
    BadResponseFormat,
    ContractLogicError,
    InvalidAddress,
    MismatchedABI,
    ProviderConnectionError,
    TimeExhausted,
    TooManyRequests,
    TransactionNotFound,
    Web3RPCError,
    Web3ValidationError,
)

KIND_CONFIGURATION = "configuration"
KIND_NETWORK = "network"
KIND_REVERT = "revert"
KIND_UNEXPECTED = "unexpected"


class DeployError(Exception):
    kind = KIND_UNEXPECTED


class ConfigurationError(DeployError):
    """Missing or invalid network, signer, address or artifact configuration."""

    kind = KIND_CONFIGURATION


class NetworkError(DeployError):
    """The node could not be reached or rejected a request."""

    kind = KIND_NETWORK


class ImpersonationError(NetworkError):
    """The node refused an account impersonation request."""


class RevertError(DeployError):
    """A transaction was mined with a failed status."""

    kind = KIND_REVERT

    def __init__(self, message: str, tx_hash: Optional[str] = None):
        super().__init__(message)
        self.tx_hash = tx_hash


def _is_rpc_error_value(exc: BaseException) -> bool:
    # older web3 releases raise ValueError({"code": ..., "message": ...}) for JSON-RPC errors
    return (
        isinstance(exc, ValueError)
        and bool(exc.args)
        and isinstance(exc.args[0], dict)
        and "message" in exc.args[0]
    )


def classify_error(exc: BaseException) -> str:
    if isinstance(exc, DeployError):
        return exc.kind
    if isinstance(exc, ContractLogicError):
        return KIND_REVERT
    # ABI or argument mismatch against the loaded artifact
    if isinstance(exc, (ABIFunctionNotFound, MismatchedABI, InvalidAddress, Web3ValidationError)):
        return KIND_CONFIGURATION
    if isinstance(
        exc,
        (
            ConnectionError,
            TimeoutError,
            asyncio.TimeoutError,
            aiohttp.ClientError,
            TimeExhausted,
            TransactionNotFound,
            ProviderConnectionError,
            BadResponseFormat,
            TooManyRequests,
            Web3RPCError,
        ),
    ):
        return KIND_NETWORK
    if _is_rpc_error_value(exc):
        return KIND_NETWORK
    return KIND_UNEXPECTED
