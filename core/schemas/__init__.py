"""
Module 01 - Schemas
File: __init__.py

Purpose: Export the public API for the schemas module.
This is the main entry point for other modules to import schema definitions.
"""

# Canonical serialization API
from .canonical import (
    CANONICAL_JSON_SEPARATORS,
    canonicalize_value,
    dumps_canonical,
    ensure_utc,
    format_datetime_canonical,
    loads_canonical,
)

# Error models and exceptions
from .errors import (
    CanonicalizationException,
    ConfigurationException,
    ConfirmationTimeoutException,
    DeployError,
    ErrorCodes,
    FinalizeRejectedException,
    FundingException,
    InsufficientBalanceException,
    IssueFailedException,
    MalformedEffectLogException,
    MissingArtifactException,
    MissingConfigFieldException,
    OracleWorkflowException,
    PixelPackException,
    StepExecutionException,
    TransactionException,
    TransactionRevertedException,
    TransferNotConfirmedException,
    UnknownNetworkException,
    UnsatisfiedDependencyException,
)

# Network and environment
from .network import LOCAL_CHAIN_ID, EnvironmentConfig, NetworkContext

# Deployment records
from .artifacts import Artifact

# Chain transport types
from .chain import Event, Transaction, TxHandle, TxReceipt

# Oracle workflow state
from .oracle import PendingRequest, RequestStatus

# Progress events
from .progress import ProgressEvent, ProgressKind


__all__ = [
    # Canonical
    "CANONICAL_JSON_SEPARATORS",
    "canonicalize_value",
    "dumps_canonical",
    "ensure_utc",
    "format_datetime_canonical",
    "loads_canonical",
    # Errors
    "CanonicalizationException",
    "ConfigurationException",
    "ConfirmationTimeoutException",
    "DeployError",
    "ErrorCodes",
    "FinalizeRejectedException",
    "FundingException",
    "InsufficientBalanceException",
    "IssueFailedException",
    "MalformedEffectLogException",
    "MissingArtifactException",
    "MissingConfigFieldException",
    "OracleWorkflowException",
    "PixelPackException",
    "StepExecutionException",
    "TransactionException",
    "TransactionRevertedException",
    "TransferNotConfirmedException",
    "UnknownNetworkException",
    "UnsatisfiedDependencyException",
    # Network
    "LOCAL_CHAIN_ID",
    "EnvironmentConfig",
    "NetworkContext",
    # Artifacts
    "Artifact",
    # Chain
    "Event",
    "Transaction",
    "TxHandle",
    "TxReceipt",
    # Oracle
    "PendingRequest",
    "RequestStatus",
    # Progress
    "ProgressEvent",
    "ProgressKind",
]
