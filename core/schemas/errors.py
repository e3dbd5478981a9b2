"""
Module 01 - Schemas
File: errors.py

Purpose: Standard error taxonomy for the deployment pipeline.
Defines both Pydantic models for structured error communication
(carried inside run summaries) and Python exceptions for control flow.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Error Codes (Machine-Readable Constants)
# =============================================================================

class ErrorCodes:
    """Stable machine-readable error codes used across the pipeline."""

    # Serialization
    CANONICALIZATION_ERROR = "CANONICALIZATION_ERROR"

    # Configuration
    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    UNKNOWN_NETWORK = "UNKNOWN_NETWORK"
    MISSING_ARTIFACT = "MISSING_ARTIFACT"
    MISSING_CONFIG_FIELD = "MISSING_CONFIG_FIELD"

    # Step ordering
    UNSATISFIED_DEPENDENCY = "UNSATISFIED_DEPENDENCY"

    # Transactions
    TRANSACTION_ERROR = "TRANSACTION_ERROR"
    TRANSACTION_REVERTED = "TRANSACTION_REVERTED"
    CONFIRMATION_TIMEOUT = "CONFIRMATION_TIMEOUT"

    # Funding
    FUNDING_ERROR = "FUNDING_ERROR"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    TRANSFER_NOT_CONFIRMED = "TRANSFER_NOT_CONFIRMED"

    # Oracle request/response workflow
    ORACLE_WORKFLOW_ERROR = "ORACLE_WORKFLOW_ERROR"
    ISSUE_FAILED = "ISSUE_FAILED"
    MALFORMED_EFFECT_LOG = "MALFORMED_EFFECT_LOG"
    FINALIZE_REJECTED = "FINALIZE_REJECTED"

    # Executor
    STEP_EXECUTION_ERROR = "STEP_EXECUTION_ERROR"
    RUN_CANCELLED = "RUN_CANCELLED"


# =============================================================================
# Pydantic Error Model (Structured Communication)
# =============================================================================

class DeployError(BaseModel):
    """
    Error model for structured error communication across the pipeline.

    The executor converts raised exceptions into this model so that a
    failed run can be reported and serialized without re-raising.
    """

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        validate_assignment=True,
    )

    code: str = Field(
        ...,
        description="Stable machine-readable error code",
        examples=[ErrorCodes.UNSATISFIED_DEPENDENCY],
    )
    message: str = Field(
        ...,
        description="Human-readable error message",
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional structured details about the error",
    )
    retryable: bool = Field(
        default=False,
        description="Whether the operation can be retried",
    )

    def to_exception(self) -> "PixelPackException":
        """Convert this error model to a raisable exception."""
        return PixelPackException(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )


# =============================================================================
# Python Exceptions (Control Flow)
# =============================================================================

class PixelPackException(Exception):
    """
    Base exception for all deployment pipeline errors.

    Carries structured error information and can be converted to/from
    DeployError models.
    """

    def __init__(
        self,
        message: str,
        code: str = "PIXELPACK_ERROR",
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}
        self.retryable = retryable

    def to_error_model(self) -> DeployError:
        """Convert this exception to a DeployError model."""
        return DeployError(
            code=self.code,
            message=self.message,
            details=self.details,
            retryable=self.retryable,
        )

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(code={self.code!r}, message={self.message!r})"


class CanonicalizationException(PixelPackException):
    """Exception raised when canonical serialization fails."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.CANONICALIZATION_ERROR,
            details=details,
            retryable=False,
        )


# -----------------------------------------------------------------------------
# Configuration
# -----------------------------------------------------------------------------

class ConfigurationException(PixelPackException):
    """Fatal configuration problem, raised before any transaction is sent."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.CONFIGURATION_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details, retryable=False)


class UnknownNetworkException(ConfigurationException):
    """No static table entry exists for a live network."""

    def __init__(self, network: str, details: dict[str, Any] | None = None) -> None:
        full_details = details or {}
        full_details["network"] = network
        super().__init__(
            message=f"Unknown network: {network}",
            code=ErrorCodes.UNKNOWN_NETWORK,
            details=full_details,
        )


class MissingArtifactException(ConfigurationException):
    """A locally deployed dependency has not been recorded yet."""

    def __init__(self, name: str, network_id: str) -> None:
        super().__init__(
            message=f"No artifact named '{name}' on network {network_id}",
            code=ErrorCodes.MISSING_ARTIFACT,
            details={"artifact": name, "network_id": network_id},
        )
        self.name = name
        self.network_id = network_id


class MissingConfigFieldException(ConfigurationException):
    """A field required by a step resolved to nothing."""

    def __init__(self, field_name: str, network_id: str) -> None:
        super().__init__(
            message=f"Configuration field '{field_name}' is not set for network {network_id}",
            code=ErrorCodes.MISSING_CONFIG_FIELD,
            details={"field": field_name, "network_id": network_id},
        )
        self.field_name = field_name


# -----------------------------------------------------------------------------
# Step ordering
# -----------------------------------------------------------------------------

class UnsatisfiedDependencyException(PixelPackException):
    """A step's required artifacts are absent on the current network."""

    def __init__(self, step: str, missing: list[str], network_id: str = "") -> None:
        super().__init__(
            message=f"Step '{step}' requires missing artifacts: {', '.join(missing)}",
            code=ErrorCodes.UNSATISFIED_DEPENDENCY,
            details={"step": step, "missing": list(missing), "network_id": network_id},
            retryable=False,
        )
        self.step = step
        self.missing = list(missing)


# -----------------------------------------------------------------------------
# Transactions
# -----------------------------------------------------------------------------

class TransactionException(PixelPackException):
    """Base for transaction submission and confirmation failures."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.TRANSACTION_ERROR,
        tx_hash: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if tx_hash:
            full_details["tx_hash"] = tx_hash
        super().__init__(message=message, code=code, details=full_details, retryable=False)
        self.tx_hash = tx_hash


class TransactionRevertedException(TransactionException):
    """The transaction was mined but reverted."""

    def __init__(
        self,
        message: str,
        tx_hash: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.TRANSACTION_REVERTED,
            tx_hash=tx_hash,
            details=details,
        )


class ConfirmationTimeoutException(TransactionException):
    """The transaction did not reach the confirmation depth in time."""

    def __init__(
        self,
        tx_hash: str,
        confirmations: int,
        timeout_s: float,
    ) -> None:
        super().__init__(
            message=(
                f"Transaction {tx_hash} did not reach {confirmations} "
                f"confirmation(s) within {timeout_s}s"
            ),
            code=ErrorCodes.CONFIRMATION_TIMEOUT,
            tx_hash=tx_hash,
            details={"confirmations": confirmations, "timeout_s": timeout_s},
        )


# -----------------------------------------------------------------------------
# Funding
# -----------------------------------------------------------------------------

class FundingException(PixelPackException):
    """Base for funding step failures."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.FUNDING_ERROR,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message=message, code=code, details=details, retryable=False)


class InsufficientBalanceException(FundingException):
    """The funding source holds less than the amount to send."""

    def __init__(self, balance: int, required: int, account: str) -> None:
        super().__init__(
            message=f"Account {account} holds {balance}, needs {required}",
            code=ErrorCodes.INSUFFICIENT_BALANCE,
            details={"balance": str(balance), "required": str(required), "account": account},
        )


class TransferNotConfirmedException(FundingException):
    """The funding transfer did not reach the confirmation depth."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.TRANSFER_NOT_CONFIRMED,
            details=details,
        )


# -----------------------------------------------------------------------------
# Oracle request/response workflow
# -----------------------------------------------------------------------------

class OracleWorkflowException(PixelPackException):
    """Base for randomness request workflow failures."""

    def __init__(
        self,
        message: str,
        code: str = ErrorCodes.ORACLE_WORKFLOW_ERROR,
        details: dict[str, Any] | None = None,
        retryable: bool = False,
    ) -> None:
        super().__init__(message=message, code=code, details=details, retryable=retryable)


class IssueFailedException(OracleWorkflowException):
    """The create transaction reverted or never confirmed."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message=message, code=ErrorCodes.ISSUE_FAILED, details=details)


class MalformedEffectLogException(OracleWorkflowException):
    """An expected event or named field is absent from the effect log."""

    def __init__(self, event: str, field: str | None = None) -> None:
        target = f"{event}.{field}" if field else event
        super().__init__(
            message=f"Effect log is missing {target}",
            code=ErrorCodes.MALFORMED_EFFECT_LOG,
            details={"event": event, "field": field},
        )


class FinalizeRejectedException(OracleWorkflowException):
    """
    The finalize transaction was rejected.

    Retryable by default: on live networks fulfillment may simply not have
    landed yet. Correlation mismatches are raised with retryable=False.
    """

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        retryable: bool = True,
    ) -> None:
        super().__init__(
            message=message,
            code=ErrorCodes.FINALIZE_REJECTED,
            details=details,
            retryable=retryable,
        )


# -----------------------------------------------------------------------------
# Executor
# -----------------------------------------------------------------------------

class StepExecutionException(PixelPackException):
    """Wraps an unexpected error raised inside a step action."""

    def __init__(
        self,
        message: str,
        step: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        full_details = details or {}
        if step:
            full_details["step"] = step
        super().__init__(
            message=message,
            code=ErrorCodes.STEP_EXECUTION_ERROR,
            details=full_details,
            retryable=False,
        )
