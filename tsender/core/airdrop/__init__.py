"""
Airdrop Transaction Module

Prepares batched ERC-20 airdrops from form input and orchestrates the
allowance check, approval, and TSender transfer against a chain gateway.
"""

from .gateway import ChainGateway, DispatcherRegistry, GatewayError
from .models import (
    MAX_UINT256,
    STEP_LABELS,
    AirdropRequest,
    ConfigurationError,
    DispatcherNotConfiguredError,
    OperationDescriptor,
    OperationError,
    OperationErrorCode,
    OperationKind,
    PendingRetry,
    Phase,
    PhaseTransition,
    PreparedBatch,
    TransactionDetails,
    TransactionState,
    ValidationError,
    ValidationErrorCode,
)
from .orchestrator import TransactionOrchestrator
from .preparer import (
    calculate_total,
    format_units,
    parse_amounts,
    parse_recipients,
    parse_units,
    prepare_transaction_data,
    split_tokens,
    summarize_transaction,
)

__all__ = [
    # Orchestrator
    "TransactionOrchestrator",
    # Gateway
    "ChainGateway",
    "DispatcherRegistry",
    "GatewayError",
    # Models
    "MAX_UINT256",
    "STEP_LABELS",
    "AirdropRequest",
    "OperationDescriptor",
    "OperationKind",
    "PendingRetry",
    "Phase",
    "PhaseTransition",
    "PreparedBatch",
    "TransactionDetails",
    "TransactionState",
    # Errors
    "ConfigurationError",
    "DispatcherNotConfiguredError",
    "OperationError",
    "OperationErrorCode",
    "ValidationError",
    "ValidationErrorCode",
    # Preparer
    "calculate_total",
    "format_units",
    "parse_amounts",
    "parse_recipients",
    "parse_units",
    "prepare_transaction_data",
    "split_tokens",
    "summarize_transaction",
]
