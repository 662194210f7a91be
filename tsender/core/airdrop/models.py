"""
Airdrop Transaction Models

Defines phases, the prepared batch, orchestrator state, the replayable
operation descriptors, and the errors raised along the way.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from ..recovery.errors import CategorizedError

MAX_UINT256 = 2**256 - 1
DEFAULT_TOKEN_DECIMALS = 18


class Phase(str, Enum):
    """Phases of an airdrop run. Exactly one holds at a time."""

    IDLE = "idle"                  # Ready to start
    CHECKING = "checking"          # Preparing data, reading allowance
    APPROVING = "approving"        # Approval submitted to wallet
    TRANSFERRING = "transferring"  # Batched transfer submitted
    SUCCESS = "success"
    ERROR = "error"


ACTIVE_PHASES = frozenset({Phase.CHECKING, Phase.APPROVING, Phase.TRANSFERRING})

STEP_LABELS: Dict[Phase, str] = {
    Phase.IDLE: "Ready",
    Phase.CHECKING: "Checking allowance...",
    Phase.APPROVING: "Approving tokens...",
    Phase.TRANSFERRING: "Executing airdrop...",
    Phase.SUCCESS: "Transaction complete!",
    Phase.ERROR: "Transaction failed",
}

# Progress order; ERROR is not part of it and reports 0
STEP_ORDER: Tuple[Phase, ...] = (
    Phase.IDLE,
    Phase.CHECKING,
    Phase.APPROVING,
    Phase.TRANSFERRING,
    Phase.SUCCESS,
)


class OperationKind(str, Enum):
    """Remote operations that can be replayed by retry()."""

    CHECK_ALLOWANCE = "check_allowance"
    APPROVE = "approve"
    TRANSFER = "transfer"


@dataclass(frozen=True)
class AirdropRequest:
    """User inputs for one airdrop run."""

    token_address: str
    recipients_text: str
    amounts_text: str
    owner_address: str
    chain_id: int
    token_decimals: Optional[int] = None


@dataclass(frozen=True)
class PreparedBatch:
    """Validated, chain-ready recipients and amounts."""

    recipients: Tuple[str, ...]
    amounts: Tuple[int, ...]
    total: int

    def __post_init__(self):
        if len(self.recipients) != len(self.amounts):
            raise ValueError(
                f"recipients ({len(self.recipients)}) and amounts "
                f"({len(self.amounts)}) must have the same length"
            )

    @property
    def recipient_count(self) -> int:
        return len(self.recipients)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "recipients": list(self.recipients),
            "amounts": [str(a) for a in self.amounts],
            "total": str(self.total),
        }


@dataclass(frozen=True)
class TransactionDetails:
    """Preview of what the form text would send."""

    total_tokens: str
    total_recipients: int


@dataclass(frozen=True)
class OperationDescriptor:
    """Data needed to replay one remote operation."""

    kind: OperationKind
    request: AirdropRequest
    batch: Optional[PreparedBatch] = None
    dispatcher: Optional[str] = None


@dataclass(frozen=True)
class PendingRetry:
    """The failed operation and the phase it belongs to."""

    phase: Phase
    replay: OperationDescriptor


@dataclass
class PhaseTransition:
    """Record of a phase change."""

    from_phase: Phase
    to_phase: Phase
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    reason: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "fromPhase": self.from_phase.value,
            "toPhase": self.to_phase.value,
            "timestamp": self.timestamp.isoformat(),
            "reason": self.reason,
        }


@dataclass
class TransactionState:
    """Mutable state owned by a single orchestrator."""

    phase: Phase = Phase.IDLE
    approval_handle: Optional[str] = None
    transfer_handle: Optional[str] = None
    last_error: Optional[CategorizedError] = None
    retry_count: int = 0
    pending_retry: Optional[PendingRetry] = None
    history: List[PhaseTransition] = field(default_factory=list)

    @property
    def is_active(self) -> bool:
        return self.phase in ACTIVE_PHASES

    @property
    def can_retry(self) -> bool:
        return (
            self.phase == Phase.ERROR
            and self.last_error is not None
            and self.last_error.retryable
            and self.pending_retry is not None
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "phase": self.phase.value,
            "approvalHandle": self.approval_handle,
            "transferHandle": self.transfer_handle,
            "lastError": self.last_error.to_dict() if self.last_error else None,
            "retryCount": self.retry_count,
            "canRetry": self.can_retry,
            "isActive": self.is_active,
            "history": [t.to_dict() for t in self.history],
        }


class ValidationErrorCode(str, Enum):
    EMPTY = "empty"
    LENGTH_MISMATCH = "length_mismatch"
    AMOUNT_OVERFLOW = "amount_overflow"
    INVALID_TOKEN_ADDRESS = "invalid_token_address"
    MISSING_OWNER = "missing_owner"


class ValidationError(Exception):
    """Raised when form input cannot be turned into a batch."""

    def __init__(self, message: str, code: ValidationErrorCode):
        self.message = message
        self.code = code
        super().__init__(message)


class ConfigurationError(Exception):
    """Raised when the deployment lacks something a run needs."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class DispatcherNotConfiguredError(ConfigurationError):
    """No dispatcher contract is known for the chain."""

    def __init__(self, chain_id: int):
        self.chain_id = chain_id
        super().__init__(f"TSender contract not found for chain {chain_id}")


class OperationErrorCode(str, Enum):
    ALREADY_IN_PROGRESS = "already_in_progress"
    NOT_RETRYABLE = "not_retryable"


class OperationError(Exception):
    """Raised when start() or retry() is called in the wrong phase."""

    def __init__(self, message: str, code: OperationErrorCode):
        self.message = message
        self.code = code
        super().__init__(message)
