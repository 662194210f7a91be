"""
Airdrop Transaction Orchestrator

Sequences allowance check -> approve -> batched transfer against a
ChainGateway, wrapping every remote call in the retry executor and keeping a
replayable description of whatever failed last.
"""

from __future__ import annotations

import inspect
from typing import TYPE_CHECKING, Any, Awaitable, Callable, List, Optional, Tuple

import structlog

from ... import logging_config
from ...services.address import is_valid_evm_address
from ..recovery.errors import (
    CategorizedError,
    ErrorCategory,
    RetryableError,
    build_categorized_error,
    categorize_error,
)
from ..recovery.executor import RetryPolicy
from .gateway import ChainGateway, DispatcherRegistry
from .models import (
    STEP_LABELS,
    STEP_ORDER,
    AirdropRequest,
    ConfigurationError,
    OperationDescriptor,
    OperationError,
    OperationErrorCode,
    OperationKind,
    PendingRetry,
    Phase,
    PhaseTransition,
    TransactionState,
    ValidationError,
    ValidationErrorCode,
)
from .preparer import prepare_transaction_data

if TYPE_CHECKING:
    from ...config import Settings


TransitionCallback = Callable[[PhaseTransition, TransactionState], Awaitable[None]]
RetryListener = Callable[[OperationKind, int, CategorizedError], Any]

# Phase a failed operation is re-entered in on retry()
OPERATION_PHASES = {
    OperationKind.CHECK_ALLOWANCE: Phase.CHECKING,
    OperationKind.APPROVE: Phase.APPROVING,
    OperationKind.TRANSFER: Phase.TRANSFERRING,
}

CONFIGURATION_USER_ACTION = "Switch to a network where the TSender contract is deployed."


class TransactionOrchestrator:
    """
    Drives one airdrop at a time.

    - start() rejects calls while a run is in flight.
    - retry() replays only the operation that failed, then continues.
    - reset() may be called at any time; results of a run started before
      the reset are discarded when they arrive, and its pending automatic
      retries are abandoned.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        request: Optional[AirdropRequest] = None,
        settings: Optional["Settings"] = None,
        registry: Optional[DispatcherRegistry] = None,
        retry_policy: Optional[RetryPolicy] = None,
        on_retry: Optional[RetryListener] = None,
        logger: Optional[Any] = None,
    ):
        if settings is None:
            from ...config import settings as default_settings

            settings = default_settings

        self.gateway = gateway
        self.settings = settings
        self.registry = registry or DispatcherRegistry(settings.dispatcher_addresses)
        self.retry_policy = retry_policy or RetryPolicy()
        self.on_retry = on_retry
        self.logger = logger or structlog.stdlib.get_logger("airdrop.orchestrator")

        self._request = request
        self._state = TransactionState()
        self._generation = 0
        self._transition_callbacks: List[TransitionCallback] = []

    @property
    def state(self) -> TransactionState:
        return self._state

    @property
    def phase(self) -> Phase:
        return self._state.phase

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def request(self) -> Optional[AirdropRequest]:
        return self._request

    @property
    def step_label(self) -> str:
        return STEP_LABELS[self._state.phase]

    def step_progress(self) -> Tuple[int, int]:
        """Return (current, total) for progress bars. ERROR reports 0."""
        try:
            current = STEP_ORDER.index(self._state.phase)
        except ValueError:
            current = 0
        return current, len(STEP_ORDER) - 1

    def set_request(self, request: AirdropRequest) -> None:
        """Replace the inputs used by the next start()."""
        self._request = request

    def register_transition_callback(self, callback: TransitionCallback) -> None:
        """Register a coroutine called after every phase change."""
        self._transition_callbacks.append(callback)

    async def start(self, request: Optional[AirdropRequest] = None) -> TransactionState:
        """
        Run the pipeline from CHECKING.

        Raises:
            OperationError: ALREADY_IN_PROGRESS while a run is in flight
            ValueError: if no request was supplied
        """
        if self._state.is_active:
            raise OperationError(
                f"Airdrop already in progress ({self._state.phase.value})",
                code=OperationErrorCode.ALREADY_IN_PROGRESS,
            )

        request = request or self._request
        if request is None:
            raise ValueError("An AirdropRequest is required to start")
        self._request = request

        generation = self._next_generation()
        self._state = TransactionState()

        await self._transition(generation, Phase.CHECKING, reason="Airdrop started")
        await self._run(
            generation,
            OperationDescriptor(kind=OperationKind.CHECK_ALLOWANCE, request=request),
        )
        return self._state

    async def retry(self) -> TransactionState:
        """
        Replay the operation that failed last.

        Raises:
            OperationError: NOT_RETRYABLE unless in ERROR with a retryable error
        """
        if not self._state.can_retry:
            raise OperationError(
                "Cannot retry this operation",
                code=OperationErrorCode.NOT_RETRYABLE,
            )

        pending = self._state.pending_retry
        generation = self._next_generation()

        self._state.retry_count += 1
        self._state.last_error = None
        self._state.pending_retry = None

        await self._transition(
            generation,
            pending.phase,
            reason=f"Retry #{self._state.retry_count} of {pending.replay.kind.value}",
        )
        await self._run(generation, pending.replay)
        return self._state

    async def reset(self) -> None:
        """Return to IDLE, discarding whatever is still in flight."""
        from_phase = self._state.phase
        self._next_generation()
        self._state = TransactionState()

        self.logger.info("airdrop_reset", from_phase=from_phase.value)
        await self._notify(
            PhaseTransition(from_phase=from_phase, to_phase=Phase.IDLE, reason="Reset")
        )

    async def _run(self, generation: int, descriptor: OperationDescriptor) -> None:
        operation = descriptor
        try:
            while operation is not None:
                with logging_config.airdrop_log_context(
                    chain_id=operation.request.chain_id,
                    generation=generation,
                    operation=operation.kind.value,
                ):
                    next_operation = await self._execute(generation, operation)
                if self._is_stale(generation):
                    return
                operation = next_operation
        except ValidationError as e:
            await self._fail(
                generation,
                build_categorized_error(ErrorCategory.VALIDATION, e, message=e.message),
                operation,
            )
        except ConfigurationError as e:
            await self._fail(
                generation,
                build_categorized_error(
                    ErrorCategory.VALIDATION,
                    e,
                    message=e.message,
                    user_action=CONFIGURATION_USER_ACTION,
                ),
                operation,
            )
        except RetryableError as e:
            await self._fail(generation, e.error, operation)
        except Exception as e:
            self.logger.exception("airdrop_unexpected_error", operation=operation.kind.value)
            await self._fail(generation, categorize_error(e), operation)

    async def _execute(
        self, generation: int, operation: OperationDescriptor
    ) -> Optional[OperationDescriptor]:
        """Run one step and return the next one, or None when finished."""
        request = operation.request

        if operation.kind == OperationKind.CHECK_ALLOWANCE:
            batch = prepare_transaction_data(
                request.recipients_text,
                request.amounts_text,
                self._decimals_for(request),
            )
            dispatcher = self.registry.resolve(request.chain_id)
            self._check_addresses(request)

            allowance = await self.retry_policy.run(
                lambda: self.gateway.read_allowance(
                    request.token_address, request.owner_address, dispatcher
                ),
                config=self.settings.retry_config_for(OperationKind.CHECK_ALLOWANCE),
                on_retry=self._retry_observer(OperationKind.CHECK_ALLOWANCE),
                operation_name="read_allowance",
                is_cancelled=lambda: self._is_stale(generation),
            )
            if self._is_stale(generation):
                return None

            self.logger.info(
                "allowance_checked",
                allowance=str(allowance),
                total=str(batch.total),
                recipients=batch.recipient_count,
            )
            if allowance < batch.total:
                await self._transition(generation, Phase.APPROVING, reason="Allowance below total")
                next_kind = OperationKind.APPROVE
            else:
                await self._transition(generation, Phase.TRANSFERRING, reason="Allowance sufficient")
                next_kind = OperationKind.TRANSFER
            return OperationDescriptor(
                kind=next_kind, request=request, batch=batch, dispatcher=dispatcher
            )

        batch = operation.batch
        dispatcher = operation.dispatcher

        if operation.kind == OperationKind.APPROVE:
            handle = await self.retry_policy.run(
                lambda: self.gateway.submit_approve(
                    request.token_address, dispatcher, batch.total
                ),
                config=self.settings.retry_config_for(OperationKind.APPROVE),
                on_retry=self._retry_observer(OperationKind.APPROVE),
                operation_name="submit_approve",
                is_cancelled=lambda: self._is_stale(generation),
            )
            if self._is_stale(generation):
                return None

            self._state.approval_handle = handle
            await self._transition(generation, Phase.TRANSFERRING, reason="Approval submitted")
            return OperationDescriptor(
                kind=OperationKind.TRANSFER, request=request, batch=batch, dispatcher=dispatcher
            )

        handle = await self.retry_policy.run(
            lambda: self.gateway.submit_transfer(
                dispatcher,
                request.token_address,
                list(batch.recipients),
                list(batch.amounts),
                batch.total,
            ),
            config=self.settings.retry_config_for(OperationKind.TRANSFER),
            on_retry=self._retry_observer(OperationKind.TRANSFER),
            operation_name="submit_transfer",
            is_cancelled=lambda: self._is_stale(generation),
        )
        if self._is_stale(generation):
            return None

        self._state.transfer_handle = handle
        self._state.retry_count = 0
        await self._transition(generation, Phase.SUCCESS, reason="Airdrop submitted")
        return None

    async def _fail(
        self,
        generation: int,
        error: CategorizedError,
        operation: OperationDescriptor,
    ) -> None:
        if self._is_stale(generation):
            self.logger.info("stale_failure_discarded", category=error.category.value)
            return

        self._state.last_error = error
        self._state.pending_retry = (
            PendingRetry(phase=OPERATION_PHASES[operation.kind], replay=operation)
            if error.retryable
            else None
        )
        self.logger.warning(
            "airdrop_failed",
            operation=operation.kind.value,
            category=error.category.value,
            retryable=error.retryable,
            detail=error.technical_detail,
        )
        await self._transition(generation, Phase.ERROR, reason=error.message)

    async def _transition(
        self, generation: int, to_phase: Phase, reason: Optional[str] = None
    ) -> None:
        if self._is_stale(generation):
            return

        transition = PhaseTransition(
            from_phase=self._state.phase,
            to_phase=to_phase,
            reason=reason,
        )
        self._state.phase = to_phase
        self._state.history.append(transition)

        self.logger.info(
            "phase_transition",
            from_phase=transition.from_phase.value,
            to_phase=to_phase.value,
            reason=reason,
            generation=generation,
        )
        await self._notify(transition)

    async def _notify(self, transition: PhaseTransition) -> None:
        for callback in self._transition_callbacks:
            try:
                await callback(transition, self._state)
            except Exception as e:
                self.logger.error("transition_callback_error", error=str(e))

    def _retry_observer(self, kind: OperationKind):
        async def observe(attempt: int, error: CategorizedError) -> None:
            self.logger.warning(
                "auto_retry",
                operation=kind.value,
                attempt=attempt,
                category=error.category.value,
            )
            if self.on_retry:
                outcome = self.on_retry(kind, attempt, error)
                if inspect.isawaitable(outcome):
                    await outcome

        return observe

    def _decimals_for(self, request: AirdropRequest) -> int:
        if request.token_decimals is None:
            return self.settings.token_decimals
        return request.token_decimals

    def _check_addresses(self, request: AirdropRequest) -> None:
        if not is_valid_evm_address(request.token_address or ""):
            raise ValidationError(
                "Valid token address is required",
                code=ValidationErrorCode.INVALID_TOKEN_ADDRESS,
            )
        if not is_valid_evm_address(request.owner_address or ""):
            raise ValidationError(
                "User wallet address is required",
                code=ValidationErrorCode.MISSING_OWNER,
            )

    def _next_generation(self) -> int:
        self._generation += 1
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation
