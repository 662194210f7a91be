"""
Chain Gateway

The only I/O surface of the orchestrator: reading allowances and submitting
approve / airdrop calls. Implementations wrap an RPC client and a wallet;
the orchestrator treats every call as an opaque, fallible coroutine.
"""

from abc import ABC, abstractmethod
from typing import Dict, Mapping, Optional, Sequence

from ...services.address import normalize_address
from .models import DispatcherNotConfiguredError


class GatewayError(Exception):
    """Transport, contract or wallet failure reported by a gateway."""

    def __init__(
        self,
        message: str,
        method: Optional[str] = None,
        tx_hash: Optional[str] = None,
    ):
        self.message = message
        self.method = method
        self.tx_hash = tx_hash
        super().__init__(message)


class ChainGateway(ABC):
    """Remote capability consumed by the orchestrator."""

    @abstractmethod
    async def read_allowance(self, token: str, owner: str, spender: str) -> int:
        """Return ERC-20 ``allowance(owner, spender)`` in base units."""
        pass

    @abstractmethod
    async def submit_approve(self, token: str, spender: str, amount: int) -> str:
        """Submit ``approve(spender, amount)`` and return the tx handle."""
        pass

    @abstractmethod
    async def submit_transfer(
        self,
        dispatcher: str,
        token: str,
        recipients: Sequence[str],
        amounts: Sequence[int],
        total: int,
    ) -> str:
        """Submit ``airdropERC20(token, recipients, amounts, total)`` and return the tx handle."""
        pass


class DispatcherRegistry:
    """Maps chain IDs to the deployed TSender dispatcher contract."""

    def __init__(self, addresses: Mapping[int, str]):
        self._addresses: Dict[int, str] = {
            int(chain_id): normalize_address(address)
            for chain_id, address in addresses.items()
        }

    @property
    def chain_ids(self) -> Sequence[int]:
        return sorted(self._addresses)

    def is_supported(self, chain_id: int) -> bool:
        return chain_id in self._addresses

    def resolve(self, chain_id: int) -> str:
        """
        Return the dispatcher address for a chain.

        Raises:
            DispatcherNotConfiguredError: if the chain has no entry
        """
        address = self._addresses.get(chain_id)
        if not address:
            raise DispatcherNotConfiguredError(chain_id)
        return address
