from abc import ABC, abstractmethod
from typing import Any, NamedTuple, Optional, Sequence

from eth_typing import ChecksumAddress


class Submission(NamedTuple):
    """A signed transaction accepted by the network, not necessarily mined yet."""

    tx_hash: str
    nonce: int
    gas_price: Optional[int]


class Receipt(NamedTuple):
    tx_hash: str
    block_number: Optional[int]
    failed: bool
    contract_address: Optional[ChecksumAddress] = None


class ChainClient(ABC):
    """
    The network boundary of the deployment core.

    Submitting returns as soon as the network accepts the transaction;
    waiting for inclusion (and any timeout on it) is the job of `confirm`.
    """

    @abstractmethod
    def get_transaction_count(self, address: ChecksumAddress) -> int:
        """Returns the account's pending transaction count."""
        raise NotImplementedError

    @property
    @abstractmethod
    def gas_price(self) -> int:
        raise NotImplementedError

    @abstractmethod
    def deploy(
        self, contract_name: str, args: Sequence[Any], nonce: Optional[int] = None
    ) -> Submission:
        """Submits a contract creation; nonce=None lets the account pick it."""
        raise NotImplementedError

    @abstractmethod
    def transact(
        self,
        contract_name: str,
        address: ChecksumAddress,
        method: str,
        args: Sequence[Any],
        nonce: int,
    ) -> Submission:
        raise NotImplementedError

    @abstractmethod
    def confirm(self, tx_hash: str) -> Receipt:
        """Blocks until the transaction is included."""
        raise NotImplementedError
