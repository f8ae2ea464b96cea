from deployment.context import NetworkContext
from deployment.errors import NonceConflictError


class NonceSequencer:
    """
    Hands out strictly increasing nonces for the deployer account.

    The base nonce is read once from the account's pending transaction count
    at the start of a run. Every later submission gets the next value, so
    transactions can be submitted back-to-back without waiting for the previous
    one to be mined: the network orders them by nonce, not by arrival.
    """

    def __init__(self, base: int):
        if base < 0:
            raise ValueError(f"Invalid base nonce {base}")
        self.base = base
        self._next = base

    @classmethod
    def capture(cls, context: NetworkContext) -> "NonceSequencer":
        base = context.client.get_transaction_count(context.deployer)
        print(f"(i) Base nonce for {context.deployer}: {base}")
        return cls(base=base)

    @property
    def issued(self) -> int:
        """Number of nonces handed out so far."""
        return self._next - self.base

    def next(self) -> int:
        nonce = self._next
        self._next += 1
        return nonce

    @staticmethod
    def check(observed: int, expected: int, step=None) -> None:
        """
        Fails when the account's pending nonce is not the one we are about to use;
        either another process sent transactions from this account or one of ours was dropped.
        """
        if observed != expected:
            raise NonceConflictError(expected=expected, observed=observed, step=step)
