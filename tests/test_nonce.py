import pytest

from deployment.errors import NonceConflictError
from deployment.nonce import NonceSequencer
from tests.conftest import BASE_NONCE


def test_sequencer_hands_out_consecutive_nonces():
    sequencer = NonceSequencer(base=42)
    assert sequencer.issued == 0

    nonces = [sequencer.next() for _ in range(5)]
    assert nonces == [42, 43, 44, 45, 46]
    assert len(set(nonces)) == len(nonces)
    assert sequencer.issued == 5
    assert sequencer.base == 42


def test_sequencer_starts_from_zero():
    sequencer = NonceSequencer(base=0)
    assert sequencer.next() == 0
    assert sequencer.next() == 1


def test_invalid_base_nonce():
    with pytest.raises(ValueError):
        NonceSequencer(base=-1)


def test_capture_reads_pending_transaction_count(context, client):
    sequencer = NonceSequencer.capture(context)
    assert sequencer.base == BASE_NONCE
    assert sequencer.next() == BASE_NONCE

    # captured once; later account activity does not move the sequence
    client.nonce += 10
    assert sequencer.next() == BASE_NONCE + 1


def test_check_accepts_expected_nonce():
    NonceSequencer.check(observed=3, expected=3)


@pytest.mark.parametrize("observed", [2, 4, 10])
def test_check_rejects_diverging_nonce(observed):
    with pytest.raises(NonceConflictError) as exc_info:
        NonceSequencer.check(observed=observed, expected=3, step="TownHall")

    error = exc_info.value
    assert error.expected == 3
    assert error.observed == observed
    assert error.step == "TownHall"
    assert "TownHall" in str(error)
