import pytest

from deployment.context import StepStatus
from deployment.errors import LinkingError, NonceConflictError
from deployment.linking import ensure_linkable, link, prepare_link
from deployment.params import ResolutionScope
from deployment.pipeline import Pipeline
from tests.conftest import (
    BASE_NONCE,
    BUILDING_ADDRESS,
    DEPLOYER,
    HUNT_MOCK_ADDRESS,
    TOWNHALL_ADDRESS,
    load_plan,
)


@pytest.fixture
def transfer_ownership(townhall_plan):
    (link_step,) = townhall_plan.links
    return link_step


def _scope(**addresses):
    return ResolutionScope(
        deployer=DEPLOYER, dependencies={"HUNT": HUNT_MOCK_ADDRESS}, addresses=addresses
    )


def test_link_step_references(transfer_ownership):
    assert str(transfer_ownership) == "Building.transferOwnership"
    assert transfer_ownership.references == ["TownHall"]


def test_unconfirmed_argument_is_rejected(transfer_ownership, context, client):
    scope = _scope(Building=BUILDING_ADDRESS)
    with pytest.raises(LinkingError, match="TownHall not confirmed"):
        prepare_link(transfer_ownership, scope, nonce=BASE_NONCE)
    assert client.events == []


def test_unconfirmed_target_is_rejected(transfer_ownership):
    with pytest.raises(LinkingError, match="Building not confirmed"):
        ensure_linkable(transfer_ownership, _scope(TownHall=TOWNHALL_ADDRESS))


def test_link_is_not_sent_for_unconfirmed_contracts(transfer_ownership, context, client):
    scope = _scope(Building=BUILDING_ADDRESS, TownHall=TOWNHALL_ADDRESS)
    action = prepare_link(transfer_ownership, scope, nonce=BASE_NONCE)

    # TownHall is no longer known to be confirmed when the link is about to be sent
    with pytest.raises(LinkingError):
        link(context, action, _scope(Building=BUILDING_ADDRESS))
    assert client.events == []
    assert action.tx_hash is None


def test_link(transfer_ownership, context, client):
    scope = _scope(Building=BUILDING_ADDRESS, TownHall=TOWNHALL_ADDRESS)
    action = prepare_link(transfer_ownership, scope, nonce=BASE_NONCE)
    assert action.args == [TOWNHALL_ADDRESS]
    assert action.status == StepStatus.PENDING

    link(context, action, scope)
    assert action.status == StepStatus.CONFIRMED
    assert action.tx_hash is not None
    assert client.events == [
        ("transact", "Building.transferOwnership", BASE_NONCE),
        ("confirm", "Building.transferOwnership"),
    ]
    (transaction,) = client.transactions.values()
    assert transaction["args"] == [TOWNHALL_ADDRESS]


def test_link_nonce_conflict(transfer_ownership, context, client):
    scope = _scope(Building=BUILDING_ADDRESS, TownHall=TOWNHALL_ADDRESS)
    action = prepare_link(transfer_ownership, scope, nonce=BASE_NONCE + 1)

    with pytest.raises(NonceConflictError) as exc_info:
        link(context, action, scope)
    assert exc_info.value.observed == BASE_NONCE
    assert action.status == StepStatus.FAILED
    assert client.events == []


def test_reverted_link(townhall_plan, context, client):
    client.revert.add("Building.transferOwnership")
    with pytest.raises(LinkingError, match="reverted") as exc_info:
        Pipeline(townhall_plan).run(context)

    manifest = exc_info.value.manifest
    assert all(result.confirmed for result in manifest.results)
    (action,) = manifest.links
    assert action.status == StepStatus.FAILED
    assert action.tx_hash is not None
    assert not manifest.succeeded
    # the reverted transaction still consumed its nonce
    assert manifest.nonces() == [BASE_NONCE + 1, BASE_NONCE + 2, BASE_NONCE + 3]


def test_rejected_link(townhall_plan, context, client):
    client.reject.add("Building.transferOwnership")
    with pytest.raises(LinkingError, match="submission rejected") as exc_info:
        Pipeline(townhall_plan).run(context)

    (action,) = exc_info.value.manifest.links
    assert action.status == StepStatus.FAILED
    assert action.tx_hash is None
    assert "rejected by node" in action.error


def test_link_nonce_follows_deployments(townhall_plan, context):
    manifest = Pipeline(townhall_plan).run(context)

    deployment_nonces = {result.nonce for result in manifest.results}
    (action,) = manifest.links
    assert action.nonce not in deployment_nonces
    assert action.nonce == max(deployment_nonces) + 1


def test_legacy_link(context, client):
    manifest = Pipeline(load_plan("townhall-legacy")).run(context)

    assert manifest.succeeded
    # a fixed token address on this network, so nothing is deployed before the base nonce
    assert manifest.base_nonce == BASE_NONCE
    assert client.submitted()[-1] == ("transact", "Building.setTownHall", BASE_NONCE + 2)
    (action,) = manifest.links
    assert action.args == [TOWNHALL_ADDRESS]


def test_nonce_rejected_by_node_during_link(transfer_ownership, context, client, monkeypatch):
    def _transact(contract_name, address, method, args, nonce):
        raise NonceConflictError(expected=nonce)

    monkeypatch.setattr(client, "transact", _transact)
    scope = _scope(Building=BUILDING_ADDRESS, TownHall=TOWNHALL_ADDRESS)
    action = prepare_link(transfer_ownership, scope, nonce=BASE_NONCE)

    with pytest.raises(NonceConflictError) as exc_info:
        link(context, action, scope)
    assert exc_info.value.step is action
    assert action.status == StepStatus.FAILED
    assert action.tx_hash is None
