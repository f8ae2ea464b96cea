from deployment.confirm import _confirm_link
from deployment.context import LinkingAction, LinkStep, NetworkContext, StepStatus
from deployment.errors import LinkingError, NonceConflictError
from deployment.nonce import NonceSequencer
from deployment.params import ResolutionScope, resolve_parameters


def ensure_linkable(link_step: LinkStep, scope: ResolutionScope) -> None:
    """Fails unless the target contract and every contract passed to it are confirmed."""
    required = [link_step.contract_name, *link_step.references]
    unconfirmed = [name for name in required if name not in scope.addresses]
    if unconfirmed:
        raise LinkingError(link_step, f"{', '.join(unconfirmed)} not confirmed")


def prepare_link(link_step: LinkStep, scope: ResolutionScope, nonce: int) -> LinkingAction:
    ensure_linkable(link_step, scope)
    resolved_params = resolve_parameters(link_step.parameters, scope)
    return LinkingAction(link_step, list(resolved_params.values()), nonce)


def link(
    context: NetworkContext,
    action: LinkingAction,
    scope: ResolutionScope,
    interactive: bool = False,
) -> LinkingAction:
    """
    Submits a linking call (e.g. an ownership transfer) with its pre-assigned nonce
    and waits for it to be mined. The resulting contract state is not read back.
    """
    ensure_linkable(action.link, scope)
    if interactive:
        resolved_params = resolve_parameters(action.link.parameters, scope)
        _confirm_link(resolved_params, str(action), action.nonce)

    client = context.client
    address = scope.addresses[action.contract_name]
    try:
        observed = client.get_transaction_count(context.deployer)
        NonceSequencer.check(observed, action.nonce, step=action)
        submission = client.transact(
            action.contract_name, address, action.method, action.args, nonce=action.nonce
        )
    except NonceConflictError as e:
        e.step = action
        action.status = StepStatus.FAILED
        action.error = str(e)
        raise
    except Exception as e:
        action.status = StepStatus.FAILED
        action.error = str(e)
        raise LinkingError(action, f"submission rejected: {e}") from e

    action.tx_hash = submission.tx_hash
    action.gas_price = submission.gas_price
    action.status = StepStatus.SUBMITTED
    print(f"  -> Transacting {action}")
    print(f"     - hash: {submission.tx_hash}")
    print(f"     - nonce: {action.nonce}")

    try:
        receipt = client.confirm(submission.tx_hash)
    except Exception as e:
        action.status = StepStatus.FAILED
        action.error = str(e)
        raise LinkingError(action, f"not confirmed: {e}") from e

    if receipt.failed:
        action.status = StepStatus.FAILED
        action.error = "reverted"
        raise LinkingError(action, f"transaction {submission.tx_hash} reverted")

    action.status = StepStatus.CONFIRMED
    print(f" -> {action} confirmed")
    return action
