from collections import OrderedDict

from deployment.constants import ZERO_ADDRESS
from deployment.errors import DeploymentAborted


def _abort() -> None:
    print("Aborting deployment!")
    raise DeploymentAborted("Deployment aborted by the operator")


def _confirm_deployment(contract_name: str, nonce: int) -> None:
    """Asks the user to confirm the deployment of a single contract."""
    answer = input(f"Deploy {contract_name} with nonce {nonce} Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _continue() -> None:
    """Asks the user to continue."""
    answer = input("Continue Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_zero_address() -> None:
    answer = input("Zero Address detected for deployment parameter; Continue? Y/N? ")
    if answer.lower().strip() == "n":
        _abort()


def _confirm_resolution(resolved_params: OrderedDict, contract_name: str, nonce: int) -> None:
    """Asks the user to confirm the resolved constructor parameters for a single contract."""
    if len(resolved_params) == 0:
        print(f"\n(i) No constructor parameters for {contract_name}")
        _confirm_deployment(contract_name, nonce)
        return

    print(f"\nConstructor parameters for {contract_name}")
    contains_zero_address = False
    for name, resolved_value in resolved_params.items():
        print(f"\t{name}={resolved_value}")
        if not contains_zero_address:
            contains_zero_address = resolved_value == ZERO_ADDRESS
    _confirm_deployment(contract_name, nonce)
    if contains_zero_address:
        _confirm_zero_address()


def _confirm_link(resolved_params: OrderedDict, description: str, nonce: int) -> None:
    """Asks the user to confirm a linking transaction."""
    base_message = f"\nTransacting {description} with nonce {nonce}"
    if resolved_params:
        pretty_args = "\n\t".join(f"{k}={v}" for k, v in resolved_params.items())
        print(f"{base_message} with arguments:\n\t{pretty_args}")
    else:
        print(f"{base_message} with no arguments")
    _continue()
