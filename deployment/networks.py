import os
from typing import Any, Dict, List, Optional, Sequence

from ape import networks, project
from ape.api import AccountAPI, TransactionAPI
from ape.api.networks import LOCAL_NETWORK_NAME
from ape.contracts import ContractContainer
from ape.exceptions import AccountsError
from eth_typing import ChecksumAddress
from eth_utils import to_checksum_address, to_hex
from web3 import Web3

from deployment.client import ChainClient, Receipt, Submission
from deployment.errors import NonceConflictError

w3 = Web3()

NONCE_REJECTIONS = ("nonce too low", "already known", "replacement transaction underpriced")


def is_local_network() -> bool:
    return networks.provider.network.name == LOCAL_NETWORK_NAME


def get_network_identifier() -> str:
    network = networks.provider.network
    return f"{network.ecosystem.name}:{network.name}"


def _get_dependency_contract_container(contract: str) -> ContractContainer:
    for dependency_name, dependency_versions in project.dependencies.items():
        if len(dependency_versions) > 1:
            raise ValueError(f"Ambiguous {dependency_name} dependency for {contract}")
        try:
            dependency_api = list(dependency_versions.values())[0]
            contract_container = getattr(dependency_api, contract)
            return contract_container
        except AttributeError:
            continue
    raise ValueError(f"No contract found with name '{contract}'.")


def get_contract_container(contract: str) -> ContractContainer:
    try:
        contract_container = getattr(project, contract)
    except AttributeError:
        # not in root project; check dependencies
        contract_container = _get_dependency_contract_container(contract)

    return contract_container


def _validate_constructor_args(contract_container: ContractContainer, args: List[Any]) -> None:
    """Validates the constructor arguments against the constructor ABI."""
    contract_name = contract_container.contract_type.name
    abi_inputs = contract_container.constructor.abi.inputs
    if len(args) != len(abi_inputs):
        raise ValueError(
            f"Constructor parameters length mismatch - "
            f"{contract_name} ABI requires {len(abi_inputs)}, Got {len(args)}."
        )
    for position, (abi_input, value) in enumerate(zip(abi_inputs, args)):
        if not w3.is_encodable(abi_input.type, value):
            raise ValueError(
                f"{contract_name} constructor param '{abi_input.name}' at position {position} "
                f"has a value '{value}' whose type does not match ABI type '{abi_input.type}'"
            )


class ApeChainClient(ChainClient):
    """
    Submits transactions through an ape account and the active ape provider.

    Transactions are signed locally and broadcast without waiting for a receipt,
    which is what allows several deployments to be in flight at once.
    """

    def __init__(self, account: AccountAPI, autosign: bool = False, timeout: Optional[int] = None):
        self._account = account
        self._timeout = timeout
        if autosign:
            print("WARNING: Autosign is enabled. Transactions will be signed automatically.")
            account.set_autosign(autosign)

    @property
    def account(self) -> AccountAPI:
        return self._account

    @property
    def chain_id(self) -> int:
        return networks.provider.chain_id

    @property
    def gas_price(self) -> int:
        return networks.provider.gas_price

    def get_transaction_count(self, address: ChecksumAddress) -> int:
        return networks.provider.web3.eth.get_transaction_count(address, "pending")

    def deploy(
        self, contract_name: str, args: Sequence[Any], nonce: Optional[int] = None
    ) -> Submission:
        container = get_contract_container(contract_name)
        _validate_constructor_args(container, list(args))
        kwargs = {"sender": self._account.address}
        if nonce is not None:
            kwargs["nonce"] = nonce
        txn = container.constructor.serialize_transaction(*args, **kwargs)
        return self._send(txn)

    def transact(
        self,
        contract_name: str,
        address: ChecksumAddress,
        method: str,
        args: Sequence[Any],
        nonce: int,
    ) -> Submission:
        instance = get_contract_container(contract_name).at(address)
        handler = getattr(instance, method)
        txn = handler.as_transaction(*args, sender=self._account.address, nonce=nonce)
        return self._send(txn)

    def confirm(self, tx_hash: str) -> Receipt:
        receipt = networks.provider.web3.eth.wait_for_transaction_receipt(
            tx_hash, timeout=self._timeout or 120
        )
        contract_address = receipt.get("contractAddress")
        return Receipt(
            tx_hash=tx_hash,
            block_number=receipt.get("blockNumber"),
            failed=receipt.get("status") == 0,
            contract_address=to_checksum_address(contract_address) if contract_address else None,
        )

    def _send(self, txn: TransactionAPI) -> Submission:
        try:
            txn = self._account.prepare_transaction(txn)
        except AccountsError as e:
            if "nonce" in str(e).lower():
                raise NonceConflictError(expected=txn.nonce) from e
            raise

        signed_txn = self._account.sign_transaction(txn)
        if signed_txn is None:
            raise AccountsError("Transaction was not signed.")

        try:
            txn_hash = networks.provider.web3.eth.send_raw_transaction(
                signed_txn.serialize_transaction()
            )
        except ValueError as e:
            if any(reason in str(e).lower() for reason in NONCE_REJECTIONS):
                raise NonceConflictError(expected=signed_txn.nonce) from e
            raise

        gas_price = getattr(signed_txn, "gas_price", None) or getattr(signed_txn, "max_fee", None)
        return Submission(tx_hash=to_hex(txn_hash), nonce=signed_txn.nonce, gas_price=gas_price)


def check_etherscan_plugin() -> None:
    """
    Checks that the ape-etherscan plugin is installed and that
    the appropriate API key environment variable is set.
    """
    if is_local_network():
        # unnecessary for local deployment
        return
    try:
        from ape_etherscan.utils import API_KEY_ENV_KEY_MAP
    except ImportError:
        raise ImportError("Please install the ape-etherscan plugin to publish contracts.")
    ecosystem_name = networks.provider.network.ecosystem.name
    explorer_envvar = API_KEY_ENV_KEY_MAP.get(ecosystem_name)
    api_key = os.environ.get(explorer_envvar)
    if not api_key:
        raise ValueError(f"{explorer_envvar} is not set.")


def check_infura_plugin() -> None:
    """Checks that the ape-infura plugin is installed."""
    if is_local_network():
        return  # unnecessary for local deployment
    if networks.provider.name != "infura":
        return  # unnecessary when using a provider different than infura
    try:
        from ape_infura.provider import _ENVIRONMENT_VARIABLE_NAMES
    except ImportError:
        raise ImportError("Please install the ape-infura plugin to use this script.")
    for envvar in _ENVIRONMENT_VARIABLE_NAMES:
        api_key = os.environ.get(envvar)
        if api_key:
            break
    else:
        raise ValueError(
            f"No Infura API key found in "
            f"environment variables: {', '.join(_ENVIRONMENT_VARIABLE_NAMES)}"
        )


def check_plugins(publish: bool = False) -> None:
    print("Checking plugins...")
    check_infura_plugin()
    if publish:
        check_etherscan_plugin()


def verify_contracts(contracts: Dict[str, ChecksumAddress]) -> None:
    """Publishes the sources of deployed contracts, by name, to the network's block explorer."""
    explorer = networks.provider.network.explorer
    for contract_name, address in contracts.items():
        print(f"(i) Verifying {contract_name}...")
        explorer.publish_contract(address)
