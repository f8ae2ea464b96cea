from collections import OrderedDict
from enum import Enum
from typing import Any, Dict, List, NamedTuple, Optional, Tuple

from eth_typing import ChecksumAddress


class NetworkContext(NamedTuple):
    """
    Everything a pipeline run needs to know about its target network.
    Threaded explicitly through every component instead of living in global state.
    """

    network: str
    deployer: ChecksumAddress
    client: Any  # deployment.client.ChainClient
    chain_id: Optional[int] = None
    base_nonce: Optional[int] = None


class StepStatus(Enum):
    PENDING = "pending"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


class DeploymentStep:
    """A single contract deployment, in plan order."""

    def __init__(self, index: int, contract_name: str, parameters: OrderedDict):
        self.index = index
        self.contract_name = contract_name
        self.parameters = parameters
        self.dependencies = _referenced_contracts(parameters)

    def __str__(self) -> str:
        return self.contract_name

    def __repr__(self) -> str:
        return f"DeploymentStep({self.index}, {self.contract_name})"


class LinkStep:
    """A state-mutating call on a deployed contract, run after every deployment is confirmed."""

    def __init__(self, contract_name: str, method: str, parameters: OrderedDict):
        self.contract_name = contract_name
        self.method = method
        self.parameters = parameters
        self.references = _referenced_contracts(parameters)

    def __str__(self) -> str:
        return f"{self.contract_name}.{self.method}"


def _referenced_contracts(parameters: OrderedDict) -> List[str]:
    """Returns the names of the contracts referenced by $ContractName parameter values."""
    referenced = list()

    def _collect(value):
        if isinstance(value, list):
            for v in value:
                _collect(v)
            return
        contract_name = getattr(value, "referenced_contract", None)
        if contract_name and contract_name not in referenced:
            referenced.append(contract_name)

    for value in parameters.values():
        _collect(value)
    return referenced


class DeploymentResult:
    """
    The outcome of a deployment step. Created as PENDING and
    populated as the transaction is submitted and confirmed.
    """

    def __init__(self, step: DeploymentStep):
        self.step = step
        self.status = StepStatus.PENDING
        self.constructor_args: List[Any] = list()
        self.nonce: Optional[int] = None
        self.tx_hash: Optional[str] = None
        self.gas_price: Optional[int] = None
        self.address: Optional[ChecksumAddress] = None
        self.block_number: Optional[int] = None
        self.error: Optional[str] = None

    @property
    def contract_name(self) -> str:
        return self.step.contract_name

    @property
    def confirmed(self) -> bool:
        return self.status == StepStatus.CONFIRMED and self.address is not None

    def submitted(self, args: List[Any], submission) -> None:
        self.constructor_args = list(args)
        self.nonce = submission.nonce
        self.tx_hash = submission.tx_hash
        self.gas_price = submission.gas_price
        self.status = StepStatus.SUBMITTED

    def confirm(self, address: ChecksumAddress, block_number: Optional[int] = None) -> None:
        self.address = address
        self.block_number = block_number
        self.status = StepStatus.CONFIRMED

    def fail(self, error: Exception) -> None:
        self.error = str(error)
        self.status = StepStatus.FAILED

    def to_dict(self) -> Dict[str, Any]:
        return {
            "address": self.address,
            "constructor_args": list(self.constructor_args),
            "nonce": self.nonce,
            "tx_hash": self.tx_hash,
            "gas_price": self.gas_price,
            "block_number": self.block_number,
            "status": self.status.value,
            "error": self.error,
        }


class LinkingAction:
    """The outcome of a link step."""

    def __init__(self, link: LinkStep, args: List[Any], nonce: int):
        self.link = link
        self.args = list(args)
        self.nonce = nonce
        self.status = StepStatus.PENDING
        self.tx_hash: Optional[str] = None
        self.gas_price: Optional[int] = None
        self.error: Optional[str] = None

    @property
    def contract_name(self) -> str:
        return self.link.contract_name

    @property
    def method(self) -> str:
        return self.link.method

    def __str__(self) -> str:
        return str(self.link)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "contract": self.contract_name,
            "method": self.method,
            "args": list(self.args),
            "nonce": self.nonce,
            "tx_hash": self.tx_hash,
            "gas_price": self.gas_price,
            "status": self.status.value,
            "error": self.error,
        }


class ResolvedDependency(NamedTuple):
    """A dependency address established before the nonce-sequenced part of a run."""

    name: str
    source: str  # "mock", "fixed" or "provided"
    address: ChecksumAddress
    contract_name: Optional[str] = None
    tx_hash: Optional[str] = None
    constructor_args: Tuple = ()
    # set only for a mock, whose nonce is picked by the account
    nonce: Optional[int] = None
    gas_price: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "source": self.source,
            "address": self.address,
            "contract": self.contract_name,
            "constructor_args": list(self.constructor_args),
            "nonce": self.nonce,
            "tx_hash": self.tx_hash,
            "gas_price": self.gas_price,
        }


class DeploymentManifest(NamedTuple):
    """Immutable record of a (possibly partial) pipeline run."""

    plan: str
    network: str
    chain_id: Optional[int]
    deployer: ChecksumAddress
    base_nonce: Optional[int]
    dependencies: Tuple[ResolvedDependency, ...]
    results: Tuple[DeploymentResult, ...]
    links: Tuple[LinkingAction, ...]
    error: Optional[str] = None  # what aborted the run, if anything

    @property
    def succeeded(self) -> bool:
        if self.error is not None:
            return False
        deployed = all(r.status == StepStatus.CONFIRMED for r in self.results)
        linked = all(link.status == StepStatus.CONFIRMED for link in self.links)
        return deployed and linked

    def nonces(self) -> List[int]:
        """Returns the nonces used by this run, in submission order."""
        submitted = [r for r in self.results if r.tx_hash is not None]
        submitted.sort(key=lambda r: r.nonce)
        nonces = [r.nonce for r in submitted]
        nonces.extend(link.nonce for link in self.links if link.tx_hash is not None)
        return nonces

    def addresses(self) -> Dict[str, ChecksumAddress]:
        """Returns the confirmed contract addresses by contract name."""
        return OrderedDict((r.contract_name, r.address) for r in self.results if r.confirmed)

    def dependency_addresses(self) -> Dict[str, ChecksumAddress]:
        return OrderedDict((d.name, d.address) for d in self.dependencies)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "plan": self.plan,
            "chain_id": self.chain_id,
            "deployer": self.deployer,
            "base_nonce": self.base_nonce,
            "succeeded": self.succeeded,
            "error": self.error,
            "dependencies": {d.name: d.to_dict() for d in self.dependencies},
            "contracts": {r.contract_name: r.to_dict() for r in self.results},
            "links": [link.to_dict() for link in self.links],
        }
