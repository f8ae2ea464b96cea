from collections import OrderedDict

import pytest
from eth_utils import to_checksum_address

from deployment.client import ChainClient, Receipt, Submission
from deployment.constants import PLANS_DIR
from deployment.context import NetworkContext
from deployment.params import DeploymentPlan

# Common constants
GWEI = 10**9
BASE_NONCE = 7

DEPLOYER = to_checksum_address("0x" + "de" * 20)
HUNT_MOCK_ADDRESS = to_checksum_address("0x" + "aa" * 20)
BUILDING_ADDRESS = to_checksum_address("0x" + "bb" * 20)
TOWNHALL_ADDRESS = to_checksum_address("0x" + "cc" * 20)


class FakeChainClient(ChainClient):
    """
    In-memory chain for a single account. Transactions are accepted on submission
    and mined when confirm() is called; every call is appended to `events`.
    """

    def __init__(self, nonce=0, gas_price=30 * GWEI, addresses=None):
        self.nonce = nonce  # pending transaction count of the deployer
        self._gas_price = gas_price
        self.addresses = dict(addresses or {})
        self.events = list()
        self.transactions = OrderedDict()

        # keys are contract names for deployments and "Contract.method" for calls
        self.reject = set()  # submission raises
        self.revert = set()  # mined but failed
        self.unconfirmed = set()  # confirmation never arrives
        self.foreign_transactions = dict()  # key -> txs sent by someone else right after it

    @property
    def gas_price(self) -> int:
        return self._gas_price

    def get_transaction_count(self, address):
        return self.nonce

    def _submit(self, key, args, nonce):
        if key in self.reject:
            raise ValueError(f"{key} rejected by node")
        if nonce is None:
            nonce = self.nonce
        self.nonce = max(self.nonce, nonce + 1) + self.foreign_transactions.get(key, 0)
        tx_hash = "0x%064x" % (len(self.transactions) + 1)
        self.transactions[tx_hash] = {"key": key, "args": list(args), "nonce": nonce}
        return Submission(tx_hash=tx_hash, nonce=nonce, gas_price=self._gas_price)

    def deploy(self, contract_name, args, nonce=None):
        submission = self._submit(contract_name, args, nonce)
        self.events.append(("deploy", contract_name, submission.nonce))
        return submission

    def transact(self, contract_name, address, method, args, nonce):
        key = f"{contract_name}.{method}"
        submission = self._submit(key, args, nonce)
        self.events.append(("transact", key, submission.nonce))
        return submission

    def confirm(self, tx_hash):
        key = self.transactions[tx_hash]["key"]
        self.events.append(("confirm", key))
        if key in self.unconfirmed:
            raise TimeoutError(f"{tx_hash} not mined")

        failed = key in self.revert
        contract_address = None
        if not failed and "." not in key:
            generated = to_checksum_address("0x%040x" % (0xC0DE0000 + len(self.events)))
            contract_address = self.addresses.get(key, generated)
        return Receipt(
            tx_hash=tx_hash,
            block_number=len(self.events),
            failed=failed,
            contract_address=contract_address,
        )

    def position(self, *event) -> int:
        return self.events.index(event)

    def submitted(self):
        return [e for e in self.events if e[0] in ("deploy", "transact")]


def load_plan(name: str) -> DeploymentPlan:
    return DeploymentPlan.from_yaml(PLANS_DIR / f"{name}.yml")


# Fixtures
@pytest.fixture
def client():
    return FakeChainClient(
        nonce=BASE_NONCE,
        addresses={
            "HuntTokenMock": HUNT_MOCK_ADDRESS,
            "Building": BUILDING_ADDRESS,
            "TownHall": TOWNHALL_ADDRESS,
        },
    )


@pytest.fixture
def make_context(client):
    def _make_context(network="ethereum:goerli", chain_id=5):
        return NetworkContext(network=network, deployer=DEPLOYER, client=client, chain_id=chain_id)

    return _make_context


@pytest.fixture
def context(make_context):
    return make_context()


@pytest.fixture
def townhall_plan():
    return load_plan("townhall")


@pytest.fixture
def plan_from_config():
    def _plan_from_config(
        contracts, links=None, dependencies=None, constants=None, constant_overrides=None
    ):
        config = {
            "deployment": {"name": "test"},
            "contracts": contracts,
            "links": links or [],
            "dependencies": dependencies or {},
            "constants": constants or {},
        }
        return DeploymentPlan.from_config(config, constant_overrides=constant_overrides)

    return _plan_from_config
