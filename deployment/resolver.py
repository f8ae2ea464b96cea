from typing import Dict, Iterator, List, NamedTuple, Optional, Union

from eth_typing import ChecksumAddress
from eth_utils import is_address, to_checksum_address

from deployment.constants import MOCK_INDICATOR
from deployment.context import NetworkContext, ResolvedDependency
from deployment.errors import PlanError, ResolutionError


class DependencySpec(NamedTuple):
    """
    Per-network policy for obtaining a dependency address.

    `networks` maps a network identifier to either a fixed address or the
    mock indicator; every other network uses `default`.
    """

    name: str
    networks: Dict[str, str]
    default: Optional[ChecksumAddress] = None
    mock: Optional[str] = None  # contract name of the mock artifact
    mock_args: tuple = ()

    @classmethod
    def from_config(cls, name: str, config: Dict) -> "DependencySpec":
        if not isinstance(config, dict):
            raise PlanError(f"Malformed dependency config for {name}.")

        networks = dict()
        for network, value in (config.get("networks") or {}).items():
            if value == MOCK_INDICATOR:
                networks[network] = MOCK_INDICATOR
            else:
                networks[network] = _checksum_config_value(name, value)

        mock = config.get(MOCK_INDICATOR)
        if MOCK_INDICATOR in networks.values() and not mock:
            raise PlanError(f"Dependency {name} uses a mock but no mock contract is named.")

        default = config.get("default")
        if default is not None:
            default = _checksum_config_value(name, default)

        return cls(
            name=name,
            networks=networks,
            default=default,
            mock=mock,
            mock_args=tuple(config.get("mock_args") or ()),
        )


# Resolutions


class DeployMock(NamedTuple):
    name: str
    contract_name: str
    args: tuple = ()


class UseFixedAddress(NamedTuple):
    name: str
    address: ChecksumAddress


class UseProvidedAddress(NamedTuple):
    name: str
    address: ChecksumAddress


DependencyResolution = Union[DeployMock, UseFixedAddress, UseProvidedAddress]


def _checksum(name: str, value) -> ChecksumAddress:
    if not isinstance(value, str) or not is_address(value):
        raise ResolutionError(name, f"'{value}' is not a valid address")
    return to_checksum_address(value)


def _checksum_config_value(name: str, value) -> ChecksumAddress:
    if not isinstance(value, str) or not is_address(value):
        raise PlanError(f"Invalid address '{value}' for dependency {name}.")
    return to_checksum_address(value)


def resolve(
    network: str, dependency: DependencySpec, override: Optional[str] = None
) -> DependencyResolution:
    """Decides how the dependency address is obtained on the given network."""
    if override is not None:
        address = _checksum(dependency.name, override)
        return UseProvidedAddress(name=dependency.name, address=address)

    choice = dependency.networks.get(network)
    if choice == MOCK_INDICATOR:
        return DeployMock(
            name=dependency.name, contract_name=dependency.mock, args=dependency.mock_args
        )
    if choice is not None:
        return UseFixedAddress(name=dependency.name, address=choice)
    if dependency.default is not None:
        return UseFixedAddress(name=dependency.name, address=dependency.default)

    raise ResolutionError(
        dependency.name,
        f"no address configured for network {network}; provide one with --dependency",
    )


def materialize(context: NetworkContext, resolution: DependencyResolution) -> ResolvedDependency:
    """
    Turns a resolution into an address. A mock is deployed and confirmed
    right away; its nonce is picked by the account, not by the sequencer.
    """
    if isinstance(resolution, UseProvidedAddress):
        print(f"(i) {resolution.name} address (provided): {resolution.address}")
        return ResolvedDependency(resolution.name, "provided", resolution.address)

    if isinstance(resolution, UseFixedAddress):
        print(f"(i) {resolution.name} address: {resolution.address}")
        return ResolvedDependency(resolution.name, "fixed", resolution.address)

    client = context.client
    print(f"  -> Deploying {resolution.contract_name} mock for {resolution.name}")
    try:
        submission = client.deploy(resolution.contract_name, list(resolution.args))
        receipt = client.confirm(submission.tx_hash)
    except Exception as e:
        raise ResolutionError(resolution.name, f"mock deployment failed: {e}") from e

    if receipt.failed or not receipt.contract_address:
        raise ResolutionError(
            resolution.name, f"mock deployment {submission.tx_hash} was not confirmed"
        )

    address = _checksum(resolution.name, receipt.contract_address)
    print(f" -> {resolution.contract_name} deployed at {address} for {resolution.name}")
    return ResolvedDependency(
        name=resolution.name,
        source=MOCK_INDICATOR,
        address=address,
        contract_name=resolution.contract_name,
        tx_hash=submission.tx_hash,
        constructor_args=tuple(resolution.args),
        nonce=submission.nonce,
        gas_price=submission.gas_price,
    )


def resolve_dependencies(
    context: NetworkContext,
    dependencies: List[DependencySpec],
    overrides: Optional[Dict[str, str]] = None,
) -> Iterator[ResolvedDependency]:
    """Yields the resolved dependencies of a plan, in declaration order."""
    overrides = overrides or dict()
    unknown = set(overrides) - {d.name for d in dependencies}
    if unknown:
        raise ResolutionError(", ".join(sorted(unknown)), "not a dependency of this plan")

    for dependency in dependencies:
        resolution = resolve(context.network, dependency, override=overrides.get(dependency.name))
        yield materialize(context, resolution)
