from typing import Any, List, NamedTuple

from deployment.constants import HARDHAT_NETWORK_NAMES, VERIFY_COMMAND_TEMPLATE
from deployment.context import DeploymentManifest, StepStatus


class Report(NamedTuple):
    summary: str
    verification_commands: List[str]

    def __str__(self) -> str:
        commands = "\n".join(f"    {command}" for command in self.verification_commands)
        return f"{self.summary}\n\n{commands}\n"


def _echo(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        value = "[" + ",".join(str(v) for v in value) + "]"
    elif isinstance(value, bytes):
        value = "0x" + value.hex()
    return f"'{value}'"


def verification_command(network: str, address: str, constructor_args: List[Any]) -> str:
    hardhat_network = HARDHAT_NETWORK_NAMES.get(network, network)
    command = VERIFY_COMMAND_TEMPLATE.format(network=hardhat_network, address=address)
    if constructor_args:
        command += " " + " ".join(_echo(arg) for arg in constructor_args)
    return command


def render(manifest: DeploymentManifest) -> Report:
    """Renders the addresses of a manifest and the commands to verify their sources."""
    lines = [f"Network: {manifest.network}", "```"]
    for contract_name, address in manifest.addresses().items():
        lines.append(f"- {contract_name}: {address}")
    for dependency_name, address in manifest.dependency_addresses().items():
        lines.append(f"- {dependency_name}: {address}")
    lines.append("```")

    commands = list()
    for dependency in manifest.dependencies:
        if dependency.tx_hash is None:
            continue  # not deployed by us
        commands.append(
            verification_command(
                manifest.network, dependency.address, list(dependency.constructor_args)
            )
        )
    for result in manifest.results:
        if not result.confirmed:
            continue
        commands.append(
            verification_command(manifest.network, result.address, result.constructor_args)
        )

    return Report(summary="\n".join(lines), verification_commands=commands)


def render_failures(manifest: DeploymentManifest) -> List[str]:
    """Lists the steps an operator has to look at after an aborted run."""
    lines = list()
    for result in manifest.results:
        if result.confirmed:
            continue
        line = f"- {result.contract_name}: {result.status.value}"
        if result.tx_hash:
            line += f" (nonce {result.nonce}, tx {result.tx_hash})"
        if result.error:
            line += f" - {result.error}"
        lines.append(line)
    for action in manifest.links:
        if action.status == StepStatus.CONFIRMED:
            continue
        line = f"- {action}: {action.status.value} (nonce {action.nonce}"
        line += f", tx {action.tx_hash})" if action.tx_hash else ")"
        if action.error:
            line += f" - {action.error}"
        lines.append(line)
    return lines
