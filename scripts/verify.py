from pathlib import Path

import click
from ape.cli import ConnectedProviderCommand, network_option

from deployment.manifest import deployed_contracts
from deployment.networks import (
    check_etherscan_plugin,
    get_network_identifier,
    verify_contracts,
)
from deployment.params import DeploymentPlan
from deployment.utils import plan_filepath


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@click.option(
    "--contract-name",
    "-c",
    "contract_names",
    help="Contract to verify; all contracts of the manifest by default",
    type=click.STRING,
    multiple=True,
)
@click.option(
    "--plan",
    "-p",
    help="Deployment plan whose manifest lists the contracts",
    type=click.STRING,
    required=False,
)
@click.option(
    "--manifest-filepath",
    "-m",
    type=click.Path(dir_okay=False, exists=True, path_type=Path),
    help="Manifest filepath if it is not the plan's default artifact file",
    required=False,
)
def cli(network, contract_names, plan, manifest_filepath):
    """Verify deployed contracts recorded in a deployment manifest."""
    if not (bool(manifest_filepath) ^ bool(plan)):
        raise click.BadOptionUsage(
            option_name="--plan",
            message=(
                f"Provide either 'plan' or 'manifest_filepath'; "
                f"got {plan}, {manifest_filepath}"
            ),
        )

    check_etherscan_plugin()
    if not manifest_filepath:
        manifest_filepath = DeploymentPlan.from_yaml(plan_filepath(plan)).artifact_filepath

    network_identifier = get_network_identifier()
    contracts = deployed_contracts(manifest_filepath, network=network_identifier)

    to_verify = dict()
    for contract_name in contract_names or contracts:
        try:
            to_verify[contract_name] = contracts[contract_name]
        except KeyError:
            raise ValueError(
                f"Contract '{contract_name}' not found in manifest, '{manifest_filepath}', "
                f"for {network_identifier}"
            )

    verify_contracts(to_verify)


if __name__ == "__main__":
    cli()
