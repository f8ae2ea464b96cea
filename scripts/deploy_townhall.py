#!/usr/bin/python3
import sys

import click
from ape import accounts
from ape.cli import ConnectedProviderCommand, network_option
from ape.cli.choices import select_account

from deployment.context import NetworkContext
from deployment.networks import (
    ApeChainClient,
    check_plugins,
    get_network_identifier,
    is_local_network,
    verify_contracts,
)
from deployment.options import (
    account_option,
    autosign_option,
    confirm_each_option,
    constant_option,
    dependency_option,
    manifest_option,
    plan_option,
    publish_option,
)
from deployment.params import DeploymentPlan
from deployment.pipeline import Pipeline, execute
from deployment.utils import plan_filepath


def _get_account(account_alias):
    if account_alias:
        return accounts.load(account_alias)
    if is_local_network():
        return accounts.test_accounts[0]
    return select_account()


@click.command(cls=ConnectedProviderCommand)
@network_option(required=True)
@plan_option
@dependency_option
@constant_option
@confirm_each_option
@autosign_option
@publish_option
@account_option
@manifest_option
def cli(
    network,
    plan,
    dependency_overrides,
    constant_overrides,
    confirm_each,
    autosign,
    publish,
    account_alias,
    manifest_filepath,
):
    """
    Deploys the contracts of a plan (by default Building and TownHall), then links them.

    ape run deploy_townhall --network polygon:mainnet:infura --plan townhall
    ape run deploy_townhall --network ethereum:mainnet:infura --plan townhall-zap
    ape run deploy_townhall --network base:mainnet:alchemy --plan mintpad -C DAILY_HUNT_REWARD=0
    """
    check_plugins(publish=publish)
    deployment_plan = DeploymentPlan.from_yaml(
        plan_filepath(plan), constant_overrides=dict(constant_overrides)
    )

    account = _get_account(account_alias)
    client = ApeChainClient(account=account, autosign=autosign)
    context = NetworkContext(
        network=get_network_identifier(),
        deployer=account.address,
        client=client,
        chain_id=client.chain_id,
    )

    pipeline = Pipeline(deployment_plan, confirm_each=confirm_each, interactive=not autosign)
    manifest = execute(
        pipeline,
        context,
        overrides=dict(dependency_overrides),
        manifest_filepath=manifest_filepath,
    )
    if manifest is None or not manifest.succeeded:
        sys.exit(1)

    if publish and not is_local_network():
        deployed = {d.contract_name: d.address for d in manifest.dependencies if d.tx_hash}
        deployed.update(manifest.addresses())
        verify_contracts(deployed)


if __name__ == "__main__":
    cli()
