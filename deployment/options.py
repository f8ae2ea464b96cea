from pathlib import Path

import click

from deployment.types import ConstantOverride, DependencyOverride

plan_option = click.option(
    "--plan",
    "-p",
    help="Name of a bundled deployment plan (see deployment/plans) or path to a plan YAML file.",
    type=click.STRING,
    default="townhall",
    show_default=True,
)

dependency_option = click.option(
    "--dependency",
    "-D",
    "dependency_overrides",
    help="Use this address for a plan dependency instead of the network default, NAME=ADDRESS.",
    type=DependencyOverride(),
    multiple=True,
)

constant_option = click.option(
    "--constant",
    "-C",
    "constant_overrides",
    help="Override a constant of the deployment plan, NAME=VALUE.",
    type=ConstantOverride(),
    multiple=True,
)

confirm_each_option = click.option(
    "--confirm-each",
    help="Wait for every deployment to be mined before submitting the next one.",
    is_flag=True,
    default=False,
)

autosign_option = click.option(
    "--autosign",
    help="Sign transactions without prompting.",
    is_flag=True,
    default=False,
)

publish_option = click.option(
    "--publish",
    help="Publish the sources of the deployed contracts to the block explorer.",
    is_flag=True,
    default=False,
)

account_option = click.option(
    "--account",
    "-a",
    "account_alias",
    help="Alias of the ape account to deploy from.",
    type=click.STRING,
    required=False,
)

manifest_option = click.option(
    "--manifest-filepath",
    "-m",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Where to write the deployment manifest; defaults to the plan's artifact file.",
    required=False,
)
