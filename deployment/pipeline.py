from collections import OrderedDict
from pathlib import Path
from typing import Dict, List, Optional

from eth_utils import to_checksum_address

from deployment.confirm import _confirm_resolution, _continue
from deployment.constants import GWEI
from deployment.context import (
    DeploymentManifest,
    DeploymentResult,
    DeploymentStep,
    LinkingAction,
    NetworkContext,
    ResolvedDependency,
    StepStatus,
)
from deployment.errors import DeploymentError, NonceConflictError, PipelineError
from deployment.linking import link, prepare_link
from deployment.manifest import write_manifest
from deployment.nonce import NonceSequencer
from deployment.params import DeploymentPlan, ResolutionScope, resolve_parameters
from deployment.report import render, render_failures
from deployment.resolver import resolve_dependencies


class _Run:
    """Mutable state of a single pipeline run."""

    def __init__(self, plan: DeploymentPlan, context: NetworkContext):
        self.plan = plan
        self.context = context
        self.sequencer: Optional[NonceSequencer] = None
        self.dependencies: List[ResolvedDependency] = list()
        self.results: Dict[str, DeploymentResult] = OrderedDict(
            (step.contract_name, DeploymentResult(step)) for step in plan.steps
        )
        self.links: List[LinkingAction] = list()

    def scope(self) -> ResolutionScope:
        addresses = {name: r.address for name, r in self.results.items() if r.confirmed}
        dependencies = {d.name: d.address for d in self.dependencies}
        return ResolutionScope(
            deployer=self.context.deployer, dependencies=dependencies, addresses=addresses
        )

    def manifest(self, error: Optional[Exception] = None) -> DeploymentManifest:
        return DeploymentManifest(
            plan=self.plan.name,
            network=self.context.network,
            chain_id=self.context.chain_id,
            deployer=self.context.deployer,
            base_nonce=self.context.base_nonce,
            dependencies=tuple(self.dependencies),
            results=tuple(self.results.values()),
            links=tuple(self.links),
            error=str(error) if error is not None else None,
        )


class Pipeline:
    """
    Deploys the contracts of a plan in order, then runs its links.

    Every transaction gets its nonce from a sequencer seeded once the dependencies
    are resolved. A step is submitted as soon as the contracts it references are
    confirmed, so independent steps may be in flight together. With `confirm_each`
    every step is mined before the next one is submitted.
    """

    def __init__(self, plan: DeploymentPlan, confirm_each: bool = False, interactive: bool = False):
        self.plan = plan
        self.confirm_each = confirm_each
        self.interactive = interactive

    def run(
        self, context: NetworkContext, overrides: Optional[Dict[str, str]] = None
    ) -> DeploymentManifest:
        self._print_deployment_info(context)

        run = _Run(self.plan, context)
        try:
            if self.interactive:
                _continue()

            for dependency in resolve_dependencies(context, self.plan.dependencies, overrides):
                run.dependencies.append(dependency)

            # only after any mock deployment is mined, so it cannot take one of our nonces
            run.sequencer = NonceSequencer.capture(context)
            run.context = context._replace(base_nonce=run.sequencer.base)

            self._deploy(run)
            self._link(run)
        except DeploymentError as error:
            error.manifest = run.manifest(error=error)
            raise

        return run.manifest()

    def _deploy(self, run: _Run) -> None:
        for step in self.plan.steps:
            for contract_name in step.dependencies:
                self._await(run, run.results[contract_name])
            self._submit(run, step)
            if self.confirm_each:
                self._await(run, run.results[step.contract_name])

        for result in run.results.values():
            self._await(run, result)

    def _submit(self, run: _Run, step: DeploymentStep) -> None:
        result = run.results[step.contract_name]
        try:
            resolved_params = resolve_parameters(step.parameters, run.scope())
        except LookupError as e:
            result.fail(e)
            raise PipelineError(step, e) from e

        nonce = run.sequencer.next()
        if self.interactive:
            _confirm_resolution(resolved_params, step.contract_name, nonce)

        client = run.context.client
        args = list(resolved_params.values())
        try:
            observed = client.get_transaction_count(run.context.deployer)
            NonceSequencer.check(observed, nonce, step=step)
            submission = client.deploy(step.contract_name, args, nonce=nonce)
        except NonceConflictError as e:
            e.step = step
            result.fail(e)
            raise
        except Exception as e:
            result.fail(e)
            raise PipelineError(step, e) from e

        if submission.nonce != nonce:
            error = NonceConflictError(expected=nonce, observed=submission.nonce, step=step)
            result.fail(error)
            raise error

        result.submitted(args, submission)
        print(f"  -> Deploying {step.contract_name} contract")
        print(f"     - hash: {submission.tx_hash}")
        if submission.gas_price is not None:
            print(f"     - gasPrice: {submission.gas_price / GWEI}")
        print(f"     - nonce: {submission.nonce}")

    def _await(self, run: _Run, result: DeploymentResult) -> None:
        """Blocks until a submitted step is mined; a no-op for confirmed steps."""
        if result.status != StepStatus.SUBMITTED:
            return

        client = run.context.client
        try:
            receipt = client.confirm(result.tx_hash)
        except Exception as e:
            result.fail(e)
            raise PipelineError(result.step, e) from e

        if receipt.failed or not receipt.contract_address:
            error = RuntimeError(f"transaction {result.tx_hash} reverted")
            result.fail(error)
            raise PipelineError(result.step, error)

        result.confirm(to_checksum_address(receipt.contract_address), receipt.block_number)
        print(f" -> {result.contract_name} contract deployed at {result.address}")

    def _link(self, run: _Run) -> None:
        for link_step in self.plan.links:
            scope = run.scope()
            action = prepare_link(link_step, scope, nonce=run.sequencer.next())
            run.links.append(action)
            link(run.context, action, scope, interactive=self.interactive)

    def _print_deployment_info(self, context: NetworkContext) -> None:
        print(
            f"Account: {context.deployer}",
            f"Plan: {self.plan.path or self.plan.name}",
            f"Network: {context.network}",
            f"Chain ID: {context.chain_id}",
            f"Gas Price: {context.client.gas_price / GWEI} gwei",
            f"Mode: {'confirm each step' if self.confirm_each else 'pipelined'}",
            sep="\n",
        )


def execute(
    pipeline: Pipeline,
    context: NetworkContext,
    overrides: Optional[Dict[str, str]] = None,
    manifest_filepath: Optional[Path] = None,
) -> Optional[DeploymentManifest]:
    """
    Runs a pipeline, then writes and prints its manifest, partial or not.
    The run succeeded only if the returned manifest says so.
    """
    error = None
    try:
        manifest = pipeline.run(context, overrides=overrides)
    except DeploymentError as e:
        error = e
        manifest = e.manifest

    if manifest is not None:
        filepath = write_manifest(manifest, manifest_filepath or pipeline.plan.artifact_filepath)
        print(f"(i) Manifest written to {filepath}!")
        print(f"\n\n{render(manifest)}")

    if error is not None:
        print(f"(!) {error}")
        if manifest is not None:
            for line in render_failures(manifest):
                print(line)

    return manifest
