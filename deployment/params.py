import typing
from abc import ABC, abstractmethod
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List, NamedTuple, Optional

from eth_typing import ChecksumAddress

from deployment.constants import ARTIFACTS_DIR
from deployment.context import DeploymentStep, LinkStep
from deployment.errors import PlanError
from deployment.resolver import DependencySpec
from deployment.utils import _load_yaml

CONTRACT_CONSTRUCTOR_PARAMETER_KEY = "constructor"


class VariableContext:
    def __init__(
        self,
        contract_names: List[str],
        contract_name: str,
        constants: typing.Dict[str, Any] = None,
        dependency_names: List[str] = None,
    ):
        self.contract_names = contract_names or list()
        self.contract_name = contract_name
        self.constants = constants or dict()
        self.dependency_names = dependency_names or list()


class ResolutionScope(NamedTuple):
    """Values available to variables when a step is about to be submitted."""

    deployer: ChecksumAddress
    dependencies: Dict[str, ChecksumAddress]
    addresses: Dict[str, ChecksumAddress]  # confirmed contracts only


# Variables


class Variable(ABC):
    VARIABLE_PREFIX = "$"

    # name of the deployed contract this variable depends on, if any
    referenced_contract: Optional[str] = None

    @abstractmethod
    def resolve(self, scope: ResolutionScope) -> Any:
        raise NotImplementedError

    @classmethod
    def is_variable(cls, param: Any) -> bool:
        """Returns True if the param is a variable."""
        result = isinstance(param, str) and param.startswith(cls.VARIABLE_PREFIX)
        return result


class DeployerAccount(Variable):
    DEPLOYER_INDICATOR = "deployer"

    @classmethod
    def is_deployer(cls, value: str) -> bool:
        """Returns True if the variable is a special deployer variable."""
        return value == cls.DEPLOYER_INDICATOR

    def resolve(self, scope: ResolutionScope) -> Any:
        return scope.deployer

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.DEPLOYER_INDICATOR}"


class Constant(Variable):
    def __init__(self, constant_name: str, context: VariableContext):
        try:
            constant_value = context.constants[constant_name]
        except KeyError:
            raise PlanError(f"Constant '{constant_name}' not found in deployment file.")
        # a constant may default to the deployer account, e.g. a signer address
        if Variable.is_variable(constant_value):
            if not DeployerAccount.is_deployer(constant_value.strip(Variable.VARIABLE_PREFIX)):
                raise PlanError(f"Constant '{constant_name}' can only refer to $deployer.")
            constant_value = DeployerAccount()
        self.constant_value = constant_value
        self.constant_name = constant_name

    @classmethod
    def is_constant(cls, value: str) -> bool:
        """Returns True if the variable is a deployment constant."""
        return value.isupper()

    def resolve(self, scope: ResolutionScope) -> Any:
        if isinstance(self.constant_value, Variable):
            return self.constant_value.resolve(scope)
        return self.constant_value

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.constant_name}"


class DependencyAddress(Variable):
    def __init__(self, dependency_name: str):
        self.dependency_name = dependency_name

    @classmethod
    def is_dependency(cls, value: str, context: VariableContext) -> bool:
        return value in context.dependency_names

    def resolve(self, scope: ResolutionScope) -> Any:
        try:
            return scope.dependencies[self.dependency_name]
        except KeyError:
            raise LookupError(f"Dependency {self.dependency_name} has not been resolved")

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.dependency_name}"


class ContractName(Variable):
    def __init__(self, contract_name: str, context: VariableContext):
        if contract_name not in context.contract_names:
            raise PlanError(f"Contract name {contract_name} not found")
        self.contract_name = contract_name
        self.referenced_contract = contract_name

    def resolve(self, scope: ResolutionScope) -> Any:
        """Resolves a confirmed contract address; there is no placeholder for pending ones."""
        try:
            return scope.addresses[self.contract_name]
        except KeyError:
            raise LookupError(f"{self.contract_name} has no confirmed address yet")

    def __repr__(self) -> str:
        return f"{self.VARIABLE_PREFIX}{self.contract_name}"


def _resolve_param(value: Any, scope: ResolutionScope) -> Any:
    """Resolves a single parameter value or a list of parameter values."""
    if isinstance(value, list):
        return [_resolve_param(v, scope) for v in value]

    if isinstance(value, Variable):
        return value.resolve(scope)

    return value  # literally a value


def resolve_parameters(parameters: OrderedDict, scope: ResolutionScope) -> OrderedDict:
    resolved_parameters = OrderedDict()
    for name, value in parameters.items():
        resolved_parameters[name] = _resolve_param(value, scope)

    return resolved_parameters


def _variable_from_value(variable: Any, context: VariableContext) -> Variable:
    variable = variable.strip(Variable.VARIABLE_PREFIX)
    if DeployerAccount.is_deployer(variable):
        return DeployerAccount()
    elif DependencyAddress.is_dependency(variable, context):
        return DependencyAddress(variable)
    elif variable in context.contract_names:
        return ContractName(variable, context)
    elif Constant.is_constant(variable):
        return Constant(variable, context)
    else:
        return ContractName(variable, context)


def _process_raw_value(value: Any, variable_context: VariableContext) -> Any:
    if isinstance(value, list):
        return [_process_raw_value(v, variable_context) for v in value]

    if Variable.is_variable(value):
        value = _variable_from_value(value, variable_context)

    return value


def _process_raw_values(values: OrderedDict, variable_context: VariableContext) -> OrderedDict:
    processed_parameters = OrderedDict()
    for name, value in values.items():
        processed_parameters[name] = _process_raw_value(value, variable_context)

    return processed_parameters


def _get_contract_names(config: typing.Dict) -> List[str]:
    contract_names = list()
    for contract_info in config["contracts"]:
        if isinstance(contract_info, str):
            contract_names.append(contract_info)
        elif isinstance(contract_info, dict):
            contract_names.extend(list(contract_info.keys()))
        else:
            raise PlanError("Malformed contracts section in deployment plan.")

    duplicates = {name for name in contract_names if contract_names.count(name) > 1}
    if duplicates:
        raise PlanError(f"Contracts declared more than once: {', '.join(sorted(duplicates))}")
    return contract_names


def _single_entry(entry: Any, section: str) -> typing.Tuple[str, Any]:
    if not isinstance(entry, dict) or len(entry) != 1:
        raise PlanError(f"Malformed {section} section in deployment plan.")
    return list(entry.items())[0]  # only one entry


def _apply_overrides(
    constants: typing.Dict[str, Any], overrides: Optional[Dict[str, str]]
) -> typing.Dict[str, Any]:
    """
    Replaces plan constants with values given on the command line.
    Only declared constants can be overridden; integer constants stay integers.
    """
    constants = dict(constants)
    for name, value in (overrides or dict()).items():
        if name not in constants:
            raise PlanError(f"Cannot override '{name}'; it is not a constant of this plan.")
        default = constants[name]
        if isinstance(default, int) and not isinstance(default, bool):
            try:
                value = int(value)
            except ValueError:
                raise PlanError(f"Constant '{name}' must be an integer, got '{value}'.")
        constants[name] = value
    return constants


class DeploymentPlan:
    """
    An ordered set of contract deployments plus the calls that link them,
    loaded from a YAML plan file.
    """

    def __init__(
        self,
        name: str,
        steps: List[DeploymentStep],
        links: List[LinkStep],
        dependencies: List[DependencySpec],
        constants: Optional[Dict[str, Any]] = None,
        artifact_filepath: Optional[Path] = None,
        path: Optional[Path] = None,
    ):
        self.name = name
        self.steps = steps
        self.links = links
        self.dependencies = dependencies
        self.constants = constants or dict()
        self.artifact_filepath = artifact_filepath or ARTIFACTS_DIR / f"{name}.json"
        self.path = path
        self.validate()

    @classmethod
    def from_yaml(
        cls, filepath: Path, constant_overrides: Optional[Dict[str, str]] = None
    ) -> "DeploymentPlan":
        config = _load_yaml(filepath)
        return cls.from_config(config, path=filepath, constant_overrides=constant_overrides)

    @classmethod
    def from_config(
        cls,
        config: typing.Dict,
        path: Optional[Path] = None,
        constant_overrides: Optional[Dict[str, str]] = None,
    ) -> "DeploymentPlan":
        if not isinstance(config, dict):
            raise PlanError("Deployment plan must be a mapping.")

        deployment = config.get("deployment") or dict()
        name = deployment.get("name")
        if not name:
            raise PlanError("deployment name is not set in plan file.")

        if not config.get("contracts"):
            raise PlanError("Deployment plan missing 'contracts' field.")

        constants = _apply_overrides(config.get("constants") or dict(), constant_overrides)
        dependencies = [
            DependencySpec.from_config(dependency_name, dependency_config)
            for dependency_name, dependency_config in (config.get("dependencies") or {}).items()
        ]
        dependency_names = [d.name for d in dependencies]
        contract_names = _get_contract_names(config)

        clashes = set(dependency_names) & set(contract_names)
        if clashes:
            raise PlanError(f"Names used for both a dependency and a contract: {clashes}")

        def _context(contract_name: str) -> VariableContext:
            return VariableContext(
                contract_names=contract_names,
                contract_name=contract_name,
                constants=constants,
                dependency_names=dependency_names,
            )

        steps = list()
        for index, contract_info in enumerate(config["contracts"]):
            if isinstance(contract_info, str):
                contract_name, parameters = contract_info, OrderedDict()
            else:
                contract_name, contract_data = _single_entry(contract_info, "contracts")
                contract_data = contract_data or dict()
                raw_parameters = contract_data.get(CONTRACT_CONSTRUCTOR_PARAMETER_KEY) or dict()
                parameters = _process_raw_values(
                    OrderedDict(raw_parameters), _context(contract_name)
                )
            steps.append(DeploymentStep(index, contract_name, parameters))

        links = list()
        for link_info in config.get("links") or list():
            contract_name, call = _single_entry(link_info, "links")
            if contract_name not in contract_names:
                raise PlanError(f"Link on {contract_name}, which is not deployed by this plan.")
            method, raw_parameters = _single_entry(call, "links")
            parameters = _process_raw_values(
                OrderedDict(raw_parameters or dict()), _context(contract_name)
            )
            links.append(LinkStep(contract_name, method, parameters))

        artifact_filepath = None
        artifact_config = config.get("artifacts") or dict()
        if artifact_config.get("filename"):
            artifact_dir = Path(artifact_config.get("dir", ARTIFACTS_DIR))
            artifact_filepath = artifact_dir / artifact_config["filename"]

        return cls(
            name=name,
            steps=steps,
            links=links,
            dependencies=dependencies,
            constants=constants,
            artifact_filepath=artifact_filepath,
            path=path,
        )

    def validate(self) -> None:
        """
        Checks that every contract reference points to a contract deployed earlier,
        so that the dependency graph can be walked in plan order.
        """
        deployed = list()
        for step in self.steps:
            for reference in step.dependencies:
                if reference == step.contract_name:
                    raise PlanError(f"{step.contract_name} cannot reference its own address.")
                if reference not in deployed:
                    raise PlanError(
                        f"{step.contract_name} references {reference}, "
                        f"which is not deployed before it."
                    )
            deployed.append(step.contract_name)

    def step(self, contract_name: str) -> DeploymentStep:
        for step in self.steps:
            if step.contract_name == contract_name:
                return step
        raise KeyError(contract_name)
