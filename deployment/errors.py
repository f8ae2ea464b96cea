from typing import Optional


class DeploymentError(Exception):
    """Base class for failures that abort a deployment run."""

    # partial manifest of the aborted run, attached by the pipeline
    manifest = None


class PlanError(DeploymentError, ValueError):
    """Raised when a deployment plan file is malformed or not resolvable."""


class ResolutionError(DeploymentError):
    """Raised when a dependency address could not be established."""

    def __init__(self, dependency: str, message: str):
        self.dependency = dependency
        super().__init__(f"Cannot resolve dependency '{dependency}': {message}")


class NonceConflictError(DeploymentError):
    """Raised when the account nonce observed on-chain diverges from the expected one."""

    def __init__(self, expected: int, observed: Optional[int] = None, step=None):
        self.expected = expected
        self.observed = observed
        self.step = step
        message = f"Nonce conflict: expected to submit with nonce {expected}"
        if observed is not None:
            message += f" but the account's pending nonce is {observed}"
        if step is not None:
            message += f" (step {step})"
        super().__init__(message + ". Is another process using this account?")


class PipelineError(DeploymentError):
    """Raised when a deployment step fails to submit or confirm."""

    def __init__(self, step, cause: Exception):
        self.step = step
        self.cause = cause
        super().__init__(f"Deployment of {step} failed: {cause}")


class LinkingError(DeploymentError):
    """Raised when a post-deployment link is rejected or references an unconfirmed contract."""

    def __init__(self, action, cause: str):
        self.action = action
        self.cause = cause
        super().__init__(f"Linking {action} failed: {cause}")


class DeploymentAborted(DeploymentError):
    """Raised when the operator declines a confirmation prompt."""
