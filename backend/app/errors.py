"""Exception types shared by the workflow engine, services and API routers."""


class WorkflowError(Exception):
    """Base class for workflow builder errors."""


class UnknownNodeTypeError(WorkflowError):
    """Raised when a node is requested for a type tag outside the registry."""


class NodeNotFoundError(WorkflowError):
    """Raised when a node id is not part of the workflow."""


class ExecutionInProgressError(WorkflowError):
    """Raised when a run is requested while the workflow is already running."""


class CapabilityError(WorkflowError):
    """Raised by a capability adapter when the backend call fails."""


class ExternalTargetError(WorkflowError):
    """Raised for invalid, duplicate or disconnected external targets."""


class PipelineAbortedError(WorkflowError):
    """
    Raised when a node failure aborts the run.

    Carries the results recorded before the failing node so callers can still
    show partial output.
    """

    def __init__(self, node_id: str, partial_run, cause: BaseException):
        super().__init__(f"Node {node_id} failed: {cause}")
        self.node_id = node_id
        self.partial_run = partial_run
        self.cause = cause
