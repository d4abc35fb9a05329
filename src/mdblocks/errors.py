"""Exception hierarchy for block editing and background compilation"""


class MdBlocksError(Exception):
    """Base exception for all mdblocks errors."""


class BlockValidationError(MdBlocksError, ValueError):
    """A block payload failed its schema; the edit was refused."""

    def __init__(self, block_type: str, errors: list[str]):
        self.block_type = block_type
        self.errors = list(errors)
        super().__init__(f"Invalid {block_type} block: " + "; ".join(self.errors))


class CompileError(MdBlocksError):
    """A background compile request did not produce a result."""


class CompileTimeoutError(CompileError, TimeoutError):
    def __init__(self, request_id: str, timeout_s: float):
        self.request_id = request_id
        super().__init__(f"conversion timed out after {timeout_s:g}s ({request_id})")


class WorkerError(CompileError):
    """The execution context reported an error or failed outright."""


class CompileSupersededError(CompileError):
    """A debounced request was replaced by a newer one before dispatch."""
