from .workflow import LinkResolutionWorkflow

__all__ = ["LinkResolutionWorkflow"]
