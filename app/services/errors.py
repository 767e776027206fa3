"""
Workflow exceptions raised by the service layer and translated by the routes
"""

from typing import List, Optional


class WorkflowError(Exception):
    """Base class for expected workflow failures"""

    error_code = "workflow_error"
    status_code = 400

    def __init__(self, message: str, details: Optional[List[str]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or []


class ValidationFailed(WorkflowError):
    """Input rejected before any write"""

    error_code = "validation_failed"
    status_code = 422


class SelectionLimitReached(ValidationFailed):
    error_code = "selection_limit_reached"


class InvalidTransition(WorkflowError):
    error_code = "invalid_transition"
    status_code = 409

    def __init__(self, current: str, target: str):
        super().__init__(f"Transition {current} -> {target} is not allowed")
        self.current = current
        self.target = target


class PermissionDenied(WorkflowError):
    error_code = "forbidden"
    status_code = 403


class NotFound(WorkflowError):
    error_code = "not_found"
    status_code = 404

    def __init__(self, resource: str = "Resource"):
        super().__init__(f"{resource} not found")
        self.resource = resource
