"""Core custom exceptions for the application."""


class PipelineError(Exception):
    """Base exception for extraction/generation flow errors."""


class WizardError(Exception):
    """Base exception for wizard state machine misuse."""


class StepTransitionError(WizardError):
    """Raised when an operation is invoked from a step where it is not allowed."""

    def __init__(self, operation: str, current_step: str):
        self.operation = operation
        self.current_step = current_step
        super().__init__(f"Operation '{operation}' is not allowed from step {current_step}")


class OperationInProgressError(WizardError):
    """Raised when a wizard operation is attempted while another one is still in flight."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Cannot run '{operation}': another wizard operation is in progress")
