class AgentError(Exception):
    """Base for failures that abort a turn without touching session state."""

    def __init__(self, message: str, original_error: Exception = None):
        self.message = message
        self.original_error = original_error
        super().__init__(message)


class CollaboratorError(AgentError):
    pass


class TranscriptionError(CollaboratorError):
    pass


class AnsweringError(CollaboratorError):
    pass


class SynthesisError(CollaboratorError):
    pass
