# services/knowledge/errors.py


class KnowledgeEngineError(Exception):
    """
    Base class for synthesis failures.
    `transient` tells callers whether retrying the same request may succeed.
    """
    transient = True


class GeneratorUnavailable(KnowledgeEngineError):
    """The content generator could not be reached or returned nothing."""
    pass


class MalformedGeneratorOutput(KnowledgeEngineError):
    """No JSON payload could be decoded from the generator output."""

    def __init__(self, message: str, raw_text: str = ""):
        super().__init__(message)
        self.raw_text = raw_text


class IncompleteGeneratorOutput(KnowledgeEngineError):
    """The payload decoded but lacks required fields."""

    def __init__(self, missing, raw_text: str):
        self.missing = list(missing)
        self.raw_text = raw_text
        super().__init__(
            f"Generator output is missing required field(s) {', '.join(self.missing)}. Raw output: {raw_text!r}"
        )


class SagaAborted(KnowledgeEngineError):
    """
    One of the two stores failed during a dual-store write.
    graph_committed=True means the graph side was already committed.
    """

    def __init__(self, message: str, graph_committed: bool = False):
        super().__init__(message)
        self.graph_committed = graph_committed


class DiscoveryLogFailure(KnowledgeEngineError):
    """Recording a discovery failed. Never surfaced to callers."""
    pass


class InvalidQuery(KnowledgeEngineError):
    transient = False


class TopicNotFound(KnowledgeEngineError):
    transient = False


class TopicLocked(KnowledgeEngineError):
    """The user has not discovered this topic yet."""
    transient = False
