"""Error types raised by the Context Engine core."""


class ContextEngineError(Exception):
    """Base class for all Context Engine errors."""


class UnsupportedLanguage(ContextEngineError, ValueError):
    """No grammar is registered for the requested language tag."""

    def __init__(self, language: str):
        self.language = language
        super().__init__(f"Unsupported language: {language}")


class NotFound(ContextEngineError, LookupError):
    """A file, symbol or document required by an operation is absent."""


class PacketNotFound(NotFound):
    """No packet with the given id exists in the document store."""

    def __init__(self, packet_id: str):
        self.packet_id = packet_id
        super().__init__(f"Packet not found: {packet_id}")


class NotInitialized(ContextEngineError):
    """The project has no context/ configuration yet."""


class ConfigInvalid(ContextEngineError, ValueError):
    """The configuration file is malformed or fails validation."""


class ExternalFetchFailure(ContextEngineError, RuntimeError):
    """A collaborator resource (grammar, tokenizer) could not be loaded."""
