"""Exception hierarchy shared by the relay components."""


class RelayError(Exception):
    """Base class for relaybot errors."""


class RegistryError(RelayError):
    """The subscriber store failed to complete an operation."""


class BackendError(RelayError):
    """The text-generation backend rejected or failed a request."""


class BackendTimeout(BackendError):
    """The text-generation backend did not answer within the timeout."""


class TransportError(RelayError):
    """A message could not be delivered to the messaging platform."""


class BroadcastError(RelayError):
    """A broadcast was aborted after a failed send."""

    def __init__(self, message: str, sent: int, failed_chat_id: int):
        super().__init__(message)
        self.sent = sent
        self.failed_chat_id = failed_chat_id
