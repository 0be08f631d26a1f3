class AsyncPingError(Exception):
    """
    Base class for errors raised by the async ping service.
    """


class ConfigError(AsyncPingError):
    """
    Raised when required configuration is missing or invalid.
    """


class SinkError(AsyncPingError):
    """
    Raised when the metrics sink is unreachable or its schema cannot be prepared.
    """


class SinkWriteError(SinkError):
    """
    Raised when an outcome could not be written to the metrics sink.
    """


class ProbeDispatchError(AsyncPingError):
    """
    Raised when the compute gateway rejects a probe or cannot be reached.
    """

    def __init__(self, probe_id: str, reason: str):
        super().__init__(f"Dispatch of probe {probe_id} failed: {reason}")
        self.probe_id = probe_id
        self.reason = reason
