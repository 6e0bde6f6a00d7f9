"""Core conversation errors."""


class WaypointError(Exception):
    """Base class for all Waypoint errors."""

    pass


class ConfigError(WaypointError):
    """Raised when configuration is invalid."""


class GraphBuildError(ConfigError):
    """Raised when the node graph definition is structurally invalid."""

    pass


class InvalidStateError(WaypointError):
    """Raised when a session references a node that does not exist.

    Signals corrupted or foreign session state. Never recovered by falling
    back to the start node.
    """

    def __init__(self, message: str, session_id: str | None = None, node_id: str | None = None):
        super().__init__(message)
        self.session_id = session_id
        self.node_id = node_id


class SessionNotFoundError(WaypointError):
    """Raised when a connection or session id is not owned by the coordinator."""

    pass


class OracleUnavailableError(WaypointError):
    """Raised when the reasoning oracle cannot produce a usable analysis."""

    pass


class OracleTimeoutError(OracleUnavailableError):
    """Oracle request timed out."""

    pass


class OracleParsingError(OracleUnavailableError):
    """Oracle returned a malformed or incomplete payload."""

    pass


class OracleProviderError(OracleUnavailableError):
    """Error from the underlying LLM provider."""

    pass


class HandlerFailureError(WaypointError):
    """Raised when a node handler fails or times out."""

    def __init__(self, message: str, node_id: str | None = None):
        super().__init__(message)
        self.node_id = node_id


class PersistenceError(WaypointError):
    """Raised when a storage or event side effect fails."""

    pass
