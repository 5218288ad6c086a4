"""Authoring errors raised by graph mutation calls."""

from __future__ import annotations


class AuthoringError(ValueError):
    """Raised when a mutation is rejected. The graph is left unchanged."""

    code = "AUTHORING_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(f"{self.code}: {message}")
        self.message = message


class UnknownNodeType(AuthoringError):
    code = "UNKNOWN_NODE_TYPE"

    def __init__(self, node_type: str) -> None:
        super().__init__(f"Node type '{node_type}' is not registered.")
        self.node_type = node_type


class UnknownNode(AuthoringError):
    code = "UNKNOWN_NODE"

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node '{node_id}' does not exist.")
        self.node_id = node_id


class DuplicateNodeId(AuthoringError):
    code = "DUPLICATE_NODE_ID"

    def __init__(self, node_id: str) -> None:
        super().__init__(f"Node id '{node_id}' is already in use.")
        self.node_id = node_id


class InvalidPort(AuthoringError):
    code = "INVALID_PORT"

    def __init__(self, node_id: str, port: int, direction: str, message: str | None = None) -> None:
        super().__init__(message or f"Node '{node_id}' has no {direction} port {port}.")
        self.node_id = node_id
        self.port = port
        self.direction = direction


class PortAlreadyBound(AuthoringError):
    code = "PORT_ALREADY_BOUND"

    def __init__(self, node_id: str, port: int, connection_id: str) -> None:
        super().__init__(f"Input port {port} of node '{node_id}' is already bound by '{connection_id}'.")
        self.node_id = node_id
        self.port = port
        self.connection_id = connection_id


class InvalidProperties(AuthoringError):
    code = "INVALID_PROPERTIES"

    def __init__(self, node_id: str, detail: str) -> None:
        super().__init__(f"Invalid properties for node '{node_id}': {detail}")
        self.node_id = node_id


class InvalidPosition(AuthoringError):
    code = "INVALID_POSITION"

    def __init__(self, position: object, detail: str) -> None:
        super().__init__(f"Invalid position {position!r}: {detail}")
        self.position = position


__all__ = [
    "AuthoringError",
    "DuplicateNodeId",
    "InvalidPort",
    "InvalidPosition",
    "InvalidProperties",
    "PortAlreadyBound",
    "UnknownNode",
    "UnknownNodeType",
]
