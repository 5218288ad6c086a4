"""JSON persistence for event graphs and compiled graphs."""

from eventgraph.persistence.codec import (
    GraphDocument,
    PersistenceCodec,
    PersistenceError,
    decode_compiled,
    decode_graph,
    encode_compiled,
    encode_graph,
)

__all__ = [
    "GraphDocument",
    "PersistenceCodec",
    "PersistenceError",
    "decode_compiled",
    "decode_graph",
    "encode_compiled",
    "encode_graph",
]
