"""uProtocol data model, UUID and message builders, UUID and URI encodings, payloads and an abstract transport."""

__version__ = "0.1.0"

__all__ = [
    "model",
    "uuid_builder",
    "uuid_codec",
    "uri",
    "payload",
    "message_builder",
    "transport",
]