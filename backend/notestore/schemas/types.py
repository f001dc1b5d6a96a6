from typing import Annotated, Any

from pydantic import BeforeValidator, Field, PlainSerializer

# Ids name content files on disk, so they are restricted to a file-safe alphabet
ItemId = Annotated[str, Field(pattern=r"^[A-Za-z0-9_-]+$", min_length=1, max_length=128)]

NodeId = Annotated[str, Field(min_length=1, max_length=256)]


def _coerce_blob(value: Any) -> Any:
    if isinstance(value, str):
        return value.encode("utf-8")
    if isinstance(value, list):
        try:
            return bytes(value)
        except TypeError as e:
            raise ValueError("byte array must contain integers 0-255") from e
    return value


# Raw bytes travel as an array of byte values in JSON, the shape older bundles use.
Blob = Annotated[
    bytes,
    BeforeValidator(_coerce_blob),
    PlainSerializer(lambda b: list(b), return_type=list[int], when_used="json"),
]
