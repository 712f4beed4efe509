"""Wire schemas for the proxy endpoints (buffered JSON and NDJSON stream)."""

from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic.alias_generators import to_camel

from awakenfetch.domain.models.transaction import Transaction

UNKNOWN_ERROR = "Unknown error occurred"


class _WireModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_ndjson(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True) + "\n"


class TransactionsResponse(_WireModel):
    transactions: list[Transaction]


class ErrorResponse(_WireModel):
    error: str


class BatchMessage(_WireModel):
    type: Literal["batch"] = "batch"
    transactions: list[Transaction]


class MetaMessage(_WireModel):
    type: Literal["meta"] = "meta"
    estimated_total: int


class DoneMessage(_WireModel):
    type: Literal["done"] = "done"
    total: int


class ErrorMessage(_WireModel):
    type: Literal["error"] = "error"
    error: str


StreamMessage = Annotated[
    Union[BatchMessage, MetaMessage, DoneMessage, ErrorMessage],
    Field(discriminator="type"),
]

stream_message_adapter: TypeAdapter[StreamMessage] = TypeAdapter(StreamMessage)
