"""Pydantic schemas for Rollbar API payloads.

Only the fields the unfurler renders are modelled; the rest are ignored.
Timestamps and occurrence ids are nullable in the API and kept Optional.
"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Any, Generic, List, Optional, TypeVar

T = TypeVar("T")

class ApiResponse(BaseModel, Generic[T]):
    err: int = 0
    message: str = ""
    result: Optional[T] = None

class Item(BaseModel):
    id: int
    project_id: Optional[int] = None
    counter: Optional[int] = None
    environment: str = ""
    title: str = ""
    status: str = ""
    total_occurrences: int = 0
    first_occurrence_timestamp: Optional[int] = None
    last_occurrence_timestamp: Optional[int] = None
    activating_occurrence_id: Optional[int] = None
    last_occurrence_id: Optional[int] = None

    @field_validator("environment", "title", "status", mode="before")
    @classmethod
    def _null_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("total_occurrences", mode="before")
    @classmethod
    def _null_count(cls, value: Any) -> Any:
        return 0 if value is None else value

    @property
    def occurrence_id(self) -> Optional[int]:
        """The occurrence shown in the preview: the activating one if known."""
        if self.activating_occurrence_id is not None:
            return self.activating_occurrence_id
        return self.last_occurrence_id

class Frame(BaseModel):
    filename: str = ""
    lineno: Optional[int] = None
    method: str = ""
    class_name: str = ""

    @field_validator("filename", "method", "class_name", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        # Anonymous and native frames report null names.
        return "" if value is None else value

class Trace(BaseModel):
    frames: List[Frame] = Field(default_factory=list)

class OccurrenceBody(BaseModel):
    trace_chain: List[Trace] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _single_trace_as_chain(cls, data: Any) -> Any:
        # Non-chained exceptions arrive as a single "trace" object.
        if isinstance(data, dict) and not data.get("trace_chain") and data.get("trace"):
            data = {**data, "trace_chain": [data["trace"]]}
        return data

class OccurrenceData(BaseModel):
    environment: str = ""
    body: OccurrenceBody = Field(default_factory=OccurrenceBody)

class Occurrence(BaseModel):
    id: int
    item_id: Optional[int] = None
    timestamp: Optional[int] = None
    data: OccurrenceData = Field(default_factory=OccurrenceData)

    @property
    def frames(self) -> List[Frame]:
        """Frames of the topmost trace in the chain, oldest first."""
        chain = self.data.body.trace_chain
        return chain[0].frames if chain else []

ItemResponse = ApiResponse[Item]
OccurrenceResponse = ApiResponse[Occurrence]
ValidationResponse = ApiResponse[Any]
