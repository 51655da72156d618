from typing import Any
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class DocumentWrite(BaseModel):
    # Untyped and optional so that missing or odd fields reach the store and come back
    # as 400 InvalidInput rather than a 422 from request validation.
    title: Any = None
    data: Any = None


class DocumentResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    owner_id: str
    title: str
    data: Any
    created_at: str
    updated_at: str


class MessageResponse(BaseModel):
    message: str
