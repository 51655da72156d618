from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class UserSyncRequest(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    first_name: str | None = None
    last_name: str | None = None


class UserDeleteRequest(BaseModel):
    subject_id: str | None = Field(
        default=None,
        validation_alias=AliasChoices("subjectId", "uid", "subject_id"),
    )


class UserResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    id: str
    email: str
    first_name: str | None
    last_name: str | None
    created_at: str
    updated_at: str


class UserSyncResponse(BaseModel):
    message: str
    user: UserResponse
