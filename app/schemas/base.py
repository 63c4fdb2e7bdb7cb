"""Shared schema building blocks."""

from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base schema whose JSON field names are camelCase."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class OkResponse(CamelModel):
    """Plain acknowledgement."""

    ok: bool = True


def _check_media(value: str) -> str:
    """Accept http(s) URLs and base64 data URIs."""
    if not value.startswith(("http://", "https://", "data:")):
        raise ValueError("Media must be a URL or a data URI (base64)")
    return value


# Image reference supplied by clients: a URL or a data URI
MediaString = Annotated[str, Field(min_length=5), AfterValidator(_check_media)]

ServiceTag = Annotated[str, Field(min_length=1, max_length=60)]
