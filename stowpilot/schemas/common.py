from typing import Annotated

from pydantic import AfterValidator, AnyHttpUrl, BaseModel, Field, TypeAdapter

_http_url = TypeAdapter(AnyHttpUrl)


def _check_url(v: str) -> str:
    _http_url.validate_python(v)
    return v


# Validated as a URL but kept as the submitted string so it can go straight into a JSON column
HttpUrlStr = Annotated[str, AfterValidator(_check_url)]


class Coordinates(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)


class Address(BaseModel):
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=2, max_length=2)
    zip: str = Field(pattern=r"^\d{5}(-\d{4})?$")
    country: str = Field(min_length=1)
    coordinates: Coordinates | None = None


class DeleteResponse(BaseModel):
    success: bool = True


def blank_to_none(v):
    """Browser forms submit "" for untouched optional inputs."""
    if isinstance(v, str) and not v.strip():
        return None
    return v


def split_csv(value: str | None) -> list[str]:
    """`?status=active,draft` → ["active", "draft"]."""
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


def changed_fields(payload: BaseModel, *required: str) -> dict:
    """PATCH body as a column → value dict.

    Explicit nulls are dropped for the `required` (NOT NULL) columns so a
    client sending `{"name": null}` leaves the stored value alone.
    """
    data = payload.model_dump(exclude_unset=True)
    return {k: v for k, v in data.items() if v is not None or k not in required}
