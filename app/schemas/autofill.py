from pydantic import BaseModel, ConfigDict, Field, field_validator


class ProductQuery(BaseModel):
    model_config = ConfigDict(frozen=True)

    identifier: str = Field(min_length=8, pattern=r"^\d+$")
    known_name: str = ""

    @field_validator("identifier", "known_name", mode="before")
    @classmethod
    def _strip(cls, v):
        return v.strip() if isinstance(v, str) else v


class ProductRecord(BaseModel):
    name: str
    identifier: str
    brand: str = ""
    weight_kg: float | None = None
    width_cm: float | None = None
    height_cm: float | None = None
    length_cm: float | None = None
    short_description: str = ""
    image_url: str = ""  # absolute http(s) URL or empty
    sources: list[str] = Field(default_factory=list)
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
