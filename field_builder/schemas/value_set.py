from pydantic import BaseModel, Field, field_validator

from field_builder.schemas.field_definition import API_CODE_PATTERN, API_CODE_MESSAGE


class GlobalValueSetCreate(BaseModel):
    """Neues Global Value Set aus dem Feld-Wizard anlegen."""
    name: str = Field(
        ...,
        description="Name des Value Sets (gleiches Muster wie apiCode). Beispiel: 'leadSource'",
        json_schema_extra={"examples": ["leadSource"]},
    )
    values: list[str] = Field(
        ...,
        min_length=1,
        description="Werte in Anzeige-Reihenfolge.",
        json_schema_extra={"examples": [["Web", "Referral", "Trade Show"]]},
    )

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("Please enter a name for the new Global Value Set")
        if not API_CODE_PATTERN.match(v):
            raise ValueError(API_CODE_MESSAGE)
        return v

    @field_validator("values", mode="before")
    @classmethod
    def split_values(cls, v):
        # Mehrzeilige Eingabe aus dem Wizard
        if isinstance(v, str):
            v = v.split("\n")
        if isinstance(v, list):
            v = [str(item).strip() for item in v if str(item).strip()]
        if not v:
            raise ValueError("Please enter at least one value for the Global Value Set")
        return v


class GlobalValueSetSummary(BaseModel):
    """Global Value Set in Listenansicht (Picker im Wizard)."""
    name: str
    label: str = ""
    value_count: int = Field(0, alias="valueCount")

    model_config = {"populate_by_name": True, "extra": "ignore"}


class ObjectDefinitionSummary(BaseModel):
    """Business Object in Listenansicht (Picker fuer Lookup-Felder)."""
    api_code: str = Field(..., alias="apiCode")
    label_plural: str = Field("", alias="labelPlural")
    label_singular: str = Field("", alias="labelSingular")
    icon_set: str = Field("", alias="iconSet")
    icon: str = ""

    model_config = {"populate_by_name": True, "extra": "ignore"}
