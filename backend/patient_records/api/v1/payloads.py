"""Request and response models derived from record schemas.

Each record form gets a request model (every field optional, unknown keys
rejected) and a response model (the stored field set plus row identity),
both generated from the same field list the services use.
"""

from datetime import date, time
from typing import Annotated, Any, Literal

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, create_model

from patient_records.services.records.forms import (
    ADMISSION_DISCHARGE,
    ORIENTATION,
    PATIENT_HISTORY,
    PERSONAL_DATA,
)
from patient_records.services.records.schema import Draft, FieldKind, FieldSpec, RecordSchema


def _blank_to_none(value: Any) -> Any:
    return None if value == "" else value


OptionalDate = Annotated[date | None, BeforeValidator(_blank_to_none)]
OptionalTime = Annotated[time | None, BeforeValidator(_blank_to_none)]


class RecordPayload(BaseModel):
    """Fields to change; omitted fields keep their stored value."""

    model_config = ConfigDict(extra="forbid")


class RecordResponse(BaseModel):
    """A stored (or not yet stored) record of one patient."""

    id: str | None = Field(None, description="Row id, null until the first save")
    patient_id: str = Field(..., description="Owning patient")
    section: str | None = Field(None, description="History section, if any")


def _annotation(spec: FieldSpec, for_request: bool) -> Any:
    if spec.kind is FieldKind.TEXT:
        if spec.choices and for_request:
            return Literal[("", *spec.choices)]
        return str
    if spec.kind is FieldKind.DATE:
        return OptionalDate
    if spec.kind is FieldKind.TIME:
        return OptionalTime
    if spec.kind is FieldKind.FLAGS:
        return dict[str, bool]
    return list[str]


def _model_name(schema: RecordSchema, suffix: str) -> str:
    return "".join(part.title() for part in schema.name.split("_")) + suffix


def build_payload_model(schema: RecordSchema) -> type[RecordPayload]:
    fields = {
        spec.name: (_annotation(spec, for_request=True), Field(default_factory=spec.blank))
        for spec in schema.fields
    }
    return create_model(_model_name(schema, "Payload"), __base__=RecordPayload, **fields)


def build_response_model(schema: RecordSchema) -> type[RecordResponse]:
    fields = {
        spec.name: (_annotation(spec, for_request=False), Field(default_factory=spec.blank))
        for spec in schema.fields
    }
    return create_model(_model_name(schema, "Response"), __base__=RecordResponse, **fields)


def to_response(model: type[RecordResponse], draft: Draft) -> RecordResponse:
    return model(id=draft.id, patient_id=draft.patient_id, section=draft.section, **draft.values)


PersonalDataPayload = build_payload_model(PERSONAL_DATA)
PersonalDataResponse = build_response_model(PERSONAL_DATA)

HistorySectionPayload = build_payload_model(PATIENT_HISTORY)
HistorySectionResponse = build_response_model(PATIENT_HISTORY)

OrientationPayload = build_payload_model(ORIENTATION)
OrientationResponse = build_response_model(ORIENTATION)

AdmissionDischargePayload = build_payload_model(ADMISSION_DISCHARGE)
AdmissionDischargeResponse = build_response_model(ADMISSION_DISCHARGE)
