"""Record schemas for every per-patient form."""

from patient_records.core.errors import ValidationError
from patient_records.models.admission import AdmissionDischarge, DischargeType
from patient_records.models.history import SECTION_CATALOG, PatientHistory
from patient_records.models.orientation import ORIENTATION_QUESTIONS, GeneralPatientOrientation
from patient_records.models.personal_data import PatientPersonalData
from patient_records.services.records.schema import (
    FieldKind,
    FieldSpec,
    RecordSchema,
    date_field,
    text,
    time_field,
)

PERSONAL_DATA = RecordSchema(
    name="patient_personal_data",
    model=PatientPersonalData,
    label="Personal Data",
    fields=(
        text("first_name"),
        text("middle_name"),
        text("last_name"),
        text("file_number"),
        text("id_number"),
        text("sex", "male", "female"),
        date_field("birth_date"),
        text("nationality"),
        text("marital_status", "single", "married"),
        text("city"),
        text("area"),
        text("street"),
        text("home_number"),
        text("mobile"),
        text("telephone"),
        date_field("registration_date"),
        text("data_register_name"),
        text("relative_name"),
        text("relative_relation"),
        text("relative_phone"),
        text("relative_city"),
        text("relative_area"),
        text("relative_street"),
        text("relative_home_number"),
        text("relative_mobile"),
    ),
)

PATIENT_HISTORY = RecordSchema(
    name="patient_history",
    model=PatientHistory,
    label="History",
    sections=SECTION_CATALOG,
    fields=(
        text("content"),
        FieldSpec("image_urls", FieldKind.LIST),
    ),
)

ORIENTATION = RecordSchema(
    name="general_patient_orientation",
    model=GeneralPatientOrientation,
    label="Orientation",
    fields=(FieldSpec("questions", FieldKind.FLAGS, tuple(ORIENTATION_QUESTIONS)),),
)

ADMISSION_DISCHARGE = RecordSchema(
    name="admissions_discharge",
    model=AdmissionDischarge,
    label="Admission",
    fields=(
        date_field("admission_date"),
        time_field("admission_time"),
        text("admission_doctor"),
        text("provisional_diagnosis"),
        text("treatment_plan"),
        text("expected_duration"),
        text("doctor_sign_admission"),
        text("admission_employee_name"),
        date_field("admission_employee_date"),
        text("admission_employee_signature"),
        text("admission_employee_stamp"),
        date_field("discharge_date"),
        time_field("discharge_time"),
        text("discharge_doctor"),
        text("final_diagnosis"),
        text("discharge_type", *(kind.value for kind in DischargeType)),
        text("discharge_authorized_person"),
        text("discharge_relative_relation"),
        text("discharge_identity"),
        text("doctor_sign_discharge"),
        text("discharge_employee_name"),
        date_field("discharge_employee_date"),
        text("discharge_employee_signature"),
        text("discharge_employee_stamp"),
    ),
)

# Keyed by the name editors and the CLI use
FORMS: dict[str, RecordSchema] = {
    "personal_data": PERSONAL_DATA,
    "history": PATIENT_HISTORY,
    "orientation": ORIENTATION,
    "admission_discharge": ADMISSION_DISCHARGE,
}


def get_form(name: str) -> RecordSchema:
    try:
        return FORMS[name]
    except KeyError:
        raise ValidationError(f"Unknown form '{name}'") from None
