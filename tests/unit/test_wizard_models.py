import pytest
from pydantic import ValidationError

from app.models.wizard_models import DocumentSelectionPayload
from app.models.wizard_models import DocumentType
from app.models.wizard_models import FormData
from app.models.wizard_models import WizardSnapshot
from app.models.wizard_models import WizardStep


def test_form_data_accepts_camel_case_keys():
    form = FormData.model_validate(
        {"client": {"fullName": "Ali Benali", "bankAccount": "0011"}, "case": {"references": "123/2024"}}
    )

    assert form.client.full_name == "Ali Benali"
    assert form.client.bank_account == "0011"
    assert form.case.references == "123/2024"
    assert form.client.dob is None


def test_form_data_accepts_snake_case_keys():
    form = FormData.model_validate({"client": {"full_name": "Ali"}})
    assert form.client.full_name == "Ali"


def test_form_data_dumps_camel_case_by_alias():
    dumped = FormData.model_validate({"client": {"fullName": "Ali"}}).model_dump(by_alias=True)
    assert dumped["client"]["fullName"] == "Ali"
    assert "bankAccount" in dumped["client"]


def test_numbers_are_coerced_to_text():
    form = FormData.model_validate({"case": {"fees": 5000, "advance": 1500.5}})

    assert form.case.fees == "5000"
    assert form.case.advance == "1500.5"


def test_null_sections_become_empty():
    form = FormData.model_validate({"client": None, "case": None})

    assert form.client.full_name is None
    assert form.case.type is None


def test_document_type_lookup_by_label_and_name():
    assert DocumentType("وكالة عامة") is DocumentType.GENERAL_POWER_OF_ATTORNEY
    assert DocumentType("fee_agreement") is DocumentType.FEE_AGREEMENT
    with pytest.raises(ValueError):
        DocumentType("UNKNOWN")


def test_selection_payload_accepts_names_and_labels():
    payload = DocumentSelectionPayload.model_validate(
        {"documentTypes": ["FEE_AGREEMENT", "طلب عرضية / مذكرة طلب"]}
    )

    assert payload.document_types == [DocumentType.FEE_AGREEMENT, DocumentType.INCIDENTAL_REQUEST]


def test_selection_payload_rejects_unknown_type():
    with pytest.raises(ValidationError):
        DocumentSelectionPayload.model_validate({"documentTypes": ["LEASE"]})


def test_wizard_step_positions_and_labels():
    assert [s.position for s in WizardStep] == [0, 1, 2, 3]
    assert WizardStep.PREVIEW.label == "معاينة وتصدير"


def test_snapshot_serialises_with_camel_case():
    snap = WizardSnapshot(step=WizardStep.FILE_UPLOAD, step_index=1)
    data = snap.model_dump(by_alias=True, mode="json")

    assert data["step"] == "FILE_UPLOAD"
    assert data["stepIndex"] == 1
    assert data["isLoading"] is False
    assert len(data["steps"]) == 4
