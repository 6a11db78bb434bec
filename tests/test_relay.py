from __future__ import annotations

import pytest
from pydantic import ValidationError

from modules.confirmacao.core import relay
from modules.confirmacao.core.schemas import (
    ConfirmationAgendamento,
    ConfirmationBody,
    ConfirmationMinimal,
)

APPOINTMENT_ID = "3fa85f64-5717-4562-b3fc-2c963f66afa6"


def test_flat_body_is_parsed_as_minimal_shape() -> None:
    body = ConfirmationBody.validate_python(
        {
            "appointmentId": APPOINTMENT_ID,
            "phone": "5511988887777",
            "patientName": "Maria",
            "scheduledAt": "2026-01-20 18:00:00+00",
            "serviceName": "Peeling",
        }
    )

    assert isinstance(body, ConfirmationMinimal)
    normalized = relay.normalize_confirmation(body)
    assert normalized.appointment_id == APPOINTMENT_ID
    assert normalized.professional_name == ""
    assert normalized.price is None


def test_nested_body_falls_back_to_defaults() -> None:
    body = ConfirmationBody.validate_python(
        {"agendamento": {"id": APPOINTMENT_ID, "phone": "5511988887777"}}
    )

    assert isinstance(body, ConfirmationAgendamento)
    normalized = relay.normalize_confirmation(body)
    assert normalized.patient_name == "Paciente"
    assert normalized.service_name == "Consulta"
    assert normalized.scheduled_at == ""


def test_english_name_wins_over_portuguese_synonym() -> None:
    body = ConfirmationBody.validate_python(
        {
            "agendamento": {
                "id": APPOINTMENT_ID,
                "phone": "5511988887777",
                "patientName": "Maria",
                "nome": "Maria S.",
                "price": 150.5,
            }
        }
    )

    normalized = relay.normalize_confirmation(body)
    assert normalized.patient_name == "Maria"
    assert normalized.price == 150.5


@pytest.mark.parametrize(
    "raw",
    [
        {"appointmentId": "nao-e-uuid", "phone": "5511988887777", "patientName": "M", "scheduledAt": "", "serviceName": "S"},
        {"agendamento": {"id": APPOINTMENT_ID, "phone": "123"}},
        {"agendamento": {"id": APPOINTMENT_ID, "phone": "5511988887777", "duracao": "30"}},
        ["nao", "e", "objeto"],
    ],
)
def test_invalid_shapes_are_rejected(raw) -> None:
    with pytest.raises(ValidationError):
        ConfirmationBody.validate_python(raw)


def test_payload_duplicates_every_key_spelling() -> None:
    normalized = relay.NormalizedConfirmation(
        appointment_id=APPOINTMENT_ID,
        phone="5511988887777",
        patient_name="Maria",
        scheduled_at="2026-01-20 18:00:00+00",
        service_name="Peeling",
        professional_name="Dra. Ana",
        duracao=30,
    )

    payload = relay.build_confirmation_payload(normalized, user_id="user-1")

    assert payload["user_id"] == "user-1"
    assert set(payload["agendamento"]) == {
        "id", "appointmentId", "appointment_id", "phone",
        "patientName", "nome", "patient_name",
        "scheduledAt", "scheduled_at",
        "serviceName", "service_name",
        "professionalName", "professional_name",
        "duracao", "price", "notes",
    }
    assert payload["agendamento"]["professional_name"] == "Dra. Ana"


@pytest.mark.parametrize("extra", [None, {"id": APPOINTMENT_ID, "phone": "5511900000000"}])
def test_valid_flat_body_wins_even_with_agendamento_key(extra) -> None:
    body = ConfirmationBody.validate_python(
        {
            "appointmentId": APPOINTMENT_ID,
            "phone": "5511988887777",
            "patientName": "Maria",
            "scheduledAt": "2026-01-20 18:00:00+00",
            "serviceName": "Peeling",
            "agendamento": extra,
        }
    )

    assert isinstance(body, ConfirmationMinimal)
    assert relay.normalize_confirmation(body).phone == "5511988887777"


@pytest.mark.parametrize(
    "appointment_id",
    [
        "3fa85f6457174562b3fc2c963f66afa6",
        "{3fa85f64-5717-4562-b3fc-2c963f66afa6}",
        "urn:uuid:3fa85f64-5717-4562-b3fc-2c963f66afa6",
    ],
)
def test_non_canonical_uuid_forms_are_rejected(appointment_id) -> None:
    with pytest.raises(ValidationError):
        ConfirmationBody.validate_python(
            {"agendamento": {"id": appointment_id, "phone": "5511988887777"}}
        )


def test_uuid_is_forwarded_exactly_as_received() -> None:
    upper = APPOINTMENT_ID.upper()
    body = ConfirmationBody.validate_python({"agendamento": {"id": upper, "phone": "5511988887777"}})

    payload = relay.build_confirmation_payload(relay.normalize_confirmation(body), user_id="user-1")

    assert payload["agendamento"]["id"] == upper
    assert payload["agendamento"]["appointment_id"] == upper
