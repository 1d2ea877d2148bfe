from datetime import date

import pytest
from fastapi import HTTPException
from pydantic import ValidationError

from scheduler.models.appointment import Appointment
from scheduler.routes.appointment_routes import (
    book_appointment,
    change_appointment_status,
    list_booked_slots,
    list_doctor_appointments,
    list_patient_appointments,
)
from scheduler.schemas.appointment import BookAppointmentRequest, StatusUpdateRequest


@pytest.fixture(autouse=True)
def skip_schema_checks(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr('scheduler.routes.appointment_routes.ensure_database_ready', lambda: None)


def request_for(doctor_id: str, patient_id: str, slot_time: str = '09:00') -> BookAppointmentRequest:
    return BookAppointmentRequest(doctor_id=doctor_id, patient_id=patient_id, date=date(2026, 1, 6), time=slot_time)


def test_book_appointment_request_normalizes_fields() -> None:
    request = BookAppointmentRequest(
        doctor_id=' doc-1 ',
        patient_id='patient-1',
        date='2026-01-06',
        time=' 09:05 ',
        status=' Pending ',
        examination_method=' Online ',
        notes='   ',
    )

    assert request.doctor_id == 'doc-1'
    assert request.time == '09:05'
    assert request.status == 'pending'
    assert request.examination_method == 'online'
    assert request.notes is None


@pytest.mark.parametrize(
    'overrides',
    [
        {'time': '9:00'},
        {'time': '24:00'},
        {'status': 'done'},
        {'status': 'cancelled'},
        {'examination_method': 'teleport'},
        {'doctor_id': '   '},
        {'date': '2026-02-30'},
        {'patient_model': 'Robot'},
        {'notes': 'x' * 601},
        {'total_cost': -1},
    ],
)
def test_book_appointment_request_rejects_invalid_input(overrides: dict) -> None:
    payload = {'doctor_id': 'doc-1', 'patient_id': 'patient-1', 'date': '2026-01-06', 'time': '09:00'}
    payload.update(overrides)

    with pytest.raises(ValidationError):
        BookAppointmentRequest(**payload)


def test_book_appointment_route_creates_and_then_conflicts(db, cache, make_doctor, make_user) -> None:
    doctor = make_doctor()
    first = make_user('An')
    second = make_user('Binh')

    result = book_appointment(data=request_for(doctor.id, first.id), db=db, cache=cache)
    assert result.appointment.status == 'pending'

    with pytest.raises(HTTPException) as exception_info:
        book_appointment(data=request_for(doctor.id, second.id), db=db, cache=cache)

    assert exception_info.value.status_code == 409
    assert exception_info.value.detail == 'This time slot is already booked.'


def test_book_appointment_route_rejects_self_booking(db, cache, make_doctor) -> None:
    doctor = make_doctor()

    with pytest.raises(HTTPException) as exception_info:
        book_appointment(data=request_for(doctor.id, doctor.id), db=db, cache=cache)

    assert exception_info.value.status_code == 409


def test_book_appointment_route_unknown_doctor(db, cache, make_user) -> None:
    patient = make_user()

    with pytest.raises(HTTPException) as exception_info:
        book_appointment(data=request_for('missing', patient.id), db=db, cache=cache)

    assert exception_info.value.status_code == 404


def test_booked_slots_route_returns_active_appointments_in_window(db, make_doctor, make_user) -> None:
    doctor = make_doctor()
    patient = make_user()
    rows = [
        (date(2026, 1, 5), '10:00', 'confirmed'),
        (date(2026, 1, 6), '09:00', 'pending'),
        (date(2026, 1, 6), '09:30', 'cancelled'),
        (date(2026, 1, 7), '11:00', 'done'),
        (date(2026, 1, 8), '09:00', 'pending'),
    ]
    for slot_date, slot_time, status in rows:
        db.add(Appointment(doctor_id=doctor.id, patient_id=patient.id, date=slot_date, time=slot_time, status=status))
    db.commit()

    slots = list_booked_slots(doctor_id=doctor.id, start_date='2026-01-05', end_date='2026-01-08', db=db)

    assert [(slot.date, slot.time) for slot in slots] == [
        (date(2026, 1, 5), '10:00'),
        (date(2026, 1, 6), '09:00'),
        (date(2026, 1, 7), '11:00'),
    ]


@pytest.mark.parametrize(
    ('start_date', 'end_date'),
    [
        ('', '2026-01-08'),
        ('2026-01-05', 'soon'),
        ('2026-01-08', '2026-01-05'),
    ],
)
def test_booked_slots_route_rejects_bad_window(db, start_date: str, end_date: str) -> None:
    with pytest.raises(HTTPException) as exception_info:
        list_booked_slots(doctor_id='doc-1', start_date=start_date, end_date=end_date, db=db)

    assert exception_info.value.status_code == 400


def test_change_status_route_rejects_illegal_transition(db, cache, make_doctor, make_user) -> None:
    doctor = make_doctor()
    patient = make_user()
    booked = book_appointment(data=request_for(doctor.id, patient.id), db=db, cache=cache)
    appointment_id = booked.appointment.id

    done = change_appointment_status(
        appointment_id=appointment_id,
        data=StatusUpdateRequest(status='done'),
        db=db,
        cache=cache,
    )
    assert done.status == 'done'

    with pytest.raises(HTTPException) as exception_info:
        change_appointment_status(
            appointment_id=appointment_id,
            data=StatusUpdateRequest(status='cancelled'),
            db=db,
            cache=cache,
        )

    assert exception_info.value.status_code == 409


def test_change_status_route_unknown_appointment(db, cache) -> None:
    with pytest.raises(HTTPException) as exception_info:
        change_appointment_status(appointment_id=999, data=StatusUpdateRequest(status='done'), db=db, cache=cache)

    assert exception_info.value.status_code == 404


def test_status_update_request_rejects_unknown_status() -> None:
    with pytest.raises(ValidationError):
        StatusUpdateRequest(status='archived')


def test_listing_routes(db, cache, make_doctor, make_user) -> None:
    doctor = make_doctor()
    patient = make_user()
    book_appointment(data=request_for(doctor.id, patient.id), db=db, cache=cache)

    assert len(list_doctor_appointments(doctor_id=doctor.id, db=db, cache=cache)) == 1
    assert len(list_patient_appointments(patient_id=patient.id, db=db, cache=cache)) == 1

    with pytest.raises(HTTPException) as exception_info:
        list_doctor_appointments(doctor_id='missing', db=db, cache=cache)

    assert exception_info.value.status_code == 404
