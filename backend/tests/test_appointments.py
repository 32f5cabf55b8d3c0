import logging
from datetime import datetime, time, timedelta, timezone
from decimal import Decimal

import pytest

from barbershop.config import get_settings
from barbershop.errors import ConflictError, InvalidStatusTransition, NotFoundError, ValidationError
from barbershop.models import AppointmentStatus, ExceptionType
from barbershop.services.appointments import AppointmentService
from barbershop.services.filters import AppointmentFilters
from barbershop.services.schedule import ScheduleService, to_shop_time
from barbershop.services.status import can_transition, is_terminal
from conftest import (
    MONDAY,
    SUNDAY,
    TUESDAY,
    assign,
    at,
    make_appointment,
    make_barber,
    make_client,
    make_service,
)


def book(db, setup, start, barber=None, service=None, **kwargs):
    return AppointmentService(db).create(
        shop_id=setup.shop.id,
        barber_id=(barber or setup.barber).id,
        client_id=setup.client.id,
        service_id=(service or setup.service).id,
        start_time=start,
        **kwargs
    )


# ==================== Создание ====================

def test_booking_scenario(db, setup):
    appointment = book(db, setup, at(MONDAY, 8, 30))
    assert appointment.end_time == at(MONDAY, 9, 0)
    assert appointment.status == AppointmentStatus.SCHEDULED.value

    with pytest.raises(ValidationError):
        book(db, setup, at(MONDAY, 7, 0))

    with pytest.raises(ConflictError) as exc_info:
        book(db, setup, at(MONDAY, 8, 45))
    assert exc_info.value.conflict_start == at(MONDAY, 8, 30)
    assert exc_info.value.service_name == setup.service.name


def test_price_uses_custom_price_and_is_snapshotted(db, setup):
    custom = book(db, setup, at(MONDAY, 10, 0))
    base = book(db, setup, at(MONDAY, 10, 0), barber=setup.second_barber)
    assert custom.total_price == Decimal("30.00")
    assert base.total_price == Decimal("25.00")

    setup.service.price = Decimal("99.00")
    setup.service.duration_minutes = 90
    db.commit()

    db.refresh(base)
    assert base.total_price == Decimal("25.00")
    assert base.duration_minutes == 30


def test_zero_custom_price_is_kept(db, setup):
    service = make_service(db, setup.shop, name="Консультация", duration=15, price="10.00")
    assign(db, setup.barber, service, custom_price="0.00")
    appointment = book(db, setup, at(MONDAY, 10, 0), service=service)
    assert appointment.total_price == Decimal("0.00")


def test_touching_appointments_are_allowed(db, setup):
    book(db, setup, at(MONDAY, 10, 0))
    second = book(db, setup, at(MONDAY, 10, 30))
    assert second.start_time == at(MONDAY, 10, 30)


def test_booking_must_fit_working_hours(db, setup):
    with pytest.raises(ValidationError):
        book(db, setup, at(MONDAY, 18, 45))
    # Ровно до конца рабочего дня можно
    assert book(db, setup, at(MONDAY, 18, 30)).end_time == at(MONDAY, 19, 0)


def test_lunch_break_from_shop_schedule(db, setup):
    with pytest.raises(ValidationError) as exc_info:
        book(db, setup, at(MONDAY, 11, 45), barber=setup.second_barber)
    assert "перерыв" in exc_info.value.message

    assert book(db, setup, at(MONDAY, 11, 30), barber=setup.second_barber)
    assert book(db, setup, at(MONDAY, 13, 0), barber=setup.second_barber)


def test_not_working_days(db, setup):
    with pytest.raises(ValidationError):
        book(db, setup, at(SUNDAY, 10, 0))
    with pytest.raises(ValidationError):
        book(db, setup, at(TUESDAY, 10, 0))

    ScheduleService(db).add_barber_exception(
        setup.barber.id, TUESDAY, ExceptionType.AVAILABLE,
        special_start_time=time(10, 0), special_end_time=time(12, 0)
    )
    assert book(db, setup, at(TUESDAY, 10, 0))


def test_missing_references(db, setup):
    service = AppointmentService(db)
    kwargs = dict(
        shop_id=setup.shop.id,
        barber_id=setup.barber.id,
        client_id=setup.client.id,
        service_id=setup.service.id,
        start_time=at(MONDAY, 10, 0)
    )

    with pytest.raises(NotFoundError):
        service.create(**{**kwargs, "barber_id": 999})
    with pytest.raises(NotFoundError):
        service.create(**{**kwargs, "client_id": 999})
    with pytest.raises(ValidationError):
        service.create(**{**kwargs, "service_id": 999})


def test_inactive_barber_and_service(db, setup):
    inactive_barber = make_barber(db, setup.shop, name="Inactive", is_active=False)
    assign(db, inactive_barber, setup.service)
    with pytest.raises(NotFoundError):
        book(db, setup, at(MONDAY, 10, 0), barber=inactive_barber)

    inactive_service = make_service(db, setup.shop, name="Архив", is_active=False)
    assign(db, setup.barber, inactive_service)
    with pytest.raises(NotFoundError):
        book(db, setup, at(MONDAY, 10, 0), service=inactive_service)


def test_barber_must_perform_service(db, setup):
    other = make_service(db, setup.shop, name="Окрашивание", duration=60)
    with pytest.raises(ValidationError):
        book(db, setup, at(MONDAY, 10, 0), service=other)

    assign(db, setup.second_barber, other, is_active=False)
    with pytest.raises(ValidationError):
        book(db, setup, at(MONDAY, 10, 0), barber=setup.second_barber, service=other)


def test_cancelled_appointment_frees_time(db, setup):
    first = book(db, setup, at(MONDAY, 10, 0))
    AppointmentService(db).cancel(first.id, reason="Клиент заболел")

    second = book(db, setup, at(MONDAY, 10, 0))
    assert second.id != first.id
    assert AppointmentService(db).get(first.id).notes == "Клиент заболел"


def test_get_unknown_appointment(db, setup):
    with pytest.raises(NotFoundError):
        AppointmentService(db).get(999)


# ==================== Перенос ====================

def test_reschedule_ignores_own_interval(db, setup):
    appointment = book(db, setup, at(MONDAY, 10, 0))
    moved = AppointmentService(db).update(appointment.id, start_time=at(MONDAY, 10, 15))
    assert (moved.start_time, moved.end_time) == (at(MONDAY, 10, 15), at(MONDAY, 10, 45))


def test_reschedule_conflict_and_hours(db, setup):
    appointment = book(db, setup, at(MONDAY, 10, 0))
    book(db, setup, at(MONDAY, 11, 0))
    service = AppointmentService(db)

    with pytest.raises(ConflictError):
        service.update(appointment.id, start_time=at(MONDAY, 10, 45))
    with pytest.raises(ValidationError):
        service.update(appointment.id, start_time=at(MONDAY, 18, 45))

    unchanged = service.get(appointment.id)
    assert unchanged.start_time == at(MONDAY, 10, 0)


def test_reschedule_keeps_booked_duration(db, setup):
    appointment = book(db, setup, at(MONDAY, 10, 0))
    setup.service.duration_minutes = 60
    db.commit()

    moved = AppointmentService(db).update(appointment.id, start_time=at(MONDAY, 14, 0))
    assert moved.end_time == at(MONDAY, 14, 30)


def test_update_notes_only(db, setup):
    appointment = book(db, setup, at(MONDAY, 10, 0), notes="Первый визит")
    updated = AppointmentService(db).update(appointment.id, notes="Коротко по бокам")
    assert updated.notes == "Коротко по бокам"
    assert updated.start_time == at(MONDAY, 10, 0)


# ==================== Статусы ====================

def test_full_lifecycle(db, setup):
    service = AppointmentService(db)
    appointment = book(db, setup, at(MONDAY, 10, 0))

    assert service.confirm(appointment.id).status == "CONFIRMED"
    assert service.start_service(appointment.id).status == "IN_PROGRESS"
    completed = service.complete(appointment.id, notes="Всё отлично")
    assert completed.status == "COMPLETED"
    assert completed.notes == "Всё отлично"


@pytest.mark.parametrize("current, new, allowed", [
    ("SCHEDULED", "CONFIRMED", True),
    ("SCHEDULED", "IN_PROGRESS", True),
    ("CONFIRMED", "NO_SHOW", True),
    ("IN_PROGRESS", "COMPLETED", True),
    ("CONFIRMED", "CONFIRMED", True),
    ("SCHEDULED", "COMPLETED", False),
    ("IN_PROGRESS", "CANCELLED", False),
    ("COMPLETED", "SCHEDULED", False),
    ("CANCELLED", "CONFIRMED", False),
    ("NO_SHOW", "IN_PROGRESS", False),
])
def test_transition_table(current, new, allowed):
    assert can_transition(current, new) is allowed


def test_terminal_statuses():
    assert {status for status in AppointmentStatus if is_terminal(status)} == {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    }


def test_invalid_transition_is_rejected(db, setup):
    service = AppointmentService(db, enforce_transitions=True)
    appointment = book(db, setup, at(MONDAY, 10, 0))
    service.cancel(appointment.id)

    with pytest.raises(InvalidStatusTransition):
        service.confirm(appointment.id)
    with pytest.raises(ValidationError):
        service.update(appointment.id, start_time=at(MONDAY, 11, 0))


def test_permissive_mode_allows_any_status(db, setup):
    service = AppointmentService(db, enforce_transitions=False)
    appointment = book(db, setup, at(MONDAY, 10, 0))

    assert service.complete(appointment.id).status == "COMPLETED"
    assert service.update(appointment.id, status="SCHEDULED").status == "SCHEDULED"


def test_unknown_status(db, setup):
    appointment = book(db, setup, at(MONDAY, 10, 0))
    with pytest.raises(ValidationError):
        AppointmentService(db).update(appointment.id, status="LOST")


# ==================== Выборки ====================

def test_list_filters_and_pagination(db, setup):
    other_client = make_client(db, name="Other", phone="+79990000002")
    for hour in (10, 11, 14):
        make_appointment(db, setup, at(MONDAY, hour))
    make_appointment(db, setup, at(MONDAY, 15), status="CANCELLED")
    tuesday = make_appointment(db, setup, at(TUESDAY, 10))
    tuesday.client_id = other_client.id
    db.commit()

    service = AppointmentService(db)

    page = service.list_appointments(AppointmentFilters(start_date=MONDAY, end_date=MONDAY, take=2))
    assert page.total == 4
    assert page.has_more is True
    assert [apt.start_time for apt in page.items] == [at(MONDAY, 10), at(MONDAY, 11)]

    last = service.list_appointments(AppointmentFilters(start_date=MONDAY, end_date=MONDAY, skip=2, take=2))
    assert last.has_more is False
    assert len(last.items) == 2

    cancelled = service.list_appointments(AppointmentFilters(status=AppointmentStatus.CANCELLED))
    assert [apt.start_time for apt in cancelled.items] == [at(MONDAY, 15)]

    by_client = service.list_appointments(AppointmentFilters(client_id=other_client.id))
    assert [apt.id for apt in by_client.items] == [tuesday.id]

    newest_first = service.list_appointments(AppointmentFilters(order_direction="desc"))
    assert newest_first.items[0].id == tuesday.id


def test_list_rejects_unknown_ordering(db, setup):
    with pytest.raises(ValidationError):
        AppointmentService(db).list_appointments(AppointmentFilters(order_by="price"))


# ==================== Часовые пояса ====================

MSK = timezone(timedelta(hours=3))


@pytest.fixture
def moscow_shop(monkeypatch):
    monkeypatch.setattr(get_settings(), "SHOP_TIMEZONE", "Europe/Moscow")


def test_to_shop_time(moscow_shop):
    naive = datetime(2030, 1, 7, 8, 30)
    assert to_shop_time(naive) is naive
    assert to_shop_time(datetime(2030, 1, 7, 5, 30, tzinfo=timezone.utc)) == naive
    assert to_shop_time(datetime(2030, 1, 7, 8, 30, tzinfo=MSK)) == naive


def test_same_instant_in_other_zone_conflicts(db, setup, moscow_shop):
    appointment = book(db, setup, datetime(2030, 1, 7, 8, 30, tzinfo=MSK))
    assert appointment.start_time == at(MONDAY, 8, 30)
    assert appointment.start_time.tzinfo is None

    with pytest.raises(ConflictError):
        book(db, setup, datetime(2030, 1, 7, 5, 30, tzinfo=timezone.utc))
    with pytest.raises(ConflictError):
        book(db, setup, datetime(2030, 1, 7, 5, 45, tzinfo=timezone.utc))


def test_working_hours_checked_in_shop_time(db, setup, moscow_shop):
    # 04:30 UTC = 07:30 по Москве, до начала рабочего дня
    with pytest.raises(ValidationError):
        book(db, setup, datetime(2030, 1, 7, 4, 30, tzinfo=timezone.utc))


def test_reschedule_with_zone(db, setup, moscow_shop):
    appointment = book(db, setup, at(MONDAY, 10, 0))
    moved = AppointmentService(db).update(
        appointment.id, start_time=datetime(2030, 1, 7, 11, 0, tzinfo=timezone.utc)
    )
    assert (moved.start_time, moved.end_time) == (at(MONDAY, 14, 0), at(MONDAY, 14, 30))

    book(db, setup, at(MONDAY, 16, 0))
    with pytest.raises(ConflictError):
        AppointmentService(db).update(
            appointment.id, start_time=datetime(2030, 1, 7, 13, 15, tzinfo=timezone.utc)
        )


# ==================== Журнал ====================

@pytest.mark.parametrize("hour, minute, barber_attr", [
    (7, 0, "barber"),           # до начала рабочего дня
    (11, 45, "second_barber"),  # задевает обед
])
def test_rejected_booking_is_logged(db, setup, caplog, hour, minute, barber_attr):
    with caplog.at_level(logging.WARNING, logger="barbershop.services.appointments"):
        with pytest.raises(ValidationError):
            book(db, setup, at(MONDAY, hour, minute), barber=getattr(setup, barber_attr))

    assert any(
        record.levelno == logging.WARNING and "Отказ в записи" in record.getMessage()
        for record in caplog.records
    )


def test_not_working_day_is_logged(db, setup, caplog):
    with caplog.at_level(logging.WARNING, logger="barbershop.services.appointments"):
        with pytest.raises(ValidationError):
            book(db, setup, at(SUNDAY, 10, 0))
    assert "не работает" in caplog.text


def test_reschedule_with_status_change_logs_both(db, setup, caplog):
    appointment = book(db, setup, at(MONDAY, 10, 0))

    with caplog.at_level(logging.INFO, logger="barbershop.services.appointments"):
        AppointmentService(db).update(appointment.id, start_time=at(MONDAY, 11, 0), status="CONFIRMED")

    assert "перенесена" in caplog.text
    assert "SCHEDULED -> CONFIRMED" in caplog.text
