"""
Общие фикстуры тестов: SQLite в памяти и фабрики данных
"""
import os

# До импорта приложения: движок из настроек не должен создавать файл БД
os.environ["DATABASE_URL"] = "sqlite://"

from datetime import date, datetime, time, timedelta
from decimal import Decimal
from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from barbershop.database import Base, init_db
from barbershop.models import Appointment, Barbershop, Barber, Client, Service, BarberService
from barbershop.services.schedule import ScheduleService

# 2030-01-07 - понедельник
MONDAY = date(2030, 1, 7)
TUESDAY = date(2030, 1, 8)
SUNDAY = date(2030, 1, 13)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


def make_shop(db, name="Test Barbershop"):
    shop = Barbershop(name=name)
    db.add(shop)
    db.commit()
    db.refresh(shop)
    return shop


def make_barber(db, shop, name="Test Barber", is_active=True):
    barber = Barber(barbershop_id=shop.id, name=name, is_active=is_active)
    db.add(barber)
    db.commit()
    db.refresh(barber)
    return barber


def make_service(db, shop, name="Мужская стрижка", duration=30, price="25.00", is_active=True):
    service = Service(
        barbershop_id=shop.id,
        name=name,
        duration_minutes=duration,
        price=Decimal(price),
        is_active=is_active
    )
    db.add(service)
    db.commit()
    db.refresh(service)
    return service


def assign(db, barber, service, custom_price=None, is_active=True):
    assignment = BarberService(
        barber_id=barber.id,
        service_id=service.id,
        custom_price=Decimal(custom_price) if custom_price is not None else None,
        is_active=is_active
    )
    db.add(assignment)
    db.commit()
    return assignment


def make_client(db, name="Test Client", phone="+79990000001"):
    client = Client(name=name, phone=phone)
    db.add(client)
    db.commit()
    db.refresh(client)
    return client


@pytest.fixture
def setup(db):
    """
    Барбершоп: Пн 09:00-18:00 с обедом 12:00-13:00.
    Барбер: персональные часы Пн 08:00-19:00 без перерыва.
    Услуга 30 минут за 25, у барбера индивидуальная цена 30.
    Второй барбер работает по расписанию барбершопа.
    """
    shop = make_shop(db)
    barber = make_barber(db, shop)
    second_barber = make_barber(db, shop, name="Second Barber")
    service = make_service(db, shop)
    assign(db, barber, service, custom_price="30.00")
    assign(db, second_barber, service)
    client = make_client(db)

    schedule = ScheduleService(db)
    schedule.set_global_schedule(
        shop.id, MONDAY.weekday(), time(9, 0), time(18, 0),
        lunch_start=time(12, 0), lunch_end=time(13, 0)
    )
    schedule.set_barber_schedule(barber.id, MONDAY.weekday(), time(8, 0), time(19, 0))

    return SimpleNamespace(
        shop=shop,
        barber=barber,
        second_barber=second_barber,
        service=service,
        client=client
    )


def make_appointment(db, setup, start, minutes=30, status="SCHEDULED", price="30.00", barber=None):
    """Запись напрямую в БД, в обход проверок сервиса"""
    appointment = Appointment(
        barbershop_id=setup.shop.id,
        barber_id=(barber or setup.barber).id,
        client_id=setup.client.id,
        service_id=setup.service.id,
        start_time=start,
        end_time=start + timedelta(minutes=minutes),
        total_price=Decimal(price),
        status=status
    )
    db.add(appointment)
    db.commit()
    db.refresh(appointment)
    return appointment


def at(day, hour, minute=0):
    return datetime.combine(day, time(hour, minute))
