"""
Скрипт инициализации базы данных
Создаёт таблицы и добавляет демо-барбершоп с расписанием, барберами и услугами
"""
import sys
sys.path.insert(0, '.')

from datetime import time

from barbershop.database import SessionLocal, init_db
from barbershop.models import Barbershop, Barber, Service, BarberService
from barbershop.services.schedule import ScheduleService

# Начальные услуги
INITIAL_SERVICES = [
    {"name": "Мужская стрижка", "duration_minutes": 45, "price": 1500, "category": "Стрижка"},
    {"name": "Стрижка машинкой", "duration_minutes": 30, "price": 900, "category": "Стрижка"},
    {"name": "Оформление бороды", "duration_minutes": 30, "price": 1000, "category": "Борода"},
    {"name": "Стрижка + борода", "duration_minutes": 75, "price": 2300, "category": "Комплекс"},
    {"name": "Королевское бритьё", "duration_minutes": 45, "price": 1400, "category": "Борода"},
]

INITIAL_BARBERS = ["Артём", "Никита"]


def init_demo_shop():
    """Добавить демо-барбершоп, если база пустая"""
    db = SessionLocal()
    try:
        existing = db.query(Barbershop).count()
        if existing > 0:
            print(f"Барбершопы уже существуют ({existing} шт.), пропускаем...")
            return

        shop = Barbershop(name="Demo Barbershop", phone="+79000000000")
        db.add(shop)
        db.commit()
        db.refresh(shop)

        services = [Service(barbershop_id=shop.id, **data) for data in INITIAL_SERVICES]
        barbers = [Barber(barbershop_id=shop.id, name=name) for name in INITIAL_BARBERS]
        db.add_all(services + barbers)
        db.commit()

        # Каждый барбер выполняет все услуги по базовой цене
        for barber in barbers:
            for service in services:
                db.add(BarberService(barber_id=barber.id, service_id=service.id))
        db.commit()

        schedule_service = ScheduleService(db)
        # Пн-Пт 10:00-20:00 с обедом, Сб 10:00-18:00, Вс выходной
        for day in range(5):
            schedule_service.set_global_schedule(
                shop.id, day, time(10, 0), time(20, 0),
                lunch_start=time(14, 0), lunch_end=time(15, 0)
            )
        schedule_service.set_global_schedule(shop.id, 5, time(10, 0), time(18, 0))
        schedule_service.set_global_schedule(shop.id, 6, time(10, 0), time(18, 0), is_open=False)

        print(f"Добавлен барбершоп #{shop.id}: {len(barbers)} барбера, {len(services)} услуг")

    finally:
        db.close()


if __name__ == "__main__":
    print("Создание таблиц...")
    init_db()
    print("Таблицы созданы!")
    init_demo_shop()
    print("\nИнициализация завершена!")
    print("Теперь можно запустить сервер: python -m uvicorn barbershop.main:app --reload")
