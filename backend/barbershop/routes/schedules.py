"""
API роутер для расписаний, исключений и доступности барберов
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from datetime import date, time
from typing import Optional, List

from ..database import get_db
from ..errors import NotFoundError
from ..models import ExceptionType
from ..services.schedule import ScheduleService
from ..services.slots import SlotGenerator

router = APIRouter(prefix="/api", tags=["schedules"])


# ==================== Pydantic Schemas ====================

class GlobalScheduleIn(BaseModel):
    is_open: bool = True
    open_time: time
    close_time: time
    lunch_start: Optional[time] = None
    lunch_end: Optional[time] = None


class GlobalScheduleOut(GlobalScheduleIn):
    id: int
    barbershop_id: int
    day_of_week: int

    class Config:
        from_attributes = True


class BarberScheduleIn(BaseModel):
    is_working: bool = True
    start_time: time
    end_time: time
    break_start: Optional[time] = None
    break_end: Optional[time] = None


class BarberScheduleOut(BarberScheduleIn):
    id: int
    barber_id: int
    day_of_week: int

    class Config:
        from_attributes = True


class GlobalExceptionIn(BaseModel):
    date: date
    type: ExceptionType
    reason: Optional[str] = Field(None, max_length=255)
    special_open_time: Optional[time] = None
    special_close_time: Optional[time] = None


class GlobalExceptionOut(GlobalExceptionIn):
    id: int
    barbershop_id: int

    class Config:
        from_attributes = True


class BarberExceptionIn(BaseModel):
    date: date
    type: ExceptionType
    reason: Optional[str] = Field(None, max_length=255)
    special_start_time: Optional[time] = None
    special_end_time: Optional[time] = None


class BarberExceptionOut(BarberExceptionIn):
    id: int
    barber_id: int

    class Config:
        from_attributes = True


class WorkingHoursResponse(BaseModel):
    date: date
    is_working: bool
    working_hours: Optional[dict] = None  # {"start": "09:00", "end": "18:00", ...}


# ==================== Расписание барбершопа ====================

@router.get("/shops/{shop_id}/schedules", response_model=List[GlobalScheduleOut])
async def list_shop_schedules(shop_id: int, db: Session = Depends(get_db)):
    """Недельное расписание барбершопа"""
    return ScheduleService(db).list_global_schedules(shop_id)


@router.put("/shops/{shop_id}/schedules/{day_of_week}", response_model=GlobalScheduleOut)
async def set_shop_schedule(
    shop_id: int,
    day_of_week: int,
    data: GlobalScheduleIn,
    db: Session = Depends(get_db)
):
    """Установить часы работы барбершопа на день недели (0=Пн)"""
    return ScheduleService(db).set_global_schedule(shop_id, day_of_week, **data.model_dump())


@router.delete("/shops/{shop_id}/schedules/{day_of_week}", status_code=204)
async def delete_shop_schedule(shop_id: int, day_of_week: int, db: Session = Depends(get_db)):
    if not ScheduleService(db).delete_global_schedule(shop_id, day_of_week):
        raise NotFoundError("Расписание на этот день не задано")


@router.post("/shops/{shop_id}/exceptions", response_model=GlobalExceptionOut, status_code=201)
async def add_shop_exception(shop_id: int, data: GlobalExceptionIn, db: Session = Depends(get_db)):
    """Закрыть барбершоп или задать особые часы на дату"""
    return ScheduleService(db).add_global_exception(
        shop_id,
        data.date,
        data.type,
        reason=data.reason,
        special_open_time=data.special_open_time,
        special_close_time=data.special_close_time
    )


@router.get("/shops/{shop_id}/exceptions", response_model=List[GlobalExceptionOut])
async def list_shop_exceptions(
    shop_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    return ScheduleService(db).list_global_exceptions(shop_id, start_date, end_date)


@router.delete("/shops/exceptions/{exception_id}", status_code=204)
async def delete_shop_exception(exception_id: int, db: Session = Depends(get_db)):
    ScheduleService(db).delete_global_exception(exception_id)


@router.get("/shops/{shop_id}/availability")
async def get_shop_availability(
    shop_id: int,
    date: date = Query(..., description="YYYY-MM-DD"),
    barber_id: Optional[int] = Query(None),
    service_duration: Optional[int] = Query(None, ge=1, le=600),
    db: Session = Depends(get_db)
):
    """Доступность барберов барбершопа на дату"""
    return {
        "date": date.isoformat(),
        "barbershop_id": shop_id,
        "barbers": SlotGenerator(db).get_shop_availability(shop_id, date, barber_id, service_duration),
    }


# ==================== Расписание барбера ====================

@router.get("/barbers/{barber_id}/schedules", response_model=List[BarberScheduleOut])
async def list_barber_schedules(barber_id: int, db: Session = Depends(get_db)):
    """Персональное недельное расписание барбера"""
    return ScheduleService(db).list_barber_schedules(barber_id)


@router.put("/barbers/{barber_id}/schedules/{day_of_week}", response_model=BarberScheduleOut)
async def set_barber_schedule(
    barber_id: int,
    day_of_week: int,
    data: BarberScheduleIn,
    db: Session = Depends(get_db)
):
    """Установить персональные часы барбера на день недели (0=Пн)"""
    return ScheduleService(db).set_barber_schedule(barber_id, day_of_week, **data.model_dump())


@router.delete("/barbers/{barber_id}/schedules/{day_of_week}", status_code=204)
async def delete_barber_schedule(barber_id: int, day_of_week: int, db: Session = Depends(get_db)):
    """Убрать персональные часы: барбер снова работает по расписанию барбершопа"""
    if not ScheduleService(db).delete_barber_schedule(barber_id, day_of_week):
        raise NotFoundError("Расписание на этот день не задано")


@router.post("/barbers/{barber_id}/exceptions", response_model=BarberExceptionOut, status_code=201)
async def add_barber_exception(barber_id: int, data: BarberExceptionIn, db: Session = Depends(get_db)):
    """Выходной, отпуск или особые часы барбера на дату"""
    return ScheduleService(db).add_barber_exception(
        barber_id,
        data.date,
        data.type,
        reason=data.reason,
        special_start_time=data.special_start_time,
        special_end_time=data.special_end_time
    )


@router.get("/barbers/{barber_id}/exceptions", response_model=List[BarberExceptionOut])
async def list_barber_exceptions(
    barber_id: int,
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    db: Session = Depends(get_db)
):
    return ScheduleService(db).list_barber_exceptions(barber_id, start_date, end_date)


@router.delete("/barbers/exceptions/{exception_id}", status_code=204)
async def delete_barber_exception(exception_id: int, db: Session = Depends(get_db)):
    ScheduleService(db).delete_barber_exception(exception_id)


@router.get("/barbers/{barber_id}/working-hours", response_model=WorkingHoursResponse)
async def get_working_hours(
    barber_id: int,
    shop_id: int = Query(...),
    date: date = Query(..., description="YYYY-MM-DD"),
    db: Session = Depends(get_db)
):
    """Эффективные рабочие часы барбера на дату"""
    hours = ScheduleService(db).resolve_working_hours(barber_id, shop_id, date)
    return WorkingHoursResponse(
        date=date,
        is_working=hours is not None,
        working_hours=hours.to_dict() if hours else None
    )
