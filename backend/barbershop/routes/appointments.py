"""
API роутер для записей к барберам
"""
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field
from datetime import date, datetime
from typing import Optional, List

from ..database import get_db
from ..models import Appointment, AppointmentStatus
from ..services.appointments import AppointmentService
from ..services.filters import AppointmentFilters

router = APIRouter(prefix="/api/appointments", tags=["appointments"])


# ==================== Pydantic Schemas ====================

class AppointmentCreate(BaseModel):
    barbershop_id: int
    barber_id: int
    client_id: int
    service_id: int
    start_time: datetime
    notes: Optional[str] = Field(None, max_length=1000)


class AppointmentUpdate(BaseModel):
    start_time: Optional[datetime] = None
    status: Optional[AppointmentStatus] = None
    notes: Optional[str] = Field(None, max_length=1000)


class CancelRequest(BaseModel):
    reason: Optional[str] = Field(None, max_length=1000)


class CompleteRequest(BaseModel):
    notes: Optional[str] = Field(None, max_length=1000)


class AppointmentResponse(BaseModel):
    id: int
    barbershop_id: int
    barber_id: int
    barber_name: Optional[str]
    client_id: int
    client_name: Optional[str]
    service_id: int
    service_name: Optional[str]
    start_time: datetime
    end_time: datetime
    duration_minutes: int
    total_price: float
    status: AppointmentStatus
    notes: Optional[str]
    created_at: Optional[datetime]


class AppointmentListResponse(BaseModel):
    items: List[AppointmentResponse]
    total: int
    has_more: bool


class SlotResponse(BaseModel):
    start_time: datetime
    end_time: datetime
    available: bool


class StatsResponse(BaseModel):
    total: int
    scheduled: int
    confirmed: int
    in_progress: int
    completed: int
    cancelled: int
    no_show: int
    total_revenue: float
    average_price: float


def to_response(apt: Appointment) -> AppointmentResponse:
    return AppointmentResponse(
        id=apt.id,
        barbershop_id=apt.barbershop_id,
        barber_id=apt.barber_id,
        barber_name=apt.barber.name if apt.barber else None,
        client_id=apt.client_id,
        client_name=apt.client.name if apt.client else None,
        service_id=apt.service_id,
        service_name=apt.service.name if apt.service else None,
        start_time=apt.start_time,
        end_time=apt.end_time,
        duration_minutes=apt.duration_minutes,
        total_price=float(apt.total_price),
        status=apt.status,
        notes=apt.notes,
        created_at=apt.created_at
    )


def appointment_filters(
    barbershop_id: Optional[int] = Query(None),
    barber_id: Optional[int] = Query(None),
    client_id: Optional[int] = Query(None),
    service_id: Optional[int] = Query(None),
    status: Optional[AppointmentStatus] = Query(None),
    start_date: Optional[date] = Query(None, description="YYYY-MM-DD, включительно"),
    end_date: Optional[date] = Query(None, description="YYYY-MM-DD, включительно"),
    skip: int = Query(0, ge=0),
    take: Optional[int] = Query(None, ge=1),
    order_by: str = Query("start_time", pattern="^(start_time|created_at)$"),
    order_direction: str = Query("asc", pattern="^(asc|desc)$")
) -> AppointmentFilters:
    return AppointmentFilters(
        barbershop_id=barbershop_id,
        barber_id=barber_id,
        client_id=client_id,
        service_id=service_id,
        status=status,
        start_date=start_date,
        end_date=end_date,
        skip=skip,
        take=take,
        order_by=order_by,
        order_direction=order_direction
    )


# ==================== API Endpoints ====================

@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(data: AppointmentCreate, db: Session = Depends(get_db)):
    """Создать новую запись"""
    appointment = AppointmentService(db).create(
        shop_id=data.barbershop_id,
        barber_id=data.barber_id,
        client_id=data.client_id,
        service_id=data.service_id,
        start_time=data.start_time,
        notes=data.notes
    )
    return to_response(appointment)


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    filters: AppointmentFilters = Depends(appointment_filters),
    db: Session = Depends(get_db)
):
    """Список записей с фильтрами"""
    page = AppointmentService(db).list_appointments(filters)
    return AppointmentListResponse(
        items=[to_response(apt) for apt in page.items],
        total=page.total,
        has_more=page.has_more
    )


@router.get("/stats", response_model=StatsResponse)
async def get_stats(
    filters: AppointmentFilters = Depends(appointment_filters),
    db: Session = Depends(get_db)
):
    """Статистика по записям"""
    return AppointmentService(db).get_stats(filters).to_dict()


@router.get("/available-slots", response_model=List[SlotResponse])
async def get_available_slots(
    barber_id: int = Query(...),
    barbershop_id: int = Query(...),
    date: date = Query(..., description="YYYY-MM-DD"),
    service_duration: Optional[int] = Query(None, ge=1, le=600, description="Длительность в минутах"),
    db: Session = Depends(get_db)
):
    """Слоты барбера на дату (свободные и занятые)"""
    slots = AppointmentService(db).get_available_slots(barber_id, barbershop_id, date, service_duration)
    return [slot.to_dict() for slot in slots]


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(appointment_id: int, db: Session = Depends(get_db)):
    """Получить запись по ID"""
    return to_response(AppointmentService(db).get(appointment_id))


@router.put("/{appointment_id}", response_model=AppointmentResponse)
async def update_appointment(appointment_id: int, data: AppointmentUpdate, db: Session = Depends(get_db)):
    """Изменить запись (перенос, статус, заметки)"""
    appointment = AppointmentService(db).update(
        appointment_id,
        start_time=data.start_time,
        status=data.status,
        notes=data.notes
    )
    return to_response(appointment)


@router.delete("/{appointment_id}", response_model=AppointmentResponse)
async def cancel_appointment(
    appointment_id: int,
    data: Optional[CancelRequest] = None,
    db: Session = Depends(get_db)
):
    """Отменить запись"""
    reason = data.reason if data else None
    return to_response(AppointmentService(db).cancel(appointment_id, reason))


@router.patch("/{appointment_id}/confirm", response_model=AppointmentResponse)
async def confirm_appointment(appointment_id: int, db: Session = Depends(get_db)):
    return to_response(AppointmentService(db).confirm(appointment_id))


@router.patch("/{appointment_id}/start", response_model=AppointmentResponse)
async def start_appointment(appointment_id: int, db: Session = Depends(get_db)):
    return to_response(AppointmentService(db).start_service(appointment_id))


@router.patch("/{appointment_id}/complete", response_model=AppointmentResponse)
async def complete_appointment(
    appointment_id: int,
    data: Optional[CompleteRequest] = None,
    db: Session = Depends(get_db)
):
    notes = data.notes if data else None
    return to_response(AppointmentService(db).complete(appointment_id, notes))


@router.patch("/{appointment_id}/no-show", response_model=AppointmentResponse)
async def mark_no_show(appointment_id: int, db: Session = Depends(get_db)):
    return to_response(AppointmentService(db).mark_no_show(appointment_id))
