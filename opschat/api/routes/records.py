"""
Records Routes

CRUD endpoints for customers, jobs and bookings. Every request waits for the
one-time database initialization before touching the tables.
"""

import logging
from typing import Any

from fastapi import APIRouter, Depends, status

from opschat.models.api import ApiResponse
from opschat.records.models import BookingCreate, CustomerCreate, JobCreate
from opschat.records.service import RecordsService

logger = logging.getLogger(__name__)

router = APIRouter()


async def records_dependency() -> RecordsService:
    from opschat.api.main import get_records_service

    return await get_records_service()


@router.post("/customers", status_code=status.HTTP_201_CREATED)
async def create_customer(
    payload: CustomerCreate | None = None,
    service: RecordsService = Depends(records_dependency),
) -> dict[str, Any]:
    customer = await service.create_customer(payload or CustomerCreate())
    return ApiResponse.ok(customer, message="Customer created")


@router.get("/customers")
async def list_customers(service: RecordsService = Depends(records_dependency)) -> dict[str, Any]:
    """Customers with their jobs and each job's bookings."""
    return ApiResponse.ok(await service.list_customers(), message="Customers fetched")


@router.delete("/customers")
async def delete_all_customers(
    service: RecordsService = Depends(records_dependency),
) -> dict[str, Any]:
    counts = await service.delete_all_customers()
    return ApiResponse.ok(counts, message="All customers, jobs and bookings deleted")


@router.post("/jobs", status_code=status.HTTP_201_CREATED)
async def create_job(
    payload: JobCreate | None = None,
    service: RecordsService = Depends(records_dependency),
) -> dict[str, Any]:
    job = await service.create_job(payload or JobCreate())
    return ApiResponse.ok(job, message="Job created")


@router.get("/jobs")
async def list_jobs(service: RecordsService = Depends(records_dependency)) -> dict[str, Any]:
    return ApiResponse.ok(await service.list_jobs(), message="Jobs fetched")


@router.post("/bookings", status_code=status.HTTP_201_CREATED)
async def create_booking(
    payload: BookingCreate | None = None,
    service: RecordsService = Depends(records_dependency),
) -> dict[str, Any]:
    booking = await service.create_booking(payload or BookingCreate())
    return ApiResponse.ok(booking, message="Booking created")


@router.get("/bookings")
async def list_bookings(service: RecordsService = Depends(records_dependency)) -> dict[str, Any]:
    return ApiResponse.ok(await service.list_bookings(), message="Bookings fetched")
