"""
Business Records Service

CRUD over the Customer, Job and Booking tables that the assistant also
queries. Statements are parameterized and run through the shared connector.

Usage:
    service = RecordsService(connector)
    await service.ensure_schema()

    customer = await service.create_customer(CustomerCreate(name="...", ...))
    overview = await service.list_customers()
"""

import logging
from typing import Any

from opschat.connectors.base import BaseConnector, QueryError
from opschat.records.errors import RecordError
from opschat.records.models import BookingCreate, CustomerCreate, JobCreate

logger = logging.getLogger(__name__)

SCHEMA_STATEMENTS = [
    """
    CREATE TABLE IF NOT EXISTS "Customer" (
        id SERIAL PRIMARY KEY,
        name TEXT NOT NULL,
        email TEXT NOT NULL UNIQUE,
        phone TEXT NOT NULL,
        address TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "Job" (
        job_id SERIAL PRIMARY KEY,
        customer_id INTEGER NOT NULL REFERENCES "Customer"(id),
        job_type TEXT NOT NULL,
        status TEXT NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
    """
    CREATE TABLE IF NOT EXISTS "Booking" (
        booking_id SERIAL PRIMARY KEY,
        job_id INTEGER NOT NULL REFERENCES "Job"(job_id),
        technician TEXT NOT NULL,
        scheduled_date TIMESTAMPTZ NOT NULL,
        created_at TIMESTAMPTZ NOT NULL DEFAULT now()
    )
    """,
]


class RecordsService:
    """Create, list and purge customers, jobs and bookings."""

    def __init__(self, connector: BaseConnector):
        self.connector = connector

    async def ensure_schema(self) -> None:
        """Create the business tables if they do not exist."""
        await self.connector.run_transaction([(statement, None) for statement in SCHEMA_STATEMENTS])
        logger.info("Business tables ready")

    # ------------------------------------------------------------------
    # Customers
    # ------------------------------------------------------------------

    async def create_customer(self, data: CustomerCreate) -> dict[str, Any]:
        if not (data.name and data.email and data.phone and data.address):
            raise RecordError(400, "Invalid customer data")

        row = await self._insert(
            'INSERT INTO "Customer" (name, email, phone, address) '
            "VALUES ($1, $2, $3, $4) RETURNING *",
            [data.name, data.email, data.phone, data.address],
            conflict="Customer already exists",
        )
        logger.info("Customer created", extra={"customer_id": row.get("id")})
        return row

    async def list_customers(self) -> list[dict[str, Any]]:
        """
        Customers with their jobs and each job's bookings.

        Bookings are ordered by scheduled date, so ``next_scheduled_booking``
        is the earliest one.
        """
        customers = await self._fetch('SELECT * FROM "Customer" ORDER BY id')
        jobs = await self._fetch('SELECT * FROM "Job" ORDER BY job_id')
        bookings = await self._fetch(
            'SELECT booking_id, job_id, technician, scheduled_date FROM "Booking" '
            "ORDER BY scheduled_date ASC"
        )

        bookings_by_job: dict[int, list[dict[str, Any]]] = {}
        for booking in bookings:
            bookings_by_job.setdefault(booking["job_id"], []).append(
                {
                    "booking_id": booking["booking_id"],
                    "technician": booking["technician"],
                    "scheduled_date": booking["scheduled_date"],
                }
            )

        jobs_by_customer: dict[int, list[dict[str, Any]]] = {}
        for job in jobs:
            job_bookings = bookings_by_job.get(job["job_id"], [])
            jobs_by_customer.setdefault(job["customer_id"], []).append(
                {
                    "job_id": job["job_id"],
                    "job_type": job["job_type"],
                    "status": job["status"],
                    "bookings_count": len(job_bookings),
                    "bookings": job_bookings,
                    "next_scheduled_booking": (
                        job_bookings[0]["scheduled_date"] if job_bookings else None
                    ),
                }
            )

        overview = []
        for customer in customers:
            customer_jobs = jobs_by_customer.get(customer["id"], [])
            overview.append(
                {
                    "customer_id": customer["id"],
                    "customer_name": customer["name"],
                    "email": customer["email"],
                    "phone": customer["phone"],
                    "address": customer["address"],
                    "total_jobs": len(customer_jobs),
                    "total_bookings": sum(job["bookings_count"] for job in customer_jobs),
                    "jobs": customer_jobs,
                }
            )
        return overview

    async def delete_all_customers(self) -> dict[str, int]:
        """Delete every booking, job and customer in one transaction."""
        try:
            results = await self.connector.run_transaction(
                [
                    ('DELETE FROM "Booking" RETURNING booking_id', None),
                    ('DELETE FROM "Job" RETURNING job_id', None),
                    ('DELETE FROM "Customer" RETURNING id', None),
                ]
            )
        except QueryError as e:
            logger.error(f"Delete all customers failed: {e}")
            raise RecordError(500, "Failed to delete all customers") from e

        counts = {
            "bookings_deleted": results[0].row_count,
            "jobs_deleted": results[1].row_count,
            "customers_deleted": results[2].row_count,
        }
        logger.info("Deleted all customers", extra=counts)
        return counts

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------

    async def create_job(self, data: JobCreate) -> dict[str, Any]:
        if not (data.status and data.job_type and data.customer_id):
            raise RecordError(400, "Invalid job data")

        return await self._insert(
            'INSERT INTO "Job" (customer_id, job_type, status) VALUES ($1, $2, $3) RETURNING *',
            [data.customer_id, data.job_type, data.status],
            not_found="Customer not found",
            conflict="Job already exists",
        )

    async def list_jobs(self) -> list[dict[str, Any]]:
        jobs = await self._fetch('SELECT * FROM "Job" ORDER BY job_id')
        customers = {row["id"]: row for row in await self._fetch('SELECT * FROM "Customer"')}
        return [{**job, "customer": customers.get(job["customer_id"])} for job in jobs]

    # ------------------------------------------------------------------
    # Bookings
    # ------------------------------------------------------------------

    async def create_booking(self, data: BookingCreate) -> dict[str, Any]:
        if not (data.scheduled_date and data.technician and data.job_id):
            raise RecordError(400, "Invalid booking data")

        return await self._insert(
            'INSERT INTO "Booking" (job_id, technician, scheduled_date) '
            "VALUES ($1, $2, $3) RETURNING *",
            [data.job_id, data.technician, data.scheduled_date],
            not_found="Job not found",
        )

    async def list_bookings(self) -> list[dict[str, Any]]:
        bookings = await self._fetch('SELECT * FROM "Booking" ORDER BY booking_id')
        customers = {row["id"]: row for row in await self._fetch('SELECT * FROM "Customer"')}
        jobs = {
            row["job_id"]: {**row, "customer": customers.get(row["customer_id"])}
            for row in await self._fetch('SELECT * FROM "Job"')
        }
        return [{**booking, "job": jobs.get(booking["job_id"])} for booking in bookings]

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _insert(
        self,
        query: str,
        params: list[Any],
        not_found: str | None = None,
        conflict: str | None = None,
    ) -> dict[str, Any]:
        try:
            result = await self.connector.execute(query, params)
        except QueryError as e:
            logger.warning(f"Insert failed ({e.code}): {e}")
            raise RecordError.from_query_error(e, not_found=not_found, conflict=conflict) from e
        return result.rows[0]

    async def _fetch(self, query: str) -> list[dict[str, Any]]:
        try:
            result = await self.connector.execute(query)
        except QueryError as e:
            logger.error(f"Records query failed: {e}")
            raise RecordError(500, "Database error") from e
        return result.rows
