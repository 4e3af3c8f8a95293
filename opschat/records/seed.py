"""Demo data: seven customers, two jobs each, one upcoming booking per job."""

import logging
import random
from datetime import UTC, datetime, timedelta

from opschat.records.models import BookingCreate, CustomerCreate, JobCreate
from opschat.records.service import RecordsService

logger = logging.getLogger(__name__)

CUSTOMERS = [
    CustomerCreate(name="Rahul Sharma", email="rahul.s@gmail.com", phone="9876543210", address="Andheri East, Mumbai"),
    CustomerCreate(name="Priyanka Verma", email="priyanka.v@gmail.com", phone="9123456780", address="Indiranagar, Bengaluru"),
    CustomerCreate(name="Amit R. Patel", email="amit.patel@gmail.com", phone="9988776655", address="Satellite Area, Ahmedabad"),
    CustomerCreate(name="Sneha S. Iyer", email="sneha.iyer@gmail.com", phone="9012345678", address="Adyar Main Road, Chennai"),
    CustomerCreate(name="Rohit K. Singh", email="rohit.singh@gmail.com", phone="9090909090", address="Sector 62, Noida"),
    CustomerCreate(name="Ankit Mishra", email="ankit.mishra@gmail.com", phone="8887766554", address="Alambagh, Lucknow"),
    CustomerCreate(name="Neha Kapoor", email="neha.kapoor@gmail.com", phone="7999887766", address="Model Town Phase 2, Delhi"),
]

JOB_TYPES = [
    "AC Gas Refill",
    "AC Installation",
    "Washing Machine Drum Repair",
    "Refrigerator Cooling Issue",
    "RO Water Purifier Service",
    "Microwave Oven Repair",
    "Geyser Installation",
    "TV Screen Repair",
]

TECHNICIANS = [
    "Suresh Kumar",
    "Ramesh Yadav",
    "Vikram Chauhan",
    "Manoj Gupta",
    "Deepak Meena",
    "Arjun Rao",
    "Santosh Patil",
]

JOBS_PER_CUSTOMER = 2


async def seed_records(
    service: RecordsService,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> dict[str, int]:
    """
    Insert the demo data set.

    The first job of each customer is ``pending`` and the second ``success``;
    every booking is scheduled 1 to 7 days from ``now``.

    Returns:
        Counts of created customers, jobs and bookings
    """
    rng = rng or random.Random()
    now = now or datetime.now(UTC)
    counts = {"customers": 0, "jobs": 0, "bookings": 0}

    for customer_data in CUSTOMERS:
        customer = await service.create_customer(customer_data)
        counts["customers"] += 1

        for index in range(JOBS_PER_CUSTOMER):
            job = await service.create_job(
                JobCreate(
                    customer_id=customer["id"],
                    job_type=rng.choice(JOB_TYPES),
                    status="pending" if index == 0 else "success",
                )
            )
            counts["jobs"] += 1

            await service.create_booking(
                BookingCreate(
                    job_id=job["job_id"],
                    technician=rng.choice(TECHNICIANS),
                    scheduled_date=now + timedelta(days=rng.randint(1, 7)),
                )
            )
            counts["bookings"] += 1

        logger.info(f"Seeded customer {customer_data.name}")

    return counts
