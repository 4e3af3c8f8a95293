"""Business records (customers, jobs, bookings) backing the assistant's database."""

from opschat.records.errors import RecordError
from opschat.records.models import BookingCreate, CustomerCreate, JobCreate
from opschat.records.seed import seed_records
from opschat.records.service import RecordsService

__all__ = [
    "RecordError",
    "RecordsService",
    "CustomerCreate",
    "JobCreate",
    "BookingCreate",
    "seed_records",
]
