"""
Business Record Models

Request DTOs for customers, jobs and bookings. Fields are optional at the
schema level so that missing values are reported by the service as a 400 with
a domain message rather than a generic validation error.
"""

from datetime import datetime

from pydantic import BaseModel, Field


class CustomerCreate(BaseModel):
    """Payload for creating a customer."""

    name: str | None = Field(None, description="Customer name")
    email: str | None = Field(None, description="Unique email address")
    phone: str | None = Field(None, description="Contact phone number")
    address: str | None = Field(None, description="Service address")

    model_config = {
        "json_schema_extra": {
            "example": {
                "name": "Rahul Sharma",
                "email": "rahul.s@gmail.com",
                "phone": "9876543210",
                "address": "Andheri East, Mumbai",
            }
        }
    }


class JobCreate(BaseModel):
    """Payload for creating a job for an existing customer."""

    customer_id: int | None = Field(None, description="Owning customer id")
    job_type: str | None = Field(None, description="Kind of work, e.g. 'AC Installation'")
    status: str | None = Field(None, description="Job status, e.g. 'pending' or 'success'")


class BookingCreate(BaseModel):
    """Payload for scheduling a technician visit for a job."""

    job_id: int | None = Field(None, description="Job being serviced")
    technician: str | None = Field(None, description="Assigned technician")
    scheduled_date: datetime | None = Field(None, description="Visit date and time")
