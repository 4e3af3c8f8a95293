"""Fixed description of the business tables, prepended to SQL generation prompts."""

SCHEMA_HINTS = """\
Database Schema Hints:
- Job table: Contains job records with job_id, customer_id, job_type, status, created_at
- Booking table: Contains bookings with booking_id, scheduled_date, technician, job_id
- Customer table: Contains customer information with id, name, email, phone, address

Common query patterns:
- "leads" or "jobs" -> Query the Job table
- "bookings" or "appointments" -> Query the Booking table
- "customers" or "clients" -> Query the Customer table
- For date ranges, use INTERVAL or date functions
- Use JOINs when connecting customer names to bookings/jobs
- Table names are capitalized, so quote them: "Customer", "Job", "Booking"
"""


def get_schema_hints() -> str:
    return SCHEMA_HINTS
