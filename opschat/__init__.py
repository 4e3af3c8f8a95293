"""OpsChat: customers, jobs and bookings with a natural-language query assistant."""

__version__ = "0.1.0"
