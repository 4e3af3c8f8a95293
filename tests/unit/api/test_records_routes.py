"""
Unit Tests for Records Endpoints

Tests customers, jobs and bookings routes over a mocked connector.
"""

from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from opschat.api.main import app, app_state
from opschat.connectors.base import QueryError
from opschat.models.errors import StoreUnavailableError
from opschat.records.service import RecordsService

CUSTOMER = {
    "id": 1,
    "name": "Rahul Sharma",
    "email": "rahul.s@gmail.com",
    "phone": "9876543210",
    "address": "Andheri East, Mumbai",
    "created_at": "2025-01-01T00:00:00+00:00",
}


class TestRecordsEndpoints:
    """Test suite for the records routes."""

    @pytest.fixture
    def readiness(self):
        readiness = MagicMock()
        readiness.wait = AsyncMock()
        return readiness

    @pytest.fixture(autouse=True)
    def service(self, mock_postgres_connector, readiness):
        service = RecordsService(mock_postgres_connector)
        app_state["records"] = service
        app_state["readiness"] = readiness
        yield service
        app_state["records"] = None
        app_state["readiness"] = None

    @pytest.fixture
    def client(self):
        """Create test client."""
        return TestClient(app)

    def test_create_customer(self, client, mock_postgres_connector, make_query_result, readiness):
        mock_postgres_connector.execute.return_value = make_query_result([CUSTOMER])

        response = client.post(
            "/api/customers",
            json={k: CUSTOMER[k] for k in ("name", "email", "phone", "address")},
        )

        assert response.status_code == 201
        assert response.json() == {"success": True, "message": "Customer created", "data": CUSTOMER}
        readiness.wait.assert_awaited_once()
        query, params = mock_postgres_connector.execute.await_args.args
        assert query.startswith('INSERT INTO "Customer"')
        assert params == ["Rahul Sharma", "rahul.s@gmail.com", "9876543210", "Andheri East, Mumbai"]

    def test_create_customer_missing_fields(self, client, mock_postgres_connector):
        response = client.post("/api/customers", json={"name": "Only a name"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "message": "Invalid customer data"}
        mock_postgres_connector.execute.assert_not_awaited()

    def test_duplicate_customer(self, client, mock_postgres_connector):
        mock_postgres_connector.execute.side_effect = QueryError("duplicate key", code="23505")

        response = client.post(
            "/api/customers",
            json={"name": "A", "email": "a@x.com", "phone": "1", "address": "B"},
        )

        assert response.status_code == 409
        assert response.json()["message"] == "Customer already exists"

    def test_create_job_for_missing_customer(self, client, mock_postgres_connector):
        mock_postgres_connector.execute.side_effect = QueryError("fk violation", code="23503")

        response = client.post(
            "/api/jobs", json={"customer_id": 99, "job_type": "AC Installation", "status": "pending"}
        )

        assert response.status_code == 404
        assert response.json()["message"] == "Customer not found"

    def test_create_booking(self, client, mock_postgres_connector, make_query_result):
        booking = {"booking_id": 3, "job_id": 2, "technician": "Arjun Rao"}
        mock_postgres_connector.execute.return_value = make_query_result([booking])

        response = client.post(
            "/api/bookings",
            json={"job_id": 2, "technician": "Arjun Rao", "scheduled_date": "2025-03-01T10:00:00Z"},
        )

        assert response.status_code == 201
        assert response.json()["data"] == booking

    def test_create_booking_without_body(self, client):
        response = client.post("/api/bookings")

        assert response.status_code == 400
        assert response.json()["message"] == "Invalid booking data"

    def test_list_jobs(self, client, mock_postgres_connector, make_query_result):
        job = {"job_id": 2, "customer_id": 1, "job_type": "AC Gas Refill", "status": "pending"}
        mock_postgres_connector.execute.side_effect = [
            make_query_result([job]),
            make_query_result([CUSTOMER]),
        ]

        response = client.get("/api/jobs")

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "Jobs fetched"
        assert body["data"] == [{**job, "customer": CUSTOMER}]

    def test_delete_all_customers(self, client, mock_postgres_connector, make_query_result):
        mock_postgres_connector.run_transaction.return_value = [
            make_query_result([{"booking_id": 1}, {"booking_id": 2}]),
            make_query_result([{"job_id": 1}]),
            make_query_result([{"id": 1}]),
        ]

        response = client.delete("/api/customers")

        assert response.status_code == 200
        assert response.json()["data"] == {
            "bookings_deleted": 2,
            "jobs_deleted": 1,
            "customers_deleted": 1,
        }

    def test_database_not_ready(self, client, readiness, mock_postgres_connector):
        readiness.wait.side_effect = StoreUnavailableError("Database failed to initialize: refused")

        response = client.get("/api/customers")

        assert response.status_code == 503
        assert response.json() == {
            "success": False,
            "message": "Database failed to initialize: refused",
        }
        mock_postgres_connector.execute.assert_not_awaited()


def test_records_unavailable_without_database():
    app_state["records"] = None
    client = TestClient(app)

    response = client.get("/api/bookings")

    assert response.status_code == 503
    assert response.json()["message"] == "Database not configured"
