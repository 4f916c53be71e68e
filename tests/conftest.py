"""
================================================================================
AgriShield Reports - Unified Test Configuration and Fixtures
================================================================================
AgriShield Platform Team
District Agriculture Enforcement

Description:
    Shared pytest configuration and fixtures for all tests (unit, API).
    Provides a temporary case store, seed helpers, the report service and a
    FastAPI test client wired to the temporary store.

Fixtures:
    - temp_dir: Temporary directory for test files
    - db_manager: DatabaseManager over a fresh SQLite file
    - store: Seed helper inserting users and enforcement records
    - report_service: ReportService over the temporary store
    - api_client: TestClient with the report service overridden
    - auth_headers / make_token: Bearer tokens signed with the test secret

================================================================================
"""
import os
import json
import uuid
import shutil
import sys
import tempfile
from pathlib import Path
from datetime import datetime, timedelta, timezone

import pytest

# Environment must be fixed before agrishield.config is imported
_session_dir = Path(tempfile.mkdtemp(prefix="agrishield-tests-"))
os.environ["AGRISHIELD_ENVIRONMENT"] = "testing"
os.environ["AGRISHIELD_DATABASE_PATH"] = str(_session_dir / "default.db")
os.environ["AGRISHIELD_CONFIG_FILE"] = str(_session_dir / "missing.config.json")
os.environ["AGRISHIELD_JWT_SECRET"] = "test-secret"

# Add project root to path for all tests
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def pytest_sessionfinish(session, exitstatus):
    shutil.rmtree(_session_dir, ignore_errors=True)


def new_id() -> str:
    return uuid.uuid4().hex


class CaseStore:
    """Inserts enforcement records straight into the test database"""

    def __init__(self, db_manager):
        self.db_manager = db_manager

    def _insert(self, table: str, values: dict) -> str:
        columns = ", ".join(values)
        placeholders = ", ".join("?" for _ in values)
        with self.db_manager.pool.get_connection() as conn:
            conn.execute(f"INSERT INTO {table} ({columns}) VALUES ({placeholders})", list(values.values()))
            conn.commit()
        return values["id"]

    @staticmethod
    def _stamps(created_at, updated_at):
        created_at = created_at or datetime(2024, 3, 15, 10, 0, 0)
        updated_at = updated_at or created_at
        return created_at.isoformat(), updated_at.isoformat()

    def user(self, name="Ravi Kumar", email=None, role="field_officer", id=None):
        created, _ = self._stamps(None, None)
        return self._insert("users", {
            "id": id or new_id(),
            "email": email or f"{new_id()[:8]}@agrishield.test",
            "name": name,
            "role": role,
            "created_at": created,
            "updated_at": created,
        })

    def inspection(self, user_id, location="Ludhiana Grain Market", officer="Ravi Kumar",
                   target_type="retailer", equipment=("TruScan",), status="scheduled",
                   created_at=None, updated_at=None):
        created, updated = self._stamps(created_at, updated_at)
        return self._insert("inspection_tasks", {
            "id": new_id(),
            "officer": officer,
            "date": created[:10],
            "location": location,
            "target_type": target_type,
            "equipment": json.dumps(list(equipment)),
            "status": status,
            "user_id": user_id,
            "created_at": created,
            "updated_at": updated,
        })

    def seizure(self, user_id, company="AgroChem Ltd", product="Glyphosate 41% SL",
                batch_number="B-1001", estimated_value="₹10,000", witness_name="Suresh Pal",
                quantity="20 bags", status="pending", created_at=None, updated_at=None):
        created, updated = self._stamps(created_at, updated_at)
        scan_result_id = self._insert("scan_results", {
            "id": new_id(),
            "company": company,
            "product": product,
            "batch_number": batch_number,
            "authenticity_score": 42.5,
            "issues": json.dumps(["label mismatch"]),
            "recommendation": "Suspected Counterfeit",
            "geo_location": "30.9010,75.8573",
            "timestamp": created,
            "created_at": created,
        })
        return self._insert("seizures", {
            "id": new_id(),
            "quantity": quantity,
            "estimated_value": estimated_value,
            "witness_name": witness_name,
            "evidence_photos": json.dumps(["photo-1.jpg"]),
            "status": status,
            "user_id": user_id,
            "scan_result_id": scan_result_id,
            "created_at": created,
            "updated_at": updated,
        })

    def lab_sample(self, user_id, seizure_id, sample_type="pesticide",
                   lab_destination="State Pesticide Lab, Ludhiana", status="in-transit",
                   lab_result=None, created_at=None, updated_at=None):
        created, updated = self._stamps(created_at, updated_at)
        return self._insert("lab_samples", {
            "id": new_id(),
            "sample_type": sample_type,
            "lab_destination": lab_destination,
            "status": status,
            "lab_result": lab_result,
            "user_id": user_id,
            "seizure_id": seizure_id,
            "created_at": created,
            "updated_at": updated,
        })

    def fir_case(self, user_id, seizure_id=None, lab_sample_id=None,
                 violation_type="Insecticides Act Sec 29", accused="Sham Traders",
                 location="Bathinda", status="draft", case_notes=None,
                 created_at=None, updated_at=None):
        created, updated = self._stamps(created_at, updated_at)
        return self._insert("fir_cases", {
            "id": new_id(),
            "lab_report_id": f"LR-{new_id()[:6]}",
            "violation_type": violation_type,
            "accused": accused,
            "location": location,
            "status": status,
            "case_notes": case_notes,
            "user_id": user_id,
            "seizure_id": seizure_id,
            "lab_sample_id": lab_sample_id,
            "created_at": created,
            "updated_at": updated,
        })

    def audit(self, user_id, action="CREATE", entity="InspectionTask", entity_id=None,
              new_data=None, created_at=None):
        created, _ = self._stamps(created_at, None)
        return self._insert("audit_logs", {
            "id": new_id(),
            "action": action,
            "entity": entity,
            "entity_id": entity_id or new_id(),
            "old_data": None,
            "new_data": json.dumps(new_data) if new_data is not None else None,
            "user_id": user_id,
            "created_at": created,
        })


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests"""
    temp_path = Path(tempfile.mkdtemp())
    yield temp_path
    shutil.rmtree(temp_path, ignore_errors=True)


@pytest.fixture
def db_manager(temp_dir):
    """DatabaseManager over a fresh SQLite file"""
    from agrishield.database import DatabaseManager
    manager = DatabaseManager(temp_dir / "agrishield_test.db")
    yield manager
    manager.close()


@pytest.fixture
def store(db_manager):
    """Seed helper for the temporary database"""
    return CaseStore(db_manager)


@pytest.fixture
def report_service(db_manager):
    """ReportService over the temporary database"""
    from agrishield.reports.service import ReportService
    return ReportService(db_manager)


@pytest.fixture
def make_token():
    """Factory for bearer tokens signed with the configured secret"""
    from jose import jwt
    from agrishield.config import config

    def _make(user_id="officer-1", expires_in=timedelta(hours=1), secret=None, **claims):
        payload = dict(claims)
        if user_id is not None:
            payload["userId"] = user_id
        payload["exp"] = datetime.now(timezone.utc) + expires_in
        return jwt.encode(
            payload,
            secret or config.security.jwt_secret,
            algorithm=config.security.jwt_algorithm
        )

    return _make


@pytest.fixture
def auth_headers(make_token):
    """Authorization header with a valid token"""
    return {"Authorization": f"Bearer {make_token()}"}


@pytest.fixture
def api_client(report_service):
    """FastAPI test client whose reports read the temporary database"""
    from fastapi.testclient import TestClient
    from agrishield.app import app
    from agrishield.reports.router import get_report_service

    app.dependency_overrides[get_report_service] = lambda: report_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def project_root_path():
    """Return the project root path"""
    return project_root
