"""
Report Models

Pydantic models for report API request/response validation. Defines the
validated filter set shared by every report, the report type selector and
the read models of the enforcement records returned in report listings.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import json
from datetime import datetime, timezone
from enum import Enum
from typing import Optional, List, Any

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


def normalize_report_date(value: str) -> str:
    """
    Parse an ISO-8601 date or datetime and return it in the stored timestamp
    representation (naive UTC, isoformat).

    Raises ValueError for anything that is not ISO-8601.
    """
    text = value.strip()
    if text[-1:] in ('Z', 'z'):
        text = text[:-1] + '+00:00'
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed.isoformat()


class ReportType(str, Enum):
    """Report types served by the dispatcher"""
    DASHBOARD = "dashboard"
    INSPECTIONS = "inspections"
    SEIZURES = "seizures"
    LAB_SAMPLES = "lab-samples"
    FIR_CASES = "fir-cases"

    @classmethod
    def resolve(cls, value: Optional[str]) -> 'ReportType':
        """Unknown or missing types fall back to the dashboard"""
        try:
            return cls(value)
        except ValueError:
            return cls.DASHBOARD


class ReportFilters(BaseModel):
    """Filters shared by every report; blank values mean 'not filtered'"""
    start_date: Optional[str] = Field(None, description="Lower createdAt bound (ISO-8601, inclusive)")
    end_date: Optional[str] = Field(None, description="Upper createdAt bound (ISO-8601, inclusive)")
    officer: Optional[str] = Field(None, description="Substring of the owning user's name or email")
    district: Optional[str] = Field(None, description="Substring of the record location")
    keyword: Optional[str] = Field(None, description="Free-text search across entity text fields")

    @field_validator('start_date', 'end_date', 'officer', 'district', 'keyword', mode='before')
    @classmethod
    def blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator('start_date', 'end_date')
    @classmethod
    def parse_date(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        try:
            return normalize_report_date(value)
        except ValueError:
            raise ValueError(f"'{value}' is not an ISO-8601 date")

    def applied(self) -> dict:
        """Filters that are actually set, for logging"""
        return self.model_dump(exclude_none=True)


def _decode_json(value, default):
    if value is None:
        return default
    if isinstance(value, (bytes, str)):
        return json.loads(value) if value else default
    return value


class ApiModel(BaseModel):
    """Records are read with snake_case names and serialised with camelCase"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_api(self) -> dict:
        return self.model_dump(by_alias=True, mode='json')


class UserSummary(ApiModel):
    id: Optional[str] = None
    name: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None


class RelatedStatus(ApiModel):
    id: str
    status: str


class LabSampleSummary(ApiModel):
    id: str
    sample_type: str
    status: str


class ScanResultRecord(ApiModel):
    id: str
    company: str
    product: str
    batch_number: str
    authenticity_score: float
    issues: List[str] = Field(default_factory=list)
    recommendation: str
    geo_location: str
    timestamp: str
    product_id: Optional[str] = None

    @field_validator('issues', mode='before')
    @classmethod
    def decode_issues(cls, value):
        return _decode_json(value, [])


class InspectionTaskRecord(ApiModel):
    id: str
    officer: str
    date: str
    location: str
    target_type: str
    equipment: List[str] = Field(default_factory=list)
    status: str
    user_id: str
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None

    @field_validator('equipment', mode='before')
    @classmethod
    def decode_equipment(cls, value):
        return _decode_json(value, [])


class SeizureRecord(ApiModel):
    id: str
    quantity: str
    estimated_value: str
    witness_name: str
    evidence_photos: List[str] = Field(default_factory=list)
    video_evidence: Optional[str] = None
    status: str
    user_id: str
    scan_result_id: str
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    scan_result: Optional[ScanResultRecord] = None
    lab_samples: List[RelatedStatus] = Field(default_factory=list)
    fir_cases: List[RelatedStatus] = Field(default_factory=list)

    @field_validator('evidence_photos', mode='before')
    @classmethod
    def decode_photos(cls, value):
        return _decode_json(value, [])


class LabSampleRecord(ApiModel):
    id: str
    sample_type: str
    lab_destination: str
    status: str
    lab_result: Optional[str] = None
    user_id: str
    seizure_id: str
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    seizure: Optional[SeizureRecord] = None
    fir_cases: List[RelatedStatus] = Field(default_factory=list)


class FIRCaseRecord(ApiModel):
    id: str
    lab_report_id: str
    violation_type: str
    accused: str
    location: str
    status: str
    case_notes: Optional[str] = None
    court_date: Optional[str] = None
    outcome: Optional[str] = None
    user_id: str
    seizure_id: Optional[str] = None
    lab_sample_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    user: Optional[UserSummary] = None
    seizure: Optional[SeizureRecord] = None
    lab_sample: Optional[LabSampleSummary] = None


class AuditLogEntry(ApiModel):
    id: str
    action: str
    entity: str
    entity_id: str
    old_data: Optional[Any] = None
    new_data: Optional[Any] = None
    user_id: str
    created_at: datetime
    user: Optional[UserSummary] = None

    @field_validator('old_data', 'new_data', mode='before')
    @classmethod
    def decode_snapshot(cls, value):
        return _decode_json(value, None)
