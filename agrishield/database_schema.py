"""
Database Schema Definition

Schema for the enforcement case tables read by the reports service: users,
inspection tasks, scan results, seizures, lab samples, FIR cases and the
audit trail. Timestamps are naive UTC ISO-8601 text so that date filters can
compare them directly.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

from typing import Dict, List


TABLE_COLUMNS: Dict[str, List[str]] = {
    'users': ['id', 'email', 'name', 'role', 'created_at', 'updated_at'],
    'inspection_tasks': [
        'id', 'officer', 'date', 'location', 'target_type', 'equipment',
        'status', 'user_id', 'created_at', 'updated_at'
    ],
    'scan_results': [
        'id', 'company', 'product', 'batch_number', 'authenticity_score',
        'issues', 'recommendation', 'geo_location', 'timestamp', 'product_id',
        'created_at'
    ],
    'seizures': [
        'id', 'quantity', 'estimated_value', 'witness_name', 'evidence_photos',
        'video_evidence', 'status', 'user_id', 'scan_result_id',
        'created_at', 'updated_at'
    ],
    'lab_samples': [
        'id', 'sample_type', 'lab_destination', 'status', 'lab_result',
        'user_id', 'seizure_id', 'created_at', 'updated_at'
    ],
    'fir_cases': [
        'id', 'lab_report_id', 'violation_type', 'accused', 'location',
        'status', 'case_notes', 'court_date', 'outcome', 'user_id',
        'seizure_id', 'lab_sample_id', 'created_at', 'updated_at'
    ],
    'audit_logs': [
        'id', 'action', 'entity', 'entity_id', 'old_data', 'new_data',
        'user_id', 'created_at'
    ],
}


def get_schema_sql() -> str:
    """Get the complete database schema SQL"""
    return """
CREATE TABLE IF NOT EXISTS users (
    id TEXT PRIMARY KEY,
    email TEXT NOT NULL UNIQUE,
    name TEXT,
    role TEXT NOT NULL DEFAULT 'field_officer',
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE TABLE IF NOT EXISTS inspection_tasks (
    id TEXT PRIMARY KEY,
    officer TEXT NOT NULL,
    date TEXT NOT NULL,
    location TEXT NOT NULL,
    target_type TEXT NOT NULL,
    equipment TEXT NOT NULL DEFAULT '[]',
    status TEXT NOT NULL DEFAULT 'scheduled',
    user_id TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_inspection_tasks_status ON inspection_tasks(status);
CREATE INDEX IF NOT EXISTS idx_inspection_tasks_created ON inspection_tasks(created_at);
CREATE INDEX IF NOT EXISTS idx_inspection_tasks_user ON inspection_tasks(user_id);

CREATE TABLE IF NOT EXISTS scan_results (
    id TEXT PRIMARY KEY,
    company TEXT NOT NULL,
    product TEXT NOT NULL,
    batch_number TEXT NOT NULL,
    authenticity_score REAL NOT NULL,
    issues TEXT NOT NULL DEFAULT '[]',
    recommendation TEXT NOT NULL,
    geo_location TEXT NOT NULL,
    timestamp TEXT NOT NULL,
    product_id TEXT,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_scan_results_company ON scan_results(company);

CREATE TABLE IF NOT EXISTS seizures (
    id TEXT PRIMARY KEY,
    quantity TEXT NOT NULL,
    estimated_value TEXT NOT NULL,
    witness_name TEXT NOT NULL,
    evidence_photos TEXT NOT NULL DEFAULT '[]',
    video_evidence TEXT,
    status TEXT NOT NULL DEFAULT 'pending',
    user_id TEXT NOT NULL,
    scan_result_id TEXT NOT NULL UNIQUE REFERENCES scan_results(id),
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_seizures_status ON seizures(status);
CREATE INDEX IF NOT EXISTS idx_seizures_created ON seizures(created_at);
CREATE INDEX IF NOT EXISTS idx_seizures_user ON seizures(user_id);

CREATE TABLE IF NOT EXISTS lab_samples (
    id TEXT PRIMARY KEY,
    sample_type TEXT NOT NULL,
    lab_destination TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'in-transit',
    lab_result TEXT,
    user_id TEXT NOT NULL,
    seizure_id TEXT NOT NULL REFERENCES seizures(id),
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_lab_samples_status ON lab_samples(status);
CREATE INDEX IF NOT EXISTS idx_lab_samples_created ON lab_samples(created_at);
CREATE INDEX IF NOT EXISTS idx_lab_samples_user ON lab_samples(user_id);
CREATE INDEX IF NOT EXISTS idx_lab_samples_seizure ON lab_samples(seizure_id);

CREATE TABLE IF NOT EXISTS fir_cases (
    id TEXT PRIMARY KEY,
    lab_report_id TEXT NOT NULL,
    violation_type TEXT NOT NULL,
    accused TEXT NOT NULL,
    location TEXT NOT NULL,
    status TEXT NOT NULL DEFAULT 'draft',
    case_notes TEXT,
    court_date TEXT,
    outcome TEXT,
    user_id TEXT NOT NULL,
    seizure_id TEXT REFERENCES seizures(id),
    lab_sample_id TEXT REFERENCES lab_samples(id),
    created_at TIMESTAMP NOT NULL,
    updated_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_fir_cases_status ON fir_cases(status);
CREATE INDEX IF NOT EXISTS idx_fir_cases_created ON fir_cases(created_at);
CREATE INDEX IF NOT EXISTS idx_fir_cases_user ON fir_cases(user_id);
CREATE INDEX IF NOT EXISTS idx_fir_cases_seizure ON fir_cases(seizure_id);
CREATE INDEX IF NOT EXISTS idx_fir_cases_lab_sample ON fir_cases(lab_sample_id);

CREATE TABLE IF NOT EXISTS audit_logs (
    id TEXT PRIMARY KEY,
    action TEXT NOT NULL,
    entity TEXT NOT NULL,
    entity_id TEXT NOT NULL,
    old_data TEXT,
    new_data TEXT,
    user_id TEXT NOT NULL,
    created_at TIMESTAMP NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_audit_logs_created ON audit_logs(created_at);
CREATE INDEX IF NOT EXISTS idx_audit_logs_user ON audit_logs(user_id);
"""


def get_table_names() -> List[str]:
    """Names of all tables created by the schema"""
    return list(TABLE_COLUMNS.keys())
