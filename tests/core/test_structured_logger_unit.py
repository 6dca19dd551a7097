import logging

from core.error_handler import StructuredLogger, get_correlation_id, set_correlation_id


def test_structured_logger_redacts_patient_identifiers():
    logger = StructuredLogger("tests")

    data = {
        "phone_number": "5551234567",
        "phoneNumber": "5551234567",
        "content": "Blood panel normal.",
        "patient_data": "free text",
        "record_type": "lab_results",
        "hospital_id": "hosp-042",
    }
    sanitized = logger._sanitize_data(data)

    assert sanitized["phone_number"] == "[REDACTED]"
    assert sanitized["phoneNumber"] == "[REDACTED]"
    assert sanitized["content"] == "[REDACTED]"
    assert sanitized["patient_data"] == "[REDACTED]"
    assert sanitized["record_type"] == "lab_results"
    assert sanitized["hospital_id"] == "hosp-042"


def test_structured_logger_redacts_nested_values():
    logger = StructuredLogger("tests")
    sanitized = logger._sanitize_data(
        {"record": {"phoneNumber": "5551234567", "recordType": "imaging"}, "items": [
            {"api_key": "placeholder"}  # pragma: allowlist secret
        ]}
    )
    assert sanitized["record"] == {"phoneNumber": "[REDACTED]", "recordType": "imaging"}
    assert sanitized["items"] == [{"api_key": "[REDACTED]"}]


def test_log_line_carries_correlation_id(caplog):
    caplog.set_level(logging.INFO)
    set_correlation_id("cid-123")
    try:
        StructuredLogger("tests").info("Submitting record", attempt=3)
    finally:
        set_correlation_id(None)

    assert "[cid-123] Submitting record attempt=3" in caplog.text


def test_correlation_id_generated_when_missing():
    set_correlation_id(None)
    generated = get_correlation_id()
    assert generated
    assert get_correlation_id() == generated
    set_correlation_id(None)
