import json

from loguru import logger

from legends_api.core.logging import REDACTED, configure_logging, redact


def _lines(capsys):
    return [json.loads(line) for line in capsys.readouterr().out.splitlines() if line.strip()]


def test_records_are_json_lines_with_service_identity(capsys) -> None:
    configure_logging(service_name="legends-api", environment="staging", version="9.9.9")

    logger.info("Approved reward redemption", user_id="member-1", points=40, service="other")

    [payload] = _lines(capsys)
    assert payload["message"] == "Approved reward redemption"
    assert payload["level"] == "info"
    assert payload["service"] == "legends-api"
    assert payload["environment"] == "staging"
    assert payload["version"] == "9.9.9"
    assert payload["user_id"] == "member-1"
    assert payload["points"] == 40
    assert "trace_id" not in payload


def test_member_secrets_are_masked(capsys) -> None:
    configure_logging(service_name="legends-api", environment="development", version="0.1.0")

    logger.info("Issued email OTP", otp_code="482913", password="hunter2", code="SCAN_LIMIT")

    [payload] = _lines(capsys)
    assert payload["otp_code"] == REDACTED
    assert payload["password"] == REDACTED
    assert payload["code"] == "SCAN_LIMIT"
    assert redact({"JWT": "eyJ", "user_id": "u"}) == {"JWT": REDACTED, "user_id": "u"}


def test_level_threshold_and_exception_summary(capsys) -> None:
    configure_logging(service_name="legends-api", environment="development", version="0.1.0", level="warning")

    logger.info("Dropped below threshold")
    logger.opt(exception=ValueError("storage offline")).error("QR image generation failed")

    [payload] = _lines(capsys)
    assert payload["message"] == "QR image generation failed"
    assert payload["exception"] == {"type": "ValueError", "message": "storage offline"}
