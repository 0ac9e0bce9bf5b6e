import json
import logging

from opportunity_hub.core.logging_config import JsonFormatter, RequestIdFilter, request_id_ctx_var


def _record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("opportunity_hub.test", logging.INFO, __file__, 1, "coupon_redeemed", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_promotes_extra_fields() -> None:
    token = request_id_ctx_var.set("req-1")
    try:
        record = _record(coupon_id="c-1", fields=["code", "is_active"])
        RequestIdFilter().filter(record)
        payload = json.loads(JsonFormatter().format(record))
    finally:
        request_id_ctx_var.reset(token)

    assert payload["message"] == "coupon_redeemed"
    assert payload["level"] == "INFO"
    assert payload["request_id"] == "req-1"
    assert payload["coupon_id"] == "c-1"
    assert payload["fields"] == ["code", "is_active"]


def test_json_formatter_truncates_and_stringifies_unknown_values() -> None:
    record = _record(body="x" * 5000, when=object())
    payload = json.loads(JsonFormatter().format(record))

    assert len(payload["body"]) == 2000
    assert payload["when"].startswith("<object object")
    assert payload["request_id"] == "-"
