import io
import json
import logging

from ordersync.core.logging_setup import JsonFormatter
from ordersync.core.request_context import clear_request_context, set_request_context


def _record(msg, args, **extra):
    record = logging.LogRecord("ordersync.test", logging.WARNING, __file__, 10, msg, args, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_interpolates_args_into_json():
    line = JsonFormatter("%(message)s").format(_record("Access denied (%s)", ("unauthorized",), reason="role_denied"))

    payload = json.loads(line)
    assert payload["message"] == "Access denied (unauthorized)"
    assert payload["level"] == "WARNING"
    assert payload["module"] == "ordersync.test"
    assert payload["reason"] == "role_denied"


def test_formatter_masks_secrets_and_reads_request_context():
    set_request_context(request_id="req-1", tenant_id=7, user_id=3)
    try:
        line = JsonFormatter("%(message)s").format(_record("calling api token=%s", ("abc123",)))
    finally:
        clear_request_context()

    payload = json.loads(line)
    assert payload["message"] == "calling api token=***"
    assert (payload["request_id"], payload["tenant_id"], payload["user_id"]) == ("req-1", "7", "3")


def test_handler_emits_one_json_line_per_record():
    stream = io.StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter("%(message)s"))
    logger = logging.getLogger("ordersync.test.handler")
    logger.addHandler(handler)
    logger.propagate = False
    try:
        logger.warning("request completed status=%s", 200)
    finally:
        logger.removeHandler(handler)
        logger.propagate = True

    lines = stream.getvalue().splitlines()
    assert len(lines) == 1
    assert json.loads(lines[0])["message"] == "request completed status=200"
