import json
import logging

from biteclub.app.middlewares.request_id import request_id_ctx
from biteclub.app.obs.logging import JsonFormatter, RequestIdFilter


def _render(msg, **extra):
    record = logging.LogRecord("biteclub.checkout", logging.INFO, __file__, 1, msg, (), None)
    for key, value in extra.items():
        setattr(record, key, value)
    RequestIdFilter().filter(record)
    return json.loads(JsonFormatter().format(record))


def test_json_lines_carry_request_and_domain_ids():
    token = request_id_ctx.set("req-1")
    try:
        data = _render("order placed", student="s1", order="o1")
    finally:
        request_id_ctx.reset(token)
    assert data["req_id"] == "req-1"
    assert data["student"] == "s1"
    assert data["order"] == "o1"
    assert "restaurant" not in data


def test_emails_and_card_numbers_are_redacted():
    data = _render("receipt for sam@state.edu paid with 4242 4242 4242 4242")
    assert "sam@state.edu" not in data["msg"]
    assert "4242" not in data["msg"]


def test_payment_intent_ids_are_masked():
    data = _render("purchase recorded ref=pi_3NxYz0AbCdEf12")
    assert "pi_***" in data["msg"]
    assert "3NxYz0AbCdEf12" not in data["msg"]


def test_unsafe_request_ids_are_replaced():
    from biteclub.app.middlewares.request_id import resolve_request_id

    assert resolve_request_id("abc-123") == "abc-123"
    assert resolve_request_id("bad id\nINJECTED") != "bad id\nINJECTED"
    assert len(resolve_request_id("x" * 200)) == 32
    assert resolve_request_id(None)
