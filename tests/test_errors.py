import pytest
from graphql import GraphQLError

from gateway.clients import UpstreamError
from gateway.errors import ErrorKind, classify, message_of, require_entity, translate

def upstream(status, message="boom"):
    return UpstreamError("order", "POST", "/api/orders", status, message)

def test_classification():
    assert classify(upstream(401)) is ErrorKind.UNAUTHENTICATED
    assert classify(upstream(400)) is ErrorKind.UPSTREAM_VALIDATION
    assert classify(upstream(404)) is ErrorKind.UPSTREAM_VALIDATION
    assert classify(upstream(500)) is ErrorKind.UPSTREAM_UNAVAILABLE
    assert classify(upstream(None)) is ErrorKind.UPSTREAM_UNAVAILABLE

def test_translate_passes_client_message_through():
    error = translate(upstream(400, "Insufficient stock for product Lamp"))
    assert error.message == "Insufficient stock for product Lamp"
    assert error.extensions == {"code": "UPSTREAM_VALIDATION", "service": "order", "status": 400}

def test_translate_without_status_omits_it():
    error = translate(upstream(None, "order service timed out"))
    assert error.extensions == {"code": "UPSTREAM_UNAVAILABLE", "service": "order"}

def test_message_of_only_trusts_client_errors():
    assert message_of(upstream(400, "Coupon expired"), "Invalid coupon code") == "Coupon expired"
    assert message_of(upstream(502, "bad gateway"), "Invalid coupon code") == "Invalid coupon code"
    assert message_of(ValueError("x"), "fallback") == "fallback"

@pytest.mark.parametrize("raw", [None, {}, [], "saved", {"message": "Order updated"}, {"_id": None, "name": "x"}])
def test_require_entity_rejects_replies_without_an_entity(raw):
    with pytest.raises(GraphQLError) as caught:
        require_entity(raw, "order")
    assert caught.value.message == "Invalid response from downstream service"
    assert caught.value.extensions == {"code": "UPSTREAM_UNAVAILABLE", "service": "order"}

def test_require_entity_accepts_either_id_key():
    assert require_entity({"_id": "o1"}, "order") == {"_id": "o1"}
    assert require_entity({"id": "o1"}, "order") == {"id": "o1"}
