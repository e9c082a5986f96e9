from __future__ import annotations

from relay.dispatch.outcomes import Rejected, ServerFailure, Success, TransportError, classify_status, is_success


def test_zero_means_transport_error():
    assert isinstance(classify_status(0), TransportError)


def test_status_codes_are_preserved():
    assert classify_status(204) == Success(204)
    assert classify_status(400) == Rejected(400)
    assert classify_status(422) == Rejected(422)
    assert classify_status(503) == ServerFailure(503)
    assert classify_status(404) == ServerFailure(404)


def test_is_success():
    assert is_success(Success(200))
    assert not is_success(ServerFailure(500))
    assert not is_success(TransportError())
