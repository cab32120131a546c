"""
Tests for the TLS grading client state machine
"""
import asyncio
import pytest
import aiohttp

from config import SSL_LABS_API
from models import TLSState
from tls_grader import TLSGradeClient


def make_grader(client, sleep, max_attempts=30, poll_interval=10.0):
    return TLSGradeClient(client, api_url=SSL_LABS_API, max_attempts=max_attempts,
                          poll_interval=poll_interval, sleep=sleep)


class TestTLSGradeClient:
    """Tests for TLSGradeClient"""

    def test_ready_after_polling(self, run, make_client, fake_sleep, ssl_labs_endpoint):
        client = make_client(json_responses=[
            {"status": "DNS"},
            {"status": "IN_PROGRESS"},
            {"status": "IN_PROGRESS"},
            {"status": "READY", "endpoints": [ssl_labs_endpoint]},
        ])

        assessment = run(make_grader(client, fake_sleep).assess("example.com"))

        assert assessment.state is TLSState.READY
        assert assessment.attempts == 3
        assert fake_sleep.delays == [10.0, 10.0, 10.0]

        endpoint = assessment.endpoints[0]
        assert endpoint.ip_address == "93.184.216.34"
        assert endpoint.grade == "A+"
        assert endpoint.details.protocols == [
            {"name": "TLS", "version": "1.2"},
            {"name": "TLS", "version": "1.3"},
        ]
        assert endpoint.details.cert_subject == "CN=www.example.com"
        assert endpoint.details.key_alg == "RSA"
        assert endpoint.details.key_size == 2048
        assert endpoint.details.forward_secrecy is True

    def test_start_and_poll_query_parameters(self, run, make_client, fake_sleep):
        client = make_client(json_responses=[{}, {"status": "READY", "endpoints": []}])

        run(make_grader(client, fake_sleep).assess("example.com"))

        assert client.json_calls == [
            (SSL_LABS_API, {"host": "example.com", "startNew": "on", "all": "done"}),
            (SSL_LABS_API, {"host": "example.com", "all": "done"}),
        ]

    def test_error_status(self, run, make_client, fake_sleep):
        client = make_client(json_responses=[
            {"status": "DNS"},
            {"status": "ERROR", "statusMessage": "Unable to resolve domain name"},
        ])

        assessment = run(make_grader(client, fake_sleep).assess("nope.invalid"))

        assert assessment.state is TLSState.ERROR
        assert assessment.error == "Unable to resolve domain name"
        assert assessment.endpoints == []
        assert assessment.to_dict() is None

    def test_timeout_after_attempt_budget(self, run, make_client, fake_sleep):
        client = make_client(json_responses=[{}] + [{"status": "IN_PROGRESS"}] * 10)

        assessment = run(make_grader(client, fake_sleep, max_attempts=5).assess("example.com"))

        assert assessment.state is TLSState.TIMEOUT
        assert assessment.attempts == 5
        assert len(client.json_calls) == 6
        assert fake_sleep.total == 5 * 10.0
        assert assessment.to_dict() is None

    @pytest.mark.parametrize("polls", [
        [{"status": "READY", "endpoints": []}],
        [{"status": "IN_PROGRESS"}, {"status": "ERROR"}],
        [{"status": "IN_PROGRESS"}] * 40,
    ])
    def test_wall_clock_bounded_by_budget(self, run, make_client, fake_sleep, polls):
        client = make_client(json_responses=[{}] + polls)
        grader = make_grader(client, fake_sleep, max_attempts=30, poll_interval=10.0)

        assessment = run(grader.assess("example.com"))

        assert assessment.state.is_terminal
        assert fake_sleep.total <= grader.max_attempts * grader.poll_interval
        assert len(fake_sleep.delays) <= grader.max_attempts

    def test_start_failure_returns_none(self, run, make_client, fake_sleep):
        client = make_client(json_responses=[aiohttp.ClientConnectionError("api down")])

        assert run(make_grader(client, fake_sleep).assess("example.com")) is None
        assert fake_sleep.delays == []

    def test_poll_failure_is_error(self, run, make_client, fake_sleep):
        client = make_client(json_responses=[{}, {"status": "IN_PROGRESS"}, asyncio.TimeoutError()])

        assessment = run(make_grader(client, fake_sleep).assess("example.com"))

        assert assessment.state is TLSState.ERROR
        assert assessment.attempts == 2
        assert assessment.error

    def test_unexpected_payload_is_error(self, run, make_client, fake_sleep):
        client = make_client(json_responses=[{}, ["not", "a", "dict"]])

        assessment = run(make_grader(client, fake_sleep).assess("example.com"))

        assert assessment.state is TLSState.ERROR

    def test_ready_to_dict(self, run, make_client, fake_sleep, ssl_labs_endpoint):
        client = make_client(json_responses=[{}, {"status": "READY", "endpoints": [ssl_labs_endpoint]}])

        data = run(make_grader(client, fake_sleep).assess("example.com")).to_dict()

        assert data["status"] == "READY"
        assert data["endpoints"][0]["ipAddress"] == "93.184.216.34"
        assert data["endpoints"][0]["details"]["key"] == {"alg": "RSA", "size": 2048}

    def test_endpoint_without_details(self):
        endpoints = TLSGradeClient.parse_endpoints({"endpoints": [{"ipAddress": "10.0.0.1"}, "junk"]})
        assert len(endpoints) == 1
        assert endpoints[0].grade is None
        assert endpoints[0].details is None

    def test_next_state(self):
        assert TLSGradeClient.next_state({"status": "READY"}) is TLSState.READY
        assert TLSGradeClient.next_state({"status": "ERROR"}) is TLSState.ERROR
        assert TLSGradeClient.next_state({"status": "IN_PROGRESS"}) is TLSState.POLLING
        assert TLSGradeClient.next_state({}) is TLSState.POLLING

    def test_defaults(self, make_client):
        grader = TLSGradeClient(make_client())
        assert grader.max_attempts == 30
        assert grader.poll_interval == 10.0
        assert grader.sleep is asyncio.sleep

    def test_invalid_attempt_budget(self, make_client):
        with pytest.raises(ValueError):
            TLSGradeClient(make_client(), max_attempts=0)
