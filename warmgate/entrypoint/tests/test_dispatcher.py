import uuid
from unittest.mock import MagicMock

import pytest

from warmgate.common.core.request_context import CorrelationIdFilter
from warmgate.entrypoint.core.deadline import get_cancellation_token
from warmgate.entrypoint.models.invocation import ProcessState
from warmgate.entrypoint.services.dispatcher import InvocationDispatcher, parse_concurrency
from warmgate.entrypoint.services.prewarmer import WarmPoolPrewarmer

EMPTY_RESPONSE = {"statusCode": 200, "headers": {}, "body": "", "isBase64Encoded": False}


def _app_event(headers=None):
    return {
        "resource": "/{proxy+}",
        "path": "/v1/orders",
        "httpMethod": "GET",
        "headers": headers if headers is not None else {"Accept": "application/json"},
        "requestContext": {"identity": {"sourceIp": "1.2.3.4"}, "requestId": "r-1"},
    }


@pytest.fixture
def prewarmer():
    return MagicMock(spec=WarmPoolPrewarmer)


@pytest.fixture
def sleeps():
    return []


@pytest.fixture
def dispatcher(host, prewarmer, config, sleeps):
    return InvocationDispatcher(host, prewarmer, ProcessState(), config, sleep=sleeps.append)


# ===========================================
# Control invocations
# ===========================================


def test_cold_control_invocation_forwards_synthetic_ping(dispatcher, host, lambda_context):
    response = dispatcher.handle({}, lambda_context)

    assert response == host.response
    assert len(host.events) == 1
    ping = host.events[0]
    assert ping["httpMethod"] == "GET"
    assert ping["path"] == "/ping"
    assert ping["headers"] == {"Host": "localhost"}
    assert dispatcher.state.warm is True


def test_warm_control_invocation_returns_empty_response(dispatcher, host, lambda_context):
    dispatcher.state.warm = True

    response = dispatcher.handle({"headers": {}}, lambda_context)

    assert response == EMPTY_RESPONSE
    assert host.events == []


def test_second_ping_does_not_reach_host(dispatcher, host, lambda_context):
    dispatcher.handle({}, lambda_context)
    dispatcher.handle({}, lambda_context)

    assert len(host.events) == 1


def test_custom_health_check_path(host, prewarmer, config, lambda_context):
    config.HEALTH_CHECK_PATH = "/health"
    dispatcher = InvocationDispatcher(host, prewarmer, ProcessState(), config, sleep=lambda s: None)

    dispatcher.handle({}, lambda_context)

    assert host.events[0]["path"] == "/health"


def test_concurrency_header_prewarms_n_minus_one(dispatcher, prewarmer, make_context):
    dispatcher.handle({"headers": {"__CONCURRENCY__": "5"}}, make_context(20000))

    prewarmer.prewarm.assert_called_once_with(4, timeout=pytest.approx(15.0))


def test_fanout_join_leaves_budget_for_the_ping(dispatcher, prewarmer, config, make_context):
    config.SOFT_DEADLINE_RATIO = 0.5

    dispatcher.handle({"headers": {"__CONCURRENCY__": "2"}}, make_context(10000))

    assert prewarmer.prewarm.call_args.kwargs["timeout"] == pytest.approx(5.0)


def test_concurrency_of_one_prewarms_nothing(dispatcher, prewarmer, lambda_context):
    dispatcher.handle({"headers": {"__CONCURRENCY__": "1"}}, lambda_context)

    prewarmer.prewarm.assert_called_once()
    assert prewarmer.prewarm.call_args.args[0] == 0


def test_malformed_concurrency_header_skips_fanout(dispatcher, prewarmer, host, lambda_context):
    response = dispatcher.handle({"headers": {"__CONCURRENCY__": "lots"}}, lambda_context)

    prewarmer.prewarm.assert_not_called()
    assert response == host.response


def test_fanout_disabled_by_toggle(host, prewarmer, config, lambda_context):
    config.ENABLE_CONCURRENCY_FANOUT = False
    dispatcher = InvocationDispatcher(host, prewarmer, ProcessState(), config, sleep=lambda s: None)

    dispatcher.handle({"headers": {"__CONCURRENCY__": "3"}}, lambda_context)

    prewarmer.prewarm.assert_not_called()


def test_keep_alive_header_pauses(dispatcher, sleeps, lambda_context):
    dispatcher.handle({"headers": {"__KEEP_ALIVE_INVOCATION__": "1"}}, lambda_context)

    assert sleeps == [pytest.approx(0.075)]


def test_legacy_capitalized_headers_key(dispatcher, prewarmer, sleeps, lambda_context):
    dispatcher.handle({"Headers": {"__KEEP_ALIVE_INVOCATION__": "1"}}, lambda_context)

    assert sleeps == [pytest.approx(0.075)]


def test_no_pause_without_keep_alive_header(dispatcher, sleeps, lambda_context):
    dispatcher.handle({"headers": {"__CONCURRENCY__": "2"}}, lambda_context)

    assert sleeps == []


def test_fanout_finishes_before_response(config, lambda_context):
    """The fan-out is joined before the control invocation answers."""
    order = []

    class OrderedInvoker:
        def invoke(self, function_name, payload):
            order.append("invoke")
            return "{}"

    def recording_host(event, context):
        order.append("host")
        return {"statusCode": 200}

    dispatcher = InvocationDispatcher(
        recording_host,
        WarmPoolPrewarmer(OrderedInvoker(), "orders-api"),
        ProcessState(),
        config,
        sleep=lambda s: None,
    )

    dispatcher.handle({"headers": {"__CONCURRENCY__": "3"}}, lambda_context)

    assert order == ["invoke", "invoke", "host"]


@pytest.mark.parametrize("event", [None, {}, {"httpMethod": ""}, {"headers": None}])
def test_malformed_events_fall_back_to_control_path(dispatcher, host, event, lambda_context):
    response = dispatcher.handle(event, lambda_context)

    assert response == host.response
    assert host.events[0]["path"] == "/ping"


def test_cold_start_logged_for_real_callers(dispatcher, lambda_context, caplog):
    with caplog.at_level("INFO", logger="warmgate.dispatcher"):
        dispatcher.handle({}, lambda_context)

    assert any("coldstart" in r.getMessage() for r in caplog.records)


def test_cold_start_not_logged_for_keep_alive(dispatcher, lambda_context, caplog):
    with caplog.at_level("INFO", logger="warmgate.dispatcher"):
        dispatcher.handle({"headers": {"__KEEP_ALIVE_INVOCATION__": "1"}}, lambda_context)

    assert not any("coldstart" in r.getMessage() for r in caplog.records)


# ===========================================
# Application invocations
# ===========================================


def test_application_invocation_forwards_event(dispatcher, host, lambda_context):
    event = _app_event({"mh-correlation-id": "abc"})

    response = dispatcher.handle(event, lambda_context)

    assert response == host.response
    assert host.events == [event]
    assert dispatcher.state.correlation.current == "abc"


def test_generated_correlation_id_is_stamped_without_mutating_input(
    dispatcher, host, lambda_context
):
    event = _app_event()

    dispatcher.handle(event, lambda_context)

    forwarded = host.events[0]
    correlation_id = forwarded["headers"]["mh-correlation-id"]
    uuid.UUID(correlation_id)
    assert forwarded["headers"]["Accept"] == "application/json"
    assert forwarded["path"] == event["path"]
    assert "mh-correlation-id" not in event["headers"]


def test_consecutive_invocations_get_distinct_ids(dispatcher, host, lambda_context):
    """One invocation at a time: each overwrites the process-wide id."""
    dispatcher.handle(_app_event(), lambda_context)
    first = dispatcher.state.correlation.current
    dispatcher.handle(_app_event(), lambda_context)
    second = dispatcher.state.correlation.current

    assert first != second
    assert host.events[0]["headers"]["mh-correlation-id"] == first
    assert host.events[1]["headers"]["mh-correlation-id"] == second


def test_control_invocation_logs_without_previous_correlation_id(dispatcher, lambda_context, caplog):
    dispatcher.handle(_app_event({"mh-correlation-id": "abc"}), lambda_context)
    caplog.handler.addFilter(CorrelationIdFilter(dispatcher.state.correlation))

    with caplog.at_level("INFO", logger="warmgate.dispatcher"):
        dispatcher.handle({}, lambda_context)

    assert dispatcher.state.correlation.current is None
    assert caplog.records
    assert all(r.correlation_id is None for r in caplog.records)


def test_caller_id_is_not_reused_by_next_invocation(dispatcher, lambda_context):
    dispatcher.handle(_app_event({"mh-correlation-id": "abc"}), lambda_context)
    dispatcher.handle(_app_event({}), lambda_context)

    assert dispatcher.state.correlation.current != "abc"


def test_application_invocation_sets_warm_flag(dispatcher, lambda_context):
    assert dispatcher.state.warm is False

    dispatcher.handle(_app_event(), lambda_context)

    assert dispatcher.state.warm is True


def test_host_errors_propagate(prewarmer, config, lambda_context):
    def failing_host(event, context):
        raise RuntimeError("db down")

    dispatcher = InvocationDispatcher(failing_host, prewarmer, ProcessState(), config)

    with pytest.raises(RuntimeError, match="db down"):
        dispatcher.handle(_app_event(), lambda_context)
    assert dispatcher.state.warm is True


def test_host_sees_cancellation_token(prewarmer, config, make_context):
    seen = {}

    def host(event, context):
        token = get_cancellation_token()
        seen["token"] = token
        seen["deadline"] = token.deadline_seconds
        return {"statusCode": 200}

    dispatcher = InvocationDispatcher(host, prewarmer, ProcessState(), config)
    dispatcher.handle(_app_event(), make_context(2000))

    assert seen["deadline"] == pytest.approx(1.5)
    assert seen["token"].cancelled is False
    assert get_cancellation_token() is None


def test_slow_host_is_asked_to_cancel(prewarmer, config, make_context):
    def host(event, context):
        token = get_cancellation_token()
        assert token.wait(2.0) is True
        return {"statusCode": 504, "body": token.reason}

    dispatcher = InvocationDispatcher(host, prewarmer, ProcessState(), config)
    response = dispatcher.handle(_app_event(), make_context(200))

    assert response == {"statusCode": 504, "body": "deadline"}


def test_parse_concurrency():
    assert parse_concurrency("4") == 4
    assert parse_concurrency(" 2 ") == 2
    assert parse_concurrency(3) == 3
    assert parse_concurrency("x") is None
    assert parse_concurrency(None) is None
