import threading
import time
from typing import Any
from unittest.mock import MagicMock

from notary.ledger.event_log import EventLog
from notary.ledger.gateway import TopicMessage
from notary.ledger.memory_gateway import MemoryGateway


def _collect(log: EventLog, **kwargs: Any) -> tuple[list[dict[str, Any]], list[Exception]]:
    received: list[dict[str, Any]] = []
    errors: list[Exception] = []
    log.subscribe(lambda payload, _msg: received.append(payload), errors.append, **kwargs)
    return received, errors


def _wait_for(predicate: Any, timeout: float = 2.0) -> None:
    deadline = time.monotonic() + timeout
    while not predicate() and time.monotonic() < deadline:
        time.sleep(0.01)


class TestEnsureTopic:
    def test_configured_topic_is_used_without_creation(self) -> None:
        gateway = MagicMock()
        log = EventLog(gateway, topic_id=" 0.0.77 ")
        assert log.ensure_topic() == "0.0.77"
        gateway.create_topic.assert_not_called()

    def test_creates_once_and_remembers(self) -> None:
        gateway = MagicMock()
        gateway.create_topic.return_value = "0.0.88"
        log = EventLog(gateway)
        assert log.topic_id is None
        assert log.ensure_topic() == "0.0.88"
        assert log.ensure_topic() == "0.0.88"
        gateway.create_topic.assert_called_once()
        assert log.topic_id == "0.0.88"

    def test_concurrent_callers_create_once(self) -> None:
        gateway = MagicMock()
        gateway.create_topic.side_effect = lambda _memo: time.sleep(0.05) or "0.0.88"
        log = EventLog(gateway)
        threads = [threading.Thread(target=log.ensure_topic) for _ in range(5)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        gateway.create_topic.assert_called_once()


class TestPublishSubscribe:
    def test_events_delivered_in_publish_order(self) -> None:
        log = EventLog(MemoryGateway())
        received, errors = _collect(log)
        for i in range(20):
            log.publish({"type": "n", "i": i})
        _wait_for(lambda: len(received) == 20)
        assert [e["i"] for e in received] == list(range(20))
        assert errors == []

    def test_all_subscribers_see_same_order(self) -> None:
        log = EventLog(MemoryGateway())
        first, _ = _collect(log)
        second, _ = _collect(log)
        for i in range(10):
            log.publish({"i": i})
        _wait_for(lambda: len(first) == 10 and len(second) == 10)
        assert first == second

    def test_from_beginning_replays_history(self) -> None:
        log = EventLog(MemoryGateway())
        log.publish({"i": 0})
        log.publish({"i": 1})
        received, _ = _collect(log, from_beginning=True)
        _wait_for(lambda: len(received) == 2)
        assert [e["i"] for e in received] == [0, 1]

    def test_from_now_skips_history(self) -> None:
        log = EventLog(MemoryGateway())
        log.publish({"i": 0})
        time.sleep(0.01)
        received, _ = _collect(log)
        log.publish({"i": 1})
        _wait_for(lambda: len(received) == 1)
        time.sleep(0.05)
        assert received == [{"i": 1}]

    def test_non_json_messages_are_skipped(self) -> None:
        gateway = MemoryGateway()
        log = EventLog(gateway)
        received, _ = _collect(log)
        topic_id = log.ensure_topic()
        gateway.submit_message(topic_id, b"\xff not json")
        gateway.submit_message(topic_id, b"[1, 2]")
        log.publish({"i": 1})
        _wait_for(lambda: len(received) == 1)
        assert received == [{"i": 1}]

    def test_handler_error_reported(self) -> None:
        log = EventLog(MemoryGateway())
        errors: list[Exception] = []

        def _explode(_payload: dict[str, Any], _msg: TopicMessage) -> None:
            raise RuntimeError("handler bug")

        log.subscribe(_explode, errors.append)
        log.publish({"i": 1})
        _wait_for(lambda: len(errors) == 1)
        assert isinstance(errors[0], RuntimeError)

    def test_cancelled_subscription_stops_delivery(self) -> None:
        log = EventLog(MemoryGateway())
        received: list[dict[str, Any]] = []
        handle = log.subscribe(lambda p, _m: received.append(p), lambda _e: None)
        handle.cancel()
        log.publish({"i": 1})
        time.sleep(0.05)
        assert received == []


class TestReadiness:
    def test_ready_on_first_probe(self) -> None:
        gateway = MagicMock()
        gateway.topic_ready.return_value = True
        sleep = MagicMock()
        log = EventLog(gateway, topic_id="0.0.1")
        assert log.wait_until_ready(3, 1.0, sleep=sleep) is True
        sleep.assert_not_called()

    def test_retries_until_ready(self) -> None:
        gateway = MagicMock()
        gateway.topic_ready.side_effect = [False, False, True]
        sleep = MagicMock()
        log = EventLog(gateway, topic_id="0.0.1")
        assert log.wait_until_ready(5, 0.5, sleep=sleep) is True
        assert sleep.call_count == 2

    def test_gives_up_after_attempts(self) -> None:
        gateway = MagicMock()
        gateway.topic_ready.return_value = False
        sleep = MagicMock()
        log = EventLog(gateway, topic_id="0.0.1")
        assert log.wait_until_ready(3, 0.5, sleep=sleep) is False
        assert gateway.topic_ready.call_count == 3
        assert sleep.call_count == 2
