import queue
from datetime import datetime, timezone

import pytest

from hits.broadcast import GLOBAL_TOPIC, Broadcaster, format_hit_message


def test_publish_without_subscribers():
    assert Broadcaster().publish(GLOBAL_TOPIC, "hello") == 0


def test_every_subscriber_gets_the_message():
    b = Broadcaster()
    one, two = b.subscribe(), b.subscribe()
    assert b.publish(GLOBAL_TOPIC, "hello") == 2
    assert one.get(timeout=1) == "hello"
    assert two.get(timeout=1) == "hello"


def test_topics_are_separate():
    b = Broadcaster()
    sub = b.subscribe("other")
    b.publish(GLOBAL_TOPIC, "hello")
    with pytest.raises(queue.Empty):
        sub.get(timeout=0.01)


def test_full_subscriber_does_not_block():
    b = Broadcaster(queue_size=2)
    slow, fast = b.subscribe(), b.subscribe()
    for i in range(3):
        b.publish(GLOBAL_TOPIC, str(i))
        assert fast.get(timeout=1) == str(i)
    assert slow.dropped == 1
    assert [slow.get(timeout=1), slow.get(timeout=1)] == ["0", "1"]


def test_unsubscribe():
    b = Broadcaster()
    sub = b.subscribe()
    assert b.subscriber_count() == 1
    b.unsubscribe(sub)
    b.unsubscribe(sub)
    assert b.subscriber_count() == 0
    assert b.publish(GLOBAL_TOPIC, "hello") == 0


def test_format_hit_message():
    ts = datetime(2026, 10, 17, 9, 30, 5, 123456, tzinfo=timezone.utc)
    assert format_hit_message(ts, "project/badge", 2, "1a2b3c4d5e") == \
        "2026-10-17T09:30:05+00:00 project/badge 2 1a2b3c4d5e"
