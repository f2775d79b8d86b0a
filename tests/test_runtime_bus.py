from runtime_bus import RuntimeBus, topics


def test_publish_delivers_in_subscription_order() -> None:
    bus = RuntimeBus()
    calls = []
    for idx in range(5):
        bus.subscribe(topics.COMPONENTS_UPDATED, lambda msg, idx=idx: calls.append(idx))
    envelope = bus.publish(topics.COMPONENTS_UPDATED, {"session_id": "s1"}, source="test")
    assert calls == [0, 1, 2, 3, 4]
    assert envelope.type == "components-updated"
    assert envelope.payload == {"session_id": "s1"}
    assert envelope.trace_id


def test_publish_only_reaches_matching_topic() -> None:
    bus = RuntimeBus()
    seen = []
    bus.subscribe(topics.SESSION_CLEARED, lambda msg: seen.append(msg.type))
    bus.publish(topics.BUNDLE_EXECUTED, {}, source="test")
    assert seen == []
    bus.publish(topics.SESSION_CLEARED, None, source="test")
    assert seen == ["session-cleared"]


def test_unsubscribe_by_id_and_by_handler_identity() -> None:
    bus = RuntimeBus()
    seen = []

    def first(msg):
        seen.append("first")

    def second(msg):
        seen.append("second")

    sub_id = bus.subscribe(topics.BUNDLE_EXECUTED, first)
    bus.subscribe(topics.BUNDLE_EXECUTED, second)
    assert bus.subscriber_count(topics.BUNDLE_EXECUTED) == 2

    assert bus.unsubscribe_handler(topics.BUNDLE_EXECUTED, second) is True
    assert bus.unsubscribe_handler(topics.BUNDLE_EXECUTED, second) is False
    bus.publish(topics.BUNDLE_EXECUTED, {}, source="test")
    assert seen == ["first"]

    bus.unsubscribe(sub_id)
    bus.publish(topics.BUNDLE_EXECUTED, {}, source="test")
    assert seen == ["first"]
    assert bus.subscriber_count(topics.BUNDLE_EXECUTED) == 0


def test_raising_handler_does_not_block_later_handlers() -> None:
    bus = RuntimeBus()
    seen = []

    def broken(msg):
        raise RuntimeError("handler failure")

    bus.subscribe(topics.BUNDLE_EXECUTION_ERROR, broken)
    bus.subscribe(topics.BUNDLE_EXECUTION_ERROR, lambda msg: seen.append(msg.payload["error"]))
    bus.publish(topics.BUNDLE_EXECUTION_ERROR, {"error": "boom"}, source="test")
    assert seen == ["boom"]


def test_handler_may_unsubscribe_itself_during_delivery() -> None:
    bus = RuntimeBus()
    seen = []

    def once(msg):
        seen.append("once")
        bus.unsubscribe_handler(topics.SESSION_CLEARED, once)

    bus.subscribe(topics.SESSION_CLEARED, once)
    bus.subscribe(topics.SESSION_CLEARED, lambda msg: seen.append("always"))
    bus.publish(topics.SESSION_CLEARED, {}, source="test")
    bus.publish(topics.SESSION_CLEARED, {}, source="test")
    assert seen == ["once", "always", "always"]


def test_envelope_exposes_session_id_and_serializes() -> None:
    bus = RuntimeBus()
    envelope = bus.publish(topics.BUNDLE_EXECUTED, {"session_id": "s9", "stats": {}}, source="registry")
    assert envelope.session_id == "s9"
    data = envelope.to_dict()
    assert data["type"] == "bundle-executed"
    assert data["source"] == "registry"
    assert data["payload"]["session_id"] == "s9"
    assert bus.publish(topics.SESSION_CLEARED, {}, source="registry").session_id is None
