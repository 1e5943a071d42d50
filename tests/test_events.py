import logging

from harada.services.events import ChangeNotifier


def test_listeners_receive_changes():
    seen = []
    notifier = ChangeNotifier()
    notifier.subscribe(lambda resource, resource_id: seen.append((resource, resource_id)))

    notifier.changed("cycle", 7)
    notifier.changed("chart", 1)

    assert seen == [("cycle", 7), ("chart", 1)]


def test_unsubscribe():
    seen = []
    notifier = ChangeNotifier()

    def listener(resource, resource_id):
        seen.append(resource)

    notifier.subscribe(listener)
    notifier.unsubscribe(listener)
    notifier.changed("cycle", 7)

    assert seen == []


def test_failing_listener_is_logged_and_others_still_run(caplog):
    seen = []
    notifier = ChangeNotifier()

    def broken(resource, resource_id):
        raise RuntimeError("cache offline")

    notifier.subscribe(broken)
    notifier.subscribe(lambda resource, resource_id: seen.append(resource_id))

    with caplog.at_level(logging.ERROR, logger="harada.services.events"):
        notifier.changed("weekly_action", 3)

    assert seen == [3]
    assert "Change listener failed for weekly_action 3" in caplog.text
