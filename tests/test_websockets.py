import uuid

from panelnode.server.websockets import WebsocketBag


def test_cancel_all_calls_every_callback():
    bag = WebsocketBag()
    called = []
    bag.push(uuid.uuid4(), lambda: called.append("a"))
    bag.push(uuid.uuid4(), lambda: called.append("b"))
    assert len(bag) == 2
    bag.cancel_all()
    assert sorted(called) == ["a", "b"]
    assert len(bag) == 0


def test_removed_connection_is_not_cancelled():
    bag = WebsocketBag()
    called = []
    first, second = uuid.uuid4(), uuid.uuid4()
    bag.push(first, lambda: called.append("first"))
    bag.push(second, lambda: called.append("second"))
    bag.remove(first)
    bag.cancel_all()
    assert called == ["second"]


def test_remove_unknown_key_is_ignored():
    bag = WebsocketBag()
    bag.push("known", lambda: None)
    bag.remove("missing")
    assert len(bag) == 1


def test_push_same_key_replaces():
    bag = WebsocketBag()
    called = []
    bag.push("k", lambda: called.append("old"))
    bag.push("k", lambda: called.append("new"))
    assert len(bag) == 1
    bag.cancel_all()
    assert called == ["new"]


def test_cancel_all_twice_calls_once():
    bag = WebsocketBag()
    called = []
    bag.push("k", lambda: called.append(1))
    bag.cancel_all()
    bag.cancel_all()
    assert called == [1]