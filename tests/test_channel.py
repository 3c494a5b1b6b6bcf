import threading

import pytest

from buddhabrot.channel import ResultChannel, WorkerError


def test_iterates_until_all_senders_done():
    ch = ResultChannel(senders=2)
    assert ch.send("a")
    ch.sender_done()
    assert ch.send("b")
    ch.sender_done()
    assert list(ch) == ["a", "b"]
    assert ch.exhausted


def test_send_fails_after_close():
    ch = ResultChannel(senders=1)
    assert ch.send(1)
    ch.close()
    assert ch.closed
    assert not ch.send(2)


def test_drain_discards_pending_batches():
    ch = ResultChannel(senders=1)
    for i in range(3):
        ch.send(i)
    ch.close()
    ch.sender_done()
    assert ch.drain() == 3
    assert ch.receive() is None


def test_bounded_send_gives_up_when_closed():
    ch = ResultChannel(senders=1, capacity=1, poll_interval=0.01)
    assert ch.send("first")

    result = {}
    sender = threading.Thread(target=lambda: result.setdefault("ok", ch.send("second")))
    sender.start()
    ch.close()
    sender.join(timeout=5)

    assert not sender.is_alive()
    assert result["ok"] is False
    assert ch.receive() == "first"


def test_threads_feed_single_consumer():
    ch = ResultChannel(senders=3)

    def produce(tag):
        for i in range(50):
            ch.send((tag, i))
        ch.sender_done()

    threads = [threading.Thread(target=produce, args=(t,)) for t in range(3)]
    for t in threads:
        t.start()
    received = list(ch)
    for t in threads:
        t.join()

    assert len(received) == 150
    for tag in range(3):
        # per-producer order is preserved
        assert [i for t, i in received if t == tag] == list(range(50))


def test_needs_a_sender():
    with pytest.raises(ValueError):
        ResultChannel(senders=0)


def test_worker_failure_is_raised_to_consumer():
    ch = ResultChannel(senders=2)
    assert ch.send("a")
    ch.send_error(1, "Traceback ...\nMemoryError\n")
    ch.sender_done()
    ch.sender_done()
    it = iter(ch)
    assert next(it) == "a"
    with pytest.raises(WorkerError, match="worker 1 failed"):
        next(it)


def test_drain_skips_failures():
    ch = ResultChannel(senders=1)
    ch.send("a")
    ch.send_error(0, "boom")
    ch.sender_done()
    ch.close()
    assert ch.drain() == 1
    assert ch.exhausted
