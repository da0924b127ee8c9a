"""Test cases for the cache-bust counter."""

import threading

from labelprint.core.cache_bust import CacheBust


def test_starts_at_zero() -> None:
    buster = CacheBust()

    assert buster.value == 0
    assert buster.bust == "cache=0"


def test_refresh_increments_key() -> None:
    """Test the derived key follows the counter."""
    buster = CacheBust()

    assert buster.refresh() == 1
    assert buster.bust == "cache=1"

    buster.refresh()
    assert buster.bust == "cache=2"


def test_refresh_strictly_increases() -> None:
    buster = CacheBust()
    seen = [buster.value]

    for _ in range(5):
        buster.refresh()
        seen.append(buster.value)

    assert seen == sorted(set(seen))


def test_apply_appends_query() -> None:
    """Test the key is appended as a query parameter."""
    buster = CacheBust()

    assert buster.apply("http://host/images/abc") == "http://host/images/abc?cache=0"
    assert buster.apply("http://host/preview?scale=2") == "http://host/preview?scale=2&cache=0"


def test_subscribers_notified() -> None:
    """Test subscribers receive each new value."""
    buster = CacheBust()
    received: list[int] = []

    buster.subscribe(received.append)
    buster.refresh()
    buster.refresh()

    assert received == [1, 2]


def test_unsubscribe() -> None:
    buster = CacheBust()
    received: list[int] = []

    unsubscribe = buster.subscribe(received.append)
    buster.refresh()
    unsubscribe()
    unsubscribe()
    buster.refresh()

    assert received == [1]


def test_reading_inside_listener_sees_new_value() -> None:
    """Test the derived key is already updated when listeners run."""
    buster = CacheBust()
    keys: list[str] = []

    buster.subscribe(lambda _value: keys.append(buster.bust))
    buster.refresh()

    assert keys == ["cache=1"]


def test_concurrent_refresh_loses_no_increment() -> None:
    """Test increments from several threads all land."""
    buster = CacheBust()

    def bump() -> None:
        for _ in range(250):
            buster.refresh()

    threads = [threading.Thread(target=bump) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    assert buster.value == 1000


def test_failing_listener_does_not_block_others() -> None:
    """Test every listener is called even when an earlier one raises."""
    buster = CacheBust()
    seen: list[int] = []

    def broken(value: int) -> None:
        raise RuntimeError("listener failed")

    buster.subscribe(broken)
    buster.subscribe(seen.append)

    assert buster.refresh() == 1
    assert seen == [1]
    assert buster.bust == "cache=1"
