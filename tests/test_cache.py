"""Tests for the Redis-backed signal cache (Redis is mocked)."""

import json
from unittest.mock import MagicMock

from redis.exceptions import ConnectionError as RedisConnectionError

from chartsignal.validation import validate
from chartsignal.vision.cache import cache_key, get_cached, put_cached
from chartsignal.vision.schema import SIGNAL_SCHEMA, to_analysis_result


def _result(payload):
    return to_analysis_result(validate(payload, SIGNAL_SCHEMA))


class TestCacheKey:
    def test_key_depends_on_selection(self):
        a = cache_key(b"img", "NIFTY", "INTRADAY")
        b = cache_key(b"img", "BANKNIFTY", "INTRADAY")
        assert a != b
        assert a.startswith("analysis:")
        assert a.endswith(":NIFTY:INTRADAY")

    def test_key_depends_on_bytes(self):
        assert cache_key(b"a", "NIFTY", "INTRADAY") != cache_key(b"b", "NIFTY", "INTRADAY")


class TestGetCached:
    def test_no_connection(self):
        assert get_cached(None, "k") is None

    def test_miss(self):
        conn = MagicMock()
        conn.get.return_value = None
        assert get_cached(conn, "k") is None

    def test_round_trip_through_redis(self, signal_payload):
        conn = MagicMock()
        result = _result(signal_payload)
        put_cached(conn, "k", result, 60)

        args, kwargs = conn.set.call_args
        assert args[0] == "k"
        assert kwargs == {"ex": 60}
        assert json.loads(args[1])["marketRegime"] == "TRENDING"

        conn.get.return_value = args[1].encode("utf-8")
        assert get_cached(conn, "k") == result

    def test_invalid_entry_dropped(self, signal_payload):
        signal_payload["confidence"] = 400
        conn = MagicMock()
        conn.get.return_value = json.dumps(signal_payload).encode("utf-8")
        assert get_cached(conn, "k") is None
        conn.delete.assert_called_once_with("k")

    def test_corrupt_entry_dropped(self):
        conn = MagicMock()
        conn.get.return_value = b"\xff not json"
        assert get_cached(conn, "k") is None
        conn.delete.assert_called_once_with("k")

    def test_read_error_is_a_miss(self):
        conn = MagicMock()
        conn.get.side_effect = RedisConnectionError("down")
        assert get_cached(conn, "k") is None


class TestPutCached:
    def test_no_connection(self, signal_payload):
        put_cached(None, "k", _result(signal_payload), 60)

    def test_write_error_logged(self, signal_payload, caplog):
        conn = MagicMock()
        conn.set.side_effect = RedisConnectionError("down")
        put_cached(conn, "k", _result(signal_payload), 60)
        assert "Cache write failed" in caplog.text
