"""Tests for log redaction and the log sink."""

import os
import sys
import unittest
from unittest.mock import Mock

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from db import create_tables, make_engine, make_session_factory
from logsink import REDACTED, LogEntry, LogSink, mask_api_key, sanitize
from storage import LogStore


class TestMaskApiKey(unittest.TestCase):
    def test_keeps_first_and_last_four(self):
        self.assertEqual(mask_api_key("sk-abcdefghijkl"), "sk-a...ijkl")

    def test_empty(self):
        self.assertEqual(mask_api_key(""), "")
        self.assertEqual(mask_api_key(None), "")


class TestSanitize(unittest.TestCase):
    def test_redacts_sensitive_keys_case_insensitively(self):
        clean = sanitize({"Authorization": "Bearer sk-123", "X-API-Key": "abc", "prompt": "a cat"})
        self.assertEqual(clean["Authorization"], REDACTED)
        self.assertEqual(clean["X-API-Key"], REDACTED)
        self.assertEqual(clean["prompt"], "a cat")

    def test_redacts_nested_values(self):
        clean = sanitize(
            {
                "requestDetails": {"headers": {"authorization": "HMAC-SHA256 Credential=AK"}},
                "items": [{"secret_access_key": "s3cr3t"}],
            }
        )
        self.assertEqual(clean["requestDetails"]["headers"]["authorization"], REDACTED)
        self.assertEqual(clean["items"][0]["secret_access_key"], REDACTED)

    def test_replaces_data_urls_and_long_blobs(self):
        blob = "A" * 5000
        clean = sanitize({"url": "data:image/png;base64,iVBORw0KGgo=", "b64_json": blob})
        self.assertEqual(clean["url"], "[OPAQUE 34 chars]")
        self.assertEqual(clean["b64_json"], "[OPAQUE 5000 chars]")

    def test_keeps_long_prose(self):
        prose = "a quiet harbor at dawn " * 60
        self.assertEqual(sanitize({"prompt": prose})["prompt"], prose)

    def test_keeps_non_string_values_under_partial_key_matches(self):
        clean = sanitize({"max_tokens": 10, "token_count": [1, 2]})
        self.assertEqual(clean["max_tokens"], 10)
        self.assertEqual(clean["token_count"], [1, 2])

    def test_idempotent(self):
        data = {
            "headers": {"Authorization": "Bearer sk-1234567890"},
            "body": {"prompt": "cat", "image": "data:image/png;base64,AAAA"},
            "n": 1,
            "ok": True,
            "missing": None,
        }
        once = sanitize(data)
        self.assertEqual(sanitize(once), once)

    def test_does_not_mutate_input(self):
        data = {"Authorization": "Bearer x"}
        sanitize(data)
        self.assertEqual(data["Authorization"], "Bearer x")


class TestLogSink(unittest.TestCase):
    def setUp(self):
        engine = make_engine("sqlite://")
        create_tables(engine)
        self.store = LogStore(make_session_factory(engine), max_entries=3)

    def test_entries_are_redacted_before_storage(self):
        sink = LogSink(self.store, max_entries=3)
        sink(LogEntry(type="request", data={"headers": {"Authorization": "Bearer sk-secret"}}))

        stored = self.store.load()
        self.assertEqual(stored[0].data["headers"]["Authorization"], REDACTED)
        self.assertEqual(sink.entries()[0].data["headers"]["Authorization"], REDACTED)

    def test_caps_entries_and_survives_restart(self):
        sink = LogSink(self.store, max_entries=3)
        for i in range(5):
            sink.add_log(LogEntry(type="info", data={"i": i}))

        self.assertEqual([e.data["i"] for e in sink.entries()], [2, 3, 4])
        reloaded = LogSink(self.store, max_entries=3)
        self.assertEqual([e.data["i"] for e in reloaded.entries()], [2, 3, 4])

    def test_clear(self):
        sink = LogSink(self.store, max_entries=3)
        sink.add_log(LogEntry(type="info", data={}))
        sink.clear()
        self.assertEqual(sink.entries(), [])
        self.assertEqual(self.store.load(), [])

    def test_never_raises_when_store_fails(self):
        store = Mock()
        store.load.return_value = []
        store.append.side_effect = RuntimeError("disk full")
        sink = LogSink(store)

        with self.assertLogs("logsink", level="ERROR"):
            sink.add_log(LogEntry(type="info", data={"message": "hello"}))

    def test_timestamp_format(self):
        entry = LogEntry(type="info", data={})
        self.assertRegex(entry.timestamp, r"^\d{2}:\d{2}:\d{2}$")


if __name__ == "__main__":
    unittest.main()
