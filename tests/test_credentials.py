"""Tests for API key resolution order and pinning."""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from credentials import CredentialResolver, EnvKeySource, StoreKeySource
from db import create_tables, make_engine, make_session_factory
from storage import KeyValueStore
from tests.fakes import make_settings


class TestCredentialResolver(unittest.TestCase):
    def setUp(self):
        engine = make_engine("sqlite://")
        create_tables(engine)
        self.kv = KeyValueStore(make_session_factory(engine))

    def resolver(self, **settings_overrides) -> CredentialResolver:
        return CredentialResolver(
            [EnvKeySource(make_settings(**settings_overrides))],
            StoreKeySource(self.kv),
        )

    def test_falls_back_to_store(self):
        resolver = self.resolver()
        self.assertEqual(resolver.get_api_key("openai_key"), "")

        resolver.set_api_key("openai_key", "sk-stored")
        self.assertEqual(resolver.get_api_key("openai_key"), "sk-stored")
        self.assertEqual(self.kv.get("openai_key"), "sk-stored")

    def test_environment_wins_over_store(self):
        self.kv.set("zhipuai_key", "stored")
        resolver = self.resolver(zhipu_api_key="pinned")
        self.assertEqual(resolver.get_api_key("zhipuai_key"), "pinned")
        self.assertTrue(resolver.is_pinned("zhipuai_key"))

    def test_setter_is_ignored_for_pinned_keys(self):
        resolver = self.resolver(volcengine_api_key="AK:SK")
        with self.assertLogs("credentials", level="INFO"):
            resolver.set_api_key("volcengine_key", "other:value")

        self.assertIsNone(self.kv.get("volcengine_key"))
        self.assertEqual(resolver.get_api_key("volcengine_key"), "AK:SK")

    def test_unknown_key_name(self):
        resolver = self.resolver()
        self.assertEqual(resolver.get_api_key("nobody_key"), "")
        self.assertFalse(resolver.is_pinned("nobody_key"))

    def test_read_only_resolver(self):
        resolver = CredentialResolver([EnvKeySource(make_settings())])
        with self.assertLogs("credentials", level="WARNING"):
            resolver.set_api_key("openai_key", "sk-1")
        self.assertEqual(resolver.get_api_key("openai_key"), "")


if __name__ == "__main__":
    unittest.main()
