"""Tests for the model catalog and the provider registry."""

import os
import sys
import unittest

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

from providers.catalog import (
    MODELS,
    all_model_ids,
    effective_negative_prompt_max_length,
    effective_prompt_max_length,
    find_model_config,
    supports_negative_prompt,
)
from providers.errors import UnsupportedModel
from providers.factory import ProviderRegistry, provider_id_for
from providers.image.cogview import CogviewProvider
from providers.image.openai import OpenAIProvider
from providers.image.sizes import ImageSize
from providers.image.volcengine import VolcengineProvider
from tests.fakes import make_credentials, make_settings


class TestCatalog(unittest.TestCase):
    def test_sub_model_ids_are_unique(self):
        ids = all_model_ids()
        self.assertEqual(len(ids), len(set(ids)))

    def test_every_sub_model_is_dispatchable_to_its_own_provider(self):
        for provider in MODELS:
            for sub_model in provider.children:
                self.assertEqual(provider_id_for(sub_model.value), provider.value, sub_model.value)

    def test_prompt_limits(self):
        self.assertEqual(effective_prompt_max_length("flux.1-schnell", 300), 512)
        self.assertEqual(effective_prompt_max_length("irag-1.0", 300), 220)
        self.assertEqual(effective_prompt_max_length("wanx2", 300), 800)
        self.assertEqual(effective_prompt_max_length("not-a-model", 300), 300)

    def test_negative_prompt_support(self):
        self.assertTrue(supports_negative_prompt("wanx2.1-t2i-plus"))
        self.assertTrue(supports_negative_prompt("doubaoimg-text2img-v2.0"))
        self.assertFalse(supports_negative_prompt("cogview-4"))
        self.assertFalse(supports_negative_prompt("dall-e-3-hd"))
        self.assertEqual(effective_negative_prompt_max_length("wanx2.0-t2i-turbo"), 500)
        self.assertEqual(effective_negative_prompt_max_length("cogview-4"), 0)

    def test_find_model_config(self):
        self.assertEqual(find_model_config("image-01").value, "minimax")
        self.assertEqual(find_model_config("openai").value, "openai")
        self.assertIsNone(find_model_config("sdxl"))


class TestDispatch(unittest.TestCase):
    def test_rules(self):
        self.assertEqual(provider_id_for("cogview-3-flash"), "cogview")
        self.assertEqual(provider_id_for("dall-e-2"), "openai")
        self.assertEqual(provider_id_for("gpt-image-1-high"), "openai")
        self.assertEqual(provider_id_for("wanx2.1-t2i-turbo"), "wanx2")
        self.assertEqual(provider_id_for("flux.1-schnell"), "qianfan")
        self.assertEqual(provider_id_for("doubaoimg-text2img-v2.0pro"), "doubaoimg")
        self.assertEqual(provider_id_for("image-01"), "minimax")

    def test_unsupported(self):
        for model in ("", None, "midjourney-v6", "image-02", "irag-2.0"):
            with self.assertRaises(UnsupportedModel):
                provider_id_for(model)


class TestProviderRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = ProviderRegistry(make_credentials(), make_settings())

    def test_sub_models_share_one_instance(self):
        first = self.registry.resolve_provider("cogview-4")
        second = self.registry.resolve_provider("cogview-3-flash")
        self.assertIs(first, second)
        self.assertIsInstance(first, CogviewProvider)
        self.assertEqual(first.provider_name, "cogview")

    def test_provider_types(self):
        self.assertIsInstance(self.registry.resolve_provider("dall-e-3-hd"), OpenAIProvider)
        self.assertIsInstance(self.registry.resolve_provider("doubaoimg-text2img-v2.1"), VolcengineProvider)

    def test_unknown_model(self):
        with self.assertRaises(UnsupportedModel):
            self.registry.resolve_provider("stable-diffusion-xl")
        with self.assertRaises(UnsupportedModel):
            self.registry.get_provider("nope")

    def test_all_providers(self):
        names = [p.provider_name for p in self.registry.all_providers()]
        self.assertEqual(names, ["cogview", "openai", "wanx2", "qianfan", "doubaoimg", "minimax"])

    def test_reset(self):
        before = self.registry.resolve_provider("image-01")
        self.registry.reset()
        self.assertIsNot(before, self.registry.resolve_provider("image-01"))

    def test_size_helpers_tolerate_unknown_models(self):
        self.assertEqual(self.registry.model_supported_sizes("unknown"), [ImageSize(1024, 1024)])
        self.assertTrue(self.registry.model_supports_size("unknown", 640, 480))
        self.assertEqual(self.registry.model_recommended_size("unknown", 2.0), ImageSize(1024, 1024))

    def test_size_helpers_delegate(self):
        self.assertEqual(
            self.registry.model_recommended_size("dall-e-3-standard", 0.5), ImageSize(1024, 1792)
        )
        self.assertFalse(self.registry.model_supports_size("gpt-image-1-low", 1792, 1024))


if __name__ == "__main__":
    unittest.main()
