"""Tests for the command-line wiring."""

import io
import os
import sys
import unittest
from contextlib import redirect_stderr, redirect_stdout

import httpx

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))

import main
from tests.fakes import StubHandler, make_settings


class TestCommandLine(unittest.TestCase):
    def run_command(self, services, *argv) -> tuple[int, str]:
        args = main.build_parser().parse_args(list(argv))
        out = io.StringIO()
        with redirect_stdout(out):
            code = args.func(services, args)
        return code, out.getvalue()

    def test_parser_defaults(self):
        args = main.build_parser().parse_args(["generate", "a cat", "--model", "cogview-4"])
        self.assertEqual(args.size, "1024x1024")
        self.assertEqual(args.count, 1)
        self.assertIsNone(args.api_key)

    def test_models_lists_every_provider(self):
        code, output = self.run_command(main.build_services(make_settings()), "models")
        self.assertEqual(code, 0)
        for model in ("cogview-3-flash", "dall-e-2", "wanx2.1-t2i-turbo", "irag-1.0", "image-01"):
            self.assertIn(model, output)

    def test_sizes(self):
        code, output = self.run_command(
            main.build_services(make_settings()), "sizes", "wanx2.1-t2i-plus", "--ratio", "0.5"
        )
        self.assertEqual(code, 0)
        self.assertIn("1280x720", output)
        self.assertIn("recommended: 720x1280", output)

    def test_set_key_is_refused_when_pinned(self):
        services = main.build_services(make_settings(minimax_api_key="pinned-key"))
        code, _ = self.run_command(services, "set-key", "minimax", "new-key")
        self.assertEqual(code, 1)
        self.assertEqual(services.credentials.get_api_key("minimax_key"), "pinned-key")

    def test_set_key(self):
        services = main.build_services(make_settings())
        code, _ = self.run_command(services, "set-key", "openai", "sk-new")
        self.assertEqual(code, 0)
        self.assertEqual(services.credentials.get_api_key("openai_key"), "sk-new")

    def test_generate_reports_validation_errors(self):
        services = main.build_services(make_settings())
        args = main.build_parser().parse_args(["generate", "a cat", "--model", "cogview-4"])
        err = io.StringIO()
        with redirect_stderr(err):
            code = main.cmd_generate(services, args)
        self.assertEqual(code, 1)
        self.assertIn("zhipuai_key", err.getvalue())


    def generate_with(self, services, *argv) -> tuple[int, str]:
        args = main.build_parser().parse_args(["generate", "a fox", "--model", "cogview-4", *argv])
        err = io.StringIO()
        with redirect_stderr(err):
            code = main.cmd_generate(services, args)
        return code, err.getvalue()

    def test_generate_reports_network_errors(self):
        handler = StubHandler(httpx.ConnectError("refused"))
        services = main.build_services(make_settings(zhipu_api_key="zhipu-key-0123"), transport=handler.transport())

        code, err = self.generate_with(services)

        self.assertEqual(code, 1)
        self.assertIn("Generation failed: refused", err)

    def test_generate_reports_bad_count(self):
        services = main.build_services(make_settings(zhipu_api_key="zhipu-key-0123"))
        args = main.build_parser().parse_args(["generate", "a fox", "--model", "cogview-4"])
        args.count = 0
        err = io.StringIO()
        with redirect_stderr(err):
            code = main.cmd_generate(services, args)

        self.assertEqual(code, 1)
        self.assertIn("count must be at least 1", err.getvalue())

    def test_parser_rejects_non_positive_count(self):
        with redirect_stderr(io.StringIO()):
            for value in ("0", "-2", "many"):
                with self.assertRaises(SystemExit):
                    main.build_parser().parse_args(["generate", "a fox", "--model", "cogview-4", "--count", value])


if __name__ == "__main__":
    unittest.main()
