import io
import logging
import unittest
from contextlib import redirect_stderr
from unittest import mock

from s3_manager.__main__ import configure_logging, parse_arguments


class ParseArgumentsTests(unittest.TestCase):
    def test_defaults(self):
        args = parse_arguments([])

        self.assertFalse(args.verbose)
        self.assertFalse(args.debug)
        self.assertIsNone(args.log_file)
        self.assertIsNone(args.settings)
        self.assertIsNone(args.connections)

    def test_paths_are_forwarded(self):
        args = parse_arguments(["--settings", "s.json", "--connections", "c.json", "--log-file", "run.log"])

        self.assertEqual("s.json", args.settings)
        self.assertEqual("c.json", args.connections)
        self.assertEqual("run.log", args.log_file)

    def test_verbose_and_debug_are_exclusive(self):
        with redirect_stderr(io.StringIO()), self.assertRaises(SystemExit):
            parse_arguments(["-v", "--debug"])


class ConfigureLoggingTests(unittest.TestCase):
    def setUp(self):
        botocore_logger = logging.getLogger("botocore")
        previous = botocore_logger.level
        self.addCleanup(botocore_logger.setLevel, previous)
        botocore_logger.setLevel(logging.NOTSET)

    def configure(self, argv):
        with mock.patch("s3_manager.__main__.logging.basicConfig") as basic_config:
            configure_logging(parse_arguments(argv))
        basic_config.assert_called_once()
        return basic_config.call_args.kwargs

    def test_warning_by_default(self):
        kwargs = self.configure([])

        self.assertEqual(logging.WARNING, kwargs["level"])
        self.assertIsNone(kwargs["filename"])
        self.assertEqual(logging.WARNING, logging.getLogger("botocore").level)

    def test_verbose_logs_info(self):
        kwargs = self.configure(["-v"])

        self.assertEqual(logging.INFO, kwargs["level"])
        self.assertEqual(logging.WARNING, logging.getLogger("botocore").level)

    def test_debug_logs_everything(self):
        kwargs = self.configure(["--debug", "--log-file", "run.log"])

        self.assertEqual(logging.DEBUG, kwargs["level"])
        self.assertEqual("run.log", kwargs["filename"])
        self.assertEqual(logging.NOTSET, logging.getLogger("botocore").level)


if __name__ == "__main__":
    unittest.main()
