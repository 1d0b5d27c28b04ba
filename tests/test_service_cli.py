"""Tests for the JSON service, the YAML config loader and the CLI."""

import io
import json
import os
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fake_tesseract import make_fake_tesseract, posix_only

import tessbind.config as tess_config
from tessbind import cli
from tessbind.config import AppConfig, load_config
from tessbind.ocr.options import OCRValidationError
from tessbind.ocr.service_tesseract import run as run_tesseract


class TestLoadConfig(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)

    def _write(self, text):
        path = self.tmp / "config.yaml"
        path.write_text(text, encoding="utf-8")
        return path

    def test_full_config(self):
        path = self._write(
            "tesseract:\n"
            "  path: /opt/bin/tesseract\n"
            "  timeout: 12\n"
            "recognition:\n"
            "  lang: eng\n"
            "  psm: 6\n"
            "  config:\n"
            "    preserve_interword_spaces: 1\n"
        )
        config = load_config(path)
        self.assertEqual(config.tesseract.path, "/opt/bin/tesseract")
        self.assertEqual(config.tesseract.timeout, 12.0)
        self.assertEqual(config.recognition["lang"], "eng")
        self.assertEqual(config.recognition["config"], {"preserve_interword_spaces": 1})

    def test_empty_config(self):
        config = load_config(self._write(""))
        self.assertIsNone(config.tesseract.path)
        self.assertIsNone(config.tesseract.timeout)
        self.assertEqual(config.recognition, {})

    def test_section_must_be_mapping(self):
        with self.assertRaisesRegex(TypeError, "recognition"):
            load_config(self._write("recognition: eng\n"))

    def test_top_level_must_be_mapping(self):
        with self.assertRaises(TypeError):
            load_config(self._write("- a\n- b\n"))


@unittest.skipUnless(posix_only(), "fake tesseract needs a POSIX shebang")
class TestTesseractService(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.binary = str(make_fake_tesseract(self.tmp))

    def test_run(self):
        res = run_tesseract(
            {
                "image_path": "input/receipt.png",
                "params": {"path": self.binary, "lang": "eng", "psm": 6},
                "output_dir": str(self.tmp / "ocr"),
            }
        )
        self.assertEqual(res["engine"], "tesseract")
        self.assertEqual(res["binary"], self.binary)
        self.assertEqual(res["args"], ["input/receipt.png", "stdout", "-l", "eng", "--psm", "6"])
        self.assertEqual(json.loads(res["text"])["argv"], res["args"])
        self.assertGreaterEqual(res["elapsed_seconds"], 0.0)
        text_path = Path(res["text_path"])
        self.assertEqual(text_path, self.tmp / "ocr" / "receipt.txt")
        self.assertEqual(text_path.read_text(encoding="utf-8"), res["text"])

    def test_run_without_output_dir(self):
        res = run_tesseract({"image_path": "a.png", "params": {"path": self.binary}})
        self.assertIsNone(res["text_path"])

    def test_run_file_output_writes_no_text_copy(self):
        base = self.tmp / "tess-out"
        res = run_tesseract(
            {
                "image_path": "input/receipt.png",
                "params": {"path": self.binary, "output": str(base)},
                "output_dir": str(self.tmp / "ocr"),
            }
        )
        self.assertEqual(res["text"], "")
        self.assertIsNone(res["text_path"])
        self.assertFalse((self.tmp / "ocr" / "receipt.txt").exists())
        self.assertTrue((self.tmp / "tess-out.txt").exists())

    def test_run_requires_image_path(self):
        with self.assertRaisesRegex(ValueError, "image_path"):
            run_tesseract({"params": {}})

    def test_run_rejects_unknown_params(self):
        with self.assertRaises(OCRValidationError):
            run_tesseract({"image_path": "a.png", "params": {"languages": "eng"}})


@unittest.skipUnless(posix_only(), "fake tesseract needs a POSIX shebang")
class TestCli(unittest.TestCase):

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self._tmp.cleanup)
        self.tmp = Path(self._tmp.name)
        self.binary = str(make_fake_tesseract(self.tmp))
        self.addCleanup(tess_config.set_path, tess_config.get_path())

    def _run(self, argv, stdin=b""):
        stdout = io.StringIO()
        fake_stdin = io.TextIOWrapper(io.BytesIO(stdin))
        with patch("sys.stdout", stdout), patch("sys.stdin", fake_stdin):
            code = cli.main(argv)
        return code, stdout.getvalue()

    def test_recognize(self):
        code, out = self._run(
            [
                "--tesseract", self.binary,
                "recognize", "scan.png",
                "--lang", "eng", "--psm", "6", "--oem", "1",
                "-c", "preserve_interword_spaces=1",
                "--flag", "x=1",
            ]
        )
        self.assertEqual(code, 0)
        self.assertEqual(
            json.loads(out)["argv"],
            [
                "scan.png", "stdout", "-l", "eng", "--psm", "6", "--oem 1",
                '-x="1"', "-c", "preserve_interword_spaces=1",
            ],
        )

    def test_recognize_from_stdin(self):
        code, out = self._run(["--tesseract", self.binary, "recognize", "-"], stdin=b"\x89PNG")
        self.assertEqual(code, 0)
        echo = json.loads(out)
        self.assertEqual(echo["argv"], ["stdin", "stdout"])
        self.assertEqual(bytes.fromhex(echo["stdin"]), b"\x89PNG")

    def test_langs_and_version(self):
        code, out = self._run(["--tesseract", self.binary, "langs"])
        self.assertEqual(code, 0)
        self.assertEqual(out.splitlines(), ["eng", "osd", "deu", "chi_sim"])
        code, out = self._run(["--tesseract", self.binary, "version"])
        self.assertEqual((code, out), (0, "5.3.0\n"))

    def test_config_file_defaults(self):
        config_path = self.tmp / "tessbind.yaml"
        config_path.write_text(
            f"tesseract:\n  path: {self.binary}\nrecognition:\n  lang: deu\n  config:\n    a: 1\n",
            encoding="utf-8",
        )
        code, out = self._run(["--config", str(config_path), "recognize", "scan.png", "-c", "b=2"])
        self.assertEqual(code, 0)
        self.assertEqual(
            json.loads(out)["argv"], ["scan.png", "stdout", "-l", "deu", "-c", "a=1", "-c", "b=2"]
        )

    def test_tesseract_error_exit_code(self):
        with patch.dict(os.environ, {"FAKE_TESS_STDERR": "cannot read"}):
            with self.assertLogs("tessbind.cli", level="ERROR") as logs:
                code, out = self._run(["--tesseract", self.binary, "recognize", "scan.png"])
        self.assertEqual(code, 1)
        self.assertEqual(out, "")
        self.assertIn("cannot read", logs.output[0])

    def test_validation_error_exit_code(self):
        with self.assertLogs("tessbind.cli", level="ERROR"):
            code, _ = self._run(["--tesseract", self.binary, "recognize", "scan.png", "--psm", "20"])
        self.assertEqual(code, 1)
        with self.assertLogs("tessbind.cli", level="ERROR"):
            code, _ = self._run(["--tesseract", self.binary, "recognize", "scan.png", "-c", "novalue"])
        self.assertEqual(code, 1)

    def test_default_app_config(self):
        self.assertEqual(AppConfig().recognition, {})


if __name__ == "__main__":
    unittest.main(verbosity=2)
