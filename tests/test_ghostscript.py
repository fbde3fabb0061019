import unittest
from pathlib import Path
from tempfile import TemporaryDirectory
from unittest.mock import patch

from pdf_optimizer.engine import archive, ghostscript
from pdf_optimizer.engine.ghostscript import CompressionSetting
from pdf_optimizer.engine.process import ProcessResult


class TestCompressionSetting(unittest.TestCase):
    def test_known_values_map_to_profiles(self):
        self.assertEqual(CompressionSetting.from_form("best").profile, "screen")
        self.assertEqual(CompressionSetting.from_form("medium").profile, "printer")
        self.assertEqual(CompressionSetting.from_form("low").profile, "prepress")

    def test_values_must_match_exactly(self):
        for raw in ("BEST", " best", "best ", "Medium"):
            self.assertIs(CompressionSetting.from_form(raw), CompressionSetting.DEFAULT)

    def test_unknown_and_missing_fall_back_to_default(self):
        for raw in (None, "", "ultra", "screen", "default"):
            self.assertIs(CompressionSetting.from_form(raw), CompressionSetting.DEFAULT)
        self.assertEqual(CompressionSetting.DEFAULT.profile, "default")


class TestOptimizerCommand(unittest.TestCase):
    def test_command_flags_and_order(self):
        cmd = ghostscript.build_optimizer_command(
            "ps2pdf", Path("/w/in"), Path("/w/in.optimized.pdf"), CompressionSetting.BEST
        )
        self.assertEqual(
            cmd,
            [
                "ps2pdf",
                "-dBATCH",
                "-dNOPAUSE",
                "-dCompressFonts=true",
                "-dPDFSETTINGS=/screen",
                "/w/in",
                "/w/in.optimized.pdf",
            ],
        )

    def test_archive_command_stores_flat_entries(self):
        cmd = archive.build_archive_command("zip", "optimized.zip", [Path("/w/optimized/a.pdf")])
        self.assertEqual(cmd, ["zip", "-0", "--junk-paths", "optimized.zip", "/w/optimized/a.pdf"])


class TestOptimizePdf(unittest.TestCase):
    def setUp(self):
        self._td = TemporaryDirectory()
        self.base = Path(self._td.name)
        self.src = self.base / "input"
        self.src.write_bytes(b"x" * 2048)
        self.dest = self.base / "input.optimized.pdf"

    def tearDown(self):
        self._td.cleanup()

    def _run(self, result_factory):
        def _fake_run(cmd, cwd=None, timeout=None):
            self.seen = (list(cmd), cwd, timeout)
            return result_factory(tuple(cmd))

        with patch("pdf_optimizer.engine.process.run_process", side_effect=_fake_run):
            return ghostscript.optimize_pdf(
                self.src, self.dest, CompressionSetting.LOW, cwd=self.base, timeout=30
            )

    def test_success_reports_reduction(self):
        def _ok(cmd):
            self.dest.write_bytes(b"x" * 1024)
            return ProcessResult(command=cmd, started=True, returncode=0)

        ok, message = self._run(_ok)

        self.assertTrue(ok)
        self.assertEqual(message, "50.0% reduction")
        cmd, cwd, timeout = self.seen
        self.assertIn("-dPDFSETTINGS=/prepress", cmd)
        self.assertEqual(cwd, self.base)
        self.assertEqual(timeout, 30)

    def test_nonzero_exit_is_translated(self):
        ok, message = self._run(
            lambda cmd: ProcessResult(command=cmd, started=True, returncode=1, stderr="Error: /invalidfileaccess")
        )
        self.assertFalse(ok)
        self.assertIn("password-protected", message)

    def test_not_started(self):
        ok, message = self._run(lambda cmd: ProcessResult(command=cmd, started=False))
        self.assertFalse(ok)
        self.assertIn("not available", message)

    def test_timeout(self):
        ok, message = self._run(lambda cmd: ProcessResult(command=cmd, started=True, timed_out=True))
        self.assertFalse(ok)
        self.assertEqual(message, "Timeout exceeded")

    def test_missing_output_is_failure(self):
        ok, message = self._run(lambda cmd: ProcessResult(command=cmd, started=True, returncode=0))
        self.assertFalse(ok)
        self.assertEqual(message, "Output file not created")


class TestTranslateGhostscriptError(unittest.TestCase):
    def test_known_patterns(self):
        self.assertIn("corrupted internal data", ghostscript.translate_ghostscript_error("Error: /typecheck", 1))
        self.assertIn("damaged", ghostscript.translate_ghostscript_error("Error: /syntaxerror", 1))

    def test_generic_fallback_mentions_exit_code(self):
        self.assertIn("exit code 255", ghostscript.translate_ghostscript_error("something odd", 255))
