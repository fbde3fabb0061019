import re
import shutil
import tempfile
import unittest
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from unittest.mock import patch

from pdf_optimizer.core.utils import to_base36
from pdf_optimizer.services import workspace
from pdf_optimizer.services.workspace import WorkingDirectory, make_workdir_name

NAME_PATTERN = re.compile(r"^pdf-optimizer-[0-9a-z]+-[0-9a-z]+-[0-9a-z]+$")


class TestWorkdirNames(unittest.TestCase):
    def test_name_format(self):
        self.assertRegex(make_workdir_name(), NAME_PATTERN)

    def test_base36(self):
        self.assertEqual(to_base36(0), "0")
        self.assertEqual(to_base36(35), "z")
        self.assertEqual(to_base36(36), "10")
        self.assertEqual(to_base36(1295), "zz")
        with self.assertRaises(ValueError):
            to_base36(-1)

    def test_concurrent_creation_yields_distinct_directories(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            with ThreadPoolExecutor(max_workers=16) as executor:
                dirs = list(executor.map(lambda _: WorkingDirectory.create(root), range(200)))

            names = {d.name for d in dirs}
            self.assertEqual(len(names), 200)
            self.assertEqual(len(list(root.iterdir())), 200)

    def test_collision_retries_with_new_name(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "pdf-optimizer-taken").mkdir()
            names = iter(["pdf-optimizer-taken", "pdf-optimizer-free"])

            with patch.object(workspace, "make_workdir_name", side_effect=lambda: next(names)):
                workdir = WorkingDirectory.create(root)

            self.assertEqual(workdir.name, "pdf-optimizer-free")

    def test_gives_up_after_repeated_collisions(self):
        with tempfile.TemporaryDirectory() as td:
            root = Path(td)
            (root / "pdf-optimizer-taken").mkdir()

            with patch.object(workspace, "make_workdir_name", return_value="pdf-optimizer-taken"):
                with self.assertRaises(FileExistsError):
                    WorkingDirectory.create(root)


class TestWorkdirRelease(unittest.TestCase):
    def setUp(self):
        self._td = tempfile.TemporaryDirectory()
        self.root = Path(self._td.name)

    def tearDown(self):
        self._td.cleanup()

    def test_release_removes_tree(self):
        workdir = WorkingDirectory.create(self.root)
        out = workdir.output_dir()
        (out / "a.pdf").write_bytes(b"data")
        (workdir.path / "staged").write_bytes(b"data")

        workdir.release()

        self.assertFalse(workdir.path.exists())
        self.assertTrue(workdir.released)

    def test_release_is_idempotent(self):
        workdir = WorkingDirectory.create(self.root)
        with patch.object(workspace.shutil, "rmtree", wraps=shutil.rmtree) as rmtree:
            workdir.release()
            workdir.release()
        self.assertEqual(rmtree.call_count, 1)

    def test_release_swallows_errors(self):
        workdir = WorkingDirectory.create(self.root)
        with patch.object(workspace.shutil, "rmtree", side_effect=PermissionError("denied")):
            with self.assertLogs("pdf_optimizer.services.workspace", level="WARNING") as logs:
                workdir.release()
        self.assertIn("Cleanup error", logs.output[0])

    def test_release_of_missing_directory_is_quiet(self):
        workdir = WorkingDirectory.create(self.root)
        shutil.rmtree(workdir.path)
        workdir.release()
        self.assertTrue(workdir.released)

    def test_context_manager_releases_on_error(self):
        with self.assertRaises(RuntimeError):
            with WorkingDirectory.create(self.root) as workdir:
                raise RuntimeError("boom")
        self.assertFalse(workdir.path.exists())
