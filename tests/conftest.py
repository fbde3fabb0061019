import io
import zipfile
from pathlib import Path

import pytest
from PyPDF2 import PdfWriter

from pdf_optimizer.config import RuntimeConfig
from pdf_optimizer.engine import process
from pdf_optimizer.engine.process import ProcessResult
from pdf_optimizer.factory import create_app

CORRUPT_MARKER = b"CORRUPT"


def make_pdf_bytes(pages: int = 1) -> bytes:
    writer = PdfWriter()
    for _ in range(pages):
        writer.add_blank_page(width=72, height=72)
    buf = io.BytesIO()
    writer.write(buf)
    return buf.getvalue()


def corrupt_pdf_bytes() -> bytes:
    return b"%PDF-1.4\n" + CORRUPT_MARKER + b"\n%%EOF\n"


class FakeTools:
    """Stands in for ps2pdf and zip behind ``process.run_process``.

    The optimizer copies its input with an ``OPTIMIZED:`` prefix unless the
    input contains CORRUPT_MARKER; the archiver writes a real zip.
    """

    def __init__(self, optimizer_starts: bool = True, archiver_ok: bool = True):
        self.optimizer_starts = optimizer_starts
        self.archiver_ok = archiver_ok
        self.calls = []

    def optimizer_calls(self):
        return [cmd for cmd, _ in self.calls if cmd[0] == "ps2pdf"]

    def archiver_calls(self):
        return [cmd for cmd, _ in self.calls if cmd[0] == "zip"]

    def __call__(self, cmd, cwd=None, timeout=None):
        cmd = tuple(str(part) for part in cmd)
        self.calls.append((cmd, cwd))

        if cmd[0] == "ps2pdf":
            if not self.optimizer_starts:
                return ProcessResult(command=cmd, started=False, stderr="No such file or directory")
            src, dest = Path(cmd[-2]), Path(cmd[-1])
            data = src.read_bytes()
            if CORRUPT_MARKER in data:
                return ProcessResult(
                    command=cmd,
                    started=True,
                    returncode=1,
                    stderr="Error: /syntaxerror in --token--",
                )
            dest.write_bytes(b"OPTIMIZED:" + data)
            return ProcessResult(command=cmd, started=True, returncode=0)

        if cmd[0] == "zip":
            if not self.archiver_ok:
                return ProcessResult(command=cmd, started=True, returncode=12, stderr="zip error: Nothing to do!")
            archive_name, members = cmd[3], cmd[4:]
            with zipfile.ZipFile(Path(cwd) / archive_name, "w") as zf:
                for member in members:
                    zf.write(member, arcname=Path(member).name)
            return ProcessResult(command=cmd, started=True, returncode=0)

        raise AssertionError(f"unexpected command {cmd}")


@pytest.fixture
def temp_root(tmp_path):
    return tmp_path / "work"


@pytest.fixture
def runtime_config(temp_root):
    return RuntimeConfig(
        temp_root=temp_root,
        max_workers=4,
        process_timeout_seconds=None,
        pdf_precheck_enabled=True,
    )


@pytest.fixture
def fake_tools(monkeypatch):
    tools = FakeTools()
    monkeypatch.setattr(process, "run_process", tools)
    return tools


@pytest.fixture
def app(runtime_config):
    return create_app(runtime_config)


@pytest.fixture
def client(app):
    return app.test_client()


def leftover_workdirs(root: Path):
    if not root.exists():
        return []
    return sorted(p.name for p in root.iterdir())
