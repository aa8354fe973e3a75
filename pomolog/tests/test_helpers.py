from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
import shutil
from typing import Iterator
import uuid

TMP_ROOT = Path(__file__).resolve().parent / "_tmp"


@contextmanager
def local_tmp_dir() -> Iterator[Path]:
    """Scratch directory under the tests folder, removed on exit."""
    TMP_ROOT.mkdir(parents=True, exist_ok=True)
    path = TMP_ROOT / f"pomolog-{uuid.uuid4().hex[:12]}"
    path.mkdir()
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
