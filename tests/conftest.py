from __future__ import annotations

import importlib
import io
import sys
from pathlib import Path
from typing import Callable

import pytest
from pypdf import PdfWriter

# Resolve the package from this checkout rather than a stale editable install.
ROOT = Path(__file__).resolve().parents[1]
ROOT_STR = str(ROOT)
if ROOT_STR not in sys.path:
    sys.path.insert(0, ROOT_STR)


def _ensure_module_from_root(module_name: str, root: Path) -> None:
    for loaded_name in list(sys.modules):
        if loaded_name == module_name or loaded_name.startswith(f"{module_name}."):
            module_file = getattr(sys.modules[loaded_name], "__file__", None)
            if module_file is not None and root not in Path(module_file).resolve().parents:
                sys.modules.pop(loaded_name, None)

    module = importlib.import_module(module_name)
    module_path = Path(module.__file__ or "").resolve()
    if root not in module_path.parents:
        raise RuntimeError(
            f"Expected '{module_name}' under '{root}', got '{module_path}'. "
            "Run `python -m pip install -e '.[dev]'` from this checkout and re-run pytest."
        )


def pytest_sessionstart(session) -> None:  # type: ignore[no-untyped-def]
    _ensure_module_from_root("playbill", ROOT)


def _pdf_bytes(page_count: int, *, width: float = 396, height: float = 612, encrypted: bool = False) -> bytes:
    writer = PdfWriter()
    for index in range(page_count):
        # Distinct widths make source pages identifiable after imposition.
        writer.add_blank_page(width=width + index, height=height)
    if encrypted:
        writer.encrypt("secret")

    payload = io.BytesIO()
    writer.write(payload)
    return payload.getvalue()


@pytest.fixture
def pdf_bytes() -> Callable[..., bytes]:
    return _pdf_bytes
