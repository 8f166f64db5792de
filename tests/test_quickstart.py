"""Test that the quickstart example runs end to end."""
from __future__ import annotations

import runpy
from pathlib import Path

import pytest

EXAMPLE = Path(__file__).resolve().parent.parent / "examples" / "01_quickstart.py"


def test_quickstart_example_verifies(monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]) -> None:
    monkeypatch.delenv("KMS_SECRET_KEY", raising=False)
    runpy.run_path(str(EXAMPLE), run_name="__main__")
    out = capsys.readouterr().out
    assert "Identifier created: did:key:z6Mk" in out
    assert "Credential verified: True" in out


def test_package_exports_version() -> None:
    import vc_agent

    assert isinstance(vc_agent.__version__, str)
