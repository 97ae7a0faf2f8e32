"""
Session Reset Script Tests
"""

import importlib.util
from pathlib import Path

from connection import FileSessionStore
from transport.whatsapp import Session

SCRIPT = Path(__file__).resolve().parents[2] / "scripts" / "reset_session.py"


def load_script():
    module_spec = importlib.util.spec_from_file_location("reset_session", SCRIPT)
    module = importlib.util.module_from_spec(module_spec)
    module_spec.loader.exec_module(module)
    return module


class TestResetSession:

    def test_removes_stored_session(self, tmp_path, capsys):
        store = FileSessionStore(str(tmp_path), "15550001111")
        store.save(Session(device_id="15550001111", credentials={"k": "v"}))

        removed = load_script().reset_session(str(tmp_path), "15550001111", assume_yes=True)

        assert removed is True
        assert store.load() is None
        assert "Removed" in capsys.readouterr().out

    def test_nothing_to_remove(self, tmp_path):
        assert load_script().reset_session(str(tmp_path), "15550001111", assume_yes=True) is False

    def test_declined_confirmation_keeps_session(self, tmp_path, monkeypatch):
        store = FileSessionStore(str(tmp_path), "default")
        store.save(Session(device_id="default", credentials={}))
        monkeypatch.setattr("builtins.input", lambda prompt: "n")

        assert load_script().reset_session(str(tmp_path), "default") is False
        assert store.load() is not None
