from pathlib import Path
import pytest

from vconinsight.core import config
from vconinsight.core.storage import init_db

SAMPLE_PATH = Path(__file__).resolve().parent.parent / "data" / "sample_support_calls.json"

@pytest.fixture()
def sample_path() -> Path:
    return SAMPLE_PATH

@pytest.fixture()
def db(tmp_path, monkeypatch):
    monkeypatch.setattr(config, "DB_PATH", str(tmp_path / "test.db"))
    monkeypatch.setattr(config, "SERVICE_SEED", None)
    init_db()
    return tmp_path / "test.db"

def make_doc(*dialogs):
    return {"vcon": "0.0.1", "uuid": "test", "parties": [], "dialog": list(dialogs)}
