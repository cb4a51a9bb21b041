import os
import sys

import pytest

sys.path.append(os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))


@pytest.fixture()
def local_store(tmp_path, monkeypatch):
    import seewetter.storage as storage

    monkeypatch.setattr(storage, "S3_BUCKET", None)
    monkeypatch.setattr(storage, "CACHE_DIR", tmp_path)
    return tmp_path
