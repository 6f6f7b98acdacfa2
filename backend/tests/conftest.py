# Ensure `import ragchat` works whether tests are run from repo root or backend/
import os
import sys

TESTS_ROOT = os.path.abspath(os.path.dirname(__file__))
BACKEND_ROOT = os.path.abspath(os.path.join(TESTS_ROOT, '..'))
for p in (BACKEND_ROOT, TESTS_ROOT):
    if p not in sys.path:
        sys.path.insert(0, p)

import pytest

from ragchat.config import Settings
from stubs import StubProvider


@pytest.fixture
def stub_provider():
    return StubProvider()


@pytest.fixture
def docs_dir(tmp_path):
    d = tmp_path / "documents"
    d.mkdir()
    (d / "moby_dick.txt").write_text("Moby Dick\n\nA whale hunt. The white whale haunts Ahab.\n", encoding="utf-8")
    (d / "emma.txt").write_text("Emma meddles in love matches.", encoding="utf-8")
    (d / "war_and_peace.md").write_text("War and love across Russian society in the war of 1812.", encoding="utf-8")
    return d


@pytest.fixture
def settings(docs_dir, tmp_path):
    return Settings(
        documents_dir=str(docs_dir),
        embeddings_file=str(tmp_path / "cache" / "embeddings.json"),
        embed_batch_delay_s=0.0,
        provider_base_delay_s=0.0,
        background_init=False,
        top_k=2,
    )
