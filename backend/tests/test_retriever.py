import pytest

from ragchat.models.types import EmbeddedDocument
from ragchat.services.retriever import Corpus, build_corpus, search, top_k


def _doc(i, vec):
    return EmbeddedDocument(id=f"d{i}", title=f"D{i}", text=f"text {i}", embedding=vec)


@pytest.fixture
def corpus():
    return build_corpus([
        _doc(0, [1.0, 0.0, 0.0]),
        _doc(1, [0.7, 0.7, 0.0]),
        _doc(2, [0.0, 1.0, 0.0]),
        _doc(3, [0.0, 0.0, 1.0]),
        _doc(4, [-1.0, 0.0, 0.0]),
    ])


def test_top_k_sorted_and_bounded(corpus):
    hits = search([1.0, 0.1, 0.0], corpus, k=3)
    assert len(hits) == 3
    scores = [s for _, s in hits]
    assert scores == sorted(scores, reverse=True)
    assert [d.id for d, _ in hits] == ["d0", "d1", "d2"]


def test_k_larger_than_corpus_returns_everything(corpus):
    docs = top_k([1.0, 0.1, 0.0], corpus, k=50)
    assert len(docs) == len(corpus)
    assert docs[-1].id == "d4"


def test_k_zero_and_empty_corpus(corpus):
    assert top_k([1.0, 0.0, 0.0], corpus, k=0) == []
    assert top_k([1.0, 0.0, 0.0], Corpus([]), k=5) == []


def test_ties_keep_corpus_order():
    c = build_corpus([_doc(i, [1.0, 1.0]) for i in range(4)])
    assert [d.id for d in top_k([2.0, 2.0], c, k=4)] == ["d0", "d1", "d2", "d3"]


def test_zero_magnitude_document_ranks_last():
    c = build_corpus([_doc(0, [0.0, 0.0]), _doc(1, [-1.0, 0.0]), _doc(2, [1.0, 0.0])])
    assert [d.id for d in top_k([1.0, 0.0], c, k=3)] == ["d2", "d1", "d0"]


def test_query_dimension_mismatch(corpus):
    with pytest.raises(ValueError):
        top_k([1.0, 0.0], corpus)


def test_mixed_dimensions_rejected():
    with pytest.raises(ValueError):
        Corpus([_doc(0, [1.0, 0.0]), _doc(1, [1.0, 0.0, 0.0])])


def test_corpus_is_read_only(corpus):
    assert corpus.dimension == 3
    with pytest.raises(ValueError):
        corpus.embeddings[0, 0] = 5.0
