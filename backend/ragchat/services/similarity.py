from typing import Optional, Sequence, Union
import numpy as np

VectorLike = Union[Sequence[float], np.ndarray]


def cosine_similarity(a: VectorLike, b: VectorLike) -> float:
    """dot(a, b) / (|a| * |b|). NaN when either vector has zero magnitude."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    if va.shape != vb.shape or va.ndim != 1:
        raise ValueError(f"vectors must be 1-D and of equal length, got {va.shape} and {vb.shape}")
    denom = np.linalg.norm(va) * np.linalg.norm(vb)
    with np.errstate(divide="ignore", invalid="ignore"):
        return float(np.dot(va, vb) / denom)


def row_norms(matrix: np.ndarray) -> np.ndarray:
    return np.linalg.norm(matrix, axis=1)


def cosine_scores(query: VectorLike, matrix: np.ndarray, norms: Optional[np.ndarray] = None) -> np.ndarray:
    """Cosine similarity of `query` against every row of `matrix` (shape (N, D))."""
    q = np.asarray(query, dtype=np.float32)
    if q.ndim != 1:
        q = q.reshape(-1)
    if matrix.ndim != 2 or matrix.shape[1] != q.shape[0]:
        raise ValueError(f"query dimension {q.shape[0]} does not match corpus shape {matrix.shape}")
    if norms is None:
        norms = row_norms(matrix)
    denom = norms * np.linalg.norm(q)
    with np.errstate(divide="ignore", invalid="ignore"):
        return (matrix @ q) / denom
