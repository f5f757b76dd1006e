"""
Vector normalization utilities.
"""

import numpy as np


NORM_EPSILON = 1e-12


def normalize_vector(
    vector: np.ndarray,
    copy: bool = True,
    eps: float = NORM_EPSILON,
) -> np.ndarray:
    """
    Normalize a vector to unit length (L2 normalization).

    Args:
        vector: Input vector
        copy: Whether to create a copy (False modifies in-place)
        eps: Magnitudes below this are treated as zero

    Returns:
        The unit-length vector, or the vector unchanged when its
        magnitude is below eps
    """
    if copy:
        vector = vector.copy()

    norm = np.linalg.norm(vector)
    if norm < eps:
        return vector

    vector /= norm
    return vector


def is_normalized(vector: np.ndarray, tolerance: float = 1e-5) -> bool:
    """Check if a vector has unit length within tolerance."""
    return abs(float(np.linalg.norm(vector)) - 1.0) < tolerance
