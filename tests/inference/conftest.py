"""
Data fixtures for the significance tests.

Class 1 samples are built as class 0 samples plus a fixed effect pattern,
so a class-mean-difference analysis reproduces the effect pattern exactly
(up to rounding) and cells without an effect have an observed performance
of exactly zero.
"""

import numpy as np
import pytest


@pytest.fixture
def paired_design():
    """Factory stacking class 0 (noise) and class 1 (noise + effect) samples."""
    def build(noise, effect):
        X = np.concatenate([noise, noise + effect], axis=0)
        y = np.repeat([0, 1], noise.shape[0])
        return X, y
    return build


@pytest.fixture
def effect_1d(rng, paired_design):
    """40 cells, 20 samples per class, strong effect (3.0) in cells 10..19."""
    noise = rng.standard_normal((20, 40))
    effect = np.zeros(40)
    effect[10:20] = 3.0
    X, y = paired_design(noise, effect)
    return X, y, effect


@pytest.fixture
def null_1d(rng):
    """200 cells of pure noise, labels independent of the data."""
    X = rng.standard_normal((30, 200))
    y = np.repeat([0, 1], 15)
    return X, y
