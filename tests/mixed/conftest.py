"""
Shared fixtures for mixed model tests.

Provides the 4-point treatment dataset and simulated random-intercept
datasets with known structure.
"""

import numpy as np
import pytest

from mixedml.mixed import datasets


@pytest.fixture
def rng():
    """Seeded random number generator for reproducible tests."""
    return np.random.default_rng(2024)


@pytest.fixture
def toy():
    """Two individuals, untreated then treated; intercept + treatment X."""
    d = datasets.treatment_toy
    return {
        'y': d['y'].copy(),
        'X': d['X'].copy(),
        'individual': d['individual'].copy(),
        'treat': d['treat'].copy(),
        'ref': datasets.treatment_toy_reference,
    }


@pytest.fixture
def random_intercept_simple(rng):
    """y = 5 + 2x + u_g + ε; 15 groups of 10, σs = 2, σ = 1."""
    n_groups = 15
    n_per = 10
    n = n_groups * n_per

    beta0, beta1 = 5.0, 2.0
    sigma_s, sigma = 2.0, 1.0

    group = np.repeat(np.arange(n_groups), n_per)
    u = rng.normal(0, sigma_s, n_groups)
    x = rng.normal(0, 1, n)
    y = beta0 + beta1 * x + u[group] + rng.normal(0, sigma, n)

    return {
        'y': y,
        'X': np.column_stack([np.ones(n), x]),
        'group': group,
        'n_groups': n_groups,
        'beta0': beta0,
        'beta1': beta1,
        'sigma_s': sigma_s,
        'sigma': sigma,
    }


@pytest.fixture
def unbalanced(rng):
    """Random intercept with group sizes 1..8 and string labels."""
    sizes = np.arange(1, 9)
    labels = np.repeat([f'g{k}' for k in range(len(sizes))], sizes)
    n = len(labels)
    u = dict(zip([f'g{k}' for k in range(len(sizes))],
                 rng.normal(0, 1.5, len(sizes))))
    x = rng.uniform(-1, 1, n)
    y = 1.0 - 0.5 * x + np.array([u[g] for g in labels]) + rng.normal(0, 0.7, n)
    return {
        'y': y,
        'X': np.column_stack([np.ones(n), x]),
        'group': labels,
    }
