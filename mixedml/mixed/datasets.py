"""
Reference datasets for mixed model validation and examples.

treatment_toy:
    Two individuals, each measured once untreated and once treated.
    Random intercept per individual, fixed treatment effect.

    =====  =====  ==========
      y    treat  individual
    =====  =====  ==========
      10     0       Ind1
      25     1       Ind1
       3     0       Ind2
       6     1       Ind2
    =====  =====  ==========

treatment_toy_reference:
    Maximum likelihood (non-REML) estimates for treatment_toy as reported
    by lme4::lmer(y ~ treat + (1 | individual), REML = FALSE) and
    statsmodels MixedLM(reml=False).
"""

import numpy as np

treatment_toy = {
    'y': np.array([10.0, 25.0, 3.0, 6.0]),
    'treat': np.array([0.0, 1.0, 0.0, 1.0]),
    'individual': np.array(['Ind1', 'Ind1', 'Ind2', 'Ind2']),
    # Treatment coding: intercept = untreated mean, slope = treatment effect
    'X': np.array([
        [1.0, 0.0],
        [1.0, 1.0],
        [1.0, 0.0],
        [1.0, 1.0],
    ]),
}

treatment_toy_reference = {
    'intercept': 6.5,
    'slope': 9.0,
    'treated_mean': 15.5,
    'sigma': 4.242640687,         # sqrt(18)
    'sigma_s': 5.766281297,       # sqrt(33.25)
    'sigma_sq': 18.0,
    'sigma_s_sq': 33.25,
}
