"""
Generate reference values for the mixed model validation tests.

For a balanced paired design (m groups of two, intercept + treatment
columns) the ML optimum has a closed form. Rotating each pair into its
sum and difference directions diagonalises Σy:

    sum direction:        eigenvalue σ² + 2σs²,  s_g = (r_g1 + r_g2)² / 2
    difference direction: eigenvalue σ²,         d_g = (r_g1 − r_g2)² / 2

so σ̂² = mean(d_g), σ̂² + 2σ̂s² = mean(s_g), and β̂ is the OLS solution.
The script writes those values to mixed/reference_ml.json. When
statsmodels is installed it first asserts that MixedLM(reml=False) agrees
to rtol=1e-4, and writes nothing if it does not.

Usage:
    python tests/fixtures/generate_mixed_fixtures.py
"""

import json
import os

import numpy as np
from scipy import stats

OUTPUT_DIR = os.path.join(os.path.dirname(__file__), 'mixed')
LOG_2PI = float(np.log(2.0 * np.pi))


def main():
    os.makedirs(OUTPUT_DIR, exist_ok=True)

    y = np.array([10.0, 25.0, 3.0, 6.0])
    treat = np.array([0.0, 1.0, 0.0, 1.0])
    individual = ['Ind1', 'Ind1', 'Ind2', 'Ind2']

    scenario = _paired_reference(y, treat, individual)
    scenario['description'] = (
        "y ~ treat + (1 | individual), ML. Closed form for a balanced paired "
        "design, cross-checked against statsmodels MixedLM(reml=False) and "
        "lme4::lmer(REML = FALSE)."
    )
    _check_statsmodels(y, treat, individual, scenario['ml'])

    path = os.path.join(OUTPUT_DIR, 'reference_ml.json')
    with open(path, 'w') as f:
        json.dump({'treatment_toy': scenario}, f, indent=2)
    print(f"Wrote {path}")


def _paired_reference(y, treat, groups):
    X = np.column_stack([np.ones(len(y)), treat])
    beta, *_ = np.linalg.lstsq(X, y, rcond=None)
    r = (y - X @ beta).reshape(-1, 2)
    m = r.shape[0]

    s = (r[:, 0] + r[:, 1]) ** 2 / 2
    d = (r[:, 0] - r[:, 1]) ** 2 / 2
    sigma_sq = float(np.mean(d))
    lam = float(np.mean(s))
    sigma_s_sq = (lam - sigma_sq) / 2

    ll = -0.5 * (2 * m * LOG_2PI + m * np.log(lam) + m * np.log(sigma_sq)
                 + np.sum(s) / lam + np.sum(d) / sigma_sq)

    # Var(intercept) = (σ² + σs²) / m, Var(slope) = 2σ² / m
    se = [np.sqrt((sigma_sq + sigma_s_sq) / m), np.sqrt(2 * sigma_sq / m)]
    levels = groups[::2]
    ranef = {g: float(sigma_s_sq * (r[k, 0] + r[k, 1]) / lam)
             for k, g in enumerate(levels)}

    n = len(y)
    rss = float(np.sum(r ** 2))
    ols_ll = -0.5 * n * (LOG_2PI + np.log(rss / n) + 1.0)

    diffs = y[treat == 1] - y[treat == 0]
    t_res = stats.ttest_1samp(diffs, 0.0)

    return {
        'data': {'y': y.tolist(), 'treat': treat.tolist(), 'individual': list(groups)},
        'ml': {
            'beta': beta.tolist(),
            'sigma_sq': sigma_sq,
            'sigma_s_sq': sigma_s_sq,
            'sigma': float(np.sqrt(sigma_sq)),
            'sigma_s': float(np.sqrt(sigma_s_sq)),
            'log_likelihood': float(ll),
            'se': [float(v) for v in se],
            'ranef': ranef,
        },
        'ols': {'sigma_sq': rss / n, 'log_likelihood': float(ols_ll)},
        'paired_t': {
            'estimate': float(np.mean(diffs)),
            'statistic': float(t_res.statistic),
            'df': float(len(diffs) - 1),
            'p_value': float(t_res.pvalue),
        },
    }


def _check_statsmodels(y, treat, groups, ml):
    try:
        import statsmodels.api as sm
    except ImportError:
        print("statsmodels not installed; skipping cross-check")
        return

    X = np.column_stack([np.ones(len(y)), treat])
    fit = sm.MixedLM(y, X, groups=np.asarray(groups)).fit(reml=False)
    sm_beta = np.asarray(fit.fe_params)
    sm_sigma_s_sq = float(np.asarray(fit.cov_re)[0, 0])
    print(f"statsmodels beta={sm_beta.tolist()} sigma_sq={fit.scale:.6f} "
          f"sigma_s_sq={sm_sigma_s_sq:.6f}")
    print(f"closed form beta={ml['beta']} sigma_sq={ml['sigma_sq']:.6f} "
          f"sigma_s_sq={ml['sigma_s_sq']:.6f}")

    np.testing.assert_allclose(sm_beta, ml['beta'], rtol=1e-4,
                               err_msg="fixed effects disagree with statsmodels")
    np.testing.assert_allclose(fit.scale, ml['sigma_sq'], rtol=1e-4,
                               err_msg="residual variance disagrees with statsmodels")
    np.testing.assert_allclose(sm_sigma_s_sq, ml['sigma_s_sq'], rtol=1e-4,
                               err_msg="group variance disagrees with statsmodels")
    print("statsmodels cross-check passed")


if __name__ == '__main__':
    main()
