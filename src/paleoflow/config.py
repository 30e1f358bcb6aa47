"""
Configuration constants for mass-balance-adjusted reconstructions.
"""

# ==================== Regression parameters ====================
# Default penalty weight for the mass-balance term
DEFAULT_LAMBDA = 1.0

# Objective value used when back-transformed flows overflow; the optimizer
# needs a finite value at every point it probes
NONFINITE_PENALTY = 1e12

# Optimizer used when any target is log-transformed
OPTIMIZATION_METHOD = 'L-BFGS-B'

# Name of the intercept column prepended to every predictor block
INTERCEPT_COLUMN = 'Int'

# ==================== Cross-validation ====================
RETURN_TYPES = ('fval', 'metrics', 'metric means', 'Q')
DEFAULT_RETURN_TYPE = 'fval'

METRIC_NAMES = ('R2', 'RE', 'CE', 'nRMSE', 'KGE')

# Fold generation
DEFAULT_N_RUNS = 30
DEFAULT_HOLDOUT_FRACTION = 0.1

# Tukey's biweight robust mean
TUKEY_C = 9.0
TUKEY_EPSILON = 1e-6

# ==================== Column names ====================
SEASON_COLUMN = 'season'
YEAR_COLUMN = 'year'
OBSERVED_COLUMN = 'Qa'
RECONSTRUCTED_COLUMN = 'Q'
LAMBDA_COLUMN = 'lambda'
FOLD_COLUMN = 'rep'
FVAL_COLUMN = 'fval'
