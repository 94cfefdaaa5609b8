"""
Tolerances, thresholds and iteration defaults.

This module is the single place where numeric defaults live. Public
functions take these as keyword defaults and every one of them can be
overridden per call; nothing reads configuration from the environment.

Two kinds of values live here:
    - ToleranceTier: precision expectations used by the test suite when
      comparing two computations of the same quantity
    - Solver defaults: condition-number thresholds, convergence
      tolerances and iteration caps
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class ToleranceTier:
    """Tolerance specification for numerical comparison."""
    rtol: float
    atol: float
    name: str
    description: str


# Two direct solves of the same well-conditioned problem
CPU_FP64 = ToleranceTier(
    rtol=1e-10,
    atol=1e-12,
    name='cpu_fp64',
    description='CPU double precision, direct solves',
)

# Ill-conditioned problems (cond > 1e4), or direct vs iterative solutions
CPU_FP64_ILL_CONDITIONED = ToleranceTier(
    rtol=1e-4,
    atol=1e-6,
    name='cpu_fp64_ill_conditioned',
    description='CPU double precision, ill-conditioned or iterative',
)


def select_tolerance(is_ill_conditioned: bool = False) -> ToleranceTier:
    """Select appropriate tolerance tier for a comparison."""
    if is_ill_conditioned:
        return CPU_FP64_ILL_CONDITIONED
    return CPU_FP64


# ---------------------------------------------------------------------
# Conditioning
# ---------------------------------------------------------------------

# A symmetric system whose condition number exceeds this is treated as
# singular. At 1e14 fewer than two significant digits survive in float64.
SINGULAR_CONDITION_THRESHOLD = 1e14

# Above this the solve still succeeds but the result is flagged
# ill-conditioned and a warning is attached.
ILL_CONDITION_THRESHOLD = 1e10

# Relative tolerance on |R_ii| / |R_00| for pivoted-QR rank decisions
# in truncated-power spline fits.
SPLINE_RANK_TOL = 1e-10


# ---------------------------------------------------------------------
# Iterative solvers
# ---------------------------------------------------------------------

NEWTON_TOL = 1e-8
NEWTON_MAX_ITER = 50

# |f'(x)| at or below this is treated as a vanished derivative.
ZERO_DERIVATIVE_TOL = 1e-14

LASSO_TOL = 1e-10
LASSO_MAX_ITER = 10_000

# IRLS convergence is on ||Δβ||₂.
IRLS_TOL = 1e-8
IRLS_MAX_ITER = 25

# Penalty for the optional ridge pilot fit that seeds IRLS.
IRLS_PILOT_RIDGE_LAMBDA = 1e-3

# Linear predictor is clipped to this range before exp() to avoid overflow.
ETA_CLIP = 500.0


# ---------------------------------------------------------------------
# Cross-validation
# ---------------------------------------------------------------------

DEFAULT_K_FOLDS = 5
