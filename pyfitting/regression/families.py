"""
GLM family and link function specifications.

A Family defines:
- A variance function V(μ) relating variance to the mean
- A link function g(μ) mapping the mean to the linear predictor
- Deviance and log-likelihood for assessing model fit
- Starting values for IRLS

A Link defines:
- g(μ) → η  (link)
- g⁻¹(η) → μ  (inverse link)
- dμ/dη  (derivative of inverse link, for IRLS weights)

Only the Poisson family with its canonical log link is provided. For that
pair dμ/dη = V(μ) = μ, so the IRLS working weight reduces to W = μ and the
working response to z = η + (y − μ)/μ.

References:
    McCullagh, P., & Nelder, J. A. (1989). Generalized Linear Models (2nd ed.)
"""

from __future__ import annotations

from abc import ABC, abstractmethod
import numpy as np
from numpy.typing import NDArray
from scipy.special import gammaln

from pyfitting.core.compute.tolerances import ETA_CLIP


# =====================================================================
# Link functions
# =====================================================================

class Link(ABC):
    """Abstract link function g(μ) mapping mean to linear predictor."""

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def link(self, mu: NDArray) -> NDArray:
        """g(μ) → η."""
        ...

    @abstractmethod
    def linkinv(self, eta: NDArray) -> NDArray:
        """g⁻¹(η) → μ."""
        ...

    @abstractmethod
    def mu_eta(self, eta: NDArray) -> NDArray:
        """dμ/dη = (g⁻¹)'(η)."""
        ...

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class LogLink(Link):
    """Log link: g(μ) = log(μ). Canonical for the Poisson family."""

    @property
    def name(self) -> str:
        return 'log'

    def link(self, mu: NDArray) -> NDArray:
        return np.log(np.maximum(mu, 1e-10))

    def linkinv(self, eta: NDArray) -> NDArray:
        # Clip to prevent overflow
        eta = np.clip(eta, -ETA_CLIP, ETA_CLIP)
        return np.exp(eta)

    def mu_eta(self, eta: NDArray) -> NDArray:
        eta = np.clip(eta, -ETA_CLIP, ETA_CLIP)
        return np.maximum(np.exp(eta), np.finfo(np.float64).tiny)


# =====================================================================
# Families
# =====================================================================

class Family(ABC):
    """
    GLM family specification.

    Defines the relationship between the mean and variance of the
    response distribution, along with a link function.
    """

    def __init__(self, link: Link | None = None):
        self._link = link if link is not None else self._default_link()

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def _default_link(self) -> Link:
        ...

    @property
    def link(self) -> Link:
        return self._link

    @abstractmethod
    def variance(self, mu: NDArray) -> NDArray:
        """Variance function V(μ)."""
        ...

    @abstractmethod
    def unit_deviance(self, y: NDArray, mu: NDArray) -> NDArray:
        """Per-observation deviance contributions d(yᵢ, μᵢ)."""
        ...

    def deviance(self, y: NDArray, mu: NDArray) -> float:
        """Total deviance Σ d(yᵢ, μᵢ).

        Twice the difference between the saturated log-likelihood and the
        model log-likelihood.
        """
        return float(np.sum(self.unit_deviance(y, mu)))

    @abstractmethod
    def initialize(self, y: NDArray) -> NDArray:
        """Initialize μ from y for IRLS starting values.

        Must return values in the valid range for the link function.
        """
        ...

    @abstractmethod
    def log_likelihood(self, y: NDArray, mu: NDArray) -> float:
        """Log-likelihood of y under means μ."""
        ...

    def aic(self, y: NDArray, mu: NDArray, rank: int) -> float:
        """AIC = −2 loglik + 2 rank."""
        return -2.0 * self.log_likelihood(y, mu) + 2.0 * rank

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(link={self._link!r})"


class Poisson(Family):
    """Poisson family. Default link: log.

    V(μ) = μ
    Deviance = 2 * Σ [y_i log(y_i/μ_i) − (y_i − μ_i)], with 0·log 0 = 0
    """

    @property
    def name(self) -> str:
        return 'poisson'

    def _default_link(self) -> Link:
        return LogLink()

    def variance(self, mu: NDArray) -> NDArray:
        return np.maximum(mu, 1e-10)

    def initialize(self, y: NDArray) -> NDArray:
        # Keep log(μ) finite for zero counts
        return np.maximum(y, 0.1)

    def unit_deviance(self, y: NDArray, mu: NDArray) -> NDArray:
        mu = np.maximum(mu, 1e-10)
        with np.errstate(divide='ignore', invalid='ignore'):
            term = np.where(y > 0, y * np.log(y / mu), 0.0)
        return 2.0 * (term - (y - mu))

    def log_likelihood(self, y: NDArray, mu: NDArray) -> float:
        # Σ [y_i log(μ_i) − μ_i − log(y_i!)]
        mu = np.maximum(mu, 1e-10)
        return float(np.sum(y * np.log(mu) - mu - gammaln(y + 1)))
