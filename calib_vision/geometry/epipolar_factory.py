"""
Epipolar Algorithm Factory

Creates estimators and refiners for homographies, fundamental and essential
matrices and the PnP problem. The error metric used by a refiner is resolved
when it is created, not on each call.
"""

from typing import Dict, List, Optional, Tuple, Union

import numpy as np

from ..data_models import AssociatedPair
from ..utils.config_manager import ConfigManager
from .fundamental import FundamentalLinear
from .homography import HomographyLinear4
from .pnp import EfficientPnP
from .refine import (
    EpipolarError, LeastSquaresEpipolar, ResidualFunction,
    fundamental_sampson_residuals, fundamental_simple_residuals,
    homography_sampson_residuals, homography_transfer_residuals,
)


HOMOGRAPHY_RESIDUALS: Dict[EpipolarError, ResidualFunction] = {
    EpipolarError.SIMPLE: homography_transfer_residuals,
    EpipolarError.SAMPSON: homography_sampson_residuals,
}

FUNDAMENTAL_RESIDUALS: Dict[EpipolarError, ResidualFunction] = {
    EpipolarError.SIMPLE: fundamental_simple_residuals,
    EpipolarError.SAMPSON: fundamental_sampson_residuals,
}


def _resolve(error_type: Union[EpipolarError, str], table: Dict[EpipolarError, ResidualFunction]) -> ResidualFunction:
    try:
        key = error_type if isinstance(error_type, EpipolarError) else EpipolarError(error_type)
        return table[key]
    except (ValueError, KeyError):
        raise ValueError(f"Type not supported: {error_type}")


class ModelGenerator:
    """Adapts a linear estimator to the interface expected by robust model matchers."""

    def __init__(self, estimator):
        self.estimator = estimator
        self.min_points = estimator.min_points

    def generate(self, pairs: List[AssociatedPair]) -> Optional[np.ndarray]:
        """
        Fit a model to a sample of pairs.

        Returns:
            The model, None if the sample is degenerate
        """
        if not self.estimator.process(pairs):
            return None
        return self.estimator.get_model()


def compute_homography(normalize: bool) -> HomographyLinear4:
    """
    Returns an algorithm for estimating a homography matrix given a set of associated pairs.

    Args:
        normalize: Normalize the points before solving. Recommended for pixel coordinates.
    """
    return HomographyLinear4(normalize)


def refine_homography(tol: float, max_iterations: int,
                      error_type: Union[EpipolarError, str]) -> LeastSquaresEpipolar:
    """
    Creates a non-linear optimizer for refining estimates of homography matrices.

    Args:
        tol: Tolerance for convergence. Try 1e-8
        max_iterations: Maximum number of iterations it will perform. Try 100 or more.
        error_type: SIMPLE for transfer error, SAMPSON for Sampson error
    """
    return LeastSquaresEpipolar(tol, max_iterations, _resolve(error_type, HOMOGRAPHY_RESIDUALS))


def compute_fundamental(is_fundamental: bool, min_points: int) -> FundamentalLinear:
    """
    Returns an algorithm for estimating a fundamental/essential matrix given a set of associated pairs.

    Args:
        is_fundamental: True if input observations are in pixels, false if they are normalized.
        min_points: Selects which algorithms to use. Only 7 and 8 supported.
    """
    return FundamentalLinear(is_fundamental, min_points)


def refine_fundamental(tol: float, max_iterations: int,
                       error_type: Union[EpipolarError, str]) -> LeastSquaresEpipolar:
    """
    Creates a non-linear optimizer for refining estimates of fundamental or essential matrices.

    Args:
        tol: Tolerance for convergence. Try 1e-8
        max_iterations: Maximum number of iterations it will perform. Try 100 or more.
        error_type: SIMPLE for algebraic error, SAMPSON for Sampson error
    """
    return LeastSquaresEpipolar(tol, max_iterations, _resolve(error_type, FUNDAMENTAL_RESIDUALS),
                                enforce_rank=True)


def robust_model(estimator) -> ModelGenerator:
    """
    Creates a model generator for use with a robust model matcher such as RANSAC.

    Args:
        estimator: The algorithm which is being wrapped.
    """
    return ModelGenerator(estimator)


def pnp_efficient_pnp(num_iterations: int) -> EfficientPnP:
    """
    Returns a solution to the PnP problem for 4 or more points using EPnP. Fast and fairly
    accurate algorithm. Can handle general and planar scenario automatically.

    Args:
        num_iterations: If more than zero then non-linear optimization is done. Try 10
    """
    return EfficientPnP(num_iterations)


def refiners_from_config(config_manager: Optional[ConfigManager] = None
                         ) -> Tuple[LeastSquaresEpipolar, LeastSquaresEpipolar]:
    """
    Create the homography and fundamental matrix refiners described by the
    epipolar section of the configuration.

    Args:
        config_manager: Configuration manager instance

    Returns:
        Homography refiner and fundamental matrix refiner
    """
    config = config_manager or ConfigManager()
    params = config.get_epipolar_params()

    tol = float(params.get('tolerance', 1e-8))
    max_iterations = params.get('max_iterations', 100)
    error_type = params.get('error_type', 'SAMPSON')

    return (refine_homography(tol, max_iterations, error_type),
            refine_fundamental(tol, max_iterations, error_type))
