"""
Linear Radial Distortion Estimation

Estimates radial distortion coefficients given the camera calibration matrix,
homographies from the target plane to each image and the observed
calibration points. This is the closed form step of Zhang's calibration.

The distortion model is applied in normalized image coordinates:

    x_d = x + x * (k_1 r + k_2 r^2 + ... ),  r = x^2 + y^2

which, after multiplying by the calibration matrix, gives two linear
equations per observed point:

    (u - cx) * sum_i k_i r^i = u_d - u
    (v - cy) * sum_i k_i r^i = v_d - v
"""

import logging
from typing import List, Optional

import numpy as np

from ..data_models import RadialDistortionResult
from ..utils.config_manager import ConfigManager
from .grid_target import SquareGridTarget


class EstimateRadialDistortionLinear:
    """Linear least squares estimate of radial distortion coefficients."""

    def __init__(self, target: SquareGridTarget, num_params: int):
        """
        Initialize estimator.

        Args:
            target: Description of the calibration target
            num_params: Number of radial distortion coefficients to estimate
        """
        if num_params < 1:
            raise ValueError("Must estimate at least one coefficient")

        self.target = target
        self.num_params = num_params
        self.layout = target.layout()
        self.parameters = np.zeros(num_params)
        self.result: Optional[RadialDistortionResult] = None
        self.logger = logging.getLogger(__name__)

    @classmethod
    def from_config(cls, config_manager: Optional[ConfigManager] = None) -> 'EstimateRadialDistortionLinear':
        config = config_manager or ConfigManager()
        grid = config.get_grid_params()
        calib = config.get_calibration_params()
        target = SquareGridTarget(
            grid.get('num_rows', 4), grid.get('num_cols', 3),
            float(calib.get('square_width', 30.0)), float(calib.get('space_width', 30.0))
        )
        return cls(target, calib.get('num_radial', 2))

    def process(self, K: np.ndarray, homographies: List[np.ndarray],
                observations: List[np.ndarray]) -> np.ndarray:
        """
        Estimate the distortion coefficients.

        Args:
            K: 3x3 camera calibration matrix
            homographies: Homographies from the target plane to pixels, one per image
            observations: Observed calibration points in pixels, one Nx2 array per image

        Returns:
            Estimated coefficients
        """
        if len(homographies) != len(observations):
            raise ValueError("Must have one homography for each set of observations")
        if not homographies:
            raise ValueError("No observations provided")

        K = np.asarray(K, dtype=np.float64)
        K_inv = np.linalg.inv(K)
        cx, cy = K[0, 2], K[1, 2]
        plane = np.hstack([self.layout, np.ones((len(self.layout), 1))])

        rows_a = []
        rows_b = []
        for H, observed in zip(homographies, observations):
            observed = np.asarray(observed, dtype=np.float64).reshape(-1, 2)
            if len(observed) != len(self.layout):
                raise ValueError(
                    f"Expected {len(self.layout)} observations per image, found {len(observed)}"
                )

            # ideal point in normalized image coordinates
            normalized = plane @ (K_inv @ np.asarray(H, dtype=np.float64)).T
            normalized = normalized[:, :2] / normalized[:, 2:3]
            r = np.sum(normalized ** 2, axis=1)

            # ideal point in pixels
            pixel = np.hstack([normalized, np.ones((len(normalized), 1))]) @ K.T
            powers = np.column_stack([r ** (i + 1) for i in range(self.num_params)])

            rows_a.append((pixel[:, 0] - cx)[:, None] * powers)
            rows_a.append((pixel[:, 1] - cy)[:, None] * powers)
            rows_b.append(observed[:, 0] - pixel[:, 0])
            rows_b.append(observed[:, 1] - pixel[:, 1])

        A = np.vstack(rows_a)
        b = np.concatenate(rows_b)

        self.parameters, _, rank, _ = np.linalg.lstsq(A, b, rcond=None)
        if rank < self.num_params:
            self.logger.warning(f"Radial distortion system is rank deficient: {rank} < {self.num_params}")

        residual = A @ self.parameters - b
        rms = float(np.sqrt(np.mean(residual ** 2) * 2))
        self.result = RadialDistortionResult(self.parameters, rms, len(b) // 2)

        self.logger.info(f"Estimated radial distortion {np.round(self.parameters, 6).tolist()}, "
                         f"RMS residual = {rms:.4f} pixels")
        return self.parameters

    def get_parameters(self) -> np.ndarray:
        return self.parameters

    def get_result(self) -> Optional[RadialDistortionResult]:
        return self.result
