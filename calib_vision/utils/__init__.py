"""
Utility Functions and Helpers

Common utilities for the calibration vision toolkit.
"""

from .config_manager import ConfigManager
from .visualization import draw_calibration_points

__all__ = ['ConfigManager', 'draw_calibration_points']
