"""
Configuration Management System

Handles loading, validation, and management of detector and estimator parameters.
"""

import yaml
from typing import Dict, Any, Optional
from pathlib import Path


class ConfigManager:
    """Manages configuration parameters for the calibration vision toolkit."""

    def __init__(self, config_path: Optional[str] = None):
        """
        Initialize configuration manager.

        Args:
            config_path: Path to configuration file. If None, uses default config.
        """
        self.config_path = config_path or self._get_default_config_path()
        self.config = self._load_config()
        self._validate_config()

    def _get_default_config_path(self) -> str:
        """Get path to default configuration file."""
        package_dir = Path(__file__).parent.parent
        return str(package_dir / "config" / "default_config.yaml")

    def _load_config(self) -> Dict[str, Any]:
        """Load configuration from YAML file."""
        try:
            with open(self.config_path, 'r') as file:
                config = yaml.safe_load(file)
            return config or {}
        except FileNotFoundError:
            raise FileNotFoundError(f"Configuration file not found: {self.config_path}")
        except yaml.YAMLError as e:
            raise ValueError(f"Error parsing configuration file: {e}")

    def _validate_config(self) -> None:
        """Validate configuration parameters for consistency and feasibility."""
        # Validate grid dimensions
        grid = self.config.get('square_grid', {})
        if grid.get('num_rows', 1) < 1 or grid.get('num_cols', 1) < 1:
            raise ValueError("Square grid must have at least one row and one column")
        if grid.get('space_to_square_ratio', 1.0) < 0:
            raise ValueError("space_to_square_ratio must be non-negative")
        if grid.get('max_neighbors', 6) < 1:
            raise ValueError("max_neighbors must be at least 1")

        # Validate binarization
        binary = self.config.get('binarization', {})
        method = binary.get('method', 'otsu')
        if method not in ('global', 'otsu', 'adaptive'):
            raise ValueError(f"Unknown binarization method: {method}")
        block_size = binary.get('block_size', 31)
        if block_size < 3 or block_size % 2 == 0:
            raise ValueError("Adaptive block_size must be odd and at least 3")

        # Validate polygon size limits
        polygon = self.config.get('polygon', {})
        min_side = polygon.get('min_side_length', 10)
        max_fraction = polygon.get('max_area_fraction', 0.25)
        if min_side <= 0:
            raise ValueError("min_side_length must be positive")
        if not 0 < max_fraction <= 1:
            raise ValueError("max_area_fraction must be in (0, 1]")

        # Validate pyramid
        pyramid = self.config.get('pyramid', {})
        if pyramid.get('scale', 2) < 1:
            raise ValueError("Pyramid scale must be at least 1")
        if pyramid.get('sigma', 1.0) <= 0:
            raise ValueError("Pyramid sigma must be positive")

        # Validate refinement
        refine = self.config.get('epipolar', {})
        if refine.get('error_type', 'SAMPSON') not in ('SIMPLE', 'SAMPSON'):
            raise ValueError("epipolar.error_type must be SIMPLE or SAMPSON")
        if refine.get('max_iterations', 100) < 1:
            raise ValueError("epipolar.max_iterations must be positive")

        # Validate target geometry
        calib = self.config.get('calibration', {})
        if float(calib.get('square_width', 1.0)) <= 0:
            raise ValueError("calibration.square_width must be positive")

    def get(self, key: str, default: Any = None) -> Any:
        """
        Get configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'square_grid.num_rows')
            default: Default value if key not found

        Returns:
            Configuration value
        """
        keys = key.split('.')
        value = self.config

        for k in keys:
            if isinstance(value, dict) and k in value:
                value = value[k]
            else:
                return default

        return value

    def set(self, key: str, value: Any) -> None:
        """
        Set configuration value using dot notation.

        Args:
            key: Configuration key (e.g., 'square_grid.num_rows')
            value: Value to set
        """
        keys = key.split('.')
        config_ref = self.config

        for k in keys[:-1]:
            if k not in config_ref:
                config_ref[k] = {}
            config_ref = config_ref[k]

        missing = object()
        previous = config_ref.get(keys[-1], missing)
        config_ref[keys[-1]] = value
        try:
            self._validate_config()
        except ValueError:
            # keep the last valid configuration
            if previous is missing:
                del config_ref[keys[-1]]
            else:
                config_ref[keys[-1]] = previous
            raise

    def save(self, output_path: Optional[str] = None) -> None:
        """
        Save current configuration to file.

        Args:
            output_path: Path to save configuration. If None, overwrites current file.
        """
        save_path = output_path or self.config_path

        with open(save_path, 'w') as file:
            yaml.dump(self.config, file, default_flow_style=False, indent=2)

    def get_grid_params(self) -> Dict[str, Any]:
        """Get square grid detector parameters as a dictionary."""
        return self.config.get('square_grid', {})

    def get_binarization_params(self) -> Dict[str, Any]:
        """Get binarization parameters as a dictionary."""
        return self.config.get('binarization', {})

    def get_polygon_params(self) -> Dict[str, Any]:
        """Get polygon detector parameters as a dictionary."""
        return self.config.get('polygon', {})

    def get_pyramid_params(self) -> Dict[str, Any]:
        """Get image pyramid parameters as a dictionary."""
        return self.config.get('pyramid', {})

    def get_epipolar_params(self) -> Dict[str, Any]:
        """Get epipolar refinement parameters as a dictionary."""
        return self.config.get('epipolar', {})

    def get_calibration_params(self) -> Dict[str, Any]:
        """Get calibration target parameters as a dictionary."""
        return self.config.get('calibration', {})
