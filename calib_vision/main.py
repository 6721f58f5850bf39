"""
Main entry point for the Calibration Vision Toolkit

Detects square grid calibration targets in a directory of images and writes
the calibration points to a JSON file.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

import cv2

from calib_vision.fiducial.square_grid_detector import SquareGridDetector
from calib_vision.utils.config_manager import ConfigManager
from calib_vision.utils.visualization import draw_calibration_points

IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff', '.pgm'}


def detect_directory(detector: SquareGridDetector, input_path: Path, output_path: Path,
                     save_visualization: bool) -> dict:
    """
    Run the detector on every image in a directory.

    Returns:
        Mapping of image name to detection results
    """
    logger = logging.getLogger(__name__)
    results = {}

    for image_path in sorted(input_path.iterdir()):
        if image_path.suffix.lower() not in IMAGE_EXTENSIONS:
            continue

        image = cv2.imread(str(image_path), cv2.IMREAD_GRAYSCALE)
        if image is None:
            logger.warning(f"Skipping unreadable image: {image_path.name}")
            continue

        found = detector.process(image)
        entry = {'found': found}
        if found:
            entry['rows'] = detector.get_calibration_rows()
            entry['cols'] = detector.get_calibration_cols()
            entry['points'] = detector.get_calibration_points().tolist()

            if save_visualization:
                canvas = draw_calibration_points(image, detector.get_calibration_points(),
                                                 entry['rows'], entry['cols'])
                cv2.imwrite(str(output_path / f"{image_path.stem}_detected.png"), canvas)

        logger.info(f"{image_path.name}: {'found' if found else 'not found'}")
        results[image_path.name] = entry

    return results


def main(argv=None):
    """Main entry point for square grid detection."""
    parser = argparse.ArgumentParser(
        description="Detect square grid calibration targets in images"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file"
    )

    parser.add_argument(
        "--input-dir",
        type=str,
        required=True,
        help="Directory containing calibration images"
    )

    parser.add_argument(
        "--output-dir",
        type=str,
        default="output",
        help="Output directory for results"
    )

    parser.add_argument(
        "--save-visualization",
        action="store_true",
        help="Save images with the detected points drawn on them"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s: %(message)s"
    )

    # Load configuration
    try:
        config = ConfigManager(args.config)
        print(f"Loaded configuration from: {config.config_path}")
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    # Validate input directory
    input_path = Path(args.input_dir)
    if not input_path.is_dir():
        print(f"Input directory does not exist: {args.input_dir}")
        return 1

    # Create output directory
    output_path = Path(args.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    detector = SquareGridDetector.from_config(config)
    results = detect_directory(detector, input_path, output_path, args.save_visualization)

    with open(output_path / "detections.json", 'w') as file:
        json.dump(results, file, indent=2)

    found = sum(1 for r in results.values() if r['found'])
    print(f"Detected target in {found}/{len(results)} images")
    print(f"Results written to: {output_path / 'detections.json'}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
