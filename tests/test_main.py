"""
Tests for the command line entry point
"""

import json

import cv2

from calib_vision.main import main


class TestMain:
    """Test suite for square grid detection from the command line."""

    def test_detect_directory(self, tmp_path, square_grid_image):
        input_dir = tmp_path / "images"
        input_dir.mkdir()
        output_dir = tmp_path / "output"

        cv2.imwrite(str(input_dir / "target.png"), square_grid_image(4, 3))
        cv2.imwrite(str(input_dir / "blank.png"), square_grid_image(0, 0))
        (input_dir / "notes.txt").write_text("not an image")

        code = main(["--input-dir", str(input_dir), "--output-dir", str(output_dir),
                     "--save-visualization"])

        assert code == 0
        results = json.loads((output_dir / "detections.json").read_text())
        assert set(results) == {"target.png", "blank.png"}
        assert results["target.png"]["found"]
        assert results["target.png"]["rows"] == 8
        assert results["target.png"]["cols"] == 6
        assert len(results["target.png"]["points"]) == 48
        assert not results["blank.png"]["found"]
        assert (output_dir / "target_detected.png").exists()
        assert not (output_dir / "blank_detected.png").exists()

    def test_missing_input_directory(self, tmp_path):
        code = main(["--input-dir", str(tmp_path / "missing"), "--output-dir", str(tmp_path / "out")])

        assert code == 1

    def test_invalid_config(self, tmp_path):
        config_path = tmp_path / "bad.yaml"
        config_path.write_text("square_grid:\n  num_rows: 0\n")

        code = main(["--config", str(config_path), "--input-dir", str(tmp_path)])

        assert code == 1

    def test_config_file_not_found(self, tmp_path):
        code = main(["--config", str(tmp_path / "missing.yaml"), "--input-dir", str(tmp_path)])

        assert code == 1
