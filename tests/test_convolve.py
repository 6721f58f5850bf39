"""
Tests for kernels and separable convolution
"""

import pytest
import numpy as np
from hypothesis import given, settings, strategies as st

from calib_vision.filter import convolve, convolve_box
from calib_vision.filter.kernel import Kernel1D, box_kernel, gaussian_kernel, radius_for_sigma


def brute_box_horizontal(image, radius):
    """Box sum with zero padding, computed one row at a time."""
    kernel = np.ones(2 * radius + 1)
    return np.array([np.convolve(np.pad(row.astype(np.float64), radius), kernel, mode='valid')
                     for row in image])


class TestKernels:
    """Test suite for kernel factories."""

    def test_box_kernel(self):
        kernel = box_kernel(2)
        assert kernel.width == 5
        assert kernel.offset == 2
        assert not kernel.is_integer
        assert kernel.compute_sum() == 5

        assert box_kernel(1, integer=True).is_integer

    def test_gaussian_float_kernel_sums_to_one(self):
        kernel = gaussian_kernel(sigma=1.5)
        assert kernel.radius == radius_for_sigma(1.5)
        assert abs(float(kernel.compute_sum()) - 1.0) < 1e-6
        # symmetric and peaked in the middle
        assert np.allclose(kernel.data, kernel.data[::-1])
        assert kernel.data.argmax() == kernel.offset

    def test_gaussian_integer_kernel(self):
        kernel = gaussian_kernel(radius=3, integer=True)
        assert kernel.is_integer
        assert kernel.width == 7
        assert kernel.data.min() == 1

    def test_invalid_kernels(self):
        with pytest.raises(ValueError):
            gaussian_kernel()
        with pytest.raises(ValueError):
            box_kernel(-1)
        with pytest.raises(ValueError):
            Kernel1D(np.ones(3), 3)


class TestConvolveBox:
    """Test suite for box convolution."""

    def test_horizontal_matches_brute_force(self, random_image):
        image = random_image((20, 30), np.float32)
        output = np.zeros_like(image)

        convolve_box.horizontal(image, output, 3, True)

        assert np.allclose(output, brute_box_horizontal(image, 3), atol=1e-3)

    def test_vertical_matches_brute_force(self, random_image):
        image = random_image((25, 18), np.uint8)
        output = np.zeros(image.shape, dtype=np.int32)

        convolve_box.vertical(image, output, 2, True)

        expected = brute_box_horizontal(image.T, 2).T
        assert np.array_equal(output, expected.astype(np.int32))

    def test_exclude_border_skips_edge_rows(self, random_image):
        image = random_image((10, 12), np.uint8)
        output = np.full(image.shape, -1, dtype=np.int16)

        convolve_box.horizontal(image, output, 2, False)

        expected = brute_box_horizontal(image, 2).astype(np.int16)
        # border columns are always written
        assert np.array_equal(output[:, :2], expected[:, :2])
        assert np.array_equal(output[:, -2:], expected[:, -2:])
        # interior columns skip the first and last rows
        assert np.all(output[:2, 2:-2] == -1)
        assert np.all(output[-2:, 2:-2] == -1)
        assert np.array_equal(output[2:-2, 2:-2], expected[2:-2, 2:-2])

    def test_exclude_border_constant_image(self):
        image = np.full((6, 8), 10, dtype=np.uint8)
        output = np.full(image.shape, -1, dtype=np.int16)

        convolve_box.horizontal(image, output, 2, False)

        assert output[0].tolist() == [30, 40, -1, -1, -1, -1, 40, 30]
        assert output[2].tolist() == [30, 40, 50, 50, 50, 50, 40, 30]

    def test_vertical_exclude_border(self, random_image):
        image = random_image((12, 10), np.float32)
        output = np.full(image.shape, -1, dtype=np.float32)

        convolve_box.vertical(image, output, 3, False)

        expected = brute_box_horizontal(image.T, 3).T
        assert np.allclose(output[:3], expected[:3], atol=1e-3)
        assert np.allclose(output[-3:], expected[-3:], atol=1e-3)
        assert np.all(output[3:-3, :3] == -1)
        assert np.allclose(output[3:-3, 3:-3], expected[3:-3, 3:-3], atol=1e-3)

    def test_int16_input(self, random_image):
        image = random_image((8, 9), np.int16, low=-100, high=100)
        output = np.zeros_like(image)

        convolve_box.horizontal(image, output, 1, True)

        assert np.array_equal(output, brute_box_horizontal(image, 1).astype(np.int16))

    @pytest.mark.parametrize("function", [convolve_box.horizontal, convolve_box.vertical])
    def test_shape_mismatch(self, function):
        """Mismatched images must fail immediately."""
        image = np.zeros((10, 20), dtype=np.float32)
        output = np.zeros((10, 21), dtype=np.float32)

        with pytest.raises(ValueError, match="same dimensions"):
            function(image, output, 2, True)

    def test_unsupported_types(self):
        image = np.zeros((10, 10), dtype=np.uint8)
        output = np.zeros((10, 10), dtype=np.uint8)

        with pytest.raises(ValueError, match="Unsupported image types"):
            convolve_box.horizontal(image, output, 1, True)

    @pytest.mark.property
    @settings(max_examples=30, deadline=None)
    @given(
        height=st.integers(min_value=1, max_value=15),
        width=st.integers(min_value=1, max_value=15),
        radius=st.integers(min_value=0, max_value=6)
    )
    def test_property_box_sum(self, height, width, radius):
        """Property test: box convolution equals the zero padded window sum for any size."""
        image = np.arange(height * width, dtype=np.float32).reshape(height, width) % 7
        output = np.zeros_like(image)

        convolve_box.horizontal(image, output, radius, True)

        assert np.allclose(output, brute_box_horizontal(image, radius))


class TestConvolveNormalized:
    """Test suite for normalized separable convolution."""

    def test_constant_image_is_preserved(self):
        """Normalization keeps flat images flat, including the border."""
        image = np.full((15, 15), 100, dtype=np.uint8)
        kernel = gaussian_kernel(radius=3, integer=True)

        horizontal = np.zeros_like(image)
        convolve.horizontal(kernel, image, horizontal, True)
        output = np.zeros_like(image)
        convolve.vertical(kernel, horizontal, output, True)

        assert np.all(output == 100)

    def test_interior_matches_numpy(self, random_image):
        image = random_image((12, 20), np.float32)
        kernel = gaussian_kernel(sigma=1.0, radius=2)
        output = np.zeros_like(image)

        convolve.horizontal(kernel, image, output, True)

        for y in range(image.shape[0]):
            expected = np.convolve(image[y].astype(np.float64), kernel.data[::-1].astype(np.float64), mode='valid')
            assert np.allclose(output[y, 2:-2], expected, atol=1e-4)

    def test_border_is_renormalized(self):
        image = np.arange(10, dtype=np.float32).reshape(1, 10)
        kernel = box_kernel(1)
        output = np.zeros_like(image)

        convolve.horizontal(kernel, image, output, True)

        assert output[0, 0] == pytest.approx((0 + 1) / 2)
        assert output[0, 9] == pytest.approx((8 + 9) / 2)
        assert output[0, 5] == pytest.approx(5)

    def test_exclude_border(self):
        image = np.ones((9, 9), dtype=np.float32)
        kernel = box_kernel(2)
        output = np.full_like(image, -1)

        convolve.vertical(kernel, image, output, False)

        assert np.all(output[:2] == -1)
        assert np.all(output[-2:] == -1)
        assert np.allclose(output[2:-2], 1)

    def test_integer_results_are_truncated(self):
        image = np.array([[0, 1, 0]], dtype=np.uint8)
        kernel = box_kernel(1, integer=True)
        output = np.zeros_like(image)

        convolve.horizontal(kernel, image, output, True)

        # 1/3 and 1/2 truncate to zero
        assert np.array_equal(output, [[0, 0, 0]])

    def test_shape_mismatch(self):
        kernel = box_kernel(1)
        with pytest.raises(ValueError, match="same dimensions"):
            convolve.horizontal(kernel, np.zeros((4, 4), np.float32), np.zeros((4, 5), np.float32))

    def test_sparse_matches_full_convolution(self, random_image):
        image = random_image((20, 24), np.uint8)
        blurred = convolve.blur_gaussian(image, radius=2)
        kernel = gaussian_kernel(radius=2, integer=True)

        for y, x in [(0, 0), (10, 12), (19, 23), (1, 22)]:
            value = convolve.convolve_normalized_sparse(kernel, kernel, image, x, y)
            assert value == blurred[y, x]

    def test_sparse_float(self, random_image):
        image = random_image((16, 16), np.float32)
        blurred = convolve.blur_gaussian(image, sigma=1.0)
        kernel = gaussian_kernel(sigma=1.0)

        value = convolve.convolve_normalized_sparse(kernel, kernel, image, 3, 14)
        assert value == pytest.approx(float(blurred[14, 3]), abs=1e-3)

    def test_unsupported_image(self):
        with pytest.raises(ValueError, match="single band"):
            convolve.blur_gaussian(np.zeros((4, 4, 3), dtype=np.uint8), sigma=1.0)
