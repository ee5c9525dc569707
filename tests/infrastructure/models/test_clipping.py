import math
import unittest
import warnings

import numpy as np

from shapechain import NO_GRADIENT, Gradients, clip_by_global_norm, l2_norm
from shapechain.infrastructure.fully_connected import FullyConnectedGradient


def _grads(scale: float = 1.0) -> Gradients:
    return Gradients(
        [
            FullyConnectedGradient(np.array([3.0]) * scale, np.array([[0.0]])),
            NO_GRADIENT,
            FullyConnectedGradient(np.array([0.0]), np.array([[4.0]]) * scale),
        ]
    )


class TestL2Norm(unittest.TestCase):
    def test_norm_spans_all_layers(self):
        self.assertAlmostEqual(l2_norm(_grads()), 5.0)

    def test_no_gradient_has_zero_norm(self):
        self.assertEqual(l2_norm(NO_GRADIENT), 0.0)
        self.assertEqual(l2_norm(Gradients([NO_GRADIENT, NO_GRADIENT])), 0.0)

    def test_nested_gradients(self):
        self.assertAlmostEqual(l2_norm(Gradients([_grads(), _grads()])), math.sqrt(50.0))


class TestClipByGlobalNorm(unittest.TestCase):
    def test_below_threshold_is_untouched(self):
        g = _grads()
        self.assertIs(clip_by_global_norm(5.0, g), g)
        self.assertIs(clip_by_global_norm(10.0, g), g)

    def test_rescales_to_threshold(self):
        clipped = clip_by_global_norm(1.0, _grads())
        self.assertAlmostEqual(l2_norm(clipped), 1.0)
        np.testing.assert_allclose(clipped[0].bias, [0.6])
        np.testing.assert_allclose(clipped[2].weights, [[0.8]])
        self.assertIs(clipped[1], NO_GRADIENT)

    def test_idempotent(self):
        once = clip_by_global_norm(2.0, _grads(3.0))
        twice = clip_by_global_norm(2.0, once)
        self.assertLessEqual(l2_norm(once), 2.0 + 1e-12)
        np.testing.assert_allclose(twice[0].bias, once[0].bias)
        np.testing.assert_allclose(twice[2].weights, once[2].weights)

    def test_zero_threshold_zeroes_gradients(self):
        clipped = clip_by_global_norm(0.0, _grads())
        self.assertEqual(l2_norm(clipped), 0.0)

    def test_zero_gradients_unchanged(self):
        g = _grads(0.0)
        self.assertIs(clip_by_global_norm(0.0, g), g)

    def test_non_finite_norm_warns(self):
        g = _grads(np.nan)
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            out = clip_by_global_norm(1.0, g)
        self.assertIs(out, g)
        self.assertTrue(any(issubclass(w.category, RuntimeWarning) for w in caught))

    def test_invalid_threshold_raises(self):
        with self.assertRaises(ValueError):
            clip_by_global_norm(-1.0, _grads())
        with self.assertRaises(ValueError):
            clip_by_global_norm(float("inf"), _grads())


if __name__ == "__main__":
    unittest.main()
