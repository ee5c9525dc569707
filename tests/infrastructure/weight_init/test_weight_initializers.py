import math
import unittest

import numpy as np

from shapechain import WeightInitMethod
from shapechain.infrastructure import REAL_DTYPE
from shapechain.infrastructure.utils.weight_initializer import (
    WeightInitializer,
    get_random_matrix,
    get_random_vector,
)


class TestWeightInitializerRegistry(unittest.TestCase):
    def test_builtin_methods_registered(self):
        for m in WeightInitMethod:
            self.assertIn(m.value, WeightInitializer.available())

    def test_unknown_method_raises(self):
        with self.assertRaises(ValueError):
            WeightInitializer("orthogonal")

    def test_duplicate_registration_raises(self):
        with self.assertRaises(ValueError):

            @WeightInitializer.register_initializer("uniform")
            def _dup(fan_in, fan_out, rng, size):
                return rng.uniform(size=size)

    def test_non_positive_fans_raise(self):
        rng = np.random.default_rng(0)
        with self.assertRaises(ValueError):
            get_random_vector(0, 3, WeightInitMethod.UNIFORM, rng, 3)


class TestWeightInitializerDistributions(unittest.TestCase):
    def test_uniform_bound(self):
        rng = np.random.default_rng(1)
        w = get_random_matrix(16, 4, WeightInitMethod.UNIFORM, rng, 40, 50)
        self.assertEqual(w.shape, (40, 50))
        self.assertEqual(w.dtype, REAL_DTYPE)
        self.assertLessEqual(np.abs(w).max(), 1.0 / math.sqrt(16))

    def test_xavier_bound(self):
        rng = np.random.default_rng(2)
        w = get_random_matrix(10, 20, WeightInitMethod.XAVIER, rng, 30, 30)
        bound = math.sqrt(6.0 / 30.0)
        self.assertLessEqual(np.abs(w).max(), bound)
        # a few samples should land near the edges of the interval
        self.assertGreater(np.abs(w).max(), 0.5 * bound)

    def test_he_standard_deviation(self):
        rng = np.random.default_rng(3)
        w = get_random_vector(8, 1, WeightInitMethod.HE_ET_AL, rng, 20000)
        self.assertAlmostEqual(float(np.std(w)), math.sqrt(2.0 / 8.0), delta=0.02)
        self.assertAlmostEqual(float(np.mean(w)), 0.0, delta=0.02)

    def test_string_names_accepted(self):
        rng = np.random.default_rng(4)
        v = get_random_vector(4, 4, "xavier", rng, 5)
        self.assertEqual(v.shape, (5,))

    def test_same_seed_same_draws(self):
        a = get_random_matrix(3, 2, WeightInitMethod.UNIFORM, np.random.default_rng(7), 2, 3)
        b = get_random_matrix(3, 2, WeightInitMethod.UNIFORM, np.random.default_rng(7), 2, 3)
        np.testing.assert_array_equal(a, b)


if __name__ == "__main__":
    unittest.main()
