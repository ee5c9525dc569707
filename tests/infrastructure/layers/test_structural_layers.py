import unittest

import numpy as np

from shapechain import (
    NO_GRADIENT,
    Crop,
    Dropout,
    Logit,
    NetworkSettings,
    Pad,
    Pooling,
    Relu,
    Reshape,
    Shape,
    ShapeMismatchError,
    Tanh,
    Tensor,
)
from shapechain.infrastructure._activations import _Activation
from shapechain.infrastructure.pooling import maxpool_backward, maxpool_forward


class TestActivations(unittest.TestCase):
    def test_activation_base_requires_nonlinearity(self):
        class Partial(_Activation):
            def _forward(self, x):
                return x

        with self.assertRaises(TypeError):
            Partial()

    def test_relu_values(self):
        x = Tensor.from_list(Shape.d1(4), [-2, -0.0, 0.5, 3])
        tape, y = Relu().run_forwards(x)
        self.assertEqual(y.to_list(), [0, 0, 0.5, 3])
        g, dx = Relu().run_backwards(tape, Tensor.full(Shape.d1(4), 2.0))
        self.assertIs(g, NO_GRADIENT)
        self.assertEqual(dx.to_list(), [0, 0, 2, 2])

    def test_logit_is_stable_for_large_inputs(self):
        x = Tensor.from_list(Shape.d1(3), [-1000, 0, 1000])
        _, y = Logit().run_forwards(x)
        np.testing.assert_allclose(y.data, [0.0, 0.5, 1.0])
        self.assertTrue(np.all(np.isfinite(y.data)))

    def test_tanh_values(self):
        x = Tensor.from_list(Shape.d1(2), [0, 1])
        _, y = Tanh().run_forwards(x)
        np.testing.assert_allclose(y.data, [0.0, np.tanh(1.0)])

    def test_shape_preserving_any_rank(self):
        for shape in (Shape.d1(3), Shape.d2(2, 2), Shape.d4(1, 2, 1, 2)):
            self.assertEqual(Tanh().output_shape(shape), shape)

    def test_equality_by_type(self):
        self.assertEqual(Relu(), Relu())
        self.assertNotEqual(Relu(), Tanh())
        self.assertEqual(repr(Logit()), "Logit")


class TestReshape(unittest.TestCase):
    def test_row_major_flatten(self):
        x = Tensor.from_list(Shape.d2(2, 2), [1, 2, 3, 4])
        _, y = Reshape(Shape.d1(4)).run_forwards(x)
        self.assertEqual(y.shape, Shape.d1(4))
        self.assertEqual(y.to_list(), [1, 2, 3, 4])

    def test_size_mismatch_raises(self):
        with self.assertRaises(ShapeMismatchError):
            Reshape(Shape.d1(5)).output_shape(Shape.d2(2, 2))


class TestCropPad(unittest.TestCase):
    def test_crop_values(self):
        x = Tensor(Shape.d2(3, 4), np.arange(12))
        layer = Crop(1, 1, 0, 0)
        self.assertEqual(layer.output_shape(Shape.d2(3, 4)), Shape.d2(2, 3))
        _, y = layer.run_forwards(x)
        self.assertEqual(y.to_list(), [5, 6, 7, 9, 10, 11])

    def test_pad_keeps_channels(self):
        layer = Pad(1, 2, 3, 4)
        self.assertEqual(layer.output_shape(Shape.d3(2, 2, 3)), Shape.d3(8, 6, 3))
        x = Tensor.full(Shape.d3(2, 2, 3), 1.0)
        _, y = layer.run_forwards(x)
        self.assertEqual(y.shape, Shape.d3(8, 6, 3))
        self.assertEqual(float(y.data.sum()), 12.0)
        self.assertEqual(float(y.data[2, 1, 0]), 1.0)

    def test_crop_everything_raises(self):
        with self.assertRaises(ShapeMismatchError):
            Crop(2, 0, 2, 0).output_shape(Shape.d2(3, 4))

    def test_rank_checked(self):
        with self.assertRaises(ShapeMismatchError):
            Pad(1, 1, 1, 1).output_shape(Shape.d1(3))

    def test_negative_border_raises(self):
        with self.assertRaises(ValueError):
            Crop(-1, 0, 0, 0)


class TestPooling(unittest.TestCase):
    def test_maxpool_known_values(self):
        x = np.array(
            [[1, 2, 5, 0], [3, 4, 1, 1], [0, 0, 2, 9], [7, 1, 3, 3]], dtype=float
        )[:, :, np.newaxis]
        y, idx = maxpool_forward(x, (2, 2), (2, 2))
        np.testing.assert_array_equal(y[:, :, 0], [[4, 5], [7, 9]])
        grad = maxpool_backward(np.ones_like(y), idx, x.shape)
        self.assertEqual(grad.sum(), 4.0)
        self.assertEqual(grad[1, 1, 0], 1.0)
        self.assertEqual(grad[2, 3, 0], 1.0)

    def test_output_shape(self):
        layer = Pooling(2, 2, 2, 2)
        self.assertEqual(layer.output_shape(Shape.d2(4, 6)), Shape.d2(2, 3))
        self.assertEqual(layer.output_shape(Shape.d3(5, 5, 4)), Shape.d3(2, 2, 4))
        self.assertEqual(Pooling(3, 3, 1, 1).output_shape(Shape.d2(5, 5)), Shape.d2(3, 3))

    def test_kernel_larger_than_input_raises(self):
        with self.assertRaises(ShapeMismatchError):
            Pooling(3, 3, 1, 1).output_shape(Shape.d2(2, 5))

    def test_overlapping_windows_accumulate(self):
        x = Tensor.from_list(Shape.d2(1, 3), [0, 9, 0])
        layer = Pooling(1, 2, 1, 1)
        tape, y = layer.run_forwards(x)
        self.assertEqual(y.to_list(), [9, 9])
        _, dx = layer.run_backwards(tape, Tensor.full(Shape.d2(1, 2), 1.0))
        self.assertEqual(dx.to_list(), [0, 2, 0])


class TestDropout(unittest.TestCase):
    def test_deterministic_for_same_seed(self):
        x = Tensor.full(Shape.d1(50), 1.0)
        _, y1 = Dropout(0.5, seed=3).run_forwards(x)
        _, y2 = Dropout(0.5, seed=3).run_forwards(x)
        self.assertEqual(y1, y2)

    def test_inverted_scaling(self):
        x = Tensor.full(Shape.d1(200), 1.0)
        _, y = Dropout(0.75, seed=1).run_forwards(x)
        values = set(np.unique(y.data).tolist())
        self.assertTrue(values <= {0.0, 4.0})
        self.assertIn(0.0, values)
        self.assertIn(4.0, values)

    def test_backward_reuses_mask(self):
        x = Tensor.full(Shape.d1(20), 1.0)
        layer = Dropout(0.5, seed=9)
        tape, y = layer.run_forwards(x)
        _, dx = layer.run_backwards(tape, Tensor.full(Shape.d1(20), 1.0))
        self.assertEqual(dx, y)

    def test_evaluation_mode_is_identity(self):
        x = Tensor.from_list(Shape.d1(3), [1, 2, 3])
        layer = Dropout(0.5).run_settings_update(NetworkSettings(training=False))
        self.assertFalse(layer.training)
        tape, y = layer.run_forwards(x)
        self.assertIsNone(tape)
        self.assertEqual(y, x)

    def test_update_advances_seed(self):
        layer = Dropout(0.3, seed=4)
        self.assertEqual(layer.run_update(None, NO_GRADIENT).seed, 5)

    def test_serialization(self):
        layer = Dropout(0.25, seed=42)
        restored = Dropout().from_bytes(layer.to_bytes())
        self.assertEqual(restored, layer)

    def test_batch_shares_mask_by_default(self):
        xs = [Tensor.full(Shape.d1(40), 1.0) for _ in range(4)]
        _, ys = Dropout(0.5, seed=3).run_batch_forwards(xs)
        self.assertEqual(len({tuple(y.to_list()) for y in ys}), 1)

    def test_per_sample_masks_differ(self):
        xs = [Tensor.full(Shape.d1(40), 1.0) for _ in range(4)]
        layer = Dropout(0.5, seed=3, per_sample=True)
        tapes, ys = layer.run_batch_forwards(xs)
        self.assertEqual(len({tuple(y.to_list()) for y in ys}), 4)
        dys = [Tensor.full(Shape.d1(40), 1.0) for _ in range(4)]
        _, dxs = layer.run_batch_backwards(tapes, dys)
        for dx, y in zip(dxs, ys):
            self.assertEqual(dx, y)

    def test_per_sample_is_kept(self):
        layer = Dropout(0.5, seed=3, per_sample=True)
        self.assertTrue(layer.run_update(None, NO_GRADIENT).per_sample)
        off = layer.run_settings_update(NetworkSettings(training=False))
        self.assertTrue(off.per_sample)
        self.assertEqual(layer.from_bytes(layer.to_bytes()), layer)
        self.assertNotEqual(layer, Dropout(0.5, seed=3))

    def test_invalid_rate(self):
        with self.assertRaises(ValueError):
            Dropout(1.0)


if __name__ == "__main__":
    unittest.main()
