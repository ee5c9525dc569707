import unittest

from shapechain.domain import (
    DeserializationError,
    EmptyBatchError,
    NotRecurrentLayerError,
    Shape,
    ShapechainError,
    ShapeMismatchError,
)


class TestErrors(unittest.TestCase):
    def test_hierarchy(self):
        for cls in (ShapeMismatchError, EmptyBatchError, DeserializationError):
            self.assertTrue(issubclass(cls, ShapechainError))
            self.assertTrue(issubclass(cls, ValueError))
        self.assertTrue(issubclass(NotRecurrentLayerError, TypeError))

    def test_shape_mismatch_carries_details(self):
        e = ShapeMismatchError(
            "bad", expected=Shape.d1(3), actual=Shape.d1(4), index=2
        )
        self.assertEqual(e.expected, Shape.d1(3))
        self.assertEqual(e.actual, Shape.d1(4))
        self.assertEqual(e.index, 2)
        self.assertEqual(str(e), "bad")

    def test_empty_batch_names_location(self):
        e = EmptyBatchError("FullyConnected")
        self.assertEqual(e.where, "FullyConnected")
        self.assertIn("FullyConnected", str(e))

    def test_not_recurrent_names_layer(self):
        e = NotRecurrentLayerError(object(), 3)
        self.assertEqual(e.index, 3)
        self.assertIn("Layer 3", str(e))


if __name__ == "__main__":
    unittest.main()
