import unittest

import numpy as np
from onnx import helper, numpy_helper

from shapechain.infrastructure.onnx_import import (
    does_not_have_attribute,
    initializer_map,
    read_double_attribute,
    read_initializer_matrix,
    read_initializer_vector,
    read_int_attribute,
    read_ints_attribute,
)


class TestAttributeReaders(unittest.TestCase):
    def setUp(self):
        self.node = helper.make_node(
            "Gemm",
            ["x", "W", "b"],
            ["y"],
            alpha=0.5,
            transB=1,
            kernel_shape=[2, 3],
        )

    def test_typed_reads(self):
        self.assertEqual(read_double_attribute("alpha", self.node), 0.5)
        self.assertEqual(read_int_attribute("transB", self.node), 1)
        self.assertEqual(read_ints_attribute("kernel_shape", self.node), [2, 3])

    def test_wrong_type_is_none(self):
        self.assertIsNone(read_double_attribute("transB", self.node))
        self.assertIsNone(read_int_attribute("alpha", self.node))
        self.assertIsNone(read_ints_attribute("transB", self.node))

    def test_missing_is_none(self):
        self.assertIsNone(read_double_attribute("beta", self.node))
        self.assertIsNone(read_int_attribute("transA", self.node))
        self.assertTrue(does_not_have_attribute(self.node, "beta"))
        self.assertFalse(does_not_have_attribute(self.node, "alpha"))


class TestInitializerReaders(unittest.TestCase):
    def setUp(self):
        graph = helper.make_graph(
            [],
            "inits",
            [],
            [],
            initializer=[
                numpy_helper.from_array(np.array([1.0, 2.0, 3.0], dtype=np.float32), "v"),
                numpy_helper.from_array(
                    np.arange(6, dtype=np.float32).reshape(2, 3, 1), "m"
                ),
                numpy_helper.from_array(np.array([0.25, 0.5], dtype=np.float64), "d"),
                numpy_helper.from_array(np.array([1, 2], dtype=np.int64), "i"),
            ],
        )
        self.inits = initializer_map(graph)

    def test_vector(self):
        v = read_initializer_vector(self.inits, "v", 3)
        np.testing.assert_array_equal(v, [1.0, 2.0, 3.0])
        np.testing.assert_array_equal(read_initializer_vector(self.inits, "d", 2), [0.25, 0.5])

    def test_vector_size_checked(self):
        self.assertIsNone(read_initializer_vector(self.inits, "v", 4))
        self.assertIsNone(read_initializer_vector(self.inits, "m", 6))

    def test_matrix_flattens_trailing_dims(self):
        m = read_initializer_matrix(self.inits, "m", 2, 3)
        np.testing.assert_array_equal(m, [[0, 1, 2], [3, 4, 5]])
        self.assertIsNone(read_initializer_matrix(self.inits, "m", 3, 2))

    def test_missing_or_non_float_is_none(self):
        self.assertIsNone(read_initializer_vector(self.inits, "nope", 3))
        self.assertIsNone(read_initializer_vector(self.inits, "i", 2))
        self.assertIsNone(read_initializer_matrix(self.inits, "i", 2, 1))


if __name__ == "__main__":
    unittest.main()
