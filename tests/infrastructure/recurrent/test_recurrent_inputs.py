import unittest

import numpy as np

from shapechain import (
    BasicRecurrent,
    DeserializationError,
    FeedForward,
    FullyConnected,
    Recurrent,
    RecurrentInputs,
    RecurrentNetwork,
    Shape,
    ShapeMismatchError,
    Tensor,
)


def _network() -> RecurrentNetwork:
    return RecurrentNetwork(
        [
            FeedForward(FullyConnected(2, 3)),
            Recurrent(BasicRecurrent(3, 4)),
            FeedForward(FullyConnected(4, 1)),
        ],
        [Shape.d1(2), Shape.d1(3), Shape.d1(4), Shape.d1(1)],
    )


class TestRecurrentInputs(unittest.TestCase):
    def setUp(self):
        self.net = _network()

    def test_initial_state_layout(self):
        s = self.net.initial_state()
        self.assertEqual(s.layout(), (False, True, False))
        self.assertEqual(s[1], Tensor.zeros(Shape.d1(4)))
        self.assertIsNone(s[0])

    def test_constant(self):
        s = RecurrentInputs.constant(self.net, 2.0)
        self.assertEqual(s[1].to_list(), [2.0] * 4)
        self.assertIsNone(s[2])

    def test_arithmetic(self):
        s = RecurrentInputs.constant(self.net, 2.0)
        self.assertEqual((s + s)[1].to_list(), [4.0] * 4)
        self.assertEqual((s - s), self.net.initial_state())
        self.assertEqual((3 * s)[1].to_list(), [6.0] * 4)
        self.assertEqual((s * s)[1].to_list(), [4.0] * 4)
        self.assertEqual((s / 4)[1].to_list(), [0.5] * 4)
        self.assertEqual((-s)[1].to_list(), [-2.0] * 4)
        self.assertEqual((1 + s)[1].to_list(), [3.0] * 4)

    def test_zeros_like(self):
        s = RecurrentInputs.constant(self.net, 5.0)
        self.assertEqual(s.zeros_like(), self.net.initial_state())

    def test_structure_mismatch_raises(self):
        s = self.net.initial_state()
        other = RecurrentInputs([None, None, Tensor.zeros(Shape.d1(4))])
        with self.assertRaises(ShapeMismatchError):
            _ = s + other
        with self.assertRaises(ShapeMismatchError):
            self.net.run_recurrent(other, Tensor.zeros(Shape.d1(2)))

    def test_nested_states(self):
        inner = RecurrentNetwork(
            [Recurrent(BasicRecurrent(2, 2))], [Shape.d1(2), Shape.d1(2)]
        )
        outer = RecurrentNetwork(
            [FeedForward(FullyConnected(2, 2)), Recurrent(inner)],
            [Shape.d1(2), Shape.d1(2), Shape.d1(2)],
        )
        s = RecurrentInputs.constant(outer, 1.0)
        self.assertIsInstance(s[1], RecurrentInputs)
        self.assertEqual(s[1][0].to_list(), [1.0, 1.0])
        doubled = s * 2
        self.assertEqual(doubled[1][0].to_list(), [2.0, 2.0])

    def test_serialization(self):
        s = RecurrentInputs.constant(self.net, 0.5)
        data = s.to_bytes()
        self.assertEqual(len(data), 4 * np.dtype(s[1].data.dtype).itemsize)
        self.assertEqual(self.net.initial_state().from_bytes(data), s)
        with self.assertRaises(DeserializationError):
            self.net.initial_state().from_bytes(data[:-1])


if __name__ == "__main__":
    unittest.main()
