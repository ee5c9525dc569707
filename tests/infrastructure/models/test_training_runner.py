import unittest
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from shapechain import (
    SGD,
    FullyConnected,
    Network,
    Shape,
    ShapeMismatchError,
    Tanh,
    Tensor,
    back_propagate,
    batch_train,
    random_network,
    run_net,
    train,
)


def _vec(*values) -> Tensor:
    return Tensor.from_list(Shape.d1(len(values)), values)


def _loss(net, xs, ts) -> float:
    return sum(float(np.sum((run_net(net, x) - t).data ** 2)) for x, t in zip(xs, ts))


class TestTrainingRunner(unittest.TestCase):
    def setUp(self):
        self.net = random_network(
            [FullyConnected(2, 4), Tanh(), FullyConnected(4, 1)],
            [Shape.d1(2), Shape.d1(4), Shape.d1(4), Shape.d1(1)],
            rng=np.random.default_rng(11),
        )
        self.xs = [_vec(0, 0), _vec(0, 1), _vec(1, 0), _vec(1, 1)]
        self.ts = [_vec(0), _vec(1), _vec(1), _vec(0)]

    def test_back_propagate_uses_output_error(self):
        net = Network([FullyConnected(1, 1, bias=[1.0], weights=[[2.0]])], [Shape.d1(1), Shape.d1(1)])
        grads = back_propagate(net, _vec(3.0), _vec(5.0))
        # y = 7, dy = 2
        np.testing.assert_allclose(grads[0].bias, [2.0])
        np.testing.assert_allclose(grads[0].weights, [[6.0]])

    def test_train_reduces_loss(self):
        net = self.net
        before = _loss(net, self.xs[:1], self.ts[:1])
        for _ in range(20):
            net = train(SGD(learning_rate=0.01, momentum=0.0, l2=0.0), net, self.xs[0], self.ts[0])
        self.assertLess(_loss(net, self.xs[:1], self.ts[:1]), before)

    def test_batch_train_reduces_loss(self):
        net = self.net
        before = _loss(net, self.xs, self.ts)
        for _ in range(50):
            net = batch_train(SGD(learning_rate=0.05, momentum=0.0, l2=0.0), net, self.xs, self.ts)
        self.assertLess(_loss(net, self.xs, self.ts), before)

    def test_batch_train_with_executor_matches_serial(self):
        serial = batch_train(SGD(), self.net, self.xs, self.ts)
        with ThreadPoolExecutor(max_workers=2) as pool:
            threaded = batch_train(SGD(), self.net, self.xs, self.ts, executor=pool)
        for a, b in zip(serial.layers, threaded.layers):
            if isinstance(a, FullyConnected):
                np.testing.assert_allclose(a.weights, b.weights)

    def test_batch_train_length_mismatch(self):
        with self.assertRaises(ShapeMismatchError):
            batch_train(SGD(), self.net, self.xs, self.ts[:2])


if __name__ == "__main__":
    unittest.main()
