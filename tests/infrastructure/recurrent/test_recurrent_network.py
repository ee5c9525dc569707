import unittest

import numpy as np

from shapechain import (
    SGD,
    BasicRecurrent,
    EmptyBatchError,
    FeedForward,
    FullyConnected,
    NotRecurrentLayerError,
    Recurrent,
    RecurrentInputs,
    RecurrentNetwork,
    Shape,
    ShapeMismatchError,
    Tanh,
    Tensor,
    WeightInitMethod,
    backpropagate_through_time,
    random_recurrent,
    run_recurrent_sequence,
)
from shapechain.infrastructure.recurrent import (
    apply_recurrent_update,
    run_recurrent,
    run_recurrent_backwards,
    train_recurrent,
)

EPS = 1e-6
SHAPES = [Shape.d1(2), Shape.d1(3), Shape.d1(4), Shape.d1(1)]


def _nodes(rnn: BasicRecurrent = None):
    return [
        FeedForward(FullyConnected(2, 3)),
        Recurrent(rnn if rnn is not None else BasicRecurrent(3, 4)),
        FeedForward(FullyConnected(4, 1)),
    ]


def _network(seed: int = 0) -> RecurrentNetwork:
    return random_recurrent(
        _nodes(), SHAPES, WeightInitMethod.XAVIER, np.random.default_rng(seed)
    )


def _sequence(rng, n: int = 4):
    return [Tensor(Shape.d1(2), rng.standard_normal(2)) for _ in range(n)]


def _sequence_loss(net, state, xs, dys) -> float:
    _, _, ys = run_recurrent_sequence(net, state, xs)
    return sum(float(np.sum(y.data * dy.data)) for y, dy in zip(ys, dys))


class TestRecurrentConstruction(unittest.TestCase):
    def test_untagged_node_rejected(self):
        with self.assertRaises(TypeError):
            RecurrentNetwork([FullyConnected(2, 2)], [Shape.d1(2), Shape.d1(2)])

    def test_recurrent_tag_requires_recurrent_layer(self):
        with self.assertRaises(NotRecurrentLayerError) as ctx:
            RecurrentNetwork(
                [FeedForward(Tanh()), Recurrent(FullyConnected(2, 2))],
                [Shape.d1(2), Shape.d1(2), Shape.d1(2)],
            )
        self.assertEqual(ctx.exception.index, 1)

    def test_shape_mismatch(self):
        with self.assertRaises(ShapeMismatchError) as ctx:
            RecurrentNetwork(
                [Recurrent(BasicRecurrent(3, 4))], [Shape.d1(2), Shape.d1(4)]
            )
        self.assertEqual(ctx.exception.index, 0)

    def test_repr_and_summary(self):
        net = _network()
        self.assertEqual(
            repr(net),
            "FullyConnected 2 3 ~~> BasicRecurrent 3 4 ~~> FullyConnected 4 1 ~~> NNil",
        )
        self.assertIn("(1): Recurrent BasicRecurrent 3 4  D1 3 -> D1 4", net.summary())


class TestRecurrentTimestep(unittest.TestCase):
    def test_state_threads_between_steps(self):
        net = _network(1)
        x = Tensor.from_list(Shape.d1(2), [1.0, -1.0])
        _, s1, y1 = run_recurrent(net, net.initial_state(), x)
        _, s2, y2 = net.run_recurrent(s1, x)
        self.assertNotEqual(s1, s2)
        self.assertNotEqual(y1, y2)
        self.assertIsNone(s1[0])
        self.assertEqual(y1.shape, Shape.d1(1))

    def test_layer_view_runs_from_initial_state(self):
        net = _network(2)
        x = Tensor.from_list(Shape.d1(2), [0.3, 0.7])
        _, y_layer = net.run_forwards(x)
        _, _, y_step = net.run_recurrent(net.initial_state(), x)
        self.assertEqual(y_layer, y_step)

    def test_zero_state_gradient_backward(self):
        net = _network(3)
        x = Tensor.from_list(Shape.d1(2), [0.3, 0.7])
        tape, _, y = net.run_recurrent(net.initial_state(), x)
        grads, ds, dx = run_recurrent_backwards(net, tape, net.initial_state(), y)
        g2, dx2 = net.run_backwards(tape, y)
        self.assertEqual(len(grads), 3)
        np.testing.assert_allclose(dx.data, dx2.data)
        np.testing.assert_allclose(grads[1].bias, g2[1].bias)
        self.assertEqual(ds.layout(), (False, True, False))


class TestBackpropagationThroughTime(unittest.TestCase):
    def setUp(self):
        self.rng = np.random.default_rng(21)
        self.net = _network(4)
        self.state = RecurrentInputs.constant(self.net, 0.1)
        self.xs = _sequence(self.rng)
        self.dys = [Tensor(Shape.d1(1), self.rng.standard_normal(1)) for _ in self.xs]

    def test_input_gradients(self):
        _, _, dxs = backpropagate_through_time(self.net, self.state, self.xs, self.dys)
        self.assertEqual(len(dxs), len(self.xs))
        for t in (0, len(self.xs) - 1):
            base = self.xs[t].to_numpy()
            numeric = np.zeros(2)
            for i in range(2):
                xs_p = list(self.xs)
                xs_m = list(self.xs)
                p = base.copy()
                p[i] += EPS
                m = base.copy()
                m[i] -= EPS
                xs_p[t] = Tensor(Shape.d1(2), p)
                xs_m[t] = Tensor(Shape.d1(2), m)
                numeric[i] = (
                    _sequence_loss(self.net, self.state, xs_p, self.dys)
                    - _sequence_loss(self.net, self.state, xs_m, self.dys)
                ) / (2 * EPS)
            np.testing.assert_allclose(dxs[t].data, numeric, rtol=1e-5, atol=1e-8)

    def test_state_gradient(self):
        _, ds, _ = backpropagate_through_time(self.net, self.state, self.xs, self.dys)
        base = self.state[1].to_numpy()
        numeric = np.zeros(4)
        for i in range(4):
            p = base.copy()
            p[i] += EPS
            m = base.copy()
            m[i] -= EPS
            sp = RecurrentInputs([None, Tensor(Shape.d1(4), p), None])
            sm = RecurrentInputs([None, Tensor(Shape.d1(4), m), None])
            numeric[i] = (
                _sequence_loss(self.net, sp, self.xs, self.dys)
                - _sequence_loss(self.net, sm, self.xs, self.dys)
            ) / (2 * EPS)
        np.testing.assert_allclose(ds[1].data, numeric, rtol=1e-5, atol=1e-8)

    def test_recurrent_weight_gradient_sums_over_time(self):
        grads, _, _ = backpropagate_through_time(self.net, self.state, self.xs, self.dys)
        rnn = self.net.layers[1]

        def loss_with(w_hh):
            layer = BasicRecurrent(
                3,
                4,
                bias=rnn.bias,
                input_weights=rnn.input_weights,
                recurrent_weights=w_hh,
            )
            nodes = [self.net.nodes[0], Recurrent(layer), self.net.nodes[2]]
            return _sequence_loss(
                RecurrentNetwork(nodes, SHAPES), self.state, self.xs, self.dys
            )

        for r, c in ((0, 0), (2, 1), (3, 3)):
            p = rnn.recurrent_weights.copy()
            p[r, c] += EPS
            m = rnn.recurrent_weights.copy()
            m[r, c] -= EPS
            numeric = (loss_with(p) - loss_with(m)) / (2 * EPS)
            self.assertAlmostEqual(grads[1].recurrent_weights[r, c], numeric, places=6)

    def test_missing_output_gradients_are_zero(self):
        dys = [None] * (len(self.xs) - 1) + [self.dys[-1]]
        zeros = [Tensor.zeros(Shape.d1(1))] * (len(self.xs) - 1) + [self.dys[-1]]
        g1, _, dx1 = backpropagate_through_time(self.net, self.state, self.xs, dys)
        g2, _, dx2 = backpropagate_through_time(self.net, self.state, self.xs, zeros)
        np.testing.assert_allclose(g1[1].recurrent_weights, g2[1].recurrent_weights)
        np.testing.assert_allclose(dx1[0].data, dx2[0].data)

    def test_length_mismatch_and_empty(self):
        with self.assertRaises(ShapeMismatchError):
            backpropagate_through_time(self.net, self.state, self.xs, self.dys[:1])
        with self.assertRaises(EmptyBatchError):
            backpropagate_through_time(self.net, self.state, [], [])


class TestNestedRecurrent(unittest.TestCase):
    def test_nested_matches_flat(self):
        flat = _network(5)
        inner = RecurrentNetwork(
            [flat.nodes[1], flat.nodes[2]], [Shape.d1(3), Shape.d1(4), Shape.d1(1)]
        )
        nested = RecurrentNetwork(
            [flat.nodes[0], Recurrent(inner)], [Shape.d1(2), Shape.d1(3), Shape.d1(1)]
        )
        rng = np.random.default_rng(8)
        xs = _sequence(rng, 3)
        _, _, ys_flat = run_recurrent_sequence(flat, flat.initial_state(), xs)
        _, _, ys_nest = run_recurrent_sequence(nested, nested.initial_state(), xs)
        for a, b in zip(ys_flat, ys_nest):
            np.testing.assert_allclose(a.data, b.data)

        dys = [Tensor.full(Shape.d1(1), 1.0)] * 3
        g_flat, _, _ = backpropagate_through_time(flat, flat.initial_state(), xs, dys)
        g_nest, _, _ = backpropagate_through_time(nested, nested.initial_state(), xs, dys)
        np.testing.assert_allclose(
            g_nest[1][0].recurrent_weights, g_flat[1].recurrent_weights
        )


class TestRecurrentUpdates(unittest.TestCase):
    def test_update_and_train(self):
        net = _network(6)
        rng = np.random.default_rng(9)
        xs = _sequence(rng, 3)
        targets = [None, None, Tensor.full(Shape.d1(1), 0.5)]

        def loss(n):
            _, _, ys = run_recurrent_sequence(n, n.initial_state(), xs)
            return float(np.sum((ys[-1] - targets[-1]).data ** 2))

        trained = net
        opt = SGD(learning_rate=0.01, momentum=0.0, l2=0.0)
        for _ in range(10):
            trained = train_recurrent(opt, trained, trained.initial_state(), xs, targets)
        self.assertLess(loss(trained), loss(net))

        grads, _, _ = backpropagate_through_time(
            net, net.initial_state(), xs, [None, None, Tensor.full(Shape.d1(1), 1.0)]
        )
        updated = apply_recurrent_update(opt, net, grads)
        self.assertNotEqual(updated, net)
        self.assertEqual(updated.shapes, net.shapes)

    def test_reduce_gradient(self):
        net = _network(7)
        rng = np.random.default_rng(10)
        dys = [Tensor.full(Shape.d1(1), 1.0)] * 2
        g1, _, _ = backpropagate_through_time(net, net.initial_state(), _sequence(rng, 2), dys)
        g2, _, _ = backpropagate_through_time(net, net.initial_state(), _sequence(rng, 2), dys)
        reduced = net.reduce_gradient([g1, g2])
        np.testing.assert_allclose(
            reduced[1].input_weights, (g1[1].input_weights + g2[1].input_weights) / 2
        )
        with self.assertRaises(EmptyBatchError):
            net.reduce_gradient([])

    def test_serialization(self):
        net = _network(8)
        template = RecurrentNetwork(_nodes(), SHAPES)
        self.assertEqual(template.from_bytes(net.to_bytes()), net)


if __name__ == "__main__":
    unittest.main()
