import pytest

from matnet import BiasedNeuralNetwork, NetworkOptimizable, NeuralNetwork, Optimizer, criteria
from matnet.data import get_dataset


def test_mean_of_two_inputs_with_adam():
    spec = get_dataset("mean", n_points=200, high=10.0, seed=0)
    net = BiasedNeuralNetwork(2, [3, 1], ["tanh", "identity"], seed=1)
    target = NetworkOptimizable(net)
    initial = target.cost(spec.inputs, spec.outputs)

    result = Optimizer(target, criteria.max_iterations(5000)).adam(
        spec.inputs, spec.outputs, learning_rate=1e-3
    )

    assert result.iterations == 5000
    assert result.cost < 0.1 * initial
    assert net.forward([[4, 6]])[0, 0] == pytest.approx(5.0, abs=0.5)


def test_classic_digit_average_demo():
    spec = get_dataset("mean", n_points=10, integers=True, seed=3)
    net = NeuralNetwork(2, [1], ["identity"], seed=3)
    target = NetworkOptimizable(net)

    result = Optimizer(target, criteria.max_iterations(5000)).momentum(
        spec.inputs, spec.outputs, learning_rate=1e-4, momentum=0.5
    )

    assert result.cost < 1e-6
    assert net.forward([[2, 8]])[0, 0] == pytest.approx(5.0, abs=0.25)
