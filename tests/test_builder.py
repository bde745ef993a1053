import math

import pytest

torch = pytest.importorskip("torch")

from namenet.errors import ConfigurationError
from namenet.network import LayerBuilder, Network, NetworkBuilder, NetworkConfig


def _complete_builder() -> NetworkBuilder:
    return NetworkBuilder().learning_rate(0.05).input_size(6).output_size(4)


def test_build_wires_layer_sizes() -> None:
    network = (
        _complete_builder()
        .hidden(LayerBuilder().neurons(5))
        .hidden(LayerBuilder().neurons(3))
        .build(generator=torch.Generator().manual_seed(0))
    )
    shapes = [(layer.inputs(), layer.neurons(), layer.is_output) for layer in network.layers]
    assert shapes == [(6, 5, False), (5, 3, False), (3, 4, True)]
    assert network.output_size == 4
    assert network.hidden_sizes == (5, 3)
    assert network.learning_rate == pytest.approx(0.05)


@pytest.mark.parametrize(
    "builder",
    [
        NetworkBuilder().input_size(6).output_size(4),
        NetworkBuilder().learning_rate(0.1).output_size(4),
        NetworkBuilder().learning_rate(0.1).input_size(6),
    ],
)
def test_missing_settings_fail(builder: NetworkBuilder) -> None:
    with pytest.raises(ConfigurationError):
        builder.hidden(LayerBuilder().neurons(2)).build()


def test_at_least_one_hidden_layer_is_required() -> None:
    with pytest.raises(ConfigurationError, match="hidden layer"):
        _complete_builder().build()


def test_hidden_layer_needs_neurons() -> None:
    with pytest.raises(ConfigurationError):
        _complete_builder().hidden(LayerBuilder()).build()
    with pytest.raises(ConfigurationError):
        _complete_builder().hidden(LayerBuilder().neurons(0)).build()


def test_non_positive_values_are_rejected() -> None:
    with pytest.raises(ConfigurationError):
        _complete_builder().learning_rate(0.0).hidden(LayerBuilder().neurons(2)).build()
    with pytest.raises(ConfigurationError):
        _complete_builder().input_size(-1).hidden(LayerBuilder().neurons(2)).build()
    with pytest.raises(ConfigurationError):
        _complete_builder().gradient_clip(0.0).hidden(LayerBuilder().neurons(2)).build()


@pytest.mark.parametrize("rate", [math.nan, math.inf, -math.inf, "0.1", True])
def test_learning_rate_must_be_a_finite_positive_number(rate) -> None:
    with pytest.raises(ConfigurationError):
        _complete_builder().learning_rate(rate).hidden(LayerBuilder().neurons(2)).build()


@pytest.mark.parametrize(
    "builder",
    [
        NetworkBuilder().learning_rate(0.1).input_size(2.5).output_size(2).hidden(LayerBuilder().neurons(2)),
        NetworkBuilder().learning_rate(0.1).input_size(2).output_size(True).hidden(LayerBuilder().neurons(2)),
        NetworkBuilder().learning_rate(0.1).input_size(2).output_size(2).hidden(LayerBuilder().neurons(3.0)),
    ],
)
def test_sizes_must_be_integers(builder: NetworkBuilder) -> None:
    with pytest.raises(ConfigurationError):
        builder.build()


def test_network_rejects_nan_learning_rate() -> None:
    network = _complete_builder().hidden(LayerBuilder().neurons(2)).build()
    with pytest.raises(ConfigurationError):
        Network(network.layers, learning_rate=math.nan, input_size=6)
    with pytest.raises(ConfigurationError):
        Network(network.layers, learning_rate=0.1, input_size=6, gradient_clip=math.nan)


def test_chained_calls_do_not_modify_the_original_builder() -> None:
    base = _complete_builder()
    extended = base.hidden(LayerBuilder().neurons(3))
    assert base.hidden_layers == ()
    assert len(extended.hidden_layers) == 1
    with pytest.raises(ConfigurationError):
        base.build()


def test_config_round_trip_through_builder() -> None:
    config = NetworkConfig(
        learning_rate=0.2,
        input_size=3,
        output_size=2,
        hidden_layers=(4, 2),
        initialiser="xavier",
        gradient_clip=1.0,
    )
    assert NetworkBuilder.from_config(config).config() == config


def test_seeded_builds_are_reproducible() -> None:
    builder = _complete_builder().hidden(LayerBuilder().neurons(3))
    first = builder.build(generator=torch.Generator().manual_seed(3))
    second = builder.build(generator=torch.Generator().manual_seed(3))
    for a, b in zip(first.layers, second.layers):
        assert torch.equal(a.weights, b.weights)
        assert torch.equal(a.biases, b.biases)
