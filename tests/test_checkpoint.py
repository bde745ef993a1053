import pytest

torch = pytest.importorskip("torch")

from namenet.errors import ConfigurationError
from namenet.network import LayerBuilder, NetworkBuilder, load_network, save_network
from namenet.network.checkpoint import load_metadata


def test_save_and_load_restore_the_same_network(tmp_path) -> None:
    network = (
        NetworkBuilder()
        .learning_rate(0.05)
        .input_size(4)
        .output_size(3)
        .hidden(LayerBuilder().neurons(6))
        .hidden(LayerBuilder().neurons(2))
        .build(generator=torch.Generator().manual_seed(0))
    )
    network.train_step([1.0, 2.0, 3.0, 4.0], [0.0, 0.0, 1.0])
    path = tmp_path / "network.pt"
    save_network(network, path, metadata={"epochs": 1})

    restored = load_network(path)
    assert restored.hidden_sizes == (6, 2)
    assert restored.learning_rate == pytest.approx(0.05)
    for original, loaded in zip(network.layers, restored.layers):
        assert torch.equal(original.weights, loaded.weights)
        assert torch.equal(original.biases, loaded.biases)
        assert original.is_output == loaded.is_output
    assert load_metadata(path) == {"epochs": 1}


def test_loading_something_else_fails(tmp_path) -> None:
    path = tmp_path / "other.pt"
    torch.save({"weights": torch.zeros(2)}, path)
    with pytest.raises(ConfigurationError):
        load_network(path)


def _small_network(initialiser: str = "uniform"):
    return (
        NetworkBuilder()
        .learning_rate(0.1)
        .input_size(3)
        .output_size(2)
        .initialiser(initialiser)
        .hidden(LayerBuilder().neurons(4))
        .build(generator=torch.Generator().manual_seed(1))
    )


def test_saved_config_keeps_the_initialiser(tmp_path) -> None:
    path = tmp_path / "xavier.pt"
    save_network(_small_network("xavier"), path)
    assert torch.load(path)["config"]["initialiser"] == "xavier"
    assert load_network(path).initialiser == "xavier"


def test_unreadable_config_is_a_configuration_error(tmp_path) -> None:
    path = tmp_path / "network.pt"
    save_network(_small_network(), path)
    checkpoint = torch.load(path)
    checkpoint["config"]["momentum"] = 0.9
    torch.save(checkpoint, path)
    with pytest.raises(ConfigurationError):
        load_network(path)


@pytest.mark.parametrize("missing", ["weights", "biases"])
def test_state_without_parameters_is_a_configuration_error(missing: str) -> None:
    network = _small_network()
    state = network.state_dict()
    del state["layers"][1][missing]
    before = [layer.weights.clone() for layer in network.layers]
    with pytest.raises(ConfigurationError):
        network.load_state_dict(state)
    for old, layer in zip(before, network.layers):
        assert torch.equal(old, layer.weights)


def test_bias_shape_mismatch_names_the_biases() -> None:
    network = _small_network()
    state = network.state_dict()
    state["layers"][0]["biases"] = torch.zeros(5, dtype=torch.float64)
    with pytest.raises(ConfigurationError, match="biases"):
        network.load_state_dict(state)
