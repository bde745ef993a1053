import pytest

torch = pytest.importorskip("torch")

from namenet.network import LayerBuilder, Network, NetworkBuilder


def _make_network(seed: int) -> Network:
    return (
        NetworkBuilder()
        .learning_rate(0.1)
        .input_size(5)
        .output_size(3)
        .hidden(LayerBuilder().neurons(6))
        .hidden(LayerBuilder().neurons(4))
        .build(generator=torch.Generator().manual_seed(seed))
    )


def _example(seed: int) -> tuple[torch.Tensor, torch.Tensor]:
    generator = torch.Generator().manual_seed(100 + seed)
    inputs = torch.randn(5, generator=generator, dtype=torch.float64)
    target = torch.zeros(3, dtype=torch.float64)
    target[seed % 3] = 1.0
    return inputs, target


def _numerical_gradient(network: Network, tensor: torch.Tensor, inputs, target, eps: float = 1e-6) -> torch.Tensor:
    grad = torch.zeros_like(tensor)
    flat = tensor.view(-1)
    for index in range(flat.numel()):
        original = flat[index].item()
        flat[index] = original + eps
        plus = network.loss(inputs, target)
        flat[index] = original - eps
        minus = network.loss(inputs, target)
        flat[index] = original
        grad.view(-1)[index] = (plus - minus) / (2 * eps)
    return grad


@pytest.mark.parametrize("seed", [0, 1, 2])
def test_backprop_matches_finite_differences(seed: int) -> None:
    network = _make_network(seed)
    inputs, target = _example(seed)
    _, gradients = network.gradients(inputs, target)
    for layer, (grad_weights, grad_biases) in zip(network.layers, gradients):
        numeric_weights = _numerical_gradient(network, layer.weights, inputs, target)
        numeric_biases = _numerical_gradient(network, layer.biases, inputs, target)
        assert torch.allclose(grad_weights, numeric_weights, atol=1e-4)
        assert torch.allclose(grad_biases, numeric_biases, atol=1e-4)


def test_backprop_matches_autograd() -> None:
    network = _make_network(seed=4)
    inputs = torch.randn(7, 5, generator=torch.Generator().manual_seed(9), dtype=torch.float64)
    targets = torch.eye(3, dtype=torch.float64)[[0, 1, 2, 0, 1, 2, 0]]
    loss, gradients = network.gradients(inputs, targets)

    params = [
        (layer.weights.clone().requires_grad_(True), layer.biases.clone().requires_grad_(True))
        for layer in network.layers
    ]
    running = inputs
    for index, (weights, biases) in enumerate(params):
        running = running @ weights.T + biases
        if index < len(params) - 1:
            running = torch.relu(running)
    reference = torch.nn.functional.cross_entropy(running, targets.argmax(dim=-1))
    reference.backward()

    assert loss == pytest.approx(float(reference))
    for (weights, biases), (grad_weights, grad_biases) in zip(params, gradients):
        assert torch.allclose(grad_weights, weights.grad)
        assert torch.allclose(grad_biases, biases.grad)


def test_gradients_do_not_modify_parameters() -> None:
    network = _make_network(seed=5)
    inputs, target = _example(5)
    before = [layer.weights.clone() for layer in network.layers]
    network.gradients(inputs, target)
    for old, layer in zip(before, network.layers):
        assert torch.equal(old, layer.weights)
