"""Train the name classifier on the yearly name-frequency files."""

from __future__ import annotations

import argparse
import logging

import torch

from namenet.data import INPUT_SIZE, OUTPUT_SIZE, create_name_dataloaders, longest_name
from namenet.network import LayerBuilder, NetworkBuilder, save_network
from namenet.training import EarlyStoppingConfig, NetworkTrainer, TrainingConfig


def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Train a name classifier")
    parser.add_argument("--names-dir", type=str, default="./names/", help="Directory of yobYYYY.txt files")
    parser.add_argument("--cache-dir", type=str, default="./cache/")
    parser.add_argument("--lr", type=float, default=0.05)
    parser.add_argument(
        "--hidden",
        type=int,
        action="append",
        default=None,
        help="Neurons of a hidden layer; repeat for more layers",
    )
    parser.add_argument("--init", choices=("uniform", "xavier"), default="uniform")
    parser.add_argument("--gradient-clip", type=float, default=None)
    parser.add_argument("--epochs", type=int, default=1)
    parser.add_argument("--batch-size", type=int, default=32)
    parser.add_argument("--log-every", type=int, default=1, help="Log metrics every N epochs")
    parser.add_argument("--patience", type=int, default=None, help="Enable early stopping")
    parser.add_argument("--save-path", type=str, default=None)
    parser.add_argument("--seed", type=int, default=0)
    parser.add_argument("--no-progress", action="store_true")
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")
    generator = torch.Generator().manual_seed(args.seed)
    training_config = TrainingConfig(epochs=args.epochs, batch_size=args.batch_size, log_every=args.log_every)

    print(f"Longest name: {longest_name(args.names_dir)}")
    train_loader, dev_loader = create_name_dataloaders(
        args.names_dir,
        args.cache_dir,
        batch_size=training_config.batch_size,
        generator=generator,
    )

    builder = (
        NetworkBuilder()
        .learning_rate(args.lr)
        .input_size(INPUT_SIZE)
        .output_size(OUTPUT_SIZE)
        .initialiser(args.init)
        .gradient_clip(args.gradient_clip)
    )
    for neurons in args.hidden or [10]:
        builder = builder.hidden(LayerBuilder().neurons(neurons))
    network = builder.build(generator=generator)

    train_size = len(train_loader.dataset)
    dev_size = len(dev_loader.dataset)
    print(f"Training {network} on {train_size} records, {dev_size} dev records")
    trainer = NetworkTrainer(
        network,
        train_loader=train_loader,
        val_loader=dev_loader,
        progress=not args.no_progress,
    )
    early_stopping = EarlyStoppingConfig(patience=args.patience) if args.patience else None
    history = trainer.fit(training_config, early_stopping=early_stopping)
    for epoch, loss in enumerate(history.losses):
        print(
            f"Epoch {epoch + 1}: loss={loss:.4f} "
            f"dev_loss={history.val_losses[epoch]:.4f} dev_accuracy={history.val_accuracy[epoch]:.3f}"
        )

    if args.save_path:
        save_network(
            network,
            args.save_path,
            metadata={"train_records": train_size, "dev_records": dev_size, "seed": args.seed},
        )
        print(f"Saved checkpoint to {args.save_path}")


if __name__ == "__main__":
    main()
