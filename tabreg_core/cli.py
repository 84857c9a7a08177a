"""TabReg CLI - Command Line Interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List, Optional

from tabreg_core.config import DEVICES, RegressorConfig
from tabreg_core.data.schema import LabeledDataset
from tabreg_core.exceptions import TabRegError
from tabreg_core.model.artifact import ModelArtifact
from tabreg_core.network.builder import SizeHint
from tabreg_core.regressor import TabularRegressor

logger = logging.getLogger(__name__)


def _json_spec(text: str) -> Dict[str, Any]:
    try:
        spec = json.loads(text)
    except json.JSONDecodeError:
        return {"type": text}
    if isinstance(spec, str):
        return {"type": spec}
    if not isinstance(spec, dict):
        raise argparse.ArgumentTypeError(f"Strategy spec must be a name or JSON object: {text}")
    return spec


class CLI:
    """TabReg CLI.

    Commands:
    - train: Train a model on a CSV file
    - predict: Predict the label of every row of a CSV file
    - info: Show a persisted model's manifest
    """

    def __init__(self):
        self.parser = argparse.ArgumentParser(
            prog="tabreg",
            description="TabReg - Tabular regression model lifecycle",
        )
        self.parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
        self._setup_parsers()

    def _setup_parsers(self):
        """Setup command parsers."""
        subparsers = self.parser.add_subparsers(dest="command", help="Commands")

        # Train
        train_parser = subparsers.add_parser("train", help="Train a model")
        train_parser.add_argument("data", help="CSV file with a header row")
        train_parser.add_argument("--label", required=True, help="Label column")
        train_parser.add_argument("--config", type=str, help="JSON config file")
        train_parser.add_argument("--size-hint", choices=[h.name for h in SizeHint], type=str.upper)
        train_parser.add_argument("--train-percentage", type=int)
        train_parser.add_argument("--mini-batch-size", type=int)
        train_parser.add_argument("--num-epochs", type=int)
        train_parser.add_argument("--parallel", action="store_true", default=None)
        train_parser.add_argument("--seed", type=int)
        train_parser.add_argument("--device", type=str, help=f"One of {', '.join(DEVICES)}")
        train_parser.add_argument("--architecture", type=_json_spec, help="Architecture strategy")
        train_parser.add_argument("--training-plan", type=_json_spec, help="Training plan strategy")
        train_parser.add_argument("--identity", type=_json_spec, help="Identity strategy")
        train_parser.add_argument("--location", type=_json_spec, help="Location strategy")

        # Predict
        predict_parser = subparsers.add_parser("predict", help="Predict with a trained model")
        predict_parser.add_argument("data", help="CSV file with a header row")
        predict_parser.add_argument("--model-dir", default=".", help="Model directory")
        predict_parser.add_argument("--name", default="tabreg", help="Model name")
        predict_parser.add_argument("--label", type=str, help="Label column, if present")

        # Info
        info_parser = subparsers.add_parser("info", help="Show model manifest")
        info_parser.add_argument("--model-dir", default=".", help="Model directory")
        info_parser.add_argument("--name", default="tabreg", help="Model name")

    def run(self, args: Optional[List[str]] = None) -> int:
        """Run CLI command."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 0

        try:
            if parsed.command == "train":
                return self._handle_train(parsed)
            elif parsed.command == "predict":
                return self._handle_predict(parsed)
            elif parsed.command == "info":
                return self._handle_info(parsed)
            else:
                self.parser.print_help()
                return 1
        except (TabRegError, ValueError, KeyError, OSError) as e:
            logger.error(f"Error: {e}")
            return 1

    def _build_config(self, args) -> RegressorConfig:
        data = RegressorConfig.from_file(args.config).to_dict() if args.config else {}
        overrides = {
            "size_hint": args.size_hint,
            "train_percentage": args.train_percentage,
            "mini_batch_size": args.mini_batch_size,
            "num_epochs": args.num_epochs,
            "parallel": args.parallel,
            "seed": args.seed,
            "device": args.device,
            "architecture": args.architecture,
            "training_plan": args.training_plan,
            "identity": args.identity,
            "location": args.location,
        }
        data.update({k: v for k, v in overrides.items() if v is not None})
        return RegressorConfig.from_dict(data)

    def _handle_train(self, args) -> int:
        """Handle train command."""
        config = self._build_config(args)
        dataset = LabeledDataset.from_csv(args.data, label=args.label)

        with TabularRegressor(config) as regressor:
            print(regressor)
            artifact = regressor.train(dataset)

        print(f"Trained model: {artifact.name}")
        print(f"Weights: {artifact.params_path}")
        for key, value in artifact.metrics.items():
            print(f"  {key}: {value}")
        return 0

    def _handle_predict(self, args) -> int:
        """Handle predict command."""
        dataset = LabeledDataset.from_csv(args.data, label=args.label)

        with TabularRegressor.load(args.model_dir, args.name) as regressor:
            predictions = regressor.predict_many(list(dataset))

        for prediction in predictions:
            print(prediction)
        return 0

    def _handle_info(self, args) -> int:
        """Handle info command."""
        artifact = ModelArtifact.read(args.model_dir, args.name)
        print(json.dumps(artifact.to_dict(), indent=2))
        return 0


def main():
    """CLI entry point."""
    verbose = "-v" in sys.argv[1:] or "--verbose" in sys.argv[1:]
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO)
    cli = CLI()
    sys.exit(cli.run())


if __name__ == "__main__":
    main()
