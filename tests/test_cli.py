"""Tests for the command line interface.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import argparse
import json
import math

import pytest

from tabreg_core.cli import CLI, _json_spec
from tabreg_core.model import get_default_registry


@pytest.fixture
def csv_file(tmp_path):
    lines = ["x1,x2,y"]
    for i in range(60):
        x1, x2 = i % 10, (i * 3) % 7
        lines.append(f"{x1},{x2},{2.0 * x1 + x2}")
    path = tmp_path / "train.csv"
    path.write_text("\n".join(lines) + "\n")
    return path


def _location(path):
    return json.dumps({"type": "fixed", "path": str(path)})


class TestJsonSpec:
    """Test strategy spec parsing."""

    def test_bare_name(self):
        """Test a plain name becomes a type spec."""
        assert _json_spec("unique") == {"type": "unique"}

    def test_json_object(self):
        """Test a JSON object is used as-is."""
        assert _json_spec('{"type": "fixed", "id": "m"}') == {"type": "fixed", "id": "m"}

    def test_json_list_rejected(self):
        """Test non-object JSON is rejected."""
        with pytest.raises(argparse.ArgumentTypeError):
            _json_spec("[1, 2]")


class TestCLI:
    """Test CLI commands."""

    def test_no_command(self, capsys):
        """Test running without a command prints help."""
        assert CLI().run([]) == 0
        assert "usage" in capsys.readouterr().out

    def test_train_info_predict(self, tmp_path, csv_file, capsys):
        """Test the full train, info and predict cycle."""
        models = tmp_path / "models"
        code = CLI().run([
            "train", str(csv_file),
            "--label", "y",
            "--num-epochs", "1",
            "--mini-batch-size", "8",
            "--seed", "1",
            "--identity", '{"type": "fixed", "id": "cli-model"}',
            "--location", _location(models),
        ])

        out = capsys.readouterr().out
        assert code == 0
        assert "Trained model: cli-model" in out
        assert (models / "cli-model-0001.params").is_file()
        assert "cli-model" not in get_default_registry()

        assert CLI().run(["info", "--model-dir", str(models), "--name", "cli-model"]) == 0
        manifest = json.loads(capsys.readouterr().out)
        assert manifest["name"] == "cli-model"
        assert manifest["config"]["mini_batch_size"] == 8

        code = CLI().run([
            "predict", str(csv_file),
            "--model-dir", str(models),
            "--name", "cli-model",
            "--label", "y",
        ])

        lines = capsys.readouterr().out.split()
        assert code == 0
        assert len(lines) == 60
        assert all(math.isfinite(float(v)) for v in lines)

    def test_train_with_config_file(self, tmp_path, csv_file, capsys):
        """Test command-line options override the config file."""
        config = tmp_path / "config.json"
        config.write_text(json.dumps({"num_epochs": 3, "size_hint": "BALANCED"}))
        models = tmp_path / "models"

        code = CLI().run([
            "train", str(csv_file),
            "--label", "y",
            "--config", str(config),
            "--num-epochs", "1",
            "--location", _location(models),
        ])

        assert code == 0
        assert (models / "tabreg-0001.params").is_file()
        manifest = json.loads((models / "tabreg.json").read_text())
        assert manifest["config"]["size_hint"] == "BALANCED"
        assert manifest["config"]["num_epochs"] == 1

    def test_symbolic_label_fails(self, tmp_path):
        """Test an unsupported label returns an error code."""
        path = tmp_path / "nominal.csv"
        path.write_text("x,y\n1,low\n2,high\n3,low\n")
        models = tmp_path / "models"

        code = CLI().run(["train", str(path), "--label", "y", "--location", _location(models)])

        assert code == 1
        assert not models.exists()

    def test_info_missing_model(self, tmp_path):
        """Test info on a directory without a model."""
        assert CLI().run(["info", "--model-dir", str(tmp_path)]) == 1

    def test_predict_missing_model(self, tmp_path, csv_file):
        """Test predict without a trained model."""
        code = CLI().run(["predict", str(csv_file), "--model-dir", str(tmp_path / "none")])

        assert code == 1
