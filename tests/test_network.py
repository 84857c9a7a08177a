"""Tests for network topologies and architecture builders.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import pickle

import pytest
import torch

from tabreg_core.network import (
    NetworkTopology,
    ScriptArchitectureBuilder,
    SizeHint,
    TabularNetwork,
    TabularRegressionBuilder,
)


SCRIPT_WITH_FACTORY = '''
from tabreg_core.network import NetworkTopology


class WideBuilder:
    def __init__(self, n_steps=2):
        self.n_steps = n_steps

    def build(self, feature_count, label_count, size_hint):
        return NetworkTopology(
            input_dim=feature_count,
            output_dim=label_count,
            num_shared=size_hint.num_shared,
            num_independent=size_hint.num_independent,
            n_d=16,
            n_a=16,
            n_steps=self.n_steps,
        )


def create_builder(**options):
    return WideBuilder(**options)
'''

SCRIPT_WITH_FUNCTION = '''
from tabreg_core.network import NetworkTopology


def build(feature_count, label_count, size_hint, width=4):
    return NetworkTopology(feature_count, label_count, n_d=width, n_a=width, n_steps=1)
'''


class TestSizeHint:
    """Test SizeHint enum."""

    def test_presets(self):
        """Test layer counts of each preset."""
        assert (SizeHint.FAST.num_shared, SizeHint.FAST.num_independent) == (1, 1)
        assert (SizeHint.BALANCED.num_shared, SizeHint.BALANCED.num_independent) == (2, 2)
        assert (SizeHint.ACCURATE.num_shared, SizeHint.ACCURATE.num_independent) == (4, 4)

    def test_parse(self):
        """Test parsing is case-insensitive."""
        assert SizeHint.parse("balanced") is SizeHint.BALANCED
        assert SizeHint.parse(SizeHint.FAST) is SizeHint.FAST

    def test_parse_unknown(self):
        """Test unknown hints fail fast."""
        with pytest.raises(ValueError):
            SizeHint.parse("huge")


class TestNetworkTopology:
    """Test NetworkTopology class."""

    def test_validation(self):
        """Test invalid dimensions are rejected."""
        with pytest.raises(ValueError):
            NetworkTopology(input_dim=0, output_dim=1)
        with pytest.raises(ValueError):
            NetworkTopology(input_dim=3, output_dim=1, num_shared=0, num_independent=0)

    def test_dict_round_trip(self):
        """Test topology serialization."""
        topology = NetworkTopology(input_dim=5, output_dim=1, n_steps=4, gamma=1.5)

        assert NetworkTopology.from_dict(topology.to_dict()) == topology

    @pytest.mark.parametrize("hint", list(SizeHint))
    def test_forward_shape(self, hint):
        """Test the network maps a batch to one output per row."""
        topology = TabularRegressionBuilder().build(6, 1, hint)
        network = topology.create()

        out = network(torch.randn(5, 6))

        assert isinstance(network, TabularNetwork)
        assert out.shape == (5, 1)
        assert torch.isfinite(out).all()

    def test_single_row_batch(self):
        """Test a batch of one row in training mode."""
        network = NetworkTopology(input_dim=3, output_dim=1).create()
        network.train()

        out = network(torch.randn(1, 3))

        assert out.shape == (1, 1)

    def test_shared_layers_are_reused(self):
        """Test shared projections are the same module in every step."""
        network = NetworkTopology(input_dim=3, output_dim=1, num_shared=2).create()

        first = network.transformers[0].blocks[0].fc
        second = network.transformers[1].blocks[0].fc

        assert first is second
        assert first is network.shared[0]


class TestTabularRegressionBuilder:
    """Test TabularRegressionBuilder class."""

    def test_build(self):
        """Test the size hint selects layer counts."""
        topology = TabularRegressionBuilder(n_steps=2).build(4, 1, "ACCURATE")

        assert topology.input_dim == 4
        assert topology.output_dim == 1
        assert topology.num_shared == 4
        assert topology.num_independent == 4
        assert topology.n_steps == 2

    def test_deterministic(self):
        """Test identical inputs give identical topologies."""
        builder = TabularRegressionBuilder()

        assert builder.build(3, 1, "FAST") == builder.build(3, 1, "FAST")

    def test_rejects_empty_shape(self):
        """Test zero features or labels fail."""
        builder = TabularRegressionBuilder()

        with pytest.raises(ValueError):
            builder.build(0, 1, "FAST")
        with pytest.raises(ValueError):
            builder.build(3, 0, "FAST")

    def test_rejects_unknown_hint(self):
        """Test unknown size hints fail."""
        with pytest.raises(ValueError):
            TabularRegressionBuilder().build(3, 1, "TINY")

    def test_to_spec(self):
        """Test the spec records the builder options."""
        spec = TabularRegressionBuilder(n_d=4).to_spec()

        assert spec["type"] == "tabular"
        assert spec["n_d"] == 4


class TestScriptArchitectureBuilder:
    """Test ScriptArchitectureBuilder class."""

    def test_create_builder(self, tmp_path):
        """Test a script exposing create_builder."""
        path = tmp_path / "wide.py"
        path.write_text(SCRIPT_WITH_FACTORY)

        topology = ScriptArchitectureBuilder(path, {"n_steps": 5}).build(7, 1, "BALANCED")

        assert topology.input_dim == 7
        assert topology.n_d == 16
        assert topology.n_steps == 5
        assert topology.num_shared == 2

    def test_build_function(self, tmp_path):
        """Test a script exposing a build function."""
        path = tmp_path / "narrow.py"
        path.write_text(SCRIPT_WITH_FUNCTION)

        topology = ScriptArchitectureBuilder(path, {"width": 2}).build(3, 1, "FAST")

        assert topology.n_d == 2
        assert topology.n_steps == 1

    def test_missing_script(self, tmp_path):
        """Test a missing script file fails."""
        with pytest.raises(FileNotFoundError):
            ScriptArchitectureBuilder(tmp_path / "none.py").build(3, 1, "FAST")

    def test_script_without_entry_point(self, tmp_path):
        """Test a script defining neither entry point fails."""
        path = tmp_path / "empty.py"
        path.write_text("VALUE = 1\n")

        with pytest.raises(TypeError):
            ScriptArchitectureBuilder(path).build(3, 1, "FAST")

    def test_wrong_return_type(self, tmp_path):
        """Test a script returning something else than a topology fails."""
        path = tmp_path / "bad.py"
        path.write_text("def build(feature_count, label_count, size_hint):\n    return {}\n")

        with pytest.raises(TypeError):
            ScriptArchitectureBuilder(path).build(3, 1, "FAST")

    def test_pickle_drops_loaded_module(self, tmp_path):
        """Test pickling works after the script was loaded."""
        path = tmp_path / "wide.py"
        path.write_text(SCRIPT_WITH_FACTORY)
        builder = ScriptArchitectureBuilder(path)
        builder.build(3, 1, "FAST")

        restored = pickle.loads(pickle.dumps(builder))

        assert restored.to_spec() == {"type": "script", "path": str(path), "options": {}}
        assert restored.build(3, 1, "FAST").n_d == 16
