"""Tests for the regressor lifecycle.

Copyright (c) 2024-2026 BlackRoad OS, Inc. All rights reserved.
"""

import math
import pickle
from unittest.mock import Mock

import pytest

from tabreg_core import (
    CapabilityError,
    EncodingError,
    LabeledDataset,
    ModelHandleRegistry,
    PredictionError,
    ReconstructionError,
    Record,
    RegressorConfig,
    RegressorState,
    Schema,
    TabularRegressor,
    TrainingError,
)
from tabreg_core.data import Attribute, AttributeType
from tabreg_core.model import ModelArtifact, ModelHandle
from tabreg_core.training import TrainingListener, TrainingPlan


def _rows(n, offset=0):
    return [
        {"x1": float(i % 10), "x2": float((i * 7) % 13), "y": 3.0 * (i % 10) - 0.5 * ((i * 7) % 13)}
        for i in range(offset, offset + n)
    ]


def _dataset(n=100):
    return LabeledDataset.from_rows(_rows(n), label="y")


def _config(tmp_path, **overrides):
    options = {
        "train_percentage": 80,
        "mini_batch_size": 10,
        "num_epochs": 1,
        "seed": 0,
        "location": {"type": "fixed", "path": str(tmp_path)},
    }
    options.update(overrides)
    return RegressorConfig(**options)


class TestTraining:
    """Test TabularRegressor.train."""

    def test_train_and_predict(self, tmp_path):
        """Test training persists a model and predicts a finite value."""
        registry = ModelHandleRegistry()
        regressor = TabularRegressor(_config(tmp_path), registry=registry)

        artifact = regressor.train(_dataset())

        assert regressor.state == RegressorState.TRAINED
        assert artifact.name == "tabreg"
        assert (tmp_path / "tabreg-0001.params").is_file()
        assert (tmp_path / "tabreg.json").is_file()
        assert "tabreg" in registry

        held_out = LabeledDataset.from_rows(_rows(1, offset=500), label="y")[0]
        value = regressor.predict(held_out)

        assert isinstance(value, float)
        assert math.isfinite(value)
        assert regressor.state == RegressorState.SERVING
        regressor.close()

    def test_manifest_contents(self, tmp_path):
        """Test the manifest records descriptor, header and metrics."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        regressor.train(_dataset())

        artifact = ModelArtifact.read(tmp_path, "tabreg")

        assert artifact.descriptor["features"] == ["x1", "x2"]
        assert artifact.descriptor["batch_size"] == 10
        assert artifact.header["label"] == "y"
        assert artifact.topology["input_dim"] == 2
        assert artifact.config["num_epochs"] == 1
        assert "validation_loss" in artifact.metrics
        artifact.verify()
        regressor.close()

    def test_symbolic_label_writes_nothing(self, tmp_path):
        """Test a symbolic label fails before any file is written."""
        out = tmp_path / "out"
        rows = [{"x1": float(i), "y": "high" if i % 2 else "low"} for i in range(20)]
        dataset = LabeledDataset.from_rows(rows, label="y")
        regressor = TabularRegressor(_config(out), registry=ModelHandleRegistry())

        with pytest.raises(CapabilityError):
            regressor.train(dataset)

        assert not out.exists()
        assert regressor.state == RegressorState.UNBUILT

    def test_same_name_evicts(self, tmp_path):
        """Test retraining under one name leaves exactly one live handle."""
        registry = ModelHandleRegistry()
        first = TabularRegressor(_config(tmp_path), registry=registry)
        second = TabularRegressor(_config(tmp_path), registry=registry)

        first.train(_dataset())
        second.train(_dataset())

        assert registry.names() == ["tabreg"]
        assert registry.get("tabreg") is second.handle
        assert first.handle.released
        assert not second.handle.released
        first.close()
        second.close()

    def test_parallel_names_are_distinct(self, tmp_path):
        """Test parallel mode registers distinct names."""
        registry = ModelHandleRegistry()
        first = TabularRegressor(_config(tmp_path, parallel=True), registry=registry)
        second = TabularRegressor(_config(tmp_path, parallel=True), registry=registry)

        a = first.train(_dataset())
        b = second.train(_dataset())

        assert a.name != b.name
        assert a.name.startswith("tabreg-")
        assert sorted(registry.names()) == sorted([a.name, b.name])
        assert not first.handle.released
        assert not second.handle.released
        first.close()
        second.close()

    def test_stale_files_removed(self, tmp_path):
        """Test weights from an earlier run are removed."""
        (tmp_path / "tabreg-0042.params").write_bytes(b"old")
        (tmp_path / "other-0042.params").write_bytes(b"keep")
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())

        regressor.train(_dataset())

        assert not (tmp_path / "tabreg-0042.params").exists()
        assert (tmp_path / "other-0042.params").exists()
        assert (tmp_path / "tabreg-0001.params").exists()
        regressor.close()

    def test_retrain_same_instance(self, tmp_path):
        """Test training twice on one instance releases the old handle."""
        registry = ModelHandleRegistry()
        regressor = TabularRegressor(_config(tmp_path), registry=registry)

        regressor.train(_dataset())
        old = regressor.handle
        regressor.train(_dataset())

        assert old.released
        assert registry.get("tabreg") is regressor.handle
        regressor.close()

    def test_training_failure_resets(self, tmp_path):
        """Test an engine failure leaves the regressor unbuilt and unregistered."""
        registry = ModelHandleRegistry()
        plan = Mock()
        plan.build.side_effect = TrainingError("boom")
        regressor = TabularRegressor(_config(tmp_path), registry=registry, training_plan=plan)

        with pytest.raises(TrainingError):
            regressor.train(_dataset())

        assert regressor.state == RegressorState.UNBUILT
        assert regressor.handle is None
        assert len(registry) == 0

    def test_eviction_during_training(self, tmp_path):
        """Test losing the registered name mid-fit fails as a training error."""
        registry = ModelHandleRegistry()
        intruder = ModelHandle("tabreg")

        class Evict(TrainingListener):
            def on_epoch_end(self, progress):
                registry.install(progress.model_name, intruder)

        plan = Mock()
        plan.build.return_value = TrainingPlan(listeners=[Evict()])
        regressor = TabularRegressor(_config(tmp_path), registry=registry, training_plan=plan)

        with pytest.raises(TrainingError):
            regressor.train(_dataset())

        assert regressor.state == RegressorState.UNBUILT
        assert regressor.handle is None
        assert registry.get("tabreg") is intruder
        assert not intruder.released
        assert not (tmp_path / "tabreg-0001.params").exists()

    def test_tiny_dataset(self, tmp_path):
        """Test a small split percentage still trains on at least one row."""
        regressor = TabularRegressor(_config(tmp_path, train_percentage=20), registry=ModelHandleRegistry())

        artifact = regressor.train(_dataset(4))

        assert artifact.params_path.is_file()
        assert math.isfinite(regressor.predict(_dataset(4)[0]))
        regressor.close()

    def test_seeded_training_is_reproducible(self, tmp_path):
        """Test identical seeds give identical predictions."""
        record = _dataset()[3]
        values = []
        for sub in ("a", "b"):
            regressor = TabularRegressor(_config(tmp_path / sub, num_epochs=2), registry=ModelHandleRegistry())
            regressor.train(_dataset())
            values.append(regressor.predict(record))
            regressor.close()

        assert values[0] == pytest.approx(values[1])


class TestPrediction:
    """Test TabularRegressor.predict."""

    def test_missing_feature_does_not_mutate(self, tmp_path):
        """Test a record lacking a feature fails and leaves state unchanged."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        regressor.train(_dataset())
        schema = Schema([Attribute("x1"), Attribute("y")], label="y")
        record = Record(schema, {"x1": 1.0, "y": None})

        with pytest.raises(EncodingError):
            regressor.predict(record)

        assert regressor.state == RegressorState.TRAINED
        assert regressor._predictor is None
        regressor.close()

    def test_non_numeric_value_does_not_load(self, tmp_path):
        """Test a text value fails before the model is loaded or registered."""
        registry = ModelHandleRegistry()
        owner = TabularRegressor(_config(tmp_path), registry=registry)
        owner.train(_dataset())
        fresh = TabularRegressor(_config(tmp_path), registry=registry)
        schema = Schema([Attribute("x1", AttributeType.NOMINAL, ("a",)), Attribute("x2")])
        record = Record(schema, {"x1": "a", "x2": 1.0})

        with pytest.raises(EncodingError):
            fresh.predict(record)
        with pytest.raises(EncodingError):
            fresh.predict_many([_dataset()[0], record])

        assert fresh.state == RegressorState.UNBUILT
        assert fresh.handle is None
        assert registry.get("tabreg") is owner.handle
        assert not owner.handle.released
        owner.close()

    def test_text_in_numeric_attribute(self, tmp_path):
        """Test a numeric attribute holding text fails as an encoding error."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        regressor.train(_dataset())
        record = Record(Schema([Attribute("x1"), Attribute("x2")]), {"x1": "abc", "x2": 1.0})

        with pytest.raises(EncodingError) as exc:
            regressor.predict(record)

        assert exc.value.feature == "x1"
        assert regressor.state == RegressorState.TRAINED
        regressor.close()

    def test_missing_feature_before_load(self, tmp_path):
        """Test an encoding failure does not load the model."""
        TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry()).train(_dataset())
        registry = ModelHandleRegistry()
        fresh = TabularRegressor(_config(tmp_path), registry=registry)
        record = Record(Schema([Attribute("x2")]), {"x2": 1.0})

        with pytest.raises(EncodingError):
            fresh.predict(record)

        assert fresh.state == RegressorState.UNBUILT
        assert fresh.handle is None
        assert len(registry) == 0

    def test_feature_order_by_name(self, tmp_path):
        """Test records with reordered columns predict identically."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        regressor.train(_dataset())
        reordered = Schema([Attribute("y"), Attribute("x2"), Attribute("x1")], label="y")
        original = _dataset()[5]
        swapped = Record(reordered, dict(original.values))

        assert regressor.predict(swapped) == regressor.predict(original)
        regressor.close()

    def test_lazy_load(self, tmp_path):
        """Test a fresh regressor loads the persisted model on first prediction."""
        trained = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        trained.train(_dataset())
        record = _dataset()[7]
        expected = trained.predict(record)
        trained.close()

        fresh = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        assert fresh.state == RegressorState.UNBUILT

        assert fresh.predict(record) == pytest.approx(expected)
        assert fresh.state == RegressorState.SERVING
        fresh.close()

    def test_no_model(self, tmp_path):
        """Test predicting without a persisted model."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())

        with pytest.raises(PredictionError):
            regressor.predict(_dataset()[0])

    def test_load_classmethod(self, tmp_path):
        """Test loading a regressor from its directory and name."""
        trained = TabularRegressor(_config(tmp_path, size_hint="BALANCED"), registry=ModelHandleRegistry())
        trained.train(_dataset())
        record = _dataset()[2]
        expected = trained.predict(record)
        trained.close()

        loaded = TabularRegressor.load(tmp_path, "tabreg", registry=ModelHandleRegistry())

        assert loaded.state == RegressorState.LOADED
        assert loaded.config.size_hint == "BALANCED"
        assert loaded.predict(record) == pytest.approx(expected)
        assert loaded.state == RegressorState.SERVING
        loaded.close()

    def test_load_rejects_changed_architecture(self, tmp_path):
        """Test a different size hint cannot load the persisted weights."""
        TabularRegressor(_config(tmp_path, size_hint="FAST"), registry=ModelHandleRegistry()).train(_dataset())
        other = TabularRegressor(_config(tmp_path, size_hint="ACCURATE"), registry=ModelHandleRegistry())

        with pytest.raises(ReconstructionError):
            other.predict(_dataset()[0])

    def test_load_rejects_tampered_weights(self, tmp_path):
        """Test modified weights are detected on load."""
        TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry()).train(_dataset())
        (tmp_path / "tabreg-0001.params").write_bytes(b"garbage")

        with pytest.raises(ReconstructionError):
            TabularRegressor.load(tmp_path, "tabreg", registry=ModelHandleRegistry())

    def test_reload_after_eviction(self, tmp_path):
        """Test an evicted handle is reloaded on the next prediction."""
        registry = ModelHandleRegistry()
        first = TabularRegressor(_config(tmp_path), registry=registry)
        first.train(_dataset())
        record = _dataset()[1]
        first.predict(record)
        TabularRegressor(_config(tmp_path / "other"), registry=registry).train(_dataset())

        assert first.handle.released
        assert math.isfinite(first.predict(record))
        assert not first.handle.released

    def test_predict_many(self, tmp_path):
        """Test batch prediction matches single predictions."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        regressor.train(_dataset())
        records = list(_dataset(5))

        batch = regressor.predict_many(records)

        assert len(batch) == 5
        assert batch[0] == pytest.approx(regressor.predict(records[0]), rel=1e-5, abs=1e-5)
        assert regressor.predict_many([]) == []
        regressor.close()


class TestClose:
    """Test TabularRegressor.close and lifecycle helpers."""

    def test_close_idempotent(self, tmp_path):
        """Test close can be called repeatedly."""
        registry = ModelHandleRegistry()
        regressor = TabularRegressor(_config(tmp_path), registry=registry)
        regressor.train(_dataset())
        handle = regressor.handle

        regressor.close()
        regressor.close()

        assert handle.released
        assert len(registry) == 0
        assert regressor.handle is None

    def test_close_unbuilt(self, tmp_path):
        """Test closing an untrained regressor."""
        TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry()).close()

    def test_close_keeps_evictor(self, tmp_path):
        """Test closing an evicted regressor leaves the new handle registered."""
        registry = ModelHandleRegistry()
        first = TabularRegressor(_config(tmp_path), registry=registry)
        second = TabularRegressor(_config(tmp_path), registry=registry)
        first.train(_dataset())
        second.train(_dataset())

        first.close()

        assert registry.get("tabreg") is second.handle
        assert not second.handle.released
        second.close()

    def test_predict_after_close(self, tmp_path):
        """Test a closed regressor reloads for prediction."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        regressor.train(_dataset())
        record = _dataset()[4]
        expected = regressor.predict(record)
        regressor.close()

        assert regressor.predict(record) == pytest.approx(expected)
        regressor.close()

    def test_context_manager(self, tmp_path):
        """Test the context manager closes the regressor."""
        registry = ModelHandleRegistry()
        with TabularRegressor(_config(tmp_path), registry=registry) as regressor:
            regressor.train(_dataset())
            handle = regressor.handle

        assert handle.released
        assert len(registry) == 0

    def test_pickle(self, tmp_path):
        """Test pickling drops engine handles and reloads lazily."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())
        regressor.train(_dataset())
        record = _dataset()[6]
        expected = regressor.predict(record)

        restored = pickle.loads(pickle.dumps(regressor))
        regressor.close()

        assert restored.handle is None
        assert restored.state == RegressorState.UNBUILT
        assert restored.predict(record) == pytest.approx(expected)
        restored.close()

    def test_str(self, tmp_path):
        """Test the setup summary."""
        regressor = TabularRegressor(_config(tmp_path), registry=ModelHandleRegistry())

        summary = str(regressor)

        assert "Train %.............: 80" in summary
        assert "Mini batch size.....: 10" in summary
        assert "'type': 'fixed'" in summary

    def test_from_config_mapping(self, tmp_path):
        """Test building from a config mapping."""
        regressor = TabularRegressor.from_config(
            {"num_epochs": 2, "identity": {"type": "fixed", "id": "houses"}},
            registry=ModelHandleRegistry(),
        )

        assert regressor.config.num_epochs == 2
        assert regressor.identity.generate() == "houses"

    def test_from_config_file(self, tmp_path):
        """Test building from a config file."""
        path = _config(tmp_path, num_epochs=4).to_file(tmp_path / "config.json")

        regressor = TabularRegressor.from_config(path, registry=ModelHandleRegistry())

        assert regressor.config.num_epochs == 4
