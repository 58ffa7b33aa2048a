"""Tests for estimator/summaries.py: EvaluationSummaryWriter."""

import json
from unittest.mock import MagicMock

from estimator import Accuracy, EvaluationResult, Mean
from estimator.summaries import EvaluationSummaryWriter


def _metrics():
    return [Accuracy(), Mean("loss", lambda out, y: out.sum())]


class TestDirectories:

    def test_unnamed_and_named(self, tmp_path):
        writer = EvaluationSummaryWriter(str(tmp_path))
        assert writer.directory() == str(tmp_path / "eval")
        assert writer.directory("holdout") == str(tmp_path / "eval_holdout")


class TestSave:

    def test_writes_jsonl_and_csv(self, tmp_path):
        writer = EvaluationSummaryWriter(str(tmp_path))
        writer.save(12, _metrics(), {"accuracy": 0.5, "loss": 1.25}, name="holdout")
        writer.flush()
        directory = tmp_path / "eval_holdout"
        record = json.loads((directory / "metrics.jsonl").read_text().splitlines()[0])
        assert record == {"step": 12, "tag": "holdout", "accuracy": 0.5, "loss": 1.25}
        header = (directory / "metrics.csv").read_text().splitlines()[0]
        assert header == "step,tag,accuracy,loss"

    def test_only_requested_metrics(self, tmp_path):
        writer = EvaluationSummaryWriter(str(tmp_path))
        writer.save(1, [Accuracy()], {"accuracy": 1.0, "loss": 2.0})
        writer.flush()
        record = json.loads((tmp_path / "eval" / "metrics.jsonl").read_text())
        assert "loss" not in record

    def test_successive_saves_append(self, tmp_path):
        writer = EvaluationSummaryWriter(str(tmp_path))
        writer.save(1, [Accuracy()], {"accuracy": 0.1})
        writer.save(2, [Accuracy()], {"accuracy": 0.2})
        writer.flush()
        assert len((tmp_path / "eval" / "metrics.jsonl").read_text().splitlines()) == 2

    def test_extra_sinks_receive_tagged_values(self, tmp_path):
        sink = MagicMock()
        writer = EvaluationSummaryWriter(str(tmp_path), extra_sinks=[sink])
        writer.save(3, [Accuracy()], {"accuracy": 0.75}, name="val")
        sink.emit.assert_called_once_with({"accuracy": 0.75}, 3, tag="val")
        writer.flush()
        sink.flush.assert_called_once()

    def test_nothing_to_save(self, tmp_path):
        writer = EvaluationSummaryWriter(str(tmp_path))
        writer.save(1, [Accuracy()], {})
        assert not (tmp_path / "eval").exists()


class TestEvaluationResult:

    def test_empty(self):
        result = EvaluationResult.empty()
        assert result.step == -1
        assert result.is_empty
        assert not result

    def test_lookup(self):
        result = EvaluationResult(5, {"accuracy": 0.5})
        assert result["accuracy"] == 0.5
        assert result
