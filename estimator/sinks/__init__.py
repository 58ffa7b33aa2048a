"""Metric sinks: pluggable output destinations for evaluation results."""

from .base import MetricSink, FilePathSink
from .csv_sink import CSVSink
from .jsonl import JSONLSink
from .console import ConsoleSink
from .wandb import WandbSink

__all__ = [
    'MetricSink',
    'FilePathSink',
    'CSVSink',
    'JSONLSink',
    'ConsoleSink',
    'WandbSink',
]
