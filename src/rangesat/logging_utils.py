"""
Logging utilities for rangesat.

Module loggers use Python's logging package. ``StructuredLogger`` writes
per-step search traces as JSON Lines so runs can be inspected afterwards.
"""

import json
import logging
import os
import time
from datetime import datetime
from typing import Any

import numpy as np

DEFAULT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


class NumpyJSONEncoder(json.JSONEncoder):
    """JSON encoder that can handle NumPy arrays and scalars."""

    def default(self, obj):
        """Convert numpy objects to standard Python types."""
        if isinstance(obj, np.integer):
            return int(obj)
        elif isinstance(obj, np.floating):
            return float(obj)
        elif isinstance(obj, np.bool_):
            return bool(obj)
        elif isinstance(obj, np.ndarray):
            return obj.tolist()
        return super().default(obj)


def configure_logging(
    level: str | int = logging.WARNING, fmt: str = DEFAULT_FORMAT
) -> logging.Logger:
    """
    Attach a console handler to the package logger.

    Args:
        level: Logging level name or number
        fmt: Log record format

    Returns:
        The ``rangesat`` logger
    """
    logger = logging.getLogger("rangesat")
    logger.setLevel(level if isinstance(level, int) else level.upper())

    # Remove any existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(logging.Formatter(fmt))
    logger.addHandler(console_handler)
    return logger


class StructuredLogger:
    """
    A JSON Lines logger for search traces.

    Each event type goes to its own ``<run_name>_<event>.jsonl`` file.
    """

    def __init__(self, output_dir: str, run_name: str):
        """
        Initialize the structured logger.

        Args:
            output_dir: Directory to save log files in
            run_name: Name of the run (used in filenames)
        """
        self.output_dir = output_dir
        self.run_name = run_name

        os.makedirs(output_dir, exist_ok=True)

        self.files = {}
        self.write_counts = {}
        self.metadata = {
            "run_name": run_name,
            "start_time": datetime.now().isoformat(),
            "log_files": {},
        }

    def _get_file(self, event_type: str):
        if event_type not in self.files:
            filepath = os.path.join(self.output_dir, f"{self.run_name}_{event_type}.jsonl")
            self.metadata["log_files"][event_type] = filepath
            self.files[event_type] = open(filepath, "w")
            self.write_counts[event_type] = 0
        return self.files[event_type]

    def _write_event(self, event_type: str, data: dict[str, Any]):
        file = self._get_file(event_type)
        file.write(json.dumps(data, cls=NumpyJSONEncoder) + "\n")
        file.flush()
        self.write_counts[event_type] += 1

    def log_step(
        self,
        step: int,
        constraint: int,
        proposition: str,
        value: bool,
        delta: int,
        random_move: bool,
        noise_level: int,
        unsatisfied: int,
    ):
        """
        Log one search step.

        Args:
            step: Flip number
            constraint: Index of the selected constraint
            proposition: Name of the flipped proposition
            value: New value of the proposition
            delta: Decrease in unsatisfied constraints achieved
            random_move: Whether the step was a random-walk move
            noise_level: Noise level after the step
            unsatisfied: Unsatisfied constraints after the step
        """
        self._write_event(
            "step",
            {
                "step": step,
                "constraint": constraint,
                "proposition": proposition,
                "value": value,
                "delta": delta,
                "random_move": random_move,
                "noise_level": noise_level,
                "unsatisfied": unsatisfied,
                "timestamp": time.time(),
            },
        )

    def log_result(self, result: dict[str, Any]):
        """Log the summary of a finished solve run."""
        self._write_event("result", dict(result, timestamp=time.time()))

    def close(self):
        """Close all open file handles."""
        for file in self.files.values():
            file.close()
        self.files = {}

    def finalize(self) -> str:
        """
        Close all files and write a metadata file describing them.

        Returns:
            Path to the metadata file
        """
        self.close()
        self.metadata["end_time"] = datetime.now().isoformat()
        self.metadata["record_counts"] = self.write_counts

        metadata_path = os.path.join(self.output_dir, f"{self.run_name}_metadata.json")
        with open(metadata_path, "w") as f:
            json.dump(self.metadata, f, indent=2)
        return metadata_path
