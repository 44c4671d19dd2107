from __future__ import annotations

import logging
from typing import Dict, List, Optional, Sequence

import numpy as np

from lanespeed.features.extractor import frame_features
from lanespeed.io.base import FrameSource
from lanespeed.utils.types import CellAddress, GridConfig, LaneConfig

logger = logging.getLogger("lanespeed.training")

TrainingSet = Dict[CellAddress, np.ndarray]

PROGRESS_EVERY = 500


def sample_frame_indices(frame_count: int, sample_size: int, seed: Optional[int] = None) -> set[int]:
    n = min(int(sample_size), int(frame_count))
    if n <= 0:
        return set()
    rng = np.random.default_rng(seed)
    return {int(i) for i in rng.choice(int(frame_count), size=n, replace=False)}


def build_training_set(
    source: FrameSource,
    grid: GridConfig,
    lanes: Sequence[LaneConfig],
    frame_count: int,
    sample_size: int = 4096,
    seed: Optional[int] = None,
) -> TrainingSet:
    """Collect per-cell feature rows from a random subset of the stream's frames.

    Frames are read in order; only those whose index was drawn keep their
    features. The result maps each ``(lane, column)`` to an
    ``(n_samples, feature_size)`` array.
    """
    logger.info("Transforming video to data (frames=%d, sample_size=%d)", frame_count, sample_size)
    sampled = sample_frame_indices(frame_count, sample_size, seed)
    rows: Dict[CellAddress, List[np.ndarray]] = {
        (lane, col): [] for lane in range(len(lanes)) for col in range(grid.columns)
    }

    i = 0
    while source.has_next() and i < frame_count:
        if i > 0 and i % PROGRESS_EVERY == 0:
            logger.info("Processed frames: %d", i)
        frame, _ = source.next_frame()
        if i in sampled:
            for lane, feats in enumerate(frame_features(frame, grid, lanes)):
                for col in range(grid.columns):
                    rows[(lane, col)].append(feats[col])
        i += 1

    kept = len(rows[(0, 0)]) if rows else 0
    if kept == 0:
        raise ValueError("No frames were sampled; cannot build a training set")
    logger.info("Sampled %d of %d frames", kept, i)
    return {cell: np.vstack(vals) for cell, vals in rows.items()}
