from __future__ import annotations

from concurrent.futures import Executor
from typing import List, Optional, Sequence, Tuple

import numpy as np

from lanespeed.utils.types import GridConfig, LaneConfig


def feature_names(channels: int) -> List[str]:
    names: List[str] = []
    for c in range(int(channels)):
        names.extend([f"ch{c}_mean", f"ch{c}_std"])
    names.extend(["lum_mean", "lum_std"])
    return names


def _as_channels(frame: np.ndarray, grid: GridConfig) -> np.ndarray:
    img = np.asarray(frame)
    if img.ndim == 2:
        img = img[:, :, None]
    if img.ndim != 3 or img.shape[2] != grid.channels:
        raise ValueError(f"Expected frame with {grid.channels} channel(s), got shape {img.shape}")
    return img


def _cell_rect(grid: GridConfig, offset_y: int, column: int) -> Tuple[int, int, int, int]:
    x = column * grid.cell_width
    return x, int(offset_y), grid.cell_width, grid.cell_height


def _check_bounds(img: np.ndarray, x: int, y: int, w: int, h: int) -> None:
    if x < 0 or y < 0 or y + h > img.shape[0] or x + w > img.shape[1]:
        raise ValueError(f"Cell rectangle x={x} y={y} w={w} h={h} is outside frame of shape {img.shape[:2]}")


def _pair_stats(pixels: np.ndarray, axes: Tuple[int, ...]) -> np.ndarray:
    # population stddev (ddof=0)
    mean = pixels.mean(axis=axes)
    std = pixels.std(axis=axes)
    return np.stack([mean, std], axis=-1)


def cell_features(frame: np.ndarray, grid: GridConfig, lane: LaneConfig, column: int) -> np.ndarray:
    """Feature vector ``[mean_c0, std_c0, ..., mean_lum, std_lum]`` for one cell."""
    img = _as_channels(frame, grid)
    if column < 0 or column >= grid.columns:
        raise ValueError(f"Column {column} out of range for {grid.columns} columns")
    x, y, w, h = _cell_rect(grid, lane.offset_y, column)
    _check_bounds(img, x, y, w, h)
    patch = img[y : y + h, x : x + w, :].astype(np.float64)
    lum = patch.mean(axis=2)
    per_channel = _pair_stats(patch, axes=(0, 1))
    luminance = _pair_stats(lum, axes=(0, 1))
    return np.concatenate([per_channel.reshape(-1), luminance.reshape(-1)])


def row_features(frame: np.ndarray, grid: GridConfig, lane: LaneConfig) -> np.ndarray:
    """Features for every cell of one lane row, shape ``(columns, 2 * (channels + 1))``.

    The strip covering the lane is reshaped to ``(rows, columns, cell_width, channels)``
    so all cells are reduced in one pass.
    """
    img = _as_channels(frame, grid)
    y = int(lane.offset_y)
    width = grid.columns * grid.cell_width
    _check_bounds(img, 0, y, width, grid.cell_height)
    strip = img[y : y + grid.cell_height, :width, :].astype(np.float64)
    cells = strip.reshape(grid.cell_height, grid.columns, grid.cell_width, grid.channels)
    per_channel = _pair_stats(cells, axes=(0, 2))
    luminance = _pair_stats(cells.mean(axis=3), axes=(0, 2))
    return np.concatenate(
        [per_channel.reshape(grid.columns, -1), luminance.reshape(grid.columns, -1)],
        axis=1,
    )


def frame_features(
    frame: np.ndarray,
    grid: GridConfig,
    lanes: Sequence[LaneConfig],
    executor: Optional[Executor] = None,
) -> List[np.ndarray]:
    if executor is None:
        return [row_features(frame, grid, lane) for lane in lanes]
    futures = [executor.submit(row_features, frame, grid, lane) for lane in lanes]
    return [f.result() for f in futures]
