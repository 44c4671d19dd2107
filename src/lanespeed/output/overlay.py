from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence, Tuple

import cv2
import numpy as np

from lanespeed.output.status import FrameStatus, format_status
from lanespeed.utils.types import GridConfig, LaneConfig


@dataclass
class OverlayRenderer:
    grid: GridConfig
    lanes: Sequence[LaneConfig]
    cell_color_bgr: Tuple[int, int, int] = (0, 255, 0)
    text_color_bgr: Tuple[int, int, int] = (255, 255, 255)
    cell_thickness: int = 1
    font_scale: float = 0.5

    def draw(self, frame_bgr: np.ndarray, status: FrameStatus) -> np.ndarray:
        img = frame_bgr
        for lane, row in zip(self.lanes, status.occupancy):
            for col, occupied in enumerate(row):
                if not occupied:
                    continue
                x = col * self.grid.cell_width
                y = int(lane.offset_y)
                cv2.rectangle(
                    img,
                    (x, y),
                    (x + self.grid.cell_width - 1, y + self.grid.cell_height - 1),
                    self.cell_color_bgr,
                    int(self.cell_thickness),
                )
        h = img.shape[0]
        cv2.putText(
            img,
            format_status(status),
            (20, max(0, h - 8)),
            cv2.FONT_HERSHEY_SIMPLEX,
            float(self.font_scale),
            self.text_color_bgr,
            1,
        )
        return img
