from typing import List

import numpy as np
import pytest

from fakes import region_row


@pytest.fixture
def frame() -> np.ndarray:
    image = np.zeros((48, 64, 3), dtype=np.uint8)
    image[:, :, 0] = 255
    return image


@pytest.fixture
def overlapping_rows() -> List[List[float]]:
    # Two heavily overlapping cats and one separate dog
    return [
        region_row(0.5, 0.5, 0.2, 0.2, [0.9, 0.05]),
        region_row(0.51, 0.5, 0.2, 0.2, [0.8, 0.05]),
        region_row(0.15, 0.15, 0.1, 0.1, [0.1, 0.7]),
    ]
