import numpy as np

FACE_COUNT = 6


class Cubemap:
    """Six square faces of linear RGB radiance, stored as float32.

    The array is indexed ``[face, row, column, channel]``, where the row is the
    texel's ``v`` coordinate and the column its ``u`` coordinate.
    """

    def __init__(self, resolution: int):
        if resolution < 1:
            raise ValueError("Resolution must be at least 1 pixel")

        self.resolution = resolution
        self.data = np.zeros(
            (FACE_COUNT, resolution, resolution, 3), dtype=np.float32
        )

    def face(self, index: int) -> np.ndarray:
        return self.data[index]

    def texels(self) -> np.ndarray:
        """Flat ``(6 * res * res, 3)`` view used for scatter-adds."""
        return self.data.reshape(-1, 3)

    def as_strip(self) -> np.ndarray:
        """Faces stacked vertically into a ``(6 * res, res, 3)`` view."""
        return self.data.reshape(FACE_COUNT * self.resolution, self.resolution, 3)
