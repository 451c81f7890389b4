"""
Total least squares line fitting.

Minimizes the sum of squared perpendicular distances, so steep and
vertical stripes fit as well as shallow ones. The fitted direction is
the principal axis of the point covariance and the reference point is
the centroid.
"""

import numpy as np

from ..core.result import FittedLine


class LineFitter:
    """
    Fits a FittedLine through a point set.

    The direction sign is normalized to vx > 0 (or vx == 0 and vy > 0),
    so angles fall in (-pi/2, pi/2]. The fit is deterministic for a given
    point set.

    Usage:
        fitter = LineFitter()
        line = fitter.fit(points)
    """

    def fit(self, points: np.ndarray) -> FittedLine:
        """
        Fit a line through points.

        Args:
            points: (N, 2) array of (x, y), N >= 2

        Returns:
            FittedLine with unit direction and centroid
        """
        pts = np.asarray(points, dtype=np.float64).reshape(-1, 2)
        if len(pts) < 2:
            raise ValueError(f"At least 2 points are required, got {len(pts)}")

        centroid = pts.mean(axis=0)
        centered = pts - centroid
        covariance = centered.T @ centered / len(pts)

        # eigh returns eigenvalues in ascending order
        _, eigenvectors = np.linalg.eigh(covariance)
        vx, vy = eigenvectors[:, -1]

        norm = float(np.hypot(vx, vy))
        vx, vy = vx / norm, vy / norm
        if vx < 0 or (vx == 0 and vy < 0):
            vx, vy = -vx, -vy

        return FittedLine(
            vx=float(vx),
            vy=float(vy),
            x0=float(centroid[0]),
            y0=float(centroid[1]),
        )
