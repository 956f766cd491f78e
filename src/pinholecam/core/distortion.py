from __future__ import annotations

from dataclasses import dataclass

import numpy as np


@dataclass(frozen=True)
class BrownDistortion:
    """
    Brown-Conrady distortion on normalized camera coordinates (x=Xc/Zc, y=Yc/Zc).

    Coefficient order is the OpenCV one: (k1, k2, p1, p2, k3).
    """

    k1: float = 0.0
    k2: float = 0.0
    p1: float = 0.0
    p2: float = 0.0
    k3: float = 0.0

    @classmethod
    def from_coeffs(cls, coeffs: np.ndarray) -> "BrownDistortion":
        c = np.asarray(coeffs, dtype=np.float64).reshape(-1)
        if c.shape[0] > 5:
            raise ValueError("distortion needs at most 5 coefficients (k1, k2, p1, p2, k3)")
        c = np.concatenate([c, np.zeros(5 - c.shape[0], dtype=np.float64)])
        return cls(k1=float(c[0]), k2=float(c[1]), p1=float(c[2]), p2=float(c[3]), k3=float(c[4]))

    def coeffs(self) -> np.ndarray:
        return np.array([self.k1, self.k2, self.p1, self.p2, self.k3], dtype=np.float64)

    @property
    def is_identity(self) -> bool:
        return bool(np.all(self.coeffs() == 0.0))

    def distort(self, x: np.ndarray, y: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        x = np.asarray(x, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        r2 = x * x + y * y
        r4 = r2 * r2
        r6 = r4 * r2
        radial = 1.0 + self.k1 * r2 + self.k2 * r4 + self.k3 * r6
        xy = x * y
        x_tan = 2.0 * self.p1 * xy + self.p2 * (r2 + 2.0 * x * x)
        y_tan = self.p1 * (r2 + 2.0 * y * y) + 2.0 * self.p2 * xy
        return x * radial + x_tan, y * radial + y_tan

    def undistort(self, xd: np.ndarray, yd: np.ndarray, iterations: int = 50) -> tuple[np.ndarray, np.ndarray]:
        """
        Fixed-point inverse of distort().

        Converges while distort() is monotonic along the ray, more slowly toward
        the corners of wide lenses.
        """
        xd = np.asarray(xd, dtype=np.float64)
        yd = np.asarray(yd, dtype=np.float64)
        x = xd.copy()
        y = yd.copy()
        for _ in range(int(iterations)):
            x_est, y_est = self.distort(x, y)
            x += xd - x_est
            y += yd - y_est
        return x, y


def brown_from_dict(d: dict) -> BrownDistortion:
    return BrownDistortion(
        k1=float(d.get("k1", 0.0)),
        k2=float(d.get("k2", 0.0)),
        p1=float(d.get("p1", 0.0)),
        p2=float(d.get("p2", 0.0)),
        k3=float(d.get("k3", 0.0)),
    )


def brown_to_dict(m: BrownDistortion) -> dict:
    return {"k1": m.k1, "k2": m.k2, "p1": m.p1, "p2": m.p2, "k3": m.k3}
