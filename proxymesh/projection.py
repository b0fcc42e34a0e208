"""
Point-to-Triangle Projection
============================

Exact closest point on a triangle, following the region-based solver of
Eberly's "Distance Between Point and Triangle in 3D" (Geometric Tools).

The closest point is a + t0 * (b - a) + t1 * (c - a). The parameter plane
(t0, t1) is split into seven regions: the interior (0), the three edge
regions (1, 3, 5) and the three vertex regions (2, 4, 6). Each region is
solved exactly instead of clamping the unconstrained minimizer, which would
be wrong in the vertex regions.
"""

import numpy as np
from typing import Tuple


def closest_point_on_triangle(point: np.ndarray, a: np.ndarray, b: np.ndarray,
                              c: np.ndarray) -> Tuple[float, float, float, float]:
    """
    Compute the squared distance from a point to a triangle.

    Args:
        point: Query point
        a, b, c: Triangle corners

    Returns:
        Tuple of (squared_distance, u, v, w) where (u, v, w) are the
        barycentric weights of a, b and c at the closest point
    """
    diff = point - a
    edge0 = b - a
    edge1 = c - a
    a00 = float(np.dot(edge0, edge0))
    a01 = float(np.dot(edge0, edge1))
    a11 = float(np.dot(edge1, edge1))
    b0 = -float(np.dot(diff, edge0))
    b1 = -float(np.dot(diff, edge1))
    det = a00 * a11 - a01 * a01
    t0 = a01 * b1 - a11 * b0
    t1 = a01 * b0 - a00 * b1

    if t0 + t1 <= det:
        if t0 < 0:
            if t1 < 0:  # region 4
                if b0 < 0:
                    t1 = 0.0
                    if -b0 >= a00:  # V1
                        t0 = 1.0
                    else:  # E01
                        t0 = -b0 / a00
                else:
                    t0 = 0.0
                    if b1 >= 0:  # V0
                        t1 = 0.0
                    elif -b1 >= a11:  # V2
                        t1 = 1.0
                    else:  # E20
                        t1 = -b1 / a11
            else:  # region 3
                t0 = 0.0
                if b1 >= 0:  # V0
                    t1 = 0.0
                elif -b1 >= a11:  # V2
                    t1 = 1.0
                else:  # E20
                    t1 = -b1 / a11
        elif t1 < 0:  # region 5
            t1 = 0.0
            if b0 >= 0:  # V0
                t0 = 0.0
            elif -b0 >= a00:  # V1
                t0 = 1.0
            else:  # E01
                t0 = -b0 / a00
        elif det > 0:  # region 0, interior
            inv_det = 1.0 / det
            t0 *= inv_det
            t1 *= inv_det
        # det == 0 here forces t0 == t1 == 0, i.e. the closest point is a
    else:
        if t0 < 0:  # region 2
            tmp0 = a01 + b0
            tmp1 = a11 + b1
            if tmp1 > tmp0:
                numer = tmp1 - tmp0
                denom = a00 - 2.0 * a01 + a11
                if numer >= denom:  # V1
                    t0 = 1.0
                    t1 = 0.0
                else:  # E12
                    t0 = numer / denom
                    t1 = 1.0 - t0
            else:
                t0 = 0.0
                if tmp1 <= 0:  # V2
                    t1 = 1.0
                elif b1 >= 0:  # V0
                    t1 = 0.0
                else:  # E20
                    t1 = -b1 / a11
        elif t1 < 0:  # region 6
            tmp0 = a01 + b1
            tmp1 = a00 + b0
            if tmp1 > tmp0:
                numer = tmp1 - tmp0
                denom = a00 - 2.0 * a01 + a11
                if numer >= denom:  # V2
                    t1 = 1.0
                    t0 = 0.0
                else:  # E12
                    t1 = numer / denom
                    t0 = 1.0 - t1
            else:
                t1 = 0.0
                if tmp1 <= 0:  # V1
                    t0 = 1.0
                elif b0 >= 0:  # V0
                    t0 = 0.0
                else:  # E01
                    t0 = -b0 / a00
        else:  # region 1
            numer = a11 + b1 - a01 - b0
            if numer <= 0:  # V2
                t0 = 0.0
                t1 = 1.0
            else:
                denom = a00 - 2.0 * a01 + a11
                if numer >= denom:  # V1
                    t0 = 1.0
                    t1 = 0.0
                else:  # E12
                    t0 = numer / denom
                    t1 = 1.0 - t0

    residual = diff - (t0 * edge0 + t1 * edge1)
    return float(np.dot(residual, residual)), 1.0 - t0 - t1, t0, t1
