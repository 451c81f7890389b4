"""
Marker ordering and target centroid.
"""

Point = tuple[float, float]


def order_markers(centroids: list[Point]) -> list[Point]:
    """
    Arrange four marker centroids as top-left, top-right, bottom-left, bottom-right.

    Sorts by y then x, then puts each of the two rows in left-to-right
    order. The result does not depend on the input order.

    Args:
        centroids: Exactly four (x, y) points

    Returns:
        New list in canonical corner order
    """
    if len(centroids) != 4:
        raise ValueError(f"Expected 4 markers, got {len(centroids)}")

    ordered = sorted(centroids, key=lambda p: (p[1], p[0]))
    if ordered[0][0] > ordered[1][0]:
        ordered[0], ordered[1] = ordered[1], ordered[0]
    if ordered[2][0] > ordered[3][0]:
        ordered[2], ordered[3] = ordered[3], ordered[2]
    return ordered


def target_centroid(corners: list[Point]) -> Point:
    """Arithmetic mean of the four ordered corners."""
    if len(corners) != 4:
        raise ValueError(f"Expected 4 corners, got {len(corners)}")

    cx = sum(p[0] for p in corners) / 4.0
    cy = sum(p[1] for p in corners) / 4.0
    return (cx, cy)
