"""
Voronoi tessellation clipped to a rectangle.

Cells are built through Delaunay duality: the Voronoi cell of a site is the
intersection of the half-planes bounded by the perpendicular bisectors to its
Delaunay neighbours. Starting from the clip rectangle and cutting with each
bisector yields the clipped cell directly, so the cells tile the rectangle.
"""

from typing import Sequence

import numpy as np
from loguru import logger
from numpy.typing import NDArray
from scipy.spatial import Delaunay, QhullError
from shapely.geometry import Polygon

from time_distortion.geo import as_coordinates

Ring = list[tuple[float, float]]

# Cells with smaller area are treated as fully clipped away
_MIN_CELL_AREA = 1e-15


def clip_half_plane(
    polygon: NDArray[np.floating],
    point: NDArray[np.floating],
    normal: NDArray[np.floating],
) -> NDArray[np.floating]:
    """
    Clip a convex polygon to the half-plane (x - point) . normal <= 0.

    One Sutherland-Hodgman pass against a single edge.

    Args:
        polygon: Ring of shape (K, 2), not closed
        point: A point on the boundary line
        normal: Outward normal of the kept half-plane

    Returns:
        Clipped ring of shape (K', 2), possibly empty
    """
    if len(polygon) == 0:
        return polygon

    side = (polygon - point) @ normal
    out = []
    k = len(polygon)
    for idx in range(k):
        a, b = polygon[idx], polygon[(idx + 1) % k]
        sa, sb = side[idx], side[(idx + 1) % k]
        if sa <= 0:
            out.append(a)
        if (sa < 0 < sb) or (sb < 0 < sa):
            t = sa / (sa - sb)
            out.append(a + t * (b - a))

    if not out:
        return np.zeros((0, 2))
    return np.array(out)


def polygon_area(ring: Sequence[Sequence[float]] | NDArray) -> float:
    """Area of an implicitly closed ring (0 for fewer than three vertices)."""
    R = np.asarray(ring, dtype=np.float64)
    if len(R) < 3:
        return 0.0
    return float(Polygon(R).area)


def cell_areas(cells: Sequence[Ring]) -> NDArray[np.floating]:
    """Area of each cell (0 for empty cells)."""
    return np.array([polygon_area(c) for c in cells], dtype=np.float64)


class TessellationEngine:
    """
    Partitions a point set into Voronoi cells inside (0, 0, width, height).

    One ring is returned per input point, in input order. A cell is empty
    when it is clipped away entirely or when the point duplicates an earlier
    one (the first occurrence owns the region).
    """

    def tessellate(
        self,
        points: Sequence[Sequence[float]] | NDArray,
        width: float,
        height: float,
    ) -> list[Ring]:
        """
        Compute clipped Voronoi cells.

        Args:
            points: Sites of shape (N, 2)
            width: Clip rectangle width
            height: Clip rectangle height

        Returns:
            N rings; [] marks an empty cell
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Clip rectangle must have positive size, got {width}x{height}")

        X = as_coordinates(points)
        n = X.shape[0]
        if n == 0:
            return []

        rect = np.array([[0.0, 0.0], [width, 0.0], [width, height], [0.0, height]])

        unique, first_index = np.unique(X, axis=0, return_index=True)
        neighbours = self._neighbours(unique)

        cells: list[Ring] = [[] for _ in range(n)]
        for u, owner in enumerate(first_index):
            cell = rect
            site = unique[u]
            for v in neighbours[u]:
                other = unique[v]
                cell = clip_half_plane(cell, (site + other) / 2, other - site)
                if len(cell) == 0:
                    break
            cells[owner] = self._to_ring(cell)

        n_empty = sum(1 for c in cells if not c)
        if len(unique) < n:
            logger.debug(f"{n - len(unique)} duplicate sites received empty cells")
        logger.debug(f"Tessellated {n} sites, {n_empty} empty cells")
        return cells

    def _neighbours(self, sites: NDArray[np.floating]) -> list[NDArray[np.intp]]:
        """Delaunay neighbours of each site, or all other sites when Qhull cannot triangulate."""
        m = sites.shape[0]
        everyone = [np.delete(np.arange(m), i) for i in range(m)]
        if m < 3:
            return everyone

        try:
            tri = Delaunay(sites)
        except QhullError as e:
            logger.debug(f"Delaunay triangulation failed, using all pairs: {e}")
            return everyone

        indptr, indices = tri.vertex_neighbor_vertices
        neighbours = []
        for i in range(m):
            adj = indices[indptr[i]:indptr[i + 1]]
            # Sites Qhull left out of every simplex get the full set
            neighbours.append(adj if len(adj) > 0 else everyone[i])
        return neighbours

    def _to_ring(self, cell: NDArray[np.floating]) -> Ring:
        """Drop repeated vertices and degenerate slivers."""
        if len(cell) < 3:
            return []
        keep = [cell[0]]
        for p in cell[1:]:
            if not np.allclose(p, keep[-1], rtol=0.0, atol=1e-12):
                keep.append(p)
        if len(keep) > 1 and np.allclose(keep[0], keep[-1], rtol=0.0, atol=1e-12):
            keep.pop()
        if len(keep) < 3 or polygon_area(keep) < _MIN_CELL_AREA:
            return []
        return [(float(p[0]), float(p[1])) for p in keep]
