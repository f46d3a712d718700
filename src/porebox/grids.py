"""Module containing structured grids with precomputed box-scheme geometry.

The box scheme builds one sub-control volume (scv) around each vertex of a cell, and
sub-control-volume faces (scvf) between each pair of vertices connected by a cell edge.
The assembly in :mod:`porebox.box` only consumes the precomputed per-cell geometry
collected in :class:`CellGeometry`, so any mesh provider producing this data can be
used in place of the tensor product grids defined here.

Vertex ordering of a 2D cell follows the usual reference-element convention::

    2 ---- 3
    |      |
    0 ---- 1

"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

import numpy as np

__all__ = [
    "SubControlVolumeFace",
    "CellGeometry",
    "BoxGrid",
    "line_grid",
    "rectangle_grid",
]


@dataclass(frozen=True)
class SubControlVolumeFace:
    """Geometry of a face between the sub-control volumes of two vertices of a cell."""

    i: int
    """Local index of the vertex the normal points away from."""

    j: int
    """Local index of the vertex the normal points towards."""

    normal: np.ndarray
    """Normal vector oriented from ``i`` to ``j``, scaled by the face area."""

    integration_point: np.ndarray
    """Global coordinates of the integration point of the face."""

    grad: np.ndarray
    """Gradients of the shape functions of all vertices of the cell, evaluated at
    :attr:`integration_point`. Shape ``(num_vertices, dim)``."""


@dataclass
class CellGeometry:
    """Precomputed finite volume geometry of a single cell."""

    cell: int
    """Index of the cell in its grid."""

    vertices: np.ndarray
    """Global indices of the vertices of the cell, in local order."""

    positions: np.ndarray
    """Coordinates of the vertices, shape ``(num_vertices, dim)``."""

    scv_volumes: np.ndarray
    """Volume of the sub-control volume of each vertex within this cell."""

    faces: list[SubControlVolumeFace] = field(default_factory=list)
    """Sub-control-volume faces of the cell."""

    @property
    def num_vertices(self) -> int:
        return self.vertices.size

    @property
    def dim(self) -> int:
        return self.positions.shape[1]


class BoxGrid:
    """Tensor product grid of lines (1D) or rectangles (2D) for the box scheme.

    Parameters:
        x: Node coordinates in x-direction.
        y: Node coordinates in y-direction. Defaults to None, in which case the grid is
            1D.
        name: Name of the grid.

    Raises:
        ValueError: If coordinates are not strictly increasing.

    """

    def __init__(
        self, x: np.ndarray, y: Optional[np.ndarray] = None, name: str = "BoxGrid"
    ) -> None:
        x = np.asarray(x, dtype=float)
        for coords in (x, y):
            if coords is not None and (
                np.asarray(coords).size < 2 or np.any(np.diff(coords) <= 0)
            ):
                raise ValueError("Coordinates must be strictly increasing")

        self.name: str = name
        """Name of the grid."""

        if y is None:
            self.dim: int = 1
            """Spatial dimension of the grid."""
            self.cart_dims = np.array([x.size - 1])
            self.nodes: np.ndarray = np.vstack(
                (x, np.zeros(x.size), np.zeros(x.size))
            )
            """Node coordinates, shape ``(3, num_nodes)``."""
            first = np.arange(x.size - 1)
            self.cell_nodes: np.ndarray = np.vstack((first, first + 1)).T
            """Vertices of each cell in local order, shape ``(num_cells, 2**dim)``."""
        else:
            y = np.asarray(y, dtype=float)
            self.dim = 2
            self.cart_dims = np.array([x.size - 1, y.size - 1])
            xx, yy = np.meshgrid(x, y)
            self.nodes = np.vstack(
                (xx.ravel(), yy.ravel(), np.zeros(x.size * y.size))
            )
            nx = x.size
            ix, iy = np.meshgrid(np.arange(x.size - 1), np.arange(y.size - 1))
            lower_left = (iy * nx + ix).ravel()
            self.cell_nodes = np.vstack(
                (lower_left, lower_left + 1, lower_left + nx, lower_left + nx + 1)
            ).T

        self.num_nodes: int = self.nodes.shape[1]
        self.num_cells: int = self.cell_nodes.shape[0]
        self._geometry: dict[int, CellGeometry] = {}

    def __repr__(self) -> str:
        return (
            f"{self.name} of dimension {self.dim} with {self.num_cells} cells "
            f"and {self.num_nodes} nodes"
        )

    def vertex_position(self, vertex: int) -> np.ndarray:
        """Coordinates of a vertex, of length :attr:`dim`."""
        return self.nodes[: self.dim, vertex].copy()

    def cell_geometry(self, cell: int) -> CellGeometry:
        """Box geometry of a cell. Computed once and cached.

        Parameters:
            cell: Cell index.

        Returns:
            The precomputed geometry of the cell.

        """
        if cell not in self._geometry:
            if self.dim == 1:
                self._geometry[cell] = self._line_geometry(cell)
            else:
                self._geometry[cell] = self._rectangle_geometry(cell)
        return self._geometry[cell]

    def vertex_volumes(self) -> np.ndarray:
        """Total volume of the control volume around each vertex."""
        volumes = np.zeros(self.num_nodes)
        for c in range(self.num_cells):
            geo = self.cell_geometry(c)
            np.add.at(volumes, geo.vertices, geo.scv_volumes)
        return volumes

    def _line_geometry(self, cell: int) -> CellGeometry:
        vertices = self.cell_nodes[cell]
        positions = self.nodes[:1, vertices].T
        h = positions[1, 0] - positions[0, 0]
        face = SubControlVolumeFace(
            i=0,
            j=1,
            normal=np.array([1.0]),
            integration_point=positions.mean(axis=0),
            grad=np.array([[-1.0 / h], [1.0 / h]]),
        )
        return CellGeometry(
            cell=cell,
            vertices=vertices.copy(),
            positions=positions,
            scv_volumes=np.full(2, h / 2),
            faces=[face],
        )

    def _rectangle_geometry(self, cell: int) -> CellGeometry:
        vertices = self.cell_nodes[cell]
        positions = self.nodes[:2, vertices].T
        x0, y0 = positions[0]
        hx = positions[1, 0] - x0
        hy = positions[2, 1] - y0

        def q1_gradients(point: np.ndarray) -> np.ndarray:
            # Gradients of the bilinear shape functions in physical coordinates.
            xi = (point[0] - x0) / hx
            eta = (point[1] - y0) / hy
            return np.array(
                [
                    [-(1 - eta) / hx, -(1 - xi) / hy],
                    [(1 - eta) / hx, -xi / hy],
                    [-eta / hx, (1 - xi) / hy],
                    [eta / hx, xi / hy],
                ]
            )

        # Each face runs from the midpoint of the cell edge (i, j) to the cell center.
        # Local coordinates of the integration point and the normal direction per edge.
        edges = [
            (0, 1, (0.5, 0.25), np.array([hy / 2, 0.0])),
            (2, 3, (0.5, 0.75), np.array([hy / 2, 0.0])),
            (0, 2, (0.25, 0.5), np.array([0.0, hx / 2])),
            (1, 3, (0.75, 0.5), np.array([0.0, hx / 2])),
        ]
        faces = []
        for i, j, (xi, eta), normal in edges:
            point = np.array([x0 + xi * hx, y0 + eta * hy])
            faces.append(
                SubControlVolumeFace(
                    i=i,
                    j=j,
                    normal=normal,
                    integration_point=point,
                    grad=q1_gradients(point),
                )
            )
        return CellGeometry(
            cell=cell,
            vertices=vertices.copy(),
            positions=positions,
            scv_volumes=np.full(4, hx * hy / 4),
            faces=faces,
        )


def line_grid(num_cells: int, length: float = 1.0) -> BoxGrid:
    """Uniform 1D grid on ``[0, length]``.

    Parameters:
        num_cells: Number of cells.
        length: Length of the domain.

    Returns:
        The grid.

    """
    return BoxGrid(np.linspace(0, length, num_cells + 1), name="LineGrid")


def rectangle_grid(
    num_cells: tuple[int, int], physical_dims: tuple[float, float] = (1.0, 1.0)
) -> BoxGrid:
    """Uniform 2D grid on ``[0, Lx] x [0, Ly]``.

    Parameters:
        num_cells: Number of cells in x- and y-direction.
        physical_dims: Extension of the domain in x- and y-direction.

    Returns:
        The grid.

    """
    x = np.linspace(0, physical_dims[0], num_cells[0] + 1)
    y = np.linspace(0, physical_dims[1], num_cells[1] + 1)
    return BoxGrid(x, y, name="RectangleGrid")
