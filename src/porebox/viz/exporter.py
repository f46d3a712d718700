"""
Module for export of vertex fields of the box model to vtu format via meshio.

"""
from __future__ import annotations

import logging
import os
import sys
from typing import Optional, Union

import meshio
import numpy as np

import porebox as pb
from porebox.grids import BoxGrid

__all__ = ["Exporter"]

logger = logging.getLogger(__name__)


class Exporter:
    """Class for exporting vertex data on a grid to vtu format.

    For transient simulations with multiple time steps, a single pvd file takes care
    of the ordering of all printed vtu files.

    Parameters:
        grid: The grid the data lives on.
        file_name: Prefix of all output files.
        folder_name: ``default=None``

            Folder for the output. Created if not existent. If None, the files are
            written to the working directory.
        binary: ``default=True``

            Store data in binary format.

    Example:

        .. code:: python

            save = pb.Exporter(grid, "solution", folder_name="out")
            for i, t in enumerate(times):
                ...
                save.write_vtu(model.vtk_fields(solution), time_step=i)
            save.write_pvd(times)

    """

    def __init__(
        self,
        grid: BoxGrid,
        file_name: str,
        folder_name: Optional[str] = None,
        binary: bool = True,
    ) -> None:
        self.grid = grid

        self._file_name: str = file_name
        """Prefix for output files."""

        self._folder_name: Optional[str] = folder_name
        """Folder name for output."""

        self._binary: bool = binary
        """Flag controlling whether data is stored in binary format."""

        self._exported_timesteps: list[int] = []
        """List of exported time steps, gatherer for pvd files."""

        self._padding = 6
        """Padding of zeros for creating the time step dependent appendix for output."""

        self._points, self._cells = self._meshio_geom()

    def _meshio_geom(self) -> tuple[np.ndarray, list[meshio.CellBlock]]:
        """Points and connectivity of the grid in meshio format."""
        points = self.grid.nodes.T
        if self.grid.dim == 1:
            cells = [meshio.CellBlock("line", self.grid.cell_nodes)]
        else:
            # vtk orders the vertices of a quad counter-clockwise.
            quads = self.grid.cell_nodes[:, [0, 1, 3, 2]]
            cells = [meshio.CellBlock("quad", quads)]
        return points, cells

    @pb.time_logger(sections=["visualization"])
    def write_vtu(
        self,
        fields: dict[str, np.ndarray],
        time_step: Optional[int] = None,
    ) -> str:
        """Export vertex fields to a vtu file.

        Parameters:
            fields: Vertex values keyed by field name. Scalar fields have one value
                per vertex, vector fields have shape ``(num_nodes, k)``.
            time_step: ``default=None``

                Time step, appended to the file name. If None, no time step is
                appended.

        Raises:
            ValueError: If some data has wrong dimension.

        Returns:
            The name of the written file.

        """
        point_data: dict[str, np.ndarray] = {}
        for name, values in fields.items():
            values = np.asarray(values, dtype=float)
            if values.ndim not in (1, 2) or values.shape[0] != self.grid.num_nodes:
                raise ValueError(
                    f"Field {name} of shape {values.shape} does not match "
                    f"{self.grid.num_nodes} vertices."
                )
            point_data[name] = values

        file_name = self._make_file_name(self._file_name, time_step)
        file_name = self._append_folder_name(self._folder_name, file_name)

        mesh = meshio.Mesh(self._points, self._cells, point_data=point_data)
        meshio.write(file_name, mesh, binary=self._binary)
        logger.debug(f"Exported {len(point_data)} fields to {file_name}")

        if time_step is not None:
            self._exported_timesteps.append(time_step)
        return file_name

    def write_pvd(
        self,
        times: Optional[Union[np.ndarray, list[float]]] = None,
    ) -> str:
        """Write a pvd collection referencing all vtu files of the time series.

        Opening the pvd file in ParaView loads the full series in order.

        Parameters:
            times: ``default=None``

                Physical times of the exported steps. If not given, the step indices
                are used as times.

        Raises:
            ValueError: If the number of times differs from the number of exported
                steps.

        Returns:
            Path of the written pvd file.

        """
        steps = self._exported_timesteps
        if times is None:
            times = steps
        times = np.asarray(times, dtype=float)
        if times.size != len(steps):
            raise ValueError(
                f"Got {times.size} times for {len(steps)} exported time steps."
            )

        pvd_file = self._append_folder_name(self._folder_name, self._file_name + ".pvd")
        byte_order = "LittleEndian" if sys.byteorder == "little" else "BigEndian"
        lines = [
            '<?xml version="1.0"?>',
            f'<VTKFile type="Collection" version="0.1" byte_order="{byte_order}" '
            'compressor="vtkZLibDataCompressor">',
            "<Collection>",
        ]
        for time, step in zip(times, steps):
            # vtu files are referenced relative to the pvd file.
            vtu_file = self._make_file_name(self._file_name, step)
            lines.append(
                f'\t<DataSet group="" part="" timestep="{time:f}" file="{vtu_file}"/>'
            )
        lines += ["</Collection>", "</VTKFile>"]

        with open(pvd_file, "w") as out:
            out.write("\n".join(lines))
        logger.debug(f"Wrote collection of {len(steps)} time steps to {pvd_file}")
        return pvd_file

    def _make_file_name(self, prefix: str, time_step: Optional[int] = None) -> str:
        """Name of a vtu file, with the zero-padded time step appended if given."""
        if time_step is None:
            return f"{prefix}.vtu"
        return f"{prefix}_{str(time_step).zfill(self._padding)}.vtu"

    def _append_folder_name(self, folder_name: Optional[str], name: str) -> str:
        """Prefix ``name`` with the output folder, creating the folder if needed."""
        if folder_name is None:
            return name
        os.makedirs(folder_name, exist_ok=True)
        return os.path.join(folder_name, name)
