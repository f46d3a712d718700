"""
The tensor module contains the second order tensor used to represent vertex-wise
intrinsic permeability in the box scheme.
"""

from __future__ import annotations

from typing import Optional

import numpy as np

__all__ = ["SecondOrderTensor"]


class SecondOrderTensor:
    """Vertex-wise permeability.

    The tensor is always stored as 3 x 3 per vertex (the geometry is always embedded in
    3D), 1D and 2D problems are accommodated by assigning unit values to kzz and kyy,
    and no cross terms. The block relevant for a problem of dimension ``dim`` is
    obtained by :meth:`at`.

    Parameters:
        kxx: Nv array, with vertex-wise values of kxx permeability.
        kyy: Nv array of kyy. Default equal to kxx.
        kzz: Nv array of kzz. Default equal to kxx.
        kxy: Nv array of kxy. Defaults to zero.
        kxz: Nv array of kxz. Defaults to zero.
        kyz: Nv array of kyz. Defaults to zero.

    Raises:
        ValueError: If the permeability is not positive semi-definite.

    """

    def __init__(
        self,
        kxx: np.ndarray,
        kyy: Optional[np.ndarray] = None,
        kzz: Optional[np.ndarray] = None,
        kxy: Optional[np.ndarray] = None,
        kxz: Optional[np.ndarray] = None,
        kyz: Optional[np.ndarray] = None,
    ) -> None:
        kxx = np.atleast_1d(np.asarray(kxx, dtype=float))
        num = kxx.size

        def _default(k: Optional[np.ndarray], value: np.ndarray) -> np.ndarray:
            if k is None:
                return value.copy()
            return np.broadcast_to(np.asarray(k, dtype=float), (num,)).copy()

        kyy = _default(kyy, kxx)
        kzz = _default(kzz, kxx)
        kxy = _default(kxy, np.zeros(num))
        kxz = _default(kxz, np.zeros(num))
        kyz = _default(kyz, np.zeros(num))

        # Onsager's principle - the tensor should be positive (semi-)definite. Check
        # the leading principal minors.
        if np.any(kxx < 0):
            raise ValueError(
                "Tensor is not positive definite because of components in x-direction"
            )
        if np.any(kxx * kyy - kxy * kxy < 0):
            raise ValueError(
                "Tensor is not positive definite because of components in y-direction"
            )
        det = (
            kxx * (kyy * kzz - kyz * kyz)
            - kxy * (kxy * kzz - kxz * kyz)
            + kxz * (kxy * kyz - kxz * kyy)
        )
        if np.any(det < 0):
            raise ValueError(
                "Tensor is not positive definite because of components in z-direction"
            )

        perm = np.zeros((3, 3, num))
        perm[0, 0] = kxx
        perm[1, 1] = kyy
        perm[2, 2] = kzz
        perm[0, 1] = perm[1, 0] = kxy
        perm[0, 2] = perm[2, 0] = kxz
        perm[1, 2] = perm[2, 1] = kyz

        self.values: np.ndarray = perm
        """Tensor values, shape ``(3, 3, num_vertices)``."""

    @property
    def num_vertices(self) -> int:
        """Number of vertices the tensor is defined on."""
        return self.values.shape[2]

    def at(self, index: int, dim: int) -> np.ndarray:
        """Permeability of a single vertex.

        Parameters:
            index: Vertex index. A tensor defined on a single vertex is treated as
                homogeneous and returned for any index.
            dim: Spatial dimension of the problem.

        Returns:
            A ``(dim, dim)`` array.

        """
        if self.num_vertices == 1:
            index = 0
        return self.values[:dim, :dim, index].copy()

    def copy(self) -> SecondOrderTensor:
        """Define a deep copy of the tensor.

        Returns:
            New tensor with identical fields, but separate arrays (in the memory sense).

        """
        v = self.values
        return SecondOrderTensor(
            v[0, 0].copy(),
            kyy=v[1, 1].copy(),
            kzz=v[2, 2].copy(),
            kxy=v[0, 1].copy(),
            kxz=v[0, 2].copy(),
            kyz=v[1, 2].copy(),
        )

    def __str__(self) -> str:
        return f"Second order tensor defined on {self.num_vertices} vertices"

    def __repr__(self) -> str:
        return self.__str__()
