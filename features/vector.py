"""
Fixed-size feature vector for one search node, plus the offset that places it
in the global libsvm index space.

Each (depth decile, bound type) pair owns its own block of indices, so vectors
computed in different parts of the tree never share a feature index when they
are written to the same training file.
"""
from typing import Optional
import numpy as np

from .errors import FeatureContractError
from .slots import BoundType


class FeatureVector:
    def __init__(self, size: int):
        if not isinstance(size, (int, np.integer)) or isinstance(size, bool) or size <= 0:
            raise FeatureContractError(f"feature vector size must be a positive int, got {size!r}")
        self._size = int(size)
        self.vals: Optional[np.ndarray] = np.zeros(self._size, dtype=np.float64)
        self.depth = 0          # 0 means not calculated yet
        self.maxdepth = 0
        self.boundtype = BoundType.LOWER
        self.rootlpobj = 0.0
        self.sumobjcoeff = 0.0
        self.nconstrs = 0

    @property
    def size(self) -> int:
        return self._size

    @property
    def freed(self) -> bool:
        return self.vals is None

    def check_alive(self):
        if self.vals is None:
            raise FeatureContractError("feature vector used after free()")

    def reset(self):
        """Zero the values; metadata is left alone."""
        self.check_alive()
        self.vals.fill(0.0)

    def free(self):
        self.check_alive()
        self.vals = None

    def set_root_lp_obj(self, rootlpobj: float):
        self.rootlpobj = float(rootlpobj)

    def set_sum_obj_coeff(self, sumobjcoeff: float):
        self.sumobjcoeff = float(sumobjcoeff)

    def set_max_depth(self, maxdepth: int):
        self.maxdepth = int(maxdepth)

    def set_n_constrs(self, nconstrs: int):
        self.nconstrs = int(nconstrs)

    @property
    def offset(self) -> int:
        return get_offset(self)

    def __repr__(self):
        return (f"FeatureVector(size={self._size}, depth={self.depth}, maxdepth={self.maxdepth}, "
                f"boundtype={BoundType(self.boundtype).name}, freed={self.freed})")


def create(size: int) -> FeatureVector:
    """Create a zero-initialized feature vector of the given size."""
    return FeatureVector(size)


def copy_into(source: FeatureVector, dest: FeatureVector) -> FeatureVector:
    """Copy metadata and values of `source` into `dest` (sizes must match)."""
    source.check_alive()
    dest.check_alive()
    if source.size != dest.size:
        raise FeatureContractError(f"cannot copy a vector of size {source.size} into one of size {dest.size}")
    dest.maxdepth = source.maxdepth
    dest.depth = source.depth
    dest.boundtype = source.boundtype
    dest.rootlpobj = source.rootlpobj
    dest.sumobjcoeff = source.sumobjcoeff
    dest.nconstrs = source.nconstrs
    np.copyto(dest.vals, source.vals)
    return dest


def get_offset(feat: FeatureVector) -> int:
    """Index offset of `feat` in the global index space.

    offset = size*2 * (depth // decile) + size * boundtype, where decile is
    maxdepth // 10. The decile width is clamped to 1 so trees shallower than
    ten levels get one bucket per depth instead of a division by zero.
    """
    if feat.maxdepth == 0:
        raise FeatureContractError("maxdepth must be set before computing the offset")
    decile = max(int(feat.maxdepth) // 10, 1)
    return feat.size * 2 * (int(feat.depth) // decile) + feat.size * int(feat.boundtype)
