"""Node-selection features for branch-and-bound and their libsvm serialization."""
from .errors import FeatureContractError
from .slots import NodeselFeature, NODESEL_FEATURE_SIZE, BoundType, BranchDir, NodeType, BoundChgType
from .vector import FeatureVector, create, copy_into, get_offset
from .calculator import calc_nodesel_features
from .libsvm import (libsvm_format, libsvm_print, libsvm_diff_format, libsvm_diff_print,
                     parse_libsvm_line)

__all__ = [
    'FeatureContractError',
    'NodeselFeature', 'NODESEL_FEATURE_SIZE', 'BoundType', 'BranchDir', 'NodeType', 'BoundChgType',
    'FeatureVector', 'create', 'copy_into', 'get_offset',
    'calc_nodesel_features',
    'libsvm_format', 'libsvm_print', 'libsvm_diff_format', 'libsvm_diff_print', 'parse_libsvm_line',
]
