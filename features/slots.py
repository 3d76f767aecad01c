"""
Feature slot indices and the small solver enums the feature core reads.

Enum values follow SCIP's numbering so vectors written here line up with
data dumped by a SCIP node selector.
"""
from enum import IntEnum


class NodeselFeature(IntEnum):
    LOWERBOUND = 0              # node lower bound / root lower bound
    ESTIMATE = 1                # node estimate / root lower bound
    RELATIVEBOUND = 2           # position of node bound between global lower and cutoff bound
    TYPE_SIBLING = 3
    TYPE_CHILD = 4
    TYPE_LEAF = 5
    BRANCHVAR_OBJCONSTR = 6     # objective coefficient per column nonzero
    BRANCHVAR_BOUNDLPDIFF = 7   # new bound - LP value
    BRANCHVAR_ROOTLPDIFF = 8    # root LP value - LP value
    BRANCHVAR_PRIO_DOWN = 9
    BRANCHVAR_PRIO_UP = 10
    BRANCHVAR_PSEUDOCOST = 11   # pseudocost estimate / |objective coefficient|
    BRANCHVAR_INF = 12          # average inferences / max depth


NODESEL_FEATURE_SIZE = len(NodeselFeature)


class BoundType(IntEnum):
    LOWER = 0
    UPPER = 1


class BranchDir(IntEnum):
    DOWNWARDS = 0
    UPWARDS = 1
    FIXED = 2
    AUTO = 3


class NodeType(IntEnum):
    FOCUSNODE = 0
    PROBINGNODE = 1
    SIBLING = 2
    CHILD = 3
    LEAF = 4
    DEADEND = 5
    JUNCTION = 6
    PSEUDOFORK = 7
    FORK = 8
    SUBROOT = 9
    REFOCUSNODE = 10


class BoundChgType(IntEnum):
    BRANCHING = 0
    CONSINFER = 1
    PROPINFER = 2
