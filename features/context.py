"""
Read-only views of solver state consumed by the feature calculator.

The solver passes these explicitly instead of the calculator reaching into
global solver structures. Any object with the matching attributes works;
env.bnb_solver provides one backed by scipy LPs.
"""
from dataclasses import dataclass
from typing import Any, Protocol, Sequence

from .slots import BoundType, BoundChgType, BranchDir, NodeType


class Column(Protocol):
    def get_obj(self) -> float: ...

    def get_n_nonz(self) -> int: ...


class Variable(Protocol):
    def get_branch_direction(self) -> BranchDir: ...

    def get_col(self) -> Column: ...

    def get_sol(self, getlpval: bool) -> float: ...

    def get_root_sol(self) -> float: ...

    def get_pseudocost(self, solvaldelta: float) -> float: ...

    def get_avg_inferences(self, direction: BranchDir) -> float: ...


@dataclass(frozen=True)
class BoundChange:
    var: Any
    newbound: float
    boundtype: BoundType
    boundchgtype: BoundChgType = BoundChgType.BRANCHING


class Node(Protocol):
    def get_depth(self) -> int: ...

    def get_type(self) -> NodeType: ...

    def get_lowerbound(self) -> float: ...

    def get_estimate(self) -> float: ...

    def get_boundchgs(self) -> Sequence[BoundChange]: ...


class SolverContext(Protocol):
    def get_lowerbound(self) -> float: ...

    def get_cutoffbound(self) -> float: ...

    def get_lowerbound_root(self) -> float: ...

    def get_n_sols_found(self) -> int: ...

    def has_focus_node_lp(self) -> bool: ...
