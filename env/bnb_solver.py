"""
LP-based branch and bound for 0-1 programs, exposing the solver views the
feature calculator reads (features.context).

- LP relaxations are solved with scipy.linprog (HiGHS)
- branching is on the most fractional variable, one variable per node
- pseudocosts and inference counts are collected while branching
- node selection is pluggable: an action index (best-first, depth-first,
  worst-first, random) or a callable picking from the open nodes
"""
from typing import Callable, Dict, List, Optional
import logging
import random

import numpy as np
import scipy.optimize as opt

from features.context import BoundChange
from features.slots import BoundChgType, BoundType, BranchDir, NodeType

logger = logging.getLogger(__name__)

INFINITY = 1e20
FEASTOL = 1e-6


def _is_integral(val):
    return abs(val - round(val)) < FEASTOL


class BBColumn:
    def __init__(self, obj: float, nnz: int):
        self.obj = float(obj)
        self.nnz = int(nnz)

    def get_obj(self) -> float:
        return self.obj

    def get_n_nonz(self) -> int:
        return self.nnz


class BBVariable:
    """Binary variable with its branching history."""

    def __init__(self, solver: 'BBSolver', index: int, col: BBColumn):
        self.solver = solver
        self.index = index
        self.col = col
        self.branch_direction = BranchDir.AUTO
        self.root_sol = 0.0
        # indexed by BranchDir.DOWNWARDS / UPWARDS
        self._pscost_sum = [0.0, 0.0]
        self._pscost_count = [0, 0]
        self._inference_sum = [0.0, 0.0]
        self._inference_count = [0, 0]

    def __repr__(self):
        return f"BBVariable(x{self.index})"

    def get_branch_direction(self) -> BranchDir:
        return self.branch_direction

    def get_col(self) -> BBColumn:
        return self.col

    def get_sol(self, getlpval: bool) -> float:
        """LP value at the focus node, or the pseudo solution value otherwise."""
        focus = self.solver.focus
        if getlpval and focus is not None and focus.lp_solution is not None:
            return float(focus.lp_solution[self.index])
        fixed = focus.fixed_vars if focus is not None else {}
        if self.index in fixed:
            return float(fixed[self.index])
        # bound with the best objective contribution
        return 0.0 if self.col.obj >= 0 else 1.0

    def get_root_sol(self) -> float:
        return self.root_sol

    def pseudocost_per_unit(self, direction: BranchDir) -> float:
        d = int(direction)
        if self._pscost_count[d] > 0:
            return self._pscost_sum[d] / self._pscost_count[d]
        return self.solver.avg_pseudocost(direction)

    def get_pseudocost(self, solvaldelta: float) -> float:
        direction = BranchDir.UPWARDS if solvaldelta >= 0 else BranchDir.DOWNWARDS
        return self.pseudocost_per_unit(direction) * abs(solvaldelta)

    def get_avg_inferences(self, direction: BranchDir) -> float:
        d = int(direction)
        if self._inference_count[d] > 0:
            return self._inference_sum[d] / self._inference_count[d]
        return self.solver.avg_inferences(direction)

    def update_pseudocost(self, direction: BranchDir, unitgain: float):
        self._pscost_sum[int(direction)] += unitgain
        self._pscost_count[int(direction)] += 1

    def update_inferences(self, direction: BranchDir, ninferences: int):
        self._inference_sum[int(direction)] += ninferences
        self._inference_count[int(direction)] += 1


class BBNode:
    def __init__(self, number: int, parent: Optional['BBNode'], fixed_vars: Dict[int, int],
                 boundchgs: List[BoundChange], depth: int):
        self.number = number
        self.parent = parent
        self.fixed_vars = fixed_vars
        self.boundchgs = boundchgs
        self.depth = depth
        self.lower_bound = -INFINITY
        self.estimate = -INFINITY
        self.lp_solution = None
        self.node_type = NodeType.LEAF

    def __repr__(self):
        return f"BBNode(#{self.number}, depth={self.depth}, lb={self.lower_bound:.4g}, {self.node_type.name})"

    def get_depth(self) -> int:
        return self.depth

    def get_type(self) -> NodeType:
        return self.node_type

    def get_lowerbound(self) -> float:
        return self.lower_bound

    def get_estimate(self) -> float:
        return self.estimate

    def get_boundchgs(self) -> List[BoundChange]:
        return self.boundchgs


NodeSelector = Callable[['BBSolver', List[BBNode]], BBNode]


class BBSolver:
    """
    Branch and bound over min c^T x, x in {0,1}^n, with
    A x >= b (cover) or A x <= b (packing).

    The solver is also the SolverContext handed to the feature calculator.
    """
    def __init__(self, instance, max_nodes: Optional[int] = None):
        self.instance = instance
        self.A = np.asarray(instance['A'], dtype=float)
        self.c = np.asarray(instance['c'], dtype=float)
        self.b = np.asarray(instance['b'], dtype=float)
        self.problem_type = instance.get('type', 'cover')
        if self.problem_type not in ('cover', 'packing'):
            raise ValueError(f"unsupported problem type {self.problem_type!r}")
        self.n_vars = len(self.c)
        self.n_constrs = self.A.shape[0]
        self.max_nodes = max_nodes

        nnz = np.count_nonzero(self.A, axis=0)
        self.variables = [BBVariable(self, j, BBColumn(self.c[j], nnz[j])) for j in range(self.n_vars)]

        self.incumbent_value = INFINITY
        self.incumbent = None
        self.n_sols = 0
        self.fringe: List[BBNode] = []  # open nodes
        self.focus: Optional[BBNode] = None
        self.steps = 0
        self.done = False
        self._next_number = 0

        root = self._new_node(None, {}, [], 0)
        self.process_node_lp(root)
        self.root_lower_bound = root.lower_bound
        if root.lp_solution is not None:
            for var in self.variables:
                var.root_sol = float(root.lp_solution[var.index])
            self.fringe.append(root)
        else:
            # infeasible from the start
            self.root_lower_bound = INFINITY
            self.done = True

    # -- SolverContext ---------------------------------------------------------

    def get_lowerbound(self) -> float:
        bounds = [n.lower_bound for n in self.fringe]
        if self.focus is not None and self.focus.lp_solution is not None:
            bounds.append(self.focus.lower_bound)
        if not bounds:
            return self.incumbent_value if self.n_sols > 0 else self.root_lower_bound
        return min(min(bounds), self.incumbent_value)

    def get_cutoffbound(self) -> float:
        return self.incumbent_value

    def get_lowerbound_root(self) -> float:
        return self.root_lower_bound

    def get_n_sols_found(self) -> int:
        return self.n_sols

    def has_focus_node_lp(self) -> bool:
        return self.focus is not None and self.focus.lp_solution is not None

    # -- statistics ------------------------------------------------------------

    def avg_pseudocost(self, direction: BranchDir) -> float:
        d = int(direction)
        total = sum(v._pscost_sum[d] for v in self.variables)
        count = sum(v._pscost_count[d] for v in self.variables)
        return total / count if count > 0 else 1.0

    def avg_inferences(self, direction: BranchDir) -> float:
        d = int(direction)
        total = sum(v._inference_sum[d] for v in self.variables)
        count = sum(v._inference_count[d] for v in self.variables)
        return total / count if count > 0 else 0.0

    def set_branch_direction(self, index: int, direction: BranchDir):
        self.variables[index].branch_direction = BranchDir(direction)

    # -- LP --------------------------------------------------------------------

    def solve_lp(self, fixed_vars):
        """
        Solve the LP relaxation with some variables fixed to 0/1.
        Uses scipy.linprog (min c^T x s.t. A_ub x <= b_ub, 0 <= x <= 1).
        """
        bounds = [(0, 1) for _ in range(self.n_vars)]
        for idx, val in fixed_vars.items():
            bounds[idx] = (val, val)

        if self.problem_type == 'packing':
            A_ub = self.A
            b_ub = self.b
        else:
            # Ax >= b -> -Ax <= -b for linprog
            A_ub = -self.A
            b_ub = -self.b

        res = opt.linprog(
            self.c,
            A_ub=A_ub,
            b_ub=b_ub,
            bounds=bounds,
            method='highs'
        )

        if res.success:
            return float(res.fun), res.x
        return INFINITY, None

    def process_node_lp(self, node: BBNode):
        lb, x = self.solve_lp(node.fixed_vars)
        node.lower_bound = lb
        node.lp_solution = x
        node.estimate = lb if x is None else lb + self._estimate_gap(x)
        return lb, x

    def _estimate_gap(self, x):
        gap = 0.0
        for var in self.variables:
            frac = x[var.index] - np.floor(x[var.index])
            if frac < FEASTOL or frac > 1 - FEASTOL:
                continue
            gap += min(var.pseudocost_per_unit(BranchDir.DOWNWARDS) * frac,
                       var.pseudocost_per_unit(BranchDir.UPWARDS) * (1 - frac))
        return gap

    @staticmethod
    def is_integer(x):
        if x is None:
            return False
        return np.allclose(x, np.round(x), atol=1e-5)

    # -- tree ------------------------------------------------------------------

    def _new_node(self, parent, fixed_vars, boundchgs, depth):
        node = BBNode(self._next_number, parent, fixed_vars, boundchgs, depth)
        self._next_number += 1
        return node

    def branch(self, node: BBNode):
        """Create the down (x=0) and up (x=1) children on the most fractional variable."""
        x = node.lp_solution
        fractionality = np.abs(x - np.round(x))
        var_idx = int(np.argmax(fractionality))
        var = self.variables[var_idx]

        children = []
        for value, boundtype in ((0, BoundType.UPPER), (1, BoundType.LOWER)):
            fixed = dict(node.fixed_vars)
            fixed[var_idx] = value
            chg = BoundChange(var=var, newbound=float(value), boundtype=boundtype,
                              boundchgtype=BoundChgType.BRANCHING)
            children.append(self._new_node(node, fixed, [chg], node.depth + 1))
        return var, children

    def _update_history(self, parent: BBNode, var: BBVariable, child: BBNode):
        newbound = child.fixed_vars[var.index]
        delta = newbound - parent.lp_solution[var.index]
        direction = BranchDir.UPWARDS if delta > 0 else BranchDir.DOWNWARDS
        if child.lp_solution is None:
            return
        if abs(delta) > FEASTOL:
            gain = max(child.lower_bound - parent.lower_bound, 0.0)
            var.update_pseudocost(direction, gain / abs(delta))
        ninferences = sum(
            1 for j in range(self.n_vars)
            if j != var.index and not _is_integral(parent.lp_solution[j]) and _is_integral(child.lp_solution[j])
        )
        var.update_inferences(direction, ninferences)

    def _assign_node_types(self):
        focus = self.focus
        for node in self.fringe:
            if focus is not None and node.parent is focus:
                node.node_type = NodeType.CHILD
            elif focus is not None and focus.parent is not None and node.parent is focus.parent:
                node.node_type = NodeType.SIBLING
            else:
                node.node_type = NodeType.LEAF

    def open_nodes(self) -> List[BBNode]:
        return list(self.fringe)

    def _select(self, action, selector: Optional[NodeSelector]) -> BBNode:
        if selector is not None:
            node = selector(self, self.open_nodes())
            if node not in self.fringe:
                raise RuntimeError(f"node selector returned {node!r}, which is not an open node")
        elif action == 0:   # best first
            node = min(self.fringe, key=lambda n: n.lower_bound)
        elif action == 1:   # depth first
            node = max(self.fringe, key=lambda n: n.depth)
        elif action == 2:   # worst first
            node = max(self.fringe, key=lambda n: n.lower_bound)
        else:
            node = random.choice(self.fringe)
        self.fringe.remove(node)
        return node

    def _new_incumbent(self, value, x):
        if value < self.incumbent_value:
            self.incumbent_value = value
            self.incumbent = np.round(x).astype(int)
            self.n_sols += 1
            # drop dominated open nodes
            self.fringe = [n for n in self.fringe if n.lower_bound < self.incumbent_value]
            logger.debug("New incumbent %.6g after %d nodes", value, self.steps)

    def step(self, action: int = 0, selector: Optional[NodeSelector] = None) -> Optional[BBNode]:
        """
        Select one open node, make it the focus node and process it.
        Returns the focus node, or None when the search is finished.
        """
        if self.done:
            return None
        if not self.fringe or (self.max_nodes is not None and self.steps >= self.max_nodes):
            self.done = True
            return None

        node = self._select(action, selector)
        self.focus = node
        self.steps += 1

        if node.lower_bound >= self.incumbent_value:
            logger.debug("Node #%d pruned by bound %.6g", node.number, node.lower_bound)
        elif self.is_integer(node.lp_solution):
            self._new_incumbent(node.lower_bound, node.lp_solution)
        else:
            var, children = self.branch(node)
            for child in children:
                lb, x = self.process_node_lp(child)
                self._update_history(node, var, child)
                if x is None or lb >= self.incumbent_value:
                    continue
                if self.is_integer(x):
                    self._new_incumbent(lb, x)
                else:
                    self.fringe.append(child)

        self._assign_node_types()
        if not self.fringe:
            self.done = True
        return node

    def solve(self, action: int = 0, selector: Optional[NodeSelector] = None):
        """Run branch and bound to completion (or the node limit); returns the incumbent value."""
        while self.step(action, selector) is not None:
            pass
        logger.info("Solved %s instance (%d vars): %d nodes, incumbent %.6g",
                    self.problem_type, self.n_vars, self.steps, self.incumbent_value)
        return self.incumbent_value
