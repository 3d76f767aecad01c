"""
Oracle-based training data for node selection.

Each instance is solved twice. The first run gives an optimal solution; during
the second run every open node is featurized at every selection step, and the
nodes whose fixings agree with the optimal solution are the oracle's choices.
In 'diff' mode each (oracle node, other node) pair becomes one libsvm line
(label 1, every other pair mirrored with negate so both classes appear); in
'single' mode every node gets its own line labelled +1 / -1.
"""
from typing import Dict, List, Optional, TextIO
import logging

import numpy as np

from features import calc_nodesel_features, create, libsvm_diff_print, libsvm_print
from features.vector import FeatureVector
from .bnb_solver import BBNode, BBSolver
from .collect_config import NODE_SELECTION_POOL, default_config
from .instances import get_generator

logger = logging.getLogger(__name__)


def optimal_solution(instance, max_nodes: Optional[int] = None) -> Optional[np.ndarray]:
    solver = BBSolver(instance, max_nodes=max_nodes)
    solver.solve()
    return solver.incumbent


def is_oracle_node(node: BBNode, optsol: np.ndarray) -> bool:
    return all(int(optsol[j]) == val for j, val in node.fixed_vars.items())


class TrainingDataCollector:
    def __init__(self, file: TextIO, mode: str = 'diff', feature_size: Optional[int] = None,
                 node_selection: str = 'best_bound', max_nodes: Optional[int] = None):
        cfg = default_config(mode=mode, node_selection=node_selection)
        self.file = file
        self.mode = cfg['mode']
        self.feature_size = feature_size or cfg['feature_size']
        self.action = NODE_SELECTION_POOL[cfg['node_selection']]
        self.max_nodes = max_nodes
        self.n_lines = 0
        self._negate = False

    def _new_feature(self, solver: BBSolver) -> FeatureVector:
        feat = create(self.feature_size)
        feat.set_max_depth(solver.n_vars)
        feat.set_root_lp_obj(solver.get_lowerbound_root())
        feat.set_sum_obj_coeff(float(np.sum(np.abs(solver.c))))
        feat.set_n_constrs(solver.n_constrs)
        return feat

    def _featurize(self, solver: BBSolver, nodes: List[BBNode]) -> Dict[int, FeatureVector]:
        feats = {}
        for node in nodes:
            feat = self._new_feature(solver)
            calc_nodesel_features(solver, node, feat)
            feats[node.number] = feat
        return feats

    def write_step(self, solver: BBSolver, optsol: np.ndarray) -> int:
        """Write the lines for the current open nodes of `solver`; returns the number written."""
        nodes = [n for n in solver.open_nodes() if n.get_depth() > 0]
        if not nodes:
            return 0
        feats = self._featurize(solver, nodes)
        oracle = [n for n in nodes if is_oracle_node(n, optsol)]
        others = [n for n in nodes if not is_oracle_node(n, optsol)]

        written = 0
        if self.mode == 'single':
            for node in nodes:
                libsvm_print(self.file, feats[node.number], 1 if node in oracle else -1)
                written += 1
        else:
            for good in oracle:
                for bad in others:
                    libsvm_diff_print(self.file, feats[good.number], feats[bad.number], 1, negate=self._negate)
                    self._negate = not self._negate
                    written += 1

        for feat in feats.values():
            feat.free()
        self.n_lines += written
        return written

    def collect(self, instance) -> int:
        """Collect training lines for one instance; returns the number of lines written."""
        optsol = optimal_solution(instance, self.max_nodes)
        if optsol is None:
            logger.warning("No feasible solution found for %s instance, skipping", instance.get('type', 'cover'))
            return 0
        solver = BBSolver(instance, max_nodes=self.max_nodes)
        written = 0
        while not solver.done:
            written += self.write_step(solver, optsol)
            if solver.step(self.action) is None:
                break
        logger.info("Wrote %d lines from %d nodes", written, solver.steps)
        return written


def collect_dataset(cfg: dict, file: TextIO) -> int:
    """Generate cfg['n_instances'] instances and write their training data to `file`."""
    rng = np.random.default_rng(cfg['seed'])
    gen = get_generator(cfg['problem_type'], cfg['n_rows'], cfg['n_cols'], cfg['density'], rng=rng)
    collector = TrainingDataCollector(file, mode=cfg['mode'], feature_size=cfg['feature_size'],
                                      node_selection=cfg['node_selection'], max_nodes=cfg['max_nodes'])
    for i in range(cfg['n_instances']):
        written = collector.collect(gen.generate())
        logger.info("Instance %d/%d: %d lines", i + 1, cfg['n_instances'], written)
    return collector.n_lines
