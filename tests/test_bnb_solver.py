"""Tests for the scipy branch and bound and the solver views it exposes."""
import numpy as np
import pytest

from env.bnb_solver import BBSolver, INFINITY
from env.instances import PackingGenerator, SetCoverGenerator, get_generator
from features import (BoundChgType, BoundType, BranchDir, NodeType, NodeselFeature as F,
                      NODESEL_FEATURE_SIZE, calc_nodesel_features, create)


def two_triangles():
    """Two disjoint odd cycles: root LP is x = 0.5 everywhere (value 3), optimum 4."""
    edges = [(0, 1), (1, 2), (0, 2), (3, 4), (4, 5), (3, 5)]
    A = np.zeros((len(edges), 6), dtype=int)
    for row, (i, j) in enumerate(edges):
        A[row, i] = A[row, j] = 1
    return {'A': A, 'c': np.ones(6), 'b': np.ones(len(edges)), 'type': 'cover'}


def test_root_relaxation():
    solver = BBSolver(two_triangles())
    assert solver.get_lowerbound_root() == pytest.approx(3.0)
    assert solver.get_n_sols_found() == 0
    assert solver.get_cutoffbound() == INFINITY
    assert not solver.has_focus_node_lp()
    assert [v.get_root_sol() for v in solver.variables] == pytest.approx([0.5] * 6)
    assert all(v.get_col().get_n_nonz() == 2 for v in solver.variables)


def test_first_branching():
    solver = BBSolver(two_triangles())
    root = solver.step()
    assert root.get_depth() == 0
    assert solver.has_focus_node_lp()

    down, up = sorted(solver.open_nodes(), key=lambda n: n.get_boundchgs()[0].newbound)
    for child in (down, up):
        assert child.get_depth() == 1
        assert child.get_type() == NodeType.CHILD
        assert child.get_lowerbound() == pytest.approx(3.5)
        assert child.get_estimate() >= child.get_lowerbound()
        (chg,) = child.get_boundchgs()
        assert chg.boundchgtype == BoundChgType.BRANCHING
    assert down.get_boundchgs()[0].boundtype == BoundType.UPPER
    assert up.get_boundchgs()[0].boundtype == BoundType.LOWER
    assert down.get_boundchgs()[0].var is up.get_boundchgs()[0].var

    var = down.get_boundchgs()[0].var
    # fixing a triangle variable to 0 forces the other two to 1
    assert var.get_avg_inferences(BranchDir.DOWNWARDS) == pytest.approx(2.0)
    assert var.pseudocost_per_unit(BranchDir.DOWNWARDS) == pytest.approx(1.0)
    assert var.get_pseudocost(-0.5) == pytest.approx(0.5)
    assert var.get_sol(True) == pytest.approx(0.5)


def test_features_of_a_child():
    solver = BBSolver(two_triangles())
    solver.step()
    down = min(solver.open_nodes(), key=lambda n: n.get_boundchgs()[0].newbound)

    feat = create(NODESEL_FEATURE_SIZE)
    feat.set_max_depth(solver.n_vars)
    calc_nodesel_features(solver, down, feat)

    assert feat.depth == 1
    assert feat.boundtype == BoundType.UPPER
    assert feat.vals[F.LOWERBOUND] == pytest.approx(3.5 / 3.0)
    assert 0.0 < feat.vals[F.RELATIVEBOUND] < 1e-12
    assert feat.vals[F.TYPE_CHILD] == 1
    assert feat.vals[F.BRANCHVAR_OBJCONSTR] == pytest.approx(0.5)
    assert feat.vals[F.BRANCHVAR_BOUNDLPDIFF] == pytest.approx(-0.5)
    assert feat.vals[F.BRANCHVAR_ROOTLPDIFF] == pytest.approx(0.0, abs=1e-9)
    assert feat.vals[F.BRANCHVAR_PRIO_DOWN] == feat.vals[F.BRANCHVAR_PRIO_UP] == 0
    assert feat.vals[F.BRANCHVAR_PSEUDOCOST] == pytest.approx(0.5)
    assert feat.vals[F.BRANCHVAR_INF] == pytest.approx(2.0 / 6)


def test_sibling_and_leaf_types():
    solver = BBSolver(two_triangles())
    solver.step()
    focus = solver.step()
    assert focus.get_depth() == 1
    for node in solver.open_nodes():
        if node.get_depth() == 1:
            assert node.get_type() == NodeType.SIBLING
        else:
            assert node.get_type() == NodeType.CHILD


def test_solve_finds_optimum():
    solver = BBSolver(two_triangles())
    assert solver.solve() == pytest.approx(4.0)
    assert solver.get_n_sols_found() >= 1
    assert solver.incumbent.sum() == 4
    assert solver.done
    assert solver.step() is None


def test_branch_direction_preference():
    solver = BBSolver(two_triangles())
    solver.set_branch_direction(2, BranchDir.DOWNWARDS)
    assert solver.variables[2].get_branch_direction() == BranchDir.DOWNWARDS
    assert solver.variables[0].get_branch_direction() == BranchDir.AUTO


def test_pseudo_solution_without_focus():
    solver = BBSolver(two_triangles())
    assert solver.variables[0].get_sol(True) == 0.0


def test_infeasible_instance():
    instance = {'A': np.array([[0, 0], [1, 1]]), 'c': np.ones(2), 'b': np.ones(2), 'type': 'cover'}
    solver = BBSolver(instance)
    assert solver.done
    assert solver.solve() == INFINITY
    assert solver.incumbent is None


def test_node_limit():
    solver = BBSolver(two_triangles(), max_nodes=1)
    solver.solve()
    assert solver.steps == 1
    assert solver.done


@pytest.mark.parametrize('action', [0, 1, 2, 3])
def test_all_node_selection_rules_reach_optimum(action):
    solver = BBSolver(two_triangles())
    assert solver.solve(action=action) == pytest.approx(4.0)


def test_custom_selector():
    solver = BBSolver(two_triangles())
    picked = []

    def deepest(s, nodes):
        node = max(nodes, key=lambda n: n.get_depth())
        picked.append(node)
        return node

    assert solver.solve(selector=deepest) == pytest.approx(4.0)
    assert len(picked) == solver.steps


def test_selector_must_return_open_node():
    solver = BBSolver(two_triangles())
    other = BBSolver(two_triangles())
    with pytest.raises(RuntimeError):
        solver.step(selector=lambda s, nodes: other.open_nodes()[0])


def test_unknown_problem_type():
    instance = dict(two_triangles(), type='knapsack')
    with pytest.raises(ValueError):
        BBSolver(instance)


def test_generators():
    rng = np.random.default_rng(3)
    cover = SetCoverGenerator(n_rows=6, n_cols=8, density=0.3, rng=rng).generate()
    assert cover['A'].shape == (6, 8)
    assert np.all(cover['A'].sum(axis=1) >= 2)
    assert np.all(cover['c'] > 0)

    packing = PackingGenerator(n_rows=4, n_cols=6, density=0.5, rng=rng).generate()
    assert packing['type'] == 'packing'
    assert np.all(packing['c'] < 0)
    assert BBSolver(packing).solve() <= 0.0

    with pytest.raises(ValueError):
        get_generator('knapsack', 3, 3)
