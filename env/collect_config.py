from features.slots import NODESEL_FEATURE_SIZE

# node selection rule used while collecting -> BBSolver.step action
NODE_SELECTION_POOL = {
    'best_bound': 0,
    'depth_first': 1,
    'worst_first': 2,
    'random': 3,
}


def default_config(problem_type: str = 'cover', n_rows: int = 25, n_cols: int = 50, density: float = 0.3,
                   **overrides):
    cfg = {
        'problem_type': problem_type,
        'n_rows': n_rows,
        'n_cols': n_cols,
        'density': density,
        'n_instances': 10,
        'seed': None,
        'mode': 'diff',
        'max_nodes': 1000,
        'node_selection': 'best_bound',
        'feature_size': NODESEL_FEATURE_SIZE,
    }
    unknown = set(overrides) - set(cfg)
    if unknown:
        raise ValueError(f"unknown config keys: {sorted(unknown)}")
    cfg.update(overrides)
    if cfg['mode'] not in ('diff', 'single'):
        raise ValueError(f"mode must be 'diff' or 'single', got {cfg['mode']!r}")
    if cfg['node_selection'] not in NODE_SELECTION_POOL:
        raise ValueError(f"unknown node selection {cfg['node_selection']!r}")
    return cfg
