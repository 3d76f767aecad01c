"""
Collect node-selection training data in libsvm format.

Example:
    python collect.py --problem cover --rows 25 --cols 50 --instances 20 --out train.libsvm
"""
import argparse
import logging
import random
import sys

from env.collect_config import NODE_SELECTION_POOL, default_config
from env.collector import collect_dataset


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description=__doc__, formatter_class=argparse.RawDescriptionHelpFormatter)
    parser.add_argument('--problem', choices=['cover', 'packing'], default='cover')
    parser.add_argument('--rows', type=int, default=25)
    parser.add_argument('--cols', type=int, default=50)
    parser.add_argument('--density', type=float, default=0.3)
    parser.add_argument('--instances', type=int, default=10)
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--mode', choices=['diff', 'single'], default='diff',
                        help='pairwise difference lines or one line per node')
    parser.add_argument('--node-selection', choices=list(NODE_SELECTION_POOL.keys()), default='best_bound')
    parser.add_argument('--max-nodes', type=int, default=1000)
    parser.add_argument('--out', type=str, default=None, help='Output file (default: stdout)')
    parser.add_argument('--verbose', action='store_true')
    return parser.parse_args(argv)


def main(argv=None):
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format='%(asctime)s %(levelname)s %(name)s: %(message)s')
    cfg = default_config(args.problem, args.rows, args.cols, args.density,
                         n_instances=args.instances, seed=args.seed, mode=args.mode,
                         node_selection=args.node_selection, max_nodes=args.max_nodes)
    if args.seed is not None:
        random.seed(args.seed)

    if args.out:
        with open(args.out, 'w') as f:
            n_lines = collect_dataset(cfg, f)
        print(f"Wrote {n_lines} lines to {args.out}")
    else:
        collect_dataset(cfg, sys.stdout)


if __name__ == '__main__':
    main()
