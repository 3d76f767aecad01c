"""Random 0-1 MILP instances (set cover and packing) for data collection."""
import numpy as np


class SetCoverGenerator:
    """min 1^T x  s.t.  A x >= 1,  x binary."""

    def __init__(self, n_rows=50, n_cols=100, density=0.4, rng=None):
        self.n_rows = n_rows
        self.n_cols = n_cols
        self.density = density
        self.rng = rng if rng is not None else np.random.default_rng()

    def _matrix(self):
        A = self.rng.choice(
            [0, 1],
            size=(self.n_rows, self.n_cols),
            p=[1 - self.density, self.density]
        )

        # every row and column gets at least two nonzeros
        for i in range(self.n_rows):
            if A[i].sum() < 2:
                cols = self.rng.choice(self.n_cols, size=2, replace=False)
                A[i, cols] = 1

        for j in range(self.n_cols):
            if A[:, j].sum() < 2:
                rows = self.rng.choice(self.n_rows, size=2, replace=False)
                A[rows, j] = 1
        return A

    def generate(self):
        A = self._matrix()
        c = self.rng.integers(1, 10, size=self.n_cols).astype(float)
        b = np.ones(self.n_rows, dtype=float)

        return {'A': A, 'c': c, 'b': b, 'type': 'cover'}


class PackingGenerator(SetCoverGenerator):
    """max p^T x  s.t.  A x <= b, x binary; stored as min -p^T x."""

    def generate(self):
        A = self._matrix() * self.rng.integers(1, 5, size=(self.n_rows, self.n_cols))
        profit = self.rng.integers(1, 20, size=self.n_cols).astype(float)
        b = np.maximum(A.sum(axis=1) / 2.0, 1.0)

        return {'A': A, 'c': -profit, 'b': b, 'type': 'packing'}


GENERATORS = {
    'cover': SetCoverGenerator,
    'packing': PackingGenerator,
}


def get_generator(problem_type, n_rows, n_cols, density=0.4, rng=None):
    if problem_type not in GENERATORS:
        raise ValueError(f"unknown problem type {problem_type!r}; expected one of {sorted(GENERATORS)}")
    return GENERATORS[problem_type](n_rows=n_rows, n_cols=n_cols, density=density, rng=rng)
