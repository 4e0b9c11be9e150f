from dataclasses import dataclass

import sympy as sp
from sympy.matrices.normalforms import smith_normal_form


@dataclass(frozen=True)
class AbelianGroup:
    '''
    A finitely generated abelian group Z^rank x Z/t_1 x ... x Z/t_k with invariant factors t_1 | ... | t_k, all greater than 1.
    '''
    rank: int
    torsion: tuple[int, ...] = ()

    @classmethod
    def cokernel(cls, A) -> 'AbelianGroup':
        '''
        return Z^m / A*Z^n for an integral m x n matrix A
        '''
        A = sp.Matrix(A)
        m, n = A.shape
        size = max(m, n)
        square = sp.zeros(size, size)
        square[:m, :n] = A
        D = smith_normal_form(square, domain=sp.ZZ)
        diagonal = [abs(int(D[t, t])) for t in range(size)]
        nonzero = [a for a in diagonal if a != 0]
        return cls(rank=m - len(nonzero), torsion=tuple(sorted(a for a in nonzero if a != 1)))

    @property
    def torsion_order(self) -> int:
        order = 1
        for t in self.torsion:
            order *= t
        return order

    @property
    def order(self):
        return sp.oo if self.rank > 0 else self.torsion_order

    @property
    def is_trivial(self) -> bool:
        return self.rank == 0 and not self.torsion

    @property
    def invariant_factors(self) -> tuple[int, ...]:
        '''torsion factors followed by a 0 for every free summand'''
        return self.torsion + (0,) * self.rank

    def __str__(self) -> str:
        summands = [f"Z/{t}" for t in self.torsion]
        if self.rank:
            summands.insert(0, "Z" if self.rank == 1 else f"Z^{self.rank}")
        return " x ".join(summands) or "0"
