import itertools
import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from math import gcd

import sympy as sp

from .config import CONFIG

logger = logging.getLogger(__name__)

Ray = tuple[int, int]


class NoSuchFixedPointError(TypeError):
    '''
    raised when a fixed point or a parabolic divisor is requested that does not exist for the case of the surface
    '''


class CStarSurfaceCase(Enum):
    '''
    The four possible source and sink configurations of a C*-surface. The first letter describes the plus end, the second one the minus end: E stands for an elliptic fixed point, P for a parabolic fixed point curve.
    '''
    EE = "EE"
    PE = "PE"
    EP = "EP"
    PP = "PP"

    @classmethod
    def parse(cls, value: 'CStarSurfaceCase | str') -> 'CStarSurfaceCase':
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).upper())
        except ValueError:
            raise ValueError(f"unknown case {value!r}, expected one of EE, PE, EP, PP") from None

    @classmethod
    def from_ends(cls, parabolic_plus: bool, parabolic_minus: bool) -> 'CStarSurfaceCase':
        return cls(('P' if parabolic_plus else 'E') + ('P' if parabolic_minus else 'E'))

    @property
    def has_D_plus(self) -> bool:
        return self.value[0] == 'P'

    @property
    def has_D_minus(self) -> bool:
        return self.value[1] == 'P'

    @property
    def has_x_plus(self) -> bool:
        return not self.has_D_plus

    @property
    def has_x_minus(self) -> bool:
        return not self.has_D_minus

    def inverted(self) -> 'CStarSurfaceCase':
        return CStarSurfaceCase(self.value[::-1])

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class CStarSurface:
    r'''
    This class represents a rational projective C*-surface given by its defining triple.

    Attributes:
        blocks: A tuple of R blocks, each a tuple of rays ``(l, d)`` with ``l > 0`` and ``gcd(l, d) == 1``. The rays of a block are kept in the order they are given; ``slope_order`` gives the order by decreasing slope ``d/l``.
        case: The CStarSurfaceCase of the surface.

    The invariant divisors are indexed by the rays in storage order, block after block, followed by the parabolic divisors D^+ and D^- if present. In double index notation ``(i, j)`` the block ``i`` counts from 0 and the ray ``j`` from 1.

    EXAMPLES::
        >>> X = CStarSurface.make([[3, 1], [3], [2]], [[-2, -1], [1], [1]], 'EE')
        >>> X.m_plus, X.l_plus
        (1/6, 1/6)
        >>> X.generator_matrix.tolist()
        [[-3, -1, 3, 0], [-3, -1, 0, 2], [-2, -1, 1, 1]]
    '''
    blocks: tuple[tuple[Ray, ...], ...]
    case: CStarSurfaceCase

    def __post_init__(self) -> None:
        blocks = tuple(tuple((int(l), int(d)) for l, d in block) for block in self.blocks)
        object.__setattr__(self, 'blocks', blocks)
        object.__setattr__(self, 'case', CStarSurfaceCase.parse(self.case))
        if len(blocks) == 0:
            raise ValueError("a C*-surface needs at least one block")
        for i, block in enumerate(blocks):
            if len(block) == 0:
                raise ValueError(f"block {i} is empty")
            for l, d in block:
                if l <= 0:
                    raise ValueError(f"l must be positive, got ({l}, {d}) in block {i}")
                if gcd(l, d) != 1:
                    raise ValueError(f"l and d must be coprime, got ({l}, {d}) in block {i}")
            if len(set(block)) != len(block):
                raise ValueError(f"rays of block {i} must be pairwise different")

    @classmethod
    def make(cls, ls: Sequence[Sequence[int]], ds: Sequence[Sequence[int]], case: CStarSurfaceCase | str) -> 'CStarSurface':
        '''
        Construct a C*-surface from the integral vectors ``l_i`` and ``d_i`` of its defining triple.

        INPUT:
            - ``ls`` -- a list of R lists of positive integers.
            - ``ds`` -- a list of R lists of integers, of the same shape as ``ls``.
            - ``case`` -- a CStarSurfaceCase or its name.
        '''
        if len(ls) != len(ds):
            raise ValueError(f"ls and ds must have the same length, got {len(ls)} and {len(ds)}")
        for i, (l_i, d_i) in enumerate(zip(ls, ds)):
            if len(l_i) != len(d_i):
                raise ValueError(f"ls[{i}] and ds[{i}] must have the same length")
        return cls(tuple(tuple(zip(l_i, d_i)) for l_i, d_i in zip(ls, ds)), case)

    @classmethod
    def from_generator_matrix(cls, P) -> 'CStarSurface':
        '''
        Construct a C*-surface from its generator matrix (P-matrix) with R rows. The columns are the rays ``l*v_i + d*e_R`` ordered by blocks, followed by the apex columns ``e_R`` and ``-e_R`` for the parabolic ends; the case is read off from the latter.
        '''
        P = sp.Matrix(P)
        r = P.rows - 1
        shape_error = ValueError(f"given matrix is not in P-Matrix shape:\n{P}")
        if r < 1:
            raise shape_error
        blocks: list[list[Ray]] = []
        apex_entries = []
        for c in range(P.cols):
            v0 = [int(a) for a in P[:r, c]]
            d = int(P[r, c])
            if all(a == 0 for a in v0):
                apex_entries.append(d)
                continue
            if apex_entries:
                raise shape_error
            l = max(abs(a) for a in v0)
            if v0 == [-l] * r:
                i = 0
            elif v0.count(0) == r - 1 and l in v0:
                i = v0.index(l) + 1
            else:
                raise shape_error
            if i == len(blocks) - 1:
                blocks[-1].append((l, d))
            elif i == len(blocks):
                blocks.append([(l, d)])
            else:
                raise shape_error
        if len(blocks) != r + 1:
            raise shape_error
        match apex_entries:
            case []:
                case = CStarSurfaceCase.EE
            case [1]:
                case = CStarSurfaceCase.PE
            case [-1]:
                case = CStarSurfaceCase.EP
            case [1, -1]:
                case = CStarSurfaceCase.PP
            case _:
                raise shape_error
        return cls(tuple(tuple(block) for block in blocks), case)

    @property
    def nblocks(self) -> int:
        return len(self.blocks)

    @property
    def r(self) -> int:
        return len(self.blocks) - 1

    @property
    def block_sizes(self) -> tuple[int, ...]:
        return tuple(len(block) for block in self.blocks)

    @property
    def nrays(self) -> int:
        return sum(self.block_sizes)

    @property
    def ls(self) -> list[list[int]]:
        return [[l for l, _ in block] for block in self.blocks]

    @property
    def ds(self) -> list[list[int]]:
        return [[d for _, d in block] for block in self.blocks]

    @property
    def slopes(self) -> list[list[sp.Rational]]:
        return [[sp.Rational(d, l) for l, d in block] for block in self.blocks]

    def slope_order(self, i: int) -> tuple[int, ...]:
        '''
        return the (0-based) storage indices of the rays of block i ordered by decreasing slope
        '''
        block = self.blocks[i]
        return tuple(sorted(range(len(block)), key=lambda k: -sp.Rational(block[k][1], block[k][0])))

    def top_ray(self, i: int) -> Ray:
        return self.blocks[i][self.slope_order(i)[0]]

    def bottom_ray(self, i: int) -> Ray:
        return self.blocks[i][self.slope_order(i)[-1]]

    @property
    def m_plus(self) -> sp.Rational:
        '''the sum of the maximal slopes of all blocks'''
        return sum((sp.Rational(d, l) for l, d in map(self.top_ray, range(self.nblocks))), sp.Rational(0))

    @property
    def m_minus(self) -> sp.Rational:
        '''the sum of the minimal slopes of all blocks'''
        return sum((sp.Rational(d, l) for l, d in map(self.bottom_ray, range(self.nblocks))), sp.Rational(0))

    @property
    def l_plus(self) -> sp.Rational:
        return sum((sp.Rational(1, l) for l, _ in map(self.top_ray, range(self.nblocks))), sp.Rational(0)) - self.r + 1

    @property
    def l_minus(self) -> sp.Rational:
        return sum((sp.Rational(1, l) for l, _ in map(self.bottom_ray, range(self.nblocks))), sp.Rational(0)) - self.r + 1

    @property
    def divisor_count(self) -> int:
        return self.nrays + self.case.has_D_plus + self.case.has_D_minus

    def _index(self, i: int, k: int) -> int:
        '''position of the ray with storage index k (0-based) of block i in the divisor index'''
        return sum(self.block_sizes[:i]) + k

    @property
    def plus_index(self) -> int:
        if not self.case.has_D_plus:
            raise NoSuchFixedPointError(f"a surface of type {self.case} has no parabolic divisor D+")
        return self.nrays

    @property
    def minus_index(self) -> int:
        if not self.case.has_D_minus:
            raise NoSuchFixedPointError(f"a surface of type {self.case} has no parabolic divisor D-")
        return self.nrays + self.case.has_D_plus

    def divisor_label(self, index: int) -> tuple:
        '''
        return ``("D", i, j)``, ``("D+",)`` or ``("D-",)`` for a position in the divisor index
        '''
        if not 0 <= index < self.divisor_count:
            raise IndexError(f"divisor index {index} out of range")
        if index >= self.nrays:
            return ("D+",) if self.case.has_D_plus and index == self.nrays else ("D-",)
        i = 0
        while index >= self.block_sizes[i]:
            index -= self.block_sizes[i]
            i += 1
        return ("D", i, index + 1)

    @property
    def generator_matrix(self) -> sp.ImmutableMatrix:
        r = self.r
        columns = []
        for i, block in enumerate(self.blocks):
            for l, d in block:
                column = [-l] * r if i == 0 else [l if t == i - 1 else 0 for t in range(r)]
                columns.append(column + [d])
        if self.case.has_D_plus:
            columns.append([0] * r + [1])
        if self.case.has_D_minus:
            columns.append([0] * r + [-1])
        return sp.ImmutableMatrix(columns).T

    def invariant_divisor(self, i: int, j: int) -> 'CStarSurfaceDivisor':
        '''
        return the prime divisor D_ij of the j-th ray (counted from 1, in storage order) of block i
        '''
        if not 0 <= i < self.nblocks or not 1 <= j <= len(self.blocks[i]):
            raise IndexError(f"no invariant divisor D_({i},{j}) on {self}")
        return self._prime_divisor(self._index(i, j - 1))

    def D_plus(self) -> 'CStarSurfaceDivisor':
        return self._prime_divisor(self.plus_index)

    def D_minus(self) -> 'CStarSurfaceDivisor':
        return self._prime_divisor(self.minus_index)

    def prime_divisors(self) -> list['CStarSurfaceDivisor']:
        '''all invariant prime divisors in the order of the divisor index'''
        return [self._prime_divisor(k) for k in range(self.divisor_count)]

    def _prime_divisor(self, index: int) -> 'CStarSurfaceDivisor':
        coefficients = [0] * self.divisor_count
        coefficients[index] = 1
        return CStarSurfaceDivisor(self, tuple(coefficients))

    def canonical_divisor(self) -> 'CStarSurfaceDivisor':
        '''
        the canonical divisor -sum(D) + (r-1) * sum_j l_0j D_0j
        '''
        coefficients = [-1] * self.divisor_count
        for k, (l, _) in enumerate(self.blocks[0]):
            coefficients[k] += (self.r - 1) * l
        return CStarSurfaceDivisor(self, tuple(coefficients))

    def anticanonical_divisor(self) -> 'CStarSurfaceDivisor':
        return -self.canonical_divisor()

    def intersection_matrix(self) -> sp.ImmutableMatrix:
        return intersection_matrix(self)

    def dot(self, a: 'CStarSurfaceDivisor', b: 'CStarSurfaceDivisor') -> sp.Rational:
        return a * b

    def gram_matrix(self, divisors: Sequence['CStarSurfaceDivisor']) -> sp.ImmutableMatrix:
        return sp.ImmutableMatrix([[self.dot(a, b) for b in divisors] for a in divisors])

    def contract(self, divisor: 'CStarSurfaceDivisor') -> 'CStarSurface':
        '''
        return the surface obtained by removing the ray of a prime invariant divisor; removing D^+ or D^- turns that end elliptic
        '''
        if divisor.surface != self:
            raise ValueError("the divisor does not live on this surface")
        match divisor.prime_index():
            case ("D", i, j):
                block = self.blocks[i]
                if len(block) == 1:
                    raise ValueError(f"cannot contract the only ray of block {i}")
                blocks = self.blocks[:i] + (block[:j-1] + block[j:],) + self.blocks[i+1:]
                return CStarSurface(blocks, self.case)
            case ("D+",):
                return CStarSurface(self.blocks, CStarSurfaceCase.from_ends(False, self.case.has_D_minus))
            case ("D-",):
                return CStarSurface(self.blocks, CStarSurfaceCase.from_ends(self.case.has_D_plus, False))

    def __str__(self) -> str:
        return f"C*-surface of type {self.case} with ls = {self.ls}, ds = {self.ds}"

    def __repr__(self) -> str:
        return f"CStarSurface.make({self.ls}, {self.ds}, '{self.case}')"


@dataclass(frozen=True)
class CStarSurfaceDivisor:
    '''
    An invariant Weil divisor on a C*-surface, given by its integral coefficients with respect to the divisor index of the surface. The product of two divisors is their intersection number.
    '''
    surface: CStarSurface
    coefficients: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'coefficients', tuple(int(c) for c in self.coefficients))
        if len(self.coefficients) != self.surface.divisor_count:
            raise ValueError(f"expected {self.surface.divisor_count} coefficients, got {len(self.coefficients)}")

    def _same_surface(self, other: 'CStarSurfaceDivisor') -> None:
        if other.surface != self.surface:
            raise ValueError("divisors live on different surfaces")

    def __add__(self, other: 'CStarSurfaceDivisor') -> 'CStarSurfaceDivisor':
        self._same_surface(other)
        return CStarSurfaceDivisor(self.surface, tuple(a + b for a, b in zip(self.coefficients, other.coefficients)))

    def __neg__(self) -> 'CStarSurfaceDivisor':
        return CStarSurfaceDivisor(self.surface, tuple(-a for a in self.coefficients))

    def __sub__(self, other: 'CStarSurfaceDivisor') -> 'CStarSurfaceDivisor':
        return self + (-other)

    def __rmul__(self, factor: int) -> 'CStarSurfaceDivisor':
        return CStarSurfaceDivisor(self.surface, tuple(factor * a for a in self.coefficients))

    def __mul__(self, other):
        if isinstance(other, int):
            return other * self
        if not isinstance(other, CStarSurfaceDivisor):
            return NotImplemented
        self._same_surface(other)
        M = intersection_matrix(self.surface)
        return sp.Rational(sum(a * M[s, t] * b
                               for s, a in enumerate(self.coefficients) if a
                               for t, b in enumerate(other.coefficients) if b))

    @property
    def is_prime(self) -> bool:
        return self.coefficients.count(1) == 1 and self.coefficients.count(0) == len(self.coefficients) - 1

    def prime_index(self) -> tuple:
        '''
        return the label ``("D", i, j)``, ``("D+",)`` or ``("D-",)`` of a prime divisor
        '''
        if not self.is_prime:
            raise ValueError(f"{self} is not a prime divisor")
        return self.surface.divisor_label(self.coefficients.index(1))

    def without_index(self, index: int, surface: CStarSurface) -> 'CStarSurfaceDivisor':
        '''
        return the divisor on ``surface`` with the coefficient at ``index`` removed; used after contracting that prime divisor
        '''
        return CStarSurfaceDivisor(surface, self.coefficients[:index] + self.coefficients[index+1:])

    def __repr__(self) -> str:
        terms = []
        for index, a in enumerate(self.coefficients):
            if a == 0:
                continue
            label = self.surface.divisor_label(index)
            name = f"D({label[1]},{label[2]})" if label[0] == "D" else label[0]
            terms.append(name if a == 1 else f"-{name}" if a == -1 else f"{a}*{name}")
        return " + ".join(terms).replace("+ -", "- ") or "0"


@lru_cache(maxsize=CONFIG.cache_size)
def intersection_matrix(X: CStarSurface) -> sp.ImmutableMatrix:
    '''
    Intersection numbers of the invariant prime divisors of X, in the order of the divisor index.

    Slope-adjacent rays of a block meet with 1/(m_ij - m_ij+1)/(l_ij*l_ij+1). At an elliptic end the extremal rays of all blocks meet each other, at a parabolic end each extremal ray meets the parabolic divisor.
    '''
    if X.case.has_x_plus and X.m_plus <= 0:
        raise ValueError(f"m+ = {X.m_plus} must be positive for an elliptic fixed point x+")
    if X.case.has_x_minus and X.m_minus >= 0:
        raise ValueError(f"m- = {X.m_minus} must be negative for an elliptic fixed point x-")
    gap_plus = -1 / X.m_plus if X.case.has_x_plus else sp.Integer(0)
    gap_minus = 1 / X.m_minus if X.case.has_x_minus else sp.Integer(0)
    n = X.divisor_count
    M = sp.zeros(n, n)
    tops, bottoms = [], []
    for i in range(X.nblocks):
        order = X.slope_order(i)
        rays = [X.blocks[i][k] for k in order]
        indices = [X._index(i, k) for k in order]
        slopes = [sp.Rational(d, l) for l, d in rays]
        gaps = [gap_plus] + [1 / (slopes[t] - slopes[t+1]) for t in range(len(order) - 1)] + [gap_minus]
        for t, (a, (l, _)) in enumerate(zip(indices, rays)):
            M[a, a] = -(gaps[t] + gaps[t+1]) / l**2
            if t + 1 < len(order):
                b = indices[t+1]
                M[a, b] = M[b, a] = gaps[t+1] / (l * rays[t+1][0])
        if X.case.has_D_plus:
            p = X.plus_index
            M[indices[0], p] = M[p, indices[0]] = sp.Rational(1, rays[0][0])
        if X.case.has_D_minus:
            q = X.minus_index
            M[indices[-1], q] = M[q, indices[-1]] = sp.Rational(1, rays[-1][0])
        tops.append((indices[0], rays[0][0]))
        bottoms.append((indices[-1], rays[-1][0]))
    for i, k in itertools.combinations(range(X.nblocks), 2):
        if X.case.has_x_plus:
            (a, l1), (b, l2) = tops[i], tops[k]
            M[a, b] += -gap_plus / (l1 * l2)
            M[b, a] = M[a, b]
        if X.case.has_x_minus:
            (a, l1), (b, l2) = bottoms[i], bottoms[k]
            M[a, b] += -gap_minus / (l1 * l2)
            M[b, a] = M[a, b]
    if X.case.has_D_plus:
        M[X.plus_index, X.plus_index] = -X.m_plus
    if X.case.has_D_minus:
        M[X.minus_index, X.minus_index] = X.m_minus
    logger.debug("computed intersection matrix of %r", X)
    return sp.ImmutableMatrix(M)
