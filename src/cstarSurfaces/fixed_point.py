import logging
from dataclasses import dataclass
from enum import Enum
from functools import lru_cache
from typing import NamedTuple

import sympy as sp

from .abelian_group import AbelianGroup
from .config import CONFIG
from .surface import CStarSurface, CStarSurfaceCase, CStarSurfaceDivisor, NoSuchFixedPointError, Ray
from .toric import toric_affine_surface_resolution

logger = logging.getLogger(__name__)


class Sign(Enum):
    PLUS = 1
    MINUS = -1

    def __str__(self) -> str:
        return '+' if self is Sign.PLUS else '-'


@dataclass(frozen=True)
class EllipticFixedPoint:
    '''the elliptic fixed point x^+ or x^-'''
    sign: Sign

    def __str__(self) -> str:
        return f"x{self.sign}"


@dataclass(frozen=True)
class HyperbolicFixedPoint:
    '''
    the hyperbolic fixed point x_ij between the j-th and (j+1)-th ray (counted from 1 in slope order) of block i
    '''
    i: int
    j: int

    def __str__(self) -> str:
        return f"x_({self.i},{self.j})"


@dataclass(frozen=True)
class ParabolicFixedPoint:
    '''the parabolic fixed point x^+_i or x^-_i where block i meets D^+ resp. D^-'''
    sign: Sign
    i: int

    def __str__(self) -> str:
        return f"x{self.sign}_{self.i}"


FixedPoint = EllipticFixedPoint | HyperbolicFixedPoint | ParabolicFixedPoint


class Resolution(NamedTuple):
    '''
    A resolution of (some of) the singularities of a surface: the resolved surface, its exceptional divisors and their discrepancies, in the same order.
    '''
    surface: CStarSurface
    exceptional_divisors: tuple[CStarSurfaceDivisor, ...]
    discrepancies: tuple[sp.Rational, ...]


def check_fixed_point(X: CStarSurface, x: FixedPoint) -> None:
    match x:
        case EllipticFixedPoint(sign=Sign.PLUS):
            if not X.case.has_x_plus:
                raise NoSuchFixedPointError(f"a surface of type {X.case} has no elliptic fixed point x+")
        case EllipticFixedPoint(sign=Sign.MINUS):
            if not X.case.has_x_minus:
                raise NoSuchFixedPointError(f"a surface of type {X.case} has no elliptic fixed point x-")
        case HyperbolicFixedPoint(i=i, j=j):
            if not 0 <= i < X.nblocks or not 1 <= j < len(X.blocks[i]):
                raise IndexError(f"no hyperbolic fixed point {x} on {X}")
        case ParabolicFixedPoint(sign=sign, i=i):
            if not 0 <= i < X.nblocks:
                raise IndexError(f"no parabolic fixed point {x} on {X}")
            if not (X.case.has_D_plus if sign is Sign.PLUS else X.case.has_D_minus):
                raise NoSuchFixedPointError(f"a surface of type {X.case} has no parabolic fixed points x{sign}_i")
        case _:
            raise TypeError(f"unsupported fixed point {x!r}")


def x_plus(X: CStarSurface) -> EllipticFixedPoint:
    x = EllipticFixedPoint(Sign.PLUS)
    check_fixed_point(X, x)
    return x


def x_minus(X: CStarSurface) -> EllipticFixedPoint:
    x = EllipticFixedPoint(Sign.MINUS)
    check_fixed_point(X, x)
    return x


def hyperbolic_fixed_point(X: CStarSurface, i: int, j: int) -> HyperbolicFixedPoint:
    x = HyperbolicFixedPoint(i, j)
    check_fixed_point(X, x)
    return x


def parabolic_fixed_point(X: CStarSurface, sign: Sign, i: int) -> ParabolicFixedPoint:
    x = ParabolicFixedPoint(sign, i)
    check_fixed_point(X, x)
    return x


def elliptic_fixed_points(X: CStarSurface) -> list[EllipticFixedPoint]:
    return ([EllipticFixedPoint(Sign.PLUS)] if X.case.has_x_plus else []) + \
           ([EllipticFixedPoint(Sign.MINUS)] if X.case.has_x_minus else [])


def hyperbolic_fixed_points(X: CStarSurface) -> list[HyperbolicFixedPoint]:
    return [HyperbolicFixedPoint(i, j) for i in range(X.nblocks) for j in range(1, len(X.blocks[i]))]


def parabolic_fixed_points(X: CStarSurface) -> list[ParabolicFixedPoint]:
    signs = [sign for sign, present in ((Sign.PLUS, X.case.has_D_plus), (Sign.MINUS, X.case.has_D_minus)) if present]
    return [ParabolicFixedPoint(sign, i) for sign in signs for i in range(X.nblocks)]


def fixed_points(X: CStarSurface) -> list[FixedPoint]:
    '''
    all fixed points of X which may be singular: elliptic ones first, then hyperbolic and parabolic ones
    '''
    return elliptic_fixed_points(X) + hyperbolic_fixed_points(X) + parabolic_fixed_points(X)


def _extremal_ray(X: CStarSurface, sign: Sign, i: int) -> Ray:
    return X.top_ray(i) if sign is Sign.PLUS else X.bottom_ray(i)


@lru_cache(maxsize=CONFIG.cache_size)
def resolve(X: CStarSurface, x: FixedPoint) -> Resolution:
    '''
    Resolve the singularity of X at the fixed point x by a toric resolution of each cone around it.

    The new rays are appended to their blocks, so the resolved surface keeps the divisor index of X as a prefix. Resolving an elliptic fixed point also introduces the parabolic divisor D^+ resp. D^- as last exceptional divisor.

    EXAMPLES::
        >>> X = CStarSurface.make([[3, 1], [3], [2]], [[-2, -1], [1], [1]], 'EE')
        >>> Y, divisors, discrepancies = resolve(X, x_plus(X))
        >>> Y.case, len(divisors), discrepancies
        (<CStarSurfaceCase.PE: 'PE'>, 6, (0, 0, 0, 0, 0, 0))
    '''
    check_fixed_point(X, x)
    blocks = [list(block) for block in X.blocks]
    case = X.case
    added: list[tuple[int, int]] = []
    discrepancies: list[sp.Rational] = []

    def insert(i: int, rays: list[Ray], block_discrepancies: list[sp.Rational]) -> None:
        for ray in rays:
            blocks[i].append(ray)
            added.append((i, len(blocks[i])))
        discrepancies.extend(block_discrepancies)

    match x:
        case EllipticFixedPoint(sign=sign):
            m = X.m_plus if sign is Sign.PLUS else X.m_minus
            ell = X.l_plus if sign is Sign.PLUS else X.l_minus
            if sign.value * m <= 0:
                raise ValueError(f"slope sum {m} at {x} has the wrong sign")
            for i in range(X.nblocks):
                v1 = _extremal_ray(X, sign, i)
                w2 = (v1[0], v1[1] + 1) if ell == 0 else (0, m / ell)
                insert(i, *toric_affine_surface_resolution(v1, (0, sign.value), w2))
            discrepancies.append(sign.value * ell / m - 1)
            if sign is Sign.PLUS:
                case = CStarSurfaceCase.from_ends(True, X.case.has_D_minus)
            else:
                case = CStarSurfaceCase.from_ends(X.case.has_D_plus, True)
        case HyperbolicFixedPoint(i=i, j=j):
            order = X.slope_order(i)
            v1, v2 = X.blocks[i][order[j-1]], X.blocks[i][order[j]]
            insert(i, *toric_affine_surface_resolution(v1, v2))
        case ParabolicFixedPoint(sign=sign, i=i):
            insert(i, *toric_affine_surface_resolution(_extremal_ray(X, sign, i), (0, sign.value)))

    Y = CStarSurface(tuple(tuple(block) for block in blocks), case)
    divisors = [Y.invariant_divisor(i, j) for i, j in added]
    match x:
        case EllipticFixedPoint(sign=Sign.PLUS):
            divisors.append(Y.D_plus())
        case EllipticFixedPoint(sign=Sign.MINUS):
            divisors.append(Y.D_minus())
    logger.debug("resolved %s of %r with %d exceptional divisors", x, X, len(divisors))
    return Resolution(Y, tuple(divisors), tuple(sp.Rational(a) for a in discrepancies))


def toric_chart(X: CStarSurface, x: FixedPoint) -> sp.ImmutableMatrix:
    '''
    Return the matrix whose columns are the rays of the affine toric chart around x.

    For the elliptic fixed points these are the embedded extremal rays of all blocks, for the hyperbolic and parabolic ones the two rays of a two-dimensional cone.
    '''
    check_fixed_point(X, x)
    match x:
        case EllipticFixedPoint(sign=sign):
            P = X.generator_matrix
            return sp.ImmutableMatrix.hstack(*(P.col(X._index(i, X.slope_order(i)[0 if sign is Sign.PLUS else -1]))
                                               for i in range(X.nblocks)))
        case HyperbolicFixedPoint(i=i, j=j):
            order = X.slope_order(i)
            (l1, d1), (l2, d2) = X.blocks[i][order[j-1]], X.blocks[i][order[j]]
            return sp.ImmutableMatrix([[l1, l2], [d1, d2]])
        case ParabolicFixedPoint(sign=Sign.PLUS, i=i):
            l, d = X.top_ray(i)
            return sp.ImmutableMatrix([[l, 0], [d, 1]])
        case ParabolicFixedPoint(sign=Sign.MINUS, i=i):
            l, d = X.bottom_ray(i)
            return sp.ImmutableMatrix([[0, l], [-1, d]])


def multiplicity(X: CStarSurface, x: FixedPoint) -> int:
    '''the order of the local class group at x'''
    return abs(int(toric_chart(X, x).det()))


def local_class_group(X: CStarSurface, x: FixedPoint) -> AbelianGroup:
    return AbelianGroup.cokernel(toric_chart(X, x).T)


def gorenstein_index(X: CStarSurface, x: FixedPoint) -> int:
    '''
    The smallest positive k such that k*K_X is Cartier near x.

    This is the common denominator of the linear form u representing -K_X on the chart of x. At the elliptic fixed points the canonical divisor carries the extra term (r-1)*l_0 on the extremal ray of block 0.
    '''
    chart = toric_chart(X, x)
    values = [1] * chart.cols
    if isinstance(x, EllipticFixedPoint):
        values[0] = 1 - (X.r - 1) * _extremal_ray(X, x.sign, 0)[0]
    u = chart.T.LUsolve(sp.Matrix(values))
    return int(sp.ilcm(*(sp.Rational(a).q for a in u), 1))


def log_canonicity(X: CStarSurface, x: FixedPoint):
    '''
    The maximal e such that X is e-log canonical at x, i.e. 1 + the minimal discrepancy of its resolution. Returns ``sympy.oo`` for points where this exceeds 1 (in particular for smooth points).
    '''
    discrepancies = resolve(X, x).discrepancies
    if not discrepancies:
        return sp.oo
    value = min(discrepancies) + 1
    return sp.oo if value > 1 else value


def is_quasismooth(X: CStarSurface, x: FixedPoint) -> bool:
    '''
    hyperbolic and parabolic fixed points are always quasismooth, an elliptic one iff at most two of its extremal rays have l > 1
    '''
    check_fixed_point(X, x)
    if not isinstance(x, EllipticFixedPoint):
        return True
    return sum(1 for i in range(X.nblocks) if _extremal_ray(X, x.sign, i)[0] > 1) <= 2


def is_factorial(X: CStarSurface, x: FixedPoint) -> bool:
    '''whether the local class group at x is trivial'''
    return multiplicity(X, x) == 1


def is_smooth(X: CStarSurface, x: FixedPoint) -> bool:
    return is_quasismooth(X, x) and is_factorial(X, x)


def is_log_terminal(X: CStarSurface, x: FixedPoint, epsilon=0) -> bool:
    '''whether X is epsilon-log terminal at x; epsilon = 0 is the usual notion'''
    return log_canonicity(X, x) > epsilon


def is_log_canonical(X: CStarSurface, x: FixedPoint, epsilon=0) -> bool:
    return log_canonicity(X, x) >= epsilon


def is_canonical(X: CStarSurface, x: FixedPoint) -> bool:
    return is_log_canonical(X, x, 1)


def is_terminal(X: CStarSurface, x: FixedPoint) -> bool:
    '''terminal surface singularities are smooth points'''
    return is_log_terminal(X, x, 1)
