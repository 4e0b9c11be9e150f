import sympy as sp

from . import fixed_point as fp
from .abelian_group import AbelianGroup
from .surface import CStarSurface

# Global invariants of a C*-surface, mostly collected from its fixed points.


def class_group(X: CStarSurface) -> AbelianGroup:
    '''the divisor class group, i.e. the cokernel of the transposed generator matrix'''
    return AbelianGroup.cokernel(X.generator_matrix.T)


def picard_index(X: CStarSurface) -> int:
    '''
    the index of the Picard group in the class group
    '''
    product = 1
    for x in fp.fixed_points(X):
        product *= fp.multiplicity(X, x)
    return product // class_group(X).torsion_order


def gorenstein_index(X: CStarSurface) -> int:
    return int(sp.ilcm(1, 1, *(fp.gorenstein_index(X, x) for x in fp.fixed_points(X))))


def is_gorenstein(X: CStarSurface) -> bool:
    return gorenstein_index(X) == 1


def log_canonicity(X: CStarSurface):
    '''
    the minimum of the log canonicities of all fixed points, ``sympy.oo`` if X is smooth
    '''
    return min((fp.log_canonicity(X, x) for x in fp.fixed_points(X)), default=sp.oo)


def is_log_terminal(X: CStarSurface, epsilon=0) -> bool:
    '''whether X is epsilon-log terminal; epsilon = 0 is the usual notion'''
    return log_canonicity(X) > epsilon


def is_log_canonical(X: CStarSurface, epsilon=0) -> bool:
    return log_canonicity(X) >= epsilon


def is_canonical(X: CStarSurface) -> bool:
    return is_log_canonical(X, 1)


def is_terminal(X: CStarSurface) -> bool:
    return is_log_terminal(X, 1)


def is_factorial(X: CStarSurface) -> bool:
    return all(fp.is_factorial(X, x) for x in fp.fixed_points(X))


def is_quasismooth(X: CStarSurface) -> bool:
    return all(fp.is_quasismooth(X, x) for x in fp.fixed_points(X))


def is_smooth(X: CStarSurface) -> bool:
    return all(fp.is_smooth(X, x) for x in fp.fixed_points(X))


def singular_points(X: CStarSurface) -> list[fp.FixedPoint]:
    return [x for x in fp.fixed_points(X) if not fp.is_smooth(X, x)]


def number_of_singularities(X: CStarSurface) -> int:
    return len(singular_points(X))


def anticanonical_self_intersection(X: CStarSurface) -> sp.Rational:
    '''(-K_X)^2 computed from the intersection matrix'''
    K = X.anticanonical_divisor()
    return K * K


def degree(X: CStarSurface) -> sp.Rational:
    '''
    (-K_X)^2 computed from the local contributions of the fixed points.

    EXAMPLES::
        >>> degree(CStarSurface.make([[3, 1], [3], [2]], [[-2, -1], [1], [1]], 'EE'))
        3
    '''
    result = sp.Rational(0)
    for x in fp.hyperbolic_fixed_points(X):
        order = X.slope_order(x.i)
        l1 = X.blocks[x.i][order[x.j-1]][0]
        l2 = X.blocks[x.i][order[x.j]][0]
        result += (2 - sp.Rational(l2, l1) - sp.Rational(l1, l2)) / fp.multiplicity(X, x)
    if X.case.has_x_plus:
        result += X.l_plus**2 / X.m_plus
    else:
        result += 2*X.l_plus - X.m_plus
    if X.case.has_x_minus:
        result += -X.l_minus**2 / X.m_minus
    else:
        result += 2*X.l_minus + X.m_minus
    return result
