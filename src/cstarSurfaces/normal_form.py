import logging
from functools import cmp_to_key, lru_cache

import sympy as sp

from .admissible import BlockPermutation, CompositeOperation, Inversion, RayPermutation, RowAddition, normalize
from .config import CONFIG
from .surface import CStarSurface, CStarSurfaceCase

logger = logging.getLogger(__name__)


def mfrak_plus(X: CStarSurface) -> int:
    '''the sum of the integral parts (floors) of the maximal slopes of all blocks'''
    return sum(d // l for l, d in map(X.top_ray, range(X.nblocks)))


def mfrak_minus(X: CStarSurface) -> int:
    '''minus the sum of the ceilings of the minimal slopes of all blocks'''
    return sum((-d) // l for l, d in map(X.bottom_ray, range(X.nblocks)))


def beta_plus(X: CStarSurface) -> list[tuple[sp.Rational, ...]]:
    '''
    for every block, the slopes in decreasing order minus the floor of the maximal one
    '''
    result = []
    for i in range(X.nblocks):
        slopes = [sp.Rational(X.blocks[i][k][1], X.blocks[i][k][0]) for k in X.slope_order(i)]
        top = sp.floor(slopes[0])
        result.append(tuple(s - top for s in slopes))
    return result


def beta_minus(X: CStarSurface) -> list[tuple[sp.Rational, ...]]:
    '''
    for every block, the ceiling of the minimal slope minus the slopes in increasing order
    '''
    result = []
    for i in range(X.nblocks):
        slopes = [sp.Rational(X.blocks[i][k][1], X.blocks[i][k][0]) for k in reversed(X.slope_order(i))]
        bottom = sp.ceiling(slopes[0])
        result.append(tuple(bottom - s for s in slopes))
    return result


def compare_beta(v: tuple, w: tuple) -> int:
    '''
    Total order on the vectors of fractional slopes used to sort blocks.

    A longer vector is larger; vectors of the same length are compared entry by entry starting from the last one. This order is a convention that stored normal forms depend on.
    '''
    if len(v) != len(w):
        return -1 if len(v) < len(w) else 1
    for a, b in zip(reversed(v), reversed(w)):
        if a != b:
            return -1 if a < b else 1
    return 0


def _sorted_betas(betas: list[tuple]) -> list[tuple]:
    return sorted(betas, key=cmp_to_key(compare_beta))


def orientation(X: CStarSurface) -> int:
    '''
    Return 1 if X is oriented as its normal form, -1 if it has to be inverted and 0 if X and its inversion have the same normal form.
    '''
    match X.case:
        case CStarSurfaceCase.PE:
            return 1
        case CStarSurfaceCase.EP:
            return -1
    plus, minus = mfrak_plus(X), mfrak_minus(X)
    if plus != minus:
        return 1 if plus > minus else -1
    for v, w in zip(_sorted_betas(beta_plus(X)), _sorted_betas(beta_minus(X))):
        c = compare_beta(v, w)
        if c != 0:
            return c
    return 0


@lru_cache(maxsize=CONFIG.cache_size)
def normal_form_with_operation(X: CStarSurface) -> tuple[CStarSurface, CompositeOperation]:
    '''
    Return the normal form Y of X together with the admissible operation that maps X to Y.

    The normal form is obtained by inverting X if its orientation is negative, sorting the rays of every block by decreasing slope, sorting the blocks by ``compare_beta`` of their fractional slopes and finally adding multiples of l to d so that the maximal slopes of the blocks 1, ..., r lie in [0, 1).

    EXAMPLES::
        >>> X = CStarSurface.from_generator_matrix([[-1, -1, 3, 0, 0], [-1, -1, 0, 3, 0], [-1, -1, 0, 0, 2], [-1, -2, 2, 2, 1]])
        >>> Y, op = normal_form_with_operation(X)
        >>> Y.ls, Y.ds
        ([[2], [3], [3], [1, 1]], [[-1], [2], [2], [0, -1]])
        >>> op(X) == Y
        True
    '''
    operations = []
    Y = X
    if orientation(X) < 0:
        operations.append(Inversion(-1))
        Y = operations[-1](Y)
    operations.append(RayPermutation(tuple(Y.slope_order(i) for i in range(Y.nblocks))))
    Y = operations[-1](Y)
    betas = beta_plus(Y)
    operations.append(BlockPermutation(tuple(sorted(range(Y.nblocks), key=cmp_to_key(lambda a, b: compare_beta(betas[a], betas[b]))))))
    Y = operations[-1](Y)
    operations.append(RowAddition.from_factors([-(d // l) for l, d in (Y.blocks[i][0] for i in range(1, Y.nblocks))]))
    Y = operations[-1](Y)
    logger.debug("normal form of %r is %r", X, Y)
    return Y, normalize(CompositeOperation(tuple(operations)))


def normal_form(X: CStarSurface) -> CStarSurface:
    return normal_form_with_operation(X)[0]


def is_normal_form(X: CStarSurface) -> bool:
    return normal_form(X) == X


def are_isomorphic(X: CStarSurface, Y: CStarSurface) -> tuple[bool, CompositeOperation | None]:
    '''
    Decide whether X and Y are isomorphic. If they are, also return an admissible operation mapping X to Y.
    '''
    X_normal, a = normal_form_with_operation(X)
    Y_normal, b = normal_form_with_operation(Y)
    if X_normal != Y_normal:
        return False, None
    return True, normalize(a.then(b.inverse()))
