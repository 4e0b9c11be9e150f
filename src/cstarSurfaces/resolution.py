import logging
from functools import lru_cache

import sympy as sp

from .config import CONFIG
from .fixed_point import FixedPoint, Resolution, fixed_points, resolve
from .surface import CStarSurface, CStarSurfaceCase, CStarSurfaceDivisor

logger = logging.getLogger(__name__)


def _divisor_from_label(Y: CStarSurface, label: tuple) -> CStarSurfaceDivisor:
    match label:
        case ("D", i, j):
            return Y.invariant_divisor(i, j)
        case ("D+",):
            return Y.D_plus()
        case ("D-",):
            return Y.D_minus()
    raise ValueError(f"unknown divisor label {label}")


@lru_cache(maxsize=CONFIG.cache_size)
def canonical_resolution(X: CStarSurface) -> Resolution:
    '''
    Resolve all fixed points of X at once.

    The rays inserted for the single fixed points are appended block by block in the order of ``fixed_points(X)``; exceptional divisors and discrepancies follow the same order.
    '''
    blocks = [list(block) for block in X.blocks]
    parabolic_plus, parabolic_minus = X.case.has_D_plus, X.case.has_D_minus
    labels = []
    discrepancies = []
    for x in fixed_points(X):
        Y, divisors, x_discrepancies = resolve(X, x)
        for divisor, discrepancy in zip(divisors, x_discrepancies):
            match divisor.prime_index():
                case ("D", i, j):
                    blocks[i].append(Y.blocks[i][j-1])
                    labels.append(("D", i, len(blocks[i])))
                case ("D+",):
                    parabolic_plus = True
                    labels.append(("D+",))
                case ("D-",):
                    parabolic_minus = True
                    labels.append(("D-",))
            discrepancies.append(discrepancy)
    Z = CStarSurface(tuple(tuple(block) for block in blocks), CStarSurfaceCase.from_ends(parabolic_plus, parabolic_minus))
    logger.debug("canonical resolution of %r has %d exceptional divisors", X, len(labels))
    return Resolution(Z, tuple(_divisor_from_label(Z, label) for label in labels), tuple(discrepancies))


def contract_minus_one_curves(resolution: Resolution) -> Resolution:
    '''
    Contract exceptional (-1)-curves of a resolution until there are none left.

    In each step the first exceptional divisor with self-intersection -1 is contracted; its slot is removed from the coefficient vectors of the remaining exceptional divisors, which are moved to the contracted surface.
    '''
    Y, divisors, discrepancies = resolution
    divisors, discrepancies = list(divisors), list(discrepancies)
    while True:
        position = next((t for t, D in enumerate(divisors) if D * D == -1), None)
        if position is None:
            break
        E = divisors.pop(position)
        discrepancies.pop(position)
        index = E.coefficients.index(1)
        contracted = Y.contract(E)
        logger.debug("contracting (-1)-curve %s", E.prime_index())
        divisors = [D.without_index(index, contracted) for D in divisors]
        Y = contracted
    return Resolution(Y, tuple(divisors), tuple(discrepancies))


@lru_cache(maxsize=CONFIG.cache_size)
def _minimal_resolution(X: CStarSurface) -> Resolution:
    return contract_minus_one_curves(canonical_resolution(X))


def minimal_resolution(X: CStarSurface | Resolution) -> Resolution:
    '''
    return the minimal resolution of a surface, obtained from its canonical resolution by contracting (-1)-curves. A given resolution is reduced in the same way, so the operation is idempotent.
    '''
    if isinstance(X, Resolution):
        return contract_minus_one_curves(X)
    return _minimal_resolution(X)


def minimal_resolution_at(X: CStarSurface, x: FixedPoint) -> Resolution:
    '''the minimal resolution of the singularity of X at x only'''
    return contract_minus_one_curves(resolve(X, x))


def resolution_graph(resolution: Resolution) -> sp.ImmutableMatrix:
    '''the intersection matrix of the exceptional divisors'''
    return resolution.surface.gram_matrix(resolution.exceptional_divisors)


def resolution_graphs(X: CStarSurface) -> dict[FixedPoint, sp.ImmutableMatrix]:
    '''the resolution graph of the minimal resolution at each fixed point of X'''
    return {x: resolution_graph(minimal_resolution_at(X, x)) for x in fixed_points(X)}


def du_val_type(X: CStarSurface, x: FixedPoint) -> str | None:
    '''
    Return the ADE type of the singularity of X at x, like ``'A2'``, ``'D4'`` or ``'E6'``, and ``'A0'`` for smooth points. Returns None if x is not a du Val singularity.
    '''
    resolution = minimal_resolution_at(X, x)
    n = len(resolution.exceptional_divisors)
    if n == 0:
        return 'A0'
    if any(a != 0 for a in resolution.discrepancies):
        return None
    G = resolution_graph(resolution)
    if any(G[t, t] != -2 for t in range(n)):
        return None
    neighbours = [[s for s in range(n) if s != t and G[s, t] != 0] for t in range(n)]
    degrees = [len(nb) for nb in neighbours]
    if max(degrees) <= 2:
        return f'A{n}'
    branch = degrees.index(3)

    def arm_length(previous: int, current: int) -> int:
        length = 1
        while True:
            following = [s for s in neighbours[current] if s != previous]
            if not following:
                return length
            previous, current = current, following[0]
            length += 1

    arms = sorted(arm_length(branch, s) for s in neighbours[branch])
    match arms:
        case [1, 1, _]:
            return f'D{n}'
        case [1, 2, 2]:
            return 'E6'
        case [1, 2, 3]:
            return 'E7'
        case [1, 2, 4]:
            return 'E8'
    return None
