import logging
from collections.abc import Sequence
from dataclasses import dataclass

from .surface import CStarSurface

logger = logging.getLogger(__name__)


class AdmissibleOperation:
    '''
    Base class of the admissible operations, i.e. the transformations of the defining triple that do not change the isomorphism class of the surface. Operations are applied by calling them on a surface; ``a.then(b)`` first applies a, then b.
    '''

    def __call__(self, X: CStarSurface) -> CStarSurface:
        raise NotImplementedError

    def inverse(self) -> 'AdmissibleOperation':
        raise NotImplementedError

    def is_identity(self) -> bool:
        raise NotImplementedError

    @property
    def operations(self) -> tuple['AdmissibleOperation', ...]:
        return (self,)

    def then(self, other: 'AdmissibleOperation') -> 'CompositeOperation':
        return CompositeOperation(self.operations + other.operations)


def _check_permutation(perm: Sequence[int], n: int, what: str) -> None:
    if sorted(perm) != list(range(n)):
        raise ValueError(f"{what} {tuple(perm)} is not a permutation of {n} elements")


def _inverse_permutation(perm: Sequence[int]) -> tuple[int, ...]:
    inverse = [0] * len(perm)
    for k, p in enumerate(perm):
        inverse[p] = k
    return tuple(inverse)


@dataclass(frozen=True)
class Inversion(AdmissibleOperation):
    '''
    multiplies the last row of the generator matrix by ``factor``; the factor -1 exchanges the source and the sink
    '''
    factor: int = -1

    def __post_init__(self) -> None:
        if self.factor not in (1, -1):
            raise ValueError(f"inversion factor must be 1 or -1, got {self.factor}")

    def __call__(self, X: CStarSurface) -> CStarSurface:
        if self.factor == 1:
            return X
        return CStarSurface(tuple(tuple((l, -d) for l, d in block) for block in X.blocks), X.case.inverted())

    def inverse(self) -> 'Inversion':
        return self

    def is_identity(self) -> bool:
        return self.factor == 1


@dataclass(frozen=True)
class RayPermutation(AdmissibleOperation):
    '''
    permutes the rays inside each block: ray j of the new block i is ray ``perms[i][j]`` of the old one
    '''
    perms: tuple[tuple[int, ...], ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'perms', tuple(tuple(perm) for perm in self.perms))
        for perm in self.perms:
            _check_permutation(perm, len(perm), "ray permutation")

    def __call__(self, X: CStarSurface) -> CStarSurface:
        if X.block_sizes != tuple(len(perm) for perm in self.perms):
            raise ValueError(f"ray permutation {self.perms} does not fit block sizes {X.block_sizes}")
        return CStarSurface(tuple(tuple(block[k] for k in perm) for block, perm in zip(X.blocks, self.perms)), X.case)

    def inverse(self) -> 'RayPermutation':
        return RayPermutation(tuple(_inverse_permutation(perm) for perm in self.perms))

    def is_identity(self) -> bool:
        return all(perm == tuple(range(len(perm))) for perm in self.perms)


@dataclass(frozen=True)
class BlockPermutation(AdmissibleOperation):
    '''
    permutes the blocks: the new block i is the old block ``perm[i]``
    '''
    perm: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'perm', tuple(self.perm))
        _check_permutation(self.perm, len(self.perm), "block permutation")

    def __call__(self, X: CStarSurface) -> CStarSurface:
        if X.nblocks != len(self.perm):
            raise ValueError(f"block permutation {self.perm} does not fit {X.nblocks} blocks")
        return CStarSurface(tuple(X.blocks[k] for k in self.perm), X.case)

    def inverse(self) -> 'BlockPermutation':
        return BlockPermutation(_inverse_permutation(self.perm))

    def is_identity(self) -> bool:
        return self.perm == tuple(range(len(self.perm)))


@dataclass(frozen=True)
class RowAddition(AdmissibleOperation):
    '''
    adds integral multiples of the first r rows of the generator matrix to the last one, i.e. replaces d_ij by d_ij + factors[i]*l_ij. The factors sum up to zero.
    '''
    factors: tuple[int, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, 'factors', tuple(int(c) for c in self.factors))
        if sum(self.factors) != 0:
            raise ValueError(f"factors of a row addition must sum up to zero, got {self.factors}")

    @classmethod
    def from_factors(cls, factors: Sequence[int]) -> 'RowAddition':
        '''
        make the row addition with the given factors of blocks 1, ..., r; the factor of block 0 is determined by them
        '''
        return cls((-sum(factors),) + tuple(factors))

    def __call__(self, X: CStarSurface) -> CStarSurface:
        if X.nblocks != len(self.factors):
            raise ValueError(f"row addition {self.factors} does not fit {X.nblocks} blocks")
        return CStarSurface(tuple(tuple((l, d + c*l) for l, d in block) for block, c in zip(X.blocks, self.factors)), X.case)

    def inverse(self) -> 'RowAddition':
        return RowAddition(tuple(-c for c in self.factors))

    def is_identity(self) -> bool:
        return all(c == 0 for c in self.factors)


@dataclass(frozen=True)
class CompositeOperation(AdmissibleOperation):
    '''
    a sequence of admissible operations, applied from left to right
    '''
    ops: tuple[AdmissibleOperation, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, 'ops', tuple(op for operation in self.ops for op in operation.operations))

    @property
    def operations(self) -> tuple[AdmissibleOperation, ...]:
        return self.ops

    def __call__(self, X: CStarSurface) -> CStarSurface:
        for op in self.ops:
            X = op(X)
        return X

    def inverse(self) -> 'CompositeOperation':
        return CompositeOperation(tuple(op.inverse() for op in reversed(self.ops)))

    def is_identity(self) -> bool:
        return all(op.is_identity() for op in self.ops)


KIND_ORDER = {Inversion: 0, RayPermutation: 1, BlockPermutation: 2, RowAddition: 3}


def swap(a: AdmissibleOperation, b: AdmissibleOperation) -> tuple[AdmissibleOperation, AdmissibleOperation]:
    '''
    For operations of different kinds return (b', a') of the same kinds as b and a such that applying b' then a' equals applying a then b.
    '''
    match a, b:
        case (RayPermutation() | BlockPermutation()), Inversion():
            return b, a
        case RowAddition(factors=c), Inversion(factor=f):
            return b, RowAddition(tuple(f*x for x in c))
        case BlockPermutation(perm=p), RayPermutation(perms=q):
            p_inv = _inverse_permutation(p)
            return RayPermutation(tuple(q[p_inv[k]] for k in range(len(p)))), a
        case RowAddition(), RayPermutation():
            return b, a
        case RowAddition(factors=c), BlockPermutation(perm=p):
            return b, RowAddition(tuple(c[k] for k in p))
    raise ValueError(f"cannot swap {a} and {b}")


def merge(a: AdmissibleOperation, b: AdmissibleOperation) -> AdmissibleOperation:
    '''combine two operations of the same kind into one, applying a first'''
    match a, b:
        case Inversion(factor=f), Inversion(factor=g):
            return Inversion(f*g)
        case RayPermutation(perms=q1), RayPermutation(perms=q2):
            return RayPermutation(tuple(tuple(p1[k] for k in p2) for p1, p2 in zip(q1, q2)))
        case BlockPermutation(perm=p1), BlockPermutation(perm=p2):
            return BlockPermutation(tuple(p1[k] for k in p2))
        case RowAddition(factors=c1), RowAddition(factors=c2):
            return RowAddition(tuple(x + y for x, y in zip(c1, c2)))
    raise ValueError(f"cannot merge {a} and {b}")


def normalize(operation: AdmissibleOperation) -> CompositeOperation:
    '''
    Bring a composed operation into the form (inversion, ray permutation, block permutation, row addition), omitting the kinds that act trivially.

    The operations are first bubble sorted by their kind using ``swap``, then neighbours of the same kind are combined with ``merge``.
    '''
    ops = list(operation.operations)
    unsorted = True
    while unsorted:
        unsorted = False
        for t in range(len(ops) - 1):
            if KIND_ORDER[type(ops[t])] > KIND_ORDER[type(ops[t+1])]:
                ops[t], ops[t+1] = swap(ops[t], ops[t+1])
                unsorted = True
    merged: list[AdmissibleOperation] = []
    for op in ops:
        if merged and type(merged[-1]) is type(op):
            merged[-1] = merge(merged[-1], op)
        else:
            merged.append(op)
    result = CompositeOperation(tuple(op for op in merged if not op.is_identity()))
    logger.debug("normalized %d operations to %s", len(ops), result)
    return result
