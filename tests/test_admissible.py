import pytest

from cstarSurfaces import (CStarSurface, CStarSurfaceCase, Inversion, RayPermutation, BlockPermutation, RowAddition,
                           CompositeOperation, normalize)
from cstarSurfaces.admissible import KIND_ORDER, swap, merge


E6 = CStarSurface.make([[3, 1], [3], [2]], [[-2, -1], [1], [1]], 'EE')
X1 = CStarSurface.make([[1, 2, 3, 1], [5], [1, 1]], [[3, 3, -1, -2], [2], [0, -1]], 'EE')
X_PE = CStarSurface.make([[1, 1], [1, 1], [2]], [[-3, -4], [0, -1], [1]], 'PE')

OPERATIONS = [
    Inversion(-1),
    RayPermutation(((3, 0, 2, 1), (0,), (1, 0))),
    BlockPermutation((2, 0, 1)),
    RowAddition((1, -2, 1)),
]


def test_inversion():
    Y = Inversion(-1)(E6)
    assert Y.ds == [[2, 1], [-1], [-1]]
    assert Y.case == CStarSurfaceCase.EE
    assert Inversion(-1)(X_PE).case == CStarSurfaceCase.EP
    assert Inversion(1)(X_PE) == X_PE
    with pytest.raises(ValueError):
        Inversion(2)


def test_ray_permutation():
    Y = RayPermutation(((1, 0), (0,), (0,)))(E6)
    assert Y.blocks[0] == ((1, -1), (3, -2))
    with pytest.raises(ValueError):
        RayPermutation(((0, 0), (0,), (0,)))
    with pytest.raises(ValueError):
        RayPermutation(((0,), (0,), (0,)))(E6)


def test_block_permutation():
    Y = BlockPermutation((2, 0, 1))(E6)
    assert Y.blocks == (((2, 1),), ((3, -2), (1, -1)), ((3, 1),))
    with pytest.raises(ValueError):
        BlockPermutation((1, 0))(E6)


def test_row_addition():
    Y = RowAddition.from_factors([1, -1])(E6)
    assert Y.blocks == (((3, -2), (1, -1)), ((3, 4),), ((2, -1),))
    assert RowAddition.from_factors([1, -1]).factors == (0, 1, -1)
    with pytest.raises(ValueError, match="sum up to zero"):
        RowAddition((1, 1, 1))
    with pytest.raises(ValueError):
        RowAddition((1, -1))(E6)


def test_inverse():
    for op in OPERATIONS:
        assert op.inverse()(op(X1)) == X1
        assert op(op.inverse()(X1)) == X1
    composite = CompositeOperation(tuple(OPERATIONS))
    assert composite.inverse()(composite(X1)) == X1


def test_composition_is_applied_from_left_to_right():
    a, b = BlockPermutation((2, 0, 1)), RowAddition((1, -2, 1))
    assert a.then(b)(X1) == b(a(X1))
    assert a.then(b).then(a).operations == (a, b, a)


def test_identity():
    assert Inversion(1).is_identity()
    assert RowAddition((0, 0, 0)).is_identity()
    assert BlockPermutation((0, 1, 2)).is_identity()
    assert not RayPermutation(((1, 0),)).is_identity()
    assert CompositeOperation().is_identity()
    assert CompositeOperation()(X1) == X1


def test_swap():
    pairs = [
        (RowAddition((1, -2, 1)), Inversion(-1)),
        (BlockPermutation((1, 2, 0)), Inversion(-1)),
        (RayPermutation(((3, 2, 1, 0), (0,), (1, 0))), Inversion(-1)),
        (BlockPermutation((1, 2, 0)), RayPermutation(((0,), (1, 0), (3, 2, 1, 0)))),
        (RowAddition((1, -2, 1)), RayPermutation(((3, 2, 1, 0), (0,), (1, 0)))),
        (RowAddition((1, -2, 1)), BlockPermutation((1, 2, 0))),
    ]
    for a, b in pairs:
        b_, a_ = swap(a, b)
        assert type(a_) is type(a) and type(b_) is type(b)
        assert b_.then(a_)(X1) == a.then(b)(X1)
    with pytest.raises(ValueError):
        swap(Inversion(-1), RowAddition((1, -2, 1)))


def test_merge():
    for op in OPERATIONS:
        assert merge(op, op.inverse()).is_identity()
    a, b = BlockPermutation((1, 2, 0)), BlockPermutation((2, 0, 1))
    assert merge(b, b)(X1) == b(b(X1))
    assert merge(a, b).is_identity()
    with pytest.raises(ValueError):
        merge(Inversion(-1), RowAddition((1, -2, 1)))


def test_normalize():
    composite = CompositeOperation((
        RowAddition((1, -2, 1)),
        BlockPermutation((1, 2, 0)),
        Inversion(-1),
        RayPermutation(((0,), (1, 0), (3, 2, 1, 0))),
        Inversion(-1),
        RowAddition((0, 3, -3)),
    ))
    normalized = normalize(composite)
    kinds = [KIND_ORDER[type(op)] for op in normalized.operations]
    assert kinds == sorted(set(kinds))
    assert normalized(X1) == composite(X1)
    assert Inversion not in map(type, normalized.operations)


def test_normalize_drops_identities():
    assert normalize(Inversion(-1).then(Inversion(-1))).operations == ()
    assert normalize(RowAddition((1, -1, 0)).then(RowAddition((-1, 1, 0)))).is_identity()
