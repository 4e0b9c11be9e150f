import pytest
import sympy as sp

from cstarSurfaces import (CStarSurface, CStarSurfaceCase, NoSuchFixedPointError, AbelianGroup, Sign, EllipticFixedPoint,
                           HyperbolicFixedPoint, ParabolicFixedPoint, fixed_points, x_plus, x_minus, hyperbolic_fixed_point,
                           parabolic_fixed_point, resolve, toric_chart)
from cstarSurfaces.fixed_point import (multiplicity, local_class_group, gorenstein_index, log_canonicity, is_quasismooth,
                                       is_smooth, is_log_terminal, is_log_canonical, is_factorial, is_canonical,
                                       is_terminal)


E6 = CStarSurface.make([[3, 1], [3], [2]], [[-2, -1], [1], [1]], 'EE')
X_PE = CStarSurface.make([[1, 1], [1, 1], [2]], [[-3, -4], [0, -1], [1]], 'PE')
A2 = CStarSurface.make([[1, 1], [1], [1]], [[1, -2], [0], [0]], 'EE')
X_PP = CStarSurface.make([[1], [1], [2]], [[0], [0], [-1]], 'PP')
# l^- < 0 at the elliptic point
X_NLT = CStarSurface.make([[5], [1, 1, 5], [3, 3]], [[4], [8, 3, 3], [4, -5]], 'PE')
# l^+ = 0 at the elliptic point
X_LC = CStarSurface.make([[2, 1], [2], [2], [2]], [[1, -3], [1], [1], [-1]], 'EE')


def test_fixed_points():
    assert fixed_points(E6) == [EllipticFixedPoint(Sign.PLUS), EllipticFixedPoint(Sign.MINUS), HyperbolicFixedPoint(0, 1)]
    assert fixed_points(X_PE) == [EllipticFixedPoint(Sign.MINUS), HyperbolicFixedPoint(0, 1), HyperbolicFixedPoint(1, 1),
                                  ParabolicFixedPoint(Sign.PLUS, 0), ParabolicFixedPoint(Sign.PLUS, 1), ParabolicFixedPoint(Sign.PLUS, 2)]
    assert len(fixed_points(X_PP)) == 6


def test_nonexistent_fixed_points():
    with pytest.raises(NoSuchFixedPointError):
        x_plus(X_PE)
    with pytest.raises(TypeError):
        x_minus(X_PP)
    with pytest.raises(NoSuchFixedPointError):
        parabolic_fixed_point(E6, Sign.PLUS, 0)
    with pytest.raises(IndexError):
        parabolic_fixed_point(X_PE, Sign.PLUS, 5)
    for i, j in [(0, 0), (0, 2), (1, 1), (3, 1)]:
        with pytest.raises(IndexError):
            hyperbolic_fixed_point(E6, i, j)
    with pytest.raises(IndexError):
        resolve(E6, HyperbolicFixedPoint(0, 2))
    with pytest.raises(NoSuchFixedPointError):
        resolve(X_PE, EllipticFixedPoint(Sign.PLUS))


def test_resolve_E6_singularity():
    Y, divisors, discrepancies = resolve(E6, x_plus(E6))
    assert Y.case == CStarSurfaceCase.PE
    assert Y.blocks == (((3, -2), (1, -1), (2, -1), (1, 0)), ((3, 1), (2, 1), (1, 1)), ((2, 1), (1, 1)))
    assert len(divisors) == 6
    assert divisors[-1] == Y.D_plus()
    assert discrepancies == (0,) * 6
    assert all(D * D == -2 for D in divisors)


def test_resolve_x_minus():
    Y, divisors, discrepancies = resolve(E6, x_minus(E6))
    assert Y.case == CStarSurfaceCase.EP
    assert Y.blocks[1][-1] == (1, 0)
    assert Y.blocks[2][-1] == (1, 0)
    assert Y.blocks[0] == E6.blocks[0]
    assert discrepancies == (1, 2, 4)
    assert [D * D for D in divisors] == [-3, -2, -1]
    assert divisors[-1] == Y.D_minus()


def test_resolution_keeps_divisor_index_as_prefix():
    Y = resolve(E6, x_plus(E6)).surface
    for i, block in enumerate(E6.blocks):
        assert Y.blocks[i][:len(block)] == block


def test_resolve_smooth_point():
    x = hyperbolic_fixed_point(E6, 0, 1)
    assert resolve(E6, x) == (E6, (), ())
    assert is_smooth(E6, x)
    assert log_canonicity(E6, x) == sp.oo


def test_resolve_hyperbolic_point():
    Y, divisors, discrepancies = resolve(A2, hyperbolic_fixed_point(A2, 0, 1))
    assert Y.blocks[0] == ((1, 1), (1, -2), (1, 0), (1, -1))
    assert discrepancies == (0, 0)
    assert [D * D for D in divisors] == [-2, -2]
    assert divisors[0] * divisors[1] == 1


def test_resolve_parabolic_points():
    Y, divisors, discrepancies = resolve(X_PE, parabolic_fixed_point(X_PE, Sign.PLUS, 2))
    assert Y.case == CStarSurfaceCase.PE
    assert Y.blocks[2] == ((2, 1), (1, 1))
    assert discrepancies == (0,)
    assert divisors[0] * divisors[0] == -2
    Y, divisors, discrepancies = resolve(X_PP, parabolic_fixed_point(X_PP, Sign.MINUS, 2))
    assert Y.blocks[2] == ((2, -1), (1, -1))
    assert discrepancies == (0,)


def test_wrong_slope_sum():
    X = CStarSurface.make([[1], [1]], [[0], [-1]], 'EP')
    with pytest.raises(ValueError, match="wrong sign"):
        resolve(X, x_plus(X))


def test_toric_chart():
    assert toric_chart(E6, x_plus(E6)).tolist() == [[-3, 3, 0], [-3, 0, 2], [-2, 1, 1]]
    assert toric_chart(X_PP, ParabolicFixedPoint(Sign.MINUS, 2)).tolist() == [[0, 2], [-1, -1]]


def test_local_invariants_E6():
    x = x_plus(E6)
    assert multiplicity(E6, x) == 3
    assert local_class_group(E6, x) == AbelianGroup(0, (3,))
    assert gorenstein_index(E6, x) == 1
    assert log_canonicity(E6, x) == 1
    assert is_log_terminal(E6, x)
    assert not is_quasismooth(E6, x)
    assert not is_smooth(E6, x)
    y = x_minus(E6)
    assert multiplicity(E6, y) == 1
    assert gorenstein_index(E6, y) == 1
    assert log_canonicity(E6, y) == sp.oo
    assert is_smooth(E6, y)


def test_local_invariants_log_terminal_point():
    x = x_minus(X_PE)
    assert multiplicity(X_PE, x) == 9
    assert gorenstein_index(X_PE, x) == 3
    assert log_canonicity(X_PE, x) == sp.Rational(1, 3)
    assert resolve(X_PE, x).discrepancies == (sp.Rational(-1, 3), sp.Rational(-2, 3))
    assert log_canonicity(X_PE, ParabolicFixedPoint(Sign.PLUS, 2)) == 1


def test_parabolic_multiplicity():
    assert multiplicity(X_PP, ParabolicFixedPoint(Sign.MINUS, 2)) == 2
    assert multiplicity(X_PP, ParabolicFixedPoint(Sign.PLUS, 2)) == 2
    assert is_quasismooth(X_PP, ParabolicFixedPoint(Sign.PLUS, 2))


def test_resolve_elliptic_point_with_negative_l():
    x = x_minus(X_NLT)
    Y, divisors, discrepancies = resolve(X_NLT, x)
    assert Y.case == CStarSurfaceCase.PP
    assert divisors[-1] == Y.D_minus()
    assert discrepancies[-1] == -2
    assert sorted(discrepancies) == sorted(sp.Rational(a, 5) for a in [-2, -4, -6, -8, -4, -7, -5, -10])
    assert log_canonicity(X_NLT, x) == -1
    assert not is_log_canonical(X_NLT, x)
    assert not is_log_terminal(X_NLT, x)


def test_resolve_elliptic_point_with_vanishing_l():
    x = x_plus(X_LC)
    Y, divisors, discrepancies = resolve(X_LC, x)
    assert divisors[-1] == Y.D_plus()
    assert discrepancies[-1] == -1
    assert sorted(discrepancies) == [-1] + [sp.Rational(-1, 2)] * 4
    assert log_canonicity(X_LC, x) == 0
    assert is_log_canonical(X_LC, x)
    assert not is_log_terminal(X_LC, x)


@pytest.mark.parametrize("X", [E6, X_PE, A2, X_PP, X_NLT, X_LC, CStarSurface.make([[1], [1]], [[1], [0]], 'EP')])
def test_discrepancies_satisfy_adjunction(X):
    for x in fixed_points(X):
        Y, divisors, discrepancies = resolve(X, x)
        K = Y.canonical_divisor()
        for E in divisors:
            assert K * E == sum(a * (F * E) for a, F in zip(discrepancies, divisors))


def test_singularity_classes():
    x, y = x_plus(E6), x_minus(E6)
    assert is_canonical(E6, x)
    assert not is_terminal(E6, x)
    assert not is_factorial(E6, x)
    assert is_factorial(E6, y)
    assert is_terminal(E6, y)
    z = x_minus(X_PE)
    assert is_log_canonical(X_PE, z, sp.Rational(1, 3))
    assert not is_log_terminal(X_PE, z, sp.Rational(1, 3))
    assert not is_log_canonical(X_PE, z, sp.Rational(1, 2))
    assert not is_canonical(X_PE, z)
