import pytest
import sympy as sp

from cstarSurfaces import (cls_div, cls_cone_normal_form, hirzebruch_jung, hilbert_basis_2d, intersect_lines_2d,
                           norm_ratio, discrepancy, toric_affine_surface_resolution)


CONES = [((1, 0), (0, 1)), ((3, -2), (0, 1)), ((3, 1), (0, 1)), ((3, 1), (0, -1)), ((2, 1), (0, -1)),
         ((1, 1), (1, -2)), ((5, 2), (0, 1)), ((7, -3), (1, 4)), ((2, -1), (0, -1))]


def test_cls_div():
    assert cls_div(7, 3) == (3, 2)
    assert cls_div(6, 3) == (2, 0)
    assert cls_div(-1, 3) == (0, 1)
    with pytest.raises(ValueError):
        cls_div(1, 0)


def test_hirzebruch_jung():
    assert hirzebruch_jung(7, 3) == [3, 2, 2]
    assert hirzebruch_jung(5, 2) == [3, 2]
    assert hirzebruch_jung(5, 1) == [5]
    assert hirzebruch_jung(3, 2) == [2, 2]
    assert hirzebruch_jung(1, 0) == []


def test_cone_normal_form():
    d, k, M = cls_cone_normal_form((3, -2), (0, 1))
    assert (d, k) == (3, 2)
    assert abs(M.det()) == 1
    assert list(M * sp.Matrix([3, -2])) == [0, 1]
    assert list(M * sp.Matrix([0, 1])) == [3, -2]


def test_cone_normal_form_dependent_rays():
    with pytest.raises(ValueError, match="no unique cone"):
        cls_cone_normal_form((1, 2), (2, 4))


def test_hilbert_basis_2d():
    assert hilbert_basis_2d((3, -2), (0, 1)) == [(2, -1), (1, 0)]
    assert hilbert_basis_2d((3, 1), (0, 1)) == [(2, 1), (1, 1)]
    assert hilbert_basis_2d((3, 1), (0, -1)) == [(1, 0)]
    assert hilbert_basis_2d((1, 1), (1, -2)) == [(1, 0), (1, -1)]
    assert hilbert_basis_2d((1, 0), (0, 1)) == []


def test_hilbert_basis_of_non_primitive_input():
    assert hilbert_basis_2d((6, -4), (0, sp.Rational(1, 2))) == [(2, -1), (1, 0)]


def test_number_of_exceptional_rays():
    for v1, v2 in CONES:
        d, k, _ = cls_cone_normal_form(v1, v2)
        rays, discrepancies = toric_affine_surface_resolution(v1, v2)
        assert len(rays) == len(hirzebruch_jung(d, k)) == len(discrepancies)
        assert (len(rays) == 0) == (d == 1)


def test_resolution_is_regular():
    for v1, v2 in CONES:
        rays = [v1] + hilbert_basis_2d(v1, v2) + [v2]
        for (a, b), (c, d) in zip(rays, rays[1:]):
            assert abs(a*d - b*c) == 1


def test_intersect_lines_2d():
    assert intersect_lines_2d((3, -2), (0, 1), (0, 0), (2, -1)) == (2, -1)
    assert intersect_lines_2d((2, 1), (0, -1), (0, 0), (1, 0)) == (1, 0)
    with pytest.raises(ValueError, match="No unique intersection"):
        intersect_lines_2d((0, 0), (1, 1), (1, 0), (2, 1))


def test_norm_ratio():
    assert norm_ratio((2, 0), (sp.Rational(1, 2), 0)) == 4
    assert norm_ratio((2, -1), (4, -2)) == sp.Rational(1, 2)


def test_discrepancy():
    assert discrepancy((3, -2), (0, 1), (2, -1)) == 0
    assert discrepancy((3, 1), (0, sp.Rational(-1, 5)), (1, 0)) == 1
    assert discrepancy((2, 1), (0, sp.Rational(-1, 5)), (1, 0)) == 2
    assert discrepancy((3, -5), (0, 1), (1, -2)) == -1
    assert discrepancy((3, -5), (0, 1), (2, -3)) == 0
    with pytest.raises(ValueError):
        discrepancy((1, 1), (2, 2), (1, 0))


def test_toric_affine_surface_resolution():
    assert toric_affine_surface_resolution((2, 1), (0, -1)) == ([(1, 0)], [0])
    assert toric_affine_surface_resolution((1, 0), (0, 1)) == ([], [])
    rays, discrepancies = toric_affine_surface_resolution((2, 1), (0, -1), (0, -3))
    assert rays == [(1, 0)]
    assert discrepancies == [sp.Rational(-1, 3)]
