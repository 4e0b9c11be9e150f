import sympy as sp
from sympy.core.intfunc import igcdex
from collections.abc import Sequence

# Resolution of two-dimensional affine toric varieties, i.e. of a single cone
# spanned by two rays in the plane. All arithmetic is exact.

Vector = Sequence[int | sp.Rational]


def cls_div(l: int, d: int) -> tuple[int, int]:
    '''
    return the pair (s, k) with l = s*d - k and 0 <= k < d.

    EXAMPLES::
        >>> cls_div(7, 3)
        (3, 2)
    '''
    if d <= 0:
        raise ValueError(f"divisor must be positive, got {d}")
    k = (-l) % d
    return (l + k) // d, k


def primitive_vector(v: Vector) -> tuple[int, int]:
    '''
    return the primitive integral vector on the ray through v
    '''
    v = [sp.Rational(a) for a in v]
    denominator = sp.ilcm(*(a.q for a in v))
    w = [int(a * denominator) for a in v]
    g = sp.igcd(*w)
    if g == 0:
        raise ValueError("zero vector does not span a ray")
    return tuple(a // g for a in w)


def cls_cone_normal_form(v1: Vector, v2: Vector) -> tuple[int, int, sp.Matrix]:
    '''
    Bring the cone spanned by two primitive vectors into normal form.

    Returns (d, k, M) where M is unimodular, M*v1 = (0,1), M*v2 = (d,-k) and 0 <= k < d.

    INPUT:
        - ``v1``, ``v2`` -- primitive integral vectors, linearly independent.

    EXAMPLES::
        >>> d, k, M = cls_cone_normal_form((3, -2), (0, 1))
        >>> d, k
        (3, 2)
    '''
    u11, u21 = (int(a) for a in v1)
    u12, u22 = (int(a) for a in v2)
    det = u11*u22 - u12*u21
    if det == 0:
        raise ValueError(f"no unique cone spanned by {tuple(v1)} and {tuple(v2)}")
    x, y, g = igcdex(u11, u21)
    if g != 1:
        raise ValueError(f"{tuple(v1)} is not primitive")
    sg = 1 if det > 0 else -1
    d = abs(det)
    s, k = cls_div(x*u12 + y*u22, d)
    M = sp.Matrix([[-sg*u21, sg*u11], [x + sg*s*u21, y - sg*s*u11]])
    return d, k, M


def hirzebruch_jung(x: int, y: int) -> list[int]:
    '''
    return the Hirzebruch-Jung continued fraction of x/y, i.e. the list [a_1,...,a_m] with x/y = a_1 - 1/(a_2 - 1/(... - 1/a_m)).

    EXAMPLES::
        >>> hirzebruch_jung(7, 3)
        [3, 2, 2]
        >>> hirzebruch_jung(5, 2)
        [3, 2]
    '''
    result = []
    while y > 0:
        result.append((x + (-x) % y) // y)
        x, y = y, (-x) % y
    return result


def hilbert_basis_2d(v1: Vector, v2: Vector) -> list[tuple[int, int]]:
    '''
    return the inner elements of the Hilbert basis of the cone spanned by v1 and v2, ordered from v1 towards v2. These are the rays of the minimal resolution of the corresponding affine toric surface.
    '''
    v1, v2 = primitive_vector(v1), primitive_vector(v2)
    d, k, M = cls_cone_normal_form(v1, v2)
    M_inv = M.inv()
    x, y = 0, 1
    a, b = -1, 0
    basis = []
    for z in hirzebruch_jung(d, k):
        w = M_inv * sp.Matrix([y, -b])
        basis.append((int(w[0]), int(w[1])))
        x, y = y, z*y - x
        a, b = b, z*b - a
    return basis


def intersect_lines_2d(v1: Vector, v2: Vector, w1: Vector, w2: Vector) -> tuple[sp.Rational, sp.Rational]:
    '''
    return the intersection point of the line through v1, v2 with the line through w1, w2
    '''
    A = sp.Matrix([
        [v2[1] - v1[1], v1[0] - v2[0]],
        [w2[1] - w1[1], w1[0] - w2[0]],
    ])
    b = sp.Matrix([v1[0]*v2[1] - v2[0]*v1[1], w1[0]*w2[1] - w2[0]*w1[1]])
    if A.det() == 0:
        raise ValueError(f"No unique intersection of the lines through {tuple(v1)}, {tuple(v2)} and {tuple(w1)}, {tuple(w2)}")
    p = A.LUsolve(b)
    return sp.Rational(p[0]), sp.Rational(p[1])


def norm_ratio(a: Vector, b: Vector) -> sp.Rational:
    '''
    ratio of lengths of two vectors on the same line through the origin
    '''
    if b[1] == 0:
        return sp.Rational(a[0]) / sp.Rational(b[0])
    return sp.Rational(a[1]) / sp.Rational(b[1])


def discrepancy(v1: Vector, v2: Vector, w: Vector) -> sp.Rational:
    '''
    Discrepancy of the ray w with respect to the line through v1 and v2.

    This is <u, w> - 1 for the linear form u taking the value 1 on v1 and v2. It equals the ratio of w to the point where its ray meets the line, minus 1, and is -1 if the ray is parallel to the line.

    EXAMPLES::
        >>> discrepancy((3, -5), (0, 1), (1, -2))
        -1
    '''
    A = sp.Matrix([[sp.Rational(a) for a in v1], [sp.Rational(a) for a in v2]])
    if A.det() == 0:
        raise ValueError(f"the line through {tuple(v1)} and {tuple(v2)} passes through the origin")
    u = A.LUsolve(sp.Matrix([1, 1]))
    return sp.Rational(u[0] * w[0] + u[1] * w[1]) - 1


def toric_affine_surface_resolution(v1: Vector, v2: Vector, w2: Vector | None = None) -> tuple[list[tuple[int, int]], list[sp.Rational]]:
    '''
    Resolve the affine toric surface given by the cone spanned by v1 and v2.

    INPUT:
        - ``v1``, ``v2`` -- rays spanning the cone.
        - ``w2`` -- the second point of the line against which discrepancies are measured, defaults to ``v2``; the first one is always ``v1``.

    OUTPUT: the exceptional rays, ordered from v1 towards v2, and their discrepancies. Both are empty iff the cone is regular.
    '''
    w2 = v2 if w2 is None else w2
    rays = hilbert_basis_2d(v1, v2)
    discrepancies = [discrepancy(v1, w2, w) for w in rays]
    return rays, discrepancies
