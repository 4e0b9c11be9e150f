from .config import Config, CONFIG, configure_logging
from .surface import CStarSurface, CStarSurfaceCase, CStarSurfaceDivisor, NoSuchFixedPointError, intersection_matrix
from .toric import cls_div, cls_cone_normal_form, hirzebruch_jung, hilbert_basis_2d, intersect_lines_2d, norm_ratio, discrepancy, toric_affine_surface_resolution
from .abelian_group import AbelianGroup
from .fixed_point import Sign, EllipticFixedPoint, HyperbolicFixedPoint, ParabolicFixedPoint, FixedPoint, Resolution, fixed_points, elliptic_fixed_points, hyperbolic_fixed_points, parabolic_fixed_points, x_plus, x_minus, hyperbolic_fixed_point, parabolic_fixed_point, resolve, toric_chart
from .resolution import canonical_resolution, contract_minus_one_curves, minimal_resolution, minimal_resolution_at, resolution_graph, resolution_graphs, du_val_type
from .admissible import AdmissibleOperation, Inversion, RayPermutation, BlockPermutation, RowAddition, CompositeOperation, normalize
from .normal_form import normal_form, normal_form_with_operation, is_normal_form, are_isomorphic, orientation, beta_plus, beta_minus, mfrak_plus, mfrak_minus
from .parse import parse_cstar_surface, format_cstar_surface, read_cstar_surfaces, write_cstar_surfaces
from . import fixed_point, invariants
