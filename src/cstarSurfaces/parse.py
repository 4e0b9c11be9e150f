import logging
from collections.abc import Generator, Iterable

from .config import CONFIG, Config
from .surface import CStarSurface

logger = logging.getLogger(__name__)

# Plain-text format, one surface per line:
#   case;block sizes;values
# e.g. "EE;2,1,1;3,1,3,2,-2,-1,1,1". The values are all l_ij block by block, followed by all d_ij.


def parse_cstar_surface(line: str, config: Config = CONFIG) -> CStarSurface:
    fields = line.strip().split(config.field_separator)
    if len(fields) != 3:
        raise ValueError(f"expected 3 fields separated by {config.field_separator!r}, got {line!r}")
    case, sizes, values = fields
    try:
        sizes = [int(s) for s in sizes.split(config.value_separator)]
        values = [int(v) for v in values.split(config.value_separator)]
    except ValueError as e:
        raise ValueError(f"malformed integers in {line!r}") from e
    n = sum(sizes)
    if any(s <= 0 for s in sizes) or len(values) != 2*n:
        raise ValueError(f"block sizes {sizes} do not match the {len(values)} given values in {line!r}")
    ls, ds = [], []
    start = 0
    for size in sizes:
        ls.append(values[start:start+size])
        ds.append(values[n+start:n+start+size])
        start += size
    return CStarSurface.make(ls, ds, case)


def format_cstar_surface(X: CStarSurface, config: Config = CONFIG) -> str:
    '''
    EXAMPLES::
        >>> format_cstar_surface(CStarSurface.make([[3, 1], [3], [2]], [[-2, -1], [1], [1]], 'EE'))
        'EE;2,1,1;3,1,3,2,-2,-1,1,1'
    '''
    sizes = config.value_separator.join(str(s) for s in X.block_sizes)
    values = [l for block in X.ls for l in block] + [d for block in X.ds for d in block]
    return config.field_separator.join([str(X.case), sizes, config.value_separator.join(str(v) for v in values)])


def read_cstar_surfaces(path, config: Config = CONFIG) -> Generator[CStarSurface, None, None]:
    '''
    yield the surfaces stored in a file, skipping blank lines and lines starting with #
    '''
    with open(path) as file:
        for number, line in enumerate(file, start=1):
            line = line.strip()
            if not line or line.startswith('#'):
                continue
            try:
                X = parse_cstar_surface(line, config)
            except ValueError as e:
                raise ValueError(f"{path}:{number}: {e}") from e
            yield X


def write_cstar_surfaces(path, surfaces: Iterable[CStarSurface], config: Config = CONFIG) -> int:
    count = 0
    with open(path, 'w') as file:
        for X in surfaces:
            file.write(format_cstar_surface(X, config) + '\n')
            count += 1
    logger.debug("wrote %d surfaces to %s", count, path)
    return count
