from . import (
    expmv,
    hamiltonian,
    lattice,
    plot,
    shared,
    simulation,
    subspace,
    utils,
)
from .shared import ureg

Q_ = ureg.Quantity
