"""AlphaResolve - Chromatogram resolution and spectral deconvolution.

Turns continuous ion traces (intensity over retention time) into discrete
chromatographic features, and groups co-eluting features of one sample into
pseudo-spectra. Numeric kernels are Numba-compiled; ion series live in an
append-only memory-mapped arena.

Typical workflow:

>>> from alpharesolve import resolution, deconvolution
>>> params = resolution.ResolverParameters()
>>> resolved = resolution.resolve_feature_list(chromatograms, params.create_resolver())
>>> rows = deconvolution.generate_pseudo_spectra(
...     resolved.features(), resolved, rt_tolerance=0.05, min_signals=3)
"""

__version__ = "0.1.0"
__author__ = "AlphaResolve developers"

# Import main submodules for convenient access
from alpharesolve import exceptions
from alpharesolve import formats
from alpharesolve import xic
from alpharesolve import datamodel
from alpharesolve import resolvers
from alpharesolve import taskcontrol
from alpharesolve import resolution
from alpharesolve import deconvolution

__all__ = [
    "exceptions",
    "formats",
    "xic",
    "datamodel",
    "resolvers",
    "taskcontrol",
    "resolution",
    "deconvolution",
]
