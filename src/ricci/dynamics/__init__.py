# ─────────────────────────────────────────────────────────────────────
# RICCI — Dynamics Package
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# Contact: www.anulum.li | protoscience@anulum.li
# ORCID: https://orcid.org/0009-0009-3560-0851
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
from .integrator import EvolutionForces, FieldEvolver

__all__ = ["EvolutionForces", "FieldEvolver"]
