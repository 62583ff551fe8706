# ─────────────────────────────────────────────────────────────────────
# RICCI — Analysis Package
# (C) 1998-2026 Miroslav Sotek. All rights reserved.
# Contact: www.anulum.li | protoscience@anulum.li
# ORCID: https://orcid.org/0009-0009-3560-0851
# License: GNU AGPL v3 | Commercial licensing available
# ─────────────────────────────────────────────────────────────────────
from .aggregate import coordination_via_coupling, escalation_via_field_evolution

__all__ = ["coordination_via_coupling", "escalation_via_field_evolution"]
