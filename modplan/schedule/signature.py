"""Module signatures: configuration identity independent of placement."""

from __future__ import annotations

from modplan.models.element import Balcony, BathroomPod, Module, Opening


def attachment_tokens(
    openings: list[Opening],
    balconies: list[Balcony],
    pods: list[BathroomPod],
) -> list[str]:
    """Sorted tokens describing a module's attachments."""
    tokens = [
        f"o_{int(o.wall_side)}_{o.width}_{o.height}_{o.distance_along_wall}_{o.y_offset}"
        for o in openings
    ]
    tokens.extend(
        f"b_{int(b.wall_side)}_{b.width}_{b.length}_{b.distance_along_wall}"
        for b in balconies
    )
    tokens.extend(f"bp_{p.width}_{p.length}_{p.x_offset}_{p.y_offset}" for p in pods)
    return sorted(tokens)


def module_signature(
    module: Module,
    openings: list[Opening] = (),
    balconies: list[Balcony] = (),
    pods: list[BathroomPod] = (),
) -> str:
    """Signature of *module* and its attachments.

    Two modules share a signature exactly when their dimensions, rotation
    and attachment configuration match.  Placement (``x0``, ``y0``,
    ``z_offset``) is not part of it.
    """
    prefix = f"{module.width}_{module.length}_{module.height}_{module.rotation}|"
    return prefix + "|".join(attachment_tokens(list(openings), list(balconies), list(pods)))
