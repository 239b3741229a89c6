"""
Department synthesizer registry.

Usage:
    from deptsync.services.synthesizers import get_synthesizer

    desired = get_synthesizer("ART", db.session).synthesize(project_id, day_id)
"""

from deptsync.core.exceptions import ValidationError
from deptsync.services.synthesizers.art import ArtSynthesizer
from deptsync.services.synthesizers.base import AlertSynthesizer, DesiredAlert, sort_by_severity
from deptsync.services.synthesizers.grip_electric import GripElectricSynthesizer
from deptsync.services.synthesizers.post import PostSynthesizer

SYNTHESIZERS = {
    ArtSynthesizer.department: ArtSynthesizer,
    GripElectricSynthesizer.department: GripElectricSynthesizer,
    PostSynthesizer.department: PostSynthesizer,
}


def get_synthesizer(department, session) -> AlertSynthesizer:
    """Instantiate the synthesizer for ``department``; unknown departments are a 422."""
    synthesizer_cls = SYNTHESIZERS.get(department)
    if synthesizer_cls is None:
        raise ValidationError(
            f"Unknown department: {department!r}",
            details={"department": f"must be one of {', '.join(sorted(SYNTHESIZERS))}"},
        )
    return synthesizer_cls(session)


__all__ = [
    "AlertSynthesizer",
    "DesiredAlert",
    "SYNTHESIZERS",
    "get_synthesizer",
    "sort_by_severity",
]
