"""
Pruning of raw catalog grasps before they are mapped onto a hand.

Two criteria exist. `prune_grasps` drops every grasp whose stored quality is at
or above a fixed threshold; this is what the service applies by default.
`prune_grasps_by_clearance` implements the documented criteria (gripper
opening and table clearance) that the quality threshold stands in for. The two
do not select the same grasps, so `GraspPruner` makes the choice explicit.
"""

from __future__ import annotations

import logging
from typing import List, Sequence

from grasphub.schema import RawGraspRecord

logger = logging.getLogger(__name__)

QUALITY_EXCLUSION_THRESHOLD = -40.0

PRUNE_MODES = ("quality", "clearance")


def prune_grasps(
    records: Sequence[RawGraspRecord],
    threshold: float = QUALITY_EXCLUSION_THRESHOLD,
) -> List[RawGraspRecord]:
    """
    Removes grasps whose quality is greater than or equal to `threshold`.

    Args:
        records: Raw grasps in catalog order.
        threshold: Exclusion threshold on `RawGraspRecord.quality`.

    Returns:
        The surviving records, in their original order.
    """
    kept = [record for record in records if record.quality < threshold]
    pruned = len(records) - len(kept)
    logger.info(
        f"Pruned {pruned} of {len(records)} grasps with quality >= {threshold}"
    )
    return kept


def prune_grasps_by_clearance(
    records: Sequence[RawGraspRecord],
    gripper_threshold: float,
    table_clearance_threshold: float,
) -> List[RawGraspRecord]:
    """
    Removes grasps that open the gripper too far or come too close to the table.

    Args:
        records: Raw grasps in catalog order.
        gripper_threshold: Maximum allowed first final-grasp joint value.
        table_clearance_threshold: Minimum table clearance in metres. A
            negative value disables the clearance check. Stored clearances are
            in millimetres.

    Returns:
        The surviving records, in their original order.
    """
    kept = []
    for record in records:
        if record.final_grasp_joints and (
            record.final_grasp_joints[0] > gripper_threshold
        ):
            continue
        if (
            table_clearance_threshold >= 0.0
            and record.table_clearance is not None
            and record.table_clearance < table_clearance_threshold * 1.0e3
        ):
            continue
        kept.append(record)

    logger.info(
        f"Pruned {len(records) - len(kept)} of {len(records)} grasps for table "
        "collision or gripper angle above threshold"
    )
    return kept


class GraspPruner:
    """Applies one of the pruning criteria, chosen by `mode`."""

    def __init__(
        self,
        mode: str = "quality",
        quality_threshold: float = QUALITY_EXCLUSION_THRESHOLD,
        gripper_opening: float = 0.5,
        table_clearance: float = 0.0,
    ):
        if mode not in PRUNE_MODES:
            raise ValueError(
                f"Unknown prune mode '{mode}', expected one of {PRUNE_MODES}"
            )
        self.mode = mode
        self.quality_threshold = quality_threshold
        self.gripper_opening = gripper_opening
        self.table_clearance = table_clearance

    def __call__(self, records: Sequence[RawGraspRecord]) -> List[RawGraspRecord]:
        if self.mode == "clearance":
            return prune_grasps_by_clearance(
                records, self.gripper_opening, self.table_clearance
            )
        return prune_grasps(records, self.quality_threshold)

    def __repr__(self) -> str:
        return f"GraspPruner(mode={self.mode!r})"
