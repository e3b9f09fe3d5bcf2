from __future__ import annotations

from typing import Dict, Tuple

from grasphub.hands.base import BaseJointLayout
from grasphub.hands.direct import DirectJointLayout
from grasphub.hands.parallel_jaw import ParallelJawJointLayout
from grasphub.hands.underactuated import UnderactuatedJointLayout
from grasphub.schema import HandProfile, JointState, RawGraspRecord


def _build_layout_table(*layouts: BaseJointLayout) -> Dict[str, BaseJointLayout]:
    table = {}
    for layout in layouts:
        for hand_id in layout.hand_ids:
            table[hand_id] = layout
    return table


# Catalog hand id -> layout. Ids not listed use DEFAULT_JOINT_LAYOUT.
JOINT_LAYOUTS = _build_layout_table(
    UnderactuatedJointLayout(),
    ParallelJawJointLayout(),
)
DEFAULT_JOINT_LAYOUT = DirectJointLayout()


def get_joint_layout(hand_id: str) -> BaseJointLayout:
    """Retrieves the layout for a catalog hand id, falling back to direct mapping."""
    return JOINT_LAYOUTS.get(hand_id, DEFAULT_JOINT_LAYOUT)


def adapt_postures(
    record: RawGraspRecord, profile: HandProfile
) -> Tuple[JointState, JointState]:
    """Adapts a record with the layout selected by the profile's hand id."""
    return get_joint_layout(profile.catalog_hand_id).adapt(record, profile)
