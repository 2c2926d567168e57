# SPDX-License-Identifier: MIT

from typing import Literal, TypeAlias, TypedDict

EntityType = Literal[
    "time_entries",
    "organizations",
]


IdMapDict: TypeAlias = "dict[EntityType, IdMapMapping]"


class IdMap(TypedDict):
    """
    All dictionaries are mapped in the following way:

    Synthetic id : real entity id.

    Entries and organizations carry uuid ids, which are awkward to type, so the
    terminal shows a short synthetic id instead and maps it back here.

    Example:

    Time entry with an id of "5f0c...".
    Synthetic id for that entry is 7.

    real_entry_id = id_map["time_entries"]["synthetic_to_real"][7]
    """

    time_entries: "IdMapMapping"
    organizations: "IdMapMapping"


class IdMapMapping(TypedDict):
    synthetic_to_real: dict[int, str]
    real_to_synthetic: dict[str, int]
