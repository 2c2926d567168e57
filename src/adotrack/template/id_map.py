# SPDX-License-Identifier: MIT

from adotrack.model.id_map import IdMap


def get_id_map_template() -> IdMap:
    return {
        "time_entries": {"synthetic_to_real": {}, "real_to_synthetic": {}},
        "organizations": {"synthetic_to_real": {}, "real_to_synthetic": {}},
    }
