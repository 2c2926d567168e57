# SPDX-License-Identifier: MIT

from pathlib import Path
from typing import TYPE_CHECKING, Optional, cast, get_args

if TYPE_CHECKING:
    from typing import TypeIs

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader  # noqa: F401
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from adotrack import configuration
from adotrack.model.entity_id import EntityId
from adotrack.model.id_map import EntityType, IdMap, IdMapDict
from adotrack.template.id_map import get_id_map_template

ENTITY_TYPES = get_args(EntityType)


class IdMapRepository:
    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._id_map: Optional[IdMap] = None
        self.is_dirty = False

    @property
    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return configuration.DATA_ID_MAP_PATH

    @property
    def id_map(self) -> IdMap:
        if self._id_map is None:
            self.__load_data()
        if self._id_map is None:
            raise ValueError()
        return self._id_map

    def __load_data(self) -> None:
        if not self.path.is_file():
            self._id_map = get_id_map_template()
            return
        self._id_map = load(self.path.read_text(), Loader=Loader)
        if self._id_map is None:
            self._id_map = get_id_map_template()

    def __save_data(self, id_map: IdMap) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(dump(id_map, Dumper=Dumper))

    def flush(self) -> None:
        if self._id_map is not None and self.is_dirty:
            self.__save_data(self._id_map)
            self.is_dirty = False

    def clear_ids(self) -> None:
        self.is_dirty = True
        self._id_map = get_id_map_template()

    def associate_id(self, entity_type: str, entity_id: EntityId) -> int:
        """
        Create a new synthetic id to associate with an entity id
        """
        if self.__narrow_to_entity_type(entity_type):
            entity_type_lit = cast(EntityType, entity_type)
            id_map_dict = cast(IdMapDict, self.id_map)
            if entity_id in id_map_dict[entity_type_lit]["real_to_synthetic"].keys():
                return id_map_dict[entity_type_lit]["real_to_synthetic"][entity_id]

            self.is_dirty = True
            next_id = len(id_map_dict[entity_type_lit]["real_to_synthetic"].keys()) + 1
            id_map_dict[entity_type_lit]["real_to_synthetic"][entity_id] = next_id
            id_map_dict[entity_type_lit]["synthetic_to_real"][next_id] = entity_id

            return next_id
        raise TypeError(
            f"{IdMapRepository.associate_id.__name__}: expected EntityType literals"
        )

    def get_real_id(self, entity_type: str, synthetic_id: int) -> EntityId:
        """
        Get the entity id associated with a synthetic id
        """
        if self.__narrow_to_entity_type(entity_type):
            entity_type_lit = cast(EntityType, entity_type)
            id_map_dict = cast(IdMapDict, self.id_map)
            return id_map_dict[entity_type_lit]["synthetic_to_real"][synthetic_id]
        raise TypeError(
            f"{IdMapRepository.get_real_id.__name__}: expected EntityType literals"
        )

    def __narrow_to_entity_type(self, entity_type: str) -> "TypeIs[EntityType]":
        return entity_type in ENTITY_TYPES


ID_MAP_REPO = IdMapRepository()
