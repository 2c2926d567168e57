# SPDX-License-Identifier: MIT

from copy import deepcopy
from pathlib import Path
from typing import Any, Optional, cast

from yaml import dump, load

try:
    from yaml import CDumper as Dumper
    from yaml import CLoader as Loader
except ImportError:
    from yaml import Dumper, Loader  # type: ignore[assignment]

from adotrack import configuration, time
from adotrack.model.entity_id import EntityId, generate_entity_id
from adotrack.model.organization import Organization
from adotrack.repository.storage import write_text_atomically


class OrganizationNotFoundError(Exception):
    """Raised when an organization id does not resolve."""

    pass


class OrganizationRepository:
    def __init__(self, path: Optional[Path] = None) -> None:
        self._path = path
        self._organizations: Optional[list[Organization]] = None
        self.is_dirty = False

    @property
    def path(self) -> Path:
        if self._path is not None:
            return self._path
        return configuration.DATA_ORGANIZATIONS_PATH

    @property
    def organizations(self) -> list[Organization]:
        if self._organizations is None:
            self.__load_data()
        if self._organizations is None:
            raise ValueError()
        return self._organizations

    def __load_data(self) -> None:
        self._organizations = []
        if not self.path.is_file():
            return
        raw_data = load(self.path.read_text(), Loader=Loader)
        if raw_data is None:
            return
        for raw_organization in raw_data.get("organizations") or []:
            self._organizations.append(
                self.__convert_organization_for_deserialization(raw_organization)
            )

    def __save_data(self) -> None:
        serializable_organizations = [
            self.__convert_organization_for_serialization(deepcopy(organization))
            for organization in self.organizations
        ]
        write_text_atomically(
            self.path,
            dump({"organizations": serializable_organizations}, Dumper=Dumper),
        )

    def flush(self) -> bool:
        if self._organizations is not None and self.is_dirty:
            self.__save_data()
            self.is_dirty = False
            return True
        return False

    def __convert_organization_for_serialization(
        self, organization: Organization
    ) -> dict[str, Any]:
        serializable_organization = cast(dict[str, Any], organization)
        serializable_organization["created"] = time.datetime_to_iso_str(
            serializable_organization["created"]
        )
        serializable_organization["updated"] = time.datetime_to_iso_str(
            serializable_organization["updated"]
        )
        return serializable_organization

    def __convert_organization_for_deserialization(
        self, organization: dict[str, Any]
    ) -> Organization:
        organization["created"] = time.datetime_from_str(organization["created"])
        organization["updated"] = time.datetime_from_str(organization["updated"])
        return cast(Organization, organization)

    def save_new_organization(self, organization: Organization) -> EntityId:
        self.is_dirty = True

        organization["id"] = generate_entity_id()
        # Trailing slashes would produce double slashes in API urls
        organization["url"] = organization["url"].rstrip("/")

        # The first organization is always the default
        if organization["is_default"] or len(self.organizations) == 0:
            for existing in self.organizations:
                existing["is_default"] = False
            organization["is_default"] = True

        self.organizations.append(organization)
        return organization["id"]

    def remove_organization(self, id: EntityId) -> bool:
        organization = self.find_organization(id)
        if organization is None:
            return False

        self.is_dirty = True
        self._organizations = [o for o in self.organizations if o["id"] != id]

        # If we removed the default, promote the first remaining one
        if self.organizations and not any(o["is_default"] for o in self.organizations):
            self.organizations[0]["is_default"] = True
        return True

    def set_default_organization(self, id: EntityId) -> None:
        if self.find_organization(id) is None:
            raise OrganizationNotFoundError(f"organization {id} not found")

        self.is_dirty = True
        for organization in self.organizations:
            organization["is_default"] = organization["id"] == id
            if organization["is_default"]:
                organization["updated"] = time.now_utc()

    def find_organization(self, id: EntityId) -> Optional[Organization]:
        for organization in self.organizations:
            if organization["id"] == id:
                return deepcopy(organization)
        return None

    def get_organization(self, id: EntityId) -> Organization:
        organization = self.find_organization(id)
        if organization is None:
            raise OrganizationNotFoundError(f"organization {id} not found")
        return organization

    def get_default_organization(self) -> Optional[Organization]:
        for organization in self.organizations:
            if organization["is_default"]:
                return deepcopy(organization)
        return None

    def get_all_organizations(self) -> list[Organization]:
        return deepcopy(self.organizations)


ORGANIZATION_REPO = OrganizationRepository()
