# SPDX-License-Identifier: MIT

from typing import Optional

from rich import print
from rich.padding import Padding

from adotrack.view.state import get_show_header


def header(organization_name: Optional[str], sub_header: Optional[str] = None) -> None:
    """Print the application header with the organization being worked against.

    Args:
        organization_name: The name of the organization, None when none is configured
        sub_header: Optional sub-header text to display
    """
    if not get_show_header():
        return

    additional = ""
    if sub_header is not None:
        additional = f"[sandy_brown]{sub_header}[/sandy_brown]"
    organization = f"[plum1]{organization_name or 'no organization'}[/plum1]"

    print(Padding("[dark_orange]adotrack[/dark_orange]", (1, 0, 0, 1)))
    print(Padding(additional, (0, 1)))
    print(Padding(organization, (0, 1)))
