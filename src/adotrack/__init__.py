# SPDX-License-Identifier: MIT

from adotrack.cleanup import register_cleanup
from adotrack.initialize import initialize
from adotrack.terminal.app import run


def main() -> None:
    initialize()
    register_cleanup()
    run()


if __name__ == "__main__":
    main()
