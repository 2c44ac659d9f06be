import os
import re
from typing import List

TOP_DIR = os.path.dirname(os.path.realpath(__file__))


def get_version() -> str:
    """Read __VERSION__ without importing the package."""
    with open(
        os.path.join(TOP_DIR, "satellite_pe_tools", "version.py")
    ) as stream:
        match = re.search(r'^__VERSION__ = "([^"]+)"', stream.read(), re.M)
    if not match:
        raise RuntimeError("Unable to find __VERSION__ in version.py")
    return match.group(1)


def read_requires(filename="requirements.txt") -> List[str]:
    """Return requirement lines, skipping comments and blank lines."""
    requires = []
    with open(os.path.join(TOP_DIR, filename)) as stream:
        for line in stream:
            line = line.split("#", 1)[0].strip()
            if line:
                requires.append(line)
    return requires
