# This file is part of satellite-pe-tools. See LICENSE file for license information.

# Distutils magic for satellite-pe-tools

import os
import sys
from glob import glob

import setuptools

# Python-path here is a little unpredictable as setup.py could be run
# from a directory other than the root of the repo, so ensure we can find
# our utils
sys.path.insert(0, os.path.dirname(os.path.realpath(__file__)))
# isort: off
from setup_utils import get_version, read_requires  # noqa: E402

# isort: on
del sys.path[0]

data_files = [
    ("share/doc/satellite-pe-tools/examples", glob("doc/examples/*")),
]

setuptools.setup(
    name="satellite-pe-tools",
    version=get_version(),
    description="Send Puppet Enterprise reports to a Satellite server",
    url="https://github.com/puppetlabs/puppetlabs-satellite_pe_tools",
    package_data={
        "satellite_pe_tools": ["schemas/*.json", "files/*"],
    },
    packages=setuptools.find_packages(exclude=["tests.*", "tests"]),
    license="Apache-2.0",
    python_requires=">=3.8",
    data_files=data_files,
    install_requires=read_requires(),
    extras_require={"test": read_requires("test-requirements.txt")},
    entry_points={
        "console_scripts": [
            "satellite-pe-tools = satellite_pe_tools.cmd.main:main",
            "satellite-trusted-command = "
            "satellite_pe_tools.trusted_command:main",
        ],
    },
)
