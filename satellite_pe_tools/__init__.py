# This file is part of satellite-pe-tools. See LICENSE file for license information.
