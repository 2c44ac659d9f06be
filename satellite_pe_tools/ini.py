# This file is part of satellite-pe-tools. See LICENSE file for license information.
"""Edit single keys of puppet.conf style ini files in place."""

import logging

# Used since this can maintain comments
# and doesn't need a top level section
from configobj import ConfigObj, ConfigObjError

from satellite_pe_tools import util

LOG = logging.getLogger(__name__)


class IniFile:
    """A puppet.conf style file, loaded once and written back on save().

    Values are kept as plain strings (no list parsing, no interpolation) so
    that settings like ``reports = store,http`` and ``$confdir/ssl`` survive
    a round trip untouched. Empty values stay empty. Repeated keys are
    rejected with a ValueError naming the file.
    """

    def __init__(self, path):
        self.path = path
        contents = util.load_binary_file(path, quiet=True)
        if not contents:
            LOG.debug(
                "Did not find file %s (starting with an empty config)", path
            )
        try:
            self._config = ConfigObj(
                util.decode_binary(contents).splitlines(),
                list_values=False,
                interpolation=False,
                write_empty_values=True,
            )
        except ConfigObjError as e:
            raise ValueError("Unable to parse %s: %s" % (path, e)) from e

    def get(self, section, setting, default=None):
        if section not in self._config.sections:
            return default
        return self._config[section].get(setting, default)

    def set(self, section, setting, value) -> bool:
        """Set section/setting to value, returning whether it changed."""
        value = str(value)
        if self.get(section, setting) == value:
            return False
        if section not in self._config.sections:
            self._config[section] = {}
        self._config[section][setting] = value
        return True

    def get_subsettings(self, section, setting, separator=","):
        value = self.get(section, setting)
        if not value:
            return []
        return [tok.strip() for tok in value.split(separator) if tok.strip()]

    def add_subsetting(self, section, setting, subsetting, separator=","):
        """Append subsetting to the separated value of section/setting.

        Existing tokens keep their order. Returns whether it changed.
        """
        tokens = self.get_subsettings(section, setting, separator)
        if subsetting in tokens:
            return False
        tokens.append(subsetting)
        return self.set(section, setting, separator.join(tokens))

    def stringify(self) -> str:
        return "\n".join(self._config.write()) + "\n"

    def save(self, mode=0o644):
        util.write_file(self.path, self.stringify(), mode=mode)
