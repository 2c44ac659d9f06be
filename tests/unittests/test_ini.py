# This file is part of satellite-pe-tools. See LICENSE file for license information.
import re
import textwrap

import pytest

from satellite_pe_tools.ini import IniFile

PUPPET_CONF = textwrap.dedent(
    """\
    # This file can be used to override the default puppet settings.
    [main]
    certname = puppet.example.com
    vardir = /opt/puppetlabs/server/data/puppetserver
    ssldir = $confdir/ssl

    [master]
    # inline reports
    reports = store,http
    """
)


@pytest.fixture
def conf(tmp_path):
    path = tmp_path / "puppet.conf"
    path.write_text(PUPPET_CONF)
    return str(path)


class TestIniFile:
    def test_get_values_untouched(self, conf):
        ini = IniFile(conf)
        assert "$confdir/ssl" == ini.get("main", "ssldir")
        assert "store,http" == ini.get("master", "reports")
        assert ini.get("agent", "server") is None
        assert "x" == ini.get("master", "nope", "x")

    def test_get_subsettings(self, conf):
        assert ["store", "http"] == IniFile(conf).get_subsettings(
            "master", "reports"
        )

    def test_add_subsetting_appends(self, conf):
        ini = IniFile(conf)
        assert ini.add_subsetting("master", "reports", "satellite")
        ini.save()
        with open(conf) as stream:
            content = stream.read()
        assert "reports = store,http,satellite" in content
        assert "# inline reports" in content
        assert "# This file can be used" in content
        assert "ssldir = $confdir/ssl" in content

    def test_add_existing_subsetting_is_noop(self, conf):
        ini = IniFile(conf)
        assert not ini.add_subsetting("master", "reports", "http")
        assert "store,http" == ini.get("master", "reports")

    def test_add_subsetting_creates_section_and_key(self, tmp_path):
        path = str(tmp_path / "missing.conf")
        ini = IniFile(path)
        assert ini.add_subsetting("master", "reports", "satellite")
        ini.save()
        assert "satellite" == IniFile(path).get("master", "reports")

    def test_set_reports_change(self, conf):
        ini = IniFile(conf)
        assert ini.set("master", "trusted_external_command", "/etc/x")
        assert not ini.set("master", "trusted_external_command", "/etc/x")
        assert "[master]" in ini.stringify()
        assert "trusted_external_command = /etc/x" in ini.stringify()

    def test_empty_values_in_other_sections_kept(self, tmp_path):
        path = tmp_path / "puppet.conf"
        path.write_text(
            "[main]\npostrun_command =\n\n[master]\nreports = puppetdb\n"
        )
        ini = IniFile(str(path))
        assert "" == ini.get("main", "postrun_command")
        assert ini.add_subsetting("master", "reports", "satellite")
        ini.save()
        content = path.read_text()
        assert '""' not in content
        assert "postrun_command =" in content
        assert "" == IniFile(str(path)).get("main", "postrun_command")
        assert "reports = puppetdb,satellite" in content

    def test_repeated_key_names_the_file(self, tmp_path):
        path = tmp_path / "puppet.conf"
        path.write_text("[master]\nreports = puppetdb\nreports = store\n")
        match = re.escape("Unable to parse %s" % path)
        with pytest.raises(ValueError, match=match):
            IniFile(str(path))
