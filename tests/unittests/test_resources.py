# This file is part of satellite-pe-tools. See LICENSE file for license information.
import os
from unittest import mock

import pytest

from satellite_pe_tools import resources
from satellite_pe_tools.resources import (
    Directory,
    Exec,
    File,
    IniSetting,
    IniSubsetting,
    Service,
    Symlink,
)


class TestResourceRefs:
    def test_ref_and_edges_normalized(self):
        service = Service("pe-puppetserver")
        res = File(
            "x", "/tmp/x", "", notify=service, before="File[y]", require=None
        )
        assert "File[x]" == res.ref
        assert ["Service[pe-puppetserver]"] == res.notify
        assert ["File[y]"] == res.before
        assert [] == res.require


@pytest.mark.usefixtures("fake_ownership")
class TestFile:
    def test_missing_file_out_of_sync(self, tmp_path):
        res = File("x", str(tmp_path / "sub" / "x"), "hi\n", mode=0o644)
        assert not res.check()
        res.apply()
        assert res.check()
        assert "hi\n" == (tmp_path / "sub" / "x").read_text()

    def test_content_drift_detected(self, tmp_path):
        path = tmp_path / "x"
        path.write_text("old")
        path.chmod(0o644)
        res = File("x", str(path), "new", mode=0o644)
        assert not res.check()

    def test_mode_drift_detected(self, tmp_path):
        path = tmp_path / "x"
        path.write_text("same")
        path.chmod(0o600)
        res = File("x", str(path), "same", mode=0o644)
        assert not res.check()
        res.apply()
        assert 0o644 == os.stat(str(path)).st_mode & 0o777

    def test_owner_drift_detected(self, tmp_path, fake_ownership):
        path = tmp_path / "x"
        path.write_text("same")
        res = File("x", str(path), "same", owner="root")
        assert not res.check()
        res.apply()
        fake_ownership.assert_called_with(str(path), "root", None)

    def test_symlink_replaced_by_file(self, tmp_path):
        target = tmp_path / "target"
        target.write_text("data")
        link = tmp_path / "link"
        link.symlink_to(target)
        res = File("link", str(link), "data")
        assert not res.check()
        res.apply()
        assert not link.is_symlink()
        assert "data" == target.read_text()


@pytest.mark.usefixtures("fake_ownership")
class TestDirectory:
    def test_created_with_mode(self, tmp_path):
        path = tmp_path / "a" / "b"
        res = Directory("b", str(path), mode=0o755)
        assert not res.check()
        res.apply()
        assert res.check()
        assert 0o755 == os.stat(str(path)).st_mode & 0o777

    def test_file_in_the_way_fails(self, tmp_path):
        path = tmp_path / "a"
        path.write_text("")
        res = Directory("a", str(path))
        assert not res.check()
        with pytest.raises(OSError):
            res.apply()


class TestSymlink:
    def test_link_created_and_retargeted(self, tmp_path):
        link = tmp_path / "ca" / "default.crt"
        res = Symlink("default.crt", str(link), "/etc/rhsm/ca/server.pem")
        assert not res.check()
        res.apply()
        assert res.check()
        assert "/etc/rhsm/ca/server.pem" == os.readlink(str(link))

        other = Symlink("default.crt", str(link), "/other.pem")
        assert not other.check()
        other.apply()
        assert "/other.pem" == os.readlink(str(link))

    def test_stale_tmp_link_left_by_crash(self, tmp_path):
        link = tmp_path / "ca.crt"
        link.symlink_to("/old")
        (tmp_path / "ca.crt.tmp").symlink_to("/old")
        res = Symlink(
            "ca.crt", str(link), "/etc/rhsm/ca/katello-server-ca.pem"
        )
        assert not res.check()
        res.apply()
        assert res.check()


class TestIniResources:
    def test_subsetting(self, tmp_path):
        conf = tmp_path / "puppet.conf"
        conf.write_text("[master]\nreports = puppetdb\n")
        res = IniSubsetting(
            "reports", str(conf), "master", "reports", "satellite"
        )
        assert not res.check()
        res.apply()
        assert res.check()
        assert "reports = puppetdb,satellite" in conf.read_text()

    def test_setting(self, tmp_path):
        conf = tmp_path / "puppet.conf"
        conf.write_text("[main]\nserver = puppet\n")
        res = IniSetting("tec", str(conf), "master", "tec", "/dir")
        assert not res.check()
        res.apply()
        assert res.check()
        assert "server = puppet" in conf.read_text()


class TestExec:
    def test_creates_guard(self, tmp_path):
        creates = tmp_path / "created"
        calls = []
        res = Exec(
            "make",
            lambda: calls.append(creates.write_text("x")),
            creates=str(creates),
        )
        assert not res.check()
        res.apply()
        assert res.check()
        assert 1 == len(calls)

    def test_without_creates_always_runs(self):
        assert not Exec("run", ["true"]).check()

    def test_command_list_runs_subp(self, fake_subp):
        Exec("run", ["rpm", "-q", "x"]).apply()
        fake_subp.assert_called_once_with(["rpm", "-q", "x"], capture=True)

    def test_warns_when_creates_missing(self, tmp_path, caplog):
        res = Exec("run", lambda: None, creates=str(tmp_path / "nope"))
        res.apply()
        assert "did not create" in caplog.text


class TestService:
    def test_always_in_sync(self):
        assert Service("pe-puppetserver").check()

    @mock.patch.object(resources.util, "uses_systemd", return_value=True)
    def test_refresh_restarts_systemd(self, m_sysd, fake_subp):
        Service("pe-puppetserver").refresh()
        fake_subp.assert_called_once_with(
            ["systemctl", "restart", "pe-puppetserver"], capture=True, rcs=None
        )

    @mock.patch.object(resources.util, "uses_systemd", return_value=False)
    def test_refresh_restarts_sysvinit(self, m_sysd, fake_subp):
        Service("pe-puppetserver").refresh()
        fake_subp.assert_called_once_with(
            ["service", "pe-puppetserver", "restart"], capture=True, rcs=None
        )
