# This file is part of satellite-pe-tools. See LICENSE file for license information.
"""Satellite PE tools: send Puppet reports to a Satellite server.

Writes the connection settings used by the ``satellite`` report processor,
registers that processor in puppet.conf and, optionally, bootstraps the
Katello CA and installs the ``satellite`` trusted external command.

Example config::

    satellite_pe_tools:
      satellite_url: https://satellite.example.com
      ssl_cert: /etc/puppetlabs/puppet/ssl/certs/puppet.example.com.pem
      ssl_key: /etc/puppetlabs/puppet/ssl/private_keys/puppet.example.com.pem
"""

import logging
import os
import tempfile
from typing import NamedTuple, Optional, Union
from urllib.parse import urlparse

from satellite_pe_tools import safeyaml, settings, subp, url_helper, util
from satellite_pe_tools.catalog import Catalog, Report
from satellite_pe_tools.resources import (
    Directory,
    Exec,
    File,
    IniSetting,
    IniSubsetting,
    Service,
    Symlink,
)
from satellite_pe_tools.schema import validate_config

LOG = logging.getLogger(__name__)

CA_CONSUMER_TIMEOUT = 60


class Paths:
    """Location of every managed file, optionally below a target root."""

    def __init__(self, root="/"):
        self.root = os.path.abspath(root or "/")

    def target(self, path):
        return os.path.join(self.root, path.lstrip("/"))

    @property
    def puppet_conf(self):
        return self.target(settings.PUPPET_CONF)

    @property
    def satellite_config(self):
        return self.target(settings.SATELLITE_CONFIG)

    @property
    def default_ca_cert(self):
        return self.target(settings.DEFAULT_CA_CERT)

    @property
    def katello_server_ca(self):
        return self.target(settings.KATELLO_SERVER_CA)

    @property
    def trusted_commands_dir(self):
        return self.target(settings.TRUSTED_COMMANDS_DIR)

    @property
    def trusted_command(self):
        return os.path.join(
            self.trusted_commands_dir, settings.TRUSTED_COMMAND_NAME
        )


class SatelliteConfig(NamedTuple):
    url: str
    ssl_ca: Union[str, bool]
    ssl_cert: str
    ssl_key: str

    def as_dict(self):
        return dict(self._asdict())


def get_satellite_hostname(url) -> str:
    hostname = urlparse(url).hostname
    if not hostname:
        raise ValueError("Unable to find a hostname in url '%s'" % url)
    return hostname


def resolve_ssl_ca(verify_satellite_certificate, ssl_ca) -> Union[str, bool]:
    """Return the CA written for the report processor.

    False disables verification of the Satellite certificate.
    """
    if not verify_satellite_certificate:
        return False
    if ssl_ca:
        return ssl_ca
    return settings.DEFAULT_CA_CERT


def get_params(cfg) -> dict:
    """Return the validated module parameters with defaults filled in."""
    params = cfg.get(settings.CFG_KEY)
    if params is None:
        params = {}
    validate_config(params)
    merged = dict(settings.CFG_BUILTIN)
    merged.update(params)
    return merged


def make_config(params) -> SatelliteConfig:
    ssl_ca = resolve_ssl_ca(
        util.get_cfg_option_bool(
            params, "verify_satellite_certificate", True
        ),
        util.get_cfg_option_str(params, "ssl_ca", ""),
    )
    return SatelliteConfig(
        url=util.get_cfg_option_str(params, "satellite_url"),
        ssl_ca=ssl_ca,
        ssl_cert=util.get_cfg_option_str(params, "ssl_cert", ""),
        ssl_key=util.get_cfg_option_str(params, "ssl_key", ""),
    )


def render_config(config: SatelliteConfig) -> str:
    return safeyaml.dumps(
        config.as_dict(),
        explicit_start=False,
        explicit_end=False,
        sort_keys=False,
    )


def load_trusted_command() -> str:
    return util.load_text_file(
        os.path.join(
            os.path.dirname(os.path.abspath(__file__)),
            "files",
            settings.TRUSTED_COMMAND_NAME,
        )
    )


def install_ca_consumer(satellite_url, timeout=CA_CONSUMER_TIMEOUT):
    """Download the katello-ca-consumer rpm from Satellite and install it.

    The Satellite CA is not trusted yet, so the download is made without
    certificate verification.
    """
    rpm_url = url_helper.combine_url(satellite_url, settings.CA_CONSUMER_RPM)
    LOG.info("Downloading %s", rpm_url)
    response = url_helper.readurl(
        rpm_url, ssl_details={"verify": False}, timeout=timeout
    )
    with tempfile.TemporaryDirectory() as tmpd:
        rpm_path = os.path.join(tmpd, os.path.basename(rpm_url))
        util.write_file(rpm_path, response.contents, mode=0o600)
        subp.subp(["yum", "-y", "install", rpm_path], capture=True)


def build_catalog(
    params, osfamily: Optional[str] = None, paths: Optional[Paths] = None
) -> Catalog:
    if paths is None:
        paths = Paths()
    if osfamily is None:
        osfamily = util.get_osfamily()

    config = make_config(params)
    LOG.debug(
        "Configuring reports to Satellite server %s",
        get_satellite_hostname(config.url),
    )

    catalog = Catalog()
    service = catalog.add(Service(settings.SERVICE_NAME))
    config_file = File(
        "satellite_pe_tools.yaml",
        paths.satellite_config,
        render_config(config),
        owner=settings.SERVICE_USER,
        group=settings.SERVICE_GROUP,
        mode=0o644,
        notify=service,
    )
    catalog.add(
        IniSubsetting(
            "satellite report processor",
            paths.puppet_conf,
            settings.PUPPET_SECTION,
            "reports",
            settings.REPORT_PROCESSOR,
            separator=",",
            before=config_file,
            notify=service,
        )
    )

    if util.get_cfg_option_bool(params, "manage_default_ca_cert", True):
        if osfamily == "redhat":
            ca_consumer = catalog.add(
                Exec(
                    "install katello ca consumer",
                    lambda: install_ca_consumer(config.url),
                    creates=paths.katello_server_ca,
                )
            )
            catalog.add(
                Symlink(
                    os.path.basename(settings.DEFAULT_CA_CERT),
                    paths.default_ca_cert,
                    settings.KATELLO_SERVER_CA,
                    require=ca_consumer,
                    before=config_file,
                    notify=service,
                )
            )
        else:
            LOG.debug(
                "Not managing the default CA certificate on osfamily %s",
                osfamily,
            )

    catalog.add(config_file)

    if util.get_cfg_option_bool(params, "trusted_external_command", False):
        commands_dir = catalog.add(
            Directory(
                "trusted-external-commands",
                paths.trusted_commands_dir,
                owner=settings.SERVICE_USER,
                group=settings.SERVICE_GROUP,
                mode=0o755,
                notify=service,
            )
        )
        catalog.add(
            IniSetting(
                "trusted_external_command",
                paths.puppet_conf,
                settings.PUPPET_SECTION,
                "trusted_external_command",
                settings.TRUSTED_COMMANDS_DIR,
                require=commands_dir,
                notify=service,
            )
        )
        catalog.add(
            File(
                "satellite trusted external command",
                paths.trusted_command,
                load_trusted_command(),
                owner=settings.SERVICE_USER,
                group=settings.SERVICE_GROUP,
                mode=0o755,
                require=[config_file, commands_dir],
                notify=service,
            )
        )
    return catalog


def handle(cfg, paths: Optional[Paths] = None, noop=False) -> Report:
    if settings.CFG_KEY not in cfg:
        LOG.warning(
            "No '%s' configuration found, nothing to do", settings.CFG_KEY
        )
        return Report(noop=noop)
    catalog = build_catalog(get_params(cfg), paths=paths)
    report = catalog.apply(noop=noop)
    LOG.info(
        "Applied %s resources: %s",
        len(catalog),
        ", ".join("%s=%s" % kv for kv in sorted(report.summary().items())),
    )
    return report
