# This file is part of satellite-pe-tools. See LICENSE file for license information.
"""Look up a host in Satellite for Puppet's trusted external data."""

import argparse
import json
import logging
import sys

from satellite_pe_tools import settings, url_helper, util

LOG = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


def get_ssl_details(satellite_cfg) -> dict:
    ssl_details = {}
    ssl_ca = satellite_cfg.get("ssl_ca")
    if ssl_ca is False:
        ssl_details["verify"] = False
    elif ssl_ca:
        ssl_details["ca_certs"] = ssl_ca
    if satellite_cfg.get("ssl_cert"):
        ssl_details["cert_file"] = satellite_cfg["ssl_cert"]
    if satellite_cfg.get("ssl_key"):
        ssl_details["key_file"] = satellite_cfg["ssl_key"]
    return ssl_details


def fetch_host(satellite_cfg, certname, timeout=DEFAULT_TIMEOUT) -> dict:
    url = satellite_cfg.get("url")
    if not url:
        raise ValueError("No Satellite url configured")
    response = url_helper.readurl(
        url_helper.combine_url(url, "api/v2/hosts", certname),
        headers={"Accept": "application/json"},
        ssl_details=get_ssl_details(satellite_cfg),
        timeout=timeout,
    )
    host = response.json()
    if not isinstance(host, dict):
        raise ValueError(
            "Unexpected response for %s: %s" % (certname, type(host).__name__)
        )
    return host


def get_parser(parser=None):
    if not parser:
        parser = argparse.ArgumentParser(
            prog="satellite",
            description="Print the Satellite host record for a certname.",
        )
    parser.add_argument("certname", help="Certname of the Puppet agent.")
    parser.add_argument(
        "--config",
        default=settings.SATELLITE_CONFIG,
        help="Satellite connection settings (default: %(default)s).",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=DEFAULT_TIMEOUT,
        help="Request timeout in seconds (default: %(default)s).",
    )
    return parser


def main(sysv_args=None):
    args = get_parser().parse_args(sysv_args)
    try:
        satellite_cfg = util.load_yaml(
            util.load_text_file(args.config), default={}
        )
        host = fetch_host(satellite_cfg, args.certname, timeout=args.timeout)
    except (OSError, ValueError) as e:
        # UrlError is an OSError
        sys.stderr.write(
            "Unable to look up %s in Satellite: %s\n" % (args.certname, e)
        )
        return 1
    sys.stdout.write(json.dumps(host, sort_keys=True))
    sys.stdout.write("\n")
    return 0
