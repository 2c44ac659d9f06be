#!/usr/bin/env python3

# This file is part of satellite-pe-tools. See LICENSE file for license information.

import argparse
import logging
import os
import sys

from satellite_pe_tools import log, satellite, settings, util, version
from satellite_pe_tools.catalog import CatalogError

LOG = logging.getLogger(__name__)


def get_cfg_file(args) -> str:
    return args.config or os.environ.get(
        settings.CFG_ENV_NAME, settings.SETTINGS_FILE
    )


def read_cfg(args) -> dict:
    cfg_file = get_cfg_file(args)
    LOG.debug("Reading config from %s", cfg_file)
    try:
        return util.load_yaml(util.load_text_file(cfg_file), default={})
    except FileNotFoundError as e:
        raise ValueError("Config file %s not found" % cfg_file) from e


def main_apply(name, args):
    cfg = read_cfg(args)
    log.setup_logging(cfg, logging.DEBUG if args.debug else logging.INFO)
    report = satellite.handle(
        cfg, paths=satellite.Paths(args.root), noop=args.noop
    )
    for event in report.events:
        line = "%s: %s" % (event.resource, event.status)
        if event.message:
            line += " (%s)" % event.message
        print(line)
    if report.failed:
        return 1
    return 0


def main_render(name, args):
    cfg = read_cfg(args)
    params = satellite.get_params(cfg)
    sys.stdout.write(satellite.render_config(satellite.make_config(params)))
    return 0


def main_schema(name, args):
    cfg = read_cfg(args)
    satellite.get_params(cfg)
    print("Valid satellite_pe_tools config: %s" % get_cfg_file(args))
    return 0


def get_parser():
    parser = argparse.ArgumentParser(prog="satellite-pe-tools")
    parser.add_argument(
        "--version",
        "-v",
        action="version",
        version="%(prog)s " + (version.version_string()),
        help="Show program's version number and exit.",
    )
    parser.add_argument(
        "--debug",
        "-d",
        action="store_true",
        help="Show additional pre-action logging (default: %(default)s).",
        default=False,
    )
    parser.add_argument(
        "--config",
        "-c",
        default=None,
        help="Path to the config file (default: %s)." % settings.SETTINGS_FILE,
    )
    parser.add_argument(
        "--root",
        default="/",
        help="Manage files below this directory (default: %(default)s).",
    )
    subparsers = parser.add_subparsers(title="Subcommands", dest="subcommand")
    subparsers.required = True

    parser_apply = subparsers.add_parser(
        "apply", help="Converge this host to the configured state."
    )
    parser_apply.add_argument(
        "--noop",
        action="store_true",
        default=False,
        help="Report what would change without changing anything.",
    )
    parser_apply.set_defaults(action=("apply", main_apply))

    parser_render = subparsers.add_parser(
        "render", help="Print the satellite_pe_tools.yaml that would be written."
    )
    parser_render.set_defaults(action=("render", main_render))

    parser_schema = subparsers.add_parser(
        "schema", help="Validate the config file."
    )
    parser_schema.set_defaults(action=("schema", main_schema))
    return parser


def main(sysv_args=None):
    log.configure_root_logger()
    if sysv_args is None:
        sysv_args = sys.argv[1:]
    args = get_parser().parse_args(sysv_args)

    (name, functor) = args.action
    # apply sets up logging from the config file once it is read
    if name != "apply":
        log.setup_basic_logging(
            logging.DEBUG if args.debug else logging.WARNING
        )
    try:
        return functor(name, args)
    except (CatalogError, ValueError, OSError) as e:
        LOG.debug("Failed running %s", name, exc_info=True)
        sys.stderr.write("Error: %s\n" % e)
        return 1
    finally:
        log.flush_loggers(LOG)


if __name__ == "__main__":
    sys.exit(main())
