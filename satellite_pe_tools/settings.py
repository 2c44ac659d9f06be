# This file is part of satellite-pe-tools. See LICENSE file for license information.

# Set and read for determining the config file location
CFG_ENV_NAME = "SATELLITE_PE_TOOLS_CFG"

# This is expected to be a yaml formatted file
SETTINGS_FILE = "/etc/satellite-pe-tools/satellite-pe-tools.cfg"

# Top level key holding the module parameters in SETTINGS_FILE
CFG_KEY = "satellite_pe_tools"

PUPPET_CONFDIR = "/etc/puppetlabs/puppet"
PUPPET_CONF = PUPPET_CONFDIR + "/puppet.conf"
SATELLITE_CONFIG = PUPPET_CONFDIR + "/satellite_pe_tools.yaml"
DEFAULT_CA_CERT = PUPPET_CONFDIR + "/ssl/ca/katello-default-ca.crt"
TRUSTED_COMMANDS_DIR = PUPPET_CONFDIR + "/trusted-external-commands"
TRUSTED_COMMAND_NAME = "satellite"

# Installed by the katello-ca-consumer package
KATELLO_SERVER_CA = "/etc/rhsm/ca/katello-server-ca.pem"
CA_CONSUMER_RPM = "pub/katello-ca-consumer-latest.noarch.rpm"

PUPPET_SECTION = "master"
REPORT_PROCESSOR = "satellite"

SERVICE_NAME = "pe-puppetserver"
SERVICE_USER = "pe-puppet"
SERVICE_GROUP = "pe-puppet"

# What u get if no config is provided
CFG_BUILTIN = {
    "verify_satellite_certificate": True,
    "ssl_ca": "",
    "ssl_cert": "",
    "ssl_key": "",
    "manage_default_ca_cert": True,
    "trusted_external_command": False,
}
