# This file is part of satellite-pe-tools. See LICENSE file for license information.

import grp
import logging
import os
import pwd
import random
import re
import shlex
import stat
import string
from functools import lru_cache
from typing import Dict, Optional, Union

import yaml

LOG = logging.getLogger(__name__)

TRUE_STRINGS = ("true", "1", "on", "yes")
FALSE_STRINGS = ("off", "0", "no", "false")

OSFAMILIES = {
    "debian": ["debian", "ubuntu"],
    "redhat": [
        "almalinux",
        "amazon",
        "centos",
        "cloudlinux",
        "eurolinux",
        "fedora",
        "miraclelinux",
        "ol",
        "redhat",
        "rocky",
        "virtuozzo",
    ],
    "suse": [
        "opensuse",
        "opensuse-leap",
        "opensuse-tumbleweed",
        "sle_hpc",
        "sles",
    ],
}


def decode_binary(blob: Union[str, bytes], encoding="utf-8") -> str:
    # Converts a binary type into a text type using given encoding.
    return blob if isinstance(blob, str) else blob.decode(encoding=encoding)


def encode_text(text: Union[str, bytes], encoding="utf-8") -> bytes:
    # Converts a text string into a binary type using given encoding.
    return text if isinstance(text, bytes) else text.encode(encoding=encoding)


def is_true(val, addons=None):
    if isinstance(val, (bool)):
        return val is True
    check_set = TRUE_STRINGS
    if addons:
        check_set = list(check_set) + addons
    if str(val).lower().strip() in check_set:
        return True
    return False


def translate_bool(val, addons=None):
    if not val:
        # This handles empty lists and false and
        # other things that python believes are false
        return False
    if isinstance(val, (bool)):
        return val
    return is_true(val, addons)


def get_cfg_option_bool(yobj, key, default=False):
    if key not in yobj:
        return default
    return translate_bool(yobj[key])


def get_cfg_option_str(yobj, key, default=None):
    if key not in yobj:
        return default
    val = yobj[key]
    if not isinstance(val, str):
        val = str(val)
    return val


def load_yaml(blob, default=None, allowed=(dict,)):
    loaded = default
    blob = decode_binary(blob)
    try:
        LOG.debug(
            "Attempting to load yaml from string "
            "of length %s with allowed root types %s",
            len(blob),
            allowed,
        )
        converted = yaml.safe_load(blob)
        if converted is None:
            LOG.debug("loaded blob returned None, returning default.")
            converted = default
        elif not isinstance(converted, allowed):
            raise TypeError(
                "Yaml load allows %s root types, but got %s instead"
                % (allowed, type(converted).__name__)
            )
        loaded = converted
    except (yaml.YAMLError, TypeError, ValueError) as e:
        msg = "Failed loading yaml blob"
        mark = getattr(e, "problem_mark", None)
        if mark:
            msg += '. Invalid format at line {line} column {col}: "{err}"'.format(
                line=mark.line + 1, col=mark.column + 1, err=e
            )
        else:
            msg += ". {err}".format(err=e)
        LOG.warning(msg)
    return loaded


def read_conf(fname) -> Dict:
    """Read a yaml config, and convert to dict"""
    try:
        contents = load_text_file(fname)
    except FileNotFoundError:
        return {}
    return load_yaml(contents, default={})


def load_binary_file(fname, *, quiet: bool = False) -> bytes:
    LOG.debug("Reading from %s (quiet=%s)", fname, quiet)
    contents = b""
    try:
        with open(fname, "rb") as ifh:
            contents = ifh.read()
    except FileNotFoundError:
        if not quiet:
            raise
    LOG.debug("Read %s bytes from %s", len(contents), fname)
    return contents


def load_text_file(fname, *, quiet: bool = False) -> str:
    return decode_binary(load_binary_file(fname, quiet=quiet))


def load_shell_content(content, add_empty=False, empty_val=None):
    r"""Given shell like syntax (key=value\nkey2=value2\n) in content
    return the data in dictionary form.  If 'add_empty' is True
    then add entries in to the returned dictionary for 'VAR='
    variables.  Set their value to empty_val."""

    data = {}
    for line in shlex.split(content, comments=True):
        key, value = line.split("=", 1)
        if not value:
            value = empty_val
        if add_empty or value:
            data[key] = value

    return data


def _parse_redhat_release(release_file="/etc/redhat-release"):
    """Return ID and VERSION_ID from /etc/redhat-release, if present."""
    if not os.path.exists(release_file):
        return {}
    match = re.match(
        r"(?P<name>.+) release (?P<version>[\d\.]+)",
        load_text_file(release_file),
    )
    if not match:
        return {}
    name = match.group("name").lower().partition(" linux")[0]
    if name == "red hat enterprise":
        name = "redhat"
    return {"ID": name, "VERSION_ID": match.group("version")}


@lru_cache()
def get_os_release(os_release_file="/etc/os-release"):
    """Return the os-release fields, falling back to /etc/redhat-release."""
    os_release = {}
    if os.path.exists(os_release_file):
        os_release = load_shell_content(load_text_file(os_release_file))
    if not os_release:
        os_release = _parse_redhat_release()
    if os_release.get("ID") == "rhel":
        os_release["ID"] = "redhat"
    return os_release


def get_osfamily(os_release: Optional[dict] = None) -> Optional[str]:
    """Map the running distribution to one of OSFAMILIES.

    ID is consulted first, then each entry of ID_LIKE, so derivatives that
    only declare their parent (e.g. ID_LIKE="rhel centos fedora") resolve.
    """
    if os_release is None:
        os_release = get_os_release()
    candidates = [os_release.get("ID", "")]
    candidates.extend(os_release.get("ID_LIKE", "").split())
    for candidate in candidates:
        if candidate == "rhel":
            candidate = "redhat"
        for family, distros in OSFAMILIES.items():
            if candidate in distros:
                return family
    return None


def rand_str(strlen=32, select_from=None):
    r = random.SystemRandom()
    if not select_from:
        select_from = string.ascii_letters + string.digits
    return "".join([r.choice(select_from) for _x in range(strlen)])


def uses_systemd():
    try:
        res = os.lstat("/run/systemd/system")
        return stat.S_ISDIR(res.st_mode)
    except OSError:
        return False


def chownbyid(fname, uid=None, gid=None):
    if uid in [None, -1] and gid in [None, -1]:
        # Nothing to do
        return
    LOG.debug("Changing the ownership of %s to %s:%s", fname, uid, gid)
    os.chown(fname, uid, gid)


def chownbyname(fname, user=None, group=None):
    uid = -1
    gid = -1
    try:
        if user:
            uid = pwd.getpwnam(user).pw_uid
        if group:
            gid = grp.getgrnam(group).gr_gid
    except KeyError as e:
        raise OSError("Unknown user or group: %s" % (e)) from e
    chownbyid(fname, uid, gid)


def get_permissions(path: str) -> int:
    """
    Returns the octal permissions of the file/folder pointed by the path,
    encoded as an int.

    @param path: The full path of the file/folder.
    """
    return stat.S_IMODE(os.stat(path).st_mode)


def get_owner(path: str) -> str:
    st = os.stat(path)
    try:
        return pwd.getpwuid(st.st_uid).pw_name
    except KeyError:
        return str(st.st_uid)


def get_group(path: str) -> str:
    st = os.stat(path)
    try:
        return grp.getgrgid(st.st_gid).gr_name
    except KeyError:
        return str(st.st_gid)


def chmod(path, mode):
    if path and mode is not None:
        os.chmod(path, mode)


def ensure_dir(path):
    if not os.path.isdir(path):
        os.makedirs(path)


def write_file(
    filename,
    content,
    mode=0o644,
    omode="wb",
    *,
    ensure_dir_exists=True,
):
    """
    Writes a file with the given content and sets the file mode as specified.

    @param filename: The full path of the file to write.
    @param content: The content to write to the file.
    @param mode: The filesystem mode to set on the file.
    @param omode: The open mode used when opening the file (w, wb, a, etc.)
    @param ensure_dir_exists: If True (the default), ensure that the directory
                              containing `filename` exists before writing to
                              the file.
    """
    if ensure_dir_exists:
        ensure_dir(os.path.dirname(filename))
    if "b" in omode.lower():
        content = encode_text(content)
        write_type = "bytes"
    else:
        content = decode_binary(content)
        write_type = "characters"
    try:
        mode_r = "%o" % mode
    except TypeError:
        mode_r = "%r" % mode
    LOG.debug(
        "Writing to %s - %s: [%s] %s %s",
        filename,
        omode,
        mode_r,
        len(content),
        write_type,
    )
    with open(filename, omode) as fh:
        fh.write(content)
        fh.flush()
    chmod(filename, mode)


def sym_link(source, link, force=False):
    LOG.debug("Creating symbolic link from %r => %r", link, source)
    if force and os.path.lexists(link):
        # Provide atomic update of symlink
        tmp_link = os.path.join(os.path.dirname(link), "tmp" + rand_str(8))
        os.symlink(source, tmp_link)
        os.replace(tmp_link, link)
        return
    os.symlink(source, link)


def del_file(path):
    LOG.debug("Attempting to remove %s", path)
    try:
        os.unlink(path)
    except FileNotFoundError:
        pass


def logexc(log, msg, *args, log_level: int = logging.WARNING) -> None:
    log.log(log_level, msg, *args)
    log.debug(msg, exc_info=True, *args)
