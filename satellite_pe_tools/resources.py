# This file is part of satellite-pe-tools. See LICENSE file for license information.
"""Declarative resources converged by a Catalog.

Each resource knows how to check whether the system already matches its
desired state and how to apply that state when it does not. Ordering and
notification edges are declared as references to other resources, either
Resource instances or ``Type[title]`` strings.
"""

import logging
import os
from typing import Callable, Iterable, List, Optional, Union

from satellite_pe_tools import subp, util
from satellite_pe_tools.ini import IniFile

LOG = logging.getLogger(__name__)

Ref = Union["Resource", str]


def ref_of(item: Ref) -> str:
    if isinstance(item, Resource):
        return item.ref
    return str(item)


def _refs(items: Optional[Iterable[Ref]]) -> List[str]:
    if items is None:
        return []
    if isinstance(items, (str, Resource)):
        items = [items]
    return [ref_of(i) for i in items]


class Resource:
    type_name = "Resource"

    def __init__(
        self,
        title,
        *,
        before=None,
        require=None,
        notify=None,
        subscribe=None,
    ):
        self.title = title
        self.before = _refs(before)
        self.require = _refs(require)
        self.notify = _refs(notify)
        self.subscribe = _refs(subscribe)

    @property
    def ref(self) -> str:
        return "%s[%s]" % (self.type_name, self.title)

    def describe(self) -> str:
        return self.ref

    def check(self) -> bool:
        """Return True when the system already matches this resource."""
        raise NotImplementedError()

    def apply(self):
        raise NotImplementedError()

    def refresh(self):
        """React to a change in a notifying resource. Ignored by default."""
        LOG.debug("%s ignores refresh events", self.ref)

    def __repr__(self):
        return "<%s>" % self.ref


class _OwnedPath(Resource):
    def __init__(
        self, title, path, *, owner=None, group=None, mode=None, **kwargs
    ):
        super().__init__(title, **kwargs)
        self.path = path
        self.owner = owner
        self.group = group
        self.mode = mode

    def _attributes_in_sync(self) -> bool:
        if self.mode is not None:
            if util.get_permissions(self.path) != self.mode:
                return False
        if self.owner and util.get_owner(self.path) != self.owner:
            return False
        if self.group and util.get_group(self.path) != self.group:
            return False
        return True

    def _fix_attributes(self):
        util.chmod(self.path, self.mode)
        if self.owner or self.group:
            util.chownbyname(self.path, self.owner, self.group)


class File(_OwnedPath):
    type_name = "File"

    def __init__(self, title, path, content, **kwargs):
        super().__init__(title, path, **kwargs)
        self.content = util.encode_text(content)

    def check(self) -> bool:
        if os.path.islink(self.path) or not os.path.isfile(self.path):
            return False
        if util.load_binary_file(self.path) != self.content:
            return False
        return self._attributes_in_sync()

    def apply(self):
        if os.path.islink(self.path):
            util.del_file(self.path)
        util.write_file(
            self.path,
            self.content,
            mode=self.mode if self.mode is not None else 0o644,
        )
        self._fix_attributes()


class Directory(_OwnedPath):
    type_name = "Directory"

    def check(self) -> bool:
        if os.path.islink(self.path) or not os.path.isdir(self.path):
            return False
        return self._attributes_in_sync()

    def apply(self):
        util.ensure_dir(self.path)
        self._fix_attributes()


class Symlink(Resource):
    type_name = "Symlink"

    def __init__(self, title, path, target, **kwargs):
        super().__init__(title, **kwargs)
        self.path = path
        self.target = target

    def check(self) -> bool:
        return os.path.islink(self.path) and (
            os.readlink(self.path) == self.target
        )

    def apply(self):
        util.ensure_dir(os.path.dirname(self.path))
        util.sym_link(self.target, self.path, force=True)


class IniSetting(Resource):
    type_name = "IniSetting"

    def __init__(self, title, path, section, setting, value, **kwargs):
        super().__init__(title, **kwargs)
        self.path = path
        self.section = section
        self.setting = setting
        self.value = str(value)

    def check(self) -> bool:
        return IniFile(self.path).get(self.section, self.setting) == (
            self.value
        )

    def apply(self):
        ini = IniFile(self.path)
        if ini.set(self.section, self.setting, self.value):
            ini.save()


class IniSubsetting(Resource):
    type_name = "IniSubsetting"

    def __init__(
        self,
        title,
        path,
        section,
        setting,
        subsetting,
        separator=",",
        **kwargs,
    ):
        super().__init__(title, **kwargs)
        self.path = path
        self.section = section
        self.setting = setting
        self.subsetting = subsetting
        self.separator = separator

    def check(self) -> bool:
        return self.subsetting in IniFile(self.path).get_subsettings(
            self.section, self.setting, self.separator
        )

    def apply(self):
        ini = IniFile(self.path)
        if ini.add_subsetting(
            self.section, self.setting, self.subsetting, self.separator
        ):
            ini.save()


class Exec(Resource):
    """Run a command or callable unless the ``creates`` path exists.

    Without ``creates`` the exec runs on every convergence.
    """

    type_name = "Exec"

    def __init__(
        self,
        title,
        command: Union[List[str], Callable[[], None]],
        creates=None,
        **kwargs,
    ):
        super().__init__(title, **kwargs)
        self.command = command
        self.creates = creates

    def check(self) -> bool:
        if self.creates is None:
            return False
        return os.path.lexists(self.creates)

    def apply(self):
        if callable(self.command):
            self.command()
        else:
            subp.subp(self.command, capture=True)
        if self.creates is not None and not os.path.lexists(self.creates):
            LOG.warning(
                "%s completed but did not create %s", self.ref, self.creates
            )


class Service(Resource):
    """A system service restarted when a notifying resource changes.

    Its running state is not managed, so it is always in sync by itself.
    """

    type_name = "Service"

    def __init__(self, title, name=None, **kwargs):
        super().__init__(title, **kwargs)
        self.name = name or title

    def check(self) -> bool:
        return True

    def apply(self):
        pass

    def refresh(self):
        manage_service("restart", self.name)


def manage_service(action: str, service: str, rcs=None):
    """
    Perform the requested action on a service through systemctl, or the
    service command when systemd is not running.
    May raise ProcessExecutionError
    """
    if util.uses_systemd():
        cmds = {
            "stop": ["systemctl", "stop", service],
            "start": ["systemctl", "start", service],
            "restart": ["systemctl", "restart", service],
            "status": ["systemctl", "status", service],
        }
    else:
        cmds = {
            "stop": ["service", service, "stop"],
            "start": ["service", service, "start"],
            "restart": ["service", service, "restart"],
            "status": ["service", service, "status"],
        }
    LOG.debug("Running '%s' on service %s", action, service)
    return subp.subp(cmds[action], capture=True, rcs=rcs)
