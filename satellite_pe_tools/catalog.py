# This file is part of satellite-pe-tools. See LICENSE file for license information.
"""Order resources by their declared edges and converge them once."""

import heapq
import logging
from collections import defaultdict
from typing import Dict, List, NamedTuple, Optional, Set

from satellite_pe_tools import util
from satellite_pe_tools.resources import Ref, Resource, ref_of

LOG = logging.getLogger(__name__)

CHANGED = "changed"
UNCHANGED = "unchanged"
NOOP = "noop"
FAILED = "failed"
SKIPPED = "skipped"
REFRESHED = "refreshed"


class CatalogError(Exception):
    """Base class for catalog construction and ordering errors."""


class DuplicateResourceError(CatalogError):
    pass


class MissingResourceError(CatalogError):
    pass


class DependencyCycleError(CatalogError):
    def __init__(self, refs):
        self.refs = list(refs)
        super().__init__(
            "Found dependency cycle between: %s" % ", ".join(self.refs)
        )


class ResourceEvent(NamedTuple):
    resource: str
    status: str
    message: str = ""


class Report:
    def __init__(self, noop=False):
        self.noop = noop
        self.events: List[ResourceEvent] = []

    def add(self, resource: Ref, status: str, message: str = ""):
        event = ResourceEvent(ref_of(resource), status, message)
        self.events.append(event)
        return event

    def status_of(self, resource: Ref) -> Optional[str]:
        """Status of the resource itself, ignoring refresh events."""
        ref = ref_of(resource)
        for event in self.events:
            if event.resource == ref and event.status != REFRESHED:
                return event.status
        return None

    def refreshed(self) -> List[str]:
        return [e.resource for e in self.events if e.status == REFRESHED]

    @property
    def changed(self) -> bool:
        return any(e.status in (CHANGED, REFRESHED) for e in self.events)

    @property
    def failed(self) -> bool:
        return any(e.status == FAILED for e in self.events)

    def summary(self) -> Dict[str, int]:
        counts: Dict[str, int] = defaultdict(int)
        for event in self.events:
            counts[event.status] += 1
        return dict(counts)


class Catalog:
    """A set of resources and the edges between them.

    ``before``/``notify`` on A naming B, and ``require``/``subscribe`` on B
    naming A, all order A ahead of B. ``notify``/``subscribe`` additionally
    send B a refresh when A changes.
    """

    def __init__(self):
        self._resources: Dict[str, Resource] = {}

    def add(self, resource: Resource) -> Resource:
        if resource.ref in self._resources:
            raise DuplicateResourceError(
                "Duplicate declaration: %s is already declared" % resource.ref
            )
        self._resources[resource.ref] = resource
        return resource

    def __contains__(self, item: Ref):
        return ref_of(item) in self._resources

    def __len__(self):
        return len(self._resources)

    def __iter__(self):
        return iter(self._resources.values())

    def get(self, ref: Ref) -> Resource:
        try:
            return self._resources[ref_of(ref)]
        except KeyError as e:
            raise MissingResourceError(
                "Could not find resource '%s' in catalog" % ref_of(ref)
            ) from e

    def _lookup(self, owner: Resource, ref: str) -> str:
        if ref not in self._resources:
            raise MissingResourceError(
                "Could not find resource '%s' for relationship on '%s'"
                % (ref, owner.ref)
            )
        return ref

    def edges(self) -> Dict[str, Set[str]]:
        """Map each ref to the refs that must be evaluated after it."""
        successors: Dict[str, Set[str]] = {r: set() for r in self._resources}
        for res in self._resources.values():
            for ref in res.before + res.notify:
                successors[res.ref].add(self._lookup(res, ref))
            for ref in res.require + res.subscribe:
                successors[self._lookup(res, ref)].add(res.ref)
        return successors

    def notifications(self) -> Dict[str, Set[str]]:
        """Map each ref to the refs it sends refresh events to."""
        targets: Dict[str, Set[str]] = {r: set() for r in self._resources}
        for res in self._resources.values():
            for ref in res.notify:
                targets[res.ref].add(self._lookup(res, ref))
            for ref in res.subscribe:
                targets[self._lookup(res, ref)].add(res.ref)
        return targets

    def order(self) -> List[Resource]:
        """Topologically sort the resources, ties broken by declaration."""
        successors = self.edges()
        index = {ref: i for i, ref in enumerate(self._resources)}
        indegree = {ref: 0 for ref in self._resources}
        for targets in successors.values():
            for ref in targets:
                indegree[ref] += 1

        ready = [(index[r], r) for r, deg in indegree.items() if deg == 0]
        heapq.heapify(ready)
        ordered = []
        while ready:
            _, ref = heapq.heappop(ready)
            ordered.append(self._resources[ref])
            for succ in successors[ref]:
                indegree[succ] -= 1
                if indegree[succ] == 0:
                    heapq.heappush(ready, (index[succ], succ))

        if len(ordered) != len(self._resources):
            raise DependencyCycleError(
                r for r, deg in indegree.items() if deg > 0
            )
        return ordered

    def apply(self, noop=False) -> Report:
        """Converge every resource once, in dependency order.

        A failing resource causes everything ordered after it through an
        edge to be skipped; unrelated resources are still converged.
        Refresh events are collected while notifiers are evaluated and
        delivered once to each target when its turn comes.
        """
        successors = self.edges()
        notifications = self.notifications()
        predecessors: Dict[str, Set[str]] = defaultdict(set)
        for ref, targets in successors.items():
            for succ in targets:
                predecessors[succ].add(ref)

        report = Report(noop=noop)
        broken: Set[str] = set()
        pending_refresh: Dict[str, List[str]] = defaultdict(list)

        for res in self.order():
            blocked = sorted(predecessors[res.ref] & broken)
            if blocked:
                LOG.warning(
                    "%s: skipping because of failed dependencies %s",
                    res.ref,
                    ", ".join(blocked),
                )
                report.add(
                    res, SKIPPED, "dependency failed: %s" % ", ".join(blocked)
                )
                broken.add(res.ref)
                continue

            try:
                in_sync = res.check()
                if in_sync:
                    LOG.debug("%s is in sync", res.ref)
                    report.add(res, UNCHANGED)
                elif noop:
                    LOG.info("%s: would change (noop)", res.ref)
                    report.add(res, NOOP, "would change")
                else:
                    res.apply()
                    LOG.info("%s: changed", res.ref)
                    report.add(res, CHANGED)
                    for target in sorted(notifications[res.ref]):
                        pending_refresh[target].append(res.ref)
            except Exception as e:
                util.logexc(LOG, "%s: failed to apply: %s", res.ref, e)
                report.add(res, FAILED, str(e))
                broken.add(res.ref)
                continue

            sources = pending_refresh.pop(res.ref, [])
            if sources:
                self._refresh(res, sources, report)
                if report.status_of(res) == FAILED:
                    broken.add(res.ref)
        return report

    def _refresh(self, res: Resource, sources: List[str], report: Report):
        LOG.info(
            "%s: triggering refresh from %s", res.ref, ", ".join(sources)
        )
        try:
            res.refresh()
        except Exception as e:
            util.logexc(LOG, "%s: failed to refresh: %s", res.ref, e)
            report.events[-1] = report.events[-1]._replace(
                status=FAILED, message="refresh failed: %s" % e
            )
            return
        report.add(res, REFRESHED, "from %s" % ", ".join(sources))
