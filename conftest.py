"""Global conftest.py

Fixtures shared by every test under ``tests/``. Any imports performed at the
top level here must be listed in ``test-requirements.txt``.
"""
from unittest import mock

import pytest

from satellite_pe_tools import settings, subp, util
from satellite_pe_tools.satellite import Paths


class UnexpectedSubpError(BaseException):
    """Error thrown when subp.subp is unexpectedly used.

    We inherit from BaseException so it doesn't get silently swallowed
    by the catalog, which records ordinary exceptions as failed resources.
    """


@pytest.fixture(autouse=True)
def disable_subp_usage(request):
    """
    Across all tests, ensure that subp.subp is not invoked.

    Tests that patch ``satellite_pe_tools.subp.subp`` themselves override
    this patch. To run real commands mark the test::

        @pytest.mark.allow_all_subp
        def test_true(self):
            subp.subp(["true"])
    """
    if request.node.get_closest_marker("allow_all_subp") is not None:
        yield
        return

    def side_effect(args, *other_args, **kwargs):
        raise UnexpectedSubpError("Unexpectedly used subp.subp: %s" % args)

    with mock.patch("satellite_pe_tools.subp.subp") as m_subp:
        m_subp.side_effect = side_effect
        yield


@pytest.fixture(autouse=True)
def cleanup_lru_cache():
    yield
    util.get_os_release.cache_clear()


@pytest.fixture
def fake_ownership():
    """Pretend every path is owned by the Puppet service account."""
    with mock.patch.object(util, "chownbyname") as m_chown, mock.patch.object(
        util, "get_owner", return_value=settings.SERVICE_USER
    ), mock.patch.object(
        util, "get_group", return_value=settings.SERVICE_GROUP
    ):
        yield m_chown


@pytest.fixture
def paths(tmp_path):
    return Paths(str(tmp_path))


@pytest.fixture
def mocked_responses():
    import responses as _responses

    with _responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        yield rsps


@pytest.fixture
def fake_subp():
    """Replace subp.subp with a mock returning empty output."""
    with mock.patch.object(
        subp, "subp", return_value=subp.SubpResult("", "")
    ) as m_subp:
        yield m_subp
