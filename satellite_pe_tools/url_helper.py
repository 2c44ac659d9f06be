# This file is part of satellite-pe-tools. See LICENSE file for license information.

import logging
import time
from itertools import count
from typing import Any, Mapping, Optional
from urllib.parse import quote, urlparse, urlunparse

import requests
from requests import exceptions

from satellite_pe_tools import version

LOG = logging.getLogger(__name__)


def combine_url(base, *add_ons):
    def combine_single(url, add_on):
        url_parsed = list(urlparse(url))
        path = url_parsed[2]
        if path and not path.endswith("/"):
            path += "/"
        path += quote(str(add_on).lstrip("/"), safe="/:")
        url_parsed[2] = path
        return urlunparse(url_parsed)

    url = base
    for add_on in add_ons:
        url = combine_single(url, add_on)
    return url


class UrlResponse:
    def __init__(self, response: requests.Response):
        self._response = response

    @property
    def contents(self) -> bytes:
        if self._response.content is None:
            return b""
        return self._response.content

    def json(self):
        return self._response.json()


class UrlError(IOError):
    def __init__(
        self,
        cause: Any,
        code: Optional[int] = None,
        headers: Optional[Mapping] = None,
        url: Optional[str] = None,
    ):
        IOError.__init__(self, str(cause))
        self.cause = cause
        self.code = code
        self.headers: Mapping = {} if headers is None else headers
        self.url = url


def _get_ssl_args(url, ssl_details):
    ssl_args = {}
    scheme = urlparse(url).scheme
    if scheme == "https" and ssl_details:
        if ssl_details.get("verify") is False:
            ssl_args["verify"] = False
        elif ssl_details.get("ca_certs"):
            ssl_args["verify"] = ssl_details["ca_certs"]
        else:
            ssl_args["verify"] = True
        if ssl_details.get("cert_file") and ssl_details.get("key_file"):
            ssl_args["cert"] = (
                ssl_details["cert_file"],
                ssl_details["key_file"],
            )
        elif ssl_details.get("cert_file"):
            ssl_args["cert"] = str(ssl_details["cert_file"])
    return ssl_args


def readurl(
    url,
    *,
    timeout=None,
    retries=0,
    sec_between=1,
    headers=None,
    ssl_details=None,
) -> UrlResponse:
    """Wrapper around requests.Session to read the url and retry if necessary

    :param url: Mandatory url to request.
    :param timeout: Timeout in seconds to wait for a response.
    :param retries: Number of times to retry on exception. Default is
        to fail with 0 retries on exception.
    :param sec_between: Default 1: amount of seconds passed to time.sleep
        between retries. None or -1 means don't sleep.
    :param headers: Optional dict of headers to send during request
    :param ssl_details: Optional dict providing key_file, ca_certs, and
        cert_file keys for use on in ssl connections. A 'verify' key set to
        False disables certificate verification entirely.
    """
    req_args = {"url": url, "method": "GET"}
    req_args.update(_get_ssl_args(url, ssl_details))
    if req_args.get("verify") is False:
        LOG.warning(
            "Certificate verification is disabled for %s", url
        )
    if timeout is not None:
        req_args["timeout"] = max(float(timeout), 0)

    headers = dict(headers or {})
    if "User-Agent" not in headers:
        headers["User-Agent"] = "satellite-pe-tools/%s" % (
            version.version_string()
        )
    req_args["headers"] = headers

    manual_tries = max(int(retries) + 1, 1) if retries else 1
    if sec_between is None:
        sec_between = -1
    session = requests.Session()

    for i in count():
        try:
            LOG.debug(
                "[%s/%s] open '%s' with %s configuration",
                i,
                manual_tries,
                url,
                req_args,
            )
            response = session.request(**req_args)
            response.raise_for_status()
            LOG.debug(
                "Read from %s (%s, %sb) after %s attempts",
                url,
                response.status_code,
                len(response.content),
                (i + 1),
            )
            return UrlResponse(response)
        except exceptions.SSLError as e:
            # ssl exceptions are not going to get fixed by waiting a
            # few seconds
            raise UrlError(e, url=url) from e
        except exceptions.HTTPError as e:
            url_error = UrlError(
                e,
                code=e.response.status_code,
                headers=e.response.headers,
                url=url,
            )
            raised_exception = e
        except exceptions.RequestException as e:
            url_error = UrlError(e, url=url)
            raised_exception = e

        if i + 1 >= manual_tries:
            raise url_error from raised_exception
        if sec_between > 0:
            LOG.debug(
                "Please wait %s seconds while we wait to try again",
                sec_between,
            )
            time.sleep(sec_between)

    raise RuntimeError("This path should be unreachable...")
