# This file is part of satellite-pe-tools. See LICENSE file for license information.
from unittest import mock

import pytest
import requests

from satellite_pe_tools import url_helper, version
from satellite_pe_tools.url_helper import UrlError, combine_url, readurl

M_PATH = "satellite_pe_tools.url_helper."


class TestCombineUrl:
    def test_single_and_multiple_parts(self):
        assert "https://sat/pub/x.rpm" == combine_url("https://sat", "pub/x.rpm")
        assert "https://sat/api/v2/hosts/a.example.com" == combine_url(
            "https://sat/", "api/v2/hosts", "a.example.com"
        )


class TestGetSslArgs:
    def test_plain_http_has_no_ssl_args(self):
        assert {} == url_helper._get_ssl_args(
            "http://sat", {"ca_certs": "/ca.pem"}
        )

    def test_verify_disabled(self):
        assert {"verify": False} == url_helper._get_ssl_args(
            "https://sat", {"verify": False, "ca_certs": "/ca.pem"}
        )

    def test_ca_and_client_cert(self):
        assert {
            "verify": "/ca.pem",
            "cert": ("/cert.pem", "/key.pem"),
        } == url_helper._get_ssl_args(
            "https://sat",
            {
                "ca_certs": "/ca.pem",
                "cert_file": "/cert.pem",
                "key_file": "/key.pem",
            },
        )


class TestReadUrl:
    def test_read_contents_with_user_agent(self, mocked_responses):
        mocked_responses.add("GET", "http://sat/pub/x", body=b"data")
        response = readurl("http://sat/pub/x")
        assert b"data" == response.contents
        assert (
            "satellite-pe-tools/%s" % version.version_string()
            == mocked_responses.calls[0].request.headers["User-Agent"]
        )

    def test_http_error_raises_url_error(self, mocked_responses):
        mocked_responses.add("GET", "http://sat/missing", status=404)
        with pytest.raises(UrlError) as e:
            readurl("http://sat/missing")
        assert 404 == e.value.code
        assert "http://sat/missing" == e.value.url

    @mock.patch(M_PATH + "time.sleep")
    def test_retries_then_succeeds(self, m_sleep, mocked_responses):
        mocked_responses.add("GET", "http://sat/x", status=500)
        mocked_responses.add("GET", "http://sat/x", body=b"ok")
        response = readurl("http://sat/x", retries=1, sec_between=2)
        assert b"ok" == response.contents
        m_sleep.assert_called_once_with(2)

    def test_connection_error_without_retry(self, mocked_responses):
        mocked_responses.add(
            "GET",
            "http://sat/x",
            body=requests.exceptions.ConnectionError("refused"),
        )
        with pytest.raises(UrlError, match="refused"):
            readurl("http://sat/x")
        assert 1 == len(mocked_responses.calls)

    def test_unverified_request_warns(self, mocked_responses, caplog):
        mocked_responses.add("GET", "https://sat/x", body=b"")
        readurl("https://sat/x", ssl_details={"verify": False})
        assert "Certificate verification is disabled" in caplog.text
