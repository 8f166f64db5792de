"""Tests for vc_agent.status.checker."""
from __future__ import annotations

from collections.abc import Iterator

import httpx
import pytest
import respx

from vc_agent.credentials.model import CredentialStatusEntry, VerifiableCredential
from vc_agent.errors import StatusFetchError, StatusMethodAlreadyRegistered, UnknownStatusType
from vc_agent.status import (
    STATUS_LIST_2017,
    StatusChecker,
    StatusList2017Method,
    default_status_checker,
)

from conftest import STATUS_URL


def _credential(status: CredentialStatusEntry | None) -> VerifiableCredential:
    return VerifiableCredential(
        issuer="did:web:example.com",
        issuance_date="2024-05-01T12:00:00.000Z",
        credential_subject={"id": "did:web:example.com", "you": "Rock"},
        credential_status=status,
    )


ENTRY = CredentialStatusEntry(type=STATUS_LIST_2017, id=STATUS_URL)


@pytest.fixture()
def checker() -> Iterator[StatusChecker]:
    instance = default_status_checker(timeout=1.0)
    yield instance
    instance.close()


class TestRegistry:
    def test_default_types(self, checker: StatusChecker) -> None:
        assert checker.types == [STATUS_LIST_2017]

    def test_duplicate_registration(self, checker: StatusChecker) -> None:
        with pytest.raises(StatusMethodAlreadyRegistered):
            checker.register(STATUS_LIST_2017, StatusList2017Method())

    def test_unknown_type(self, checker: StatusChecker) -> None:
        entry = CredentialStatusEntry(type="RevocationList2020Status", id="https://example.com/rl")
        with pytest.raises(UnknownStatusType):
            checker.check(_credential(entry))


class TestStatusList2017:
    def test_no_status_makes_no_request(
        self, checker: StatusChecker, mock_http: respx.MockRouter
    ) -> None:
        route = mock_http.get(STATUS_URL)
        assert checker.check(_credential(None)).revoked is False
        assert route.call_count == 0

    def test_not_revoked(self, checker: StatusChecker, status_endpoint: respx.Route) -> None:
        assert checker.check(_credential(ENTRY)).revoked is False
        assert status_endpoint.call_count == 1

    @pytest.mark.parametrize("answer", [True, {"revoked": True}])
    def test_revoked(self, checker: StatusChecker, mock_http: respx.MockRouter, answer: object) -> None:
        mock_http.get(STATUS_URL).mock(return_value=httpx.Response(200, json=answer))
        assert checker.check(_credential(ENTRY)).revoked is True

    def test_bare_false(self, checker: StatusChecker, mock_http: respx.MockRouter) -> None:
        mock_http.get(STATUS_URL).mock(return_value=httpx.Response(200, json=False))
        assert checker.check(_credential(ENTRY)).to_dict() == {"revoked": False}

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(200, json={"status": "ok"}),
            httpx.Response(200, json={"revoked": "no"}),
            httpx.Response(200, json=[]),
            httpx.Response(200, text="not json"),
            httpx.Response(500),
            httpx.Response(404),
        ],
    )
    def test_unusable_answers(
        self, checker: StatusChecker, mock_http: respx.MockRouter, response: httpx.Response
    ) -> None:
        mock_http.get(STATUS_URL).mock(return_value=response)
        with pytest.raises(StatusFetchError):
            checker.check(_credential(ENTRY))

    def test_network_error(self, checker: StatusChecker, mock_http: respx.MockRouter) -> None:
        route = mock_http.get(STATUS_URL).mock(side_effect=httpx.ConnectError("refused"))
        with pytest.raises(StatusFetchError, match="Network error"):
            checker.check(_credential(ENTRY))
        assert route.call_count == 1
