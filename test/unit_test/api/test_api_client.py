from __future__ import annotations

from datetime import date

import httpx
import pytest

from muktsar_ngo.api.errors import (
    ApiError,
    ApiNetworkError,
    ApiTimeoutError,
    ForbiddenError,
    InvalidResponseError,
    NotFoundError,
    ServerError,
    UnauthorizedError,
    ValidationFailedError,
)
from muktsar_ngo.api.models import (
    AlertCreate,
    AlertListQuery,
    BloodGroup,
    DonorListQuery,
    ProfileUpdate,
    Urgency,
)


def _donor(donor_id: str = "d-1", **overrides) -> dict:
    data = {"id": donor_id, "name": "Gurpreet Singh", "bloodGroup": "O_POSITIVE", "phone": "+919800000002"}
    data.update(overrides)
    return data


def _alert(alert_id: str = "a-1", **overrides) -> dict:
    data = {
        "id": alert_id,
        "hospitalName": "Civil Hospital",
        "bloodGroup": "B_NEGATIVE",
        "urgency": "HIGH",
        "status": "ACTIVE",
        "createdAt": "2024-03-01T10:00:00.000Z",
    }
    data.update(overrides)
    return data


class TestAuthEndpoints:
    def test_login_posts_phone_and_password(self, handler, make_api) -> None:
        handler.routes["POST /auth/login"] = httpx.Response(
            200, json={"access_token": "tok-1", "user": {"id": 7, "phone": "+919800000001", "role": "admin"}}
        )
        api = make_api()

        resp = api.login("+919800000001", "secret")

        assert resp.access_token == "tok-1"
        assert resp.user.id == "7"
        assert resp.user.role == "ADMIN"
        assert handler.body(handler.requests[0]) == {"phone": "+919800000001", "password": "secret"}

    def test_login_without_token_is_invalid_response(self, handler, make_api) -> None:
        handler.routes["POST /auth/login"] = httpx.Response(200, json={"user": {"id": "u1"}})

        with pytest.raises(InvalidResponseError):
            make_api().login("+919800000001", "secret")

    def test_bearer_token_is_attached(self, handler, make_api) -> None:
        handler.routes["GET /users/profile"] = httpx.Response(200, json={"id": "u1", "role": "DONOR"})
        api = make_api(token_provider=lambda: "tok-xyz")

        api.get_profile()

        assert handler.requests[0].headers["Authorization"] == "Bearer tok-xyz"

    def test_no_token_means_no_authorization_header(self, handler, make_api) -> None:
        handler.routes["GET /users/profile"] = httpx.Response(200, json={"id": "u1"})
        api = make_api(token_provider=lambda: None)

        api.get_profile()

        assert "Authorization" not in handler.requests[0].headers


class TestErrorMapping:
    @pytest.mark.parametrize(
        "status,error_cls,title",
        [
            (401, UnauthorizedError, "Session Expired"),
            (403, ForbiddenError, "Access Denied"),
            (404, NotFoundError, "Not Found"),
            (422, ValidationFailedError, "Validation Error"),
            (500, ServerError, "Server Error"),
        ],
    )
    def test_status_maps_to_typed_error(self, handler, make_api, status, error_cls, title) -> None:
        handler.routes["GET /donors/d-1"] = httpx.Response(status, json={"message": "nope"})

        with pytest.raises(error_cls) as exc_info:
            make_api().get_donor("d-1")

        assert exc_info.value.status_code == status
        assert exc_info.value.title == title

    def test_unauthorized_runs_hook_before_raising(self, handler, make_api) -> None:
        handler.routes["GET /alerts/active"] = httpx.Response(401, json={"message": "Unauthorized"})
        seen = []
        api = make_api(on_unauthorized=seen.append)

        with pytest.raises(UnauthorizedError):
            api.list_active_alerts()

        assert len(seen) == 1
        assert isinstance(seen[0], UnauthorizedError)

    def test_hook_not_called_for_other_errors(self, handler, make_api) -> None:
        handler.routes["GET /alerts/active"] = httpx.Response(500, json={})
        seen = []

        with pytest.raises(ServerError):
            make_api(on_unauthorized=seen.append).list_active_alerts()

        assert seen == []

    def test_validation_error_carries_server_messages(self, handler, make_api) -> None:
        handler.routes["POST /alerts"] = httpx.Response(
            422, json={"message": ["hospitalName should not be empty", "unitsRequired must be positive"]}
        )
        payload = AlertCreate(
            title="t", message="m", hospital_name="H", blood_group="A+", contact_number="9876543210"
        )

        with pytest.raises(ValidationFailedError) as exc_info:
            make_api().create_alert(payload)

        assert exc_info.value.user_message == "hospitalName should not be empty; unitsRequired must be positive"

    def test_unmapped_status_is_generic_api_error(self, handler, make_api) -> None:
        handler.routes["GET /donors/d-1"] = httpx.Response(409, text="conflict")

        with pytest.raises(ApiError) as exc_info:
            make_api().get_donor("d-1")

        assert type(exc_info.value) is ApiError
        assert exc_info.value.user_message == "Request failed with status 409"

    def test_timeout_and_network_errors(self, make_api) -> None:
        def timeout(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("slow", request=request)

        def refused(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("refused", request=request)

        from muktsar_ngo.api.client import MuktsarApiClient

        slow = MuktsarApiClient("http://mock", client=httpx.Client(transport=httpx.MockTransport(timeout)))
        down = MuktsarApiClient("http://mock", client=httpx.Client(transport=httpx.MockTransport(refused)))

        with pytest.raises(ApiTimeoutError):
            slow.get_profile()
        with pytest.raises(ApiNetworkError):
            down.get_profile()

    def test_non_json_success_body(self, handler, make_api) -> None:
        handler.routes["GET /users/profile"] = httpx.Response(200, text="<html>")

        with pytest.raises(InvalidResponseError):
            make_api().get_profile()


class TestDonorEndpoints:
    @pytest.mark.parametrize(
        "payload",
        [
            [_donor("d-1"), _donor("d-2")],
            {"data": [_donor("d-1"), _donor("d-2")], "pagination": {"page": 1, "limit": 10, "total": 2}},
            {"data": {"data": [_donor("d-1"), _donor("d-2")]}},
        ],
    )
    def test_list_donors_accepts_all_list_shapes(self, handler, make_api, payload) -> None:
        handler.routes["GET /donors"] = httpx.Response(200, json=payload)

        page = make_api().list_donors()

        assert [d.id for d in page.items] == ["d-1", "d-2"]
        assert page.items[0].blood_group == BloodGroup.O_POSITIVE

    def test_list_donors_sends_query_params(self, handler, make_api) -> None:
        handler.routes["GET /donors"] = httpx.Response(200, json=[])

        make_api().list_donors(DonorListQuery(search="singh", blood_group="O+", is_eligible=True))

        params = handler.requests[0].url.params
        assert params["search"] == "singh"
        assert params["bloodGroup"] == "O_POSITIVE"
        assert params["isEligible"] == "true"

    def test_get_donor_unwraps_data_envelope(self, handler, make_api) -> None:
        handler.routes["GET /donors/d-1"] = httpx.Response(200, json={"data": _donor("d-1")})

        assert make_api().get_donor("d-1").name == "Gurpreet Singh"

    def test_update_last_donation_sends_midnight_utc(self, handler, make_api) -> None:
        handler.routes["PATCH /donors/d-1/last-donation"] = httpx.Response(
            200, json=_donor("d-1", lastDonationDate="2024-02-10T00:00:00.000Z")
        )

        donor = make_api().update_last_donation("d-1", date(2024, 2, 10))

        assert handler.body(handler.requests[0]) == {"lastDonationDate": "2024-02-10T00:00:00.000Z"}
        assert donor.last_donation_date.date() == date(2024, 2, 10)

    def test_delete_donor_with_empty_body(self, handler, make_api) -> None:
        handler.routes["DELETE /donors/d-1"] = httpx.Response(204)

        assert make_api().delete_donor("d-1") is None
        assert handler.calls("DELETE", "/donors/d-1")


class TestAlertEndpoints:
    @pytest.mark.parametrize(
        "method_name,path",
        [
            ("list_active_alerts", "/alerts/active"),
            ("list_active_alerts_for_donor", "/alerts/active/for-donor"),
            ("list_current_alerts", "/alerts/current"),
            ("list_past_alerts", "/alerts/past"),
        ],
    )
    def test_listing_endpoints(self, handler, make_api, method_name, path) -> None:
        handler.routes[f"GET {path}"] = httpx.Response(200, json={"data": [_alert("a-1")]})

        alerts = getattr(make_api(), method_name)()

        assert [a.id for a in alerts] == ["a-1"]
        assert alerts[0].urgency == Urgency.HIGH

    def test_list_alerts_with_query(self, handler, make_api) -> None:
        handler.routes["GET /alerts"] = httpx.Response(200, json=[])

        make_api().list_alerts(AlertListQuery(status="ACTIVE", urgency="critical"))

        params = handler.requests[0].url.params
        assert params["status"] == "ACTIVE"
        assert params["urgency"] == "CRITICAL"

    def test_accept_alert_sends_donor_id(self, handler, make_api) -> None:
        handler.routes["POST /alerts/a-1/accept"] = httpx.Response(201, json={"message": "accepted"})

        result = make_api().accept_alert("a-1", "d-1")

        assert result == {"message": "accepted"}
        assert handler.body(handler.calls("POST", "/alerts/a-1/accept")[0]) == {"donorId": "d-1"}

    def test_accepted_donors_flattens_acceptance_rows(self, handler, make_api) -> None:
        handler.routes["GET /alerts/a-1/accepted-donors"] = httpx.Response(
            200,
            json=[
                {"acceptedAt": "2024-03-01T11:00:00Z", "donor": _donor("d-1")},
                _donor("d-2", acceptedAt="2024-03-01T12:00:00Z"),
            ],
        )

        donors = make_api().list_accepted_donors("a-1")

        assert [d.id for d in donors] == ["d-1", "d-2"]
        assert donors[0].accepted_at is not None

    @pytest.mark.parametrize(
        "method_name,http_method,path",
        [
            ("mark_alert_complete", "POST", "/alerts/a-1/mark-complete"),
            ("resolve_alert", "PATCH", "/alerts/a-1/resolve"),
            ("cancel_alert", "PATCH", "/alerts/a-1/cancel"),
        ],
    )
    def test_closing_endpoints(self, handler, make_api, method_name, http_method, path) -> None:
        handler.routes[f"{http_method} {path}"] = httpx.Response(200, json={"status": "COMPLETED"})

        getattr(make_api(), method_name)("a-1")

        assert handler.calls(http_method, path)

    def test_create_alert_body(self, handler, make_api) -> None:
        handler.routes["POST /alerts"] = httpx.Response(201, json=_alert("a-9"))
        payload = AlertCreate(
            title="Urgent B- Blood Needed",
            message="B- blood urgently needed at Civil Hospital. Contact: 9876543210",
            hospital_name="Civil Hospital",
            blood_group="B-",
            urgency="critical",
            contact_number="9876543210",
        )

        created = make_api().create_alert(payload)

        body = handler.body(handler.requests[0])
        assert created.id == "a-9"
        assert body["bloodGroup"] == "B_NEGATIVE"
        assert body["urgency"] == "CRITICAL"
        assert body["unitsRequired"] == 1
        assert "expiresAt" not in body


class TestProfileEndpoints:
    def test_update_profile_uses_put(self, handler, make_api) -> None:
        handler.routes["PUT /users/profile"] = httpx.Response(200, json={"id": "u1", "firstName": "Asha"})

        user = make_api().update_profile(ProfileUpdate(first_name="Asha"))

        assert user.first_name == "Asha"
        assert handler.body(handler.requests[0]) == {"firstName": "Asha"}
