"""
Unit tests for paginated registry queries.
"""

import pytest

from provisioning_service.core.errors import (
    ArgumentMissingError,
    InvalidArgumentError,
    QueryExhaustedError,
    ThrottlingError,
    TransportError,
)
from provisioning_service.modules.enrollment.models import (
    DeviceRegistrationStatus,
    Enrollment,
    EnrollmentGroup,
    QuerySpecification,
)

VERSION = "?api-version=2017-08-31-preview"


@pytest.fixture
def spec() -> QuerySpecification:
    return QuerySpecification(query="SELECT * FROM enrollments")


@pytest.fixture
def three_pages(result_factory):
    return [
        result_factory(
            200,
            [{"registrationId": "r1"}, {"registrationId": "r2"}],
            {"x-ms-continuation": "t1", "x-ms-item-type": "enrollment"},
        ),
        result_factory(
            200,
            [{"registrationId": "r3"}, {"registrationId": "r4"}],
            {"x-ms-continuation": "t2"},
        ),
        result_factory(200, [{"registrationId": "r5"}]),
    ]


class TestPagination:
    @pytest.mark.asyncio
    async def test_three_page_sequence(self, client, transport, spec, three_pages):
        transport.execute_api_call.side_effect = three_pages
        cursor = client.create_individual_enrollment_query(spec, page_size=2)

        first = await cursor.fetch_next_page()
        second = await cursor.fetch_next_page()
        third = await cursor.fetch_next_page()

        assert [e.registration_id for e in first.items] == ["r1", "r2"]
        assert first.item_type == "enrollment"
        assert second.continuation_token == "t2"
        assert third.continuation_token is None
        assert all(isinstance(e, Enrollment) for e in third.items)
        assert cursor.has_more_results is False

        calls = transport.execute_api_call.call_args_list
        assert len(calls) == 3
        for call in calls:
            method, path, headers, body = call.args
            assert method == "POST"
            assert path == f"/enrollments/query{VERSION}"
            assert headers["x-ms-max-item-count"] == "2"
            assert body == {"query": "SELECT * FROM enrollments"}
        assert "x-ms-continuation" not in calls[0].args[2]
        assert calls[1].args[2]["x-ms-continuation"] == "t1"
        assert calls[2].args[2]["x-ms-continuation"] == "t2"

    @pytest.mark.asyncio
    async def test_fourth_advance_is_terminal_without_network(
        self, client, transport, spec, three_pages
    ):
        transport.execute_api_call.side_effect = three_pages
        cursor = client.create_individual_enrollment_query(spec)
        for _ in range(3):
            await cursor.fetch_next_page()

        with pytest.raises(QueryExhaustedError):
            await cursor.fetch_next_page()
        assert transport.execute_api_call.await_count == 3

    @pytest.mark.asyncio
    async def test_async_iteration_yields_every_page(self, client, transport, spec, three_pages):
        transport.execute_api_call.side_effect = three_pages
        cursor = client.create_individual_enrollment_query(spec)

        pages = [page async for page in cursor]

        assert [len(page.items) for page in pages] == [2, 2, 1]

    @pytest.mark.asyncio
    async def test_no_page_size_header_by_default(self, client, transport, spec, result_factory):
        transport.execute_api_call.return_value = result_factory(200, [])
        cursor = client.create_enrollment_group_query(spec)

        page = await cursor.fetch_next_page()

        method, path, headers, _ = transport.execute_api_call.call_args.args
        assert path == f"/enrollmentGroups/query{VERSION}"
        assert "x-ms-max-item-count" not in headers
        assert page.items == []

    @pytest.mark.asyncio
    async def test_resume_from_saved_token(self, client, transport, spec, result_factory):
        transport.execute_api_call.return_value = result_factory(
            200, [{"registrationId": "r7", "status": "assigned"}]
        )
        cursor = client.create_device_registration_status_query(
            spec, continuation_token="saved+token/=="
        )

        page = await cursor.fetch_next_page()

        _, path, headers, _ = transport.execute_api_call.call_args.args
        assert path == f"/registrations/query{VERSION}"
        assert headers["x-ms-continuation"] == "saved+token/=="
        assert isinstance(page.items[0], DeviceRegistrationStatus)

    @pytest.mark.asyncio
    async def test_transport_failure_keeps_position(
        self, client, transport, spec, result_factory
    ):
        transport.execute_api_call.side_effect = [
            result_factory(200, [], {"x-ms-continuation": "t1"}),
            ThrottlingError("HTTP 429", status_code=429),
            result_factory(200, []),
        ]
        cursor = client.create_individual_enrollment_query(spec)
        await cursor.fetch_next_page()

        with pytest.raises(ThrottlingError):
            await cursor.fetch_next_page()
        assert cursor.continuation_token == "t1"
        assert cursor.has_more_results is True

        await cursor.fetch_next_page()
        assert transport.execute_api_call.call_args.args[2]["x-ms-continuation"] == "t1"

    @pytest.mark.asyncio
    async def test_non_list_body_is_transport_error(
        self, client, transport, spec, result_factory
    ):
        transport.execute_api_call.return_value = result_factory(200, {"items": []})
        cursor = client.create_enrollment_group_query(spec)

        with pytest.raises(TransportError):
            await cursor.fetch_next_page()
        assert cursor.has_more_results is False

    @pytest.mark.asyncio
    async def test_unrecognized_registry_values_are_kept(
        self, client, transport, spec, result_factory
    ):
        transport.execute_api_call.return_value = result_factory(
            200,
            [
                {"registrationId": "r1", "attestation": {"type": "symmetricKey"}},
                {
                    "registrationId": "r2",
                    "registrationState": {"status": "reprovisioned"},
                },
            ],
            {"x-ms-continuation": "t1"},
        )
        cursor = client.create_individual_enrollment_query(spec)

        page = await cursor.fetch_next_page()

        assert page.items[0].attestation.type == "symmetricKey"
        assert page.items[1].registration_state.status == "reprovisioned"
        assert cursor.continuation_token == "t1"

    @pytest.mark.asyncio
    async def test_unparseable_page_does_not_stall_cursor(
        self, client, transport, spec, result_factory
    ):
        transport.execute_api_call.side_effect = [
            result_factory(
                200,
                [{"registrationId": "r1", "attestation": "tpm"}],
                {"x-ms-continuation": "t1"},
            ),
            result_factory(200, [{"registrationId": "r2"}]),
        ]
        cursor = client.create_individual_enrollment_query(spec)

        with pytest.raises(TransportError):
            await cursor.fetch_next_page()
        assert cursor.continuation_token == "t1"
        assert cursor.has_more_results is True

        page = await cursor.fetch_next_page()

        assert transport.execute_api_call.call_args.args[2]["x-ms-continuation"] == "t1"
        assert [e.registration_id for e in page.items] == ["r2"]
        assert cursor.has_more_results is False


class TestNextWithCallback:
    @pytest.mark.asyncio
    async def test_next_reports_items(self, client, transport, spec, recorder, result_factory):
        page = result_factory(200, [{"enrollmentGroupId": "g1"}])
        transport.execute_api_call.return_value = page
        cursor = client.create_enrollment_group_query(spec)

        await cursor.next(recorder)

        error, items, response = recorder.calls[0]
        assert error is None
        assert isinstance(items[0], EnrollmentGroup)
        assert response is page.response

    @pytest.mark.asyncio
    async def test_next_reports_transport_error(self, client, transport, spec, recorder):
        failure = TransportError("down")
        transport.execute_api_call.side_effect = failure
        cursor = client.create_individual_enrollment_query(spec)

        await cursor.next(recorder)

        assert recorder.calls == [(failure,)]

    @pytest.mark.asyncio
    async def test_next_after_last_page(self, client, transport, spec, recorder, result_factory):
        transport.execute_api_call.return_value = result_factory(200, [])
        cursor = client.create_individual_enrollment_query(spec)
        await cursor.next(recorder)

        with pytest.raises(QueryExhaustedError):
            await cursor.next(recorder)
        assert transport.execute_api_call.await_count == 1

    @pytest.mark.asyncio
    async def test_next_requires_callback(self, client, spec):
        cursor = client.create_individual_enrollment_query(spec)
        with pytest.raises(ArgumentMissingError):
            await cursor.next(None)


class TestQueryCreation:
    def test_missing_specification(self, client):
        with pytest.raises(ArgumentMissingError):
            client.create_individual_enrollment_query(None)

    def test_wrong_specification_type(self, client):
        with pytest.raises(InvalidArgumentError):
            client.create_enrollment_group_query({"query": "*"})

    def test_new_cursor_state(self, client, spec):
        cursor = client.create_individual_enrollment_query(spec, page_size=5)
        assert cursor.has_more_results is True
        assert cursor.continuation_token is None
